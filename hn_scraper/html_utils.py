"""
Entity decoding and tag stripping for HN comment markup.

Two independent primitives used by the parsers and the renderer. They
work on the small dialect HN actually emits, not on arbitrary HTML.
"""

import re


HTML_ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#x27;": "'",
    "&#39;": "'",
    "&#x2F;": "/",
    "&nbsp;": " ",
}

# &amp; goes last so "&amp;lt;" decodes to "&lt;" and not "<"
_ENTITY_ORDER = ["&lt;", "&gt;", "&quot;", "&#x27;", "&#39;", "&#x2F;", "&amp;"]

HTML_TAG_PATTERN = re.compile(r"</?[a-zA-Z][a-zA-Z0-9]*[^<>]*>")
WHITESPACE_PATTERN = re.compile(r"\s+")


def decode_entities(html: str) -> str:
    """Decodes the fixed set of entities HN uses in comment bodies."""
    result = html.replace(" &nbsp;", " ").replace("&nbsp; ", " ").replace("&nbsp;", " ")
    for entity in _ENTITY_ORDER:
        result = result.replace(entity, HTML_ENTITIES[entity])
    return result


def strip_tags(text: str) -> str:
    return HTML_TAG_PATTERN.sub("", text)


def normalize_whitespace(text: str) -> str:
    """Collapses every whitespace run, newlines included, to one space."""
    return WHITESPACE_PATTERN.sub(" ", text)


def strip_tags_normalized(text: str) -> str:
    return normalize_whitespace(strip_tags(text))


def strip_html(html: str) -> str:
    """
    Plain-text rendering of an HTML fragment: entities decoded, tags
    removed, tabs dropped and the result trimmed.
    """
    return strip_tags(decode_entities(html)).replace("\t", "").strip()
