"""
Renders the restricted HTML found in HN comment bodies into styled text runs.

Supported markup is what HN emits: <p>, <b>, <i>, inline <code>,
<pre><code> blocks and <a href>. Precedence is code block, then
paragraphs, then a single inline block. Anything ambiguous degrades to
tag-stripped plain text, so rendering never raises.
"""

import re
from dataclasses import dataclass, replace
from typing import List, NamedTuple, Optional
from urllib.parse import urljoin, urlsplit

from .config import HN_WEB_URL
from .html_utils import decode_entities, strip_tags, strip_tags_normalized


PARAGRAPH_BREAK = "\n\n"

LINK_PATTERN = re.compile(r"""<a\s+[^>]*href=(['"])(.*?)\1[^>]*>(.*?)</a>""", re.IGNORECASE | re.DOTALL)
PARAGRAPH_PATTERN = re.compile(r"<p\b[^>]*>(.*?)</p>", re.IGNORECASE | re.DOTALL)
CODE_BLOCK_PATTERN = re.compile(r"<pre>\s*<code>(.*?)</code>\s*</pre>", re.IGNORECASE | re.DOTALL)

BOLD_PATTERN = re.compile(r"<b\b[^>]*>(.*?)</b>", re.IGNORECASE | re.DOTALL)
ITALIC_PATTERN = re.compile(r"<i\b[^>]*>(.*?)</i>", re.IGNORECASE | re.DOTALL)
INLINE_CODE_PATTERN = re.compile(r"<code\b[^>]*>(.*?)</code>", re.IGNORECASE | re.DOTALL)
EMPTY_FORMATTING_PATTERN = re.compile(r"<([bi])\b[^>]*>\s*</\1>", re.IGNORECASE)

_FORMATTING = (
    ("bold", BOLD_PATTERN),
    ("italic", ITALIC_PATTERN),
    ("code", INLINE_CODE_PATTERN),
)


@dataclass(frozen=True)
class TextRun:
    """A piece of rendered text and the styles that apply to all of it."""
    text: str
    bold: bool = False
    italic: bool = False
    code: bool = False
    paragraph: bool = False
    link: Optional[str] = None


class _Span(NamedTuple):
    start: int
    end: int
    style: str
    content: str


def plain_text(runs: List[TextRun]) -> str:
    return "".join(run.text for run in runs)


def resolve_url(href: str, base_url: str = HN_WEB_URL) -> str:
    """Resolves scheme-less hrefs (HN's site-relative links) against the site."""
    if urlsplit(href).scheme:
        return href
    return urljoin(base_url + "/", href)


def render_html(html: str) -> List[TextRun]:
    """
    Turns a comment body into a list of TextRun.

    Code blocks are located on the raw body so their content can be
    tag-stripped before it is entity-decoded; the rest of the body is
    decoded first and then scanned for paragraphs, links and inline
    formatting.
    """
    if not html:
        return []

    if CODE_BLOCK_PATTERN.search(html):
        return _render_code_blocks(html)

    decoded = decode_entities(html)
    paragraphs = list(PARAGRAPH_PATTERN.finditer(decoded))
    if paragraphs:
        return _render_paragraphs(decoded, paragraphs)

    runs = _render_links(decoded)
    if not plain_text(runs).strip():
        return []
    return runs


def _join_blocks(blocks: List[List[TextRun]]) -> List[TextRun]:
    result: List[TextRun] = []
    for block in blocks:
        if not block:
            continue
        if result:
            result.append(TextRun(PARAGRAPH_BREAK))
        result.extend(block)
    return result


def _render_block(html: str) -> List[TextRun]:
    """Renders surrounding text; blank fragments produce nothing."""
    fragment = html.strip()
    if not fragment:
        return []
    runs = _render_links(fragment)
    return runs if plain_text(runs).strip() else []


def _render_code_blocks(html: str) -> List[TextRun]:
    blocks: List[List[TextRun]] = []
    last_end = 0

    for match in CODE_BLOCK_PATTERN.finditer(html):
        blocks.append(_render_segment(decode_entities(html[last_end:match.start()])))
        code = decode_entities(strip_tags(match.group(1)))
        if code.strip():
            blocks.append([TextRun(code, code=True)])
        last_end = match.end()

    blocks.append(_render_segment(decode_entities(html[last_end:])))
    return _join_blocks(blocks)


def _render_segment(html: str) -> List[TextRun]:
    """Text between code blocks: paragraphs when it has any, else one block."""
    paragraphs = list(PARAGRAPH_PATTERN.finditer(html))
    if not paragraphs:
        return _render_block(html)
    runs = _render_paragraphs(html, paragraphs)
    return runs if plain_text(runs).strip() else []


def _render_paragraphs(html: str, matches: List[re.Match]) -> List[TextRun]:
    blocks: List[List[TextRun]] = []
    last_end = 0

    for match in matches:
        # HN leaves the first paragraph of a comment unwrapped
        blocks.append(_render_block(html[last_end:match.start()]))
        blocks.append(_render_links(match.group(1)))
        last_end = match.end()

    blocks.append(_render_block(html[last_end:]))
    return [replace(run, paragraph=True) for run in _join_blocks(blocks)]


def _render_links(text: str) -> List[TextRun]:
    runs: List[TextRun] = []
    last_end = 0

    for match in LINK_PATTERN.finditer(text):
        runs.extend(_render_formatting(text[last_end:match.start()]))
        target = resolve_url(match.group(2))
        runs.extend(replace(run, link=target) for run in _render_formatting(match.group(3)))
        last_end = match.end()

    runs.extend(_render_formatting(text[last_end:]))
    return runs


def _render_formatting(text: str) -> List[TextRun]:
    text = EMPTY_FORMATTING_PATTERN.sub("", text)
    if not text:
        return []

    clean = strip_tags if _should_preserve_whitespace(text) else strip_tags_normalized
    spans = _formatting_spans(text)

    if not spans or _spans_overlap(spans):
        stripped = clean(text)
        return [TextRun(stripped)] if stripped else []

    runs: List[TextRun] = []
    last_end = 0
    for span in spans:
        before = clean(text[last_end:span.start])
        if before:
            runs.append(TextRun(before))
        content = strip_tags(span.content)
        if content:
            runs.append(TextRun(content, **{span.style: True}))
        last_end = span.end

    after = clean(text[last_end:])
    if after:
        runs.append(TextRun(after))
    return runs


def _formatting_spans(text: str) -> List[_Span]:
    spans = [
        _Span(match.start(), match.end(), style, match.group(1))
        for style, pattern in _FORMATTING
        for match in pattern.finditer(text)
    ]
    return sorted(spans, key=lambda span: span.start)


def _spans_overlap(spans: List[_Span]) -> bool:
    for previous, current in zip(spans, spans[1:]):
        if current.start < previous.end:
            return True
    return False


def _should_preserve_whitespace(text: str) -> bool:
    # "  <b>text</b>  " keeps its padding, multi-line text is normalised
    if "\n" in text:
        return False
    padded = text[:1] in (" ", "\t") or text[-1:] in (" ", "\t")
    has_blocks = "<p" in text or "<div" in text or "<br" in text
    return padded and not has_blocks
