"""
Finds upvote/unvote anchors in post and comment markup and infers
whether the logged-in user has already voted.

HN renders vote state inconsistently between pages, so each lookup is a
cascade of fallbacks. Extraction never raises: an anonymous page simply
yields no links and upvoted=False.
"""

from typing import Iterable, List, NamedTuple, Optional

from bs4 import Tag


USED_MARKER_CLASS = "nosee"


class VoteLinkInfo(NamedTuple):
    upvote: Optional[str]
    unvote: Optional[str]
    upvoted: bool


def _link_with_id_prefix(prefix: str, links: Iterable[Tag]) -> Optional[Tag]:
    for link in links:
        if str(link.get("id", "")).startswith(prefix):
            return link
    return None


def _link_with_text(text: str, links: Iterable[Tag]) -> Optional[Tag]:
    for link in links:
        if link.get_text(strip=True).lower() == text:
            return link
    return None


def _unvote_link(links: List[Tag]) -> Optional[Tag]:
    return _link_with_id_prefix("un_", links) or _link_with_text("unvote", links)


def _href(link: Optional[Tag]) -> Optional[str]:
    if link is None:
        return None
    href = link.get("href")
    return str(href) if href else None


def _has_used_marker(link: Optional[Tag]) -> bool:
    if link is None:
        return False
    return USED_MARKER_CLASS in (link.get("class") or [])


def synthesize_unvote_url(upvote_url: str) -> str:
    return upvote_url.replace("how=up", "how=un")


def extract_vote_links(row: Tag, metadata: Optional[Tag] = None) -> VoteLinkInfo:
    """
    Extracts vote links from a title/comment row and, for posts, its
    metadata row.

    The dedicated `td.votelinks` cell is searched first, then the
    metadata row (unvote only, that's where HN puts it on listings), then
    every anchor under the row. A "nosee" upvote anchor with no unvote
    anchor anywhere means the vote was cast and HN just hid the arrow, so
    the unvote URL is derived from the upvote URL.
    """
    vote_cell_links = row.select("td.votelinks a")
    metadata_links = metadata.select("a") if metadata is not None else []
    row_links = row.select("a")

    upvote_link = _link_with_id_prefix("up_", vote_cell_links)
    unvote_link = _unvote_link(vote_cell_links)

    if unvote_link is None:
        unvote_link = _unvote_link(metadata_links)

    if upvote_link is None:
        upvote_link = _link_with_id_prefix("up_", row_links)
    if unvote_link is None:
        unvote_link = _unvote_link(row_links)

    upvote_url = _href(upvote_link)
    unvote_url = _href(unvote_link)
    used = _has_used_marker(upvote_link)

    if unvote_url is None and used and upvote_url:
        unvote_url = synthesize_unvote_url(upvote_url)

    return VoteLinkInfo(
        upvote=upvote_url,
        unvote=unvote_url,
        upvoted=unvote_url is not None or used,
    )
