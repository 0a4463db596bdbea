"""
Parses HN listing and item pages into Post and Comment records.

Listing pages are best effort: a row that can't be parsed is dropped and
the rest of the page survives. Single-item parsing has nothing to fall
back on, so a missing title or id raises ScraperError.
"""

import logging
import re
from typing import List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from .config import HN_WEB_URL
from .errors import ScraperError
from .models import Comment, Post, PostType, VoteLinks
from .vote_links import extract_vote_links


# Width in pixels of one level of the comment indent spacer image
COMMENT_INDENT_WIDTH = 40

NEXT_ID_PATTERN = re.compile(r"[?&]next=(\d+)")


def _parse_int(value: object) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _leading_int(text: str) -> Optional[int]:
    tokens = text.split()
    if not tokens:
        return None
    return _parse_int(tokens[0])


def _vote_links_or_none(upvote: Optional[str], unvote: Optional[str]) -> Optional[VoteLinks]:
    if upvote is None and unvote is None:
        return None
    return VoteLinks(upvote=upvote, unvote=unvote)


# --- Posts ---

def posts_table_element(html_content: str) -> Tag:
    """Finds the table that holds the listing rows of a feed page."""
    soup = BeautifulSoup(html_content, 'html.parser')
    table = soup.select_one("table:has(.athing.submission)")
    if table is None:
        raise ScraperError("Couldn't find the posts table")
    return table


def post_from_rows(title_row: Tag, metadata_row: Tag, post_type: PostType) -> Post:
    """
    Builds a Post from a title row and the metadata row below it.

    An unparseable id becomes 0; callers decide whether that's fatal.
    """
    post_id = _parse_int(title_row.get("id")) or 0

    title_link = title_row.select_one("span.titleline > a")
    if title_link is None:
        raise ScraperError(f"Couldn't find title link for post {post_id}")

    title = title_link.get_text().strip()
    href = str(title_link.get("href") or "").strip()
    url = urljoin(HN_WEB_URL + "/", href) if href else HN_WEB_URL

    score_element = metadata_row.select_one("span.score")
    score = _leading_int(score_element.get_text()) if score_element else None

    age_element = metadata_row.select_one("span.age")
    age = str(age_element.get("title") or "") if age_element else ""

    user_element = metadata_row.select_one("a.hnuser")
    by = user_element.get_text() if user_element else ""

    comments_count = 0
    for link in metadata_row.select("a:not(.hnuser)"):
        link_text = link.get_text()
        if "comment" in link_text:
            comments_count = _leading_int(link_text) or 0
            break

    vote_info = extract_vote_links(title_row, metadata_row)

    return Post(
        id=post_id,
        url=url,
        title=title,
        age=age,
        comments_count=comments_count,
        by=by,
        score=score or 0,
        post_type=post_type,
        upvoted=vote_info.upvoted,
        vote_links=_vote_links_or_none(vote_info.upvote, vote_info.unvote),
    )


def _post_text(table: Tag) -> Optional[str]:
    """Returns the self-text HTML of an item table, or None."""
    toptext = table.select_one(".toptext")
    if toptext is not None:
        text = toptext.decode_contents()
        return text if text.strip() else None

    rows = table.select("tr")
    index = len(rows) - 1
    # logged-in pages end with the reply form, the text sits above it
    if index >= 0 and rows[index].select_one("form") is not None:
        index = len(rows) - 3
    if index < 2:
        return None

    row = rows[index]
    if row.select_one("td.subtext") is not None:
        return None

    cells = row.find_all("td")
    text = cells[-1].decode_contents() if cells else row.decode_contents()
    return text if text.strip() else None


def posts_from_table(table: Tag, post_type: PostType) -> List[Post]:
    """
    Parses either a feed table (pairs of title/metadata rows) or a single
    `fatitem` table.
    """
    if "fatitem" in (table.get("class") or []):
        rows = table.select("tr")
        if len(rows) < 2:
            raise ScraperError("Item table has fewer than two rows")
        post = post_from_rows(rows[0], rows[1], post_type)
        if post.id == 0:
            raise ScraperError("Couldn't parse the item id")
        post.text = _post_text(table)
        return [post]

    posts: List[Post] = []
    for title_row in table.select("tr.athing:not(.comtr)"):
        metadata_row = title_row.find_next_sibling("tr")
        if metadata_row is None:
            logging.debug(f"Skipping row {title_row.get('id')}: no metadata row")
            continue
        try:
            post = post_from_rows(title_row, metadata_row, post_type)
        except ScraperError as e:
            logging.debug(f"Skipping unparseable row: {e}")
            continue
        if post.id == 0:
            logging.debug(f"Skipping row without a numeric id: {post.title!r}")
            continue
        posts.append(post)

    return posts


def parse_posts(html_content: str, post_type: PostType) -> List[Post]:
    return posts_from_table(posts_table_element(html_content), post_type)


def parse_post(html_content: str, post_type: PostType = PostType.NEWS) -> Post:
    """Parses the post at the top of an item page (without its comments)."""
    soup = BeautifulSoup(html_content, 'html.parser')
    table = soup.select_one("table.fatitem")
    if table is None:
        raise ScraperError("Couldn't find the item table")
    return posts_from_table(table, post_type)[0]


def next_id_from_html(html_content: str) -> Optional[int]:
    """Returns the `next=` id of a listing's "More" link (newest/jobs feeds)."""
    soup = BeautifulSoup(html_content, 'html.parser')
    more_link = soup.select_one("a.morelink")
    if more_link is None:
        return None
    match = NEXT_ID_PATTERN.search(str(more_link.get("href", "")))
    return int(match.group(1)) if match else None


def has_more_link(html_content: str) -> bool:
    soup = BeautifulSoup(html_content, 'html.parser')
    return soup.select_one("a.morelink") is not None


# --- Comments ---

def comment_text(comment_div: Tag) -> str:
    """
    Returns the inner HTML of a `commtext` div with the reply link
    removed and every anchor's text replaced by its full href (HN
    truncates long link text).
    """
    for reply in comment_div.select(".reply"):
        reply.clear()

    for link in comment_div.select("a"):
        href = link.get("href")
        if href:
            link.string = str(href)

    return comment_div.decode_contents()


def parse_comment(comment_tr: Tag) -> Comment:
    """Parses one `comtr` row; raises ScraperError if it isn't a usable comment."""
    comment_div = comment_tr.select_one(".commtext")
    text = comment_text(comment_div) if comment_div is not None else ""
    if not text.strip():
        raise ScraperError("Comment text is empty")

    comment_id = _parse_int(comment_tr.get("id"))
    if comment_id is None:
        raise ScraperError("Couldn't parse comment id")

    indent_img = comment_tr.select_one(".ind img")
    indent_width = _parse_int(indent_img.get("width")) if indent_img is not None else None
    if indent_width is None:
        raise ScraperError(f"Couldn't parse indent width of comment {comment_id}")

    age_element = comment_tr.select_one(".age")
    user_element = comment_tr.select_one(".hnuser")
    vote_info = extract_vote_links(comment_tr)

    return Comment(
        id=comment_id,
        age=age_element.get_text(strip=True) if age_element else "",
        text=text,
        by=user_element.get_text(strip=True) if user_element else "",
        level=indent_width // COMMENT_INDENT_WIDTH,
        upvoted=vote_info.upvoted,
        vote_links=_vote_links_or_none(vote_info.upvote, vote_info.unvote),
    )


def _clamp_levels(comments: List[Comment]) -> None:
    """
    Re-levels comments so a level only grows by one from one row to the
    next. Each comment lands one below its nearest earlier row with a
    smaller raw level, so when a skipped (deleted) parent leaves a gap
    the orphaned siblings stay siblings.
    """
    # (raw level, assigned level) of the open ancestors
    ancestors: List[Tuple[int, int]] = []
    for comment in comments:
        raw_level = comment.level
        while ancestors and ancestors[-1][0] >= raw_level:
            ancestors.pop()
        level = ancestors[-1][1] + 1 if ancestors else 0
        if level != raw_level:
            logging.debug(f"Comment {comment.id}: level {raw_level} clamped to {level}")
            comment.level = level
        ancestors.append((raw_level, level))


def parse_comments(html_content: str) -> List[Comment]:
    """
    Parses every comment row of an item page, in document order.

    Deleted/flagged comments and malformed rows are left out.
    """
    soup = BeautifulSoup(html_content, 'html.parser')
    comments: List[Comment] = []

    for comment_tr in soup.select(".comtr"):
        try:
            comments.append(parse_comment(comment_tr))
        except ScraperError as e:
            logging.debug(f"Skipping comment row {comment_tr.get('id')}: {e}")

    _clamp_levels(comments)
    return comments


def post_comment(post: Post) -> Optional[Comment]:
    """Turns an Ask/Show post's self-text into a top-level pseudo-comment."""
    if not post.text or not post.text.strip():
        return None
    return Comment(
        id=post.id,
        age=post.age,
        text=post.text,
        by=post.by,
        level=0,
        upvoted=post.upvoted,
    )


def parse_post_with_comments(html_content: str, post_type: PostType = PostType.NEWS) -> Post:
    """
    Parses an item page (possibly several concatenated pages) into a Post
    with its comments attached, self-text first.
    """
    post = parse_post(html_content, post_type)
    comments = parse_comments(html_content)

    self_text_comment = post_comment(post)
    if self_text_comment is not None:
        comments.insert(0, self_text_comment)

    post.comments = comments
    logging.debug(f"Post {post.id}: parsed {len(comments)} comments")
    return post
