"""
Network client for Hacker News.

Fetches pages through a shared requests.Session, hands the HTML to the
parser and performs vote and login actions. Transport errors are logged
and re-raised as RequestFailure; there are no retries here beyond the
session adapter's.
"""

import logging
from typing import List, NamedTuple, Optional
from urllib.parse import urlencode

import requests
from requests.adapters import HTTPAdapter, Retry

from . import parser
from .config import HN_WEB_URL, load_settings
from .errors import AuthenticationError, RequestFailure, ScraperError, Unauthenticated
from .models import Comment, Post, PostType, VoteLinks
from .vote_links import synthesize_unvote_url


HN_HOST = "news.ycombinator.com"

LOGIN_FORM_MARKERS = ('<form action="/login', "You have to be logged in")

# Safety net for the "more" pagination of huge threads
MAX_COMMENT_PAGES = 50


def get_session(user_agent: Optional[str] = None) -> requests.Session:
    """Configures a robust session with retries for network resilience."""
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent or load_settings().user_agent})

    retries = Retry(
        total=3,
        backoff_factor=0.5,
        status_forcelist=[500, 502, 503, 504],
    )
    adapter = HTTPAdapter(max_retries=retries)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session


def fetch_html(url: str, session: requests.Session) -> str:
    """GETs a page and returns its text."""
    try:
        response = session.get(url, timeout=load_settings().timeout)
        response.raise_for_status()
        return response.text
    except requests.RequestException as e:
        logging.error(f"Error fetching {url}: {e}")
        raise RequestFailure(f"Error fetching {url}: {e}") from e


def post_form(url: str, body: str, session: requests.Session) -> str:
    """POSTs an url-encoded form body and returns the response text."""
    try:
        response = session.post(
            url,
            data=body,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=load_settings().timeout,
        )
        response.raise_for_status()
        return response.text
    except requests.RequestException as e:
        logging.error(f"Error posting to {url}: {e}")
        raise RequestFailure(f"Error posting to {url}: {e}") from e


def contains_cookie(session: requests.Session, domain: str = HN_HOST) -> bool:
    return any(domain in (cookie.domain or "") for cookie in session.cookies)


def clear_cookies(session: requests.Session) -> None:
    session.cookies.clear()


# --- URLs ---

def posts_url(post_type: PostType, page: int = 1, next_id: Optional[int] = None) -> str:
    """
    Builds a feed URL. newest and jobs paginate by the id of the last
    item seen; the other feeds by page number.
    """
    if post_type in (PostType.NEWEST, PostType.JOBS) and next_id:
        return f"{HN_WEB_URL}/{post_type.value}?next={next_id}"
    return f"{HN_WEB_URL}/{post_type.value}?p={page}"


def item_url(item_id: int, page: int = 1) -> str:
    query = {"id": item_id} if page == 1 else {"id": item_id, "p": page}
    return f"{HN_WEB_URL}/item?{urlencode(query)}"


def absolute_url(link: str) -> str:
    """Vote hrefs are site-relative ("vote?id=..."); make them fetchable."""
    if link.startswith("http"):
        return link
    return f"{HN_WEB_URL}/{link.lstrip('/')}"


# --- Posts & comments ---

class PostsPage(NamedTuple):
    posts: List[Post]
    # `next=` id of the "More" link (newest and jobs)
    next_id: Optional[int]
    has_more: bool


def get_posts_page(
    post_type: PostType,
    session: requests.Session,
    page: int = 1,
    next_id: Optional[int] = None,
) -> PostsPage:
    """Fetches one feed page along with where the following page starts."""
    url = posts_url(post_type, page, next_id)
    html_content = fetch_html(url, session)
    posts = parser.parse_posts(html_content, post_type)
    logging.info(f"Fetched {len(posts)} {post_type.value} posts from {url}")
    return PostsPage(
        posts=posts,
        next_id=parser.next_id_from_html(html_content),
        has_more=parser.has_more_link(html_content),
    )


def get_posts(
    post_type: PostType,
    session: requests.Session,
    page: int = 1,
    next_id: Optional[int] = None,
) -> List[Post]:
    return get_posts_page(post_type, session, page, next_id).posts


def fetch_post_html(item_id: int, session: requests.Session, recursive: bool = True) -> str:
    """
    Fetches an item page and, when `recursive`, every following comment
    page while the page shows a "more" link. Pages are concatenated in
    order so a single parse sees the thread in document order.
    """
    pages: List[str] = []
    page = 1
    while True:
        html_content = fetch_html(item_url(item_id, page), session)
        pages.append(html_content)
        if not recursive or not parser.has_more_link(html_content):
            break
        if page >= MAX_COMMENT_PAGES:
            logging.warning(f"Item {item_id}: stopped after {page} comment pages")
            break
        page += 1
        logging.debug(f"Item {item_id}: fetching comment page {page}")

    return "\n".join(pages)


def get_post(item_id: int, session: requests.Session, include_all_comments: bool = True) -> Post:
    """Fetches a post with its full comment thread attached."""
    html_content = fetch_post_html(item_id, session, recursive=include_all_comments)
    post = parser.parse_post_with_comments(html_content)
    logging.info(f"Fetched post {item_id} with {len(post.comments or [])} comments")
    return post


def get_comments(post: Post, session: requests.Session) -> List[Comment]:
    """Fetches the comments of a post and attaches them to it."""
    html_content = fetch_post_html(post.id, session)
    comments = parser.parse_comments(html_content)
    self_text_comment = parser.post_comment(post)
    if self_text_comment is not None:
        comments.insert(0, self_text_comment)
    post.comments = comments
    return comments


# --- Voting ---

def _perform_vote(link: str, session: requests.Session) -> None:
    response_text = fetch_html(absolute_url(link), session)
    if any(marker in response_text for marker in LOGIN_FORM_MARKERS):
        logging.warning(f"Vote request {link} bounced to the login page")
        raise Unauthenticated()


def _upvote_link(vote_links: Optional[VoteLinks]) -> str:
    if vote_links is None:
        raise Unauthenticated()
    if vote_links.upvote is None:
        if vote_links.unvote is None:
            raise Unauthenticated()
        raise ScraperError("No upvote link available")
    return vote_links.upvote


def _unvote_link(vote_links: Optional[VoteLinks]) -> str:
    if vote_links is None:
        raise Unauthenticated()
    if vote_links.unvote is None:
        raise ScraperError("No unvote link available")
    return vote_links.unvote


def _after_upvote(vote_links: VoteLinks) -> VoteLinks:
    if vote_links.unvote is None and vote_links.upvote:
        return VoteLinks(vote_links.upvote, synthesize_unvote_url(vote_links.upvote))
    return vote_links


def upvote_post(post: Post, session: requests.Session) -> None:
    _perform_vote(_upvote_link(post.vote_links), session)
    if not post.upvoted:
        post.score += 1
    post.upvoted = True
    post.vote_links = _after_upvote(post.vote_links)
    logging.info(f"Upvoted post {post.id}")


def unvote_post(post: Post, session: requests.Session) -> None:
    _perform_vote(_unvote_link(post.vote_links), session)
    if post.upvoted:
        post.score = max(0, post.score - 1)
    post.upvoted = False
    logging.info(f"Unvoted post {post.id}")


def upvote_comment(comment: Comment, session: requests.Session) -> None:
    _perform_vote(_upvote_link(comment.vote_links), session)
    comment.upvoted = True
    comment.vote_links = _after_upvote(comment.vote_links)
    logging.info(f"Upvoted comment {comment.id}")


def unvote_comment(comment: Comment, session: requests.Session) -> None:
    _perform_vote(_unvote_link(comment.vote_links), session)
    comment.upvoted = False
    logging.info(f"Unvoted comment {comment.id}")


# --- Authentication ---

def login(username: str, password: str, session: requests.Session) -> None:
    """Logs in with the HN login form; the session keeps the auth cookie."""
    login_url = f"{HN_WEB_URL}/login"

    # picks up any cookies the form expects
    fetch_html(login_url, session)

    body = urlencode({"acct": username, "pw": password, "goto": "news"})
    response_text = post_form(login_url, body, session)

    if "Bad login" in response_text or ("Login" in response_text and 'name="acct"' in response_text):
        logging.warning(f"Login failed for {username}")
        raise AuthenticationError()

    logging.info(f"Logged in as {username}")


def logout(session: requests.Session) -> None:
    clear_cookies(session)
    logging.info("Logged out, session cookies cleared")


def is_authenticated(session: requests.Session) -> bool:
    return contains_cookie(session)
