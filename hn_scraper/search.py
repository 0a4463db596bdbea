"""
Story search through the Algolia HN Search API.

Results are mapped into the same Post model the HTML parser produces;
only the age is computed here, from the hit's unix timestamp.
"""

import logging
import time
from typing import Any, Dict, List, Optional

import requests

from .config import HN_WEB_URL, load_settings
from .errors import RequestFailure
from .models import Post, PostType


_AGE_UNITS = (
    ("year", 365 * 24 * 3600),
    ("month", 30 * 24 * 3600),
    ("week", 7 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def age_string(timestamp: float, now: Optional[float] = None) -> str:
    """Formats a unix timestamp the way HN does: "3 hours ago"."""
    now = time.time() if now is None else now
    delta = int(now - timestamp)
    if delta < 0:
        return "just now"
    for unit, seconds in _AGE_UNITS:
        count = delta // seconds
        if count >= 1:
            return f"{count} {unit}{'' if count == 1 else 's'} ago"
    return "just now"


def post_from_hit(hit: Dict[str, Any], now: Optional[float] = None) -> Optional[Post]:
    """Maps one search hit to a Post; hits without a numeric id are dropped."""
    try:
        post_id = int(hit.get("objectID"))
    except (TypeError, ValueError):
        logging.debug(f"Skipping search hit with id {hit.get('objectID')!r}")
        return None

    created_at = hit.get("created_at_i")
    if created_at is None:
        created_at = time.time() if now is None else now

    return Post(
        id=post_id,
        url=hit.get("url") or f"{HN_WEB_URL}/item?id={post_id}",
        title=hit.get("title") or "(no title)",
        age=age_string(created_at, now),
        comments_count=hit.get("num_comments") or 0,
        by=hit.get("author") or "unknown",
        score=hit.get("points") or 0,
        post_type=PostType.NEWS,
        upvoted=False,
        text=hit.get("story_text"),
    )


def search_posts(query: str, session: requests.Session) -> List[Post]:
    """Searches stories matching `query`."""
    settings = load_settings()
    try:
        response = session.get(
            settings.search_url,
            params={"query": query, "tags": "story"},
            timeout=settings.timeout,
        )
        response.raise_for_status()
        data = response.json()
    except requests.RequestException as e:
        logging.error(f"Error searching for {query!r}: {e}")
        raise RequestFailure(f"Search request failed: {e}") from e
    except ValueError as e:
        logging.error(f"Search response for {query!r} is not JSON: {e}")
        raise RequestFailure("Search response is not valid JSON") from e

    hits = data.get("hits", []) if isinstance(data, dict) else []
    posts = [post for post in (post_from_hit(hit) for hit in hits) if post is not None]
    logging.info(f"Search {query!r}: {len(posts)} results")
    return posts
