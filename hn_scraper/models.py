"""
Data models for the HN scraper.

Posts and comments are plain mutable dataclasses: votes and comment
fetches update them in place. Comments are kept in a flat, ordered list
where `level` encodes the tree (see visibility.CommentThread).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, TypedDict

from .config import HN_WEB_URL
from .renderer import TextRun, plain_text, render_html


class PostType(str, Enum):
    NEWS = "news"
    ASK = "ask"
    SHOW = "show"
    JOBS = "jobs"
    NEWEST = "newest"
    BEST = "best"
    ACTIVE = "active"

    @property
    def display_name(self) -> str:
        return _POST_TYPE_TITLES[self]


_POST_TYPE_TITLES = {
    PostType.NEWS: "Top",
    PostType.ASK: "Ask",
    PostType.SHOW: "Show",
    PostType.JOBS: "Jobs",
    PostType.NEWEST: "New",
    PostType.BEST: "Best",
    PostType.ACTIVE: "Active",
}


class CommentVisibility(str, Enum):
    VISIBLE = "visible"
    # body collapsed to one line, children hidden
    COMPACT = "compact"
    HIDDEN = "hidden"


@dataclass(frozen=True)
class VoteLinks:
    """Upvote/unvote hrefs as the site renders them (usually site-relative)."""
    upvote: Optional[str] = None
    unvote: Optional[str] = None


class VoteLinksDict(TypedDict):
    upvote: Optional[str]
    unvote: Optional[str]


class CommentDict(TypedDict):
    id: int
    age: str
    by: str
    level: int
    text: str
    upvoted: bool
    visibility: str
    vote_links: Optional[VoteLinksDict]


class PostDict(TypedDict):
    id: int
    url: str
    title: str
    age: str
    comments_count: int
    by: str
    score: int
    post_type: str
    upvoted: bool
    vote_links: Optional[VoteLinksDict]
    text: Optional[str]
    comments: Optional[List[CommentDict]]


def _vote_links_dict(vote_links: Optional[VoteLinks]) -> Optional[VoteLinksDict]:
    if vote_links is None:
        return None
    return {"upvote": vote_links.upvote, "unvote": vote_links.unvote}


@dataclass(eq=False)
class Comment:
    """
    A single comment. `text` is the post-processed body HTML (reply link
    removed, anchor text replaced by its href). Equality is by id.
    """
    id: int
    age: str
    text: str
    by: str
    level: int
    upvoted: bool = False
    vote_links: Optional[VoteLinks] = None
    visibility: CommentVisibility = CommentVisibility.VISIBLE
    _rendered: Optional[List[TextRun]] = field(default=None, init=False, repr=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Comment):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def rendered_text(self) -> List[TextRun]:
        """The body rendered to text runs, computed on first access."""
        if self._rendered is None:
            self._rendered = render_html(self.text)
        return self._rendered

    @property
    def plain_text(self) -> str:
        return plain_text(self.rendered_text)

    @property
    def hacker_news_url(self) -> str:
        return f"{HN_WEB_URL}/item?id={self.id}"

    def to_dict(self) -> CommentDict:
        return {
            "id": self.id,
            "age": self.age,
            "by": self.by,
            "level": self.level,
            "text": self.text,
            "upvoted": self.upvoted,
            "visibility": self.visibility.value,
            "vote_links": _vote_links_dict(self.vote_links),
        }


@dataclass
class Post:
    id: int
    url: str
    title: str
    age: str
    comments_count: int
    by: str
    score: int
    post_type: PostType
    upvoted: bool = False
    vote_links: Optional[VoteLinks] = None
    text: Optional[str] = None
    comments: Optional[List[Comment]] = None

    @property
    def hacker_news_url(self) -> str:
        return f"{HN_WEB_URL}/item?id={self.id}"

    def to_dict(self) -> PostDict:
        """Converts the post (and any loaded comments) for JSON output."""
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "age": self.age,
            "comments_count": self.comments_count,
            "by": self.by,
            "score": self.score,
            "post_type": self.post_type.value,
            "upvoted": self.upvoted,
            "vote_links": _vote_links_dict(self.vote_links),
            "text": self.text,
            "comments": [c.to_dict() for c in self.comments] if self.comments is not None else None,
        }
