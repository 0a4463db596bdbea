from hn_scraper.models import Comment, CommentVisibility, Post, PostType, VoteLinks
from hn_scraper.renderer import TextRun


def _post(**overrides):
    fields = dict(
        id=1,
        url="https://example.com",
        title="Example",
        age="2023-01-01T10:00:00",
        comments_count=2,
        by="alice",
        score=10,
        post_type=PostType.ASK,
    )
    fields.update(overrides)
    return Post(**fields)


def test_post_type_display_names():
    assert PostType.NEWS.display_name == "Top"
    assert PostType.NEWEST.display_name == "New"
    assert PostType("show") is PostType.SHOW


def test_comment_equality_is_by_id():
    a = Comment(id=5, age="1 hour ago", text="a", by="x", level=0)
    b = Comment(id=5, age="2 hours ago", text="b", by="y", level=3)
    c = Comment(id=6, age="1 hour ago", text="a", by="x", level=0)

    assert a == b
    assert a != c
    assert len({a, b, c}) == 2


def test_comment_rendered_text_is_cached():
    comment = Comment(id=1, age="", text="Hello <i>there</i>", by="", level=0)

    runs = comment.rendered_text

    assert runs == [TextRun("Hello "), TextRun("there", italic=True)]
    assert comment.rendered_text is runs
    assert comment.plain_text == "Hello there"


def test_hacker_news_urls():
    assert _post(id=42).hacker_news_url == "https://news.ycombinator.com/item?id=42"
    assert Comment(id=7, age="", text="", by="", level=0).hacker_news_url == "https://news.ycombinator.com/item?id=7"


def test_post_to_dict_includes_comments():
    comment = Comment(
        id=2,
        age="1 hour ago",
        text="hi",
        by="bob",
        level=0,
        vote_links=VoteLinks(upvote="vote?id=2&how=up"),
        visibility=CommentVisibility.COMPACT,
    )
    data = _post(comments=[comment]).to_dict()

    assert data["post_type"] == "ask"
    assert data["vote_links"] is None
    assert data["comments"] == [
        {
            "id": 2,
            "age": "1 hour ago",
            "by": "bob",
            "level": 0,
            "text": "hi",
            "upvoted": False,
            "visibility": "compact",
            "vote_links": {"upvote": "vote?id=2&how=up", "unvote": None},
        }
    ]


def test_post_to_dict_without_loaded_comments():
    assert _post().to_dict()["comments"] is None
