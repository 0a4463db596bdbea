from unittest.mock import MagicMock

import pytest
import requests

from hn_scraper import search
from hn_scraper.errors import RequestFailure
from hn_scraper.models import PostType

NOW = 1_700_000_000


def _session(payload=None, error=None):
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value.json.return_value = payload
    return session


def test_age_string():
    assert search.age_string(NOW - 1, NOW) == "1 second ago"
    assert search.age_string(NOW - 3 * 3600, NOW) == "3 hours ago"
    assert search.age_string(NOW - 86400, NOW) == "1 day ago"
    assert search.age_string(NOW - 2 * 365 * 86400, NOW) == "2 years ago"


def test_age_string_in_the_future_or_now():
    assert search.age_string(NOW, NOW) == "just now"
    assert search.age_string(NOW + 60, NOW) == "just now"


def test_post_from_hit():
    hit = {
        "objectID": "38000000",
        "title": "Show HN: A thing",
        "url": "https://thing.example",
        "author": "maker",
        "points": 120,
        "num_comments": 33,
        "created_at_i": NOW - 7200,
        "story_text": None,
    }
    post = search.post_from_hit(hit, NOW)

    assert post.id == 38000000
    assert post.title == "Show HN: A thing"
    assert post.url == "https://thing.example"
    assert post.by == "maker"
    assert post.score == 120
    assert post.comments_count == 33
    assert post.age == "2 hours ago"
    assert post.post_type == PostType.NEWS
    assert post.upvoted is False


def test_post_from_hit_fallbacks():
    post = search.post_from_hit({"objectID": "5", "created_at_i": NOW}, NOW)

    assert post.url == "https://news.ycombinator.com/item?id=5"
    assert post.title == "(no title)"
    assert post.by == "unknown"
    assert post.score == 0
    assert post.comments_count == 0


def test_hit_without_numeric_id_is_dropped():
    assert search.post_from_hit({"objectID": "abc"}) is None
    assert search.post_from_hit({}) is None


def test_search_posts():
    session = _session({"hits": [{"objectID": "1", "title": "One"}, {"objectID": "x"}, {"objectID": "2"}]})

    posts = search.search_posts("rust", session)

    assert [p.id for p in posts] == [1, 2]
    call = session.get.call_args
    assert call.args[0] == "https://hn.algolia.com/api/v1/search"
    assert call.kwargs["params"] == {"query": "rust", "tags": "story"}


def test_search_uses_configured_endpoint(monkeypatch):
    from hn_scraper.config import load_settings

    monkeypatch.setenv("HN_SEARCH_URL", "http://localhost:9999/search")
    load_settings.cache_clear()
    session = _session({"hits": []})

    assert search.search_posts("q", session) == []
    assert session.get.call_args.args[0] == "http://localhost:9999/search"


def test_search_transport_error():
    with pytest.raises(RequestFailure):
        search.search_posts("q", _session(error=requests.Timeout("slow")))


def test_search_invalid_json():
    session = MagicMock()
    session.get.return_value.json.side_effect = ValueError("not json")

    with pytest.raises(RequestFailure):
        search.search_posts("q", session)
