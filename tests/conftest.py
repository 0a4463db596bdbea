"""Shared fixtures: isolated settings and HN page builders."""

from __future__ import annotations

import pytest

from hn_scraper.config import load_settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Every test gets default settings and a throwaway log file."""
    for name in ("HN_SEARCH_URL", "HN_USER_AGENT", "HN_TIMEOUT", "HN_LOG_LEVEL", "HN_USERNAME", "HN_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HN_LOG_FILE", str(tmp_path / "test.log"))
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


def comment_row(
    comment_id: int,
    width: int,
    text: str,
    vote_html: str = "",
    user: str = "commenter",
) -> str:
    """One `comtr` row the way item pages render it."""
    return f"""
    <tr class="athing comtr" id="{comment_id}">
        <td>
            <table>
                <tr>
                    <td class="ind" indent="{width // 40}"><img src="s.gif" height="1" width="{width}"></td>
                    <td valign="top" class="votelinks"><center>{vote_html}</center></td>
                    <td class="default">
                        <div style="margin-top:2px; margin-bottom:-10px;">
                            <span class="comhead">
                                <a href="user?id={user}" class="hnuser">{user}</a>
                                <span class="age" title="2023-01-01T10:00:00"><a href="item?id={comment_id}">1 hour ago</a></span>
                            </span>
                        </div>
                        <br>
                        <div class="comment">
                            <div class="commtext c00">{text}</div>
                        </div>
                    </td>
                </tr>
            </table>
        </td>
    </tr>
    """


def item_page(story_id: int = 123, comment_rows: str = "", toptext: str = "", more: bool = False) -> str:
    """An item page: the fatitem table followed by the comment tree."""
    toptext_row = ""
    if toptext:
        toptext_row = f"""
        <tr>
            <td colspan="2"></td>
            <td><div class="toptext">{toptext}</div></td>
        </tr>
        """
    more_link = f'<a href="item?id={story_id}&amp;p=2" class="morelink" rel="next">More</a>' if more else ""
    return f"""
    <html>
    <body>
    <table class="fatitem">
        <tr class="athing submission" id="{story_id}">
            <td class="title">
                <span class="titleline">
                    <a href="https://example.com/article">Test Article Title</a>
                </span>
            </td>
        </tr>
        <tr>
            <td class="subtext">
                <span class="score">10 points</span>
                <span class="age" title="2023-01-01T10:00:00">2 hours ago</span>
                <a class="hnuser" href="user?id=testuser">testuser</a>
                <a href="item?id={story_id}">5 comments</a>
            </td>
        </tr>
        {toptext_row}
    </table>
    <table class="comment-tree">
        {comment_rows}
    </table>
    {more_link}
    </body>
    </html>
    """
