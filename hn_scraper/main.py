"""
hn-scraper: command line front end

Browse HN feeds, read comment threads rendered in the terminal, search
stories and vote, all through the scraper and client modules.
"""

import json
import logging
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.padding import Padding
from rich.style import Style
from rich.table import Table
from rich.text import Text

from . import hn_client, search
from .config import load_settings
from .errors import HNScraperError
from .html_utils import strip_html
from .models import Comment, CommentVisibility, Post, PostType
from .renderer import TextRun
from .visibility import CommentThread


app = typer.Typer(
    help="Read Hacker News from the terminal: feeds, threads, search and voting."
)
console = Console()
err_console = Console(stderr=True)

INDENT_WIDTH = 2
PREVIEW_WIDTH = 60


@app.callback()
def configure() -> None:
    """Sets up logging from the environment before any command runs."""
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        filename=settings.log_file,
        filemode='a'
    )


def _fail(error: Exception) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {error}")
    logging.error(f"Command failed: {error}")
    raise typer.Exit(code=1)


def _print_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def runs_to_text(runs: List[TextRun]) -> Text:
    """Converts rendered runs into a rich Text with matching styles."""
    text = Text()
    for run in runs:
        style = Style(
            bold=run.bold or None,
            italic=run.italic or None,
            underline=bool(run.link) or None,
            color="cyan" if run.code else None,
            link=run.link,
        )
        text.append(run.text, style=style)
    return text


def _posts_table(title: str, posts: List[Post]) -> Table:
    table = Table(title=title)
    table.add_column("#", style="cyan")
    table.add_column("Title", style="bold")
    table.add_column("Points", style="green")
    table.add_column("Comments", style="green")
    table.add_column("By", style="magenta")
    table.add_column("Age", style="yellow")
    table.add_column("ID", style="blue")

    for i, post in enumerate(posts):
        marker = "[bold green]▲[/bold green] " if post.upvoted else ""
        table.add_row(
            str(i + 1),
            f"{marker}{post.title}",
            str(post.score),
            str(post.comments_count),
            post.by,
            post.age,
            str(post.id),
        )
    return table


def _continuation_args(post_type: PostType, page: int, result: hn_client.PostsPage) -> Optional[str]:
    """Options that fetch the page after this one, or None on the last page."""
    if result.next_id is not None and post_type in (PostType.NEWEST, PostType.JOBS):
        return f"--next {result.next_id}"
    if result.has_more:
        return f"--page {page + 1}"
    return None


def _preview(comment: Comment, width: int = PREVIEW_WIDTH) -> str:
    text = " ".join(strip_html(comment.text).split())
    return text if len(text) <= width else text[:width - 1].rstrip() + "…"


def _print_comment(comment: Comment, thread: CommentThread) -> None:
    indent = comment.level * INDENT_WIDTH
    header = Text()
    header.append(comment.by or "[deleted]", style="magenta")
    header.append(f" {comment.age}", style="dim")
    if comment.upvoted:
        header.append(" ▲", style="green")

    if comment.visibility == CommentVisibility.COMPACT:
        hidden = thread.children_count(comment)
        header.append(f" [+{hidden}]" if hidden else " [+]", style="dim")
        header.append(f" {_preview(comment)}", style="dim italic")
        console.print(Padding(header, (0, 0, 0, indent)))
        return

    console.print(Padding(header, (0, 0, 0, indent)))
    console.print(Padding(runs_to_text(comment.rendered_text), (0, 0, 1, indent)))


@app.command()
def feed(
    post_type: PostType = typer.Argument(PostType.NEWS, help="Which feed to read."),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number."),
    next_id: Optional[int] = typer.Option(None, "--next", help="Continue newest/jobs after this id."),
    as_json: bool = typer.Option(False, "--json", help="Print posts as JSON."),
):
    """
    Lists the posts of a feed.
    """
    session = hn_client.get_session()
    try:
        result = hn_client.get_posts_page(post_type, session, page=page, next_id=next_id)
    except HNScraperError as e:
        _fail(e)

    posts = result.posts
    if as_json:
        _print_json([post.to_dict() for post in posts])
        return

    if not posts:
        console.print("No posts found.")
        return
    console.print(_posts_table(f"{post_type.display_name} - page {page}", posts))

    continuation = _continuation_args(post_type, page, result)
    if continuation:
        console.print(f"[dim]More: hn-scraper feed {post_type.value} {continuation}[/dim]")


@app.command()
def thread(
    item_id: int = typer.Argument(..., help="The HN item id of the post."),
    first_page_only: bool = typer.Option(False, "--first-page", help="Don't follow the 'more' comment pages."),
    collapse: Optional[int] = typer.Option(None, "--collapse", min=0, help="Collapse every comment at this depth."),
    as_json: bool = typer.Option(False, "--json", help="Print the post and comments as JSON."),
):
    """
    Shows a post and its comment tree.
    """
    session = hn_client.get_session()
    try:
        post = hn_client.get_post(item_id, session, include_all_comments=not first_page_only)
    except HNScraperError as e:
        _fail(e)

    comment_thread = CommentThread(post.comments or [])
    if collapse is not None:
        for comment in list(comment_thread.comments):
            if comment.level == collapse and comment.visibility == CommentVisibility.VISIBLE:
                comment_thread.toggle(comment)

    if as_json:
        _print_json(post.to_dict())
        return

    console.print(f"[bold]{post.title}[/bold]")
    console.print(f"[blue]{post.url}[/blue]")
    console.print(
        f"[green]{post.score} points[/green] by [magenta]{post.by}[/magenta] "
        f"[dim]{post.age}[/dim] | {post.comments_count} comments\n"
    )

    for comment in comment_thread.visible_comments:
        _print_comment(comment, comment_thread)


@app.command("search")
def search_command(
    query: str = typer.Argument(..., help="Search terms."),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON."),
):
    """
    Searches HN stories.
    """
    session = hn_client.get_session()
    try:
        posts = search.search_posts(query, session)
    except HNScraperError as e:
        _fail(e)

    if as_json:
        _print_json([post.to_dict() for post in posts])
        return

    if not posts:
        console.print(f"No results for [bold]{query}[/bold].")
        return
    console.print(_posts_table(f"Search: {query}", posts))


@app.command()
def vote(
    item_id: int = typer.Argument(..., help="The post or comment id to vote on."),
    unvote: bool = typer.Option(False, "--unvote", help="Remove the vote instead."),
    in_thread: Optional[int] = typer.Option(None, "--in-thread", help="Post id, when voting on a comment."),
):
    """
    Logs in and upvotes (or unvotes) a post or a comment.
    """
    settings = load_settings()
    username = settings.username or typer.prompt("HN username")
    password = settings.password or typer.prompt("HN password", hide_input=True)

    session = hn_client.get_session()
    try:
        hn_client.login(username, password, session)

        # the post's own id matches its self-text pseudo-comment, which has no vote links
        if in_thread is None or in_thread == item_id:
            post = hn_client.get_post(item_id, session, include_all_comments=False)
            if unvote:
                hn_client.unvote_post(post, session)
            else:
                hn_client.upvote_post(post, session)
            console.print(f"[bold green]✓[/bold green] {'Unvoted' if unvote else 'Upvoted'} '{post.title}'")
            return

        post = hn_client.get_post(in_thread, session)
        comment = next((c for c in post.comments or [] if c.id == item_id), None)
        if comment is None:
            err_console.print(f"[bold red]Error:[/bold red] comment {item_id} not found in thread {in_thread}")
            raise typer.Exit(code=1)
        if unvote:
            hn_client.unvote_comment(comment, session)
        else:
            hn_client.upvote_comment(comment, session)
        console.print(f"[bold green]✓[/bold green] {'Unvoted' if unvote else 'Upvoted'} comment by {comment.by}")
    except HNScraperError as e:
        _fail(e)


if __name__ == "__main__":
    app()
