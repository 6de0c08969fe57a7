"""``marble posts`` commands."""

from typing import Optional

import click

from marble_sdk.cli.output import emit_error, emit_success
from marble_sdk.cli.registry import get_context, run_operation
from marble_sdk.client import SORT_OPTIONS, MarbleClient, PostsListParams
from marble_sdk.core.pagination import DEFAULT_POSTS_PAGE_SIZE


@click.group("posts")
def posts() -> None:
    """List and fetch posts."""


@posts.command("list")
@click.option("--page", type=int, default=None, help="Page number (1-based).")
@click.option("--limit", type=int, default=None, help="Posts per page.")
@click.option("--search", default=None, help="Full-text search query.")
@click.option("--tag", "tags", multiple=True, help="Tag slug; repeat for several.")
@click.option("--category", default=None, help="Category slug.")
@click.option("--author", default=None, help="Author id.")
@click.option("--sort", type=click.Choice(SORT_OPTIONS), default=None, help="Sort order.")
@click.option("--all", "fetch_all", is_flag=True, help="Follow pagination and return every post.")
@click.option("--max-pages", type=int, default=None, help="Stop after this many pages (with --all).")
@click.pass_context
def list_posts_cmd(
    ctx: click.Context,
    page: Optional[int],
    limit: Optional[int],
    search: Optional[str],
    tags: tuple[str, ...],
    category: Optional[str],
    author: Optional[str],
    sort: Optional[str],
    fetch_all: bool,
    max_pages: Optional[int],
) -> None:
    """List posts, optionally filtered."""
    cli_ctx = get_context(ctx)
    try:
        params = PostsListParams(
            limit=limit,
            page=page,
            search=search,
            tags=list(tags) or None,
            category=category,
            author=author,
            sort=sort,
        )
    except ValueError as e:
        emit_error(str(e), code="VALIDATION_ERROR", error_type="validation")

    if fetch_all:

        async def collect(client: MarbleClient) -> list:
            return [
                post
                async for post in client.paginate_posts(
                    params,
                    start_page=page or 1,
                    page_size=limit or DEFAULT_POSTS_PAGE_SIZE,
                    max_pages=max_pages,
                )
            ]

        items = run_operation(cli_ctx, collect)
        emit_success(
            {
                "posts": [p.model_dump(mode="json", by_alias=True) for p in items],
                "count": len(items),
            }
        )
        return

    result = run_operation(cli_ctx, lambda client: client.list_posts(params))
    emit_success(
        {
            "posts": [p.model_dump(mode="json", by_alias=True) for p in result.posts],
            "pagination": result.pagination.model_dump(mode="json", by_alias=True),
        }
    )


@posts.command("get")
@click.argument("slug_or_id")
@click.pass_context
def get_post_cmd(ctx: click.Context, slug_or_id: str) -> None:
    """Fetch a single post by SLUG_OR_ID."""
    cli_ctx = get_context(ctx)
    post = run_operation(cli_ctx, lambda client: client.get_post(slug_or_id))
    emit_success({"post": post.model_dump(mode="json", by_alias=True)})
