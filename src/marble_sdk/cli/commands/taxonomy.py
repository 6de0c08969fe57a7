"""``marble tags|categories|authors`` commands.

The three resources share one command shape, so the groups are built by
``_resource_group``.
"""

from typing import Optional

import click

from marble_sdk.cli.output import emit_success
from marble_sdk.cli.registry import get_context, run_operation
from marble_sdk.client import MarbleClient
from marble_sdk.core.pagination import DEFAULT_PAGE_SIZE


def _resource_group(resource: str, singular: str) -> click.Group:
    @click.group(resource, help=f"List and fetch {resource}.")
    def group() -> None:
        pass

    @group.command("list", help=f"List {resource}.")
    @click.option("--page", type=int, default=None, help="Page number (1-based).")
    @click.option("--limit", type=int, default=None, help="Items per page.")
    @click.option("--all", "fetch_all", is_flag=True, help="Follow pagination and return every item.")
    @click.option("--max-pages", type=int, default=None, help="Stop after this many pages (with --all).")
    @click.pass_context
    def list_cmd(
        ctx: click.Context,
        page: Optional[int],
        limit: Optional[int],
        fetch_all: bool,
        max_pages: Optional[int],
    ) -> None:
        cli_ctx = get_context(ctx)

        if fetch_all:

            async def collect(client: MarbleClient) -> list:
                paginate = getattr(client, f"paginate_{resource}")
                return [
                    item
                    async for item in paginate(
                        start_page=page or 1,
                        page_size=limit or DEFAULT_PAGE_SIZE,
                        max_pages=max_pages,
                    )
                ]

            items = run_operation(cli_ctx, collect)
            emit_success(
                {
                    resource: [i.model_dump(mode="json", by_alias=True) for i in items],
                    "count": len(items),
                }
            )
            return

        result = run_operation(
            cli_ctx, lambda client: getattr(client, f"list_{resource}")(page, limit)
        )
        emit_success(
            {
                resource: [i.model_dump(mode="json", by_alias=True) for i in result.items],
                "pagination": result.pagination.model_dump(mode="json", by_alias=True),
            }
        )

    @group.command("get", help=f"Fetch a single {singular} by ID.")
    @click.argument("identifier")
    @click.pass_context
    def get_cmd(ctx: click.Context, identifier: str) -> None:
        cli_ctx = get_context(ctx)
        item = run_operation(
            cli_ctx, lambda client: getattr(client, f"get_{singular}")(identifier)
        )
        emit_success({singular: item.model_dump(mode="json", by_alias=True)})

    return group


tags = _resource_group("tags", "tag")
categories = _resource_group("categories", "category")
authors = _resource_group("authors", "author")
