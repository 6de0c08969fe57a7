"""Root ``marble`` command group."""

from typing import Optional

import click

from marble_sdk.cli.commands import authors, categories, posts, tags, webhook
from marble_sdk.cli.registry import CliContext
from marble_sdk.config import ClientConfig


@click.group()
@click.option(
    "--base-url",
    envvar="MARBLE_BASE_URL",
    help="Workspace API root, e.g. https://api.marblecms.com/v1/<workspace>.",
)
@click.option("--api-key", envvar="MARBLE_API_KEY", help="Bearer token for the API.")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    help="Path to a marble.toml config file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log request and retry activity to stderr.")
@click.pass_context
def cli(
    ctx: click.Context,
    base_url: Optional[str],
    api_key: Optional[str],
    config_file: Optional[str],
    verbose: bool,
) -> None:
    """Query the Marble CMS API from the command line."""
    cli_ctx = ctx.find_object(CliContext)
    if cli_ctx is None:
        cli_ctx = CliContext(config=ClientConfig.from_env(config_file))
        ctx.obj = cli_ctx

    if base_url:
        cli_ctx.config.base_url = base_url
    if api_key:
        cli_ctx.config.api_key = api_key
    if verbose:
        cli_ctx.config.log_level = "DEBUG"
        cli_ctx.config.setup_logging()


cli.add_command(posts)
cli.add_command(tags)
cli.add_command(categories)
cli.add_command(authors)
cli.add_command(webhook)


if __name__ == "__main__":
    cli()
