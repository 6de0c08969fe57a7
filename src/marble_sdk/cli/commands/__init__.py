"""CLI command groups.

The CLI is organized into resource groups (``posts``, ``tags``,
``categories``, ``authors``) plus ``webhook`` tooling.
"""

from marble_sdk.cli.commands.posts import posts
from marble_sdk.cli.commands.taxonomy import authors, categories, tags
from marble_sdk.cli.commands.webhook import webhook

__all__ = [
    "authors",
    "categories",
    "posts",
    "tags",
    "webhook",
]
