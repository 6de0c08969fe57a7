"""Shared CLI context and client plumbing.

The root group stores a ``CliContext`` on ``ctx.obj``; commands fetch it
with ``get_context`` and run their coroutine through ``run_operation``,
which maps library errors onto CLI error envelopes.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, TypeVar

import click
import httpx

from marble_sdk.client import MarbleClient
from marble_sdk.config import ClientConfig
from marble_sdk.core.errors import Cancelled, HttpFailure, InvalidShape
from marble_sdk.core.transport import Transport
from marble_sdk.cli.output import emit_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CliContext:
    """State shared by all commands of one invocation.

    Attributes:
        config: Resolved client configuration
        transport: Transport override (the default httpx transport when None)
    """

    config: ClientConfig = field(default_factory=ClientConfig)
    transport: Optional[Transport] = None

    def build_client(self) -> MarbleClient:
        if not self.config.base_url:
            emit_error(
                "No Marble API base URL configured",
                code="VALIDATION_ERROR",
                error_type="validation",
                remediation="Use --base-url, set MARBLE_BASE_URL, or add [client].base_url to marble.toml",
            )
        return MarbleClient.from_config(self.config, transport=self.transport)


def get_context(ctx: click.Context) -> CliContext:
    """Return the ``CliContext`` stored on the root click context."""
    obj = ctx.find_object(CliContext)
    if obj is None:
        obj = CliContext(config=ClientConfig.from_env())
        ctx.obj = obj
    return obj


def run_operation(
    cli_ctx: CliContext, operation: Callable[[MarbleClient], Awaitable[T]]
) -> T:
    """Run *operation* against a fresh client and translate failures."""
    client = cli_ctx.build_client()

    async def _run() -> Any:
        async with client:
            return await operation(client)

    try:
        return asyncio.run(_run())
    except HttpFailure as e:
        emit_error(
            str(e),
            code="HTTP_ERROR",
            error_type="http",
            details={"status": e.status, "path": e.path, "body": e.body},
        )
    except InvalidShape as e:
        emit_error(
            str(e),
            code="INVALID_RESPONSE",
            error_type="validation",
            details={"errors": e.details},
        )
    except Cancelled as e:
        emit_error(str(e), code="CANCELLED", error_type="cancelled")
    except httpx.HTTPError as e:
        emit_error(
            f"Request failed: {e}",
            code="TRANSPORT_ERROR",
            error_type="network",
            remediation="Check the base URL and your network connection",
        )
    except ValueError as e:
        emit_error(str(e), code="VALIDATION_ERROR", error_type="validation")
