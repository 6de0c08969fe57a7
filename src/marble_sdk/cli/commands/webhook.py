"""``marble webhook`` commands."""

from pathlib import Path
from typing import Optional

import click

from marble_sdk.cli.output import emit_error, emit_success
from marble_sdk.cli.registry import get_context
from marble_sdk.core.errors import (
    InvalidSignature,
    MissingTimestamp,
    TimestampOutOfRange,
    WebhookVerificationError,
)
from marble_sdk.core.webhook import SIGNATURE_HEADER, TIMESTAMP_HEADER, VerifyOptions, verify_signature

_ERROR_CODES = {
    InvalidSignature: "INVALID_SIGNATURE",
    MissingTimestamp: "MISSING_TIMESTAMP",
    TimestampOutOfRange: "TIMESTAMP_OUT_OF_RANGE",
}


@click.group("webhook")
def webhook() -> None:
    """Webhook signature tooling."""


@webhook.command("verify")
@click.option("--secret", envvar="MARBLE_WEBHOOK_SECRET", help="Shared signing secret.")
@click.option(
    "--body-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="File holding the raw request body.",
)
@click.option("--signature", required=True, help="Value of the x-marble-signature header.")
@click.option("--timestamp", default=None, help="Value of the x-marble-timestamp header.")
@click.option(
    "--tolerance",
    type=float,
    default=None,
    help="Allowed clock skew in seconds (0 disables the check).",
)
@click.pass_context
def verify_cmd(
    ctx: click.Context,
    secret: Optional[str],
    body_file: Path,
    signature: str,
    timestamp: Optional[str],
    tolerance: Optional[float],
) -> None:
    """Verify a webhook delivery's signature."""
    config = get_context(ctx).config
    secret = secret or config.webhook_secret
    if not secret:
        emit_error(
            "No webhook secret provided",
            code="VALIDATION_ERROR",
            error_type="validation",
            remediation="Use --secret or set MARBLE_WEBHOOK_SECRET",
        )

    headers = {SIGNATURE_HEADER: signature}
    if timestamp:
        headers[TIMESTAMP_HEADER] = timestamp
    options = VerifyOptions(
        tolerance_seconds=config.webhook_tolerance_seconds if tolerance is None else tolerance
    )

    try:
        verify_signature(body_file.read_bytes(), headers, secret, options)
    except WebhookVerificationError as e:
        emit_error(
            str(e),
            code=_ERROR_CODES.get(type(e), "VERIFICATION_FAILED"),
            error_type="webhook",
        )

    emit_success({"valid": True})
