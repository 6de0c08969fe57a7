"""JSON envelope output for CLI commands.

Every command prints exactly one JSON document on stdout:

    {"success": true, "data": {...}, "error": null}
    {"success": false, "data": {"error_code": ..., ...}, "error": "message"}

``emit_error`` exits with status 1.
"""

import json
import sys
from typing import Any, NoReturn, Optional

import click


def _dump(payload: dict[str, Any]) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def emit_success(data: Any) -> None:
    """Print a success envelope."""
    _dump({"success": True, "data": data, "error": None})


def emit_error(
    message: str,
    *,
    code: str,
    error_type: str,
    remediation: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> NoReturn:
    """Print a failure envelope and exit with status 1."""
    data: dict[str, Any] = {"error_code": code, "error_type": error_type}
    if remediation:
        data["remediation"] = remediation
    if details:
        data["details"] = details
    _dump({"success": False, "data": data, "error": message})
    sys.exit(1)
