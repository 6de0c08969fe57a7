"""Shared helpers for the request execution core.

Utilities are organized by cohesion:
    Request building:
        - build_query(params) -> str
        - encode_path_segment(value) -> str
        - normalize_base_url(url) -> str
        - merge_headers(*layers) -> dict

    Pure parsing helpers:
        - parse_iso_date(date_str) -> Optional[datetime]

    Redaction:
        - redact_headers(headers) -> dict

SECURITY: headers pass through ``redact_headers`` before they reach a log
record; API keys never appear in logs or error messages.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional
from urllib.parse import quote, urlencode

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Query keys whose list values are sent as one comma-joined value
_COMMA_JOINED_KEYS = frozenset({"tags"})

# Common date formats tried after ISO 8601
_COMMON_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%B %d, %Y",
    "%b %d, %Y",
)

# Headers that should never appear in logs/errors
_SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "x-api-key",
        "api-key",
        "cookie",
        "set-cookie",
        "proxy-authorization",
        "x-marble-signature",
    }
)


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def build_query(params: Optional[Mapping[str, Any]]) -> str:
    """Serialize query parameters into a ``?``-prefixed query string.

    Rules:
        - ``None`` values and empty lists are omitted entirely
        - ``tags`` lists become one comma-joined value
        - other lists become repeated ``key=value`` pairs
        - booleans render lowercase

    Args:
        params: Mapping of parameter names to values.

    Returns:
        ``"?a=1&b=2"``, or ``""`` when nothing remains.
    """
    if not params:
        return ""

    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            if key in _COMMA_JOINED_KEYS:
                pairs.append((key, ",".join(_render(v) for v in value)))
            else:
                pairs.extend((key, _render(v)) for v in value)
        else:
            pairs.append((key, _render(value)))

    encoded = urlencode(pairs)
    return f"?{encoded}" if encoded else ""


def encode_path_segment(value: str) -> str:
    """Percent-encode a single path segment (slashes included)."""
    return quote(str(value), safe="")


def normalize_base_url(url: str) -> str:
    """Strip trailing slashes from a base URL."""
    return url.rstrip("/")


def merge_headers(*layers: Optional[Mapping[str, str]]) -> dict[str, str]:
    """Merge header mappings left to right; later layers take precedence.

    Names are compared case-insensitively so ``authorization`` in a later
    layer replaces ``Authorization`` from an earlier one. The spelling of
    the winning layer is kept.
    """
    merged: dict[str, str] = {}
    spellings: dict[str, str] = {}
    for layer in layers:
        if not layer:
            continue
        for name, value in layer.items():
            lowered = name.lower()
            previous = spellings.get(lowered)
            if previous is not None and previous != name:
                del merged[previous]
            spellings[lowered] = name
            merged[name] = value
    return merged


# ---------------------------------------------------------------------------
# Pure parsing helpers
# ---------------------------------------------------------------------------


def parse_iso_date(
    date_str: Optional[str],
    *,
    extra_formats: Optional[tuple[str, ...]] = None,
) -> Optional[datetime]:
    """Parse a date string, trying ISO 8601 first then common formats.

    Args:
        date_str: The date string to parse.  ``None`` / empty returns ``None``.
        extra_formats: Additional ``strptime`` format strings to try after
            the built-in common formats.

    Returns:
        Parsed :class:`datetime`, or ``None`` if parsing fails.
    """
    if not date_str:
        return None
    date_str = date_str.strip()

    # ISO 8601 (handles "Z" suffix)
    try:
        return datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    except ValueError:
        pass

    formats = _COMMON_DATE_FORMATS
    if extra_formats:
        formats = formats + extra_formats

    for fmt in formats:
        try:
            return datetime.strptime(date_str, fmt)
        except ValueError:
            continue

    return None


# ---------------------------------------------------------------------------
# Redaction
# ---------------------------------------------------------------------------


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of *headers* with sensitive values redacted.

    Args:
        headers: HTTP header mapping (case-insensitive keys).

    Returns:
        New dict with sensitive header values replaced by ``"****"``.
    """
    result: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in _SENSITIVE_HEADERS:
            result[key] = "****"
        else:
            result[key] = value
    return result
