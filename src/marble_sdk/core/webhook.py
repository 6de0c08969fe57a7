"""Webhook signature verification.

Marble signs each delivery with HMAC-SHA256 using the endpoint's shared
secret. The ``x-marble-signature`` header carries either:

- a bare hex digest (optionally prefixed ``sha256=``), or
- a composite ``t=<timestamp>,v1=<hex>`` value (parts in any order;
  unknown parts are ignored).

When a timestamp is known (``x-marble-timestamp`` header, which wins over
an embedded ``t=``), the signed message is ``"<timestamp>.<raw_body>"`` and
the timestamp must fall inside the tolerance window. Otherwise the raw
body alone is signed.

Example:
    verify_signature(request_body, request.headers, secret)
    event = parse_webhook_event(request_body)
"""

import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError

from marble_sdk.core.errors import (
    InvalidShape,
    InvalidSignature,
    MissingTimestamp,
    TimestampOutOfRange,
)
from marble_sdk.core.models import WebhookEvent
from marble_sdk.core.shared import parse_iso_date

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-marble-signature"
TIMESTAMP_HEADER = "x-marble-timestamp"
DEFAULT_TOLERANCE_SECONDS = 300

RawBody = Union[str, bytes]


@dataclass(frozen=True)
class VerifyOptions:
    """Options for ``verify_signature``.

    Attributes:
        tolerance_seconds: Allowed clock skew; 0 disables the check
        include_timestamp: Force (True) or forbid (False) signing
            ``"<ts>.<body>"``. None signs with the timestamp whenever one
            is present.
        now: Reference time for the tolerance check (defaults to now)
    """

    tolerance_seconds: float = DEFAULT_TOLERANCE_SECONDS
    include_timestamp: Optional[bool] = None
    now: Optional[datetime] = None


def _as_bytes(raw_body: RawBody) -> bytes:
    if isinstance(raw_body, str):
        return raw_body.encode("utf-8")
    return raw_body


def _header(headers: Mapping[str, Any], name: str) -> Optional[str]:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            if isinstance(value, (list, tuple)):
                value = value[0] if value else None
            return None if value is None else str(value)
    return None


def compute_signature(message: RawBody, secret: str) -> str:
    """Hex-encoded HMAC-SHA256 of *message* under *secret*."""
    return hmac.new(secret.encode(), _as_bytes(message), hashlib.sha256).hexdigest()


def _signed_message(body: bytes, timestamp: Optional[str]) -> bytes:
    if timestamp is None:
        return body
    return timestamp.encode("utf-8") + b"." + body


def parse_signature_header(value: str) -> tuple[Optional[str], list[str]]:
    """Split a signature header into ``(embedded_timestamp, signatures)``.

    A composite header is recognized by a ``t=`` or ``v1=`` part; anything
    else is treated as a bare digest.
    """
    parts: dict[str, list[str]] = {}
    for segment in value.split(","):
        key, sep, val = segment.strip().partition("=")
        if sep:
            parts.setdefault(key.strip(), []).append(val.strip())

    if "t" in parts or "v1" in parts:
        timestamp = parts.get("t", [None])[0]
        return timestamp, parts.get("v1", [])

    digest = value.strip()
    if digest.startswith("sha256="):
        digest = digest[len("sha256="):]
    return None, [digest]


def parse_timestamp(value: str) -> datetime:
    """Parse a delivery timestamp.

    Fully numeric values are epoch seconds; anything else is parsed as an
    ISO 8601 or RFC 2822 date. Naive results are taken as UTC.

    Raises:
        ValueError: The value is not a recognizable timestamp.
    """
    text = value.strip()
    if text.isdigit():
        return datetime.fromtimestamp(int(text), tz=timezone.utc)

    parsed = parse_iso_date(text)
    if parsed is None:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError) as e:
            raise ValueError(f"unparseable timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _check_tolerance(timestamp: str, options: VerifyOptions) -> None:
    if options.tolerance_seconds <= 0:
        return
    try:
        sent_at = parse_timestamp(timestamp)
    except (ValueError, OverflowError, OSError) as e:
        raise TimestampOutOfRange(
            f"Unparseable webhook timestamp: {timestamp!r}",
            timestamp=timestamp,
            tolerance_seconds=options.tolerance_seconds,
        ) from e

    now = options.now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    skew = abs((now - sent_at).total_seconds())
    if skew > options.tolerance_seconds:
        raise TimestampOutOfRange(
            f"Webhook timestamp is {skew:.0f}s from now "
            f"(tolerance {options.tolerance_seconds}s)",
            timestamp=timestamp,
            tolerance_seconds=options.tolerance_seconds,
        )


def verify_signature(
    raw_body: RawBody,
    headers: Mapping[str, Any],
    secret: str,
    options: Optional[VerifyOptions] = None,
) -> bool:
    """Verify a webhook delivery's signature.

    Args:
        raw_body: Request body exactly as received; str is signed as UTF-8
        headers: Request headers; names are matched case-insensitively
        secret: Shared signing secret
        options: Tolerance and timestamp handling

    Returns:
        True when the signature is valid.

    Raises:
        InvalidSignature: Header missing or signature mismatch.
        MissingTimestamp: ``include_timestamp=True`` but no timestamp given.
        TimestampOutOfRange: Timestamp unparseable or outside tolerance.
    """
    options = options or VerifyOptions()
    body = _as_bytes(raw_body)

    header_value = _header(headers, SIGNATURE_HEADER)
    if not header_value:
        raise InvalidSignature("Missing webhook signature")

    embedded_ts, signatures = parse_signature_header(header_value)
    timestamp = _header(headers, TIMESTAMP_HEADER) or embedded_ts

    sign_with_timestamp = (
        timestamp is not None
        if options.include_timestamp is None
        else options.include_timestamp
    )
    if sign_with_timestamp and not timestamp:
        raise MissingTimestamp()

    if timestamp:
        _check_tolerance(timestamp, options)

    message = _signed_message(body, timestamp if sign_with_timestamp else None)
    expected = compute_signature(message, secret).encode("ascii")

    for candidate in signatures:
        given = candidate.lower().encode("utf-8")
        if len(given) == len(expected) and hmac.compare_digest(given, expected):
            return True

    logger.debug("Webhook signature mismatch (%d candidate(s))", len(signatures))
    raise InvalidSignature()


def sign_payload(
    raw_body: RawBody, secret: str, timestamp: Optional[Union[int, str]] = None
) -> str:
    """Produce a composite ``t=<ts>,v1=<hex>`` signature header value.

    Args:
        raw_body: Body to sign
        secret: Shared signing secret
        timestamp: Epoch seconds; defaults to the current time
    """
    ts = str(int(time.time()) if timestamp is None else timestamp)
    signature = compute_signature(_signed_message(_as_bytes(raw_body), ts), secret)
    return f"t={ts},v1={signature}"


def parse_webhook_event(
    raw_body: RawBody,
    map_data: Optional[Callable[[Any], Any]] = None,
) -> WebhookEvent:
    """Decode a webhook envelope ``{id, type, createdAt, data}``.

    Args:
        raw_body: Verified request body
        map_data: Optional mapper applied to ``data`` (e.g. a model's
            ``model_validate``)

    Raises:
        InvalidShape: Body is not JSON or lacks required envelope fields.
    """
    try:
        payload = json.loads(_as_bytes(raw_body).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        raise InvalidShape("Webhook body is not valid JSON") from e
    if not isinstance(payload, dict):
        raise InvalidShape(
            f"Expected a JSON object for webhook event, got {type(payload).__name__}"
        )

    try:
        event = WebhookEvent.model_validate(payload)
    except ValidationError as e:
        raise InvalidShape(
            f"Invalid webhook event: {e.error_count()} validation error(s)",
            details=e.errors(include_url=False, include_context=False),
        ) from e

    if map_data is None:
        return event
    try:
        mapped = map_data(event.data)
    except ValidationError as e:
        raise InvalidShape(
            "Invalid webhook event data",
            details=e.errors(include_url=False, include_context=False),
        ) from e
    return event.model_copy(update={"data": mapped})
