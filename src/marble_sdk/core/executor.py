"""Request execution with policy-driven retries.

``RequestExecutor.execute`` issues one logical GET and drives it through
an explicit state machine:

    ATTEMPTING -> SUCCESS   (2xx; body decoded and shaped)
               -> RETRYING  (policy returned a decision, retries remain)
               -> FAILED    (policy declined or retries exhausted)
    RETRYING   -> ATTEMPTING (after the cancellable delay)

The retry policy is a pure decision function (``RetryPolicy.decide``);
the executor owns the attempt counter, the waiting and the terminal error.
Attempt counters are local to each call, so one executor can serve many
concurrent requests.
"""

import logging
from enum import Enum
from typing import Any, Callable, Mapping, Optional, TypeVar

from marble_sdk.core.cancellation import CancellationToken, delay
from marble_sdk.core.errors import Cancelled, HttpFailure, InvalidShape
from marble_sdk.core.retry import RetryContext, RetryDecision, RetryPolicy
from marble_sdk.core.shared import merge_headers, normalize_base_url, redact_headers
from marble_sdk.core.transport import Transport, TransportRequest, TransportResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

BASE_HEADERS = {"Content-Type": "application/json"}


class AttemptState(str, Enum):
    """States of the retry loop."""

    ATTEMPTING = "attempting"
    SUCCESS = "success"
    RETRYING = "retrying"
    FAILED = "failed"


def read_error_body(response: TransportResponse) -> Any:
    """Decode a failed response body: JSON, else raw text, else None."""
    try:
        return response.json()
    except (ValueError, UnicodeDecodeError):
        pass
    try:
        return response.text()
    except (ValueError, UnicodeDecodeError):
        return None


class RequestExecutor:
    """Issues GET requests against one base URL with retries.

    Headers are layered lowest to highest precedence:
    ``Content-Type: application/json``, construction headers, then
    ``Authorization: Bearer <api_key>`` when a key is configured, then the
    per-request headers passed to ``execute``.

    Args:
        base_url: API root; trailing slashes are stripped
        transport: Async callable performing the request
        api_key: Optional bearer token
        headers: Default headers sent with every request
        retry_policy: Retry policy; None disables retries
    """

    def __init__(
        self,
        base_url: str,
        transport: Transport,
        *,
        api_key: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.base_url = normalize_base_url(base_url)
        self.transport = transport
        self.retry_policy = retry_policy
        self._api_key = api_key
        self._default_headers = dict(headers or {})

    def build_headers(self, extra: Optional[Mapping[str, str]] = None) -> dict[str, str]:
        """Return the merged header set for one request."""
        auth = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else None
        return merge_headers(BASE_HEADERS, self._default_headers, auth, extra)

    def _decide(self, context: RetryContext) -> Optional[RetryDecision]:
        policy = self.retry_policy
        if policy is None or context.attempt > policy.max_retries:
            return None
        return policy.decide(context)

    async def execute(
        self,
        path: str,
        shape: Callable[[Any], T],
        *,
        headers: Optional[Mapping[str, str]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> T:
        """Perform GET ``base_url + path`` and return ``shape(decoded_json)``.

        Args:
            path: Request path including any query string
            shape: Validator/normalizer applied to the decoded body
            headers: Per-request headers (highest precedence)
            cancel: Token checked before every attempt and delay

        Returns:
            The shaped payload.

        Raises:
            Cancelled: The token fired; no further network activity happens.
            HttpFailure: Terminal non-2xx response.
            InvalidShape: Success body is not JSON or fails ``shape``.
            Exception: The transport's own exception, re-raised verbatim
                once retries stop.
        """
        url = f"{self.base_url}{path}"
        request = TransportRequest(
            method="GET", headers=self.build_headers(headers), cancel=cancel
        )

        attempt = 1
        state = AttemptState.ATTEMPTING
        response: Optional[TransportResponse] = None
        error: Optional[Exception] = None
        decision: Optional[RetryDecision] = None
        body: Any = None
        outcome = ""

        while True:
            if state is AttemptState.ATTEMPTING:
                if cancel is not None:
                    cancel.raise_if_cancelled()

                response, error = None, None
                try:
                    response = await self.transport(url, request)
                except Cancelled:
                    raise
                except Exception as e:
                    error = e

                if response is not None and response.ok:
                    state = AttemptState.SUCCESS
                    continue

                if response is not None:
                    body = read_error_body(response)
                    context = RetryContext(attempt=attempt, response=response)
                    outcome = f"status {response.status}"
                else:
                    context = RetryContext(attempt=attempt, error=error)
                    outcome = f"{type(error).__name__}: {error}"

                decision = self._decide(context)
                state = AttemptState.FAILED if decision is None else AttemptState.RETRYING

            elif state is AttemptState.RETRYING:
                assert decision is not None
                logger.debug(
                    "Retrying GET %s: attempt=%d outcome=%s delay_ms=%d headers=%s",
                    path,
                    attempt,
                    outcome,
                    decision.delay_ms,
                    redact_headers(request.headers),
                )
                if cancel is not None:
                    cancel.raise_if_cancelled()
                await delay(decision.delay_ms, cancel)
                attempt += 1
                state = AttemptState.ATTEMPTING

            elif state is AttemptState.SUCCESS:
                assert response is not None
                return self._shape_success(response, shape, path)

            else:
                if self.retry_policy is not None and attempt > self.retry_policy.max_retries:
                    logger.warning(
                        "GET %s failed after %d attempt(s) (%s); retries exhausted",
                        path,
                        attempt,
                        outcome,
                    )
                if response is not None:
                    raise HttpFailure(
                        status=response.status,
                        status_text=response.status_text,
                        body=body,
                        method="GET",
                        path=path,
                    )
                assert error is not None
                raise error

    @staticmethod
    def _shape_success(response: TransportResponse, shape: Callable[[Any], T], path: str) -> T:
        try:
            payload = response.json()
        except (ValueError, UnicodeDecodeError) as e:
            raise InvalidShape(f"GET {path} returned a body that is not valid JSON") from e
        return shape(payload)
