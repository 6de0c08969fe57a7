"""Root of the marble-sdk error hierarchy."""


class MarbleError(Exception):
    """Base exception for all errors raised by marble-sdk.

    Transport exceptions (e.g. ``httpx.ConnectError``) are the one exception
    to this rule: once retries are exhausted they are re-raised verbatim so
    callers see the original networking failure.
    """

    pass
