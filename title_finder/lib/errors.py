"""
Per-job error taxonomy.

Every failure while processing one URL is one of these. They are raised
inside the extractor and caught at its boundary, so a Result carries the
exception instance and the batch never aborts. ``str(err)`` is the text
shown on the output line.
"""

from __future__ import annotations

from http import HTTPStatus


class FetchError(Exception):
    """Base class for per-job failures."""

    kind: str = "FetchError"
    prefix: str = "unexpected error"

    def __init__(self, cause: object = None) -> None:
        self.cause = cause
        super().__init__(self._message())

    def _message(self) -> str:
        if self.cause is None or str(self.cause) == "":
            return self.prefix
        return f"{self.prefix}: {self.cause}"


class InvalidRequestError(FetchError):
    """The URL could not be turned into an HTTP request."""

    kind = "InvalidRequestError"
    prefix = "failed to create request"


class NetworkError(FetchError):
    """Connection, timeout or transport failure."""

    kind = "NetworkError"
    prefix = "request failed"


class HttpStatusError(FetchError):
    """Server answered with a non-2xx status."""

    kind = "HttpStatusError"
    prefix = "HTTP error"

    def __init__(self, status: int, reason: str | None = None) -> None:
        self.status = int(status)
        self.reason = (reason or "").strip() or _standard_phrase(self.status)
        status_text = f"{self.status} {self.reason}".strip()
        super().__init__(status_text)


class EncodingError(FetchError):
    kind = "EncodingError"
    prefix = "failed to decode body"


class ParseError(FetchError):
    kind = "ParseError"
    prefix = "failed to parse HTML"


class NoTitleFoundError(FetchError):
    kind = "NoTitleFoundError"
    prefix = "no title found"

    def __init__(self) -> None:
        super().__init__(None)


def _standard_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ""
