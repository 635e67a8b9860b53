from __future__ import annotations

from dataclasses import dataclass

from .errors import FetchError


@dataclass(frozen=True)
class Job:
    """
    One unit of work: a URL exactly as read from the input, plus its
    zero-based line position. Consumed by exactly one worker.
    """

    position: int
    url: str


@dataclass(frozen=True)
class Result:
    """
    Outcome of one Job.
    - url: the URL as given in the input (not the normalized request URL)
    - exactly one of title/error is set
    """

    position: int
    url: str
    title: str | None = None
    error: FetchError | None = None

    def __post_init__(self) -> None:
        if (self.title is None) == (self.error is None):
            raise ValueError("Result requires exactly one of 'title' or 'error'.")

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> str | None:
        return self.error.kind if self.error is not None else None

    @classmethod
    def success(cls, job: Job, title: str) -> Result:
        return cls(position=job.position, url=job.url, title=title)

    @classmethod
    def failure(cls, job: Job, error: FetchError) -> Result:
        return cls(position=job.position, url=job.url, error=error)


@dataclass(frozen=True)
class ProxyConfig:
    """
    Outbound proxy, resolved once before the pool starts and shared
    read-only by every worker.
    """

    scheme: str
    host: str
    port: int | None = None
    username: str | None = None
    password: str | None = None

    @property
    def url(self) -> str:
        auth = ""
        if self.username is not None:
            auth = self.username
            if self.password is not None:
                auth += f":{self.password}"
            auth += "@"
        port = f":{self.port}" if self.port is not None else ""
        return f"{self.scheme}://{auth}{self.host}{port}"

    @property
    def display(self) -> str:
        """URL without credentials, safe for logs."""
        port = f":{self.port}" if self.port is not None else ""
        return f"{self.scheme}://{self.host}{port}"

    def as_requests_proxies(self) -> dict[str, str]:
        return {"http": self.url, "https": self.url}
