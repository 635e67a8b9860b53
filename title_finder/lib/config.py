from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from .models import ProxyConfig
from .utils import getenv_str, has_http_scheme, truthy

LOG = logging.getLogger(__name__)

# Hard ceiling on concurrent workers; larger requests are reduced, never rejected.
MAX_WORKERS = 100

DEFAULT_WORKERS = 10
DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/111.0.0.0 YaBrowser/23.3.1.895 Yowser/2.5 Safari/537.36"
)
DEFAULT_ACCEPT_LANGUAGE = "ru,en;q=0.9,en-US;q=0.8"


# -----------------------------
# Exceptions
# -----------------------------
class ConfigError(ValueError):
    """Raised when provided kwargs/env cannot form a valid Settings."""


# -----------------------------
# Models
# -----------------------------
@dataclass
class Settings:
    """
    Canonical configuration for one title-finder run.

    Everything here is resolved before any network activity starts, so a
    bad proxy or worker count fails the run up front.
    """

    input_path: str | None = None
    output_path: str | None = None

    proxy: ProxyConfig | None = None
    workers: int = DEFAULT_WORKERS
    timeout: float = DEFAULT_TIMEOUT
    verify_tls: bool = False

    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE

    # ------------- convenience -------------
    def request_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept-Language": self.accept_language,
        }

    # ------------- constructors -------------
    @classmethod
    def from_env_and_kwargs(cls, kwargs: Mapping[str, Any] | None) -> Settings:
        """
        Build Settings from kwargs with validation. Explicit kwargs win over
        environment values.

        Expected kwargs (all optional unless stated otherwise):

            input_path: str          # newline-delimited URL list (CLI requires it)
            output_path: str | None  # None -> console
            proxy: str | ProxyConfig # "[http://]host:port"     env TITLE_FINDER_PROXY
            workers: int = 10        # capped at MAX_WORKERS     env TITLE_FINDER_WORKERS
            timeout: float = 10.0    # seconds, per request      env TITLE_FINDER_TIMEOUT
            verify_tls: bool = false #                           env TITLE_FINDER_VERIFY_TLS
            user_agent: str          #                           env TITLE_FINDER_USER_AGENT
            accept_language: str
        """
        kw = dict(kwargs or {})

        def pick(key: str, env_name: str | None = None) -> Any:
            val = kw.get(key)
            if val is None and env_name:
                val = getenv_str(env_name)
            return val

        input_path = str(kw.get("input_path") or "").strip() or None
        output_path = str(kw.get("output_path") or "").strip() or None

        raw_proxy = pick("proxy", "TITLE_FINDER_PROXY")
        proxy = raw_proxy if isinstance(raw_proxy, ProxyConfig) else parse_proxy(raw_proxy)

        workers = _as_int(pick("workers", "TITLE_FINDER_WORKERS"), DEFAULT_WORKERS, "workers")
        timeout = _as_float(pick("timeout", "TITLE_FINDER_TIMEOUT"), DEFAULT_TIMEOUT, "timeout")
        verify_tls = truthy(pick("verify_tls", "TITLE_FINDER_VERIFY_TLS"))

        user_agent = str(pick("user_agent", "TITLE_FINDER_USER_AGENT") or DEFAULT_USER_AGENT)
        accept_language = str(kw.get("accept_language") or DEFAULT_ACCEPT_LANGUAGE)

        settings = cls(
            input_path=input_path,
            output_path=output_path,
            proxy=proxy,
            workers=workers,
            timeout=timeout,
            verify_tls=verify_tls,
            user_agent=user_agent,
            accept_language=accept_language,
        )
        _validate_settings(settings)
        return settings


# -----------------------------
# Helpers
# -----------------------------
def clamp_workers(requested: int, max_workers: int = MAX_WORKERS) -> int:
    """
    Worker count after applying the ceiling. Logs a warning when the
    requested count had to be reduced.
    """
    if requested > max_workers:
        LOG.warning(
            "Thread count %d exceeds maximum allowed (%d). Setting to max.",
            requested,
            max_workers,
        )
        return max_workers
    return requested


def parse_proxy(raw: Any) -> ProxyConfig | None:
    """
    Parse '[scheme://][user:pass@]host[:port]' into a ProxyConfig.
    Empty input means "no proxy". A missing scheme defaults to http://.
    """
    if raw is None:
        return None
    value = str(raw).strip()
    if not value:
        return None
    if not has_http_scheme(value):
        value = "http://" + value

    try:
        parts = urlsplit(value)
        port = parts.port  # raises ValueError for non-numeric / out of range
    except ValueError as e:
        raise ConfigError(f"Invalid proxy URL: {raw!r} ({e})") from e

    if not parts.hostname:
        raise ConfigError(f"Invalid proxy URL: {raw!r} (missing host)")
    if port == 0:
        raise ConfigError(f"Invalid proxy URL: {raw!r} (port must be 1-65535)")
    if parts.path not in ("", "/") or parts.query or parts.fragment:
        raise ConfigError(f"Invalid proxy URL: {raw!r} (unexpected path or query)")

    return ProxyConfig(
        scheme=parts.scheme,
        host=parts.hostname,
        port=port,
        username=parts.username,
        password=parts.password,
    )


def _as_int(value: Any, default: int, name: str) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ConfigError(f"'{name}' must be an integer (got {value!r}).")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{name}' must be an integer (got {value!r}).") from e


def _as_float(value: Any, default: float, name: str) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{name}' must be a number (got {value!r}).") from e


def _validate_settings(s: Settings) -> None:
    if s.workers <= 0:
        raise ConfigError("'workers' must be >= 1.")
    if s.timeout <= 0:
        raise ConfigError("'timeout' must be > 0.")
    if not s.user_agent.strip():
        raise ConfigError("'user_agent' cannot be empty.")
