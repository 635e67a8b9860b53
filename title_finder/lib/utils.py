from __future__ import annotations

import os
import re
from datetime import datetime, timezone
from typing import Any

_WS_RE = re.compile(r"\s+")
_SCHEMES = ("http://", "https://")


def truthy(v: Any) -> bool:
    """
    Normalize common truthy inputs from env/kwargs.
    Accepts bools or strings like: '1', 'true', 'yes', 'on'.
    """
    if isinstance(v, bool):
        return v
    if v is None:
        return False
    if isinstance(v, (int, float)):
        return v != 0
    s = str(v).strip().lower()
    return s in {"1", "true", "yes", "on", "y", "t"}


def now_iso() -> str:
    """
    UTC ISO-8601 timestamp with 'Z' suffix.
    """
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def getenv_str(name: str, default: str | None = None) -> str | None:
    """
    Typed wrapper for environment access. Blank values count as unset.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return val


def has_http_scheme(value: str) -> bool:
    return value.startswith(_SCHEMES)


def normalize_url(url: str) -> str:
    """
    Prefix 'http://' when the URL has no http/https scheme.
    'example.com/page' -> 'http://example.com/page'
    """
    if has_http_scheme(url):
        return url
    return "http://" + url


def collapse_ws(text: str | None) -> str:
    return _WS_RE.sub(" ", text or "").strip()
