from __future__ import annotations

from typing import Any

from .lib.config import Settings
from .lib.engine import run_once as _run_engine
from .lib.logging_bridge import activity as log_activity
from .lib.models import Result


def run(**kwargs: Any) -> list[Result]:
    """
    Entry point for a title-finder run.

    Accepts kwargs (see Settings.from_env_and_kwargs), including:
      input_path: str        # newline-delimited URL list
      urls: list[str]        # explicit URLs instead of input_path
      proxy: str | None = None
      workers: int = 10
      timeout: float = 10.0
      verify_tls: bool = False

    Returns:
      One Result per input URL, in input order.
    """
    urls = kwargs.pop("urls", None)
    settings = Settings.from_env_and_kwargs(kwargs)

    log_activity({
        "component": "title_finder.main",
        "op": "start",
        "input_path": settings.input_path,
        "explicit_urls": urls is not None,
        "workers_requested": settings.workers,
        "proxy": settings.proxy.display if settings.proxy else None,
    })

    return _run_engine(settings, urls=list(urls) if urls is not None else None)
