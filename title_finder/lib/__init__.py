# title_finder/lib/__init__.py
from __future__ import annotations

# Re-export commonly-used types for convenience
from .config import MAX_WORKERS, ConfigError, Settings, parse_proxy
from .engine import ResultAggregator, WorkerPool, build_jobs, read_url_list, run_once
from .errors import (
    EncodingError,
    FetchError,
    HttpStatusError,
    InvalidRequestError,
    NetworkError,
    NoTitleFoundError,
    ParseError,
)
from .extractor import extract_title, fetch_title
from .models import Job, ProxyConfig, Result
from .render import format_line, write_results

__all__ = [
    "MAX_WORKERS",
    "ConfigError",
    "EncodingError",
    "FetchError",
    "HttpStatusError",
    "InvalidRequestError",
    "Job",
    "NetworkError",
    "NoTitleFoundError",
    "ParseError",
    "ProxyConfig",
    "Result",
    "ResultAggregator",
    "Settings",
    "WorkerPool",
    "build_jobs",
    "extract_title",
    "fetch_title",
    "format_line",
    "parse_proxy",
    "read_url_list",
    "run_once",
    "write_results",
]
