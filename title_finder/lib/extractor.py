"""
Title Extractor: one URL in, one Result out.

fetch_title() performs a single GET (no retries), decodes the body to text
and returns the first <title>'s text. Every per-URL failure is folded into
the Result; nothing escapes to the caller except programming errors.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping

from bs4 import BeautifulSoup  # pip install beautifulsoup4 html5lib

from .config import DEFAULT_TIMEOUT
from .encoding import SNIFF_BYTES, Detector, decode_body, detect_encoding
from .errors import FetchError, HttpStatusError, NoTitleFoundError, ParseError
from .http_client import HttpClient
from .models import Job, ProxyConfig, Result
from .utils import collapse_ws, normalize_url

LOG = logging.getLogger(__name__)


def fetch_title(
    url: str,
    position: int,
    proxy: ProxyConfig | None = None,
    *,
    client: HttpClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    headers: Mapping[str, str] | None = None,
    verify_tls: bool = False,
    detector: Detector = detect_encoding,
) -> Result:
    """
    Fetch ``url`` and extract its page title.

    When ``client`` is given it is used as-is (its proxy/timeout/headers
    win); otherwise a throwaway client is built from the keyword args and
    closed before returning.
    """
    job = Job(position=position, url=url)
    owns_client = client is None
    http = client or HttpClient(timeout=timeout, headers=headers, proxy=proxy, verify_tls=verify_tls)
    try:
        title = _fetch(http, normalize_url(url), detector)
    except FetchError as e:
        LOG.debug("[%d] %s -> %s", position, url, e)
        return Result.failure(job, e)
    finally:
        if owns_client:
            http.close()
    LOG.debug("[%d] %s -> %r", position, url, title)
    return Result.success(job, title)


def _fetch(http: HttpClient, request_url: str, detector: Detector) -> str:
    deadline = time.monotonic() + http.timeout
    with http.stream(request_url) as resp:
        if not 200 <= resp.status_code < 300:
            raise HttpStatusError(resp.status_code, resp.reason)
        body = http.read_body(resp, deadline=deadline)
        label = detector(resp.headers, body[:SNIFF_BYTES])
    html = decode_body(body, label)
    return extract_title(html)


def extract_title(html: str) -> str:
    """
    Text of the first <title> in document order, whitespace-collapsed.
    Raises NoTitleFoundError when missing or blank, ParseError when the
    markup cannot be parsed at all.
    """
    try:
        soup = BeautifulSoup(html, "html5lib")
    except Exception as e:
        raise ParseError(e) from e

    tag = soup.find("title")
    title = collapse_ws(tag.get_text()) if tag is not None else ""
    if not title:
        raise NoTitleFoundError()
    return title
