# title_finder/lib/http_client.py
from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.exceptions import HTTPError as Urllib3Error
from urllib3.exceptions import InsecureRequestWarning
from urllib3.util.retry import Retry

from .errors import InvalidRequestError, NetworkError
from .models import ProxyConfig

LOG = logging.getLogger(__name__)

CHUNK_SIZE = 16 * 1024

_insecure_lock = threading.Lock()
_insecure_noticed = False


def _notice_insecure() -> None:
    """Silence urllib3's per-request warning and say it once in the log instead."""
    global _insecure_noticed
    with _insecure_lock:
        if _insecure_noticed:
            return
        urllib3.disable_warnings(InsecureRequestWarning)
        LOG.warning(
            "TLS certificate verification is disabled; results are not suitable "
            "for trust-sensitive use."
        )
        _insecure_noticed = True


class HttpClient:
    """
    Single-owner HTTP client: one per worker thread, never shared.

    Headers, proxy and TLS policy are fixed at construction. Environment
    proxy variables are ignored so that "no proxy" means a direct connection.
    """

    def __init__(
        self,
        *,
        timeout: float,
        headers: Mapping[str, str] | None = None,
        proxy: ProxyConfig | None = None,
        verify_tls: bool = False,
        session: requests.Session | None = None,
    ):
        self.timeout = float(timeout)
        self.proxies = proxy.as_requests_proxies() if proxy else {}
        self.verify_tls = bool(verify_tls)

        self.session = session or requests.Session()
        self.session.trust_env = False
        self.session.headers.update(dict(headers or {}))

        # One attempt per URL: no connect/read/status retries.
        retry = Retry(total=0, read=False)
        adapter = HTTPAdapter(max_retries=retry, pool_connections=4, pool_maxsize=4)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        if not self.verify_tls:
            _notice_insecure()

    def prepare(self, url: str) -> requests.PreparedRequest:
        try:
            return self.session.prepare_request(requests.Request("GET", url))
        except (requests.exceptions.RequestException, ValueError) as e:
            raise InvalidRequestError(e) from e

    @contextmanager
    def stream(self, url: str) -> Iterator[requests.Response]:
        """
        GET ``url`` with the body left unread. The response is always closed
        when the block exits, on success or on any exception.
        """
        prepared = self.prepare(url)
        try:
            resp = self.session.send(
                prepared,
                stream=True,
                timeout=(self.timeout, self.timeout),
                verify=self.verify_tls,
                proxies=self.proxies,
                allow_redirects=True,
            )
        except requests.exceptions.RequestException as e:
            raise NetworkError(e) from e
        try:
            yield resp
        finally:
            resp.close()

    def read_body(self, resp: requests.Response, *, deadline: float) -> bytes:
        """
        Drain the response body, failing with NetworkError once the
        monotonic ``deadline`` passes.

        read1() returns whatever bytes have arrived instead of waiting for a
        full chunk, so a server trickling bytes still hits the deadline check
        at least once per socket read timeout.
        """
        chunks: list[bytes] = []
        try:
            while True:
                if time.monotonic() > deadline:
                    raise NetworkError(f"timeout reading body after {self.timeout:g}s")
                chunk = resp.raw.read1(CHUNK_SIZE, decode_content=True)
                if not chunk:
                    break
                chunks.append(chunk)
        except (Urllib3Error, requests.exceptions.RequestException, OSError) as e:
            raise NetworkError(e) from e
        return b"".join(chunks)

    def close(self) -> None:
        try:
            self.session.close()
        except Exception:
            LOG.debug("HttpClient.close() swallow", exc_info=True)
