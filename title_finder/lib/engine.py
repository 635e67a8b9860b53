"""
Engine for fetching page titles for a batch of URLs.

Features:
  - Job Source: every input line becomes one Job, enumerated up front
  - Worker Pool: fixed number of threads draining a shared FIFO job queue
  - Result Aggregator: one slot per Job, filled at Result.position
  - Dependency injection for testability (`fetch`, `detector`)
  - Structured activity logging via `logging_bridge`
"""

from __future__ import annotations

import logging
import queue
import time
from collections import Counter
from collections.abc import Callable, Iterable, Iterator, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from . import logging_bridge
from .config import DEFAULT_TIMEOUT, MAX_WORKERS, ConfigError, Settings, clamp_workers
from .encoding import Detector, detect_encoding
from .errors import FetchError
from .extractor import fetch_title
from .http_client import HttpClient
from .models import Job, ProxyConfig, Result

LOG = logging.getLogger(__name__)

FetchFn = Callable[[Job], Result]

# How long the collector waits on the result queue before checking worker health.
_POLL_SECONDS = 0.5


# =============================================================================
# JOB SOURCE
# =============================================================================
def read_url_list(path: str | Path) -> list[str]:
    """
    Read a newline-delimited URL list. Every line is kept, blank and
    duplicate lines included; a UTF-8 BOM and trailing '\\r' are dropped.
    """
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except FileNotFoundError as e:
        raise ConfigError(f"Input file not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to read input file {path}: {e}") from e
    return text.splitlines()


def build_jobs(urls: Iterable[str]) -> list[Job]:
    return [Job(position=i, url=url) for i, url in enumerate(urls)]


# =============================================================================
# RESULT AGGREGATOR
# =============================================================================
class ResultAggregator:
    """
    Pre-sized slot array, one slot per submitted Job. Each slot is written
    exactly once, at Result.position, so arrival order does not matter.
    """

    def __init__(self, expected: int) -> None:
        if expected < 0:
            raise ValueError("expected must be >= 0")
        self._slots: list[Result | None] = [None] * expected
        self._received = 0

    @property
    def expected(self) -> int:
        return len(self._slots)

    @property
    def received(self) -> int:
        return self._received

    @property
    def complete(self) -> bool:
        return self._received == len(self._slots)

    def add(self, result: Result) -> None:
        pos = result.position
        if not 0 <= pos < len(self._slots):
            raise ValueError(f"Result position {pos} outside 0..{len(self._slots) - 1}")
        if self._slots[pos] is not None:
            raise ValueError(f"Duplicate result for position {pos}")
        self._slots[pos] = result
        self._received += 1

    def ordered(self) -> list[Result]:
        """Results in input order. Only valid once every slot is filled."""
        if not self.complete:
            missing = [i for i, r in enumerate(self._slots) if r is None]
            raise RuntimeError(f"Missing results for positions {missing[:10]}")
        return list(self._slots)  # type: ignore[arg-type]


# =============================================================================
# WORKER POOL
# =============================================================================
class WorkerPool:
    """
    Fixed-size thread pool that pulls Jobs off one shared FIFO queue and
    pushes one Result per Job onto a result queue.

    By default each worker owns an HttpClient built from the pool's proxy,
    timeout, headers and TLS settings. Passing ``fetch`` replaces the whole
    per-job call (tests use this to simulate latency).
    """

    def __init__(
        self,
        worker_count: int,
        *,
        proxy: ProxyConfig | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        headers: dict[str, str] | None = None,
        verify_tls: bool = False,
        detector: Detector = detect_encoding,
        fetch: FetchFn | None = None,
        max_workers: int = MAX_WORKERS,
    ) -> None:
        if worker_count < 1:
            raise ValueError("worker_count must be >= 1")
        self.worker_count = clamp_workers(worker_count, max_workers)
        self.proxy = proxy
        self.timeout = float(timeout)
        self.headers = dict(headers or {})
        self.verify_tls = verify_tls
        self.detector = detector
        self._fetch = fetch

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> WorkerPool:
        kw = {
            "proxy": settings.proxy,
            "timeout": settings.timeout,
            "headers": settings.request_headers(),
            "verify_tls": settings.verify_tls,
        }
        kw.update(overrides)
        return cls(settings.workers, **kw)

    def run(self, jobs: Sequence[Job]) -> list[Result]:
        """All Results, in completion order."""
        return list(self.iter_results(jobs))

    def iter_results(self, jobs: Sequence[Job]) -> Iterator[Result]:
        """
        Start the workers and yield Results as they complete. Returns after
        exactly len(jobs) Results; the workers are joined before returning.
        If the consumer stops early (Ctrl-C, close()), queued jobs are
        dropped so only in-flight fetches are waited for.
        """
        total = len(jobs)
        if total == 0:
            return

        job_q: queue.Queue[Job] = queue.Queue()
        for job in jobs:
            job_q.put(job)
        result_q: queue.Queue[Result] = queue.Queue()

        # Never start more threads than there is work for.
        threads = min(self.worker_count, total)
        with ThreadPoolExecutor(max_workers=threads, thread_name_prefix="title-worker") as pool:
            futures = [pool.submit(self._work, wid, job_q, result_q) for wid in range(threads)]
            try:
                yield from self._collect(total, result_q, futures)
            except BaseException:
                _drain(job_q)
                raise

    # ---- internals ----

    def _collect(
        self,
        total: int,
        result_q: queue.Queue[Result],
        futures: list[Future],
    ) -> Iterator[Result]:
        remaining = total
        while remaining:
            try:
                result = result_q.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                if all(f.done() for f in futures) and result_q.empty():
                    errors = [repr(f.exception()) for f in futures if f.exception() is not None]
                    raise RuntimeError(
                        f"Workers exited with {remaining} of {total} results outstanding: {errors}"
                    ) from None
                continue
            remaining -= 1
            yield result

    def _work(self, worker_id: int, job_q: queue.Queue[Job], result_q: queue.Queue[Result]) -> int:
        """Worker loop: pull, fetch, push until the queue is empty. Returns jobs handled."""
        client: HttpClient | None = None
        if self._fetch is None:
            client = HttpClient(
                timeout=self.timeout,
                headers=self.headers,
                proxy=self.proxy,
                verify_tls=self.verify_tls,
            )
        handled = 0
        try:
            while True:
                try:
                    job = job_q.get_nowait()
                except queue.Empty:
                    return handled
                result_q.put(self._run_job(worker_id, job, client))
                handled += 1
        finally:
            if client is not None:
                client.close()

    def _run_job(self, worker_id: int, job: Job, client: HttpClient | None) -> Result:
        try:
            if self._fetch is not None:
                return self._fetch(job)
            return fetch_title(job.url, job.position, client=client, detector=self.detector)
        except Exception as e:
            # Keep one Result per Job even when the fetch itself is broken.
            logging_bridge.error({
                "component": "title_finder.engine",
                "op": "worker_job",
                "worker": worker_id,
                "position": job.position,
                "url": job.url,
                "error": repr(e),
            })
            return Result.failure(job, FetchError(e))


def _drain(job_q: queue.Queue[Job]) -> int:
    dropped = 0
    while True:
        try:
            job_q.get_nowait()
        except queue.Empty:
            break
        dropped += 1
    if dropped:
        LOG.info("Dropped %d queued jobs", dropped)
    return dropped


# =============================================================================
# MAIN ORCHESTRATOR
# =============================================================================
def run_once(
    settings: Settings,
    urls: Sequence[str] | None = None,
    *,
    fetch: FetchFn | None = None,
    detector: Detector = detect_encoding,
) -> list[Result]:
    """
    Fetch titles for every URL and return Results in input order.

    Args:
        settings: validated run configuration.
        urls: explicit URL list; read from settings.input_path when omitted.
        fetch: optional per-job override (for testing).
        detector: encoding detection strategy.

    Blocks until every URL has a Result. Per-URL failures are inside the
    Results; only configuration problems raise.
    """
    start_ns = time.perf_counter_ns()

    if urls is None:
        if not settings.input_path:
            raise ConfigError("No input path given. Provide 'input_path' or explicit urls.")
        urls = read_url_list(settings.input_path)
    jobs = build_jobs(urls)

    pool = WorkerPool.from_settings(settings, detector=detector, fetch=fetch)

    logging_bridge.activity({
        "component": "title_finder.engine",
        "op": "start",
        "jobs": len(jobs),
        "workers": pool.worker_count,
        "proxy": settings.proxy.display if settings.proxy else None,
        "verify_tls": settings.verify_tls,
        "timeout_s": settings.timeout,
    })

    aggregator = ResultAggregator(len(jobs))
    for result in pool.iter_results(jobs):
        aggregator.add(result)
    results = aggregator.ordered()

    errors_by_kind = Counter(r.error_kind for r in results if not r.ok)
    logging_bridge.activity({
        "component": "title_finder.engine",
        "op": "summary",
        "jobs": len(results),
        "ok": sum(1 for r in results if r.ok),
        "failed": sum(errors_by_kind.values()),
        "errors_by_kind": dict(errors_by_kind),
        "total_us": int((time.perf_counter_ns() - start_ns) // 1000),
    })
    return results
