from __future__ import annotations

from collections.abc import Iterable
from typing import TextIO

from .models import Result


def format_line(result: Result) -> str:
    """
    '[+] <url>: <title>' on success, '[-] <url>: <error message>' on failure.
    """
    if result.ok:
        return f"[+] {result.url}: {result.title}"
    return f"[-] {result.url}: {result.error}"


def write_results(results: Iterable[Result], out: TextIO) -> int:
    """Write one line per Result, in the order given. Returns lines written."""
    n = 0
    for result in results:
        out.write(format_line(result) + "\n")
        n += 1
    return n
