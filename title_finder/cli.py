# title_finder/cli.py
"""
Command-line driver.

    title-finder -l urls.txt [-o out.txt] [-p [http://]host:port] [-t N]

Reads one URL per line, fetches all titles concurrently and writes one
line per input URL, in input order:

    [+] <url>: <title>
    [-] <url>: <error message>

Exit codes: 0 on a completed run (per-URL failures included), 1 on a
startup error (missing/unreadable input, bad proxy, bad options), 130 on
Ctrl-C. Running with no arguments prints help.
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import os
import sys
import time
from collections.abc import Iterable, Iterator
from typing import TextIO

from .lib import logging_bridge
from .lib.config import DEFAULT_TIMEOUT, DEFAULT_WORKERS, MAX_WORKERS, ConfigError, Settings
from .lib.engine import read_url_list, run_once
from .lib.render import write_results
from .lib.utils import now_iso

LOG = logging.getLogger("title_finder.cli")


# ----------------------------- Logging setup ---------------------------------
def _ensure_logging(verbosity: int = 0) -> None:
    """Initialize a reasonable logging setup if none exists yet."""
    root = logging.getLogger()
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        name = os.getenv("LOG_LEVEL", "WARNING").upper()
        level = getattr(logging, name, logging.WARNING)
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
            stream=sys.stderr,
        )
    elif verbosity:
        root.setLevel(level)


# -------------------------- Utility / glue code ------------------------------
@contextlib.contextmanager
def _open_output(path: str | None) -> Iterator[TextIO]:
    """Yield a text stream for results: the given file, or stdout."""
    if not path:
        yield sys.stdout
        return
    try:
        fh = open(path, "w", encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to create output file: {e}") from e
    with fh:
        yield fh


# ------------------------------- Argparse ------------------------------------
def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="title-finder",
        description="Fetch the HTML <title> of every URL in a list, concurrently.",
        epilog=(
            "TLS certificates are NOT verified unless --verify-tls is given; "
            "do not rely on results for trust-sensitive use."
        ),
    )
    p.add_argument(
        "-l",
        "--list",
        dest="input_path",
        metavar="FILE",
        help="Path to the input file containing URLs, one per line (required).",
    )
    p.add_argument(
        "-o",
        "--output",
        dest="output_path",
        metavar="FILE",
        help="Path to the output file. If not provided, output is printed to the console.",
    )
    p.add_argument(
        "-p",
        "--proxy",
        metavar="URL",
        help="Proxy URL for HTTP requests. Format: [http://]host:port "
        "(http:// is used when no protocol is given).",
    )
    p.add_argument(
        "-t",
        "--threads",
        dest="workers",
        type=int,
        default=None,
        metavar="N",
        help=f"Number of concurrent threads (default {DEFAULT_WORKERS}, max {MAX_WORKERS}).",
    )
    p.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help=f"Per-request timeout in seconds (default {DEFAULT_TIMEOUT:g}).",
    )
    p.add_argument(
        "--verify-tls",
        action="store_true",
        help="Verify TLS certificates (off by default).",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="More logging on stderr (-v info, -vv debug).",
    )
    return p


# --------------------------------- Main --------------------------------------
def cmd_run(args: argparse.Namespace) -> int:
    start_time = time.monotonic()
    try:
        if not args.input_path:
            raise ConfigError("Please provide the path to the txt file using -l parameter")

        settings = Settings.from_env_and_kwargs({
            "input_path": args.input_path,
            "output_path": args.output_path,
            "proxy": args.proxy,
            "workers": args.workers,
            "timeout": args.timeout,
            "verify_tls": args.verify_tls or None,
        })
        urls = read_url_list(args.input_path)

        with _open_output(settings.output_path) as out:
            results = run_once(settings, urls=urls)
            write_results(results, out)
            out.flush()

    except KeyboardInterrupt:
        return 130
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        logging_bridge.error({
            "component": "title_finder.cli",
            "ts": now_iso(),
            "op": "startup",
            "input_path": args.input_path,
            "error": str(e),
        })
        return 1

    logging_bridge.activity({
        "component": "title_finder.cli",
        "ts": now_iso(),
        "op": "done",
        "input_path": args.input_path,
        "output_path": args.output_path,
        "lines": len(results),
        "duration_ms": int((time.monotonic() - start_time) * 1000),
    })
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    argv = list(argv) if argv is not None else sys.argv[1:]
    parser = _build_parser()
    if not argv:
        parser.print_help()
        return 0
    args = parser.parse_args(args=argv)
    _ensure_logging(args.verbose)
    return cmd_run(args)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
