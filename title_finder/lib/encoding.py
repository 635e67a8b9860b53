"""
Character-encoding detection and transcoding for fetched HTML bodies.

``detect_encoding(headers, sniff)`` is the default strategy. Anything with
the same call shape can be handed to the extractor instead, which is how
tests pin an encoding without crafting byte soup.
"""

from __future__ import annotations

import codecs
import logging
from collections.abc import Callable, Mapping

from bs4.dammit import EncodingDetector as _MarkupDetector
from charset_normalizer import from_bytes

from .errors import EncodingError

LOG = logging.getLogger(__name__)

# How many leading body bytes the detector may look at.
SNIFF_BYTES = 1024

FALLBACK_ENCODING = "utf-8"

Detector = Callable[[Mapping[str, str], bytes], str]


def detect_encoding(headers: Mapping[str, str], sniff: bytes) -> str:
    """
    Pick an encoding label for a response body.

    Order: byte-order mark, Content-Type charset, <meta> declaration in the
    sniffed prefix, UTF-8 validity, statistical guess, then utf-8. A
    pure-ASCII prefix says nothing about the rest of the body, so it
    resolves to utf-8 (an ASCII superset) rather than to a guessed "ascii".
    """
    _, bom_encoding = _MarkupDetector.strip_byte_order_mark(sniff)
    if bom_encoding:
        return bom_encoding

    declared = header_charset(headers.get("Content-Type") or headers.get("content-type"))
    if declared:
        return declared

    meta = _MarkupDetector.find_declared_encoding(sniff[:SNIFF_BYTES], is_html=True)
    if meta:
        return meta

    sniff = sniff[:SNIFF_BYTES]
    if sniff and not sniff.isascii():
        if _looks_like_utf8(sniff):
            return FALLBACK_ENCODING
        best = from_bytes(sniff).best()
        if best is not None and best.encoding and best.encoding != "ascii":
            return best.encoding

    return FALLBACK_ENCODING


def _looks_like_utf8(data: bytes) -> bool:
    # final=False tolerates a multi-byte sequence cut at the sniff boundary
    try:
        codecs.getincrementaldecoder("utf-8")().decode(data, final=False)
    except UnicodeDecodeError:
        return False
    return True


def header_charset(content_type: str | None) -> str | None:
    """
    Extract the charset parameter from a Content-Type value.
    'text/html; charset="Shift_JIS"' -> 'shift_jis'
    """
    if not content_type:
        return None
    for param in content_type.split(";")[1:]:
        key, sep, value = param.partition("=")
        if not sep or key.strip().lower() != "charset":
            continue
        value = value.strip().strip("\"'").strip()
        if value:
            return value.lower()
    return None


def decode_body(body: bytes, label: str) -> str:
    """
    Transcode ``body`` from ``label`` to text. Unknown labels raise
    EncodingError; invalid byte sequences become U+FFFD.
    """
    try:
        info = codecs.lookup(label)
    except LookupError as e:
        raise EncodingError(f"unsupported charset {label!r}") from e
    except TypeError as e:
        raise EncodingError(f"invalid charset {label!r}") from e

    try:
        text = body.decode(info.name, errors="replace")
    except (UnicodeError, LookupError) as e:  # codecs that reject 'replace'
        raise EncodingError(e) from e
    LOG.debug("Decoded %d bytes as %s", len(body), info.name)
    return text.lstrip("\ufeff")
