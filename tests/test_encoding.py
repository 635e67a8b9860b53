# tests/test_encoding.py
import pytest

from title_finder.lib.encoding import decode_body, detect_encoding, header_charset
from title_finder.lib.errors import EncodingError


@pytest.mark.parametrize(
    "content_type, expected",
    [
        ("text/html; charset=UTF-8", "utf-8"),
        ('text/html; charset="Shift_JIS"', "shift_jis"),
        ("text/html;charset=windows-1251 ; foo=bar", "windows-1251"),
        ("text/html", None),
        ("", None),
        (None, None),
        ("text/html; charset=", None),
    ],
)
def test_header_charset(content_type, expected):
    assert header_charset(content_type) == expected


def test_bom_beats_header():
    sniff = b"\xef\xbb\xbf<html><title>x</title>"

    assert detect_encoding({"Content-Type": "text/html; charset=iso-8859-1"}, sniff) == "utf-8"


def test_header_beats_meta():
    sniff = b'<html><head><meta charset="windows-1251"><title>x</title>'

    assert detect_encoding({"Content-Type": "text/html; charset=koi8-r"}, sniff) == "koi8-r"


def test_meta_used_without_header_charset():
    sniff = b'<html><head><meta http-equiv="Content-Type" content="text/html; charset=euc-jp">'

    assert detect_encoding({"Content-Type": "text/html"}, sniff) == "euc-jp"


def test_statistical_guess_without_declarations():
    text = "<html><body>Съешь же ещё этих мягких французских булок, да выпей чаю. " * 5
    body = text.encode("utf-8")
    label = detect_encoding({}, body)

    assert decode_body(body, label) == text


def test_empty_body_falls_back_to_utf8():
    assert detect_encoding({}, b"") == "utf-8"


def test_decode_unknown_label_is_encoding_error():
    with pytest.raises(EncodingError, match="unsupported charset"):
        decode_body(b"<title>x</title>", "x-klingon")


def test_decode_replaces_invalid_bytes():
    assert decode_body(b"<title>a\xffb</title>", "utf-8") == "<title>a\ufffdb</title>"


def test_decode_strips_bom():
    assert decode_body(b"\xef\xbb\xbf<title>x</title>", "utf-8") == "<title>x</title>"


def test_ascii_prefix_resolves_to_utf8_not_ascii():
    sniff = b"<html><head><script>" + b"var x = 1;\n" * 200

    assert detect_encoding({"Content-Type": "text/html"}, sniff) == "utf-8"


def test_utf8_cut_mid_character_at_sniff_boundary():
    text = "<html><title>" + "ж" * 600
    sniff = text.encode("utf-8")[:1024]

    assert detect_encoding({}, sniff) == "utf-8"
