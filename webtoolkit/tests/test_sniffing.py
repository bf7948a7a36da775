from __future__ import annotations

import pytest

from webtoolkit.core.sniffing import DEFAULT_MIME, SNIFF_LEN, detect_content_type, mime_allowed


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR", "image/png"),
        (b"\xff\xd8\xff\xe0\x00\x10JFIF", "image/jpeg"),
        (b"GIF89a\x01\x00\x01\x00", "image/gif"),
        (b"BM\x1e\x00\x00\x00", "image/bmp"),
        (b"RIFF\x24\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"%PDF-1.7\n", "application/pdf"),
        (b"PK\x03\x04\x14\x00", "application/zip"),
        (b"\x1f\x8b\x08\x00", "application/x-gzip"),
        (b"RIFF\x24\x00\x00\x00WAVEfmt ", "audio/wave"),
        (b"ID3\x03\x00", "audio/mpeg"),
        (b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom", "video/mp4"),
        (b"  <!DOCTYPE html><html>", "text/html; charset=utf-8"),
        (b"<html>", "text/html; charset=utf-8"),
        (b"\n<?xml version='1.0'?>", "text/xml; charset=utf-8"),
        (b"\xef\xbb\xbfhello", "text/plain; charset=utf-8"),
        (b"hello, world\n", "text/plain; charset=utf-8"),
        (b"", "text/plain; charset=utf-8"),
        (b"\x00\x01\x02\x03binary", DEFAULT_MIME),
    ],
)
def test_detect_content_type(data, expected):
    assert detect_content_type(data) == expected


def test_detect_content_type_ignores_bytes_past_sniff_window():
    data = b"a" * SNIFF_LEN + b"\x00\x01"
    assert detect_content_type(data) == "text/plain; charset=utf-8"


def test_html_tag_needs_terminator():
    assert detect_content_type(b"<htmlx") == "text/plain; charset=utf-8"


def test_mime_allowed():
    assert mime_allowed("image/png", [])
    assert mime_allowed("image/png", ["image/jpeg", "image/png"])
    assert mime_allowed("image/png", ["Image/PNG"])
    assert not mime_allowed("image/png", ["image/jpeg"])
    assert not mime_allowed("image/png", ["image/*"])
    assert not mime_allowed("text/plain; charset=utf-8", ["text/plain"])
