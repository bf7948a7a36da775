from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Optional, Tuple

SNIFF_LEN = 512
DEFAULT_MIME = "application/octet-stream"

_WS = b"\t\n\x0c\r "

# Bytes that mark data as binary per the WHATWG MIME sniffing standard.
_BINARY_BYTES = frozenset(list(range(0x00, 0x09)) + [0x0B] + list(range(0x0E, 0x1B)) + list(range(0x1C, 0x20)))


@dataclass(frozen=True, slots=True)
class _Masked:
    """Signature matched as (data & mask) == pattern, optionally after leading whitespace."""

    mask: bytes
    pattern: bytes
    mime: str
    skip_ws: bool = False

    def match(self, data: bytes) -> Optional[str]:
        if self.skip_ws:
            data = data.lstrip(_WS)
        if len(data) < len(self.pattern):
            return None
        for i, p in enumerate(self.pattern):
            if data[i] & self.mask[i] != p:
                return None
        return self.mime


@dataclass(frozen=True, slots=True)
class _Exact:
    prefix: bytes
    mime: str

    def match(self, data: bytes) -> Optional[str]:
        return self.mime if data.startswith(self.prefix) else None


@dataclass(frozen=True, slots=True)
class _HtmlTag:
    """Case-insensitive tag followed by a space or '>' (leading whitespace skipped)."""

    tag: bytes

    def match(self, data: bytes) -> Optional[str]:
        data = data.lstrip(_WS)
        if len(data) < len(self.tag) + 1:
            return None
        for i, b in enumerate(self.tag):
            db = data[i]
            if 0x41 <= b <= 0x5A:
                db &= 0xDF
            if db != b:
                return None
        if data[len(self.tag)] not in b" >":
            return None
        return "text/html; charset=utf-8"


class _Mp4:
    def match(self, data: bytes) -> Optional[str]:
        if len(data) < 12:
            return None
        box_size = struct.unpack(">I", data[:4])[0]
        if len(data) < box_size or box_size % 4 != 0:
            return None
        if data[4:8] != b"ftyp":
            return None
        for st in range(8, box_size, 4):
            if st == 12:
                # Bytes 12-15 hold the major brand version number.
                continue
            if data[st : st + 3] == b"mp4":
                return "video/mp4"
        return None


class _Text:
    def match(self, data: bytes) -> Optional[str]:
        # Only ever reached for data with no matching signature.
        for b in data:
            if b in _BINARY_BYTES:
                return None
        return "text/plain; charset=utf-8"


def _riff(fourcc: bytes, mime: str) -> _Masked:
    return _Masked(
        mask=b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff",
        pattern=b"RIFF\x00\x00\x00\x00" + fourcc,
        mime=mime,
    )


_HTML_TAGS: Tuple[bytes, ...] = (
    b"<!DOCTYPE HTML",
    b"<HTML",
    b"<HEAD",
    b"<SCRIPT",
    b"<IFRAME",
    b"<H1",
    b"<DIV",
    b"<FONT",
    b"<TABLE",
    b"<A",
    b"<STYLE",
    b"<TITLE",
    b"<B",
    b"<BODY",
    b"<BR",
    b"<P",
    b"<!--",
)

# Ordered: the first match wins.
_SIGNATURES = tuple(
    [_HtmlTag(t) for t in _HTML_TAGS]
    + [
        _Masked(mask=b"\xff\xff\xff\xff\xff", pattern=b"<?xml", mime="text/xml; charset=utf-8", skip_ws=True),
        _Exact(b"%PDF-", "application/pdf"),
        _Exact(b"%!PS-Adobe-", "application/postscript"),
        # UTF BOMs
        _Masked(mask=b"\xff\xff\x00\x00", pattern=b"\xfe\xff\x00\x00", mime="text/plain; charset=utf-16be"),
        _Masked(mask=b"\xff\xff\x00\x00", pattern=b"\xff\xfe\x00\x00", mime="text/plain; charset=utf-16le"),
        _Masked(mask=b"\xff\xff\xff\x00", pattern=b"\xef\xbb\xbf\x00", mime="text/plain; charset=utf-8"),
        # Images
        _Exact(b"\x00\x00\x01\x00", "image/x-icon"),
        _Exact(b"\x00\x00\x02\x00", "image/x-icon"),
        _Exact(b"BM", "image/bmp"),
        _Exact(b"GIF87a", "image/gif"),
        _Exact(b"GIF89a", "image/gif"),
        _Masked(
            mask=b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff\xff\xff",
            pattern=b"RIFF\x00\x00\x00\x00WEBPVP",
            mime="image/webp",
        ),
        _Exact(b"\x89PNG\r\n\x1a\n", "image/png"),
        _Exact(b"\xff\xd8\xff", "image/jpeg"),
        # Audio and video
        _Masked(
            mask=b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff",
            pattern=b"FORM\x00\x00\x00\x00AIFF",
            mime="audio/aiff",
        ),
        _Masked(mask=b"\xff\xff\xff", pattern=b"ID3", mime="audio/mpeg"),
        _Masked(mask=b"\xff\xff\xff\xff\xff", pattern=b"OggS\x00", mime="application/ogg"),
        _Masked(
            mask=b"\xff\xff\xff\xff\xff\xff\xff\xff",
            pattern=b"MThd\x00\x00\x00\x06",
            mime="audio/midi",
        ),
        _riff(b"AVI ", "video/avi"),
        _riff(b"WAVE", "audio/wave"),
        _Mp4(),
        _Exact(b"\x1a\x45\xdf\xa3", "video/webm"),
        # Fonts
        _Exact(b"OTTO", "font/otf"),
        _Exact(b"ttcf", "font/collection"),
        _Exact(b"wOFF", "font/woff"),
        _Exact(b"wOF2", "font/woff2"),
        _Exact(b"\x00\x01\x00\x00", "font/ttf"),
        # Archives
        _Exact(b"\x1f\x8b\x08", "application/x-gzip"),
        _Exact(b"PK\x03\x04", "application/zip"),
        _Exact(b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
        _Exact(b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),
        _Exact(b"\x00asm", "application/wasm"),
        _Text(),
    ]
)


def detect_content_type(data: bytes) -> str:
    """Best-guess MIME type from the leading bytes of some content.

    Only the first SNIFF_LEN bytes are considered. Never trusts file names or
    client-declared types. Always returns a MIME type, falling back to
    application/octet-stream.

    """

    head = bytes(data[:SNIFF_LEN])
    for sig in _SIGNATURES:
        mime = sig.match(head)
        if mime is not None:
            return mime
    return DEFAULT_MIME


def mime_allowed(mime: str, allowed) -> bool:
    """Case-insensitive exact match against an allow-list; an empty list allows all.

    No wildcard or prefix matching: "image/*" only matches the literal string.

    """

    if not allowed:
        return True
    m = mime.strip().lower()
    return any(m == str(a).strip().lower() for a in allowed)
