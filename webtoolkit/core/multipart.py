from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, List, Optional

import python_multipart
from python_multipart.exceptions import FormParserError
from python_multipart.multipart import Field, File, parse_options_header


class MultipartFormError(ValueError):
    """The body is not a well-formed multipart/form-data stream."""


@dataclass
class FilePart:
    """One file part of a multipart body.

    `file` holds the part's content, in memory up to the reader's threshold
    and in a temporary file past it. Callers must close() every part they
    receive.
    """

    field_name: str
    filename: str
    file: BinaryIO

    def close(self) -> None:
        self.file.close()


class _DroppedField(Field):
    """Ordinary form field whose value is discarded as it streams in."""

    def on_data(self, data: bytes) -> int:
        return len(data)


def _decode(value: Optional[bytes], charset: str) -> str:
    if not value:
        return ""
    try:
        return value.decode(charset)
    except (UnicodeDecodeError, LookupError):
        return value.decode("latin-1")


def safe_filename(raw: str) -> str:
    """Final path element of a client-supplied file name.

    Both separators are treated as path separators so "..\\x.png" and
    "../x.png" both become "x.png". "." and ".." collapse to "".
    """

    name = os.path.basename(raw.replace("\\", "/")).strip()
    if name in {".", ".."}:
        return ""
    return name[:255]


class MultipartFormReader:
    """Synchronous multipart/form-data reader on top of python-multipart's FormParser.

    File parts are collected in stream order. Ordinary fields are dropped
    without being buffered.

    Size limits are the caller's concern: wrap the stream (LimitedReader).
    """

    max_memory_file_size = 1024 * 1024
    chunk_size = 64 * 1024

    def __init__(self, content_type: str) -> None:
        self.content_type = content_type
        self.files: List[FilePart] = []
        self._opened: List[File] = []
        self._charset = "utf-8"
        self._ended = False

    def _new_file(self, file_name: Optional[bytes], field_name: Optional[bytes] = None, config: Any = None) -> File:
        # Tracked from creation so close_all() reaches half-written parts.
        f = File(file_name, field_name, config=config or {})
        self._opened.append(f)
        return f

    def _on_file(self, f: File) -> None:
        self.files.append(
            FilePart(
                field_name=_decode(f.field_name, self._charset),
                filename=_decode(f.file_name, self._charset),
                file=f.file_object,
            )
        )

    def _on_end(self) -> None:
        self._ended = True

    def parse(self, stream: BinaryIO) -> List[FilePart]:
        """Parse the whole stream; return the file parts.

        Raises MultipartFormError for a non-multipart content type, a missing
        boundary, malformed framing, or a body that ends before the closing
        boundary. Errors from stream.read() propagate unchanged. On any error
        every spooled part is closed.

        """

        ctype, params = parse_options_header(self.content_type)
        if ctype != b"multipart/form-data":
            raise MultipartFormError("request Content-Type isn't multipart/form-data")
        boundary = params.get(b"boundary")
        if not boundary:
            raise MultipartFormError("missing boundary in multipart Content-Type")
        charset = params.get(b"charset")
        if charset:
            self._charset = _decode(charset, "latin-1")

        config: Dict[str, Any] = {"MAX_MEMORY_FILE_SIZE": self.max_memory_file_size}
        try:
            parser = python_multipart.FormParser(
                "multipart/form-data",
                on_field=lambda field: None,
                on_file=self._on_file,
                on_end=self._on_end,
                boundary=boundary,
                FileClass=self._new_file,
                FieldClass=_DroppedField,
                config=config,
            )
            while True:
                chunk = stream.read(self.chunk_size)
                if not chunk:
                    break
                parser.write(chunk)
            parser.finalize()
            if not self._ended:
                raise MultipartFormError("multipart body ended unexpectedly")
        except FormParserError as e:
            self.close_all()
            raise MultipartFormError(str(e)) from e
        except BaseException:
            self.close_all()
            raise
        return list(self.files)

    def close_all(self) -> None:
        for f in self._opened:
            f.close()
