from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional, Union

from webtoolkit.core.config import DEFAULT_MAX_UPLOAD_BYTES
from webtoolkit.core.errors import (
    DisallowedFileTypeError,
    FileWriteError,
    NoFileUploadedError,
    PartReadError,
    PayloadTooLargeError,
    UploadError,
)
from webtoolkit.core.filesystem import create_dir_if_not_exists
from webtoolkit.core.multipart import FilePart, MultipartFormError, MultipartFormReader, safe_filename
from webtoolkit.core.naming import random_string
from webtoolkit.core.sniffing import SNIFF_LEN, detect_content_type, mime_allowed
from webtoolkit.core.streams import LimitedReader, ReadLimitExceeded, as_stream

log = logging.getLogger("webtoolkit.uploads")

RANDOM_NAME_LEN = 25
_COPY_CHUNK = 1024 * 1024


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """A file persisted from a multipart upload.

    Security notes:
    - original_file_name is client-supplied (already reduced to its final
      path element). Do not trust it for anything but display.

    """

    new_file_name: str
    original_file_name: str
    file_size: int
    content_type: str


def upload_files(
    body: Union[bytes, BinaryIO],
    content_type: str,
    upload_dir: Union[str, Path],
    *,
    rename: bool = True,
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    allowed_types: Iterable[str] = (),
    content_length: Optional[int] = None,
) -> List[UploadedFile]:
    """Persist every file part of a multipart body into upload_dir.

    Parts are handled in stream order. Each one is sniffed (first 512 bytes),
    checked against allowed_types (case-insensitive exact match, empty allows
    all), named, and copied to disk.

    rename=True stores the file as a 25-character random token plus the
    original extension; rename=False keeps the client's file name and the
    caller accepts collisions.

    The first failing part aborts the call; the raised UploadError carries
    the files persisted before it in `uploaded_files`.

    Security notes:
    - The whole body is bounded by max_upload_bytes before any file is written.
    - File types come from content sniffing, never from client headers.

    """

    if int(max_upload_bytes) <= 0:
        max_upload_bytes = DEFAULT_MAX_UPLOAD_BYTES
    if content_length is not None and int(content_length) > max_upload_bytes:
        raise PayloadTooLargeError(max_upload_bytes)

    allowed = [a for a in allowed_types if a]
    reader = MultipartFormReader(content_type)
    limited = LimitedReader(as_stream(body), max_upload_bytes)
    try:
        parts = reader.parse(limited)
    except ReadLimitExceeded as e:
        raise PayloadTooLargeError(max_upload_bytes) from e
    except MultipartFormError as e:
        raise PartReadError(f"cannot parse multipart body: {e}") from e
    except OSError as e:
        raise PartReadError(f"cannot read multipart body: {e}") from e

    uploaded: List[UploadedFile] = []
    try:
        for part in parts:
            original = safe_filename(part.filename)
            if not original:
                # An empty file input: browsers send filename="".
                continue
            uploaded.append(
                _save_part(
                    part,
                    original,
                    Path(upload_dir),
                    rename=rename,
                    allowed=allowed,
                    uploaded=uploaded,
                )
            )
    finally:
        reader.close_all()

    return uploaded


def upload_one_file(
    body: Union[bytes, BinaryIO],
    content_type: str,
    upload_dir: Union[str, Path],
    *,
    rename: bool = True,
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    allowed_types: Iterable[str] = (),
    content_length: Optional[int] = None,
) -> UploadedFile:
    """Like upload_files, but return only the first file.

    Other file parts in the body are still persisted.
    """

    files = upload_files(
        body,
        content_type,
        upload_dir,
        rename=rename,
        max_upload_bytes=max_upload_bytes,
        allowed_types=allowed_types,
        content_length=content_length,
    )
    if not files:
        raise NoFileUploadedError()
    return files[0]


def file_extension(name: str) -> str:
    """Suffix from the last dot on, dot included; "" when there is no dot.

    Unlike os.path.splitext, a leading dot counts: ".bashrc" -> ".bashrc".
    """

    i = name.rfind(".")
    return name[i:] if i >= 0 else ""


def _save_part(
    part: FilePart,
    original: str,
    upload_dir: Path,
    *,
    rename: bool,
    allowed: List[str],
    uploaded: List[UploadedFile],
) -> UploadedFile:
    infile = part.file
    try:
        infile.seek(0)
        head = infile.read(SNIFF_LEN)
    except OSError as e:
        raise PartReadError(f"cannot read uploaded file: {e}", uploaded_files=uploaded) from e

    file_type = detect_content_type(head)
    if not mime_allowed(file_type, allowed):
        log.warning("upload_rejected", extra={"field": part.field_name, "content_type": file_type})
        raise DisallowedFileTypeError(file_type, uploaded_files=uploaded)

    try:
        infile.seek(0)
    except OSError as e:
        raise PartReadError(f"cannot rewind uploaded file: {e}", uploaded_files=uploaded) from e

    if rename:
        new_name = random_string(RANDOM_NAME_LEN) + file_extension(original)
    else:
        new_name = original

    try:
        create_dir_if_not_exists(upload_dir)
    except UploadError as e:
        e.uploaded_files = list(uploaded)
        raise

    target = upload_dir / new_name
    size = _copy_to(infile, target, uploaded)

    log.info(
        "upload_saved",
        extra={"field": part.field_name, "content_type": file_type, "size_bytes": size},
    )
    return UploadedFile(
        new_file_name=new_name,
        original_file_name=original,
        file_size=size,
        content_type=file_type,
    )


def _copy_to(infile: BinaryIO, target: Path, uploaded: List[UploadedFile]) -> int:
    """Stream infile into target; remove the partial file on failure."""

    total = 0
    try:
        out = target.open("wb")
    except OSError as e:
        raise FileWriteError(f"cannot create file: {e}", uploaded_files=uploaded) from e

    try:
        with out:
            while True:
                try:
                    chunk = infile.read(_COPY_CHUNK)
                except OSError as e:
                    raise PartReadError(f"cannot read uploaded file: {e}", uploaded_files=uploaded) from e
                if not chunk:
                    break
                try:
                    out.write(chunk)
                except OSError as e:
                    raise FileWriteError(f"cannot write file: {e}", uploaded_files=uploaded) from e
                total += len(chunk)
    except UploadError:
        target.unlink(missing_ok=True)
        raise
    except OSError as e:
        # close() can fail on flush
        target.unlink(missing_ok=True)
        raise FileWriteError(f"cannot write file: {e}", uploaded_files=uploaded) from e
    return total
