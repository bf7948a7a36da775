from __future__ import annotations

import logging
from pathlib import Path
from tempfile import SpooledTemporaryFile
from typing import Callable, Iterable, List, Optional, Type, TypeVar, Union

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import Response

from webtoolkit.api.responses import error_json
from webtoolkit.core.config import DEFAULT_MAX_JSON_BYTES, DEFAULT_MAX_UPLOAD_BYTES
from webtoolkit.core.errors import PayloadTooLargeError, ToolkitError
from webtoolkit.core.json_exchange import read_json
from webtoolkit.core.uploads import UploadedFile, upload_files, upload_one_file

log = logging.getLogger("webtoolkit.api")

T = TypeVar("T")

SPOOL_MAX_SIZE = 1024 * 1024


async def _spool_body(request: Request, limit: int) -> SpooledTemporaryFile:
    """Copy at most limit + 1 body bytes into a spooled temp file (rewound).

    The extra byte lets the synchronous readers detect overflow exactly
    without pulling an unbounded body off the wire.
    """

    spool: SpooledTemporaryFile = SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE)
    total = 0
    try:
        async for chunk in request.stream():
            room = limit + 1 - total
            if room <= 0:
                break
            chunk = chunk[:room]
            await run_in_threadpool(spool.write, chunk)
            total += len(chunk)
        spool.seek(0)
    except BaseException:
        spool.close()
        raise
    return spool


def _declared_length(request: Request) -> Optional[int]:
    raw = request.headers.get("content-length")
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


async def read_request_json(
    request: Request,
    target: Type[T],
    *,
    max_bytes: int = DEFAULT_MAX_JSON_BYTES,
    allow_unknown_fields: bool = False,
) -> T:
    """Decode the request body with read_json (same limits and error classes)."""

    if int(max_bytes) <= 0:
        max_bytes = DEFAULT_MAX_JSON_BYTES
    spool = await _spool_body(request, max_bytes)
    try:
        return read_json(spool, target, max_bytes=max_bytes, allow_unknown_fields=allow_unknown_fields)
    finally:
        spool.close()


async def _run_upload(
    func: Callable[..., T],
    request: Request,
    upload_dir: Union[str, Path],
    *,
    rename: bool,
    max_upload_bytes: int,
    allowed_types: Iterable[str],
) -> T:
    if int(max_upload_bytes) <= 0:
        max_upload_bytes = DEFAULT_MAX_UPLOAD_BYTES
    declared = _declared_length(request)
    if declared is not None and declared > max_upload_bytes:
        raise PayloadTooLargeError(max_upload_bytes)

    spool = await _spool_body(request, max_upload_bytes)
    try:
        return await run_in_threadpool(
            func,
            spool,
            request.headers.get("content-type", ""),
            upload_dir,
            rename=rename,
            max_upload_bytes=max_upload_bytes,
            allowed_types=list(allowed_types),
        )
    finally:
        spool.close()


async def upload_request_files(
    request: Request,
    upload_dir: Union[str, Path],
    *,
    rename: bool = True,
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    allowed_types: Iterable[str] = (),
) -> List[UploadedFile]:
    """Run upload_files on the request body.

    A Content-Length above max_upload_bytes is rejected before the body is read.
    The synchronous parsing and copying run in the threadpool.

    """

    return await _run_upload(
        upload_files,
        request,
        upload_dir,
        rename=rename,
        max_upload_bytes=max_upload_bytes,
        allowed_types=allowed_types,
    )


async def upload_request_file(
    request: Request,
    upload_dir: Union[str, Path],
    *,
    rename: bool = True,
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    allowed_types: Iterable[str] = (),
) -> UploadedFile:
    """Run upload_one_file on the request body."""

    return await _run_upload(
        upload_one_file,
        request,
        upload_dir,
        rename=rename,
        max_upload_bytes=max_upload_bytes,
        allowed_types=allowed_types,
    )


def toolkit_error_handler(request: Request, exc: Exception) -> Response:
    """Render a ToolkitError as an error envelope with the error's status."""

    status = int(getattr(exc, "status_code", 400))
    if status >= 500:
        log.warning("toolkit_error", extra={"path": request.url.path, "error_class": type(exc).__name__})
    return error_json(exc, status)


def register_exception_handlers(app: Starlette) -> None:
    """Install toolkit_error_handler for every ToolkitError on a Starlette/FastAPI app."""

    app.add_exception_handler(ToolkitError, toolkit_error_handler)
