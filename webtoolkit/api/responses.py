from __future__ import annotations

import logging
import os
from typing import Any, Mapping, Optional

from starlette.responses import FileResponse, Response

from webtoolkit.api.models import JSONResponse
from webtoolkit.core.errors import StaticFileNotFoundError
from webtoolkit.core.json_exchange import encode_json

log = logging.getLogger("webtoolkit.api")


def write_json(status: int, payload: Any, headers: Optional[Mapping[str, str]] = None) -> Response:
    """Serialize payload as a JSON response with the given status.

    `headers` are merged in verbatim; Content-Type is always application/json.
    A JSONResponse envelope omits `data` when it is absent.

    Raises PayloadEncodeError if payload cannot be serialized.

    """

    if isinstance(payload, JSONResponse):
        payload = payload.to_wire()
    body = encode_json(payload)

    response = Response(content=body, status_code=int(status))
    for key, value in (headers or {}).items():
        response.headers[key] = value
    response.headers["Content-Type"] = "application/json"
    return response


def error_json(err: BaseException, status: int = 400) -> Response:
    """Send {"error": true, "message": str(err)} with the given status (default 400)."""

    envelope = JSONResponse(error=True, message=str(err))
    return write_json(status, envelope)


def download_static_file(path: str, display_name: str) -> FileResponse:
    """Serve a file, forcing the browser to download it as display_name.

    A missing file raises StaticFileNotFoundError (404); nothing is served.

    """

    if not os.path.isfile(path):
        log.info("static_file_missing", extra={"display_name": display_name})
        raise StaticFileNotFoundError(f"file not found: {os.path.basename(path)}")

    return FileResponse(path, filename=display_name, content_disposition_type="attachment")
