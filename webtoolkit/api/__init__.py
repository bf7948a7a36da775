"""webtoolkit API package.

Starlette/FastAPI-facing helpers: JSON and file responses, async adapters
that feed request bodies to the synchronous core, and the Tools facade.
"""

from .models import JSONResponse
from .requests import (
    read_request_json,
    register_exception_handlers,
    upload_request_file,
    upload_request_files,
)
from .responses import download_static_file, error_json, write_json
from .tools import Tools

__all__ = [
    "JSONResponse",
    "Tools",
    "download_static_file",
    "error_json",
    "read_request_json",
    "register_exception_handlers",
    "upload_request_file",
    "upload_request_files",
    "write_json",
]
