from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, BinaryIO, List, Mapping, Optional, Tuple, Type, TypeVar, Union

from starlette.requests import Request
from starlette.responses import FileResponse, Response

from webtoolkit.api import requests as request_helpers
from webtoolkit.api.responses import download_static_file, error_json, write_json
from webtoolkit.client.http import Opener, push_json_to_remote
from webtoolkit.core.config import ToolkitConfig
from webtoolkit.core.filesystem import create_dir_if_not_exists
from webtoolkit.core.json_exchange import read_json
from webtoolkit.core.naming import random_string, slugify
from webtoolkit.core.uploads import UploadedFile, upload_files, upload_one_file

T = TypeVar("T")


class Tools:
    """All request helpers bound to one ToolkitConfig.

    The config supplies upload/JSON size ceilings, the upload type
    allow-list and the unknown-field policy; everything else is passed per
    call. Instances hold no mutable state and can be shared across requests.

    """

    def __init__(self, config: Optional[ToolkitConfig] = None) -> None:
        self.config = config or ToolkitConfig()

    @classmethod
    def from_env(cls) -> "Tools":
        """Build Tools from WEBTOOLKIT_* variables (see ToolkitConfig.from_env).

        Also applies WEBTOOLKIT_LOG_LEVEL to the "webtoolkit" logger. Unset
        or unknown level names mean INFO.
        """

        level = os.environ.get("WEBTOOLKIT_LOG_LEVEL", "").strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            level = "INFO"
        logging.getLogger("webtoolkit").setLevel(level)
        return cls(ToolkitConfig.from_env())

    # naming / filesystem

    def random_string(self, n: int) -> str:
        return random_string(n)

    def slugify(self, s: str) -> str:
        return slugify(s)

    def create_dir_if_not_exists(self, path: Union[str, Path]) -> None:
        create_dir_if_not_exists(path)

    def download_static_file(self, path: str, display_name: str) -> FileResponse:
        return download_static_file(path, display_name)

    # JSON

    def read_json(self, body: Union[bytes, BinaryIO], target: Type[T]) -> T:
        return read_json(
            body,
            target,
            max_bytes=self.config.max_json_bytes,
            allow_unknown_fields=self.config.allow_unknown_fields,
        )

    async def read_request_json(self, request: Request, target: Type[T]) -> T:
        return await request_helpers.read_request_json(
            request,
            target,
            max_bytes=self.config.max_json_bytes,
            allow_unknown_fields=self.config.allow_unknown_fields,
        )

    def write_json(self, status: int, payload: Any, headers: Optional[Mapping[str, str]] = None) -> Response:
        return write_json(status, payload, headers)

    def error_json(self, err: BaseException, status: int = 400) -> Response:
        return error_json(err, status)

    def push_json_to_remote(self, uri: str, data: Any, opener: Optional[Opener] = None) -> Tuple[Any, int]:
        return push_json_to_remote(uri, data, opener)

    # uploads

    def upload_files(
        self,
        body: Union[bytes, BinaryIO],
        content_type: str,
        upload_dir: Union[str, Path],
        rename: bool = True,
        content_length: Optional[int] = None,
    ) -> List[UploadedFile]:
        return upload_files(
            body,
            content_type,
            upload_dir,
            rename=rename,
            max_upload_bytes=self.config.max_upload_bytes,
            allowed_types=self.config.allowed_file_types,
            content_length=content_length,
        )

    def upload_one_file(
        self,
        body: Union[bytes, BinaryIO],
        content_type: str,
        upload_dir: Union[str, Path],
        rename: bool = True,
        content_length: Optional[int] = None,
    ) -> UploadedFile:
        return upload_one_file(
            body,
            content_type,
            upload_dir,
            rename=rename,
            max_upload_bytes=self.config.max_upload_bytes,
            allowed_types=self.config.allowed_file_types,
            content_length=content_length,
        )

    async def upload_request_files(
        self, request: Request, upload_dir: Union[str, Path], rename: bool = True
    ) -> List[UploadedFile]:
        return await request_helpers.upload_request_files(
            request,
            upload_dir,
            rename=rename,
            max_upload_bytes=self.config.max_upload_bytes,
            allowed_types=self.config.allowed_file_types,
        )

    async def upload_request_file(
        self, request: Request, upload_dir: Union[str, Path], rename: bool = True
    ) -> UploadedFile:
        return await request_helpers.upload_request_file(
            request,
            upload_dir,
            rename=rename,
            max_upload_bytes=self.config.max_upload_bytes,
            allowed_types=self.config.allowed_file_types,
        )
