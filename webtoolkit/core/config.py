from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import FrozenSet

DEFAULT_MAX_UPLOAD_BYTES = 1024 * 1024 * 1024
DEFAULT_MAX_JSON_BYTES = 1024 * 1024


@dataclass(frozen=True, slots=True)
class ToolkitConfig:
    """Limits and policies applied by the request helpers.

    Fields:
    - max_upload_bytes: ceiling on the whole multipart body (default 1 GiB)
    - allowed_file_types: sniffed MIME types accepted for uploads; empty allows all
    - max_json_bytes: ceiling on a JSON request body (default 1 MiB)
    - allow_unknown_fields: accept JSON object keys the target type does not declare

    Zero or negative sizes fall back to the defaults.

    """

    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    allowed_file_types: FrozenSet[str] = field(default_factory=frozenset)
    max_json_bytes: int = DEFAULT_MAX_JSON_BYTES
    allow_unknown_fields: bool = False

    def __post_init__(self) -> None:
        if int(self.max_upload_bytes) <= 0:
            object.__setattr__(self, "max_upload_bytes", DEFAULT_MAX_UPLOAD_BYTES)
        if int(self.max_json_bytes) <= 0:
            object.__setattr__(self, "max_json_bytes", DEFAULT_MAX_JSON_BYTES)
        if not isinstance(self.allowed_file_types, frozenset):
            object.__setattr__(self, "allowed_file_types", frozenset(self.allowed_file_types))

    @classmethod
    def from_env(cls) -> "ToolkitConfig":
        """Build a config from environment variables.

        - WEBTOOLKIT_MAX_UPLOAD_BYTES
        - WEBTOOLKIT_ALLOWED_FILE_TYPES (comma separated, e.g. "image/png,image/jpeg")
        - WEBTOOLKIT_MAX_JSON_BYTES
        - WEBTOOLKIT_ALLOW_UNKNOWN_FIELDS ("1" or "0")

        """

        types_raw = os.environ.get("WEBTOOLKIT_ALLOWED_FILE_TYPES", "")
        return cls(
            max_upload_bytes=_env_int("WEBTOOLKIT_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            allowed_file_types=frozenset(t.strip() for t in types_raw.split(",") if t.strip()),
            max_json_bytes=_env_int("WEBTOOLKIT_MAX_JSON_BYTES", DEFAULT_MAX_JSON_BYTES),
            allow_unknown_fields=bool(_env_int("WEBTOOLKIT_ALLOW_UNKNOWN_FIELDS", 0)),
        )


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back to default."""

    raw = os.environ.get(name, "").strip()
    if not raw:
        return int(default)
    try:
        return int(raw)
    except ValueError:
        return int(default)
