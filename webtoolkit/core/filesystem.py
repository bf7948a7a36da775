from __future__ import annotations

import os
from pathlib import Path
from typing import Union

from webtoolkit.core.errors import DirectoryCreateError

DIR_MODE = 0o755


def create_dir_if_not_exists(path: Union[str, Path]) -> None:
    """Create a directory and all missing parents (mode 0755).

    Idempotent: an existing directory is not an error. An existing file at
    `path`, or any OS failure, raises DirectoryCreateError.
    """

    p = Path(path)
    if p.is_dir():
        return
    try:
        os.makedirs(p, mode=DIR_MODE, exist_ok=True)
    except OSError as e:
        raise DirectoryCreateError(f"cannot create/utilize directory {str(p)!r}: {e}") from e
