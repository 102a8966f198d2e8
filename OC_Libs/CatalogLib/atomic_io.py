"""Helpers for writing files atomically."""

import os
from pathlib import Path

from OC_Libs.constants import TEMP_FILE_SUFFIX


def atomic_write_text(path: Path, data: str) -> None:
    """
    Atomically write *data* into *path*.

    The text goes to a sibling temporary file which is flushed, fsynced and
    then renamed over *path*. An interrupted or failed write leaves any
    previous version of *path* intact.

    Raises:
        OSError: If the file cannot be written or renamed
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + TEMP_FILE_SUFFIX)
    try:
        with tmp_path.open("w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
