"""
Unique identities and collision-free file names.

Two independent helpers live here:

- ``new_identity`` returns a random opaque token for a new image entry.
  Collisions are treated as negligible; there is no check and no retry.
- ``get_unique_file`` probes ``name.ext``, ``name-1.ext``, ``name-2.ext``...
  and returns the first path that does not exist yet.

``get_unique_file`` is check-then-use: another process (or thread) may
create the same path between the probe and the caller's write. Callers
must serialize all creators in the directory themselves, or use
``create_unique_file``, which reserves the name with an exclusive create.
"""

import os
import uuid
from pathlib import Path
from typing import Iterator, Union

from OC_Libs.constants import UNIQUE_NAME_SEPARATOR


def new_identity() -> str:
    """Return a statistically unique identity for a new entry."""
    return str(uuid.uuid4())


def _normalize_extension(ext: str) -> str:
    if ext and not ext.startswith("."):
        return "." + ext
    return ext


def _candidates(directory: Path, name: str, ext: str) -> Iterator[Path]:
    yield directory / f"{name}{ext}"
    counter = 1
    while True:
        yield directory / f"{name}{UNIQUE_NAME_SEPARATOR}{counter}{ext}"
        counter += 1


def get_unique_file(directory: Union[str, Path], name: str, ext: str) -> Path:
    """
    Get a path with a unique name, appending an integer if necessary.

    Args:
        directory: Directory in which the file should live
        name: Base name without extension
        ext: Extension, with or without the leading dot

    Returns:
        ``directory / name+ext`` if free, otherwise ``directory / name-N+ext``
        for the lowest positive N that does not exist
    """
    directory = Path(directory)
    ext = _normalize_extension(ext)
    for candidate in _candidates(directory, name, ext):
        if not candidate.exists():
            return candidate


def create_unique_file(directory: Union[str, Path], name: str, ext: str) -> Path:
    """
    Reserve a unique file name by creating an empty file exclusively.

    Uses the same naming sequence as ``get_unique_file``, but each probe is
    an ``O_CREAT | O_EXCL`` open, so two creators can never obtain the same
    path.

    Raises:
        OSError: If the directory cannot be created or written
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    ext = _normalize_extension(ext)
    for candidate in _candidates(directory, name, ext):
        try:
            fd = os.open(candidate, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            continue
        os.close(fd)
        return candidate
