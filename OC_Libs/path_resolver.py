"""
Path resolution and project-relative path portability.

Image locations are held as absolute URIs in memory. When written to a
project descriptor, any location under the project base directory is
rewritten with a placeholder token so the whole project folder can be
moved without invalidating its entries.

Functions:
    resolve: Canonicalize a raw path or URI string into an absolute URI
    to_stored_form: Replace the base directory prefix with the project token
    from_stored_form: Expand the project token against a base directory
    lookup_key: URI an entry for a raw path is stored under, existing or not
    uri_to_path: Local filesystem path for a file URI
    name_from_uri: Default display name for a URI
"""

import os
from pathlib import Path, PurePosixPath
from typing import Optional, Union
from urllib.parse import unquote, urlsplit
from urllib.request import url2pathname

from OC_Libs.constants import PROJECT_DIR_TOKEN
from OC_Libs.errors import InvalidPathError

PathLike = Union[str, os.PathLike]


def _split_fragment(uri: str):
    base, sep, fragment = uri.partition("#")
    return base, (sep + fragment) if sep else ""


def _is_valid_uri(value: str) -> bool:
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    # Single letter schemes are Windows drive letters, not URIs
    if len(parts.scheme) < 2:
        return False
    return bool(parts.netloc or parts.path)


def resolve(raw: PathLike) -> str:
    """
    Canonicalize a path or URI.

    Args:
        raw: An existing local filesystem path, or a URI string

    Returns:
        Absolute URI string; local files become ``file://`` URIs

    Raises:
        InvalidPathError: If raw is neither an existing path nor a valid URI
    """
    if raw is None:
        raise InvalidPathError("Path must not be None")

    value = os.fspath(raw).strip()
    if not value:
        raise InvalidPathError("Path must not be empty")

    local = Path(value).expanduser()
    if local.exists():
        return local.resolve().as_uri()

    if _is_valid_uri(value):
        location, fragment = _split_fragment(value)
        local = uri_to_path(location)
        if local is not None and local.exists():
            return local.resolve().as_uri() + fragment
        return value

    raise InvalidPathError(f"Not an existing file or valid URI: {value}")


def lookup_key(raw: PathLike) -> Optional[str]:
    """
    URI under which ``raw`` would have been stored, without requiring it to exist.

    Same as ``resolve`` where that succeeds; otherwise a local path is
    made absolute, so entries whose file has since been deleted can still
    be found. Returns None for empty input.
    """
    try:
        return resolve(raw)
    except InvalidPathError:
        if raw is None:
            return None
        value = os.fspath(raw).strip()
        if not value:
            return None
        return Path(value).expanduser().resolve().as_uri()


def uri_to_path(uri: str) -> Optional[Path]:
    """Return the local path of a ``file`` URI (fragment dropped), or None."""
    parts = urlsplit(uri)
    if parts.scheme != "file":
        return None
    return Path(url2pathname(parts.path))


def _absolute_base(base_dir: PathLike) -> Path:
    return Path(base_dir).expanduser().resolve()


def to_stored_form(uri: str, base_dir: PathLike) -> str:
    """
    Convert a URI into the form written to the project descriptor.

    If the URI points to a file under ``base_dir``, the base directory is
    replaced with the project token and the remainder is kept as a POSIX
    relative path. Everything else is returned unchanged.
    """
    location, fragment = _split_fragment(uri)
    local = uri_to_path(location)
    if local is None:
        return uri

    try:
        relative = local.relative_to(_absolute_base(base_dir))
    except ValueError:
        return uri

    stored = PROJECT_DIR_TOKEN
    if relative.parts:
        # '%' and '#' are escaped so the fragment separator stays unambiguous
        stored += "/" + relative.as_posix().replace("%", "%25").replace("#", "%23")
    return stored + fragment


def from_stored_form(stored: str, base_dir: PathLike) -> str:
    """
    Expand a stored path back into an absolute URI.

    This is the inverse of ``to_stored_form`` given the current base
    directory.
    """
    if not stored.startswith(PROJECT_DIR_TOKEN):
        return stored

    remainder, fragment = _split_fragment(stored[len(PROJECT_DIR_TOKEN):])
    path = _absolute_base(base_dir)
    relative = PurePosixPath(unquote(remainder.lstrip("/")))
    if relative.parts:
        path = path.joinpath(*relative.parts)
    return path.as_uri() + fragment


def name_from_uri(uri: str) -> str:
    """Default display name: the last path component of the URI."""
    location, _ = _split_fragment(uri)
    local = uri_to_path(location)
    if local is not None:
        return local.name

    parts = urlsplit(location)
    name = unquote(parts.path.rstrip("/").rsplit("/", 1)[-1])
    return name or parts.netloc or uri
