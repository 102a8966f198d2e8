"""
Pillow-backed image handle.

Reads any local file Pillow can decode. Multi-frame containers (multi-page
TIFF, animated GIF) expose every frame as a sub-image named ``Series N``
and addressed by the URI fragment ``#series=N``. A handle opened on a
sub-image exposes no further sub-images.
"""

from typing import Any, List, Optional
from urllib.parse import parse_qs

from PIL import Image

from OC_Libs.constants import SERIES_FRAGMENT_KEY, SERIES_NAME_PREFIX
from OC_Libs.ImageServerLib.image_handle import ImageHandle
from OC_Libs.path_resolver import name_from_uri, uri_to_path


def parse_series(uri: str) -> Optional[int]:
    """Return the series index in a ``#series=N`` fragment, or None."""
    _, sep, fragment = uri.partition("#")
    if not sep:
        return None
    values = parse_qs(fragment).get(SERIES_FRAGMENT_KEY)
    if not values:
        return None
    index = int(values[0])
    if index < 0:
        raise ValueError(f"Series index must be >= 0, got {index}")
    return index


def series_uri(uri: str, index: int) -> str:
    """URI addressing frame ``index`` of the container at ``uri``."""
    location = uri.partition("#")[0]
    return f"{location}#{SERIES_FRAGMENT_KEY}={index}"


class PillowImageHandle(ImageHandle):
    """Image handle reading a local file through Pillow.

    Args:
        uri: ``file://`` URI, optionally with a ``#series=N`` fragment

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the URI is not a local file or the series is out of range
        OSError: If Pillow cannot identify the file
    """

    def __init__(self, uri: str):
        path = uri_to_path(uri)
        if path is None:
            raise ValueError(f"Not a local file URI: {uri}")
        if not path.is_file():
            raise FileNotFoundError(f"Image file not found: {path}")

        self._uri = uri
        self._file_path = path
        self._series = parse_series(uri)
        self._image: Any = Image.open(path)
        self._frame_count = getattr(self._image, "n_frames", 1)

        if self._series is not None:
            try:
                self._image.seek(self._series)
            except EOFError:
                self.close()
                raise ValueError(
                    f"Series {self._series} out of range for {path} "
                    f"({self._frame_count} frames)"
                )

    @property
    def path(self) -> str:
        return self._uri

    @property
    def display_name(self) -> str:
        name = name_from_uri(self._uri)
        if self._series is None:
            return name
        return f"{name} - {SERIES_NAME_PREFIX}{self._series}"

    @property
    def width(self) -> int:
        return self._require_image().width

    @property
    def height(self) -> int:
        return self._require_image().height

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def sub_image_names(self) -> List[str]:
        if self._series is not None or self._frame_count <= 1:
            return []
        return [f"{SERIES_NAME_PREFIX}{index}" for index in range(self._frame_count)]

    def sub_image_path(self, name: str) -> str:
        if name not in self.sub_image_names():
            raise KeyError(f"Unknown sub-image: {name}")
        return series_uri(self._uri, int(name[len(SERIES_NAME_PREFIX):]))

    def read_region(self, x: int, y: int, width: int, height: int) -> Any:
        image = self._require_image()
        return image.crop((x, y, x + width, y + height))

    def close(self) -> None:
        if self._image is not None:
            self._image.close()
            self._image = None

    def _require_image(self) -> Any:
        if self._image is None:
            raise ValueError(f"Image handle is closed: {self._uri}")
        return self._image
