"""
Fixed-rotation adapter for image handles.

Wraps another handle and presents its pixels rotated. The wrapped source
is never modified; rotation happens on every ``read_region`` call.
"""

from enum import Enum
from typing import Any, List

from PIL import Image

from OC_Libs.ImageServerLib.image_handle import ImageHandle


class Rotation(Enum):
    ROTATE_NONE = "none"
    ROTATE_180 = "180"


class RotatedImageHandle(ImageHandle):
    """Image handle presenting another handle rotated by a fixed angle.

    The adapter owns the wrapped handle: closing the adapter closes it.
    """

    def __init__(self, handle: ImageHandle, rotation: Rotation):
        self._handle = handle
        self._rotation = rotation

    @property
    def rotation(self) -> Rotation:
        return self._rotation

    @property
    def wrapped(self) -> ImageHandle:
        return self._handle

    @property
    def path(self) -> str:
        return self._handle.path

    @property
    def display_name(self) -> str:
        return self._handle.display_name

    @property
    def width(self) -> int:
        return self._handle.width

    @property
    def height(self) -> int:
        return self._handle.height

    def sub_image_names(self) -> List[str]:
        return self._handle.sub_image_names()

    def sub_image_path(self, name: str) -> str:
        return self._handle.sub_image_path(name)

    def read_region(self, x: int, y: int, width: int, height: int) -> Any:
        if self._rotation is Rotation.ROTATE_NONE:
            return self._handle.read_region(x, y, width, height)

        # (x, y) in rotated space is (W - x - w, H - y - h) in the source
        source_x = self._handle.width - x - width
        source_y = self._handle.height - y - height
        region = self._handle.read_region(source_x, source_y, width, height)
        return region.transpose(Image.Transpose.ROTATE_180)

    def close(self) -> None:
        self._handle.close()


def adapt(handle: ImageHandle, rotation: Rotation) -> ImageHandle:
    """Return ``handle`` presented with ``rotation`` applied."""
    if rotation is Rotation.ROTATE_NONE:
        return handle
    return RotatedImageHandle(handle, rotation)
