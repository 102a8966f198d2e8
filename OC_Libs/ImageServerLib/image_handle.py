"""
Image handle contract.

An image handle is an open, scoped view of one image (or one series of a
container file). The catalog only uses ``path``, ``display_name``,
``sub_image_names``, ``sub_image_path`` and ``close``; pixel access through
``read_region`` is there for consumers of ``build_image_handle``.

Handles are context managers, so the usual pattern is::

    with factory.open(path) as handle:
        names = handle.sub_image_names()
"""

from abc import ABC, abstractmethod
from typing import Any, List


class ImageHandle(ABC):
    """Abstract base class for open image handles."""

    @property
    @abstractmethod
    def path(self) -> str:
        """Absolute URI of the image this handle reads."""

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable image name."""

    @property
    @abstractmethod
    def width(self) -> int:
        ...

    @property
    @abstractmethod
    def height(self) -> int:
        ...

    @abstractmethod
    def sub_image_names(self) -> List[str]:
        """Names of independently addressable sub-images, in order."""

    @abstractmethod
    def sub_image_path(self, name: str) -> str:
        """
        URI that opens the named sub-image.

        Raises:
            KeyError: If name is not one of ``sub_image_names()``
        """

    @abstractmethod
    def read_region(self, x: int, y: int, width: int, height: int) -> Any:
        """Read a rectangular region as a PIL Image."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying resources. Safe to call more than once."""

    def __enter__(self) -> "ImageHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r})"
