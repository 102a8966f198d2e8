"""
Image handle factory with capability-based backend selection.

The factory holds a closed, ordered tuple of builders. To open a path it
asks every builder how well it supports the URI, then builds the handle
with the most confident one. Ties go to the builder listed first.

Opening is blocking I/O and has no timeout: a backend that hangs blocks
the calling thread.

Classes:
    ImageHandleBuilder: Base class for backend builders
    PillowHandleBuilder: Builder for PillowImageHandle
    ImageHandleFactory: Resolves a path and opens it with the best builder
"""

import logging
from typing import Optional, Sequence, Tuple

from OC_Libs.constants import SUPPORTED_STANDARD_IMAGES
from OC_Libs.errors import HandleOpenError
from OC_Libs.ImageServerLib.image_handle import ImageHandle
from OC_Libs.ImageServerLib.pillow_handle import PillowImageHandle
from OC_Libs.path_resolver import resolve, uri_to_path

logger = logging.getLogger(__name__)


class ImageHandleBuilder:
    """Base class for a backend that can open some URIs."""

    name = "Base builder"

    def support_level(self, uri: str) -> float:
        """Confidence in [0, 1] that this backend can open ``uri``; 0 means never."""
        raise NotImplementedError

    def build(self, uri: str) -> ImageHandle:
        raise NotImplementedError


class PillowHandleBuilder(ImageHandleBuilder):
    """Opens local files with Pillow."""

    name = "Pillow builder"

    def support_level(self, uri: str) -> float:
        path = uri_to_path(uri)
        if path is None:
            return 0.0
        if path.suffix.lower() in SUPPORTED_STANDARD_IMAGES:
            return 1.0
        # Pillow will try anything local, but without much confidence
        return 0.1

    def build(self, uri: str) -> ImageHandle:
        return PillowImageHandle(uri)


DEFAULT_BUILDERS: Tuple[ImageHandleBuilder, ...] = (PillowHandleBuilder(),)


class ImageHandleFactory:
    """
    Build image handles from paths.

    Args:
        builders: Candidate builders; defaults to ``DEFAULT_BUILDERS``

    Example:
        >>> factory = ImageHandleFactory()
        >>> with factory.open("/images/slide.tif") as handle:
        ...     print(handle.sub_image_names())
    """

    def __init__(self, builders: Optional[Sequence[ImageHandleBuilder]] = None):
        self._builders: Tuple[ImageHandleBuilder, ...] = tuple(
            DEFAULT_BUILDERS if builders is None else builders
        )

    @property
    def builders(self) -> Tuple[ImageHandleBuilder, ...]:
        return self._builders

    def select_builder(self, uri: str) -> Optional[ImageHandleBuilder]:
        """Return the builder with the highest positive support level, or None."""
        best: Optional[ImageHandleBuilder] = None
        best_level = 0.0
        for builder in self._builders:
            level = builder.support_level(uri)
            if level > best_level:
                best, best_level = builder, level
        return best

    def open(self, path: str) -> ImageHandle:
        """
        Open a handle for a path or URI.

        Raises:
            InvalidPathError: If the path cannot be resolved
            HandleOpenError: If no builder supports it or the backend fails
        """
        uri = resolve(path)
        builder = self.select_builder(uri)
        if builder is None:
            raise HandleOpenError(f"No image backend supports {uri}")

        logger.debug(f"Opening {uri} with {builder.name}")
        try:
            return builder.build(uri)
        except Exception as e:
            raise HandleOpenError(f"Failed to open {uri} with {builder.name}: {e}") from e
