"""
ImageServerLib - Image handles used by the catalog

Modules:
    image_handle: Abstract handle contract
    pillow_handle: Pillow-backed handle with multi-frame sub-images
    handle_factory: Backend selection by support level
    rotated_handle: Fixed-rotation handle adapter
    analysis_state: Per-image analysis state and its JSON serializer
"""

from OC_Libs.ImageServerLib.image_handle import ImageHandle
from OC_Libs.ImageServerLib.pillow_handle import PillowImageHandle
from OC_Libs.ImageServerLib.handle_factory import (
    ImageHandleBuilder,
    ImageHandleFactory,
    PillowHandleBuilder,
)
from OC_Libs.ImageServerLib.rotated_handle import Rotation, RotatedImageHandle, adapt
from OC_Libs.ImageServerLib.analysis_state import AnalysisState, JsonStateSerializer

__all__ = [
    "ImageHandle",
    "PillowImageHandle",
    "ImageHandleBuilder",
    "ImageHandleFactory",
    "PillowHandleBuilder",
    "Rotation",
    "RotatedImageHandle",
    "adapt",
    "AnalysisState",
    "JsonStateSerializer",
]
