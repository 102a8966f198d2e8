"""
Pytest configuration and shared fixtures for Open Catalog tests.

This module provides shared test fixtures and test doubles used across
multiple test modules.
"""

from pathlib import Path
from types import SimpleNamespace
from typing import Dict, List, Optional

import pytest
from PIL import Image

from OC_Libs.errors import HandleOpenError
from OC_Libs.ImageServerLib.analysis_state import JsonStateSerializer
from OC_Libs.ImageServerLib.image_handle import ImageHandle


class FakeHandle(ImageHandle):
    """In-memory image handle with configurable sub-images."""

    def __init__(self, path: str, sub_images: Optional[Dict[str, str]] = None):
        self._path = path
        self._sub_images = dict(sub_images or {})
        self.closed = False

    @property
    def path(self) -> str:
        return self._path

    @property
    def display_name(self) -> str:
        return self._path.rsplit("/", 1)[-1]

    @property
    def width(self) -> int:
        return 8

    @property
    def height(self) -> int:
        return 6

    def sub_image_names(self) -> List[str]:
        return list(self._sub_images)

    def sub_image_path(self, name: str) -> str:
        return self._sub_images[name]

    def read_region(self, x, y, width, height):
        return Image.new("RGB", (width, height))

    def close(self) -> None:
        self.closed = True


class FakeHandleFactory:
    """
    Handle factory double.

    Args:
        sub_images: Maps a container path to its {name: sub-image path} dict
        failing: Paths whose open() raises error_type
        error_type: Exception class raised for failing paths
    """

    def __init__(self, sub_images=None, failing=None, error_type=HandleOpenError):
        self.sub_images: Dict[str, Dict[str, str]] = dict(sub_images or {})
        self.failing = set(failing or ())
        self.error_type = error_type
        self.opened: List[FakeHandle] = []

    def open(self, path: str) -> FakeHandle:
        if path in self.failing:
            raise self.error_type(f"Cannot open {path}")
        handle = FakeHandle(path, self.sub_images.get(path))
        self.opened.append(handle)
        return handle


CONTAINER = "fake://slides/container"


@pytest.fixture
def temp_project_dir(tmp_path):
    """Provide an empty project base directory."""
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    return project_dir


@pytest.fixture
def container_factory():
    """Factory whose CONTAINER exposes sub-images s1 and s2."""
    return FakeHandleFactory(
        sub_images={
            CONTAINER: {
                "s1": f"{CONTAINER}#s1",
                "s2": f"{CONTAINER}#s2",
            }
        }
    )


@pytest.fixture
def stub_project(tmp_path):
    """Minimal owner object for constructing ImageEntry instances directly."""
    modifications = []
    project = SimpleNamespace(
        base_directory=tmp_path.resolve(),
        mask_image_names=False,
        state_serializer=JsonStateSerializer(),
        modifications=modifications,
    )
    project.mark_modified = lambda: modifications.append(True)
    return project


def make_image(path: Path, size=(4, 3)) -> Path:
    """Save an RGB image whose every pixel is distinct."""
    width, height = size
    img = Image.new("RGB", size)
    for y in range(height):
        for x in range(width):
            img.putpixel((x, y), (x * 40, y * 60, (x + y) * 10))
    path.parent.mkdir(parents=True, exist_ok=True)
    img.save(path)
    return path


def make_multi_frame_tiff(path: Path, frames: int = 2) -> Path:
    """Save a multi-page TIFF with one solid color per page."""
    images = [Image.new("RGB", (5, 5), color=(40 * i, 0, 0)) for i in range(frames)]
    path.parent.mkdir(parents=True, exist_ok=True)
    images[0].save(path, save_all=True, append_images=images[1:])
    return path


@pytest.fixture
def sample_image(temp_project_dir):
    return make_image(temp_project_dir / "images" / "sample.png")


@pytest.fixture
def sample_stack(temp_project_dir):
    return make_multi_frame_tiff(temp_project_dir / "images" / "stack.tif")
