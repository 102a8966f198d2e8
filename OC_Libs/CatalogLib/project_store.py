"""
Project descriptor storage for Open Catalog.

This module handles the persistence layer for catalog projects: turning a
catalog into a JSON descriptor payload, writing it atomically, and reading
it back with validation.

The descriptor schema includes:
- Format version, optional project name, creation/modification timestamps
- Name masking flag and classification labels
- Ordered image entries (identity, stored path, names, description, metadata)

Functions:
    create_project_file: Reserve a new, empty descriptor file
    list_project_files: List descriptor files in a directory
    load_project_name: Load just the project name from a file
    load_project_data: Load complete descriptor data with validation
    save_project_data: Save descriptor data atomically
    project_to_dict: Snapshot a catalog as a descriptor payload
    entry_to_dict: Snapshot one image entry
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from OC_Libs.CatalogLib.atomic_io import atomic_write_text
from OC_Libs.CatalogLib.unique_names import create_unique_file
from OC_Libs.constants import (
    DEFAULT_PROJECT_STEM,
    FIELD_CLASS_COLOR,
    FIELD_CLASS_NAME,
    FIELD_CREATED_AT,
    FIELD_DESCRIPTION,
    FIELD_IDENTITY,
    FIELD_IMAGE_NAME,
    FIELD_IMAGES,
    FIELD_MASK_IMAGE_NAMES,
    FIELD_METADATA,
    FIELD_MODIFIED_AT,
    FIELD_NAME,
    FIELD_ORIGINAL_IMAGE_NAME,
    FIELD_PATH,
    FIELD_PATH_CLASSES,
    FIELD_RANDOMIZED_NAME,
    FIELD_VERSION,
    PROJECT_EXTENSION,
    PROJECT_VERSION,
)
from OC_Libs.errors import DescriptorReadError

logger = logging.getLogger(__name__)


def current_millis() -> int:
    return int(time.time() * 1000)


def entry_to_dict(entry: Any) -> Dict[str, Any]:
    """Helper to create an image dictionary with standard fields."""
    return {
        FIELD_IDENTITY: entry.identity,
        FIELD_PATH: entry.stored_path,
        FIELD_IMAGE_NAME: entry.unmasked_image_name,
        FIELD_ORIGINAL_IMAGE_NAME: entry.original_image_name,
        FIELD_RANDOMIZED_NAME: entry.randomized_name,
        FIELD_DESCRIPTION: entry.description,
        FIELD_METADATA: entry.get_metadata_map(),
    }


def project_to_dict(project: Any) -> Dict[str, Any]:
    """Snapshot the settings and every entry of a catalog."""
    return {
        FIELD_VERSION: PROJECT_VERSION,
        FIELD_NAME: project.explicit_name,
        FIELD_CREATED_AT: project.creation_timestamp,
        FIELD_MODIFIED_AT: project.modification_timestamp,
        FIELD_MASK_IMAGE_NAMES: project.mask_image_names,
        FIELD_PATH_CLASSES: [label.to_dict() for label in project.get_path_classes()],
        FIELD_IMAGES: [entry_to_dict(entry) for entry in project.get_image_list()],
    }


def _empty_payload(project_name: Optional[str] = None) -> Dict[str, Any]:
    now = current_millis()
    return {
        FIELD_VERSION: PROJECT_VERSION,
        FIELD_NAME: project_name,
        FIELD_CREATED_AT: now,
        FIELD_MODIFIED_AT: now,
        FIELD_MASK_IMAGE_NAMES: False,
        FIELD_PATH_CLASSES: [],
        FIELD_IMAGES: [],
    }


def _normalize_entry(entry: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Normalize image data; returns None for entries without a path."""
    path = entry.get(FIELD_PATH)
    if not isinstance(path, str) or not path.strip():
        return None

    metadata = entry.get(FIELD_METADATA)
    if not isinstance(metadata, dict):
        metadata = {}

    description = entry.get(FIELD_DESCRIPTION)
    image_name = entry.get(FIELD_IMAGE_NAME)
    original_name = entry.get(FIELD_ORIGINAL_IMAGE_NAME)

    return {
        FIELD_IDENTITY: str(entry.get(FIELD_IDENTITY) or "") or None,
        FIELD_PATH: path,
        FIELD_IMAGE_NAME: str(image_name) if image_name is not None else None,
        FIELD_ORIGINAL_IMAGE_NAME: str(original_name) if original_name is not None else None,
        FIELD_RANDOMIZED_NAME: str(entry.get(FIELD_RANDOMIZED_NAME) or "") or None,
        FIELD_DESCRIPTION: str(description) if description is not None else None,
        FIELD_METADATA: {str(key): str(value) for key, value in metadata.items()},
    }


def _normalize_label(label: Any) -> Optional[Dict[str, Any]]:
    """Normalize a classification label; returns None for labels without a name."""
    if not isinstance(label, dict):
        return None
    name = label.get(FIELD_CLASS_NAME)
    if name is None or not str(name).strip():
        return None

    color = label.get(FIELD_CLASS_COLOR)
    if color is not None:
        try:
            color = int(color)
        except (TypeError, ValueError, OverflowError):
            logger.warning(f"Ignoring invalid color {color!r} for classification {name}")
            color = None
    return {FIELD_CLASS_NAME: str(name), FIELD_CLASS_COLOR: color}


def _coerce_millis(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def list_project_files(directory: Union[str, Path]) -> List[Path]:
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(directory.glob(f"*{PROJECT_EXTENSION}"))


def create_project_file(directory: Union[str, Path], project_name: Optional[str] = None) -> Path:
    """
    Create a new, empty project descriptor.

    The file name is ``project.ocproj``, ``project-1.ocproj``, ... reserved
    with an exclusive create so concurrent creators never share a file.

    Args:
        directory: Project base directory (created if missing)
        project_name: Optional human-readable name

    Returns:
        Path to the created descriptor
    """
    project_path = create_unique_file(directory, DEFAULT_PROJECT_STEM, PROJECT_EXTENSION)
    save_project_data(project_path, _empty_payload(project_name))
    return project_path


def load_project_name(project_path: Path) -> str:
    """
    Load the project name from a descriptor.

    Returns:
        The project name, or the filename stem if loading fails or no name is set
    """
    try:
        payload = json.loads(Path(project_path).read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return Path(project_path).stem

    if not isinstance(payload, dict):
        return Path(project_path).stem
    return str(payload.get(FIELD_NAME) or Path(project_path).stem)


def load_project_data(project_path: Path) -> Dict[str, Any]:
    """
    Load and validate a project descriptor.

    Malformed image entries and classifications are skipped with a
    warning; missing settings get defaults.

    Raises:
        DescriptorReadError: If the file is missing, unreadable or not a JSON object
    """
    project_path = Path(project_path)
    try:
        payload = json.loads(project_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise DescriptorReadError(f"Cannot read project descriptor {project_path}: {e}") from e

    if not isinstance(payload, dict):
        raise DescriptorReadError(f"Expected object at top level of {project_path}")

    images = payload.get(FIELD_IMAGES)
    normalized_images: List[Dict[str, Any]] = []
    if isinstance(images, list):
        for index, image in enumerate(images):
            normalized = _normalize_entry(image) if isinstance(image, dict) else None
            if normalized is None:
                logger.warning(f"Skipping malformed image entry {index} in {project_path}")
                continue
            normalized_images.append(normalized)

    labels = payload.get(FIELD_PATH_CLASSES)
    path_classes: List[Dict[str, Any]] = []
    if isinstance(labels, list):
        for index, label in enumerate(labels):
            normalized = _normalize_label(label)
            if normalized is None:
                logger.warning(f"Skipping malformed classification {index} in {project_path}")
                continue
            path_classes.append(normalized)

    now = current_millis()
    created_at = _coerce_millis(payload.get(FIELD_CREATED_AT), now)

    name = payload.get(FIELD_NAME)
    return {
        FIELD_VERSION: str(payload.get(FIELD_VERSION) or PROJECT_VERSION),
        FIELD_NAME: str(name) if name else None,
        FIELD_CREATED_AT: created_at,
        FIELD_MODIFIED_AT: _coerce_millis(payload.get(FIELD_MODIFIED_AT), created_at),
        FIELD_MASK_IMAGE_NAMES: _coerce_bool(payload.get(FIELD_MASK_IMAGE_NAMES, False)),
        FIELD_PATH_CLASSES: path_classes,
        FIELD_IMAGES: normalized_images,
    }


def save_project_data(project_path: Path, payload: Dict[str, Any]) -> None:
    """
    Raises:
        OSError: If the descriptor cannot be written
        TypeError, ValueError: If the payload is not JSON serializable
    """
    payload[FIELD_VERSION] = PROJECT_VERSION
    atomic_write_text(Path(project_path), json.dumps(payload, indent=2))
