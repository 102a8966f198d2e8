"""
Image entries of a project catalog.

An entry stores where an image lives, how it is presented and the user's
metadata for it. It also owns one analysis state file whose location is
derived from the entry identity only, so renaming never orphans saved
state.

Classes:
    ImageEntry: One image of a project with its editable record
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from OC_Libs.CatalogLib.atomic_io import atomic_write_text
from OC_Libs.CatalogLib.unique_names import new_identity
from OC_Libs.constants import DATA_DIR_NAME, DATA_FILE_NAME
from OC_Libs.errors import DataReadError
from OC_Libs.path_resolver import from_stored_form, name_from_uri, to_stored_form

logger = logging.getLogger(__name__)


class ImageEntry:
    """
    One image within a project.

    Entries are normally created by ``ProjectCatalog`` rather than directly.
    The identity and the masked name are generated once, at construction,
    unless supplied when restoring an entry from a descriptor.

    Args:
        project: Owning catalog; provides the base directory, the masking
            flag and the analysis state serializer
        uri: Resolved absolute URI of the image
        image_name: Display name; defaults to the last component of the URI
        description: Optional free text
        metadata: Initial string key/value pairs
        identity: Existing identity to restore
        randomized_name: Existing masked name to restore
        original_image_name: Existing original name to restore
    """

    def __init__(
        self,
        project: Any,
        uri: str,
        image_name: Optional[str] = None,
        description: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        identity: Optional[str] = None,
        randomized_name: Optional[str] = None,
        original_image_name: Optional[str] = None,
    ):
        self._project = project
        self._stored_path = to_stored_form(uri, project.base_directory)
        self._identity = identity or new_identity()
        self._randomized_name = randomized_name or new_identity()

        if image_name is None:
            image_name = name_from_uri(uri)
        self._image_name = str(image_name)
        self._original_image_name = (
            str(original_image_name) if original_image_name is not None else self._image_name
        )
        self._description = description
        self._metadata: Dict[str, str] = {}
        if metadata:
            self._metadata.update({str(k): str(v) for k, v in metadata.items()})

    @classmethod
    def from_stored_path(cls, project: Any, stored_path: str, **kwargs: Any) -> "ImageEntry":
        """Restore an entry from the stored (possibly tokenized) path form."""
        return cls(project, from_stored_form(stored_path, project.base_directory), **kwargs)

    # ------------------------------------------------------------------
    # Identity and location

    @property
    def identity(self) -> str:
        """Opaque identity, unique within the project and never regenerated."""
        return self._identity

    @property
    def stored_path(self) -> str:
        """Path as written to the descriptor (tokenized when under the base directory)."""
        return self._stored_path

    @property
    def uri(self) -> str:
        """Absolute URI of the image, resolved against the current base directory."""
        return from_stored_form(self._stored_path, self._project.base_directory)

    def same_uri(self, uri: str) -> bool:
        return self.uri == uri

    # ------------------------------------------------------------------
    # Names and description

    @property
    def image_name(self) -> str:
        """Display name, or the masked name while the project masks names."""
        if self._project.mask_image_names:
            return self._randomized_name
        return self._image_name

    @property
    def unmasked_image_name(self) -> str:
        return self._image_name

    @property
    def original_image_name(self) -> str:
        return self._original_image_name

    @property
    def randomized_name(self) -> str:
        return self._randomized_name

    def set_image_name(self, name: str) -> None:
        self._image_name = str(name)
        self._project.mark_modified()

    @property
    def description(self) -> Optional[str]:
        return self._description

    def set_description(self, description: Optional[str]) -> None:
        self._description = description
        self._project.mark_modified()

    def has_description(self) -> bool:
        return bool(self._description)

    # ------------------------------------------------------------------
    # Metadata

    def get_metadata_value(self, key: str) -> Optional[str]:
        return self._metadata.get(key)

    def put_metadata_value(self, key: str, value: Any) -> Optional[str]:
        """Store a short key/value pair; returns the previous value, if any."""
        previous = self._metadata.get(key)
        self._metadata[str(key)] = str(value)
        self._project.mark_modified()
        return previous

    def remove_metadata_value(self, key: str) -> Optional[str]:
        if key not in self._metadata:
            return None
        self._project.mark_modified()
        return self._metadata.pop(key)

    def contains_metadata(self, key: str) -> bool:
        return key in self._metadata

    def clear_metadata(self) -> None:
        self._metadata.clear()
        self._project.mark_modified()

    def get_metadata_map(self) -> Dict[str, str]:
        """Return a copy of the metadata; edits must go through the setters."""
        return dict(self._metadata)

    def get_metadata_keys(self) -> List[str]:
        return list(self._metadata)

    def get_metadata_summary(self) -> str:
        return ", ".join(f"{key}={value}" for key, value in self._metadata.items())

    # ------------------------------------------------------------------
    # Analysis state file

    @property
    def entry_path(self) -> Path:
        return Path(self._project.base_directory) / DATA_DIR_NAME / self._identity

    @property
    def data_path(self) -> Path:
        return self.entry_path / DATA_FILE_NAME

    def has_data(self) -> bool:
        return self.data_path.exists()

    def read_data(self) -> Any:
        """
        Read the saved analysis state for this image.

        Returns:
            The saved state, or a fresh empty state if nothing was saved yet

        Raises:
            DataReadError: If the file exists but cannot be read or parsed;
                the file is left untouched
        """
        serializer = self._project.state_serializer
        path = self.data_path
        if not path.exists():
            return serializer.new_state(self)

        try:
            text = path.read_text(encoding="utf-8")
            return serializer.loads(text)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error reading image data from {path}: {e}")
            raise DataReadError(f"Cannot read image data from {path}: {e}") from e

    def read_annotations(self) -> List[Any]:
        """
        Read only the annotations from the saved analysis state.

        Returns:
            The saved annotations, or an empty list if nothing was saved yet

        Raises:
            DataReadError: If the data file exists but cannot be read
        """
        return list(self.read_data().annotations)

    def write_data(self, state: Any) -> Path:
        """
        Save analysis state, replacing any previous save atomically.

        Raises:
            OSError: If the data directory or file cannot be written; a
                previous save is left intact
        """
        path = self.data_path
        payload = self._project.state_serializer.dumps(state)
        atomic_write_text(path, payload)
        logger.debug(f"Saved image data for {self._identity} to {path}")
        return path

    def get_summary(self) -> str:
        lines = [self.image_name, ""]
        if self._metadata:
            for key, value in self._metadata.items():
                lines.append(f"{key}:\t{value}")
            lines.append("")

        path = self.data_path
        if path.exists():
            size_mb = path.stat().st_size / 1024.0 / 1024.0
            lines.append(f"Data file:\t{size_mb:.2f} MB")
        else:
            lines.append("No data file")
        return "\n".join(lines)

    def __str__(self) -> str:
        text = self.image_name
        if self._metadata:
            text += " - " + self.get_metadata_summary()
        return text

    def __repr__(self) -> str:
        return f"ImageEntry(identity={self._identity!r}, uri={self.uri!r})"
