"""
Project catalog: a set of images related to a folder on disk.

The catalog adds and removes image entries, expands multi-series
containers into sibling entries, builds image handles for entries, and
writes the project descriptor when asked to with ``sync``.

Nothing here is locked. A catalog assumes a single writer; callers that
share one between threads must serialize access to the whole catalog.

Classes:
    ProjectCatalog: Images of a project with their settings
"""

import logging
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Union

from OC_Libs.CatalogLib.classifications import ClassificationLabel, unique_labels
from OC_Libs.CatalogLib.entry_store import EntryStore
from OC_Libs.CatalogLib.image_entry import ImageEntry
from OC_Libs.CatalogLib.project_store import (
    current_millis,
    load_project_data,
    project_to_dict,
    save_project_data,
)
from OC_Libs.CatalogLib.unique_names import get_unique_file
from OC_Libs.constants import (
    DEFAULT_PROJECT_STEM,
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
    METADATA_ROTATE_180,
    MISSING_PROJECT_NAME,
    PROJECT_EXTENSION,
)
from OC_Libs.ImageServerLib.analysis_state import JsonStateSerializer
from OC_Libs.ImageServerLib.handle_factory import ImageHandleFactory
from OC_Libs.ImageServerLib.image_handle import ImageHandle
from OC_Libs.ImageServerLib.rotated_handle import Rotation, adapt
from OC_Libs.path_resolver import lookup_key, resolve

logger = logging.getLogger(__name__)

RotationAdapter = Callable[[ImageHandle, Rotation], ImageHandle]


class ProjectCatalog:
    """
    Catalog of the images in one project.

    Args:
        path: Descriptor file, or a directory in which case the descriptor
            is the first free ``project.ocproj``, ``project-1.ocproj``, ...
        handle_factory: Opens image handles; anything with ``open(path)``
        rotation_adapter: ``adapt(handle, rotation)`` used for rotated entries
        state_serializer: Reads and writes per-entry analysis state
        name: Optional explicit project name

    Example:
        >>> catalog = ProjectCatalog(Path("/data/study"))
        >>> catalog.add_image("/data/study/images/slide1.tif")
        True
        >>> catalog.sync()
        True
    """

    def __init__(
        self,
        path: Union[str, Path],
        handle_factory: Any = None,
        rotation_adapter: Optional[RotationAdapter] = None,
        state_serializer: Any = None,
        name: Optional[str] = None,
    ):
        path = Path(path).expanduser().resolve()
        if path.is_dir():
            self._base_dir = path
            # Check-then-use: concurrent creators in the same directory must be serialized
            self._descriptor_path = get_unique_file(path, DEFAULT_PROJECT_STEM, PROJECT_EXTENSION)
        else:
            self._base_dir = path.parent
            self._descriptor_path = path

        self._handle_factory = handle_factory if handle_factory is not None else ImageHandleFactory()
        self._rotation_adapter = rotation_adapter if rotation_adapter is not None else adapt
        self._state_serializer = (
            state_serializer if state_serializer is not None else JsonStateSerializer()
        )

        self._name = name
        self._mask_image_names = False
        self._path_classes: List[ClassificationLabel] = []
        self._entries = EntryStore()

        now = current_millis()
        self._creation_timestamp = now
        self._modification_timestamp = now

    @classmethod
    def load(cls, descriptor_path: Union[str, Path], **kwargs: Any) -> "ProjectCatalog":
        """
        Open an existing project from its descriptor.

        Stored paths under the project token are resolved against the
        descriptor's current directory, so a moved project keeps working.

        Raises:
            DescriptorReadError: If the descriptor is missing or corrupt
        """
        descriptor_path = Path(descriptor_path).expanduser().resolve()
        payload = load_project_data(descriptor_path)

        catalog = cls(descriptor_path, **kwargs)
        catalog._name = payload[FIELD_NAME]
        catalog._mask_image_names = payload[FIELD_MASK_IMAGE_NAMES]
        catalog._path_classes = unique_labels(
            ClassificationLabel.from_dict(item) for item in payload[FIELD_PATH_CLASSES]
        )
        for image in payload[FIELD_IMAGES]:
            entry = ImageEntry.from_stored_path(
                catalog,
                image[FIELD_PATH],
                image_name=image[FIELD_IMAGE_NAME],
                description=image[FIELD_DESCRIPTION],
                metadata=image[FIELD_METADATA],
                identity=image[FIELD_IDENTITY],
                randomized_name=image[FIELD_RANDOMIZED_NAME],
                original_image_name=image[FIELD_ORIGINAL_IMAGE_NAME],
            )
            if not catalog._entries.add(entry):
                logger.warning(f"Skipping duplicate image entry {image[FIELD_PATH]} in {descriptor_path}")

        catalog._creation_timestamp = payload[FIELD_CREATED_AT]
        catalog._modification_timestamp = payload[FIELD_MODIFIED_AT]
        logger.debug(f"Loaded project {descriptor_path} with {len(catalog)} images")
        return catalog

    # ------------------------------------------------------------------
    # Project settings

    @property
    def base_directory(self) -> Path:
        return self._base_dir

    @property
    def descriptor_path(self) -> Path:
        return self._descriptor_path

    @property
    def state_serializer(self) -> Any:
        return self._state_serializer

    @property
    def explicit_name(self) -> Optional[str]:
        return self._name

    @property
    def name(self) -> str:
        if self._name:
            return self._name
        if not self._base_dir.is_dir():
            return MISSING_PROJECT_NAME
        if self._descriptor_path.exists():
            return f"{self._base_dir.name}/{self._descriptor_path.name}"
        return self._base_dir.name

    def set_name(self, name: Optional[str]) -> None:
        self._name = name
        self.mark_modified()

    @property
    def mask_image_names(self) -> bool:
        return self._mask_image_names

    def set_mask_image_names(self, mask: bool) -> None:
        self._mask_image_names = bool(mask)
        self.mark_modified()

    def get_path_classes(self) -> List[ClassificationLabel]:
        return list(self._path_classes)

    def set_path_classes(self, labels: Iterable[Any]) -> bool:
        """
        Replace the classification labels.

        Order is kept but not compared; a label whose color changed counts
        as a change.

        Returns:
            True if the stored labels changed, False otherwise
        """
        new_labels = unique_labels(labels)
        old_pairs = {(label.name, label.color) for label in self._path_classes}
        if len(new_labels) == len(self._path_classes) and {
            (label.name, label.color) for label in new_labels
        } == old_pairs:
            return False
        self._path_classes = new_labels
        self.mark_modified()
        return True

    @property
    def creation_timestamp(self) -> int:
        return self._creation_timestamp

    @property
    def modification_timestamp(self) -> int:
        return self._modification_timestamp

    def mark_modified(self) -> None:
        self._modification_timestamp = current_millis()

    def relocate(self, base_directory: Union[str, Path]) -> None:
        """
        Move the project root, keeping the descriptor file name.

        Entries stored relative to the project follow the new root.
        """
        self._base_dir = Path(base_directory).expanduser().resolve()
        self._descriptor_path = self._base_dir / self._descriptor_path.name
        for entry in self._entries.rekey():
            logger.warning(f"Dropping image {entry.identity}: duplicates another image after relocation")
        self.mark_modified()

    # ------------------------------------------------------------------
    # Entries

    def size(self) -> int:
        return self._entries.size()

    def is_empty(self) -> bool:
        return self._entries.is_empty()

    def __len__(self) -> int:
        return len(self._entries)

    def get_image_list(self) -> List[ImageEntry]:
        return self._entries.list()

    def get_image_entry(self, path: str) -> Optional[ImageEntry]:
        """
        Look up an entry by path or URI; None if absent.

        The image file does not have to exist any more, so entries for
        deleted files can still be found and removed.
        """
        key = lookup_key(path)
        if key is None:
            return None
        return self._entries.get(key)

    def get_entry_by_identity(self, identity: str) -> Optional[ImageEntry]:
        return self._entries.get_by_identity(identity)

    def _add_entry(self, entry: ImageEntry) -> bool:
        if not self._entries.add(entry):
            return False
        self.mark_modified()
        logger.debug(f"Added image {entry.uri} as {entry.identity}")
        return True

    def add_entry(self, entry: Any) -> bool:
        """
        Add a copy of an entry from another project.

        The copy gets a new identity; path, original name, description and
        metadata are carried over.
        """
        copy = ImageEntry(
            self,
            resolve(entry.uri),
            image_name=entry.original_image_name,
            description=entry.description,
            metadata=entry.get_metadata_map(),
        )
        return self._add_entry(copy)

    def add_all_images(self, entries: Iterable[Any]) -> bool:
        changes = False
        for entry in entries:
            changes = self.add_entry(entry) or changes
        return changes

    def add_image(self, path: str) -> bool:
        """
        Add an image and, for containers, one entry per sub-image.

        The image is opened, enumerated and closed within this call. Any
        failure to open or enumerate it is logged and reported as False;
        entries added before the failure are kept.

        Returns:
            True if at least one entry was added

        Raises:
            InvalidPathError: If path is neither an existing file nor a valid URI
        """
        uri = resolve(path)
        try:
            with self._handle_factory.open(uri) as handle:
                return self.add_images_for_server(handle)
        except Exception as e:
            logger.error(f"Error adding image: {uri} ({e})")
            return False

    def add_images_for_server(self, handle: ImageHandle, include_sub_images: bool = True) -> bool:
        """
        Add entries for an open handle.

        One entry is added for the handle itself and, when
        ``include_sub_images`` is set, one per sub-image. Sub-images are
        opened with expansion disabled, so expansion is one level deep. A
        sub-image that fails to open is logged and skipped.

        Returns:
            True if at least one entry was added
        """
        changes = self._add_entry(ImageEntry(self, resolve(handle.path), image_name=handle.display_name))

        if include_sub_images:
            for name in handle.sub_image_names():
                try:
                    with self._handle_factory.open(handle.sub_image_path(name)) as sub_handle:
                        changes = self.add_images_for_server(sub_handle, False) or changes
                except Exception as e:
                    logger.error(f"Error attempting to add sub-image {name}: {e}")
        return changes

    def _find_entry(self, target: Any) -> Optional[ImageEntry]:
        if isinstance(target, ImageEntry):
            return self._entries.get_by_identity(target.identity)
        target = str(target)
        entry = self._entries.get_by_identity(target)
        if entry is None:
            entry = self.get_image_entry(target)
        return entry

    def remove_image(self, target: Any) -> bool:
        """
        Remove an entry given the entry, its identity, or its path/URI.

        Removing an absent entry is a no-op.

        Returns:
            True if an entry was removed
        """
        entry = self._find_entry(target)
        if entry is None:
            return False
        self._entries.remove_by_identity(entry.identity)
        self.mark_modified()
        logger.debug(f"Removed image {entry.identity}")
        return True

    def remove_all_images(self, targets: Iterable[Any]) -> bool:
        changes = False
        for target in targets:
            changes = self.remove_image(target) or changes
        return changes

    def build_image_handle(self, entry: ImageEntry) -> ImageHandle:
        """
        Open a handle for an entry, applying any transform in its metadata.

        When metadata ``rotate180`` is ``"true"`` the handle is wrapped by
        the rotation adapter; the image file itself is never modified.

        Raises:
            InvalidPathError, HandleOpenError: If the image cannot be opened
        """
        handle = self._handle_factory.open(entry.uri)
        value = entry.get_metadata_value(METADATA_ROTATE_180) or "false"
        if value.strip().lower() != "true":
            return handle
        try:
            return self._rotation_adapter(handle, Rotation.ROTATE_180)
        except Exception:
            handle.close()
            raise

    # ------------------------------------------------------------------
    # Persistence

    def sync(self) -> bool:
        """
        Write the full project snapshot to the descriptor file.

        Only called explicitly; changes made after the last sync are not on
        disk. Failures are logged and reported rather than raised.

        Returns:
            True if the descriptor was written
        """
        try:
            save_project_data(self._descriptor_path, project_to_dict(self))
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error syncing project changes to {self._descriptor_path}: {e}")
            return False
        logger.debug(f"Synced project to {self._descriptor_path}")
        return True

    def __str__(self) -> str:
        return f"Project: {self.name}"
