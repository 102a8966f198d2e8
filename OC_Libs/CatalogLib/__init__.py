"""
CatalogLib - Project catalog and persistence

This module manages the images of a project: entry identity and storage,
per-entry analysis state files, and the project descriptor file.
"""

from OC_Libs.CatalogLib.classifications import ClassificationLabel
from OC_Libs.CatalogLib.entry_store import EntryStore
from OC_Libs.CatalogLib.image_entry import ImageEntry
from OC_Libs.CatalogLib.project_catalog import ProjectCatalog
from OC_Libs.CatalogLib.project_store import (
    create_project_file,
    list_project_files,
    load_project_name,
    load_project_data,
    save_project_data,
)
from OC_Libs.CatalogLib.unique_names import (
    new_identity,
    get_unique_file,
    create_unique_file,
)

__all__ = [
    "ClassificationLabel",
    "EntryStore",
    "ImageEntry",
    "ProjectCatalog",
    "create_project_file",
    "list_project_files",
    "load_project_name",
    "load_project_data",
    "save_project_data",
    "new_identity",
    "get_unique_file",
    "create_unique_file",
]
