"""
OC_Libs - Open Catalog Library Modules

This package contains core functionality for the Open Catalog project,
organized into specialized sub-packages:

- CatalogLib: Project catalog, image entries and descriptor persistence
- ImageServerLib: Image handles, backend selection, rotation and analysis state
"""

__version__ = "0.1.0"
