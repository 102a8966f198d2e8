"""
Constants and configuration values for Open Catalog.

This module centralizes all constant values, file names and descriptor
field names used throughout the library.
"""

# Project descriptor constants
PROJECT_EXTENSION = ".ocproj"
DEFAULT_PROJECT_STEM = "project"
PROJECT_VERSION = "0.2"
MISSING_PROJECT_NAME = "(Project directory missing)"

# Portable path token substituted for the project base directory
PROJECT_DIR_TOKEN = "{$PROJECT_DIR}"

# Per-entry analysis state layout: <base>/data/<identity>/data.ocdata
DATA_DIR_NAME = "data"
DATA_FILE_NAME = "data.ocdata"
TEMP_FILE_SUFFIX = ".tmp"

# Unique file naming: name.ext, name-1.ext, name-2.ext, ...
UNIQUE_NAME_SEPARATOR = "-"

# Entry metadata keys
METADATA_ROTATE_180 = "rotate180"

# Sub-image addressing within a container file (uri#series=N)
SERIES_FRAGMENT_KEY = "series"
SERIES_NAME_PREFIX = "Series "

# Analysis state
STATE_VERSION = 1

# Supported file formats for the Pillow backend
SUPPORTED_STANDARD_IMAGES = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tif", ".tiff", ".webp"}
SUPPORTED_MULTI_FRAME = {".gif", ".tif", ".tiff"}

# Project field names
FIELD_VERSION = "version"
FIELD_NAME = "name"
FIELD_CREATED_AT = "created_at"
FIELD_MODIFIED_AT = "modified_at"
FIELD_MASK_IMAGE_NAMES = "mask_image_names"
FIELD_PATH_CLASSES = "path_classes"
FIELD_IMAGES = "images"

# Image entry field names
FIELD_IDENTITY = "identity"
FIELD_PATH = "path"
FIELD_IMAGE_NAME = "image_name"
FIELD_ORIGINAL_IMAGE_NAME = "original_image_name"
FIELD_RANDOMIZED_NAME = "randomized_name"
FIELD_DESCRIPTION = "description"
FIELD_METADATA = "metadata"

# Classification label field names
FIELD_CLASS_NAME = "name"
FIELD_CLASS_COLOR = "color"

# Analysis state field names
FIELD_STATE_VERSION = "version"
FIELD_STATE_IMAGE_URI = "image_uri"
FIELD_STATE_ANNOTATIONS = "annotations"
FIELD_STATE_PROPERTIES = "properties"
