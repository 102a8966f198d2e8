"""
Exception types raised by Open Catalog.

Duplicate adds are not errors: catalog operations report them through a
``False`` return value instead.
"""


class CatalogError(Exception):
    """Base class for all catalog errors."""


class InvalidPathError(CatalogError, ValueError):
    """A source path is neither an existing local file nor a valid URI."""


class HandleOpenError(CatalogError, OSError):
    """The image handle factory could not open a path."""


class DataReadError(CatalogError):
    """An entry's analysis state file exists but cannot be read or parsed."""


class DescriptorReadError(CatalogError):
    """A project descriptor file is missing or cannot be parsed."""
