"""Metadata for the Project."""

from importlib.metadata import PackageNotFoundError, metadata, version

__all__ = ("__project__", "__version__")

try:
    __version__ = version("sqlsimply")
    __project__ = metadata("sqlsimply")["Name"]
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
    __project__ = "SQLSimply"
finally:
    del version, PackageNotFoundError, metadata
