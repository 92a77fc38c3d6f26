"""
Core package for the tagsmith static-site component compiler.
"""

from importlib import metadata as _metadata

try:
    __version__ = _metadata.version("tagsmith")
except _metadata.PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = ["__version__"]
