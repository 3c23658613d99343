"""Relay Bridge - Bridges third-party relay streams into a home relay network."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("relay-bridge")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for editable installs without metadata

__all__ = ["__version__"]
