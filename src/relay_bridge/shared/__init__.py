"""Shared modules for relay-bridge.

Logging setup and filesystem locations used by every command.
"""

from .logging import configure_logging, get_logger
from .paths import BRIDGE_DIR, CONFIG_FILE

__all__ = [
    # Paths
    "BRIDGE_DIR",
    "CONFIG_FILE",
    # Logging
    "configure_logging",
    "get_logger",
]
