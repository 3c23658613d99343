"""Path management for relay-bridge.

Manages the ~/.relay-bridge/ directory holding the optional config file.
"""

from pathlib import Path

# Base directory for all relay-bridge data
BRIDGE_DIR = Path.home() / ".relay-bridge"

# Optional YAML config file
CONFIG_FILE = BRIDGE_DIR / "config.yaml"
