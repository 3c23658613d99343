"""Bridge configuration.

Values are resolved once at startup and never change afterwards.
Precedence (highest to lowest):
1. Command-line flags
2. Environment variables
3. Config file (~/.relay-bridge/config.yaml or --config)
4. Defaults
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import yaml

from .bridge.errors import ConfigError
from .bridge.sources import SOURCE_MODES
from .shared.paths import CONFIG_FILE

# Default values
DEFAULT_THIRD_PARTY_URL = "https://relay-next.cloudflare.mediaoverquic.com"
DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_ORIGIN_TAG = "cloudflare"
DEFAULT_HOME_DOMAIN = "earthseed.live"
DEFAULT_SOURCE_MODE = "announce"
DEFAULT_RECONNECT_DELAY = 5.0
DEFAULT_SETTLE_DELAY = 0.1
DEFAULT_LOG_LEVEL = "info"

# Query parameter carrying the home relay credential
TOKEN_QUERY_PARAM = "jwt"

# Environment variable mappings
ENV_VARS = {
    "home_url": "EARTHSEED_RELAY_URL",
    "third_party_url": "CLOUDFLARE_RELAY_URL",
    "registry_url": "STREAM_REGISTRY_URL",
    "token": "RELAY_TOKEN",
    "poll_interval": "POLL_INTERVAL",
    "origin_tag": "BRIDGE_ORIGIN_TAG",
    "home_domain": "BRIDGE_HOME_DOMAIN",
    "source_mode": "BRIDGE_SOURCE_MODE",
    "reconnect_delay": "BRIDGE_RECONNECT_DELAY",
    "settle_delay": "BRIDGE_SETTLE_DELAY",
    "relay_client": "RELAY_CLIENT",
    "log_level": "BRIDGE_LOG_LEVEL",
    "log_file": "BRIDGE_LOG_FILE",
}

FILE_KEYS = frozenset(ENV_VARS) | {"json_logs"}


@dataclass(frozen=True)
class BridgeConfig:
    """Endpoint and tuning configuration."""

    home_url: str
    registry_url: str
    third_party_url: str = DEFAULT_THIRD_PARTY_URL
    token: str | None = None
    poll_interval: float = DEFAULT_POLL_INTERVAL
    origin_tag: str = DEFAULT_ORIGIN_TAG
    home_domain: str = DEFAULT_HOME_DOMAIN
    source_mode: str = DEFAULT_SOURCE_MODE
    reconnect_delay: float = DEFAULT_RECONNECT_DELAY
    settle_delay: float = DEFAULT_SETTLE_DELAY
    relay_client: str | None = None

    # Track where each value came from
    sources: dict[str, str] = field(default_factory=dict, compare=False)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self.sources.get(key, "default")

    def home_connect_url(self) -> str:
        """Home relay URL with the credential attached."""
        return build_home_url(self.home_url, self.token)

    def third_party_connect_url(self) -> str:
        return validate_url(self.third_party_url, "third-party relay URL")


def validate_url(url: str, what: str = "URL") -> str:
    """Check that ``url`` has a scheme and host.

    Raises:
        ConfigError: If the URL is malformed
    """
    if not url:
        raise ConfigError(message=f"{what} is required")
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ConfigError(message=f"Invalid {what}: {url}")
    return url


def build_home_url(url: str, token: str | None = None) -> str:
    """Attach the home relay credential as a query parameter.

    Args:
        url: Home relay URL
        token: Optional credential

    Returns:
        URL to connect with

    Raises:
        ConfigError: If the URL or token is malformed
    """
    validate_url(url, "home relay URL")
    if token is None:
        return url

    token = token.strip()
    if not token or any(c.isspace() for c in token):
        raise ConfigError(message="Relay token is empty or contains whitespace")

    parsed = urlparse(url)
    query = parse_qsl(parsed.query, keep_blank_values=True)
    query.append((TOKEN_QUERY_PARAM, token))
    return urlunparse(parsed._replace(path=parsed.path or "/", query=urlencode(query)))


def get_config_path() -> Path:
    """Get the default config file path."""
    return CONFIG_FILE


def load_config_file(path: str | Path | None = None) -> dict[str, Any]:
    """Load settings from a YAML config file.

    A missing default file yields no settings; a missing explicit file or
    a file that is not a YAML mapping is a configuration error.

    Args:
        path: Explicit config file path, or None for the default

    Returns:
        Mapping of known keys to values

    Raises:
        ConfigError: If the file cannot be read or contains unknown keys
    """
    config_path = Path(path).expanduser() if path else get_config_path()
    if not config_path.exists():
        if path:
            raise ConfigError(message=f"Config file not found: {config_path}")
        return {}

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(message=f"Cannot read config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(message=f"Config file {config_path} must contain a mapping")

    unknown = sorted(set(data) - FILE_KEYS)
    if unknown:
        raise ConfigError(message=f"Unknown keys in {config_path}: {', '.join(unknown)}")

    return data


def _coerce_float(key: str, value: Any) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(message=f"{key} must be a number, got {value!r}") from e
    if result < 0:
        raise ConfigError(message=f"{key} must not be negative")
    return result


def build_config(values: dict[str, Any], sources: dict[str, str] | None = None) -> BridgeConfig:
    """Create a validated BridgeConfig from resolved values.

    Args:
        values: Settings keyed by BridgeConfig field name; None means unset
        sources: Where each value came from

    Raises:
        ConfigError: On missing or invalid settings
    """
    settings = {k: v for k, v in values.items() if v is not None}

    for required, what in (("home_url", "home relay URL"), ("registry_url", "registry URL")):
        if not settings.get(required):
            env = ENV_VARS[required]
            raise ConfigError(message=f"{what} is required (set {env} or pass a flag)")

    for key in ("poll_interval", "reconnect_delay", "settle_delay"):
        if key in settings:
            settings[key] = _coerce_float(key, settings[key])
    if settings.get("poll_interval") == 0:
        raise ConfigError(message="poll_interval must be positive")
    if "source_mode" in settings:
        settings["source_mode"] = str(settings["source_mode"]).lower()
        if settings["source_mode"] not in SOURCE_MODES:
            raise ConfigError(
                message=f"Unknown source mode: {settings['source_mode']} "
                f"(expected one of {', '.join(SOURCE_MODES)})"
            )

    known = set(BridgeConfig.__dataclass_fields__) - {"sources"}
    config = BridgeConfig(
        **{k: v for k, v in settings.items() if k in known},
        sources=dict(sources or {}),
    )

    validate_url(config.registry_url, "registry URL")
    config.home_connect_url()
    config.third_party_connect_url()
    return config
