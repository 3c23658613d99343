"""Shared click options for bridge commands.

Every setting can come from a flag, its environment variable, or the YAML
config file, in that order of precedence.
"""

from typing import Any, Callable

import click
from click.core import ParameterSource

from ..bridge.sources import SOURCE_MODES
from ..config import (
    DEFAULT_HOME_DOMAIN,
    DEFAULT_ORIGIN_TAG,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_RECONNECT_DELAY,
    DEFAULT_SETTLE_DELAY,
    DEFAULT_SOURCE_MODE,
    DEFAULT_THIRD_PARTY_URL,
    ENV_VARS,
    load_config_file,
)

# Settings applied when neither flag, environment nor file sets them
DEFAULTS: dict[str, Any] = {
    "third_party_url": DEFAULT_THIRD_PARTY_URL,
    "poll_interval": DEFAULT_POLL_INTERVAL,
    "origin_tag": DEFAULT_ORIGIN_TAG,
    "home_domain": DEFAULT_HOME_DOMAIN,
    "source_mode": DEFAULT_SOURCE_MODE,
    "reconnect_delay": DEFAULT_RECONNECT_DELAY,
    "settle_delay": DEFAULT_SETTLE_DELAY,
}

_OPTIONS = [
    click.option(
        "--home-url",
        envvar=ENV_VARS["home_url"],
        help="Home relay URL (e.g., https://us-central.earthseed.live)",
    ),
    click.option(
        "--third-party-url",
        envvar=ENV_VARS["third_party_url"],
        help=f"Third-party relay URL (default: {DEFAULT_THIRD_PARTY_URL})",
    ),
    click.option(
        "--registry-url",
        envvar=ENV_VARS["registry_url"],
        help="Stream registry URL (e.g., https://earthseed.live/api/stats/greet)",
    ),
    click.option(
        "--token",
        envvar=ENV_VARS["token"],
        help="Credential appended to the home relay URL",
    ),
    click.option(
        "--poll-interval",
        envvar=ENV_VARS["poll_interval"],
        type=float,
        help=f"Seconds between registry polls (default: {DEFAULT_POLL_INTERVAL:g})",
    ),
    click.option(
        "--origin-tag",
        envvar=ENV_VARS["origin_tag"],
        help=f"Registry origin of streams to bridge (default: {DEFAULT_ORIGIN_TAG})",
    ),
    click.option(
        "--home-domain",
        envvar=ENV_VARS["home_domain"],
        help=f"Namespace prefix for announced streams (default: {DEFAULT_HOME_DOMAIN})",
    ),
    click.option(
        "--source-mode",
        envvar=ENV_VARS["source_mode"],
        type=click.Choice(SOURCE_MODES, case_sensitive=False),
        help=f"How source broadcasts are acquired (default: {DEFAULT_SOURCE_MODE})",
    ),
    click.option(
        "--reconnect-delay",
        envvar=ENV_VARS["reconnect_delay"],
        type=float,
        help=f"Seconds between reconnect attempts (default: {DEFAULT_RECONNECT_DELAY:g})",
    ),
    click.option(
        "--settle-delay",
        envvar=ENV_VARS["settle_delay"],
        type=float,
        help=f"Seconds to wait after announcing (default: {DEFAULT_SETTLE_DELAY:g})",
    ),
    click.option(
        "--relay-client",
        envvar=ENV_VARS["relay_client"],
        help="Relay client factory as module:attribute",
    ),
]

SETTING_NAMES = [
    "home_url",
    "third_party_url",
    "registry_url",
    "token",
    "poll_interval",
    "origin_tag",
    "home_domain",
    "source_mode",
    "reconnect_delay",
    "settle_delay",
    "relay_client",
]


def bridge_options(func: Callable) -> Callable:
    """Add every bridge setting as a click option."""
    for option in reversed(_OPTIONS):
        func = option(func)
    return func


def resolve_settings(
    ctx: click.Context, params: dict[str, Any]
) -> tuple[dict[str, Any], dict[str, str]]:
    """Merge flags, environment, config file and defaults.

    Args:
        ctx: Current click context (``ctx.obj["config_path"]`` is honoured)
        params: Parameter values click parsed for the command

    Returns:
        Tuple of (values, sources) keyed by setting name

    Raises:
        ConfigError: If the config file is unreadable
    """
    config_path = (ctx.obj or {}).get("config_path")
    file_values = load_config_file(config_path)

    values: dict[str, Any] = {}
    sources: dict[str, str] = {}
    for name in SETTING_NAMES:
        value = params.get(name)
        if value is not None:
            values[name] = value
            if ctx.get_parameter_source(name) == ParameterSource.ENVIRONMENT:
                sources[name] = "environment"
            else:
                sources[name] = "flag"
        elif file_values.get(name) is not None:
            values[name] = file_values[name]
            sources[name] = "config file"
        elif name in DEFAULTS:
            values[name] = DEFAULTS[name]
            sources[name] = "default"

    for name in ("log_level", "log_file", "json_logs"):
        if file_values.get(name) is not None:
            values[name] = file_values[name]

    if "source_mode" in values:
        values["source_mode"] = str(values["source_mode"]).lower()

    return values, sources
