"""Run command - Starts the relay bridge.

Connects to the home relay as a publisher and to the third-party relay as a
subscriber, polls the registry, and bridges every matching stream.
"""

import asyncio
import sys

import click

from ..bridge.errors import ConfigError
from ..bridge.relay import load_relay_client
from ..bridge.service import BridgeService
from ..config import DEFAULT_LOG_LEVEL, ENV_VARS, BridgeConfig, build_config
from ..shared.logging import configure_logging, get_logger
from .options import bridge_options, resolve_settings

logger = get_logger(__name__)


@click.command("run")
@bridge_options
@click.option(
    "--log-level",
    envvar=ENV_VARS["log_level"],
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    help=f"Log level (default: {DEFAULT_LOG_LEVEL})",
)
@click.option(
    "--log-file",
    envvar=ENV_VARS["log_file"],
    help="Log file path (default: stderr)",
)
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines")
@click.pass_context
def run_command(
    ctx: click.Context,
    log_level: str | None,
    log_file: str | None,
    json_logs: bool,
    **params: object,
) -> None:
    """Start bridging streams into the home relay.

    \b
    Example usage:
      relay-bridge run --home-url https://relay.example.com \\
        --registry-url https://example.com/api/streams \\
        --relay-client my_relay.client:build_client

    \b
    Environment variables:
      EARTHSEED_RELAY_URL   - Home relay URL
      CLOUDFLARE_RELAY_URL  - Third-party relay URL
      STREAM_REGISTRY_URL   - Stream registry URL
      RELAY_TOKEN           - Home relay credential
      POLL_INTERVAL         - Seconds between registry polls
      RELAY_CLIENT          - Relay client factory (module:attribute)
    """
    try:
        values, sources = resolve_settings(ctx, params)
        config = build_config(values, sources)
    except ConfigError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    configure_logging(
        level=log_level or values.get("log_level") or DEFAULT_LOG_LEVEL,
        log_file=log_file or values.get("log_file"),
        json_output=json_logs or bool(values.get("json_logs")),
    )

    try:
        asyncio.run(run_bridge(config))
    except KeyboardInterrupt:
        logger.info("bridge interrupted by user")
        sys.exit(0)
    except ConfigError as e:
        logger.error("invalid configuration", error=e.message)
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)


async def run_bridge(config: BridgeConfig) -> None:
    """Build the relay client and service, then run until shutdown.

    Raises:
        ConfigError: If the relay client or an endpoint URL is invalid
    """
    client = load_relay_client(config.relay_client)
    service = BridgeService(config, client)
    await service.run()
