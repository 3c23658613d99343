"""CLI main entry point."""

import asyncio
import json
import sys
from dataclasses import asdict
from typing import Any

import click

from . import __version__
from .bridge.errors import ConfigError, RegistryFetchError, redact_url
from .bridge.registry import RegistryClient, StreamDescriptor
from .commands.options import bridge_options, resolve_settings
from .commands.run import run_command
from .config import DEFAULT_ORIGIN_TAG, build_config, validate_url


@click.group()
@click.option("-c", "--config", type=click.Path(), help="Config file path")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.version_option(__version__, prog_name="relay-bridge")
@click.pass_context
def cli(ctx: click.Context, config: str | None, json_output: bool) -> None:
    """Bridge streams from a third-party relay network into your own."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["json_output"] = json_output


cli.add_command(run_command)


@cli.command("registry")
@bridge_options
@click.option("--all", "show_all", is_flag=True, help="Include streams from other origins")
@click.pass_context
def registry(ctx: click.Context, show_all: bool, **params: Any) -> None:
    """Poll the stream registry once and list what would be bridged."""
    from .formatters import print_streams

    try:
        values, _ = resolve_settings(ctx, params)
        registry_url = validate_url(values.get("registry_url", ""), "registry URL")
    except ConfigError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    origin_tag = values.get("origin_tag", DEFAULT_ORIGIN_TAG)

    async def _fetch() -> list[StreamDescriptor]:
        client = RegistryClient(registry_url, origin_tag=origin_tag)
        try:
            if show_all:
                return await client.fetch_streams()
            return await client.fetch_candidates()
        finally:
            await client.close()

    try:
        streams = asyncio.run(_fetch())
    except RegistryFetchError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    if ctx.obj["json_output"]:
        click.echo(json.dumps([asdict(s) for s in streams], indent=2))
    else:
        print_streams(streams, origin_tag)


@cli.group()
def config() -> None:
    """Inspect bridge configuration."""
    pass


@config.command("show")
@bridge_options
@click.pass_context
def config_show(ctx: click.Context, **params: Any) -> None:
    """Show the effective configuration and where each value came from."""
    from .formatters import print_config_yaml

    try:
        values, sources = resolve_settings(ctx, params)
        bridge_config = build_config(values, sources)
    except ConfigError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    data = asdict(bridge_config)
    data.pop("sources")
    data["home_url"] = redact_url(data["home_url"])
    if data["token"]:
        data["token"] = "***"

    if ctx.obj["json_output"]:
        click.echo(
            json.dumps(
                {k: {"value": v, "source": bridge_config.get_source(k)} for k, v in data.items()},
                indent=2,
            )
        )
        return

    print_config_yaml(data, section="Relay Bridge Configuration")
    click.echo("")
    print_config_yaml(
        {k: bridge_config.get_source(k) for k in data},
        section="Sources",
    )


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
