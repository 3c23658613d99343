"""CLI output formatting helpers."""

from typing import Any

import click
import yaml

from .bridge.registry import StreamDescriptor


def print_config_yaml(data: dict[str, Any], section: str | None = None) -> None:
    """Print config as YAML.

    Args:
        data: Configuration data
        section: Optional section name for header
    """
    if section:
        click.echo(f"{section}:")
        yaml_str = yaml.dump(data, default_flow_style=False, sort_keys=False)
        for line in yaml_str.splitlines():
            click.echo(f"  {line}")
    else:
        click.echo(yaml.dump(data, default_flow_style=False, sort_keys=False))


def print_streams(streams: list[StreamDescriptor], origin_tag: str) -> None:
    """Print registry streams, marking the ones that would be bridged.

    Args:
        streams: Streams from the registry
        origin_tag: Origin of the bridged network
    """
    if not streams:
        click.echo("No streams listed.")
        return

    width = max(len(s.stream_id) for s in streams)
    click.echo(f"  {'STREAM':<{width}}  {'ORIGIN':<12}  VIEWERS")
    for s in streams:
        marker = "*" if s.origin == origin_tag else " "
        click.echo(f"{marker} {s.stream_id:<{width}}  {s.origin:<12}  {s.viewer_count}")

    bridged = sum(1 for s in streams if s.origin == origin_tag)
    click.echo(f"\n{bridged} of {len(streams)} streams match origin '{origin_tag}' (*)")
