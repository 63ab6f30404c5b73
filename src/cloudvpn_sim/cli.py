import sys
import typing as t
from pathlib import Path

import typer
from pydantic import ValidationError
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config_loader import load_descriptor_file, load_settings, write_settings_template
from .config_template import DEFAULT_SETTINGS_FILENAME
from .connection import VpnConnection
from .device import DeviceConfiguration
from .diagnostics import Warnings, setup_logging
from .errors import CloudVpnSimError
from .render import render_device_yaml
from .synthesis import apply_to_gateway, init_vpn_infrastructure
from .tunnel_iterator import iter_tunnels

app = typer.Typer(
    add_completion=False,
    help="""
Simulate the gateway side of AWS Site-to-Site VPN connections.

Reads 'aws ec2 describe-vpn-connections' output and synthesizes the IPsec/IKE,
interface and routing configuration of the VPN gateway device.
""",
)


def _resolve_settings_file(settings_file: t.Optional[Path]) -> t.Optional[Path]:
    if settings_file is not None:
        return settings_file
    default_path = Path.cwd() / DEFAULT_SETTINGS_FILENAME
    return default_path if default_path.exists() else None


def _error_panel(console: Console, title: str, message: str) -> None:
    console.print()
    console.print(Panel.fit(
        f"[bold red]✗ {title}[/bold red]\n\n{escape(message)}",
        title="[red]Error[/red]",
        border_style="red",
    ))


def _parse_all(
    descriptors: t.List[Path], console: Console, salt: t.Optional[str] = None
) -> t.Tuple[t.List[VpnConnection], t.List[t.Tuple[str, str]]]:
    connections: t.List[VpnConnection] = []
    failures: t.List[t.Tuple[str, str]] = []
    for path in descriptors:
        try:
            descriptor = load_descriptor_file(path)
        except (OSError, ValueError) as e:
            failures.append((str(path), str(e)))
            continue
        console.print(f"[dim]{escape(descriptor.summary())}[/dim]")
        for record in descriptor.records:
            conn_id = record.get("VpnConnectionId") or record.get("vpn_connection_id") or str(path)
            try:
                connections.append(VpnConnection.from_record(record, salt=salt))
            except (CloudVpnSimError, ValidationError, ValueError) as e:
                failures.append((conn_id, str(e)))
    return connections, failures


@app.command()
def synthesize(
    descriptors: t.List[Path] = typer.Argument(
        ..., exists=True, readable=True, help="describe-vpn-connections JSON/YAML file(s)"
    ),
    settings_file: t.Optional[Path] = typer.Option(
        None, "--settings", exists=True, readable=True, help=f"Path to {DEFAULT_SETTINGS_FILENAME}"
    ),
    output: t.Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the synthesized device as YAML to this file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Synthesize the gateway device configuration for every VPN connection."""
    console = Console()
    try:
        settings = load_settings(_resolve_settings_file(settings_file))
    except ValueError as e:
        _error_panel(console, "Settings are invalid", str(e))
        raise typer.Exit(code=1)
    setup_logging(settings.log_level.value, verbose=verbose)

    connections, failures = _parse_all(descriptors, console, salt=settings.psk_salt)

    device = DeviceConfiguration(hostname=settings.hostname)
    init_vpn_infrastructure(device)
    if settings.create_tunnel_vrf:
        device.add_vrf(settings.tunnel_vrf)

    warnings = Warnings()
    table = Table(title=f"VPN synthesis for {device.hostname}", show_header=True, header_style="bold cyan")
    table.add_column("Tunnel", style="white")
    table.add_column("Gateway", style="white")
    table.add_column("Outside", style="white")
    table.add_column("Inside", style="white")
    table.add_column("Routing", style="white")

    for conn in connections:
        try:
            apply_to_gateway(
                conn,
                device,
                settings.tunnel_vrf,
                export_policy=settings.export_policy,
                import_policy=settings.import_policy,
                warnings=warnings,
            )
        except CloudVpnSimError as e:
            failures.append((conn.vpn_connection_id, str(e)))
            continue
        routing = "bgp" if conn.is_bgp_connection else "static"
        for _idx, tunnel_id, tunnel in iter_tunnels(conn):
            table.add_row(
                tunnel_id,
                f"{conn.gateway_type.value}:{conn.gateway_id}",
                f"{tunnel.vgw_outside_address} <-> {tunnel.cgw_outside_address}",
                f"{tunnel.vgw_inside_address}/{tunnel.vgw_inside_prefix_length}",
                routing,
            )

    console.print(table)
    for diag in warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(diag.message)}")
    for conn_id, message in failures:
        console.print(f"[red]Failed:[/red] {escape(conn_id)}: {escape(message)}")

    rendered = render_device_yaml(device)
    if output is not None:
        output.write_text(rendered, encoding="utf-8")
        print(f"[green]Wrote device configuration to[/green] {output}")
    else:
        console.print(rendered, markup=False, highlight=False)

    if failures:
        raise typer.Exit(code=1)


@app.command()
def validate(
    descriptors: t.List[Path] = typer.Argument(
        ..., exists=True, readable=True, help="describe-vpn-connections JSON/YAML file(s)"
    ),
):
    """Parse VPN connection descriptors without synthesizing anything.

    Examples:
        cloudvpn-sim validate vpn-connections.json
    """
    console = Console()
    console.print(f"[bold]Validating {len(descriptors)} descriptor file(s)[/bold]")
    connections, failures = _parse_all(descriptors, console)

    if failures:
        _error_panel(
            console,
            "Descriptor validation failed",
            "\n".join(f"  • {conn_id}: {message}" for conn_id, message in failures),
        )
        raise typer.Exit(code=1)

    tunnels = sum(len(c.ipsec_tunnels) for c in connections)
    bgp = sum(1 for c in connections if c.is_bgp_connection)
    console.print()
    console.print(Panel.fit(
        f"[bold green]✓ Descriptors are valid![/bold green]\n\n"
        f"[dim]Summary:[/dim]\n"
        f"  • Connections: {len(connections)} ({bgp} BGP)\n"
        f"  • Tunnels: {tunnels}",
        title="[green]Validation Passed[/green]",
        border_style="green",
    ))


@app.command("init-settings")
def init_settings(
    directory: Path = typer.Option(Path("."), "--dir", file_okay=False, help="Where to write the template"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing settings file"),
):
    """Write a commented settings template."""
    try:
        target = write_settings_template(directory, overwrite=force)
    except FileExistsError as e:
        print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    print(f"[green]Created settings at[/green] {target}")


def main():  # console script entry point
    try:
        app()
    except Exception as e:
        print(f"[red]Error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
