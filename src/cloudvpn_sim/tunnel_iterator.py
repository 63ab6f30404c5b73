"""Centralized tunnel naming and iteration.

Single source of truth for how a connection's tunnels map to tunnel ids and
device interface names. Synthesis, rendering and the CLI summary all go
through these helpers so the names never drift apart.

The mapping is:
- Tunnels keep document order from the customer gateway configuration
- Tunnel ids are ``{vpn_connection_id}-{n}`` with ``n`` starting at 1
- Each tunnel gets an underlay interface ``external-{tunnel_id}`` and an
  overlay interface ``vpn-{tunnel_id}``
"""

from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:
    from .connection import VpnConnection
    from .tunnel import IpsecTunnel


def vpn_tunnel_id(vpn_connection_id: str, index: int) -> str:
    """Tunnel id for the zero-based tunnel ``index``."""
    return f"{vpn_connection_id}-{index + 1}"


def vpn_external_interface_name(tunnel_id: str) -> str:
    return f"external-{tunnel_id}"


def vpn_tunnel_interface_name(tunnel_id: str) -> str:
    return f"vpn-{tunnel_id}"


def iter_tunnels(connection: "VpnConnection") -> t.Iterator[t.Tuple[int, str, "IpsecTunnel"]]:
    """Iterate over a connection's tunnels with their ids.

    Yields:
        Tuple of (index, tunnel_id, tunnel) in document order

    Example:
        >>> for idx, tunnel_id, tunnel in iter_tunnels(conn):
        ...     print(tunnel_id, vpn_tunnel_interface_name(tunnel_id))
        vpn-0a1b2c3d-1 vpn-vpn-0a1b2c3d-1
        vpn-0a1b2c3d-2 vpn-vpn-0a1b2c3d-2
    """
    for idx, tunnel in enumerate(connection.ipsec_tunnels):
        yield idx, vpn_tunnel_id(connection.vpn_connection_id, idx), tunnel


def get_tunnel_interface_mapping(connection: "VpnConnection") -> t.Dict[str, t.Tuple[str, str]]:
    """Map tunnel id -> (external interface name, vpn interface name)."""
    mapping = {}
    for _idx, tunnel_id, _tunnel in iter_tunnels(connection):
        mapping[tunnel_id] = (
            vpn_external_interface_name(tunnel_id),
            vpn_tunnel_interface_name(tunnel_id),
        )
    return mapping
