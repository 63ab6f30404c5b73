"""Exception types raised while turning a VPN connection descriptor into device config.

Each error subclasses the builtin it specializes so callers that only know
about ``ValueError`` / ``IndexError`` keep working.
"""

from __future__ import annotations

import typing as t


class CloudVpnSimError(Exception):
    """Base class for all errors raised by cloudvpn_sim."""


class UnknownAlgorithmTokenError(CloudVpnSimError, ValueError):
    """A provider token has no entry in the algorithm vocabulary."""

    def __init__(self, kind: str, token: str):
        self.kind = kind
        self.token = token
        super().__init__(f'No conversion to {kind} for string: "{token}"')


class DescriptorParseError(CloudVpnSimError, ValueError):
    """The customer gateway configuration payload could not be used."""

    def __init__(self, vpn_connection_id: str, reason: str):
        self.vpn_connection_id = vpn_connection_id
        super().__init__(
            f"Could not parse XML for CustomerGatewayConfiguration for vpn connection "
            f"{vpn_connection_id}: {reason}"
        )


class TunnelOptionsIndexError(CloudVpnSimError, IndexError):
    """Tunnel elements and TunnelOptions entries cannot be paired by position."""

    def __init__(self, index: int, length: int, message: t.Optional[str] = None):
        self.index = index
        self.length = length
        super().__init__(message or f"Index {index} is out of bounds for length {length}")

    @classmethod
    def extra_options(cls, tunnels: int, options: int) -> "TunnelOptionsIndexError":
        """More TunnelOptions entries than tunnel elements in the XML."""
        return cls(
            tunnels,
            tunnels,
            f"TunnelOptions entry {tunnels} has no matching ipsec_tunnel element "
            f"({options} TunnelOptions entries for {tunnels} tunnel element(s))",
        )
