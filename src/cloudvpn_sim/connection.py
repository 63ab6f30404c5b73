"""A parsed VPN connection: validated record plus one IpsecTunnel per tunnel."""

from __future__ import annotations

import logging
import typing as t

from pydantic import BaseModel, ConfigDict

from .errors import TunnelOptionsIndexError
from .peer_parsers import aws as aws_parser
from .schema import GatewayType, VgwTelemetry, VpnConnectionRecord, validate_record
from .tunnel import IpsecTunnel, TunnelSpec

log = logging.getLogger(__name__)


class VpnConnection(BaseModel):
    """Everything synthesis needs from one provider VPN connection.

    Holds no plaintext pre-shared keys: tunnels keep only the salted digest.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    vpn_connection_id: str
    customer_gateway_id: str
    gateway_type: GatewayType
    gateway_id: str
    is_bgp_connection: bool
    ipsec_tunnels: t.Tuple[IpsecTunnel, ...]
    routes: t.Tuple[str, ...] = ()
    static_routes_only: bool = False
    vgw_telemetry: t.Tuple[VgwTelemetry, ...] = ()

    @classmethod
    def from_record(
        cls,
        record: t.Union[VpnConnectionRecord, t.Mapping[str, t.Any]],
        salt: t.Optional[str] = None,
    ) -> "VpnConnection":
        """Parse and validate one record.

        Raises:
            pydantic.ValidationError: missing ids or not exactly one gateway id
            DescriptorParseError: unusable customer gateway configuration
            TunnelOptionsIndexError: tunnel elements and TunnelOptions differ in count
        """
        if not isinstance(record, VpnConnectionRecord):
            record = validate_record(dict(record))

        conn_id = record.vpn_connection_id
        doc = aws_parser.parse(record.customer_gateway_configuration, conn_id)
        options = record.options
        # Pairing is positional; the first index without a partner is fatal.
        if len(options.tunnel_options) > len(doc.tunnels):
            raise TunnelOptionsIndexError.extra_options(
                len(doc.tunnels), len(options.tunnel_options)
            )
        if len(options.tunnel_options) < len(doc.tunnels):
            n = len(options.tunnel_options)
            raise TunnelOptionsIndexError(n, n)

        tunnels = tuple(
            IpsecTunnel.create(
                TunnelSpec(
                    vpn_connection_id=conn_id,
                    index=idx,
                    element=element,
                    options=options.tunnel_option(idx),
                ),
                salt=salt,
            )
            for idx, element in enumerate(doc.tunnels)
        )
        log.debug(
            "Parsed VPN connection %s: %d tunnel(s), bgp=%s",
            conn_id,
            len(tunnels),
            doc.is_bgp_connection,
        )
        return cls(
            vpn_connection_id=conn_id,
            customer_gateway_id=record.customer_gateway_id,
            gateway_type=record.gateway_type,
            gateway_id=record.gateway_id,
            is_bgp_connection=doc.is_bgp_connection,
            ipsec_tunnels=tunnels,
            routes=tuple(r.destination_cidr_block for r in record.routes),
            static_routes_only=options.static_routes_only,
            vgw_telemetry=record.vgw_telemetry,
        )
