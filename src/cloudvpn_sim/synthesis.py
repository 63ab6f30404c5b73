"""Wire a parsed VPN connection into a simulated gateway device.

For every tunnel this creates an underlay and an overlay interface, the
Phase-1 key, proposals and policy, the Phase-2 proposals and policies, one
peer config per Phase-2 policy, and either a BGP peer or static routes. All
artifacts of a connection are collected first and merged into the device in
one step at the end.
"""

from __future__ import annotations

import itertools
import logging
import typing as t

from .connection import VpnConnection
from .datamodel import (
    IkePhase1Key,
    IkePhase1Policy,
    IkePhase1Proposal,
    IpsecPeerConfig,
    IpsecPhase2Policy,
    IpsecPhase2Proposal,
)
from .device import BgpPeer, DeviceConfiguration, Interface, StaticRoute
from .diagnostics import Warnings
from .proposals import phase1_proposals, phase2_proposals_and_policies
from .tunnel_iterator import (
    iter_tunnels,
    vpn_external_interface_name,
    vpn_tunnel_interface_name,
)
from .vocabulary import IkeKeyType

log = logging.getLogger(__name__)

VPN_UNDERLAY_VRF_NAME = "vrf-vpn-underlay"
VPN_TO_BACKBONE_EXPORT_POLICY_NAME = "~vpn~to~backbone~export~policy~"


def init_vpn_infrastructure(device: DeviceConfiguration) -> None:
    """Create the underlay VRF and backbone export policy VPN tunnels rely on."""
    device.add_vrf(VPN_UNDERLAY_VRF_NAME)
    device.add_routing_policy(VPN_TO_BACKBONE_EXPORT_POLICY_NAME)


class _Artifacts:
    """Per-connection accumulator merged into the device once."""

    def __init__(self) -> None:
        self.interfaces: t.Dict[str, Interface] = {}
        self.ike_phase1_proposals: t.Dict[str, IkePhase1Proposal] = {}
        self.ike_phase1_keys: t.Dict[str, IkePhase1Key] = {}
        self.ike_phase1_policies: t.Dict[str, IkePhase1Policy] = {}
        self.ipsec_phase2_proposals: t.Dict[str, IpsecPhase2Proposal] = {}
        self.ipsec_phase2_policies: t.Dict[str, IpsecPhase2Policy] = {}
        self.ipsec_peer_configs: t.Dict[str, IpsecPeerConfig] = {}
        self.bgp_peers: t.List[BgpPeer] = []
        self.static_routes: t.List[StaticRoute] = []

    def merge_into(self, device: DeviceConfiguration) -> None:
        device.extend_interfaces(self.interfaces)
        device.extend_ike_phase1_proposals(self.ike_phase1_proposals)
        device.extend_ike_phase1_keys(self.ike_phase1_keys)
        device.extend_ike_phase1_policies(self.ike_phase1_policies)
        device.extend_ipsec_phase2_proposals(self.ipsec_phase2_proposals)
        device.extend_ipsec_phase2_policies(self.ipsec_phase2_policies)
        device.extend_ipsec_peer_configs(self.ipsec_peer_configs)
        device.extend_bgp_peers(self.bgp_peers)
        device.extend_static_routes(self.static_routes)


def apply_to_gateway(
    connection: VpnConnection,
    device: DeviceConfiguration,
    tunnel_vrf: str,
    export_policy: t.Optional[str] = None,
    import_policy: t.Optional[str] = None,
    warnings: t.Optional[Warnings] = None,
) -> None:
    """Synthesize all IPsec/IKE, interface and routing config for one connection.

    If either the underlay VRF or ``tunnel_vrf`` is missing from the device, one
    warning is recorded and the device is left untouched.

    Raises:
        UnknownAlgorithmTokenError: a tunnel carries an unsupported algorithm
            token; nothing from this connection is merged
    """
    if warnings is None:
        warnings = Warnings()

    if device.get_vrf(VPN_UNDERLAY_VRF_NAME) is None:
        warnings.red_flag(
            f"Underlay VRF does not exist on gateway {device.hostname}",
            tag="missing-vrf",
            vrf=VPN_UNDERLAY_VRF_NAME,
        )
        return
    if device.get_vrf(tunnel_vrf) is None:
        warnings.red_flag(
            f"Tunnel VRF does not exist on gateway {device.hostname}",
            tag="missing-vrf",
            vrf=tunnel_vrf,
        )
        return

    out = _Artifacts()
    for _idx, tunnel_id, tunnel in iter_tunnels(connection):
        external_iface = vpn_external_interface_name(tunnel_id)
        vpn_iface = vpn_tunnel_interface_name(tunnel_id)

        out.interfaces[external_iface] = Interface(
            name=external_iface,
            vrf=VPN_UNDERLAY_VRF_NAME,
            address=f"{tunnel.vgw_outside_address}/32",
            description=f"IPSec tunnel {tunnel_id}",
        )
        out.interfaces[vpn_iface] = Interface(
            name=vpn_iface,
            vrf=tunnel_vrf,
            address=f"{tunnel.vgw_inside_address}/{tunnel.vgw_inside_prefix_length}",
            description=f"VPN {tunnel_id}",
        )

        # Phase 1
        p1 = phase1_proposals(tunnel_id, tunnel)
        for proposal in p1:
            if proposal.name in out.ike_phase1_proposals:
                # Repeated option values expand to the same name; the map keeps one.
                warnings.red_flag(
                    f"Duplicate IKE phase 1 proposal {proposal.name} for tunnel {tunnel_id}",
                    tag="duplicate-proposal",
                    tunnel=tunnel_id,
                )
            out.ike_phase1_proposals[proposal.name] = proposal
        key = IkePhase1Key(
            key_type=IkeKeyType.PRE_SHARED_KEY_UNENCRYPTED,
            key_hash=tunnel.ike_pre_shared_key_hash,
            remote_identity=tunnel.cgw_outside_address,
            local_interface=external_iface,
        )
        out.ike_phase1_keys[tunnel_id] = key
        out.ike_phase1_policies[tunnel_id] = IkePhase1Policy(
            name=tunnel_id,
            ike_phase1_key=key,
            ike_phase1_proposals=tuple(p.name for p in p1),
            remote_identity=tunnel.cgw_outside_address,
            local_interface=external_iface,
        )

        # Phase 2
        p2_proposals, p2_policies = phase2_proposals_and_policies(
            tunnel_id, tunnel, warnings, counter=itertools.count()
        )
        for proposal in p2_proposals:
            out.ipsec_phase2_proposals[proposal.name] = proposal
        for policy in p2_policies:
            out.ipsec_phase2_policies[policy.name] = policy
            peer_config_name = f"{policy.name}-peer_config"
            out.ipsec_peer_configs[peer_config_name] = IpsecPeerConfig(
                name=peer_config_name,
                tunnel_interface=vpn_iface,
                ike_phase1_policy=tunnel_id,
                ipsec_policy=policy.name,
                source_interface=external_iface,
                local_address=tunnel.vgw_outside_address,
                destination_address=tunnel.cgw_outside_address,
            )

        # Routing
        if connection.is_bgp_connection:
            out.bgp_peers.append(
                BgpPeer(
                    peer_address=tunnel.cgw_inside_address,
                    vrf=tunnel_vrf,
                    local_ip=tunnel.vgw_inside_address,
                    local_as=tunnel.vgw_bgp_asn,
                    remote_as=tunnel.cgw_bgp_asn,
                    export_policy=export_policy,
                    import_policy=import_policy,
                    description=f"BGP {tunnel_id}",
                )
            )
        if connection.static_routes_only:
            out.static_routes.extend(
                StaticRoute(
                    network=prefix,
                    next_hop_ip=tunnel.cgw_inside_address,
                    vrf=tunnel_vrf,
                )
                for prefix in connection.routes
            )

    out.merge_into(device)
    log.info(
        "Applied VPN connection %s to %s: %d tunnel(s), %d phase-1 proposal(s), %d peer config(s)",
        connection.vpn_connection_id,
        device.hostname,
        len(connection.ipsec_tunnels),
        len(out.ike_phase1_proposals),
        len(out.ipsec_peer_configs),
    )
