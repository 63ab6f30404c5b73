"""Minimal simulated device configuration that VPN synthesis writes into.

Only what VPN synthesis touches is modeled: VRFs, interfaces, routing policy
names, IKE/IPsec maps, BGP peers and static routes. Named maps merge by key, so
re-extending with identical content changes nothing. BGP peers and static
routes are plain lists and every extend appends.

A DeviceConfiguration is not synchronized; callers that synthesize several
connections against one device from multiple threads must serialize.
"""

from __future__ import annotations

import typing as t
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .datamodel import (
    IkePhase1Key,
    IkePhase1Policy,
    IkePhase1Proposal,
    IpsecPeerConfig,
    IpsecPhase2Policy,
    IpsecPhase2Proposal,
)
from .schema import validate_cidr, validate_ip_address

_FROZEN = ConfigDict(frozen=True, extra="forbid")


class Vrf(BaseModel):
    model_config = _FROZEN

    name: str


class Interface(BaseModel):
    model_config = _FROZEN

    name: str
    vrf: str
    address: str = Field(..., description="Address with prefix length, e.g. 169.254.10.1/30")
    description: t.Optional[str] = None
    active: bool = True


class StaticRoute(BaseModel):
    model_config = _FROZEN

    network: str
    next_hop_ip: str
    vrf: str
    admin_distance: int = 1

    @field_validator("network")
    @classmethod
    def validate_network(cls, v: str) -> str:
        return validate_cidr(v)

    @field_validator("next_hop_ip")
    @classmethod
    def validate_next_hop_ip(cls, v: str) -> str:
        return validate_ip_address(v)


class BgpPeer(BaseModel):
    model_config = _FROZEN

    peer_address: str
    vrf: str
    local_ip: str
    local_as: t.Optional[int] = None
    remote_as: t.Optional[int] = None
    export_policy: t.Optional[str] = None
    import_policy: t.Optional[str] = None
    description: t.Optional[str] = None


@dataclass
class DeviceConfiguration:
    hostname: str
    vrfs: t.Dict[str, Vrf] = field(default_factory=dict)
    interfaces: t.Dict[str, Interface] = field(default_factory=dict)
    routing_policies: t.List[str] = field(default_factory=list)
    ike_phase1_proposals: t.Dict[str, IkePhase1Proposal] = field(default_factory=dict)
    ike_phase1_keys: t.Dict[str, IkePhase1Key] = field(default_factory=dict)
    ike_phase1_policies: t.Dict[str, IkePhase1Policy] = field(default_factory=dict)
    ipsec_phase2_proposals: t.Dict[str, IpsecPhase2Proposal] = field(default_factory=dict)
    ipsec_phase2_policies: t.Dict[str, IpsecPhase2Policy] = field(default_factory=dict)
    ipsec_peer_configs: t.Dict[str, IpsecPeerConfig] = field(default_factory=dict)
    bgp_peers: t.List[BgpPeer] = field(default_factory=list)
    static_routes: t.List[StaticRoute] = field(default_factory=list)

    # -- lookups -------------------------------------------------------------

    def get_vrf(self, name: str) -> t.Optional[Vrf]:
        return self.vrfs.get(name)

    def get_interface(self, name: str) -> t.Optional[Interface]:
        return self.interfaces.get(name)

    def add_vrf(self, name: str) -> Vrf:
        """Return the named VRF, creating it when absent."""
        vrf = self.vrfs.get(name)
        if vrf is None:
            vrf = self.vrfs[name] = Vrf(name=name)
        return vrf

    def add_routing_policy(self, name: str) -> None:
        if name not in self.routing_policies:
            self.routing_policies.append(name)

    # -- extend-with-map -----------------------------------------------------

    def extend_interfaces(self, interfaces: t.Mapping[str, Interface]) -> None:
        self.interfaces.update(interfaces)

    def extend_ike_phase1_proposals(self, proposals: t.Mapping[str, IkePhase1Proposal]) -> None:
        self.ike_phase1_proposals.update(proposals)

    def extend_ike_phase1_keys(self, keys: t.Mapping[str, IkePhase1Key]) -> None:
        self.ike_phase1_keys.update(keys)

    def extend_ike_phase1_policies(self, policies: t.Mapping[str, IkePhase1Policy]) -> None:
        self.ike_phase1_policies.update(policies)

    def extend_ipsec_phase2_proposals(self, proposals: t.Mapping[str, IpsecPhase2Proposal]) -> None:
        self.ipsec_phase2_proposals.update(proposals)

    def extend_ipsec_phase2_policies(self, policies: t.Mapping[str, IpsecPhase2Policy]) -> None:
        self.ipsec_phase2_policies.update(policies)

    def extend_ipsec_peer_configs(self, peer_configs: t.Mapping[str, IpsecPeerConfig]) -> None:
        self.ipsec_peer_configs.update(peer_configs)

    def extend_bgp_peers(self, peers: t.Iterable[BgpPeer]) -> None:
        self.bgp_peers.extend(peers)

    def extend_static_routes(self, routes: t.Iterable[StaticRoute]) -> None:
        self.static_routes.extend(routes)
