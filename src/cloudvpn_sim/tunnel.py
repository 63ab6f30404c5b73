"""Immutable IPsec tunnel model built once per tunnel at parse time."""

from __future__ import annotations

import hashlib
import ipaddress
import secrets
import typing as t

from pydantic import BaseModel, ConfigDict, Field

from .errors import DescriptorParseError
from .peer_parsers.aws import TunnelElement
from .schema import TunnelOptions

IKE_MODE_MAIN = "main"
IPSEC_PROTOCOL_ESP = "esp"
IPSEC_MODE_TUNNEL = "tunnel"

_PROCESS_SALT = secrets.token_hex(16)


def process_salt() -> str:
    """Salt shared by every digest computed in this process."""
    return _PROCESS_SALT


def hash_pre_shared_key(key: str, salt: str) -> str:
    return hashlib.sha256((key + salt).encode("utf-8")).hexdigest()


def bisect_inside_cidr(
    cidr: str,
) -> t.Tuple[ipaddress.IPv4Address, ipaddress.IPv4Address, int]:
    """Split a point-to-point CIDR into (first host, last host, prefix length).

    /31 and /32 have no network or broadcast address to skip.
    """
    net = ipaddress.ip_network(cidr, strict=False)
    if net.prefixlen >= net.max_prefixlen - 1:
        return net.network_address, net.broadcast_address, net.prefixlen
    return net.network_address + 1, net.broadcast_address - 1, net.prefixlen


class TunnelSpec(BaseModel):
    """Everything needed to build one tunnel: its XML element and its options."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    vpn_connection_id: str
    index: int = Field(..., ge=0)
    element: TunnelElement
    options: TunnelOptions = Field(default_factory=TunnelOptions)

    def inside_cidr(self) -> t.Optional[str]:
        if self.options.tunnel_inside_cidr:
            return self.options.tunnel_inside_cidr
        el = self.element
        if el.vgw_inside_address and el.vgw_inside_prefix_length is not None:
            return f"{el.vgw_inside_address}/{el.vgw_inside_prefix_length}"
        return None


class IpsecTunnel(BaseModel):
    """Negotiation parameters of one tunnel; never mutated after creation.

    The ``ike_*`` lists are wired from the provider options as the provider's
    own gateway does: IKE encryption comes from the phase-2 encryption list,
    IKE authentication from the phase-1 integrity list and IKE PFS from the
    phase-1 DH groups. The ``ipsec_*`` lists all come from phase 2.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    cgw_outside_address: str
    cgw_inside_address: str
    cgw_inside_prefix_length: int
    cgw_bgp_asn: t.Optional[int] = None

    vgw_outside_address: str
    vgw_inside_address: str
    vgw_inside_prefix_length: int
    vgw_bgp_asn: t.Optional[int] = None

    ike_mode: str = IKE_MODE_MAIN
    ike_versions: t.Tuple[str, ...] = ()
    ike_pre_shared_key_hash: t.Optional[str] = Field(None, repr=False)
    ike_auth_protocol: t.Tuple[str, ...]
    ike_encryption_protocol: t.Tuple[str, ...]
    ike_pfs: t.Tuple[str, ...]
    ike_lifetime_seconds: int

    ipsec_protocol: str = IPSEC_PROTOCOL_ESP
    ipsec_auth_protocol: t.Tuple[str, ...]
    ipsec_encryption_protocol: t.Tuple[str, ...]
    ipsec_pfs: t.Tuple[str, ...]
    ipsec_mode: str = IPSEC_MODE_TUNNEL
    ipsec_lifetime_seconds: int

    @classmethod
    def create(cls, spec: TunnelSpec, salt: t.Optional[str] = None) -> "IpsecTunnel":
        """Build a tunnel; the plaintext pre-shared key does not outlive this call."""
        el, opts = spec.element, spec.options

        def missing(what: str) -> DescriptorParseError:
            return DescriptorParseError(
                spec.vpn_connection_id, f"tunnel {spec.index + 1} has no {what}"
            )

        cidr = spec.inside_cidr()
        if cidr is None:
            raise missing("tunnel inside CIDR")
        try:
            vgw_inside, cgw_inside, prefix_length = bisect_inside_cidr(cidr)
        except ValueError:
            raise DescriptorParseError(
                spec.vpn_connection_id,
                f"tunnel {spec.index + 1} has invalid inside CIDR '{cidr}'",
            ) from None

        vgw_outside = opts.outside_ip_address or el.vgw_outside_address
        if not vgw_outside:
            raise missing("virtual private gateway outside address")
        if not el.cgw_outside_address:
            raise missing("customer gateway outside address")

        psk = opts.pre_shared_key or el.pre_shared_key
        psk_hash = None
        if psk:
            psk_hash = hash_pre_shared_key(psk, process_salt() if salt is None else salt)

        return cls(
            cgw_outside_address=el.cgw_outside_address,
            cgw_inside_address=str(cgw_inside),
            cgw_inside_prefix_length=prefix_length,
            cgw_bgp_asn=el.cgw_bgp_asn,
            vgw_outside_address=vgw_outside,
            vgw_inside_address=str(vgw_inside),
            vgw_inside_prefix_length=prefix_length,
            vgw_bgp_asn=el.vgw_bgp_asn,
            ike_versions=opts.ike_versions,
            ike_pre_shared_key_hash=psk_hash,
            ike_auth_protocol=opts.phase1_integrity_algorithms,
            ike_encryption_protocol=opts.phase2_encryption_algorithms,
            ike_pfs=opts.phase1_dh_group_numbers,
            ike_lifetime_seconds=opts.phase1_lifetime_seconds,
            ipsec_auth_protocol=opts.phase2_integrity_algorithms,
            ipsec_encryption_protocol=opts.phase2_encryption_algorithms,
            ipsec_pfs=opts.phase2_dh_group_numbers,
            ipsec_lifetime_seconds=opts.phase2_lifetime_seconds,
        )
