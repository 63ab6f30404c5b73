"""Parse the AWS customer gateway configuration XML into normalized tunnel elements.

AWS embeds one ``ipsec_tunnel`` element per tunnel (normally two), each with:
- customer_gateway / vpn_gateway outside and inside addresses
- optional BGP ASNs for both sides
- an ``ike`` block carrying the pre-shared key

The payload comes from a remote service, so the parser refuses DTDs, entity
declarations and external references outright.
"""

from __future__ import annotations

import ipaddress
import typing as t
from xml.etree.ElementTree import Element, ParseError

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import fromstring
from pydantic import BaseModel, ConfigDict, Field

from ..errors import DescriptorParseError

NO_BGP_MARKER = "NoBGP"


class TunnelElement(BaseModel):
    """Fields of one ``ipsec_tunnel`` element that tunnel construction needs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    cgw_outside_address: t.Optional[str] = None
    cgw_inside_address: t.Optional[str] = None
    cgw_inside_prefix_length: t.Optional[int] = None
    cgw_bgp_asn: t.Optional[int] = None
    vgw_outside_address: t.Optional[str] = None
    vgw_inside_address: t.Optional[str] = None
    vgw_inside_prefix_length: t.Optional[int] = None
    vgw_bgp_asn: t.Optional[int] = None
    pre_shared_key: t.Optional[str] = Field(None, repr=False)


class CustomerGatewayDocument(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    is_bgp_connection: bool
    tunnels: t.Tuple[TunnelElement, ...]


def _text(node: t.Optional[Element], path: str) -> t.Optional[str]:
    if node is None:
        return None
    found = node.find(path)
    if found is None or found.text is None:
        return None
    return found.text.strip() or None


def _address(side: t.Optional[Element], path: str, connection_id: str) -> t.Optional[str]:
    value = _text(side, f"{path}/ip_address")
    if value is None:
        return None
    try:
        ipaddress.ip_address(value)
    except ValueError:
        raise DescriptorParseError(connection_id, f"invalid {path} '{value}'") from None
    return value


def _prefix_length(side: t.Optional[Element], connection_id: str) -> t.Optional[int]:
    cidr = _text(side, "tunnel_inside_address/network_cidr")
    if cidr is not None:
        try:
            return int(cidr)
        except ValueError:
            raise DescriptorParseError(connection_id, f"invalid network_cidr '{cidr}'") from None
    mask = _text(side, "tunnel_inside_address/network_mask")
    if mask is not None:
        try:
            return ipaddress.ip_network(f"0.0.0.0/{mask}").prefixlen
        except ValueError:
            raise DescriptorParseError(connection_id, f"invalid network_mask '{mask}'") from None
    return None


def _asn(side: t.Optional[Element], connection_id: str) -> t.Optional[int]:
    asn = _text(side, "bgp/asn")
    if asn is None:
        return None
    try:
        return int(asn)
    except ValueError:
        raise DescriptorParseError(connection_id, f"invalid BGP ASN '{asn}'") from None


def _parse_tunnel(node: Element, connection_id: str) -> TunnelElement:
    cgw = node.find("customer_gateway")
    vgw = node.find("vpn_gateway")
    return TunnelElement(
        cgw_outside_address=_address(cgw, "tunnel_outside_address", connection_id),
        cgw_inside_address=_address(cgw, "tunnel_inside_address", connection_id),
        cgw_inside_prefix_length=_prefix_length(cgw, connection_id),
        cgw_bgp_asn=_asn(cgw, connection_id),
        vgw_outside_address=_address(vgw, "tunnel_outside_address", connection_id),
        vgw_inside_address=_address(vgw, "tunnel_inside_address", connection_id),
        vgw_inside_prefix_length=_prefix_length(vgw, connection_id),
        vgw_bgp_asn=_asn(vgw, connection_id),
        pre_shared_key=_text(node, "ike/pre_shared_key"),
    )


def is_bgp_connection(root: Element) -> bool:
    """BGP unless ``vpn_connection_attributes`` says ``NoBGP``."""
    attrs = next(root.iter("vpn_connection_attributes"), None)
    if attrs is None:
        return True
    return NO_BGP_MARKER not in (attrs.text or "")


def parse(text: str, vpn_connection_id: str) -> CustomerGatewayDocument:
    """Parse the customer gateway configuration of one VPN connection.

    Raises:
        DescriptorParseError: malformed XML, a DTD, an entity declaration,
            an external reference or an unusable address, ASN or prefix
    """
    try:
        root = fromstring(
            text,
            forbid_dtd=True,
            forbid_entities=True,
            forbid_external=True,
        )
    except (ParseError, DefusedXmlException) as e:
        raise DescriptorParseError(vpn_connection_id, repr(e)) from e

    tunnels = tuple(_parse_tunnel(node, vpn_connection_id) for node in root.iter("ipsec_tunnel"))
    return CustomerGatewayDocument(is_bgp_connection=is_bgp_connection(root), tunnels=tunnels)
