import pytest

from cloudvpn_sim.device import DeviceConfiguration
from cloudvpn_sim.synthesis import init_vpn_infrastructure

TEST_SALT = "test-salt"


def _tunnel_xml(cgw_outside, vgw_outside, cgw_inside, vgw_inside, psk, bgp=True):
    cgw_bgp = "<bgp><asn>65000</asn><hold_time>30</hold_time></bgp>" if bgp else ""
    vgw_bgp = "<bgp><asn>64512</asn><hold_time>30</hold_time></bgp>" if bgp else ""
    return f"""
  <ipsec_tunnel>
    <customer_gateway>
      <tunnel_outside_address><ip_address>{cgw_outside}</ip_address></tunnel_outside_address>
      <tunnel_inside_address>
        <ip_address>{cgw_inside}</ip_address>
        <network_mask>255.255.255.252</network_mask>
        <network_cidr>30</network_cidr>
      </tunnel_inside_address>
      {cgw_bgp}
    </customer_gateway>
    <vpn_gateway>
      <tunnel_outside_address><ip_address>{vgw_outside}</ip_address></tunnel_outside_address>
      <tunnel_inside_address>
        <ip_address>{vgw_inside}</ip_address>
        <network_mask>255.255.255.252</network_mask>
        <network_cidr>30</network_cidr>
      </tunnel_inside_address>
      {vgw_bgp}
    </vpn_gateway>
    <ike>
      <authentication_protocol>sha1</authentication_protocol>
      <encryption_protocol>aes-128-cbc</encryption_protocol>
      <lifetime>28800</lifetime>
      <perfect_forward_secrecy>group2</perfect_forward_secrecy>
      <mode>main</mode>
      <pre_shared_key>{psk}</pre_shared_key>
    </ike>
    <ipsec>
      <protocol>esp</protocol>
      <authentication_protocol>hmac-sha1-96</authentication_protocol>
      <encryption_protocol>aes-128-cbc</encryption_protocol>
      <lifetime>3600</lifetime>
      <perfect_forward_secrecy>group2</perfect_forward_secrecy>
      <mode>tunnel</mode>
    </ipsec>
  </ipsec_tunnel>"""


def make_cgw_xml(bgp=True, connection_id="vpn-0a1b2c3d"):
    attrs = "" if bgp else "<vpn_connection_attributes>NoBGPVPNConnection</vpn_connection_attributes>"
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<vpn_connection id="{connection_id}">
  <customer_gateway_id>cgw-11112222</customer_gateway_id>
  <vpn_gateway_id>vgw-33334444</vpn_gateway_id>
  <vpn_connection_type>ipsec.1</vpn_connection_type>
  {attrs}
  {_tunnel_xml("198.51.100.10", "203.0.113.1", "169.254.10.2", "169.254.10.1", "psk-one", bgp)}
  {_tunnel_xml("198.51.100.10", "203.0.113.2", "169.254.20.2", "169.254.20.1", "psk-two", bgp)}
</vpn_connection>
"""


def make_tunnel_options(**overrides):
    opts = {
        "Phase1EncryptionAlgorithms": [{"Value": "AES128"}],
        "Phase1IntegrityAlgorithms": [{"Value": "SHA2-256"}],
        "Phase1DHGroupNumbers": [{"Value": 14}],
        "Phase2EncryptionAlgorithms": [{"Value": "AES256"}],
        "Phase2IntegrityAlgorithms": [{"Value": "SHA1"}],
        "Phase2DHGroupNumbers": [{"Value": 2}],
        "IkeVersions": [{"Value": "ikev2"}],
    }
    opts.update(overrides)
    return opts


def make_record(bgp=True, static_routes_only=False, routes=(), tunnel_options=None, **overrides):
    if tunnel_options is None:
        tunnel_options = [make_tunnel_options(), make_tunnel_options()]
    record = {
        "VpnConnectionId": "vpn-0a1b2c3d",
        "CustomerGatewayId": "cgw-11112222",
        "VpnGatewayId": "vgw-33334444",
        "CustomerGatewayConfiguration": make_cgw_xml(bgp=bgp),
        "Routes": [{"DestinationCidrBlock": r, "Source": "Static", "State": "available"} for r in routes],
        "VgwTelemetry": [
            {"OutsideIpAddress": "203.0.113.1", "Status": "UP", "AcceptedRouteCount": 0},
            {"OutsideIpAddress": "203.0.113.2", "Status": "DOWN", "AcceptedRouteCount": 0},
        ],
        "Options": {"StaticRoutesOnly": static_routes_only, "TunnelOptions": tunnel_options},
        "Type": "ipsec.1",
        "State": "available",
    }
    record.update(overrides)
    return record


@pytest.fixture
def record():
    return make_record()


@pytest.fixture
def static_record():
    return make_record(bgp=False, static_routes_only=True, routes=["10.10.0.0/16", "10.20.0.0/16"])


@pytest.fixture
def device():
    dev = DeviceConfiguration(hostname="vgw-sim")
    init_vpn_infrastructure(dev)
    dev.add_vrf("tenant")
    return dev

