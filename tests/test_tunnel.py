"""Tests for IpsecTunnel construction"""

import hashlib

import pytest

from conftest import TEST_SALT

from cloudvpn_sim.errors import DescriptorParseError
from cloudvpn_sim.peer_parsers.aws import TunnelElement
from cloudvpn_sim.schema import TunnelOptions
from cloudvpn_sim.tunnel import (
    IpsecTunnel,
    TunnelSpec,
    bisect_inside_cidr,
    hash_pre_shared_key,
    process_salt,
)


def _element(**overrides):
    fields = dict(
        cgw_outside_address="198.51.100.10",
        vgw_outside_address="203.0.113.1",
        vgw_inside_address="169.254.10.1",
        vgw_inside_prefix_length=30,
        cgw_bgp_asn=65000,
        vgw_bgp_asn=64512,
        pre_shared_key="xml-key",
    )
    fields.update(overrides)
    return TunnelElement(**fields)


def _spec(element=None, **options):
    return TunnelSpec(
        vpn_connection_id="vpn-1",
        index=0,
        element=element or _element(),
        options=TunnelOptions.model_validate(options),
    )


class TestBisect:
    def test_slash_30(self):
        first, last, plen = bisect_inside_cidr("10.0.0.0/30")
        assert (str(first), str(last), plen) == ("10.0.0.1", "10.0.0.2", 30)

    def test_host_bits_ignored(self):
        first, last, plen = bisect_inside_cidr("169.254.10.1/30")
        assert (str(first), str(last)) == ("169.254.10.1", "169.254.10.2")

    def test_slash_31(self):
        first, last, plen = bisect_inside_cidr("10.0.0.4/31")
        assert (str(first), str(last), plen) == ("10.0.0.4", "10.0.0.5", 31)


class TestIpsecTunnel:
    def test_addresses_from_inside_cidr_option(self):
        tunnel = IpsecTunnel.create(_spec(TunnelInsideCidr="10.0.0.0/30"), salt=TEST_SALT)
        assert tunnel.vgw_inside_address == "10.0.0.1"
        assert tunnel.cgw_inside_address == "10.0.0.2"
        assert tunnel.vgw_inside_prefix_length == 30
        assert tunnel.cgw_inside_prefix_length == 30

    def test_addresses_from_element(self):
        tunnel = IpsecTunnel.create(_spec(), salt=TEST_SALT)
        assert tunnel.vgw_inside_address == "169.254.10.1"
        assert tunnel.cgw_inside_address == "169.254.10.2"
        assert tunnel.vgw_outside_address == "203.0.113.1"
        assert tunnel.cgw_outside_address == "198.51.100.10"
        assert tunnel.vgw_bgp_asn == 64512
        assert tunnel.cgw_bgp_asn == 65000

    def test_outside_address_option_wins(self):
        tunnel = IpsecTunnel.create(_spec(OutsideIpAddress="192.0.2.7"), salt=TEST_SALT)
        assert tunnel.vgw_outside_address == "192.0.2.7"

    def test_fixed_fields(self):
        tunnel = IpsecTunnel.create(_spec(), salt=TEST_SALT)
        assert tunnel.ike_mode == "main"
        assert tunnel.ipsec_protocol == "esp"
        assert tunnel.ipsec_mode == "tunnel"

    def test_algorithm_lists_cross_wired(self):
        tunnel = IpsecTunnel.create(
            _spec(
                Phase1EncryptionAlgorithms=["AES128"],
                Phase1IntegrityAlgorithms=["SHA2-384"],
                Phase1DHGroupNumbers=[19],
                Phase2EncryptionAlgorithms=["AES256-GCM-16"],
                Phase2IntegrityAlgorithms=["SHA2-512"],
                Phase2DHGroupNumbers=[5],
                Phase1LifetimeSeconds=14400,
            ),
            salt=TEST_SALT,
        )
        assert tunnel.ike_encryption_protocol == ("AES256-GCM-16",)
        assert tunnel.ike_auth_protocol == ("SHA2-384",)
        assert tunnel.ike_pfs == ("19",)
        assert tunnel.ipsec_encryption_protocol == ("AES256-GCM-16",)
        assert tunnel.ipsec_auth_protocol == ("SHA2-512",)
        assert tunnel.ipsec_pfs == ("5",)
        assert tunnel.ike_lifetime_seconds == 14400
        assert tunnel.ipsec_lifetime_seconds == 3600

    def test_key_is_salted_digest(self):
        tunnel = IpsecTunnel.create(_spec(PreSharedKey="option-key"), salt=TEST_SALT)
        expected = hashlib.sha256(b"option-keytest-salt").hexdigest()
        assert tunnel.ike_pre_shared_key_hash == expected
        assert "option-key" not in tunnel.model_dump_json()

    def test_key_falls_back_to_element(self):
        tunnel = IpsecTunnel.create(_spec(), salt=TEST_SALT)
        assert tunnel.ike_pre_shared_key_hash == hash_pre_shared_key("xml-key", TEST_SALT)

    def test_process_salt_is_stable(self):
        a = IpsecTunnel.create(_spec())
        b = IpsecTunnel.create(_spec())
        assert a.ike_pre_shared_key_hash == b.ike_pre_shared_key_hash
        assert a.ike_pre_shared_key_hash == hash_pre_shared_key("xml-key", process_salt())

    def test_no_key(self):
        tunnel = IpsecTunnel.create(_spec(_element(pre_shared_key=None)), salt=TEST_SALT)
        assert tunnel.ike_pre_shared_key_hash is None

    def test_missing_inside_cidr(self):
        spec = _spec(_element(vgw_inside_address=None))
        with pytest.raises(DescriptorParseError, match="tunnel inside CIDR"):
            IpsecTunnel.create(spec)

    def test_missing_customer_outside_address(self):
        spec = _spec(_element(cgw_outside_address=None))
        with pytest.raises(DescriptorParseError, match="customer gateway outside address"):
            IpsecTunnel.create(spec)

    def test_bad_inside_prefix_length(self):
        element = _element(vgw_inside_prefix_length=99)
        with pytest.raises(DescriptorParseError, match="invalid inside CIDR '169.254.10.1/99'"):
            IpsecTunnel.create(_spec(element))
