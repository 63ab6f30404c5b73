"""Tests for settings loading, descriptor files and the CLI"""

import json

import pytest
import yaml
from typer.testing import CliRunner

from conftest import make_cgw_xml, make_record, make_tunnel_options

from cloudvpn_sim.cli import app
from cloudvpn_sim.config_loader import (
    load_descriptor_file,
    load_settings,
    write_settings_template,
)
from cloudvpn_sim.config_template import DEFAULT_SETTINGS_FILENAME
from cloudvpn_sim.schema import LogLevel

runner = CliRunner()


@pytest.fixture
def descriptor_path(tmp_path):
    path = tmp_path / "vpn-connections.json"
    path.write_text(json.dumps({"VpnConnections": [make_record()]}), encoding="utf-8")
    return path


class TestSettings:
    def test_defaults_without_file(self):
        settings = load_settings(None)
        assert settings.tunnel_vrf == "default"
        assert settings.psk_salt is None

    def test_template_round_trip(self, tmp_path):
        path = write_settings_template(tmp_path)
        assert path.name == DEFAULT_SETTINGS_FILENAME
        settings = load_settings(path)
        assert settings.export_policy == "~vpn~to~backbone~export~policy~"
        assert settings.import_policy is None
        assert settings.log_level is LogLevel.WARNING

    def test_template_not_overwritten(self, tmp_path):
        write_settings_template(tmp_path)
        with pytest.raises(FileExistsError):
            write_settings_template(tmp_path)

    def test_env_expansion(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SIM_SALT", "pepper")
        path = tmp_path / "s.yaml"
        path.write_text("psk_salt: ${SIM_SALT}\ntunnel_vrf: tenant\n", encoding="utf-8")
        settings = load_settings(path)
        assert settings.psk_salt == "pepper"
        assert settings.tunnel_vrf == "tenant"

    def test_missing_env_vars_reported_together(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SIM_A", raising=False)
        monkeypatch.delenv("SIM_B", raising=False)
        path = tmp_path / "s.yaml"
        path.write_text("hostname: ${SIM_A}\npsk_salt: ${SIM_B}\n", encoding="utf-8")
        with pytest.raises(ValueError, match="SIM_A, SIM_B"):
            load_settings(path)

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "s.yaml"
        path.write_text("tunnel_vfr: tenant\n", encoding="utf-8")
        with pytest.raises(ValueError, match="tunnel_vfr"):
            load_settings(path)


class TestDescriptorFile:
    def test_describe_output(self, descriptor_path):
        descriptor = load_descriptor_file(descriptor_path)
        assert [r["VpnConnectionId"] for r in descriptor.records] == ["vpn-0a1b2c3d"]
        assert "vpn-0a1b2c3d" in descriptor.summary()

    def test_single_record_yaml(self, tmp_path):
        path = tmp_path / "one.yaml"
        path.write_text(yaml.safe_dump(make_record()), encoding="utf-8")
        assert len(load_descriptor_file(path).records) == 1

    def test_garbage(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ValueError, match="expected VPN connection record"):
            load_descriptor_file(path)


class TestCli:
    def test_validate(self, descriptor_path):
        result = runner.invoke(app, ["validate", str(descriptor_path)])
        assert result.exit_code == 0, result.output
        assert "Validation Passed" in result.output

    def test_validate_reports_failures(self, tmp_path):
        path = tmp_path / "bad.json"
        record = make_record(tunnel_options=[make_tunnel_options()])
        path.write_text(json.dumps([record]), encoding="utf-8")
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "out of bounds" in result.output

    def test_malformed_address_does_not_abort(self, tmp_path):
        bad = make_record(VpnConnectionId="vpn-bad")
        bad["CustomerGatewayConfiguration"] = make_cgw_xml().replace("169.254.10.1", "not-an-ip")
        path = tmp_path / "mixed.json"
        path.write_text(json.dumps([bad, make_record()]), encoding="utf-8")

        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "vpn-bad" in result.output

        out = tmp_path / "device.yaml"
        result = runner.invoke(app, ["synthesize", str(path), "-o", str(out)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        device = yaml.safe_load(out.read_text(encoding="utf-8"))
        assert "vpn-vpn-0a1b2c3d-1" in device["interfaces"]
        assert not any("vpn-bad" in name for name in device["interfaces"])

    def test_synthesize_writes_yaml(self, descriptor_path, tmp_path):
        out = tmp_path / "device.yaml"
        result = runner.invoke(app, ["synthesize", str(descriptor_path), "-o", str(out)])
        assert result.exit_code == 0, result.output
        device = yaml.safe_load(out.read_text(encoding="utf-8"))
        assert "vrf-vpn-underlay" in device["vrfs"]
        assert "vpn-vpn-0a1b2c3d-1" in device["interfaces"]
        assert len(device["bgp_peers"]) == 2
        assert "psk-one" not in out.read_text(encoding="utf-8")

    def test_init_settings(self, tmp_path):
        result = runner.invoke(app, ["init-settings", "--dir", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / DEFAULT_SETTINGS_FILENAME).exists()
