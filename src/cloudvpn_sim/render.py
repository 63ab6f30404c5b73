from __future__ import annotations

import typing as t

import yaml

from .device import DeviceConfiguration


def _dump_map(models: t.Mapping[str, t.Any]) -> t.Dict[str, t.Any]:
    return {name: m.model_dump(mode="json", exclude={"name"}) for name, m in models.items()}


def _sorted_set_fields(obj: t.Any) -> t.Any:
    """Sort lists that came from frozensets so YAML output is stable."""
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if k == "protocols" and isinstance(v, list):
                v = sorted(v)
            out[k] = _sorted_set_fields(v)
        return out
    if isinstance(obj, list):
        return [_sorted_set_fields(v) for v in obj]
    return obj


def render_device(device: DeviceConfiguration) -> t.Dict[str, t.Any]:
    """Plain-data view of a device, safe for yaml.safe_dump."""
    return _sorted_set_fields(
        {
            "hostname": device.hostname,
            "vrfs": sorted(device.vrfs),
            "routing_policies": list(device.routing_policies),
            "interfaces": _dump_map(device.interfaces),
            "ike_phase1_proposals": _dump_map(device.ike_phase1_proposals),
            "ike_phase1_keys": {
                name: key.model_dump(mode="json") for name, key in device.ike_phase1_keys.items()
            },
            "ike_phase1_policies": _dump_map(device.ike_phase1_policies),
            "ipsec_phase2_proposals": _dump_map(device.ipsec_phase2_proposals),
            "ipsec_phase2_policies": _dump_map(device.ipsec_phase2_policies),
            "ipsec_peer_configs": _dump_map(device.ipsec_peer_configs),
            "bgp_peers": [p.model_dump(mode="json") for p in device.bgp_peers],
            "static_routes": [r.model_dump(mode="json") for r in device.static_routes],
        }
    )


def render_device_yaml(device: DeviceConfiguration) -> str:
    return yaml.safe_dump(render_device(device), sort_keys=False)
