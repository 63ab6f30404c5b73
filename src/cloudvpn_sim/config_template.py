"""
Embedded YAML settings template for cloudvpn-sim.

The template lives in code so it always matches SimulatorSettings in schema.py.
When 'cloudvpn-sim init-settings' runs without an existing settings file, this
template is written to 'cloudvpn-sim.settings.yaml' in the current directory.
"""

# Schema version aligned with schema.py
SCHEMA_VERSION = 1

DEFAULT_SETTINGS_FILENAME = "cloudvpn-sim.settings.yaml"

DEFAULT_SETTINGS_TEMPLATE = """\
# cloudvpn-sim settings
# Generated from embedded template (schema version {version})
#
# Environment variables: Use ${{VAR}} syntax (e.g., ${{PSK_SALT}})

version: {version}

# Hostname of the simulated VPN gateway device
hostname: "vpn-gateway"

# VRF that holds the overlay (vpn-*) interfaces, BGP peers and static routes.
# The underlay VRF is always 'vrf-vpn-underlay'.
tunnel_vrf: "default"
create_tunnel_vrf: true

# Optional routing policy names attached to every BGP peer
export_policy: "~vpn~to~backbone~export~policy~"
import_policy: ""

# Salt used when hashing pre-shared keys. Leave empty for a random salt per run;
# set it to get stable digests across runs.
psk_salt: ""

# debug | info | warning | error
log_level: "warning"
"""


def render_template() -> str:
    return DEFAULT_SETTINGS_TEMPLATE.format(version=SCHEMA_VERSION)
