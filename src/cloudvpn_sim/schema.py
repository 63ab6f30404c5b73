"""Pydantic models for VPN connection descriptors and simulator settings.

Two kinds of input are validated here:

- Provider records, as returned by ``aws ec2 describe-vpn-connections``. These
  accept the provider's PascalCase keys as well as snake_case field names and
  ignore keys we do not model.
- Simulator settings, a small YAML file owned by the user. Unknown keys are
  rejected so typos surface immediately.

Usage:
    from cloudvpn_sim.schema import VpnConnectionRecord

    record = VpnConnectionRecord.model_validate(json_dict)
"""

from __future__ import annotations

import ipaddress
import typing as t
from enum import Enum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .config_template import SCHEMA_VERSION
from .errors import TunnelOptionsIndexError


# ============================================================================
# Enums for controlled vocabularies
# ============================================================================

class GatewayType(str, Enum):
    """Which kind of provider gateway terminates the connection."""
    TRANSIT = "transit"
    VPN = "vpn"


# ============================================================================
# Reusable validators
# ============================================================================

def validate_cidr(v: str) -> str:
    """Validate CIDR notation."""
    try:
        ipaddress.ip_network(v, strict=False)
        return v
    except ValueError as e:
        raise ValueError(f"Invalid CIDR '{v}': {e}")


def validate_ip_address(v: str) -> str:
    """Validate IP address."""
    try:
        ipaddress.ip_address(v)
        return v
    except ValueError as e:
        raise ValueError(f"Invalid IP address '{v}': {e}")


def default_if_null(model: t.Type[BaseModel], v: t.Any, info: ValidationInfo) -> t.Any:
    """Treat an explicit JSON null the same as an absent key."""
    if v is None:
        return model.model_fields[info.field_name].get_default(call_default_factory=True)
    return v


def unwrap_values(v: t.Any) -> t.Any:
    """Flatten ``[{"Value": x}, ...]`` into ``("x", ...)``.

    Plain scalars are accepted too so hand-written descriptors can use
    ``["AES128", "AES256"]``. Values are kept as strings because DH groups
    arrive as integers in provider JSON.
    """
    if v is None or isinstance(v, (str, bytes)):
        return v
    out = []
    for item in v:
        if isinstance(item, dict):
            item = item.get("Value", item.get("value"))
        out.append("" if item is None else str(item))
    return tuple(out)


# ============================================================================
# Provider record models (bottom-up)
# ============================================================================

_PROVIDER_CONFIG = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

DEFAULT_IKE_VERSIONS = ("ikev1", "ikev2")
DEFAULT_ENCRYPTION_ALGORITHMS = ("AES128", "AES256", "AES128-GCM-16", "AES256-GCM-16")
DEFAULT_INTEGRITY_ALGORITHMS = ("SHA1", "SHA2-256", "SHA2-384", "SHA2-512")
DEFAULT_PHASE1_DH_GROUPS = (
    "2", "14", "15", "16", "17", "18", "19", "20", "21", "22", "23", "24",
)
DEFAULT_PHASE2_DH_GROUPS = (
    "2", "5", "14", "15", "16", "17", "18", "19", "20", "21", "22", "23", "24",
)
DEFAULT_PHASE1_LIFETIME_SECONDS = 28800
DEFAULT_PHASE2_LIFETIME_SECONDS = 3600


class TunnelOptions(BaseModel):
    """Per-tunnel crypto options; absent lists fall back to provider defaults."""

    model_config = _PROVIDER_CONFIG

    outside_ip_address: t.Optional[str] = Field(None, alias="OutsideIpAddress")
    tunnel_inside_cidr: t.Optional[str] = Field(None, alias="TunnelInsideCidr")
    pre_shared_key: t.Optional[str] = Field(None, alias="PreSharedKey", repr=False)
    ike_versions: t.Tuple[str, ...] = Field(DEFAULT_IKE_VERSIONS, alias="IkeVersions")
    phase1_encryption_algorithms: t.Tuple[str, ...] = Field(
        DEFAULT_ENCRYPTION_ALGORITHMS, alias="Phase1EncryptionAlgorithms"
    )
    phase1_integrity_algorithms: t.Tuple[str, ...] = Field(
        DEFAULT_INTEGRITY_ALGORITHMS, alias="Phase1IntegrityAlgorithms"
    )
    phase1_dh_group_numbers: t.Tuple[str, ...] = Field(
        DEFAULT_PHASE1_DH_GROUPS, alias="Phase1DHGroupNumbers"
    )
    phase2_encryption_algorithms: t.Tuple[str, ...] = Field(
        DEFAULT_ENCRYPTION_ALGORITHMS, alias="Phase2EncryptionAlgorithms"
    )
    phase2_integrity_algorithms: t.Tuple[str, ...] = Field(
        DEFAULT_INTEGRITY_ALGORITHMS, alias="Phase2IntegrityAlgorithms"
    )
    phase2_dh_group_numbers: t.Tuple[str, ...] = Field(
        DEFAULT_PHASE2_DH_GROUPS, alias="Phase2DHGroupNumbers"
    )
    phase1_lifetime_seconds: int = Field(
        DEFAULT_PHASE1_LIFETIME_SECONDS, alias="Phase1LifetimeSeconds", gt=0
    )
    phase2_lifetime_seconds: int = Field(
        DEFAULT_PHASE2_LIFETIME_SECONDS, alias="Phase2LifetimeSeconds", gt=0
    )

    @field_validator(
        "ike_versions",
        "phase1_encryption_algorithms",
        "phase1_integrity_algorithms",
        "phase1_dh_group_numbers",
        "phase2_encryption_algorithms",
        "phase2_integrity_algorithms",
        "phase2_dh_group_numbers",
        mode="before",
    )
    @classmethod
    def _unwrap(cls, v: t.Any, info: ValidationInfo) -> t.Any:
        return unwrap_values(default_if_null(cls, v, info))

    @field_validator("phase1_lifetime_seconds", "phase2_lifetime_seconds", mode="before")
    @classmethod
    def _null_lifetime(cls, v: t.Any, info: ValidationInfo) -> t.Any:
        return default_if_null(cls, v, info)

    @field_validator("outside_ip_address")
    @classmethod
    def _validate_outside_ip(cls, v: t.Optional[str]) -> t.Optional[str]:
        return validate_ip_address(v) if v else v

    @field_validator("tunnel_inside_cidr")
    @classmethod
    def _validate_inside_cidr(cls, v: t.Optional[str]) -> t.Optional[str]:
        return validate_cidr(v) if v else v


class Options(BaseModel):
    model_config = _PROVIDER_CONFIG

    static_routes_only: bool = Field(False, alias="StaticRoutesOnly")
    tunnel_options: t.Tuple[TunnelOptions, ...] = Field((), alias="TunnelOptions")

    @field_validator("static_routes_only", "tunnel_options", mode="before")
    @classmethod
    def _null_is_default(cls, v: t.Any, info: ValidationInfo) -> t.Any:
        return default_if_null(cls, v, info)

    def tunnel_option(self, index: int) -> TunnelOptions:
        """Return the options paired with tunnel element ``index``."""
        if not 0 <= index < len(self.tunnel_options):
            raise TunnelOptionsIndexError(index, len(self.tunnel_options))
        return self.tunnel_options[index]


class VpnRoute(BaseModel):
    model_config = _PROVIDER_CONFIG

    destination_cidr_block: str = Field(..., alias="DestinationCidrBlock")
    source: t.Optional[str] = Field(None, alias="Source")
    state: t.Optional[str] = Field(None, alias="State")

    @field_validator("destination_cidr_block")
    @classmethod
    def _validate_prefix(cls, v: str) -> str:
        return validate_cidr(v)


class VgwTelemetry(BaseModel):
    """Tunnel status snapshot; carried through untouched."""

    model_config = _PROVIDER_CONFIG

    outside_ip_address: t.Optional[str] = Field(None, alias="OutsideIpAddress")
    status: t.Optional[str] = Field(None, alias="Status")
    status_message: t.Optional[str] = Field(None, alias="StatusMessage")
    accepted_route_count: t.Optional[int] = Field(None, alias="AcceptedRouteCount")
    last_status_change: t.Optional[str] = Field(None, alias="LastStatusChange")


class VpnConnectionRecord(BaseModel):
    """One entry of ``VpnConnections`` in describe-vpn-connections output."""

    model_config = _PROVIDER_CONFIG

    vpn_connection_id: str = Field(..., alias="VpnConnectionId", min_length=1)
    customer_gateway_id: str = Field(..., alias="CustomerGatewayId", min_length=1)
    transit_gateway_id: t.Optional[str] = Field(None, alias="TransitGatewayId")
    vpn_gateway_id: t.Optional[str] = Field(None, alias="VpnGatewayId")
    customer_gateway_configuration: str = Field(
        ..., alias="CustomerGatewayConfiguration", repr=False
    )
    routes: t.Tuple[VpnRoute, ...] = Field((), alias="Routes")
    vgw_telemetry: t.Tuple[VgwTelemetry, ...] = Field((), alias="VgwTelemetry")
    options: Options = Field(default_factory=Options, alias="Options")

    @field_validator("routes", "vgw_telemetry", "options", mode="before")
    @classmethod
    def _null_is_default(cls, v: t.Any, info: ValidationInfo) -> t.Any:
        return default_if_null(cls, v, info)

    @model_validator(mode="after")
    def _exactly_one_gateway(self) -> "VpnConnectionRecord":
        if bool(self.transit_gateway_id) == bool(self.vpn_gateway_id):
            raise ValueError(
                f"VPN connection {self.vpn_connection_id} must name exactly one of "
                "TransitGatewayId or VpnGatewayId"
            )
        return self

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.TRANSIT if self.transit_gateway_id else GatewayType.VPN

    @property
    def gateway_id(self) -> str:
        return t.cast(str, self.transit_gateway_id or self.vpn_gateway_id)


# ============================================================================
# Simulator settings
# ============================================================================

class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class SimulatorSettings(BaseModel):
    """User-owned settings for a synthesis run."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    version: int = Field(1, description="Settings schema version")
    hostname: str = Field("vpn-gateway", min_length=1, description="Simulated device hostname")
    tunnel_vrf: str = Field("default", min_length=1, description="VRF holding overlay interfaces")
    create_tunnel_vrf: bool = Field(
        True, description="Create tunnel_vrf on the simulated device before synthesis"
    )
    export_policy: t.Optional[str] = Field(
        None, description="Routing policy applied to routes advertised to the customer"
    )
    import_policy: t.Optional[str] = Field(
        None, description="Routing policy applied to routes learned from the customer"
    )
    psk_salt: t.Optional[str] = Field(
        None, repr=False, description="Salt for pre-shared key digests; random per run when unset"
    )
    log_level: LogLevel = Field(LogLevel.WARNING)

    @field_validator("export_policy", "import_policy", "psk_salt")
    @classmethod
    def _blank_is_unset(cls, v: t.Optional[str]) -> t.Optional[str]:
        return v or None

    @field_validator("version")
    @classmethod
    def _known_version(cls, v: int) -> int:
        if v != SCHEMA_VERSION:
            raise ValueError(f"Unsupported settings version {v}; expected {SCHEMA_VERSION}")
        return v


# ============================================================================
# Public API
# ============================================================================

def validate_record(record: dict) -> VpnConnectionRecord:
    """Validate one provider connection record.

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return VpnConnectionRecord.model_validate(record)


def validate_settings(settings: dict) -> SimulatorSettings:
    """Validate a settings dictionary loaded from YAML.

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return SimulatorSettings.model_validate(settings)
