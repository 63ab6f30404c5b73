"""Immutable IKE/IPsec negotiation objects attached to a device configuration.

Policies refer to proposals by name, never by object, so every name listed in
a policy must resolve in the matching proposal map of the same device.
"""

from __future__ import annotations

import typing as t

from pydantic import BaseModel, ConfigDict, Field

from .compatibility import compatible
from .vocabulary import (
    DiffieHellmanGroup,
    EncryptionAlgorithm,
    IkeAuthenticationMethod,
    IkeHashingAlgorithm,
    IkeKeyType,
    IpsecAuthenticationAlgorithm,
    IpsecEncapsulationMode,
    IpsecProtocol,
)

_FROZEN = ConfigDict(frozen=True, extra="forbid")


class IkePhase1Proposal(BaseModel):
    model_config = _FROZEN

    name: str
    authentication_method: t.Optional[IkeAuthenticationMethod] = None
    diffie_hellman_group: DiffieHellmanGroup
    encryption_algorithms: t.Tuple[EncryptionAlgorithm, ...]
    hashing_algorithms: t.Tuple[IkeHashingAlgorithm, ...]
    lifetime_seconds: t.Optional[int] = None

    def is_compatible_with(self, other: "IkePhase1Proposal") -> bool:
        return compatible(self, other)


class IkePhase1Key(BaseModel):
    """Pre-shared key reference; only the salted digest is ever stored."""

    model_config = _FROZEN

    key_type: IkeKeyType = IkeKeyType.PRE_SHARED_KEY_UNENCRYPTED
    key_hash: t.Optional[str] = Field(None, repr=False)
    remote_identity: str
    local_interface: str


class IkePhase1Policy(BaseModel):
    model_config = _FROZEN

    name: str
    ike_phase1_key: IkePhase1Key
    ike_phase1_proposals: t.Tuple[str, ...]
    remote_identity: str
    local_interface: str


class IpsecPhase2Proposal(BaseModel):
    model_config = _FROZEN

    name: str
    authentication_algorithms: t.Tuple[IpsecAuthenticationAlgorithm, ...]
    encryption_algorithms: t.Tuple[EncryptionAlgorithm, ...]
    protocols: t.FrozenSet[IpsecProtocol]
    ipsec_encapsulation_mode: t.Optional[IpsecEncapsulationMode] = None


class IpsecPhase2Policy(BaseModel):
    model_config = _FROZEN

    name: str
    pfs_key_group: DiffieHellmanGroup
    proposals: t.Tuple[str, ...]


class IpsecPeerConfig(BaseModel):
    """Static peer binding one Phase-1 policy and one Phase-2 policy to a tunnel."""

    model_config = _FROZEN

    name: str
    tunnel_interface: str
    ike_phase1_policy: str
    ipsec_policy: str
    source_interface: str
    local_address: str
    destination_address: str
