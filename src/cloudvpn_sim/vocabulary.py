"""Canonical IPsec/IKE algorithm vocabulary and provider-token converters.

The cloud provider describes tunnel crypto with free-form tokens such as
``"AES128"``, ``"SHA2-256"`` or ``"14"``. Every converter here is a lookup in a
single mapping table; a token missing from the table is an error, except for
the encapsulation mode which is reported as a warning and left unset.
"""

from __future__ import annotations

import typing as t
from enum import Enum

from .diagnostics import Warnings
from .errors import UnknownAlgorithmTokenError


# ============================================================================
# Enums for controlled vocabularies
# ============================================================================

class EncryptionAlgorithm(str, Enum):
    AES_128_CBC = "aes-128-cbc"
    AES_256_CBC = "aes-256-cbc"
    AES_128_GCM = "aes-128-gcm"
    AES_256_GCM = "aes-256-gcm"


class IkeHashingAlgorithm(str, Enum):
    SHA1 = "sha1"
    SHA_256 = "sha-256"
    SHA_384 = "sha-384"
    SHA_512 = "sha-512"


class IpsecAuthenticationAlgorithm(str, Enum):
    HMAC_SHA1_96 = "hmac-sha1-96"
    HMAC_SHA_256_128 = "hmac-sha-256-128"
    HMAC_SHA_384 = "hmac-sha-384"
    HMAC_SHA_512 = "hmac-sha-512"


class DiffieHellmanGroup(str, Enum):
    GROUP2 = "group2"
    GROUP5 = "group5"
    GROUP14 = "group14"
    GROUP15 = "group15"
    GROUP16 = "group16"
    GROUP17 = "group17"
    GROUP18 = "group18"
    GROUP19 = "group19"
    GROUP20 = "group20"
    GROUP21 = "group21"
    GROUP22 = "group22"
    GROUP23 = "group23"
    GROUP24 = "group24"


class IpsecProtocol(str, Enum):
    ESP = "esp"


class IpsecEncapsulationMode(str, Enum):
    TUNNEL = "tunnel"
    TRANSPORT = "transport"


class IkeAuthenticationMethod(str, Enum):
    PRE_SHARED_KEYS = "pre-shared-keys"


class IkeKeyType(str, Enum):
    PRE_SHARED_KEY_UNENCRYPTED = "pre-shared-key-unencrypted"


# ============================================================================
# Provider token tables
# ============================================================================

ENCRYPTION_TOKENS: t.Mapping[str, EncryptionAlgorithm] = {
    "aes-128-cbc": EncryptionAlgorithm.AES_128_CBC,
    "AES128": EncryptionAlgorithm.AES_128_CBC,
    "AES256": EncryptionAlgorithm.AES_256_CBC,
    "AES128-GCM-16": EncryptionAlgorithm.AES_128_GCM,
    "AES256-GCM-16": EncryptionAlgorithm.AES_256_GCM,
}

IKE_HASHING_TOKENS: t.Mapping[str, IkeHashingAlgorithm] = {
    "sha1": IkeHashingAlgorithm.SHA1,
    "SHA1": IkeHashingAlgorithm.SHA1,
    "SHA2-256": IkeHashingAlgorithm.SHA_256,
    "SHA2-384": IkeHashingAlgorithm.SHA_384,
    "SHA2-512": IkeHashingAlgorithm.SHA_512,
}

IPSEC_AUTHENTICATION_TOKENS: t.Mapping[str, IpsecAuthenticationAlgorithm] = {
    "hmac-sha1-96": IpsecAuthenticationAlgorithm.HMAC_SHA1_96,
    "SHA1": IpsecAuthenticationAlgorithm.HMAC_SHA1_96,
    "SHA2-256": IpsecAuthenticationAlgorithm.HMAC_SHA_256_128,
    "SHA2-384": IpsecAuthenticationAlgorithm.HMAC_SHA_384,
    "SHA2-512": IpsecAuthenticationAlgorithm.HMAC_SHA_512,
}

# Bare group numbers only; "group2" style tokens are not provider vocabulary.
DIFFIE_HELLMAN_TOKENS: t.Mapping[str, DiffieHellmanGroup] = {
    g.value[len("group"):]: g for g in DiffieHellmanGroup
}

IPSEC_PROTOCOL_TOKENS: t.Mapping[str, IpsecProtocol] = {
    "esp": IpsecProtocol.ESP,
}

ENCAPSULATION_MODE_TOKENS: t.Mapping[str, IpsecEncapsulationMode] = {
    "tunnel": IpsecEncapsulationMode.TUNNEL,
    "transport": IpsecEncapsulationMode.TRANSPORT,
}

_E = t.TypeVar("_E", bound=Enum)


def _lookup(table: t.Mapping[str, _E], kind: str, token: str) -> _E:
    try:
        return table[token]
    except (KeyError, TypeError):
        raise UnknownAlgorithmTokenError(kind, str(token)) from None


# ============================================================================
# Public API
# ============================================================================

def to_encryption_algorithm(token: str) -> EncryptionAlgorithm:
    return _lookup(ENCRYPTION_TOKENS, "EncryptionAlgorithm", token)


def to_ike_hashing_algorithm(token: str) -> IkeHashingAlgorithm:
    return _lookup(IKE_HASHING_TOKENS, "IkeHashingAlgorithm", token)


def to_ipsec_authentication_algorithm(token: str) -> IpsecAuthenticationAlgorithm:
    return _lookup(IPSEC_AUTHENTICATION_TOKENS, "IpsecAuthenticationAlgorithm", token)


def to_diffie_hellman_group(token: str) -> DiffieHellmanGroup:
    return _lookup(DIFFIE_HELLMAN_TOKENS, "DiffieHellmanGroup", token)


def to_ipsec_protocol(token: str) -> IpsecProtocol:
    return _lookup(IPSEC_PROTOCOL_TOKENS, "IpsecProtocol", token)


def to_ipsec_encapsulation_mode(
    token: str, warnings: Warnings
) -> t.Optional[IpsecEncapsulationMode]:
    """Convert an encapsulation mode token, warning instead of failing.

    Returns ``None`` for an unrecognized token after recording one warning.
    """
    mode = ENCAPSULATION_MODE_TOKENS.get(token)
    if mode is None:
        warnings.red_flag(
            f"No IPsec encapsulation mode for string '{token}'",
            tag="unknown-encapsulation-mode",
            token=str(token),
        )
    return mode
