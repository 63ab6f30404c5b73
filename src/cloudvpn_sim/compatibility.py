"""Phase-1 proposal compatibility.

Two proposals are compatible when their authentication method, DH group,
encryption list and hashing list are equal, lists compared in order. This is
an exact-match check only: a peer offering a superset or a reordered list of
algorithms is reported incompatible even though a real IKE negotiation could
settle on a common choice. Names and lifetimes are not compared.
"""

from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:
    from .datamodel import IkePhase1Proposal


def compatible(a: "IkePhase1Proposal", b: "IkePhase1Proposal") -> bool:
    return (
        a.authentication_method == b.authentication_method
        and a.diffie_hellman_group == b.diffie_hellman_group
        and a.encryption_algorithms == b.encryption_algorithms
        and a.hashing_algorithms == b.hashing_algorithms
    )
