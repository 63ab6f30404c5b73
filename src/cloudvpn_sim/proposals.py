"""Expand a tunnel's algorithm lists into every Phase-1 and Phase-2 proposal.

Expansion keeps source-list order and does not de-duplicate: a token repeated
in the provider options yields a repeated proposal.
"""

from __future__ import annotations

import itertools
import typing as t

from .datamodel import IkePhase1Proposal, IpsecPhase2Policy, IpsecPhase2Proposal
from .diagnostics import Warnings
from .tunnel import IpsecTunnel
from .vocabulary import (
    IkeAuthenticationMethod,
    to_diffie_hellman_group,
    to_encryption_algorithm,
    to_ike_hashing_algorithm,
    to_ipsec_authentication_algorithm,
    to_ipsec_encapsulation_mode,
    to_ipsec_protocol,
)


def phase1_proposal_name(tunnel_id: str, dh: str, encryption: str, hashing: str) -> str:
    return f"{tunnel_id}-{dh}-{encryption}-{hashing}"


def phase1_proposals(tunnel_id: str, tunnel: IpsecTunnel) -> t.List[IkePhase1Proposal]:
    """All Phase-1 proposals for one tunnel, DH outermost and encryption innermost.

    The hashing algorithms are taken from the tunnel's IPsec authentication
    list, matching how the provider pairs its phase-1 offers.
    """
    auth_method = (
        IkeAuthenticationMethod.PRE_SHARED_KEYS if tunnel.ike_pre_shared_key_hash else None
    )
    proposals = []
    for dh, hashing, encryption in itertools.product(
        tunnel.ike_pfs, tunnel.ipsec_auth_protocol, tunnel.ike_encryption_protocol
    ):
        proposals.append(
            IkePhase1Proposal(
                name=phase1_proposal_name(tunnel_id, dh, encryption, hashing),
                authentication_method=auth_method,
                diffie_hellman_group=to_diffie_hellman_group(dh),
                encryption_algorithms=(to_encryption_algorithm(encryption),),
                hashing_algorithms=(to_ike_hashing_algorithm(hashing),),
                lifetime_seconds=tunnel.ike_lifetime_seconds,
            )
        )
    return proposals


def phase2_proposals_and_policies(
    tunnel_id: str,
    tunnel: IpsecTunnel,
    warnings: Warnings,
    counter: t.Optional[t.Iterator[int]] = None,
) -> t.Tuple[t.List[IpsecPhase2Proposal], t.List[IpsecPhase2Policy]]:
    """Phase-2 proposals (auth x encryption) and one policy per PFS group.

    Proposals and policies share one name counter, proposals first, so names
    run ``{tunnel_id}-0 .. {tunnel_id}-N`` across both kinds.
    """
    if counter is None:
        counter = itertools.count()
    protocols = frozenset({to_ipsec_protocol(tunnel.ipsec_protocol)})
    mode = to_ipsec_encapsulation_mode(tunnel.ipsec_mode, warnings)

    proposals = [
        IpsecPhase2Proposal(
            name=f"{tunnel_id}-{next(counter)}",
            authentication_algorithms=(to_ipsec_authentication_algorithm(auth),),
            encryption_algorithms=(to_encryption_algorithm(encryption),),
            protocols=protocols,
            ipsec_encapsulation_mode=mode,
        )
        for auth, encryption in itertools.product(
            tunnel.ipsec_auth_protocol, tunnel.ipsec_encryption_protocol
        )
    ]
    proposal_names = tuple(p.name for p in proposals)

    policies = [
        IpsecPhase2Policy(
            name=f"{tunnel_id}-{next(counter)}",
            pfs_key_group=to_diffie_hellman_group(dh),
            proposals=proposal_names,
        )
        for dh in tunnel.ipsec_pfs
    ]
    return proposals, policies
