"""
Token-weighted voting on historical balances.

A proposal pins a block and the token's storage root at that block; every
vote is then weighted by the voter's token balance at the pinned block, read
through a storage proof. Balances moved after the proposal's block do not
count.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Set

from snapshop import Snapshop
from snapshot_client import map_slot

logger = logging.getLogger(__name__)


class GovernanceError(Exception):
    pass


@dataclass
class Proposal:
    block_number: int
    votes_for: int = 0
    votes_against: int = 0
    voters: Set[bytes] = field(default_factory=set)


class Governance:
    def __init__(self, snapshop: Snapshop, token: bytes, balance_slot: int):
        """
        - token: 20-byte address of an ERC-20 style contract
        - balance_slot: storage slot its `balanceOf` mapping is rooted at
        """
        self.snapshop = snapshop
        self.token = token
        self.balance_slot = balance_slot
        self.proposals: List[Proposal] = []

    def create_proposal(self, header: bytes, account_proof: Sequence[bytes]) -> int:
        block_number, _ = self.snapshop.create_block_snapshot(header)
        self.snapshop.create_account_snapshot(block_number, self.token, account_proof)
        self.proposals.append(Proposal(block_number))
        return len(self.proposals) - 1

    def cast_vote(self, voter: bytes, proposal_id: int, support: bool, storage_proof: Sequence[bytes]) -> int:
        if not 0 <= proposal_id < len(self.proposals):
            raise GovernanceError(f"no proposal {proposal_id}")
        proposal = self.proposals[proposal_id]
        if voter in proposal.voters:
            raise GovernanceError(f"{voter.hex()} already voted on proposal {proposal_id}")

        slot = map_slot(self.balance_slot, voter)
        weight = int.from_bytes(
            self.snapshop.sload_from_snapshot(proposal.block_number, self.token, slot, storage_proof),
            "big",
        )

        proposal.voters.add(voter)
        if support:
            proposal.votes_for += weight
        else:
            proposal.votes_against += weight
        logger.info("proposal %d: %s votes %s with %d", proposal_id, voter.hex(), "for" if support else "against", weight)
        return weight
