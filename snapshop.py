"""
Snapshop: a cache of verified historical state.

A block snapshot stores the state root proven by a block header, an account
snapshot stores the storage root proven against a block snapshot, and a
slot load stores a value proven against an account snapshot. Verification
itself happens in `state_proofs`; this class only decides what a proof is
checked against and remembers the result. Writes overwrite, so repeating a
snapshot is harmless.
"""

import logging
from typing import Dict, Sequence, Tuple

from state_proofs import BlockHashOracle, account_storage_root, block_state_root, storage_value

logger = logging.getLogger(__name__)


class SnapshotMissing(LookupError):
    pass


class Snapshop:
    def __init__(self, block_hash: BlockHashOracle):
        self.block_hash = block_hash
        self.state_roots: Dict[int, bytes] = {}
        self.storage_roots: Dict[Tuple[int, bytes], bytes] = {}
        self.values: Dict[Tuple[int, bytes, bytes], bytes] = {}

    def create_block_snapshot(self, header: bytes) -> Tuple[int, bytes]:
        block_number, state_root = block_state_root(header, self.block_hash)
        self.state_roots[block_number] = state_root
        logger.info("block %d: state root %s", block_number, state_root.hex())
        return block_number, state_root

    def create_account_snapshot(self, block_number: int, account: bytes, proof: Sequence[bytes]) -> bytes:
        state_root = self.state_roots.get(block_number)
        if state_root is None:
            raise SnapshotMissing(f"block {block_number} has no snapshot")

        storage_root = account_storage_root(state_root, account, proof)
        self.storage_roots[(block_number, account)] = storage_root
        logger.info("block %d: account %s storage root %s", block_number, account.hex(), storage_root.hex())
        return storage_root

    def sload_from_snapshot(
        self, block_number: int, account: bytes, slot: bytes, proof: Sequence[bytes]
    ) -> bytes:
        storage_root = self.storage_roots.get((block_number, account))
        if storage_root is None:
            raise SnapshotMissing(f"account {account.hex()} has no snapshot at block {block_number}")

        value = storage_value(storage_root, slot, proof)
        self.values[(block_number, account, slot)] = value
        logger.info("block %d: account %s slot %s = %s", block_number, account.hex(), slot.hex(), value.hex())
        return value
