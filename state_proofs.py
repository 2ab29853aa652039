"""
The three verified extractions: a block's state root from its header, an
account's storage root from the state trie, and a slot's value from the
account's storage trie.

Each call is a pure function of its arguments; nothing is cached here.
"""

import logging
from typing import Callable, Optional, Sequence, Tuple

from decode import extract_storage_root, extract_storage_value
from proof_errors import UnverifiableBlock
from rlp_reader import read_fixed32, read_list_header, read_uint, skip_strings
from verify_proof import EMPTY_TRIE_ROOT, keccak256, walk_proof

logger = logging.getLogger(__name__)

# Trusted hash for a block number, or None when the number is unknown.
BlockHashOracle = Callable[[int], Optional[bytes]]

ZERO_VALUE = bytes(32)


def block_state_root(header: bytes, block_hash: BlockHashOracle) -> Tuple[int, bytes]:
    """
    Read (block_number, state_root) from an RLP block header and check the
    header against the trusted hash for that number.

    Header fields, in order: parentHash, ommersHash, miner, stateRoot,
    transactionsRoot, receiptsRoot, logsBloom, difficulty, number, ...
    """
    offset = read_list_header(header, 0)
    offset = skip_strings(header, offset, 3)
    state_root = read_fixed32(header, offset)
    # stateRoot, transactionsRoot, receiptsRoot, logsBloom, difficulty
    offset = skip_strings(header, offset, 5)
    block_number = read_uint(header, offset)

    trusted = block_hash(block_number)
    if trusted is None or trusted != keccak256(header):
        logger.warning("header for block %d does not match a trusted hash", block_number)
        raise UnverifiableBlock(f"header does not hash to the trusted hash of block {block_number}")

    return block_number, state_root


def account_storage_root(state_root: bytes, account: bytes, proof: Sequence[bytes]) -> bytes:
    """
    Storage root of the 20-byte `account` under `state_root`.
    An account missing from the state trie has no storage: EMPTY_TRIE_ROOT.
    """
    result = walk_proof(state_root, keccak256(account), proof)
    if not result.present:
        logger.debug("account %s absent after %d nibbles", account.hex(), result.consumed_nibbles)
        return EMPTY_TRIE_ROOT
    return extract_storage_root(result.value())


def storage_value(storage_root: bytes, slot: bytes, proof: Sequence[bytes]) -> bytes:
    """
    Value of the 32-byte storage `slot` under `storage_root`, left-padded
    to 32 bytes. Slots missing from the trie read as zero.
    """
    result = walk_proof(storage_root, keccak256(slot), proof)
    if not result.present:
        logger.debug("slot %s absent after %d nibbles", slot.hex(), result.consumed_nibbles)
        return ZERO_VALUE
    return extract_storage_value(result.value())
