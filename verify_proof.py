import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import rlp
from Crypto.Hash import keccak

from decode import PATH_NIBBLES, decode_hex_prefix, extract_nibbles
from proof_errors import (
    IncompleteProof,
    InvalidNodeHash,
    ProofPathTooLong,
    ProofPathTooShort,
    ProofTooLong,
)
from rlp_reader import read_fixed32, read_list_header, read_string_header, skip_strings

logger = logging.getLogger(__name__)

# This is the RLP hash of an empty trie.
EMPTY_TRIE_ROOT = keccak.new(digest_bits=256, data=rlp.encode(b"")).digest()


def keccak256(data: bytes) -> bytes:
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


@dataclass(frozen=True)
class ProofResult:
    """
    Outcome of a proof walk. `node` and `value_offset` locate the second
    element of the matching leaf; both are None when the proof shows the
    key is absent.
    """

    consumed_nibbles: int
    node: Optional[bytes] = None
    value_offset: Optional[int] = None

    @property
    def present(self) -> bool:
        return self.node is not None

    def value(self) -> bytes:
        if self.node is None:
            raise LookupError("the proof shows the key is absent")
        start, length = read_string_header(self.node, self.value_offset)
        return bytes(self.node[start : start + length])


def walk_proof(root_hash: bytes, path: bytes, proof_nodes: Sequence[bytes]) -> ProofResult:
    """
    Follow `path` (a 32-byte hashed key) from `root_hash` through the
    root-first `proof_nodes`, checking every node against the hash its
    parent committed to.

    Returns a ProofResult that is either present (the leaf's value) or
    absent (an empty branch slot or a diverging partial path).
    Raises:
      - ProofError subclasses on any malformed, tampered, short or overlong proof
    """

    # 1. An empty trie proves absence without any nodes.
    if root_hash == EMPTY_TRIE_ROOT and len(proof_nodes) == 0:
        return ProofResult(consumed_nibbles=0)

    expected = root_hash
    consumed = 0
    found = False
    leaf_node = None
    leaf_offset = None

    for depth, node in enumerate(proof_nodes):
        if found:
            raise ProofTooLong(f"node {depth} follows a terminal node")
        if keccak256(node) != expected:
            raise InvalidNodeHash(f"node {depth} does not hash to {expected.hex()}")

        offset = read_list_header(node, 0)

        # Shape is inferred, not tagged: a branch has 17 elements and a
        # leaf/extension has 2, so anything left after two strings means
        # branch. The element count itself is never checked.
        if skip_strings(node, offset, 2) < len(node):
            # --- BRANCH NODE ---
            if consumed >= PATH_NIBBLES:
                raise ProofPathTooLong(f"branch at node {depth} after {consumed} nibbles")
            nib = extract_nibbles(path, consumed, 1) >> 252
            consumed += 1

            slot = skip_strings(node, offset, nib)
            _, length = read_string_header(node, slot)
            if length == 0:
                # No child at this path -> key not in trie
                logger.debug("absent: empty branch slot %x at node %d", nib, depth)
                found = True
            else:
                expected = read_fixed32(node, slot)

        else:
            # --- LEAF / EXTENSION NODE ---
            partial, count, is_leaf, value_offset = decode_hex_prefix(node, offset)
            if consumed + count > PATH_NIBBLES:
                raise ProofPathTooLong(
                    f"node {depth} extends the path to {consumed + count} nibbles"
                )

            if partial != extract_nibbles(path, consumed, count):
                # Key diverges from the partial path -> key not in trie
                logger.debug("absent: path diverges at node %d after %d nibbles", depth, consumed)
                found = True
            elif is_leaf:
                if consumed + count != PATH_NIBBLES:
                    raise ProofPathTooShort(
                        f"leaf at node {depth} ends after {consumed + count} nibbles"
                    )
                consumed += count
                leaf_node, leaf_offset = node, value_offset
                found = True
            else:
                expected = read_fixed32(node, value_offset)
                consumed += count

    # Backstop; the per-node checks above already stop an overlong walk.
    if consumed > PATH_NIBBLES:
        raise ProofPathTooLong(f"proof consumed {consumed} nibbles")
    if not found:
        raise IncompleteProof(f"proof of {len(proof_nodes)} nodes ends after {consumed} nibbles")

    return ProofResult(consumed_nibbles=consumed, node=leaf_node, value_offset=leaf_offset)


def verify_eth_trie_proof(
    root_hash: bytes,
    key: bytes,
    proof_nodes: Sequence[bytes],
) -> Optional[bytes]:
    """
    Verify an Ethereum MPT proof against the given root hash and key.
    - root_hash: 32-byte trie root hash
    - key: the 32-byte trie key (for state: keccak(address), for storage: keccak(slot))
    - proof_nodes: list of RLP-encoded nodes (bytes), root first

    Returns:
      - value (bytes) if the key exists in the trie
      - None if the key is not present
    """
    result = walk_proof(root_hash, key, proof_nodes)
    if not result.present:
        return None
    return result.value()
