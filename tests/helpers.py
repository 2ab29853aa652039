import json
import os
from typing import Dict, List, Sequence

import rlp
from trie import HexaryTrie

from verify_proof import keccak256

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")


def load_fixture(name: str) -> dict:
    with open(os.path.join(FIXTURES, name), "r") as f:
        return json.load(f)


def to_nibbles(b: bytes) -> List[int]:
    n = []
    for byte in b:
        n.append((byte >> 4) & 0xF)
        n.append(byte & 0xF)
    return n


def left_aligned(nibbles: Sequence[int]) -> int:
    v = 0
    for i, nib in enumerate(nibbles):
        v |= nib << (252 - 4 * i)
    return v


def hp_encode(nibbles: Sequence[int], is_leaf: bool) -> bytes:
    flags = 2 if is_leaf else 0
    if len(nibbles) % 2:
        n = [flags | 1] + list(nibbles)
    else:
        n = [flags, 0] + list(nibbles)
    return bytes((n[i] << 4) | n[i + 1] for i in range(0, len(n), 2))


def rlp_uint(n: int) -> bytes:
    return rlp.encode(n.to_bytes((n.bit_length() + 7) // 8, "big"))


def leaf(nibbles: Sequence[int], value: bytes) -> bytes:
    return rlp.encode([hp_encode(nibbles, True), value])


def extension(nibbles: Sequence[int], child: bytes) -> bytes:
    return rlp.encode([hp_encode(nibbles, False), keccak256(child)])


def branch(children: Dict[int, bytes], value: bytes = b"") -> bytes:
    slots = [keccak256(children[i]) if i in children else b"" for i in range(16)]
    return rlp.encode(slots + [value])


def account_rlp(storage_root: bytes, nonce: int = 1, balance: int = 0, code_hash: bytes = None) -> bytes:
    return rlp.encode(
        [
            nonce.to_bytes((nonce.bit_length() + 7) // 8, "big"),
            balance.to_bytes((balance.bit_length() + 7) // 8, "big"),
            storage_root,
            code_hash if code_hash is not None else keccak256(b""),
        ]
    )


def secure_trie(items: Dict[bytes, bytes]) -> HexaryTrie:
    # Keys are hashed before insertion, as in the state and storage tries.
    t = HexaryTrie(db={})
    for key, value in items.items():
        t[keccak256(key)] = value
    return t


def prove(t: HexaryTrie, key: bytes) -> List[bytes]:
    return [rlp.encode(node) for node in t.get_proof(keccak256(key))]
