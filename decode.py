from typing import Tuple

from proof_errors import InvalidHPHeader, ProofPathTooLong
from rlp_reader import (
    read_big_endian_int,
    read_fixed32,
    read_list_header,
    read_string_header,
    read_uint,
    skip_strings,
)

# Paths are keccak256 digests: 32 bytes, 64 nibbles. Partial paths and path
# windows are both kept left-aligned in a 256-bit integer so they compare
# with ==.
PATH_NIBBLES = 64

_MASK_256 = (1 << 256) - 1


def decode_hex_prefix(buffer: bytes, offset: int) -> Tuple[int, int, bool, int]:
    """
    Decode the compact (hex-prefix) path of a leaf or extension node.
    Returns (nibbles, nibble_count, is_leaf, next_offset).

    The flag byte's high nibble is (is_leaf ? 2 : 0) | (is_odd ? 1 : 0).
    When the path is odd its low nibble is the first path nibble, otherwise
    it is filler.
    """
    start, length = read_string_header(buffer, offset)
    if length == 0:
        raise InvalidHPHeader(f"empty hex-prefix path at offset {offset}")

    flags = read_big_endian_int(buffer, start, 1)
    if flags & 0xC0:
        raise InvalidHPHeader(f"hex-prefix flag byte {flags:#04x} has its top bits set")
    is_leaf = (flags & 0x20) != 0
    odd = (flags & 0x10) != 0

    count = 2 * (length - 1) + (1 if odd else 0)
    if count > PATH_NIBBLES:
        raise ProofPathTooLong(f"partial path of {count} nibbles")

    nibbles = read_big_endian_int(buffer, start + 1, length - 1)
    if odd:
        nibbles |= (flags & 0x0F) << (8 * (length - 1))
    return nibbles << (256 - 4 * count), count, is_leaf, start + length


def extract_nibbles(path: bytes, start: int, count: int) -> int:
    # Callers keep start + count <= 64.
    value = (int.from_bytes(path, "big") << (4 * start)) & _MASK_256
    shift = 256 - 4 * count
    return (value >> shift) << shift


def extract_storage_root(account: bytes) -> bytes:
    # account = rlp([nonce, balance, storageRoot, codeHash])
    offset = read_list_header(account, 0)
    return read_fixed32(account, skip_strings(account, offset, 2))


def extract_storage_value(value: bytes) -> bytes:
    # Storage leaves hold rlp(value) with leading zeros stripped.
    return read_uint(value, 0).to_bytes(32, "big")
