"""
Bounds-checked, one-header-at-a-time RLP reading.

Nothing here decodes a whole structure. Callers walk a node by reading a
header, using the returned offsets, and moving on, so a proof node is never
materialised as nested Python lists. Every offset is checked against the
buffer before any byte is read.

See https://ethereum.org/en/developers/docs/data-structures-and-encoding/rlp/
"""

from typing import Tuple

from proof_errors import ExpectedList, MalformedRLP, OutOfBounds, OversizedInteger


def read_big_endian_int(buffer: bytes, offset: int, size: int) -> int:
    """
    Read `size` bytes at `offset` as an unsigned big-endian integer.
    Raises:
      - OversizedInteger if size > 32
      - OutOfBounds if the bytes are not all inside the buffer
    """
    if size > 32:
        raise OversizedInteger(f"integer of {size} bytes does not fit in 32")
    if offset < 0 or size < 0 or offset + size > len(buffer):
        raise OutOfBounds(
            f"read of {size} bytes at offset {offset} exceeds buffer of {len(buffer)}"
        )
    return int.from_bytes(buffer[offset : offset + size], "big")


def read_string_header(buffer: bytes, offset: int) -> Tuple[int, int]:
    """
    Read the header of an RLP string at `offset`.
    Returns (content_start, content_length).
    """
    prefix = read_big_endian_int(buffer, offset, 1)

    if prefix < 0x80:
        # The byte is its own content.
        start, length = offset, 1
    elif prefix <= 0xB7:
        start, length = offset + 1, prefix - 0x80
    elif prefix <= 0xBF:
        n = prefix - 0xB7
        length = read_big_endian_int(buffer, offset + 1, n)
        start = offset + 1 + n
    else:
        raise MalformedRLP(f"expected a string at offset {offset}, got list prefix {prefix:#x}")

    if start + length > len(buffer):
        raise MalformedRLP(
            f"string at offset {offset} declares {length} bytes, buffer has {len(buffer) - start}"
        )
    return start, length


def read_list_header(buffer: bytes, offset: int) -> int:
    """
    Read the header of an RLP list at `offset` and return where its
    content starts. The declared length is only checked against the buffer.
    """
    prefix = read_big_endian_int(buffer, offset, 1)
    if prefix <= 0xBF:
        raise ExpectedList(f"expected a list at offset {offset}, got prefix {prefix:#x}")

    if prefix < 0xF8:
        start, length = offset + 1, prefix - 0xC0
    else:
        n = prefix - 0xF7
        length = read_big_endian_int(buffer, offset + 1, n)
        start = offset + 1 + n

    if start + length > len(buffer):
        raise MalformedRLP(
            f"list at offset {offset} declares {length} bytes, buffer has {len(buffer) - start}"
        )
    return start


def skip_strings(buffer: bytes, offset: int, n: int) -> int:
    """Step over `n` consecutive strings and return the offset after them."""
    for _ in range(n):
        start, length = read_string_header(buffer, offset)
        offset = start + length
    return offset


def read_fixed32(buffer: bytes, offset: int) -> bytes:
    """Read a string that must hold exactly 32 bytes (a hash)."""
    start, length = read_string_header(buffer, offset)
    if length != 32:
        raise MalformedRLP(f"expected a 32 byte string at offset {offset}, got {length} bytes")
    return bytes(buffer[start : start + 32])


def read_uint(buffer: bytes, offset: int) -> int:
    # Scalars of up to 256 bits: block numbers, storage values.
    start, length = read_string_header(buffer, offset)
    return read_big_endian_int(buffer, start, length)
