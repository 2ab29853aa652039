"""
Packaging of JSON-RPC responses into the byte strings the verifier consumes.

`eth_getBlockByNumber` objects become RLP block headers and EIP-1186
`eth_getProof` responses become lists of proof nodes. Nothing here talks to
a node; responses are loaded by the caller.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Union

import rlp

from verify_proof import keccak256

# https://github.com/ethereum/go-ethereum/blob/master/core/types/block.go
HEADER_ORDER = (
    "parentHash",
    "sha3Uncles",
    "miner",
    "stateRoot",
    "transactionsRoot",
    "receiptsRoot",
    "logsBloom",
    "difficulty",
    "number",
    "gasLimit",
    "gasUsed",
    "timestamp",
    "extraData",
    "mixHash",
    "nonce",
    "baseFeePerGas",  # added by EIP-1559, absent from legacy headers
)

# Byte width of fixed-size header fields; the rest are quantities except extraData.
_FIXED_WIDTHS = {
    "parentHash": 32,
    "sha3Uncles": 32,
    "miner": 20,
    "stateRoot": 32,
    "transactionsRoot": 32,
    "receiptsRoot": 32,
    "logsBloom": 256,
    "mixHash": 32,
    "nonce": 8,
}

Field = Union[str, int, bytes]


def dynamic_field(value: Field) -> bytes:
    if isinstance(value, int):
        return quantity_field(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    h = value[2:] if value.startswith("0x") else value
    if len(h) % 2:
        h = "0" + h
    return bytes.fromhex(h)


def fixed_field(value: Field, length: int = 32) -> bytes:
    b = dynamic_field(value)
    if len(b) > length:
        raise ValueError(f"{len(b)} bytes do not fit in a {length} byte field")
    return b.rjust(length, b"\x00")


def quantity_field(value: Field) -> bytes:
    # Canonical integer: big-endian, no leading zeros, 0 is empty.
    if isinstance(value, int):
        n = value
    else:
        n = int.from_bytes(dynamic_field(value), "big")
    return n.to_bytes((n.bit_length() + 7) // 8, "big")


def format_block_header(block: Dict[str, Field]) -> bytes:
    fields = []
    for name in HEADER_ORDER:
        if name not in block:
            if name == "baseFeePerGas":
                break
            raise KeyError(f"block is missing header field {name}")
        value = block[name]
        if name in _FIXED_WIDTHS:
            fields.append(fixed_field(value, _FIXED_WIDTHS[name]))
        elif name == "extraData":
            fields.append(dynamic_field(value))
        else:
            fields.append(quantity_field(value))
    return rlp.encode(fields)


def map_slot(root_slot: Field, key: Field) -> bytes:
    # Storage slot of mapping[key] for a Solidity mapping declared at root_slot.
    return keccak256(fixed_field(key) + fixed_field(root_slot))


def proof_nodes(hex_nodes: List[str]) -> List[bytes]:
    return [dynamic_field(n) for n in hex_nodes]


@dataclass
class ProofResponse:
    """The parts of an `eth_getProof` response the verifier needs."""

    address: bytes
    account_proof: List[bytes]
    storage_hash: bytes
    storage_proofs: Dict[bytes, List[bytes]] = field(default_factory=dict)
    storage_values: Dict[bytes, bytes] = field(default_factory=dict)

    @classmethod
    def from_json(cls, response: dict) -> "ProofResponse":
        r = cls(
            address=fixed_field(response["address"], 20),
            account_proof=proof_nodes(response["accountProof"]),
            storage_hash=fixed_field(response["storageHash"]),
        )
        for sp in response.get("storageProof", []):
            slot = fixed_field(sp["key"])
            r.storage_proofs[slot] = proof_nodes(sp["proof"])
            r.storage_values[slot] = fixed_field(sp["value"])
        return r
