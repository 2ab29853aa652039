import argparse
import json
import logging
import sys

from block_hashes import KnownBlockHashes
from proof_errors import ProofError
from snapshop import Snapshop
from snapshot_client import ProofResponse, fixed_field, format_block_header, quantity_field

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Verify a block header, account proof and storage proofs saved from JSON-RPC"
    )
    parser.add_argument(
        "fixture",
        help='JSON file with "block" (eth_getBlockByNumber) and "proof" (eth_getProof) responses',
    )
    trust = parser.add_mutually_exclusive_group(required=True)
    trust.add_argument("--block-hashes", help='JSON map of trusted hashes, {"<number>": "<hash>"}')
    trust.add_argument(
        "--trust-block-hash",
        action="store_true",
        help="trust the hash field of the block response itself",
    )
    parser.add_argument("--window", type=int, default=None, help="only trust the N most recent known blocks")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    with open(args.fixture, "r") as f:
        data = json.load(f)

    block = data["block"]
    if args.trust_block_hash:
        known = KnownBlockHashes(
            {int.from_bytes(quantity_field(block["number"]), "big"): fixed_field(block["hash"])},
            window=args.window,
        )
    else:
        known = KnownBlockHashes.from_json(args.block_hashes, window=args.window)

    header = format_block_header(block)
    response = ProofResponse.from_json(data["proof"])
    snapshop = Snapshop(known)

    try:
        block_number, state_root = snapshop.create_block_snapshot(header)
        print(f"block {block_number}: state root 0x{state_root.hex()}")

        storage_root = snapshop.create_account_snapshot(block_number, response.address, response.account_proof)
        print(f"account 0x{response.address.hex()}: storage root 0x{storage_root.hex()}")
        if storage_root != response.storage_hash:
            print(f"OOPS: response claims storage root 0x{response.storage_hash.hex()}")
            return 1

        for slot, nodes in response.storage_proofs.items():
            value = snapshop.sload_from_snapshot(block_number, response.address, slot, nodes)
            print(f"slot 0x{slot.hex()}: 0x{value.hex()}")
            if value != response.storage_values[slot]:
                print(f"OOPS: response claims 0x{response.storage_values[slot].hex()}")
                return 1
    except ProofError as e:
        print(f"OOPS: {type(e).__name__}: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
