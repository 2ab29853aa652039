import json
import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class KnownBlockHashes:
    """
    Trusted block hashes keyed by block number, usable as the `block_hash`
    oracle of `state_proofs.block_state_root`.

    With `window` set only the `window` most recent recorded blocks are
    served, the way a chain exposes hashes of recent blocks only.
    """

    def __init__(self, hashes: Optional[Dict[int, bytes]] = None, window: Optional[int] = None):
        self.window = window
        self.hashes: Dict[int, bytes] = {}
        for number, block_hash in (hashes or {}).items():
            self.record(number, block_hash)

    def record(self, number: int, block_hash: bytes):
        if len(block_hash) != 32:
            raise ValueError(f"block hash must be 32 bytes, got {len(block_hash)}")
        self.hashes[number] = block_hash

    def block_hash(self, number: int) -> Optional[bytes]:
        if self.window is not None and self.hashes:
            latest = max(self.hashes)
            if latest - number >= self.window:
                logger.debug("block %d is outside the %d block window", number, self.window)
                return None
        return self.hashes.get(number)

    __call__ = block_hash

    @classmethod
    def from_json(cls, path: str, window: Optional[int] = None) -> "KnownBlockHashes":
        # {"14911214": "0x15ca...", "0xe386ee": "0x15ca..."}
        with open(path, "r") as f:
            md = json.load(f)

        hashes = {}
        for number, block_hash in md.items():
            n = int(number, 16) if number.startswith("0x") else int(number)
            h = block_hash[2:] if block_hash.startswith("0x") else block_hash
            hashes[n] = bytes.fromhex(h)
        return cls(hashes, window=window)
