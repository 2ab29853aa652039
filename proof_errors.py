"""
Failure kinds raised while verifying headers and trie proofs.

Every kind is fatal for the input that triggered it: the only fix is a
fresh proof from the data source. A key that provably does not exist is
not an error, the walker reports it as an absent result instead.
"""


class ProofError(ValueError):
    pass


class OutOfBounds(ProofError):
    """A read would run past the end of the buffer."""


class OversizedInteger(ProofError):
    """An integer field is wider than 32 bytes."""


class MalformedRLP(ProofError):
    """Invalid header byte, or a declared length overruns the buffer."""


class ExpectedList(ProofError):
    """A string header was found where a list header was required."""


class InvalidHPHeader(ProofError):
    """The hex-prefix flag byte is missing or has its top two bits set."""


class InvalidNodeHash(ProofError):
    """A proof node does not hash to the value its parent committed to."""


class ProofTooLong(ProofError):
    """Nodes follow the node that already decided the lookup."""


class ProofPathTooLong(ProofError):
    """The proof would consume more than 64 nibbles."""


class ProofPathTooShort(ProofError):
    """A matching leaf ends before all 64 nibbles are consumed."""


class IncompleteProof(ProofError):
    """The proof ran out before reaching a leaf or a point of absence."""


class UnverifiableBlock(ProofError):
    """The header does not hash to the trusted hash for its block number."""
