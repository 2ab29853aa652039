import pytest
import rlp
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from helpers import branch, extension, leaf, prove, secure_trie, to_nibbles
from proof_errors import (
    ExpectedList,
    IncompleteProof,
    InvalidHPHeader,
    InvalidNodeHash,
    MalformedRLP,
    ProofPathTooLong,
    ProofPathTooShort,
    ProofTooLong,
)
from verify_proof import EMPTY_TRIE_ROOT, keccak256, verify_eth_trie_proof, walk_proof

KEY = keccak256(b"some account")
PATH = to_nibbles(KEY)


def other(nibble):
    return (nibble + 1) % 16


def root_of(nodes):
    return keccak256(nodes[0])


@pytest.fixture
def three_level():
    # extension(1 nibble) -> branch -> leaf(62 nibbles)
    target = leaf(PATH[2:], b"target value")
    sibling = leaf([0] * 62, b"sibling value")
    b = branch({PATH[1]: target, other(PATH[1]): sibling})
    e = extension(PATH[:1], b)
    return [e, b, target]


def test_empty_trie_root_constant():
    assert EMPTY_TRIE_ROOT.hex() == "56e81f171bcc55a6ff8345e692c0f86e5b48e01b996cadc001622fb5e363b421"


def test_empty_trie_needs_no_nodes():
    result = walk_proof(EMPTY_TRIE_ROOT, KEY, [])
    assert not result.present
    assert result.consumed_nibbles == 0


def test_empty_trie_root_rejects_a_non_empty_proof():
    with pytest.raises(ExpectedList):
        walk_proof(EMPTY_TRIE_ROOT, KEY, [b"\x80"])
    with pytest.raises(InvalidNodeHash):
        walk_proof(EMPTY_TRIE_ROOT, KEY, [leaf(PATH, b"hello")])


def test_single_leaf():
    node = leaf(PATH, b"hello")
    result = walk_proof(keccak256(node), KEY, [node])
    assert result.present
    assert result.value() == b"hello"
    assert result.consumed_nibbles == 64


def test_extension_branch_leaf(three_level):
    result = walk_proof(root_of(three_level), KEY, three_level)
    assert result.value() == b"target value"
    assert result.consumed_nibbles == 64
    assert verify_eth_trie_proof(root_of(three_level), KEY, three_level) == b"target value"


def test_empty_branch_slot_is_absence_after_one_nibble():
    b = branch({other(PATH[0]): leaf([0] * 63, b"x")})
    result = walk_proof(keccak256(b), KEY, [b])
    assert not result.present
    assert result.consumed_nibbles == 1
    assert verify_eth_trie_proof(keccak256(b), KEY, [b]) is None


def test_diverging_leaf_is_absence():
    path = list(PATH)
    path[-1] ^= 1
    node = leaf(path, b"someone else")
    result = walk_proof(keccak256(node), KEY, [node])
    assert not result.present
    assert result.consumed_nibbles == 0


def test_diverging_extension_is_absence():
    child = branch({0: leaf([0] * 62, b"x")})
    e = extension([other(PATH[0])], child)
    result = walk_proof(keccak256(e), KEY, [e])
    assert not result.present


def test_absent_value_raises_on_read():
    b = branch({other(PATH[0]): leaf([0] * 63, b"x")})
    with pytest.raises(LookupError):
        walk_proof(keccak256(b), KEY, [b]).value()


def test_branch_element_count_is_not_checked():
    # Anything with more than two elements walks as a branch, even when it
    # has fewer than 17. Node hashes are the only thing holding this shape
    # assumption to the real trie layout.
    child = leaf(PATH[1:], b"v")
    slots = [b""] * max(3, PATH[0] + 1)
    slots[PATH[0]] = keccak256(child)
    short_branch = rlp.encode(slots)
    result = walk_proof(keccak256(short_branch), KEY, [short_branch, child])
    assert result.value() == b"v"


class TestRejectsTamperedProofs:
    def test_empty_proof_for_non_empty_root(self, three_level):
        with pytest.raises(IncompleteProof):
            walk_proof(root_of(three_level), KEY, [])

    def test_modified_node(self, three_level):
        proof = list(three_level)
        proof[2] = leaf(PATH[2:], b"forged value")
        with pytest.raises(InvalidNodeHash):
            walk_proof(root_of(three_level), KEY, proof)

    def test_reordered_nodes(self, three_level):
        e, b, l = three_level
        with pytest.raises(InvalidNodeHash):
            walk_proof(root_of(three_level), KEY, [e, l, b])

    def test_wrong_root(self, three_level):
        with pytest.raises(InvalidNodeHash):
            walk_proof(keccak256(b"other root"), KEY, three_level)

    def test_trailing_node(self, three_level):
        with pytest.raises(ProofTooLong):
            walk_proof(root_of(three_level), KEY, three_level + [three_level[-1]])

    def test_trailing_node_after_absence(self):
        b = branch({other(PATH[0]): leaf([0] * 63, b"x")})
        with pytest.raises(ProofTooLong):
            walk_proof(keccak256(b), KEY, [b, b"\x00"])

    def test_truncated(self, three_level):
        with pytest.raises(IncompleteProof):
            walk_proof(root_of(three_level), KEY, three_level[:2])

    def test_leaf_short_of_the_full_path(self):
        short = leaf(PATH[1:63], b"v")
        b = branch({PATH[0]: short})
        with pytest.raises(ProofPathTooShort):
            walk_proof(keccak256(b), KEY, [b, short])

    def test_leaf_past_the_full_path(self):
        long = leaf(PATH, b"v")
        b = branch({PATH[0]: long})
        with pytest.raises(ProofPathTooLong):
            walk_proof(keccak256(b), KEY, [b, long])

    def test_branch_after_the_full_path(self):
        b = branch({0: leaf([0] * 63, b"x")})
        e = extension(PATH, b)
        with pytest.raises(ProofPathTooLong):
            walk_proof(keccak256(e), KEY, [e, b])

    def test_branch_slot_is_not_a_hash(self):
        slots = [b""] * 17
        slots[PATH[0]] = b"\x01" * 31
        node = rlp.encode(slots)
        with pytest.raises(MalformedRLP):
            walk_proof(keccak256(node), KEY, [node])

    def test_inline_child_node(self):
        slots = [b""] * 17
        slots[0] = [b"\x20", b"x"]
        node = rlp.encode(slots)
        with pytest.raises(MalformedRLP):
            walk_proof(keccak256(node), KEY, [node])

    def test_node_is_not_a_list(self):
        node = rlp.encode(b"just a string")
        with pytest.raises(ExpectedList):
            walk_proof(keccak256(node), KEY, [node])

    def test_bad_hex_prefix(self):
        node = rlp.encode([b"\x40" + bytes(32), b"v"])
        with pytest.raises(InvalidHPHeader):
            walk_proof(keccak256(node), KEY, [node])


def test_absence_next_to_populated_keys():
    keys = [b"key-%d" % i for i in range(6)]
    t = secure_trie({k: b"value of " + k for k in keys})
    used = {to_nibbles(keccak256(k))[0] for k in keys}

    probe = next(p for p in (b"probe-%d" % i for i in range(1000)) if to_nibbles(keccak256(p))[0] not in used)
    result = walk_proof(t.root_hash, keccak256(probe), prove(t, probe))
    assert not result.present
    assert result.consumed_nibbles == 1


@settings(max_examples=25, deadline=None, suppress_health_check=[HealthCheck.too_slow])
@given(
    st.dictionaries(st.binary(min_size=1, max_size=32), st.binary(min_size=1, max_size=64), min_size=1, max_size=30),
    st.binary(min_size=1, max_size=32),
)
def test_matches_reference_trie(items, probe):
    t = secure_trie(items)
    for key, value in items.items():
        result = walk_proof(t.root_hash, keccak256(key), prove(t, key))
        assert result.value() == value
        assert result.consumed_nibbles == 64

    if probe not in items:
        assert verify_eth_trie_proof(t.root_hash, keccak256(probe), prove(t, probe)) is None
