# backend/contracts/merkle.py
# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2025 Joltkin LLC.
#
# Sorted-pair Merkle inclusion proofs for the anonymous allowlist.
#
#   leaf   = SHA-512/256(raw 32-byte public key of the buyer address)
#   parent = SHA-512/256(min(a, b) || max(a, b))
#
# SHA-512/256 is the digest Algorand uses for addresses and transaction ids
# (`algosdk.encoding.checksum`). Trees are built off-chain; only verification
# lives here.

from __future__ import annotations

from collections.abc import Iterable, Sequence

from algosdk import encoding

from .errors import InvalidAddress

DIGEST_LEN = 32
EMPTY_ROOT = bytes(DIGEST_LEN)


def leaf_for(address: str) -> bytes:
    """Leaf digest of a buyer address; raises InvalidAddress on a malformed one."""
    # is_valid_address covers length, base32 and checksum failures of decode_address.
    if not isinstance(address, str) or not encoding.is_valid_address(address):
        raise InvalidAddress(str(address))
    return encoding.checksum(encoding.decode_address(address))


def hash_pair(a: bytes, b: bytes) -> bytes:
    return encoding.checksum(a + b if a <= b else b + a)


def verify(proof: Sequence[bytes], root: bytes, leaf: bytes) -> bool:
    node = leaf
    for sibling in proof:
        node = hash_pair(node, sibling)
    return node == root


def parse_root(value: str) -> bytes:
    """Decode a hex root (optionally 0x-prefixed) into 32 bytes."""
    raw = bytes.fromhex(value.removeprefix("0x"))
    if len(raw) != DIGEST_LEN:
        raise ValueError(f"Merkle root must be {DIGEST_LEN} bytes, got {len(raw)}")
    return raw


def parse_proof(values: Iterable[str]) -> list[bytes]:
    """Decode hex proof nodes; blanks are skipped."""
    return [parse_root(v.strip()) for v in values if v.strip()]
