# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Deterministic test identities.

The candy machine tests sign with two fixed Ed25519 keys, Alice (the creator
of a machine) and Bob (the minter). Keys are given as hex strings, with or
without a ``0x`` prefix, and always produce the same account address.

These keys are public test material. Never fund them on mainnet.
"""

import logging
import re
import unittest
from typing import Tuple

from aptos_sdk import ed25519
from aptos_sdk.account import Account
from aptos_sdk.account_address import AccountAddress
from nacl.exceptions import CryptoError
from nacl.signing import SigningKey

from .exceptions import InvalidKeyFormat

logger = logging.getLogger(__name__)

ALICE_SEED = "0x1111111111111111111111111111111111111111111111111111111111111111"
BOB_SEED = "0x2111111111111111111111111111111111111111111111111111111111111111"

PRIVATE_KEY_LENGTH = 32

_HEX = re.compile(r"[0-9a-fA-F]*")


def parse_seed(seed: str) -> bytes:
    """Decode a hex seed into the 32 raw private key bytes."""
    if not isinstance(seed, str):
        raise InvalidKeyFormat(f"expected a hex string, got {type(seed).__name__}")
    value = seed[2:] if seed.startswith(("0x", "0X")) else seed
    if not _HEX.fullmatch(value):
        raise InvalidKeyFormat(f"{seed!r} is not hex encoded")
    if len(value) != PRIVATE_KEY_LENGTH * 2:
        raise InvalidKeyFormat(
            f"expected {PRIVATE_KEY_LENGTH * 2} hex digits, got {len(value)}"
        )
    return bytes.fromhex(value)


def load_account(seed: str) -> Account:
    """Build an Ed25519 account from a hex encoded private key.

    :param seed: 64 hex digits, optionally prefixed with ``0x``
    :return: The signing account; its address is derived from the public key
    :raises InvalidKeyFormat: If ``seed`` is not valid key material
    """
    key_bytes = parse_seed(seed)
    try:
        private_key = ed25519.PrivateKey(SigningKey(key_bytes))
    except (CryptoError, ValueError) as e:
        raise InvalidKeyFormat(str(e)) from e
    account_address = AccountAddress.from_key(private_key.public_key())
    return Account(account_address, private_key)


def alice() -> Account:
    return load_account(ALICE_SEED)


def bob() -> Account:
    return load_account(BOB_SEED)


def default_accounts() -> Tuple[Account, Account]:
    """Return (alice, bob) and log their addresses."""
    accounts = (alice(), bob())
    logger.info("Alice Address: %s", accounts[0].address())
    logger.info("Bob Address: %s", accounts[1].address())
    return accounts


class Test(unittest.TestCase):
    def test_deterministic(self):
        self.assertEqual(load_account(ALICE_SEED).address(), alice().address())
        self.assertEqual(
            load_account(ALICE_SEED).private_key.hex(),
            load_account(ALICE_SEED).private_key.hex(),
        )

    def test_distinct_seeds(self):
        self.assertNotEqual(alice().address(), bob().address())

    def test_prefix_is_optional(self):
        self.assertEqual(
            load_account(ALICE_SEED[2:]).address(), load_account(ALICE_SEED).address()
        )

    def test_matches_sdk_derivation(self):
        self.assertEqual(
            load_account(BOB_SEED).address(), Account.load_key(BOB_SEED).address()
        )

    def test_signs(self):
        message = b"candy machine"
        account = bob()
        signature = account.sign(message)
        self.assertTrue(account.public_key().verify(message, signature))

    def test_invalid_hex(self):
        with self.assertRaises(InvalidKeyFormat):
            load_account("0x" + "zz" * 32)
        with self.assertRaises(InvalidKeyFormat):
            load_account("0x" + "1" * 63 + "\n")

    def test_invalid_length(self):
        with self.assertRaises(InvalidKeyFormat):
            load_account("0x1111")
        with self.assertRaises(InvalidKeyFormat):
            load_account(ALICE_SEED + "11")

    def test_not_a_string(self):
        with self.assertRaises(InvalidKeyFormat):
            load_account(b"\x11" * 32)  # type: ignore[arg-type]

    def test_default_accounts_logs(self):
        with self.assertLogs(logger, level="INFO") as logs:
            (a, b) = default_accounts()
        self.assertIn(f"Alice Address: {a.address()}", logs.output[0])
        self.assertIn(f"Bob Address: {b.address()}", logs.output[1])


if __name__ == "__main__":
    unittest.main()
