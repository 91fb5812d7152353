# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""Random identifiers used as candy machine seeds."""

import random
import unittest
from typing import Optional

# The contract tests have always drawn from this alphabet; "z" is not in it.
ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxy"


class IdGenerator:
    """Produces random alphanumeric identifiers.

    Pass a seeded ``random.Random`` (or use ``IdGenerator.seeded``) to get a
    reproducible sequence in tests.
    """

    rng: random.Random

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng if rng is not None else random.Random()

    @staticmethod
    def seeded(seed: int) -> "IdGenerator":
        return IdGenerator(random.Random(seed))

    def make_id(self, length: int) -> str:
        if length < 0:
            raise ValueError(f"length must be non-negative, got {length}")
        return "".join(self.rng.choice(ALPHABET) for _ in range(length))

    __call__ = make_id


class Test(unittest.TestCase):
    def test_length_and_alphabet(self):
        value = IdGenerator().make_id(64)
        self.assertEqual(len(value), 64)
        self.assertTrue(set(value) <= set(ALPHABET))

    def test_seeded_is_deterministic(self):
        self.assertEqual(
            IdGenerator.seeded(7).make_id(5), IdGenerator.seeded(7).make_id(5)
        )
        generator = IdGenerator.seeded(7)
        self.assertNotEqual(generator.make_id(16), generator.make_id(16))

    def test_callable(self):
        self.assertEqual(IdGenerator.seeded(1)(5), IdGenerator.seeded(1).make_id(5))

    def test_empty_and_negative(self):
        self.assertEqual(IdGenerator().make_id(0), "")
        with self.assertRaises(ValueError):
            IdGenerator().make_id(-1)


if __name__ == "__main__":
    unittest.main()
