# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Entry function payloads for the ``candymachine`` Move module.

An entry function is addressed as ``<contract_address>::<module>::<function>``.
This module turns that identifier plus an ordered argument list into an
``aptos_sdk.transactions.TransactionPayload`` ready for signing. Nothing here
talks to the network and nothing checks that the arguments match the Move
signature: a wrong argument list is only discovered when the node rejects the
transaction.

Supported entry functions:

- ``candymachine::init_candy``: create a candy machine and its collection
- ``candymachine::mint_script``: mint the next token of a candy machine

Examples:
    Mint from an existing candy machine::

        payload = mint_payload(contract, candy_machine)

    Arbitrary entry function::

        payload = entry_function_payload(
            EntryFunctionId.from_str("0x1::aptos_account::transfer"),
            [],
            [
                TransactionArgument(recipient, Serializer.struct),
                TransactionArgument(1_000, Serializer.u64),
            ],
        )
"""

from __future__ import annotations

import time
import unittest
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from aptos_sdk.account_address import AccountAddress
from aptos_sdk.bcs import Serializer
from aptos_sdk.transactions import (
    EntryFunction,
    TransactionArgument,
    TransactionPayload,
)
from aptos_sdk.type_tag import TypeTag

from .identifiers import IdGenerator

MODULE_NAME = "candymachine"
INIT_CANDY = "init_candy"
MINT_SCRIPT = "mint_script"

COLLECTION_MUTATE_SETTINGS = 3
TOKEN_MUTATE_SETTINGS = 5


@dataclass(frozen=True)
class EntryFunctionId:
    """The fully qualified name of an on-chain entry function."""

    address: AccountAddress
    module: str
    function: str

    @staticmethod
    def from_str(value: str) -> EntryFunctionId:
        parts = value.split("::")
        if len(parts) != 3 or not all(parts):
            raise ValueError(
                f"Expected <address>::<module>::<function>, got {value!r}"
            )
        return EntryFunctionId(
            AccountAddress.from_str_relaxed(parts[0]), parts[1], parts[2]
        )

    def module_id(self) -> str:
        return f"{self.address}::{self.module}"

    def __str__(self) -> str:
        return f"{self.address}::{self.module}::{self.function}"


def candy_machine_function(
    contract: AccountAddress, function: str
) -> EntryFunctionId:
    return EntryFunctionId(contract, MODULE_NAME, function)


def entry_function_payload(
    function_id: Union[EntryFunctionId, str],
    type_arguments: List[TypeTag],
    arguments: List[TransactionArgument],
) -> TransactionPayload:
    """Encode an entry function call.

    :param function_id: Target entry function, as an ``EntryFunctionId`` or its string form
    :param type_arguments: Generic type arguments, in order
    :param arguments: Arguments in the order the Move function declares them
    :return: Transaction payload wrapping the entry function
    """
    if isinstance(function_id, str):
        function_id = EntryFunctionId.from_str(function_id)
    entry_function = EntryFunction.natural(
        function_id.module_id(),
        function_id.function,
        type_arguments,
        arguments,
    )
    return TransactionPayload(entry_function)


def mint_payload(
    contract: AccountAddress, candy_machine: AccountAddress
) -> TransactionPayload:
    """``mint_script(receiver: &signer, candymachine: address)``"""
    return entry_function_payload(
        candy_machine_function(contract, MINT_SCRIPT),
        [],
        [TransactionArgument(candy_machine, Serializer.struct)],
    )


@dataclass(frozen=True)
class CandyMachineSettings:
    """Arguments of ``init_candy``, in declaration order.

    Times are unix seconds; prices are in octas. ``seed`` is the UTF-8 string
    the contract uses to derive the candy machine's resource account, so it
    must be unique per creator.
    """

    collection_name: str
    collection_description: str
    base_uri: str
    royalty_payee_address: AccountAddress
    royalty_points_denominator: int
    royalty_points_numerator: int
    presale_mint_time: int
    public_sale_mint_time: int
    presale_mint_price: int
    public_sale_mint_price: int
    total_supply: int
    seed: str
    collection_mutate_setting: Sequence[bool] = field(
        default=(False,) * COLLECTION_MUTATE_SETTINGS
    )
    token_mutate_setting: Sequence[bool] = field(
        default=(False,) * TOKEN_MUTATE_SETTINGS
    )
    public_mint_limit: int = 0
    is_sbt: bool = False
    is_open_edition: bool = False

    @staticmethod
    def for_test(
        royalty_payee_address: AccountAddress,
        id_generator: IdGenerator,
        now: Optional[int] = None,
    ) -> CandyMachineSettings:
        """The "Mokshya" test collection: presale opens 10s out, public sale 15s out."""
        now = int(time.time()) if now is None else now
        return CandyMachineSettings(
            collection_name="Mokshya",
            collection_description="This is the description of test collection",
            base_uri="https://mokshya.io/nft/",
            royalty_payee_address=royalty_payee_address,
            royalty_points_denominator=1000,
            royalty_points_numerator=42,
            presale_mint_time=now + 10,
            public_sale_mint_time=now + 15,
            presale_mint_price=1,
            public_sale_mint_price=1,
            total_supply=2000,
            seed=id_generator.make_id(5),
        )

    def to_transaction_arguments(self) -> List[TransactionArgument]:
        return [
            TransactionArgument(self.collection_name, Serializer.str),
            TransactionArgument(self.collection_description, Serializer.str),
            TransactionArgument(self.base_uri, Serializer.str),
            TransactionArgument(self.royalty_payee_address, Serializer.struct),
            TransactionArgument(self.royalty_points_denominator, Serializer.u64),
            TransactionArgument(self.royalty_points_numerator, Serializer.u64),
            TransactionArgument(self.presale_mint_time, Serializer.u64),
            TransactionArgument(self.public_sale_mint_time, Serializer.u64),
            TransactionArgument(self.presale_mint_price, Serializer.u64),
            TransactionArgument(self.public_sale_mint_price, Serializer.u64),
            TransactionArgument(self.total_supply, Serializer.u64),
            TransactionArgument(
                list(self.collection_mutate_setting),
                Serializer.sequence_serializer(Serializer.bool),
            ),
            TransactionArgument(
                list(self.token_mutate_setting),
                Serializer.sequence_serializer(Serializer.bool),
            ),
            TransactionArgument(self.public_mint_limit, Serializer.u64),
            TransactionArgument(self.is_sbt, Serializer.bool),
            TransactionArgument(self.seed.encode("utf-8"), Serializer.to_bytes),
            TransactionArgument(self.is_open_edition, Serializer.bool),
        ]


def init_candy_payload(
    contract: AccountAddress, settings: CandyMachineSettings
) -> TransactionPayload:
    return entry_function_payload(
        candy_machine_function(contract, INIT_CANDY),
        [],
        settings.to_transaction_arguments(),
    )


class Test(unittest.TestCase):
    contract = AccountAddress.from_str(
        "0x511f963111905e2ae9cf79b00a9b9fa237dc6962e87018af3023615d7853d8fd"
    )
    candy_machine = AccountAddress.from_str(
        "0x1ef083efe4fe41a088aa2da78ddd9f953850bd4d9a2590fa0b5b33b048634eab"
    )

    def test_entry_function_id(self):
        value = f"{self.contract}::candymachine::mint_script"
        function_id = EntryFunctionId.from_str(value)
        self.assertEqual(function_id.address, self.contract)
        self.assertEqual(function_id.module, "candymachine")
        self.assertEqual(function_id.function, "mint_script")
        self.assertEqual(str(function_id), value)

    def test_entry_function_id_relaxed_address(self):
        function_id = EntryFunctionId.from_str("0x1::coin::transfer")
        self.assertEqual(function_id.address, AccountAddress.from_str("0x1"))
        self.assertEqual(function_id.module_id(), "0x1::coin")

    def test_malformed_entry_function_id(self):
        for value in ["", "0x1::coin", "0x1::coin::", "::coin::transfer", "a::b::c::d"]:
            with self.assertRaises(ValueError):
                EntryFunctionId.from_str(value)

    def test_mint_payload(self):
        payload = mint_payload(self.contract, self.candy_machine)
        entry_function = payload.value
        self.assertEqual(entry_function.module.address, self.contract)
        self.assertEqual(entry_function.module.name, MODULE_NAME)
        self.assertEqual(entry_function.function, MINT_SCRIPT)
        self.assertEqual(entry_function.ty_args, [])
        self.assertEqual(entry_function.args, [self.candy_machine.address])

    def test_entry_function_payload_from_string(self):
        payload = entry_function_payload(
            f"{self.contract}::candymachine::mint_script",
            [],
            [TransactionArgument(self.candy_machine, Serializer.struct)],
        )
        self.assertEqual(payload, mint_payload(self.contract, self.candy_machine))

    def test_init_candy_payload(self):
        settings = CandyMachineSettings.for_test(
            self.contract, IdGenerator.seeded(0), now=1_000
        )
        payload = init_candy_payload(self.contract, settings)
        entry_function = payload.value
        self.assertEqual(entry_function.function, INIT_CANDY)
        self.assertEqual(len(entry_function.args), 17)

        ser = Serializer()
        ser.str("Mokshya")
        self.assertEqual(entry_function.args[0], ser.output())
        ser = Serializer()
        ser.u64(1_010)
        self.assertEqual(entry_function.args[6], ser.output())
        ser = Serializer()
        ser.u64(1_015)
        self.assertEqual(entry_function.args[7], ser.output())
        # vector<bool> of length 3, all false
        self.assertEqual(entry_function.args[11], b"\x03\x00\x00\x00")
        self.assertEqual(entry_function.args[12], b"\x05" + b"\x00" * 5)
        ser = Serializer()
        ser.to_bytes(settings.seed.encode("utf-8"))
        self.assertEqual(entry_function.args[15], ser.output())

    def test_settings_seed_comes_from_generator(self):
        first = CandyMachineSettings.for_test(
            self.contract, IdGenerator.seeded(3), now=0
        )
        second = CandyMachineSettings.for_test(
            self.contract, IdGenerator.seeded(3), now=0
        )
        self.assertEqual(first, second)
        self.assertEqual(len(first.seed), 5)


if __name__ == "__main__":
    unittest.main()
