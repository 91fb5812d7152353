# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Client for submitting transactions to the candy machine contract.

``CandyMachineClient`` wraps an ``aptos_sdk.async_client.RestClient`` and
splits submission into the three steps the integration tests exercise:

1. ``generate_transaction``: read the sender's sequence number from the node
   and combine it with the payload, gas settings and chain id.
2. ``sign``: sign locally with the sender's key.
3. ``submit``: post the signed BCS bytes to the node and return its hash.

``mint`` and ``init_candy`` chain those steps for the two contract entry
points and log the resulting hash. Nothing is retried. Every SDK or transport
failure is re-raised as one of the ``candy_machine.exceptions`` errors.

Examples:
    Mint one token::

        rest_client = RestClient("https://fullnode.testnet.aptoslabs.com/v1")
        client = CandyMachineClient(rest_client, contract_address)
        result = await client.mint(bob, candy_machine_address)
        print(result.hash)

    Step by step::

        payload = mint_payload(contract_address, candy_machine_address)
        raw_transaction = await client.generate_transaction(bob.address(), payload)
        signed_transaction = client.sign(bob, raw_transaction)
        result = await client.submit(signed_transaction)
"""

import asyncio
import contextlib
import logging
import unittest
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Type

import httpx
from aptos_sdk.account import Account
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import ApiError, RestClient
from aptos_sdk.transactions import (
    RawTransaction,
    SignedTransaction,
    TransactionPayload,
)
from nacl.exceptions import CryptoError

from .exceptions import (
    AccountNotFound,
    CandyMachineError,
    NetworkError,
    SigningError,
    TransactionRejected,
)
from .payloads import CandyMachineSettings, init_candy_payload, mint_payload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    """What the node returned for an accepted transaction."""

    hash: str
    sender: AccountAddress
    sequence_number: int

    def __str__(self) -> str:
        return self.hash


@contextlib.contextmanager
def node_errors(
    client_error: Type[CandyMachineError] = NetworkError,
) -> Iterator[None]:
    """Translate httpx and SDK failures from the enclosed calls.

    Transport failures and 5xx answers are ``NetworkError``. Other error
    statuses become ``client_error``.
    """
    try:
        yield
    except httpx.TransportError as e:
        raise NetworkError(f"Unable to reach the node: {e}") from e
    except ApiError as e:
        if isinstance(e.status_code, int) and e.status_code >= 500:
            raise NetworkError(str(e), e.status_code) from e
        raise client_error(str(e), e.status_code) from e


async def wait_for_transaction(
    client: RestClient, txn_hash: str, poll_interval: float = 1.0
) -> Dict[str, Any]:
    """
    Wait until ``txn_hash`` leaves the mempool.

    :return: The executed transaction
    :raises TransactionRejected: If execution failed on chain
    :raises NetworkError: If the transaction is still pending after
        ``transaction_wait_in_seconds``
    """
    count = 0
    with node_errors():
        while await client.transaction_pending(txn_hash):
            if count >= client.client_config.transaction_wait_in_seconds:
                raise NetworkError(f"transaction {txn_hash} timed out")
            await asyncio.sleep(poll_interval)
            count += 1
        transaction = await client.transaction_by_hash(txn_hash)
    if not transaction.get("success"):
        raise TransactionRejected(
            transaction.get("vm_status", "transaction failed"),
            transaction_hash=txn_hash,
        )
    return transaction


class CandyMachineClient:
    """Generates, signs and submits transactions for one candy machine contract."""

    client: RestClient
    contract: AccountAddress
    poll_interval: float = 1.0

    def __init__(self, client: RestClient, contract: AccountAddress):
        self.client = client
        self.contract = contract

    async def close(self):
        await self.client.close()

    #
    # Node state
    #

    async def sequence_number(self, address: AccountAddress) -> int:
        """
        Fetch the next sequence number for an account.

        :param address: Account to look up
        :return: The account's current sequence number
        :raises AccountNotFound: If the node does not know the account
        :raises NetworkError: If the node cannot be reached
        """
        try:
            with node_errors():
                account = await self.client.account(address)
        except NetworkError as e:
            if e.status_code == 404:
                raise AccountNotFound(address) from e
            raise
        sequence_number = int(account["sequence_number"])
        logger.debug("Sequence number for %s is %d", address, sequence_number)
        return sequence_number

    async def balance(self, address: AccountAddress) -> int:
        with node_errors():
            return await self.client.account_balance(address)

    #
    # Submission steps
    #

    async def generate_transaction(
        self,
        sender_address: AccountAddress,
        payload: TransactionPayload,
        sequence_number: Optional[int] = None,
    ) -> RawTransaction:
        """
        Build an unsigned transaction for ``sender_address``.

        :param sender_address: Address of the account that will sign
        :param payload: Entry function payload to execute
        :param sequence_number: Use this sequence number instead of the node's
        :return: The raw transaction, with gas and expiration from the client config
        :raises AccountNotFound: If the sender is unknown to the chain
        :raises NetworkError: If the node cannot be reached
        """
        if sequence_number is None:
            sequence_number = await self.sequence_number(sender_address)
        with node_errors():
            return await self.client.create_bcs_transaction(
                sender_address, payload, sequence_number
            )

    def sign(
        self, account: Account, raw_transaction: RawTransaction
    ) -> SignedTransaction:
        """
        Sign ``raw_transaction`` with ``account``. No network access.

        :raises SigningError: If the account is not the sender or the signature
            does not verify
        """
        if account.address() != raw_transaction.sender:
            raise SigningError(
                f"{account.address()} cannot sign for {raw_transaction.sender}"
            )
        try:
            authenticator = account.sign_transaction(raw_transaction)
        except (CryptoError, ValueError) as e:
            raise SigningError(f"Unable to sign transaction: {e}") from e
        signed_transaction = SignedTransaction(raw_transaction, authenticator)
        if not signed_transaction.verify():
            raise SigningError(f"Signature by {account.address()} does not verify")
        return signed_transaction

    async def submit(self, signed_transaction: SignedTransaction) -> SubmissionResult:
        """
        Submit a signed transaction. Does not wait for execution.

        :raises TransactionRejected: If the node refuses the transaction
        :raises NetworkError: If the node cannot be reached
        """
        with node_errors(TransactionRejected):
            txn_hash = await self.client.submit_bcs_transaction(signed_transaction)
        if not txn_hash:
            raise TransactionRejected("Node accepted the transaction without a hash")
        raw_transaction = signed_transaction.transaction
        return SubmissionResult(
            txn_hash, raw_transaction.sender, raw_transaction.sequence_number
        )

    async def submit_payload(
        self,
        sender: Account,
        payload: TransactionPayload,
        sequence_number: Optional[int] = None,
    ) -> SubmissionResult:
        raw_transaction = await self.generate_transaction(
            sender.address(), payload, sequence_number
        )
        signed_transaction = self.sign(sender, raw_transaction)
        return await self.submit(signed_transaction)

    async def wait_for_transaction(self, txn_hash: str) -> Dict[str, Any]:
        return await wait_for_transaction(self.client, txn_hash, self.poll_interval)

    #
    # Contract entry points
    #

    async def mint(
        self, receiver: Account, candy_machine: AccountAddress
    ) -> SubmissionResult:
        """
        Mint the next token of ``candy_machine`` to ``receiver``.

        :return: The submission; ``hash`` identifies the mint transaction
        """
        payload = mint_payload(self.contract, candy_machine)
        result = await self.submit_payload(receiver, payload)
        logger.info("Token Minted %s", result.hash)
        return result

    async def init_candy(
        self, creator: Account, settings: CandyMachineSettings
    ) -> SubmissionResult:
        """Create a candy machine owned by ``creator``."""
        payload = init_candy_payload(self.contract, settings)
        result = await self.submit_payload(creator, payload)
        logger.info("Candy Machine created: %s", result.hash)
        return result


class Test(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        from .accounts import alice, bob
        from .testing import MockNode

        self.node = MockNode()
        self.alice = alice()
        self.bob = bob()
        self.node.create_account(self.bob.address(), 3)
        self.contract = AccountAddress.from_str(
            "0x511f963111905e2ae9cf79b00a9b9fa237dc6962e87018af3023615d7853d8fd"
        )
        self.candy_machine = AccountAddress.from_str(
            "0x1ef083efe4fe41a088aa2da78ddd9f953850bd4d9a2590fa0b5b33b048634eab"
        )
        self.client = CandyMachineClient(self.node.rest_client(), self.contract)
        self.client.poll_interval = 0

    async def asyncTearDown(self):
        await self.client.close()

    async def test_generate_transaction(self):
        payload = mint_payload(self.contract, self.candy_machine)
        raw_transaction = await self.client.generate_transaction(
            self.bob.address(), payload
        )
        self.assertEqual(raw_transaction.sender, self.bob.address())
        self.assertEqual(raw_transaction.sequence_number, 3)
        self.assertEqual(raw_transaction.chain_id, 2)
        self.assertEqual(raw_transaction.payload, payload)

    async def test_generate_transaction_unknown_account(self):
        payload = mint_payload(self.contract, self.candy_machine)
        with self.assertRaises(AccountNotFound) as cm:
            await self.client.generate_transaction(self.alice.address(), payload)
        self.assertEqual(cm.exception.account_address, self.alice.address())

    async def test_generate_transaction_offline(self):
        self.node.offline = True
        payload = mint_payload(self.contract, self.candy_machine)
        with self.assertRaises(NetworkError):
            await self.client.generate_transaction(self.bob.address(), payload)

    async def test_generate_transaction_server_error(self):
        self.node.server_error = True
        payload = mint_payload(self.contract, self.candy_machine)
        with self.assertRaises(NetworkError) as cm:
            await self.client.generate_transaction(self.bob.address(), payload)
        self.assertEqual(cm.exception.status_code, 503)

    async def test_sign(self):
        payload = mint_payload(self.contract, self.candy_machine)
        raw_transaction = await self.client.generate_transaction(
            self.bob.address(), payload
        )
        signed_transaction = self.client.sign(self.bob, raw_transaction)
        self.assertTrue(signed_transaction.verify())
        self.assertEqual(signed_transaction.transaction, raw_transaction)

    async def test_sign_wrong_account(self):
        payload = mint_payload(self.contract, self.candy_machine)
        raw_transaction = await self.client.generate_transaction(
            self.bob.address(), payload
        )
        with self.assertRaises(SigningError):
            self.client.sign(self.alice, raw_transaction)

    async def test_mint(self):
        with self.assertLogs(logger, level="INFO") as logs:
            result = await self.client.mint(self.bob, self.candy_machine)
        self.assertTrue(result.hash.startswith("0x"))
        self.assertEqual(result.sender, self.bob.address())
        self.assertEqual(result.sequence_number, 3)
        self.assertIn(f"Token Minted {result.hash}", logs.output[0])
        self.assertEqual(self.node.sequence_number(self.bob.address()), 4)

        submitted = self.node.submitted()
        self.assertEqual(len(submitted), 1)
        self.assertEqual(
            submitted[0]["payload"]["function"],
            f"{self.contract}::candymachine::mint_script",
        )
        self.assertEqual(
            submitted[0]["payload"]["arguments"], [self.candy_machine.address.hex()]
        )

    async def test_malformed_arguments_rejected(self):
        self.node.register_entry_function(
            f"{self.contract}::candymachine::mint_script", 2
        )
        with self.assertRaises(TransactionRejected) as cm:
            await self.client.mint(self.bob, self.candy_machine)
        self.assertEqual(cm.exception.status_code, 400)
        self.assertIn("NUMBER_OF_ARGUMENTS_MISMATCH", str(cm.exception))
        self.assertEqual(self.node.submitted(), [])

    async def test_stale_sequence_number_rejected(self):
        payload = mint_payload(self.contract, self.candy_machine)
        first = await self.client.generate_transaction(self.bob.address(), payload)
        second = await self.client.generate_transaction(self.bob.address(), payload)
        self.assertEqual(first.sequence_number, second.sequence_number)

        await self.client.submit(self.client.sign(self.bob, first))
        with self.assertRaises(TransactionRejected) as cm:
            await self.client.submit(self.client.sign(self.bob, second))
        self.assertIn("SEQUENCE_NUMBER_TOO_OLD", str(cm.exception))
        self.assertEqual(len(self.node.submitted()), 1)

    async def test_explicit_sequence_number(self):
        payload = mint_payload(self.contract, self.candy_machine)
        with self.assertRaises(TransactionRejected) as cm:
            await self.client.submit_payload(self.bob, payload, sequence_number=9)
        self.assertIn("SEQUENCE_NUMBER_TOO_NEW", str(cm.exception))

    async def test_submit_offline(self):
        payload = mint_payload(self.contract, self.candy_machine)
        raw_transaction = await self.client.generate_transaction(
            self.bob.address(), payload
        )
        signed_transaction = self.client.sign(self.bob, raw_transaction)
        self.node.offline = True
        with self.assertRaises(NetworkError):
            await self.client.submit(signed_transaction)

    async def test_submit_server_error(self):
        payload = mint_payload(self.contract, self.candy_machine)
        raw_transaction = await self.client.generate_transaction(
            self.bob.address(), payload
        )
        signed_transaction = self.client.sign(self.bob, raw_transaction)
        self.node.server_error = True
        with self.assertRaises(NetworkError) as cm:
            await self.client.submit(signed_transaction)
        self.assertNotIsInstance(cm.exception, TransactionRejected)
        self.assertEqual(cm.exception.status_code, 503)
        self.assertEqual(self.node.submitted(), [])

    async def test_wait_for_transaction_timeout(self):
        result = await self.client.mint(self.bob, self.candy_machine)
        self.node.pending = True
        with self.assertRaises(NetworkError) as cm:
            await self.client.wait_for_transaction(result.hash)
        self.assertIn("timed out", str(cm.exception))

    async def test_wait_for_transaction(self):
        result = await self.client.mint(self.bob, self.candy_machine)
        transaction = await self.client.wait_for_transaction(result.hash)
        self.assertTrue(transaction["success"])

    async def test_wait_for_aborted_transaction(self):
        self.node.abort(
            f"{self.contract}::candymachine::mint_script",
            "Move abort in candymachine: ESOLD_OUT(0x10003)",
        )
        result = await self.client.mint(self.bob, self.candy_machine)
        with self.assertRaises(TransactionRejected) as cm:
            await self.client.wait_for_transaction(result.hash)
        self.assertEqual(cm.exception.transaction_hash, result.hash)
        self.assertIn("ESOLD_OUT", str(cm.exception))

    async def test_init_candy(self):
        from .identifiers import IdGenerator

        self.node.create_account(self.alice.address())
        settings = CandyMachineSettings.for_test(
            self.alice.address(), IdGenerator.seeded(0), now=0
        )
        with self.assertLogs(logger, level="INFO") as logs:
            result = await self.client.init_candy(self.alice, settings)
        self.assertIn(f"Candy Machine created: {result.hash}", logs.output[0])
        submitted = self.node.submitted()
        self.assertEqual(
            submitted[0]["payload"]["function"],
            f"{self.contract}::candymachine::init_candy",
        )
        self.assertEqual(len(submitted[0]["payload"]["arguments"]), 17)


if __name__ == "__main__":
    unittest.main()
