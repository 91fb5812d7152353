# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""Test network faucet access."""

import logging
import unittest
from typing import Optional

import httpx
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import ApiError, FaucetClient, RestClient

from . import client
from .exceptions import FaucetExhausted, NetworkError

logger = logging.getLogger(__name__)

# Faucets answer 429 when rate limited and 403 once a caller has drained its allowance.
EXHAUSTED_STATUS_CODES = (403, 429)


class CandyMachineFaucet:
    """Funds test accounts. A thin wrapper around the SDK faucet client."""

    faucet: FaucetClient
    poll_interval: float = 1.0

    def __init__(
        self, base_url: str, rest_client: RestClient, auth_token: Optional[str] = None
    ):
        self.faucet = FaucetClient(base_url, rest_client, auth_token)

    async def fund(
        self, address: AccountAddress, amount: int, wait_for_transaction: bool = True
    ) -> str:
        """
        Mint ``amount`` octas to ``address``, creating the account if needed.

        :return: Hash of the funding transaction
        :raises FaucetExhausted: If the faucet refuses to pay out
        :raises NetworkError: If the faucet or node cannot be reached, or the
            funding transaction is still pending after the configured wait
        :raises TransactionRejected: If the funding transaction failed on chain
        """
        try:
            txn_hash = await self.faucet.fund_account(
                address, amount, wait_for_transaction=False
            )
        except httpx.TransportError as e:
            raise NetworkError(f"Unable to reach the faucet: {e}") from e
        except ApiError as e:
            if e.status_code in EXHAUSTED_STATUS_CODES:
                raise FaucetExhausted(address, str(e), e.status_code) from e
            raise NetworkError(str(e), e.status_code) from e
        if wait_for_transaction:
            await client.wait_for_transaction(
                self.faucet.rest_client, txn_hash, self.poll_interval
            )
        logger.info("Funded %s with %d: %s", address, amount, txn_hash)
        return txn_hash

    async def healthy(self) -> bool:
        try:
            return await self.faucet.healthy()
        except httpx.TransportError as e:
            raise NetworkError(f"Unable to reach the faucet: {e}") from e


class Test(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        from .testing import MockNode

        self.node = MockNode()
        self.rest_client = self.node.rest_client()
        self.faucet = CandyMachineFaucet(self.node.faucet_url, self.rest_client)
        self.faucet.poll_interval = 0
        self.address = AccountAddress.from_str_relaxed("0xbeef")

    async def asyncTearDown(self):
        await self.rest_client.close()

    async def test_fund(self):
        with self.assertLogs(logger, level="INFO"):
            txn_hash = await self.faucet.fund(self.address, 100_000_000)
        self.assertTrue(txn_hash.startswith("0x"))
        self.assertEqual(self.node.balances[str(self.address)], 100_000_000)
        balance = await self.rest_client.account_balance(self.address)
        self.assertEqual(balance, 100_000_000)

    async def test_exhausted(self):
        self.node.faucet_status = 429
        with self.assertRaises(FaucetExhausted) as cm:
            await self.faucet.fund(self.address, 1)
        self.assertEqual(cm.exception.status_code, 429)
        self.assertEqual(cm.exception.address, self.address)

    async def test_exhausted_allowance(self):
        self.node.faucet_status = 403
        with self.assertRaises(FaucetExhausted) as cm:
            await self.faucet.fund(self.address, 1)
        self.assertEqual(cm.exception.status_code, 403)

    async def test_server_error(self):
        self.node.faucet_status = 500
        with self.assertRaises(NetworkError):
            await self.faucet.fund(self.address, 1)

    async def test_offline(self):
        self.node.offline = True
        with self.assertRaises(NetworkError):
            await self.faucet.fund(self.address, 1)
        with self.assertRaises(NetworkError):
            await self.faucet.healthy()

    async def test_healthy(self):
        self.assertTrue(await self.faucet.healthy())

    async def test_unhealthy(self):
        self.node.faucet_status = 503
        self.assertFalse(await self.faucet.healthy())

    async def test_funding_transaction_never_executes(self):
        self.node.pending = True
        with self.assertRaises(NetworkError) as cm:
            await self.faucet.fund(self.address, 1)
        self.assertIn("timed out", str(cm.exception))

    async def test_fund_without_waiting(self):
        self.node.pending = True
        txn_hash = await self.faucet.fund(self.address, 1, wait_for_transaction=False)
        self.assertIn(txn_hash, self.node.transactions)


if __name__ == "__main__":
    unittest.main()
