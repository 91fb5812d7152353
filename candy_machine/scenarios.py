# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Integration scenarios against a deployed candy machine.

Each scenario is an ordinary coroutine taking a ``ScenarioContext``; the
context is built once per run from a ``RemoteClientConfig`` and owns the REST
client, the faucet and the two test accounts. Scenarios never share mutable
state beyond those read-only handles, so they can run one after another on
the same context.

Scenarios:

- ``run_mint``: Bob mints one token from the configured candy machine.
- ``run_init_candy``: Alice creates a new candy machine.
- ``run_fund``: fund an address from the faucet and read its balance back.

``run_scenario`` wraps any of them and reports ``completed`` or ``failed``.
Failures are re-raised unless the caller asks otherwise.

Examples:
    Run the mint scenario against testnet::

        context = ScenarioContext.create(RemoteClientConfig.from_env())
        try:
            result = await run_scenario("Mint", run_mint, context)
        finally:
            await context.close()
"""

import functools
import logging
import unittest
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional

from aptos_sdk.account import Account
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import RestClient

from .accounts import default_accounts
from .client import CandyMachineClient, SubmissionResult
from .config import RemoteClientConfig
from .exceptions import CandyMachineError
from .faucet import CandyMachineFaucet
from .identifiers import IdGenerator
from .payloads import CandyMachineSettings

logger = logging.getLogger(__name__)


class ScenarioState(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ScenarioResult:
    name: str
    state: ScenarioState = ScenarioState.PENDING
    transaction_hash: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.state == ScenarioState.COMPLETED


@dataclass
class ScenarioContext:
    """Everything a scenario needs, created once per run."""

    config: RemoteClientConfig
    rest_client: RestClient
    client: CandyMachineClient
    faucet: CandyMachineFaucet
    alice: Account
    bob: Account
    candy_machine: AccountAddress
    id_generator: IdGenerator = field(default_factory=IdGenerator)

    @staticmethod
    def create(
        config: RemoteClientConfig,
        id_generator: Optional[IdGenerator] = None,
        rest_client: Optional[RestClient] = None,
    ) -> "ScenarioContext":
        """Open clients for ``config`` and derive the test accounts.

        :param rest_client: Use this REST client instead of opening one
        """
        rest_client = rest_client or config.rest_client()
        (alice, bob) = default_accounts()
        return ScenarioContext(
            config=config,
            rest_client=rest_client,
            client=CandyMachineClient(rest_client, config.contract_address()),
            faucet=CandyMachineFaucet(
                config.faucet_url, rest_client, config.faucet_auth_token
            ),
            alice=alice,
            bob=bob,
            candy_machine=config.candy_machine_address(),
            id_generator=id_generator or IdGenerator(),
        )

    async def close(self):
        await self.rest_client.close()


ScenarioStep = Callable[[ScenarioContext], Awaitable[Optional[str]]]


async def run_scenario(
    name: str,
    step: ScenarioStep,
    context: ScenarioContext,
    raise_on_failure: bool = True,
) -> ScenarioResult:
    """
    Run ``step`` and record how it ended.

    :param name: Label used in log lines
    :param step: Scenario coroutine; returns a transaction hash or None
    :param raise_on_failure: Re-raise the scenario's error after recording it
    :return: The result, ``completed`` or ``failed``
    """
    result = ScenarioResult(name)
    logger.info("%s: %s", name, result.state.value)
    try:
        result.transaction_hash = await step(context)
    except CandyMachineError as e:
        result.state = ScenarioState.FAILED
        result.error = e
        logger.error("%s: %s (%s)", name, result.state.value, e)
        if raise_on_failure:
            raise
        return result
    result.state = ScenarioState.COMPLETED
    logger.info("%s: %s", name, result.state.value)
    return result


async def run_mint(context: ScenarioContext) -> str:
    result: SubmissionResult = await context.client.mint(
        context.bob, context.candy_machine
    )
    return result.hash


async def run_init_candy(context: ScenarioContext) -> str:
    settings = CandyMachineSettings.for_test(
        context.alice.address(), context.id_generator
    )
    result = await context.client.init_candy(context.alice, settings)
    return result.hash


async def run_fund(
    context: ScenarioContext, address: AccountAddress, amount: int
) -> str:
    """Fund ``address`` and check that the balance is positive afterwards."""
    txn_hash = await context.faucet.fund(address, amount)
    balance = await context.client.balance(address)
    logger.info("Balance of %s: %d", address, balance)
    if balance <= 0:
        raise CandyMachineError(f"{address} has no balance after funding")
    return txn_hash


def fund_step(address: AccountAddress, amount: int) -> ScenarioStep:
    """Bind ``run_fund`` to one address so ``run_scenario`` can run it."""
    return functools.partial(run_fund, address=address, amount=amount)


class Test(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        from .testing import MockNode, config_for

        self.node = MockNode()
        config = config_for(self.node)
        self.context = ScenarioContext.create(
            config, IdGenerator.seeded(0), self.node.rest_client()
        )
        self.context.client.poll_interval = 0

    async def asyncTearDown(self):
        await self.context.close()

    async def test_mint(self):
        self.node.create_account(self.context.bob.address())
        result = await run_scenario("Mint", run_mint, self.context)
        self.assertTrue(result.succeeded)
        self.assertEqual(result.state, ScenarioState.COMPLETED)
        self.assertIsNotNone(result.transaction_hash)
        self.assertIn(result.transaction_hash, self.node.transactions)

    async def test_mint_unfunded_account_fails(self):
        from .exceptions import AccountNotFound

        with self.assertRaises(AccountNotFound):
            await run_scenario("Mint", run_mint, self.context)

    async def test_failure_recorded_without_raising(self):
        self.node.offline = True
        result = await run_scenario(
            "Mint", run_mint, self.context, raise_on_failure=False
        )
        self.assertEqual(result.state, ScenarioState.FAILED)
        self.assertFalse(result.succeeded)
        self.assertIsNone(result.transaction_hash)
        self.assertIsInstance(result.error, CandyMachineError)

    async def test_init_candy(self):
        self.node.create_account(self.context.alice.address())
        result = await run_scenario("Init candy", run_init_candy, self.context)
        self.assertTrue(result.succeeded)
        function = self.node.transactions[result.transaction_hash]["payload"][
            "function"
        ]
        self.assertTrue(function.endswith("::candymachine::init_candy"))

    async def test_fund(self):
        address = AccountAddress.from_str_relaxed("0xf00d")
        result = await run_scenario(
            "Fund", fund_step(address, 100_000_000), self.context
        )
        self.assertTrue(result.succeeded)
        self.assertEqual(await self.context.client.balance(address), 100_000_000)

    async def test_run_fund(self):
        address = AccountAddress.from_str_relaxed("0xf00d")
        txn_hash = await run_fund(self.context, address, 5)
        self.assertIn(txn_hash, self.node.transactions)
        self.assertEqual(self.node.balances[str(address)], 5)

    async def test_fund_zero_amount_fails(self):
        address = AccountAddress.from_str_relaxed("0xf00d")
        result = await run_scenario(
            "Fund", fund_step(address, 0), self.context, raise_on_failure=False
        )
        self.assertEqual(result.state, ScenarioState.FAILED)


if __name__ == "__main__":
    unittest.main()
