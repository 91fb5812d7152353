# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Command-line entry point for the candy machine integration scenarios.

Commands:
- addresses: print the Alice and Bob test addresses
- mint: Bob mints one token from the candy machine
- init-candy: Alice creates a new candy machine
- fund: fund an address from the faucet and print its balance

Endpoints default to ``RemoteClientConfig.from_env()`` and can be overridden
per invocation.

Examples:
    Mint against testnet::

        python -m candy_machine.cli mint

    Create a candy machine on a local network, reproducibly::

        python -m candy_machine.cli init-candy \
            --node-url http://127.0.0.1:8080/v1 \
            --id-seed 42 --wait
"""

import argparse
import asyncio
import dataclasses
import logging
import sys
import unittest
import unittest.mock
from typing import List, Optional

from aptos_sdk.account_address import AccountAddress

from .accounts import default_accounts
from .config import RemoteClientConfig
from .exceptions import CandyMachineError
from .identifiers import IdGenerator
from .scenarios import (
    ScenarioContext,
    ScenarioResult,
    fund_step,
    run_init_candy,
    run_mint,
    run_scenario,
)

logger = logging.getLogger(__name__)

COMMANDS = ["addresses", "mint", "init-candy", "fund"]


def init_logging(level: int = logging.INFO) -> None:
    root = logging.getLogger("")
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] %(levelname)s [%(name)s] %(message)s",
            datefmt="%a, %d %b %Y %H:%M:%S",
        )
    )
    root.addHandler(handler)


def build_config(parsed_args: argparse.Namespace) -> RemoteClientConfig:
    overrides = {
        name: value
        for (name, value) in [
            ("node_url", parsed_args.node_url),
            ("faucet_url", parsed_args.faucet_url),
            ("contract", parsed_args.contract),
            ("candy_machine", parsed_args.candy_machine),
        ]
        if value is not None
    }
    return dataclasses.replace(RemoteClientConfig.from_env(), **overrides)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Candy machine integration tests")
    parser.add_argument(
        "command", type=str, help="The scenario to run", choices=COMMANDS
    )
    parser.add_argument(
        "--node-url", help="Full node REST endpoint (APTOS_NODE_URL)", type=str
    )
    parser.add_argument(
        "--faucet-url", help="Faucet endpoint (APTOS_FAUCET_URL)", type=str
    )
    parser.add_argument(
        "--contract",
        help="Address the candymachine module is published at",
        type=str,
    )
    parser.add_argument(
        "--candy-machine", help="Candy machine to mint from", type=str
    )
    parser.add_argument(
        "--address",
        help="Address to fund (defaults to Bob)",
        type=AccountAddress.from_str_relaxed,
    )
    parser.add_argument(
        "--amount",
        help="Octas to request from the faucet",
        type=int,
        default=100_000_000,
    )
    parser.add_argument(
        "--id-seed",
        help="Seed the random identifier generator for reproducible runs",
        type=int,
    )
    parser.add_argument(
        "--wait",
        help="Wait for the transaction to execute",
        action="store_true",
    )
    parser.add_argument("--verbose", help="Log debug output", action="store_true")
    return parser


async def main(args: List[str]) -> Optional[ScenarioResult]:
    parsed_args = build_parser().parse_args(args)
    init_logging(logging.DEBUG if parsed_args.verbose else logging.INFO)

    if parsed_args.command == "addresses":
        (alice, bob) = default_accounts()
        print(f"Alice: {alice.address()}")
        print(f"Bob: {bob.address()}")
        return None

    config = build_config(parsed_args)
    id_generator = (
        IdGenerator.seeded(parsed_args.id_seed)
        if parsed_args.id_seed is not None
        else IdGenerator()
    )
    context = ScenarioContext.create(config, id_generator)
    try:
        if parsed_args.command == "mint":
            result = await run_scenario("Mint", run_mint, context)
        elif parsed_args.command == "init-candy":
            result = await run_scenario("Init candy", run_init_candy, context)
        else:
            address = parsed_args.address or context.bob.address()
            result = await run_scenario(
                "Fund", fund_step(address, parsed_args.amount), context
            )

        if parsed_args.wait and result.transaction_hash:
            await context.client.wait_for_transaction(result.transaction_hash)
            logger.info("Transaction %s executed", result.transaction_hash)
        return result
    finally:
        await context.close()


def run(args: Optional[List[str]] = None) -> int:
    try:
        asyncio.run(main(sys.argv[1:] if args is None else args))
    except CandyMachineError as e:
        logger.error("%s", e)
        return 1
    return 0


class Test(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        patcher = unittest.mock.patch(f"{__name__}.init_logging")
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_build_config_overrides(self):
        parsed_args = build_parser().parse_args(
            [
                "mint",
                "--node-url",
                "http://127.0.0.1:8080/v1",
                "--candy-machine",
                "0x5",
            ]
        )
        with unittest.mock.patch.dict("os.environ", {}, clear=True):
            config = build_config(parsed_args)
        self.assertEqual(config.node_url, "http://127.0.0.1:8080/v1")
        self.assertEqual(config.candy_machine, "0x5")
        self.assertEqual(config.faucet_url, RemoteClientConfig().faucet_url)

    def test_unknown_command(self):
        with self.assertRaises(SystemExit):
            build_parser().parse_args(["burn"])

    def test_run_returns_error_code(self):
        from .exceptions import AccountNotFound

        error = AccountNotFound(default_accounts()[1].address())
        with unittest.mock.patch(f"{__name__}.main", side_effect=error):
            with self.assertLogs(logger, level="ERROR"):
                self.assertEqual(run(["mint"]), 1)

    def test_run_returns_zero(self):
        with unittest.mock.patch(f"{__name__}.main", return_value=None):
            self.assertEqual(run(["addresses"]), 0)

    async def test_addresses(self):
        with unittest.mock.patch("builtins.print") as mock_print:
            self.assertIsNone(await main(["addresses"]))
        (alice, bob) = default_accounts()
        mock_print.assert_any_call(f"Alice: {alice.address()}")
        mock_print.assert_any_call(f"Bob: {bob.address()}")

    async def test_mint(self):
        from .testing import MockNode

        node = MockNode()
        node.create_account(default_accounts()[1].address())
        create = ScenarioContext.create

        def create_with_mock(config, id_generator=None, rest_client=None):
            return create(config, id_generator, node.rest_client())

        with unittest.mock.patch.object(
            ScenarioContext, "create", side_effect=create_with_mock
        ):
            result = await main(["mint", "--node-url", node.node_url, "--wait"])
        self.assertIsNotNone(result)
        self.assertTrue(result.succeeded)
        self.assertEqual(len(node.submitted()), 1)


if __name__ == "__main__":
    sys.exit(run())
