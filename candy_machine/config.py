# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Network configuration for the candy machine client.

A ``RemoteClientConfig`` is built once per run and handed to every scenario,
so no scenario reaches for module level clients. Each field can be overridden
from the environment:

    APTOS_NODE_URL: REST endpoint of the full node
    APTOS_FAUCET_URL: faucet service used to fund test accounts
    FAUCET_AUTH_TOKEN: optional bearer token for the faucet
    APTOS_API_KEY: optional bearer token for the full node
    CANDY_MACHINE_CONTRACT: address the ``candymachine`` module is published at
    CANDY_MACHINE_ADDRESS: address of the candy machine instance to mint from

Examples:
    Testnet defaults::

        config = RemoteClientConfig()
        rest_client = config.rest_client()

    Environment driven::

        config = RemoteClientConfig.from_env()
"""

import os
import unittest
from dataclasses import dataclass
from typing import Mapping, Optional

from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import ClientConfig, RestClient

DEFAULT_NODE_URL = "https://fullnode.testnet.aptoslabs.com/v1"
DEFAULT_FAUCET_URL = "https://faucet.devnet.aptoslabs.com"

# Where the candymachine module lives and the machine the mint test targets.
DEFAULT_CONTRACT = (
    "0x511f963111905e2ae9cf79b00a9b9fa237dc6962e87018af3023615d7853d8fd"
)
DEFAULT_CANDY_MACHINE = (
    "0x1ef083efe4fe41a088aa2da78ddd9f953850bd4d9a2590fa0b5b33b048634eab"
)


@dataclass(frozen=True)
class RemoteClientConfig:
    """Endpoints and transaction parameters shared by all scenarios.

    Gas and expiration defaults match ``aptos_sdk.async_client.ClientConfig``.
    """

    node_url: str = DEFAULT_NODE_URL
    faucet_url: str = DEFAULT_FAUCET_URL
    faucet_auth_token: Optional[str] = None
    api_key: Optional[str] = None
    contract: str = DEFAULT_CONTRACT
    candy_machine: str = DEFAULT_CANDY_MACHINE
    max_gas_amount: int = 100_000
    gas_unit_price: int = 100
    expiration_ttl: int = 600
    transaction_wait_in_seconds: int = 20

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "RemoteClientConfig":
        env = os.environ if environ is None else environ
        return RemoteClientConfig(
            node_url=env.get("APTOS_NODE_URL", DEFAULT_NODE_URL),
            faucet_url=env.get("APTOS_FAUCET_URL", DEFAULT_FAUCET_URL),
            faucet_auth_token=env.get("FAUCET_AUTH_TOKEN"),
            api_key=env.get("APTOS_API_KEY"),
            contract=env.get("CANDY_MACHINE_CONTRACT", DEFAULT_CONTRACT),
            candy_machine=env.get("CANDY_MACHINE_ADDRESS", DEFAULT_CANDY_MACHINE),
        )

    def contract_address(self) -> AccountAddress:
        return AccountAddress.from_str_relaxed(self.contract)

    def candy_machine_address(self) -> AccountAddress:
        return AccountAddress.from_str_relaxed(self.candy_machine)

    def client_config(self) -> ClientConfig:
        return ClientConfig(
            expiration_ttl=self.expiration_ttl,
            gas_unit_price=self.gas_unit_price,
            max_gas_amount=self.max_gas_amount,
            transaction_wait_in_seconds=self.transaction_wait_in_seconds,
            api_key=self.api_key,
        )

    def rest_client(self) -> RestClient:
        """Open a REST client for ``node_url``. The caller owns it and must close it."""
        return RestClient(self.node_url, self.client_config())


class Test(unittest.TestCase):
    def test_defaults(self):
        config = RemoteClientConfig()
        self.assertEqual(config.node_url, DEFAULT_NODE_URL)
        self.assertEqual(config.faucet_url, DEFAULT_FAUCET_URL)
        self.assertIsNone(config.faucet_auth_token)
        self.assertEqual(
            config.contract_address(), AccountAddress.from_str(DEFAULT_CONTRACT)
        )

    def test_from_env(self):
        config = RemoteClientConfig.from_env(
            {
                "APTOS_NODE_URL": "http://127.0.0.1:8080/v1",
                "APTOS_FAUCET_URL": "http://127.0.0.1:8081",
                "FAUCET_AUTH_TOKEN": "token",
                "CANDY_MACHINE_ADDRESS": "0xcafe",
            }
        )
        self.assertEqual(config.node_url, "http://127.0.0.1:8080/v1")
        self.assertEqual(config.faucet_url, "http://127.0.0.1:8081")
        self.assertEqual(config.faucet_auth_token, "token")
        self.assertEqual(config.contract, DEFAULT_CONTRACT)
        self.assertEqual(
            config.candy_machine_address(), AccountAddress.from_str_relaxed("0xcafe")
        )

    def test_client_config(self):
        config = RemoteClientConfig(api_key="key", max_gas_amount=5_000)
        client_config = config.client_config()
        self.assertEqual(client_config.api_key, "key")
        self.assertEqual(client_config.max_gas_amount, 5_000)
        self.assertEqual(client_config.gas_unit_price, 100)


if __name__ == "__main__":
    unittest.main()
