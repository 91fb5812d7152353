# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
An in-process stand-in for a full node and faucet, for tests.

``MockNode`` answers the handful of REST endpoints the candy machine client
uses through ``httpx.MockTransport``. It keeps per-account sequence numbers,
rejects stale ones, checks entry function arity for registered functions and
records every accepted transaction, which is enough to exercise the success
and failure paths without a network.

Examples:
    Wire a REST client to the mock::

        node = MockNode()
        node.create_account(bob.address())
        rest_client = node.rest_client()
"""

import functools
import hashlib
import json
import unittest.mock
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

import httpx
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import ClientConfig, RestClient
from aptos_sdk.bcs import Deserializer

from .config import RemoteClientConfig

NODE_URL = "http://node.test/v1"
FAUCET_URL = "http://faucet.test"
CHAIN_ID = 2

ENTRY_FUNCTION_VARIANT = 2


class MockNode:
    """A full node and faucet that live in memory."""

    sequence_numbers: Dict[str, int]
    balances: Dict[str, int]
    transactions: Dict[str, Dict[str, Any]]
    entry_functions: Dict[str, int]

    def __init__(self, node_url: str = NODE_URL, faucet_url: str = FAUCET_URL):
        self.node_url = node_url.rstrip("/")
        self.faucet_url = faucet_url.rstrip("/")
        self.sequence_numbers = {}
        self.balances = {}
        self.transactions = {}
        self.entry_functions = {}
        self.offline = False
        self.server_error = False
        self.faucet_status = 200
        # Report every transaction as pending.
        self.pending = False
        self.abort_functions: Dict[str, str] = {}

    #
    # Setup
    #

    def create_account(self, address: AccountAddress, sequence_number: int = 0):
        self.sequence_numbers[self._key(address)] = sequence_number
        self.balances.setdefault(self._key(address), 0)

    def register_entry_function(self, function_id: str, arity: int):
        """Reject calls to ``function_id`` that do not pass ``arity`` arguments."""
        self.entry_functions[function_id] = arity

    def abort(self, function_id: str, vm_status: str):
        """Accept calls to ``function_id`` but fail them on execution."""
        self.abort_functions[function_id] = vm_status

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def rest_client(self, client_config: ClientConfig = ClientConfig()) -> RestClient:
        """A ``RestClient`` whose HTTP client talks to this node."""
        async_client = functools.partial(httpx.AsyncClient, transport=self.transport())
        with unittest.mock.patch.object(httpx, "AsyncClient", async_client):
            return RestClient(self.node_url, client_config)

    #
    # Inspection
    #

    def sequence_number(self, address: AccountAddress) -> int:
        return self.sequence_numbers[self._key(address)]

    def submitted(self) -> List[Dict[str, Any]]:
        return [
            txn
            for txn in self.transactions.values()
            if txn["type"] == "user_transaction"
        ]

    #
    # Request handling
    #

    def handle(self, request: httpx.Request) -> httpx.Response:
        if self.offline:
            raise httpx.ConnectError("connection refused", request=request)

        url = str(request.url)
        if url.startswith(self.faucet_url):
            return self._faucet(request)
        if self.server_error:
            return httpx.Response(503, json={"message": "service unavailable"})

        path = request.url.path.rstrip("/")
        base_path = urlparse(self.node_url).path.rstrip("/")
        route = path[len(base_path) :].strip("/").split("/")

        if route == [""]:
            return httpx.Response(
                200, json={"chain_id": CHAIN_ID, "ledger_version": "1"}
            )
        if route[0] == "accounts" and len(route) == 2:
            return self._account(route[1])
        if route[0] == "accounts" and len(route) == 4 and route[2] == "resource":
            return self._coin_store(route[1])
        if route == ["view"] and request.method == "POST":
            return self._view(request)
        if route == ["transactions"] and request.method == "POST":
            return self._submit(request)
        if route[:2] == ["transactions", "by_hash"] and len(route) == 3:
            return self._transaction(route[2])
        return httpx.Response(404, json={"message": f"unknown route {path}"})

    def _account(self, address: str) -> httpx.Response:
        key = self._key(AccountAddress.from_str_relaxed(address))
        if key not in self.sequence_numbers:
            return httpx.Response(
                404,
                json={
                    "message": f"Account not found by Address({address})",
                    "error_code": "account_not_found",
                },
            )
        return httpx.Response(
            200,
            json={
                "sequence_number": str(self.sequence_numbers[key]),
                "authentication_key": key,
            },
        )

    def _coin_store(self, address: str) -> httpx.Response:
        key = self._key(AccountAddress.from_str_relaxed(address))
        return httpx.Response(
            200,
            json={"data": {"coin": {"value": str(self.balances.get(key, 0))}}},
        )

    def _view(self, request: httpx.Request) -> httpx.Response:
        # The balance view takes a single address, serialized last.
        if request.headers.get("content-type", "").startswith("application/json"):
            argument = json.loads(request.content)["arguments"][-1]
            address = AccountAddress.from_str_relaxed(argument)
        else:
            address = AccountAddress(request.content[-32:])
        balance = self.balances.get(self._key(address), 0)
        return httpx.Response(200, json=[str(balance)])

    def _submit(self, request: httpx.Request) -> httpx.Response:
        content = request.content
        (sender, sequence_number, function_id, args) = self._decode(content)
        key = self._key(sender)

        if key not in self.sequence_numbers:
            return self._invalid("ACCOUNT_DOES_NOT_EXIST", sender)
        expected = self.sequence_numbers[key]
        if sequence_number < expected:
            return self._invalid("SEQUENCE_NUMBER_TOO_OLD", sender)
        if sequence_number > expected:
            return self._invalid("SEQUENCE_NUMBER_TOO_NEW", sender)
        arity = self.entry_functions.get(function_id)
        if arity is not None and args is not None and arity != len(args):
            return self._invalid("NUMBER_OF_ARGUMENTS_MISMATCH", sender)

        self.sequence_numbers[key] = expected + 1
        txn_hash = "0x" + hashlib.sha3_256(content).hexdigest()
        vm_status = self.abort_functions.get(function_id, "Executed successfully")
        self.transactions[txn_hash] = {
            "type": "user_transaction",
            "hash": txn_hash,
            "sender": key,
            "sequence_number": str(sequence_number),
            "payload": {
                "function": function_id,
                "arguments": [arg.hex() for arg in args or []],
            },
            "success": function_id not in self.abort_functions,
            "vm_status": vm_status,
        }
        return httpx.Response(202, json={"hash": txn_hash})

    def _transaction(self, txn_hash: str) -> httpx.Response:
        if txn_hash not in self.transactions:
            return httpx.Response(404, json={"message": f"{txn_hash} not found"})
        if self.pending:
            return httpx.Response(
                200, json={"type": "pending_transaction", "hash": txn_hash}
            )
        return httpx.Response(200, json=self.transactions[txn_hash])

    def _faucet(self, request: httpx.Request) -> httpx.Response:
        if self.faucet_status >= 400:
            return httpx.Response(
                self.faucet_status, json={"message": "faucet unavailable"}
            )
        if request.method == "GET":
            return httpx.Response(200, text="tap:ok")
        query = parse_qs(request.url.query.decode())
        if "address" in query:
            address = AccountAddress.from_str_relaxed(query["address"][0])
            amount = int(query["amount"][0])
        else:
            body = json.loads(request.content)
            address = AccountAddress.from_str_relaxed(body["address"])
            amount = int(body["amount"])
        key = self._key(address)
        self.sequence_numbers.setdefault(key, 0)
        self.balances[key] = self.balances.get(key, 0) + amount
        seed = f"{key}:{amount}:{len(self.transactions)}".encode()
        txn_hash = "0x" + hashlib.sha3_256(seed).hexdigest()
        self.transactions[txn_hash] = {
            "type": "faucet_transaction",
            "hash": txn_hash,
            "success": True,
            "vm_status": "Executed successfully",
        }
        return httpx.Response(200, json=[txn_hash])

    @staticmethod
    def _decode(
        content: bytes,
    ) -> Tuple[AccountAddress, int, str, Optional[List[bytes]]]:
        # SignedTransaction starts with its RawTransaction: sender, sequence
        # number, then the payload.
        des = Deserializer(content)
        sender = AccountAddress(des.fixed_bytes(32))
        sequence_number = des.u64()
        function_id = ""
        args: Optional[List[bytes]] = None
        if des.uleb128() == ENTRY_FUNCTION_VARIANT:
            module_address = AccountAddress(des.fixed_bytes(32))
            module_name = des.str()
            function = des.str()
            function_id = f"{module_address}::{module_name}::{function}"
            # Arguments follow the type arguments, which are only skipped when empty.
            if des.uleb128() == 0:
                args = des.sequence(Deserializer.to_bytes)
        return (sender, sequence_number, function_id, args)

    @staticmethod
    def _invalid(vm_status: str, sender: AccountAddress) -> httpx.Response:
        return httpx.Response(
            400,
            json={
                "message": f"Invalid transaction: Type: Validation Code: {vm_status}",
                "error_code": "vm_error",
                "vm_error_code": vm_status,
                "sender": str(sender),
            },
        )

    @staticmethod
    def _key(address: AccountAddress) -> str:
        return str(address)


def config_for(node: MockNode) -> RemoteClientConfig:
    """A ``RemoteClientConfig`` pointing at the mock endpoints."""
    return RemoteClientConfig(node_url=node.node_url, faucet_url=node.faucet_url)
