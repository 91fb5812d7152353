# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Errors raised while talking to the candy machine contract.

Local failures (``InvalidKeyFormat``, ``SigningError``) are raised before
anything leaves the process. The rest describe what the full node or the
faucet reported. SDK and httpx errors are translated into these at the client
boundary so callers only need to handle one hierarchy.
"""

from typing import Optional

from aptos_sdk.account_address import AccountAddress


class CandyMachineError(Exception):
    """Base exception for candy machine client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def __str__(self) -> str:
        if self.status_code:
            return f"{type(self).__name__} ({self.status_code}): {self.message}"
        return f"{type(self).__name__}: {self.message}"


class InvalidKeyFormat(CandyMachineError):
    """The seed is not a hex encoded 32 byte Ed25519 private key."""

    def __init__(self, reason: str):
        super().__init__(f"Invalid private key: {reason}")
        self.reason = reason


class NetworkError(CandyMachineError):
    """The node or faucet could not be reached, or answered with a server error."""


class AccountNotFound(CandyMachineError):
    """The sender is unknown to the chain."""

    def __init__(self, account_address: AccountAddress):
        self.account_address = account_address
        super().__init__(f"Account not found: {account_address}", 404)


class SigningError(CandyMachineError):
    """The account could not produce a valid signature for the transaction."""


class TransactionRejected(CandyMachineError):
    """The node refused the transaction or it aborted on chain."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        transaction_hash: Optional[str] = None,
    ):
        super().__init__(message, status_code)
        self.transaction_hash = transaction_hash


class FaucetExhausted(CandyMachineError):
    """The faucet refused to fund the address (rate limited or drained)."""

    def __init__(self, address: AccountAddress, message: str, status_code: int):
        self.address = address
        super().__init__(f"Faucet refused {address}: {message}", status_code)
