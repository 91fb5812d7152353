# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Candy machine integration tests - exercise an NFT minting contract on Aptos.

The package drives a deployed ``candymachine`` Move module through the Aptos
Python SDK: it derives deterministic test accounts, builds entry function
payloads, signs them and submits them to a full node, logging each resulting
transaction hash. Encoding, signing and networking are the SDK's job; this
package only orchestrates them and translates failures.

Quick Start:
    Mint one token on testnet::

        import asyncio
        from candy_machine.config import RemoteClientConfig
        from candy_machine.scenarios import ScenarioContext, run_mint, run_scenario

        async def main():
            context = ScenarioContext.create(RemoteClientConfig.from_env())
            try:
                result = await run_scenario("Mint", run_mint, context)
                print(result.transaction_hash)
            finally:
                await context.close()

        asyncio.run(main())

    Or from the shell::

        python -m candy_machine.cli mint

Module Organization:
    - **accounts**: Alice and Bob, derived from fixed hex seeds
    - **payloads**: entry function identifiers and ``candymachine`` payloads
    - **client**: generate, sign and submit transactions
    - **faucet**: fund test accounts
    - **identifiers**: injectable random identifier generator
    - **scenarios**: the mint, init-candy and fund scenarios
    - **config**: endpoints and gas settings
    - **exceptions**: error hierarchy
    - **testing**: in-memory full node and faucet for tests

Note:
    The bundled private keys are public test material. Use testnet or devnet.
"""
