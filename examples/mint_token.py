# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Mint - mint one token from a deployed candy machine.

Bob builds a ``candymachine::mint_script`` call for the configured candy
machine, signs it and submits it to the full node. The hash is printed as
soon as the node accepts the transaction; pass ``--wait`` to also wait for
execution.

Usage::

    python -m examples.mint_token
    python -m examples.mint_token 0x1ef083efe4fe41a088aa2da78ddd9f953850bd4d9a2590fa0b5b33b048634eab --wait

Expected Output::

    Alice Address: 0x...
    Bob Address: 0x...
    Token Minted 0x...
"""

import asyncio
import dataclasses
import sys

from candy_machine.scenarios import ScenarioContext, run_mint, run_scenario

from .common import CONFIG, setup_logging


async def main(candy_machine: str, wait: bool):
    config = dataclasses.replace(CONFIG, candy_machine=candy_machine)
    context = ScenarioContext.create(config)
    try:
        result = await run_scenario("Mint", run_mint, context)
        if wait and result.transaction_hash:
            await context.client.wait_for_transaction(result.transaction_hash)
    finally:
        await context.close()


if __name__ == "__main__":
    setup_logging()
    args = [arg for arg in sys.argv[1:] if arg != "--wait"]
    asyncio.run(main(args[0] if args else CONFIG.candy_machine, "--wait" in sys.argv))
