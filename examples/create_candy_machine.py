# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Create a candy machine for the "Mokshya" test collection.

Alice calls ``candymachine::init_candy`` with a 2000 token supply, a presale
that opens ten seconds from now and a public sale five seconds after that.
The candy machine's resource account is derived from a random five letter
seed; pass an integer to make that seed reproducible.

Usage::

    python -m examples.create_candy_machine
    python -m examples.create_candy_machine 42
"""

import asyncio
import sys
from typing import Optional

from candy_machine.identifiers import IdGenerator
from candy_machine.scenarios import ScenarioContext, run_init_candy, run_scenario

from .common import CONFIG, setup_logging


async def main(id_seed: Optional[int]):
    id_generator = IdGenerator.seeded(id_seed) if id_seed is not None else None
    context = ScenarioContext.create(CONFIG, id_generator)
    try:
        result = await run_scenario("Init candy", run_init_candy, context)
        await context.client.wait_for_transaction(result.transaction_hash)
    finally:
        await context.close()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(main(int(sys.argv[1]) if len(sys.argv) > 1 else None))
