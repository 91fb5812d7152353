# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Common configuration for the candy machine examples.

Every setting can be overridden from the environment; see
``candy_machine.config`` for the full list.

Environment Variables:
    APTOS_NODE_URL: URL of the Aptos REST API node endpoint
    APTOS_FAUCET_URL: URL of the Aptos faucet service for funding accounts
    FAUCET_AUTH_TOKEN: Authentication token for faucet requests (if required)
    CANDY_MACHINE_CONTRACT: Address of the published candymachine module
    CANDY_MACHINE_ADDRESS: Candy machine to mint from

Network Configurations:
    Testnet (Default):
    - Node: https://fullnode.testnet.aptoslabs.com/v1
    - Faucet: https://faucet.devnet.aptoslabs.com

    Local network::

        export APTOS_NODE_URL=http://127.0.0.1:8080/v1
        export APTOS_FAUCET_URL=http://127.0.0.1:8081
"""

import logging
import sys

from candy_machine.config import RemoteClientConfig

# :!:>section_1
CONFIG = RemoteClientConfig.from_env()

NODE_URL = CONFIG.node_url
FAUCET_URL = CONFIG.faucet_url
# <:!:section_1


def setup_logging():
    logging.basicConfig(
        stream=sys.stdout,
        level=logging.INFO,
        format="%(message)s",
    )
