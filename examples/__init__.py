"""
Candy machine examples - run the integration scenarios against a live network.

Examples:

    **Minting**:
    - mint_token.py: Bob mints one token from the configured candy machine

    **Setup**:
    - create_candy_machine.py: Alice creates a new candy machine
    - common.py: Shared configuration

Quick Start::

    python -m examples.mint_token
    python -m examples.create_candy_machine

Both scripts read their endpoints from the environment, see examples.common.

Safety:
    - The accounts are derived from public test keys, never use them on mainnet
    - Bob must already hold APT on the target network to pay for gas
"""
