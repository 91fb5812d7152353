import asyncio
import typing

from aptos_sdk.account_address import AccountAddress
from behave import given, then, use_step_matcher, when

from candy_machine.accounts import alice, bob
from candy_machine.identifiers import IdGenerator
from candy_machine.payloads import mint_payload
from candy_machine.scenarios import (
    ScenarioContext,
    ScenarioState,
    fund_step,
    run_mint,
    run_scenario,
)
from candy_machine.testing import MockNode, config_for

# Use regular expressions
use_step_matcher("re")


async def with_scenario_context(context: typing.Any, body):
    scenario_context = ScenarioContext.create(
        config_for(context.node), IdGenerator.seeded(0), context.node.rest_client()
    )
    try:
        return await body(scenario_context)
    finally:
        await scenario_context.close()


def run_in_context(context: typing.Any, step):
    async def body(scenario_context: ScenarioContext):
        return await run_scenario(
            "Mint", step, scenario_context, raise_on_failure=False
        )

    context.result = asyncio.run(with_scenario_context(context, body))
    failed = context.result.state == ScenarioState.FAILED
    context.output = context.result.error if failed else context.result


@given(r"a node where Bob has sequence number (?P<sequence_number>\d+)")
def given_node(context: typing.Any, sequence_number: str):
    context.node = MockNode()
    context.node.create_account(bob().address(), int(sequence_number))


@given(r"the node expects (?P<arity>\d+) arguments for (?P<function>\S+)")
def given_arity(context: typing.Any, arity: str, function: str):
    contract = config_for(context.node).contract_address()
    context.node.register_entry_function(f"{contract}::{function}", int(arity))


@given(r"the node is offline")
def given_offline(context: typing.Any):
    context.node.offline = True


@when(r"(?P<name>Alice|Bob) mints from the candy machine")
def when_mint(context: typing.Any, name: str):
    if name == "Bob":
        run_in_context(context, run_mint)
        return

    async def alice_mints(scenario_context: ScenarioContext) -> str:
        result = await scenario_context.client.mint(
            alice(), scenario_context.candy_machine
        )
        return result.hash

    run_in_context(context, alice_mints)


@when(r"Bob signs two mints with the same sequence number and submits both")
def when_double_submit(context: typing.Any):
    async def body(scenario_context: ScenarioContext):
        client = scenario_context.client
        payload = mint_payload(client.contract, scenario_context.candy_machine)
        signed = []
        for _ in range(2):
            raw_transaction = await client.generate_transaction(
                scenario_context.bob.address(), payload
            )
            signed.append(client.sign(scenario_context.bob, raw_transaction))

        outcomes: typing.List[typing.Any] = []
        for signed_transaction in signed:
            try:
                outcomes.append(await client.submit(signed_transaction))
            except Exception as e:
                outcomes.append(e)
        return outcomes

    context.outcomes = asyncio.run(with_scenario_context(context, body))
    context.output = context.outcomes[1]


@when(r"I fund (?P<address>0x[0-9a-fA-F]+) with (?P<amount>\d+) octas")
def when_fund(context: typing.Any, address: str, amount: str):
    run_in_context(
        context, fund_step(AccountAddress.from_str_relaxed(address), int(amount))
    )


@then(r"the scenario should be completed")
def then_completed(context: typing.Any):
    assert context.result.state == ScenarioState.COMPLETED, (
        "Scenario failed: " + repr(context.result.error)
    )


@then(r"the submission should have a transaction hash")
def then_hash(context: typing.Any):
    txn_hash = context.result.transaction_hash
    assert txn_hash and txn_hash in context.node.transactions, (
        "Unknown transaction hash " + str(txn_hash)
    )


@then(r"Bob's sequence number on the node should be (?P<expected>\d+)")
def then_sequence_number(context: typing.Any, expected: str):
    actual = context.node.sequence_number(bob().address())
    assert actual == int(expected), "Expected " + expected + " but got " + str(actual)


@then(r"the first submission should succeed")
def then_first_succeeds(context: typing.Any):
    assert not isinstance(context.outcomes[0], Exception), repr(context.outcomes[0])
    assert context.outcomes[0].hash in context.node.transactions


@then(r"the balance of (?P<address>0x[0-9a-fA-F]+) should be (?P<expected>\d+)")
def then_balance(context: typing.Any, address: str, expected: str):
    key = str(AccountAddress.from_str_relaxed(address))
    actual = context.node.balances.get(key, 0)
    assert actual == int(expected), "Expected " + expected + " but got " + str(actual)
