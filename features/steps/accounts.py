import typing

from behave import given, then, use_step_matcher, when

from candy_machine.accounts import BOB_SEED, load_account
from candy_machine.exceptions import InvalidKeyFormat

# Use regular expressions
use_step_matcher("re")


@given(r"seed (?P<seed>\S+)")
def given_seed(context: typing.Any, seed: str):
    context.input = seed


@when(r"I derive the account")
def when_derive(context: typing.Any):
    try:
        context.output = load_account(context.input)
    except InvalidKeyFormat as e:
        context.output = e


@when(r"I derive the account twice")
def when_derive_twice(context: typing.Any):
    context.output = (load_account(context.input), load_account(context.input))


@then(r"both addresses should be equal")
def then_addresses_equal(context: typing.Any):
    (first, second) = context.output
    assert first.address() == second.address(), (
        str(first.address()) + " != " + str(second.address())
    )


@then(r"the address should (?P<negated>not )?be Bob's address")
def then_bobs_address(context: typing.Any, negated: typing.Optional[str]):
    is_bob = context.output.address() == load_account(BOB_SEED).address()
    assert is_bob != bool(negated), (
        "Unexpected address " + str(context.output.address())
    )
