import typing

from behave import given, then, use_step_matcher

from candy_machine import exceptions

# Use regular expressions
use_step_matcher("re")

SUBJECTS = "derivation|parsing|the scenario|the second submission"


@given(r'string "(?P<input_value>.*)"')
def given_string(context: typing.Any, input_value: str):
    context.input = input_value


@then(r"(?P<subject>" + SUBJECTS + r") should fail")
def then_fail(context: typing.Any, subject: str):
    assert isinstance(context.output, Exception), (
        "Expected " + subject + " to fail but got " + str(context.output)
    )


@then(r"(?P<subject>" + SUBJECTS + r") should fail with (?P<error>[A-Za-z]+)")
def then_fail_with(context: typing.Any, subject: str, error: str):
    expected = error_type(error)
    assert isinstance(context.output, expected), (
        "Expected " + error + " but got " + repr(context.output)
    )


def error_type(name: str) -> typing.Type[Exception]:
    error = getattr(exceptions, name, None)
    if not (isinstance(error, type) and issubclass(error, Exception)):
        raise Exception("Unrecognized error type " + name)
    return error
