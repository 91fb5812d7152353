import typing

from behave import then, use_step_matcher, when

from candy_machine.payloads import EntryFunctionId

# Use regular expressions
use_step_matcher("re")


@when(r"I parse the entry function identifier")
def when_parse_entry_function(context: typing.Any):
    try:
        context.output = EntryFunctionId.from_str(context.input)
    except ValueError as e:
        context.output = e


@then(r"the module should be (?P<module>\S+)")
def then_module(context: typing.Any, module: str):
    assert context.output.module == module, (
        "Expected " + module + " but got " + context.output.module
    )


@then(r"the function should be (?P<function>\S+)")
def then_function(context: typing.Any, function: str):
    assert context.output.function == function, (
        "Expected " + function + " but got " + context.output.function
    )


@then(r'printing it should give "(?P<expected>.*)"')
def then_printed(context: typing.Any, expected: str):
    assert str(context.output) == expected, (
        "Expected " + expected + " but got " + str(context.output)
    )
