import dataclasses

import pytest

from zimbuild.condition import Condition, ConditionScript


def test_default_script_is_empty():
    assert ConditionScript().is_empty() is True


def test_script_with_run_is_not_empty():
    assert ConditionScript(run="echo FOO").is_empty() is False


def test_script_only_output_is_empty():
    assert ConditionScript(with_output="FOO", suppress_error=True).is_empty() is True


def test_default_condition_is_empty():
    assert Condition().is_empty() is True


@pytest.mark.parametrize(
    "condition",
    [
        Condition(resource_exists="main.go"),
        Condition(directory_exists="build"),
        Condition(script_succeeds=ConditionScript(run="exit 0")),
    ],
)
def test_configured_condition_is_not_empty(condition):
    assert condition.is_empty() is False


def test_condition_with_empty_script_is_empty():
    condition = Condition(script_succeeds=ConditionScript(with_output="x"))
    assert condition.is_empty() is True


def test_conditions_are_immutable():
    condition = Condition()
    with pytest.raises(dataclasses.FrozenInstanceError):
        condition.resource_exists = "x"
    assert condition.resource_exists == ""


def test_conditions_compare_by_value():
    a = Condition(script_succeeds=ConditionScript(run="echo"))
    b = Condition(script_succeeds=ConditionScript(run="echo"))
    assert a == b
    assert a != Condition()