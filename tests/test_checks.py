import io
import os

import pytest

from zimbuild.checks import check_condition, check_conditions
from zimbuild.component import Component
from zimbuild.condition import Condition, ConditionScript
from zimbuild.execution import Executor, RunOpts
from zimbuild.files import FileSystem
from zimbuild.rule import Rule


class ScriptedExecutor(Executor):
    SCRIPTS = {
        "echo FOO": ("FOO\n", 0),
        "echo NOPE": ("NOPE\n", 0),
        "exit 1": ("", 1),
        "exit 42": ("", 42),
    }

    def __init__(self):
        self.calls = []

    def execute(self, opts):
        self.calls.append(opts)
        output, status = self.SCRIPTS[opts.command]
        opts.stdout.write(output)
        if status:
            raise RuntimeError(f"exit status {status}")

    def uses_docker(self):
        return False

    def executor_path(self, path):
        return path


def run_opts():
    out = io.StringIO()
    return RunOpts(output=out, debug_output=out, debug=False)


@pytest.fixture
def script_rule(tmp_path):
    c = Component(name="test-comp", directory=str(tmp_path))
    return Rule(c, "test-rule")


@pytest.mark.parametrize(
    "condition, expected",
    [
        (Condition(script_succeeds=ConditionScript(run="echo FOO", with_output="FOO")), True),
        (Condition(script_succeeds=ConditionScript(run="echo FOO")), True),
        (Condition(script_succeeds=ConditionScript(run="echo NOPE", with_output="FOO")), False),
        (Condition(script_succeeds=ConditionScript(run="exit 1", suppress_error=True)), False),
        (Condition(), True),
    ],
)
def test_condition_script(script_rule, condition, expected):
    result = check_condition(script_rule, condition, run_opts(), ScriptedExecutor(), {})
    assert result is expected


def test_condition_script_error_propagates(script_rule):
    condition = Condition(script_succeeds=ConditionScript(run="exit 42"))
    with pytest.raises(RuntimeError, match="exit status 42"):
        check_condition(script_rule, condition, run_opts(), ScriptedExecutor(), {})


def test_condition_script_exec_options(script_rule, tmp_path):
    executor = ScriptedExecutor()
    opts = run_opts()
    condition = Condition(script_succeeds=ConditionScript(run="echo FOO"))
    check_condition(script_rule, condition, opts, executor, {"B": "2", "A": "1"})
    (call,) = executor.calls
    assert call.name == "test-comp.test-rule.condition"
    assert call.working_directory == str(tmp_path)
    assert call.env == ["A=1", "B=2"]
    assert call.stderr is opts.output
    assert call.stdout is not opts.output
    assert call.image == ""


def test_condition_output_uses_variables(script_rule):
    condition = Condition(
        script_succeeds=ConditionScript(run="echo FOO", with_output="${WORD}")
    )
    assert check_condition(
        script_rule, condition, run_opts(), ScriptedExecutor(), {"WORD": "FOO"}
    )


@pytest.fixture
def exists_rule(tmp_path):
    root = str(tmp_path)
    cdir = os.path.join(root, "src", "my-component")
    os.makedirs(os.path.join(cdir, "subdir"))
    with open(os.path.join(cdir, "test.txt"), "w") as handle:
        handle.write("some contents here")
    c = Component(
        name="my-component",
        directory=cdir,
        rel_path=os.path.join("src", "my-component"),
    )
    return Rule(c, "test-rule", in_provider=FileSystem(root))


@pytest.mark.parametrize(
    "condition, expected",
    [
        (Condition(directory_exists="subdir"), True),
        (Condition(directory_exists="MISSING"), False),
        (Condition(resource_exists="test.txt"), True),
        (Condition(resource_exists="MISSING"), False),
    ],
)
def test_exists_conditions(exists_rule, condition, expected):
    result = check_condition(exists_rule, condition, run_opts(), ScriptedExecutor(), {})
    assert result is expected


def test_exists_condition_substitutes_variables(exists_rule):
    condition = Condition(resource_exists="${FILE}")
    assert check_condition(
        exists_rule, condition, run_opts(), ScriptedExecutor(), {"FILE": "test.txt"}
    )


@pytest.mark.parametrize(
    "name, when, unless, expected",
    [
        ("build-when-run", Condition(resource_exists="main.go"), None, True),
        ("build-when-skip", Condition(resource_exists="missing.go"), None, False),
        ("build-unless-run", None, Condition(resource_exists="missing.go"), True),
        ("build-unless-skip", None, Condition(resource_exists="main.go"), False),
    ],
)
def test_rule_conditions(tmp_path, name, when, unless, expected):
    root = str(tmp_path)
    cdir = os.path.join(root, "conditions-test")
    os.makedirs(cdir)
    with open(os.path.join(cdir, "main.go"), "w") as handle:
        handle.write("package main")
    c = Component(name="conditions-test", directory=cdir, rel_path="conditions-test")
    rule = Rule(
        c, name, in_provider=FileSystem(root), when=when, unless=unless
    )
    assert check_conditions(rule, run_opts(), ScriptedExecutor(), {}) is expected