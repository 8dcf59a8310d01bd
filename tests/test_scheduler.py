import os
import threading

import pytest

from zimbuild.component import ComponentSpec
from zimbuild.execution import ExecOpts, Executor, RunError, RunnerFunc
from zimbuild.project import Project
from zimbuild.rule import Dependency, RuleSpec
from zimbuild.scheduler import GraphScheduler, Options, Status
from zimbuild.status import Code


class NullExecutor(Executor):
    def execute(self, opts: ExecOpts) -> None:
        return None

    def uses_docker(self) -> bool:
        return False

    def executor_path(self, path: str) -> str:
        return path


def make_project(root):
    widget = ComponentSpec(
        path=os.path.join(root, "widget"),
        name="widget",
        rules={
            "test": RuleSpec(),
            "build": RuleSpec(requires=[Dependency(rule="test")]),
        },
    )
    dongle = ComponentSpec(
        path=os.path.join(root, "dongle"),
        name="dongle",
        rules={
            "ignored": RuleSpec(),
            "build": RuleSpec(requires=[Dependency(component="widget", rule="build")]),
        },
    )
    return Project(root, component_specs=[widget, dongle])


def test_scheduler_runs_in_dependency_order(tmp_path):
    p = make_project(str(tmp_path))
    build_rules = p.components().rules(["build"])
    assert len(build_rules) == 2

    widget = p.components().with_name("widget").first()
    dongle = p.components().with_name("dongle").first()
    expected = [
        widget.must_rule("test"),
        widget.must_rule("build"),
        dongle.must_rule("build"),
    ]

    got = []

    def run(rule, opts):
        got.append(rule)
        return Code.OK

    GraphScheduler().run(
        Options(build_id="234", runner=RunnerFunc(run), rules=build_rules, num_workers=2)
    )
    assert got == expected


def test_worker_passes_options_and_reports_error(tmp_path):
    root = str(tmp_path)
    spec = ComponentSpec(path=os.path.join(root, "widget"), name="widget", rules={"build": RuleSpec()})
    p = Project(root, component_specs=[spec])
    build = p.components().with_name("widget").first().rule("build")
    executor = NullExecutor()
    seen = []

    def run(rule, opts):
        seen.append((rule, opts))
        raise RunError("bourgeoisie", Code.CACHED)

    with pytest.raises(RuntimeError, match="bourgeoisie"):
        GraphScheduler().run(
            Options(build_id="123", runner=RunnerFunc(run), executor=executor, rules=[build])
        )
    assert len(seen) == 1
    rule, opts = seen[0]
    assert rule is build
    assert opts.build_id == "123"
    assert opts.executor is executor
    assert opts.output is None


def test_failure_propagates_to_dependents(tmp_path, monkeypatch):
    monkeypatch.setenv("NO_COLOR", "1")
    p = make_project(str(tmp_path))
    calls = []

    def run(rule, opts):
        calls.append(rule.node_id())
        raise RunError("boom", Code.EXEC_ERROR)

    with pytest.raises(RuntimeError) as info:
        GraphScheduler().run(
            Options(runner=RunnerFunc(run), rules=p.components().rules(["build"]), num_workers=3)
        )
    message = str(info.value)
    assert calls == ["widget.test"]
    assert "boom" in message
    assert "Rule widget.build failed due to error on dependency widget.test" in message
    assert "Rule dongle.build failed due to error on dependency widget.build" in message


def test_zero_workers_still_runs(tmp_path):
    p = make_project(str(tmp_path))
    got = []
    GraphScheduler().run(
        Options(
            runner=RunnerFunc(lambda rule, opts: got.append(rule.node_id()) or Code.OK),
            rules=p.components().rules(["ignored"]),
            num_workers=0,
        )
    )
    assert got == ["dongle.ignored"]


def test_parallel_workers_limit(tmp_path):
    root = str(tmp_path)
    specs = [
        ComponentSpec(path=os.path.join(root, n, "c.yaml"), name=n, rules={"build": RuleSpec()})
        for n in ("a", "b", "c", "d")
    ]
    p = Project(root, component_specs=specs)
    build_rules = p.components().rules(["build"])
    assert len(build_rules) == 4
    lock = threading.Lock()
    active = [0, 0]
    ran = []

    def run(rule, opts):
        with lock:
            active[0] += 1
            active[1] = max(active[1], active[0])
            ran.append(rule.node_id())
        with lock:
            active[0] -= 1
        return Code.OK

    GraphScheduler().run(
        Options(runner=RunnerFunc(run), rules=build_rules, num_workers=2)
    )
    assert sorted(ran) == sorted(rule.node_id() for rule in build_rules)
    assert 1 <= active[1] <= 2


def test_cycle_reports_rules_that_did_not_run(tmp_path):
    root = str(tmp_path)
    specs = [
        ComponentSpec(
            path=os.path.join(root, "a", "c.yaml"),
            name="a",
            rules={"build": RuleSpec(requires=[Dependency(component="b", rule="build")])},
        ),
        ComponentSpec(
            path=os.path.join(root, "b", "c.yaml"),
            name="b",
            rules={"build": RuleSpec(requires=[Dependency(component="a", rule="build")])},
        ),
    ]
    p = Project(root, component_specs=specs)
    called = []
    with pytest.raises(RuntimeError, match="Rule did not run: a.build"):
        GraphScheduler().run(
            Options(
                runner=RunnerFunc(lambda rule, opts: called.append(rule) or Code.OK),
                rules=[p.rule("a", "build")],
            )
        )
    assert called == []


def test_status_ordering():
    assert [Status(value).name for value in range(4)] == [
        "UNSCHEDULED",
        "RUNNING",
        "ERROR",
        "COMPLETED",
    ]
    assert Status(0) is Status.UNSCHEDULED