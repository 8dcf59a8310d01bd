"""Scheduling of rules and their dependencies over a pool of workers."""

from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from zimbuild.execution import Executor, Runner, RunOpts
from zimbuild.graphs import graph_from_rules
from zimbuild.status import Code
from zimbuild.term import bright


class Status(IntEnum):
    """Running state of a rule in the scheduler."""

    UNSCHEDULED = 0
    RUNNING = 1
    ERROR = 2
    COMPLETED = 3


@dataclass
class Options:
    """Options used to configure a scheduler run."""

    build_id: str = ""
    name: str = ""
    runner: Runner | None = None
    executor: Executor | None = None
    rules: list[Any] = field(default_factory=list)
    run_remote: bool = False
    num_workers: int = 1


@dataclass
class WorkerResult:
    """The outcome of running one rule."""

    rule: Any
    code: Code
    error: Exception | None = None


def _work(runner: Runner, build_id: str, executor: Executor | None, rule: Any) -> WorkerResult:
    try:
        code = runner.run(rule, RunOpts(build_id=build_id, executor=executor))
    except Exception as exc:
        return WorkerResult(rule, Code(getattr(exc, "code", Code.ERROR)), exc)
    return WorkerResult(rule, code)


class GraphScheduler:
    """Runs rules in dependency order, in parallel where possible."""

    def run(self, options: Options) -> None:
        """Run the given rules and all their transitive dependencies.

        A rule runs only after its dependencies succeeded; when a rule fails,
        every rule depending on it fails too. All failures are raised together
        as one RuntimeError once nothing more can run.
        """
        if options.runner is None:
            raise ValueError("a runner is required")
        workers = max(1, options.num_workers)
        graph = graph_from_rules(options.rules)
        states = {node: Status.UNSCHEDULED for node in graph.nodes}
        rules = {node: data["rule"] for node, data in graph.nodes(data=True)}
        errors: list[str] = []
        finished = 0

        def rule_done(node: str, error: Exception | None) -> None:
            nonlocal finished
            if node not in graph:
                return
            finished += 1
            if error is not None:
                errors.append(str(error))
                states[node] = Status.ERROR
                for other in list(graph.predecessors(node)):
                    rule_done(
                        other,
                        RuntimeError(
                            f"Rule {bright(other)} failed due to error on "
                            f"dependency {bright(node)}"
                        ),
                    )
            else:
                states[node] = Status.COMPLETED
            if node in graph:
                graph.remove_node(node)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            running: dict[Future, str] = {}
            while finished < len(states):
                candidates = sorted(
                    node
                    for node in graph.nodes
                    if states[node] == Status.UNSCHEDULED and graph.out_degree(node) == 0
                )
                for node in candidates[: workers - len(running)]:
                    states[node] = Status.RUNNING
                    future = pool.submit(
                        _work, options.runner, options.build_id, options.executor, rules[node]
                    )
                    running[future] = node
                if not running:
                    break
                done, _ = wait(running, return_when=FIRST_COMPLETED)
                for future in done:
                    node = running.pop(future)
                    rule_done(node, future.result().error)

        for rule in options.rules:
            if states.get(rule.node_id()) == Status.UNSCHEDULED:
                errors.append(f"Rule did not run: {rule.node_id()}")

        if errors:
            lines = "\n".join(f"\t* {message}" for message in errors)
            raise RuntimeError(f"{len(errors)} error(s) occurred:\n{lines}")