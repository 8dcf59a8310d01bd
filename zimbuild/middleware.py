"""Runner middleware: output buffering, logging and debug mode."""

from __future__ import annotations

import io
import sys
import time
from dataclasses import replace
from typing import Any

from zimbuild.execution import Runner, RunnerFunc, RunOpts
from zimbuild.status import Code
from zimbuild.term import bright, green, red


def buffered_output(runner: Runner) -> Runner:
    """Collect a rule's output and print it once the rule finishes."""

    def run(rule: Any, opts: RunOpts) -> Code:
        buffer = io.StringIO()
        try:
            return runner.run(rule, replace(opts, output=buffer, debug_output=buffer))
        finally:
            text = buffer.getvalue().strip()
            if text:
                for line in text.split("\n"):
                    print(line)

    return RunnerFunc(run)


def logger(runner: Runner) -> Runner:
    """Report the start, duration and outcome of each rule."""

    def run(rule: Any, opts: RunOpts) -> Code:
        if opts.output is None:
            opts = replace(opts, output=sys.stdout)
        out = opts.output
        node = bright(rule.node_id())
        print("rule:", node, file=out)
        started = time.monotonic()

        def report_short(code: Code) -> bool:
            if code == Code.SKIPPED:
                print("rule:", node, green("[SKIPPED]"), file=out)
                return True
            if code == Code.CACHED:
                print("rule:", node, green("[CACHED]"), file=out)
                return True
            return False

        def duration() -> str:
            return bright(f"in {time.monotonic() - started:.3f} sec")

        try:
            code = runner.run(rule, opts)
        except Exception as exc:
            if report_short(getattr(exc, "code", Code.ERROR)):
                raise
            message = str(exc)
            killed = "signal: killed" in message or "context canceled" in message
            status = red("[KILLED]") if killed else red("[FAILED]")
            print("rule:", node, duration(), status, file=out)
            raise
        if not report_short(code):
            print("rule:", node, duration(), green("[OK]"), file=out)
        return code

    return RunnerFunc(run)


def debug(runner: Runner) -> Runner:
    """Turn on the debug flag for the wrapped runner."""

    def run(rule: Any, opts: RunOpts) -> Code:
        return runner.run(rule, replace(opts, debug=True))

    return RunnerFunc(run)