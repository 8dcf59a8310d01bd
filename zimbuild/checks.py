"""Evaluation of the when and unless conditions of rules."""

from __future__ import annotations

import io
import os
from collections.abc import Mapping
from typing import Any

from zimbuild.condition import Condition
from zimbuild.envutil import flatten_environment, substitute_vars
from zimbuild.execution import ExecOpts, Executor, RunOpts
from zimbuild.resources import match_resources


def check_conditions(
    rule: Any, opts: RunOpts, executor: Executor, env: Mapping[str, str]
) -> bool:
    """True if the rule should execute given its when and unless conditions."""
    if not rule.when.is_empty():
        if not check_condition(rule, rule.when, opts, executor, env):
            return False
    if not rule.unless.is_empty():
        if check_condition(rule, rule.unless, opts, executor, env):
            return False
    return True


def check_condition(
    rule: Any,
    condition: Condition,
    opts: RunOpts,
    executor: Executor,
    env: Mapping[str, str],
) -> bool:
    """True if the condition is met; scripts are run with ``executor``."""
    component = rule.component

    if condition.resource_exists:
        pattern = substitute_vars(condition.resource_exists, env)
        found = match_resources(component, rule.in_provider, [pattern])
        return len(found) > 0

    if condition.directory_exists:
        name = substitute_vars(condition.directory_exists, env)
        return os.path.isdir(os.path.join(component.directory, name))

    script = condition.script_succeeds
    if not script.is_empty():
        output = io.StringIO()
        try:
            executor.execute(
                ExecOpts(
                    command=script.run,
                    working_directory=component.directory,
                    env=flatten_environment(env),
                    image=rule.image(),
                    name=f"{rule.node_id()}.condition",
                    stdout=output,
                    stderr=opts.output,
                    debug=opts.debug,
                    cmdout=opts.debug_output,
                )
            )
        except Exception:
            if script.suppress_error:
                return False
            raise
        if script.with_output:
            required = substitute_vars(script.with_output, env)
            return output.getvalue().strip() == required
        return True

    return True