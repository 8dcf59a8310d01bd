"""The standard runner: evaluates rule conditions and executes rule commands."""

from __future__ import annotations

from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from typing import Any

from zimbuild.checks import check_conditions
from zimbuild.envutil import flatten_environment
from zimbuild.execution import ExecOpts, Executor, Runner, RunError, RunOpts
from zimbuild.rule import Command
from zimbuild.status import Code
from zimbuild.term import bright


def _attr(cmd: Command, name: str, default: str) -> str:
    value = (cmd.attributes or {}).get(name)
    return value if isinstance(value, str) else default


def _run_script(cmd: Command) -> str | None:
    return cmd.argument.strip() or None


def _zip_script(cmd: Command) -> str:
    options = _attr(cmd, "options", "-qrFS")
    source = _attr(cmd, "input", ".")
    output = _attr(cmd, "output", "")
    directory = _attr(cmd, "cd", "")
    if not output:
        raise ValueError("zip command has no output specified")
    script = f"zip {options} {output} {source}"
    if directory:
        script = f"cd {directory} && {script}"
    return script


def _unzip_script(cmd: Command) -> str:
    options = _attr(cmd, "options", "-qo")
    source = _attr(cmd, "input", "")
    output = _attr(cmd, "output", "")
    if not source:
        raise ValueError("unzip command has no input specified")
    script = f"unzip {options} {source}"
    if output:
        script = f"{script} -d {output}"
    return script


def _archive_script(cmd: Command) -> str:
    options = _attr(cmd, "options", "-czf")
    source = _attr(cmd, "input", "")
    output = _attr(cmd, "output", "")
    if not source:
        raise ValueError("archive command has no input specified")
    if not output:
        raise ValueError("archive command has no output specified")
    return f"tar {options} {output} {source}"


def _unarchive_script(cmd: Command) -> str:
    options = _attr(cmd, "options", "-xzf")
    source = _attr(cmd, "input", "")
    output = _attr(cmd, "output", "")
    if not source:
        raise ValueError("archive command has no input specified")
    script = f"tar {options} {source}"
    if output:
        script = f"mkdir -p {output} && {script} -C {output}"
    return script


def _targets(cmd: Command, kind: str) -> str:
    target = cmd.argument.strip()
    if not target:
        raise ValueError(f"{kind} command has no targets specified")
    return target


def _mkdir_script(cmd: Command) -> str:
    return f"mkdir -p {_targets(cmd, 'mkdir')}"


def _cleandir_script(cmd: Command) -> str:
    target = _targets(cmd, "cleandir")
    if target == "/":
        raise ValueError("cleandir cannot run against /")
    return f"rm -rf {target} && mkdir -p {target}"


def _remove_script(cmd: Command) -> str:
    return f"rm -rf {_targets(cmd, 'remove')}"


def _src_dst(cmd: Command, kind: str) -> tuple[str, str]:
    src = _attr(cmd, "src", "")
    dst = _attr(cmd, "dst", "")
    if not src:
        raise ValueError(f"{kind} command has no src specified")
    if not dst:
        raise ValueError(f"{kind} command has no dst specified")
    return src, dst


def _move_script(cmd: Command) -> str:
    src, dst = _src_dst(cmd, "move")
    return f"mv {src} {dst}"


def _copy_script(cmd: Command) -> str:
    options = _attr(cmd, "options", "-R")
    src, dst = _src_dst(cmd, "copy")
    args = f"{src} {dst}"
    if options:
        args = f"{options} {args}"
    return f"cp {args}"


_SCRIPTS: dict[str, Callable[[Command], str | None]] = {
    "run": _run_script,
    "zip": _zip_script,
    "unzip": _unzip_script,
    "archive": _archive_script,
    "unarchive": _unarchive_script,
    "mkdir": _mkdir_script,
    "cleandir": _cleandir_script,
    "remove": _remove_script,
    "move": _move_script,
    "copy": _copy_script,
}


def _set_artifact_variables(
    rule: Any, executor: Executor, env: MutableMapping[str, str]
) -> None:
    # Paths are translated by the executor, which knows how they look
    # inside a container if one is used.
    try:
        env["ROOT"] = executor.executor_path(rule.project().root_abs_path)
        env["ARTIFACTS_DIR"] = executor.executor_path(rule.artifacts_dir())
        outputs = rule.outputs()
        if outputs and outputs[0].on_filesystem():
            env["ARTIFACT"] = executor.executor_path(outputs[0].path())
    except Exception as exc:
        raise RunError(str(exc), Code.ERROR) from exc


@dataclass
class StandardRunner(Runner):
    """Runs a rule's commands with the executor given in the run options.

    Conditions and built-in commands run natively: with the given executor
    when it does not use Docker, otherwise with ``native_executor``.
    """

    native_executor: Executor | None = None

    def run(self, rule: Any, opts: RunOpts) -> Code:
        node = rule.node_id()
        provided = opts.executor
        if provided is not None and not provided.uses_docker():
            native = provided
        else:
            native = self.native_executor
        if native is None:
            raise RunError(f"no native executor available for rule {node}", Code.ERROR)
        if provided is None or (rule.is_native() and provided.uses_docker()):
            primary = native
        else:
            primary = provided

        try:
            native_env = rule.environment()
        except Exception as exc:
            raise RunError(f"Environment error {node}: {exc}", Code.ERROR) from exc
        _set_artifact_variables(rule, native, native_env)

        try:
            met = check_conditions(rule, opts, native, native_env)
        except Exception as exc:
            raise RunError(
                f"error checking conditions on rule {node}: {exc}", Code.ERROR
            ) from exc
        if not met:
            return Code.SKIPPED

        primary_env = dict(native_env)
        _set_artifact_variables(rule, primary, primary_env)

        for index, cmd in enumerate(rule.commands):
            build = _SCRIPTS.get(cmd.kind)
            if build is None:
                raise RunError(f"unknown command kind in {node}: {cmd.kind}", Code.ERROR)
            if cmd.kind == "run":
                env, executor = primary_env, primary
            else:
                env, executor = native_env, native
            try:
                script = build(cmd)
                if script is not None:
                    executor.execute(
                        ExecOpts(
                            command=script,
                            working_directory=rule.component.directory,
                            env=flatten_environment(env),
                            stdout=opts.output,
                            stderr=opts.output,
                            debug=opts.debug,
                            cmdout=opts.debug_output,
                            image=rule.image(),
                            name=f"{node}.{index}",
                        )
                    )
            except Exception as exc:
                raise RunError(
                    f"error running rule command. Rule: {node}. "
                    f"Command: {cmd!r}. Error: {exc}",
                    Code.EXEC_ERROR,
                ) from exc

        problems = [
            f"Rule {bright(node)} failed to create output {bright(output.path())}"
            for output in rule.missing_outputs()
        ]
        if problems:
            noun = "error" if len(problems) == 1 else "errors"
            lines = "\n".join(f"\t* {message}" for message in problems)
            raise RunError(
                f"{len(problems)} {noun} occurred:\n{lines}", Code.MISSING_OUTPUT_ERROR
            )
        return Code.OK