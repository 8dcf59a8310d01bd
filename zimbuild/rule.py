"""Rules: operations that a component defines, with inputs, outputs and dependencies."""

from __future__ import annotations

import posixpath
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from zimbuild.condition import Condition
from zimbuild.envutil import combine_environment, substitute_vars_list
from zimbuild.files import FileSystem
from zimbuild.resources import Provider, Resources, match_resources


@dataclass
class Dependency:
    """A dependency on another rule or on an export of another component."""

    component: str = ""
    rule: str = ""
    export: str = ""
    recurse: int = 0


@dataclass
class Command:
    """A command run by a rule."""

    kind: str
    argument: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass
class RuleSpec:
    """The definition of a rule as written in a component file."""

    description: str = ""
    local: bool = False
    native: bool = False
    inputs: list[str] = field(default_factory=list)
    ignore: list[str] = field(default_factory=list)
    outputs: list[str] = field(default_factory=list)
    requires: list[Dependency] = field(default_factory=list)
    command: str = ""
    commands: list[Any] = field(default_factory=list)
    input_provider: str = ""
    output_provider: str = ""
    when: Condition = field(default_factory=Condition)
    unless: Condition = field(default_factory=Condition)


def _parse_command(entry: Any) -> Command:
    if isinstance(entry, Command):
        return Command(entry.kind, entry.argument, dict(entry.attributes))
    if isinstance(entry, str):
        return Command("run", entry)
    if isinstance(entry, Mapping) and len(entry) == 1:
        ((kind, value),) = entry.items()
        kind = str(kind)
        if value is None:
            return Command(kind)
        if isinstance(value, str):
            return Command(kind, value)
        if isinstance(value, Mapping):
            return Command(kind, attributes={str(k): v for k, v in value.items()})
    raise ValueError(f"invalid command: {entry!r}")


def new_commands(spec: RuleSpec) -> list[Command]:
    """Build the commands of a rule from its definition.

    A rule without a list of commands runs its single ``command`` string.
    """
    parsed = [_parse_command(entry) for entry in spec.commands or ()]
    if not parsed:
        return [Command("run", spec.command)]
    return parsed


def _join(prefix: str, name: str) -> str:
    joined = f"{prefix}/{name}" if prefix else name
    return posixpath.normpath(joined)


def _wrapped(exc: Exception, prefix: str) -> Exception:
    kind = OSError if isinstance(exc, OSError) else ValueError
    return kind(f"{prefix}: {exc}")


class Rule:
    """An operation on a component."""

    def __init__(
        self,
        component: Any,
        name: str,
        local: bool = False,
        native: bool = False,
        inputs: list[str] | None = None,
        ignore: list[str] | None = None,
        outputs: list[str] | None = None,
        requires: list[Dependency] | None = None,
        description: str = "",
        commands: list[Command] | None = None,
        in_provider: Provider | None = None,
        out_provider: Provider | None = None,
        when: Condition | None = None,
        unless: Condition | None = None,
    ) -> None:
        self.component = component
        self.name = name
        self.local = local
        self.native = native
        self.input_patterns = list(inputs or [])
        self.ignore_patterns = list(ignore or [])
        self.output_patterns = list(outputs or [])
        self.requires = list(requires or [])
        self.description = description
        self.commands = list(commands or [])
        self.in_provider = in_provider
        self.out_provider = out_provider
        self.when = when if when is not None else Condition()
        self.unless = unless if unless is not None else Condition()
        self._resolved_deps: list[Rule] = []
        self._resolved_imports: list[Any] = []

    def __repr__(self) -> str:
        return f"Rule({self.node_id()!r})"

    @classmethod
    def from_spec(cls, name: str, component: Any, spec: RuleSpec) -> Rule:
        """Create a rule of ``component`` from its definition."""
        try:
            commands = new_commands(spec)
        except ValueError as exc:
            raise ValueError(f"failed to create rule commands: {exc}") from exc

        rule = cls(
            component,
            name,
            local=spec.local,
            native=spec.native,
            inputs=spec.inputs,
            ignore=spec.ignore,
            outputs=spec.outputs,
            requires=[
                Dependency(dep.component, dep.rule, dep.export, dep.recurse)
                for dep in spec.requires or ()
            ],
            description=spec.description,
            commands=commands,
            when=spec.when,
            unless=spec.unless,
        )
        try:
            rule.in_provider = component.provider(spec.input_provider)
            rule.out_provider = component.provider(spec.output_provider)
        except (OSError, ValueError) as exc:
            raise ValueError(f"Rule {rule.node_id()} provider error: {exc}") from exc

        variables = rule.base_environment()
        rule.input_patterns = substitute_vars_list(rule.input_patterns, variables) or []
        rule.ignore_patterns = substitute_vars_list(rule.ignore_patterns, variables) or []
        rule.output_patterns = substitute_vars_list(rule.output_patterns, variables) or []
        return rule

    def resolve_deps(self) -> None:
        """Look up the rules and exports this rule requires.

        Call once all components of the project are loaded.
        """
        deps: list[Rule] = []
        imports: list[Any] = []
        for dep in self.requires:
            if self.component.name == dep.component and self.name == dep.rule:
                raise ValueError(
                    f"invalid dep - self reference: {dep.component}.{dep.rule}"
                )
            if dep.export:
                imports.append(self._resolve_export(dep))
                continue
            dep_rule = self._resolve_dep(dep)
            deps.append(dep_rule)
            if dep.recurse > 1:
                raise ValueError(
                    f"invalid dep - recursion: {dep.component}.{dep.rule}"
                )
            if dep.recurse == 1:
                deps.extend(self._resolve_dep(inner) for inner in dep_rule.requires)
        self._resolved_deps = deps
        self._resolved_imports = imports

    def _resolve_export(self, dep: Dependency) -> Any:
        if not dep.component:
            raise ValueError(
                f"invalid dep in {self.node_id()} - component name empty"
            )
        if dep.component == self.component.name:
            raise ValueError(
                f"invalid dep in {self.node_id()} - cannot import from self"
            )
        export = self.project().export(dep.component, dep.export)
        if export is None:
            raise ValueError(
                f"invalid dep in {self.node_id()} - export not found: "
                f"{dep.component}.{dep.export}"
            )
        return export

    def _resolve_dep(self, dep: Dependency) -> Rule:
        component_name = dep.component or self.component.name
        rule = self.project().rule(component_name, dep.rule)
        if rule is None:
            raise ValueError(
                f"invalid dep - rule not found: {component_name}.{dep.rule}"
            )
        return rule

    def base_environment(self) -> dict[str, str]:
        """Environment variables known before any resource is looked up."""
        component = self.component
        return combine_environment(
            component.environment(),
            {
                "COMPONENT": component.name,
                "NAME": component.name,
                "KIND": component.kind,
                "RULE": self.name,
                "NODE_ID": self.node_id(),
            },
        )

    def environment(self) -> dict[str, str]:
        """Environment variables used when executing this rule."""
        directory = self.component.directory
        inputs = self.inputs().relative_paths(directory)
        outputs = self.outputs().relative_paths(directory)
        deps = self.dependency_outputs().relative_paths(directory)
        return combine_environment(
            self.base_environment(),
            {
                "INPUT": inputs[0] if inputs else "",
                "OUTPUT": outputs[0] if outputs else "",
                "OUTPUTS": " ".join(outputs),
                "DEP": deps[0] if deps else "",
                "DEPS": " ".join(deps),
            },
        )

    def project(self) -> Any:
        """The project containing this rule."""
        return self.component.project

    def node_id(self) -> str:
        """Identifier of this rule in a graph: ``component.rule``."""
        return f"{self.component.name}.{self.name}"

    def image(self) -> str:
        """The Docker image used to build this rule, if configured."""
        return self.component.docker_image

    def is_native(self) -> bool:
        """True if this rule does not run in Docker."""
        return self.native or self.image() == ""

    def dependencies(self) -> list[Rule]:
        """Rules that must run before this one."""
        return list(self._resolved_deps)

    def has_outputs(self) -> bool:
        """True if this rule produces one or more resources."""
        return bool(self.output_patterns)

    def outputs(self) -> Resources:
        """Resources created by this rule, whether or not they exist yet."""
        if not self.output_patterns:
            return Resources()
        prefix = self.artifacts_dir() if isinstance(self.out_provider, FileSystem) else ""
        return Resources(
            self.out_provider.new(_join(prefix, out)) for out in self.output_patterns
        )

    def artifacts_dir(self) -> str:
        """Directory where this rule's artifacts are placed."""
        if self.local:
            return self.component.directory
        return self.project().artifacts_dir()

    def missing_outputs(self) -> Resources:
        """Outputs that are not currently present."""
        return Resources(out for out in self.outputs() if not out.exists())

    def outputs_exist(self) -> bool:
        """True if every output is present."""
        return not self.missing_outputs()

    def dependency_outputs(self) -> Resources:
        """Outputs of this rule's dependencies."""
        result = Resources()
        for dep in self._resolved_deps:
            result.extend(dep.outputs())
        return result

    def _match(self, patterns: list[str]) -> Resources:
        if not patterns:
            return Resources()
        if self.in_provider is None:
            raise ValueError(f"Rule {self.node_id()} has no input provider")
        return match_resources(self.component, self.in_provider, patterns)

    def inputs(self) -> Resources:
        """Resources used to build this rule, without duplicates or ignored ones."""
        try:
            found = self._match(self.input_patterns)
        except (OSError, ValueError) as exc:
            raise _wrapped(exc, "failed to find input") from exc
        try:
            ignored = self._match(self.ignore_patterns)
        except (OSError, ValueError) as exc:
            raise _wrapped(exc, "failed ignore") from exc

        for export in self._resolved_imports:
            try:
                found.extend(export.resolve())
            except (OSError, ValueError) as exc:
                raise _wrapped(exc, "failed to find import") from exc

        ignored_paths = set(ignored.paths())
        added: set[str] = set()
        result = Resources()
        for resource in found:
            path = resource.path()
            if path in added:
                continue
            added.add(path)
            if path not in ignored_paths:
                result.append(resource)
        return result