"""Components: buildable units of a repository, each with rules and exports."""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from zimbuild.export import Export
from zimbuild.resources import Provider, Resources
from zimbuild.rule import Rule, RuleSpec


@dataclass(frozen=True)
class ToolchainItem:
    """One build tool whose version is identified by running a command."""

    name: str
    command: str


@dataclass
class Toolchain:
    """Build tools a component depends on; a change may require a rebuild."""

    items: list[ToolchainItem] = field(default_factory=list)


@dataclass
class ExportSpec:
    """The definition of an export as written in a component file."""

    resources: list[str] = field(default_factory=list)
    ignore: list[str] = field(default_factory=list)
    provider: str = ""


@dataclass
class ComponentSpec:
    """The definition of a component as written in a component file."""

    path: str = ""
    name: str = ""
    app: str = ""
    kind: str = ""
    docker_image: str = ""
    rules: dict[str, RuleSpec] = field(default_factory=dict)
    exports: dict[str, ExportSpec] = field(default_factory=dict)
    environment: dict[str, str] = field(default_factory=dict)
    toolchain: Toolchain = field(default_factory=Toolchain)


class Component:
    """A unit to build and deploy within a repository.

    ``tools`` holds the toolchain definition; :meth:`toolchain` queries the
    active tool versions through the project.
    """

    def __init__(
        self,
        project: Any = None,
        name: str = "",
        directory: str = "",
        rel_path: str = "",
        kind: str = "",
        app: str = "",
        docker_image: str = "",
        environment: dict[str, str] | None = None,
        tools: Toolchain | None = None,
    ) -> None:
        self.project = project
        self.name = name
        self.directory = directory
        self.rel_path = rel_path
        self.kind = kind
        self.app = app
        self.docker_image = docker_image
        self.tools = tools if tools is not None else Toolchain()
        self._env: dict[str, str] = dict(environment or {})
        self._rules: dict[str, Rule] = {}
        self._exports: dict[str, Export] = {}

    def __repr__(self) -> str:
        return f"Component({self.name!r})"

    @classmethod
    def from_spec(cls, project: Any, spec: ComponentSpec | None) -> Component:
        """Create a component of ``project`` from its definition."""
        if spec is None:
            raise ValueError("Component definition is nil")
        if not spec.path:
            raise ValueError("Component definition path is empty")
        directory = os.path.dirname(os.path.abspath(spec.path))
        name = spec.name or os.path.basename(directory)
        try:
            rel_path = os.path.relpath(directory, project.root_abs_path)
        except ValueError as exc:
            raise ValueError(f"failed to determine relative path: {exc}") from exc

        component = cls(
            project=project,
            name=name,
            directory=directory,
            rel_path=rel_path,
            kind=spec.kind,
            app=spec.app,
            docker_image=spec.docker_image,
            environment=spec.environment,
            tools=Toolchain(
                [ToolchainItem(item.name, item.command) for item in spec.toolchain.items]
            ),
        )
        for export_name, export_spec in spec.exports.items():
            provider = project.provider(export_spec.provider or "file")
            component._exports[export_name] = Export(
                component, provider, export_spec.resources, export_spec.ignore
            )
        for rule_name, rule_spec in spec.rules.items():
            component._rules[rule_name] = Rule.from_spec(rule_name, component, rule_spec)
        return component

    def rel(self, p: str) -> str:
        """Path from this component's directory to ``p``.

        A relative ``p`` is taken relative to the project root.
        """
        if not os.path.isabs(p):
            p = os.path.abspath(os.path.join(self.project.root_abs_path, p))
        return os.path.relpath(p, self.directory)

    def rel_paths(self, resources: Iterable[Any]) -> list[str]:
        """Paths of the resources relative to this component's directory."""
        return Resources(resources).relative_paths(self.directory)

    def rule(self, name: str) -> Rule | None:
        """The rule with the given name, or None."""
        return self._rules.get(name)

    def must_rule(self, name: str) -> Rule:
        """The rule with the given name; raise KeyError if it is not defined."""
        try:
            return self._rules[name]
        except KeyError:
            raise KeyError(f"Component {self.name} has no rule {name}") from None

    def rules(self) -> list[Rule]:
        """All rules defined by this component."""
        return list(self._rules.values())

    def has_rule(self, name: str) -> bool:
        """True if a rule with the given name is defined."""
        return name in self._rules

    def export(self, name: str) -> Export | None:
        """The export with the given name, or None."""
        return self._exports.get(name)

    def exports(self) -> list[Export]:
        """All exports defined by this component."""
        return list(self._exports.values())

    def select(self, names: Iterable[str]) -> list[Rule]:
        """Rules with the given names, in that order; unknown names are ignored."""
        return [self._rules[name] for name in names if name in self._rules]

    def environment(self) -> dict[str, str]:
        """A copy of the environment variables of this component."""
        return dict(self._env)

    def resolve_deps(self) -> None:
        """Resolve dependencies of every rule, reporting all failures together."""
        errors: list[Exception] = []
        for rule in self._rules.values():
            try:
                rule.resolve_deps()
            except ValueError as exc:
                errors.append(exc)
        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise ValueError("; ".join(str(error) for error in errors))

    def toolchain(self) -> dict[str, str]:
        """Active tool versions of this component, keyed by tool name."""
        return self.project.toolchain(self)

    def provider(self, name: str) -> Provider:
        """The project's provider with the given name."""
        return self.project.provider(name)