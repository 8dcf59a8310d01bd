"""Projects: the collection of components in a repository."""

from __future__ import annotations

import io
import os
import posixpath
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from zimbuild.component import Component, ComponentSpec
from zimbuild.components import Components
from zimbuild.execution import ExecOpts, Executor
from zimbuild.export import Export
from zimbuild.files import FileSystem
from zimbuild.resources import Provider
from zimbuild.rule import Rule


@dataclass
class ProjectSpec:
    """The definition of a project as written in its project file."""

    name: str = ""
    components: list[str] = field(default_factory=list)
    providers: dict[str, dict[str, Any]] = field(default_factory=dict)


class Project:
    """A collection of components that can be built and deployed.

    Commands are executed through ``executor``; a project without one cannot
    query toolchains.
    """

    def __init__(
        self,
        root: str,
        project_spec: ProjectSpec | None = None,
        component_specs: Iterable[ComponentSpec] | None = None,
        providers: Iterable[Provider] | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.root = str(root)
        self.root_abs_path = os.path.abspath(self.root)
        self.name = project_spec.name if project_spec is not None else ""
        self.executor = executor

        self._artifacts = posixpath.join(self.root_abs_path, "artifacts")
        try:
            os.makedirs(self._artifacts, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise OSError(f"failed to artifacts dir {self._artifacts}: {exc}") from exc

        self._lock = threading.Lock()
        self._toolchain: dict[str, str] = {}
        self._providers: dict[str, Provider] = {}
        self._components = Components()

        for provider in providers or ():
            self._providers[provider.name()] = provider
            if project_spec is not None and provider.name() in project_spec.providers:
                provider.init(project_spec.providers[provider.name()])

        for spec in component_specs or ():
            try:
                component = Component.from_spec(self, spec)
            except (OSError, ValueError) as exc:
                raise ValueError(
                    f"failed to load component {spec.name}: {exc}"
                ) from exc
            self._components.append(component)

        self._resolve_deps()

    def __repr__(self) -> str:
        return f"Project({self.root_abs_path!r})"

    def _resolve_deps(self) -> None:
        errors: list[Exception] = []
        for component in self._components:
            try:
                component.resolve_deps()
            except ValueError as exc:
                errors.append(exc)
        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise ValueError("; ".join(str(error) for error in errors))

    def components(self) -> Components:
        """All components of the project, in definition order."""
        return Components(self._components)

    def abs_paths(self, paths: Iterable[str]) -> list[str]:
        """Absolute paths for paths given relative to the project root."""
        return [posixpath.join(self.root_abs_path, p) for p in paths]

    def artifacts_dir(self) -> str:
        """Absolute path of the directory used for artifacts."""
        return self._artifacts

    def select(
        self, names: Iterable[str] | None, kinds: Iterable[str] | None
    ) -> Components:
        """Components whose name or kind was given; all when neither is given."""
        wanted_names = set(names or ())
        wanted_kinds = set(kinds or ())
        if not wanted_names and not wanted_kinds:
            return self.components()
        available = {component.name for component in self._components}
        for name in sorted(wanted_names):
            if name not in available:
                raise ValueError(f"unknown component: {name}")
        return Components(
            c for c in self._components if c.name in wanted_names or c.kind in wanted_kinds
        )

    def rule(self, component: str, rule_name: str) -> Rule | None:
        """The named rule of the named component, or None."""
        return self.components().with_name(component).rule(rule_name).first()

    def export(self, component: str, export_name: str) -> Export | None:
        """The named export of the named component, or None."""
        found = self.components().with_name(component).first()
        if found is None:
            return None
        return found.export(export_name)

    def toolchain(self, component: Component) -> dict[str, str]:
        """Build tool versions of a component, keyed by tool name.

        The output of each toolchain command is remembered, per Docker image
        when commands run in Docker, so a shared query runs only once.
        """
        with self._lock:
            executor = self.executor
            if executor is None:
                raise ValueError(
                    f"Component {component.name} toolchain needs an executor"
                )
            if component.docker_image and not executor.uses_docker():
                raise ValueError(
                    f"Component {component.name} is Docker-enabled but the "
                    "executor is not Dockerized"
                )
            if not component.docker_image and executor.uses_docker():
                raise ValueError(
                    f"Component {component.name} is not Docker-enabled but the "
                    "executor is Dockerized"
                )
            using_docker = executor.uses_docker()

            result: dict[str, str] = {}
            for item in component.tools.items:
                key = (
                    f"{component.docker_image}.{item.command}"
                    if using_docker
                    else item.command
                )
                if key in self._toolchain:
                    result[item.name] = self._toolchain[key]
                    continue
                output = io.StringIO()
                executor.execute(
                    ExecOpts(
                        image=component.docker_image,
                        command=item.command,
                        stdout=output,
                        cmdout=io.StringIO(),
                    )
                )
                value = output.getvalue().strip()
                result[item.name] = value
                self._toolchain[key] = value
            return result

    def provider(self, name: str) -> Provider:
        """The provider with the given name, created on first use."""
        name = name or "file"
        with self._lock:
            found = self._providers.get(name)
            if found is not None:
                return found
            if name != "file":
                raise ValueError(f"unknown provider: {name}")
            provider = FileSystem(self.root_abs_path)
            self._providers[name] = provider
            return provider