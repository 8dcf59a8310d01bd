"""Lists of components and rules with selection helpers."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


class Rules(list):
    """A list of rules."""

    def first(self) -> Any:
        """The first rule, or None if the list is empty."""
        return self[0] if self else None


class Components(list):
    """A list of components."""

    def with_kind(self, *args: str) -> Components:
        """Components whose kind is one of those given."""
        kinds = set(args)
        return Components(c for c in self if c.kind in kinds)

    def with_name(self, *args: str) -> Components:
        """Components whose name is one of those given."""
        names = set(args)
        return Components(c for c in self if c.name in names)

    def with_rule(self, *args: str) -> Components:
        """Components defining at least one of the given rules."""
        return Components(c for c in self if any(c.has_rule(r) for r in args))

    def first(self) -> Any:
        """The first component, or None if the list is empty."""
        return self[0] if self else None

    def rules(self, names: Iterable[str]) -> Rules:
        """All rules with the given names across these components."""
        wanted = list(names)
        result = Rules()
        for component in self:
            result.extend(component.select(wanted))
        return result

    def rule(self, name: str) -> Rules:
        """All rules with the given name across these components."""
        result = Rules()
        for component in self:
            found = component.rule(name)
            if found is not None:
                result.append(found)
        return result

    def filter_names(self, names: Iterable[str]) -> list[str]:
        """Names of these components, minus the given names."""
        excluded = set(names)
        return [c.name for c in self if c.name not in excluded]

    def filter_kinds(self, kinds: Iterable[str]) -> list[str]:
        """Distinct kinds of these components, minus the given kinds."""
        excluded = set(kinds)
        seen: set[str] = set()
        result: list[str] = []
        for component in self:
            kind = component.kind
            if kind in seen:
                continue
            seen.add(kind)
            if kind not in excluded:
                result.append(kind)
        return result

    def filter_rules(self, rules: Iterable[str]) -> list[str]:
        """Distinct rule names of these components, minus the given names."""
        excluded = set(rules)
        seen: set[str] = set()
        result: list[str] = []
        for component in self:
            for rule in component.rules():
                if rule.name in seen:
                    continue
                seen.add(rule.name)
                if rule.name not in excluded:
                    result.append(rule.name)
        return result