"""Conditions that control whether a rule executes."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ConditionScript:
    """A shell script run to check a condition."""

    run: str = ""
    with_output: str = ""
    suppress_error: bool = False

    def is_empty(self) -> bool:
        """True if no script is defined."""
        return self.run == ""


@dataclass(frozen=True)
class Condition:
    """A condition on a rule; at most one kind of check is used."""

    resource_exists: str = ""
    directory_exists: str = ""
    script_succeeds: ConditionScript = field(default_factory=ConditionScript)

    def is_empty(self) -> bool:
        """True if the condition is not configured."""
        return (
            not self.resource_exists
            and not self.directory_exists
            and self.script_succeeds.is_empty()
        )