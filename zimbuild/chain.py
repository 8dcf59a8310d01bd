"""Composition of runner middleware."""

from __future__ import annotations

from collections.abc import Callable

from zimbuild.execution import Runner
from zimbuild.runner import StandardRunner

RunnerBuilder = Callable[[Runner], Runner]


class Chain:
    """An immutable sequence of runner middleware constructors."""

    def __init__(self, *args: RunnerBuilder) -> None:
        self._constructors: tuple[RunnerBuilder, ...] = tuple(args)

    def then(self, runner: Runner | None = None) -> Runner:
        """Wrap ``runner`` so that the first middleware is the outermost.

        ``Chain(m1, m2, m3).then(r)`` equals ``m1(m2(m3(r)))``. Without a
        runner, a :class:`StandardRunner` is wrapped.
        """
        result: Runner = runner if runner is not None else StandardRunner()
        for construct in reversed(self._constructors):
            result = construct(result)
        return result

    def append(self, *args: RunnerBuilder) -> Chain:
        """A new chain with the given constructors added last."""
        return Chain(*self._constructors, *args)