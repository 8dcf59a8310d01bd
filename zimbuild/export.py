"""Resources that a component exposes to other components."""

from __future__ import annotations

import threading
from typing import Any

from zimbuild.resources import Provider, Resources, match_resources


class Export:
    """Static resources exposed by a component, resolved at most once."""

    def __init__(
        self,
        component: Any,
        provider: Provider,
        resources: list[str] | None,
        ignore: list[str] | None,
    ) -> None:
        self.component = component
        self.provider = provider
        self.resources = list(resources or [])
        self.ignore = list(ignore or [])
        self._lock = threading.Lock()
        self._resolved = False
        self._result = Resources()
        self._error: Exception | None = None

    def resolve(self) -> Resources:
        """Return the exported resources, minus ignored ones, without duplicates.

        Safe to call from several threads; the outcome of the first call,
        whether a result or an error, is kept for later calls.
        """
        with self._lock:
            if self._resolved:
                if self._error is not None:
                    raise self._error
                return Resources(self._result)
            try:
                matches = match_resources(self.component, self.provider, self.resources)
                ignored = match_resources(self.component, self.provider, self.ignore)
            except (OSError, ValueError) as exc:
                self._resolved = True
                self._error = exc
                raise

            ignored_paths = set(ignored.paths())
            added: set[str] = set()
            result = Resources()
            for resource in matches:
                path = resource.path()
                if path not in added and path not in ignored_paths:
                    result.append(resource)
                    added.add(path)

            self._result = result
            self._error = None
            self._resolved = True
            return Resources(result)