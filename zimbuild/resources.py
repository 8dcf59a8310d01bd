"""Resources produced or consumed by rules, and the providers that find them."""

from __future__ import annotations

import hashlib
import os
import posixpath
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from typing import Any


class Resource(ABC):
    """An artifact used or created by a rule."""

    @abstractmethod
    def name(self) -> str:
        """Name of the resource."""

    @abstractmethod
    def path(self) -> str:
        """Path identifying the resource."""

    @abstractmethod
    def exists(self) -> bool:
        """Whether the resource is present."""

    @abstractmethod
    def hash(self) -> str:
        """Content hash of the resource."""

    @abstractmethod
    def last_modified(self) -> datetime:
        """Last modification time of the resource."""

    @abstractmethod
    def on_filesystem(self) -> bool:
        """Whether the resource is backed by a file on disk."""

    @abstractmethod
    def cacheable(self) -> bool:
        """Whether the resource can be stored in a cache."""

    @abstractmethod
    def as_file(self) -> str:
        """Path to a file holding the resource or a representation of it."""


class Provider(ABC):
    """Creates and finds resources of one kind."""

    @abstractmethod
    def init(self, options: dict[str, Any]) -> None:
        """Accept options from the project configuration."""

    @abstractmethod
    def name(self) -> str:
        """Identify the provider type."""

    @abstractmethod
    def new(self, path: str) -> Resource:
        """Create a resource for the given path."""

    @abstractmethod
    def match(self, pattern: str) -> "Resources":
        """Find resources matching the pattern."""


def hash_file(file_path: str) -> str:
    """Return the hex SHA-1 digest of a file's contents."""
    digest = hashlib.sha1()
    with open(file_path, "rb") as handle:
        for chunk in iter(lambda: handle.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def last_modified(resources: Iterable[Resource]) -> datetime:
    """Return the most recent modification time of the resources."""
    return max(
        (resource.last_modified() for resource in resources), default=datetime.min
    )


class Resources(list):
    """A list of resources."""

    def paths(self) -> list[str]:
        """Paths of all the resources."""
        return [resource.path() for resource in self]

    def relative_paths(self, base: str) -> list[str]:
        """Paths relative to ``base``; paths of off-disk resources are kept."""
        return [
            os.path.relpath(resource.path(), base)
            if resource.on_filesystem()
            else resource.path()
            for resource in self
        ]

    def last_modified(self) -> datetime:
        """Most recent modification time of these resources."""
        return last_modified(self)


def match_resources(component: Any, provider: Provider, patterns) -> Resources:
    """Find resources matching patterns relative to a component's directory."""
    result = Resources()
    for pattern in patterns or ():
        result.extend(provider.match(posixpath.join(component.rel_path, pattern)))
    return result