"""Resources backed by files on the local filesystem."""

from __future__ import annotations

import fnmatch
import os
import posixpath
import re
import stat
from collections.abc import Iterator
from datetime import datetime
from typing import Any

from zimbuild.resources import Provider, Resource, Resources, hash_file

_MAGIC = set("*?[")


def _expand_braces(pattern: str) -> list[str]:
    start = pattern.find("{")
    if start == -1:
        return [pattern]
    depth = 0
    options: list[str] = []
    last = start + 1
    for pos in range(start, len(pattern)):
        ch = pattern[pos]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                options.append(pattern[last:pos])
                head, tail = pattern[:start], pattern[pos + 1 :]
                return [
                    expanded
                    for option in options
                    for expanded in _expand_braces(head + option + tail)
                ]
        elif ch == "," and depth == 1:
            options.append(pattern[last:pos])
            last = pos + 1
    raise ValueError("unbalanced braces")


def _join(base: str, name: str) -> str:
    return posixpath.join(base, name) if base else name


def _entries(base: str) -> list[os.DirEntry]:
    try:
        with os.scandir(base or ".") as it:
            return sorted(it, key=lambda entry: entry.name)
    except OSError:
        return []


def _walk(base: str, parts: list[str]) -> Iterator[str]:
    if not parts:
        yield base
        return
    part, rest = parts[0], parts[1:]
    if part == "**":
        yield from _walk(base, rest)
        for entry in _entries(base):
            child = _join(base, entry.name)
            if entry.is_dir(follow_symlinks=False):
                yield from _walk(child, parts)
            elif not rest:
                yield child
    elif _MAGIC.intersection(part):
        regex = re.compile(fnmatch.translate(part))
        for entry in _entries(base):
            if regex.match(entry.name):
                yield from _walk(_join(base, entry.name), rest)
    else:
        candidate = _join(base, part)
        if os.path.lexists(candidate):
            yield from _walk(candidate, rest)


def match_files(directory: str, pattern: str) -> list[str]:
    """Return the sorted files (not directories) under ``directory`` matching ``pattern``.

    ``**`` matches any number of directories and ``{a,b}`` matches alternatives.
    """
    try:
        expanded = _expand_braces(posixpath.join(directory, pattern))
    except ValueError as exc:
        raise ValueError(f"invalid source glob {pattern}") from exc
    found: set[str] = set()
    for candidate in expanded:
        cleaned = posixpath.normpath(candidate)
        if cleaned.startswith("/"):
            base, rel = "/", cleaned.lstrip("/")
        else:
            base, rel = "", cleaned
        parts = [part for part in rel.split("/") if part]
        found.update(_walk(base, parts))
    return sorted(match for match in found if not stat.S_ISDIR(os.stat(match).st_mode))


class File(Resource):
    """A resource that is a file on disk."""

    __slots__ = ("_path",)

    def __init__(self, path: str) -> None:
        self._path = path

    def __repr__(self) -> str:
        return f"File({self._path!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, File) and other._path == self._path

    def __hash__(self) -> int:
        return hash(self._path)

    def name(self) -> str:
        return posixpath.basename(self._path)

    def path(self) -> str:
        return self._path

    def on_filesystem(self) -> bool:
        return True

    def cacheable(self) -> bool:
        return True

    def exists(self) -> bool:
        return os.path.exists(self._path)

    def hash(self) -> str:
        return hash_file(self._path)

    def last_modified(self) -> datetime:
        return datetime.fromtimestamp(os.stat(self._path).st_mtime)

    def as_file(self) -> str:
        return self._path


class FileSystem(Provider):
    """Provider of file resources below a root directory."""

    def __init__(self, root: str) -> None:
        self.root = root

    def init(self, options: dict[str, Any]) -> None:
        """Files take no options."""

    def name(self) -> str:
        return "file"

    def new(self, path: str) -> File:
        return File(path)

    def match(self, pattern: str) -> Resources:
        if "*" not in pattern:
            match = posixpath.normpath(posixpath.join(self.root, pattern))
            try:
                info = os.stat(match)
            except FileNotFoundError:
                return Resources()
            except OSError as exc:
                raise OSError(f"failed to stat input {pattern}: {exc}") from exc
            if stat.S_ISDIR(info.st_mode):
                raise IsADirectoryError(f"input cannot be a dir: {pattern}")
            return Resources([self.new(match)])
        try:
            matches = match_files(self.root, pattern)
        except (OSError, ValueError) as exc:
            raise OSError(f"failed to match resources {pattern}: {exc}") from exc
        return Resources(self.new(match) for match in matches)