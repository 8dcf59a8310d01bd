"""Helpers for environment variables, identifiers and modification times."""

from __future__ import annotations

import os
import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime


def new_uuid() -> str:
    """Return a random unique identifier in its canonical string form."""
    return str(uuid.uuid4())


def combine_environment(*args: Mapping[str, str] | None) -> dict[str, str]:
    """Merge environments left to right; later values win."""
    result: dict[str, str] = {}
    for env in args:
        if env:
            result.update(env)
    return result


def flatten_environment(env: Mapping[str, str] | None) -> list[str]:
    """Return ``KEY=value`` strings, sorted alphabetically."""
    return sorted(f"{key}={value}" for key, value in (env or {}).items())


def latest_modification(files: Iterable[str]) -> datetime:
    """Return the most recent modification time among the given files."""
    paths = list(files)
    if not paths:
        raise ValueError("no input files")
    latest = datetime.min
    for file_path in paths:
        try:
            mtime = os.stat(file_path).st_mtime
        except OSError as exc:
            raise OSError(f"failed to stat {file_path}: {exc}") from exc
        latest = max(latest, datetime.fromtimestamp(mtime))
    return latest


def substitute_vars(s: str, variables: Mapping[str, str] | None) -> str:
    """Replace every ``${NAME}`` in ``s`` with its value from ``variables``."""
    if not s or not variables:
        return s
    for key, value in variables.items():
        s = s.replace(f"${{{key}}}", value)
    return s


def substitute_vars_list(
    strings: list[str] | None, variables: Mapping[str, str] | None
) -> list[str] | None:
    """Apply :func:`substitute_vars` to each string of a list."""
    if not strings or not variables:
        return strings
    return [substitute_vars(s, variables) for s in strings]