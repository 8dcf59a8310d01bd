"""A store backed by a directory on the local filesystem."""

from __future__ import annotations

import json
import os
import shutil
from typing import BinaryIO

from zimbuild.store import ItemMeta, NotFound, Store


def _join(*elements: str) -> str:
    joined = os.sep.join(element for element in elements if element)
    return os.path.normpath(joined) if joined else ""


def _copy_to(source: BinaryIO, dst_path: str) -> None:
    try:
        dst = open(dst_path, "wb")
    except OSError as exc:
        raise OSError(f"failed to create file {dst_path}: {exc}") from exc
    with dst:
        try:
            shutil.copyfileobj(source, dst)
        except OSError as exc:
            raise OSError(f"failed to write file {dst_path}: {exc}") from exc


class FileStore(Store):
    """Store items as files in a nested directory tree."""

    def __init__(self, root_directory: str) -> None:
        self.root_directory = root_directory

    def path(self, key: str) -> str:
        """Location of ``key``, nested by its leading characters.

        "abcd" is stored at ``<root>/ab/cd/abcd``, "abc" at ``<root>/ab/abc``.
        """
        if len(key) >= 4:
            return _join(self.root_directory, key[:2], key[2:4], key)
        if len(key) >= 2:
            return _join(self.root_directory, key[:2], key)
        return _join(self.root_directory, key)

    def get(self, key: str, dst: str) -> None:
        path = self.path(key)
        try:
            source = open(path, "rb")
        except FileNotFoundError as exc:
            raise NotFound(f"not found: {key}") from exc
        except OSError as exc:
            raise OSError(f"failed to open file {path}: {exc}") from exc
        with source:
            _copy_to(source, dst)

    def put(self, key: str, src: str, meta: dict[str, str] | None) -> None:
        path = self.path(key)
        os.makedirs(os.path.dirname(path) or ".", mode=0o755, exist_ok=True)
        try:
            source = open(src, "rb")
        except OSError as exc:
            raise OSError(f"failed to open file {src}: {exc}") from exc
        with source:
            _copy_to(source, path)

        meta_path = f"{path}.meta"
        payload = json.dumps({"meta": meta}, sort_keys=True, separators=(",", ":"))
        try:
            with open(meta_path, "w", encoding="utf-8") as handle:
                handle.write(payload)
        except OSError as exc:
            raise OSError(f"failed to write file {meta_path}: {exc}") from exc

    def head(self, key: str) -> ItemMeta:
        meta_path = f"{self.path(key)}.meta"
        try:
            with open(meta_path, encoding="utf-8") as handle:
                text = handle.read()
        except FileNotFoundError as exc:
            raise NotFound(f"not found: {key}") from exc
        try:
            data = json.loads(text)
            if not isinstance(data, dict):
                raise ValueError("metadata is not an object")
            meta = data.get("meta") or {}
            if not isinstance(meta, dict):
                raise ValueError("meta is not an object")
        except ValueError as exc:
            raise ValueError(f"failed to parse metadata: {exc}") from exc
        return ItemMeta(meta=dict(meta))