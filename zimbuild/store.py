"""Storage of build artifacts, and the messages exchanged with a signing service."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIME_RE = re.compile(
    r"^(\d{4})-(\d\d)-(\d\d)T(\d\d):(\d\d):(\d\d)(?:\.(\d+))?(Z|[+-]\d\d:\d\d)$"
)


class NotFound(LookupError):
    """An object does not exist in the store."""


@dataclass
class ItemMeta:
    """Metadata of an item in storage."""

    meta: dict[str, str] = field(default_factory=dict)


class Store(ABC):
    """Gets and puts items into storage."""

    @abstractmethod
    def get(self, key: str, dst: str) -> None:
        """Copy the item stored under ``key`` to the file ``dst``."""

    @abstractmethod
    def put(self, key: str, src: str, meta: dict[str, str] | None) -> None:
        """Store the file ``src`` under ``key`` with the given metadata."""

    @abstractmethod
    def head(self, key: str) -> ItemMeta:
        """Return the metadata of ``key``; raise :class:`NotFound` if absent."""


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset() or timedelta(0)
    if not offset:
        return text + "Z"
    sign = "-" if offset < timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _parse_time(text: str | None) -> datetime:
    if not text:
        return _ZERO_TIME
    found = _TIME_RE.match(text)
    if not found:
        raise ValueError(f"invalid timestamp: {text}")
    year, month, day, hour, minute, second, fraction, zone = found.groups()
    micro = int((fraction or "0")[:6].ljust(6, "0"))
    if zone == "Z":
        tz = timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        tz = timezone(sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6])))
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), micro, tz
    )


@dataclass
class SignInput:
    """A signing request."""

    method: str = ""
    name: str = ""
    metadata: dict[str, str] | None = None
    content_length: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "name": self.name,
            "metadata": self.metadata,
            "content_len": self.content_length,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> SignInput:
        data = data or {}
        return cls(
            method=data.get("method") or "",
            name=data.get("name") or "",
            metadata=data.get("metadata"),
            content_length=int(data.get("content_len") or 0),
        )


@dataclass
class SignOutput:
    """The answer to a signing request."""

    url: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "headers": self.headers}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> SignOutput:
        data = data or {}
        return cls(url=data.get("url") or "", headers=dict(data.get("headers") or {}))


@dataclass
class Item:
    """Information about an item in storage."""

    key: str = ""
    metadata: dict[str, str] | None = None
    version: str = ""
    etag: str = ""
    size: int = 0
    last_modified: datetime = _ZERO_TIME

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "metadata": self.metadata,
            "version": self.version,
            "etag": self.etag,
            "size": self.size,
            "last_modified": _format_time(self.last_modified),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Item:
        data = data or {}
        return cls(
            key=data.get("key") or "",
            metadata=data.get("metadata"),
            version=data.get("version") or "",
            etag=data.get("etag") or "",
            size=int(data.get("size") or 0),
            last_modified=_parse_time(data.get("last_modified")),
        )