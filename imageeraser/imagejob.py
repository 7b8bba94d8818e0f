"""The ImageJob resource: a cluster-wide job that removes images from nodes."""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from imageeraser.groupversion import SERVED_VERSIONS, STORAGE_VERSION, GroupVersion

IMAGE_JOB_KIND = "ImageJob"
IMAGE_JOB_LIST_KIND = "ImageJobList"

_FRACTION = re.compile(r"\.(\d+)")


def _parse_time(value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"time must be a string, got {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"invalid RFC 3339 time: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _int_field(data: dict[str, Any], key: str) -> int:
    value = data.get(key, 0)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field {key!r} must be an integer, got {value!r}")
    return value


def _string_list(data: dict[str, Any], key: str) -> list[str]:
    values = data.get(key) or []
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise ValueError(f"field {key!r} must be a list of strings")
    return list(values)


def _resolve_version(group_version: GroupVersion | str) -> GroupVersion:
    if isinstance(group_version, str):
        group_version = GroupVersion.parse(group_version)
    if group_version not in SERVED_VERSIONS:
        raise ValueError(f"unsupported group version: {group_version.api_version()!r}")
    return group_version


def _check_kind(data: dict[str, Any], expected: str) -> None:
    kind = data.get("kind")
    if kind and kind != expected:
        raise ValueError(f"expected kind {expected!r}, got {kind!r}")


@dataclass
class Image:
    """An image on a node, identified by its ID with optional names and digests."""

    image_id: str
    names: list[str] = field(default_factory=list)
    digests: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"image_id": self.image_id}
        if self.names:
            result["names"] = list(self.names)
        if self.digests:
            result["digests"] = list(self.digests)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Image:
        image_id = data.get("image_id", "")
        if not isinstance(image_id, str):
            raise ValueError("field 'image_id' must be a string")
        return cls(
            image_id=image_id,
            names=_string_list(data, "names"),
            digests=_string_list(data, "digests"),
        )


class JobPhase(str, Enum):
    """The phase an ImageJob is in."""

    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"


@dataclass
class ImageJobStatus:
    """Observed state of an ImageJob."""

    failed: int = 0
    succeeded: int = 0
    desired: int = 0
    skipped: int = 0
    phase: JobPhase | None = None
    delete_after: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "failed": self.failed,
            "succeeded": self.succeeded,
            "desired": self.desired,
            "skipped": self.skipped,
            "phase": self.phase.value if self.phase is not None else "",
        }
        if self.delete_after is not None:
            result["deleteAfter"] = _format_time(self.delete_after)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ImageJobStatus:
        raw_phase = data.get("phase") or ""
        try:
            phase = JobPhase(raw_phase) if raw_phase else None
        except ValueError as exc:
            raise ValueError(f"unknown job phase: {raw_phase!r}") from exc
        return cls(
            failed=_int_field(data, "failed"),
            succeeded=_int_field(data, "succeeded"),
            desired=_int_field(data, "desired"),
            skipped=_int_field(data, "skipped"),
            phase=phase,
            delete_after=_parse_time(data.get("deleteAfter")),
        )


@dataclass
class ImageJob:
    """An ImageJob resource with its metadata and status."""

    metadata: dict[str, Any] = field(default_factory=dict)
    status: ImageJobStatus = field(default_factory=ImageJobStatus)
    api_version: str = STORAGE_VERSION.api_version()
    kind: str = IMAGE_JOB_KIND

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.api_version:
            result["apiVersion"] = self.api_version
        if self.kind:
            result["kind"] = self.kind
        result["metadata"] = copy.deepcopy(self.metadata)
        result["status"] = self.status.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ImageJob:
        _check_kind(data, IMAGE_JOB_KIND)
        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise ValueError("field 'metadata' must be a mapping")
        return cls(
            metadata=copy.deepcopy(metadata),
            status=ImageJobStatus.from_dict(data.get("status") or {}),
            api_version=data.get("apiVersion", "") or "",
            kind=data.get("kind", "") or "",
        )

    def convert_to(self, group_version: GroupVersion | str) -> ImageJob:
        """Return a copy of this job expressed in another served API version."""
        target = _resolve_version(group_version)
        converted = copy.deepcopy(self)
        converted.api_version = target.api_version()
        converted.kind = IMAGE_JOB_KIND
        return converted


@dataclass
class ImageJobList:
    """A list of ImageJob resources."""

    items: list[ImageJob] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    api_version: str = STORAGE_VERSION.api_version()
    kind: str = IMAGE_JOB_LIST_KIND

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.api_version:
            result["apiVersion"] = self.api_version
        if self.kind:
            result["kind"] = self.kind
        result["metadata"] = copy.deepcopy(self.metadata)
        result["items"] = [item.to_dict() for item in self.items]
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ImageJobList:
        _check_kind(data, IMAGE_JOB_LIST_KIND)
        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise ValueError("field 'metadata' must be a mapping")
        items = data.get("items") or []
        if not isinstance(items, list):
            raise ValueError("field 'items' must be a list")
        return cls(
            items=[ImageJob.from_dict(item) for item in items],
            metadata=copy.deepcopy(metadata),
            api_version=data.get("apiVersion", "") or "",
            kind=data.get("kind", "") or "",
        )