"""The ImageList resource: a cluster-wide list of images to remove."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from imageeraser.groupversion import STORAGE_VERSION, GroupVersion
from imageeraser.imagejob import (
    _check_kind,
    _format_time,
    _int_field,
    _parse_time,
    _resolve_version,
    _string_list,
)

IMAGE_LIST_KIND = "ImageList"
IMAGE_LIST_LIST_KIND = "ImageListList"


def _metadata(data: dict[str, Any]) -> dict[str, Any]:
    metadata = data.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValueError("field 'metadata' must be a mapping")
    return copy.deepcopy(metadata)


@dataclass
class ImageListSpec:
    """Desired state of an ImageList: the images to delete when not running."""

    images: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"images": list(self.images)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ImageListSpec:
        return cls(images=_string_list(data, "images"))


@dataclass
class ImageListStatus:
    """Observed state of an ImageList after a job has run."""

    timestamp: datetime | None = None
    success: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": _format_time(self.timestamp) if self.timestamp is not None else None,
            "success": self.success,
            "failed": self.failed,
            "skipped": self.skipped,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ImageListStatus:
        return cls(
            timestamp=_parse_time(data.get("timestamp")),
            success=_int_field(data, "success"),
            failed=_int_field(data, "failed"),
            skipped=_int_field(data, "skipped"),
        )


@dataclass
class ImageList:
    """An ImageList resource with its metadata, spec and status."""

    metadata: dict[str, Any] = field(default_factory=dict)
    spec: ImageListSpec = field(default_factory=ImageListSpec)
    status: ImageListStatus = field(default_factory=ImageListStatus)
    api_version: str = STORAGE_VERSION.api_version()
    kind: str = IMAGE_LIST_KIND

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.api_version:
            result["apiVersion"] = self.api_version
        if self.kind:
            result["kind"] = self.kind
        result["metadata"] = copy.deepcopy(self.metadata)
        result["spec"] = self.spec.to_dict()
        result["status"] = self.status.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ImageList:
        _check_kind(data, IMAGE_LIST_KIND)
        spec = data.get("spec") or {}
        status = data.get("status") or {}
        if not isinstance(spec, dict) or not isinstance(status, dict):
            raise ValueError("fields 'spec' and 'status' must be mappings")
        return cls(
            metadata=_metadata(data),
            spec=ImageListSpec.from_dict(spec),
            status=ImageListStatus.from_dict(status),
            api_version=data.get("apiVersion", "") or "",
            kind=data.get("kind", "") or "",
        )

    def convert_to(self, group_version: GroupVersion | str) -> ImageList:
        """Return a copy of this list expressed in another served API version."""
        target = _resolve_version(group_version)
        converted = copy.deepcopy(self)
        converted.api_version = target.api_version()
        converted.kind = IMAGE_LIST_KIND
        return converted


@dataclass
class ImageListList:
    """A list of ImageList resources."""

    items: list[ImageList] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    api_version: str = STORAGE_VERSION.api_version()
    kind: str = IMAGE_LIST_LIST_KIND

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
    def from_dict(cls, data: dict[str, Any]) -> ImageListList:
        _check_kind(data, IMAGE_LIST_LIST_KIND)
        items = data.get("items") or []
        if not isinstance(items, list):
            raise ValueError("field 'items' must be a list")
        return cls(
            items=[ImageList.from_dict(item) for item in items],
            metadata=_metadata(data),
            api_version=data.get("apiVersion", "") or "",
            kind=data.get("kind", "") or "",
        )