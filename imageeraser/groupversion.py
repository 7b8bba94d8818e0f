"""API group and version identifiers for the eraser.sh resources."""

from __future__ import annotations

from dataclasses import dataclass

GROUP = "eraser.sh"


@dataclass(frozen=True)
class GroupVersion:
    """An API group paired with one of its versions."""

    group: str
    version: str

    def api_version(self) -> str:
        """Return the ``apiVersion`` string, e.g. ``eraser.sh/v1``."""
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"

    @classmethod
    def parse(cls, api_version: str) -> GroupVersion:
        """Parse an ``apiVersion`` string into a group and a version.

        An empty string gives an empty group and version; a string without
        a slash names a version of the core (empty) group.
        """
        if not api_version:
            return cls("", "")
        parts = api_version.split("/")
        if len(parts) == 1:
            return cls("", parts[0])
        if len(parts) == 2:
            return cls(parts[0], parts[1])
        raise ValueError(f"unexpected GroupVersion string: {api_version}")

    def __str__(self) -> str:
        return self.api_version()


V1 = GroupVersion(GROUP, "v1")
V1ALPHA1 = GroupVersion(GROUP, "v1alpha1")

# v1 is the storage version; v1alpha1 is still served but deprecated.
STORAGE_VERSION = V1
SERVED_VERSIONS = (V1, V1ALPHA1)