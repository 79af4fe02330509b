"""
Volume mount correlation.

A container's mounts come back as three parallel sequences (names,
mount paths, sub-paths). Entry *i* of each belongs to the same mount;
nothing about them is sorted, so lookups go by index of the name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chartverify.core.errors import VerificationError


@dataclass
class VolumeMounts:
    """Positionally aligned mount names, mount paths and sub-paths."""

    names: list[str] = field(default_factory=list)
    mount_paths: list[str] = field(default_factory=list)
    sub_paths: list[str] = field(default_factory=list)
    resource: str = ""

    @classmethod
    def from_container(cls, container: dict[str, Any], resource: str = "") -> VolumeMounts:
        """Build the three sequences from a pod spec container.

        A mount without ``subPath`` gets ``""`` so indexes stay aligned.
        """
        mounts = container.get("volumeMounts") or []
        return cls(
            names=[m.get("name", "") for m in mounts],
            mount_paths=[m.get("mountPath", "") for m in mounts],
            sub_paths=[m.get("subPath", "") for m in mounts],
            resource=resource,
        )

    def index_of(self, name: str) -> int:
        """Index of the first mount called ``name``.

        Raises:
            VerificationError: If the sequences are misaligned or
                ``name`` is not mounted.
        """
        lengths = (len(self.names), len(self.mount_paths), len(self.sub_paths))
        if len(set(lengths)) != 1:
            raise VerificationError(
                "volume mount sequences have mismatched lengths "
                f"(names={lengths[0]}, mountPaths={lengths[1]}, subPaths={lengths[2]})",
                resource=self.resource,
            )

        for i, n in enumerate(self.names):
            if n == name:
                return i

        raise VerificationError(
            f"the mounted volume '{name}' could not be found",
            expected=name,
            actual=self.names,
            resource=self.resource,
        )

    def verify(self, name: str, mount_path: str, sub_path: str | None = None) -> None:
        """Check that ``name`` is mounted at ``mount_path``.

        ``sub_path`` of None skips the sub-path check; ``""`` requires
        the mount to have no sub-path.
        """
        index = self.index_of(name)

        actual_path = self.mount_paths[index]
        if actual_path != mount_path:
            raise VerificationError(
                f"the mounted volume for '{name}' is not {mount_path}",
                expected=mount_path,
                actual=actual_path,
                resource=self.resource,
            )

        if sub_path is None:
            return

        actual_sub = self.sub_paths[index]
        if actual_sub != sub_path:
            raise VerificationError(
                f"the subPath for '{name}' is not {sub_path or '(none)'}",
                expected=sub_path,
                actual=actual_sub,
                resource=self.resource,
            )
