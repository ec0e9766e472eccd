"""Data models for versioning and package resolution."""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple

import semantic_version

ANY_REQUIREMENT = "*"

# (major, minor, patch) of a version, without pre-release or build
VersionBase = Tuple[int, int, int]


class ResolutionMode(Enum):
    """Resolution strategy derived from the version constraint."""
    EXACT = "exact"
    RANGE = "range"


def version_base(version: semantic_version.Version) -> VersionBase:
    """Return the (major, minor, patch) triple of ``version``."""
    return (version.major, version.minor, version.patch)


@dataclass(frozen=True)
class VersionConstraint:
    """Either an exact version or a Cargo-style range requirement.

    Build instances with ``exact``, ``range`` or ``any`` rather than the
    constructor.
    """
    mode: ResolutionMode
    text: str
    version: Optional[semantic_version.Version] = None
    spec: Optional[semantic_version.SimpleSpec] = field(default=None, compare=False, repr=False)
    # Bases whose pre-releases the requirement explicitly opts into
    prerelease_bases: FrozenSet[VersionBase] = field(default_factory=frozenset, compare=False, repr=False)

    @classmethod
    def exact(cls, version: semantic_version.Version) -> "VersionConstraint":
        return cls(mode=ResolutionMode.EXACT, text=f"={version}", version=version)

    @classmethod
    def range(
        cls,
        text: str,
        spec: semantic_version.SimpleSpec,
        prerelease_bases: FrozenSet[VersionBase] = frozenset(),
    ) -> "VersionConstraint":
        return cls(
            mode=ResolutionMode.RANGE,
            text=text,
            spec=spec,
            prerelease_bases=frozenset(prerelease_bases),
        )

    @classmethod
    def any(cls) -> "VersionConstraint":
        return cls(mode=ResolutionMode.RANGE, text=ANY_REQUIREMENT)

    @property
    def is_exact(self) -> bool:
        return self.mode == ResolutionMode.EXACT

    @property
    def is_any(self) -> bool:
        return self.mode == ResolutionMode.RANGE and self.spec is None

    def matches(self, version: semantic_version.Version) -> bool:
        """Return True if ``version`` satisfies this constraint."""
        if self.is_exact:
            target = self.version
            return (
                version_base(version) == version_base(target)
                and tuple(version.prerelease) == tuple(target.prerelease)
                and tuple(version.build) == tuple(target.build)
            )
        if self.is_any:
            return True
        if version.prerelease and version_base(version) not in self.prerelease_bases:
            return False
        return self.spec.match(version)

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class PackageSpec:
    """A crate name plus the constraint its version must satisfy."""
    name: str
    constraint: VersionConstraint

    def __str__(self) -> str:
        return f"{self.name}={self.constraint}"


@dataclass
class VersionList:
    """Versions the registry reported for one crate, in arrival order."""
    name: str
    url: str
    versions: List[semantic_version.Version]
    dropped: List[str] = field(default_factory=list)


@dataclass
class ResolutionResult:
    """Resolution outcome to feed downstream logging."""
    name: str
    requested_spec: str
    resolved_version: semantic_version.Version
    resolution_mode: ResolutionMode
    candidate_count: int
    dropped_count: int = 0
