"""Version constraint parsing and resolution."""

from .models import PackageSpec, ResolutionMode, ResolutionResult, VersionConstraint, VersionList
from .parser import parse_package_spec
from .resolver import pick_newest, resolve_version, sort_descending

__all__ = [
    "PackageSpec",
    "ResolutionMode",
    "ResolutionResult",
    "VersionConstraint",
    "VersionList",
    "parse_package_spec",
    "pick_newest",
    "resolve_version",
    "sort_descending",
]
