"""Parsing of ``NAME[=CONSTRAINT]`` package specifications."""

import re
from typing import List, Optional, Set, Tuple

import semantic_version

from common.errors import InvalidName, InvalidVersionRange, InvalidVersionSyntax
from .models import PackageSpec, VersionBase, VersionConstraint

# Operators accepted in a comparator; longest first so "<=" wins over "<"
_OPERATORS = (">=", "<=", ">", "<", "=", "^", "~")
_OPERATOR_CHARS = set("<>=!~^")
_WILDCARDS = ("*", "x", "X")

_COMPARATOR_VERSION = re.compile(
    r"^(?P<major>0|[1-9]\d*|[xX*])"
    r"(?:\.(?P<minor>0|[1-9]\d*|[xX*])"
    r"(?:\.(?P<patch>0|[1-9]\d*|[xX*]))?)?"
    r"(?:-(?P<prerel>[0-9A-Za-z.-]+))?"
    r"(?:\+(?P<build>[0-9A-Za-z.-]+))?$"
)


def is_valid_name(name: str) -> bool:
    """Return True if ``name`` is non-empty and only alphanumerics, '-' or '_'."""
    return bool(name) and all(c.isalnum() or c in "-_" for c in name)


def split_spec(text: str) -> Tuple[str, Optional[str]]:
    """Return (name, constraint text or None), splitting on the first '='."""
    if "=" not in text:
        return text.strip(), None
    name, constraint = text.split("=", 1)
    return name.strip(), constraint.strip()


def parse_exact_version(text: str) -> semantic_version.Version:
    """Parse a full ``X.Y.Z[-pre][+build]`` version."""
    try:
        return semantic_version.Version(text)
    except ValueError as exc:
        raise InvalidVersionSyntax(text, str(exc)) from exc


def _split_operator(comparator: str, requirement: str) -> Tuple[str, str]:
    for op in _OPERATORS:
        if comparator.startswith(op):
            rest = comparator[len(op):].strip()
            break
    else:
        op, rest = "", comparator

    if not rest:
        raise InvalidVersionRange(requirement, f"comparator `{comparator}` has no version")
    if rest[0] in _OPERATOR_CHARS:
        raise InvalidVersionRange(requirement, f"unsupported operator in `{comparator}`")
    return op, rest


def _normalize_comparator(
    comparator: str, requirement: str, prerelease_bases: Set[VersionBase]
) -> str:
    """Rewrite one Cargo comparator into the SimpleSpec grammar."""
    op, rest = _split_operator(comparator, requirement)
    match = _COMPARATOR_VERSION.match(rest)
    if not match:
        raise InvalidVersionSyntax(rest, f"not a valid version in requirement `{requirement}`")

    has_wildcard = any(
        part in _WILDCARDS
        for part in match.group("major", "minor", "patch")
        if part is not None
    )
    if has_wildcard:
        if match.group("prerel") or match.group("build"):
            raise InvalidVersionSyntax(rest, "wildcard versions cannot carry pre-release or build")
        rest = rest.replace("x", "*").replace("X", "*")
    elif match.group("prerel"):
        if match.group("patch") is None:
            raise InvalidVersionSyntax(rest, "pre-release requires a full version")
        prerelease_bases.add(
            (int(match.group("major")), int(match.group("minor")), int(match.group("patch")))
        )

    # Cargo reads a bare version as a caret requirement
    if not op and not has_wildcard:
        op = "^"
    if op == "^" and not has_wildcard:
        zero_bounds = _zero_major_caret_bounds(match)
        if zero_bounds:
            return zero_bounds
    return f"{op}{rest}"


def _zero_major_caret_bounds(match) -> Optional[str]:
    """Explicit bounds for ``^0`` and ``^0.0``, which SimpleSpec pins to 0.0.0."""
    major, minor, patch = match.group("major", "minor", "patch")
    if major != "0" or patch is not None:
        return None
    if minor is None:
        return ">=0.0.0,<1.0.0"
    if minor == "0":
        return ">=0.0.0,<0.1.0"
    return None


def parse_requirement(text: str) -> VersionConstraint:
    """Parse a Cargo-style range requirement such as ``^1.2``, ``>=1.0, <2.0`` or ``1.*``."""
    requirement = " ".join(text.split())
    if not requirement:
        raise InvalidVersionRange(text, "empty version requirement")
    if requirement in _WILDCARDS:
        return VersionConstraint.any()

    prerelease_bases: Set[VersionBase] = set()
    blocks: List[str] = []
    for comparator in requirement.split(","):
        comparator = comparator.strip()
        if not comparator:
            raise InvalidVersionRange(requirement, "empty comparator")
        blocks.append(_normalize_comparator(comparator, requirement, prerelease_bases))

    try:
        spec = semantic_version.SimpleSpec(",".join(blocks))
    except ValueError as exc:
        raise InvalidVersionRange(requirement, str(exc)) from exc
    return VersionConstraint.range(requirement, spec, frozenset(prerelease_bases))


def parse_constraint(text: str) -> VersionConstraint:
    """Parse constraint text; a leading '=' designates an exact version."""
    text = text.strip()
    if text.startswith("="):
        return VersionConstraint.exact(parse_exact_version(text[1:].strip()))
    return parse_requirement(text)


def parse_package_spec(text: str) -> PackageSpec:
    """Parse ``NAME`` or ``NAME=CONSTRAINT`` into a PackageSpec.

    ``foo`` matches any version, ``foo=1.2`` is a caret requirement and
    ``foo==1.2.3`` pins the exact version.

    Raises:
        InvalidName: The crate name is empty or has invalid characters.
        InvalidVersionSyntax: A version in the constraint is malformed.
        InvalidVersionRange: The requirement grammar is malformed.
    """
    name, constraint_text = split_spec(text)
    if not is_valid_name(name):
        raise InvalidName(name)
    if constraint_text is None:
        return PackageSpec(name=name, constraint=VersionConstraint.any())
    return PackageSpec(name=name, constraint=parse_constraint(constraint_text))
