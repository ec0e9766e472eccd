"""Selection of the version to download."""

import logging
from typing import Iterable, List

import semantic_version

from common.errors import NoMatchingVersion
from common.logging_utils import extra_context, is_debug_enabled
from .models import PackageSpec, ResolutionMode, ResolutionResult, VersionConstraint

logger = logging.getLogger(__name__)


def sort_descending(versions: Iterable[semantic_version.Version]) -> List[semantic_version.Version]:
    """Return versions ordered by semantic-version precedence, highest first."""
    return sorted(versions, reverse=True)


def pick_newest(
    name: str,
    versions: List[semantic_version.Version],
    constraint: VersionConstraint,
) -> semantic_version.Version:
    """Return the highest version in ``versions`` satisfying ``constraint``.

    Raises:
        NoMatchingVersion: No version satisfies the constraint.
    """
    for version in sort_descending(versions):
        if constraint.matches(version):
            return version
    raise NoMatchingVersion(name, str(constraint), len(versions))


def resolve_version(spec: PackageSpec, client) -> ResolutionResult:
    """Resolve ``spec`` to a concrete version.

    Exact constraints are answered without querying the registry at all;
    range constraints list the crate's versions through ``client`` and pick
    the newest match.

    Args:
        spec: Parsed package specification.
        client: Object with a ``list_versions(name)`` method returning a VersionList.

    Returns:
        ResolutionResult: The chosen version and how it was chosen.
    """
    constraint = spec.constraint
    if constraint.is_exact:
        logger.debug("Exact crate version given in arguments, not querying the registry")
        return ResolutionResult(
            name=spec.name,
            requested_spec=str(constraint),
            resolved_version=constraint.version,
            resolution_mode=ResolutionMode.EXACT,
            candidate_count=0,
        )

    logger.debug("Fetching latest matching version of crate `%s`", spec)
    listing = client.list_versions(spec.name)
    version = pick_newest(spec.name, listing.versions, constraint)
    logger.info("Latest version of crate %s is %s", spec, version)

    result = ResolutionResult(
        name=spec.name,
        requested_spec=str(constraint),
        resolved_version=version,
        resolution_mode=ResolutionMode.RANGE,
        candidate_count=len(listing.versions),
        dropped_count=len(listing.dropped),
    )
    if is_debug_enabled(logger):
        logger.debug(
            "Version resolved",
            extra=extra_context(
                event="decision",
                component="resolver",
                action="resolve_version",
                outcome="matched",
                target=spec.name,
                count=result.candidate_count,
            )
        )
    return result
