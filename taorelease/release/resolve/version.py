from __future__ import annotations

from dataclasses import dataclass

from taorelease.core.result import Err, Ok, Result
from taorelease.release.domain.commits import BumpRecommendation
from taorelease.release.domain.semver import SemVer, coerce_version, parse_version
from taorelease.release.errors import ReleaseError


@dataclass(frozen=True, slots=True)
class VersionResolution:
    version: SemVer
    last_version: SemVer
    recommendation: BumpRecommendation | None


def compute_next_version(
    last_tag: str | None, recommendation: BumpRecommendation
) -> Result[VersionResolution, ReleaseError]:
    """Apply the recommended bump to the last released version.

    There is no implicit first version: without a usable tag the release
    cannot go on.
    """
    if last_tag is None:
        return Err(
            ReleaseError(
                kind="version_resolution",
                message="Unable to retrieve last version from tags",
                hint="create an initial tag (for example v0.1.0) first",
            )
        )

    last = coerce_version(last_tag)
    if last is None:
        return Err(
            ReleaseError(
                kind="version_resolution",
                message=f"Unable to retrieve last version from tag '{last_tag}'",
            )
        )

    return Ok(
        VersionResolution(
            version=last.bump(recommendation.release_type),
            last_version=last,
            recommendation=recommendation,
        )
    )


def apply_version_override(
    resolution: VersionResolution, override: str
) -> Result[VersionResolution, ReleaseError]:
    """Replace the computed version with an operator-provided one.

    The provided version is taken as given, pre-release included, and must
    be strictly greater than the last release.
    """
    requested = parse_version(override)
    if requested is None:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"'{override}' is not a valid version",
                hint="expected a semantic version such as 1.3.0 or 1.3.0-rc.1",
            )
        )

    if requested <= resolution.last_version:
        return Err(
            ReleaseError(
                kind="version_resolution",
                message=(
                    "The provided version is lesser than the latest version "
                    f"{resolution.last_version}."
                ),
            )
        )

    return Ok(
        VersionResolution(
            version=requested,
            last_version=resolution.last_version,
            recommendation=resolution.recommendation,
        )
    )
