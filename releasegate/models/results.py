"""Build outcome models: per-target results, bundles, staged artifacts."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict

from releasegate.models.targets import BuildTarget, sorted_targets


class BuildArtifact(BaseModel):
    """A successfully built binary for one target.

    ``sha256`` is recorded at build time so later steps can detect a file
    changing underneath them.
    """

    model_config = ConfigDict(frozen=True)

    target: BuildTarget
    path: Path
    sha256: str
    size_bytes: int

    @property
    def ok(self) -> bool:
        return True


class BuildFailure(BaseModel):
    """A target that did not produce an artifact."""

    model_config = ConfigDict(frozen=True)

    target: BuildTarget
    cause: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return False


BuildResult = Union[BuildArtifact, BuildFailure]


class ArtifactBundle(BaseModel):
    """Every target's artifact for one revision.

    Only the BuildCoordinator creates bundles, and only when every
    requested target succeeded.
    """

    model_config = ConfigDict(frozen=True)

    revision: str
    artifacts: dict[BuildTarget, BuildArtifact]

    @property
    def targets(self) -> list[BuildTarget]:
        return sorted_targets(self.artifacts)


class PartialFailure(BaseModel):
    """Join result when one or more targets failed.

    Carries the successes too, so the caller can see exactly which
    targets broke.
    """

    model_config = ConfigDict(frozen=True)

    revision: str
    failed: dict[BuildTarget, BuildFailure]
    succeeded: dict[BuildTarget, BuildArtifact] = {}

    @property
    def failed_targets(self) -> list[BuildTarget]:
        return sorted_targets(self.failed)

    @property
    def succeeded_targets(self) -> list[BuildTarget]:
        return sorted_targets(self.succeeded)

    def summary(self) -> str:
        """One line per failed target, for logs and error messages."""
        return "; ".join(
            f"{t.value}: {self.failed[t].cause}" for t in self.failed_targets
        )


class StagedArtifact(BaseModel):
    """An artifact copied into the staging directory."""

    model_config = ConfigDict(frozen=True)

    target: BuildTarget
    path: Path
    sha256: str
    size_bytes: int


class StagedArtifacts(BaseModel):
    """The complete, staged artifact set handed to the Publisher."""

    model_config = ConfigDict(frozen=True)

    revision: str
    directory: Path
    artifacts: dict[BuildTarget, StagedArtifact]

    @property
    def targets(self) -> list[BuildTarget]:
        return sorted_targets(self.artifacts)
