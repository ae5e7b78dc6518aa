"""Artifact Collector: stage every target's binary into one directory.

The Publisher only ever reads from the staging directory, never from the
per-target build directories, which are ephemeral.

Layout: {staging_dir}/{run_id or revision}/{binary_name}-{target}
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable
from pathlib import Path

from releasegate.core.hasher import sha256_file
from releasegate.models.results import ArtifactBundle, StagedArtifact, StagedArtifacts
from releasegate.models.targets import ALL_TARGETS, BuildTarget, sorted_targets

logger = logging.getLogger(__name__)


class MissingArtifactError(RuntimeError):
    """Raised when an expected target has no artifact in the bundle.

    A partial release is worse than none, so this is always fatal.
    """

    def __init__(self, target: BuildTarget, revision: str) -> None:
        self.target = target
        self.revision = revision
        super().__init__(
            f"Revision {revision}: no artifact for target {target.value}"
        )


class ArtifactIntegrityError(RuntimeError):
    """Raised when an artifact's bytes no longer match its recorded digest."""


class ArtifactCollector:
    """Verifies bundle completeness and copies artifacts into staging.

    Parameters
    ----------
    staging_dir:
        Root of the staging area.
    expected_targets:
        The fixed target set every bundle must cover.
    binary_name:
        Base name for staged files (``<binary_name>-<target>``).
    """

    def __init__(
        self,
        staging_dir: Path,
        expected_targets: Iterable[BuildTarget] = ALL_TARGETS,
        binary_name: str = "nix-installer",
    ) -> None:
        self.staging_dir = Path(staging_dir)
        self.expected_targets = sorted_targets(set(expected_targets))
        self.binary_name = binary_name

    def verify_complete(self, bundle: ArtifactBundle) -> None:
        """Raise ``MissingArtifactError`` for the first expected target absent
        from *bundle*."""
        for target in self.expected_targets:
            if target not in bundle.artifacts:
                logger.critical(
                    "Bundle for %s is missing %s", bundle.revision, target.value
                )
                raise MissingArtifactError(target, bundle.revision)

    def collect(self, bundle: ArtifactBundle, run_id: str | None = None) -> StagedArtifacts:
        """Stage every expected artifact of *bundle*.

        Raises
        ------
        MissingArtifactError
            If an expected target has no artifact.
        ArtifactIntegrityError
            If a source file is gone or its digest changed since the build.
        """
        self.verify_complete(bundle)

        directory = self.staging_dir / (run_id or bundle.revision)
        if directory.exists():
            shutil.rmtree(directory)
        directory.mkdir(parents=True)

        staged: dict[BuildTarget, StagedArtifact] = {}
        for target in self.expected_targets:
            artifact = bundle.artifacts[target]
            if not artifact.path.is_file():
                raise ArtifactIntegrityError(
                    f"Revision {bundle.revision}: artifact for {target.value} "
                    f"is missing on disk ({artifact.path})"
                )
            dest = directory / target.artifact_name(self.binary_name)
            shutil.copy2(artifact.path, dest)

            digest = sha256_file(dest)
            if digest != artifact.sha256:
                raise ArtifactIntegrityError(
                    f"Revision {bundle.revision}: artifact for {target.value} "
                    f"changed after build (expected {artifact.sha256}, got {digest})"
                )
            staged[target] = StagedArtifact(
                target=target,
                path=dest,
                sha256=digest,
                size_bytes=dest.stat().st_size,
            )
            logger.debug("Staged %s -> %s", artifact.path, dest)

        logger.info(
            "Staged %d artifact(s) for %s in %s", len(staged), bundle.revision, directory
        )
        return StagedArtifacts(revision=bundle.revision, directory=directory, artifacts=staged)
