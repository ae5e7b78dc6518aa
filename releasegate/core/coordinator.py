"""Build Coordinator — fan out one build per target, join on all of them.

Every target is built on its own worker thread with no state shared
between builds.  The join is complete: the coordinator waits until every
unit has succeeded, failed, or exceeded its timeout, so the caller always
learns the full set of failed targets rather than just the first one.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path

from releasegate.builders import Builder, BuildError
from releasegate.core.hasher import sha256_file
from releasegate.models.results import (
    ArtifactBundle,
    BuildArtifact,
    BuildFailure,
    BuildResult,
    PartialFailure,
)
from releasegate.models.targets import BuildTarget, sorted_targets

logger = logging.getLogger(__name__)


class BuildCoordinator:
    """Runs a ``Builder`` for a set of targets concurrently.

    Parameters
    ----------
    builder:
        The build backend, called once per target.
    work_dir:
        Root for per-target build directories
        (``<work_dir>/<run_id or revision>/<target>``).
    max_workers:
        Thread pool size.  Defaults to one worker per target.
    timeout_seconds:
        Per-unit execution bound.  A unit that runs longer becomes a
        timed-out ``BuildFailure``; ``None`` disables the bound.
    poll_interval:
        How often the join re-checks running units against the timeout.
    """

    def __init__(
        self,
        builder: Builder,
        work_dir: Path,
        *,
        max_workers: int | None = None,
        timeout_seconds: float | None = None,
        poll_interval: float = 0.5,
    ) -> None:
        self.builder = builder
        self.work_dir = Path(work_dir)
        self.max_workers = max_workers
        self.timeout_seconds = timeout_seconds
        self.poll_interval = poll_interval

    # ------------------------------------------------------------------
    # Fan-out / join
    # ------------------------------------------------------------------

    def run(
        self,
        targets: Iterable[BuildTarget],
        revision: str,
        *,
        run_id: str | None = None,
    ) -> ArtifactBundle | PartialFailure:
        """Build every target and return the joined result.

        Build directories are keyed by *run_id* when given, so two runs of
        the same revision never write into the same directory.

        Returns a complete ``ArtifactBundle`` only if every target
        succeeded, otherwise a ``PartialFailure`` naming failed and
        succeeded targets.

        Raises
        ------
        ValueError
            If *targets* is empty.
        """
        ordered = sorted_targets(set(targets))
        if not ordered:
            raise ValueError("BuildCoordinator.run() needs at least one target")

        logger.info(
            "Building %d target(s) for revision %s: %s",
            len(ordered),
            revision,
            ", ".join(t.value for t in ordered),
        )

        # Written once per target by the worker that picks it up.
        started_at: dict[BuildTarget, float] = {}
        results: dict[BuildTarget, BuildResult] = {}

        executor = ThreadPoolExecutor(
            max_workers=self.max_workers or len(ordered),
            thread_name_prefix="releasegate-build",
        )
        futures: dict[Future[BuildResult], BuildTarget] = {
            executor.submit(
                self._build_one, target, revision, run_id or revision, started_at
            ): target
            for target in ordered
        }
        pending = set(futures)
        try:
            while pending:
                done, pending = wait(
                    pending,
                    timeout=self.poll_interval if self.timeout_seconds else None,
                    return_when=FIRST_COMPLETED,
                )
                for future in done:
                    results[futures[future]] = future.result()
                pending = self._expire(pending, futures, started_at, results)
        finally:
            # Timed-out units keep their thread until the builder returns;
            # nothing waits for them.
            executor.shutdown(wait=False, cancel_futures=True)

        failed = {t: r for t, r in results.items() if isinstance(r, BuildFailure)}
        succeeded = {t: r for t, r in results.items() if isinstance(r, BuildArtifact)}

        if failed:
            outcome = PartialFailure(revision=revision, failed=failed, succeeded=succeeded)
            logger.error(
                "Revision %s: %d/%d target(s) failed (%s)",
                revision,
                len(failed),
                len(ordered),
                outcome.summary(),
            )
            return outcome

        logger.info("Revision %s: all %d target(s) built", revision, len(ordered))
        return ArtifactBundle(revision=revision, artifacts=succeeded)

    def _expire(
        self,
        pending: set[Future[BuildResult]],
        futures: dict[Future[BuildResult], BuildTarget],
        started_at: dict[BuildTarget, float],
        results: dict[BuildTarget, BuildResult],
    ) -> set[Future[BuildResult]]:
        """Convert running units past their deadline into timeout failures."""
        if not self.timeout_seconds:
            return pending
        now = time.monotonic()
        still_pending: set[Future[BuildResult]] = set()
        for future in pending:
            target = futures[future]
            began = started_at.get(target)
            if began is not None and now - began > self.timeout_seconds:
                future.cancel()
                logger.error(
                    "Build %s timed out after %.0fs", target.value, self.timeout_seconds
                )
                results[target] = BuildFailure(
                    target=target,
                    cause=f"timed out after {self.timeout_seconds:g}s",
                    timed_out=True,
                )
            else:
                still_pending.add(future)
        return still_pending

    # ------------------------------------------------------------------
    # Single unit
    # ------------------------------------------------------------------

    def _build_one(
        self,
        target: BuildTarget,
        revision: str,
        run_key: str,
        started_at: dict[BuildTarget, float],
    ) -> BuildResult:
        """Build one target; never raises; failures become ``BuildFailure``."""
        started_at[target] = time.monotonic()
        workdir = self.work_dir / run_key / target.value
        logger.info("Build %s started (revision %s)", target.value, revision)
        try:
            path = self.builder.build(
                target, revision, workdir, timeout=self.timeout_seconds
            )
            path = Path(path)
            artifact = BuildArtifact(
                target=target,
                path=path,
                sha256=sha256_file(path),
                size_bytes=path.stat().st_size,
            )
        except BuildError as exc:
            logger.warning("Build %s failed: %s", target.value, exc)
            return BuildFailure(target=target, cause=str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Build %s raised unexpectedly", target.value)
            return BuildFailure(target=target, cause=f"{type(exc).__name__}: {exc}")

        elapsed = time.monotonic() - started_at[target]
        logger.info(
            "Build %s finished in %.1fs (%d bytes)",
            target.value,
            elapsed,
            artifact.size_bytes,
        )
        return artifact
