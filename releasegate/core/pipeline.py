"""Release pipeline — the single coordinator for one triggered release.

Wires the TriggerClassifier, PublicationGate, BuildCoordinator,
ArtifactCollector, Publisher and instruction renderer into:

    classify -> authorize -> build all targets -> collect -> publish -> instruct

Gate rejection is decided before any build starts.  With
``build_when_rejected`` off (the default) a rejected run builds nothing;
with it on, builds and staging still run to prove buildability, and only
the Publisher is skipped.  Either way there are no in-flight builds to
cancel when the gate says no.

Exit codes: non-zero when any target fails, the bundle cannot be staged,
or publishing fails after authorization; zero for ignored events,
rejections, validated builds and successful publishes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from releasegate.builders import Builder
from releasegate.builders.nix import NixFlakeBuilder
from releasegate.config import ReleaseConfig
from releasegate.core.collector import (
    ArtifactCollector,
    ArtifactIntegrityError,
    MissingArtifactError,
)
from releasegate.core.coordinator import BuildCoordinator
from releasegate.core.gate import PublicationGate
from releasegate.core.instructions import render_instructions
from releasegate.core.opt_in import OptInLedger, OptInListener
from releasegate.core.preflight import enforce_publish_constraints
from releasegate.core.publisher import PointerLocks, PublishError, Publisher
from releasegate.core.trigger import TriggerClassifier
from releasegate.models.outcome import PipelineOutcome, RunStatus
from releasegate.models.publish import PublishAddress
from releasegate.models.results import PartialFailure
from releasegate.models.run import PipelineRun, TriggerEvent
from releasegate.models.targets import BuildTarget, sorted_targets
from releasegate.storage import ContentStore
from releasegate.storage.identity import (
    AwsCliIdentityProvider,
    IdentityProvider,
    StaticIdentityProvider,
)
from releasegate.storage.local import LocalContentStore
from releasegate.storage.s3 import S3ContentStore

logger = logging.getLogger(__name__)


class ReleasePipeline:
    """Runs one trigger event through the whole release flow.

    Parameters
    ----------
    classifier:
        Decides whether an event is a pipeline run at all.
    gate:
        Publication authorization predicate.
    coordinator:
        Parallel build fan-out/join.
    collector:
        Stages the joined artifacts.
    publisher:
        Uploads staged artifacts.
    targets:
        Targets every run builds.
    install_host, product:
        Used to render install instructions.
    build_when_rejected:
        Build and stage rejected runs anyway (no publish).
    """

    def __init__(
        self,
        *,
        classifier: TriggerClassifier,
        gate: PublicationGate,
        coordinator: BuildCoordinator,
        collector: ArtifactCollector,
        publisher: Publisher,
        targets: Iterable[BuildTarget],
        install_host: str,
        product: str,
        build_when_rejected: bool = False,
    ) -> None:
        self.classifier = classifier
        self.gate = gate
        self.coordinator = coordinator
        self.collector = collector
        self.publisher = publisher
        self.targets = sorted_targets(set(targets))
        self.install_host = install_host
        self.product = product
        self.build_when_rejected = build_when_rejected

    @classmethod
    def from_config(
        cls,
        config: ReleaseConfig,
        *,
        builder: Builder | None = None,
        store: ContentStore | None = None,
        identity_provider: IdentityProvider | None = None,
        source_dir: Path = Path("."),
        pointer_locks: PointerLocks | None = None,
    ) -> ReleasePipeline:
        """Assemble a pipeline from settings.

        Any collaborator passed explicitly replaces the one *config* would
        select.

        Raises
        ------
        ConfigError
            If *config* fails the preflight check.
        """
        enforce_publish_constraints(config)

        if builder is None:
            builder = NixFlakeBuilder(
                source_dir=source_dir,
                flake_attr=config.flake_attr,
                binary_name=config.binary_name,
            )
        if store is None:
            if config.store_backend == "s3":
                store = S3ContentStore(config.s3_bucket, config.aws_region)
            else:
                store = LocalContentStore(config.local_store_path)
        if identity_provider is None:
            if config.store_backend == "s3":
                identity_provider = AwsCliIdentityProvider()
            else:
                identity_provider = StaticIdentityProvider()

        listener = OptInListener(OptInLedger(config.opt_in_db_path), config.opt_in_label)
        return cls(
            classifier=TriggerClassifier(config.tracked_branches, listener, config.pr_actions),
            gate=PublicationGate(config.canonical_repo),
            coordinator=BuildCoordinator(
                builder,
                config.work_dir,
                max_workers=config.max_concurrent_builds,
                timeout_seconds=config.build_timeout_seconds,
            ),
            collector=ArtifactCollector(
                config.staging_dir,
                expected_targets=config.targets,
                binary_name=config.binary_name,
            ),
            publisher=Publisher(
                store,
                identity_provider,
                role=config.upload_role,
                region=config.aws_region,
                install_script=config.install_script,
                install_base_url=config.install_base_url,
                pointer_locks=pointer_locks,
            ),
            targets=config.targets,
            install_host=config.install_host,
            product=config.product,
            build_when_rejected=config.build_when_rejected,
        )

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(self, event: TriggerEvent) -> PipelineOutcome:
        """Classify *event* and, if it is a pipeline trigger, execute it."""
        run = self.classifier.classify(event)
        if run is None:
            return PipelineOutcome(status=RunStatus.IGNORED)
        return self.execute(run)

    def execute(self, run: PipelineRun) -> PipelineOutcome:
        """Execute an already-classified run."""
        logger.info(
            "Run %s: %s from %s", run.run_id, run.label, run.origin_repo
        )

        decision = self.gate.authorize(run)
        if decision.authorized:
            logger.info("Run %s authorized to publish: %s", run.run_id, decision.reason)
        else:
            logger.info("Run %s will not publish: %s", run.run_id, decision.reason)
            if not self.build_when_rejected:
                return PipelineOutcome(status=RunStatus.REJECTED, run=run, decision=decision)

        # 1. Build every target, full join
        build = self.coordinator.run(self.targets, run.revision, run_id=run.run_id)
        if isinstance(build, PartialFailure):
            return PipelineOutcome(
                status=RunStatus.BUILD_FAILED,
                run=run,
                decision=decision,
                build=build,
                error=(
                    f"Run {run.run_id} ({run.label}): "
                    f"{len(build.failed)} target(s) failed: {build.summary()}"
                ),
            )

        # 2. Stage
        try:
            staged = self.collector.collect(build, run_id=run.run_id)
        except (MissingArtifactError, ArtifactIntegrityError) as exc:
            logger.critical("Run %s (%s): %s", run.run_id, run.label, exc)
            return PipelineOutcome(
                status=RunStatus.COLLECT_FAILED,
                run=run,
                decision=decision,
                build=build,
                error=str(exc),
            )

        if not decision.authorized:
            logger.info(
                "Run %s: all targets built and staged; publishing skipped", run.run_id
            )
            return PipelineOutcome(
                status=RunStatus.VALIDATED,
                run=run,
                decision=decision,
                build=build,
                staged=staged,
            )

        # 3. Publish
        address = PublishAddress.for_run(run)
        try:
            receipt = self.publisher.publish(staged, address)
        except PublishError as exc:
            return PipelineOutcome(
                status=RunStatus.PUBLISH_FAILED,
                run=run,
                decision=decision,
                build=build,
                staged=staged,
                error=f"Run {run.run_id} ({run.label}): {exc}",
            )

        # 4. Instructions
        instructions = render_instructions(receipt, self.install_host, self.product)
        return PipelineOutcome(
            status=RunStatus.PUBLISHED,
            run=run,
            decision=decision,
            build=build,
            staged=staged,
            receipt=receipt,
            instructions=instructions,
        )
