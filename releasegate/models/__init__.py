"""releasegate data models — all Pydantic v2, all frozen (immutable)."""

from releasegate.models.outcome import GateDecision, PipelineOutcome, RunStatus
from releasegate.models.publish import PointerKind, PublishAddress, PublishReceipt
from releasegate.models.results import (
    ArtifactBundle,
    BuildArtifact,
    BuildFailure,
    BuildResult,
    PartialFailure,
    StagedArtifact,
    StagedArtifacts,
)
from releasegate.models.run import PipelineRun, TriggerEvent, TriggerKind
from releasegate.models.targets import ALL_TARGETS, BuildTarget, sorted_targets

__all__ = [
    # targets
    "ALL_TARGETS",
    "BuildTarget",
    "sorted_targets",
    # run
    "PipelineRun",
    "TriggerEvent",
    "TriggerKind",
    # results
    "ArtifactBundle",
    "BuildArtifact",
    "BuildFailure",
    "BuildResult",
    "PartialFailure",
    "StagedArtifact",
    "StagedArtifacts",
    # publish
    "PointerKind",
    "PublishAddress",
    "PublishReceipt",
    # outcome
    "GateDecision",
    "PipelineOutcome",
    "RunStatus",
]
