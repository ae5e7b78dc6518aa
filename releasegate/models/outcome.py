"""Gate decisions and end-of-run outcomes."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from releasegate.models.publish import PublishReceipt
from releasegate.models.results import ArtifactBundle, PartialFailure, StagedArtifacts
from releasegate.models.run import PipelineRun


class GateDecision(BaseModel):
    """Result of the publication gate: authorized, or rejected with a reason."""

    model_config = ConfigDict(frozen=True)

    authorized: bool
    reason: str = ""

    @classmethod
    def allow(cls, reason: str = "") -> GateDecision:
        return cls(authorized=True, reason=reason)

    @classmethod
    def reject(cls, reason: str) -> GateDecision:
        return cls(authorized=False, reason=reason)


class RunStatus(str, Enum):
    """Terminal state of one pipeline invocation."""

    IGNORED = "ignored"  # event is not a pipeline trigger
    REJECTED = "rejected"  # gate said no, nothing built
    VALIDATED = "validated"  # gate said no, builds ran and passed
    BUILD_FAILED = "build_failed"
    COLLECT_FAILED = "collect_failed"  # bundle incomplete or corrupted
    PUBLISHED = "published"
    PUBLISH_FAILED = "publish_failed"


# Rejection and ignored events are normal outcomes, not errors.
_EXIT_CODES: dict[RunStatus, int] = {
    RunStatus.IGNORED: 0,
    RunStatus.REJECTED: 0,
    RunStatus.VALIDATED: 0,
    RunStatus.BUILD_FAILED: 1,
    RunStatus.COLLECT_FAILED: 1,
    RunStatus.PUBLISHED: 0,
    RunStatus.PUBLISH_FAILED: 1,
}


class PipelineOutcome(BaseModel):
    """Everything a caller needs to report on a finished run."""

    model_config = ConfigDict(frozen=True)

    status: RunStatus
    run: PipelineRun | None = None
    decision: GateDecision | None = None
    build: ArtifactBundle | PartialFailure | None = None
    staged: StagedArtifacts | None = None
    receipt: PublishReceipt | None = None
    instructions: str | None = None
    error: str | None = None

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self.status]
