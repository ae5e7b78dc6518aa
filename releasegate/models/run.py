"""Trigger event and pipeline run models.

A ``TriggerEvent`` is the logical record the pipeline reacts to.  It is
classified into at most one ``PipelineRun``, which is immutable for the
rest of the run and discarded when the run completes.
"""

from __future__ import annotations

import json
import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Revisions and branch names become path segments in the content store.
_SEGMENT_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def is_valid_segment(value: str) -> bool:
    """Return True if *value* is safe to use as a single store key segment."""
    return bool(_SEGMENT_RE.match(value)) and ".." not in value


class TriggerKind(str, Enum):
    """The two kinds of event that can start a run."""

    PUSH = "push"
    PULL_REQUEST = "pull_request"


class TriggerEvent(BaseModel):
    """A source-control event as seen by the pipeline.

    ``action``, ``label_name`` and ``labels`` only matter for pull-request
    events: they feed the opt-in listener.
    """

    model_config = ConfigDict(frozen=True)

    kind: TriggerKind
    revision: str
    branch_name: str | None = None
    pr_number: int | None = None
    origin_repo: str
    opt_in_signal: bool = False
    action: str | None = None  # e.g. "opened", "synchronize", "labeled"
    label_name: str | None = None  # label attached by a "labeled" action
    labels: list[str] = []  # labels currently on the pull request

    @classmethod
    def from_json_file(cls, path: Path) -> TriggerEvent:
        """Load an event from a JSON document on disk."""
        return cls.model_validate(json.loads(Path(path).read_text(encoding="utf-8")))


class PipelineRun(BaseModel):
    """One execution of the pipeline.

    ``branch_name`` is present iff the run was triggered by a push;
    ``pr_number`` is present iff it was triggered by a pull request.
    """

    model_config = ConfigDict(frozen=True)

    run_id: str = Field(default_factory=lambda: f"rg-{uuid.uuid4().hex[:12]}")
    trigger_kind: TriggerKind
    revision: str
    branch_name: str | None = None
    pr_number: int | None = None
    origin_repo: str
    opt_in_signal: bool = False
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @model_validator(mode="after")
    def _check_trigger_fields(self) -> PipelineRun:
        if not is_valid_segment(self.revision):
            raise ValueError(f"revision {self.revision!r} is not a valid path segment")
        if self.trigger_kind is TriggerKind.PUSH:
            if self.branch_name is None or self.pr_number is not None:
                raise ValueError("push runs carry a branch_name and no pr_number")
            if not is_valid_segment(self.branch_name):
                raise ValueError(
                    f"branch {self.branch_name!r} is not a valid path segment"
                )
        else:
            if self.pr_number is None or self.branch_name is not None:
                raise ValueError("pull_request runs carry a pr_number and no branch_name")
            if self.pr_number <= 0:
                raise ValueError(f"pr_number must be positive, got {self.pr_number}")
        return self

    @property
    def label(self) -> str:
        """Short human identifier, e.g. ``main@abc123`` or ``pr#42@abc123``."""
        if self.trigger_kind is TriggerKind.PUSH:
            return f"{self.branch_name}@{self.revision}"
        return f"pr#{self.pr_number}@{self.revision}"
