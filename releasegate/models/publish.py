"""Publication addressing and receipt models.

Key scheme in the content store:

    rev/<revision>/<name>       immutable, one per revision
    branch/<branch>/<name>      mutable pointer, last write wins
    pr/<number>/<name>          mutable pointer, last write wins
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from releasegate.models.run import PipelineRun, TriggerKind


class PointerKind(str, Enum):
    """Namespace of a mutable pointer address."""

    BRANCH = "branch"
    PR = "pr"


class PublishAddress(BaseModel):
    """The 1-2 store prefixes a run publishes under."""

    model_config = ConfigDict(frozen=True)

    revision: str
    pointer_kind: PointerKind | None = None
    pointer_name: str | None = None

    @classmethod
    def for_run(cls, run: PipelineRun) -> PublishAddress:
        """Derive the address set from a run's trigger fields."""
        if run.trigger_kind is TriggerKind.PUSH:
            return cls(
                revision=run.revision,
                pointer_kind=PointerKind.BRANCH,
                pointer_name=run.branch_name,
            )
        return cls(
            revision=run.revision,
            pointer_kind=PointerKind.PR,
            pointer_name=str(run.pr_number),
        )

    @property
    def revision_key(self) -> str:
        return f"rev/{self.revision}"

    @property
    def pointer_key(self) -> str | None:
        if self.pointer_kind is None or self.pointer_name is None:
            return None
        return f"{self.pointer_kind.value}/{self.pointer_name}"

    @property
    def keys(self) -> list[str]:
        """All prefixes, revision first."""
        pointer = self.pointer_key
        return [self.revision_key] + ([pointer] if pointer else [])


class PublishReceipt(BaseModel):
    """What the Publisher wrote, for the Instruction Renderer and logs.

    ``skipped_keys`` lists revision keys that already existed and were
    left untouched.
    """

    model_config = ConfigDict(frozen=True)

    address: PublishAddress
    revision_keys: list[str] = []
    pointer_keys: list[str] = []
    skipped_keys: list[str] = []
    published_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def written_keys(self) -> list[str]:
        skipped = set(self.skipped_keys)
        return [
            k for k in self.revision_keys + self.pointer_keys if k not in skipped
        ]
