"""Trigger classification: which events start a pipeline run.

- Pushes start a run only for tracked branches.
- Pull-request events start a run only for the configured actions
  (opened, reopened, synchronize and labeled by default). Closing,
  unlabeling or editing a PR must not rebuild it.
- "labeled" events for labels other than the opt-in label are ignored:
  adding an unrelated label must not re-publish a PR that opted in
  earlier.
- A pull-request event with no action (a hand-written event file) is
  treated like "synchronize".

Every pull-request event is shown to the opt-in listener before it is
classified, so opt-in state stays current even for ignored events.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from releasegate.core.opt_in import OptInListener
from releasegate.models.run import PipelineRun, TriggerEvent, TriggerKind

logger = logging.getLogger(__name__)

DEFAULT_PR_ACTIONS: tuple[str, ...] = ("opened", "reopened", "synchronize", "labeled")


class TriggerClassifier:
    """Turns a ``TriggerEvent`` into a ``PipelineRun`` (or ``None``).

    Parameters
    ----------
    tracked_branches:
        Branch names whose pushes are released.
    listener:
        Opt-in listener that supplies the monotonic opt-in signal.
    pr_actions:
        Pull-request actions that start a run.
    """

    def __init__(
        self,
        tracked_branches: Iterable[str],
        listener: OptInListener,
        pr_actions: Iterable[str] = DEFAULT_PR_ACTIONS,
    ) -> None:
        self.tracked_branches = frozenset(tracked_branches)
        self.listener = listener
        self.pr_actions = frozenset(pr_actions)

    def ignore_reason(self, event: TriggerEvent) -> str | None:
        """Return why *event* is not a pipeline trigger, or None if it is."""
        if event.kind is TriggerKind.PUSH:
            if not event.branch_name:
                return "push event without a branch name"
            if event.branch_name not in self.tracked_branches:
                return f"branch {event.branch_name!r} is not tracked"
            return None
        if event.pr_number is None:
            return "pull_request event without a PR number"
        if event.action is not None and event.action not in self.pr_actions:
            return f"action {event.action!r} does not trigger a release"
        if event.action == "labeled" and event.label_name != self.listener.label:
            return f"label {event.label_name!r} is not the opt-in label"
        return None

    def classify(self, event: TriggerEvent) -> PipelineRun | None:
        """Return the run for *event*, or None if the event is ignored."""
        opted_in = self.listener.observe(event)

        reason = self.ignore_reason(event)
        if reason is not None:
            logger.info("Ignoring %s event for %s: %s", event.kind.value, event.revision, reason)
            return None

        if event.kind is TriggerKind.PUSH:
            return PipelineRun(
                trigger_kind=TriggerKind.PUSH,
                revision=event.revision,
                branch_name=event.branch_name,
                origin_repo=event.origin_repo,
            )
        return PipelineRun(
            trigger_kind=TriggerKind.PULL_REQUEST,
            revision=event.revision,
            pr_number=event.pr_number,
            origin_repo=event.origin_repo,
            opt_in_signal=opted_in,
        )
