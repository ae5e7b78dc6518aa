"""Publication Gate: decides whether a run may publish.

The gate is a pure predicate over ``PipelineRun`` fields.  It performs no
I/O and keeps no state, so evaluating it twice on the same run always
gives the same answer.

Policy
------
- Push runs are always authorized (only tracked branches become runs).
- Pull-request runs are authorized only when the head repository is the
  canonical repository AND the run carries the opt-in signal.  Fork PRs
  are rejected even if the signal is set.

Rejection is a normal outcome, not an error: the Publisher is skipped and
the run exits zero.
"""

from __future__ import annotations

from releasegate.models.outcome import GateDecision
from releasegate.models.run import PipelineRun, TriggerKind


class PublicationGate:
    """Authorization predicate for publishing a run's artifacts.

    Parameters
    ----------
    canonical_repo:
        ``owner/name`` of the repository whose pull requests may publish.
    """

    def __init__(self, canonical_repo: str) -> None:
        if not canonical_repo:
            raise ValueError("canonical_repo must not be empty")
        self.canonical_repo = canonical_repo

    def authorize(self, run: PipelineRun) -> GateDecision:
        """Return ``Authorized`` or ``Rejected{reason}`` for *run*."""
        if run.trigger_kind is TriggerKind.PUSH:
            return GateDecision.allow(f"push to {run.branch_name}")

        if run.origin_repo != self.canonical_repo:
            return GateDecision.reject(
                f"pull request #{run.pr_number} comes from {run.origin_repo}, "
                f"not {self.canonical_repo}"
            )
        if not run.opt_in_signal:
            return GateDecision.reject(
                f"pull request #{run.pr_number} has not opted in to publishing"
            )
        return GateDecision.allow(f"pull request #{run.pr_number} opted in")
