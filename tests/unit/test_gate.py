"""Tests for the publication gate: push always, PRs only when trusted and opted in."""

from __future__ import annotations

import pytest

from releasegate.core.gate import PublicationGate
from releasegate.models.run import TriggerKind

CANONICAL_REPO = "DeterminateSystems/nix-installer"


class TestPublicationGate:
    def test_push_always_authorized(self, gate, make_run):
        decision = gate.authorize(make_run(origin_repo="anyone/anything"))
        assert decision.authorized is True
        assert "main" in decision.reason

    def test_canonical_opted_in_pr_authorized(self, gate, make_run):
        run = make_run(TriggerKind.PULL_REQUEST, opt_in_signal=True)
        assert gate.authorize(run).authorized is True

    def test_canonical_pr_without_opt_in_rejected(self, gate, make_run):
        run = make_run(TriggerKind.PULL_REQUEST, opt_in_signal=False)
        decision = gate.authorize(run)
        assert decision.authorized is False
        assert "not opted in" in decision.reason

    def test_fork_pr_rejected_even_with_opt_in(self, gate, make_run):
        run = make_run(
            TriggerKind.PULL_REQUEST, origin_repo="attacker/fork", opt_in_signal=True
        )
        decision = gate.authorize(run)
        assert decision.authorized is False
        assert "attacker/fork" in decision.reason
        assert CANONICAL_REPO in decision.reason

    def test_deterministic(self, gate, make_run):
        run = make_run(TriggerKind.PULL_REQUEST, origin_repo="a/b", opt_in_signal=True)
        assert gate.authorize(run) == gate.authorize(run)

    def test_empty_canonical_repo_rejected(self):
        with pytest.raises(ValueError):
            PublicationGate("")
