"""Tests for trigger classification: which events become pipeline runs."""

from __future__ import annotations

import pytest

from releasegate.core.trigger import TriggerClassifier
from releasegate.models.run import TriggerKind

OPT_IN_LABEL = "upload to s3"


@pytest.fixture
def classifier(listener) -> TriggerClassifier:
    return TriggerClassifier(["main"], listener)


class TestPushClassification:
    def test_tracked_branch_becomes_run(self, classifier, make_event):
        run = classifier.classify(make_event("push"))
        assert run is not None
        assert run.trigger_kind is TriggerKind.PUSH
        assert run.branch_name == "main"
        assert run.revision == "abc123"

    def test_untracked_branch_ignored(self, classifier, make_event):
        event = make_event("push", branch_name="feature")
        assert classifier.classify(event) is None
        assert "not tracked" in classifier.ignore_reason(event)

    def test_push_without_branch_ignored(self, classifier, make_event):
        assert classifier.classify(make_event("push", branch_name=None)) is None


class TestPullRequestClassification:
    def test_pr_becomes_run_without_opt_in(self, classifier, make_event):
        run = classifier.classify(make_event("pull_request"))
        assert run is not None
        assert run.pr_number == 42
        assert run.opt_in_signal is False

    def test_opt_in_label_sets_signal(self, classifier, make_event):
        event = make_event("pull_request", action="labeled", label_name=OPT_IN_LABEL)
        run = classifier.classify(event)
        assert run is not None
        assert run.opt_in_signal is True

    def test_unrelated_label_event_ignored(self, classifier, make_event):
        event = make_event(
            "pull_request",
            action="labeled",
            label_name="documentation",
            labels=["documentation", OPT_IN_LABEL],
        )
        assert classifier.classify(event) is None
        assert "not the opt-in label" in classifier.ignore_reason(event)

    def test_ignored_event_still_records_opt_in(self, classifier, listener, make_event):
        event = make_event(
            "pull_request",
            action="labeled",
            label_name="documentation",
            labels=[OPT_IN_LABEL],
        )
        classifier.classify(event)
        followup = classifier.classify(make_event("pull_request", revision="def456"))
        assert followup is not None
        assert followup.opt_in_signal is True

    def test_pr_without_number_ignored(self, classifier, make_event):
        assert classifier.classify(make_event("pull_request", pr_number=None)) is None

    @pytest.mark.parametrize("action", ["closed", "unlabeled", "edited", "assigned"])
    def test_non_release_action_ignored(self, classifier, make_event, action):
        event = make_event("pull_request", action=action)
        assert classifier.classify(event) is None
        assert "does not trigger a release" in classifier.ignore_reason(event)

    def test_closed_opted_in_pr_is_not_rebuilt(self, classifier, make_event):
        labeled = make_event("pull_request", action="labeled", label_name=OPT_IN_LABEL)
        assert classifier.classify(labeled) is not None
        closed = make_event("pull_request", action="closed", labels=[OPT_IN_LABEL])
        assert classifier.classify(closed) is None

    def test_unlabeled_event_still_observed(self, classifier, make_event):
        event = make_event("pull_request", action="unlabeled", labels=[OPT_IN_LABEL])
        assert classifier.classify(event) is None
        followup = classifier.classify(make_event("pull_request", action="synchronize"))
        assert followup is not None
        assert followup.opt_in_signal is True

    @pytest.mark.parametrize("action", ["opened", "reopened", "synchronize"])
    def test_release_actions_become_runs(self, classifier, make_event, action):
        assert classifier.classify(make_event("pull_request", action=action)) is not None

    def test_missing_action_treated_as_synchronize(self, classifier, make_event):
        assert classifier.classify(make_event("pull_request", action=None)) is not None

    def test_custom_action_set(self, listener, make_event):
        classifier = TriggerClassifier(["main"], listener, pr_actions=["opened"])
        assert classifier.classify(make_event("pull_request", action="opened")) is not None
        assert classifier.classify(make_event("pull_request", action="synchronize")) is None
