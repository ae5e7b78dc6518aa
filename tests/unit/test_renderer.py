"""Tests for the Rich outcome renderer."""

from __future__ import annotations

from io import StringIO
from pathlib import Path

from rich.console import Console

from releasegate.models.outcome import GateDecision, PipelineOutcome, RunStatus
from releasegate.models.results import (
    ArtifactBundle,
    BuildArtifact,
    BuildFailure,
    PartialFailure,
)
from releasegate.models.targets import BuildTarget
from releasegate.report.renderer import OutcomeRenderer


def _renderer() -> tuple[OutcomeRenderer, StringIO]:
    buffer = StringIO()
    console = Console(file=buffer, width=120, color_system=None)
    return OutcomeRenderer(console=console), buffer


def _artifact(target: BuildTarget) -> BuildArtifact:
    return BuildArtifact(
        target=target, path=Path("/tmp/x"), sha256="ab" * 32, size_bytes=2048
    )


class TestOutcomeRenderer:
    def test_build_failure_table(self, make_run):
        renderer, buffer = _renderer()
        build = PartialFailure(
            revision="abc123",
            failed={
                BuildTarget.AARCH64_DARWIN: BuildFailure(
                    target=BuildTarget.AARCH64_DARWIN,
                    cause="timed out after 10s",
                    timed_out=True,
                ),
                BuildTarget.X86_64_DARWIN: BuildFailure(
                    target=BuildTarget.X86_64_DARWIN, cause="[red] not markup\nsecond"
                ),
            },
            succeeded={BuildTarget.X86_64_LINUX: _artifact(BuildTarget.X86_64_LINUX)},
        )
        renderer.print_outcome(
            PipelineOutcome(
                status=RunStatus.BUILD_FAILED,
                run=make_run(),
                decision=GateDecision.allow("push to main"),
                build=build,
                error="1 target(s) failed",
            )
        )
        out = buffer.getvalue()
        assert "TIMED OUT" in out
        assert "FAILED" in out
        assert "[red] not markup" in out
        assert "second" not in out
        assert "2,048" in out
        assert "Exit code: 1" in out

    def test_rejected_outcome(self, make_run):
        renderer, buffer = _renderer()
        renderer.print_outcome(
            PipelineOutcome(
                status=RunStatus.REJECTED,
                run=make_run(),
                decision=GateDecision.reject("pull request #4 comes from a/fork"),
            )
        )
        out = buffer.getvalue()
        assert "REJECTED" in out
        assert "a/fork" in out
        assert "Exit code: 0" in out

    def test_instructions_printed_verbatim(self, make_run):
        renderer, buffer = _renderer()
        bundle = ArtifactBundle(
            revision="abc123",
            artifacts={BuildTarget.X86_64_LINUX: _artifact(BuildTarget.X86_64_LINUX)},
        )
        text = "curl --proto '=https' --tlsv1.2 -sSf -L https://h/p/rev/abc123 | sh -s -- install\n"
        renderer.print_outcome(
            PipelineOutcome(
                status=RunStatus.PUBLISHED,
                run=make_run(),
                decision=GateDecision.allow(),
                build=bundle,
                instructions=text,
            )
        )
        assert text.strip() in buffer.getvalue()
