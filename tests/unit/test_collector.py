"""Tests for the artifact collector: complete bundles only, verified copies."""

from __future__ import annotations

from pathlib import Path

import pytest

from releasegate.core.collector import (
    ArtifactCollector,
    ArtifactIntegrityError,
    MissingArtifactError,
)
from releasegate.core.hasher import sha256_file
from releasegate.models.results import ArtifactBundle, BuildArtifact
from releasegate.models.targets import ALL_TARGETS, BuildTarget


def _bundle(tmp_path: Path, targets=ALL_TARGETS, revision: str = "abc123") -> ArtifactBundle:
    artifacts = {}
    for target in targets:
        path = tmp_path / "build" / target.value / "out"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(f"{revision}:{target.value}".encode())
        artifacts[target] = BuildArtifact(
            target=target,
            path=path,
            sha256=sha256_file(path),
            size_bytes=path.stat().st_size,
        )
    return ArtifactBundle(revision=revision, artifacts=artifacts)


class TestArtifactCollector:
    def test_stages_every_target(self, tmp_path):
        collector = ArtifactCollector(tmp_path / "staging")
        staged = collector.collect(_bundle(tmp_path))

        assert staged.revision == "abc123"
        assert staged.directory == tmp_path / "staging" / "abc123"
        assert set(staged.artifacts) == ALL_TARGETS
        names = sorted(p.name for p in staged.directory.iterdir())
        assert names == sorted(f"nix-installer-{t.value}" for t in ALL_TARGETS)

    def test_staged_copy_is_separate_from_build_output(self, tmp_path):
        bundle = _bundle(tmp_path)
        staged = ArtifactCollector(tmp_path / "staging").collect(bundle)
        for target, item in staged.artifacts.items():
            assert item.path != bundle.artifacts[target].path
            assert item.path.read_bytes() == bundle.artifacts[target].path.read_bytes()
            assert item.sha256 == bundle.artifacts[target].sha256

    def test_staging_keyed_by_run_id(self, tmp_path):
        staged = ArtifactCollector(tmp_path / "staging").collect(
            _bundle(tmp_path), run_id="rg-123"
        )
        assert staged.directory == tmp_path / "staging" / "rg-123"

    def test_restaging_replaces_previous_contents(self, tmp_path):
        collector = ArtifactCollector(tmp_path / "staging")
        stale = tmp_path / "staging" / "abc123" / "stale-file"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")
        collector.collect(_bundle(tmp_path))
        assert not stale.exists()

    def test_missing_target_is_fatal(self, tmp_path):
        bundle = _bundle(tmp_path, targets=[BuildTarget.X86_64_LINUX])
        with pytest.raises(MissingArtifactError) as exc_info:
            ArtifactCollector(tmp_path / "staging").collect(bundle)
        assert exc_info.value.target is BuildTarget.AARCH64_LINUX
        assert "abc123" in str(exc_info.value)

    def test_only_expected_targets_required(self, tmp_path):
        bundle = _bundle(tmp_path, targets=[BuildTarget.X86_64_LINUX])
        staged = ArtifactCollector(
            tmp_path / "staging", expected_targets=[BuildTarget.X86_64_LINUX]
        ).collect(bundle)
        assert staged.targets == [BuildTarget.X86_64_LINUX]

    def test_custom_binary_name(self, tmp_path):
        staged = ArtifactCollector(tmp_path / "staging", binary_name="tool").collect(
            _bundle(tmp_path)
        )
        assert staged.artifacts[BuildTarget.X86_64_LINUX].path.name == "tool-x86_64-linux"

    def test_modified_artifact_detected(self, tmp_path):
        bundle = _bundle(tmp_path)
        bundle.artifacts[BuildTarget.X86_64_DARWIN].path.write_bytes(b"tampered")
        with pytest.raises(ArtifactIntegrityError):
            ArtifactCollector(tmp_path / "staging").collect(bundle)

    def test_vanished_artifact_detected(self, tmp_path):
        bundle = _bundle(tmp_path)
        bundle.artifacts[BuildTarget.AARCH64_LINUX].path.unlink()
        with pytest.raises(ArtifactIntegrityError):
            ArtifactCollector(tmp_path / "staging").collect(bundle)
