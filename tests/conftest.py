"""Shared test fixtures for releasegate."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from releasegate.builders import BuildError
from releasegate.core.collector import ArtifactCollector
from releasegate.core.coordinator import BuildCoordinator
from releasegate.core.gate import PublicationGate
from releasegate.core.opt_in import OptInLedger, OptInListener
from releasegate.core.pipeline import ReleasePipeline
from releasegate.core.publisher import PointerLocks, Publisher
from releasegate.core.trigger import TriggerClassifier
from releasegate.models.run import PipelineRun, TriggerEvent, TriggerKind
from releasegate.models.targets import ALL_TARGETS, BuildTarget
from releasegate.storage.identity import (
    Credentials,
    IdentityError,
    StaticIdentityProvider,
)
from releasegate.storage.local import LocalContentStore

CANONICAL_REPO = "DeterminateSystems/nix-installer"
OPT_IN_LABEL = "upload to s3"


# ---------------------------------------------------------------------------
# Test doubles for the external collaborators
# ---------------------------------------------------------------------------


class FakeBuilder:
    """Writes ``<revision>:<target>`` bytes as the 'binary'.

    Targets in ``fail`` raise BuildError; targets in ``hang`` sleep for
    ``hang_seconds`` first.  Thread-safe bookkeeping of calls.
    """

    def __init__(
        self,
        fail: set[BuildTarget] | None = None,
        hang: set[BuildTarget] | None = None,
        hang_seconds: float = 5.0,
        payload: Callable[[BuildTarget, str], bytes] | None = None,
    ) -> None:
        self.fail = fail or set()
        self.hang = hang or set()
        self.hang_seconds = hang_seconds
        self.payload = payload or (lambda t, rev: f"{rev}:{t.value}".encode())
        self.calls: list[tuple[BuildTarget, str]] = []
        self._lock = threading.Lock()

    def build(
        self,
        target: BuildTarget,
        revision: str,
        workdir: Path,
        timeout: float | None = None,
    ) -> Path:
        with self._lock:
            self.calls.append((target, revision))
        if target in self.hang:
            time.sleep(self.hang_seconds)
        if target in self.fail:
            raise BuildError(target, "compiler exploded")
        workdir.mkdir(parents=True, exist_ok=True)
        out = workdir / target.artifact_name("nix-installer")
        out.write_bytes(self.payload(target, revision))
        return out


class FailingIdentityProvider:
    """Identity provider whose acquisition always fails."""

    def __init__(self) -> None:
        self.calls = 0

    def assume_identity(self, role: str, region: str) -> Credentials:
        self.calls += 1
        raise IdentityError(f"cannot assume {role or '<none>'}")


class RecordingStore(LocalContentStore):
    """Local store that records every put, optionally failing some keys."""

    def __init__(self, base_path: Path, fail_prefix: str | None = None) -> None:
        super().__init__(base_path)
        self.fail_prefix = fail_prefix
        self.puts: list[str] = []
        self._lock = threading.Lock()

    def put(self, key: str, data: bytes) -> None:
        from releasegate.storage import StoreError

        if self.fail_prefix and key.startswith(self.fail_prefix):
            raise StoreError(key, "simulated outage")
        with self._lock:
            self.puts.append(key)
        super().put(key, data)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_builder() -> FakeBuilder:
    return FakeBuilder()


@pytest.fixture
def opt_in_ledger(tmp_path: Path) -> OptInLedger:
    """Provide a fresh OptInLedger backed by a temp SQLite database."""
    return OptInLedger(tmp_path / "opt_in.db")


@pytest.fixture
def listener(opt_in_ledger: OptInLedger) -> OptInListener:
    return OptInListener(opt_in_ledger, OPT_IN_LABEL)


@pytest.fixture
def gate() -> PublicationGate:
    return PublicationGate(CANONICAL_REPO)


@pytest.fixture
def store(tmp_path: Path) -> RecordingStore:
    return RecordingStore(tmp_path / "store")


@pytest.fixture
def make_event() -> Callable[..., TriggerEvent]:
    """Factory fixture: build a TriggerEvent with sensible defaults."""

    def _factory(kind: str = "push", **overrides: Any) -> TriggerEvent:
        defaults: dict[str, Any] = {
            "kind": kind,
            "revision": "abc123",
            "origin_repo": CANONICAL_REPO,
        }
        if kind == "push":
            defaults["branch_name"] = "main"
        else:
            defaults["pr_number"] = 42
            defaults["action"] = "synchronize"
        defaults.update(overrides)
        return TriggerEvent(**defaults)

    return _factory


@pytest.fixture
def make_run() -> Callable[..., PipelineRun]:
    """Factory fixture: build a PipelineRun with sensible defaults."""

    def _factory(kind: TriggerKind = TriggerKind.PUSH, **overrides: Any) -> PipelineRun:
        defaults: dict[str, Any] = {
            "trigger_kind": kind,
            "revision": "abc123",
            "origin_repo": CANONICAL_REPO,
        }
        if kind is TriggerKind.PUSH:
            defaults["branch_name"] = "main"
        else:
            defaults["pr_number"] = 42
        defaults.update(overrides)
        return PipelineRun(**defaults)

    return _factory


@pytest.fixture
def make_pipeline(
    tmp_path: Path, listener: OptInListener, store: RecordingStore
) -> Callable[..., ReleasePipeline]:
    """Factory fixture: a ReleasePipeline wired to fakes in tmp_path."""

    def _factory(
        builder: Any = None,
        identity_provider: Any = None,
        pipeline_store: Any = None,
        build_when_rejected: bool = False,
        timeout_seconds: float | None = None,
    ) -> ReleasePipeline:
        return ReleasePipeline(
            classifier=TriggerClassifier(["main"], listener),
            gate=PublicationGate(CANONICAL_REPO),
            coordinator=BuildCoordinator(
                builder or FakeBuilder(),
                tmp_path / "work",
                timeout_seconds=timeout_seconds,
                poll_interval=0.05,
            ),
            collector=ArtifactCollector(tmp_path / "staging"),
            publisher=Publisher(
                pipeline_store or store,
                identity_provider or StaticIdentityProvider(),
                pointer_locks=PointerLocks(),
            ),
            targets=ALL_TARGETS,
            install_host="install.determinate.systems",
            product="nix",
            build_when_rejected=build_when_rejected,
        )

    return _factory


@pytest.fixture
def make_builder() -> type[FakeBuilder]:
    """The FakeBuilder class, for tests that need failing or hanging targets."""
    return FakeBuilder


@pytest.fixture
def failing_identity() -> FailingIdentityProvider:
    return FailingIdentityProvider()


@pytest.fixture
def make_store(tmp_path: Path) -> Callable[..., RecordingStore]:
    """Factory fixture: a RecordingStore under tmp_path, optionally failing."""

    def _factory(name: str = "store", fail_prefix: str | None = None) -> RecordingStore:
        return RecordingStore(tmp_path / name, fail_prefix=fail_prefix)

    return _factory
