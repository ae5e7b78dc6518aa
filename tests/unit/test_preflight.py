"""Tests for configuration preflight."""

from __future__ import annotations

import pytest

from releasegate.config import ReleaseConfig
from releasegate.core.preflight import (
    ConfigError,
    config_violations,
    enforce_publish_constraints,
)


def _config(**overrides) -> ReleaseConfig:
    return ReleaseConfig(_env_file=None, **overrides)


class TestConfigViolations:
    def test_defaults_pass(self):
        assert config_violations(_config()) == []

    def test_empty_canonical_repo(self):
        assert any("canonical_repo" in v for v in config_violations(_config(canonical_repo="")))

    def test_empty_targets(self):
        assert any("targets" in v for v in config_violations(_config(targets=[])))

    def test_branch_with_slash(self):
        violations = config_violations(_config(tracked_branches=["release/1.x"]))
        assert any("release/1.x" in v for v in violations)

    def test_non_positive_limits(self):
        violations = config_violations(
            _config(build_timeout_seconds=0, max_concurrent_builds=0)
        )
        assert len(violations) == 2

    def test_unknown_backend(self):
        assert any("gcs" in v for v in config_violations(_config(store_backend="gcs")))

    def test_s3_requires_bucket_and_role(self):
        violations = config_violations(_config(store_backend="s3"))
        assert any("S3_BUCKET" in v for v in violations)
        assert any("UPLOAD_ROLE" in v for v in violations)

    def test_s3_complete(self):
        config = _config(store_backend="s3", s3_bucket="b", upload_role="arn:role")
        assert config_violations(config) == []

    def test_production_requires_s3(self):
        violations = config_violations(_config(environment="production"))
        assert any("Production" in v for v in violations)

    def test_missing_install_script(self, tmp_path):
        violations = config_violations(_config(install_script=tmp_path / "missing.sh"))
        assert any("missing.sh" in v for v in violations)


class TestEnforce:
    def test_raises_with_every_violation(self):
        config = _config(store_backend="s3", canonical_repo="")
        with pytest.raises(ConfigError) as exc_info:
            enforce_publish_constraints(config)
        message = str(exc_info.value)
        assert "canonical_repo" in message
        assert "S3_BUCKET" in message
        assert "UPLOAD_ROLE" in message

    def test_passes_silently(self):
        enforce_publish_constraints(_config())
