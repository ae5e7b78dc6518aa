"""Configuration preflight: validates settings before a run starts.

Runs once when the pipeline is assembled and fails hard (raises
``ConfigError``) listing every violation at once, rather than failing
halfway through a publish.
"""

from __future__ import annotations

import logging

from releasegate.config import ReleaseConfig
from releasegate.models.run import is_valid_segment

logger = logging.getLogger(__name__)

STORE_BACKENDS = ("local", "s3")


class ConfigError(RuntimeError):
    """Raised when the release configuration cannot be used.

    It must not be caught and ignored; the process should exit.
    """


def config_violations(config: ReleaseConfig) -> list[str]:
    """Return every configuration problem as a human-readable string."""
    violations: list[str] = []

    if not config.canonical_repo:
        violations.append(
            "canonical_repo is empty. Set RELEASEGATE_CANONICAL_REPO=owner/name."
        )
    if not config.targets:
        violations.append("targets is empty; at least one build target is required.")
    for branch in config.tracked_branches:
        if not is_valid_segment(branch):
            violations.append(
                f"Tracked branch {branch!r} is not a valid directory name and "
                "cannot be used as a store key."
            )
    if config.build_timeout_seconds <= 0:
        violations.append("build_timeout_seconds must be positive.")
    if config.max_concurrent_builds <= 0:
        violations.append("max_concurrent_builds must be positive.")

    if config.store_backend not in STORE_BACKENDS:
        violations.append(
            f"store_backend {config.store_backend!r} is not one of {', '.join(STORE_BACKENDS)}."
        )
    elif config.store_backend == "s3":
        if not config.s3_bucket:
            violations.append("store_backend=s3 requires RELEASEGATE_S3_BUCKET.")
        if not config.upload_role:
            violations.append("store_backend=s3 requires RELEASEGATE_UPLOAD_ROLE.")
    elif config.is_production:
        violations.append("Production runs must publish to s3, not the local store.")

    if config.install_script is not None and not config.install_script.is_file():
        violations.append(f"install_script {config.install_script} does not exist.")

    return violations


def enforce_publish_constraints(config: ReleaseConfig) -> None:
    """Raise ``ConfigError`` if *config* has any violation."""
    violations = config_violations(config)
    if violations:
        msg = "Release configuration check failed.\n" + "\n".join(
            f"  - {v}" for v in violations
        )
        logger.critical(msg)
        raise ConfigError(msg)
    logger.debug("Release configuration check passed.")
