"""Release configuration — env-driven.

Centralized settings using pydantic-settings. Reads from a .env file and
RELEASEGATE_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from releasegate.models.targets import BuildTarget


class ReleaseConfig(BaseSettings):
    """Pipeline configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export RELEASEGATE_CANONICAL_REPO=DeterminateSystems/nix-installer
        export RELEASEGATE_STORE_BACKEND=s3
        export RELEASEGATE_S3_BUCKET=my-install-bucket
        export RELEASEGATE_UPLOAD_ROLE=arn:aws:iam::123456789012:role/upload

    List values are given as JSON::

        export RELEASEGATE_TRACKED_BRANCHES='["main", "release"]'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RELEASEGATE_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "rich"  # rich | json

    # Trigger policy
    canonical_repo: str = "DeterminateSystems/nix-installer"
    opt_in_label: str = "upload to s3"
    # Branch names become store key segments, so they must be valid
    # directory names.
    tracked_branches: list[str] = ["main"]
    pr_actions: list[str] = ["opened", "reopened", "synchronize", "labeled"]

    # Build
    targets: list[BuildTarget] = list(BuildTarget)
    binary_name: str = "nix-installer"
    flake_attr: str = "nix-installer-static"
    build_timeout_seconds: int = 3600
    max_concurrent_builds: int = 4
    build_when_rejected: bool = False  # build rejected runs to validate buildability

    # Local paths
    work_dir: Path = Path(".releasegate/work")
    staging_dir: Path = Path(".releasegate/artifacts")
    opt_in_db_path: Path = Path(".releasegate/opt_in.db")

    # Publication
    store_backend: str = "local"  # local | s3
    local_store_path: Path = Path(".releasegate/store")
    s3_bucket: str = ""
    upload_role: str = ""
    aws_region: str = "us-east-2"
    install_script: Path | None = None  # e.g. nix-installer.sh, rewritten per revision

    # Install instructions
    install_host: str = "install.determinate.systems"
    product: str = "nix"

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"

    @property
    def install_base_url(self) -> str:
        """``https://<install_host>/<product>`` with no trailing slash."""
        return f"https://{self.install_host}/{self.product}"

