"""Upload identity acquisition: ``assume_identity(role, region)``.

The Publisher must hold an upload identity before its first write.
Acquisition is attempted exactly once per publish; retry policy, if any,
belongs to the provider behind this interface.
"""

from __future__ import annotations

import json
import logging
import subprocess
import uuid
from datetime import datetime
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class IdentityError(RuntimeError):
    """Raised when an upload identity cannot be acquired."""


class Credentials(BaseModel):
    """Temporary credentials for the upload identity."""

    model_config = ConfigDict(frozen=True)

    role: str
    region: str
    access_key_id: str = ""
    secret_access_key: str = ""
    session_token: str = ""
    expiration: datetime | None = None

    def as_env(self) -> dict[str, str]:
        """Environment variables understood by the ``aws`` CLI."""
        env = {"AWS_REGION": self.region, "AWS_DEFAULT_REGION": self.region}
        if self.access_key_id:
            env["AWS_ACCESS_KEY_ID"] = self.access_key_id
            env["AWS_SECRET_ACCESS_KEY"] = self.secret_access_key
        if self.session_token:
            env["AWS_SESSION_TOKEN"] = self.session_token
        return env

    def __repr__(self) -> str:
        return f"Credentials(role={self.role!r}, region={self.region!r})"


@runtime_checkable
class IdentityProvider(Protocol):
    """Protocol for upload identity backends."""

    def assume_identity(self, role: str, region: str) -> Credentials:
        """Return credentials for *role* in *region*.

        Raises
        ------
        IdentityError
            If the identity cannot be acquired.
        """
        ...


class StaticIdentityProvider:
    """Returns fixed credentials; for local stores and ambient CI credentials."""

    def __init__(self, credentials: Credentials | None = None) -> None:
        self._credentials = credentials

    def assume_identity(self, role: str, region: str) -> Credentials:
        return self._credentials or Credentials(role=role, region=region)


class AwsCliIdentityProvider:
    """Assumes an IAM role with ``aws sts assume-role``.

    Parameters
    ----------
    session_name:
        ``--role-session-name`` prefix; a random suffix is appended.
    duration_seconds:
        Requested credential lifetime.
    """

    def __init__(
        self,
        session_name: str = "releasegate",
        duration_seconds: int = 3600,
        aws_bin: str = "aws",
    ) -> None:
        self.session_name = session_name
        self.duration_seconds = duration_seconds
        self.aws_bin = aws_bin

    def assume_identity(self, role: str, region: str) -> Credentials:
        if not role:
            raise IdentityError("no upload role configured")
        cmd = [
            self.aws_bin,
            "sts",
            "assume-role",
            "--role-arn",
            role,
            "--role-session-name",
            f"{self.session_name}-{uuid.uuid4().hex[:8]}",
            "--duration-seconds",
            str(self.duration_seconds),
            "--region",
            region,
            "--output",
            "json",
        ]
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as exc:
            raise IdentityError(f"could not run {self.aws_bin}: {exc}") from exc
        if proc.returncode != 0:
            raise IdentityError(
                f"assume-role {role} failed ({proc.returncode}): {proc.stderr.strip()}"
            )

        try:
            raw = json.loads(proc.stdout)["Credentials"]
            credentials = Credentials(
                role=role,
                region=region,
                access_key_id=raw["AccessKeyId"],
                secret_access_key=raw["SecretAccessKey"],
                session_token=raw["SessionToken"],
                expiration=raw.get("Expiration"),
            )
        except (ValueError, KeyError) as exc:
            raise IdentityError(f"unexpected assume-role output: {exc}") from exc

        logger.info("Assumed upload role %s in %s", role, region)
        return credentials
