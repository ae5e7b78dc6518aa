"""S3 content store driven through the ``aws`` command-line client.

Objects are written with ``aws s3 cp - s3://<bucket>/<key>`` (bytes on
stdin) and checked with ``aws s3api head-object``.  Credentials come from
the Publisher's assumed upload identity via environment variables.
"""

from __future__ import annotations

import logging
import os
import subprocess

from releasegate.storage import StoreError
from releasegate.storage.identity import Credentials

logger = logging.getLogger(__name__)

# head-object stderr for a missing key, e.g.
# "An error occurred (404) when calling the HeadObject operation: Not Found"
_NOT_FOUND_MARKERS = ("(404)", "Not Found", "NoSuchKey")


class S3ContentStore:
    """Content store backed by an S3 bucket.

    Parameters
    ----------
    bucket:
        Bucket name (without ``s3://``).
    region:
        AWS region of the bucket.
    credentials:
        Upload identity; ``None`` uses whatever the ``aws`` CLI finds.
    """

    def __init__(
        self,
        bucket: str,
        region: str,
        credentials: Credentials | None = None,
        aws_bin: str = "aws",
    ) -> None:
        if not bucket:
            raise ValueError("S3ContentStore needs a bucket name")
        self.bucket = bucket.removeprefix("s3://").rstrip("/")
        self.region = region
        self.credentials = credentials
        self.aws_bin = aws_bin

    @property
    def store_name(self) -> str:
        return "s3"

    def with_credentials(self, credentials: Credentials) -> S3ContentStore:
        return S3ContentStore(
            self.bucket, self.region, credentials=credentials, aws_bin=self.aws_bin
        )

    def url(self, key: str) -> str:
        return f"s3://{self.bucket}/{key}"

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        env["AWS_DEFAULT_REGION"] = self.region
        if self.credentials is not None:
            env.update(self.credentials.as_env())
        return env

    def _run(self, key: str, args: list[str], data: bytes | None = None) -> bytes:
        try:
            proc = subprocess.run(
                [self.aws_bin, *args],
                input=data,
                capture_output=True,
                check=False,
                env=self._env(),
            )
        except OSError as exc:
            raise StoreError(key, f"could not run {self.aws_bin}: {exc}") from exc
        if proc.returncode != 0:
            stderr = proc.stderr.decode("utf-8", errors="replace").strip()
            raise StoreError(key, f"aws {args[0]} {args[1]} failed: {stderr}")
        return proc.stdout

    def put(self, key: str, data: bytes) -> None:
        self._run(key, ["s3", "cp", "--no-progress", "-", self.url(key)], data=data)
        logger.debug("S3ContentStore: wrote %d bytes to %s", len(data), self.url(key))

    def get(self, key: str) -> bytes:
        return self._run(key, ["s3", "cp", "--no-progress", self.url(key), "-"])

    def exists(self, key: str) -> bool:
        """Whether *key* is present.

        Only a 404 from ``head-object`` means absent.  Any other failure
        (denied access, network errors) raises ``StoreError``, so a
        create-only write never mistakes an unreadable object for a
        missing one.
        """
        try:
            self._run(
                key, ["s3api", "head-object", "--bucket", self.bucket, "--key", key]
            )
        except StoreError as exc:
            if any(marker in str(exc) for marker in _NOT_FOUND_MARKERS):
                return False
            raise
        return True
