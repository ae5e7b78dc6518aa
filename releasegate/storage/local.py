"""Filesystem content store.

Layout: {base_path}/{key}, e.g. ``store/rev/abc123/nix-installer-x86_64-linux``.

Writes go to a temporary file in the destination directory and are moved
into place with ``os.replace``, so a reader never sees a half-written
object and an overwrite is all-or-nothing.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from releasegate.storage import StoreError
from releasegate.storage.identity import Credentials

logger = logging.getLogger(__name__)


class LocalContentStore:
    """Content store rooted at a local directory.

    Parameters
    ----------
    base_path:
        Root directory; created if missing.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)

    @property
    def store_name(self) -> str:
        return "local"

    @property
    def base_path(self) -> Path:
        return self._base

    def with_credentials(self, credentials: Credentials) -> LocalContentStore:
        return self

    def _path(self, key: str) -> Path:
        parts = key.split("/")
        if not key or any(p in ("", ".", "..") for p in parts):
            raise StoreError(key, "invalid key")
        return self._base.joinpath(*parts)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def put(self, key: str, data: bytes) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StoreError(key, str(exc)) from exc
        logger.debug("LocalContentStore: wrote %d bytes to %s", len(data), path)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, key: str) -> bytes:
        path = self._path(key)
        if not path.is_file():
            raise StoreError(key, "not found")
        return path.read_bytes()

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def list_keys(self, prefix: str = "") -> list[str]:
        """Return every key under *prefix*, sorted."""
        root = self._path(prefix) if prefix else self._base
        if not root.exists():
            return []
        return sorted(
            p.relative_to(self._base).as_posix()
            for p in root.rglob("*")
            if p.is_file() and not p.name.startswith(".tmp-")
        )
