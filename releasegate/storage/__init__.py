"""Content store protocol — the blob storage collaborator of the Publisher.

Keys are ``/``-separated strings such as ``rev/<revision>/<name>``.  Stores
do not interpret keys; the addressing scheme lives in
``releasegate.models.publish``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from releasegate.storage.identity import Credentials


class StoreError(RuntimeError):
    """Raised when a content store operation fails."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f"{key}: {message}")


@runtime_checkable
class ContentStore(Protocol):
    """Protocol for blob stores addressed by string keys."""

    @property
    def store_name(self) -> str:
        """Short name for logs (e.g. ``"local"``, ``"s3"``)."""
        ...

    def with_credentials(self, credentials: Credentials) -> ContentStore:
        """Return a store that performs writes under *credentials*."""
        ...

    def put(self, key: str, data: bytes) -> None:
        """Write *data* at *key*, replacing any existing value.

        Raises
        ------
        StoreError
            If the write fails.
        """
        ...

    def get(self, key: str) -> bytes:
        """Return the bytes at *key*; raises ``StoreError`` if absent."""
        ...

    def exists(self, key: str) -> bool:
        """Return True if *key* holds a value."""
        ...
