"""Publisher: upload staged artifacts under revision and pointer addresses.

Two write sets per run:

``rev/<revision>/<name>``
    Create-only.  A key that already exists is left untouched, so
    publishing the same revision again is idempotent and a revision
    address is never overwritten.

``branch/<branch>/<name>`` or ``pr/<number>/<name>``
    Overwrite-latest pointer.  Always written, so a later run for the same
    branch or PR supersedes the previous one.

The two write sets are independent keys and run concurrently.  Pointer
writes for one key are serialized across runs with a per-key lock held for
the whole set, so a pointer never mixes two runs' artifacts and the run
that finishes writing last wins.

An upload identity must be acquired before any write; failure to acquire
it aborts the publish with ``reason="auth"`` and nothing is written.  An
upload failure aborts with ``reason="upload"``; keys already written stay
written, and re-issuing the publish is safe.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from releasegate.models.publish import PublishAddress, PublishReceipt
from releasegate.models.results import StagedArtifacts
from releasegate.storage import ContentStore, StoreError
from releasegate.storage.identity import IdentityError, IdentityProvider

logger = logging.getLogger(__name__)


class PublishError(RuntimeError):
    """Raised when publication fails after authorization.

    ``reason`` is ``"auth"`` (identity acquisition) or ``"upload"``.
    """

    def __init__(self, reason: str, message: str, key: str | None = None) -> None:
        self.reason = reason
        self.key = key
        super().__init__(f"publish failed ({reason}): {message}")


class PointerLocks:
    """One lock per pointer key, created on first use."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())


# Shared by every Publisher in the process unless one is passed explicitly.
DEFAULT_POINTER_LOCKS = PointerLocks()


class Publisher:
    """Uploads a ``StagedArtifacts`` set to a ``ContentStore``.

    Parameters
    ----------
    store:
        Destination store.
    identity_provider:
        Source of the upload identity.
    role, region:
        Passed to ``identity_provider.assume_identity``.
    install_script:
        Optional installer script published next to the binaries.  Every
        occurrence of *install_base_url* in it is replaced with the
        revision's download URL.
    install_base_url:
        Default download base baked into the installer script.
    pointer_locks:
        Lock registry serializing pointer writes.
    """

    def __init__(
        self,
        store: ContentStore,
        identity_provider: IdentityProvider,
        *,
        role: str = "",
        region: str = "us-east-2",
        install_script: Path | None = None,
        install_base_url: str = "",
        pointer_locks: PointerLocks | None = None,
    ) -> None:
        self.store = store
        self.identity_provider = identity_provider
        self.role = role
        self.region = region
        self.install_script = Path(install_script) if install_script else None
        self.install_base_url = install_base_url
        self.pointer_locks = pointer_locks or DEFAULT_POINTER_LOCKS

    # ------------------------------------------------------------------
    # Publish
    # ------------------------------------------------------------------

    def publish(
        self,
        staged: StagedArtifacts,
        address: PublishAddress,
        install_url_template: str | None = None,
    ) -> PublishReceipt:
        """Upload *staged* under every key in *address*.

        Parameters
        ----------
        install_url_template:
            ``str.format`` template with a ``{revision}`` field, used to
            rewrite the installer script, e.g.
            ``"https://install.example/nix/rev/{revision}"``.

        Raises
        ------
        PublishError
            ``reason="auth"`` if no identity could be acquired,
            ``reason="upload"`` if a write failed.
        """
        if staged.revision != address.revision:
            raise ValueError(
                f"staged revision {staged.revision} does not match "
                f"address revision {address.revision}"
            )

        try:
            credentials = self.identity_provider.assume_identity(self.role, self.region)
        except IdentityError as exc:
            logger.error("Upload identity for %s unavailable: %s", address.revision, exc)
            raise PublishError("auth", str(exc)) from exc
        store = self.store.with_credentials(credentials)

        objects = self._objects(staged, install_url_template)

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="releasegate-publish") as pool:
            revision_future = pool.submit(self._write_revision, store, address, objects)
            pointer_future = (
                pool.submit(self._write_pointer, store, address, objects)
                if address.pointer_key
                else None
            )

            errors: list[StoreError] = []
            revision_keys: list[str] = []
            skipped: list[str] = []
            pointer_keys: list[str] = []
            try:
                revision_keys, skipped = revision_future.result()
            except StoreError as exc:
                errors.append(exc)
            if pointer_future is not None:
                try:
                    pointer_keys = pointer_future.result()
                except StoreError as exc:
                    errors.append(exc)

        if errors:
            first = errors[0]
            logger.error(
                "Publishing %s to %s failed: %s",
                address.revision,
                store.store_name,
                "; ".join(str(e) for e in errors),
            )
            raise PublishError("upload", str(first), key=first.key) from first

        receipt = PublishReceipt(
            address=address,
            revision_keys=revision_keys,
            pointer_keys=pointer_keys,
            skipped_keys=skipped,
        )
        logger.info(
            "Published %s to %s: %d written, %d already present",
            " + ".join(address.keys),
            store.store_name,
            len(receipt.written_keys),
            len(skipped),
        )
        return receipt

    # ------------------------------------------------------------------
    # Write sets
    # ------------------------------------------------------------------

    def _write_revision(
        self,
        store: ContentStore,
        address: PublishAddress,
        objects: list[tuple[str, bytes]],
    ) -> tuple[list[str], list[str]]:
        keys: list[str] = []
        skipped: list[str] = []
        for name, data in objects:
            key = f"{address.revision_key}/{name}"
            keys.append(key)
            if store.exists(key):
                logger.info("%s already published; leaving it untouched", key)
                skipped.append(key)
                continue
            store.put(key, data)
        return keys, skipped

    def _write_pointer(
        self,
        store: ContentStore,
        address: PublishAddress,
        objects: list[tuple[str, bytes]],
    ) -> list[str]:
        pointer = address.pointer_key
        assert pointer is not None
        keys: list[str] = []
        with self.pointer_locks.lock_for(pointer):
            for name, data in objects:
                key = f"{pointer}/{name}"
                store.put(key, data)
                keys.append(key)
        logger.debug("Pointer %s now tracks %s", pointer, address.revision)
        return keys

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    def _objects(
        self, staged: StagedArtifacts, install_url_template: str | None
    ) -> list[tuple[str, bytes]]:
        """Return ``(name, bytes)`` pairs to upload, binaries first."""
        objects = [
            (staged.artifacts[target].path.name, staged.artifacts[target].path.read_bytes())
            for target in staged.targets
        ]
        if self.install_script is not None:
            objects.append(
                (
                    self.install_script.name,
                    self.render_install_script(staged.revision, install_url_template),
                )
            )
        return objects

    def render_install_script(
        self, revision: str, install_url_template: str | None = None
    ) -> bytes:
        """Return the installer script pinned to *revision*'s download URL."""
        if self.install_script is None:
            raise ValueError("no install_script configured")
        template = install_url_template or f"{self.install_base_url}/rev/{{revision}}"
        url = template.format(revision=revision)
        text = self.install_script.read_text(encoding="utf-8")
        if self.install_base_url:
            text = text.replace(self.install_base_url, url)
        return text.encode("utf-8")
