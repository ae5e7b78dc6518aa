"""Monotonic pull-request opt-in state, backed by SQLite.

A pull request opts in to publishing by carrying the opt-in label.  The
label may be attached by the current event ("labeled") or may have been
attached earlier and merely be present on a later "synchronize" or
"reopened" event.  Both count the same.  Once a PR has opted in it stays
opted in: there is no clear or delete operation, and removing the label
later does not revoke it.

Design:
- Insert-only: ``record()`` uses ``INSERT OR IGNORE``; the first
  observation is kept, later ones are no-ops.
- Keyed by ``(repo, pr_number)``.
- WAL journal mode so a listener and a pipeline can share the file.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from releasegate.models.run import TriggerEvent, TriggerKind

logger = logging.getLogger(__name__)


_CREATE_OPT_IN = """
CREATE TABLE IF NOT EXISTS pr_opt_in (
    repo            TEXT NOT NULL,
    pr_number       INTEGER NOT NULL,
    first_revision  TEXT NOT NULL,
    source          TEXT NOT NULL,
    recorded_at     TEXT NOT NULL,
    PRIMARY KEY (repo, pr_number)
);
"""


class OptInLedger:
    """Insert-only record of which pull requests have opted in.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_OPT_IN)
            conn.commit()

    def record(self, repo: str, pr_number: int, revision: str, source: str) -> bool:
        """Mark *pr_number* in *repo* as opted in.

        Returns True if this call created the record, False if the PR had
        already opted in.
        """
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO pr_opt_in "
                "(repo, pr_number, first_revision, source, recorded_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    repo,
                    pr_number,
                    revision,
                    source,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            conn.commit()
            created = cursor.rowcount == 1
        if created:
            logger.info(
                "Recorded opt-in for %s#%d at %s (%s)", repo, pr_number, revision, source
            )
        return created

    def has_opt_in(self, repo: str, pr_number: int) -> bool:
        """Return True if the PR has ever opted in."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM pr_opt_in WHERE repo = ? AND pr_number = ?",
                (repo, pr_number),
            ).fetchone()
        return row is not None

    def list_opt_ins(self, repo: str | None = None) -> list[tuple[str, int, str]]:
        """Return ``(repo, pr_number, first_revision)`` rows, oldest first."""
        query = "SELECT repo, pr_number, first_revision FROM pr_opt_in"
        params: tuple[str, ...] = ()
        if repo is not None:
            query += " WHERE repo = ?"
            params = (repo,)
        query += " ORDER BY recorded_at, repo, pr_number"
        with self._connect() as conn:
            return [tuple(row) for row in conn.execute(query, params).fetchall()]


class OptInListener:
    """Feeds pull-request events into an ``OptInLedger``.

    Parameters
    ----------
    ledger:
        Where opt-in state is persisted.
    label:
        The label that signals opt-in (e.g. ``"upload to s3"``).
    """

    def __init__(self, ledger: OptInLedger, label: str) -> None:
        self.ledger = ledger
        self.label = label

    def signal_in(self, event: TriggerEvent) -> str | None:
        """Return how *event* itself carries the opt-in signal, or None."""
        if event.action == "labeled" and event.label_name == self.label:
            return "labeled"
        if self.label in event.labels:
            return "label-present"
        if event.opt_in_signal:
            return "explicit"
        return None

    def observe(self, event: TriggerEvent) -> bool:
        """Record any opt-in carried by *event*; return the PR's opt-in state.

        Push events never opt in and always return False.
        """
        if event.kind is not TriggerKind.PULL_REQUEST or event.pr_number is None:
            return False
        source = self.signal_in(event)
        if source is not None:
            self.ledger.record(event.origin_repo, event.pr_number, event.revision, source)
        return self.ledger.has_opt_in(event.origin_repo, event.pr_number)
