from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

from photopicker.domain.models import (
    ArchiveBatch,
    ArchiveMove,
    Decision,
    DecisionAction,
    MoveFailure,
    Photo,
)
from photopicker.ports.storage_port import StoragePort

_DECISION_COLUMNS = """
    decision_id, photo_id, action, created_at, executed, group_id, batch_id, executed_at
"""


class SQLiteStorage(StoragePort):
    def __init__(self, sqlite_path: str) -> None:
        self._sqlite_path = sqlite_path
        self._ensure_schema()

    def save_photos(self, photos: list[Photo]) -> None:
        try:
            with self._connect() as conn:
                # Archived photos stay cataloged so an undo can bring them back.
                conn.execute("DELETE FROM photos WHERE archived = 0")
                conn.executemany(
                    """
                    INSERT OR REPLACE INTO photos(
                        photo_id, path, filename, size, date_taken, archived
                    )
                    VALUES (?, ?, ?, ?, ?, 0)
                    """,
                    [
                        (
                            photo.photo_id,
                            photo.path,
                            photo.filename,
                            photo.size,
                            photo.date_taken.isoformat() if photo.date_taken else None,
                        )
                        for photo in photos
                    ],
                )
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to save photos") from exc

    def list_photos(self) -> list[Photo]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    """
                    SELECT photo_id, path, filename, size, date_taken
                    FROM photos
                    WHERE archived = 0
                    ORDER BY path ASC
                    """
                ).fetchall()
            return [_photo_from_row(row) for row in rows]
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to list photos") from exc

    def get_photo(self, photo_id: str) -> Photo | None:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    """
                    SELECT photo_id, path, filename, size, date_taken
                    FROM photos
                    WHERE photo_id = ?
                    """,
                    (photo_id,),
                ).fetchone()
            return _photo_from_row(row) if row is not None else None
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to fetch photo") from exc

    def replace_pending_decision(self, decision: Decision) -> list[str]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    """
                    SELECT decision_id
                    FROM decisions
                    WHERE photo_id = ? AND executed = 0
                    """,
                    (decision.photo_id,),
                ).fetchall()
                replaced = [row[0] for row in rows]
                conn.execute(
                    "DELETE FROM decisions WHERE photo_id = ? AND executed = 0",
                    (decision.photo_id,),
                )
                conn.execute(
                    """
                    INSERT INTO decisions(
                        decision_id, photo_id, action, created_at, executed, group_id
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        decision.decision_id,
                        decision.photo_id,
                        decision.action.value,
                        decision.created_at.isoformat(),
                        1 if decision.executed else 0,
                        decision.group_id,
                    ),
                )
            return replaced
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to save decision") from exc

    def get_decision(self, decision_id: str) -> Decision | None:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    f"SELECT {_DECISION_COLUMNS} FROM decisions WHERE decision_id = ?",
                    (decision_id,),
                ).fetchone()
            return _decision_from_row(row) if row is not None else None
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to fetch decision") from exc

    def list_decisions(self, executed: bool | None = None) -> list[Decision]:
        try:
            with self._connect() as conn:
                if executed is None:
                    rows = conn.execute(
                        f"SELECT {_DECISION_COLUMNS} FROM decisions ORDER BY seq ASC"
                    ).fetchall()
                else:
                    rows = conn.execute(
                        f"""
                        SELECT {_DECISION_COLUMNS}
                        FROM decisions
                        WHERE executed = ?
                        ORDER BY seq ASC
                        """,
                        (1 if executed else 0,),
                    ).fetchall()
            return [_decision_from_row(row) for row in rows]
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to list decisions") from exc

    def delete_decision(self, decision_id: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM decisions WHERE decision_id = ?", (decision_id,))
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to delete decision") from exc

    def create_batch(self, batch: ArchiveBatch) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO archive_batches(batch_id, created_at, archive_root)
                    VALUES (?, ?, ?)
                    """,
                    (batch.batch_id, batch.created_at.isoformat(), batch.archive_root),
                )
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to create archive batch") from exc

    def mark_decision_executed(self, batch_id: str, decision_id: str) -> None:
        try:
            with self._connect() as conn:
                self._execute_decision(conn, batch_id, decision_id)
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to mark decision executed") from exc

    def begin_move(self, batch_id: str, move: ArchiveMove) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO archive_moves(
                        batch_id, move_index, photo_id, decision_id,
                        original_path, archived_path, status
                    )
                    VALUES (?, ?, ?, ?, ?, ?, 'pending')
                    """,
                    (
                        batch_id,
                        move.index,
                        move.photo_id,
                        move.decision_id,
                        move.original_path,
                        move.archived_path,
                    ),
                )
                conn.execute(
                    "UPDATE photos SET archived = 1 WHERE photo_id = ?", (move.photo_id,)
                )
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to record move") from exc

    def complete_move(self, batch_id: str, move_index: int) -> None:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    """
                    SELECT decision_id
                    FROM archive_moves
                    WHERE batch_id = ? AND move_index = ?
                    """,
                    (batch_id, move_index),
                ).fetchone()
                if row is None:
                    raise RuntimeError(f"Move not found: {batch_id}#{move_index}")
                conn.execute(
                    """
                    UPDATE archive_moves
                    SET status = 'completed'
                    WHERE batch_id = ? AND move_index = ?
                    """,
                    (batch_id, move_index),
                )
                self._execute_decision(conn, batch_id, row[0])
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to complete move") from exc

    def fail_move(self, batch_id: str, move_index: int, reason: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    UPDATE archive_moves
                    SET status = 'failed', reason = ?
                    WHERE batch_id = ? AND move_index = ?
                    """,
                    (reason, batch_id, move_index),
                )
                self._unarchive_photo(conn, batch_id, move_index)
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to record move failure") from exc

    def record_batch_failure(self, batch_id: str, failure: MoveFailure) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    UPDATE archive_batches
                    SET failure_photo_id = ?,
                        failure_decision_id = ?,
                        failure_original_path = ?,
                        failure_archived_path = ?,
                        failure_reason = ?
                    WHERE batch_id = ?
                    """,
                    (
                        failure.photo_id,
                        failure.decision_id,
                        failure.original_path,
                        failure.archived_path,
                        failure.reason,
                        batch_id,
                    ),
                )
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to record batch failure") from exc

    def get_batch(self, batch_id: str) -> ArchiveBatch | None:
        try:
            with self._connect() as conn:
                return self._load_batch(conn, batch_id)
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to fetch archive batch") from exc

    def list_batches(self) -> list[ArchiveBatch]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT batch_id FROM archive_batches ORDER BY seq DESC"
                ).fetchall()
                batches = [self._load_batch(conn, row[0]) for row in rows]
            return [batch for batch in batches if batch is not None]
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to list archive batches") from exc

    def mark_move_reversed(self, batch_id: str, move_index: int) -> bool:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    """
                    SELECT decision_id
                    FROM archive_moves
                    WHERE batch_id = ? AND move_index = ?
                    """,
                    (batch_id, move_index),
                ).fetchone()
                if row is None:
                    raise RuntimeError(f"Move not found: {batch_id}#{move_index}")
                conn.execute(
                    """
                    UPDATE archive_moves
                    SET status = 'reversed'
                    WHERE batch_id = ? AND move_index = ?
                    """,
                    (batch_id, move_index),
                )
                self._unarchive_photo(conn, batch_id, move_index)
                return self._restore_decision(conn, row[0])
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to mark move reversed") from exc

    def restore_decision(self, decision_id: str) -> bool:
        try:
            with self._connect() as conn:
                return self._restore_decision(conn, decision_id)
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to restore decision") from exc

    def delete_batch(self, batch_id: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM archive_moves WHERE batch_id = ?", (batch_id,))
                conn.execute("DELETE FROM batch_decisions WHERE batch_id = ?", (batch_id,))
                conn.execute("DELETE FROM archive_batches WHERE batch_id = ?", (batch_id,))
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to delete archive batch") from exc

    def _execute_decision(
        self, conn: sqlite3.Connection, batch_id: str, decision_id: str
    ) -> None:
        executed_at = datetime.now(timezone.utc).isoformat()
        conn.execute(
            """
            UPDATE decisions
            SET executed = 1, batch_id = ?, executed_at = ?
            WHERE decision_id = ?
            """,
            (batch_id, executed_at, decision_id),
        )
        conn.execute(
            """
            INSERT OR REPLACE INTO batch_decisions(batch_id, decision_id, position)
            VALUES (
                ?, ?,
                (SELECT COALESCE(MAX(position) + 1, 0) FROM batch_decisions WHERE batch_id = ?)
            )
            """,
            (batch_id, decision_id, batch_id),
        )

    def _unarchive_photo(
        self, conn: sqlite3.Connection, batch_id: str, move_index: int
    ) -> None:
        conn.execute(
            """
            UPDATE photos
            SET archived = 0
            WHERE photo_id = (
                SELECT photo_id FROM archive_moves WHERE batch_id = ? AND move_index = ?
            )
            """,
            (batch_id, move_index),
        )

    def _restore_decision(self, conn: sqlite3.Connection, decision_id: str) -> bool:
        conn.execute("DELETE FROM batch_decisions WHERE decision_id = ?", (decision_id,))
        row = conn.execute(
            "SELECT photo_id FROM decisions WHERE decision_id = ?",
            (decision_id,),
        ).fetchone()
        if row is None:
            return False
        newer = conn.execute(
            """
            SELECT 1
            FROM decisions
            WHERE photo_id = ? AND executed = 0 AND decision_id != ?
            """,
            (row[0], decision_id),
        ).fetchone()
        if newer is not None:
            conn.execute("DELETE FROM decisions WHERE decision_id = ?", (decision_id,))
            return False
        conn.execute(
            """
            UPDATE decisions
            SET executed = 0, batch_id = NULL, executed_at = NULL
            WHERE decision_id = ?
            """,
            (decision_id,),
        )
        return True

    def _load_batch(self, conn: sqlite3.Connection, batch_id: str) -> ArchiveBatch | None:
        batch_row = conn.execute(
            """
            SELECT batch_id, created_at, archive_root,
                failure_photo_id, failure_decision_id,
                failure_original_path, failure_archived_path, failure_reason
            FROM archive_batches
            WHERE batch_id = ?
            """,
            (batch_id,),
        ).fetchone()
        if batch_row is None:
            return None
        move_rows = conn.execute(
            """
            SELECT move_index, photo_id, decision_id, original_path, archived_path,
                status, reason
            FROM archive_moves
            WHERE batch_id = ?
            ORDER BY move_index ASC
            """,
            (batch_id,),
        ).fetchall()
        decision_rows = conn.execute(
            """
            SELECT decision_id
            FROM batch_decisions
            WHERE batch_id = ?
            ORDER BY position ASC
            """,
            (batch_id,),
        ).fetchall()

        moves: list[ArchiveMove] = []
        interrupted: list[ArchiveMove] = []
        failure: MoveFailure | None = None
        if batch_row[7] is not None:
            failure = MoveFailure(
                photo_id=batch_row[3],
                decision_id=batch_row[4],
                original_path=batch_row[5],
                archived_path=batch_row[6],
                reason=batch_row[7],
            )
        for row in move_rows:
            status = row[5]
            move = ArchiveMove(
                index=row[0],
                photo_id=row[1],
                decision_id=row[2],
                original_path=row[3],
                archived_path=row[4],
            )
            if status == "completed":
                moves.append(move)
                continue
            if status == "pending":
                interrupted.append(move)
            if status in {"failed", "pending"} and failure is None:
                failure = MoveFailure(
                    photo_id=row[1],
                    decision_id=row[2],
                    original_path=row[3],
                    archived_path=row[4],
                    reason=row[6] if status == "failed" else "interrupted",
                )
        return ArchiveBatch(
            batch_id=batch_row[0],
            created_at=datetime.fromisoformat(batch_row[1]),
            archive_root=batch_row[2],
            moves=moves,
            decision_ids=[row[0] for row in decision_rows],
            failure=failure,
            interrupted=interrupted,
        )

    def _ensure_schema(self) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS photos(
                        photo_id TEXT PRIMARY KEY,
                        path TEXT UNIQUE,
                        filename TEXT,
                        size INTEGER,
                        date_taken TEXT,
                        archived INTEGER DEFAULT 0
                    )
                    """
                )
                columns = {
                    row[1] for row in conn.execute("PRAGMA table_info(photos)").fetchall()
                }
                if "archived" not in columns:
                    conn.execute("ALTER TABLE photos ADD COLUMN archived INTEGER DEFAULT 0")
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS decisions(
                        seq INTEGER PRIMARY KEY AUTOINCREMENT,
                        decision_id TEXT UNIQUE,
                        photo_id TEXT,
                        action TEXT,
                        created_at TEXT,
                        executed INTEGER DEFAULT 0,
                        group_id TEXT,
                        batch_id TEXT,
                        executed_at TEXT
                    )
                    """
                )
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS archive_batches(
                        seq INTEGER PRIMARY KEY AUTOINCREMENT,
                        batch_id TEXT UNIQUE,
                        created_at TEXT,
                        archive_root TEXT,
                        failure_photo_id TEXT,
                        failure_decision_id TEXT,
                        failure_original_path TEXT,
                        failure_archived_path TEXT,
                        failure_reason TEXT
                    )
                    """
                )
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS archive_moves(
                        batch_id TEXT,
                        move_index INTEGER,
                        photo_id TEXT,
                        decision_id TEXT,
                        original_path TEXT,
                        archived_path TEXT,
                        status TEXT,
                        reason TEXT,
                        PRIMARY KEY(batch_id, move_index)
                    )
                    """
                )
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS batch_decisions(
                        batch_id TEXT,
                        decision_id TEXT,
                        position INTEGER,
                        PRIMARY KEY(batch_id, decision_id)
                    )
                    """
                )
                conn.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_decisions_photo_id
                    ON decisions(photo_id)
                    """
                )
        except sqlite3.Error as exc:
            raise RuntimeError("Failed to initialize storage schema") from exc

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._sqlite_path)


def _photo_from_row(row: tuple) -> Photo:
    return Photo(
        photo_id=row[0],
        path=row[1],
        filename=row[2],
        size=row[3],
        date_taken=datetime.fromisoformat(row[4]) if row[4] else None,
    )


def _decision_from_row(row: tuple) -> Decision:
    return Decision(
        decision_id=row[0],
        photo_id=row[1],
        action=DecisionAction(row[2]),
        created_at=datetime.fromisoformat(row[3]),
        executed=bool(row[4]),
        group_id=row[5],
        batch_id=row[6],
        executed_at=datetime.fromisoformat(row[7]) if row[7] else None,
    )
