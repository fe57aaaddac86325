"""
SQLite-backed standup records, one per guild.

Members keep their roster order through a position column. Responses live in
their own table keyed by (standup_id, member_id), so a single response can be
written or deleted without rewriting the rest of the map.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Optional

log = logging.getLogger("standup-bot.store")


@dataclass
class StandupRecord:
    id: str
    channel_id: str
    members: list[str] = field(default_factory=list)
    responses: dict[str, str] = field(default_factory=dict)


class StandupStore:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_db(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def init_db(self):
        """Create tables if they do not exist yet."""
        conn = self._get_db()
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS standups (
                    id TEXT PRIMARY KEY,
                    channel_id TEXT NOT NULL
                );
                CREATE TABLE IF NOT EXISTS members (
                    standup_id TEXT NOT NULL
                        REFERENCES standups(id) ON DELETE CASCADE,
                    position INTEGER NOT NULL,
                    member_id TEXT NOT NULL,
                    PRIMARY KEY (standup_id, position)
                );
                CREATE TABLE IF NOT EXISTS responses (
                    standup_id TEXT NOT NULL
                        REFERENCES standups(id) ON DELETE CASCADE,
                    member_id TEXT NOT NULL,
                    response TEXT NOT NULL,
                    PRIMARY KEY (standup_id, member_id)
                );
                CREATE INDEX IF NOT EXISTS idx_members_member
                ON members(member_id);
            """)
            conn.commit()
        finally:
            conn.close()
        log.info(f"Standup database ready ({self.db_path})")

    # -- reads ---------------------------------------------------------------

    def standup_ids(self) -> list[str]:
        conn = self._get_db()
        try:
            rows = conn.execute("SELECT id FROM standups ORDER BY id").fetchall()
            return [r["id"] for r in rows]
        finally:
            conn.close()

    def _load(self, conn: sqlite3.Connection, row: sqlite3.Row) -> StandupRecord:
        members = conn.execute(
            "SELECT member_id FROM members WHERE standup_id = ? ORDER BY position",
            (row["id"],),
        ).fetchall()
        responses = conn.execute(
            "SELECT member_id, response FROM responses WHERE standup_id = ?",
            (row["id"],),
        ).fetchall()
        return StandupRecord(
            id=row["id"],
            channel_id=row["channel_id"],
            members=[m["member_id"] for m in members],
            responses={r["member_id"]: r["response"] for r in responses},
        )

    def find_by_id(self, standup_id: str) -> Optional[StandupRecord]:
        conn = self._get_db()
        try:
            row = conn.execute(
                "SELECT id, channel_id FROM standups WHERE id = ?", (standup_id,)
            ).fetchone()
            if row is None:
                return None
            return self._load(conn, row)
        finally:
            conn.close()

    def find_all(self) -> list[StandupRecord]:
        conn = self._get_db()
        try:
            rows = conn.execute(
                "SELECT id, channel_id FROM standups ORDER BY id"
            ).fetchall()
            return [self._load(conn, row) for row in rows]
        finally:
            conn.close()

    def find_by_member(self, member_id: str) -> list[StandupRecord]:
        """Every standup whose roster contains *member_id*."""
        conn = self._get_db()
        try:
            rows = conn.execute("""
                SELECT DISTINCT s.id, s.channel_id
                FROM standups s
                JOIN members m ON m.standup_id = s.id
                WHERE m.member_id = ?
                ORDER BY s.id
            """, (member_id,)).fetchall()
            return [self._load(conn, row) for row in rows]
        finally:
            conn.close()

    # -- writes --------------------------------------------------------------

    def create(self, record: StandupRecord) -> StandupRecord:
        """Insert a new record. Raises sqlite3.IntegrityError if the id exists."""
        conn = self._get_db()
        try:
            conn.execute(
                "INSERT INTO standups (id, channel_id) VALUES (?, ?)",
                (record.id, record.channel_id),
            )
            self._write_children(conn, record)
            conn.commit()
        finally:
            conn.close()
        return record

    def save(self, record: StandupRecord) -> StandupRecord:
        """Upsert the record exactly as it is held in memory."""
        conn = self._get_db()
        try:
            conn.execute(
                "INSERT INTO standups (id, channel_id) VALUES (?, ?) "
                "ON CONFLICT(id) DO UPDATE SET channel_id = excluded.channel_id",
                (record.id, record.channel_id),
            )
            conn.execute("DELETE FROM members WHERE standup_id = ?", (record.id,))
            conn.execute("DELETE FROM responses WHERE standup_id = ?", (record.id,))
            self._write_children(conn, record)
            conn.commit()
        finally:
            conn.close()
        return record

    def _write_children(self, conn: sqlite3.Connection, record: StandupRecord):
        conn.executemany(
            "INSERT INTO members (standup_id, position, member_id) VALUES (?, ?, ?)",
            [(record.id, i, m) for i, m in enumerate(record.members)],
        )
        conn.executemany(
            "INSERT INTO responses (standup_id, member_id, response) VALUES (?, ?, ?)",
            [(record.id, m, text) for m, text in record.responses.items()],
        )

    def delete(self, standup_id: str) -> bool:
        """Delete a record by id. Returns False when nothing was there."""
        conn = self._get_db()
        try:
            cur = conn.execute("DELETE FROM standups WHERE id = ?", (standup_id,))
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def set_response(self, standup_id: str, member_id: str, response: str):
        conn = self._get_db()
        try:
            conn.execute(
                "INSERT INTO responses (standup_id, member_id, response) "
                "VALUES (?, ?, ?) "
                "ON CONFLICT(standup_id, member_id) "
                "DO UPDATE SET response = excluded.response",
                (standup_id, member_id, response),
            )
            conn.commit()
        finally:
            conn.close()

    def delete_response(self, standup_id: str, member_id: str) -> bool:
        conn = self._get_db()
        try:
            cur = conn.execute(
                "DELETE FROM responses WHERE standup_id = ? AND member_id = ?",
                (standup_id, member_id),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()
