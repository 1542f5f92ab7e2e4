"""Import of lengths that users had in other bots."""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class ExternalUser:
    """A user with the length they had elsewhere."""

    uid: int
    length: int


class Import:
    """Records imports and adds the imported lengths to the chat's entries."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get_imported_users(self, chat_id: int) -> list[ExternalUser]:
        """Return the users already imported into the chat."""
        rows = self._conn.execute(
            "SELECT uid, original_length FROM Imports WHERE chat_id = ?", (chat_id,)
        ).fetchall()
        return [ExternalUser(uid, length) for uid, length in rows]

    def import_users(self, chat_id: int, users: Sequence[ExternalUser]) -> None:
        """Record the users as imported and grow their entries in one transaction."""
        with self._conn:
            self._conn.executemany(
                "INSERT INTO Imports (chat_id, uid, original_length) VALUES (?, ?, ?)",
                [(chat_id, user.uid, user.length) for user in users],
            )
            self._conn.executemany(
                "UPDATE Dicks SET "
                "  length = length + (SELECT original_length FROM Imports WHERE chat_id = :chat AND uid = :uid),"
                "  bonus_attempts = bonus_attempts + 1 "
                "WHERE uid = :uid AND chat_id = (SELECT id FROM Chats WHERE chat_id = :chat)",
                [{"chat": chat_id, "uid": user.uid} for user in users],
            )