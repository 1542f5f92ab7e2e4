"""Personal statistics of a user across all chats."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass


@dataclass(frozen=True)
class PersonalStats:
    """The number of chats a user grows in, the longest and the total length."""

    chats: int
    max_length: int
    total_length: int


class PersonalStatsRepo:
    """Aggregates a user's entries over all chats."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get(self, user_id: int) -> PersonalStats:
        """Return the user's statistics; zeros when there are no entries."""
        chats, max_length, total_length = self._conn.execute(
            "SELECT count(chat_id), max(length), sum(length) FROM Dicks WHERE uid = ?",
            (user_id,),
        ).fetchone()
        return PersonalStats(chats or 0, max_length or 0, total_length or 0)