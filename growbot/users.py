"""Repository of users and of the chat members eligible for random picks."""

from __future__ import annotations

import math
import random
import sqlite3
from bisect import bisect_left
from dataclasses import dataclass
from datetime import datetime, timezone
from itertools import accumulate

from growbot.chat_ids import ChatIdKind

_CHAT_MATCH = "(CAST(c.chat_id AS TEXT) = :chat OR c.chat_instance = :chat)"
_ACTIVE_SINCE = "strftime('%Y-%m-%d %H:%M:%f', 'now', '-7 days')"
_MEMBERS = (
    "FROM Users u JOIN Dicks d ON d.uid = u.uid JOIN Chats c ON d.chat_id = c.id "
    f"WHERE {_CHAT_MATCH}"
)
_ACTIVE_MEMBERS = f"{_MEMBERS} AND d.updated_at > {_ACTIVE_SINCE}"


@dataclass(frozen=True)
class User:
    """A row of the users table."""

    uid: int
    name: str
    created_at: datetime


def _user_from_row(row: tuple) -> User:
    uid, name, created_at = row
    return User(uid, name, datetime.fromisoformat(created_at).replace(tzinfo=timezone.utc))


def _priority_weight(length: int) -> float:
    """Sigmoid-like weight: the shorter the length, the heavier the weight."""
    x = length / 6.0
    if x >= 0:
        e = math.exp(-x)
        return e / (1.0 + e)
    return 1.0 / (1.0 + math.exp(x))


class Users:
    """Creates users and picks members of chats."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def create_or_update(self, user_id: int, name: str) -> User:
        """Create the user or rename an existing one."""
        with self._conn:
            self._conn.execute(
                "INSERT INTO Users (uid, name) VALUES (?, ?) "
                "ON CONFLICT (uid) DO UPDATE SET name = excluded.name",
                (user_id, name),
            )
        user = self.get(user_id)
        if user is None:
            raise LookupError(f"couldn't upsert a user with id = {user_id}")
        return user

    def get_chat_members(self, chat_id: ChatIdKind) -> list[User]:
        """Return every user who has an entry in the chat."""
        rows = self._conn.execute(
            f"SELECT u.uid, u.name, u.created_at {_MEMBERS}",
            {"chat": chat_id.value()},
        ).fetchall()
        return [_user_from_row(row) for row in rows]

    def get_random_active_member(self, chat_id: ChatIdKind) -> User | None:
        """Pick a random member who grew within the last week."""
        row = self._conn.execute(
            f"SELECT u.uid, u.name, u.created_at {_ACTIVE_MEMBERS} ORDER BY random() LIMIT 1",
            {"chat": chat_id.value()},
        ).fetchone()
        return _user_from_row(row) if row else None

    def get_random_active_poor_member(self, chat_id: ChatIdKind, rich_exclusion_ratio: float) -> User | None:
        """Pick a random active member, leaving out the richest share of them."""
        if not 0.0 <= rich_exclusion_ratio <= 1.0:
            raise ValueError(f"the ratio must be between 0 and 1: {rich_exclusion_ratio}")
        row = self._conn.execute(
            "WITH ranked AS ("
            "  SELECT u.uid, u.name, u.created_at,"
            "         PERCENT_RANK() OVER (ORDER BY d.length) AS percentile_rank"
            f"  {_ACTIVE_MEMBERS}"
            ") SELECT uid, name, created_at FROM ranked "
            "WHERE percentile_rank <= :threshold ORDER BY random() LIMIT 1",
            {"chat": chat_id.value(), "threshold": 1.0 - rich_exclusion_ratio},
        ).fetchone()
        return _user_from_row(row) if row else None

    def get_random_active_member_with_poor_in_priority(self, chat_id: ChatIdKind) -> User | None:
        """Pick a random active member; shorter lengths are likelier to win."""
        rows = self._conn.execute(
            f"SELECT u.uid, u.name, u.created_at, d.length {_ACTIVE_MEMBERS} ORDER BY u.uid",
            {"chat": chat_id.value()},
        ).fetchall()
        if not rows:
            return None
        cumulative = list(accumulate(_priority_weight(row[3]) for row in rows))
        threshold = random.random() * cumulative[-1]
        index = min(bisect_left(cumulative, threshold), len(rows) - 1)
        return _user_from_row(rows[index][:3])

    def get(self, user_id: int) -> User | None:
        """Return the user with this id, if any."""
        row = self._conn.execute(
            "SELECT uid, name, created_at FROM Users WHERE uid = ?", (user_id,)
        ).fetchone()
        return _user_from_row(row) if row else None

    def get_all(self) -> list[User]:
        """Return every user."""
        rows = self._conn.execute("SELECT uid, name, created_at FROM Users").fetchall()
        return [_user_from_row(row) for row in rows]