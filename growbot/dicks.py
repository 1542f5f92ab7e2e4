"""Repository of the lengths users have grown in each chat."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from growbot.chat_ids import ChatIdKind, ChatIdPartiality, to_partiality
from growbot.chats import Chats
from growbot.database import TIMESTAMP_NOW, FeatureToggles, ensure_one_row_updated

_CHAT_MATCH = "(CAST(c.chat_id AS TEXT) = :chat OR c.chat_instance = :chat)"
_RANKING = "ROW_NUMBER() OVER (ORDER BY d.length DESC, d.updated_at DESC, u.name)"


@dataclass(frozen=True)
class Dick:
    """A user's length in a chat with its place in the chat's top."""

    length: int
    owner_uid: int
    owner_name: str
    grown_at: datetime
    position: int | None


@dataclass(frozen=True)
class GrowthResult:
    """The length after a change and the new place in the top, if tracked."""

    new_length: int
    pos_in_top: int | None


def _parse_timestamp(text: str) -> datetime:
    return datetime.fromisoformat(text).replace(tzinfo=timezone.utc)


def _dick_from_row(row: tuple) -> Dick:
    length, uid, name, updated_at, position = row
    return Dick(length, uid, name, _parse_timestamp(updated_at), position)


class Dicks:
    """Grows, moves and ranks lengths."""

    def __init__(self, conn: sqlite3.Connection, features: FeatureToggles | None = None) -> None:
        self._conn = conn
        self._features = features or FeatureToggles()
        self._chats = Chats(conn, self._features)

    def create_or_grow(self, uid: int, chat_id: ChatIdPartiality | ChatIdKind, increment: int) -> GrowthResult:
        """Add the increment to the user's length, creating it if missing."""
        internal_chat_id = self._chats.upsert_chat(to_partiality(chat_id))
        with self._conn:
            self._conn.execute(
                "INSERT INTO Dicks (uid, chat_id, length, updated_at) "
                f"VALUES (?, ?, ?, {TIMESTAMP_NOW}) "
                "ON CONFLICT (uid, chat_id) DO UPDATE SET "
                f"length = Dicks.length + excluded.length, updated_at = {TIMESTAMP_NOW}",
                (uid, internal_chat_id, increment),
            )
            new_length = self._length(internal_chat_id, uid)
        return GrowthResult(new_length, self._position_in_top(internal_chat_id, uid))

    def fetch_length(self, uid: int, chat_id: ChatIdKind) -> int:
        """Return the user's length in the chat, or 0 if there is none."""
        row = self._conn.execute(
            "SELECT d.length FROM Dicks d JOIN Chats c ON d.chat_id = c.id "
            f"WHERE d.uid = :uid AND {_CHAT_MATCH}",
            {"uid": uid, "chat": chat_id.value()},
        ).fetchone()
        return row[0] if row else 0

    def fetch_dick(self, uid: int, chat_id: ChatIdKind) -> Dick | None:
        """Return the user's entry with its position in the chat's top."""
        row = self._conn.execute(
            "SELECT length, uid, name, updated_at, position FROM ("
            f"  SELECT d.uid, u.name, d.length, d.updated_at, {_RANKING} AS position"
            "   FROM Dicks d JOIN Users u ON u.uid = d.uid JOIN Chats c ON d.chat_id = c.id"
            f"  WHERE {_CHAT_MATCH}"
            ") WHERE uid = :uid",
            {"uid": uid, "chat": chat_id.value()},
        ).fetchone()
        return _dick_from_row(row) if row else None

    def get_top(self, chat_id: ChatIdKind, offset: int, limit: int) -> list[Dick]:
        """Return one page of the chat's top, longest first."""
        rows = self._conn.execute(
            f"SELECT d.length, d.uid, u.name, d.updated_at, {_RANKING} AS position "
            "FROM Dicks d JOIN Users u ON u.uid = d.uid JOIN Chats c ON c.id = d.chat_id "
            f"WHERE {_CHAT_MATCH} ORDER BY position LIMIT :limit OFFSET :offset",
            {"chat": chat_id.value(), "limit": limit, "offset": offset},
        ).fetchall()
        return [_dick_from_row(row) for row in rows]

    def set_dod_winner(self, chat_id: ChatIdPartiality | ChatIdKind, user_id: int, bonus: int) -> GrowthResult | None:
        """Grant the bonus of the dick of the day; None if the user has no entry."""
        internal_chat_id = self._chats.upsert_chat(to_partiality(chat_id))
        with self._conn:
            new_length = self._grow_internal(internal_chat_id, user_id, bonus)
            if new_length is None:
                return None
            self._conn.execute(
                "INSERT INTO Dick_of_Day (chat_id, winner_uid) VALUES (?, ?)",
                (internal_chat_id, user_id),
            )
        return GrowthResult(new_length, self._position_in_top(internal_chat_id, user_id))

    def check_dick(self, chat_id: ChatIdKind, user_id: int, length: int) -> bool:
        """Tell whether the user has at least the given length in the chat."""
        row = self._conn.execute(
            "SELECT d.length >= :length FROM Dicks d JOIN Chats c ON d.chat_id = c.id "
            f"WHERE {_CHAT_MATCH} AND d.uid = :uid",
            {"chat": chat_id.value(), "uid": user_id, "length": length},
        ).fetchone()
        return bool(row[0]) if row else False

    def move_length(
        self, chat_id: ChatIdPartiality | ChatIdKind, from_uid: int, to_uid: int, length: int
    ) -> tuple[GrowthResult, GrowthResult]:
        """Take length from one user and give it to another in one transaction."""
        internal_chat_id = self._chats.upsert_chat(to_partiality(chat_id))
        with self._conn:
            length_from = self._move_for_one_user(internal_chat_id, from_uid, -length)
            length_to = self._move_for_one_user(internal_chat_id, to_uid, length)
        return (
            GrowthResult(length_from, self._position_in_top(internal_chat_id, from_uid)),
            GrowthResult(length_to, self._position_in_top(internal_chat_id, to_uid)),
        )

    def grow_no_attempts_check(self, chat_id: ChatIdKind, user_id: int, change: int) -> GrowthResult:
        """Change an existing length without counting it as a growth attempt."""
        internal_chat_id = self._chats.get_internal_id(chat_id)
        with self._conn:
            new_length = self._grow_internal(internal_chat_id, user_id, change)
        if new_length is None:
            raise LookupError(f"couldn't find a dick of ({chat_id}, {user_id}) for some reason")
        return GrowthResult(new_length, self._position_in_top(internal_chat_id, user_id))

    def _length(self, internal_chat_id: int, uid: int) -> int:
        return self._conn.execute(
            "SELECT length FROM Dicks WHERE chat_id = ? AND uid = ?", (internal_chat_id, uid)
        ).fetchone()[0]

    def _grow_internal(self, internal_chat_id: int, uid: int, bonus: int) -> int | None:
        cursor = self._conn.execute(
            "UPDATE Dicks SET bonus_attempts = bonus_attempts + 1, length = length + ? "
            "WHERE chat_id = ? AND uid = ?",
            (bonus, internal_chat_id, uid),
        )
        if cursor.rowcount == 0:
            return None
        return self._length(internal_chat_id, uid)

    def _move_for_one_user(self, internal_chat_id: int, uid: int, change: int) -> int:
        cursor = self._conn.execute(
            "UPDATE Dicks SET length = length + ?, bonus_attempts = bonus_attempts + 1 "
            "WHERE chat_id = ? AND uid = ?",
            (change, internal_chat_id, uid),
        )
        ensure_one_row_updated(cursor.rowcount)
        return self._length(internal_chat_id, uid)

    def _position_in_top(self, internal_chat_id: int, uid: int) -> int | None:
        if not self._features.top_unlimited:
            return None
        row = self._conn.execute(
            "SELECT position FROM ("
            f"  SELECT d.uid, {_RANKING} AS position"
            "   FROM Dicks d JOIN Users u ON u.uid = d.uid WHERE d.chat_id = ?"
            ") WHERE uid = ?",
            (internal_chat_id, uid),
        ).fetchone()
        if row is None:
            raise LookupError(f"couldn't get the top for {internal_chat_id} and {uid}")
        return row[0]