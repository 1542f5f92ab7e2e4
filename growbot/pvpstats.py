"""Statistics of battles between users in a chat."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from growbot.chat_ids import ChatIdKind
from growbot.chats import Chats
from growbot.database import FeatureToggles

_CHAT_BY_ID = "(SELECT id FROM Chats WHERE CAST(chat_id AS TEXT) = :chat OR chat_instance = :chat)"
_STATS_COLUMNS = (
    "battles_total, battles_won, win_streak_max, win_streak_current, acquired_length, lost_length"
)


def win_rate_percentage(battles_won: int, battles_total: int) -> float:
    """Return the share of won battles in percent; 0 when there were none."""
    if battles_total == 0:
        return 0.0
    return battles_won / battles_total * 100.0


def _format_win_rate(percentage: float) -> str:
    return f"{percentage:.2f}%"


def _non_negative(name: str, value: int) -> int:
    if value < 0:
        raise ValueError(f"{name}, fetched from the database, must not be negative: {value}")
    return value


@dataclass(frozen=True)
class UserStats:
    """The battle record of a user in a chat."""

    battles_total: int = 0
    battles_won: int = 0
    win_streak_max: int = 0
    win_streak_current: int = 0
    acquired_length: int = 0
    lost_length: int = 0

    @classmethod
    def _from_row(cls, row: tuple[int, int, int, int, int, int]) -> UserStats:
        names = (
            "battles_total", "battles_won", "win_streak_max",
            "win_streak_current", "acquired_length", "lost_length",
        )
        return cls(**{name: _non_negative(name, value) for name, value in zip(names, row)})

    def win_rate_percentage(self) -> float:
        """Return the share of won battles in percent."""
        return win_rate_percentage(self.battles_won, self.battles_total)

    def win_rate_formatted(self) -> str:
        """Return the win rate with two decimals and a percent sign."""
        return _format_win_rate(self.win_rate_percentage())


@dataclass(frozen=True)
class LoserStats:
    """What is shown about the loser of a battle."""

    win_rate_percentage: float
    prev_win_streak: int

    def win_rate_formatted(self) -> str:
        """Return the win rate with two decimals and a percent sign."""
        return _format_win_rate(self.win_rate_percentage)


@dataclass(frozen=True)
class BattleStats:
    """The updated statistics of both sides of a battle."""

    winner: UserStats
    loser: LoserStats


class BattleStatsRepo:
    """Records battle results and reads users' battle records."""

    def __init__(self, conn: sqlite3.Connection, features: FeatureToggles | None = None) -> None:
        self._conn = conn
        self._chats = Chats(conn, features)

    def send_battle_result(
        self, chat_id: ChatIdKind, winner_id: int, loser_id: int, bet: int
    ) -> BattleStats:
        """Record a battle and return the new statistics of both users."""
        internal_id = self._chats.get_internal_id(chat_id)
        with self._conn:
            winner = self._update_winner(internal_id, winner_id, bet)
            loser = self._update_loser(internal_id, loser_id, bet)
        return BattleStats(winner, loser)

    def get_stats(self, chat_id: ChatIdKind, user_id: int) -> UserStats:
        """Return the user's record in the chat; zeros if there is none."""
        row = self._conn.execute(
            f"SELECT {_STATS_COLUMNS} FROM Battle_Stats "
            f"WHERE chat_id = {_CHAT_BY_ID} AND uid = :uid",
            {"chat": chat_id.value(), "uid": user_id},
        ).fetchone()
        return UserStats._from_row(row) if row else UserStats()

    def _read_stats(self, internal_id: int, uid: int) -> UserStats:
        row = self._conn.execute(
            f"SELECT {_STATS_COLUMNS} FROM Battle_Stats WHERE chat_id = ? AND uid = ?",
            (internal_id, uid),
        ).fetchone()
        return UserStats._from_row(row)

    def _update_winner(self, internal_id: int, uid: int, bet: int) -> UserStats:
        self._conn.execute(
            "INSERT INTO Battle_Stats "
            "(uid, chat_id, battles_total, battles_won, win_streak_current, acquired_length) "
            "VALUES (?, ?, 1, 1, 1, ?) "
            "ON CONFLICT (uid, chat_id) DO UPDATE SET "
            "  battles_total = Battle_Stats.battles_total + 1,"
            "  battles_won = Battle_Stats.battles_won + 1,"
            "  win_streak_current = Battle_Stats.win_streak_current + 1,"
            "  acquired_length = Battle_Stats.acquired_length + excluded.acquired_length",
            (uid, internal_id, bet),
        )
        return self._read_stats(internal_id, uid)

    def _update_loser(self, internal_id: int, uid: int, bet: int) -> LoserStats:
        row = self._conn.execute(
            "SELECT win_streak_current FROM Battle_Stats WHERE chat_id = ? AND uid = ?",
            (internal_id, uid),
        ).fetchone()
        prev_win_streak = row[0] if row else 0
        self._conn.execute(
            "INSERT INTO Battle_Stats "
            "(uid, chat_id, battles_total, battles_won, win_streak_current, lost_length) "
            "VALUES (?, ?, 1, 0, 0, ?) "
            "ON CONFLICT (uid, chat_id) DO UPDATE SET "
            "  battles_total = Battle_Stats.battles_total + 1,"
            "  win_streak_current = 0,"
            "  lost_length = Battle_Stats.lost_length + excluded.lost_length",
            (uid, internal_id, bet),
        )
        battles_total, battles_won = self._conn.execute(
            "SELECT battles_total, battles_won FROM Battle_Stats WHERE chat_id = ? AND uid = ?",
            (internal_id, uid),
        ).fetchone()
        return LoserStats(
            win_rate_percentage=win_rate_percentage(battles_won, battles_total),
            prev_win_streak=_non_negative("prev_win_streak", prev_win_streak),
        )