"""Database access: the schema, feature toggles and shared helpers."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from os import PathLike

TIMESTAMP_NOW = "strftime('%Y-%m-%d %H:%M:%f', 'now')"
"""SQL expression for the current UTC time with millisecond precision."""

SCHEMA = f"""
CREATE TABLE IF NOT EXISTS Users (
    uid INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT ({TIMESTAMP_NOW})
);

CREATE TABLE IF NOT EXISTS Chats (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    chat_id INTEGER UNIQUE,
    chat_instance TEXT UNIQUE,
    CHECK (chat_id IS NOT NULL OR chat_instance IS NOT NULL)
);

CREATE TABLE IF NOT EXISTS Dicks (
    uid INTEGER NOT NULL REFERENCES Users (uid),
    chat_id INTEGER NOT NULL REFERENCES Chats (id) ON DELETE CASCADE,
    length INTEGER NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({TIMESTAMP_NOW}),
    bonus_attempts INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (uid, chat_id)
);

CREATE TABLE IF NOT EXISTS Dick_of_Day (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    chat_id INTEGER NOT NULL REFERENCES Chats (id) ON DELETE CASCADE,
    winner_uid INTEGER NOT NULL REFERENCES Users (uid),
    created_at TEXT NOT NULL DEFAULT ({TIMESTAMP_NOW})
);

CREATE TABLE IF NOT EXISTS Imports (
    chat_id INTEGER NOT NULL,
    uid INTEGER NOT NULL,
    original_length INTEGER NOT NULL,
    PRIMARY KEY (chat_id, uid)
);

CREATE TABLE IF NOT EXISTS Promo_Codes (
    code TEXT PRIMARY KEY,
    bonus_length INTEGER NOT NULL,
    capacity INTEGER NOT NULL,
    since TEXT NOT NULL DEFAULT (date('now')),
    until TEXT
);

CREATE TABLE IF NOT EXISTS Promo_Code_Activations (
    uid INTEGER NOT NULL REFERENCES Users (uid),
    code TEXT NOT NULL REFERENCES Promo_Codes (code),
    affected_chats INTEGER NOT NULL,
    created_at TEXT NOT NULL DEFAULT ({TIMESTAMP_NOW}),
    PRIMARY KEY (uid, code)
);

CREATE TABLE IF NOT EXISTS Loans (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    chat_id INTEGER NOT NULL REFERENCES Chats (id) ON DELETE CASCADE,
    uid INTEGER NOT NULL REFERENCES Users (uid),
    debt INTEGER NOT NULL,
    payout_ratio REAL NOT NULL,
    created_at TEXT NOT NULL DEFAULT ({TIMESTAMP_NOW}),
    repaid_at TEXT
);

CREATE TABLE IF NOT EXISTS Battle_Stats (
    uid INTEGER NOT NULL REFERENCES Users (uid),
    chat_id INTEGER NOT NULL REFERENCES Chats (id) ON DELETE CASCADE,
    battles_total INTEGER NOT NULL DEFAULT 0,
    battles_won INTEGER NOT NULL DEFAULT 0,
    win_streak_max INTEGER NOT NULL DEFAULT 0,
    win_streak_current INTEGER NOT NULL DEFAULT 0,
    acquired_length INTEGER NOT NULL DEFAULT 0,
    lost_length INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (uid, chat_id)
);

CREATE TABLE IF NOT EXISTS Announcements (
    chat_id INTEGER NOT NULL REFERENCES Chats (id) ON DELETE CASCADE,
    language TEXT NOT NULL,
    hash BLOB NOT NULL,
    times_shown INTEGER NOT NULL,
    PRIMARY KEY (chat_id, language)
);

CREATE TRIGGER IF NOT EXISTS trg_loans_repaid
AFTER UPDATE OF debt ON Loans
WHEN NEW.debt <= 0 AND NEW.repaid_at IS NULL
BEGIN
    UPDATE Loans SET repaid_at = ({TIMESTAMP_NOW}) WHERE id = NEW.id;
END;

CREATE TRIGGER IF NOT EXISTS trg_battle_stats_streak_insert
AFTER INSERT ON Battle_Stats
WHEN NEW.win_streak_current > NEW.win_streak_max
BEGIN
    UPDATE Battle_Stats SET win_streak_max = NEW.win_streak_current
        WHERE uid = NEW.uid AND chat_id = NEW.chat_id;
END;

CREATE TRIGGER IF NOT EXISTS trg_battle_stats_streak_update
AFTER UPDATE OF win_streak_current ON Battle_Stats
WHEN NEW.win_streak_current > NEW.win_streak_max
BEGIN
    UPDATE Battle_Stats SET win_streak_max = NEW.win_streak_current
        WHERE uid = NEW.uid AND chat_id = NEW.chat_id;
END;
"""


@dataclass(frozen=True)
class FeatureToggles:
    """Switches for optional behaviour of the repositories."""

    chats_merging: bool = True
    top_unlimited: bool = True
    pvp_callback_locks: bool = True


class RowCountError(RuntimeError):
    """A statement changed a different number of rows than expected."""


def ensure_one_row_updated(rowcount: int) -> None:
    """Raise RowCountError unless exactly one row was changed."""
    if rowcount != 1:
        raise RowCountError(f"not only one row was updated but {rowcount}")


def open_database(path: str | PathLike[str] = ":memory:") -> sqlite3.Connection:
    """Open a database, creating the schema where it is missing."""
    conn = sqlite3.connect(path)
    conn.execute("PRAGMA foreign_keys = ON")
    conn.executescript(SCHEMA)
    return conn