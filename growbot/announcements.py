"""Announcements shown a limited number of times in each chat."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Mapping
from dataclasses import dataclass, field

from growbot.chat_ids import ChatIdKind
from growbot.database import ensure_one_row_updated

log = logging.getLogger(__name__)

_CHAT_BY_ID = "(SELECT id FROM Chats WHERE CAST(chat_id AS TEXT) = :chat OR chat_instance = :chat)"
_SUPPORTED_LANGUAGES = ("en", "ru")
_DEFAULT_LANGUAGE = "en"


def _supported_language(lang_code: str) -> str:
    """Map a user's language code to one of the languages announcements exist in."""
    primary = lang_code.split("-")[0].strip().lower()
    return primary if primary in _SUPPORTED_LANGUAGES else _DEFAULT_LANGUAGE


@dataclass(frozen=True)
class Announcement:
    """The text of an announcement and a hash that identifies its version."""

    text: str
    hash: bytes


@dataclass(frozen=True)
class AnnouncementsConfig:
    """How many times an announcement is shown, and the announcement per language."""

    max_shows: int
    announcements: Mapping[str, Announcement] = field(default_factory=dict)

    def get(self, lang_code: str) -> Announcement | None:
        """Return the announcement for the language of the code, if configured."""
        return self.announcements.get(_supported_language(lang_code))


@dataclass(frozen=True)
class _ShownAnnouncement:
    chat_id: int
    hash: bytes
    times_shown: int


class Announcements:
    """Decides whether a chat should see the current announcement."""

    def __init__(self, conn: sqlite3.Connection, config: AnnouncementsConfig) -> None:
        self._conn = conn
        self._config = config

    def get_new(self, chat_id: ChatIdKind, lang_code: str) -> str | None:
        """Return the announcement text if it is still to be shown in the chat."""
        announcement = self._config.get(lang_code)
        if announcement is None:
            return None
        if self._check_conditions(chat_id, announcement, lang_code):
            return announcement.text
        return None

    def _check_conditions(self, chat_id: ChatIdKind, announcement: Announcement, lang_code: str) -> bool:
        shown = self._get(chat_id, lang_code)
        if self._config.max_shows == 0:
            return False
        if shown is None:
            self._create(chat_id, lang_code, announcement.hash)
            return True
        if shown.hash != announcement.hash:
            self._update(shown.chat_id, lang_code, announcement.hash)
            return True
        if shown.times_shown >= self._config.max_shows:
            return False
        self._increment_times_shown(shown.chat_id, lang_code)
        return True

    def _get(self, chat_id: ChatIdKind, lang_code: str) -> _ShownAnnouncement | None:
        row = self._conn.execute(
            "SELECT chat_id, hash, times_shown FROM Announcements "
            f"WHERE chat_id = {_CHAT_BY_ID} AND language = :language",
            {"chat": chat_id.value(), "language": _supported_language(lang_code)},
        ).fetchone()
        if row is None:
            return None
        internal_id, digest, times_shown = row
        return _ShownAnnouncement(internal_id, bytes(digest), times_shown)

    def _create(self, chat_id: ChatIdKind, lang_code: str, digest: bytes) -> None:
        with self._conn:
            cursor = self._conn.execute(
                "INSERT INTO Announcements (chat_id, language, hash, times_shown) "
                f"VALUES ({_CHAT_BY_ID}, :language, :hash, 1)",
                {"chat": chat_id.value(), "language": _supported_language(lang_code), "hash": digest},
            )
            ensure_one_row_updated(cursor.rowcount)

    def _increment_times_shown(self, internal_id: int, lang_code: str) -> None:
        with self._conn:
            cursor = self._conn.execute(
                "UPDATE Announcements SET times_shown = times_shown + 1 "
                "WHERE chat_id = ? AND language = ?",
                (internal_id, _supported_language(lang_code)),
            )
            ensure_one_row_updated(cursor.rowcount)

    def _update(self, internal_id: int, lang_code: str, digest: bytes) -> None:
        with self._conn:
            cursor = self._conn.execute(
                "UPDATE Announcements SET hash = ?, times_shown = 1 "
                "WHERE chat_id = ? AND language = ?",
                (digest, internal_id, _supported_language(lang_code)),
            )
            ensure_one_row_updated(cursor.rowcount)