"""Repository of chats, which may be known by id, by instance or by both."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass

from growbot.chat_ids import (
    BothIds,
    ChatIdById,
    ChatIdByInstance,
    ChatIdFull,
    ChatIdKind,
    ChatIdPartiality,
    ChatIdSource,
    SpecificId,
    to_partiality,
)
from growbot.database import FeatureToggles, ensure_one_row_updated

log = logging.getLogger(__name__)


class NoChatIdError(LookupError):
    """A stored chat has neither a numeric id nor an instance."""

    def __init__(self, internal_id: int) -> None:
        self.internal_id = internal_id
        super().__init__(str(internal_id))


class ChatNotFoundError(LookupError):
    """No chat matches the identifier, though one was expected to."""

    def __init__(self, chat_id: ChatIdKind) -> None:
        self.chat_id = chat_id
        super().__init__(f"NotFound({chat_id})")


@dataclass(frozen=True)
class Chat:
    """A row of the chats table."""

    internal_id: int
    chat_id: int | None = None
    chat_instance: str | None = None

    def to_partiality(self) -> ChatIdPartiality:
        """Return the identifiers known for this chat."""
        match (self.chat_id, self.chat_instance):
            case (int() as chat_id, str() as instance):
                return BothIds(ChatIdFull(chat_id, instance), ChatIdSource.DATABASE)
            case (int() as chat_id, None):
                return SpecificId(ChatIdById(chat_id))
            case (None, str() as instance):
                return SpecificId(ChatIdByInstance(instance))
            case _:
                raise NoChatIdError(self.internal_id)


class MergeChatsError(Exception):
    """Two chats cannot be merged into one."""

    def __init__(self, chats: Sequence[Chat], msg: str) -> None:
        self.chats = tuple(chats)
        self.msg = msg
        super().__init__(f"MergeChatsError ({msg}): {list(self.chats)}")


@dataclass(frozen=True)
class MergedChat:
    """The chat that survives a merge, with both of its identifiers."""

    internal_id: int
    chat_id: int
    chat_instance: str


@dataclass(frozen=True)
class MergedChatState:
    """The outcome of merging: the surviving chat and the one to delete."""

    main: MergedChat
    deleted: tuple[int, str]


def merge_chat_objects(chats: Sequence[Chat]) -> MergedChatState:
    """Plan the merge of a chat known by id with a chat known by instance."""
    chat_ids = [(c.internal_id, c.chat_id) for c in chats if c.chat_id is not None]
    instances = [(c.internal_id, c.chat_instance) for c in chats if c.chat_instance is not None]

    if len(chat_ids) != 1 or len(instances) != 1:
        raise MergeChatsError(chats, "both chats contain the same identifiers")
    (id_owner, chat_id), (instance_owner, instance) = chat_ids[0], instances[0]
    if id_owner == instance_owner:
        raise MergeChatsError(chats, "both chats have the same internal id")
    return MergedChatState(
        main=MergedChat(internal_id=id_owner, chat_id=chat_id, chat_instance=instance),
        deleted=(instance_owner, instance),
    )


class Chats:
    """Finds, creates, updates and merges chats."""

    def __init__(self, conn: sqlite3.Connection, features: FeatureToggles | None = None) -> None:
        self._conn = conn
        self._features = features or FeatureToggles()

    def get_chat(self, chat_id: ChatIdKind) -> Chat | None:
        """Return the chat matching the identifier, if any."""
        value = chat_id.value()
        row = self._conn.execute(
            "SELECT id, chat_id, chat_instance FROM Chats "
            "WHERE CAST(chat_id AS TEXT) = ? OR chat_instance = ?",
            (value, value),
        ).fetchone()
        return Chat(*row) if row else None

    def get_internal_id(self, chat_id: ChatIdKind) -> int:
        """Return the internal id of an existing chat."""
        chat = self.get_chat(chat_id)
        if chat is None:
            raise ChatNotFoundError(chat_id)
        return chat.internal_id

    def _identifiers(self, chat_id: ChatIdPartiality) -> tuple[int | None, str | None]:
        match chat_id:
            case BothIds(full=full) if self._features.chats_merging:
                return full.id, full.instance
            case BothIds(full=full, source=ChatIdSource.DATABASE):
                return full.id, None
            case BothIds(full=full):
                return None, full.instance
            case SpecificId(chat_id=ChatIdById(id=numeric)):
                return numeric, None
            case SpecificId(chat_id=ChatIdByInstance(instance=instance)):
                return None, instance
        raise TypeError(f"unsupported chat identifier: {chat_id!r}")

    def upsert_chat(self, chat_id: ChatIdPartiality | ChatIdKind | int | str) -> int:
        """Make sure a chat with these identifiers exists and return its internal id."""
        numeric, instance = self._identifiers(to_partiality(chat_id))
        with self._conn:
            rows = self._conn.execute(
                "SELECT id, chat_id, chat_instance FROM Chats WHERE chat_id = ? OR chat_instance = ?",
                (numeric, instance),
            ).fetchall()
            chats = [Chat(*row) for row in rows]
            match chats:
                case [chat] if chat.chat_id == numeric and chat.chat_instance == instance:
                    return chat.internal_id
                case [chat]:
                    return self._update_chat(chat.internal_id, numeric, instance)
                case []:
                    return self._create_chat(numeric, instance)
                case [first, second]:
                    return self._merge_chats(first, second)
                case _:
                    raise RuntimeError(f"unexpected count of chats ({len(chats)}): {chats}")

    def _create_chat(self, numeric: int | None, instance: str | None) -> int:
        log.info("creating a chat with chat_id = %s and chat_instance = %s", numeric, instance)
        cursor = self._conn.execute(
            "INSERT INTO Chats (chat_id, chat_instance) VALUES (?, ?)", (numeric, instance)
        )
        return cursor.lastrowid

    def _update_chat(self, internal_id: int, numeric: int | None, instance: str | None) -> int:
        log.debug(
            "updating the chat with id = %s, chat_id = %s, and chat_instance = %s",
            internal_id, numeric, instance,
        )
        self._conn.execute(
            "UPDATE Chats SET chat_id = coalesce(?, chat_id), "
            "chat_instance = coalesce(?, chat_instance) WHERE id = ?",
            (numeric, instance, internal_id),
        )
        return internal_id

    def _merge_chats(self, first: Chat, second: Chat) -> int:
        state = merge_chat_objects([first, second])
        main_id = state.main.internal_id
        deleted_id, deleted_instance = state.deleted

        sums = self._conn.execute(
            "SELECT uid, sum(length) FROM Dicks WHERE chat_id IN (?, ?) GROUP BY uid",
            (main_id, deleted_id),
        ).fetchall()
        updated = sum(
            self._conn.execute(
                "UPDATE Dicks SET length = ?, bonus_attempts = bonus_attempts + 1 "
                "WHERE chat_id = ? AND uid = ?",
                (total, main_id, uid),
            ).rowcount
            for uid, total in sums
        )
        deleted = self._conn.execute("DELETE FROM Dicks WHERE chat_id = ?", (deleted_id,)).rowcount
        log.info("merging chats: %s, updated dicks: %s, deleted: %s", [first, second], updated, deleted)

        ensure_one_row_updated(
            self._conn.execute(
                "DELETE FROM Chats WHERE id = ? AND chat_instance = ?",
                (deleted_id, deleted_instance),
            ).rowcount
        )
        ensure_one_row_updated(
            self._conn.execute(
                "UPDATE Chats SET chat_instance = ? WHERE id = ? AND chat_id = ?",
                (state.main.chat_instance, main_id, state.main.chat_id),
            ).rowcount
        )
        return main_id