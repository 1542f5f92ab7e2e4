"""Identifiers of Telegram chats: numeric ids, inline chat instances and both."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class ChatIdSource(enum.Enum):
    """Where a full chat identifier was obtained from."""

    INLINE_QUERY = "InlineQuery"
    DATABASE = "Database"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ChatIdById:
    """A chat known by its numeric Telegram id."""

    id: int

    def value(self) -> str:
        """Return the identifier as text, as it is stored and compared."""
        return str(self.id)

    def __str__(self) -> str:
        return str(self.id)


@dataclass(frozen=True)
class ChatIdByInstance:
    """A chat known only by the chat instance of an inline query."""

    instance: str

    def value(self) -> str:
        """Return the identifier as text, as it is stored and compared."""
        return self.instance

    def __str__(self) -> str:
        return self.instance


ChatIdKind = ChatIdById | ChatIdByInstance


@dataclass(frozen=True)
class ChatIdFull:
    """A chat for which both the numeric id and the instance are known."""

    id: int
    instance: str

    def to_partiality(self, source: ChatIdSource = ChatIdSource.DATABASE) -> BothIds:
        """Wrap the full identifier, remembering where it came from."""
        return BothIds(self, source)

    def __str__(self) -> str:
        return f"ChatIdFull({self.id}, {self.instance})"


@dataclass(frozen=True)
class BothIds:
    """Both identifiers of a chat, and the source that produced them."""

    full: ChatIdFull
    source: ChatIdSource = ChatIdSource.DATABASE

    def kind(self) -> ChatIdKind:
        """Return the identifier that matches the source."""
        if self.source is ChatIdSource.INLINE_QUERY:
            return ChatIdByInstance(self.full.instance)
        return ChatIdById(self.full.id)

    def __str__(self) -> str:
        return f"Both({self.full}, {self.source})"


@dataclass(frozen=True)
class SpecificId:
    """Exactly one of the identifiers of a chat."""

    chat_id: ChatIdKind

    def kind(self) -> ChatIdKind:
        """Return the single identifier held."""
        return self.chat_id

    def __str__(self) -> str:
        return f"Specific({self.chat_id})"


ChatIdPartiality = BothIds | SpecificId


def to_partiality(value: int | str | ChatIdKind | ChatIdPartiality) -> ChatIdPartiality:
    """Turn a numeric id, an instance string or an identifier into a partiality."""
    match value:
        case bool():
            raise TypeError(f"a chat id cannot be a boolean: {value!r}")
        case int():
            return SpecificId(ChatIdById(value))
        case str():
            return SpecificId(ChatIdByInstance(value))
        case ChatIdById() | ChatIdByInstance():
            return SpecificId(value)
        case BothIds() | SpecificId():
            return value
        case _:
            raise TypeError(f"unsupported chat identifier: {value!r}")