"""Callback data carried by inline keyboard buttons."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import ClassVar, TypeVar

from growbot.chat_ids import ChatIdByInstance, ChatIdById, ChatIdKind

T = TypeVar("T")

OLD_VERSION_MARKER = "OLDVER"
"""Placeholder written in place of a field that older messages do not have."""


class InvalidCallbackData(ValueError):
    """Callback data that cannot be parsed.

    ``reason`` is one of NoData, WrongPrefix, SplitError, MissingPart or
    InvalidFormat.
    """

    def __init__(
        self,
        reason: str,
        data: str | None = None,
        *,
        prefix: str | None = None,
        part: str | None = None,
        error: BaseException | None = None,
    ) -> None:
        self.reason = reason
        self.data = data
        self.prefix = prefix
        self.part = part
        self.error = error
        super().__init__(self._describe())

    def _describe(self) -> str:
        match self.reason:
            case "WrongPrefix":
                return f"WrongPrefix(data={self.data}, prefix={self.prefix})"
            case "SplitError":
                return f"SplitError(data={self.data})"
            case "MissingPart":
                return f"MissingPart(data={self.data}, part={self.part})"
            case "InvalidFormat":
                return f"InvalidFormat(data={self.data}, error={self.error})"
            case _:
                return self.reason


class CallbackData(ABC):
    """Base for callback payloads of the form ``<prefix>:<payload>``.

    Subclasses set ``prefix``, render their payload in ``__str__`` and
    rebuild themselves from it in ``_from_payload``.
    """

    prefix: ClassVar[str]

    @classmethod
    @abstractmethod
    def _from_payload(cls: type[T], payload: str) -> T:
        """Build an instance from the text after the prefix."""

    @abstractmethod
    def __str__(self) -> str:
        """Render the payload without the prefix."""

    @classmethod
    def check_prefix(cls, data: str | None) -> bool:
        """Tell whether the data looks like it belongs to this class."""
        return data is not None and data.startswith(cls.prefix)

    @classmethod
    def parse(cls: type[T], data: str | None) -> T:
        """Parse full callback data, checking its prefix."""
        if data is None:
            raise InvalidCallbackData("NoData")
        prefix, sep, rest = data.partition(":")
        if not sep:
            raise InvalidCallbackData("NoData")
        if prefix != cls.prefix:  # type: ignore[attr-defined]
            raise InvalidCallbackData("WrongPrefix", data, prefix=prefix)
        try:
            return cls._from_payload(rest)  # type: ignore[attr-defined]
        except (ValueError, InvalidCallbackData) as err:
            raise InvalidCallbackData("InvalidFormat", data, error=err) from err

    def to_data_string(self) -> str:
        """Render the full callback data, prefix included."""
        return f"{self.prefix}:{self}"


@dataclass(frozen=True)
class EditMessageParams:
    """Where a message to be edited lives: a chat message or an inline one."""

    chat_id: int | None = None
    message_id: int | None = None
    chat_instance: str | None = None
    inline_message_id: str | None = None

    @property
    def is_inline(self) -> bool:
        return self.chat_id is None

    def chat_id_kind(self) -> ChatIdKind:
        """Return the identifier of the chat the message lives in."""
        if self.chat_id is not None:
            return ChatIdById(self.chat_id)
        return ChatIdByInstance(self.chat_instance or "")


def get_params_for_message_edit(
    chat_id: int | None,
    message_id: int | None,
    inline_message_id: str | None,
    chat_instance: str,
) -> EditMessageParams:
    """Choose how to edit the message a callback query came from."""
    if chat_id is not None and message_id is not None:
        return EditMessageParams(chat_id=chat_id, message_id=message_id)
    if inline_message_id is not None:
        return EditMessageParams(chat_instance=chat_instance, inline_message_id=inline_message_id)
    raise ValueError("no message")


def parse_part(
    parts: Iterator[str], data: str, part_name: str, converter: Callable[[str], T]
) -> T:
    """Take the next part of a payload and convert it."""
    raw = next(parts, None)
    if raw is None:
        raise InvalidCallbackData("MissingPart", data, part=part_name)
    try:
        return converter(raw)
    except ValueError as err:
        raise InvalidCallbackData("InvalidFormat", data, error=err) from err


def parse_optional_part(
    parts: Iterator[str], data: str, converter: Callable[[str], T]
) -> T | None:
    """Take the next part if present; missing or old-version parts give None."""
    raw = next(parts, None)
    if raw is None or raw == OLD_VERSION_MARKER:
        return None
    try:
        return converter(raw)
    except ValueError as err:
        raise InvalidCallbackData("InvalidFormat", data, error=err) from err