"""Decoding of Telegram inline message identifiers."""

from __future__ import annotations

import base64
import logging
import re
import struct
from dataclasses import dataclass

log = logging.getLogger(__name__)

_URL_SAFE = re.compile(r"[A-Za-z0-9_-]*")

# Field layouts by the length of the encoded identifier:
# 32-bit chat ids store the message id before the chat id.
_LAYOUT_ID32 = struct.Struct("<iiiq")
_LAYOUT_ID64 = struct.Struct("<iqiq")


class InvalidIDFormat(ValueError):
    """An inline message identifier cannot be decoded."""


@dataclass(frozen=True)
class InlineMessageIdInfo:
    """The fields packed inside an inline message identifier."""

    dc_id: int
    chat_id: int
    message_id: int
    access_hash: int

    @classmethod
    def parse(cls, value: str) -> InlineMessageIdInfo:
        """Decode an inline message identifier."""
        raw = _decode_base64(value)
        match len(value):
            case 27:
                dc_id, message_id, chat_id, access_hash = _unpack(_LAYOUT_ID32, raw)
            case 32:
                dc_id, chat_id, message_id, access_hash = _unpack(_LAYOUT_ID64, raw)
            case _:
                raise InvalidIDFormat(f"InvalidIDLength({len(value)}): {value}")
        return cls(
            dc_id=dc_id,
            chat_id=fix_chat_id(chat_id),
            message_id=message_id,
            access_hash=access_hash,
        )


def _decode_base64(value: str) -> bytes:
    if not _URL_SAFE.fullmatch(value) or len(value) % 4 == 1:
        raise InvalidIDFormat(f"IDDecodeError: invalid base64 input: {value}")
    raw = base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))
    if base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=") != value:
        raise InvalidIDFormat(f"IDDecodeError: invalid trailing bits: {value}")
    return raw


def _unpack(layout: struct.Struct, raw: bytes) -> tuple[int, ...]:
    try:
        return layout.unpack_from(raw)
    except struct.error as err:
        raise InvalidIDFormat(f"IdIoError: {err}") from err


def resolve_inline_message_id(inline_message_id: str) -> InlineMessageIdInfo:
    """Decode an inline message identifier, logging what was found."""
    log.debug("inline_message_id: %s", inline_message_id)
    info = InlineMessageIdInfo.parse(inline_message_id)
    log.debug("resolved InlineMessageIdInfo: %s", info)
    return info


def fix_chat_id(number: int) -> int:
    """Turn a negative short chat id into the full supergroup chat id."""
    if number < 0:
        power = len(str(abs(number)))
        return -100 * 10**power + number
    return number