from __future__ import annotations

from dataclasses import dataclass

import pytest

from growbot.callbacks import (
    OLD_VERSION_MARKER,
    CallbackData,
    EditMessageParams,
    InvalidCallbackData,
    get_params_for_message_edit,
    parse_optional_part,
    parse_part,
)
from growbot.chat_ids import ChatIdByInstance, ChatIdById


@dataclass(frozen=True)
class Attack(CallbackData):
    prefix = "pvp"

    uid: int
    bet: int
    extra: int | None = None

    @classmethod
    def _from_payload(cls, payload: str) -> Attack:
        parts = iter(payload.split(":"))
        uid = parse_part(parts, payload, "uid", int)
        bet = parse_part(parts, payload, "bet", int)
        extra = parse_optional_part(parts, payload, int)
        return cls(uid, bet, extra)

    def __str__(self) -> str:
        extra = OLD_VERSION_MARKER if self.extra is None else self.extra
        return f"{self.uid}:{self.bet}:{extra}"


def test_round_trip():
    attack = Attack(12345, 10, 3)
    data = CallbackData.to_data_string(attack)
    assert data == "pvp:12345:10:3"
    assert CallbackData.parse.__func__(Attack, data) == attack


def test_round_trip_old_version():
    attack = Attack(12345, 10)
    data = CallbackData.to_data_string(attack)
    assert data == f"pvp:12345:10:{OLD_VERSION_MARKER}"
    assert CallbackData.parse.__func__(Attack, data) == attack


def test_missing_optional_part_is_none():
    assert CallbackData.parse.__func__(Attack, "pvp:1:2") == Attack(1, 2, None)


def test_check_prefix():
    assert CallbackData.check_prefix.__func__(Attack, "pvp:1:2") is True
    assert CallbackData.check_prefix.__func__(Attack, "loan:1:2") is False
    assert CallbackData.check_prefix.__func__(Attack, None) is False


def test_no_data():
    with pytest.raises(InvalidCallbackData) as exc:
        CallbackData.parse.__func__(Attack, None)
    assert exc.value.reason == "NoData"


def test_no_separator():
    with pytest.raises(InvalidCallbackData) as exc:
        CallbackData.parse.__func__(Attack, "pvp")
    assert exc.value.reason == "NoData"


def test_wrong_prefix():
    with pytest.raises(InvalidCallbackData) as exc:
        CallbackData.parse.__func__(Attack, "loan:1:2")
    assert exc.value.reason == "WrongPrefix"
    assert exc.value.prefix == "loan"
    assert str(exc.value) == "WrongPrefix(data=loan:1:2, prefix=loan)"


def test_missing_part_is_wrapped_as_invalid_format():
    with pytest.raises(InvalidCallbackData) as exc:
        CallbackData.parse.__func__(Attack, "pvp:1")
    assert exc.value.reason == "InvalidFormat"
    assert exc.value.error.reason == "MissingPart"
    assert exc.value.error.part == "bet"


def test_bad_number_is_invalid_format():
    with pytest.raises(InvalidCallbackData) as exc:
        CallbackData.parse.__func__(Attack, "pvp:x:2")
    assert exc.value.reason == "InvalidFormat"


def test_parse_part_directly():
    parts = iter(["7", "y"])
    assert parse_part(parts, "7:y", "first", int) == 7
    with pytest.raises(InvalidCallbackData) as exc:
        parse_part(parts, "7:y", "second", int)
    assert exc.value.reason == "InvalidFormat"


def test_parse_optional_part_bad_value():
    with pytest.raises(InvalidCallbackData):
        parse_optional_part(iter(["zz"]), "zz", int)


def test_params_for_chat_message():
    params = get_params_for_message_edit(67890, 5, None, "inst")
    assert params == EditMessageParams(chat_id=67890, message_id=5)
    assert params.chat_id_kind() == ChatIdById(67890)
    assert not params.is_inline


def test_params_for_inline_message():
    params = get_params_for_message_edit(None, None, "inline-id", "inst")
    assert params.inline_message_id == "inline-id"
    assert params.chat_id_kind() == ChatIdByInstance("inst")
    assert params.is_inline


def test_params_without_message():
    with pytest.raises(ValueError, match="no message"):
        get_params_for_message_edit(None, None, None, "inst")