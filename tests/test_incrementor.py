import pytest

from growbot.chat_ids import ChatIdById
from growbot.database import open_database
from growbot.dicks import Dicks
from growbot.incrementor import (
    ChangeIntent,
    DickId,
    Incrementor,
    IncrementorConfig,
    Perk,
    get_base_increment,
)
from growbot.users import Users

USER_ID = 12345
CHAT_ID_KIND = ChatIdById(67890)
I32_MAX = 2**31 - 1


class AddPerk(Perk):
    def __init__(self, value):
        self.value = value

    @property
    def name(self):
        return f"add-perk-{self.value}"

    def apply(self, dick_id, change_intent):
        return self.value


class RecordingPerk(Perk):
    def __init__(self):
        self.seen = []

    @property
    def name(self):
        return "recording"

    def apply(self, dick_id, change_intent):
        self.seen.append((dick_id, change_intent))
        return 0


class ConfiguredPerk(AddPerk):
    def get_config(self):
        return {"limit": self.value}


@pytest.fixture
def dicks():
    conn = open_database()
    yield Dicks(conn)
    conn.close()


def make_incrementor(dicks, perks=()):
    config = IncrementorConfig(
        growth_min=-1,
        growth_max=1,
        grow_shrink_ratio=0.5,
        newcomers_grace_days=1,
        dod_bonus_max=2,
    )
    return Incrementor(config, dicks, perks)


def test_gen_increment():
    increments = [get_base_increment(-5, 10, 0.5) for _ in range(100)]
    assert any(n > 0 for n in increments)
    assert any(n < 0 for n in increments)
    assert all(n != 0 for n in increments)
    assert all(n <= 10 for n in increments)
    assert all(n >= -5 for n in increments)


def test_gen_increment_with_positive_range():
    increments = [get_base_increment(5, 10, 0.5) for _ in range(100)]
    assert all(5 <= n <= 10 for n in increments)


@pytest.mark.parametrize("ratio, positive", [(0.0, False), (1.0, True), (-3.0, False), (7.0, True)])
def test_gen_increment_extreme_ratios(ratio, positive):
    increments = [get_base_increment(-5, 10, ratio) for _ in range(50)]
    assert all((n > 0) == positive for n in increments)


def test_gen_increment_empty_positive_side():
    with pytest.raises(ValueError):
        get_base_increment(-5, 0, 1.0)


def test_growth_increment_base(dicks):
    incr = make_incrementor(dicks)
    for _ in range(100):
        val = incr.growth_increment(USER_ID, CHAT_ID_KIND, 1)
        assert val.base == val.total
        assert val.base != 0
        assert -1 <= val.base <= 1
    for _ in range(100):
        val = incr.growth_increment(USER_ID, CHAT_ID_KIND, 0)
        assert val.base == val.total
        assert val.base > 0


def test_dod_increment_base(dicks):
    incr = make_incrementor(dicks)
    vals = [incr.dod_increment(USER_ID, CHAT_ID_KIND) for _ in range(100)]
    assert all(v.base == v.total for v in vals)
    assert all(v.base in (1, 2) for v in vals)


def test_with_perks(dicks):
    plus2, minus1 = AddPerk(2), AddPerk(-1)
    incr = make_incrementor(dicks, [plus2, minus1])
    for _ in range(100):
        for val in (
            incr.growth_increment(USER_ID, CHAT_ID_KIND, 1),
            incr.dod_increment(USER_ID, CHAT_ID_KIND),
        ):
            assert val.total - val.base == 1
            assert val.by_perks[plus2.name] == 2
            assert val.by_perks[minus1.name] == -1


def test_perk_with_overflow(dicks):
    incr = make_incrementor(dicks, [AddPerk(I32_MAX)])
    increment = incr.dod_increment(USER_ID, CHAT_ID_KIND)
    assert increment.base == increment.total
    assert increment.by_perks == {}


def test_growth_perk_with_overflow(dicks):
    incr = make_incrementor(dicks, [AddPerk(I32_MAX)])
    increment = incr.growth_increment(USER_ID, CHAT_ID_KIND, 0)
    assert increment.base == increment.total
    assert increment.by_perks == {}


def test_cancelling_perks_are_kept(dicks):
    incr = make_incrementor(dicks, [AddPerk(2), AddPerk(-2)])
    increment = incr.dod_increment(USER_ID, CHAT_ID_KIND)
    assert increment.base == increment.total
    assert increment.by_perks == {"add-perk-2": 2, "add-perk--2": -2}


def test_perks_see_current_length(dicks, ):
    conn = dicks._conn
    Users(conn).create_or_update(USER_ID, "test")
    dicks.create_or_grow(USER_ID, CHAT_ID_KIND, 7)
    recorder = RecordingPerk()
    incr = make_incrementor(dicks, [recorder])
    increment = incr.dod_increment(USER_ID, CHAT_ID_KIND)
    assert recorder.seen == [
        (DickId(USER_ID, CHAT_ID_KIND), ChangeIntent(current_length=7, base_increment=increment.base))
    ]
    assert increment.by_perks == {}


def test_perk_enabled_by_env(monkeypatch):
    perk = AddPerk(2)
    monkeypatch.delenv("DISABLE_ADD_PERK_2", raising=False)
    assert Perk.enabled(perk) is True
    monkeypatch.setenv("DISABLE_ADD_PERK_2", "true")
    assert Perk.enabled(perk) is False


def test_from_env(dicks, monkeypatch):
    monkeypatch.setenv("GROWTH_MIN", "-3")
    monkeypatch.setenv("GROWTH_MAX", "4")
    monkeypatch.setenv("GROW_SHRINK_RATIO", "0.25")
    monkeypatch.setenv("NEWCOMERS_GRACE_DAYS", "3")
    monkeypatch.setenv("GROWTH_DOD_BONUS_MAX", "9")
    monkeypatch.setenv("DISABLE_ADD_PERK_2", "true")
    incr = Incrementor.from_env(dicks, [AddPerk(2), AddPerk(-1)])
    assert incr.config == IncrementorConfig(
        growth_min=-3,
        growth_max=4,
        grow_shrink_ratio=0.25,
        newcomers_grace_days=3,
        dod_bonus_max=9,
    )
    increment = incr.dod_increment(USER_ID, CHAT_ID_KIND)
    assert increment.total - increment.base == -1
    assert increment.by_perks == {"add-perk--1": -1}


def test_from_env_defaults(dicks, monkeypatch):
    for key in ("GROWTH_MIN", "GROWTH_MAX", "GROW_SHRINK_RATIO", "NEWCOMERS_GRACE_DAYS", "GROWTH_DOD_BONUS_MAX"):
        monkeypatch.delenv(key, raising=False)
    incr = Incrementor.from_env(dicks, [])
    assert incr.config == IncrementorConfig(-5, 10, 0.5, 7, 5)
    assert incr.config.growth_range_min == -5
    assert incr.config.growth_range_max == 10


def test_empty_growth_range_bounds():
    config = IncrementorConfig(growth_min=3, growth_max=1)
    assert (config.growth_range_min, config.growth_range_max) == (0, 0)


def test_find_perk_config(dicks):
    incr = make_incrementor(dicks, [AddPerk(1), ConfiguredPerk(3)])
    assert incr.find_perk_config(ConfiguredPerk) == {"limit": 3}
    assert make_incrementor(dicks, [AddPerk(1)]).find_perk_config(ConfiguredPerk) is None