from datetime import datetime, timezone

from growbot.naming import get_full_name, time_till_next_day


def test_get_time_till_next_day_string():
    now = datetime.fromisoformat("2023-10-21T22:10:57+00:00")
    assert time_till_next_day(now).endswith("<b>1</b>h <b>49</b>m.")


def test_time_till_next_day_at_midnight():
    now = datetime(2023, 10, 21, 0, 0, 0, tzinfo=timezone.utc)
    assert time_till_next_day(now) == "<b>24</b>h <b>0</b>m."


def test_time_till_next_day_default_is_within_a_day():
    text = time_till_next_day()
    hours = int(text.split("</b>h")[0].removeprefix("<b>"))
    assert 0 <= hours <= 24


def test_full_name_with_last_name():
    assert get_full_name("John", "Doe") == "John Doe"


def test_full_name_without_last_name():
    assert get_full_name("John") == "John"
    assert get_full_name("John", None) == "John"