import sqlite3

import pytest

from growbot.announcements import Announcement, Announcements, AnnouncementsConfig
from growbot.chat_ids import ChatIdById
from growbot.database import open_database
from growbot.dicks import Dicks
from growbot.users import Users

UID = 12345
CHAT_ID = 67890
CHAT_ID_KIND = ChatIdById(CHAT_ID)


@pytest.fixture
def conn():
    connection = open_database()
    Users(connection).create_or_update(UID + 1, "Ann")
    Dicks(connection).create_or_grow(UID + 1, CHAT_ID_KIND, 1)
    yield connection
    connection.close()


def announcements_map(n):
    texts = {"en": f"test {n}", "ru": f"тест {n}"}
    return {
        lang: Announcement(text=text, hash=text.encode("utf-8"))
        for lang, text in texts.items()
    }


@pytest.mark.parametrize("attempts", [1, 2])
def test_configured(conn, attempts):
    for attempt in range(1, attempts + 1):
        config = AnnouncementsConfig(max_shows=1, announcements=announcements_map(attempt))
        repo = Announcements(conn, config)

        assert repo.get_new(CHAT_ID_KIND, "en") == f"test {attempt}"
        assert repo.get_new(CHAT_ID_KIND, "en") is None

        assert repo.get_new(CHAT_ID_KIND, "ru") == f"тест {attempt}"
        assert repo.get_new(CHAT_ID_KIND, "ru") is None


def test_no_announcements(conn):
    repo = Announcements(conn, AnnouncementsConfig(max_shows=1, announcements={}))
    assert repo.get_new(CHAT_ID_KIND, "en") is None

    repo = Announcements(conn, AnnouncementsConfig(max_shows=0, announcements=announcements_map(1)))
    assert repo.get_new(CHAT_ID_KIND, "en") is None


def test_shown_up_to_max_shows(conn):
    repo = Announcements(conn, AnnouncementsConfig(max_shows=3, announcements=announcements_map(1)))
    shown = [repo.get_new(CHAT_ID_KIND, "en") for _ in range(5)]
    assert shown == ["test 1", "test 1", "test 1", None, None]


def test_unsupported_language_falls_back_to_english(conn):
    repo = Announcements(conn, AnnouncementsConfig(max_shows=1, announcements=announcements_map(7)))
    assert repo.get_new(CHAT_ID_KIND, "de") == "test 7"
    assert repo.get_new(CHAT_ID_KIND, "en") is None


def test_config_get_by_language():
    config = AnnouncementsConfig(max_shows=1, announcements=announcements_map(2))
    assert config.get("ru").text == "тест 2"
    assert config.get("ru-RU").text == "тест 2"
    assert config.get("fr").text == "test 2"
    assert AnnouncementsConfig(max_shows=1).get("en") is None


def test_unknown_chat_raises(conn):
    repo = Announcements(conn, AnnouncementsConfig(max_shows=1, announcements=announcements_map(1)))
    with pytest.raises(sqlite3.IntegrityError):
        repo.get_new(ChatIdById(CHAT_ID + 100), "en")