import pytest

from growbot.chat_ids import ChatIdById
from growbot.database import open_database
from growbot.dicks import Dicks
from growbot.stats import PersonalStats, PersonalStatsRepo
from growbot.users import Users

UID = 12345
CHAT_ID = 67890


@pytest.fixture
def conn():
    connection = open_database()
    Users(connection).create_or_update(UID, "test")
    yield connection
    connection.close()


def test_all(conn):
    personal_stats = PersonalStatsRepo(conn)
    dicks = Dicks(conn)
    chat_1 = ChatIdById(CHAT_ID)
    chat_2 = ChatIdById(CHAT_ID + 1)

    assert personal_stats.get(UID) == PersonalStats(0, 0, 0)

    dicks.create_or_grow(UID, chat_1, 10)
    dicks.create_or_grow(UID, chat_2, 20)
    stats = personal_stats.get(UID)
    assert stats.chats == 2
    assert stats.max_length == 20
    assert stats.total_length == 30

    dicks.create_or_grow(UID, chat_1, -20)
    dicks.create_or_grow(UID, chat_2, -40)
    stats = personal_stats.get(UID)
    assert stats.max_length == -10
    assert stats.total_length == -30


def test_unknown_user(conn):
    assert PersonalStatsRepo(conn).get(UID + 100) == PersonalStats(0, 0, 0)