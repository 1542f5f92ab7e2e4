import sqlite3

import pytest

from growbot.chat_ids import ChatIdById
from growbot.database import open_database
from growbot.dicks import Dicks
from growbot.imports import ExternalUser, Import
from growbot.users import Users

UID = 12345
CHAT_ID = 67890
NAME = "test"


@pytest.fixture
def conn():
    connection = open_database()
    Users(connection).create_or_update(UID, NAME)
    Dicks(connection).create_or_grow(UID, ChatIdById(CHAT_ID), 0)
    yield connection
    connection.close()


def test_import(conn):
    imports = Import(conn)
    assert imports.get_imported_users(CHAT_ID) == []

    users = [ExternalUser(UID, 5)]
    imports.import_users(CHAT_ID, users)
    assert imports.get_imported_users(CHAT_ID) == users

    top = Dicks(conn).get_top(ChatIdById(CHAT_ID), 0, 2)
    assert len(top) == 1
    assert top[0].length == 5
    assert top[0].owner_name == NAME


def test_import_twice_fails_and_keeps_length(conn):
    imports = Import(conn)
    imports.import_users(CHAT_ID, [ExternalUser(UID, 5)])
    with pytest.raises(sqlite3.IntegrityError):
        imports.import_users(CHAT_ID, [ExternalUser(UID, 7)])
    assert Dicks(conn).fetch_length(UID, ChatIdById(CHAT_ID)) == 5