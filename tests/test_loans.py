import pytest

from growbot.chat_ids import ChatIdById
from growbot.chats import ChatNotFoundError
from growbot.database import RowCountError, open_database
from growbot.dicks import Dicks
from growbot.loans import Loans
from growbot.users import Users

UID = 12345
CHAT_ID = 67890
PAYOUT_RATIO = 0.1


@pytest.fixture
def conn():
    connection = open_database()
    Users(connection).create_or_update(UID, "test")
    Dicks(connection).create_or_grow(UID, ChatIdById(CHAT_ID), 0)
    yield connection
    connection.close()


def test_all(conn):
    chat_id = ChatIdById(CHAT_ID)
    value = 10
    loans = Loans(conn, PAYOUT_RATIO)

    assert loans.get_active_loan(UID, chat_id) is None

    loans.borrow(UID, chat_id, value)
    loan = loans.get_active_loan(UID, chat_id)
    assert loan.debt == value
    assert loan.payout_ratio == PAYOUT_RATIO

    assert Dicks(conn).fetch_length(UID, chat_id) == value

    half = value // 2
    loans.pay(UID, chat_id, half)
    assert loans.get_active_loan(UID, chat_id).debt == half

    loans.borrow(UID, chat_id, half)
    assert loans.get_active_loan(UID, chat_id).debt == value


def test_full_repayment_closes_the_loan(conn):
    chat_id = ChatIdById(CHAT_ID)
    loans = Loans(conn, PAYOUT_RATIO)
    loans.borrow(UID, chat_id, 10)
    loans.pay(UID, chat_id, 10)
    assert loans.get_active_loan(UID, chat_id) is None


def test_pay_without_loan(conn):
    with pytest.raises(RowCountError):
        Loans(conn, PAYOUT_RATIO).pay(UID, ChatIdById(CHAT_ID), 5)


def test_borrow_in_unknown_chat(conn):
    with pytest.raises(ChatNotFoundError):
        Loans(conn, PAYOUT_RATIO).borrow(UID, ChatIdById(CHAT_ID + 1), 5)