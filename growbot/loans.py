"""Repository of loans of length."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from growbot.chat_ids import ChatIdKind
from growbot.chats import Chats
from growbot.database import FeatureToggles, ensure_one_row_updated

_CHAT_BY_ID = "(SELECT id FROM Chats WHERE CAST(chat_id AS TEXT) = :chat OR chat_instance = :chat)"
_MAX_DEBT = 65535


@dataclass(frozen=True)
class Loan:
    """An unpaid loan: the debt left and the share of growth paid out."""

    debt: int
    payout_ratio: float


def _loan_from_row(debt: int, payout_ratio: float) -> Loan:
    if not 0 <= debt <= _MAX_DEBT:
        raise ValueError(f"the debt is out of range: {debt}")
    return Loan(debt, payout_ratio)


class Loans:
    """Lends length and takes repayments."""

    def __init__(
        self, conn: sqlite3.Connection, payout_ratio: float, features: FeatureToggles | None = None
    ) -> None:
        self._conn = conn
        self._chats = Chats(conn, features)
        self._payout_ratio = payout_ratio

    def get_active_loan(self, uid: int, chat_id: ChatIdKind) -> Loan | None:
        """Return the user's unpaid loan in the chat, if any."""
        row = self._conn.execute(
            "SELECT debt, payout_ratio FROM Loans "
            f"WHERE uid = :uid AND chat_id = {_CHAT_BY_ID} AND repaid_at IS NULL",
            {"uid": uid, "chat": chat_id.value()},
        ).fetchone()
        return _loan_from_row(*row) if row else None

    def borrow(self, user_id: int, chat_id: ChatIdKind, value: int) -> None:
        """Lend the value: open or extend the loan and grow the length by it."""
        internal_id = self._chats.get_internal_id(chat_id)
        with self._conn:
            row = self._conn.execute(
                "SELECT id FROM Loans WHERE uid = ? AND chat_id = ? AND repaid_at IS NULL",
                (user_id, internal_id),
            ).fetchone()
            if row is None:
                cursor = self._conn.execute(
                    "INSERT INTO Loans (chat_id, uid, debt, payout_ratio) VALUES (?, ?, ?, ?)",
                    (internal_id, user_id, value, self._payout_ratio),
                )
            else:
                cursor = self._conn.execute(
                    "UPDATE Loans SET debt = debt + ?, payout_ratio = ? WHERE id = ?",
                    (value, self._payout_ratio, row[0]),
                )
            ensure_one_row_updated(cursor.rowcount)
            self._conn.execute(
                "UPDATE Dicks SET bonus_attempts = bonus_attempts + 1, length = length + ? "
                "WHERE chat_id = ? AND uid = ?",
                (value, internal_id, user_id),
            )

    def pay(self, uid: int, chat_id: ChatIdKind, value: int) -> None:
        """Reduce the debt of the active loan by the value."""
        with self._conn:
            cursor = self._conn.execute(
                "UPDATE Loans SET debt = debt - :value "
                f"WHERE uid = :uid AND chat_id = {_CHAT_BY_ID} AND repaid_at IS NULL",
                {"uid": uid, "chat": chat_id.value(), "value": value},
            )
            ensure_one_row_updated(cursor.rowcount)