"""Repository of promo codes and their activations."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

_ACTIVE_CODE = (
    "lower(code) = lower(:code) AND capacity > 0 AND "
    "(date('now') BETWEEN since AND until OR date('now') >= since AND until IS NULL)"
)


@dataclass(frozen=True)
class ActivationResult:
    """How many chats a promo code affected and by how much."""

    chats_affected: int
    bonus_length: int


class ActivationError(Exception):
    """A promo code could not be activated."""

    label = "other"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.label)


class NoActivationsLeft(ActivationError):
    """The code is unknown, expired or used up."""

    label = "no_activations_left"


class NoDicks(ActivationError):
    """The user has nothing to grow in any chat."""

    label = "no_dicks"


class AlreadyActivated(ActivationError):
    """The user has activated this code before."""

    label = "already_activated"


@dataclass(frozen=True)
class PromoCodeParams:
    """What a new promo code gives and how many times it may be used."""

    code: str
    bonus_length: int
    capacity: int


class Promo:
    """Creates and activates promo codes."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def create(self, params: PromoCodeParams) -> None:
        """Add a promo code valid from today on."""
        with self._conn:
            self._conn.execute(
                "INSERT INTO Promo_Codes (code, bonus_length, capacity) VALUES (?, ?, ?)",
                (params.code, params.bonus_length, params.capacity),
            )

    def activate(self, user_id: int, code: str) -> ActivationResult:
        """Grow every entry of the user by the code's bonus, once per user."""
        try:
            with self._conn:
                return self._activate(user_id, code)
        except sqlite3.Error as err:
            raise ActivationError(str(err)) from err

    def _activate(self, user_id: int, code: str) -> ActivationResult:
        row = self._conn.execute(
            f"SELECT code, bonus_length FROM Promo_Codes WHERE {_ACTIVE_CODE}", {"code": code}
        ).fetchone()
        if row is None:
            raise NoActivationsLeft()
        found_code, bonus_length = row
        taken = self._conn.execute(
            "UPDATE Promo_Codes SET capacity = capacity - 1 WHERE code = ? AND capacity > 0",
            (found_code,),
        ).rowcount
        if taken != 1:
            raise NoActivationsLeft()

        chats_affected = self._conn.execute(
            "UPDATE Dicks SET bonus_attempts = bonus_attempts + 1, length = length + ? WHERE uid = ?",
            (bonus_length, user_id),
        ).rowcount
        if chats_affected < 1:
            raise NoDicks()

        try:
            self._conn.execute(
                "INSERT INTO Promo_Code_Activations (uid, code, affected_chats) VALUES (?, ?, ?)",
                (user_id, found_code, chats_affected),
            )
        except sqlite3.IntegrityError as err:
            if "UNIQUE constraint failed" in str(err):
                raise AlreadyActivated() from err
            raise
        return ActivationResult(chats_affected, bonus_length)