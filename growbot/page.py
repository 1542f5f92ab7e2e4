"""Page numbers for paginated listings."""

from __future__ import annotations

from dataclasses import dataclass


class InvalidPage(Exception):
    """A page could not be determined from the given input."""

    @classmethod
    def for_value(cls, value: str, msg: object) -> InvalidPage:
        """Build an error that names the offending value."""
        return cls(f"{msg}: {value}")


@dataclass(frozen=True, eq=False)
class Page:
    """A zero-based, non-negative page number."""

    number: int

    def __post_init__(self) -> None:
        if self.number < 0:
            raise ValueError(f"a page number cannot be negative: {self.number}")

    @classmethod
    def first(cls) -> Page:
        """Return the first page."""
        return cls(0)

    def __add__(self, other: int) -> Page:
        return Page(self.number + other)

    def __sub__(self, other: int) -> Page:
        return Page(self.number - other)

    def __mul__(self, other: int) -> int:
        return self.number * other

    @staticmethod
    def _number_of(other: object) -> int | None:
        if isinstance(other, Page):
            return other.number
        if isinstance(other, int) and not isinstance(other, bool):
            return other
        return None

    def __eq__(self, other: object) -> bool:
        number = self._number_of(other)
        if number is None:
            return NotImplemented
        return self.number == number

    def __hash__(self) -> int:
        return hash(self.number)

    def __lt__(self, other: object) -> bool:
        number = self._number_of(other)
        if number is None:
            return NotImplemented
        return self.number < number

    def __le__(self, other: object) -> bool:
        number = self._number_of(other)
        if number is None:
            return NotImplemented
        return self.number <= number

    def __gt__(self, other: object) -> bool:
        number = self._number_of(other)
        if number is None:
            return NotImplemented
        return self.number > number

    def __ge__(self, other: object) -> bool:
        number = self._number_of(other)
        if number is None:
            return NotImplemented
        return self.number >= number

    def __str__(self) -> str:
        return str(self.number)