"""Random increments of length, adjusted by perks."""

from __future__ import annotations

import logging
import math
import os
import random
import sqlite3
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from growbot.chat_ids import ChatIdKind
from growbot.dicks import Dicks

log = logging.getLogger(__name__)

_rng = random.SystemRandom()

_I32 = (-(2**31), 2**31 - 1)
_U16 = (0, 2**16 - 1)

T = TypeVar("T")


def _env_value(key: str, default: T) -> T:
    """Read an environment variable as the type of the default."""
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        if isinstance(default, bool):
            lowered = raw.strip().lower()
            if lowered not in ("true", "false"):
                raise ValueError(f"not a boolean: {raw}")
            return lowered == "true"  # type: ignore[return-value]
        return type(default)(raw)  # type: ignore[call-arg]
    except ValueError:
        log.warning("invalid value of %s: %r; using the default %r", key, raw, default)
        return default


@dataclass(frozen=True)
class DickId:
    """A user's entry in a chat."""

    user_id: int
    chat_id: ChatIdKind

    def __str__(self) -> str:
        return f"(user_id={self.user_id}, chat_id={self.chat_id})"


@dataclass(frozen=True)
class ChangeIntent:
    """The current length and the base change that is about to be applied."""

    current_length: int
    base_increment: int


@dataclass
class Increment:
    """A base change, the contributions of perks and the resulting total."""

    base: int
    by_perks: dict[str, int] = field(default_factory=dict)
    total: int = 0


class Perk(ABC):
    """A modifier that adds to the base change of a length."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The perk's name, also used to disable it from the environment."""

    @abstractmethod
    def apply(self, dick_id: DickId, change_intent: ChangeIntent) -> int:
        """Return the additional change this perk contributes."""

    def enabled(self) -> bool:
        """Tell whether the perk is not disabled by DISABLE_<NAME>."""
        env_key = "DISABLE_" + self.name.upper().replace("-", "_")
        return not _env_value(env_key, False)


@dataclass(frozen=True)
class IncrementorConfig:
    """Ranges and ratios for generating increments."""

    growth_min: int = -5
    growth_max: int = 10
    grow_shrink_ratio: float = 0.5
    newcomers_grace_days: int = 7
    dod_bonus_max: int = 5

    @property
    def growth_range_min(self) -> int:
        """The lowest growth, or 0 if the range is empty."""
        return self.growth_min if self.growth_min <= self.growth_max else 0

    @property
    def growth_range_max(self) -> int:
        """The highest growth, or 0 if the range is empty."""
        return self.growth_max if self.growth_min <= self.growth_max else 0


def get_base_increment(low: int, high: int, sign_ratio: float) -> int:
    """Pick a non-zero value in [low, high]; positive with probability sign_ratio.

    If the range lies wholly above zero, any value of it is picked uniformly.
    """
    percent = min(max(math.floor(sign_ratio * 100.0 + 0.5), 0), 100)
    if low > 0:
        return _rng.randint(low, high)
    if _rng.randrange(100) < percent:
        return _rng.randint(1, high)
    return _rng.randint(low, -1)


class Incrementor:
    """Generates growth and dick-of-the-day increments and applies perks."""

    def __init__(
        self, config: IncrementorConfig, dicks: Dicks, perks: Iterable[Perk] = ()
    ) -> None:
        self.config = config
        self._dicks = dicks
        self._perks = list(perks)

    @classmethod
    def from_env(cls, dicks: Dicks, perks: Iterable[Perk]) -> Incrementor:
        """Build from environment variables, keeping only enabled perks."""
        config = IncrementorConfig(
            growth_min=_env_value("GROWTH_MIN", -5),
            growth_max=_env_value("GROWTH_MAX", 10),
            grow_shrink_ratio=_env_value("GROW_SHRINK_RATIO", 0.5),
            newcomers_grace_days=_env_value("NEWCOMERS_GRACE_DAYS", 7),
            dod_bonus_max=_env_value("GROWTH_DOD_BONUS_MAX", 5),
        )
        return cls(config, dicks, [perk for perk in perks if perk.enabled()])

    def find_perk_config(self, perk_type: type[Perk]) -> Any:
        """Return the configuration of the first perk of this type, if any."""
        for perk in self._perks:
            if isinstance(perk, perk_type):
                return perk.get_config()  # type: ignore[attr-defined]
        return None

    def growth_increment(
        self, user_id: int, chat_id: ChatIdKind, days_since_registration: int
    ) -> Increment:
        """Generate a growth; newcomers within the grace period only grow."""
        if days_since_registration > self.config.newcomers_grace_days:
            ratio = self.config.grow_shrink_ratio
        else:
            ratio = 1.0
        base = get_base_increment(self.config.growth_min, self.config.growth_max, ratio)
        return self._add_additional(DickId(user_id, chat_id), base, _I32)

    def dod_increment(self, user_id: int, chat_id: ChatIdKind) -> Increment:
        """Generate the bonus of the dick of the day."""
        base = _rng.randint(1, self.config.dod_bonus_max)
        return self._add_additional(DickId(user_id, chat_id), base, _U16)

    def _add_additional(self, dick: DickId, base: int, bounds: tuple[int, int]) -> Increment:
        try:
            current_length = self._dicks.fetch_length(dick.user_id, dick.chat_id)
        except sqlite3.Error as err:
            log.error("couldn't fetch the length of a dick: %s", err)
            return Increment(base, {}, base)
        intent = ChangeIntent(current_length=current_length, base_increment=base)

        additional = 0
        by_perks: dict[str, int] = {}
        for perk in self._perks:
            change = perk.apply(dick, intent)
            if change:
                by_perks[perk.name] = change
            additional += change

        total = base + additional
        low, high = bounds
        if not (_I32[0] <= total <= _I32[1] and low <= total <= high):
            log.error(
                "overflow on increment calculation for %s: base=%s, additional=%s",
                dick, base, additional,
            )
            total = base

        if base == total and additional != 0:
            log.info("The following perks affected the calculation: %s", by_perks)
            by_perks.clear()

        return Increment(base, by_perks, total)