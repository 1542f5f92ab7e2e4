"""Locks that keep one callback from being processed twice at once."""

from __future__ import annotations

import logging
import threading

from growbot.callbacks import CallbackData

log = logging.getLogger(__name__)


class NoOpGuard:
    """A guard that holds nothing."""

    def release(self) -> None:
        """Do nothing."""

    def __enter__(self) -> NoOpGuard:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


class InMemorySetGuard:
    """Holds a key in a shared set until released."""

    def __init__(self, keys: set[str], mutex: threading.Lock, key: str) -> None:
        self._keys = keys
        self._mutex = mutex
        self.key = key
        self._released = False
        log.debug("taking a lock guard: %s", self)

    def release(self) -> None:
        """Remove the key from the set; later calls do nothing."""
        if self._released:
            return
        self._released = True
        log.debug("dropping the lock guard: %s", self)
        with self._mutex:
            self._keys.discard(self.key)

    def __enter__(self) -> InMemorySetGuard:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    def __del__(self) -> None:
        self.release()

    def __str__(self) -> str:
        return f"InMemorySetGuard({self.key})"


class InMemoryLockService:
    """Locks callback data by its payload in a process-wide set."""

    def __init__(self) -> None:
        self._keys: set[str] = set()
        self._mutex = threading.Lock()

    def try_lock(self, callback_data: CallbackData) -> InMemorySetGuard | None:
        """Return a guard, or None if the same data is already locked."""
        key = str(callback_data)
        with self._mutex:
            if key in self._keys:
                log.debug("double attack on: %s", key)
                return None
            self._keys.add(key)
        return InMemorySetGuard(self._keys, self._mutex, key)


class LockServiceFacade:
    """Either locks callbacks in memory or lets everything through."""

    def __init__(self, service: InMemoryLockService | None = None) -> None:
        self._service = service

    @classmethod
    def from_config(cls, callback_locks: bool) -> LockServiceFacade:
        """Build the facade chosen by the feature toggle."""
        if callback_locks:
            log.info("LockCallbackService: in-memory")
            return cls(InMemoryLockService())
        log.info("LockCallbackService: none")
        return cls()

    def try_lock(self, callback_data: CallbackData) -> NoOpGuard | InMemorySetGuard | None:
        """Return a guard, or None if the data is locked already."""
        if self._service is None:
            return NoOpGuard()
        return self._service.try_lock(callback_data)