"""Aggregated load status of independently synced settings.

Each settings consumer registers a key, marks it loaded once its remote copy
arrives, and unregisters when it goes away. Listeners are told whenever the
aggregate "everything loaded" state may have changed. Instances are created
and passed explicitly; there is no process-wide registry.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

logger = structlog.get_logger()

SyncListener = Callable[[bool], None]


class SyncStatusAggregator:
    """Tracks which registered settings keys have finished loading."""

    def __init__(self) -> None:
        self._loaded: dict[str, bool] = {}
        self._listeners: list[SyncListener] = []

    def register(self, key: str) -> None:
        """Register a key as pending. Re-registering keeps its loaded state."""
        if key not in self._loaded:
            self._loaded[key] = False
            self._notify()

    def mark_loaded(self, key: str) -> None:
        """Mark a registered key as loaded; unknown keys are registered first."""
        if self._loaded.get(key) is True:
            return
        self._loaded[key] = True
        self._notify()

    def unregister(self, key: str) -> None:
        if self._loaded.pop(key, None) is not None:
            self._notify()

    def subscribe(self, listener: SyncListener) -> Callable[[], None]:
        """Add a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @property
    def pending(self) -> list[str]:
        return [key for key, loaded in self._loaded.items() if not loaded]

    @property
    def is_synced(self) -> bool:
        """True when every registered key is loaded (vacuously true if none)."""
        return all(self._loaded.values())

    def _notify(self) -> None:
        synced = self.is_synced
        logger.debug("sync_status_changed", synced=synced, pending=len(self.pending))
        for listener in list(self._listeners):
            listener(synced)
