"""
Client-side query cache.

Maps a query key to its last known result. Values are written in two ways:
optimistically through ``set`` and by fetching from the server through
``invalidate`` or background polling.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Hashable, Optional

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]


@dataclass
class QueryState:
    """Current state of one cached query."""

    data: Any = None
    error: Optional[Exception] = None
    # Bumped on every write so in-flight fetches can detect they are stale
    version: int = 0
    updated_at: Optional[datetime] = None
    is_fetching: bool = False


Listener = Callable[[Hashable, QueryState], None]


class QueryCache(ABC):
    """Port the reconciler uses to read, write, hold and watch cached query results."""

    @abstractmethod
    def register(self, key: Hashable, fetcher: Fetcher) -> None:
        """Register the coroutine function that loads a key from the server."""

    @abstractmethod
    def get_state(self, key: Hashable) -> QueryState:
        """Return the full state for a key."""

    @abstractmethod
    def get(self, key: Hashable) -> Any:
        """Return the cached value for a key, or None."""

    @abstractmethod
    def set(self, key: Hashable, value: Any) -> None:
        """Overwrite the cached value (optimistic update)."""

    @abstractmethod
    async def invalidate(self, key: Hashable) -> bool:
        """Force a refetch of the key. Returns True if fresh data was stored."""

    @abstractmethod
    async def refetch_in_background(self, key: Hashable) -> bool:
        """Refetch a key, dropping the result if a local write happened meanwhile."""

    @abstractmethod
    def hold(self, key: Hashable) -> None:
        """Mark a write as pending on the key."""

    @abstractmethod
    def release(self, key: Hashable) -> None:
        """Undo one ``hold``."""

    @abstractmethod
    def is_held(self, key: Hashable) -> bool:
        """Return True while any write is pending on the key."""

    @abstractmethod
    def subscribe(self, key: Hashable, listener: Listener) -> Callable[[], None]:
        """Watch a key's state. Returns an unsubscribe function."""

    @abstractmethod
    def start_polling(self, key: Hashable, interval: float) -> None:
        """Refetch a key in the background every ``interval`` seconds."""

    @abstractmethod
    async def stop_polling(self, key: Hashable) -> None:
        """Stop polling a key."""


class InMemoryQueryCache(QueryCache):
    """Query cache held in process memory with subscriptions and polling."""

    def __init__(self):
        self._states: dict[Hashable, QueryState] = {}
        self._fetchers: dict[Hashable, Fetcher] = {}
        self._listeners: dict[Hashable, list[Listener]] = {}
        self._holds: dict[Hashable, int] = {}
        self._polls: dict[Hashable, asyncio.Task] = {}

    def register(self, key: Hashable, fetcher: Fetcher) -> None:
        self._fetchers[key] = fetcher

    def get_state(self, key: Hashable) -> QueryState:
        # Unknown keys get an empty state
        if key not in self._states:
            self._states[key] = QueryState()
        return self._states[key]

    def get(self, key: Hashable) -> Any:
        return self.get_state(key).data

    def set(self, key: Hashable, value: Any) -> None:
        state = self.get_state(key)
        state.data = value
        state.error = None
        state.version += 1
        state.updated_at = datetime.utcnow()
        self._notify(key, state)

    async def invalidate(self, key: Hashable) -> bool:
        return await self._fetch(key, background=False)

    async def refetch_in_background(self, key: Hashable) -> bool:
        """
        Refetch a key without overriding newer local writes.

        The result is dropped if the key is held or was written while the
        fetch was running.
        """
        return await self._fetch(key, background=True)

    # Holds

    def hold(self, key: Hashable) -> None:
        """Suppress background refetch results for a key until released."""
        self._holds[key] = self._holds.get(key, 0) + 1

    def release(self, key: Hashable) -> None:
        count = self._holds.get(key, 0) - 1
        if count > 0:
            self._holds[key] = count
        else:
            self._holds.pop(key, None)

    def is_held(self, key: Hashable) -> bool:
        return self._holds.get(key, 0) > 0

    # Subscriptions

    def subscribe(self, key: Hashable, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` whenever the key's state changes. Returns an unsubscribe function."""
        self._listeners.setdefault(key, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _notify(self, key: Hashable, state: QueryState) -> None:
        for listener in list(self._listeners.get(key, [])):
            try:
                listener(key, state)
            except Exception as e:
                logger.error(f"Cache listener error for {key}: {e}")

    # Fetching

    async def _fetch(self, key: Hashable, background: bool) -> bool:
        fetcher = self._fetchers.get(key)
        if fetcher is None:
            logger.debug(f"No fetcher registered for {key}")
            return False

        state = self.get_state(key)
        started_version = state.version
        state.is_fetching = True

        try:
            data = await fetcher()
        except Exception as e:
            if background and self.is_held(key):
                logger.debug(f"Dropping failed background fetch for held key {key}: {e}")
                return False
            logger.error(f"Failed to fetch {key}: {e}")
            state.error = e
            self._notify(key, state)
            return False
        finally:
            state.is_fetching = False

        if background and (self.is_held(key) or state.version != started_version):
            logger.debug(f"Dropping stale background fetch for {key}")
            return False

        self.set(key, data)
        return True

    # Polling

    def start_polling(self, key: Hashable, interval: float) -> None:
        """Refetch a key in the background every ``interval`` seconds."""
        if key in self._polls and not self._polls[key].done():
            return

        self._polls[key] = asyncio.create_task(self._poll_loop(key, interval))
        logger.info(f"Polling {key} every {interval}s")

    async def stop_polling(self, key: Hashable) -> None:
        task = self._polls.pop(key, None)
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def close(self) -> None:
        """Stop all polling."""
        for key in list(self._polls):
            await self.stop_polling(key)

    async def _poll_loop(self, key: Hashable, interval: float) -> None:
        while True:
            try:
                await asyncio.sleep(interval)
                await self.refetch_in_background(key)
            except asyncio.CancelledError:
                break
