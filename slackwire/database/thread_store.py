"""Thread storage: the durable, key-addressed session store."""
import asyncio
import inspect
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union
from slackwire.database.storage_backend import MemoryBackend, SQLBackend, StorageBackend
from slackwire.errors import StoreError
from slackwire.models.message import Message
from slackwire.models.session_key import normalize_coordinates, session_key
from slackwire.models.thread import Thread
from slackwire.utils.logging import get_logger

logger = get_logger(__name__)

IMMEDIATE = "immediate"
ENQUEUE = "enqueue"
APPEND_MODES = (IMMEDIATE, ENQUEUE)

AppendListener = Callable[[str, str], Union[None, Awaitable[None]]]

class ThreadStore:
    """Thread storage with pluggable backends.

    Without a database URL threads live in memory; with one they are stored
    through SQLAlchemy. Appends are serialized per store so sequence numbers
    follow receipt order.

    Usage:
        store = await ThreadStore.create("sqlite+aiosqlite:///threads.db")
        thread = await store.upsert(["slack", "C123", "1700000000.0001"])
        await store.append(thread.id, [message], mode="immediate")
    """

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url
        if database_url is None:
            self._backend: StorageBackend = MemoryBackend()
        else:
            self._backend = SQLBackend(database_url)
        self._initialized = False
        self._lock = asyncio.Lock()
        self._listeners: List[AppendListener] = []

    @classmethod
    async def create(cls, database_url: Optional[str] = None) -> "ThreadStore":
        """Create and initialize a store.

        Args:
            database_url: SQLAlchemy async URL, ":memory:" for in-memory SQLite,
                or None for the in-process backend

        Returns:
            An initialized ThreadStore

        Raises:
            StoreError: If the backend cannot be initialized
        """
        store = cls(database_url)
        await store.initialize()
        return store

    @property
    def engine(self):
        return getattr(self._backend, "engine", None)

    async def initialize(self) -> None:
        if self._initialized:
            return
        try:
            await self._backend.initialize()
        except Exception as e:
            raise StoreError(f"Failed to initialize thread store: {e}") from e
        self._initialized = True

    def add_listener(self, listener: AppendListener) -> None:
        """Subscribe to successful appends. Called with (thread_id, mode)."""
        self._listeners.append(listener)

    async def upsert(self, coordinates: Sequence[Any]) -> Thread:
        """Return the thread for these coordinates, creating it on first use."""
        await self.initialize()
        coordinates = normalize_coordinates(coordinates)
        key = session_key(coordinates)
        try:
            async with self._lock:
                thread = await self._backend.create_if_absent(Thread(key=key, coordinates=coordinates))
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to upsert thread {key}: {e}") from e
        logger.debug(f"Upserted thread {thread.id} for key {key}")
        return thread

    async def append(self, thread_id: str, messages: List[Message], mode: str = IMMEDIATE) -> Thread:
        """Append messages to a thread and notify listeners.

        Args:
            thread_id: Target thread
            messages: Messages in the order they were received
            mode: "immediate" for user-facing turns, "enqueue" when processing
                may be deferred or batched

        Returns:
            The updated thread

        Raises:
            ValueError: If mode is not a known append mode
            StoreError: If the backend fails or the thread does not exist
        """
        if mode not in APPEND_MODES:
            raise ValueError(f"Unknown append mode '{mode}', expected one of {APPEND_MODES}")
        thread = await self._append(thread_id, messages)
        logger.info(f"Appended {len(messages)} message(s) to thread {thread_id} ({mode})")
        await self._notify(thread_id, mode)
        return thread

    async def record(self, thread_id: str, messages: List[Message]) -> Thread:
        """Append messages without notifying listeners (used for turn output)."""
        return await self._append(thread_id, messages)

    async def get(self, thread_id: str) -> Optional[Thread]:
        await self.initialize()
        try:
            return await self._backend.get(thread_id)
        except Exception as e:
            raise StoreError(f"Failed to load thread {thread_id}: {e}") from e

    async def get_by_key(self, key: str) -> Optional[Thread]:
        await self.initialize()
        try:
            return await self._backend.get_by_key(key)
        except Exception as e:
            raise StoreError(f"Failed to load thread for key {key}: {e}") from e

    async def _append(self, thread_id: str, messages: List[Message]) -> Thread:
        await self.initialize()
        try:
            async with self._lock:
                return await self._backend.append(thread_id, messages)
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to append to thread {thread_id}: {e}") from e

    async def _notify(self, thread_id: str, mode: str) -> None:
        for listener in self._listeners:
            try:
                result = listener(thread_id, mode)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                # Listener errors never fail an append
                logger.error(f"Append listener failed for thread {thread_id}: {e}")
