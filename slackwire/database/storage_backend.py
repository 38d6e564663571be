"""Storage backends for the thread store."""
from abc import ABC, abstractmethod
from datetime import datetime, UTC
from typing import Dict, List, Optional
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import selectinload
from sqlalchemy.pool import StaticPool
from slackwire.database.models import Base, MessageRecord, ThreadRecord
from slackwire.errors import ThreadNotFoundError
from slackwire.models.message import Message
from slackwire.models.thread import Thread
from slackwire.utils.logging import get_logger

logger = get_logger(__name__)

class StorageBackend(ABC):
    """Persistence operations the ThreadStore needs."""

    @abstractmethod
    async def initialize(self) -> None:
        pass

    @abstractmethod
    async def get(self, thread_id: str) -> Optional[Thread]:
        pass

    @abstractmethod
    async def get_by_key(self, key: str) -> Optional[Thread]:
        pass

    @abstractmethod
    async def create_if_absent(self, thread: Thread) -> Thread:
        """Insert the thread unless one with the same key exists; return the stored thread."""

    @abstractmethod
    async def append(self, thread_id: str, messages: List[Message]) -> Thread:
        """Append messages after the thread's last sequence number."""

class MemoryBackend(StorageBackend):
    """In-process backend. Returned threads are copies, never the stored objects."""

    def __init__(self):
        self._threads: Dict[str, Thread] = {}
        self._keys: Dict[str, str] = {}

    async def initialize(self) -> None:
        pass

    async def get(self, thread_id: str) -> Optional[Thread]:
        thread = self._threads.get(thread_id)
        return thread.model_copy(deep=True) if thread else None

    async def get_by_key(self, key: str) -> Optional[Thread]:
        thread_id = self._keys.get(key)
        return await self.get(thread_id) if thread_id else None

    async def create_if_absent(self, thread: Thread) -> Thread:
        if thread.key not in self._keys:
            self._threads[thread.id] = thread.model_copy(deep=True)
            self._keys[thread.key] = thread.id
        return await self.get_by_key(thread.key)

    async def append(self, thread_id: str, messages: List[Message]) -> Thread:
        thread = self._threads.get(thread_id)
        if thread is None:
            raise ThreadNotFoundError(f"Thread {thread_id} not found")
        for message in messages:
            thread.add_message(message.model_copy(deep=True))
        return thread.model_copy(deep=True)

class SQLBackend(StorageBackend):
    """SQLAlchemy backend over an async driver (aiosqlite, asyncpg, ...)."""

    def __init__(self, database_url: str):
        if database_url == ":memory:":
            database_url = "sqlite+aiosqlite:///:memory:"
        self.database_url = database_url
        engine_kwargs = {}
        if database_url.endswith(":memory:"):
            # One shared connection, otherwise every checkout sees an empty database
            engine_kwargs = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._sessionmaker = async_sessionmaker(self.engine, expire_on_commit=False)

    async def initialize(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"SQL backend initialized at {self.engine.url.render_as_string(hide_password=True)}")

    async def _get_session(self) -> AsyncSession:
        return self._sessionmaker()

    async def get(self, thread_id: str) -> Optional[Thread]:
        session = await self._get_session()
        async with session:
            record = await session.get(
                ThreadRecord, thread_id, options=[selectinload(ThreadRecord.messages)]
            )
            return self._to_thread(record) if record else None

    async def get_by_key(self, key: str) -> Optional[Thread]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(ThreadRecord)
                .where(ThreadRecord.key == key)
                .options(selectinload(ThreadRecord.messages))
            )
            record = result.scalar_one_or_none()
            return self._to_thread(record) if record else None

    async def create_if_absent(self, thread: Thread) -> Thread:
        existing = await self.get_by_key(thread.key)
        if existing:
            return existing
        session = await self._get_session()
        try:
            async with session.begin():
                session.add(ThreadRecord(
                    id=thread.id,
                    key=thread.key,
                    coordinates=thread.coordinates,
                    created_at=thread.created_at,
                    updated_at=thread.updated_at,
                ))
        except IntegrityError:
            # Another writer inserted the same key first
            logger.debug(f"Thread key {thread.key} created concurrently, reusing existing row")
        finally:
            await session.close()
        return await self.get_by_key(thread.key)

    async def append(self, thread_id: str, messages: List[Message]) -> Thread:
        session = await self._get_session()
        async with session:
            async with session.begin():
                record = await session.get(ThreadRecord, thread_id)
                if record is None:
                    raise ThreadNotFoundError(f"Thread {thread_id} not found")
                result = await session.execute(
                    select(func.coalesce(func.max(MessageRecord.sequence), 0))
                    .where(MessageRecord.thread_id == thread_id)
                )
                sequence = result.scalar_one()
                for message in messages:
                    sequence += 1
                    session.add(MessageRecord(
                        id=message.id,
                        thread_id=thread_id,
                        sequence=sequence,
                        role=message.role,
                        parts=[part.model_dump(mode="json") for part in message.parts],
                        message_metadata=message.metadata,
                        timestamp=message.timestamp,
                    ))
                record.updated_at = datetime.now(UTC)
        return await self.get(thread_id)

    @staticmethod
    def _to_thread(record: ThreadRecord) -> Thread:
        return Thread(
            id=record.id,
            key=record.key,
            coordinates=record.coordinates or [],
            created_at=record.created_at,
            updated_at=record.updated_at,
            messages=[
                Message(
                    id=m.id,
                    role=m.role,
                    parts=m.parts or [],
                    metadata=m.message_metadata,
                    sequence=m.sequence,
                    timestamp=m.timestamp,
                )
                for m in record.messages
            ],
        )
