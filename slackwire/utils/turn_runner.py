"""Turn runner module.

Runs agent turns when threads receive new messages. Immediate appends start a
turn right away; enqueued appends go through a single background worker,
with repeated notifications for a thread that is still waiting coalesced
into one turn.
"""
import asyncio
import traceback
from typing import Optional, Set
from slackwire.database.thread_store import ENQUEUE, ThreadStore
from slackwire.errors import StoreError
from slackwire.models.agent import Agent, TurnResult
from slackwire.utils.logging import get_logger

logger = get_logger(__name__)

class TurnRunner:
    """Host side of the session store: turns appends into agent turns."""

    def __init__(self, store: ThreadStore, agent: Agent):
        self.store = store
        self.agent = agent
        self._queue: Optional[asyncio.Queue] = None
        self._pending: Set[str] = set()
        self._worker: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    def attach(self) -> "TurnRunner":
        """Subscribe to the store's appends."""
        self.store.add_listener(self.notify)
        return self

    @property
    def queue(self) -> asyncio.Queue:
        if self._queue is None:
            self._queue = asyncio.Queue()
        return self._queue

    def notify(self, thread_id: str, mode: str) -> None:
        """Store listener: schedule a turn for a thread that received messages."""
        if mode == ENQUEUE:
            self.enqueue(thread_id)
            return
        task = asyncio.create_task(self._run_safely(thread_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def enqueue(self, thread_id: str) -> None:
        if thread_id in self._pending:
            logger.debug(f"Thread {thread_id} already queued, coalescing")
            return
        self._pending.add(thread_id)
        self.queue.put_nowait(thread_id)
        logger.debug(f"Queued turn for thread {thread_id} ({self.queue.qsize()} waiting)")

    async def start(self) -> None:
        """Start the background worker for enqueued turns."""
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._work())
            logger.info("Turn runner started")

    async def stop(self) -> None:
        """Stop the worker and wait for in-flight immediate turns."""
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        logger.info("Turn runner stopped")

    async def drain(self) -> None:
        """Wait until queued and in-flight turns have finished."""
        if self._queue is not None:
            await self._queue.join()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _work(self) -> None:
        while True:
            thread_id = await self.queue.get()
            self._pending.discard(thread_id)
            try:
                await self._run_safely(thread_id)
            finally:
                self.queue.task_done()

    async def _run_safely(self, thread_id: str) -> Optional[TurnResult]:
        try:
            return await self.run_turn(thread_id)
        except Exception as e:
            logger.error(f"Unexpected error running turn for thread {thread_id}: {str(e)}")
            logger.error(traceback.format_exc())
            return None

    async def run_turn(self, thread_id: str) -> Optional[TurnResult]:
        """Run one turn over a thread's current messages and record the output.

        Args:
            thread_id: Thread to run

        Returns:
            The turn result, or None if the thread could not be loaded
        """
        try:
            thread = await self.store.get(thread_id)
        except StoreError as e:
            logger.error(f"Dropping turn for thread {thread_id}: {e}")
            return None
        if thread is None:
            logger.warning(f"Thread {thread_id} not found, skipping turn")
            return None

        trigger = thread.last_user_message()
        logger.info(f"Running turn for thread {thread_id} ({len(thread.messages)} messages)")
        result = await self.agent.go(thread.messages, trigger)

        if result.new_messages:
            try:
                await self.store.record(thread_id, result.new_messages)
            except StoreError as e:
                logger.error(f"Failed to record turn output for thread {thread_id}: {e}")

        if result.ok:
            logger.info(f"Turn for thread {thread_id} completed with {len(result.new_messages)} new messages")
        else:
            logger.error(f"Turn for thread {thread_id} failed: {result.error}")
        return result
