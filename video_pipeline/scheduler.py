"""
Admission queue with a concurrency cap.

Requests wait in a FIFO list and are dispatched while fewer than
`max_concurrent` pipelines are in flight. A finished pipeline publishes a
"slot freed" signal; the dispatcher task consumes it and advances the queue,
so completions never re-enter the queue from inside a pipeline.
"""

import asyncio
import itertools
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Deque, Dict, List, Optional, Set

from video_pipeline.request import Request, RelayOutcome

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT = 3


class RequestState(Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class QueueSnapshot:
    """Point-in-time view of the queue for /queue and /stats."""
    waiting: List[Request]
    running: List[Request]
    max_concurrent: int


class AdmissionQueue:
    """
    Bounded-concurrency dispatcher for relay requests.

    enqueue() never blocks: it appends, launches whatever fits under the
    cap as background tasks and returns.
    """

    def __init__(
        self,
        runner: Callable[[Request], Awaitable[RelayOutcome]],
        store=None,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
    ):
        """
        Args:
            runner: Coroutine function executing one request (RelayPipeline.run)
            store: Optional ModerationStore, receives one record_outcome() per request
            max_concurrent: Maximum simultaneously running requests (at least 1)
        """
        self.runner = runner
        self.store = store
        self.max_concurrent = max(1, max_concurrent)
        self.waiting: Deque[Request] = deque()
        self.running: Dict[int, Request] = {}
        self._sequence = itertools.count(1)
        self._tasks: Set[asyncio.Task] = set()
        self._slot_freed: asyncio.Queue = asyncio.Queue()
        self._dispatcher: Optional[asyncio.Task] = None
        self._idle = asyncio.Event()
        self._idle.set()
        logger.info(f"[QUEUE] AdmissionQueue initialized with max_concurrent={self.max_concurrent}")

    @property
    def running_count(self) -> int:
        return len(self.running)

    def enqueue(self, request: Request) -> int:
        """
        Queue a request and dispatch it if a slot is free.

        Returns:
            0 if the request started immediately, otherwise its 1-based
            position in the waiting list
        """
        self._ensure_dispatcher()
        self._idle.clear()
        self.waiting.append(request)
        logger.info(
            f"[QUEUE] Enqueued request from user {request.user_id} "
            f"(waiting={len(self.waiting)}, running={len(self.running)}/{self.max_concurrent})"
        )
        self._advance()

        for position, waiting in enumerate(self.waiting, 1):
            if waiting is request:
                return position
        return 0

    def snapshot(self) -> QueueSnapshot:
        return QueueSnapshot(
            waiting=list(self.waiting),
            running=list(self.running.values()),
            max_concurrent=self.max_concurrent,
        )

    async def wait_idle(self) -> None:
        """Wait until nothing is waiting or running."""
        await self._idle.wait()

    async def shutdown(self) -> None:
        """Stop dispatching and cancel in-flight executions."""
        if self._dispatcher is not None:
            self._dispatcher.cancel()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if self._dispatcher is not None:
            await asyncio.gather(self._dispatcher, return_exceptions=True)
            self._dispatcher = None
        logger.info(f"[QUEUE] Shut down, {len(self.waiting)} request(s) dropped from queue")

    def _ensure_dispatcher(self) -> None:
        if self._dispatcher is None or self._dispatcher.done():
            self._dispatcher = asyncio.create_task(self._dispatch_loop())

    def _advance(self) -> None:
        while len(self.running) < self.max_concurrent and self.waiting:
            request = self.waiting.popleft()
            key = next(self._sequence)
            self.running[key] = request
            logger.info(
                f"[QUEUE] {RequestState.RUNNING.value}: user {request.user_id} "
                f"(running={len(self.running)}/{self.max_concurrent}, waiting={len(self.waiting)})"
            )
            task = asyncio.create_task(self._execute(key, request))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        if not self.waiting and not self.running:
            self._idle.set()

    async def _execute(self, key: int, request: Request) -> None:
        state = RequestState.FAILED
        try:
            outcome = await self.runner(request)
            if outcome is not None and outcome.success:
                state = RequestState.COMPLETED
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[QUEUE] Pipeline raised for user {request.user_id}: {type(e).__name__}: {e}", exc_info=True)
        finally:
            self.running.pop(key, None)
            if self.store is not None:
                self.store.record_outcome(state is RequestState.COMPLETED)
            logger.info(f"[QUEUE] {state.value}: user {request.user_id}")
            self._slot_freed.put_nowait(key)

    async def _dispatch_loop(self) -> None:
        while True:
            await self._slot_freed.get()
            self._advance()
