"""Cooperative scheduler for periodic background tasks.

Every task runs in its own loop on the event loop: wait, run one tick to
completion, wait again. A task therefore never overlaps with itself, while
different tasks interleave freely at their await points. Tick failures are
logged and the loop keeps going.

Time comes from an injectable Clock, so tests drive ticks with ManualClock
instead of sleeping on the wall clock.
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Protocol

logger = logging.getLogger(__name__)

TickFunc = Callable[[], Awaitable[Any]]


class Clock(Protocol):
    """Source of time for the scheduler and the signal engine."""

    def now(self) -> datetime:
        ...

    def monotonic(self) -> float:
        ...

    async def sleep(self, seconds: float) -> None:
        ...


class SystemClock:
    """Wall clock backed by asyncio.sleep."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class ManualClock:
    """Clock that only moves when advanced explicitly.

    Sleepers are woken in deadline order by ``advance``.
    """

    def __init__(self, start: datetime | None = None):
        self._start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._elapsed = 0.0
        self._sleepers: list[tuple[float, asyncio.Future]] = []

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)

    def monotonic(self) -> float:
        return self._elapsed

    @property
    def pending_sleepers(self) -> int:
        return sum(1 for _, fut in self._sleepers if not fut.done())

    async def sleep(self, seconds: float) -> None:
        future = asyncio.get_running_loop().create_future()
        self._sleepers.append((self._elapsed + max(seconds, 0.0), future))
        await future

    async def advance(self, seconds: float) -> None:
        """Move time forward, waking every sleeper whose deadline passes."""
        target = self._elapsed + seconds
        while True:
            await self._settle()
            due = [
                (deadline, fut)
                for deadline, fut in self._sleepers
                if deadline <= target and not fut.done()
            ]
            if not due:
                break
            deadline, future = min(due, key=lambda item: item[0])
            self._elapsed = max(self._elapsed, deadline)
            future.set_result(None)
            self._sleepers = [(d, f) for d, f in self._sleepers if not f.done()]
        self._elapsed = target
        await self._settle()

    @staticmethod
    async def _settle(rounds: int = 20) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)


class PeriodicTask:
    """A named tick function with its interval and run statistics."""

    def __init__(
        self,
        name: str,
        interval: float,
        func: TickFunc,
        clock: Clock,
        initial_delay: float | None = None,
    ):
        if interval <= 0:
            raise ValueError(f"Interval for task '{name}' must be positive, got {interval}")
        self.name = name
        self.interval = interval
        self.initial_delay = interval if initial_delay is None else initial_delay
        self.func = func
        self.clock = clock

        self.runs = 0
        self.failures = 0
        self.last_error: str | None = None
        self.last_run_at: datetime | None = None

        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        """True while a tick is in progress."""
        return self._lock.locked()

    async def run_once(self) -> bool:
        """
        Run one tick to completion.

        A concurrent call waits for the tick in progress before starting.

        Returns:
            True if the tick succeeded, False if it raised
        """
        async with self._lock:
            try:
                await self.func()
                self.runs += 1
                return True
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.failures += 1
                self.last_error = f"{type(e).__name__}: {e}"
                logger.warning(f"Task '{self.name}' tick failed: {self.last_error}")
                return False
            finally:
                self.last_run_at = self.clock.now()

    async def loop(self) -> None:
        """Run ticks forever, sleeping `interval` after each completed tick."""
        await self.clock.sleep(self.initial_delay)
        while True:
            await self.run_once()
            await self.clock.sleep(self.interval)


class Scheduler:
    """Drive independent periodic tasks on one event loop."""

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or SystemClock()
        self._tasks: dict[str, PeriodicTask] = {}
        self._loops: dict[str, asyncio.Task] = {}

    def add(
        self,
        name: str,
        interval: float,
        func: TickFunc,
        initial_delay: float | None = None,
    ) -> PeriodicTask:
        """Register a periodic task. Must be called before start()."""
        if name in self._tasks:
            raise ValueError(f"Task '{name}' is already registered")
        task = PeriodicTask(name, interval, func, self.clock, initial_delay)
        self._tasks[name] = task
        return task

    def get(self, name: str) -> PeriodicTask:
        return self._tasks[name]

    @property
    def tasks(self) -> list[PeriodicTask]:
        return list(self._tasks.values())

    @property
    def is_running(self) -> bool:
        return any(not t.done() for t in self._loops.values())

    async def tick(self, name: str) -> bool:
        """Run one tick of a task immediately (serialized with its loop)."""
        return await self._tasks[name].run_once()

    def start(self) -> None:
        """Start one loop per registered task. Idempotent."""
        for name, task in self._tasks.items():
            existing = self._loops.get(name)
            if existing and not existing.done():
                continue
            self._loops[name] = asyncio.create_task(task.loop(), name=f"scheduler:{name}")
            logger.info(f"Scheduled task '{name}' every {task.interval}s")

    async def stop(self) -> None:
        """Cancel all loops and wait for them to finish."""
        loops = list(self._loops.values())
        for loop_task in loops:
            loop_task.cancel()
        for loop_task in loops:
            try:
                await loop_task
            except asyncio.CancelledError:
                pass
        self._loops.clear()
        logger.info("Scheduler stopped")

    def status(self) -> list[dict]:
        """Run statistics per task."""
        return [
            {
                "name": t.name,
                "interval": t.interval,
                "runs": t.runs,
                "failures": t.failures,
                "last_error": t.last_error,
                "last_run_at": t.last_run_at.isoformat() if t.last_run_at else None,
                "running": t.running,
            }
            for t in self._tasks.values()
        ]
