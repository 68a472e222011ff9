import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple

# A transition may hand back follow-up steps, which run before anything queued after it.
Transition = Callable[[], Awaitable[Optional[List["Step"]]]]
Step = Tuple[float, Transition]


class TransitionScheduler:
    """Runs the timed transitions of one room, one at a time and in order.

    Each step waits for its delay, then takes the room lock and runs its
    transition against the current room state. Nothing runs once the
    scheduler has been closed. When a transition raises, the remaining
    steps are dropped and ``on_failure`` is awaited outside the lock.
    """

    def __init__(
        self,
        name: str,
        lock: asyncio.Lock,
        on_failure: Callable[[], Awaitable[None]] | None = None,
    ):
        self.name = name
        self.lock = lock
        self.on_failure = on_failure
        self.closed = False
        self._steps: deque[Step] = deque()
        self._task: asyncio.Task | None = None

    def run(self, steps: Iterable[Step]) -> None:
        """Queue steps and start the driver task if it is not running

        Args:
            steps (Iterable[Step]): (delay in seconds, transition) pairs
        """
        if self.closed:
            return
        self._steps.extend(steps)
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._drive())

    def pending(self) -> int:
        return len(self._steps)

    async def _drive(self):
        while self._steps:
            delay, transition = self._steps.popleft()
            await asyncio.sleep(delay)
            async with self.lock:
                if self.closed:
                    return
                try:
                    follow_up = await transition()
                except Exception:
                    logging.exception(f"Transition failed in {self.name}")
                    self._steps.clear()
                    break
            if follow_up:
                self._steps.extendleft(reversed(follow_up))
        else:
            logging.debug(f"Scheduler idle: {self.name}")
            return
        if self.on_failure is not None:
            await self.on_failure()

    async def wait_idle(self):
        """Wait until every queued step, follow-ups included, has run."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    def close(self):
        """Drop pending steps; a transition already running finishes first."""
        self.closed = True
        self._steps.clear()
        if (
            self._task is not None
            and not self._task.done()
            and self._task is not asyncio.current_task()
        ):
            self._task.cancel()
