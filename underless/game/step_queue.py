"""
Step Queue for the Under or Higher game.

Holds deferred state-machine steps (such as promoting the next pair after
the reveal pause) ordered by due time. Nothing here sleeps or spawns
threads: the owner polls with the current time and runs whatever is due.
"""

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class ScheduledStep:
    """
    A resumable step waiting for its due time.

    Attributes:
        name: Step name for logging ("promote", ...)
        due_at: Clock time at which the step may run
        action: Zero-argument callable run when the step fires
    """
    name: str
    due_at: float
    action: Callable[[], None] = field(repr=False)


class StepQueue:
    """
    Due-time ordered queue of ScheduledSteps.

    Steps with equal due times run in scheduling order.
    """

    def __init__(self):
        """Initialize the step queue."""
        self._heap: List[Tuple[float, int, ScheduledStep]] = []
        self._counter = itertools.count()

    def schedule(self, name: str, due_at: float, action: Callable[[], None]) -> ScheduledStep:
        """
        Add a step.

        Args:
            name: Step name
            due_at: Clock time at which it may run
            action: Callable to run

        Returns:
            The ScheduledStep
        """
        step = ScheduledStep(name=name, due_at=due_at, action=action)
        heapq.heappush(self._heap, (due_at, next(self._counter), step))
        logger.debug(f"Scheduled step: {name} due_at={due_at:.3f}")
        return step

    def pop_due(self, now: float) -> List[ScheduledStep]:
        """
        Remove and return every step due at or before `now`.

        Args:
            now: Current clock time

        Returns:
            Due steps in due-time order
        """
        due: List[ScheduledStep] = []
        while self._heap and self._heap[0][0] <= now:
            _, _, step = heapq.heappop(self._heap)
            due.append(step)
        return due

    def next_due(self) -> Optional[float]:
        """Due time of the earliest step, or None if empty."""
        if not self._heap:
            return None
        return self._heap[0][0]

    def clear(self) -> int:
        """
        Cancel every pending step.

        Returns:
            Number of steps cancelled
        """
        cancelled = len(self._heap)
        self._heap.clear()
        if cancelled:
            logger.debug(f"Cancelled {cancelled} pending step(s)")
        return cancelled
