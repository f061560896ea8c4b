# audio_annote/tasks.py
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from logging import getLogger
from typing import Any, Callable, Deque, Optional, Tuple

logger = getLogger(__name__)


@dataclass
class Task:
    fn: Callable[..., Any]
    args: Tuple[Any, ...] = ()
    key: Optional[str] = None
    cancelled: bool = False
    done: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class TaskQueue:
    """
    Single-threaded deferred work queue.

    Work submitted from inside an event handler runs on the next drain, never
    re-entrantly. ``wake`` is called once per submit while the queue is idle so
    the owner can schedule a drain (the application binds it to
    ``QTimer.singleShot(0, queue.run_pending)``); tests call ``run_pending``
    directly.
    """
    wake: Optional[Callable[[], None]] = None
    _pending: Deque[Task] = field(default_factory=deque)
    _draining: bool = False
    _wake_requested: bool = False

    def submit(self, fn: Callable[..., Any], *args: Any, key: Optional[str] = None) -> Task:
        task = Task(fn=fn, args=args, key=key)
        self._pending.append(task)
        if self.wake is not None and not self._wake_requested:
            self._wake_requested = True
            self.wake()
        return task

    def cancel(self, key: str) -> int:
        """Cancel every pending task submitted with ``key``; returns how many."""
        n = 0
        for task in self._pending:
            if task.key == key and not task.cancelled:
                task.cancel()
                n += 1
        if n:
            logger.debug("cancelled %d pending task(s) for %s", n, key)
        return n

    def pending(self) -> int:
        return sum(1 for t in self._pending if not t.cancelled)

    def run_pending(self) -> int:
        """Run the tasks queued before this call; returns how many ran."""
        self._wake_requested = False
        if self._draining:
            return 0

        batch = list(self._pending)
        self._pending.clear()
        ran = 0
        self._draining = True
        try:
            for i, task in enumerate(batch):
                if task.cancelled:
                    continue
                try:
                    task.fn(*task.args)
                except Exception:
                    # keep the rest of the batch for the next drain
                    self._pending.extendleft(reversed(batch[i + 1:]))
                    raise
                task.done = True
                ran += 1
        finally:
            self._draining = False

        # Work queued by the batch waits for the next drain.
        if self._pending and self.wake is not None and not self._wake_requested:
            self._wake_requested = True
            self.wake()
        return ran
