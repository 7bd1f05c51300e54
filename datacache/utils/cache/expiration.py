"""
Eager expiration of cache entries.

The scheduler keeps exactly one pending expiration per key. Deadlines live
in a heap and a single daemon thread sleeps until the earliest one is due.
Cancelled handles stay in the heap and are skipped when popped, so a cancel
is O(1) and a reschedule is O(log n).

The scheduler shares its lock with the owning cache. Scheduling, cancelling
and firing therefore happen inside the same critical section as the entry
table mutations that trigger them.
"""

import heapq
import itertools
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Upper bound on a single worker sleep, so clock adjustments are noticed
MAX_WAIT_SECONDS = 60.0


class ExpirationHandle:
    """
    A cancellable deferred removal for one key.

    Attributes:
        key: Cache key the action removes
        deadline: Clock reading at or after which the action may fire
        token: Identity of the entry the action was scheduled for
        cancelled: True once cancelled or fired
    """

    __slots__ = ('key', 'deadline', 'token', 'cancelled')

    def __init__(self, key: str, deadline: float, token: Any):
        self.key = key
        self.deadline = deadline
        self.token = token
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "pending"
        return f"ExpirationHandle(key={self.key!r}, deadline={self.deadline:.3f}, {state})"


class ExpirationScheduler:
    """
    One cancellable deferred action per key, fired by a worker thread.

    Args:
        on_expire: Called as ``on_expire(key, token)`` when a handle fires.
            It runs with the lock held.
        clock: Monotonic time source, in seconds
        lock: Lock shared with the owning cache (a new ``RLock`` if omitted)
        autostart: Start the worker thread immediately. Without a worker,
            due actions only fire through ``run_pending()``.
    """

    def __init__(
        self,
        on_expire: Callable[[str, Any], None],
        clock: Callable[[], float] = time.monotonic,
        lock: Optional[threading.RLock] = None,
        autostart: bool = True
    ):
        self._on_expire = on_expire
        self._clock = clock
        self._lock = lock if lock is not None else threading.RLock()
        self._wakeup = threading.Condition(self._lock)
        self._handles: Dict[str, ExpirationHandle] = {}
        self._heap: List[Tuple[float, int, ExpirationHandle]] = []
        self._sequence = itertools.count()
        self._thread: Optional[threading.Thread] = None
        self._running = False

        if autostart:
            self.start()

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start the background worker thread if it is not running."""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._thread = threading.Thread(
                target=self._worker_loop,
                daemon=True,
                name="CacheExpirationThread"
            )
            self._thread.start()

    def shutdown(self, timeout: Optional[float] = 5.0) -> None:
        """
        Stop the worker thread and cancel every pending action.

        Args:
            timeout: Seconds to wait for the worker to exit
        """
        with self._lock:
            self._running = False
            self.cancel_all()
            self._wakeup.notify_all()
            thread = self._thread
            self._thread = None

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def schedule(self, key: str, delay: float, token: Any) -> ExpirationHandle:
        """
        Arrange for ``key`` to expire after ``delay`` seconds.

        Any pending action for ``key`` is cancelled first.

        Args:
            key: Cache key
            delay: Seconds from now
            token: Entry the action belongs to, handed back to ``on_expire``

        Returns:
            The new handle
        """
        with self._lock:
            self.cancel(key)

            handle = ExpirationHandle(key, self._clock() + max(0.0, delay), token)
            self._handles[key] = handle
            heapq.heappush(self._heap, (handle.deadline, next(self._sequence), handle))
            self._maybe_compact()

            # Wake the worker if this deadline is now the earliest
            if self._heap[0][2] is handle:
                self._wakeup.notify()

            return handle

    def cancel(self, key: str) -> bool:
        """
        Cancel the pending action for ``key``.

        Returns:
            True if an action was pending
        """
        with self._lock:
            handle = self._handles.pop(key, None)
            if handle is None:
                return False
            handle.cancel()
            return True

    def cancel_all(self) -> int:
        """Cancel every pending action and return how many there were."""
        with self._lock:
            count = len(self._handles)
            for handle in self._handles.values():
                handle.cancel()
            self._handles.clear()
            self._heap.clear()
            return count

    def get_handle(self, key: str) -> Optional[ExpirationHandle]:
        with self._lock:
            return self._handles.get(key)

    def next_deadline(self) -> Optional[float]:
        """Deadline of the earliest live action, or None if nothing is pending."""
        with self._lock:
            self._drop_cancelled_head()
            return self._heap[0][0] if self._heap else None

    def run_pending(self) -> int:
        """
        Fire every action whose deadline has passed.

        Returns:
            Number of actions fired
        """
        fired = 0
        with self._lock:
            now = self._clock()
            while self._heap and self._heap[0][0] <= now:
                _, _, handle = heapq.heappop(self._heap)
                if handle.cancelled:
                    continue

                handle.cancel()
                if self._handles.get(handle.key) is handle:
                    del self._handles[handle.key]

                self._on_expire(handle.key, handle.token)
                fired += 1

        return fired

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._handles

    def _drop_cancelled_head(self) -> None:
        while self._heap and self._heap[0][2].cancelled:
            heapq.heappop(self._heap)

    def _maybe_compact(self) -> None:
        # Rebuild once cancelled handles dominate the heap
        if len(self._heap) > 2 * len(self._handles) + 64:
            self._heap = [item for item in self._heap if not item[2].cancelled]
            heapq.heapify(self._heap)

    def _worker_loop(self) -> None:
        with self._wakeup:
            while self._running:
                try:
                    self.run_pending()
                except Exception as e:
                    logger.error(f"Error in cache expiration worker: {e}", exc_info=True)

                deadline = self.next_deadline()
                if deadline is None:
                    timeout = MAX_WAIT_SECONDS
                else:
                    timeout = min(MAX_WAIT_SECONDS, max(0.0, deadline - self._clock()))

                if self._running:
                    self._wakeup.wait(timeout)
