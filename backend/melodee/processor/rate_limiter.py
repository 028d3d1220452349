"""Token bucket limiting physical file moves per second."""
import logging
import threading
import time
from collections import deque
from typing import Optional

logger = logging.getLogger(__name__)


class TokenBucket:
    """Fixed-capacity token bucket refilled by a background timer.

    ``refill()`` only restores tokens whose grants are older than the
    interval, so at most ``capacity`` tokens are handed out in any rolling
    interval.

    Usage:
        with TokenBucket(capacity=10) as bucket:
            bucket.acquire()
            move_file(...)
    """

    def __init__(self, capacity: int, interval: float = 1.0):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if interval <= 0:
            raise ValueError("interval must be positive")

        self.capacity = capacity
        self.interval = interval
        self._tokens = capacity
        self._grants: deque[float] = deque()
        self._cond = threading.Condition()
        self._stop = threading.Event()
        self._timer: Optional[threading.Thread] = None

    @property
    def available(self) -> int:
        with self._cond:
            return self._tokens

    @property
    def running(self) -> bool:
        return self._timer is not None and self._timer.is_alive()

    def start(self) -> "TokenBucket":
        """Start the refill timer."""
        if self.running:
            return self
        self._stop.clear()
        self._timer = threading.Thread(target=self._run, name="token-bucket-refill", daemon=True)
        self._timer.start()
        return self

    def stop(self):
        """Stop the refill timer and wake any blocked callers."""
        self._stop.set()
        if self._timer is not None:
            self._timer.join()
            self._timer = None
        with self._cond:
            self._cond.notify_all()

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    def _run(self):
        while not self._stop.wait(self.interval):
            self.refill()

    def _expire(self, now: float):
        while self._grants and now - self._grants[0] >= self.interval:
            self._grants.popleft()

    def refill(self):
        """Top the bucket back up to capacity, minus grants still in the window."""
        with self._cond:
            self._expire(time.monotonic())
            self._tokens = self.capacity - len(self._grants)
            self._cond.notify_all()

    def acquire(self, cancel_event: Optional[threading.Event] = None) -> bool:
        """Block until a token is available.

        Returns:
            False if cancelled or the bucket was stopped while waiting
        """
        with self._cond:
            while True:
                if cancel_event is not None and cancel_event.is_set():
                    return False
                if self._tokens > 0:
                    self._tokens -= 1
                    self._grants.append(time.monotonic())
                    return True
                if self._stop.is_set():
                    return False
                self._cond.wait(timeout=self.interval)
                if not self.running:
                    # No timer: refill inline so callers never stall
                    self._expire(time.monotonic())
                    self._tokens = self.capacity - len(self._grants)
