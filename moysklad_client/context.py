"""Cancellation context passed to every request."""

from __future__ import annotations

import threading
import time

from .errors import CancelledError, DeadlineExceededError


class Context:
    """
    Carries a cancellation signal and an optional deadline.

    ``cancel()`` may be called from any thread. A request observes it before
    sending and while reading the response body, then raises CancelledError.
    A deadline also bounds the transport timeout of every request made under
    this context and raises DeadlineExceededError once passed.

    Usage:
        ctx = Context.with_timeout(30)
        page = service.get_list(params, ctx=ctx)

        # From another thread:
        ctx.cancel()
    """

    def __init__(self, deadline: float | None = None, parent: Context | None = None):
        self._event = threading.Event()
        self._deadline = deadline
        self._parent = parent
        if parent is not None and parent.deadline is not None:
            if self._deadline is None or parent.deadline < self._deadline:
                self._deadline = parent.deadline

    @classmethod
    def background(cls) -> Context:
        """Context that is never cancelled and has no deadline."""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float, parent: Context | None = None) -> Context:
        return cls(deadline=time.monotonic() + seconds, parent=parent)

    def child(self) -> Context:
        """Context cancelled together with this one, cancellable on its own."""
        return Context(parent=self)

    @property
    def deadline(self) -> float | None:
        """Deadline on the ``time.monotonic()`` clock."""
        return self._deadline

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent.cancelled if self._parent is not None else False

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def timeout_for(self, default: float) -> float:
        """Transport timeout for the next call: ``default`` capped by the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return default
        return min(default, remaining)

    def raise_if_done(self) -> None:
        """
        Raises:
            CancelledError: cancel() was called on this context or a parent
            DeadlineExceededError: The deadline has passed
        """
        if self.cancelled:
            raise CancelledError("Operation cancelled")
        if self.expired:
            raise DeadlineExceededError("Context deadline exceeded")

    def sleep(self, seconds: float) -> None:
        """Sleep that wakes up early on cancel and never outlives the deadline."""
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        if seconds > 0:
            if self._parent is None:
                self._event.wait(seconds)
            else:
                # Parent cancellation is only seen at short intervals
                end = time.monotonic() + seconds
                while not self.cancelled:
                    left = end - time.monotonic()
                    if left <= 0:
                        break
                    self._event.wait(min(left, 0.05))
        self.raise_if_done()
