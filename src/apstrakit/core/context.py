"""
Request context — cancellation flag plus optional deadline.

Every public operation takes a :class:`RequestContext` and hands it to the
request executor. Waits inside apstrakit go through :meth:`RequestContext.sleep`
so that cancellation interrupts them instead of running out the schedule.

Usage::

    ctx = RequestContext.with_timeout(30)
    rule_id = editor.insert_rule(ctx, policy_id, rule)

    # from another thread
    ctx.cancel()
"""

from __future__ import annotations

import threading
import time

from apstrakit.core.exceptions import DeadlineExceededError, OperationCancelledError


class RequestContext:
    """Cancellation / deadline carrier. Safe to share between threads."""

    __slots__ = ("_cancelled", "deadline")

    def __init__(self, deadline: float | None = None) -> None:
        # deadline is a time.monotonic() timestamp
        self.deadline = deadline
        self._cancelled = threading.Event()

    @classmethod
    def background(cls) -> RequestContext:
        """A context that is never done unless cancelled."""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> RequestContext:
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when there is no deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def raise_if_done(self) -> None:
        """
        Raises:
            OperationCancelledError: if :meth:`cancel` was called.
            DeadlineExceededError:   if the deadline has passed.
        """
        if self._cancelled.is_set():
            raise OperationCancelledError("request context cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise DeadlineExceededError("request context deadline exceeded")

    def sleep(self, seconds: float) -> None:
        """Block for ``seconds`` or until cancelled / past the deadline, whichever is first."""
        self.raise_if_done()
        if seconds <= 0:
            return
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            self._cancelled.wait(remaining)
        else:
            self._cancelled.wait(seconds)
        self.raise_if_done()
