"""
Request-scoped deadline and cancellation.

A RequestContext is created per incoming request and handed to every store
and file operation. Store calls check it before running and interrupt
in-flight sqlite statements once it is cancelled or past its deadline.
"""
import threading
import time
from contextlib import contextmanager
from typing import Optional

from core.config import REQUEST_TIMEOUT_SEC
from core.errors import DeadlineExceededError, RequestCancelledError


class RequestContext:
    """Deadline plus cancellation flag shared by all work done for one request."""

    def __init__(self, timeout: Optional[float] = REQUEST_TIMEOUT_SEC):
        self.deadline = time.monotonic() + timeout if timeout is not None else None
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def done(self) -> bool:
        """True once the context is cancelled or its deadline has passed."""
        return self.cancelled or self.expired

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self) -> None:
        """Raise if no further work should be started for this request."""
        if self.cancelled:
            raise RequestCancelledError()
        if self.expired:
            raise DeadlineExceededError()


def background_context() -> RequestContext:
    """Context with no deadline, for startup tasks and scripts."""
    return RequestContext(timeout=None)


@contextmanager
def request_scope(timeout: Optional[float] = REQUEST_TIMEOUT_SEC):
    """
    Yield a fresh RequestContext and cancel it on exit.

    Anything still running on behalf of the request when the scope closes
    sees the cancellation at its next check.
    """
    ctx = RequestContext(timeout)
    try:
        yield ctx
    finally:
        ctx.cancel()
