"""Cancellable execution context passed to source values functions."""

import threading
import time
from typing import Optional

from .errors import ContextCancelledError, DeadlineExceededError


class RenderContext:
    """Cancellation signal and optional deadline for one render call.

    Contexts form a tree: cancelling a parent cancels every child, and a
    child's deadline never extends past its parent's.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        parent: Optional["RenderContext"] = None,
    ) -> None:
        """Initialize the context.

        Args:
            timeout: Seconds from now until the deadline, or None for no deadline
            parent: Context whose cancellation and deadline this one inherits
        """
        self._event = threading.Event()
        self._parent = parent

        deadline = time.monotonic() + timeout if timeout is not None else None
        if parent is not None and parent.deadline is not None:
            if deadline is None or parent.deadline < deadline:
                deadline = parent.deadline
        self._deadline = deadline

    @classmethod
    def background(cls) -> "RenderContext":
        """Return a context that is never cancelled and has no deadline."""
        return cls()

    def with_timeout(self, timeout: float) -> "RenderContext":
        """Derive a child context that expires after ``timeout`` seconds."""
        return RenderContext(timeout=timeout, parent=self)

    @property
    def deadline(self) -> Optional[float]:
        """Deadline on the ``time.monotonic`` clock, if any."""
        return self._deadline

    def cancel(self) -> None:
        """Cancel this context and all contexts derived from it."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_done(self) -> None:
        """Raise if the context has been cancelled or its deadline passed.

        Raises:
            ContextCancelledError: If the context was cancelled
            DeadlineExceededError: If the deadline has passed
        """
        if self.cancelled:
            raise ContextCancelledError("context cancelled")
        if self.expired:
            raise DeadlineExceededError("context deadline exceeded")
