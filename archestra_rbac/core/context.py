"""Per-invocation cancellation and deadline handling."""
from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional

from .exceptions import OperationCancelled


class InvocationContext:
    """Carries the caller's cancellation signal and deadline into one invocation.

    The reconciler never invents a timeout; when the caller sets ``timeout`` the
    remaining time bounds every gateway call made during the invocation.

    Usage:
        ctx = InvocationContext(timeout=30)
        reconciler.read(state, ctx=ctx)

        # from another thread
        ctx.cancel()
    """

    def __init__(self, timeout: Optional[float] = None):
        self._cancelled = threading.Event()
        self._deadline: Optional[float] = time.monotonic() + timeout if timeout is not None else None
        self._callbacks: List[Callable[[], None]] = []
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when no deadline is set."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self) -> None:
        """Cancel the invocation and abort registered in-flight work."""
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback run once on cancel; returns an unregister function."""
        with self._lock:
            if not self._cancelled.is_set():
                self._callbacks.append(callback)

                def _unregister() -> None:
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)

                return _unregister
        callback()
        return lambda: None

    def check(self, operation: str = "", resource_kind: str = "") -> None:
        """Raise OperationCancelled if the invocation must stop."""
        if self.cancelled:
            raise OperationCancelled("Invocation cancelled", operation=operation, resource_kind=resource_kind)
        if self.expired:
            raise OperationCancelled("Invocation deadline exceeded", operation=operation, resource_kind=resource_kind)


def background() -> InvocationContext:
    """Return a fresh context with no deadline, for callers that have none."""
    return InvocationContext()
