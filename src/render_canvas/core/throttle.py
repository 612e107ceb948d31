"""
Frame Throttle - Apply at most one state change per rendering tick.

Pointer devices report far more often than the display refreshes. A
FrameThrottle keeps only the newest sample submitted since the last tick
and applies it when the tick fires, so the model never falls behind the
pointer and never updates faster than the screen can show.

The tick source is abstracted behind FrameScheduler; the Qt canvas uses a
single-shot timer and tests drive ticks by hand.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Protocol, TypeVar


T = TypeVar("T")


class FrameScheduler(Protocol):
    """Something that can run a callback on the next rendering tick."""

    def schedule(self, callback: Callable[[], None]) -> Any:
        """Arrange for ``callback`` to run once; return a cancel handle."""
        ...

    def cancel(self, handle: Any) -> None:
        """Cancel a callback that has not run yet."""
        ...


class ImmediateScheduler:
    """Runs callbacks synchronously. Useful headless and in scripts."""

    def schedule(self, callback: Callable[[], None]) -> Any:
        callback()
        return None

    def cancel(self, handle: Any) -> None:
        pass


class FrameThrottle(Generic[T]):
    """
    Coalesces samples so ``apply`` runs at most once per tick, always with
    the most recent sample.
    """

    def __init__(self, scheduler: FrameScheduler, apply: Callable[[T], None]):
        self._scheduler = scheduler
        self._apply = apply
        self._pending: T | None = None
        self._has_pending = False
        self._handle: Any = None
        self._scheduled = False

    @property
    def is_scheduled(self) -> bool:
        return self._scheduled

    def submit(self, sample: T) -> None:
        """Record ``sample``, replacing any not yet applied."""
        self._pending = sample
        self._has_pending = True
        if not self._scheduled:
            self._scheduled = True
            self._handle = self._scheduler.schedule(self._on_tick)

    def flush(self) -> None:
        """Cancel the scheduled tick and apply the pending sample now."""
        self.cancel()
        self._apply_pending()

    def cancel(self) -> None:
        """Cancel the scheduled tick, keeping any pending sample."""
        if self._scheduled:
            self._scheduled = False
            self._scheduler.cancel(self._handle)
            self._handle = None

    def discard(self) -> None:
        """Cancel the tick and forget the pending sample."""
        self.cancel()
        self._pending = None
        self._has_pending = False

    def _on_tick(self) -> None:
        self._scheduled = False
        self._handle = None
        self._apply_pending()

    def _apply_pending(self) -> None:
        if not self._has_pending:
            return
        sample = self._pending
        self._pending = None
        self._has_pending = False
        self._apply(sample)
