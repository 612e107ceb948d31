"""
Pointer Listeners - The global pointer hook held during an active gesture.

Dragging, resizing and link creation need to see pointer motion and the
final release anywhere in the application, not only over the node that
started them. Each controller attaches exactly one listener pair when its
gesture starts and detaches it when the gesture ends, however it ends.
"""

from __future__ import annotations

from typing import Callable, Protocol

from render_canvas.core.graph import Point2D


MoveHandler = Callable[[Point2D], None]
ReleaseHandler = Callable[[Point2D | None], None]


class PointerListeners(Protocol):
    """Application-wide pointer hook (screen coordinates of the canvas)."""

    def attach(self, on_move: MoveHandler, on_release: ReleaseHandler) -> None:
        ...

    def detach(self) -> None:
        ...


class NullListeners:
    """Listener hook that does nothing; events are fed in directly."""

    def attach(self, on_move: MoveHandler, on_release: ReleaseHandler) -> None:
        pass

    def detach(self) -> None:
        pass
