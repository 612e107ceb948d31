"""
Qt adapters for the canvas engine's frame scheduler and pointer listeners.
"""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QEvent, QObject, QTimer, Qt
from PySide6.QtGui import QMouseEvent, QWindow
from PySide6.QtWidgets import QApplication, QWidget

from render_canvas.core.graph import Point2D
from render_canvas.core.listeners import MoveHandler, ReleaseHandler


FRAME_INTERVAL_MS = 16


class QtFrameScheduler:
    """
    Runs each callback from a single-shot QTimer on the next frame.

    ``on_frame`` runs after every callback, typically a widget repaint.
    """

    def __init__(
        self,
        parent: QObject | None = None,
        interval_ms: int = FRAME_INTERVAL_MS,
        on_frame: Callable[[], None] | None = None,
    ):
        self._parent = parent
        self._interval_ms = interval_ms
        self._on_frame = on_frame

    def schedule(self, callback: Callable[[], None]) -> QTimer:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.setInterval(self._interval_ms)
        timer.timeout.connect(callback)
        if self._on_frame is not None:
            timer.timeout.connect(self._on_frame)
        timer.timeout.connect(timer.deleteLater)
        timer.start()
        return timer

    def cancel(self, handle: QTimer) -> None:
        if handle is None:
            return
        handle.stop()
        handle.deleteLater()


class ApplicationPointerHook(QObject):
    """
    Application-wide pointer listener for one gesture at a time.

    While attached, an event filter on the QApplication reports every left
    button move and release, in canvas coordinates, wherever the pointer
    is. Losing application focus counts as a release with no position.
    Only events addressed to top-level windows are inspected so each
    physical event is reported once.
    """

    def __init__(self, canvas: QWidget, on_event: Callable[[], None] | None = None):
        super().__init__(canvas)
        self._canvas = canvas
        self._on_event = on_event
        self._on_move: MoveHandler | None = None
        self._on_release: ReleaseHandler | None = None

    @property
    def is_attached(self) -> bool:
        return self._on_move is not None

    def attach(self, on_move: MoveHandler, on_release: ReleaseHandler) -> None:
        was_attached = self.is_attached
        self._on_move, self._on_release = on_move, on_release
        app = QApplication.instance()
        if not was_attached and app is not None:
            app.installEventFilter(self)

    def detach(self) -> None:
        if not self.is_attached:
            return
        self._on_move = None
        self._on_release = None
        app = QApplication.instance()
        if app is not None:
            app.removeEventFilter(self)

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:
        if not self.is_attached:
            return False

        etype = event.type()
        if etype == QEvent.Type.ApplicationDeactivate:
            self._release(None)
            return False

        if not isinstance(watched, QWindow) or not isinstance(event, QMouseEvent):
            return False

        if etype == QEvent.Type.MouseMove:
            self._on_move(self._to_canvas(event))
            self._notify()
        elif etype == QEvent.Type.MouseButtonRelease and event.button() == Qt.MouseButton.LeftButton:
            self._release(self._to_canvas(event))
        return False

    def _release(self, pos: Point2D | None) -> None:
        # The handler detaches this hook as part of ending its gesture
        self._on_release(pos)
        self._notify()

    def _notify(self) -> None:
        if self._on_event is not None:
            self._on_event()

    def _to_canvas(self, event: QMouseEvent) -> Point2D:
        local = self._canvas.mapFromGlobal(event.globalPosition())
        return Point2D(local.x(), local.y())
