"""
Connection Renderer - Paints connection curves onto the canvas.

Each connection is drawn twice: a wide, fully transparent stroke covering
the clickable band, then the visible line on top. Hover and selection only
restyle the visible line. Curve shape and hit testing live in
``render_canvas.core.geometry``; this module only turns them into
QPainterPaths.
"""

from __future__ import annotations

from PySide6.QtCore import QPointF, Qt
from PySide6.QtGui import QColor, QPainter, QPainterPath, QPen

from render_canvas.core.geometry import (
    ConnectionCurve,
    HIT_STROKE_WIDTH,
    VISIBLE_STROKE_WIDTH,
)
from render_canvas.core.transform import CanvasTransform


CONNECTION_COLOR = QColor("#888888")
SELECTED_COLOR = QColor("#4a9eff")
PENDING_COLOR = QColor("#4a9eff")
HOVER_COLOR = QColor("#c0c0c0")

# The hit band is never painted visibly
HIT_BAND_ALPHA = 0


def line_pen(zoom: float, is_selected: bool = False, is_hovered: bool = False) -> QPen:
    """Pen for the visible stroke of a committed connection."""
    width = VISIBLE_STROKE_WIDTH * zoom
    if is_selected:
        return QPen(SELECTED_COLOR, width + 1)
    if is_hovered:
        return QPen(HOVER_COLOR, width + 1)
    return QPen(CONNECTION_COLOR, width)


def band_pen() -> QPen:
    """Pen for the invisible hit band, constant width on screen."""
    band = QColor(CONNECTION_COLOR)
    band.setAlpha(HIT_BAND_ALPHA)
    pen = QPen(band, HIT_STROKE_WIDTH)
    pen.setCapStyle(Qt.PenCapStyle.RoundCap)
    return pen


def curve_path(curve: ConnectionCurve, transform: CanvasTransform) -> QPainterPath:
    """Screen-space path for a world-space curve."""
    p0, p1, p2, p3 = (transform.world_to_screen(p) for p in curve.control_points())
    path = QPainterPath()
    path.moveTo(QPointF(p0.x, p0.y))
    path.cubicTo(QPointF(p1.x, p1.y), QPointF(p2.x, p2.y), QPointF(p3.x, p3.y))
    return path


class ConnectionRenderer:
    """Draws committed and pending connections."""

    def __init__(self, transform: CanvasTransform):
        self._transform = transform

    def draw(
        self,
        painter: QPainter,
        curve: ConnectionCurve,
        is_selected: bool = False,
        is_hovered: bool = False,
    ) -> None:
        path = curve_path(curve, self._transform)

        painter.save()
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.setPen(band_pen())
        painter.drawPath(path)
        painter.setPen(line_pen(self._transform.zoom, is_selected, is_hovered))
        painter.drawPath(path)
        painter.restore()

    def draw_pending(self, painter: QPainter, curve: ConnectionCurve) -> None:
        """The provisional link following the cursor."""
        painter.save()
        painter.setBrush(Qt.BrushStyle.NoBrush)
        pen = QPen(PENDING_COLOR, 2, Qt.PenStyle.DashLine)
        painter.setPen(pen)
        painter.drawPath(curve_path(curve, self._transform))
        painter.restore()
