"""
Canvas Transform - Mapping between world and screen coordinates.

World coordinates are the graph's logical space and do not change when the
user pans or zooms. Screen coordinates are pixels inside the canvas widget.

    screen = world * zoom + pan
    world  = (screen - pan) / zoom
"""

from __future__ import annotations

from dataclasses import dataclass

from render_canvas.core.graph import Point2D


MIN_ZOOM = 0.1
MAX_ZOOM = 5.0

# Zoom change per unit of wheel delta (one notch is 120 units in Qt)
WHEEL_ZOOM_SENSITIVITY = 0.001


def clamp_zoom(zoom: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, zoom))


@dataclass
class CanvasTransform:
    """Handles canvas pan and zoom transformations."""
    pan_x: float = 0.0
    pan_y: float = 0.0
    zoom: float = 1.0

    @property
    def pan(self) -> Point2D:
        return Point2D(self.pan_x, self.pan_y)

    def screen_to_world(self, point: Point2D) -> Point2D:
        """Convert screen coordinates to world coordinates."""
        return Point2D(
            (point.x - self.pan_x) / self.zoom,
            (point.y - self.pan_y) / self.zoom,
        )

    def world_to_screen(self, point: Point2D) -> Point2D:
        """Convert world coordinates to screen coordinates."""
        return Point2D(
            point.x * self.zoom + self.pan_x,
            point.y * self.zoom + self.pan_y,
        )

    def zoom_at(self, anchor: Point2D, new_zoom: float) -> None:
        """
        Change zoom keeping the world point under ``anchor`` fixed.

        ``new_zoom`` is clamped to [MIN_ZOOM, MAX_ZOOM] first; the pan is
        then rescaled about the anchor.
        """
        target = clamp_zoom(new_zoom)
        scale = target / self.zoom
        self.pan_x = anchor.x - (anchor.x - self.pan_x) * scale
        self.pan_y = anchor.y - (anchor.y - self.pan_y) * scale
        self.zoom = target

    def wheel_zoom(self, anchor: Point2D, delta: float) -> None:
        """Apply a wheel step; positive ``delta`` zooms in."""
        self.zoom_at(anchor, self.zoom + delta * WHEEL_ZOOM_SENSITIVITY)

    def pan_from(self, pan_start: Point2D, pointer_start: Point2D, pointer: Point2D) -> None:
        """Set pan to its gesture-start value offset by the pointer travel."""
        self.pan_x = pan_start.x + (pointer.x - pointer_start.x)
        self.pan_y = pan_start.y + (pointer.y - pointer_start.y)
