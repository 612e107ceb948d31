"""
Canvas Geometry - Connection curves, handle positions and hit testing.

Connections are drawn as horizontal-tangent cubic beziers. Each one has a
wide invisible hit stroke under the visible line; selection clicks test
against the wide stroke, whose width is constant in screen pixels so links
stay easy to pick at any zoom.

Everything here works in world coordinates unless a name says otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

import numpy as np
from numpy.typing import NDArray

from render_canvas.core.graph import Connection, ConnectionId, Node, NodeGraph, Point2D
from render_canvas.core.links import HandleRef, HandleType, PendingLink
from render_canvas.core.transform import CanvasTransform


# Layout constants (world units unless noted)
HEADER_HEIGHT = 44.0
RESIZE_GRIP_SIZE = 24.0
CLOSE_BUTTON_SIZE = 20.0
CLOSE_BUTTON_MARGIN = 10.0
PREVIEW_MARGIN = 10.0
HANDLE_RADIUS = 6.0
HANDLE_HIT_RADIUS = 10.0      # screen pixels
HIT_STROKE_WIDTH = 20.0       # screen pixels
VISIBLE_STROKE_WIDTH = 3.0
MIN_CONTROL_OFFSET = 50.0
CURVE_SAMPLES = 48


class NodeRegion(Enum):
    """Part of a node under the pointer."""
    HEADER = auto()
    BODY = auto()
    RESIZE_GRIP = auto()
    CLOSE_BUTTON = auto()


@dataclass(frozen=True)
class ConnectionCurve:
    """Cubic bezier from a source handle to a target handle."""
    x1: float
    y1: float
    x2: float
    y2: float

    @classmethod
    def between(cls, start: Point2D, end: Point2D) -> ConnectionCurve:
        return cls(start.x, start.y, end.x, end.y)

    @property
    def control_offset(self) -> float:
        return max(abs(self.x2 - self.x1) * 0.5, MIN_CONTROL_OFFSET)

    def control_points(self) -> tuple[Point2D, Point2D, Point2D, Point2D]:
        """Start, first control, second control, end."""
        offset = self.control_offset
        return (
            Point2D(self.x1, self.y1),
            Point2D(self.x1 + offset, self.y1),
            Point2D(self.x2 - offset, self.y2),
            Point2D(self.x2, self.y2),
        )

    def sample(self, count: int = CURVE_SAMPLES) -> NDArray[np.float64]:
        """Points along the curve as an array of shape (count, 2)."""
        p0, p1, p2, p3 = (np.array([p.x, p.y]) for p in self.control_points())
        t = np.linspace(0.0, 1.0, count)[:, None]
        u = 1.0 - t
        return (u ** 3) * p0 + 3 * (u ** 2) * t * p1 + 3 * u * (t ** 2) * p2 + (t ** 3) * p3

    def midpoint(self) -> Point2D:
        x, y = self.sample(3)[1]
        return Point2D(float(x), float(y))

    def distance_to(self, point: Point2D) -> float:
        """Shortest distance from ``point`` to the sampled curve."""
        pts = self.sample()
        a = pts[:-1]
        ab = pts[1:] - a
        p = np.array([point.x, point.y])
        length_sq = np.einsum("ij,ij->i", ab, ab)
        safe = np.where(length_sq == 0.0, 1.0, length_sq)
        t = np.clip(np.einsum("ij,ij->i", p - a, ab) / safe, 0.0, 1.0)
        closest = a + t[:, None] * ab
        return float(np.min(np.linalg.norm(closest - p, axis=1)))

    def hit_test(self, point: Point2D, stroke_width: float) -> bool:
        """Whether ``point`` falls inside a stroke of ``stroke_width``."""
        return self.distance_to(point) <= stroke_width / 2.0


# --- Handles ---

def handle_position(node: Node, handle_type: HandleType) -> Point2D:
    """Handles sit at the vertical middle of the node's left/right edge."""
    y = node.position.y + node.height / 2.0
    if handle_type is HandleType.SOURCE:
        return Point2D(node.position.x + node.width, y)
    return Point2D(node.position.x, y)


def node_handles(node: Node) -> list[HandleType]:
    handles = []
    if node.kind.has_source_handle:
        handles.append(HandleType.SOURCE)
    if node.kind.has_target_handle:
        handles.append(HandleType.TARGET)
    return handles


def connection_curve(graph: NodeGraph, conn: Connection) -> ConnectionCurve | None:
    """The curve for ``conn``, or None if an endpoint is gone."""
    source = graph.get_node(conn.source)
    target = graph.get_node(conn.target)
    if source is None or target is None:
        return None
    return ConnectionCurve.between(
        handle_position(source, HandleType.SOURCE),
        handle_position(target, HandleType.TARGET),
    )


def pending_curve(graph: NodeGraph, pending: PendingLink) -> ConnectionCurve | None:
    """Provisional curve between the start handle and the cursor."""
    node = graph.get_node(pending.start_node_id)
    if node is None:
        return None
    anchor = handle_position(node, pending.start_handle_type)
    if pending.start_handle_type is HandleType.SOURCE:
        return ConnectionCurve.between(anchor, pending.cursor_world)
    # Dragging out of an input: the cursor plays the source end
    return ConnectionCurve.between(pending.cursor_world, anchor)


def close_button_rect(node: Node) -> tuple[float, float, float, float]:
    """World rect (x, y, width, height) of the delete button in the header."""
    x = node.position.x + node.width - CLOSE_BUTTON_MARGIN - CLOSE_BUTTON_SIZE
    y = node.position.y + (HEADER_HEIGHT - CLOSE_BUTTON_SIZE) / 2.0
    return x, y, CLOSE_BUTTON_SIZE, CLOSE_BUTTON_SIZE


def preview_rect(node: Node) -> tuple[float, float, float, float]:
    """World rect of the image preview area below the header."""
    x = node.position.x + PREVIEW_MARGIN
    y = node.position.y + HEADER_HEIGHT + PREVIEW_MARGIN
    width = node.width - 2 * PREVIEW_MARGIN
    height = node.height - HEADER_HEIGHT - 2 * PREVIEW_MARGIN - RESIZE_GRIP_SIZE / 2.0
    return x, y, max(width, 0.0), max(height, 0.0)


# --- Hit testing (screen-space queries) ---

def handle_at(graph: NodeGraph, transform: CanvasTransform, screen: Point2D) -> HandleRef | None:
    """The handle under a screen point, topmost node first."""
    world = transform.screen_to_world(screen)
    radius = HANDLE_HIT_RADIUS / transform.zoom
    for node in reversed(list(graph.nodes.values())):
        for handle_type in node_handles(node):
            pos = handle_position(node, handle_type)
            if np.hypot(world.x - pos.x, world.y - pos.y) <= radius:
                return HandleRef(node.id, handle_type)
    return None


def node_at(graph: NodeGraph, transform: CanvasTransform, screen: Point2D) -> tuple[Node, NodeRegion] | None:
    """The topmost node under a screen point and which part was hit."""
    world = transform.screen_to_world(screen)
    for node in reversed(list(graph.nodes.values())):
        left, top = node.position.x, node.position.y
        right, bottom = left + node.width, top + node.height
        if not (left <= world.x <= right and top <= world.y <= bottom):
            continue
        if world.x >= right - RESIZE_GRIP_SIZE and world.y >= bottom - RESIZE_GRIP_SIZE:
            return node, NodeRegion.RESIZE_GRIP
        if world.y <= top + HEADER_HEIGHT:
            bx, by, bw, bh = close_button_rect(node)
            if bx <= world.x <= bx + bw and by <= world.y <= by + bh:
                return node, NodeRegion.CLOSE_BUTTON
            return node, NodeRegion.HEADER
        return node, NodeRegion.BODY
    return None


def preview_at(graph: NodeGraph, transform: CanvasTransform, screen: Point2D) -> Node | None:
    """The topmost node whose preview area is under a screen point."""
    hit = node_at(graph, transform, screen)
    if hit is None or hit[1] is not NodeRegion.BODY:
        return None
    node = hit[0]
    world = transform.screen_to_world(screen)
    x, y, w, h = preview_rect(node)
    if x <= world.x <= x + w and y <= world.y <= y + h:
        return node
    return None


def connection_at(graph: NodeGraph, transform: CanvasTransform, screen: Point2D) -> ConnectionId | None:
    """The connection whose wide hit stroke contains a screen point."""
    world = transform.screen_to_world(screen)
    width = HIT_STROKE_WIDTH / transform.zoom
    for conn in reversed(graph.connections):
        curve = connection_curve(graph, conn)
        if curve is not None and curve.hit_test(world, width):
            return conn.id
    return None
