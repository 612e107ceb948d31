"""
Tests for curves, handle placement and hit testing.
"""

import pytest

from render_canvas.core.geometry import (
    MIN_CONTROL_OFFSET,
    ConnectionCurve,
    NodeRegion,
    close_button_rect,
    connection_at,
    connection_curve,
    handle_at,
    handle_position,
    node_at,
    pending_curve,
    preview_at,
    preview_rect,
)
from render_canvas.core.graph import NodeGraph, NodeKind, Point2D
from render_canvas.core.links import HandleRef, HandleType, PendingLink
from render_canvas.core.transform import CanvasTransform


@pytest.fixture
def straight_link():
    """Input and processor whose handles line up on y=160."""
    graph = NodeGraph()
    source = graph.add_node(NodeKind.INPUT, Point2D(0, 0))
    target = graph.add_node(NodeKind.PROCESSOR, Point2D(600, -65))
    conn = graph.add_connection(source, target)
    return graph, conn


class TestConnectionCurve:

    def test_control_offset_half_distance(self):
        curve = ConnectionCurve(0, 0, 400, 100)
        assert curve.control_offset == 200
        _, c1, c2, _ = curve.control_points()
        assert c1 == Point2D(200, 0)
        assert c2 == Point2D(200, 100)

    def test_control_offset_minimum(self):
        assert ConnectionCurve(0, 0, 30, 0).control_offset == MIN_CONTROL_OFFSET
        # Backwards links bend out of both handles
        assert ConnectionCurve(300, 0, 0, 0).control_offset == 150

    def test_endpoints(self):
        pts = ConnectionCurve(10, 20, 300, 400).sample(5)
        assert tuple(pts[0]) == (10, 20)
        assert tuple(pts[-1]) == (300, 400)

    def test_midpoint_is_symmetric(self):
        mid = ConnectionCurve(0, 0, 200, 100).midpoint()
        assert mid.x == pytest.approx(100)
        assert mid.y == pytest.approx(50)

    def test_hit_test_uses_half_width(self):
        curve = ConnectionCurve(0, 0, 400, 0)
        assert curve.distance_to(Point2D(200, 7)) == pytest.approx(7)
        assert curve.hit_test(Point2D(200, 9), 20)
        assert not curve.hit_test(Point2D(200, 11), 20)


class TestHandles:

    def test_positions_on_vertical_middle(self):
        graph = NodeGraph()
        node = graph.get_node(graph.add_node(NodeKind.PROCESSOR, Point2D(10, 20)))
        assert handle_position(node, HandleType.TARGET) == Point2D(10, 245)
        assert handle_position(node, HandleType.SOURCE) == Point2D(410, 245)

    def test_connection_curve_runs_source_to_target(self, straight_link):
        graph, conn = straight_link
        curve = connection_curve(graph, conn)
        assert (curve.x1, curve.y1, curve.x2, curve.y2) == (320, 160, 600, 160)

    def test_pending_curve_from_target(self):
        graph = NodeGraph()
        node_id = graph.add_node(NodeKind.OUTPUT, Point2D(500, 0))
        pending = PendingLink(node_id, HandleType.TARGET, Point2D(100, 50))

        curve = pending_curve(graph, pending)

        assert (curve.x1, curve.y1) == (100, 50)
        assert (curve.x2, curve.y2) == (500, 160)

    def test_handle_at(self):
        graph = NodeGraph()
        node_id = graph.add_node(NodeKind.INPUT, Point2D(100, 100))

        assert handle_at(graph, CanvasTransform(), Point2D(425, 262)) == HandleRef(
            node_id, HandleType.SOURCE
        )
        # Inputs have no target handle
        assert handle_at(graph, CanvasTransform(), Point2D(100, 260)) is None

    def test_handle_radius_is_in_screen_pixels(self):
        graph = NodeGraph()
        graph.add_node(NodeKind.INPUT, Point2D(100, 100))
        transform = CanvasTransform(zoom=2.0)
        # 15 screen px from the handle at (840, 520)
        assert handle_at(graph, transform, Point2D(855, 520)) is None
        assert handle_at(graph, transform, Point2D(848, 520)) is not None


class TestNodeAt:

    @pytest.fixture
    def graph(self):
        graph = NodeGraph()
        graph.add_node(NodeKind.INPUT, Point2D(100, 100))
        return graph

    @pytest.mark.parametrize("point,region", [
        (Point2D(200, 120), NodeRegion.HEADER),
        (Point2D(200, 300), NodeRegion.BODY),
        (Point2D(410, 410), NodeRegion.RESIZE_GRIP),
        (Point2D(400, 122), NodeRegion.CLOSE_BUTTON),
    ])
    def test_regions(self, graph, point, region):
        node, hit = node_at(graph, CanvasTransform(), point)
        assert hit is region

    def test_miss(self, graph):
        assert node_at(graph, CanvasTransform(), Point2D(50, 50)) is None

    def test_topmost_wins(self, graph):
        top = graph.add_node(NodeKind.OUTPUT, Point2D(150, 150))
        node, region = node_at(graph, CanvasTransform(), Point2D(200, 300))
        assert node.id == top
        assert region is NodeRegion.BODY

    def test_close_button_rect(self, graph):
        node = next(iter(graph.nodes.values()))
        assert close_button_rect(node) == (390, 112, 20, 20)


class TestPreviewAt:

    @pytest.fixture
    def graph(self):
        graph = NodeGraph()
        graph.add_node(NodeKind.INPUT, Point2D(100, 100))
        return graph

    def test_preview_rect(self, graph):
        node = next(iter(graph.nodes.values()))
        assert preview_rect(node) == (110, 154, 300, 244)

    def test_hit_inside_preview(self, graph):
        node = preview_at(graph, CanvasTransform(), Point2D(200, 300))
        assert node is not None
        assert node.id in graph

    @pytest.mark.parametrize("point", [
        Point2D(200, 120),   # header
        Point2D(105, 300),   # left margin
        Point2D(150, 410),   # below the preview
        Point2D(410, 410),   # resize grip
        Point2D(50, 50),     # empty canvas
    ])
    def test_miss(self, graph, point):
        assert preview_at(graph, CanvasTransform(), point) is None

    def test_screen_space_when_zoomed(self, graph):
        transform = CanvasTransform(pan_x=-50, pan_y=0, zoom=2.0)
        # World (200, 300) lands on screen (350, 600)
        assert preview_at(graph, transform, Point2D(350, 600)) is not None
        assert preview_at(graph, transform, Point2D(350, 280)) is None

    def test_short_node_has_empty_preview(self):
        graph = NodeGraph()
        node_id = graph.add_node(NodeKind.INPUT, Point2D(0, 0))
        graph.resize_node(node_id, 100, 60)
        assert preview_rect(graph.get_node(node_id))[2:] == (80, 0)


class TestConnectionAt:

    def test_hit_band(self, straight_link):
        graph, conn = straight_link
        transform = CanvasTransform()
        assert connection_at(graph, transform, Point2D(460, 168)) == conn.id
        assert connection_at(graph, transform, Point2D(460, 176)) is None

    def test_band_constant_on_screen_when_zoomed_out(self, straight_link):
        graph, conn = straight_link
        transform = CanvasTransform(zoom=0.5)
        # 8 screen px off the line
        assert connection_at(graph, transform, Point2D(230, 88)) == conn.id

    def test_band_constant_on_screen_when_zoomed_in(self, straight_link):
        graph, conn = straight_link
        transform = CanvasTransform(zoom=2.0)
        assert connection_at(graph, transform, Point2D(920, 328)) == conn.id
        assert connection_at(graph, transform, Point2D(920, 342)) is None
