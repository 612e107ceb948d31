"""
Tests for node drag and resize gestures.
"""

import pytest

from render_canvas.core.gestures import (
    MIN_NODE_HEIGHT,
    MIN_NODE_WIDTH,
    GestureState,
    NodeGestureController,
)
from render_canvas.core.graph import NodeGraph, NodeKind, Point2D, Size2D
from render_canvas.core.transform import CanvasTransform


@pytest.fixture
def graph():
    return NodeGraph()


@pytest.fixture
def node_id(graph):
    return graph.add_node(NodeKind.INPUT, Point2D(100, 100))


class TestDrag:

    @pytest.mark.parametrize("zoom", [0.5, 1.0, 2.0])
    def test_drag_scales_by_zoom(self, graph, node_id, zoom):
        transform = CanvasTransform(pan_x=15, pan_y=-30, zoom=zoom)
        gestures = NodeGestureController(graph, transform)
        press = transform.world_to_screen(Point2D(110, 110))

        gestures.begin_drag(node_id, press)
        gestures.pointer_moved(press + Point2D(100, 40))
        gestures.release()

        node = graph.get_node(node_id)
        assert node.position.x == pytest.approx(100 + 100 / zoom)
        assert node.position.y == pytest.approx(100 + 40 / zoom)

    def test_drag_keeps_grab_offset(self, graph, node_id):
        transform = CanvasTransform(zoom=2.0)
        gestures = NodeGestureController(graph, transform)

        gestures.begin_drag(node_id, Point2D(210, 210))
        gestures.pointer_moved(Point2D(310, 250))

        assert graph.get_node(node_id).position == Point2D(150, 120)

    def test_drag_does_not_touch_size(self, graph, node_id):
        gestures = NodeGestureController(graph, CanvasTransform())
        gestures.begin_drag(node_id, Point2D(110, 110))
        gestures.pointer_moved(Point2D(500, 500))
        assert graph.get_node(node_id).size == Size2D(320, 320)

    def test_unknown_node(self, graph):
        gestures = NodeGestureController(graph, CanvasTransform())
        assert gestures.begin_drag("missing", Point2D()) is False
        assert not gestures.is_active


class TestResize:

    def test_resize_follows_pointer(self, graph, node_id):
        gestures = NodeGestureController(graph, CanvasTransform(zoom=2.0))

        gestures.begin_resize(node_id, Point2D(800, 800))
        gestures.pointer_moved(Point2D(900, 860))
        gestures.release()

        assert graph.get_node(node_id).size == Size2D(370, 350)

    def test_resize_respects_minimum(self, graph, node_id):
        gestures = NodeGestureController(graph, CanvasTransform())

        gestures.begin_resize(node_id, Point2D(420, 420))
        gestures.pointer_moved(Point2D(0, 0))

        node = graph.get_node(node_id)
        assert node.width == MIN_NODE_WIDTH
        assert node.height == MIN_NODE_HEIGHT

    def test_resize_does_not_move(self, graph, node_id):
        gestures = NodeGestureController(graph, CanvasTransform())
        gestures.begin_resize(node_id, Point2D(420, 420))
        gestures.pointer_moved(Point2D(600, 650))
        assert graph.get_node(node_id).position == Point2D(100, 100)


class TestThrottling:

    def test_moves_coalesce_per_tick(self, graph, node_id, scheduler):
        gestures = NodeGestureController(graph, CanvasTransform(), scheduler)
        gestures.begin_drag(node_id, Point2D(110, 110))

        for x in (120, 130, 140):
            gestures.pointer_moved(Point2D(x, 110))

        assert graph.get_node(node_id).position == Point2D(100, 100)
        assert scheduler.pending == 1

        scheduler.tick()
        assert graph.get_node(node_id).position == Point2D(130, 100)

    def test_release_applies_last_sample(self, graph, node_id, scheduler):
        gestures = NodeGestureController(graph, CanvasTransform(), scheduler)
        gestures.begin_drag(node_id, Point2D(110, 110))
        gestures.pointer_moved(Point2D(150, 110))

        gestures.release()

        assert graph.get_node(node_id).position == Point2D(140, 100)
        assert scheduler.pending == 0

    def test_no_update_after_release(self, graph, node_id, scheduler):
        gestures = NodeGestureController(graph, CanvasTransform(), scheduler)
        gestures.begin_drag(node_id, Point2D(110, 110))
        gestures.release()

        gestures.pointer_moved(Point2D(500, 500))
        scheduler.tick()

        assert graph.get_node(node_id).position == Point2D(100, 100)


class TestLifecycle:

    def test_state_transitions(self, graph, node_id):
        gestures = NodeGestureController(graph, CanvasTransform())
        assert gestures.state_of(node_id) is GestureState.IDLE

        gestures.begin_drag(node_id, Point2D(110, 110))
        assert gestures.state_of(node_id) is GestureState.DRAGGING

        gestures.begin_resize(node_id, Point2D(410, 410))
        assert gestures.state_of(node_id) is GestureState.RESIZING

        gestures.release()
        assert gestures.state_of(node_id) is GestureState.IDLE

    def test_one_gesture_at_a_time(self, graph, node_id):
        other = graph.add_node(NodeKind.OUTPUT, Point2D(600, 100))
        gestures = NodeGestureController(graph, CanvasTransform())

        gestures.begin_drag(node_id, Point2D(110, 110))
        gestures.begin_drag(other, Point2D(610, 110))

        assert gestures.state_of(node_id) is GestureState.IDLE
        assert gestures.active.node_id == other

    def test_listeners_attached_while_active(self, graph, node_id, listeners):
        gestures = NodeGestureController(graph, CanvasTransform(), listeners=listeners)

        gestures.begin_drag(node_id, Point2D(110, 110))
        assert listeners.attached

        listeners.on_move(Point2D(130, 110))
        listeners.on_release(Point2D(140, 120))

        assert not listeners.attached
        assert listeners.detach_count == 1
        assert graph.get_node(node_id).position == Point2D(130, 110)

    def test_release_without_position(self, graph, node_id, listeners):
        gestures = NodeGestureController(graph, CanvasTransform(), listeners=listeners)
        gestures.begin_resize(node_id, Point2D(410, 410))

        listeners.on_release(None)

        assert not gestures.is_active
        assert not listeners.attached

    def test_double_release_is_harmless(self, graph, node_id, listeners):
        gestures = NodeGestureController(graph, CanvasTransform(), listeners=listeners)
        gestures.begin_drag(node_id, Point2D(110, 110))

        gestures.release(Point2D(120, 110))
        gestures.release(Point2D(999, 999))

        assert listeners.detach_count == 1
        assert graph.get_node(node_id).position == Point2D(110, 100)

    def test_node_deleted_mid_drag(self, graph, node_id):
        gestures = NodeGestureController(graph, CanvasTransform())
        gestures.begin_drag(node_id, Point2D(110, 110))
        graph.delete_node(node_id)

        gestures.pointer_moved(Point2D(300, 300))
        gestures.release()

        assert len(graph) == 0
