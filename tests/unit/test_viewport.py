"""
Tests for the canvas controller: pointer routing, pan/zoom and keyboard.
"""

import pytest

from render_canvas.core.config import AppConfig
from render_canvas.core.graph import NodeGraph, NodeKind, Point2D
from render_canvas.core.links import HandleType, Idle, QuickAddMenuOpen
from render_canvas.core.selection import SelectionKind
from render_canvas.core.viewport import CanvasController, PressTarget


@pytest.fixture
def graph():
    """Input at the origin and a processor whose target handle is level with it."""
    graph = NodeGraph()
    graph.add_node(NodeKind.INPUT, Point2D(0, 0))
    graph.add_node(NodeKind.PROCESSOR, Point2D(600, -65))
    return graph


@pytest.fixture
def ids(graph):
    return list(graph.nodes)


@pytest.fixture
def controller(graph):
    return CanvasController(graph)


class TestLinkScenarios:

    def test_drag_handle_to_handle_connects(self, controller, graph, ids):
        source, processor = ids

        assert controller.pointer_down(Point2D(320, 160)) is PressTarget.HANDLE
        controller.pointer_move(Point2D(450, 170))
        controller.pointer_up(Point2D(600, 160))

        assert [(c.source, c.target) for c in graph.connections] == [(source, processor)]
        assert isinstance(controller.links.state, Idle)

    def test_drop_on_canvas_offers_quick_add(self, controller, graph, ids):
        source, _ = ids

        controller.pointer_down(Point2D(320, 160))
        controller.pointer_up(Point2D(450, 700))

        menu = controller.links.menu
        assert isinstance(menu, QuickAddMenuOpen)
        assert menu.source_node_id == source
        assert menu.source_handle_type is HandleType.SOURCE
        assert graph.connections == []

        new_id = controller.choose_quick_add(NodeKind.PROCESSOR)

        node = graph.get_node(new_id)
        assert node.kind is NodeKind.PROCESSOR
        assert node.position == Point2D(450, 700)
        assert graph.get_input_connection(new_id).source == source

    def test_escape_cancels_pending_link(self, controller, graph):
        controller.pointer_down(Point2D(320, 160))
        assert controller.key_press("Escape") is True
        controller.pointer_up(Point2D(450, 700))

        assert isinstance(controller.links.state, Idle)
        assert graph.connections == []

    def test_escape_when_idle_is_unhandled(self, controller):
        assert controller.key_press("Escape") is False

    def test_press_elsewhere_dismisses_menu(self, controller):
        controller.pointer_down(Point2D(320, 160))
        controller.pointer_up(Point2D(450, 700))

        controller.pointer_down(Point2D(1500, 1500))

        assert controller.links.menu is None


class TestSelectionScenarios:

    def test_delete_selected_connection(self, controller, graph, ids):
        graph.add_connection(*ids)

        assert controller.pointer_down(Point2D(460, 165)) is PressTarget.CONNECTION
        controller.pointer_up(Point2D(460, 165))
        assert controller.key_press("Delete") is True

        assert graph.connections == []
        assert len(graph) == 2
        assert controller.selection.selection.kind is SelectionKind.NONE

    def test_delete_suppressed_in_text_field(self, controller, graph, ids):
        graph.add_connection(*ids)
        controller.pointer_down(Point2D(460, 165))

        assert controller.key_press("Delete", text_field_focused=True) is False
        assert len(graph.connections) == 1

    def test_body_press_selects_without_gesture(self, controller, ids):
        assert controller.pointer_down(Point2D(100, 200)) is PressTarget.NODE_BODY
        assert controller.selection.selected_node_id == ids[0]
        assert not controller.gestures.is_active

    def test_canvas_press_clears_selection(self, controller, ids):
        controller.pointer_down(Point2D(100, 200))
        controller.pointer_up(Point2D(100, 200))

        controller.pointer_down(Point2D(1500, 1500))

        assert controller.selection.selection.kind is SelectionKind.NONE


class TestNodeInteraction:

    def test_header_drag(self, controller, graph, ids):
        _, processor = ids

        assert controller.pointer_down(Point2D(700, -40)) is PressTarget.NODE_HEADER
        controller.pointer_move(Point2D(750, -10))
        controller.pointer_up(Point2D(750, -10))

        assert graph.get_node(processor).position == Point2D(650, -35)
        assert controller.selection.selected_node_id == processor

    def test_grip_resize(self, controller, graph, ids):
        _, processor = ids

        assert controller.pointer_down(Point2D(990, 380)) is PressTarget.RESIZE_GRIP
        controller.pointer_move(Point2D(1040, 400))
        controller.pointer_up(Point2D(1040, 400))

        node = graph.get_node(processor)
        assert (node.width, node.height) == (450, 470)

    def test_close_button_deletes_node(self, controller, graph, ids):
        graph.add_connection(*ids)
        _, processor = ids

        assert controller.pointer_down(Point2D(980, -43)) is PressTarget.CLOSE_BUTTON

        assert processor not in graph
        assert graph.connections == []

    def test_pointer_left_ends_drag(self, controller, graph, ids):
        controller.pointer_down(Point2D(700, -40))
        controller.pointer_left()
        controller.pointer_move(Point2D(900, 300))
        assert graph.get_node(ids[1]).position == Point2D(600, -65)


class TestViewport:

    def test_pan(self, controller):
        assert controller.pointer_down(Point2D(1200, 900)) is PressTarget.CANVAS
        assert controller.is_panning

        controller.pointer_move(Point2D(1250, 880))
        controller.pointer_up(Point2D(1250, 880))

        assert controller.transform.pan == Point2D(50, -20)
        assert not controller.is_panning

    def test_wheel_zoom(self, controller):
        controller.wheel(Point2D(400, 300), 120)
        assert controller.transform.zoom == pytest.approx(1.12)
        assert controller.zoom_percent == 112

    def test_add_node_near_view_center(self, graph):
        controller = CanvasController(graph, AppConfig(new_node_offset_x=400, new_node_offset_y=300))
        controller.transform.pan_x = -100

        node_id = controller.add_node(NodeKind.OUTPUT)

        assert graph.get_node(node_id).position == Point2D(500, 300)

    def test_frame_all(self, controller, graph):
        controller.frame_all(800, 600)

        transform = controller.transform
        assert transform.zoom <= 1.0
        for node in graph.nodes.values():
            top_left = transform.world_to_screen(node.position)
            bottom_right = transform.world_to_screen(
                Point2D(node.position.x + node.width, node.position.y + node.height)
            )
            assert 0 <= top_left.x and bottom_right.x <= 800
            assert 0 <= top_left.y and bottom_right.y <= 600

    def test_frame_all_empty_graph(self):
        controller = CanvasController(NodeGraph())
        controller.frame_all(800, 600)
        assert controller.transform.zoom == 1.0
