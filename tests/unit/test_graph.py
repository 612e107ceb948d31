"""
Tests for the graph module.
"""

from render_canvas.core.graph import (
    FALLBACK_HEIGHT,
    FALLBACK_WIDTH,
    OUTPUT_IMAGE,
    Node,
    NodeGraph,
    NodeKind,
    Point2D,
    Size2D,
    starter_graph,
)


class TestPoint2D:
    """Tests for Point2D dataclass."""

    def test_default_values(self):
        p = Point2D()
        assert p.x == 0.0
        assert p.y == 0.0

    def test_addition(self):
        result = Point2D(10, 20) + Point2D(5, 10)
        assert result == Point2D(15, 30)

    def test_subtraction(self):
        result = Point2D(10, 20) - Point2D(5, 10)
        assert result == Point2D(5, 10)

    def test_scaling(self):
        assert Point2D(10, 20) * 2 == Point2D(20, 40)
        assert Point2D(10, 20) / 2 == Point2D(5, 10)


class TestNodeKind:

    def test_handles_per_kind(self):
        assert NodeKind.INPUT.has_source_handle
        assert not NodeKind.INPUT.has_target_handle
        assert NodeKind.PROCESSOR.has_source_handle
        assert NodeKind.PROCESSOR.has_target_handle
        assert not NodeKind.OUTPUT.has_source_handle
        assert NodeKind.OUTPUT.has_target_handle


class TestNode:
    """Tests for Node dataclass."""

    def test_create_applies_kind_defaults(self):
        node = Node.create(NodeKind.PROCESSOR, Point2D(10, 20))
        assert node.title == "Gemini 2.5 Flash"
        assert (node.width, node.height) == (400, 450)
        assert node.position == Point2D(10, 20)
        assert node.payload == {}

    def test_input_and_output_defaults(self):
        assert Node.create(NodeKind.INPUT).title == "Source Image"
        assert Node.create(NodeKind.OUTPUT).title == "Output"
        assert Node.create(NodeKind.OUTPUT).size == Size2D(320, 320)

    def test_missing_size_uses_fallback(self):
        node = Node(id="n", kind=NodeKind.INPUT)
        assert node.width == FALLBACK_WIDTH
        assert node.height == FALLBACK_HEIGHT

    def test_ids_are_unique(self):
        ids = {Node.create(NodeKind.INPUT).id for _ in range(50)}
        assert len(ids) == 50


class TestNodeGraph:
    """Tests for NodeGraph class."""

    def test_add_node_appends_with_position(self):
        graph = NodeGraph()
        first = graph.add_node(NodeKind.INPUT, Point2D(1, 2))
        second = graph.add_node(NodeKind.OUTPUT, Point2D(3, 4))

        assert list(graph.nodes) == [first, second]
        assert graph.get_node(second).position == Point2D(3, 4)

    def test_add_node_copies_position(self):
        graph = NodeGraph()
        pos = Point2D(1, 2)
        node_id = graph.add_node(NodeKind.INPUT, pos)
        pos.x = 99
        assert graph.get_node(node_id).position.x == 1

    def test_nodes_returns_copy(self):
        graph = NodeGraph()
        graph.add_node(NodeKind.INPUT)
        graph.nodes.clear()
        assert len(graph) == 1

    def test_move_node_changes_only_position(self):
        graph = NodeGraph()
        node_id = graph.add_node(NodeKind.INPUT)
        graph.update_payload(node_id, prompt="keep")
        before = graph.get_node(node_id)
        size, title = before.size, before.title

        graph.move_node(node_id, 120, 80)

        node = graph.get_node(node_id)
        assert node.position == Point2D(120, 80)
        assert node.size == size
        assert node.title == title
        assert node.payload == {"prompt": "keep"}

    def test_resize_node(self):
        graph = NodeGraph()
        node_id = graph.add_node(NodeKind.INPUT)
        graph.resize_node(node_id, 500, 600)
        assert graph.get_node(node_id).size == Size2D(500, 600)

    def test_update_payload_merges(self):
        graph = NodeGraph()
        node_id = graph.add_node(NodeKind.PROCESSOR)
        graph.update_payload(node_id, prompt="a", strength=0.3)
        graph.update_payload(node_id, prompt="b")
        assert graph.get_node(node_id).payload == {"prompt": "b", "strength": 0.3}

    def test_unknown_ids_are_ignored(self):
        graph = NodeGraph()
        graph.move_node("missing", 1, 1)
        graph.resize_node("missing", 300, 300)
        graph.update_payload("missing", x=1)
        assert graph.delete_node("missing") is None
        assert graph.delete_connection("missing") is None
        assert len(graph) == 0

    def test_delete_node_cascades(self):
        graph = NodeGraph()
        a = graph.add_node(NodeKind.INPUT)
        b = graph.add_node(NodeKind.PROCESSOR)
        c = graph.add_node(NodeKind.OUTPUT)
        graph.add_connection(a, b)
        graph.add_connection(b, c)

        graph.delete_node(b)

        assert b not in graph
        assert graph.connections == []
        assert a in graph and c in graph


class TestConnections:

    def test_add_connection(self):
        graph = NodeGraph()
        a = graph.add_node(NodeKind.INPUT)
        b = graph.add_node(NodeKind.PROCESSOR)

        conn = graph.add_connection(a, b)

        assert conn is not None
        assert (conn.source, conn.target) == (a, b)
        assert graph.connections == [conn]

    def test_self_loop_rejected(self):
        graph = NodeGraph()
        a = graph.add_node(NodeKind.PROCESSOR)
        assert graph.add_connection(a, a) is None
        assert graph.connections == []

    def test_missing_endpoint_rejected(self):
        graph = NodeGraph()
        a = graph.add_node(NodeKind.INPUT)
        assert graph.add_connection(a, "ghost") is None
        assert graph.add_connection("ghost", a) is None
        assert graph.connections == []

    def test_last_connection_into_target_wins(self):
        graph = NodeGraph()
        a = graph.add_node(NodeKind.INPUT)
        b = graph.add_node(NodeKind.INPUT)
        c = graph.add_node(NodeKind.PROCESSOR)

        graph.add_connection(a, c)
        graph.add_connection(b, c)

        incoming = [conn for conn in graph.connections if conn.target == c]
        assert len(incoming) == 1
        assert incoming[0].source == b

    def test_fan_out_is_unlimited(self):
        graph = NodeGraph()
        src = graph.add_node(NodeKind.PROCESSOR)
        targets = [graph.add_node(NodeKind.OUTPUT) for _ in range(3)]
        for target in targets:
            graph.add_connection(src, target)
        assert len(graph.get_output_connections(src)) == 3

    def test_delete_connection_leaves_nodes(self):
        graph = NodeGraph()
        a = graph.add_node(NodeKind.INPUT)
        b = graph.add_node(NodeKind.OUTPUT)
        conn = graph.add_connection(a, b)

        removed = graph.delete_connection(conn.id)

        assert removed == conn
        assert graph.connections == []
        assert len(graph) == 2

    def test_upstream_image(self):
        graph = NodeGraph()
        a = graph.add_node(NodeKind.INPUT)
        b = graph.add_node(NodeKind.PROCESSOR)
        assert graph.upstream_image(b) is None

        graph.add_connection(a, b)
        assert graph.upstream_image(b) is None

        graph.update_payload(a, **{OUTPUT_IMAGE: "img"})
        assert graph.upstream_image(b) == "img"


class TestStarterGraph:

    def test_chain(self):
        graph = starter_graph()
        source, processor, output = graph.nodes.values()

        assert source.title == "Source Image"
        assert source.position == Point2D(50, 150)
        assert processor.size == Size2D(400, 500)
        assert output.title == "Final Render"
        assert output.position == Point2D(950, 150)

        pairs = [(c.source, c.target) for c in graph.connections]
        assert pairs == [(source.id, processor.id), (processor.id, output.id)]
