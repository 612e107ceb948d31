"""
Node Graph Model - Core data structures for the image pipeline.

This module defines the fundamental building blocks:
- Node: A single pipeline stage (image source, processor or output)
- Connection: A link from one node's source handle to another's target handle
- NodeGraph: The live graph and the mutations that keep it consistent

Every mutation is synchronous and total: unknown ids are ignored rather
than raising, so a gesture update that races a deletion is harmless.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NewType
from uuid import uuid4


logger = logging.getLogger(__name__)


# Type aliases for clarity
NodeId = NewType("NodeId", str)
ConnectionId = NewType("ConnectionId", str)

# Payload key holding the image a node produced (or had uploaded)
OUTPUT_IMAGE = "output_image"

# Size used for a node that never had one assigned
FALLBACK_WIDTH = 320.0
FALLBACK_HEIGHT = 200.0


def new_node_id() -> NodeId:
    """Generate a new unique node ID."""
    return NodeId(uuid4().hex)


def new_connection_id() -> ConnectionId:
    """Generate a new unique connection ID."""
    return ConnectionId(uuid4().hex)


class NodeKind(Enum):
    """The three stages a pipeline is built from."""
    INPUT = "input"
    PROCESSOR = "processor"
    OUTPUT = "output"

    @property
    def label(self) -> str:
        return _KIND_LABELS[self]

    @property
    def has_source_handle(self) -> bool:
        """Whether nodes of this kind can feed other nodes."""
        return self is not NodeKind.OUTPUT

    @property
    def has_target_handle(self) -> bool:
        """Whether nodes of this kind accept an incoming connection."""
        return self is not NodeKind.INPUT


_KIND_LABELS = {
    NodeKind.INPUT: "Input Image",
    NodeKind.PROCESSOR: "Processor",
    NodeKind.OUTPUT: "Final Output",
}


@dataclass
class Point2D:
    """2D point, used for both world and screen coordinates."""
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Point2D) -> Point2D:
        return Point2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point2D) -> Point2D:
        return Point2D(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> Point2D:
        return Point2D(self.x * factor, self.y * factor)

    def __truediv__(self, factor: float) -> Point2D:
        return Point2D(self.x / factor, self.y / factor)


@dataclass
class Size2D:
    """2D size for node dimensions (world units)."""
    width: float = FALLBACK_WIDTH
    height: float = FALLBACK_HEIGHT


@dataclass(frozen=True)
class NodeDefaults:
    """Title and size applied to a freshly added node."""
    title: str
    width: float
    height: float


NODE_DEFAULTS: dict[NodeKind, NodeDefaults] = {
    NodeKind.INPUT: NodeDefaults("Source Image", 320.0, 320.0),
    NodeKind.PROCESSOR: NodeDefaults("Gemini 2.5 Flash", 400.0, 450.0),
    NodeKind.OUTPUT: NodeDefaults("Output", 320.0, 320.0),
}


@dataclass
class Connection:
    """
    A directed link between two nodes.

    ``source`` is the node whose source (output) handle starts the link,
    ``target`` the node whose target (input) handle receives it.
    """
    id: ConnectionId
    source: NodeId
    target: NodeId

    @classmethod
    def create(cls, source: NodeId, target: NodeId) -> Connection:
        """Factory method to create a new connection."""
        return cls(id=new_connection_id(), source=source, target=target)


@dataclass
class Node:
    """
    A single node on the canvas.

    Nodes have:
    - A unique ID and a kind
    - Position (world units) and an optional size
    - A title
    - An open payload map (e.g. the image the node produced)
    """
    id: NodeId
    kind: NodeKind
    position: Point2D = field(default_factory=Point2D)
    size: Size2D | None = None
    title: str = ""
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(cls, kind: NodeKind, position: Point2D | None = None) -> Node:
        """Factory method applying the per-kind title and size."""
        defaults = NODE_DEFAULTS[kind]
        return cls(
            id=new_node_id(),
            kind=kind,
            position=position or Point2D(),
            size=Size2D(defaults.width, defaults.height),
            title=defaults.title,
        )

    @property
    def width(self) -> float:
        return self.size.width if self.size else FALLBACK_WIDTH

    @property
    def height(self) -> float:
        return self.size.height if self.size else FALLBACK_HEIGHT

    @property
    def output_image(self) -> Any:
        return self.payload.get(OUTPUT_IMAGE)


class NodeGraph:
    """
    The live node graph for an editor session.

    Invariants maintained by every mutation:
    - no connection has ``source == target``
    - every connection references two live nodes
    - at most one connection targets a given node (last writer wins)

    Outgoing connections from a single source are not limited.
    """

    def __init__(self):
        self._nodes: dict[NodeId, Node] = {}
        self._connections: list[Connection] = []

    # --- Node operations ---

    @property
    def nodes(self) -> dict[NodeId, Node]:
        """Get all nodes (read-only view), in insertion order."""
        return self._nodes.copy()

    def add_node(self, kind: NodeKind, position: Point2D | None = None) -> NodeId:
        """
        Create a node of ``kind`` and append it to the graph.

        Callers that know the viewport pass the placement; without one the
        node lands at the world origin.

        Returns:
            The new node's id.
        """
        node = Node.create(kind, Point2D(position.x, position.y) if position else None)
        self._nodes[node.id] = node
        logger.debug("Added %s node %s at (%.1f, %.1f)",
                     kind.value, node.id, node.position.x, node.position.y)
        return node.id

    def insert_node(self, node: Node) -> None:
        """Insert a fully built node (used to seed the starter pipeline)."""
        self._nodes[node.id] = node

    def get_node(self, node_id: NodeId) -> Node | None:
        """Get a node by ID."""
        return self._nodes.get(node_id)

    def move_node(self, node_id: NodeId, x: float, y: float) -> None:
        """Replace a node's position; size, title and payload are untouched."""
        node = self._nodes.get(node_id)
        if node is not None:
            node.position = Point2D(x, y)

    def resize_node(self, node_id: NodeId, width: float, height: float) -> None:
        """Replace a node's size."""
        node = self._nodes.get(node_id)
        if node is not None:
            node.size = Size2D(width, height)

    def update_payload(self, node_id: NodeId, **values: Any) -> None:
        """Merge ``values`` into a node's payload."""
        node = self._nodes.get(node_id)
        if node is not None:
            node.payload = {**node.payload, **values}

    def delete_node(self, node_id: NodeId) -> Node | None:
        """
        Remove a node and all its connections.

        Returns the removed node, or None if not found.
        """
        node = self._nodes.pop(node_id, None)
        if node:
            # Remove all connections involving this node
            self._connections = [
                conn for conn in self._connections
                if conn.source != node_id and conn.target != node_id
            ]
            logger.debug("Deleted node %s", node_id)
        return node

    # --- Connection operations ---

    @property
    def connections(self) -> list[Connection]:
        """Get all connections (read-only copy)."""
        return self._connections.copy()

    def add_connection(self, source: NodeId, target: NodeId) -> Connection | None:
        """
        Connect ``source`` to ``target``.

        Handle-type compatibility is the caller's concern. Any existing
        connection into ``target`` is replaced. A self-loop or a reference
        to a missing node is ignored and returns None.
        """
        if source == target:
            return None
        if source not in self._nodes or target not in self._nodes:
            return None

        # Inputs accept a single connection: the newest one wins
        self._connections = [
            conn for conn in self._connections if conn.target != target
        ]
        connection = Connection.create(source, target)
        self._connections.append(connection)
        logger.debug("Connected %s -> %s", source, target)
        return connection

    def delete_connection(self, connection_id: ConnectionId) -> Connection | None:
        """Remove a connection by ID."""
        for i, conn in enumerate(self._connections):
            if conn.id == connection_id:
                return self._connections.pop(i)
        return None

    def get_connection(self, connection_id: ConnectionId) -> Connection | None:
        for conn in self._connections:
            if conn.id == connection_id:
                return conn
        return None

    def get_input_connection(self, node_id: NodeId) -> Connection | None:
        """Get the connection feeding into a node, if any."""
        for conn in self._connections:
            if conn.target == node_id:
                return conn
        return None

    def get_output_connections(self, node_id: NodeId) -> list[Connection]:
        """Get all connections leaving a node."""
        return [conn for conn in self._connections if conn.source == node_id]

    def upstream_image(self, node_id: NodeId) -> Any:
        """
        The image feeding ``node_id``: the ``output_image`` of the source of
        its incoming connection, or None.
        """
        incoming = self.get_input_connection(node_id)
        if incoming is None:
            return None
        source = self._nodes.get(incoming.source)
        return source.output_image if source else None

    # --- Utility ---

    def __len__(self) -> int:
        """Return the number of nodes."""
        return len(self._nodes)

    def __contains__(self, node_id: NodeId) -> bool:
        """Check if a node exists in the graph."""
        return node_id in self._nodes


def starter_graph() -> NodeGraph:
    """The source -> processor -> output chain every session opens with."""
    graph = NodeGraph()
    source = Node(new_node_id(), NodeKind.INPUT, Point2D(50, 150),
                  Size2D(320, 350), "Source Image")
    processor = Node(new_node_id(), NodeKind.PROCESSOR, Point2D(450, 150),
                     Size2D(400, 500), "Gemini 2.5 Flash")
    output = Node(new_node_id(), NodeKind.OUTPUT, Point2D(950, 150),
                  Size2D(320, 350), "Final Render")
    for node in (source, processor, output):
        graph.insert_node(node)
    graph.add_connection(source.id, processor.id)
    graph.add_connection(processor.id, output.id)
    return graph
