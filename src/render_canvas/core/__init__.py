"""
Core module - Canvas engine, graph model and the generation boundary.

This module provides the toolkit-independent building blocks:
- Graph: Nodes, connections and the mutations that keep them consistent
- Transform: World/screen coordinate mapping with cursor-anchored zoom
- Gestures / Links / Selection: The canvas interaction state machines
- Geometry: Connection curves and hit testing
- Viewport: The controller that routes canvas input to all of the above
- Generation: The single in-flight image transform request
"""

from render_canvas.core.graph import (
    Connection,
    ConnectionId,
    Node,
    NodeGraph,
    NodeId,
    NodeKind,
    Point2D,
    Size2D,
    starter_graph,
)

from render_canvas.core.transform import (
    CanvasTransform,
    MAX_ZOOM,
    MIN_ZOOM,
)

from render_canvas.core.images import ImageData

from render_canvas.core.gestures import GestureState, NodeGestureController

from render_canvas.core.links import (
    HandleRef,
    HandleType,
    Idle,
    LinkInteractionStateMachine,
    PendingLink,
    QuickAddMenuOpen,
)

from render_canvas.core.selection import SelectionManager

from render_canvas.core.viewport import CanvasController, PressTarget

from render_canvas.core.generation import (
    BusyError,
    GenerationController,
    MissingInputError,
    RenderPreset,
    compose_instruction,
)


__all__ = [
    # graph.py
    "Connection",
    "ConnectionId",
    "Node",
    "NodeGraph",
    "NodeId",
    "NodeKind",
    "Point2D",
    "Size2D",
    "starter_graph",
    # transform.py
    "CanvasTransform",
    "MAX_ZOOM",
    "MIN_ZOOM",
    # images.py
    "ImageData",
    # gestures.py
    "GestureState",
    "NodeGestureController",
    # links.py
    "HandleRef",
    "HandleType",
    "Idle",
    "LinkInteractionStateMachine",
    "PendingLink",
    "QuickAddMenuOpen",
    # selection.py
    "SelectionManager",
    # viewport.py
    "CanvasController",
    "PressTarget",
    # generation.py
    "BusyError",
    "GenerationController",
    "MissingInputError",
    "RenderPreset",
    "compose_instruction",
]
