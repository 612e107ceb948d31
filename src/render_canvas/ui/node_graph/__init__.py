"""
Node Graph UI components.

This package provides the canvas widget for displaying and editing
the node graph.
"""

from render_canvas.ui.node_graph.canvas import NodeGraphCanvas
from render_canvas.ui.node_graph.connections import ConnectionRenderer
from render_canvas.ui.node_graph.input_hooks import ApplicationPointerHook, QtFrameScheduler

__all__ = [
    "NodeGraphCanvas",
    "ConnectionRenderer",
    "ApplicationPointerHook",
    "QtFrameScheduler",
]
