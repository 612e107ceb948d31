"""
Canvas Controller - Pan/zoom state and pointer dispatch for the canvas.

The controller composes the transform, graph, selection, node gestures and
link state machine. It receives pointer, wheel and key input in canvas
screen coordinates and routes each event to whichever of them owns it. It
has no toolkit dependency; the Qt widget forwards its events here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto

from render_canvas.core.config import AppConfig
from render_canvas.core.geometry import (
    NodeRegion,
    connection_at,
    handle_at,
    node_at,
)
from render_canvas.core.gestures import NodeGestureController
from render_canvas.core.graph import ConnectionId, NodeGraph, NodeId, NodeKind, Point2D
from render_canvas.core.links import HandleRef, LinkInteractionStateMachine
from render_canvas.core.listeners import PointerListeners
from render_canvas.core.selection import SelectionManager
from render_canvas.core.throttle import FrameScheduler
from render_canvas.core.transform import CanvasTransform


logger = logging.getLogger(__name__)


ESCAPE_KEY = "Escape"


class PressTarget(Enum):
    """What a pointer-down landed on."""
    HANDLE = auto()
    NODE_HEADER = auto()
    NODE_BODY = auto()
    RESIZE_GRIP = auto()
    CLOSE_BUTTON = auto()
    CONNECTION = auto()
    CANVAS = auto()


@dataclass
class PanGesture:
    pan_start: Point2D
    pointer_start: Point2D


class CanvasController:
    """Owns the viewport and routes canvas input."""

    def __init__(
        self,
        graph: NodeGraph | None = None,
        config: AppConfig | None = None,
        scheduler: FrameScheduler | None = None,
        gesture_listeners: PointerListeners | None = None,
        link_listeners: PointerListeners | None = None,
    ):
        self.config = config or AppConfig()
        self.graph = graph if graph is not None else NodeGraph()
        self.transform = CanvasTransform()
        self.selection = SelectionManager(self.graph)
        self.gestures = NodeGestureController(
            self.graph, self.transform, scheduler, gesture_listeners
        )
        self.links = LinkInteractionStateMachine(
            self.graph, self.transform, link_listeners, self.handle_at
        )
        self._pan: PanGesture | None = None

    # --- Graph actions ---

    def add_node(self, kind: NodeKind, position: Point2D | None = None) -> NodeId:
        """
        Add a node. Without ``position`` it lands on the world point under
        the configured screen offset, near the middle of the view.
        """
        if position is None:
            position = self.transform.screen_to_world(self.config.new_node_offset)
        return self.graph.add_node(kind, position)

    def delete_node(self, node_id: NodeId) -> None:
        self.graph.delete_node(node_id)
        if self.selection.selected_node_id == node_id:
            self.selection.clear()

    def delete_connection(self, connection_id: ConnectionId) -> None:
        self.graph.delete_connection(connection_id)
        if self.selection.selected_connection_id == connection_id:
            self.selection.clear()

    # --- Hit testing ---

    def handle_at(self, screen: Point2D) -> HandleRef | None:
        return handle_at(self.graph, self.transform, screen)

    # --- Pointer input ---

    @property
    def is_panning(self) -> bool:
        return self._pan is not None

    def pointer_down(self, screen: Point2D) -> PressTarget:
        """Left-button press at ``screen``."""
        if self.links.menu is not None:
            self.links.dismiss()

        handle = self.handle_at(screen)
        if handle is not None:
            self.links.start(handle, screen)
            return PressTarget.HANDLE

        hit = node_at(self.graph, self.transform, screen)
        if hit is not None:
            node, region = hit
            if region is NodeRegion.CLOSE_BUTTON:
                self.delete_node(node.id)
                return PressTarget.CLOSE_BUTTON
            self.selection.select_node(node.id)
            if region is NodeRegion.HEADER:
                self.gestures.begin_drag(node.id, screen)
                return PressTarget.NODE_HEADER
            if region is NodeRegion.RESIZE_GRIP:
                self.gestures.begin_resize(node.id, screen)
                return PressTarget.RESIZE_GRIP
            return PressTarget.NODE_BODY

        connection_id = connection_at(self.graph, self.transform, screen)
        if connection_id is not None:
            self.selection.select_connection(connection_id)
            return PressTarget.CONNECTION

        self.selection.clear()
        self._pan = PanGesture(self.transform.pan, screen)
        return PressTarget.CANVAS

    def pointer_move(self, screen: Point2D) -> None:
        if self._pan is not None:
            self.transform.pan_from(self._pan.pan_start, self._pan.pointer_start, screen)
        elif self.gestures.is_active:
            self.gestures.pointer_moved(screen)
        elif self.links.pending is not None:
            self.links.pointer_moved(screen)

    def pointer_up(self, screen: Point2D) -> None:
        self._pan = None
        if self.gestures.is_active:
            self.gestures.release(screen)
        if self.links.pending is not None:
            self.links.release(screen, self.handle_at(screen))

    def pointer_left(self) -> None:
        """The pointer left the tracked surface: end every gesture."""
        if self._pan is not None or self.gestures.is_active or self.links.pending is not None:
            logger.debug("Pointer left the canvas, ending the active gesture")
        self._pan = None
        self.gestures.release()
        if self.links.pending is not None:
            self.links.cancel()

    def wheel(self, screen: Point2D, delta: float) -> None:
        """Zoom anchored at the cursor."""
        self.transform.wheel_zoom(screen, delta)

    # --- Keyboard ---

    def key_press(self, key: str, text_field_focused: bool = False) -> bool:
        """Returns True if the key was handled."""
        if key == ESCAPE_KEY:
            if self.links.pending is None and self.links.menu is None:
                return False
            self.links.cancel()
            return True
        return self.selection.handle_key(key, text_field_focused)

    # --- Quick-add menu ---

    def choose_quick_add(self, kind: NodeKind) -> NodeId | None:
        return self.links.choose(kind)

    def dismiss_quick_add(self) -> None:
        self.links.dismiss()

    # --- View ---

    @property
    def zoom_percent(self) -> int:
        return round(self.transform.zoom * 100)

    def frame_all(self, view_width: float, view_height: float, padding: float = 50.0) -> None:
        """Adjust pan and zoom so every node is visible."""
        nodes = list(self.graph.nodes.values())
        if not nodes:
            return

        min_x = min(n.position.x for n in nodes) - padding
        min_y = min(n.position.y for n in nodes) - padding
        max_x = max(n.position.x + n.width for n in nodes) + padding
        max_y = max(n.position.y + n.height for n in nodes) + padding

        zoom = min(view_width / (max_x - min_x), view_height / (max_y - min_y), 1.0)
        center = Point2D((min_x + max_x) / 2, (min_y + max_y) / 2)
        self.transform.zoom_at(self.transform.world_to_screen(center), zoom)
        # Re-center after the (possibly clamped) zoom
        screen_center = self.transform.world_to_screen(center)
        self.transform.pan_x += view_width / 2 - screen_center.x
        self.transform.pan_y += view_height / 2 - screen_center.y
