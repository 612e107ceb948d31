"""
Node Gestures - Drag and resize handling for canvas nodes.

One controller owns the gesture state for every node. A node is Idle,
Dragging or Resizing, and at most one node is in a gesture at a time.
Model updates are frame-rate gated through a FrameThrottle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto

from render_canvas.core.graph import NodeGraph, NodeId, Point2D, Size2D
from render_canvas.core.listeners import NullListeners, PointerListeners
from render_canvas.core.throttle import FrameScheduler, FrameThrottle, ImmediateScheduler
from render_canvas.core.transform import CanvasTransform


logger = logging.getLogger(__name__)


MIN_NODE_WIDTH = 280.0
MIN_NODE_HEIGHT = 200.0


class GestureState(Enum):
    """Gesture state of a single node."""
    IDLE = auto()
    DRAGGING = auto()
    RESIZING = auto()


@dataclass
class ActiveGesture:
    """Everything captured when a drag or resize begins."""
    node_id: NodeId
    state: GestureState
    start_pointer: Point2D
    grab_offset: Point2D | None = None   # pointer - node top-left (screen)
    start_size: Size2D | None = None     # world units


class NodeGestureController:
    """
    Drives node drags and resizes from screen-space pointer samples.

    Pointer listeners are attached only while a gesture is running and are
    always detached when it ends.
    """

    def __init__(
        self,
        graph: NodeGraph,
        transform: CanvasTransform,
        scheduler: FrameScheduler | None = None,
        listeners: PointerListeners | None = None,
    ):
        self._graph = graph
        self._transform = transform
        self._listeners = listeners or NullListeners()
        self._throttle: FrameThrottle[Point2D] = FrameThrottle(
            scheduler or ImmediateScheduler(), self._apply
        )
        self._active: ActiveGesture | None = None

    # --- State ---

    @property
    def active(self) -> ActiveGesture | None:
        return self._active

    @property
    def is_active(self) -> bool:
        return self._active is not None

    def state_of(self, node_id: NodeId) -> GestureState:
        if self._active is not None and self._active.node_id == node_id:
            return self._active.state
        return GestureState.IDLE

    # --- Transitions ---

    def begin_drag(self, node_id: NodeId, pointer: Point2D) -> bool:
        """Start dragging ``node_id`` from a press on its header."""
        node = self._graph.get_node(node_id)
        if node is None:
            return False
        self._end_current()

        top_left = self._transform.world_to_screen(node.position)
        self._active = ActiveGesture(
            node_id=node_id,
            state=GestureState.DRAGGING,
            start_pointer=pointer,
            grab_offset=pointer - top_left,
        )
        self._listeners.attach(self.pointer_moved, self.release)
        return True

    def begin_resize(self, node_id: NodeId, pointer: Point2D) -> bool:
        """Start resizing ``node_id`` from a press on its corner handle."""
        node = self._graph.get_node(node_id)
        if node is None:
            return False
        self._end_current()

        self._active = ActiveGesture(
            node_id=node_id,
            state=GestureState.RESIZING,
            start_pointer=pointer,
            start_size=Size2D(node.width, node.height),
        )
        self._listeners.attach(self.pointer_moved, self.release)
        return True

    def pointer_moved(self, pointer: Point2D) -> None:
        """Queue a pointer sample; the newest one is applied next tick."""
        if self._active is not None:
            self._throttle.submit(pointer)

    def release(self, pointer: Point2D | None = None) -> None:
        """
        End the gesture. The pending tick is cancelled and the newest
        sample is applied at once so the final position is kept.
        """
        if self._active is None:
            return
        if pointer is not None:
            self._throttle.submit(pointer)
        self._throttle.flush()
        self._end_current()

    # --- Internals ---

    def _end_current(self) -> None:
        if self._active is None:
            return
        self._throttle.discard()
        self._listeners.detach()
        logger.debug("%s ended for node %s", self._active.state.name.title(), self._active.node_id)
        self._active = None

    def _apply(self, pointer: Point2D) -> None:
        gesture = self._active
        if gesture is None:
            return

        if gesture.state is GestureState.DRAGGING:
            top_left = pointer - gesture.grab_offset
            world = self._transform.screen_to_world(top_left)
            self._graph.move_node(gesture.node_id, world.x, world.y)
        elif gesture.state is GestureState.RESIZING:
            delta = (pointer - gesture.start_pointer) / self._transform.zoom
            width = max(MIN_NODE_WIDTH, gesture.start_size.width + delta.x)
            height = max(MIN_NODE_HEIGHT, gesture.start_size.height + delta.y)
            self._graph.resize_node(gesture.node_id, width, height)
