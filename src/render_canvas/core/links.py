"""
Link Interaction - The state machine behind drawing connections.

    Idle -> PendingLink -> Idle               (committed or cancelled)
                        -> QuickAddMenuOpen -> Idle  (node chosen or dismissed)

A link drag starts on a node handle. Releasing over an opposite-type handle
on another node commits a connection; releasing over a same-type handle or
the start node cancels silently; releasing over empty canvas opens the
quick-add menu, which creates a node there and wires it up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from render_canvas.core.graph import Connection, NodeGraph, NodeId, NodeKind, Point2D
from render_canvas.core.listeners import NullListeners, PointerListeners
from render_canvas.core.transform import CanvasTransform


logger = logging.getLogger(__name__)


class HandleType(Enum):
    """Which side of a node a handle sits on."""
    SOURCE = "source"  # output side (right)
    TARGET = "target"  # input side (left)

    @property
    def opposite(self) -> HandleType:
        return HandleType.TARGET if self is HandleType.SOURCE else HandleType.SOURCE


@dataclass(frozen=True)
class HandleRef:
    """A specific handle on a specific node."""
    node_id: NodeId
    handle_type: HandleType


# --- Interaction states ---

@dataclass(frozen=True)
class Idle:
    """No link interaction in progress."""


@dataclass(frozen=True)
class PendingLink:
    """A link is being dragged out of ``start_node_id``."""
    start_node_id: NodeId
    start_handle_type: HandleType
    cursor_world: Point2D


@dataclass(frozen=True)
class QuickAddMenuOpen:
    """A link was dropped on empty canvas; the user is picking a node kind."""
    source_node_id: NodeId
    source_handle_type: HandleType
    screen_position: Point2D

    @property
    def offered_kinds(self) -> list[NodeKind]:
        return quick_add_kinds(self.source_handle_type)


LinkState = Idle | PendingLink | QuickAddMenuOpen

IDLE = Idle()


def quick_add_kinds(retained: HandleType) -> list[NodeKind]:
    """Node kinds whose handles can pair with the retained handle."""
    if retained is HandleType.SOURCE:
        return [kind for kind in NodeKind if kind.has_target_handle]
    return [kind for kind in NodeKind if kind.has_source_handle]


class LinkInteractionStateMachine:
    """Pending-link drag, commit/cancel rules and quick-add-on-empty-release."""

    def __init__(
        self,
        graph: NodeGraph,
        transform: CanvasTransform,
        listeners: PointerListeners | None = None,
        hit_test: Callable[[Point2D], HandleRef | None] | None = None,
    ):
        self._graph = graph
        self._transform = transform
        self._listeners = listeners or NullListeners()
        self._hit_test = hit_test or (lambda screen_pos: None)
        self._state: LinkState = IDLE

    @property
    def state(self) -> LinkState:
        return self._state

    @property
    def pending(self) -> PendingLink | None:
        return self._state if isinstance(self._state, PendingLink) else None

    @property
    def menu(self) -> QuickAddMenuOpen | None:
        return self._state if isinstance(self._state, QuickAddMenuOpen) else None

    # --- Drag ---

    def start(self, handle: HandleRef, screen_pos: Point2D) -> bool:
        """Begin a link drag from ``handle`` (pointer-down on it)."""
        if handle.node_id not in self._graph:
            return False
        if isinstance(self._state, PendingLink):
            self._listeners.detach()
        self._state = PendingLink(
            start_node_id=handle.node_id,
            start_handle_type=handle.handle_type,
            cursor_world=self._transform.screen_to_world(screen_pos),
        )
        self._listeners.attach(self.pointer_moved, self._on_global_release)
        return True

    def pointer_moved(self, screen_pos: Point2D) -> None:
        """Track the cursor for the provisional curve."""
        if isinstance(self._state, PendingLink):
            self._state = PendingLink(
                start_node_id=self._state.start_node_id,
                start_handle_type=self._state.start_handle_type,
                cursor_world=self._transform.screen_to_world(screen_pos),
            )

    def release(self, screen_pos: Point2D, hit: HandleRef | None) -> Connection | None:
        """
        Resolve the pending link at pointer-up.

        ``hit`` is the handle under the release point, if any. Returns the
        committed connection, or None when cancelled or the menu opened.
        """
        pending = self.pending
        if pending is None:
            return None
        self._listeners.detach()

        if hit is None:
            self._state = QuickAddMenuOpen(
                source_node_id=pending.start_node_id,
                source_handle_type=pending.start_handle_type,
                screen_position=screen_pos,
            )
            return None

        self._state = IDLE
        if hit.node_id == pending.start_node_id:
            return None
        if hit.handle_type == pending.start_handle_type:
            return None

        if pending.start_handle_type is HandleType.SOURCE:
            source_id, target_id = pending.start_node_id, hit.node_id
        else:
            source_id, target_id = hit.node_id, pending.start_node_id
        return self._graph.add_connection(source_id, target_id)

    def cancel(self) -> None:
        """Abandon a pending link or close the menu without mutating."""
        if isinstance(self._state, PendingLink):
            self._listeners.detach()
        self._state = IDLE

    # --- Quick-add menu ---

    def choose(self, kind: NodeKind) -> NodeId | None:
        """
        Create a ``kind`` node at the menu's anchor and wire it to the
        retained handle. Returns the new node's id.
        """
        menu = self.menu
        if menu is None:
            return None
        self._state = IDLE

        world = self._transform.screen_to_world(menu.screen_position)
        new_id = self._graph.add_node(kind, world)
        if menu.source_handle_type is HandleType.SOURCE:
            self._graph.add_connection(menu.source_node_id, new_id)
        else:
            self._graph.add_connection(new_id, menu.source_node_id)
        logger.debug("Quick-added %s node %s", kind.value, new_id)
        return new_id

    def dismiss(self) -> None:
        """Close the quick-add menu without a choice."""
        if isinstance(self._state, QuickAddMenuOpen):
            self._state = IDLE

    def _on_global_release(self, screen_pos: Point2D | None) -> None:
        # No position means the pointer left the tracked surface
        if screen_pos is None:
            self.cancel()
        else:
            self.release(screen_pos, self._hit_test(screen_pos))
