"""
Selection - The single selected node or connection, and keyboard deletion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto

from render_canvas.core.graph import ConnectionId, NodeGraph, NodeId


logger = logging.getLogger(__name__)


# Key names that delete the current selection
DELETE_KEYS = frozenset({"Delete", "Backspace"})


class SelectionKind(Enum):
    NONE = auto()
    NODE = auto()
    CONNECTION = auto()


@dataclass(frozen=True)
class Selection:
    """What is selected: nothing, one node or one connection."""
    kind: SelectionKind = SelectionKind.NONE
    target: str | None = None


NO_SELECTION = Selection()


class SelectionManager:
    """
    Holds at most one selected node xor one selected connection.

    Selecting one kind clears the other.
    """

    def __init__(self, graph: NodeGraph):
        self._graph = graph
        self._selection = NO_SELECTION

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def selected_node_id(self) -> NodeId | None:
        if self._selection.kind is SelectionKind.NODE:
            return NodeId(self._selection.target)
        return None

    @property
    def selected_connection_id(self) -> ConnectionId | None:
        if self._selection.kind is SelectionKind.CONNECTION:
            return ConnectionId(self._selection.target)
        return None

    def select_node(self, node_id: NodeId) -> None:
        self._selection = Selection(SelectionKind.NODE, node_id)

    def select_connection(self, connection_id: ConnectionId) -> None:
        self._selection = Selection(SelectionKind.CONNECTION, connection_id)

    def clear(self) -> None:
        self._selection = NO_SELECTION

    def delete_selected(self) -> bool:
        """
        Delete whatever is selected and clear the selection.

        A node is deleted with its connections; a connection alone.
        Returns True if something was selected.
        """
        selection = self._selection
        if selection.kind is SelectionKind.NODE:
            self._graph.delete_node(NodeId(selection.target))
        elif selection.kind is SelectionKind.CONNECTION:
            self._graph.delete_connection(ConnectionId(selection.target))
        else:
            return False
        logger.debug("Deleted selected %s %s", selection.kind.name.lower(), selection.target)
        self.clear()
        return True

    def handle_key(self, key: str, text_field_focused: bool = False) -> bool:
        """
        Handle a key press. Delete/Backspace removes the selection unless
        keyboard focus is in an editable text field.

        Returns True if the key was consumed.
        """
        if text_field_focused or key not in DELETE_KEYS:
            return False
        return self.delete_selected()
