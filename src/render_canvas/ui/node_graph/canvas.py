"""
Node Graph Canvas - QPainter-based node graph editor widget.

The widget owns no interaction state of its own. It paints whatever the
CanvasController holds and forwards Qt input to it; drags, resizes and
link drags then continue through application-wide pointer hooks until the
button is released anywhere.
"""

from __future__ import annotations

from PySide6.QtCore import QPoint, QPointF, QRectF, Qt, QTimer, Signal
from PySide6.QtGui import (
    QColor,
    QEnterEvent,
    QFont,
    QKeyEvent,
    QMouseEvent,
    QPainter,
    QPainterPath,
    QPaintEvent,
    QPen,
    QPixmap,
    QWheelEvent,
)
from PySide6.QtWidgets import (
    QApplication,
    QLineEdit,
    QMenu,
    QPlainTextEdit,
    QTextEdit,
    QWidget,
)

from render_canvas.core.config import AppConfig
from render_canvas.core.geometry import (
    HANDLE_RADIUS,
    HEADER_HEIGHT,
    NodeRegion,
    close_button_rect,
    connection_at,
    connection_curve,
    handle_position,
    node_at,
    node_handles,
    pending_curve,
    preview_at,
    preview_rect,
)
from render_canvas.core.gestures import GestureState
from render_canvas.core.graph import Node, NodeGraph, NodeKind, Point2D
from render_canvas.core.images import ImageData
from render_canvas.core.selection import Selection
from render_canvas.core.viewport import CanvasController, PressTarget
from render_canvas.ui.node_graph.connections import ConnectionRenderer
from render_canvas.ui.node_graph.input_hooks import ApplicationPointerHook, QtFrameScheduler
from render_canvas.ui.node_graph.preview import ImagePreviewDialog


# Header colors per node kind
NODE_COLORS = {
    NodeKind.INPUT: QColor("#4a9eff"),      # Blue
    NodeKind.PROCESSOR: QColor("#a855f7"),  # Purple
    NodeKind.OUTPUT: QColor("#22c55e"),     # Green
}

HANDLE_COLOR = QColor("#f59e0b")

# Qt keys the controller understands, by the names it uses
KEY_NAMES = {
    Qt.Key.Key_Delete: "Delete",
    Qt.Key.Key_Backspace: "Backspace",
    Qt.Key.Key_Escape: "Escape",
}

TEXT_FIELD_TYPES = (QLineEdit, QTextEdit, QPlainTextEdit)


def text_field_has_focus() -> bool:
    """Whether keyboard focus is in an editable text field."""
    widget = QApplication.focusWidget()
    if not isinstance(widget, TEXT_FIELD_TYPES):
        return False
    return not widget.isReadOnly()


class NodeGraphCanvas(QWidget):
    """
    Canvas for displaying and editing the node graph.

    Signals:
        selection_changed: Emitted when the selected node/connection changes
        graph_changed: Emitted after nodes or connections were added/removed
        zoom_changed: Emitted with the new zoom percentage
    """

    selection_changed = Signal(object)  # Selection
    graph_changed = Signal()
    zoom_changed = Signal(int)

    GRID_SIZE = 20

    def __init__(
        self,
        graph: NodeGraph,
        config: AppConfig | None = None,
        parent: QWidget | None = None,
    ):
        super().__init__(parent)

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        config = config or AppConfig()
        self._gesture_hook = ApplicationPointerHook(self, self._after_input)
        self._link_hook = ApplicationPointerHook(self, self._after_input)
        self._controller = CanvasController(
            graph=graph,
            config=config,
            scheduler=QtFrameScheduler(self, config.frame_interval_ms, self.update),
            gesture_listeners=self._gesture_hook,
            link_listeners=self._link_hook,
        )
        self._renderer = ConnectionRenderer(self._controller.transform)

        self._hovered_connection = None
        self._menu_scheduled = False
        self._last_selection = self._controller.selection.selection
        self._last_structure = self._graph_structure()
        self._pixmaps: dict[ImageData, QPixmap] = {}

        # Styling
        self._background_color = QColor("#1a1a2e")
        self._grid_color = QColor("#2a2a3e")
        self._selection_color = QColor("#4a9eff")
        self._title_font = QFont("Inter", 11, QFont.Weight.Bold)

        self.setMinimumSize(400, 300)

    # --- Public API ---

    @property
    def controller(self) -> CanvasController:
        return self._controller

    @property
    def graph(self) -> NodeGraph:
        return self._controller.graph

    def add_node(self, kind: NodeKind) -> None:
        """Add a node at the default placement and select it."""
        node_id = self._controller.add_node(kind)
        self._controller.selection.select_node(node_id)
        self._after_input()

    def delete_selected(self) -> None:
        self._controller.selection.delete_selected()
        self._after_input()

    def delete_connection(self, connection_id) -> None:
        self._controller.delete_connection(connection_id)
        self._after_input()

    def frame_all(self) -> None:
        """Adjust view to show all nodes."""
        self._controller.frame_all(self.width(), self.height())
        self.zoom_changed.emit(self._controller.zoom_percent)
        self.update()

    def refresh(self) -> None:
        """Repaint after a payload change made outside the canvas."""
        self.update()

    # --- Rendering ---

    def paintEvent(self, event: QPaintEvent) -> None:
        """Render the canvas."""
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        painter.fillRect(self.rect(), self._background_color)
        self._draw_grid(painter)

        graph = self._controller.graph
        selected_conn = self._controller.selection.selected_connection_id
        for conn in graph.connections:
            curve = connection_curve(graph, conn)
            if curve is not None:
                self._renderer.draw(
                    painter,
                    curve,
                    is_selected=conn.id == selected_conn,
                    is_hovered=conn.id == self._hovered_connection,
                )

        pending = self._controller.links.pending
        if pending is not None:
            curve = pending_curve(graph, pending)
            if curve is not None:
                self._renderer.draw_pending(painter, curve)

        used: set[ImageData] = set()
        for node in graph.nodes.values():
            self._draw_node(painter, node, used)
        # Drop thumbnails no node shows any more
        for image in set(self._pixmaps) - used:
            del self._pixmaps[image]

        painter.end()

    def _draw_grid(self, painter: QPainter) -> None:
        """Draw the background grid."""
        transform = self._controller.transform
        painter.setPen(QPen(self._grid_color, 1))

        spacing = self.GRID_SIZE * transform.zoom
        if spacing < 10:
            spacing *= 5  # Show every 5th line when zoomed out

        x = transform.pan_x % spacing
        while x < self.width():
            painter.drawLine(int(x), 0, int(x), self.height())
            x += spacing

        y = transform.pan_y % spacing
        while y < self.height():
            painter.drawLine(0, int(y), self.width(), int(y))
            y += spacing

    def _draw_node(self, painter: QPainter, node: Node, used: set[ImageData]) -> None:
        """Draw a single node."""
        painter.save()

        transform = self._controller.transform
        zoom = transform.zoom
        top_left = transform.world_to_screen(node.position)
        sx, sy = top_left.x, top_left.y
        sw = node.width * zoom
        sh = node.height * zoom
        header_h = HEADER_HEIGHT * zoom
        radius = 8 * zoom

        rect = QRectF(sx, sy, sw, sh)
        path = QPainterPath()
        path.addRoundedRect(rect, radius, radius)
        painter.fillPath(path, QColor("#2d2d3d"))

        # Header: clip the rounded body to the header band
        painter.save()
        painter.setClipRect(QRectF(sx, sy, sw, header_h))
        painter.fillPath(path, NODE_COLORS[node.kind])
        painter.restore()

        # Border
        is_selected = self._controller.selection.selected_node_id == node.id
        in_gesture = self._controller.gestures.state_of(node.id) is not GestureState.IDLE
        if is_selected:
            pen = QPen(self._selection_color, 2)
        elif in_gesture:
            pen = QPen(QColor("#6b7280"), 2)
        else:
            pen = QPen(QColor("#3f3f4f"), 1)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawPath(path)

        # Title
        painter.setPen(Qt.GlobalColor.white)
        title_font = QFont(self._title_font)
        title_font.setPointSizeF(max(1.0, title_font.pointSizeF() * zoom))
        painter.setFont(title_font)
        painter.drawText(
            QRectF(sx + 12 * zoom, sy, sw - 48 * zoom, header_h),
            Qt.AlignmentFlag.AlignVCenter,
            node.title,
        )

        # Close button
        bx, by, bw, bh = close_button_rect(node)
        close_tl = transform.world_to_screen(Point2D(bx, by))
        close_rect = QRectF(close_tl.x, close_tl.y, bw * zoom, bh * zoom)
        painter.drawText(close_rect, Qt.AlignmentFlag.AlignCenter, "×")

        # Preview image
        image = self._display_image(node)
        if image is not None:
            used.add(image)
            px, py, pw, ph = preview_rect(node)
            preview_tl = transform.world_to_screen(Point2D(px, py))
            self._draw_preview(
                painter, image, QRectF(preview_tl.x, preview_tl.y, pw * zoom, ph * zoom)
            )

        # Resize grip
        painter.setPen(QPen(QColor("#6b7280"), 1))
        for step in (6, 12, 18):
            offset = step * zoom
            painter.drawLine(
                QPointF(sx + sw - offset, sy + sh - 3 * zoom),
                QPointF(sx + sw - 3 * zoom, sy + sh - offset),
            )

        # Handles
        painter.setBrush(HANDLE_COLOR)
        painter.setPen(QPen(Qt.GlobalColor.white, 1))
        for handle_type in node_handles(node):
            pos = transform.world_to_screen(handle_position(node, handle_type))
            painter.drawEllipse(QPointF(pos.x, pos.y), HANDLE_RADIUS * zoom, HANDLE_RADIUS * zoom)

        painter.restore()

    def _display_image(self, node: Node) -> ImageData | None:
        """The node's own image, or for downstream nodes the incoming one."""
        image = node.output_image
        if image is None and node.kind is not NodeKind.INPUT:
            image = self._controller.graph.upstream_image(node.id)
        return image if isinstance(image, ImageData) else None

    def _draw_preview(self, painter: QPainter, image: ImageData, area: QRectF) -> None:
        if area.width() <= 0 or area.height() <= 0:
            return
        pixmap = self._pixmaps.get(image)
        if pixmap is None:
            pixmap = QPixmap()
            pixmap.loadFromData(image.data)
            self._pixmaps[image] = pixmap
        if pixmap.isNull():
            return
        scaled = pixmap.scaled(
            int(area.width()), int(area.height()),
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        )
        # Center the scaled image
        x = area.x() + (area.width() - scaled.width()) / 2
        y = area.y() + (area.height() - scaled.height()) / 2
        painter.drawPixmap(int(x), int(y), scaled)

    # --- Input ---

    @staticmethod
    def _point(event: QMouseEvent | QWheelEvent) -> Point2D:
        pos = event.position()
        return Point2D(pos.x(), pos.y())

    def _hooks_attached(self) -> bool:
        return self._gesture_hook.is_attached or self._link_hook.is_attached

    def mousePressEvent(self, event: QMouseEvent) -> None:
        """Handle mouse press."""
        if event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return

        target = self._controller.pointer_down(self._point(event))
        if target is PressTarget.CANVAS:
            self.setCursor(Qt.CursorShape.ClosedHandCursor)
        elif target is PressTarget.NODE_BODY:
            self._open_preview_at(self._point(event))
        self._after_input()

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        """Handle mouse move."""
        point = self._point(event)

        # Gestures and link drags are fed by the application hook
        if not self._hooks_attached():
            self._controller.pointer_move(point)

        if event.buttons() == Qt.MouseButton.NoButton:
            self._update_hover(point)
        self.update()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        """Handle mouse release."""
        if event.button() != Qt.MouseButton.LeftButton:
            super().mouseReleaseEvent(event)
            return

        self._controller.pointer_up(self._point(event))
        self.unsetCursor()
        self._after_input()

    def leaveEvent(self, event) -> None:
        """The pointer left the canvas."""
        self._controller.pointer_left()
        self._hovered_connection = None
        self.unsetCursor()
        self._after_input()
        super().leaveEvent(event)

    def enterEvent(self, event: QEnterEvent) -> None:
        self._update_hover(self._point(event))
        super().enterEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:
        """Handle mouse wheel for zooming."""
        self._controller.wheel(self._point(event), event.angleDelta().y())
        self.zoom_changed.emit(self._controller.zoom_percent)
        self.update()

    def keyPressEvent(self, event: QKeyEvent) -> None:
        """Handle key press."""
        if event.key() == Qt.Key.Key_F:
            self.frame_all()
            return

        name = KEY_NAMES.get(event.key())
        if name is not None and self._controller.key_press(name, text_field_has_focus()):
            self._after_input()
            return
        super().keyPressEvent(event)

    def _update_hover(self, point: Point2D) -> None:
        controller = self._controller
        self._hovered_connection = connection_at(controller.graph, controller.transform, point)

        hit = node_at(controller.graph, controller.transform, point)
        if controller.handle_at(point) is not None:
            self.setCursor(Qt.CursorShape.CrossCursor)
        elif hit is None:
            self.unsetCursor()
        elif hit[1] is NodeRegion.RESIZE_GRIP:
            self.setCursor(Qt.CursorShape.SizeFDiagCursor)
        elif hit[1] is NodeRegion.HEADER:
            self.setCursor(Qt.CursorShape.OpenHandCursor)
        elif hit[1] is NodeRegion.CLOSE_BUTTON:
            self.setCursor(Qt.CursorShape.PointingHandCursor)
        elif self._preview_image_at(point) is not None:
            self.setCursor(Qt.CursorShape.PointingHandCursor)
        else:
            self.unsetCursor()

    def _preview_image_at(self, point: Point2D) -> ImageData | None:
        node = preview_at(self._controller.graph, self._controller.transform, point)
        return self._display_image(node) if node is not None else None

    def _open_preview_at(self, point: Point2D) -> None:
        image = self._preview_image_at(point)
        if image is not None:
            # After the press has been handled and the selection reported
            QTimer.singleShot(0, lambda: ImagePreviewDialog(image, self).exec())

    # --- Change notification ---

    def _graph_structure(self) -> tuple[tuple, tuple]:
        graph = self._controller.graph
        return tuple(graph.nodes), tuple(conn.id for conn in graph.connections)

    def _after_input(self) -> None:
        """Emit change signals and open the quick-add menu if requested."""
        selection: Selection = self._controller.selection.selection
        if selection != self._last_selection:
            self._last_selection = selection
            self.selection_changed.emit(selection)

        structure = self._graph_structure()
        if structure != self._last_structure:
            self._last_structure = structure
            self.graph_changed.emit()

        if self._controller.links.menu is not None and not self._menu_scheduled:
            # Not from inside the event filter
            self._menu_scheduled = True
            QTimer.singleShot(0, self._show_quick_add_menu)

        self.update()

    def _show_quick_add_menu(self) -> None:
        self._menu_scheduled = False
        state = self._controller.links.menu
        if state is None:
            return

        menu = QMenu(self)
        header = menu.addAction("Add Node")
        header.setEnabled(False)
        menu.addSeparator()
        actions = {}
        for kind in state.offered_kinds:
            actions[menu.addAction(kind.label)] = kind

        anchor = QPoint(int(state.screen_position.x), int(state.screen_position.y))
        chosen = menu.exec(self.mapToGlobal(anchor))

        if chosen in actions:
            new_id = self._controller.choose_quick_add(actions[chosen])
            if new_id is not None:
                self._controller.selection.select_node(new_id)
        else:
            self._controller.dismiss_quick_add()
        self._after_input()
