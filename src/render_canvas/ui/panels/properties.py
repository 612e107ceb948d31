"""
Properties Panel - Form for the selected node or connection.

Input nodes get an image upload, processor nodes the render form and
output nodes an export button. A selected connection can be deleted from
here as well as with the Delete key.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QFileDialog,
    QFrame,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QPushButton,
    QScrollArea,
    QSlider,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)
from PySide6.QtCore import Qt, Signal

from render_canvas.core.generation import DEFAULT_STRENGTH, RenderPreset, can_generate, compose_instruction
from render_canvas.core.graph import ConnectionId, Node, NodeGraph, NodeId, NodeKind, OUTPUT_IMAGE
from render_canvas.core.images import ImageData
from render_canvas.core.selection import Selection, SelectionKind
from render_canvas.ui.panels.mask_painter import MaskPainter


logger = logging.getLogger(__name__)

# Processor form state kept in the node payload
PROMPT = "prompt"
PRESET = "preset"
FIX_GEOMETRY = "fix_geometry"
STRENGTH = "strength"
MASK = "mask"

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.webp *.bmp)"

# Strength slider resolution
SLIDER_SCALE = 100


def export_filename() -> str:
    """Default file name for an exported render."""
    return f"render-{int(datetime.now().timestamp() * 1000)}.png"


class PropertiesPanel(QWidget):
    """
    Panel for editing the selected node.

    Signals:
        payload_changed: A node's image payload changed (node_id)
        generate_requested: Render requested (node_id, instruction, mask, strength)
        delete_connection_requested: Delete button pressed (connection_id)
    """

    payload_changed = Signal(object)
    generate_requested = Signal(object, str, object, float)
    delete_connection_requested = Signal(object)

    def __init__(self, graph: NodeGraph, parent: QWidget | None = None):
        super().__init__(parent)

        self._graph = graph
        self._selection: Selection = Selection()
        self._busy = False
        self._generate_btn: QPushButton | None = None
        self._prompt_edit: QTextEdit | None = None
        self._form_node: NodeId | None = None

        self._setup_ui()

    def _setup_ui(self) -> None:
        """Set up the panel UI."""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        header = QFrame()
        header.setStyleSheet("""
            QFrame {
                background-color: #1e1e2e;
                border-bottom: 1px solid #313244;
            }
        """)
        header_layout = QHBoxLayout(header)
        header_layout.setContentsMargins(8, 8, 8, 8)

        self._title_label = QLabel("Properties")
        self._title_label.setStyleSheet("font-weight: bold; color: #cdd6f4;")
        header_layout.addWidget(self._title_label)
        header_layout.addStretch()

        layout.addWidget(header)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        scroll.setStyleSheet("""
            QScrollArea {
                background-color: #1e1e2e;
                border: none;
            }
        """)

        self._params_widget = QWidget()
        self._params_layout = QVBoxLayout(self._params_widget)
        self._params_layout.setContentsMargins(8, 8, 8, 8)
        self._params_layout.setSpacing(12)
        self._params_layout.addStretch()

        scroll.setWidget(self._params_widget)
        layout.addWidget(scroll)

        self._empty_label = QLabel("Select a node to view its properties")
        self._empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._empty_label.setStyleSheet("color: #6c7086;")
        self._params_layout.insertWidget(0, self._empty_label)

    # --- Public API ---

    def show_selection(self, selection: Selection) -> None:
        """Rebuild the form for ``selection``."""
        self._selection = selection
        self.refresh()

    def refresh(self) -> None:
        """Rebuild the form, e.g. after the graph changed."""
        self._clear_widgets()
        self._generate_btn = None
        self._prompt_edit = None
        self._form_node = None
        selection = self._selection

        if selection.kind is SelectionKind.NODE:
            node = self._graph.get_node(NodeId(selection.target))
            if node is not None:
                self._show_node(node)
                return
        elif selection.kind is SelectionKind.CONNECTION:
            conn = self._graph.get_connection(ConnectionId(selection.target))
            if conn is not None:
                self._show_connection(conn.id, conn.source, conn.target)
                return

        self._title_label.setText("Properties")
        self._empty_label.show()

    def set_busy(self, busy: bool) -> None:
        """Disable rendering while a request is in flight."""
        self._busy = busy
        if self._generate_btn is not None:
            self._generate_btn.setText("Rendering..." if busy else "Generate Render")
        self._update_generate_enabled()

    # --- Forms ---

    def _show_node(self, node: Node) -> None:
        self._title_label.setText(f"Properties: {node.title}")
        self._empty_label.hide()

        if node.kind is NodeKind.INPUT:
            self._add_image_status(node.output_image)
            upload_btn = QPushButton("Upload Image...")
            upload_btn.clicked.connect(lambda: self._upload(node.id))
            self._add_row("Source", upload_btn)

        elif node.kind is NodeKind.PROCESSOR:
            self._build_processor_form(node)

        elif node.kind is NodeKind.OUTPUT:
            image = node.output_image or self._graph.upstream_image(node.id)
            self._add_image_status(image)
            save_btn = QPushButton("Save Image...")
            save_btn.setEnabled(isinstance(image, ImageData))
            save_btn.clicked.connect(lambda: self._save(node.id))
            self._add_row("Export", save_btn)

    def _build_processor_form(self, node: Node) -> None:
        payload = node.payload
        node_id = node.id

        source = self._graph.upstream_image(node_id)
        self._add_image_status(source, empty="No input connected")

        prompt_edit = QTextEdit()
        prompt_edit.setPlaceholderText("Describe the render...")
        prompt_edit.setPlainText(payload.get(PROMPT, ""))
        prompt_edit.setMaximumHeight(100)
        prompt_edit.textChanged.connect(lambda: self._on_prompt_changed(node_id))
        self._prompt_edit = prompt_edit
        self._form_node = node_id
        self._add_row("Prompt", prompt_edit)

        preset_combo = QComboBox()
        for preset in RenderPreset:
            preset_combo.addItem(preset.value, preset.value)
        index = preset_combo.findData(payload.get(PRESET, RenderPreset.DEFAULT.value))
        if index >= 0:
            preset_combo.setCurrentIndex(index)
        preset_combo.currentIndexChanged.connect(
            lambda idx: self._set_value(node_id, PRESET, preset_combo.currentData())
        )
        self._add_row("Style Preset", preset_combo)

        fix_check = QCheckBox("Fix geometry")
        fix_check.setChecked(bool(payload.get(FIX_GEOMETRY, False)))
        fix_check.toggled.connect(lambda v: self._set_value(node_id, FIX_GEOMETRY, v))
        self._add_row("Geometry", fix_check)

        # Strength slider
        container = QWidget()
        row = QHBoxLayout(container)
        row.setContentsMargins(0, 0, 0, 0)
        slider = QSlider(Qt.Orientation.Horizontal)
        slider.setRange(0, SLIDER_SCALE)
        slider.setValue(int(payload.get(STRENGTH, DEFAULT_STRENGTH) * SLIDER_SCALE))
        value_label = QLabel()

        def update_strength(v: int) -> None:
            value_label.setText(f"{v / SLIDER_SCALE:.2f}")
            self._set_value(node_id, STRENGTH, v / SLIDER_SCALE)

        slider.valueChanged.connect(update_strength)
        value_label.setText(f"{slider.value() / SLIDER_SCALE:.2f}")
        row.addWidget(slider)
        row.addWidget(value_label)
        self._add_row("Creativity", container)

        # Mask painted over the input image
        if isinstance(source, ImageData):
            mask_painter = MaskPainter(source, payload.get(MASK))
            mask_painter.mask_changed.connect(lambda mask: self._set_value(node_id, MASK, mask))
            self._add_row("Mask", mask_painter)

        self._generate_btn = QPushButton()
        self._generate_btn.clicked.connect(lambda: self._request_generate(node_id))
        self._add_row("", self._generate_btn)
        self.set_busy(self._busy)

        if node.output_image is not None:
            self._add_image_status(node.output_image, label="Result")

    def _show_connection(self, connection_id: ConnectionId, source: NodeId, target: NodeId) -> None:
        self._title_label.setText("Properties: Connection")
        self._empty_label.hide()

        source_node = self._graph.get_node(source)
        target_node = self._graph.get_node(target)
        text = QLabel(
            f"{source_node.title if source_node else '?'} → "
            f"{target_node.title if target_node else '?'}"
        )
        text.setStyleSheet("color: #cdd6f4;")
        self._add_row("Link", text)

        delete_btn = QPushButton("Delete Connection")
        delete_btn.clicked.connect(lambda: self.delete_connection_requested.emit(connection_id))
        self._add_row("", delete_btn)

    # --- Actions ---

    def _set_value(self, node_id: NodeId, key: str, value: Any) -> None:
        self._graph.update_payload(node_id, **{key: value})

    def _on_prompt_changed(self, node_id: NodeId) -> None:
        if self._prompt_edit is None:
            return
        self._set_value(node_id, PROMPT, self._prompt_edit.toPlainText())
        self._update_generate_enabled()

    def _update_generate_enabled(self) -> None:
        """Generate needs a prompt and an input image, and no render in flight."""
        if self._generate_btn is None or self._prompt_edit is None or self._form_node is None:
            return
        self._generate_btn.setEnabled(can_generate(
            self._prompt_edit.toPlainText(),
            self._graph.upstream_image(self._form_node),
            self._busy,
        ))

    def _request_generate(self, node_id: NodeId) -> None:
        node = self._graph.get_node(node_id)
        if node is None:
            return
        payload = node.payload
        mask = payload.get(MASK)
        instruction = compose_instruction(
            payload.get(PROMPT, ""),
            RenderPreset(payload.get(PRESET, RenderPreset.DEFAULT.value)),
            bool(payload.get(FIX_GEOMETRY, False)),
            has_mask=mask is not None,
        )
        self.generate_requested.emit(
            node_id, instruction, mask, float(payload.get(STRENGTH, DEFAULT_STRENGTH))
        )

    def _open_image(self, caption: str) -> ImageData | None:
        path, _ = QFileDialog.getOpenFileName(self, caption, "", IMAGE_FILTER)
        if not path:
            return None
        try:
            return ImageData.from_file(path)
        except OSError as e:
            logger.warning("Could not read image %s: %s", path, e)
            QMessageBox.warning(self, "Open Image", f"Could not read image:\n{e}")
            return None

    def _upload(self, node_id: NodeId) -> None:
        image = self._open_image("Upload Image")
        if image is None:
            return
        self._graph.update_payload(node_id, **{OUTPUT_IMAGE: image})
        logger.info("Loaded %d x %d image into node %s", *image.size, node_id)
        self.payload_changed.emit(node_id)
        self.refresh()

    def _save(self, node_id: NodeId) -> None:
        node = self._graph.get_node(node_id)
        if node is None:
            return
        image = node.output_image or self._graph.upstream_image(node_id)
        if not isinstance(image, ImageData):
            return

        path, _ = QFileDialog.getSaveFileName(
            self, "Save Image", str(Path.home() / export_filename()), "PNG (*.png)"
        )
        if not path:
            return
        try:
            saved = image.save(path)
        except OSError as e:
            logger.error("Failed to save %s: %s", path, e)
            QMessageBox.critical(self, "Save Image", f"Failed to save image:\n{e}")
            return
        logger.info("Saved render to %s", saved)

    # --- Layout helpers ---

    def _add_image_status(
        self,
        image: Any,
        empty: str = "No image",
        label: str = "Image",
    ) -> None:
        if isinstance(image, ImageData):
            width, height = image.size
            text = f"{width} x {height} ({image.mime_type})"
        else:
            text = empty
        status = QLabel(text)
        status.setStyleSheet("color: #a6adc8;")
        self._add_row(label, status)

    def _add_row(self, name: str, widget: QWidget) -> None:
        container = QWidget()
        container_layout = QVBoxLayout(container)
        container_layout.setContentsMargins(0, 0, 0, 0)
        container_layout.setSpacing(4)
        if name:
            label = QLabel(name)
            label.setStyleSheet("color: #a6adc8;")
            container_layout.addWidget(label)
        container_layout.addWidget(widget)

        self._params_layout.insertWidget(
            self._params_layout.count() - 1,  # Before stretch
            container,
        )

    def _clear_widgets(self) -> None:
        """Remove all form rows."""
        # Keep the empty label (index 0) and the trailing stretch
        while self._params_layout.count() > 2:
            item = self._params_layout.takeAt(1)
            if item.widget():
                item.widget().deleteLater()
