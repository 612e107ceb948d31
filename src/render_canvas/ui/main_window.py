"""
Main Window - The primary application window.

This module provides the main window for Render Canvas: the node graph
canvas in the middle, the properties and console docks, and the worker
that runs image transforms off the GUI thread.
"""

import asyncio
import logging

from PySide6.QtWidgets import (
    QDockWidget,
    QInputDialog,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QToolBar,
    QWidget,
)
from PySide6.QtCore import QObject, QRunnable, QSettings, QThreadPool, Qt, Signal
from PySide6.QtGui import QAction, QKeySequence

from render_canvas.core.config import AppConfig
from render_canvas.core.generation import BusyError, GenerationController
from render_canvas.core.graph import NodeGraph, NodeId, NodeKind, starter_graph
from render_canvas.core.images import ImageData
from render_canvas.core.selection import Selection
from render_canvas.providers import (
    GeminiTransformer,
    GenerationError,
    ImageTransformer,
    ProviderError,
    TransformRequest,
)
from render_canvas.ui.node_graph import NodeGraphCanvas
from render_canvas.ui.panels import ConsolePanel, PropertiesPanel, QtLogHandler


logger = logging.getLogger(__name__)


class WorkerSignals(QObject):
    finished = Signal(object, object)  # NodeId, ImageData
    error = Signal(object, object)     # NodeId, Exception


class TransformWorker(QRunnable):
    """Runs one transform request on the thread pool."""

    def __init__(self, node_id: NodeId, transformer: ImageTransformer, request: TransformRequest):
        super().__init__()
        self.node_id = node_id
        self.transformer = transformer
        self.request = request
        self.signals = WorkerSignals()

    def run(self) -> None:
        try:
            image = asyncio.run(self.transformer.transform(self.request))
        except ProviderError as e:
            self.signals.error.emit(self.node_id, e)
            return
        except Exception as e:
            logger.exception("Unexpected error during transform")
            self.signals.error.emit(self.node_id, e)
            return
        self.signals.finished.emit(self.node_id, image)


class MainWindow(QMainWindow):
    """
    The main application window for Render Canvas.

    Contains:
    - Menu bar and toolbar for adding nodes and view actions
    - Node graph canvas as the central widget
    - Dock panels for Properties and Console
    - Status bar with the zoom level
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        graph: NodeGraph | None = None,
        parent: QWidget | None = None,
    ):
        super().__init__(parent)

        self.setWindowTitle("Render Canvas")
        self.setMinimumSize(1200, 800)

        self._settings = QSettings("RenderCanvas", "RenderCanvas")
        self._config = config or AppConfig.load()
        self._graph = graph if graph is not None else starter_graph()
        self._generation = GenerationController(
            self._graph, GeminiTransformer(self._config.provider_config())
        )
        self._worker: TransformWorker | None = None

        self._setup_menu_bar()
        self._setup_central_widget()
        self._setup_dock_widgets()
        self._setup_status_bar()

        # Mirror application logs into the console dock
        self._log_handler = QtLogHandler(self._console_panel)
        logging.getLogger("render_canvas").addHandler(self._log_handler)

        self._restore_state()

    def _setup_menu_bar(self) -> None:
        """Create and configure the menu bar."""
        menubar = self.menuBar()

        # File menu
        file_menu = menubar.addMenu("&File")

        exit_action = QAction("E&xit", self)
        exit_action.setShortcut(QKeySequence.StandardKey.Quit)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        # Edit menu
        edit_menu = menubar.addMenu("&Edit")

        delete_action = QAction("&Delete Selected", self)
        delete_action.triggered.connect(lambda: self._canvas.delete_selected())
        edit_menu.addAction(delete_action)

        edit_menu.addSeparator()

        settings_action = QAction("&Settings...", self)
        settings_action.triggered.connect(self._on_settings)
        edit_menu.addAction(settings_action)

        # Nodes menu and toolbar
        nodes_menu = menubar.addMenu("&Nodes")
        toolbar = QToolBar("Nodes", self)
        toolbar.setObjectName("nodes_toolbar")
        self.addToolBar(toolbar)

        for kind in NodeKind:
            action = QAction(f"Add {kind.label}", self)
            action.triggered.connect(lambda checked=False, k=kind: self._canvas.add_node(k))
            nodes_menu.addAction(action)
            toolbar.addAction(action)

        # View menu
        view_menu = menubar.addMenu("&View")
        self._view_menu = view_menu  # Store for dock toggle actions

        frame_action = QAction("&Frame All", self)
        frame_action.triggered.connect(lambda: self._canvas.frame_all())
        view_menu.addAction(frame_action)
        view_menu.addSeparator()

        # Help menu
        help_menu = menubar.addMenu("&Help")

        about_action = QAction("&About", self)
        about_action.triggered.connect(self._on_about)
        help_menu.addAction(about_action)

    def _setup_central_widget(self) -> None:
        """Create the node graph canvas."""
        self._canvas = NodeGraphCanvas(self._graph, self._config)
        self._canvas.selection_changed.connect(self._on_selection_changed)
        self._canvas.graph_changed.connect(self._on_graph_changed)
        self._canvas.zoom_changed.connect(self._on_zoom_changed)
        self.setCentralWidget(self._canvas)

    def _setup_dock_widgets(self) -> None:
        """Create dock widgets for panels."""
        # Properties dock (right)
        self._properties_dock = QDockWidget("Properties", self)
        self._properties_dock.setObjectName("properties_dock")
        self._properties_dock.setAllowedAreas(
            Qt.DockWidgetArea.LeftDockWidgetArea | Qt.DockWidgetArea.RightDockWidgetArea
        )
        self._properties_panel = PropertiesPanel(self._graph)
        self._properties_panel.payload_changed.connect(self._on_payload_changed)
        self._properties_panel.generate_requested.connect(self._on_generate_requested)
        self._properties_panel.delete_connection_requested.connect(self._canvas.delete_connection)
        self._properties_panel.setMinimumWidth(280)
        self._properties_dock.setWidget(self._properties_panel)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, self._properties_dock)

        # Console dock (bottom)
        self._console_dock = QDockWidget("Console", self)
        self._console_dock.setObjectName("console_dock")
        self._console_dock.setAllowedAreas(
            Qt.DockWidgetArea.BottomDockWidgetArea | Qt.DockWidgetArea.TopDockWidgetArea
        )
        self._console_panel = ConsolePanel()
        self._console_dock.setWidget(self._console_panel)
        self.addDockWidget(Qt.DockWidgetArea.BottomDockWidgetArea, self._console_dock)

        self._view_menu.addAction(self._properties_dock.toggleViewAction())
        self._view_menu.addAction(self._console_dock.toggleViewAction())

    def _setup_status_bar(self) -> None:
        """Create and configure the status bar."""
        status_bar = self.statusBar()
        status_bar.showMessage("Ready")

        self._status_zoom = QLabel(f"Zoom: {self._canvas.controller.zoom_percent}%")
        status_bar.addPermanentWidget(self._status_zoom)

    def _restore_state(self) -> None:
        """Restore window geometry and state from settings."""
        geometry = self._settings.value("geometry")
        if geometry:
            self.restoreGeometry(geometry)

        state = self._settings.value("windowState")
        if state:
            self.restoreState(state)

        self._console_panel.log("Welcome to Render Canvas!")
        self._console_panel.log("Upload a source image, then press Generate on the processor node")
        if not self._generation.transformer.is_configured:
            logger.warning("No API key configured; set GEMINI_API_KEY or use Edit > Settings")

    def closeEvent(self, event) -> None:
        """Save state before closing."""
        self._settings.setValue("geometry", self.saveGeometry())
        self._settings.setValue("windowState", self.saveState())
        logging.getLogger("render_canvas").removeHandler(self._log_handler)
        super().closeEvent(event)

    # --- Canvas signal handlers ---

    def _on_selection_changed(self, selection: Selection) -> None:
        self._properties_panel.show_selection(selection)

    def _on_graph_changed(self) -> None:
        self._properties_panel.refresh()

    def _on_zoom_changed(self, percent: int) -> None:
        self._status_zoom.setText(f"Zoom: {percent}%")

    def _on_payload_changed(self, node_id: NodeId) -> None:
        self._canvas.refresh()

    # --- Rendering ---

    def _on_generate_requested(
        self,
        node_id: NodeId,
        instruction: str,
        mask: ImageData | None,
        strength: float,
    ) -> None:
        """Validate the request and hand it to a worker thread."""
        try:
            request = self._generation.prepare(node_id, instruction, mask, strength)
        except BusyError:
            self.statusBar().showMessage("A render is already in progress", 3000)
            return
        except GenerationError as e:
            QMessageBox.warning(self, "Render", str(e))
            return

        node = self._graph.get_node(node_id)
        self._generation.start(node_id)
        self._properties_panel.set_busy(True)
        self._console_panel.set_busy(node.title if node else str(node_id))
        self.statusBar().showMessage("Rendering...")

        worker = TransformWorker(node_id, self._generation.transformer, request)
        worker.signals.finished.connect(self._on_render_finished)
        worker.signals.error.connect(self._on_render_failed)
        self._worker = worker
        QThreadPool.globalInstance().start(worker)

    def _on_render_finished(self, node_id: NodeId, image: ImageData) -> None:
        self._generation.complete(node_id, image)
        self._worker = None
        self._properties_panel.set_busy(False)
        self._properties_panel.refresh()
        self._console_panel.set_idle("Complete")
        self._console_panel.log_success("Render complete")
        self._canvas.refresh()
        self.statusBar().showMessage("Render complete", 5000)

    def _on_render_failed(self, node_id: NodeId, error: Exception) -> None:
        self._generation.fail(node_id, error)
        self._worker = None
        self._properties_panel.set_busy(False)
        self._console_panel.set_idle("Failed")
        self.statusBar().showMessage("Render failed", 5000)
        QMessageBox.critical(self, "Render Failed", f"Error generating image: {error}")

    # --- Menu action handlers ---

    def _on_settings(self) -> None:
        """Ask for the Gemini API key and store it."""
        if self._generation.is_busy:
            self.statusBar().showMessage("Wait for the current render to finish", 3000)
            return

        key, ok = QInputDialog.getText(
            self,
            "Settings",
            "Gemini API key:",
            QLineEdit.EchoMode.Password,
            self._config.api_key,
        )
        if not ok:
            return

        self._config.api_key = key.strip()
        try:
            path = self._config.save()
        except OSError as e:
            logger.error("Failed to save settings: %s", e)
            QMessageBox.warning(self, "Settings", f"Failed to save settings:\n{e}")
        else:
            logger.info("Settings saved to %s", path)

        self._generation = GenerationController(
            self._graph, GeminiTransformer(self._config.provider_config())
        )
        self.statusBar().showMessage("Settings saved", 3000)

    def _on_about(self) -> None:
        """Show the about dialog."""
        QMessageBox.about(
            self,
            "About Render Canvas",
            "<h2>Render Canvas</h2>"
            "<p>Version 0.1.0</p>"
            "<p>A node canvas for turning sketches and screenshots into renders.</p>"
            "<ul>"
            "<li>Drag headers to move nodes, corners to resize</li>"
            "<li>Drag from a handle to connect; drop on empty canvas to add a node</li>"
            "<li>Wheel to zoom, drag the background to pan, F to frame all</li>"
            "</ul>"
        )
