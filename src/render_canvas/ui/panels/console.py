"""
Console Panel - Application log and render status display.

This panel shows:
- Log records from every ``render_canvas`` logger
- The status of the render currently in flight
"""

from __future__ import annotations

import html
import logging
from datetime import datetime

from PySide6.QtWidgets import (
    QApplication,
    QFrame,
    QHBoxLayout,
    QLabel,
    QProgressBar,
    QPushButton,
    QTabWidget,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)
from PySide6.QtCore import QObject, Signal, Slot
from PySide6.QtGui import QTextCursor


LEVEL_COLORS = {
    "info": "#cdd6f4",
    "warning": "#f9e2af",
    "error": "#f38ba8",
    "success": "#a6e3a1",
    "debug": "#6c7086",
}

LEVEL_PREFIXES = {
    "info": "ℹ",
    "warning": "⚠",
    "error": "✗",
    "success": "✓",
    "debug": "•",
}


def level_name(levelno: int) -> str:
    """Console level for a logging level number."""
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warning"
    if levelno >= logging.INFO:
        return "info"
    return "debug"


class _LogSignals(QObject):
    record = Signal(str, str)  # message, level


class QtLogHandler(logging.Handler):
    """
    Forwards log records to a ConsolePanel.

    Records may come from worker threads; they cross to the GUI thread
    through a queued Qt signal.
    """

    def __init__(self, console: ConsolePanel, level: int = logging.INFO):
        super().__init__(level)
        self.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        self._signals = _LogSignals()
        self._signals.record.connect(console.log)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
        except Exception:
            self.handleError(record)
            return
        self._signals.record.emit(message, level_name(record.levelno))


class ConsolePanel(QWidget):
    """
    Console panel for displaying application logs and render status.

    Features:
    - Logs tab: Scrolling text log with timestamps
    - Render tab: Busy indicator for the in-flight request
    - Clear and copy functionality
    """

    def __init__(self, parent: QWidget | None = None):
        super().__init__(parent)

        self._message_count = 0
        self._setup_ui()

    def _setup_ui(self) -> None:
        """Set up the panel UI."""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        self._tabs = QTabWidget()
        self._tabs.setStyleSheet("""
            QTabWidget::pane {
                border: none;
                background-color: #11111b;
            }
            QTabBar::tab {
                background-color: #1e1e2e;
                color: #a6adc8;
                padding: 6px 16px;
                border: none;
                border-bottom: 2px solid transparent;
            }
            QTabBar::tab:selected {
                color: #cdd6f4;
                border-bottom-color: #89b4fa;
            }
        """)

        # Logs tab
        logs_widget = QWidget()
        logs_layout = QVBoxLayout(logs_widget)
        logs_layout.setContentsMargins(0, 0, 0, 0)

        self._log_text = QTextEdit()
        self._log_text.setReadOnly(True)
        self._log_text.setStyleSheet("""
            QTextEdit {
                background-color: #11111b;
                color: #cdd6f4;
                font-family: 'Fira Code', 'Consolas', monospace;
                font-size: 12px;
                border: none;
                padding: 8px;
            }
        """)
        logs_layout.addWidget(self._log_text)

        log_controls = QFrame()
        log_controls.setStyleSheet("background-color: #1e1e2e; border-top: 1px solid #313244;")
        log_controls_layout = QHBoxLayout(log_controls)
        log_controls_layout.setContentsMargins(8, 4, 8, 4)

        clear_btn = QPushButton("Clear")
        clear_btn.setFixedWidth(60)
        clear_btn.clicked.connect(self._clear_logs)
        log_controls_layout.addWidget(clear_btn)

        copy_btn = QPushButton("Copy")
        copy_btn.setFixedWidth(60)
        copy_btn.clicked.connect(self._copy_logs)
        log_controls_layout.addWidget(copy_btn)

        log_controls_layout.addStretch()

        self._log_count_label = QLabel("0 messages")
        self._log_count_label.setStyleSheet("color: #6c7086;")
        log_controls_layout.addWidget(self._log_count_label)

        logs_layout.addWidget(log_controls)
        self._tabs.addTab(logs_widget, "Console")

        # Render tab
        render_widget = QWidget()
        render_layout = QVBoxLayout(render_widget)
        render_layout.setContentsMargins(16, 16, 16, 16)
        render_layout.setSpacing(12)

        self._job_label = QLabel("No active render")
        self._job_label.setStyleSheet("color: #cdd6f4; font-weight: bold;")
        render_layout.addWidget(self._job_label)

        self._status_label = QLabel("Idle")
        self._status_label.setStyleSheet("color: #a6adc8;")
        render_layout.addWidget(self._status_label)

        self._progress_bar = QProgressBar()
        self._progress_bar.setRange(0, 1)
        self._progress_bar.setValue(0)
        self._progress_bar.setTextVisible(False)
        self._progress_bar.setStyleSheet("""
            QProgressBar {
                background-color: #313244;
                border: none;
                border-radius: 4px;
                height: 20px;
            }
            QProgressBar::chunk {
                background-color: #89b4fa;
                border-radius: 4px;
            }
        """)
        render_layout.addWidget(self._progress_bar)
        render_layout.addStretch()

        self._tabs.addTab(render_widget, "Render")
        layout.addWidget(self._tabs)

    # -------------------------------------------------------------------------
    # Logging Methods
    # -------------------------------------------------------------------------

    @Slot(str, str)
    def log(self, message: str, level: str = "info") -> None:
        """
        Add a log message.

        Args:
            message: The message to log
            level: One of "info", "warning", "error", "success", "debug"
        """
        timestamp = datetime.now().strftime("%H:%M:%S")
        color = LEVEL_COLORS.get(level, LEVEL_COLORS["info"])
        prefix = LEVEL_PREFIXES.get(level, "•")

        line = (
            f'<span style="color:#6c7086">[{timestamp}]</span> '
            f'<span style="color:{color}">{prefix} {html.escape(message)}</span><br>'
        )

        cursor = self._log_text.textCursor()
        cursor.movePosition(QTextCursor.MoveOperation.End)
        self._log_text.setTextCursor(cursor)
        self._log_text.insertHtml(line)

        # Auto-scroll to bottom
        self._log_text.verticalScrollBar().setValue(
            self._log_text.verticalScrollBar().maximum()
        )

        self._message_count += 1
        self._log_count_label.setText(f"{self._message_count} messages")

    def log_success(self, message: str) -> None:
        self.log(message, "success")

    def _clear_logs(self) -> None:
        self._log_text.clear()
        self._message_count = 0
        self._log_count_label.setText("0 messages")

    def _copy_logs(self) -> None:
        """Copy log text to clipboard."""
        QApplication.clipboard().setText(self._log_text.toPlainText())

    # -------------------------------------------------------------------------
    # Render Status
    # -------------------------------------------------------------------------

    def set_busy(self, title: str) -> None:
        """Show a render in flight for the node titled ``title``."""
        self._job_label.setText(f"Rendering: {title}")
        self._status_label.setText("Waiting for the model...")
        # Indeterminate
        self._progress_bar.setRange(0, 0)
        self._tabs.setCurrentIndex(1)

    def set_idle(self, status: str = "Idle") -> None:
        self._job_label.setText("No active render")
        self._status_label.setText(status)
        self._progress_bar.setRange(0, 1)
        self._progress_bar.setValue(0)
