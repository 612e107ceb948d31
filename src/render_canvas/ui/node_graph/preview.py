"""
Image Preview - Full-size view of a node's image.
"""

from __future__ import annotations

from PySide6.QtCore import QSize, Qt
from PySide6.QtGui import QGuiApplication, QMouseEvent, QPixmap
from PySide6.QtWidgets import QDialog, QLabel, QVBoxLayout, QWidget

from render_canvas.core.images import ImageData


# Share of the screen the preview may cover
SCREEN_FRACTION = 0.9


class ImagePreviewDialog(QDialog):
    """Modal image view; a click anywhere closes it."""

    def __init__(self, image: ImageData, parent: QWidget | None = None):
        super().__init__(parent)

        self.setWindowTitle("Preview")
        self.setModal(True)
        self.setAttribute(Qt.WidgetAttribute.WA_DeleteOnClose)
        self.setStyleSheet("background-color: #11111b;")

        pixmap = QPixmap()
        pixmap.loadFromData(image.data)
        limit = self._available_size()
        if pixmap.width() > limit.width() or pixmap.height() > limit.height():
            pixmap = pixmap.scaled(
                limit,
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            )

        self._label = QLabel()
        self._label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._label.setPixmap(pixmap)
        self._label.setToolTip("Click to close")

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._label)

    def _available_size(self) -> QSize:
        screen = self.screen() or QGuiApplication.primaryScreen()
        available = screen.availableGeometry().size()
        return QSize(
            int(available.width() * SCREEN_FRACTION),
            int(available.height() * SCREEN_FRACTION),
        )

    def mousePressEvent(self, event: QMouseEvent) -> None:
        self.accept()
