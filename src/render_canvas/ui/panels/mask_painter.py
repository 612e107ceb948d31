"""
Mask Painter - Paint the region a render should change.

Strokes are drawn into a transparent overlay at the input image's own
resolution, so the exported mask lines up with the source without scaling.
"""

from __future__ import annotations

import logging

from PIL import Image
from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QImage, QMouseEvent, QPainter, QPaintEvent, QPen, QPixmap
from PySide6.QtWidgets import (
    QButtonGroup,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSlider,
    QVBoxLayout,
    QWidget,
)

from render_canvas.core.images import ImageData


logger = logging.getLogger(__name__)

MASK_COLOR = QColor(239, 68, 68, 128)

# Brush diameter in screen pixels
DEFAULT_BRUSH_SIZE = 20
MIN_BRUSH_SIZE = 5
MAX_BRUSH_SIZE = 50


def blank_mask(width: int, height: int) -> QImage:
    mask = QImage(width, height, QImage.Format.Format_ARGB32_Premultiplied)
    mask.fill(Qt.GlobalColor.transparent)
    return mask


def mask_from_image_data(mask: ImageData | None, width: int, height: int) -> QImage:
    """An editable overlay of the given size, seeded from a stored mask."""
    image = blank_mask(width, height)
    if mask is None:
        return image

    pil_img = mask.to_pil().convert("RGBA")
    data = pil_img.tobytes("raw", "RGBA")
    stored = QImage(data, pil_img.width, pil_img.height, pil_img.width * 4, QImage.Format.Format_RGBA8888)

    painter = QPainter(image)
    painter.drawImage(QRectF(0, 0, width, height), stored)
    painter.end()
    return image


def mask_to_image_data(mask: QImage) -> ImageData | None:
    """Encode the overlay as PNG, or None when nothing is painted."""
    rgba = mask.convertToFormat(QImage.Format.Format_RGBA8888)
    pil_img = Image.frombytes(
        "RGBA",
        (rgba.width(), rgba.height()),
        bytes(rgba.constBits()),
        "raw",
        "RGBA",
        rgba.bytesPerLine(),
    )
    if pil_img.getchannel("A").getbbox() is None:
        return None
    return ImageData.from_pil(pil_img)


def paint_stroke(mask: QImage, start: QPointF, end: QPointF, size: float, erase: bool = False) -> None:
    """Draw one round-capped segment of a brush or eraser stroke."""
    painter = QPainter(mask)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)
    if erase:
        painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Clear)

    pen = QPen(MASK_COLOR, size)
    pen.setCapStyle(Qt.PenCapStyle.RoundCap)
    pen.setJoinStyle(Qt.PenJoinStyle.RoundJoin)
    painter.setPen(pen)
    if start == end:
        painter.drawPoint(start)
    else:
        painter.drawLine(start, end)
    painter.end()


def fit_rect(width: int, height: int, bounds: QRectF) -> QRectF:
    """Largest rect with the image's aspect ratio centred in ``bounds``."""
    if width <= 0 or height <= 0:
        return QRectF()
    scale = min(bounds.width() / width, bounds.height() / height)
    w, h = width * scale, height * scale
    return QRectF(
        bounds.x() + (bounds.width() - w) / 2,
        bounds.y() + (bounds.height() - h) / 2,
        w,
        h,
    )


class MaskSurface(QWidget):
    """The input image with the paintable overlay on top."""

    stroke_finished = Signal()

    def __init__(self, source: QPixmap, mask: QImage, parent: QWidget | None = None):
        super().__init__(parent)

        self._source = source
        self._mask = mask
        self._last_point: QPointF | None = None

        self.brush_size = DEFAULT_BRUSH_SIZE
        self.erasing = False

        self.setMinimumHeight(160)
        self.setCursor(Qt.CursorShape.CrossCursor)

    @property
    def mask(self) -> QImage:
        return self._mask

    def clear(self) -> None:
        self._mask.fill(Qt.GlobalColor.transparent)
        self.update()

    def _image_rect(self) -> QRectF:
        return fit_rect(self._mask.width(), self._mask.height(), QRectF(self.rect()))

    def _to_image(self, pos: QPointF) -> QPointF:
        rect = self._image_rect()
        scale = self._mask.width() / rect.width()
        return QPointF((pos.x() - rect.x()) * scale, (pos.y() - rect.y()) * scale)

    def _paint_to(self, point: QPointF) -> None:
        rect = self._image_rect()
        if rect.isEmpty() or self._last_point is None:
            return
        # Brush size is what the user sees, so convert it to image pixels
        size = self.brush_size * self._mask.width() / rect.width()
        paint_stroke(self._mask, self._last_point, point, size, self.erasing)
        self._last_point = point
        self.update()

    def paintEvent(self, event: QPaintEvent) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.fillRect(self.rect(), QColor("#11111b"))

        rect = self._image_rect()
        if not rect.isEmpty():
            painter.drawPixmap(rect, self._source, QRectF(self._source.rect()))
            painter.drawImage(rect, self._mask)
        painter.end()

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.MouseButton.LeftButton or self._image_rect().isEmpty():
            return
        self._last_point = self._to_image(event.position())
        self._paint_to(self._last_point)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if self._last_point is not None:
            self._paint_to(self._to_image(event.position()))

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton and self._last_point is not None:
            self._last_point = None
            self.stroke_finished.emit()


class MaskPainter(QWidget):
    """
    Brush/eraser mask editor over a processor's input image.

    Signals:
        mask_changed: The painted mask changed (ImageData, or None when empty)
    """

    mask_changed = Signal(object)

    def __init__(
        self,
        source: ImageData,
        mask: ImageData | None = None,
        parent: QWidget | None = None,
    ):
        super().__init__(parent)

        pixmap = QPixmap()
        pixmap.loadFromData(source.data)
        self._surface = MaskSurface(
            pixmap, mask_from_image_data(mask, pixmap.width(), pixmap.height())
        )
        self._surface.stroke_finished.connect(self._emit_mask)

        self._setup_ui()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(4)
        layout.addWidget(self._surface)

        tools = QHBoxLayout()
        tools.setContentsMargins(0, 0, 0, 0)

        self._brush_btn = QPushButton("Brush")
        self._eraser_btn = QPushButton("Eraser")
        group = QButtonGroup(self)
        for btn in (self._brush_btn, self._eraser_btn):
            btn.setCheckable(True)
            group.addButton(btn)
            tools.addWidget(btn)
        self._brush_btn.setChecked(True)
        self._eraser_btn.toggled.connect(self._set_erasing)

        self._size_slider = QSlider(Qt.Orientation.Horizontal)
        self._size_slider.setRange(MIN_BRUSH_SIZE, MAX_BRUSH_SIZE)
        self._size_slider.setValue(DEFAULT_BRUSH_SIZE)
        self._size_slider.setToolTip("Brush size")
        self._size_slider.valueChanged.connect(self._set_brush_size)
        tools.addWidget(self._size_slider)

        self._size_label = QLabel(str(DEFAULT_BRUSH_SIZE))
        self._size_label.setStyleSheet("color: #a6adc8;")
        tools.addWidget(self._size_label)

        clear_btn = QPushButton("Clear")
        clear_btn.clicked.connect(self.clear)
        tools.addWidget(clear_btn)

        layout.addLayout(tools)

    def mask(self) -> ImageData | None:
        return mask_to_image_data(self._surface.mask)

    def clear(self) -> None:
        self._surface.clear()
        self._emit_mask()

    def _set_erasing(self, erasing: bool) -> None:
        self._surface.erasing = erasing

    def _set_brush_size(self, size: int) -> None:
        self._surface.brush_size = size
        self._size_label.setText(str(size))

    def _emit_mask(self) -> None:
        mask = self.mask()
        logger.debug("Mask %s", "cleared" if mask is None else "updated")
        self.mask_changed.emit(mask)
