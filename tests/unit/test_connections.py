"""
Tests for connection stroke styling.
"""

import pytest

from render_canvas.core.geometry import HIT_STROKE_WIDTH, VISIBLE_STROKE_WIDTH
from render_canvas.ui.node_graph.connections import (
    CONNECTION_COLOR,
    HOVER_COLOR,
    SELECTED_COLOR,
    band_pen,
    line_pen,
)


class TestStrokes:

    def test_hit_band_is_invisible(self):
        pen = band_pen()
        assert pen.color().alpha() == 0
        assert pen.widthF() == HIT_STROKE_WIDTH

    @pytest.mark.parametrize("is_selected,is_hovered,color", [
        (False, False, CONNECTION_COLOR),
        (False, True, HOVER_COLOR),
        (True, False, SELECTED_COLOR),
        (True, True, SELECTED_COLOR),
    ])
    def test_feedback_on_visible_line(self, is_selected, is_hovered, color):
        pen = line_pen(1.0, is_selected, is_hovered)
        assert pen.color() == color
        assert pen.color().alpha() == 255

    def test_line_scales_with_zoom(self):
        assert line_pen(2.0).widthF() == pytest.approx(VISIBLE_STROKE_WIDTH * 2)
