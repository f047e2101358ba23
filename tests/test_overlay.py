from __future__ import annotations

import pytest

from models import OverlayPosition
from overlay import BOTTOM_PADDING, EDGE_PADDING, WINDOW_HEIGHT, WINDOW_WIDTH, overlay_origin, render_levels

SCREEN = (0, 0, 1920, 1080)


@pytest.mark.parametrize(
    ("position", "expected"),
    [
        (OverlayPosition.TOP_LEFT, (EDGE_PADDING, EDGE_PADDING)),
        (OverlayPosition.TOP_CENTER, ((1920 - WINDOW_WIDTH) // 2, EDGE_PADDING)),
        (OverlayPosition.TOP_RIGHT, (1920 - WINDOW_WIDTH - EDGE_PADDING, EDGE_PADDING)),
        (OverlayPosition.BOTTOM_LEFT, (EDGE_PADDING, 1080 - WINDOW_HEIGHT - BOTTOM_PADDING)),
        (OverlayPosition.BOTTOM_RIGHT, (1920 - WINDOW_WIDTH - EDGE_PADDING, 1080 - WINDOW_HEIGHT - BOTTOM_PADDING)),
    ],
)
def test_overlay_origin_anchors(position: OverlayPosition, expected: tuple[int, int]) -> None:
    assert overlay_origin(position, SCREEN) == expected


def test_unknown_position_falls_back_to_bottom_center() -> None:
    assert overlay_origin("middle", SCREEN) == overlay_origin(OverlayPosition.BOTTOM_CENTER, SCREEN)


def test_origin_respects_screen_offset() -> None:
    x, y = overlay_origin(OverlayPosition.TOP_LEFT, (1920, 100, 1280, 720))
    assert (x, y) == (1920 + EDGE_PADDING, 100 + EDGE_PADDING)


def test_render_levels_maps_range_to_bars() -> None:
    bars = render_levels([0.0, 0.5, 1.0, 2.0])
    assert len(bars) == 4
    assert bars[0] == " "
    assert bars[2] == "█"
    assert bars[3] == "█"
