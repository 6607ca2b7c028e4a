"""Tests for arrowhead orientation."""

from __future__ import annotations

import pytest

from connector_routing.routing.arrows import arrow_polygon, orient
from connector_routing.routing.types import Side


class TestOrient:
    @pytest.mark.parametrize(
        "side, rotation, direction",
        [
            (Side.TOP, 90.0, (0.0, 1.0)),
            (Side.RIGHT, 180.0, (-1.0, 0.0)),
            (Side.BOTTOM, 270.0, (0.0, -1.0)),
            (Side.LEFT, 0.0, (1.0, 0.0)),
        ],
    )
    def test_rotation_follows_target_side(
        self, side: Side, rotation: float, direction: tuple
    ) -> None:
        arrow = orient(((0, 0), (50, 50)), side)
        assert arrow.rotation == rotation
        assert arrow.direction == pytest.approx(direction)

    def test_position_is_inset_outward(self) -> None:
        assert orient(((0, 25), (100, 25)), Side.LEFT, inset=2).position == pytest.approx((98, 25))
        assert orient(((50, 0), (50, 100)), Side.TOP, inset=2).position == pytest.approx((50, 98))
        assert orient(((0, 0), (200, 50)), Side.RIGHT, inset=3).position == pytest.approx((203, 50))
        arrow = orient(((0, 0), (50, 150)), Side.BOTTOM, inset=0)
        assert arrow.position == pytest.approx((50, 150))

    def test_independent_of_final_segment(self) -> None:
        # Final leg runs vertically, yet the arrow still enters the LEFT face
        arrow = orient(((300, 0), (300, 25)), Side.LEFT)
        assert arrow.rotation == 0.0
        assert arrow.direction == pytest.approx((1.0, 0.0))

    def test_polygon(self) -> None:
        arrow = orient(((0, 25), (100, 25)), Side.LEFT, inset=2, size=8)
        tip, b1, b2 = arrow.polygon
        assert tip == pytest.approx((98, 25))
        assert sorted([b1, b2]) == [pytest.approx((90, 21)), pytest.approx((90, 29))]


class TestArrowPolygon:
    def test_size(self) -> None:
        tip, b1, b2 = arrow_polygon((0, 0), (0, 1), 10)
        assert tip == (0, 0)
        assert b1[1] == pytest.approx(-10)
        assert b2[1] == pytest.approx(-10)
        assert abs(b1[0] - b2[0]) == pytest.approx(10)
