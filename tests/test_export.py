"""Tests for SVG export of routing results."""

import pytest

from connector_routing import ConnectionRouter
from connector_routing.export import path_data, to_svg
from connector_routing.routing.arrows import orient
from connector_routing.routing.router import RoutingResult
from connector_routing.routing.types import Corner, RoutedPath, Shape, Side

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def state_machine():
    """Two states with a labeled transition each way."""
    nodes = [
        {"id": "Idle", "x": 0, "y": 0, "width": 100, "height": 50},
        {"id": "Busy", "x": 300, "y": 200, "width": 100, "height": 50},
    ]
    connections = [
        {"id": "start", "source": "Idle", "target": "Busy", "label": "a < b & c"},
        {"id": "done", "source": "Busy", "target": "Idle"},
    ]
    return nodes, ConnectionRouter().route(nodes, connections)


def _l_path(radius: float) -> RoutedPath:
    points = [(0.0, 0.0), (100.0, 0.0), (100.0, 100.0)]
    if radius > 0:
        corner = Corner(
            vertex=(100.0, 0.0),
            center=(100.0 - radius, radius),
            radius=radius,
            start=(100.0 - radius, 0.0),
            end=(100.0, radius),
        )
    else:
        corner = Corner(
            vertex=(100.0, 0.0),
            center=(100.0, 0.0),
            radius=0.0,
            start=(100.0, 0.0),
            end=(100.0, 0.0),
        )
    return RoutedPath(
        connection="t",
        points=points,
        corners=[corner],
        arrow=orient(((100.0, 0.0), (100.0, 100.0)), Side.TOP),
        shape=Shape.L_SHAPE,
    )


# =============================================================================
# path_data
# =============================================================================


class TestPathData:
    """Tests for the SVG path command string."""

    def test_rounded_corner_uses_arc(self):
        d = path_data(_l_path(10.0))
        assert d == "M 0.0,0.0 L 90.0,0.0 A 10.0,10.0 0 0 1 100.0,10.0 L 100.0,100.0"

    def test_counter_clockwise_turn(self):
        path = RoutedPath(
            connection="t",
            points=[(0.0, 100.0), (100.0, 100.0), (100.0, 0.0)],
            corners=[
                Corner(
                    vertex=(100.0, 100.0),
                    center=(90.0, 90.0),
                    radius=10.0,
                    start=(90.0, 100.0),
                    end=(100.0, 90.0),
                )
            ],
            arrow=orient(((100.0, 100.0), (100.0, 0.0)), Side.BOTTOM),
            shape=Shape.L_SHAPE,
        )
        assert " 0 0 0 100.0,90.0" in path_data(path)

    def test_sharp_corner_uses_line(self):
        d = path_data(_l_path(0.0))
        assert "A " not in d
        assert d == "M 0.0,0.0 L 100.0,0.0 L 100.0,100.0"

    def test_offset(self):
        assert path_data(_l_path(10.0), (5.0, 5.0)).startswith("M 5.0,5.0")


# =============================================================================
# to_svg
# =============================================================================


class TestToSvg:
    """Tests for full SVG documents."""

    def test_basic_structure(self, state_machine):
        nodes, result = state_machine
        svg = to_svg(nodes, result)
        assert svg.startswith("<svg")
        assert svg.endswith("</svg>")
        assert svg.count("<rect") == 2
        assert svg.count("<path") == 2
        assert svg.count("<polygon") == 2
        assert 'data-connection="start"' in svg

    def test_rounded_corners_rendered_as_arcs(self, state_machine):
        nodes, result = state_machine
        assert " A " in to_svg(nodes, result)

    def test_labels_are_escaped(self, state_machine):
        nodes, result = state_machine
        svg = to_svg(nodes, result)
        assert "a &lt; b &amp; c" in svg
        assert ">Idle</text>" in svg

    def test_hide_labels(self, state_machine):
        nodes, result = state_machine
        assert "<text" not in to_svg(nodes, result, show_labels=False)

    def test_background(self, state_machine):
        nodes, result = state_machine
        svg = to_svg(nodes, result, background="#ffffff")
        assert 'fill="#ffffff"' in svg

    def test_custom_colors(self, state_machine):
        nodes, result = state_machine
        svg = to_svg(nodes, result, edge_color="#ff0000", node_color="#00ff00")
        assert 'stroke="#ff0000"' in svg
        assert 'fill="#00ff00"' in svg

    def test_parents_drawn_before_children(self):
        nodes = [
            {"id": "Inner", "x": 20, "y": 40, "width": 60, "height": 30, "parent": "Outer"},
            {"id": "Outer", "x": 0, "y": 0, "width": 200, "height": 150},
        ]
        svg = to_svg(nodes, RoutingResult(), show_labels=False)
        # Outer sits at the padding offset, Inner inside it
        outer = svg.index('x="40.0" y="40.0"')
        inner = svg.index('x="60.0" y="80.0"')
        assert outer < inner

    def test_empty(self):
        svg = to_svg([], RoutingResult())
        assert svg.startswith("<svg")
        assert "<path" not in svg
