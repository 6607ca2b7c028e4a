"""Tests for routing quality metrics."""

from __future__ import annotations

import pytest

from connector_routing import ConnectionRouter
from connector_routing.metrics import (
    path_crossings,
    path_overlaps,
    port_conflicts,
    routing_quality_summary,
    total_bends,
    total_length,
)
from connector_routing.routing.arrows import orient
from connector_routing.routing.types import (
    ConnectionAssignment,
    Port,
    RoutedPath,
    Shape,
    Side,
)


def _path(cid, points: list) -> RoutedPath:
    return RoutedPath(
        connection=cid,
        points=points,
        corners=[],
        arrow=orient((points[-2], points[-1]), Side.LEFT),
        shape=Shape.L_SHAPE,
    )


def _assignment(cid, src_index: int, tgt_index: int) -> ConnectionAssignment:
    return ConnectionAssignment(
        connection=cid,
        source_port=Port("A", Side.RIGHT, src_index, 100, 10 * src_index),
        target_port=Port("B", Side.LEFT, tgt_index, 300, 10 * tgt_index),
        shape=Shape.L_SHAPE,
    )


class TestPathCrossings:
    def test_cross(self) -> None:
        paths = [_path(1, [(0, 5), (10, 5)]), _path(2, [(5, 0), (5, 10)])]
        assert path_crossings(paths) == 1

    def test_no_cross(self) -> None:
        paths = [_path(1, [(0, 5), (10, 5)]), _path(2, [(0, 8), (10, 8)])]
        assert path_crossings(paths) == 0

    def test_multiple_crossings_between_two_paths(self) -> None:
        zigzag = [(0, 0), (0, 10), (4, 10), (4, 0), (8, 0), (8, 10)]
        paths = [_path(1, zigzag), _path(2, [(-1, 5), (9, 5)])]
        assert path_crossings(paths) == 3

    def test_touching_is_not_crossing(self) -> None:
        paths = [_path(1, [(0, 0), (10, 0)]), _path(2, [(10, 0), (10, 10)])]
        assert path_crossings(paths) == 0


class TestPathOverlaps:
    def test_shared_stretch(self) -> None:
        paths = [_path(1, [(0, 5), (10, 5)]), _path(2, [(5, 5), (20, 5), (20, 0)])]
        assert path_overlaps(paths) == 1

    def test_touching_is_not_overlap(self) -> None:
        paths = [_path(1, [(0, 5), (10, 5)]), _path(2, [(10, 5), (20, 5)])]
        assert path_overlaps(paths) == 0


class TestTotals:
    def test_total_bends(self) -> None:
        paths = [_path(1, [(0, 0), (10, 0), (10, 10)]), _path(2, [(0, 0), (10, 0)])]
        assert total_bends(paths) == 1

    def test_total_length(self) -> None:
        paths = [_path(1, [(0, 0), (10, 0), (10, 10)]), _path(2, [(0, 0), (5, 0)])]
        assert total_length(paths) == pytest.approx(25.0)

    def test_empty(self) -> None:
        assert total_bends([]) == 0
        assert total_length([]) == 0.0
        assert path_crossings([]) == 0


class TestPortConflicts:
    def test_no_conflicts(self) -> None:
        assert port_conflicts([_assignment(1, 0, 0), _assignment(2, 1, 1)]) == 0

    def test_shared_port(self) -> None:
        assert port_conflicts([_assignment(1, 0, 0), _assignment(2, 0, 1)]) == 1

    def test_entry_has_no_source(self) -> None:
        entry = ConnectionAssignment(
            "e", None, Port("B", Side.TOP, 0, 350, 0), Shape.L_SHAPE, origin=(0, 0)
        )
        assert port_conflicts([entry, _assignment(1, 0, 0)]) == 0


class TestSummary:
    def test_summary_keys(self) -> None:
        nodes = [
            {"id": "A", "x": 0, "y": 0, "width": 100, "height": 50},
            {"id": "B", "x": 300, "y": 200, "width": 100, "height": 50},
        ]
        connections = [
            {"id": 1, "source": "A", "target": "B"},
            {"id": 2, "source": "B", "target": "A"},
        ]
        summary = routing_quality_summary(ConnectionRouter().route(nodes, connections))
        assert summary["connections"] == 2
        assert summary["dropped"] == 0
        assert summary["port_conflicts"] == 0
        assert summary["path_crossings"] >= 0
        assert summary["path_overlaps"] == 0
        assert summary["total_bends"] >= 2
        assert summary["total_length"] > 0
