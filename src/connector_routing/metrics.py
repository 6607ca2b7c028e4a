"""
Routing quality metrics.

Provides quantitative measures of a routing pass:
- Path crossings: Number of points where two routed paths cross
- Path overlaps: Segments of two paths drawn on top of each other
- Bends: Total number of bends over all paths
- Length: Total polyline length over all paths
- Port conflicts: Attachments used by more than one connection

All metrics work on RoutingResult contents from any router configuration.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Sequence

import numpy as np

from .routing.geometry import as_segment_array, crossing_matrix, manhattan_length, overlap_matrix
from .routing.router import RoutingResult
from .routing.types import ConnectionAssignment, RoutedPath


def _segment_arrays(paths: Iterable[RoutedPath]) -> list[np.ndarray]:
    return [
        as_segment_array([(p.points[i], p.points[i + 1]) for i in range(len(p.points) - 1)])
        for p in paths
    ]


def path_crossings(paths: Iterable[RoutedPath]) -> int:
    """
    Count the crossings between routed paths.

    Two paths cross where a segment of one properly intersects a segment
    of the other (touching at endpoints or overlapping collinearly does
    not count). Crossings of a path with itself are ignored.

    Args:
        paths: Routed paths

    Returns:
        Number of crossing points

    Time Complexity: O(s^2) where s = total number of segments
    """
    arrays = _segment_arrays(paths)
    crossings = 0
    for i in range(len(arrays)):
        for j in range(i + 1, len(arrays)):
            crossings += int(crossing_matrix(arrays[i], arrays[j]).sum())
    return crossings


def path_overlaps(paths: Iterable[RoutedPath]) -> int:
    """Count segment pairs of different paths running along the same line."""
    arrays = _segment_arrays(paths)
    overlaps = 0
    for i in range(len(arrays)):
        for j in range(i + 1, len(arrays)):
            overlaps += int(overlap_matrix(arrays[i], arrays[j]).sum())
    return overlaps


def total_bends(paths: Iterable[RoutedPath]) -> int:
    """Total number of bends over all paths."""
    return sum(len(p.bends) for p in paths)


def total_length(paths: Iterable[RoutedPath]) -> float:
    """Total length of all sharp polylines."""
    return float(np.sum([manhattan_length(p.points) for p in paths]))


def port_conflicts(assignments: Iterable[ConnectionAssignment]) -> int:
    """
    Count attachments shared by more than one connection end.

    Each extra use of a (node, side, index) port counts once; a valid pass
    always returns 0.
    """
    uses: Counter = Counter()
    for a in assignments:
        if a.source_port is not None:
            uses[a.source_port.key] += 1
        uses[a.target_port.key] += 1
    return sum(count - 1 for count in uses.values() if count > 1)


def routing_quality_summary(result: RoutingResult) -> dict[str, Any]:
    """
    Compute a summary of routing quality metrics.

    Args:
        result: Output of ConnectionRouter.route()

    Returns:
        Dictionary with all metrics:
        - connections: Number of routed connections
        - dropped: Number of skipped requests
        - path_crossings: Number of crossings between paths
        - path_overlaps: Overlapping segment pairs between paths
        - total_bends: Total bend count
        - total_length: Total path length
        - port_conflicts: Shared attachments (0 when valid)
    """
    paths: Sequence[RoutedPath] = list(result.paths.values())
    return {
        "connections": len(paths),
        "dropped": len(result.dropped),
        "path_crossings": path_crossings(paths),
        "path_overlaps": path_overlaps(paths),
        "total_bends": total_bends(paths),
        "total_length": total_length(paths),
        "port_conflicts": port_conflicts(result.assignments.values()),
    }


__all__ = [
    "path_crossings",
    "path_overlaps",
    "total_bends",
    "total_length",
    "port_conflicts",
    "routing_quality_summary",
]
