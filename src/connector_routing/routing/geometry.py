"""
Geometry helpers for connection routing.

Point arithmetic, vectorized segment crossing and overlap tests (numpy),
segment/rectangle overlap tests and orthogonal path cleanup.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from .types import NodeRect, Point

EPS = 1e-6


def sub(p: Point, q: Point) -> Point:
    return (p[0] - q[0], p[1] - q[1])


def dot(p: Point, q: Point) -> float:
    return p[0] * q[0] + p[1] * q[1]


def distance(p: Point, q: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(q[0] - p[0], q[1] - p[1])


def manhattan_length(points: Sequence[Point]) -> float:
    """Total length of a polyline."""
    return sum(distance(points[i], points[i + 1]) for i in range(len(points) - 1))


def same_point(p: Point, q: Point, tol: float = EPS) -> bool:
    return abs(p[0] - q[0]) < tol and abs(p[1] - q[1]) < tol


def is_axis_aligned(p: Point, q: Point, tol: float = EPS) -> bool:
    """True if segment p-q is horizontal or vertical."""
    return abs(p[0] - q[0]) < tol or abs(p[1] - q[1]) < tol


def as_segment_array(segments: Sequence[tuple[Point, Point]]) -> np.ndarray:
    """Pack segments into an (n, 4) float array of x1, y1, x2, y2."""
    if not segments:
        return np.zeros((0, 4), dtype=float)
    return np.array([(a[0], a[1], b[0], b[1]) for a, b in segments], dtype=float)


def crossing_matrix(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Pairwise crossing test between two segment arrays.

    Segments cross where they intersect at a single point interior to both.
    Touching at an endpoint and collinear overlap do not count.

    Args:
        a: (n, 4) array of segments
        b: (m, 4) array of segments

    Returns:
        (n, m) boolean array, True where a[i] crosses b[j]
    """
    if a.shape[0] == 0 or b.shape[0] == 0:
        return np.zeros((a.shape[0], b.shape[0]), dtype=bool)

    px, py = a[:, None, 0], a[:, None, 1]
    rx, ry = a[:, None, 2] - px, a[:, None, 3] - py
    qx, qy = b[None, :, 0], b[None, :, 1]
    sx, sy = b[None, :, 2] - qx, b[None, :, 3] - qy

    denom = rx * sy - ry * sx
    wx, wy = qx - px, qy - py
    with np.errstate(divide="ignore", invalid="ignore"):
        t = (wx * sy - wy * sx) / denom
        u = (wx * ry - wy * rx) / denom

    eps = 1e-10
    hit = (np.abs(denom) >= 1e-10) & (t > eps) & (t < 1 - eps) & (u > eps) & (u < 1 - eps)
    return hit


def overlap_matrix(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Pairwise test for axis-aligned segments running along each other.

    Two segments overlap when they lie on the same horizontal or vertical
    line and share a stretch of positive length.

    Args:
        a: (n, 4) array of segments
        b: (m, 4) array of segments

    Returns:
        (n, m) boolean array, True where a[i] overlaps b[j]
    """
    if a.shape[0] == 0 or b.shape[0] == 0:
        return np.zeros((a.shape[0], b.shape[0]), dtype=bool)

    def _spans(s: np.ndarray) -> tuple[np.ndarray, ...]:
        horizontal = np.abs(s[:, 1] - s[:, 3]) < EPS
        vertical = np.abs(s[:, 0] - s[:, 2]) < EPS
        x_lo, x_hi = np.minimum(s[:, 0], s[:, 2]), np.maximum(s[:, 0], s[:, 2])
        y_lo, y_hi = np.minimum(s[:, 1], s[:, 3]), np.maximum(s[:, 1], s[:, 3])
        return horizontal, vertical, x_lo, x_hi, y_lo, y_hi

    ah, av, ax0, ax1, ay0, ay1 = (v[:, None] for v in _spans(a))
    bh, bv, bx0, bx1, by0, by1 = (v[None, :] for v in _spans(b))

    # a zero-length segment is both horizontal and vertical but never overlaps
    shared_x = np.minimum(ax1, bx1) - np.maximum(ax0, bx0)
    shared_y = np.minimum(ay1, by1) - np.maximum(ay0, by0)
    along_x = ah & bh & (np.abs(ay0 - by0) < EPS) & (shared_x > EPS)
    along_y = av & bv & (np.abs(ax0 - bx0) < EPS) & (shared_y > EPS)
    return along_x | along_y


def segment_intersects_rect(p1: Point, p2: Point, rect: NodeRect) -> bool:
    """Check if an axis-aligned segment passes through the interior of a rectangle."""
    x1, y1 = p1
    x2, y2 = p2

    if abs(x1 - x2) < EPS:
        # Vertical segment
        min_y = min(y1, y2)
        max_y = max(y1, y2)
        return (rect.left < x1 < rect.right) and (min_y < rect.bottom) and (max_y > rect.top)
    elif abs(y1 - y2) < EPS:
        # Horizontal segment
        min_x = min(x1, x2)
        max_x = max(x1, x2)
        return (rect.top < y1 < rect.bottom) and (min_x < rect.right) and (max_x > rect.left)

    return False


def rect_hits(points: Sequence[Point], rects: Sequence[NodeRect]) -> int:
    """Count (segment, rectangle) pairs where the polyline enters a rectangle."""
    hits = 0
    for i in range(len(points) - 1):
        for rect in rects:
            if segment_intersects_rect(points[i], points[i + 1], rect):
                hits += 1
    return hits


def simplify_orthogonal(points: Sequence[Point]) -> list[Point]:
    """
    Clean up an orthogonal polyline, keeping both endpoints.

    1. Insert an L-bend (vertical first) for any diagonal segment.
    2. Remove duplicate consecutive points (zero-length segments).
    3. Remove collinear middle points (redundant bends on the same axis).
    """
    if len(points) < 2:
        return list(points)

    # --- Phase 1: fix diagonals ---
    fixed: list[Point] = [points[0]]
    for i in range(len(points) - 1):
        x1, y1 = points[i]
        x2, y2 = points[i + 1]
        if not is_axis_aligned(points[i], points[i + 1]):
            fixed.append((x1, y2))
        fixed.append((x2, y2))

    # --- Phase 2: remove duplicate consecutive points ---
    deduped: list[Point] = [fixed[0]]
    for pt in fixed[1:-1]:
        if same_point(pt, deduped[-1]):
            continue
        deduped.append(pt)
    while len(deduped) > 1 and same_point(deduped[-1], fixed[-1]):
        deduped.pop()
    deduped.append(fixed[-1])

    # --- Phase 3: remove collinear middle points ---
    simplified: list[Point] = [deduped[0]]
    for i in range(1, len(deduped) - 1):
        px, py = simplified[-1]
        cx, cy = deduped[i]
        nx, ny = deduped[i + 1]
        # Same horizontal line
        if abs(py - cy) < EPS and abs(cy - ny) < EPS:
            continue
        # Same vertical line
        if abs(px - cx) < EPS and abs(cx - nx) < EPS:
            continue
        simplified.append((cx, cy))
    simplified.append(deduped[-1])

    return simplified


__all__ = [
    "sub",
    "dot",
    "distance",
    "manhattan_length",
    "same_point",
    "is_axis_aligned",
    "as_segment_array",
    "crossing_matrix",
    "overlap_matrix",
    "segment_intersects_rect",
    "rect_hits",
    "simplify_orthogonal",
]
