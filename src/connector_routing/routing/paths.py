"""Orthogonal path construction.

Turns committed assignments into render descriptors:
- L_SHAPE: one bend, horizontal-first or vertical-first
- S_SHAPE: perpendicular stand-offs joined by a channel
- Parallel S_SHAPE groups laid out side by side without crossings
- Rounded corners as clamped quarter arcs
- Arrowhead and label anchor
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Hashable, Mapping, Optional, Sequence

import numpy as np

from .arrows import orient
from .geometry import (
    EPS,
    as_segment_array,
    crossing_matrix,
    distance,
    dot,
    manhattan_length,
    overlap_matrix,
    rect_hits,
    simplify_orthogonal,
    sub,
)
from .grouping import sort_key
from .types import (
    ConnectionAssignment,
    Corner,
    NodeRect,
    Point,
    Port,
    RoutedPath,
    Shape,
    Side,
)

# (axis of the channel segment's offset, placement)
Variant = tuple[str, str]

_VARIANTS: tuple[Variant, ...] = (
    ("x", "mid"),
    ("y", "mid"),
    ("x", "max"),
    ("x", "min"),
    ("y", "max"),
    ("y", "min"),
)


def _not_perpendicular(a: Point, b: Point, side: Optional[Side]) -> int:
    """1 if segment a-b attaches to `side` along the face instead of across it."""
    if side is None or distance(a, b) < EPS:
        return 0
    if side.is_vertical():
        return int(abs(a[1] - b[1]) > EPS)
    return int(abs(a[0] - b[0]) > EPS)


def l_shape_points(
    start: Point,
    end: Point,
    source_side: Optional[Side],
    target_side: Side,
    terminals: Sequence[NodeRect],
    horizontal_first: Optional[bool] = None,
) -> list[Point]:
    """
    Build a one-bend path.

    Unless forced, the orientation whose legs enter the terminal rectangles
    least wins; ties prefer a perpendicular entry into the target, then a
    perpendicular exit from the source, then horizontal-first.
    """
    (sx, sy), (tx, ty) = start, end
    h_path = [start, (tx, sy), end]
    v_path = [start, (sx, ty), end]
    if horizontal_first is not None:
        return h_path if horizontal_first else v_path

    def _rank(item: tuple[int, list[Point]]) -> tuple[int, int, int, int]:
        order, pts = item
        return (
            rect_hits(pts, terminals),
            _not_perpendicular(pts[1], pts[2], target_side),
            _not_perpendicular(pts[0], pts[1], source_side),
            order,
        )

    return min(enumerate([h_path, v_path]), key=_rank)[1]


def _channel(
    variant: Variant,
    s1: Point,
    t1: Point,
    bounds: tuple[float, float, float, float],
    standoff: float,
) -> float:
    axis, place = variant
    left, top, right, bottom = bounds
    if axis == "x":
        lo, hi, a, b = left, right, s1[0], t1[0]
    else:
        lo, hi, a, b = top, bottom, s1[1], t1[1]
    if place == "mid":
        return (a + b) / 2
    if place == "max":
        return max(hi + standoff, a, b)
    return min(lo - standoff, a, b)


@dataclass(frozen=True)
class _Frame:
    """Stand-off geometry of one S_SHAPE connection."""

    start: Point
    end: Point
    s1: Point  # stand-off point in front of the source port
    t1: Point  # stand-off point in front of the target port
    source_normal: Point
    target_normal: Point
    bounds: tuple[float, float, float, float]
    terminals: tuple[NodeRect, ...]

    @classmethod
    def build(
        cls, source: Port, target: Port, src_rect: NodeRect, tgt_rect: NodeRect, standoff: float
    ) -> _Frame:
        s, t = source.point, target.point
        so, to = source.side.outward, target.side.outward
        return cls(
            start=s,
            end=t,
            s1=(s[0] + so[0] * standoff, s[1] + so[1] * standoff),
            t1=(t[0] + to[0] * standoff, t[1] + to[1] * standoff),
            source_normal=so,
            target_normal=to,
            bounds=(
                min(src_rect.left, tgt_rect.left),
                min(src_rect.top, tgt_rect.top),
                max(src_rect.right, tgt_rect.right),
                max(src_rect.bottom, tgt_rect.bottom),
            ),
            terminals=(src_rect,) if src_rect.id == tgt_rect.id else (src_rect, tgt_rect),
        )

    def channel(self, variant: Variant, standoff: float) -> float:
        return _channel(variant, self.s1, self.t1, self.bounds, standoff)

    def raw_points(self, variant: Variant, standoff: float, offset: float) -> list[Point]:
        """Unsimplified [start, s1, channel start, channel end, t1, end]."""
        c = self.channel(variant, standoff) + offset
        if variant[0] == "x":
            mid = [(c, self.s1[1]), (c, self.t1[1])]
        else:
            mid = [(self.s1[0], c), (self.t1[0], c)]
        return [self.start, self.s1, *mid, self.t1, self.end]

    def doubles_back(self, raw: Sequence[Point]) -> bool:
        """True if the channel turns back across a stand-off leg."""
        return (
            dot(sub(raw[2], raw[1]), self.source_normal) < -EPS
            or dot(sub(raw[4], raw[3]), self.target_normal) > EPS
        )


def s_shape_points(
    source: Port,
    target: Port,
    src_rect: NodeRect,
    tgt_rect: NodeRect,
    standoff: float,
    offset: float = 0.0,
    variant: Optional[Variant] = None,
) -> tuple[list[Point], Variant]:
    """
    Build a stand-off path.

    Both ports first extend `standoff` along their outward normals; the two
    stand-off points are joined through a vertical channel (x-variants) or a
    horizontal channel (y-variants) placed midway or outside both rectangles.
    `offset` shifts the channel along its axis.

    Unless forced, the variant that does not double back, then enters the
    terminal rectangles least, then is shortest wins.

    Returns:
        (points, variant used)
    """
    frame = _Frame.build(source, target, src_rect, tgt_rect, standoff)

    if variant is None:

        def _rank(item: tuple[int, Variant]) -> tuple[bool, int, float, int]:
            order, v = item
            raw = frame.raw_points(v, standoff, 0.0)
            return (
                frame.doubles_back(raw),
                rect_hits(raw, frame.terminals),
                round(manhattan_length(raw), 6),
                order,
            )

        variant = min(enumerate(_VARIANTS), key=_rank)[1]

    return simplify_orthogonal(frame.raw_points(variant, standoff, offset)), variant


def _slot_offsets(variant: Variant, count: int, step: float) -> list[float]:
    """Channel shift of each slot: centred for midway, outward otherwise."""
    place = variant[1]
    if place == "mid":
        return [(j - (count - 1) / 2) * step for j in range(count)]
    sign = 1.0 if place == "max" else -1.0
    return [sign * j * step for j in range(count)]


def _squeeze(
    variant: Variant, frames: Sequence[_Frame], offsets: Sequence[float], standoff: float
) -> tuple[list[float], bool]:
    """
    Shrink midway offsets so no member doubles back past a stand-off point.

    Returns:
        (offsets, whether they were shrunk)
    """
    if variant[1] != "mid":
        return list(offsets), False
    axis = 0 if variant[0] == "x" else 1
    factor = 1.0
    for frame, offset in zip(frames, offsets):
        if abs(offset) <= EPS:
            continue
        c = frame.channel(variant, standoff)
        for point, normal in ((frame.s1, frame.source_normal), (frame.t1, frame.target_normal)):
            u = normal[axis]
            if u == 0 or offset * u >= 0:
                continue
            slack = (c - point[axis]) * u
            if slack >= 0:
                factor = min(factor, slack / abs(offset))
    return [o * factor for o in offsets], factor < 1.0 - EPS


def _conflicts(paths: Sequence[Sequence[Point]]) -> tuple[int, int]:
    """(overlaps, crossings) between segments of different paths."""
    segments: list[tuple[Point, Point]] = []
    owners: list[int] = []
    for i, points in enumerate(paths):
        for a, b in zip(points, points[1:]):
            segments.append((a, b))
            owners.append(i)
    arr = as_segment_array(segments)
    owner = np.array(owners)
    between = np.triu(owner[:, None] != owner[None, :], k=1)
    overlaps = int((overlap_matrix(arr, arr) & between).sum())
    crossings = int((crossing_matrix(arr, arr) & between).sum())
    return overlaps, crossings


def layout_group(
    members: Sequence[ConnectionAssignment],
    rects: Mapping[Hashable, NodeRect],
    standoff: float,
) -> tuple[Variant, dict[Hashable, float]]:
    """
    Place the channels of a parallel S_SHAPE group.

    Members share one channel variant and get one slot each, in the order
    of their source ports along the side, spaced by the group's stagger
    increment. Midway channels are centred on the midline and shrunk so no
    member doubles back inside the stand-off gap; outside channels step
    away from the rectangles. Every variant is tried with the slots in both
    orders. The layout that doubles back least, then enters the terminal
    rectangles least, then has the fewest overlaps and then crossings
    between members wins; an unshrunk layout that keeps every stagger
    visible is preferred over the shortest one.

    Args:
        members: Assignments sharing source node/side and target node/side
        rects: Node rectangles by id
        standoff: S_SHAPE stand-off distance

    Returns:
        (variant, channel offset by connection id)
    """
    ordered = sorted(
        members,
        key=lambda a: (a.source_port.index, a.target_port.index, sort_key(a.connection)),
    )
    frames = [
        _Frame.build(
            a.source_port,
            a.target_port,
            rects[a.source_port.node],
            rects[a.target_port.node],
            standoff,
        )
        for a in ordered
    ]
    step = min((a.stagger for a in ordered if a.stagger > EPS), default=0.0)

    best: Optional[tuple[tuple, Variant, list[float]]] = None
    for order, variant in enumerate(_VARIANTS):
        slots = _slot_offsets(variant, len(ordered), step)
        for direction, arranged in enumerate((slots, slots[::-1])):
            offsets, squeezed = _squeeze(variant, frames, arranged, standoff)
            raws = [f.raw_points(variant, standoff, o) for f, o in zip(frames, offsets)]
            paths = [simplify_orthogonal(raw) for raw in raws]
            rank = (
                sum(f.doubles_back(raw) for f, raw in zip(frames, raws)),
                sum(rect_hits(p, f.terminals) for f, p in zip(frames, paths)),
                *_conflicts(paths),
                squeezed,
                sum(1 for o, p in zip(offsets, paths) if abs(o) > EPS and len(p) == 2),
                round(sum(manhattan_length(p) for p in paths), 6),
                order,
                direction,
            )
            if best is None or rank < best[0]:
                best = (rank, variant, offsets)

    assert best is not None
    _, variant, offsets = best
    return variant, {a.connection: o for a, o in zip(ordered, offsets)}


def round_corners(
    points: Sequence[Point],
    radius: float,
    adaptive: bool = False,
) -> list[Corner]:
    """
    Replace every bend with a quarter arc.

    The radius is clamped to half the shorter adjoining segment so arcs of
    neighbouring corners never overlap. With `adaptive`, the base radius is
    first scaled down for short segments and close endpoints.
    """
    if len(points) < 3:
        return []

    if adaptive and radius > 0:
        shortest = min(distance(points[i], points[i + 1]) for i in range(len(points) - 1))
        total = distance(points[0], points[-1])
        segment_factor = min(shortest / 40.0, 1.0)
        distance_factor = min(max(total / 100.0, 0.3), 1.0)
        radius = min(max(radius * segment_factor * distance_factor, 3.0), 15.0)

    corners: list[Corner] = []
    for i in range(1, len(points) - 1):
        prev, vertex, nxt = points[i - 1], points[i], points[i + 1]
        len_in = distance(prev, vertex)
        len_out = distance(vertex, nxt)
        r = min(radius, len_in / 2, len_out / 2)
        if r <= EPS:
            corners.append(Corner(vertex, vertex, 0.0, vertex, vertex))
            continue
        d_in = ((vertex[0] - prev[0]) / len_in, (vertex[1] - prev[1]) / len_in)
        d_out = ((nxt[0] - vertex[0]) / len_out, (nxt[1] - vertex[1]) / len_out)
        start = (vertex[0] - d_in[0] * r, vertex[1] - d_in[1] * r)
        end = (vertex[0] + d_out[0] * r, vertex[1] + d_out[1] * r)
        center = (start[0] + d_out[0] * r, start[1] + d_out[1] * r)
        corners.append(Corner(vertex, center, r, start, end))
    return corners


def label_anchor(points: Sequence[Point]) -> Optional[Point]:
    """Midpoint of the longest segment."""
    if len(points) < 2:
        return None
    i = max(range(len(points) - 1), key=lambda k: distance(points[k], points[k + 1]))
    (ax, ay), (bx, by) = points[i], points[i + 1]
    return ((ax + bx) / 2, (ay + by) / 2)


def build_path(
    assignment: ConnectionAssignment,
    rects: Mapping[Hashable, NodeRect],
    *,
    standoff: float = 20.0,
    corner_radius: float = 10.0,
    adaptive_corners: bool = False,
    arrow_size: float = 8.0,
    arrow_inset: float = 2.0,
    label: Optional[str] = None,
    variant: Optional[Variant] = None,
    offset: Optional[float] = None,
) -> RoutedPath:
    """
    Build the render descriptor of one assignment.

    Args:
        assignment: Committed ports, shape and stagger
        rects: Node rectangles by id
        standoff: S_SHAPE stand-off distance
        corner_radius: Arc radius before clamping
        adaptive_corners: Scale the radius with the path geometry
        arrow_size: Arrowhead length
        arrow_inset: Arrowhead distance from the border
        label: Event label carried to the drawing layer
        variant: Force an S_SHAPE channel variant
        offset: S_SHAPE channel shift; defaults to the assignment's stagger

    Returns:
        RoutedPath
    """
    target = assignment.target_port
    tgt_rect = rects[target.node]

    if assignment.source_port is None:
        points = l_shape_points(
            assignment.start, target.point, None, target.side, [tgt_rect], horizontal_first=True
        )
    elif assignment.shape == Shape.L_SHAPE:
        source = assignment.source_port
        points = l_shape_points(
            source.point,
            target.point,
            source.side,
            target.side,
            [rects[source.node], tgt_rect],
        )
    else:
        source = assignment.source_port
        points, _ = s_shape_points(
            source,
            target,
            rects[source.node],
            tgt_rect,
            standoff,
            assignment.stagger if offset is None else offset,
            variant,
        )

    corners = round_corners(points, corner_radius, adaptive_corners)
    final_start = corners[-1].end if corners else points[0]
    arrow = orient((final_start, points[-1]), target.side, arrow_inset, arrow_size)

    return RoutedPath(
        connection=assignment.connection,
        points=points,
        corners=corners,
        arrow=arrow,
        shape=assignment.shape,
        label=label,
        label_position=label_anchor(points) if label else None,
    )


def build_paths(
    assignments: Sequence[ConnectionAssignment],
    rects: Mapping[Hashable, NodeRect],
    labels: Optional[Mapping[Hashable, Optional[str]]] = None,
    **options: Any,
) -> dict[Hashable, RoutedPath]:
    """
    Build paths for a whole pass.

    Parallel S_SHAPE connections (same source node/side and target
    node/side) are laid out together by layout_group(), so they share a
    channel variant and their channels stay apart.

    Returns:
        RoutedPath by connection id, in assignment order
    """
    labels = labels or {}
    standoff = float(options.get("standoff", 20.0))

    groups: dict[tuple, list[ConnectionAssignment]] = defaultdict(list)
    for a in assignments:
        if a.source_port is not None and a.shape == Shape.S_SHAPE:
            src, tgt = a.source_port, a.target_port
            groups[(src.node, src.side, tgt.node, tgt.side)].append(a)

    variants: dict[Hashable, Variant] = {}
    offsets: dict[Hashable, float] = {}
    for members in groups.values():
        if len(members) < 2:
            continue
        variant, placed = layout_group(members, rects, standoff)
        for cid, offset in placed.items():
            variants[cid] = variant
            offsets[cid] = offset

    return {
        a.connection: build_path(
            a,
            rects,
            label=labels.get(a.connection),
            variant=variants.get(a.connection),
            offset=offsets.get(a.connection),
            **options,
        )
        for a in assignments
    }


__all__ = [
    "l_shape_points",
    "s_shape_points",
    "layout_group",
    "round_corners",
    "label_anchor",
    "build_path",
    "build_paths",
]
