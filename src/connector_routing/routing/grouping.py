"""Edge grouping and constraint ranking.

Groups connection requests by the (node, side) pairs they occupy or could
occupy, estimates per-side port demand, and orders connections
most-constrained-first for the assignment engine.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Hashable, Sequence

from .types import SIDES, ConnectionRequest, NodeRect, Side

NodeSide = tuple[Hashable, Side]
FamilyKey = tuple[Any, ...]


def predict_sides(src_rect: NodeRect, tgt_rect: NodeRect) -> tuple[Side, Side]:
    """Predict the port sides of an auto connection from relative node position.

    The dominant axis of the vector between the two centers decides:
    horizontal wins when |dx| > |dy|.
    """
    (sx, sy), (tx, ty) = src_rect.center, tgt_rect.center
    dx = tx - sx
    dy = ty - sy

    if abs(dx) > abs(dy):
        if dx > 0:
            return (Side.RIGHT, Side.LEFT)
        else:
            return (Side.LEFT, Side.RIGHT)
    else:
        if dy > 0:
            return (Side.BOTTOM, Side.TOP)
        else:
            return (Side.TOP, Side.BOTTOM)


def predict_entry_side(origin: tuple[float, float], tgt_rect: NodeRect) -> Side:
    """Predict the target side of an entry connection drawn from a free point."""
    (tx, ty) = tgt_rect.center
    dx = tx - origin[0]
    dy = ty - origin[1]
    if abs(dx) > abs(dy):
        return Side.LEFT if dx > 0 else Side.RIGHT
    return Side.TOP if dy > 0 else Side.BOTTOM


def resolved_sides(
    request: ConnectionRequest, rects: dict[Hashable, NodeRect]
) -> tuple[Side | None, Side]:
    """Side pair a request is expected to use: explicit sides, else predicted ones."""
    tgt_rect = rects[request.target]
    if request.is_entry:
        assert request.origin is not None
        return (None, request.target_side or predict_entry_side(request.origin, tgt_rect))

    src_rect = rects[request.source]
    if request.is_self_loop:
        # Default corner loop: out on the right, back in at the bottom
        return (request.source_side or Side.RIGHT, request.target_side or Side.BOTTOM)

    predicted = predict_sides(src_rect, tgt_rect)
    return (request.source_side or predicted[0], request.target_side or predicted[1])


def family_key(request: ConnectionRequest) -> FamilyKey:
    """Key shared by requests drawn as parallel connections."""
    return (request.source, request.source_side, request.target, request.target_side)


def sort_key(connection_id: Hashable) -> tuple[int, Any]:
    """Deterministic ordering of connection ids: numbers first, then strings."""
    if isinstance(connection_id, (int, float)) and not isinstance(connection_id, bool):
        return (0, connection_id)
    return (1, str(connection_id))


@dataclass
class EdgeGroups:
    """
    Connection requests grouped by attachment.

    Attributes:
        plausible: (node, side) -> ids that could attach there; an auto
            endpoint is plausible on all four sides
        parallel: family key -> ids requesting the same node pair and
            side preferences
        demand: (node, side) -> predicted number of ports needed
    """

    plausible: dict[NodeSide, list[Hashable]] = field(default_factory=dict)
    parallel: dict[FamilyKey, list[Hashable]] = field(default_factory=dict)
    demand: dict[NodeSide, int] = field(default_factory=dict)

    def family_size(self, request: ConnectionRequest) -> int:
        return len(self.parallel.get(family_key(request), ()))


def plausible_keys(request: ConnectionRequest) -> frozenset[NodeSide]:
    """(node, side) pairs a request could attach to; auto means all four."""
    keys: set[NodeSide] = set()
    if request.source is not None:
        for side in [request.source_side] if request.source_side else SIDES:
            keys.add((request.source, side))
    for side in [request.target_side] if request.target_side else SIDES:
        keys.add((request.target, side))
    return frozenset(keys)


def group_requests(
    requests: Sequence[ConnectionRequest],
    rects: dict[Hashable, NodeRect],
) -> EdgeGroups:
    """
    Group requests by the (node, side) pairs they use.

    Args:
        requests: Connection requests whose nodes all exist in `rects`
        rects: Node rectangles by id

    Returns:
        EdgeGroups with per-side demand counts
    """
    plausible: dict[NodeSide, list[Hashable]] = defaultdict(list)
    parallel: dict[FamilyKey, list[Hashable]] = defaultdict(list)
    demand: dict[NodeSide, int] = defaultdict(int)

    for request in requests:
        src_side, tgt_side = resolved_sides(request, rects)

        if request.source is not None and src_side is not None:
            demand[(request.source, src_side)] += 1
        demand[(request.target, tgt_side)] += 1
        for key in plausible_keys(request):
            plausible[key].append(request.id)

        if not request.is_entry:
            parallel[family_key(request)].append(request.id)

    return EdgeGroups(
        plausible=dict(plausible),
        parallel=dict(parallel),
        demand=dict(demand),
    )


def side_options(
    node: Hashable,
    preference: Side | None,
    reserved: dict[NodeSide, int],
    demand: dict[NodeSide, int],
) -> int:
    """
    Number of sides still open to one endpoint.

    An explicit side always counts as one option (its pool can grow). An
    auto endpoint counts the sides that are not yet fully reserved; sides
    nobody was predicted to use stay open.
    """
    if preference is not None:
        return 1
    open_sides = 0
    for side in SIDES:
        capacity = demand.get((node, side), 0)
        if capacity == 0 or reserved.get((node, side), 0) < capacity:
            open_sides += 1
    return max(1, open_sides)


def constraint_score(
    request: ConnectionRequest,
    reserved: dict[NodeSide, int],
    demand: dict[NodeSide, int],
) -> float:
    """
    Priority of a connection: 1 / (number of side combinations still open).

    Higher means more constrained and is processed earlier.
    """
    options = side_options(request.target, request.target_side, reserved, demand)
    if request.source is not None:
        options *= side_options(request.source, request.source_side, reserved, demand)
    return 1.0 / options


def group_and_rank(
    requests: Sequence[ConnectionRequest],
    rects: dict[Hashable, NodeRect],
    groups: EdgeGroups | None = None,
) -> list[Hashable]:
    """
    Order connections most-constrained-first.

    After each pick, the ports the picked connection is predicted to use
    are reserved and the remaining scores recomputed, so an auto connection
    whose likely sides fill up moves ahead. Ties are broken by connection id.
    Entry connections are not ranked; the engine handles them first.

    Returns:
        Connection ids in processing order
    """
    if groups is None:
        groups = group_requests(requests, rects)

    remaining = {r.id: r for r in requests if not r.is_entry}
    reserved: dict[NodeSide, int] = defaultdict(int)
    order: list[Hashable] = []

    while remaining:
        best = min(
            remaining.values(),
            key=lambda r: (-constraint_score(r, reserved, groups.demand), sort_key(r.id)),
        )
        order.append(best.id)
        del remaining[best.id]

        src_side, tgt_side = resolved_sides(best, rects)
        if best.source is not None and src_side is not None:
            reserved[(best.source, src_side)] += 1
        reserved[(best.target, tgt_side)] += 1

    return order


__all__ = [
    "EdgeGroups",
    "predict_sides",
    "predict_entry_side",
    "resolved_sides",
    "family_key",
    "sort_key",
    "plausible_keys",
    "group_requests",
    "side_options",
    "constraint_score",
    "group_and_rank",
]
