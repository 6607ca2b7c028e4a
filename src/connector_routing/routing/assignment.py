"""Greedy port assignment with one level of lookahead.

Connections are processed in constraint order. For each one, the
available (source port, target port) pairs are scored by

    w1 * immediate crossings + w2 * lookahead cost + w3 * distance

using the straight source-target line as a cheap proxy for the final
route, and the lowest-scoring pair is committed. There is no
backtracking. Each pool offers a connection at most three ports and the
lookahead weighs at most a fixed number of later connections that could
share a (node, side) with the candidate, so a pass stays O(connections^2)
instead of an exponential optimal search.

Scoring never mutates shared state: it reads an immutable snapshot of the
committed lines and the current pools. Ports are taken only on commit.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Hashable, Mapping, Optional, Sequence

import numpy as np

from .geometry import as_segment_array, crossing_matrix, distance, dot, sub
from .grouping import EdgeGroups, plausible_keys, resolved_sides, sort_key
from .ports import PortPoolArena
from .types import (
    SIDES,
    ConnectionAssignment,
    ConnectionRequest,
    NodeRect,
    Point,
    Port,
    Shape,
    Side,
)

# connection id -> (shape, source side, target side) of the previous pass
StabilityHint = Mapping[Hashable, tuple[Shape, Optional[Side], Side]]

Quad = tuple[Hashable, Optional[Side], Hashable, Side]

_TIE = 1e-9

# later connections weighed by the lookahead of one assignment
_LOOKAHEAD_LIMIT = 8


@dataclass(frozen=True)
class ScoreWeights:
    """Weights of the candidate score terms."""

    crossings: float = 1.0
    lookahead: float = 0.5
    distance: float = 0.0001


@dataclass(frozen=True)
class Candidate:
    """A possible (source port, target port) pair for one connection."""

    source_port: Optional[Port]
    target_port: Port
    start: Point

    @property
    def end(self) -> Point:
        return self.target_port.point

    @property
    def segment(self) -> tuple[Point, Point]:
        return (self.start, self.end)

    @property
    def length(self) -> float:
        return distance(self.start, self.end)


def enumerate_candidates(
    request: ConnectionRequest,
    arena: PortPoolArena,
    sides: Optional[tuple[Optional[Side], Optional[Side]]] = None,
    window: bool = False,
) -> list[Candidate]:
    """
    List the port pairs still available to a connection.

    An explicit side restricts that endpoint to one face; auto considers all
    four. `sides` overrides the request's preferences (used by the lookahead
    to look only at a future connection's likely faces). Self-loops never
    use one port for both ends.

    With `window`, each pool offers at most its two outermost free ports and
    the free port closest to the other end, so a connection has a bounded
    number of candidates however busy its nodes are.
    """
    src_pref, tgt_pref = sides if sides is not None else (request.source_side, request.target_side)
    tgt_sides = [tgt_pref] if tgt_pref else list(SIDES)

    candidates: list[Candidate] = []
    if request.is_entry:
        assert request.origin is not None
        toward = request.origin if window else None
        for ts in tgt_sides:
            for tp in arena.pool(request.target, ts).candidates(toward=toward):
                candidates.append(Candidate(None, tp, request.origin))
        return candidates

    src_toward = arena.rect(request.target).center if window else None
    tgt_toward = arena.rect(request.source).center if window else None
    src_sides = [src_pref] if src_pref else list(SIDES)
    for ss in src_sides:
        for sp in arena.pool(request.source, ss).candidates(toward=src_toward):
            for ts in tgt_sides:
                exclude = [sp.index] if request.is_self_loop and ts == ss else []
                pool = arena.pool(request.target, ts)
                for tp in pool.candidates(exclude, toward=tgt_toward):
                    candidates.append(Candidate(sp, tp, sp.point))
    return candidates


class _PortIds:
    """Small integer ids for port keys, for vectorized comparisons."""

    def __init__(self) -> None:
        self._ids: dict[tuple[Hashable, Side, int], int] = {}

    def __call__(self, port: Optional[Port]) -> int:
        if port is None:
            return -1
        return self._ids.setdefault(port.key, len(self._ids))


@dataclass
class _FutureOptions:
    """Precomputed options of one not-yet-assigned connection."""

    segments: np.ndarray  # (o, 4)
    src_ids: np.ndarray  # (o,)
    tgt_ids: np.ndarray  # (o,)
    base_cost: np.ndarray  # (o,) crossings with committed * w1 + distance * w3
    best: float
    keys: frozenset  # (node, side) pairs the connection could attach to


def _future_options(
    request: ConnectionRequest,
    rects: dict[Hashable, NodeRect],
    arena: PortPoolArena,
    committed: np.ndarray,
    port_ids: _PortIds,
    weights: ScoreWeights,
) -> Optional[_FutureOptions]:
    sides = resolved_sides(request, rects)
    options = enumerate_candidates(request, arena, sides, window=True)
    if not options:
        return None
    segments = as_segment_array([c.segment for c in options])
    crossings = crossing_matrix(segments, committed).sum(axis=1)
    lengths = np.array([c.length for c in options], dtype=float)
    base_cost = weights.crossings * crossings + weights.distance * lengths
    return _FutureOptions(
        segments=segments,
        src_ids=np.array([port_ids(c.source_port) for c in options]),
        tgt_ids=np.array([port_ids(c.target_port) for c in options]),
        base_cost=base_cost,
        best=float(base_cost.min()),
        keys=plausible_keys(request),
    )


def score_candidates(
    candidates: Sequence[Candidate],
    committed: np.ndarray,
    futures: Sequence[_FutureOptions],
    port_ids: _PortIds,
    weights: ScoreWeights,
) -> np.ndarray:
    """
    Score candidates of one connection (lower is better).

    Args:
        candidates: Port pairs under test
        committed: (m, 4) straight lines of committed assignments
        futures: Options of not-yet-assigned connections; each one only
            weighs on candidates using a (node, side) it could attach to
        port_ids: Port key encoder shared with `futures`
        weights: Score weights

    Returns:
        (len(candidates),) array of scores
    """
    segs = as_segment_array([c.segment for c in candidates])
    immediate = crossing_matrix(segs, committed).sum(axis=1)
    lengths = np.array([c.length for c in candidates], dtype=float)

    lookahead = np.zeros(len(candidates), dtype=float)
    if futures and weights.lookahead:
        c_src = np.array([port_ids(c.source_port) for c in candidates])
        c_tgt = np.array([port_ids(c.target_port) for c in candidates])
        c_keys = [
            (
                (c.source_port.node, c.source_port.side) if c.source_port else None,
                (c.target_port.node, c.target_port.side),
            )
            for c in candidates
        ]
        for fut in futures:
            relevant = np.array([src in fut.keys or tgt in fut.keys for src, tgt in c_keys])
            if not relevant.any():
                continue
            # (o, c): does future option o cross candidate c / share a port with it
            crosses = crossing_matrix(fut.segments, segs)
            f_src = fut.src_ids[:, None]
            f_tgt = fut.tgt_ids[:, None]
            usable = (
                ((f_src < 0) | ((f_src != c_src[None, :]) & (f_src != c_tgt[None, :])))
                & (f_tgt != c_src[None, :])
                & (f_tgt != c_tgt[None, :])
            )
            cost = fut.base_cost[:, None] + weights.crossings * crosses
            cost = np.where(usable, cost, np.inf)
            after = cost.min(axis=0)
            # Exhausted side: the pool grows; count it as one crossing
            after = np.where(np.isinf(after), fut.best + weights.crossings, after)
            lookahead += np.where(relevant, np.maximum(0.0, after - fut.best), 0.0)

    return (
        weights.crossings * immediate
        + weights.lookahead * lookahead
        + weights.distance * lengths
    )


def _pick(
    candidates: Sequence[Candidate],
    scores: np.ndarray,
    hinted: Optional[tuple[Optional[Side], Side]],
) -> Candidate:
    """Lowest score; ties prefer the hinted sides, then enumeration order."""
    best = float(scores.min())
    tied = [c for c, s in zip(candidates, scores) if s <= best + _TIE]
    if hinted is not None and len(tied) > 1:
        for cand in tied:
            src_side = cand.source_port.side if cand.source_port else None
            if (src_side, cand.target_port.side) == hinted:
                return cand
    return tied[0]


def is_ancestor(rects: dict[Hashable, NodeRect], ancestor: Hashable, node: Hashable) -> bool:
    """True if `ancestor` encloses `node` through the parent chain."""
    seen: set[Hashable] = set()
    current = rects.get(node)
    while current is not None and current.parent is not None and current.parent not in seen:
        if current.parent == ancestor:
            return True
        seen.add(current.parent)
        current = rects.get(current.parent)
    return False


def l_shape_doubles_back(source: Port, target: Port) -> bool:
    """
    True if both L orientations run back into a node.

    An orientation is rejected when its first leg heads into the source
    node or its last leg leaves the target node's face outward.
    """
    s, t = source.point, target.point
    for bend in ((t[0], s[1]), (s[0], t[1])):
        first = sub(bend, s)
        last = sub(t, bend)
        if dot(first, source.side.outward) >= -1e-9 and dot(last, target.side.outward) <= 1e-9:
            return False
    return True


def select_shape(
    request: ConnectionRequest,
    source: Optional[Port],
    target: Port,
    rects: dict[Hashable, NodeRect],
    groups: EdgeGroups,
    quad_shapes: Mapping[Quad, list[Shape]],
    close_distance: float,
    hint: Optional[StabilityHint] = None,
) -> Shape:
    """
    Choose L_SHAPE or S_SHAPE for a committed port pair.

    S_SHAPE is preferred for self-loops, same-side pairs, node/ancestor
    pairs, parallel families, groups that already went S_SHAPE, close
    endpoints and pairs where every L orientation would double back.
    """
    if request.is_entry or source is None:
        return Shape.L_SHAPE
    if request.is_self_loop or source.side == target.side:
        return Shape.S_SHAPE
    if is_ancestor(rects, request.source, request.target) or is_ancestor(
        rects, request.target, request.source
    ):
        return Shape.S_SHAPE
    if groups.family_size(request) > 1:
        return Shape.S_SHAPE
    quad = (request.source, source.side, request.target, target.side)
    if Shape.S_SHAPE in quad_shapes.get(quad, ()):
        return Shape.S_SHAPE

    threshold = close_distance
    if hint is not None and request.id in hint and hint[request.id][0] == Shape.S_SHAPE:
        # Hysteresis against flicker around the threshold
        threshold *= 1.25
    if distance(source.point, target.point) < threshold:
        return Shape.S_SHAPE

    if l_shape_doubles_back(source, target):
        return Shape.S_SHAPE
    return Shape.L_SHAPE


def _endpoint_keys(candidate: Candidate) -> list[tuple[Hashable, Side]]:
    keys = [(candidate.target_port.node, candidate.target_port.side)]
    if candidate.source_port is not None:
        keys.append((candidate.source_port.node, candidate.source_port.side))
    return keys


@dataclass
class _Commit:
    request: ConnectionRequest
    source: Optional[Port]
    target: Port
    shape: Shape


def assign(
    ranked: Sequence[Hashable],
    requests: Mapping[Hashable, ConnectionRequest],
    rects: dict[Hashable, NodeRect],
    arena: PortPoolArena,
    groups: EdgeGroups,
    *,
    hint: Optional[StabilityHint] = None,
    weights: ScoreWeights = ScoreWeights(),
    close_distance: float = 80.0,
    stagger_step: float = 15.0,
    lookahead: bool = True,
) -> list[ConnectionAssignment]:
    """
    Assign ports and shapes to every connection in a single greedy pass.

    Entry connections (no source node) are placed first on the target port
    closest to their origin. The ranked connections follow.

    Args:
        ranked: Connection ids in processing order (from group_and_rank)
        requests: Requests by id (entries included)
        rects: Node rectangles by id
        arena: Port pools of this pass, consumed by this call
        groups: Grouping of the requests
        hint: Previous pass's choices, used only to break ties
        weights: Score weights
        close_distance: Port distance under which S_SHAPE is used
        stagger_step: Offset between members of a parallel group
        lookahead: If False, skip the lookahead term

    Returns:
        One ConnectionAssignment per request, entries first then in ranked order
    """
    commits: list[_Commit] = []
    committed_lines: list[tuple[Point, Point]] = []
    quad_shapes: dict[Quad, list[Shape]] = defaultdict(list)

    entries = sorted((r for r in requests.values() if r.is_entry), key=lambda r: sort_key(r.id))
    for request in entries:
        options = enumerate_candidates(request, arena)
        best = min(options, key=lambda c: c.length)
        arena.take(best.target_port)
        commits.append(_Commit(request, None, best.target_port, Shape.L_SHAPE))
        committed_lines.append(best.segment)

    pending = [cid for cid in ranked if not requests[cid].is_entry]
    position_of = {cid: i for i, cid in enumerate(pending)}
    for position, cid in enumerate(pending):
        request = requests[cid]
        candidates = enumerate_candidates(request, arena, window=True)
        committed = as_segment_array(committed_lines)
        port_ids = _PortIds()

        futures: list[_FutureOptions] = []
        if lookahead:
            later: set[Hashable] = set()
            for key in {k for c in candidates for k in _endpoint_keys(c)}:
                for other_id in groups.plausible.get(key, ()):
                    if position_of.get(other_id, -1) > position:
                        later.add(other_id)
            for other_id in sorted(later, key=position_of.__getitem__)[:_LOOKAHEAD_LIMIT]:
                other = requests[other_id]
                fut = _future_options(other, rects, arena, committed, port_ids, weights)
                if fut is not None:
                    futures.append(fut)

        scores = score_candidates(candidates, committed, futures, port_ids, weights)
        hinted = None
        if hint is not None and cid in hint:
            hinted = (hint[cid][1], hint[cid][2])
        best = _pick(candidates, scores, hinted)

        assert best.source_port is not None
        arena.take(best.source_port)
        arena.take(best.target_port)

        shape = select_shape(
            request,
            best.source_port,
            best.target_port,
            rects,
            groups,
            quad_shapes,
            close_distance,
            hint,
        )
        quad = (request.source, best.source_port.side, request.target, best.target_port.side)
        quad_shapes[quad].append(shape)
        commits.append(_Commit(request, best.source_port, best.target_port, shape))
        committed_lines.append(best.segment)

    return _finalize(commits, arena, stagger_step)


def _finalize(
    commits: Sequence[_Commit], arena: PortPoolArena, stagger_step: float
) -> list[ConnectionAssignment]:
    """Settle port positions and compute stagger offsets per parallel group."""
    arena.settle()
    resolved = [
        (
            c,
            arena.resolve(c.source) if c.source is not None else None,
            arena.resolve(c.target),
        )
        for c in commits
    ]

    quads: dict[Quad, list[int]] = defaultdict(list)
    for i, (c, src, tgt) in enumerate(resolved):
        if src is not None:
            quads[(src.node, src.side, tgt.node, tgt.side)].append(i)

    stagger = [0.0] * len(resolved)
    shapes = [c.shape for c, _, _ in resolved]
    for members in quads.values():
        if len(members) < 2:
            continue

        def _rank_key(i: int) -> tuple[float, tuple]:
            c, src, tgt = resolved[i]
            assert src is not None
            return (round(distance(src.point, tgt.point), 9), sort_key(c.request.id))

        for rank, i in enumerate(sorted(members, key=_rank_key)):
            stagger[i] = rank * stagger_step
            shapes[i] = Shape.S_SHAPE

    return [
        ConnectionAssignment(
            connection=c.request.id,
            source_port=src,
            target_port=tgt,
            shape=shapes[i],
            stagger=stagger[i],
            origin=c.request.origin if c.request.is_entry else None,
        )
        for i, (c, src, tgt) in enumerate(resolved)
    ]


__all__ = [
    "StabilityHint",
    "ScoreWeights",
    "Candidate",
    "enumerate_candidates",
    "score_candidates",
    "is_ancestor",
    "l_shape_doubles_back",
    "select_shape",
    "assign",
]
