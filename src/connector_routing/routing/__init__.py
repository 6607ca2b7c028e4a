"""
Orthogonal connection routing.

Routes connections between node rectangles using only horizontal and
vertical segments, on exclusive ports spread along node sides:

- ports: evenly spaced, growable port pools per (node, side)
- grouping: per-side demand and most-constrained-first ranking
- assignment: greedy port selection with one level of lookahead
- paths: L/S shaped paths, parallel staggering, rounded corners
- arrows: arrowheads perpendicular to the target face
- router: ConnectionRouter, one complete pass
"""

from .types import (
    SIDES,
    ArrowHead,
    ConnectionAssignment,
    ConnectionRequest,
    Corner,
    NodeRect,
    Point,
    Port,
    RoutedPath,
    Shape,
    Side,
    SideLike,
    coerce_side,
)

from .arrows import arrow_polygon, orient
from .assignment import (
    Candidate,
    ScoreWeights,
    StabilityHint,
    assign,
    enumerate_candidates,
    score_candidates,
    select_shape,
)
from .grouping import (
    EdgeGroups,
    constraint_score,
    group_and_rank,
    group_requests,
    predict_sides,
)
from .paths import build_path, build_paths, round_corners
from .ports import PortPool, PortPoolArena, allocate
from .router import ConnectionRouter, RoutingResult, RoutingWarning, route_connections

__all__ = [
    # Types
    "SIDES",
    "ArrowHead",
    "ConnectionAssignment",
    "ConnectionRequest",
    "Corner",
    "NodeRect",
    "Point",
    "Port",
    "RoutedPath",
    "Shape",
    "Side",
    "SideLike",
    "coerce_side",
    # Ports
    "allocate",
    "PortPool",
    "PortPoolArena",
    # Grouping
    "EdgeGroups",
    "predict_sides",
    "group_requests",
    "constraint_score",
    "group_and_rank",
    # Assignment
    "Candidate",
    "ScoreWeights",
    "StabilityHint",
    "enumerate_candidates",
    "score_candidates",
    "select_shape",
    "assign",
    # Paths
    "build_path",
    "build_paths",
    "round_corners",
    # Arrows
    "arrow_polygon",
    "orient",
    # Router
    "ConnectionRouter",
    "RoutingResult",
    "RoutingWarning",
    "route_connections",
]
