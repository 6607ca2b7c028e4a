"""
Connection router: one complete routing pass.

Ties the pipeline together:
1. Normalize and validate nodes and connection requests
2. Group requests and rank them most-constrained-first
3. Assign ports and shapes greedily with lookahead
4. Build rounded orthogonal paths with arrowheads

Every call to route() is independent: port pools are rebuilt from the
supplied rectangles, and the only state carried between passes is the
optional stability hint the caller passes back in.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Hashable, Iterator, Optional, Sequence, Union

if TYPE_CHECKING:
    from typing_extensions import Self

from ..validation import (
    InvalidConfigError,
    normalize_connection,
    normalize_node,
    validate_connection_refs,
    validate_non_negative,
    validate_unique_ids,
)
from .assignment import ScoreWeights, StabilityHint, assign
from .grouping import group_and_rank, group_requests
from .paths import build_paths
from .ports import PortPoolArena
from .types import ConnectionAssignment, NodeRect, RoutedPath, Shape, Side


class RoutingWarning(UserWarning):
    """Warning issued when routing input is inconsistent but recoverable."""

    pass


@dataclass
class RoutingResult:
    """
    Output of one routing pass.

    Attributes:
        paths: RoutedPath by connection id, in request order
        assignments: ConnectionAssignment by connection id
        dropped: Ids of requests skipped because they reference unknown nodes
        stability_hint: (shape, source side, target side) by connection id,
            to pass into the next route() call
    """

    paths: dict[Hashable, RoutedPath] = field(default_factory=dict)
    assignments: dict[Hashable, ConnectionAssignment] = field(default_factory=dict)
    dropped: list[Hashable] = field(default_factory=list)
    stability_hint: dict[Hashable, tuple[Shape, Optional[Side], Side]] = field(
        default_factory=dict
    )

    def __getitem__(self, connection_id: Hashable) -> RoutedPath:
        return self.paths[connection_id]

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self.paths

    def __len__(self) -> int:
        return len(self.paths)

    def __iter__(self) -> Iterator[RoutedPath]:
        return iter(self.paths.values())


HintLike = Union[StabilityHint, RoutingResult, None]


class ConnectionRouter:
    """
    Orthogonal connection router.

    Example:
        router = ConnectionRouter(corner_radius=6, stagger_step=12)
        result = router.route(
            nodes=[{"id": "A", "x": 0, "y": 0, "width": 100, "height": 50},
                   {"id": "B", "x": 300, "y": 0, "width": 100, "height": 50}],
            connections=[{"id": 1, "source": "A", "target": "B"}],
        )
        result[1].points  # [(100.0, 25.0), (300.0, 25.0), (300.0, 25.0)]
    """

    _OPTIONS = (
        "port_margin",
        "standoff",
        "corner_radius",
        "adaptive_corners",
        "stagger_step",
        "arrow_size",
        "arrow_inset",
        "close_distance",
        "crossing_weight",
        "lookahead_weight",
        "distance_weight",
        "lookahead",
    )

    def __init__(
        self,
        *,
        port_margin: float = 8.0,
        standoff: float = 20.0,
        corner_radius: float = 10.0,
        adaptive_corners: bool = False,
        stagger_step: float = 15.0,
        arrow_size: float = 8.0,
        arrow_inset: float = 2.0,
        close_distance: float = 80.0,
        crossing_weight: float = 1.0,
        lookahead_weight: float = 0.5,
        distance_weight: float = 0.0001,
        lookahead: bool = True,
    ) -> None:
        """
        Initialize the router.

        Args:
            port_margin: Inset of the outermost ports from node corners
            standoff: Perpendicular run out of a port before an S_SHAPE turns
            corner_radius: Radius of rounded bends (0 for sharp corners)
            adaptive_corners: Shrink the radius for short segments and
                close endpoints
            stagger_step: Offset between the channels of parallel connections
            arrow_size: Length of the arrowhead
            arrow_inset: Gap between the arrow tip and the node border
            close_distance: Port distance under which S_SHAPE is used
            crossing_weight: Score weight of immediate crossings
            lookahead_weight: Score weight of the lookahead term
            distance_weight: Score weight of port distance
            lookahead: If False, score candidates without lookahead
        """
        self.port_margin = port_margin
        self.standoff = standoff
        self.corner_radius = corner_radius
        self.adaptive_corners = adaptive_corners
        self.stagger_step = stagger_step
        self.arrow_size = arrow_size
        self.arrow_inset = arrow_inset
        self.close_distance = close_distance
        self.crossing_weight = crossing_weight
        self.lookahead_weight = lookahead_weight
        self.distance_weight = distance_weight
        self.lookahead = lookahead

    def __repr__(self) -> str:
        options = ", ".join(f"{name}={getattr(self, name)!r}" for name in self._OPTIONS)
        return f"ConnectionRouter({options})"

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def port_margin(self) -> float:
        """Get corner inset of ports."""
        return self._port_margin

    @port_margin.setter
    def port_margin(self, value: float) -> None:
        self._port_margin = validate_non_negative("port_margin", value)

    @property
    def standoff(self) -> float:
        """Get S_SHAPE stand-off distance."""
        return self._standoff

    @standoff.setter
    def standoff(self, value: float) -> None:
        self._standoff = validate_non_negative("standoff", value)

    @property
    def corner_radius(self) -> float:
        """Get corner radius."""
        return self._corner_radius

    @corner_radius.setter
    def corner_radius(self, value: float) -> None:
        self._corner_radius = validate_non_negative("corner_radius", value)

    @property
    def adaptive_corners(self) -> bool:
        """Get whether corner radius adapts to path geometry."""
        return self._adaptive_corners

    @adaptive_corners.setter
    def adaptive_corners(self, value: bool) -> None:
        self._adaptive_corners = bool(value)

    @property
    def stagger_step(self) -> float:
        """Get offset between parallel connections."""
        return self._stagger_step

    @stagger_step.setter
    def stagger_step(self, value: float) -> None:
        self._stagger_step = validate_non_negative("stagger_step", value)

    @property
    def arrow_size(self) -> float:
        """Get arrowhead length."""
        return self._arrow_size

    @arrow_size.setter
    def arrow_size(self, value: float) -> None:
        self._arrow_size = validate_non_negative("arrow_size", value)

    @property
    def arrow_inset(self) -> float:
        """Get arrow tip gap from the node border."""
        return self._arrow_inset

    @arrow_inset.setter
    def arrow_inset(self, value: float) -> None:
        self._arrow_inset = validate_non_negative("arrow_inset", value)

    @property
    def close_distance(self) -> float:
        """Get port distance under which S_SHAPE is used."""
        return self._close_distance

    @close_distance.setter
    def close_distance(self, value: float) -> None:
        self._close_distance = validate_non_negative("close_distance", value)

    @property
    def crossing_weight(self) -> float:
        return self._crossing_weight

    @crossing_weight.setter
    def crossing_weight(self, value: float) -> None:
        self._crossing_weight = validate_non_negative("crossing_weight", value)

    @property
    def lookahead_weight(self) -> float:
        return self._lookahead_weight

    @lookahead_weight.setter
    def lookahead_weight(self, value: float) -> None:
        self._lookahead_weight = validate_non_negative("lookahead_weight", value)

    @property
    def distance_weight(self) -> float:
        return self._distance_weight

    @distance_weight.setter
    def distance_weight(self, value: float) -> None:
        self._distance_weight = validate_non_negative("distance_weight", value)

    @property
    def lookahead(self) -> bool:
        """Get whether candidate scoring looks one connection ahead."""
        return self._lookahead

    @lookahead.setter
    def lookahead(self, value: bool) -> None:
        self._lookahead = bool(value)

    @property
    def weights(self) -> ScoreWeights:
        """Score weights as used by the assignment engine."""
        return ScoreWeights(
            crossings=self._crossing_weight,
            lookahead=self._lookahead_weight,
            distance=self._distance_weight,
        )

    def configure(self, **options: Any) -> Self:
        """
        Set several options at once.

        Returns:
            self (for chaining)

        Raises:
            InvalidConfigError: If an option name is unknown or a value invalid
        """
        unknown = sorted(set(options) - set(self._OPTIONS))
        if unknown:
            raise InvalidConfigError(f"Unknown router option(s): {', '.join(unknown)}")
        for name, value in options.items():
            setattr(self, name, value)
        return self

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    def route(
        self,
        nodes: Sequence[Any],
        connections: Sequence[Any],
        hint: HintLike = None,
    ) -> RoutingResult:
        """
        Route every connection.

        Args:
            nodes: NodeRect objects, dicts or objects with id, x, y, width,
                height and optional parent
            connections: ConnectionRequest objects, dicts or objects with id,
                source, target and optional source_side, target_side, label
                and origin
            hint: stability_hint (or the RoutingResult) of the previous pass;
                only breaks ties, never overrides a better score

        Returns:
            RoutingResult

        Raises:
            InvalidNodeError: If a node is malformed
            InvalidConnectionError: If a request is malformed or ids repeat
        """
        rects = self._index_nodes(nodes)
        requests = [normalize_connection(c) for c in connections]
        validate_unique_ids(requests)

        issues = validate_connection_refs(requests, rects, strict=False)
        dropped: list[Hashable] = []
        for conn_id, message in issues:
            if conn_id not in dropped:
                dropped.append(conn_id)
            warnings.warn(
                f"{message}; connection skipped",
                RoutingWarning,
                stacklevel=2,
            )
        live = [r for r in requests if r.id not in dropped]

        if isinstance(hint, RoutingResult):
            hint = hint.stability_hint

        groups = group_requests(live, rects)
        ranked = group_and_rank(live, rects, groups)
        arena = PortPoolArena(rects, groups.demand, self._port_margin)
        committed = assign(
            ranked,
            {r.id: r for r in live},
            rects,
            arena,
            groups,
            hint=hint,
            weights=self.weights,
            close_distance=self._close_distance,
            stagger_step=self._stagger_step,
            lookahead=self._lookahead,
        )
        by_id = {a.connection: a for a in committed}

        paths = build_paths(
            committed,
            rects,
            labels={r.id: r.label for r in live},
            standoff=self._standoff,
            corner_radius=self._corner_radius,
            adaptive_corners=self._adaptive_corners,
            arrow_size=self._arrow_size,
            arrow_inset=self._arrow_inset,
        )

        result = RoutingResult(dropped=dropped)
        for request in live:
            assignment = by_id[request.id]
            result.assignments[request.id] = assignment
            result.paths[request.id] = paths[request.id]
            result.stability_hint[request.id] = (
                assignment.shape,
                assignment.source_port.side if assignment.source_port else None,
                assignment.target_port.side,
            )
        return result

    def _index_nodes(self, nodes: Sequence[Any]) -> dict[Hashable, NodeRect]:
        rects: dict[Hashable, NodeRect] = {}
        for data in nodes:
            rect = normalize_node(data)
            if rect.id in rects:
                warnings.warn(
                    f"Duplicate node id {rect.id!r}; the last rectangle is used",
                    RoutingWarning,
                    stacklevel=3,
                )
            rects[rect.id] = rect
        return rects


def route_connections(
    nodes: Sequence[Any],
    connections: Sequence[Any],
    hint: HintLike = None,
    **options: Any,
) -> RoutingResult:
    """Route connections with a one-off ConnectionRouter built from `options`."""
    return ConnectionRouter(**options).route(nodes, connections, hint=hint)


__all__ = [
    "RoutingWarning",
    "RoutingResult",
    "ConnectionRouter",
    "route_connections",
]
