"""
Type definitions for connection routing.

Provides data structures for node rectangles, connection requests, ports,
committed assignments and the routed paths handed to a drawing layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Hashable, Optional, Union

Point = tuple[float, float]


class Side(Enum):
    """Side of a node where connections can attach."""

    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"

    def opposite(self) -> Side:
        """Get the opposite side."""
        opposites = {
            Side.TOP: Side.BOTTOM,
            Side.BOTTOM: Side.TOP,
            Side.RIGHT: Side.LEFT,
            Side.LEFT: Side.RIGHT,
        }
        return opposites[self]

    def is_horizontal(self) -> bool:
        """Check if this side is a horizontal face of the node."""
        return self in (Side.TOP, Side.BOTTOM)

    def is_vertical(self) -> bool:
        """Check if this side is a vertical face of the node."""
        return self in (Side.LEFT, Side.RIGHT)

    @property
    def outward(self) -> Point:
        """Unit normal pointing away from the node (y grows downward)."""
        return _OUTWARD[self]

    @property
    def inward(self) -> Point:
        """Unit normal pointing into the node."""
        dx, dy = _OUTWARD[self]
        return (-dx, -dy)


_OUTWARD: dict[Side, Point] = {
    Side.TOP: (0.0, -1.0),
    Side.RIGHT: (1.0, 0.0),
    Side.BOTTOM: (0.0, 1.0),
    Side.LEFT: (-1.0, 0.0),
}

SIDES: tuple[Side, ...] = (Side.TOP, Side.RIGHT, Side.BOTTOM, Side.LEFT)

SideLike = Union[Side, str, None]


def coerce_side(value: SideLike) -> Optional[Side]:
    """
    Normalize a side preference.

    Accepts Side values, their string names ("top", "Right", ...) and
    None / "auto" for an unconstrained endpoint.

    Raises:
        ValueError: If the string does not name a side
    """
    if value is None or isinstance(value, Side):
        return value
    name = str(value).strip().lower()
    if name in ("", "auto"):
        return None
    try:
        return Side(name)
    except ValueError:
        raise ValueError(f"Unknown side: {value!r}") from None


class Shape(Enum):
    """Routing style of a connection."""

    L_SHAPE = "l"  # one bend
    S_SHAPE = "s"  # perpendicular stand-offs joined by a channel


@dataclass(frozen=True)
class NodeRect:
    """
    Axis-aligned bounds of a node.

    (x, y) is the top-left corner; y grows downward. The optional parent
    is the id of the enclosing node in the state hierarchy.
    """

    id: Hashable
    x: float
    y: float
    width: float
    height: float
    parent: Optional[Hashable] = None

    @property
    def left(self) -> float:
        """Left edge x coordinate."""
        return self.x

    @property
    def right(self) -> float:
        """Right edge x coordinate."""
        return self.x + self.width

    @property
    def top(self) -> float:
        """Top edge y coordinate."""
        return self.y

    @property
    def bottom(self) -> float:
        """Bottom edge y coordinate."""
        return self.y + self.height

    @property
    def center(self) -> Point:
        """Center point."""
        return (self.x + self.width / 2, self.y + self.height / 2)

    def side_span(self, side: Side) -> tuple[Point, Point]:
        """
        Get the endpoints of one face of the rectangle.

        Faces run left-to-right (TOP/BOTTOM) or top-to-bottom (LEFT/RIGHT).
        """
        if side == Side.TOP:
            return (self.left, self.top), (self.right, self.top)
        elif side == Side.BOTTOM:
            return (self.left, self.bottom), (self.right, self.bottom)
        elif side == Side.LEFT:
            return (self.left, self.top), (self.left, self.bottom)
        else:  # RIGHT
            return (self.right, self.top), (self.right, self.bottom)


@dataclass(frozen=True)
class ConnectionRequest:
    """
    A transition the host wants drawn.

    A side of None means "auto": the engine may pick any face. A request
    with no source and an origin point is an entry connection drawn from
    that point (the initial-state marker of a machine).

    Side names such as "right" or "auto" are converted on construction;
    an unknown name raises ValueError.
    """

    id: Hashable
    source: Optional[Hashable]
    target: Hashable
    source_side: Optional[Side] = None
    target_side: Optional[Side] = None
    label: Optional[str] = None
    origin: Optional[Point] = None

    def __post_init__(self) -> None:
        # accept side names as well as Side values
        object.__setattr__(self, "source_side", coerce_side(self.source_side))
        object.__setattr__(self, "target_side", coerce_side(self.target_side))

    @property
    def is_self_loop(self) -> bool:
        """True if the connection starts and ends on the same node."""
        return self.source is not None and self.source == self.target

    @property
    def is_entry(self) -> bool:
        """True for connections drawn from a free origin point."""
        return self.source is None


@dataclass(frozen=True)
class Port:
    """
    An attachment point on a node side.

    The index identifies the port within the (node, side) pool; two
    assignments of one pass never share (node, side, index).
    """

    node: Hashable
    side: Side
    index: int
    x: float
    y: float

    @property
    def point(self) -> Point:
        """(x, y) position of the port."""
        return (self.x, self.y)

    @property
    def key(self) -> tuple[Hashable, Side, int]:
        """Identity of the port within a pass."""
        return (self.node, self.side, self.index)


@dataclass(frozen=True)
class ConnectionAssignment:
    """Committed port/shape decision for one connection."""

    connection: Hashable
    source_port: Optional[Port]  # None for entry connections
    target_port: Port
    shape: Shape
    stagger: float = 0.0
    origin: Optional[Point] = None

    @property
    def start(self) -> Point:
        """Start point of the connection."""
        if self.source_port is None:
            assert self.origin is not None
            return self.origin
        return self.source_port.point

    @property
    def end(self) -> Point:
        """End point of the connection."""
        return self.target_port.point


@dataclass
class Corner:
    """
    A rounded bend.

    The sharp vertex is replaced by a quarter arc of the given radius
    between the two tangent points. A radius of 0 keeps the corner sharp.
    """

    vertex: Point
    center: Point
    radius: float
    start: Point  # tangent point on the incoming segment
    end: Point  # tangent point on the outgoing segment

    def bezier(self) -> tuple[Point, Point, Point, Point]:
        """Cubic bezier control points approximating the quarter arc."""
        k = 0.552 * self.radius
        (sx, sy), (ex, ey), (vx, vy) = self.start, self.end, self.vertex
        d1 = _unit(vx - sx, vy - sy)
        d2 = _unit(ex - vx, ey - vy)
        c1 = (sx + d1[0] * k, sy + d1[1] * k)
        c2 = (ex - d2[0] * k, ey - d2[1] * k)
        return (self.start, c1, c2, self.end)


def _unit(dx: float, dy: float) -> Point:
    length = (dx * dx + dy * dy) ** 0.5
    if length == 0:
        return (0.0, 0.0)
    return (dx / length, dy / length)


@dataclass
class ArrowHead:
    """Arrowhead transform at the target end of a path."""

    position: Point  # tip of the glyph
    rotation: float  # degrees, one of 0 / 90 / 180 / 270
    direction: Point  # unit vector the arrow points along
    polygon: list[Point] = field(default_factory=list)


@dataclass
class RoutedPath:
    """
    Render descriptor for one connection.

    points holds the sharp polyline (start, bends..., end); corners holds
    one Corner per bend in order.
    """

    connection: Hashable
    points: list[Point]
    corners: list[Corner]
    arrow: ArrowHead
    shape: Shape
    label: Optional[str] = None
    label_position: Optional[Point] = None

    @property
    def bends(self) -> list[Point]:
        """Bend vertices (without the two endpoints)."""
        return self.points[1:-1]

    def segments(self) -> list[tuple[Point, Point]]:
        """
        Get the straight pieces of the path between rounded corners.

        Zero-length pieces are omitted.
        """
        if len(self.points) < 2:
            return []
        starts = [self.points[0]] + [c.end for c in self.corners]
        ends = [c.start for c in self.corners] + [self.points[-1]]
        return [(a, b) for a, b in zip(starts, ends) if a != b]

    def as_dict(self) -> dict[str, Any]:
        """Plain-data form for drawing layers that do not import this package."""
        return {
            "connection": self.connection,
            "shape": self.shape.value,
            "points": [list(p) for p in self.points],
            "corners": [
                {
                    "center": list(c.center),
                    "radius": c.radius,
                    "start": list(c.start),
                    "end": list(c.end),
                }
                for c in self.corners
            ],
            "arrow": {
                "position": list(self.arrow.position),
                "rotation": self.arrow.rotation,
                "polygon": [list(p) for p in self.arrow.polygon],
            },
            "label": self.label,
            "label_position": list(self.label_position) if self.label_position else None,
        }


__all__ = [
    "Point",
    "Side",
    "SIDES",
    "SideLike",
    "coerce_side",
    "Shape",
    "NodeRect",
    "ConnectionRequest",
    "Port",
    "ConnectionAssignment",
    "Corner",
    "ArrowHead",
    "RoutedPath",
]
