"""Arrowhead placement at the target end of a routed path."""

from __future__ import annotations

from .types import ArrowHead, Point, Side

# Rotation (degrees, y grows downward) of an arrow entering each face
_ROTATION: dict[Side, float] = {
    Side.TOP: 90.0,  # pointing down
    Side.RIGHT: 180.0,  # pointing left
    Side.BOTTOM: 270.0,  # pointing up
    Side.LEFT: 0.0,  # pointing right
}


def arrow_polygon(tip: Point, direction: Point, size: float) -> list[Point]:
    """Triangle with its tip at `tip`, pointing along `direction`."""
    dx, dy = direction
    bx, by = tip[0] - dx * size, tip[1] - dy * size
    px, py = -dy * size / 2, dx * size / 2
    return [tip, (bx + px, by + py), (bx - px, by - py)]


def orient(
    final_segment: tuple[Point, Point],
    target_side: Side,
    inset: float = 2.0,
    size: float = 8.0,
) -> ArrowHead:
    """
    Compute the arrowhead at the end of a path.

    The rotation always follows the inward normal of the target face, never
    the direction of the final segment, so the glyph enters the node
    correctly even when the route turns right before the port.

    Args:
        final_segment: Last (from, to) piece of the path; `to` is the port
        target_side: Face the path attaches to
        inset: Distance the tip is pulled back out of the node border
        size: Length of the glyph along its direction

    Returns:
        ArrowHead with tip position, rotation and triangle polygon
    """
    port = final_segment[1]
    ox, oy = target_side.outward
    tip = (port[0] + ox * inset, port[1] + oy * inset)
    direction = target_side.inward
    return ArrowHead(
        position=tip,
        rotation=_ROTATION[target_side],
        direction=direction,
        polygon=arrow_polygon(tip, direction, size),
    )


__all__ = ["arrow_polygon", "orient"]
