"""
SVG export for routing results.

Generates a preview of node rectangles and routed connections with
rounded corners, arrowheads and transition labels.
"""

from __future__ import annotations

from typing import Any, Hashable, Optional, Sequence
from xml.sax.saxutils import escape

from ..routing.router import RoutingResult
from ..routing.types import NodeRect, Point, RoutedPath
from ..validation import normalize_node


def to_svg(
    nodes: Sequence[Any],
    result: RoutingResult,
    *,
    node_color: str = "#f5f7fa",
    node_stroke: str = "#2c5aa0",
    node_stroke_width: float = 1.5,
    edge_color: str = "#444444",
    edge_width: float = 1.5,
    show_labels: bool = True,
    label_color: str = "#000000",
    font_size: float = 12.0,
    font_family: str = "sans-serif",
    padding: float = 40.0,
    background: Optional[str] = None,
) -> str:
    """
    Export nodes and a routing result to SVG format.

    Args:
        nodes: The node rectangles the result was routed on (NodeRect,
            dicts or objects)
        result: Output of ConnectionRouter.route()
        node_color: Fill color for nodes
        node_stroke: Stroke color for nodes
        node_stroke_width: Stroke width for nodes
        edge_color: Color for connections and arrowheads
        edge_width: Width for connections
        show_labels: Whether to show node ids and connection labels
        label_color: Color for labels
        font_size: Font size for labels
        font_family: Font family for labels
        padding: Padding around the drawing
        background: Background color (None for transparent)

    Returns:
        SVG string representation of the routed diagram
    """
    rects = [normalize_node(n) for n in nodes]
    if not rects:
        return _empty_svg(100, 100, background)

    min_x = min(r.left for r in rects)
    max_x = max(r.right for r in rects)
    min_y = min(r.top for r in rects)
    max_y = max(r.bottom for r in rects)

    # Include path points and arrowheads in bounds
    for path in result:
        for px, py in list(path.points) + list(path.arrow.polygon):
            min_x = min(min_x, px)
            max_x = max(max_x, px)
            min_y = min(min_y, py)
            max_y = max(max_y, py)

    width = max_x - min_x + 2 * padding
    height = max_y - min_y + 2 * padding
    offset = (padding - min_x, padding - min_y)

    svg_parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{width:.1f}" height="{height:.1f}" '
        f'viewBox="0 0 {width:.1f} {height:.1f}">'
    ]

    if background:
        svg_parts.append(f'  <rect width="100%" height="100%" fill="{escape(background)}"/>')

    # Parents before children so nested states stay visible
    by_id = {r.id: r for r in rects}
    svg_parts.append('  <g class="nodes">')
    for rect in sorted(rects, key=lambda r: _depth(r, by_id)):
        svg_parts.append(_render_rect(rect, offset, node_color, node_stroke, node_stroke_width))
    svg_parts.append("  </g>")

    svg_parts.append('  <g class="connections">')
    for path in result:
        svg_parts.append(_render_path(path, offset, edge_color, edge_width))
    svg_parts.append("  </g>")

    if show_labels:
        svg_parts.append('  <g class="labels">')
        for rect in rects:
            cx, cy = rect.center
            svg_parts.append(
                _render_text(str(rect.id), (cx, cy), offset, label_color, font_size, font_family)
            )
        for path in result:
            if path.label and path.label_position is not None:
                svg_parts.append(
                    _render_text(
                        path.label, path.label_position, offset, label_color, font_size, font_family
                    )
                )
        svg_parts.append("  </g>")

    svg_parts.append("</svg>")

    return "\n".join(svg_parts)


def path_data(path: RoutedPath, offset: Point = (0.0, 0.0)) -> str:
    """
    SVG path data ("d" attribute) of a routed path.

    Straight pieces become L commands and every rounded corner an A command.
    """
    ox, oy = offset

    def fmt(p: Point) -> str:
        return f"{p[0] + ox:.1f},{p[1] + oy:.1f}"

    parts = [f"M {fmt(path.points[0])}"]
    for corner in path.corners:
        if corner.radius <= 0:
            parts.append(f"L {fmt(corner.vertex)}")
            continue
        (sx, sy), (vx, vy), (ex, ey) = corner.start, corner.vertex, corner.end
        # Clockwise on screen (y down) when the turn's cross product is positive
        cross = (vx - sx) * (ey - vy) - (vy - sy) * (ex - vx)
        sweep = 1 if cross > 0 else 0
        parts.append(f"L {fmt(corner.start)}")
        parts.append(f"A {corner.radius:.1f},{corner.radius:.1f} 0 0 {sweep} {fmt(corner.end)}")
    parts.append(f"L {fmt(path.points[-1])}")
    return " ".join(parts)


def _empty_svg(width: float, height: float, background: Optional[str]) -> str:
    """Create an empty SVG."""
    bg = ""
    if background:
        bg = f'\n  <rect width="100%" height="100%" fill="{escape(background)}"/>'
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{width:.1f}" height="{height:.1f}" '
        f'viewBox="0 0 {width:.1f} {height:.1f}">{bg}\n</svg>'
    )


def _depth(rect: NodeRect, by_id: dict[Hashable, NodeRect]) -> int:
    depth = 0
    seen = {rect.id}
    parent = rect.parent
    while parent is not None and parent in by_id and parent not in seen:
        depth += 1
        seen.add(parent)
        parent = by_id[parent].parent
    return depth


def _render_rect(
    rect: NodeRect,
    offset: Point,
    fill: str,
    stroke: str,
    stroke_width: float,
) -> str:
    """Render a node rectangle."""
    x = rect.left + offset[0]
    y = rect.top + offset[1]

    return (
        f'    <rect x="{x:.1f}" y="{y:.1f}" '
        f'width="{max(0.0, rect.width):.1f}" height="{max(0.0, rect.height):.1f}" '
        f'fill="{escape(fill)}" stroke="{escape(stroke)}" '
        f'stroke-width="{stroke_width}" rx="6"/>'
    )


def _render_path(path: RoutedPath, offset: Point, color: str, width: float) -> str:
    """Render a connection with its arrowhead."""
    polygon = " ".join(
        f"{px + offset[0]:.1f},{py + offset[1]:.1f}" for px, py in path.arrow.polygon
    )
    conn_id = escape(str(path.connection), {'"': "&quot;"})
    return (
        f'    <g data-connection="{conn_id}">\n'
        f'      <path d="{path_data(path, offset)}" '
        f'fill="none" stroke="{escape(color)}" stroke-width="{width}"/>\n'
        f'      <polygon points="{polygon}" fill="{escape(color)}"/>\n'
        f"    </g>"
    )


def _render_text(
    text: str,
    position: Point,
    offset: Point,
    color: str,
    font_size: float,
    font_family: str,
) -> str:
    """Render a centered text label."""
    x = position[0] + offset[0]
    y = position[1] + offset[1]
    return (
        f'    <text x="{x:.1f}" y="{y:.1f}" '
        f'text-anchor="middle" dominant-baseline="middle" '
        f'fill="{escape(color)}" font-size="{font_size}" '
        f'font-family="{escape(font_family)}">{escape(text)}</text>'
    )


__all__ = ["to_svg", "path_data"]
