#!/usr/bin/env python3
"""
Connection Routing Showcase - routed state machines under several router settings.

Generates an HTML page with one SVG per (diagram, configuration) pair and the
routing quality metrics of each pass.

Usage:
    uv run python scripts/showcase.py

Output:
    build/routing_showcase.html
"""

from __future__ import annotations

from dataclasses import dataclass
from html import escape
from pathlib import Path
from typing import Any

from connector_routing import ConnectionRouter, routing_quality_summary
from connector_routing.export import to_svg

BUILD_DIR = Path(__file__).parent.parent / "build"


@dataclass
class RouterSpec:
    """A named router configuration."""

    name: str
    params: dict[str, Any]
    description: str


ROUTERS: list[RouterSpec] = [
    RouterSpec("Default", {}, "Lookahead on, fixed corner radius"),
    RouterSpec("Greedy", {"lookahead": False}, "No lookahead term"),
    RouterSpec(
        "Adaptive corners",
        {"adaptive_corners": True, "corner_radius": 12},
        "Radius shrinks on short segments",
    ),
    RouterSpec("Wide stagger", {"stagger_step": 25, "standoff": 30}, "Spread parallel channels"),
]


def _node(
    node_id: str, x: float, y: float, w: float = 110, h: float = 50, parent: Any = None
) -> dict:
    return {"id": node_id, "x": x, "y": y, "width": w, "height": h, "parent": parent}


def generate_traffic_light() -> tuple[list[dict], list[dict]]:
    """Cyclic machine with an entry marker and a self-loop."""
    nodes = [
        _node("Red", 60, 60),
        _node("Green", 320, 60),
        _node("Yellow", 190, 220),
    ]
    connections = [
        {"id": "init", "source": None, "target": "Red", "origin": (20, 20)},
        {"id": 1, "source": "Red", "target": "Green", "label": "timer"},
        {"id": 2, "source": "Green", "target": "Yellow", "label": "timer"},
        {"id": 3, "source": "Yellow", "target": "Red", "label": "timer"},
        {"id": 4, "source": "Yellow", "target": "Yellow", "label": "blink"},
    ]
    return nodes, connections


def generate_fan_out() -> tuple[list[dict], list[dict]]:
    """One dispatcher state with four outgoing transitions."""
    nodes = [_node("Dispatch", 200, 200, 140, 60)]
    targets = [("Left", 0, 210), ("Right", 420, 210), ("Up", 215, 20), ("Down", 215, 380)]
    connections = []
    for i, (name, x, y) in enumerate(targets, start=1):
        nodes.append(_node(name, x, y))
        connections.append({"id": i, "source": "Dispatch", "target": name, "label": f"go{i}"})
    return nodes, connections


def generate_parallel() -> tuple[list[dict], list[dict]]:
    """Several events between the same two states, plus a return edge."""
    nodes = [_node("Idle", 40, 80), _node("Busy", 360, 140)]
    connections = [
        {"id": 1, "source": "Idle", "target": "Busy", "label": "start"},
        {"id": 2, "source": "Idle", "target": "Busy", "label": "resume"},
        {"id": 3, "source": "Idle", "target": "Busy", "label": "retry"},
        {"id": 4, "source": "Busy", "target": "Idle", "label": "done"},
    ]
    return nodes, connections


def generate_nested() -> tuple[list[dict], list[dict]]:
    """Hierarchical machine: a composite state with children and explicit sides."""
    nodes = [
        _node("Session", 160, 40, 360, 260),
        _node("Login", 200, 100, 110, 50, parent="Session"),
        _node("Active", 380, 100, 110, 50, parent="Session"),
        _node("Locked", 290, 220, 110, 50, parent="Session"),
        _node("Offline", 0, 140),
    ]
    connections = [
        {"id": "e", "source": None, "target": "Login", "origin": (180, 70)},
        {"id": 1, "source": "Login", "target": "Active", "label": "ok"},
        {"id": 2, "source": "Active", "target": "Locked", "label": "idle"},
        {"id": 3, "source": "Locked", "target": "Login", "label": "unlock"},
        {"id": 4, "source": "Session", "target": "Offline", "label": "logout",
         "source_side": "left", "target_side": "right"},
        {"id": 5, "source": "Offline", "target": "Session", "label": "connect",
         "source_side": "right", "target_side": "left"},
        {"id": 6, "source": "Active", "target": "Session", "label": "exit"},
    ]
    return nodes, connections


DIAGRAMS = [
    ("Traffic light", generate_traffic_light),
    ("Fan-out", generate_fan_out),
    ("Parallel transitions", generate_parallel),
    ("Nested states", generate_nested),
]


def render_card(spec: RouterSpec, nodes: list[dict], connections: list[dict]) -> str:
    """Route one diagram and render it as an HTML card."""
    result = ConnectionRouter(**spec.params).route(nodes, connections)
    summary = routing_quality_summary(result)
    svg = to_svg(nodes, result, background="#ffffff", padding=30)
    rows = "".join(
        f"<tr><td>{escape(key)}</td><td>{value:.1f}</td></tr>"
        if isinstance(value, float)
        else f"<tr><td>{escape(key)}</td><td>{value}</td></tr>"
        for key, value in summary.items()
    )
    return (
        '<div class="card">'
        f"<h3>{escape(spec.name)}</h3>"
        f'<p class="desc">{escape(spec.description)}</p>'
        f'<div class="svg">{svg}</div>'
        f'<table class="metrics">{rows}</table>'
        "</div>"
    )


def generate_html(sections: list[tuple[str, list[str]]]) -> str:
    """Generate the HTML page."""
    html_parts = [
        """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Connection Routing Showcase</title>
    <style>
        body { font-family: -apple-system, 'Segoe UI', Roboto, sans-serif;
               background: #ecf0f1; color: #2c3e50; margin: 0; }
        header { background: #2c3e50; color: white; padding: 2rem; text-align: center; }
        main { max-width: 1800px; margin: 0 auto; padding: 2rem; }
        section h2 { border-bottom: 3px solid #2c5aa0; padding-bottom: 0.4rem; }
        .grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(420px, 1fr));
                gap: 1.5rem; }
        .card { background: white; border-radius: 10px; padding: 1rem;
                box-shadow: 0 2px 8px rgba(0,0,0,0.1); }
        .card h3 { margin: 0; }
        .desc { color: #7f8c8d; margin: 0.2rem 0 0.8rem; }
        .svg svg { max-width: 100%; height: auto; }
        .metrics { font-size: 0.85rem; border-collapse: collapse; margin-top: 0.5rem; }
        .metrics td { padding: 0.1rem 0.8rem 0.1rem 0; }
    </style>
</head>
<body>
<header><h1>Connection Routing Showcase</h1>
<p>Orthogonal routes on exclusive ports, staggered and rounded</p></header>
<main>
"""
    ]
    for title, cards in sections:
        html_parts.append(f"<section><h2>{escape(title)}</h2><div class=\"grid\">")
        html_parts.extend(cards)
        html_parts.append("</div></section>")
    html_parts.append("</main>\n</body>\n</html>\n")
    return "\n".join(html_parts)


def main() -> None:
    """Generate the showcase."""
    BUILD_DIR.mkdir(exist_ok=True)

    sections = []
    for title, generator in DIAGRAMS:
        nodes, connections = generator()
        print(f"Routing {title} ({len(connections)} connections)...")
        cards = [render_card(spec, nodes, connections) for spec in ROUTERS]
        sections.append((title, cards))

    html = generate_html(sections)
    output_path = BUILD_DIR / "routing_showcase.html"
    output_path.write_text(html)
    print(f"Wrote {output_path}")


if __name__ == "__main__":
    main()
