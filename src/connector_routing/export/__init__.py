"""
Export functionality for routing results.

Example usage:
    from connector_routing import ConnectionRouter
    from connector_routing.export import to_svg

    nodes = [
        {"id": "Idle", "x": 0, "y": 0, "width": 100, "height": 50},
        {"id": "Running", "x": 250, "y": 0, "width": 100, "height": 50},
    ]
    result = ConnectionRouter().route(
        nodes, [{"id": 1, "source": "Idle", "target": "Running", "label": "start"}]
    )

    with open("machine.svg", "w") as f:
        f.write(to_svg(nodes, result))
"""

from .svg import path_data, to_svg

__all__ = [
    "to_svg",
    "path_data",
]
