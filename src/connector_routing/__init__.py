"""
connector-routing: orthogonal connection routing for node diagrams.

Routes transitions between the rectangles of a (hierarchical) state-machine
diagram as Manhattan paths on exclusive ports, with rounded corners,
staggered parallel connections and arrowheads that always enter the
target face perpendicularly.

Available modules:
- routing: ports, grouping, assignment, path building, arrows, router
- metrics: quality measures of a routing pass
- export: SVG preview of a routing result
"""

__version__ = "0.1.0"

# Routing pipeline (imported before validation, which depends on its types)
from .routing import (
    SIDES,
    ArrowHead,
    ConnectionAssignment,
    ConnectionRequest,
    ConnectionRouter,
    Corner,
    NodeRect,
    Port,
    RoutedPath,
    RoutingResult,
    RoutingWarning,
    Shape,
    Side,
    route_connections,
)

# Quality metrics
from .metrics import (
    path_crossings,
    path_overlaps,
    port_conflicts,
    routing_quality_summary,
    total_bends,
    total_length,
)

# Validation
from .validation import (
    InvalidConfigError,
    InvalidConnectionError,
    InvalidNodeError,
    ValidationError,
)

__all__ = [
    "__version__",
    # Types
    "SIDES",
    "ArrowHead",
    "ConnectionAssignment",
    "ConnectionRequest",
    "Corner",
    "NodeRect",
    "Port",
    "RoutedPath",
    "Shape",
    "Side",
    # Router
    "ConnectionRouter",
    "RoutingResult",
    "RoutingWarning",
    "route_connections",
    # Metrics
    "path_crossings",
    "path_overlaps",
    "total_bends",
    "total_length",
    "port_conflicts",
    "routing_quality_summary",
    # Validation
    "ValidationError",
    "InvalidNodeError",
    "InvalidConnectionError",
    "InvalidConfigError",
]
