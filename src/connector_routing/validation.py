"""
Input validation utilities for connection routing.

Provides centralized normalization and validation for node rectangles,
connection requests and router configuration. Raises descriptive
exceptions on malformed input.
"""

from __future__ import annotations

import math
from typing import Any, Hashable, Mapping, Sequence

from .routing.types import ConnectionRequest, NodeRect, coerce_side


class ValidationError(ValueError):
    """Base exception for routing validation errors."""

    pass


class InvalidNodeError(ValidationError):
    """Raised when a node rectangle is malformed."""

    pass


class InvalidConnectionError(ValidationError):
    """Raised when a connection request is malformed."""

    pass


class InvalidConfigError(ValidationError):
    """Raised when a router option is invalid."""

    pass


_MISSING = object()


def _field(obj: Any, name: str, default: Any = _MISSING) -> Any:
    """Read a field from a dict or an attribute from an object."""
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _number(value: Any, what: str, error: type[ValidationError]) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise error(f"{what} must be a number, got {value!r}") from None
    if not math.isfinite(result):
        raise error(f"{what} must be finite, got {value!r}")
    return result


def normalize_node(data: Any) -> NodeRect:
    """
    Convert a node given as NodeRect, dict or object to a NodeRect.

    Args:
        data: Anything with id, x, y, width, height and optional parent

    Returns:
        NodeRect

    Raises:
        InvalidNodeError: If the id is missing or geometry is not numeric
    """
    if isinstance(data, NodeRect):
        return data

    node_id = _field(data, "id", None)
    if node_id is None:
        raise InvalidNodeError(f"Node has no id: {data!r}")

    geometry = {}
    for name in ("x", "y", "width", "height"):
        value = _field(data, name)
        if value is _MISSING:
            raise InvalidNodeError(f"Node {node_id!r}: missing {name}")
        geometry[name] = _number(value, f"Node {node_id!r}: {name}", InvalidNodeError)

    return NodeRect(id=node_id, parent=_field(data, "parent", None), **geometry)


def normalize_connection(data: Any) -> ConnectionRequest:
    """
    Convert a connection given as ConnectionRequest, dict or object.

    Side preferences may be Side values, side names or None / "auto".

    Raises:
        InvalidConnectionError: If the id or target is missing, a side name is
            unknown, or an entry connection has no origin point
    """
    if isinstance(data, ConnectionRequest):
        request = data
    else:
        conn_id = _field(data, "id", None)
        if conn_id is None:
            raise InvalidConnectionError(f"Connection has no id: {data!r}")
        try:
            source_side = coerce_side(_field(data, "source_side", None))
            target_side = coerce_side(_field(data, "target_side", None))
        except ValueError as exc:
            raise InvalidConnectionError(f"Connection {conn_id!r}: {exc}") from None

        origin = _field(data, "origin", None)
        if origin is not None:
            if not isinstance(origin, (tuple, list)) or len(origin) != 2:
                raise InvalidConnectionError(
                    f"Connection {conn_id!r}: origin must be (x, y), got {origin!r}"
                )
            origin = (
                _number(origin[0], f"Connection {conn_id!r}: origin x", InvalidConnectionError),
                _number(origin[1], f"Connection {conn_id!r}: origin y", InvalidConnectionError),
            )

        request = ConnectionRequest(
            id=conn_id,
            source=_field(data, "source", None),
            target=_field(data, "target", None),
            source_side=source_side,
            target_side=target_side,
            label=_field(data, "label", None),
            origin=origin,
        )

    if request.target is None:
        raise InvalidConnectionError(f"Connection {request.id!r}: target is None")
    if request.source is None and request.origin is None:
        raise InvalidConnectionError(
            f"Connection {request.id!r}: entry connection needs an origin point"
        )
    return request


def validate_unique_ids(requests: Sequence[ConnectionRequest]) -> None:
    """
    Check that connection ids are unique.

    Raises:
        InvalidConnectionError: Listing every duplicated id
    """
    seen: set[Hashable] = set()
    duplicates: list[Hashable] = []
    for request in requests:
        if request.id in seen and request.id not in duplicates:
            duplicates.append(request.id)
        seen.add(request.id)
    if duplicates:
        raise InvalidConnectionError(
            "Duplicate connection ids: " + ", ".join(repr(d) for d in duplicates)
        )


def validate_connection_refs(
    requests: Sequence[ConnectionRequest],
    rects: Mapping[Hashable, NodeRect],
    strict: bool = True,
) -> list[tuple[Hashable, str]]:
    """
    Validate that every connection references existing nodes.

    Args:
        requests: Connection requests
        rects: Node rectangles by id
        strict: If True, raises on invalid. If False, returns list of issues.

    Returns:
        List of (connection id, issue description) tuples

    Raises:
        InvalidConnectionError: If strict=True and dangling references found
    """
    issues: list[tuple[Hashable, str]] = []

    for request in requests:
        if request.source is not None and request.source not in rects:
            issues.append(
                (request.id, f"Connection {request.id!r}: unknown source {request.source!r}")
            )
        if request.target not in rects:
            issues.append(
                (request.id, f"Connection {request.id!r}: unknown target {request.target!r}")
            )

    if strict and issues:
        msg = "Invalid connection references:\n" + "\n".join(issue[1] for issue in issues)
        raise InvalidConnectionError(msg)

    return issues


def validate_non_negative(name: str, value: Any) -> float:
    """
    Validate a non-negative, finite option (distances and score weights).

    Raises:
        InvalidConfigError: If the value is negative or not a finite number
    """
    result = _number(value, name, InvalidConfigError)
    if result < 0:
        raise InvalidConfigError(f"{name} must be >= 0, got {result}")
    return result


__all__ = [
    "ValidationError",
    "InvalidNodeError",
    "InvalidConnectionError",
    "InvalidConfigError",
    "normalize_node",
    "normalize_connection",
    "validate_unique_ids",
    "validate_connection_refs",
    "validate_non_negative",
]
