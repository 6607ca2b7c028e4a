"""Tests for input validation module."""

from types import SimpleNamespace

import pytest

from connector_routing.routing.types import ConnectionRequest, NodeRect, Side
from connector_routing.validation import (
    InvalidConfigError,
    InvalidConnectionError,
    InvalidNodeError,
    ValidationError,
    normalize_connection,
    normalize_node,
    validate_connection_refs,
    validate_non_negative,
    validate_unique_ids,
)


class TestNormalizeNode:
    """Tests for node normalization."""

    def test_node_rect_passes_through(self):
        rect = NodeRect("A", 0, 0, 10, 10)
        assert normalize_node(rect) is rect

    def test_from_dict(self):
        rect = normalize_node({"id": "A", "x": 1, "y": 2, "width": 30, "height": "40"})
        assert rect == NodeRect("A", 1.0, 2.0, 30.0, 40.0)

    def test_from_object(self):
        obj = SimpleNamespace(id="B", x=0, y=0, width=5, height=5, parent="A")
        rect = normalize_node(obj)
        assert rect.id == "B"
        assert rect.parent == "A"

    def test_missing_id_raises(self):
        with pytest.raises(InvalidNodeError, match="no id"):
            normalize_node({"x": 0, "y": 0, "width": 1, "height": 1})

    def test_missing_geometry_raises(self):
        with pytest.raises(InvalidNodeError, match="missing height"):
            normalize_node({"id": "A", "x": 0, "y": 0, "width": 1})

    def test_non_numeric_raises(self):
        with pytest.raises(InvalidNodeError, match="must be a number"):
            normalize_node({"id": "A", "x": "left", "y": 0, "width": 1, "height": 1})

    def test_non_finite_raises(self):
        with pytest.raises(InvalidNodeError, match="finite"):
            normalize_node({"id": "A", "x": float("nan"), "y": 0, "width": 1, "height": 1})

    def test_zero_size_is_accepted(self):
        rect = normalize_node({"id": "A", "x": 0, "y": 0, "width": 0, "height": 0})
        assert rect.width == 0


class TestNormalizeConnection:
    """Tests for connection normalization."""

    def test_request_passes_through(self):
        request = ConnectionRequest(1, "A", "B")
        assert normalize_connection(request) is request

    def test_string_sides(self):
        request = normalize_connection(
            {"id": 1, "source": "A", "target": "B", "source_side": "Right", "target_side": "top"}
        )
        assert request.source_side is Side.RIGHT
        assert request.target_side is Side.TOP

    def test_request_with_side_names(self):
        request = normalize_connection(ConnectionRequest(1, "A", "B", "right", "Left"))
        assert request.source_side is Side.RIGHT
        assert request.target_side is Side.LEFT

    def test_request_with_auto_side_name(self):
        request = ConnectionRequest(1, "A", "B", source_side="auto")
        assert request.source_side is None

    def test_request_with_unknown_side_name_raises(self):
        with pytest.raises(ValueError, match="Unknown side"):
            ConnectionRequest(1, "A", "B", target_side="north")

    def test_auto_side(self):
        request = normalize_connection(
            {"id": 1, "source": "A", "target": "B", "source_side": "auto"}
        )
        assert request.source_side is None
        assert request.target_side is None

    def test_unknown_side_raises(self):
        with pytest.raises(InvalidConnectionError, match="Unknown side"):
            normalize_connection({"id": 1, "source": "A", "target": "B", "target_side": "north"})

    def test_missing_id_raises(self):
        with pytest.raises(InvalidConnectionError, match="no id"):
            normalize_connection({"source": "A", "target": "B"})

    def test_missing_target_raises(self):
        with pytest.raises(InvalidConnectionError, match="target is None"):
            normalize_connection({"id": 1, "source": "A"})

    def test_entry_connection(self):
        request = normalize_connection({"id": "init", "target": "A", "origin": [10, 20]})
        assert request.is_entry
        assert request.origin == (10.0, 20.0)

    def test_entry_without_origin_raises(self):
        with pytest.raises(InvalidConnectionError, match="origin"):
            normalize_connection({"id": "init", "target": "A"})

    def test_malformed_origin_raises(self):
        with pytest.raises(InvalidConnectionError, match="origin must be"):
            normalize_connection({"id": "init", "target": "A", "origin": (1, 2, 3)})

    def test_label_from_object(self):
        obj = SimpleNamespace(id=3, source="A", target="B", label="tick")
        assert normalize_connection(obj).label == "tick"


class TestUniqueIds:
    """Tests for connection id uniqueness."""

    def test_unique(self):
        validate_unique_ids([ConnectionRequest(1, "A", "B"), ConnectionRequest(2, "B", "A")])

    def test_duplicates_listed_once(self):
        requests = [
            ConnectionRequest(1, "A", "B"),
            ConnectionRequest(1, "B", "A"),
            ConnectionRequest(1, "A", "A"),
            ConnectionRequest("x", "A", "B"),
            ConnectionRequest("x", "A", "B"),
        ]
        with pytest.raises(InvalidConnectionError) as exc_info:
            validate_unique_ids(requests)
        assert str(exc_info.value) == "Duplicate connection ids: 1, 'x'"


class TestConnectionRefs:
    """Tests for connection reference validation."""

    rects = {"A": NodeRect("A", 0, 0, 10, 10), "B": NodeRect("B", 50, 0, 10, 10)}

    def test_valid_refs(self):
        requests = [ConnectionRequest(1, "A", "B"), ConnectionRequest(2, None, "A", origin=(0, 0))]
        assert validate_connection_refs(requests, self.rects) == []

    def test_unknown_target_strict_raises(self):
        with pytest.raises(InvalidConnectionError, match="unknown target 'Ghost'"):
            validate_connection_refs([ConnectionRequest(1, "A", "Ghost")], self.rects)

    def test_non_strict_returns_issues(self):
        requests = [
            ConnectionRequest(1, "A", "B"),
            ConnectionRequest(2, "Ghost", "B"),
            ConnectionRequest(3, "A", "Phantom"),
        ]
        issues = validate_connection_refs(requests, self.rects, strict=False)
        assert [cid for cid, _ in issues] == [2, 3]
        assert "unknown source 'Ghost'" in issues[0][1]
        assert "unknown target 'Phantom'" in issues[1][1]


class TestNonNegative:
    """Tests for numeric option validation."""

    def test_valid(self):
        assert validate_non_negative("margin", 4) == 4.0
        assert validate_non_negative("margin", 0) == 0.0

    def test_negative_raises(self):
        with pytest.raises(InvalidConfigError, match="margin must be >= 0"):
            validate_non_negative("margin", -1)

    def test_non_numeric_raises(self):
        with pytest.raises(InvalidConfigError, match="must be a number"):
            validate_non_negative("margin", "wide")

    def test_infinite_raises(self):
        with pytest.raises(InvalidConfigError, match="finite"):
            validate_non_negative("margin", float("inf"))


class TestExceptionHierarchy:
    """Tests for exception class hierarchy."""

    def test_all_inherit_from_validation_error(self):
        assert issubclass(InvalidNodeError, ValidationError)
        assert issubclass(InvalidConnectionError, ValidationError)
        assert issubclass(InvalidConfigError, ValidationError)

    def test_validation_error_is_value_error(self):
        assert issubclass(ValidationError, ValueError)
