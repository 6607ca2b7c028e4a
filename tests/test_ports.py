"""Tests for port allocation and port pools."""

from __future__ import annotations

import pytest

from connector_routing.routing.ports import PortPool, PortPoolArena, allocate, port_position
from connector_routing.routing.types import SIDES, NodeRect, Side


def _rect(
    node_id: str = "A", x: float = 0, y: float = 0, w: float = 100, h: float = 50
) -> NodeRect:
    return NodeRect(id=node_id, x=x, y=y, width=w, height=h)


# ---------------------------------------------------------------------------
# allocate
# ---------------------------------------------------------------------------


class TestAllocate:
    def test_single_port_is_centered(self) -> None:
        (port,) = allocate(_rect(), Side.TOP, 1, margin=8)
        assert port.point == pytest.approx((50, 0))
        assert port.side == Side.TOP
        assert port.index == 0

    def test_even_spacing_with_margin(self) -> None:
        ports = allocate(_rect(), Side.RIGHT, 3, margin=8)
        # usable length 50 - 16 = 34, positions at 8 + 34 * k / 4
        assert [p.y for p in ports] == pytest.approx([16.5, 25.0, 33.5])
        assert all(p.x == pytest.approx(100) for p in ports)

    def test_no_margin(self) -> None:
        ports = allocate(_rect(w=90), Side.BOTTOM, 2, margin=0)
        assert [p.x for p in ports] == pytest.approx([30, 60])
        assert all(p.y == pytest.approx(50) for p in ports)

    def test_ordering_along_side(self) -> None:
        for side in SIDES:
            ports = allocate(_rect(), side, 4)
            coords = [p.x if side.is_horizontal() else p.y for p in ports]
            assert coords == sorted(coords)
            assert [p.index for p in ports] == [0, 1, 2, 3]

    def test_ports_stay_on_side(self) -> None:
        rect = _rect(x=10, y=20)
        for side in SIDES:
            for port in allocate(rect, side, 5):
                assert rect.left <= port.x <= rect.right
                assert rect.top <= port.y <= rect.bottom
                if side == Side.LEFT:
                    assert port.x == rect.left
                elif side == Side.TOP:
                    assert port.y == rect.top

    def test_zero_count(self) -> None:
        assert allocate(_rect(), Side.LEFT, 0) == []

    def test_zero_size_rect_gives_coincident_ports(self) -> None:
        rect = _rect(x=50, y=50, w=0, h=0)
        for side in SIDES:
            ports = allocate(rect, side, 3)
            assert len(ports) == 3
            assert all(p.point == pytest.approx((50, 50)) for p in ports)

    def test_margin_clamped_to_half_side(self) -> None:
        x, y = port_position(_rect(w=10), Side.TOP, 0, 1, margin=100)
        assert (x, y) == pytest.approx((5, 0))

    def test_deterministic(self) -> None:
        assert allocate(_rect(), Side.LEFT, 4) == allocate(_rect(), Side.LEFT, 4)


# ---------------------------------------------------------------------------
# PortPool
# ---------------------------------------------------------------------------


class TestPortPool:
    def test_candidates_are_free_ports(self) -> None:
        pool = PortPool(_rect(), Side.RIGHT, size=3)
        pool.take(1)
        assert [p.index for p in pool.candidates()] == [0, 2]
        assert pool.free_count == 2
        assert pool.is_taken(1)

    def test_exhausted_pool_offers_spare(self) -> None:
        pool = PortPool(_rect(), Side.RIGHT, size=1)
        pool.take(0)
        (spare,) = pool.candidates()
        assert spare.index == 1
        # Spare port is positioned as if the pool had grown
        assert spare.point == pytest.approx(port_position(_rect(), Side.RIGHT, 1, 2, 8.0))

    def test_empty_pool_offers_centered_spare(self) -> None:
        pool = PortPool(_rect(), Side.TOP, size=0)
        (spare,) = pool.candidates()
        assert spare.index == 0
        assert spare.point == pytest.approx((50, 0))

    def test_take_spare_grows_pool(self) -> None:
        pool = PortPool(_rect(), Side.TOP, size=1)
        pool.take(0)
        pool.take(1)
        assert pool.size == 2
        assert pool.taken == [0, 1]

    def test_take_twice_raises(self) -> None:
        pool = PortPool(_rect(), Side.TOP, size=2)
        pool.take(0)
        with pytest.raises(ValueError, match="already taken"):
            pool.take(0)

    def test_exclude_for_self_loop(self) -> None:
        pool = PortPool(_rect(), Side.TOP, size=2)
        assert [p.index for p in pool.candidates(exclude=[0])] == [1]

    def test_window_offers_ends_and_nearest(self) -> None:
        pool = PortPool(_rect(h=200), Side.RIGHT, size=9)
        pool.take(0)
        # Ports are 18.4 apart from y = 26.4; index 4 sits at y = 100
        window = pool.candidates(toward=(400, 100))
        assert [p.index for p in window] == [1, 4, 8]

    def test_window_on_small_pool_offers_all(self) -> None:
        pool = PortPool(_rect(), Side.RIGHT, size=3)
        assert [p.index for p in pool.candidates(toward=(400, 0))] == [0, 1, 2]

    def test_window_on_exhausted_pool_offers_spare(self) -> None:
        pool = PortPool(_rect(), Side.RIGHT, size=1)
        pool.take(0)
        (spare,) = pool.candidates(toward=(400, 0))
        assert spare.index == 1

    def test_exclude_spare(self) -> None:
        pool = PortPool(_rect(), Side.TOP, size=0)
        (first,) = pool.candidates()
        (second,) = pool.candidates(exclude=[first.index])
        assert first.index != second.index


# ---------------------------------------------------------------------------
# PortPoolArena
# ---------------------------------------------------------------------------


class TestPortPoolArena:
    def test_pools_are_sized_to_demand(self) -> None:
        arena = PortPoolArena({"A": _rect()}, {("A", Side.RIGHT): 3})
        assert arena.pool("A", Side.RIGHT).size == 3
        assert arena.pool("A", Side.LEFT).size == 0
        assert ("A", Side.RIGHT) in arena

    def test_settle_reindexes_used_ports(self) -> None:
        arena = PortPoolArena({"A": _rect()}, {("A", Side.RIGHT): 3})
        pool = arena.pool("A", Side.RIGHT)
        p0, _, p2 = pool.candidates()
        arena.take(p2)
        arena.take(p0)

        settled = arena.settle()
        final0 = settled[p0.key]
        final2 = settled[p2.key]
        assert (final0.index, final2.index) == (0, 1)
        # Two used ports spread over the side, no gap for the unused slot
        assert [final0.y, final2.y] == pytest.approx([8 + 34 / 3, 8 + 2 * 34 / 3])
        assert arena.resolve(p2) == final2

    def test_take_after_settle_raises(self) -> None:
        arena = PortPoolArena({"A": _rect()}, {("A", Side.RIGHT): 1})
        (port,) = arena.pool("A", Side.RIGHT).candidates()
        arena.settle()
        with pytest.raises(RuntimeError):
            arena.take(port)

    def test_settled_ports_are_unique(self) -> None:
        arena = PortPoolArena({"A": _rect(), "B": _rect("B", x=200)})
        for node in ("A", "B"):
            for side in SIDES:
                for _ in range(3):
                    (port,) = arena.pool(node, side).candidates()[:1]
                    arena.take(port)
        keys = [p.key for p in arena.settle().values()]
        assert len(keys) == len(set(keys)) == 24
