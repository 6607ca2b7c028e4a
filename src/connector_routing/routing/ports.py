"""Port allocation along node sides.

Provides:
- allocate(): evenly spaced, corner-inset ports along one side
- PortPool: the mutable pool of one (node, side) pair for a single pass
- PortPoolArena: all pools of a pass, indexed by (node id, side)

Pools are sized to the predicted demand and grow by one whenever a
connection needs a port from an exhausted side, so allocation never fails.
"""

from __future__ import annotations

from typing import Hashable, Iterable, Iterator, Optional

from .geometry import distance
from .types import NodeRect, Point, Port, Side


def port_position(
    rect: NodeRect, side: Side, index: int, count: int, margin: float
) -> tuple[float, float]:
    """
    Get the (x, y) position of port `index` out of `count` on a side.

    Ports sit at (i+1)/(count+1) of the side length after insetting both
    corners by `margin`. The margin is clamped to half the side length, so
    zero-area rectangles produce coincident ports instead of failing.
    """
    (x0, y0), (x1, y1) = rect.side_span(side)
    length = max(0.0, (x1 - x0) + (y1 - y0))  # one of the two terms is zero
    inset = min(max(0.0, margin), length / 2)
    usable = length - 2 * inset
    t = inset + usable * (index + 1) / (count + 1)

    if side.is_horizontal():
        return (x0 + t, y0)
    return (x0, y0 + t)


def allocate(rect: NodeRect, side: Side, count: int, margin: float = 8.0) -> list[Port]:
    """
    Generate an ordered pool of ports along one side of a rectangle.

    Args:
        rect: Node bounds
        side: Which face to place ports on
        count: Number of ports
        margin: Corner inset

    Returns:
        `count` ports ordered left-to-right (TOP/BOTTOM) or
        top-to-bottom (LEFT/RIGHT); empty when count <= 0
    """
    ports = []
    for i in range(max(0, count)):
        x, y = port_position(rect, side, i, count, margin)
        ports.append(Port(node=rect.id, side=side, index=i, x=x, y=y))
    return ports


class PortPool:
    """
    Ports of one (node, side) pair during a pass.

    Ports are identified by index. A pool provisioned for `size` ports owns
    indices 0..size-1; taking a higher index grows the pool. Positions are
    always computed for the current size, so they shift slightly as the
    pool grows and are finalized by PortPoolArena.settle().
    """

    def __init__(self, rect: NodeRect, side: Side, size: int = 0, margin: float = 8.0) -> None:
        self.rect = rect
        self.side = side
        self.size = max(0, int(size))
        self.margin = margin
        self._taken: set[int] = set()

    def __repr__(self) -> str:
        return (
            f"PortPool(node={self.rect.id!r}, side={self.side.value}, "
            f"size={self.size}, taken={sorted(self._taken)})"
        )

    @property
    def taken(self) -> list[int]:
        """Indices consumed so far, in index order."""
        return sorted(self._taken)

    @property
    def free_count(self) -> int:
        return self.size - len(self._taken)

    def is_taken(self, index: int) -> bool:
        return index in self._taken

    def port(self, index: int, size: Optional[int] = None) -> Port:
        """Build the Port for an index at the given (or current) pool size."""
        count = max(self.size, index + 1) if size is None else size
        x, y = port_position(self.rect, self.side, index, count, self.margin)
        return Port(node=self.rect.id, side=self.side, index=index, x=x, y=y)

    def candidates(
        self, exclude: Iterable[int] = (), toward: Optional[Point] = None
    ) -> list[Port]:
        """
        Ports still available for a new connection.

        Returns the free ports, or, when none is free, the single spare port
        the pool would gain by growing. `exclude` lists indices already
        picked by the same connection (self-loops on one side).

        With `toward`, only the two outermost free ports and the free port
        closest to that point are offered, in index order. The outermost
        ports keep parallel connections matchable in order.
        """
        excluded = set(exclude)
        free = [i for i in range(self.size) if i not in self._taken and i not in excluded]
        if free:
            if toward is not None and len(free) > 3:
                nearest = min(free, key=lambda i: (distance(self.port(i).point, toward), i))
                free = sorted({free[0], nearest, free[-1]})
            return [self.port(i) for i in free]
        spare = self.size + sum(1 for i in excluded if i >= self.size)
        return [self.port(spare, size=spare + 1)]

    def take(self, index: int) -> None:
        """Consume a port, growing the pool when a spare index is taken."""
        if index in self._taken:
            raise ValueError(f"Port {index} on {self.rect.id!r}/{self.side.value} already taken")
        self._taken.add(index)
        if index >= self.size:
            self.size = index + 1


class PortPoolArena:
    """
    All port pools of one routing pass.

    The arena is the single owner of every (node, side) pool; the assignment
    loop is the only code that takes ports from it.
    """

    def __init__(
        self,
        rects: dict[Hashable, NodeRect],
        demand: Optional[dict[tuple[Hashable, Side], int]] = None,
        margin: float = 8.0,
    ) -> None:
        self._rects = rects
        self._demand = dict(demand or {})
        self._margin = margin
        self._pools: dict[tuple[Hashable, Side], PortPool] = {}
        self._settled: Optional[dict[tuple[Hashable, Side, int], Port]] = None

    def __contains__(self, key: tuple[Hashable, Side]) -> bool:
        return key in self._pools

    def __iter__(self) -> Iterator[PortPool]:
        return iter(self._pools.values())

    def rect(self, node: Hashable) -> NodeRect:
        return self._rects[node]

    def pool(self, node: Hashable, side: Side) -> PortPool:
        """Get the pool of a (node, side) pair, creating it lazily."""
        key = (node, side)
        pool = self._pools.get(key)
        if pool is None:
            pool = PortPool(
                self._rects[node], side, size=self._demand.get(key, 0), margin=self._margin
            )
            self._pools[key] = pool
        return pool

    def take(self, port: Port) -> None:
        """Consume a port from its pool."""
        if self._settled is not None:
            raise RuntimeError("Port pools are settled; no further ports can be taken")
        self.pool(port.node, port.side).take(port.index)

    def settle(self) -> dict[tuple[Hashable, Side, int], Port]:
        """
        Finalize port positions.

        The taken ports of each pool are re-indexed 0..k-1 in their original
        order and spaced for exactly k ports, so unused provisioned slots
        leave no gaps.

        Returns:
            Mapping of provisional (node, side, index) to the final Port
        """
        if self._settled is None:
            settled: dict[tuple[Hashable, Side, int], Port] = {}
            for (node, side), pool in self._pools.items():
                used = pool.taken
                final = allocate(pool.rect, side, len(used), self._margin)
                for provisional, port in zip(used, final):
                    settled[(node, side, provisional)] = port
            self._settled = settled
        return self._settled

    def resolve(self, port: Port) -> Port:
        """Final Port for a provisional one (requires settle())."""
        return self.settle()[port.key]


__all__ = [
    "port_position",
    "allocate",
    "PortPool",
    "PortPoolArena",
]
