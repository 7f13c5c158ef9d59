"""Quad-tree region index over the (x, y) footprint of track points."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, List, Sequence, Tuple, TypeVar

from route_core.geometry.primitives import Point

T = TypeVar("T")

DEFAULT_MAX_ENTRIES = 8
DEFAULT_MAX_DEPTH = 12


@dataclass(frozen=True)
class Box:
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @classmethod
    def around(cls, center: Point, half_width: float) -> "Box":
        return cls(
            center[0] - half_width,
            center[0] + half_width,
            center[1] - half_width,
            center[1] + half_width,
        )

    @classmethod
    def of_point(cls, point: Point) -> "Box":
        return cls(point[0], point[0], point[1], point[1])

    @classmethod
    def of_points(cls, points: Iterable[Point]) -> "Box | None":
        pts = list(points)
        if not pts:
            return None
        xs = [p[0] for p in pts]
        ys = [p[1] for p in pts]
        return cls(min(xs), max(xs), min(ys), max(ys))

    def intersects(self, other: "Box") -> bool:
        return not (
            other.min_x > self.max_x
            or other.max_x < self.min_x
            or other.min_y > self.max_y
            or other.max_y < self.min_y
        )

    def contains(self, other: "Box") -> bool:
        return (
            self.min_x <= other.min_x
            and other.max_x <= self.max_x
            and self.min_y <= other.min_y
            and other.max_y <= self.max_y
        )

    def quadrants(self) -> list["Box"]:
        mid_x = (self.min_x + self.max_x) / 2.0
        mid_y = (self.min_y + self.max_y) / 2.0
        return [
            Box(self.min_x, mid_x, self.min_y, mid_y),
            Box(mid_x, self.max_x, self.min_y, mid_y),
            Box(self.min_x, mid_x, mid_y, self.max_y),
            Box(mid_x, self.max_x, mid_y, self.max_y),
        ]


@dataclass
class _Node(Generic[T]):
    box: Box
    depth: int
    entries: List[Tuple[Box, T]] = field(default_factory=list)
    children: List["_Node[T]"] | None = None


class SpatialIndex(Generic[T]):
    """Region quad tree holding ``(box, content)`` entries.

    Entries live in the deepest node whose box fully contains them. Queries
    return every entry whose box intersects the query box, in no particular
    order.
    """

    def __init__(
        self,
        box: Box,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._root: _Node[T] = _Node(box, 0)
        self._max_entries = max(1, max_entries)
        self._max_depth = max(0, max_depth)
        self._count = 0

    def __len__(self) -> int:
        return self._count

    @property
    def box(self) -> Box:
        return self._root.box

    def insert(self, box: Box, content: T) -> None:
        node = self._root
        while node.children is not None:
            child = next((c for c in node.children if c.box.contains(box)), None)
            if child is None:
                break
            node = child
        node.entries.append((box, content))
        self._count += 1
        if (
            node.children is None
            and len(node.entries) > self._max_entries
            and node.depth < self._max_depth
        ):
            self._split(node)

    def _split(self, node: _Node[T]) -> None:
        node.children = [_Node(quad, node.depth + 1) for quad in node.box.quadrants()]
        remaining: list[tuple[Box, T]] = []
        for entry_box, content in node.entries:
            child = next((c for c in node.children if c.box.contains(entry_box)), None)
            if child is None:
                remaining.append((entry_box, content))
            else:
                child.entries.append((entry_box, content))
        node.entries = remaining
        for child in node.children:
            if len(child.entries) > self._max_entries and child.depth < self._max_depth:
                self._split(child)

    def query(self, box: Box) -> list[T]:
        return self.query_with_filter(box, lambda _content: True)

    def query_with_filter(self, box: Box, predicate: Callable[[T], bool]) -> list[T]:
        results: list[T] = []
        stack = [self._root]
        while stack:
            node = stack.pop()
            # Entries outside the root box are kept at the root, so the root is
            # always searched.
            if node is not self._root and not node.box.intersects(box):
                continue
            for entry_box, content in node.entries:
                if entry_box.intersects(box) and predicate(content):
                    results.append(content)
            if node.children is not None:
                stack.extend(node.children)
        return results


def build_track_index(points: Sequence, **kwargs) -> SpatialIndex:
    """Index track points by their flat (x, y) position.

    ``points`` are :class:`~route_core.model.track_point.TrackPoint` values
    (anything with an ``xyz`` attribute).
    """
    footprint = [(p.xyz[0], p.xyz[1]) for p in points]
    bounds = Box.of_points(footprint) or Box(0.0, 0.0, 0.0, 0.0)
    index: SpatialIndex = SpatialIndex(bounds, **kwargs)
    for point, xy in zip(points, footprint):
        index.insert(Box.of_point(xy), point)
    return index
