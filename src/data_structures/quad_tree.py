import logging
from typing import Generic, Iterable, Optional, Sequence, TypeVar

import pyarrow as pa

from algorithms.line_segment import Segment
from data_structures.rectangle import (
    HasPosition,
    Rectangle,
    positions_to_arrow,
)

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=HasPosition)


class QuadTreeError(ValueError):
    """Base class for insertion failures"""


class OutOfBoundsError(QuadTreeError):
    """The point lies outside the node's bounds"""
    def __init__(self, point, bounds: Rectangle):
        self.point = point
        self.bounds = bounds
        super().__init__(f"{point!r} is outside {bounds!r}")


class NoMatchingChildError(QuadTreeError):
    """No quadrant claimed a point its parent contains.

    Quadrants partition their parent exactly, so this signals broken
    subdivision geometry rather than bad input.
    """
    def __init__(self, point, child_bounds: Sequence[Rectangle]):
        self.point = point
        self.child_bounds = tuple(child_bounds)
        super().__init__(f"{point!r} does not belong to any quadrant")


class Leaf(Generic[T]):
    """Node state holding points directly"""
    __slots__ = ('points',)

    def __init__(self, points: Optional[list[T]] = None):
        self.points = points if points is not None else []


class Internal(Generic[T]):
    """Node state holding exactly four quadrants"""
    __slots__ = ('children',)

    def __init__(self, children: tuple['QuadTree[T]', 'QuadTree[T]', 'QuadTree[T]', 'QuadTree[T]']):
        self.children = children


class QuadTree(Generic[T]):
    """Region quadtree over anything with a 2-D position.

    Each node covers a fixed half-open rectangle and is either a `Leaf`
    holding points or an `Internal` node owning four quadrants that partition
    its rectangle. A leaf that reaches `capacity` points splits into
    quadrants and hands its points down; nodes never merge back.

    Queries are read-only. `positions()` returns every stored position as an
    Arrow array, `leaf_bounds()` the rectangles of occupied leaves, and
    `intersecting_leaves()` the leaves whose rectangle a segment crosses,
    skipping subtrees the segment misses.

    Args:
    bounds: Region covered by this node, fixed for its lifetime
    capacity: Point count at which a leaf subdivides
    max_depth: Depth at which leaves stop subdividing
    depth: Depth of this node (internal use)

    Example:
        >>> from algorithms.line_segment import Segment
        >>> from data_structures.rectangle import Point, Rectangle
        >>> tree = QuadTree(Rectangle(0.0, 0.0, 100.0, 100.0))
        >>> for xy in [(10, 10), (20, 20), (30, 30), (80, 80)]:
        ...     tree.insert(Point(*xy))
        >>> len(tree)
        4
        >>> tree.leaf_bounds()
        [Rectangle(x=0.0, y=0.0, width=50.0, height=50.0), Rectangle(x=50.0, y=50.0, width=50.0, height=50.0)]
        >>> [leaf.bounds for leaf in tree.intersecting_leaves(Segment.new(-1, 60, 101, 60))]
        [Rectangle(x=0.0, y=50.0, width=50.0, height=50.0), Rectangle(x=50.0, y=50.0, width=50.0, height=50.0)]

    """
    CAPACITY = 4
    MAX_DEPTH = 32
    # Only a root built by a lenient from_points() sets its own list
    rejected: Sequence = ()

    def __init__(self, bounds: Rectangle, capacity: int = CAPACITY,
                 max_depth: int = MAX_DEPTH, depth: int = 0):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.bounds = bounds
        self.capacity = capacity
        self.max_depth = max_depth
        self.depth = depth
        self.state: Leaf[T] | Internal[T] = Leaf()

    @classmethod
    def from_points(cls, points: Iterable[T], bounds: Rectangle,
                    capacity: int = CAPACITY, max_depth: int = MAX_DEPTH,
                    strict: bool = True) -> 'QuadTree[T]':
        """Build a tree from a batch of points
        Args:
        points: Values to insert, in order
        bounds: World rectangle
        strict: Raise OutOfBoundsError if any point is outside `bounds`
            (nothing is inserted); otherwise drop those points and keep
            them on `tree.rejected`
        """
        points = list(points)
        tree = cls(bounds, capacity=capacity, max_depth=max_depth)
        mask = bounds.contains_mask(positions_to_arrow(points)).to_pylist()

        outside = [p for p, inside in zip(points, mask) if not inside]
        if outside and strict:
            raise OutOfBoundsError(outside[0], bounds)
        if outside:
            logger.warning("Dropped %d of %d points outside %r",
                           len(outside), len(points), bounds)
        tree.rejected = outside

        for p, inside in zip(points, mask):
            if inside:
                tree.insert(p)
        return tree

    @property
    def is_leaf(self) -> bool:
        return isinstance(self.state, Leaf)

    @property
    def points(self) -> list[T]:
        """Points held directly by this node (empty for internal nodes)"""
        if isinstance(self.state, Leaf):
            return list(self.state.points)
        return []

    @property
    def children(self) -> tuple['QuadTree[T]', ...]:
        if isinstance(self.state, Internal):
            return self.state.children
        return ()

    def insert(self, point: T):
        """Insert a point, subdividing leaves as they fill up.

        Raises OutOfBoundsError if the point is outside this node's bounds.
        The tree is unchanged when insertion fails.
        """
        if not self.bounds.contains(point):
            raise OutOfBoundsError(point, self.bounds)

        if isinstance(self.state, Leaf):
            self.state.points.append(point)
            if len(self.state.points) >= self.capacity and self.depth < self.max_depth:
                try:
                    self._subdivide()
                except NoMatchingChildError:
                    self.state.points.pop()
                    raise
            return

        for child in self.state.children:
            if child.bounds.contains(point):
                child.insert(point)
                return

        child_bounds = [child.bounds for child in self.state.children]
        logger.error("Point %r fell between quadrants of %r: %r",
                     point, self.bounds, child_bounds)
        raise NoMatchingChildError(point, child_bounds)

    def _subdivide(self):
        """Convert this leaf into an internal node with four quadrants.

        Raises NoMatchingChildError, leaving this leaf as it was, if a point
        is claimed by no quadrant.
        """
        points = self.state.points
        quadrants = self.bounds.subdivide()
        assigned = [rect.points_inside(points) for rect in quadrants]

        if sum(len(a) for a in assigned) != len(points):
            stray = next(p for p in points if sum(r.contains(p) for r in quadrants) != 1)
            logger.error("Point %r fell between quadrants of %r: %r",
                         stray, self.bounds, list(quadrants))
            raise NoMatchingChildError(stray, quadrants)

        children = []
        for rect, inside in zip(quadrants, assigned):
            child = QuadTree(rect, capacity=self.capacity,
                             max_depth=self.max_depth, depth=self.depth + 1)
            child.state = Leaf(inside)
            # Coincident points can all land in one quadrant
            if len(child.state.points) > self.capacity and child.depth < child.max_depth:
                child._subdivide()
            children.append(child)

        logger.debug("Subdivided %r at depth %d (%d points)",
                     self.bounds, self.depth, len(points))
        self.state = Internal(tuple(children))

    def _collect_positions(self, out: list):
        if isinstance(self.state, Leaf):
            out.extend(self.state.points)
        else:
            for child in self.state.children:
                child._collect_positions(out)

    def objects(self) -> list[T]:
        """Every stored value, leaf order then quadrant order"""
        out = []
        self._collect_positions(out)
        return out

    def positions(self) -> pa.StructArray:
        """Every stored position as an Arrow array of {x, y} structs"""
        return positions_to_arrow(self.objects())

    def leaf_bounds(self) -> list[Rectangle]:
        """Bounds of every leaf holding at least one point"""
        if isinstance(self.state, Leaf):
            return [self.bounds] if self.state.points else []
        result = []
        for child in self.state.children:
            result.extend(child.leaf_bounds())
        return result

    def intersecting_leaves(self, segment: Segment) -> list['QuadTree[T]']:
        """Leaves whose bounds the segment crosses.

        Quadrants the segment does not cross are skipped without descending.
        Leaves are returned whether or not they hold points.
        """
        if isinstance(self.state, Leaf):
            return [self] if segment.rect_intersect(self.bounds) else []
        return self._crossed_leaves(segment)

    def _crossed_leaves(self, segment: Segment) -> list['QuadTree[T]']:
        # Callers have already checked that the segment crosses this node
        if isinstance(self.state, Leaf):
            return [self]
        result = []
        for child in self.state.children:
            if segment.rect_intersect(child.bounds):
                result.extend(child._crossed_leaves(segment))
        return result

    def leaf_count(self) -> int:
        if isinstance(self.state, Leaf):
            return 1
        return sum(child.leaf_count() for child in self.state.children)

    def height(self) -> int:
        """Number of levels below this node"""
        if isinstance(self.state, Leaf):
            return 0
        return 1 + max(child.height() for child in self.state.children)

    def __len__(self) -> int:
        if isinstance(self.state, Leaf):
            return len(self.state.points)
        return sum(len(child) for child in self.state.children)

    def __repr__(self) -> str:
        kind = 'Leaf' if self.is_leaf else 'Internal'
        return f"QuadTree({kind}, bounds={self.bounds!r}, depth={self.depth}, points={len(self)})"
