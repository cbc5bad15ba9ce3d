from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Protocol, Sequence, TypeVar, runtime_checkable

import pyarrow as pa
import pyarrow.compute as pc

POINT_TYPE = pa.struct([
    ('x', pa.float64()),
    ('y', pa.float64())
])

RECT_TYPE = pa.struct([
    ('x', pa.float64()),
    ('y', pa.float64()),
    ('width', pa.float64()),
    ('height', pa.float64())
])


class Point(NamedTuple):
    """A 2-D position. A point's position is itself."""
    x: float
    y: float

    @property
    def position(self) -> 'Point':
        return self


@runtime_checkable
class HasPosition(Protocol):
    """Anything that can be placed in a QuadTree."""
    @property
    def position(self) -> Point:
        ...


P = TypeVar('P', bound=HasPosition)


def positions_to_arrow(values: Sequence[HasPosition]) -> pa.StructArray:
    """Collect the positions of `values` into an Arrow array of {x, y} structs"""
    return pa.array([
        {'x': float(v.position.x), 'y': float(v.position.y)} for v in values
    ], type=POINT_TYPE)


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned, half-open region used as a QuadTree boundary.

    A rectangle covers `[x, x + width) x [y, y + height)`: the minimum edges
    are inside, the maximum edges are not. Adjacent rectangles that share an
    edge therefore never claim the same point, which is what lets the four
    quadrants of a subdivided node partition their parent exactly.

    The anchor corner `(x, y)` doubles as the rectangle's position, so
    rectangles can themselves be stored in a QuadTree.

    Quadrants are built with `from_edges`, which keeps the exact maximum
    edges it was given; `x + width` can round away from them.

    Attributes:
        x (float): Left edge (inclusive).
        y (float): Bottom edge (inclusive).
        width (float): Horizontal extent, non-negative.
        height (float): Vertical extent, non-negative.

    Example:
        >>> world = Rectangle(0.0, 0.0, 100.0, 100.0)
        >>> world.contains(Point(10.0, 10.0))
        True
        >>> world.contains(Point(100.0, 10.0))
        False
        >>> world.area
        10000.0

    """
    x: float
    y: float
    width: float
    height: float
    _right: Optional[float] = field(default=None, compare=False, repr=False)
    _top: Optional[float] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"Rectangle size must be non-negative, got {self.width}x{self.height}"
            )

    @classmethod
    def from_origin_size(cls, origin: Point, size: Point) -> 'Rectangle':
        return cls(origin.x, origin.y, size.x, size.y)

    @classmethod
    def from_edges(cls, x: float, y: float, right: float, top: float) -> 'Rectangle':
        """Rectangle whose maximum edges are exactly `right` and `top`"""
        return cls(x, y, right - x, top - y, right, top)

    @property
    def origin(self) -> Point:
        return Point(self.x, self.y)

    @property
    def size(self) -> Point:
        return Point(self.width, self.height)

    @property
    def position(self) -> Point:
        return self.origin

    @property
    def right(self) -> float:
        """Exclusive maximum x"""
        if self._right is not None:
            return self._right
        return self.x + self.width

    @property
    def top(self) -> float:
        """Exclusive maximum y"""
        if self._top is not None:
            return self._top
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def contains(self, p: HasPosition) -> bool:
        """Half-open containment check for a single value"""
        pos = p.position
        return self.x <= pos.x < self.right and self.y <= pos.y < self.top

    def contains_mask(self, points: pa.StructArray) -> pa.BooleanArray:
        """Arrow-vectorized containment check over {x, y} structs"""
        xs = points.field('x')
        ys = points.field('y')
        return pc.and_(
            pc.and_(
                pc.greater_equal(xs, self.x),
                pc.less(xs, self.right)
            ),
            pc.and_(
                pc.greater_equal(ys, self.y),
                pc.less(ys, self.top)
            )
        )

    def points_inside(self, candidates: Sequence[P]) -> list[P]:
        """Return the candidates contained in this rectangle, in their original order"""
        if not candidates:
            return []
        mask = self.contains_mask(positions_to_arrow(candidates)).to_pylist()
        return [c for c, inside in zip(candidates, mask) if inside]

    def subdivide(self) -> tuple['Rectangle', 'Rectangle', 'Rectangle', 'Rectangle']:
        """Split into four quadrants.

        Returns:
        (q1, q2, q3, q4) anchored at (x+halfW, y), (x, y), (x, y+halfH) and
        (x+halfW, y+halfH).
        """
        #   y+h  _______ _______
        #       |       |       |
        #       |   3   |   4   |
        #   mid |_______|_______|
        #       |       |       |
        #       |   2   |   1   |
        #    y  |_______|_______|
        #       x      mid      x+w
        right, top = self.right, self.top
        mid_x = min(self.x + self.width / 2, right)
        mid_y = min(self.y + self.height / 2, top)
        # Neighbours share the split values and the parent's own far edges
        return (
            Rectangle.from_edges(mid_x, self.y, right, mid_y),
            Rectangle.from_edges(self.x, self.y, mid_x, mid_y),
            Rectangle.from_edges(self.x, mid_y, mid_x, top),
            Rectangle.from_edges(mid_x, mid_y, right, top),
        )


def rectangles_to_arrow(rects: Sequence[Rectangle]) -> pa.StructArray:
    return pa.array([
        {'x': r.x, 'y': r.y, 'width': r.width, 'height': r.height} for r in rects
    ], type=RECT_TYPE)


def sort_by_area(rects: Sequence[Rectangle], descending: bool = True) -> list[Rectangle]:
    """Order rectangles by area, largest first by default.

    Ties keep their input order, so the result is stable for a given tree.
    """
    if not rects:
        return []
    arr = rectangles_to_arrow(rects)
    table = pa.table({
        'index': pa.array(list(range(len(rects))), pa.int64()),
        'area': pc.multiply(arr.field('width'), arr.field('height'))
    })
    order = table.sort_by([
        ('area', 'descending' if descending else 'ascending'),
        ('index', 'ascending')
    ]).column('index').to_pylist()
    return [rects[i] for i in order]
