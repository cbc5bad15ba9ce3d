from dataclasses import dataclass
from typing import Optional

from data_structures.rectangle import Point, Rectangle


@dataclass(frozen=True)
class Segment:
    """Finite line segment used to cast through a QuadTree.

    Intersections are solved in parametric form. With this segment written as
    `origin + ua * (end - origin)` and the other as
    `origin2 + ub * (end2 - origin2)`, the two cross when both `ua` and `ub`
    fall in the closed interval [0, 1]. Both parameters come from 2x2
    determinants of the direction vectors and share one denominator.

    Parallel, degenerate and collinear segments have a zero denominator and
    are reported as not intersecting. That includes collinear segments that
    overlap; a full overlap test is not attempted.

    Attributes:
        origin (Point): Start of the segment (ua = 0).
        end (Point): End of the segment (ua = 1).

    Example:
        >>> a = Segment.new(0, 0, 10, 10)
        >>> b = Segment.new(0, 10, 10, 0)
        >>> a.segment_intersect(b)
        Point(x=5.0, y=5.0)
        >>> a.rect_intersect(Rectangle(4.0, 4.0, 20.0, 20.0))
        True

    """
    origin: Point
    end: Point

    @classmethod
    def new(cls, x1: float, y1: float, x2: float, y2: float) -> 'Segment':
        return cls(Point(x1, y1), Point(x2, y2))

    @property
    def direction(self) -> Point:
        return Point(self.end.x - self.origin.x, self.end.y - self.origin.y)

    def _parameters(self, other: 'Segment') -> Optional[tuple[float, float]]:
        """Solve for (ua, ub); None when the segments are parallel"""
        x1, y1 = self.origin
        x2, y2 = self.end
        x3, y3 = other.origin
        x4, y4 = other.end

        denom = (y4 - y3) * (x2 - x1) - (x4 - x3) * (y2 - y1)
        if denom == 0:
            return None
        ua = ((x4 - x3) * (y1 - y3) - (y4 - y3) * (x1 - x3)) / denom
        ub = ((x2 - x1) * (y1 - y3) - (y2 - y1) * (x1 - x3)) / denom
        return ua, ub

    def segment_intersect(self, other: 'Segment') -> Optional[Point]:
        """Intersection point with another segment, or None"""
        params = self._parameters(other)
        if params is None:
            return None
        ua, ub = params
        # NaN and inf fail both comparisons
        if not (0.0 <= ua <= 1.0 and 0.0 <= ub <= 1.0):
            return None
        d = self.direction
        return Point(self.origin.x + ua * d.x, self.origin.y + ua * d.y)

    @staticmethod
    def edges(rect: Rectangle) -> tuple['Segment', 'Segment', 'Segment', 'Segment']:
        """Left, right, bottom and top boundary segments of a rectangle"""
        return (
            Segment.new(rect.x, rect.y, rect.x, rect.top),
            Segment.new(rect.right, rect.y, rect.right, rect.top),
            Segment.new(rect.x, rect.y, rect.right, rect.y),
            Segment.new(rect.x, rect.top, rect.right, rect.top),
        )

    def rect_intersect(self, rect: Rectangle) -> bool:
        """True if the segment crosses any edge of `rect`.

        A segment lying strictly inside the rectangle touches no edge and is
        not reported.
        """
        return any(self.segment_intersect(edge) is not None for edge in self.edges(rect))
