import math

import pytest
import pyarrow as pa
from hypothesis import assume, given, strategies as st

from data_structures.rectangle import (
    POINT_TYPE,
    HasPosition,
    Point,
    Rectangle,
    positions_to_arrow,
    rectangles_to_arrow,
    sort_by_area,
)

coords = st.floats(-1e6, 1e6)
sizes = st.floats(0, 1e6)
fractions = st.floats(0, 1, exclude_max=True)


class TestRectangle:
    def test_half_open_containment(self):
        r = Rectangle(0.0, 0.0, 100.0, 100.0)
        assert r.contains(Point(0.0, 0.0))
        assert r.contains(Point(99.999, 50.0))
        assert not r.contains(Point(100.0, 50.0))
        assert not r.contains(Point(50.0, 100.0))
        assert not r.contains(Point(-0.001, 50.0))

    def test_contains_far_point(self):
        r = Rectangle(400.0, 200.0, 400.0, 200.0)
        assert r.contains(Point(640.0831, 292.49387))

    def test_area_and_accessors(self):
        r = Rectangle.from_origin_size(Point(1.0, 2.0), Point(3.0, 4.0))
        assert r.area == 12.0
        assert r.origin == Point(1.0, 2.0)
        assert r.size == Point(3.0, 4.0)
        assert r.right == 4.0
        assert r.top == 6.0

    def test_negative_size(self):
        with pytest.raises(ValueError):
            Rectangle(0.0, 0.0, -1.0, 1.0)

    def test_has_position(self):
        assert isinstance(Point(1.0, 2.0), HasPosition)
        assert isinstance(Rectangle(1.0, 2.0, 3.0, 4.0), HasPosition)
        assert Rectangle(1.0, 2.0, 3.0, 4.0).position == Point(1.0, 2.0)

    def test_points_inside_keeps_order(self):
        r = Rectangle(0.0, 0.0, 10.0, 10.0)
        candidates = [Point(5.0, 5.0), Point(10.0, 1.0), Point(1.0, 9.0), Point(-1.0, 0.0)]
        assert r.points_inside(candidates) == [Point(5.0, 5.0), Point(1.0, 9.0)]
        assert r.points_inside([]) == []

    @given(st.lists(st.tuples(st.floats(-50, 150), st.floats(-50, 150))))
    def test_mask_matches_scalar(self, points):
        r = Rectangle(0.0, 0.0, 100.0, 100.0)
        values = [Point(*p) for p in points]
        mask = r.contains_mask(positions_to_arrow(values)).to_pylist()
        assert mask == [r.contains(p) for p in values]

    def test_positions_to_arrow(self):
        arr = positions_to_arrow([Point(1, 2), Rectangle(3.0, 4.0, 1.0, 1.0)])
        assert arr.type == POINT_TYPE
        assert arr.to_pylist() == [{'x': 1.0, 'y': 2.0}, {'x': 3.0, 'y': 4.0}]


class TestSubdivide:
    def test_quadrant_layout(self):
        q1, q2, q3, q4 = Rectangle(0.0, 0.0, 100.0, 60.0).subdivide()
        assert q1 == Rectangle(50.0, 0.0, 50.0, 30.0)
        assert q2 == Rectangle(0.0, 0.0, 50.0, 30.0)
        assert q3 == Rectangle(0.0, 30.0, 50.0, 30.0)
        assert q4 == Rectangle(50.0, 30.0, 50.0, 30.0)

    @given(
        x=coords, y=coords, w=sizes, h=sizes,
        fx=fractions, fy=fractions
    )
    def test_exact_partition(self, x, y, w, h, fx, fy):
        parent = Rectangle(x, y, w, h)
        p = Point(x + fx * w, y + fy * h)
        assume(parent.contains(p))

        quadrants = parent.subdivide()
        assert sum(q.contains(p) for q in quadrants) == 1

    @given(x=coords, y=coords, w=sizes, h=sizes)
    def test_far_edges_preserved(self, x, y, w, h):
        parent = Rectangle(x, y, w, h)
        q1, q2, q3, q4 = parent.subdivide()
        assert q1.right == q4.right == parent.right
        assert q3.top == q4.top == parent.top
        assert q2.right == q1.x
        assert q2.top == q3.y

    def test_from_edges_keeps_far_edges(self):
        r = Rectangle.from_edges(-1.3436424411240122, 0.0, 15.605032297620641, 1.0)
        assert r.right == 15.605032297620641
        assert r.top == 1.0
        assert r == Rectangle(r.x, r.y, r.width, r.height)

    def test_negative_origin_edge_point(self):
        parent = Rectangle(-1.3436424411240122, 0.0, 16.948674738744653, 1.0)
        edge = Point(math.nextafter(parent.right, -math.inf), 0.1)
        assert parent.contains(edge)

        rect = parent
        for _ in range(10):
            owners = [q for q in rect.subdivide() if q.contains(edge)]
            assert len(owners) == 1
            assert owners[0].right == parent.right
            rect = owners[0]


class TestSortByArea:
    def test_descending_is_stable(self):
        rects = [
            Rectangle(0.0, 0.0, 1.0, 1.0),
            Rectangle(0.0, 0.0, 3.0, 3.0),
            Rectangle(0.0, 0.0, 2.0, 2.0),
            Rectangle(5.0, 5.0, 3.0, 3.0),
        ]
        assert sort_by_area(rects) == [rects[1], rects[3], rects[2], rects[0]]
        assert sort_by_area(rects, descending=False) == [rects[0], rects[2], rects[1], rects[3]]

    def test_empty(self):
        assert sort_by_area([]) == []

    def test_rectangles_to_arrow(self):
        arr = rectangles_to_arrow([Rectangle(1.0, 2.0, 3.0, 4.0)])
        assert isinstance(arr, pa.StructArray)
        assert arr.to_pylist() == [{'x': 1.0, 'y': 2.0, 'width': 3.0, 'height': 4.0}]

# --------------------------
# Running Tests
# --------------------------
#if __name__ == "__main__":
#    pytest.main([
#        "-v",
#        "--hypothesis-show-statistics",
#        "--cov=rectangle",
#        "--cov-report=html:coverage"
#    ])
# --------------------------
