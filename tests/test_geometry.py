"""Unit tests for the geometry primitives (pyvoronoi/geometry.py)."""

import math

import numpy as np
import pytest

from pyvoronoi.geometry import (
    DegenerateTriangleError,
    Edge,
    InvalidInputError,
    Triangle,
    are_collinear,
    as_point,
    calculate_rect,
    expand_rect,
    is_point_in_rect,
    polygon_area,
    polygon_centroid,
    rect_corners,
)


class TestEdge:
    """Tests for the undirected Edge record."""

    def test_equality_ignores_order(self):
        """Edge(a, b) and Edge(b, a) are the same edge."""
        assert Edge((0.0, 0.0), (1.0, 2.0)) == Edge((1.0, 2.0), (0.0, 0.0))

    def test_hash_ignores_order(self):
        """Reversed edges collapse in a set."""
        edges = {Edge((0.0, 0.0), (1.0, 2.0)), Edge((1.0, 2.0), (0.0, 0.0))}
        assert len(edges) == 1

    def test_different_edges_not_equal(self):
        """Edges sharing one endpoint are different."""
        assert Edge((0.0, 0.0), (1.0, 0.0)) != Edge((0.0, 0.0), (0.0, 1.0))

    def test_length_and_midpoint(self):
        """Derived length and midpoint."""
        edge = Edge((0.0, 0.0), (3.0, 4.0))
        assert edge.length == pytest.approx(5.0)
        assert edge.midpoint == pytest.approx((1.5, 2.0))

    def test_is_immutable(self):
        """Edges cannot be modified after construction."""
        edge = Edge((0.0, 0.0), (1.0, 0.0))
        with pytest.raises(AttributeError):
            edge.a = (5.0, 5.0)  # type: ignore[misc]


class TestTriangleCircumcircle:
    """Tests for the cached circumcircle of a Triangle."""

    def test_right_triangle(self):
        """Circumcenter of a right triangle is the hypotenuse midpoint."""
        t = Triangle((0.0, 0.0), (2.0, 0.0), (0.0, 2.0))
        assert t.center == pytest.approx((1.0, 1.0))
        assert t.radius_sqr == pytest.approx(2.0)

    def test_equilateral_triangle(self):
        """Circumcenter of an equilateral triangle is its centroid."""
        t = Triangle((0.0, 0.0), (2.0, 0.0), (1.0, math.sqrt(3.0)))
        assert t.center == pytest.approx((1.0, 1.0 / math.sqrt(3.0)))
        assert t.radius_sqr == pytest.approx(4.0 / 3.0)

    def test_translation_invariant(self):
        """Moving the triangle far from the origin moves the center with it."""
        offset = 1.0e6
        t = Triangle((offset, offset), (offset + 2.0, offset), (offset, offset + 2.0))
        assert t.center == pytest.approx((offset + 1.0, offset + 1.0))
        assert t.radius_sqr == pytest.approx(2.0)

    def test_center_equidistant_from_vertices(self):
        """All three vertices lie on the circumcircle."""
        t = Triangle((1.0, 3.0), (7.5, -2.0), (4.0, 9.0))
        for v in t.vertices:
            dist_sqr = (v[0] - t.center[0]) ** 2 + (v[1] - t.center[1]) ** 2
            assert dist_sqr == pytest.approx(t.radius_sqr)

    def test_orientation_does_not_matter(self):
        """CW and CCW vertex orders give the same circle."""
        ccw = Triangle((0.0, 0.0), (4.0, 0.0), (1.0, 3.0))
        cw = Triangle((0.0, 0.0), (1.0, 3.0), (4.0, 0.0))
        assert ccw.center == pytest.approx(cw.center)
        assert ccw.radius_sqr == pytest.approx(cw.radius_sqr)

    def test_collinear_raises(self):
        """Exactly collinear vertices have no circumcircle."""
        with pytest.raises(DegenerateTriangleError):
            Triangle((0.0, 0.0), (1.0, 1.0), (2.0, 2.0))

    def test_near_collinear_raises(self):
        """A sliver whose denominator is numerically zero is rejected."""
        with pytest.raises(DegenerateTriangleError, match="near-collinear"):
            Triangle((0.0, 0.0), (1.0, 1.0e-13), (2.0, 0.0))

    def test_repeated_vertex_raises(self):
        """A zero-area triangle built from a duplicated vertex is rejected."""
        with pytest.raises(DegenerateTriangleError):
            Triangle((1.0, 1.0), (1.0, 1.0), (3.0, 0.0))

    def test_degenerate_error_is_value_error(self):
        """Callers catching ValueError also catch degeneracy."""
        with pytest.raises(ValueError):
            Triangle((0.0, 0.0), (0.0, 1.0), (0.0, 2.0))


class TestTrianglePredicates:
    """Tests for circumcircle containment and opposite edges."""

    def setup_method(self):
        self.t = Triangle((0.0, 0.0), (2.0, 0.0), (0.0, 2.0))

    def test_point_clearly_inside(self):
        assert self.t.is_point_inside_circumcircle((1.0, 1.0))

    def test_point_clearly_outside(self):
        assert not self.t.is_point_inside_circumcircle((5.0, 5.0))

    def test_point_on_circle_is_not_inside(self):
        """Containment is strict: (2, 2) lies exactly on the circle."""
        assert not self.t.is_point_inside_circumcircle((2.0, 2.0))

    def test_vertices_are_not_inside(self):
        for v in self.t.vertices:
            assert not self.t.is_point_inside_circumcircle(v)

    def test_clockwise_triangle_containment(self):
        cw = Triangle((0.0, 0.0), (0.0, 2.0), (2.0, 0.0))
        assert cw.winding == -self.t.winding
        assert cw.is_point_inside_circumcircle((1.0, 1.0))
        assert not cw.is_point_inside_circumcircle((5.0, 5.0))
        assert not cw.is_point_inside_circumcircle((2.0, 2.0))

    def test_vertices_of_skewed_triangles_are_not_inside(self):
        """Every vertex lies exactly on the circle, whatever the rounding of the center."""
        rng = np.random.default_rng(4)
        for _ in range(200):
            a, b, c = (tuple(p) for p in rng.uniform(-1e3, 1e3, size=(3, 2)).tolist())
            t = Triangle(a, b, c)
            assert not any(t.is_point_inside_circumcircle(v) for v in t.vertices)

    def test_cocircular_point_is_not_inside(self):
        """(2, 2) closes the square (0, 0), (2, 0), (0, 2) on the same circle."""
        t = Triangle((0.0, 2.0), (2.0, 0.0), (0.0, 0.0))
        assert not t.is_point_inside_circumcircle((2.0, 2.0))

    @pytest.mark.parametrize(
        "p, expected",
        [
            ((0.5, 0.5), True),
            ((1.0, 1.0), True),
            ((0.0, 0.0), True),
            ((1.0, 0.0), True),
            ((1.5, 1.5), False),
            ((-0.1, 1.0), False),
        ],
    )
    def test_contains_point(self, p, expected):
        """Containment includes edges and corners, for both windings."""
        cw = Triangle((0.0, 0.0), (0.0, 2.0), (2.0, 0.0))
        assert self.t.contains_point(p) is expected
        assert cw.contains_point(p) is expected

    def test_opposite_edges(self):
        """Each corner maps to the edge not touching it."""
        assert self.t.get_corner_opposite_edge((0.0, 0.0)) == Edge((2.0, 0.0), (0.0, 2.0))
        assert self.t.get_corner_opposite_edge((2.0, 0.0)) == Edge((0.0, 2.0), (0.0, 0.0))
        assert self.t.get_corner_opposite_edge((0.0, 2.0)) == Edge((0.0, 0.0), (2.0, 0.0))

    def test_opposite_edge_of_non_corner_raises(self):
        with pytest.raises(ValueError):
            self.t.get_corner_opposite_edge((1.0, 1.0))

    def test_edges_computed_once(self):
        """The stored edges are the same objects on every access."""
        assert self.t.edge_ab is self.t.edges[0]
        assert self.t.edge_bc is self.t.edges[1]
        assert self.t.edge_ca is self.t.edges[2]

    def test_identity_equality(self):
        """Two triangles with the same vertices are distinct objects."""
        other = Triangle((0.0, 0.0), (2.0, 0.0), (0.0, 2.0))
        assert other != self.t
        assert len({self.t, other}) == 2

    def test_area_and_has_vertex(self):
        assert self.t.area == pytest.approx(2.0)
        assert self.t.has_vertex((2.0, 0.0))
        assert not self.t.has_vertex((2.0, 2.0))


class TestRectangles:
    """Tests for rectangle helpers."""

    def test_calculate_rect_tight(self):
        points = [(1.0, 2.0), (5.0, -1.0), (3.0, 7.0)]
        assert calculate_rect(points) == (1.0, -1.0, 5.0, 7.0)

    def test_calculate_rect_padding(self):
        points = np.array([[0.0, 0.0], [10.0, 5.0]])
        assert calculate_rect(points, padding=2.0) == (-2.0, -2.0, 12.0, 7.0)

    def test_calculate_rect_empty_raises(self):
        with pytest.raises(InvalidInputError):
            calculate_rect([])

    def test_calculate_rect_bad_shape_raises(self):
        with pytest.raises(InvalidInputError):
            calculate_rect(np.zeros((3, 3)))

    def test_expand_rect(self):
        assert expand_rect((0.0, 0.0, 1.0, 2.0), 1.0) == (-1.0, -1.0, 2.0, 3.0)

    def test_rect_corners_clockwise(self):
        corners = rect_corners((0.0, 0.0, 2.0, 1.0))
        assert corners == [(0.0, 0.0), (0.0, 1.0), (2.0, 1.0), (2.0, 0.0)]
        assert polygon_area(corners) < 0

    def test_is_point_in_rect_inclusive(self):
        rect = (0.0, 0.0, 10.0, 10.0)
        assert is_point_in_rect((5.0, 5.0), rect)
        assert is_point_in_rect((10.0, 0.0), rect)
        assert not is_point_in_rect((10.5, 5.0), rect)


class TestHelpers:
    """Tests for point normalization and polygon helpers."""

    def test_as_point_from_numpy(self):
        p = as_point(np.array([1, 2]))
        assert p == (1.0, 2.0)
        assert all(type(c) is float for c in p)

    def test_as_point_rejects_garbage(self):
        with pytest.raises(InvalidInputError):
            as_point((1.0, 2.0, 3.0))
        with pytest.raises(InvalidInputError):
            as_point((float("nan"), 0.0))

    def test_polygon_area_sign(self):
        ccw = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
        assert polygon_area(ccw) == pytest.approx(1.0)
        assert polygon_area(ccw[::-1]) == pytest.approx(-1.0)

    def test_polygon_centroid(self):
        square = [(0.0, 0.0), (0.0, 2.0), (2.0, 2.0), (2.0, 0.0)]
        assert polygon_centroid(square) == pytest.approx((1.0, 1.0))

    def test_are_collinear(self):
        assert are_collinear([(0.0, 0.0), (1.0, 1.0), (3.0, 3.0)])
        assert not are_collinear([(0.0, 0.0), (1.0, 1.0), (3.0, 3.1)])
        # fewer than three distinct points never count as collinear
        assert not are_collinear([(0.0, 0.0), (1.0, 1.0), (1.0, 1.0)])
