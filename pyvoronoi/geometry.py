import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray
from shewchuk import incircle_test, orientation

from pyvoronoi.utils import EPS, Polygon, Rect, Vec2d


class DegenerateTriangleError(ValueError):
    """Raised when three vertices do not span a triangle with a circumcircle."""

    def __init__(self, a: Vec2d, b: Vec2d, c: Vec2d, reason: str = "collinear"):
        super().__init__(f"Degenerate triangle ({reason}): {a}, {b}, {c}")
        self.vertices = (a, b, c)


class InvalidInputError(ValueError): ...


def as_point(p: Sequence[float] | NDArray[np.floating]) -> Vec2d:
    """Normalize any 2-sequence (tuple, list, numpy row) to a tuple of floats."""
    try:
        x, y = p
        point = (float(x), float(y))
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Not a 2D point: {p!r}") from e
    if not (math.isfinite(point[0]) and math.isfinite(point[1])):
        raise InvalidInputError(f"Point has non-finite coordinates: {p!r}")
    return point


def as_point_array(points: Iterable[Vec2d] | NDArray[np.floating]) -> NDArray[np.floating]:
    if not isinstance(points, np.ndarray):
        points = list(points)
    try:
        arr = np.asarray(points, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Points are not an (N, 2) array of numbers: {e}") from e
    if arr.size == 0:
        return arr.reshape(0, 2)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise InvalidInputError(f"Expected an array of shape (N, 2), got {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise InvalidInputError("Points contain non-finite coordinates")
    return arr


def squared_distance(p: Vec2d, q: Vec2d) -> float:
    dx = p[0] - q[0]
    dy = p[1] - q[1]
    return dx * dx + dy * dy


def are_collinear(points: Iterable[Vec2d]) -> bool:
    """
    True if the points contain at least three distinct locations and all of
    them lie on a single line (exact orientation predicate).
    """
    distinct = list(dict.fromkeys(points))
    if len(distinct) < 3:
        return False
    (ax, ay), (bx, by) = distinct[0], distinct[1]
    return all(orientation(ax, ay, bx, by, px, py) == 0 for px, py in distinct[2:])


@dataclass(frozen=True)
class Edge:
    """Undirected segment: Edge(a, b) == Edge(b, a)."""

    a: Vec2d
    b: Vec2d

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Edge):
            return NotImplemented
        return (self.a == other.a and self.b == other.b) or (
            self.a == other.b and self.b == other.a
        )

    def __hash__(self) -> int:
        return hash(frozenset((self.a, self.b)))

    @property
    def length(self) -> float:
        return math.sqrt(squared_distance(self.a, self.b))

    @property
    def midpoint(self) -> Vec2d:
        return (self.a[0] + self.b[0]) * 0.5, (self.a[1] + self.b[1]) * 0.5

    def has_vertex(self, p: Vec2d) -> bool:
        return p == self.a or p == self.b


@dataclass(frozen=True, eq=False)
class Triangle:
    """
    Triangle with its three edges and cached circumcircle.

    Equality and hashing are by identity: two triangles built from the same
    vertices are still different objects of a triangulation run.

    Raises
    ------
    DegenerateTriangleError
        If the vertices are collinear (or numerically so) and no circumcircle
        exists.
    """

    a: Vec2d
    b: Vec2d
    c: Vec2d
    edge_ab: Edge = field(init=False, repr=False)
    edge_bc: Edge = field(init=False, repr=False)
    edge_ca: Edge = field(init=False, repr=False)
    center: Vec2d = field(init=False)
    radius_sqr: float = field(init=False)
    winding: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        a, b, c = self.a, self.b, self.c
        object.__setattr__(self, "edge_ab", Edge(a, b))
        object.__setattr__(self, "edge_bc", Edge(b, c))
        object.__setattr__(self, "edge_ca", Edge(c, a))

        # Exact orientation: -1 (CW), 0 (collinear), +1 (CCW)
        winding = orientation(a[0], a[1], b[0], b[1], c[0], c[1])
        if winding == 0:
            raise DegenerateTriangleError(a, b, c)
        object.__setattr__(self, "winding", winding)

        # Work in a frame centered on `a` to keep the squared terms small
        ox, oy = a
        ax, ay = 0.0, 0.0
        bx, by = b[0] - ox, b[1] - oy
        cx, cy = c[0] - ox, c[1] - oy

        ab = ax * ax + ay * ay
        cd = bx * bx + by * by
        ef = cx * cx + cy * cy

        cmb_x, cmb_y = cx - bx, cy - by
        amc_x, amc_y = ax - cx, ay - cy
        bma_x, bma_y = bx - ax, by - ay

        den_x = ax * cmb_y + bx * amc_y + cx * bma_y
        den_y = ay * cmb_x + by * amc_x + cy * bma_x

        scale = max(cd, ef, squared_distance(b, c))
        if abs(den_x) <= EPS * scale or abs(den_y) <= EPS * scale:
            raise DegenerateTriangleError(a, b, c, reason="near-collinear")

        center_x = (ab * cmb_y + cd * amc_y + ef * bma_y) / den_x * 0.5
        center_y = (ab * cmb_x + cd * amc_x + ef * bma_x) / den_y * 0.5

        center = (center_x + ox, center_y + oy)
        object.__setattr__(self, "center", center)
        object.__setattr__(self, "radius_sqr", squared_distance(a, center))

    @property
    def vertices(self) -> tuple[Vec2d, Vec2d, Vec2d]:
        return self.a, self.b, self.c

    @property
    def edges(self) -> tuple[Edge, Edge, Edge]:
        return self.edge_ab, self.edge_bc, self.edge_ca

    @property
    def centroid(self) -> Vec2d:
        return (
            (self.a[0] + self.b[0] + self.c[0]) / 3.0,
            (self.a[1] + self.b[1] + self.c[1]) / 3.0,
        )

    @property
    def area(self) -> float:
        return abs(polygon_area([self.a, self.b, self.c]))

    def has_vertex(self, p: Vec2d) -> bool:
        return p == self.a or p == self.b or p == self.c

    def is_point_inside_circumcircle(self, p: Vec2d) -> bool:
        """
        Exact, strict containment: points on the circle (the vertices
        included) are not inside. `center` and `radius_sqr` are rounded and
        only used for output.
        """
        # incircle_test is positive inside the circle of a CCW triangle
        return incircle_test(*p, *self.a, *self.b, *self.c) * self.winding > 0

    def contains_point(self, p: Vec2d) -> bool:
        """True if `p` lies inside the triangle or on its boundary."""
        sides = {orientation(*edge.a, *edge.b, *p) for edge in self.edges}
        return -self.winding not in sides

    def get_corner_opposite_edge(self, corner: Vec2d) -> Edge:
        if corner == self.a:
            return self.edge_bc
        if corner == self.b:
            return self.edge_ca
        if corner == self.c:
            return self.edge_ab
        raise ValueError(f"{corner} is not a corner of {self}")


def calculate_rect(
    points: Iterable[Vec2d] | NDArray[np.floating], padding: float = 0.0
) -> Rect:
    """
    Tight bounding box of `points`, grown by `padding` on all sides.

    :param points: input points, any iterable of 2D points or an (N, 2) array
    :param padding: margin added on every side
    :return: (xmin, ymin, xmax, ymax)
    """
    arr = as_point_array(points)
    if len(arr) == 0:
        raise InvalidInputError("Cannot compute a rectangle from an empty point set")
    xmin, ymin = np.min(arr, axis=0)
    xmax, ymax = np.max(arr, axis=0)
    return expand_rect((float(xmin), float(ymin), float(xmax), float(ymax)), padding)


def expand_rect(rect: Rect, amount: float) -> Rect:
    xmin, ymin, xmax, ymax = rect
    return xmin - amount, ymin - amount, xmax + amount, ymax + amount


def rect_corners(rect: Rect) -> Polygon:
    """Corners of `rect`, clockwise starting from (xmin, ymin)."""
    xmin, ymin, xmax, ymax = rect
    return [(xmin, ymin), (xmin, ymax), (xmax, ymax), (xmax, ymin)]


def is_point_in_rect(p: Vec2d, rect: Rect) -> bool:
    xmin, ymin, xmax, ymax = rect
    return xmin <= p[0] <= xmax and ymin <= p[1] <= ymax


def polygon_area(coords: Sequence[Vec2d]) -> float:
    """Signed area of polygon (positive for CCW)."""
    x = [p[0] for p in coords]
    y = [p[1] for p in coords]
    return 0.5 * sum(
        x[i] * y[i + 1] - x[i + 1] * y[i] for i in range(-1, len(coords) - 1)
    )


def polygon_centroid(coords: Sequence[Vec2d]) -> Vec2d:
    """
    Area centroid of a simple polygon. Falls back to the vertex mean for
    polygons with (numerically) zero area.
    """
    pts = as_point_array(coords)
    if len(pts) == 0:
        raise InvalidInputError("Empty polygon has no centroid")
    x, y = pts[:, 0], pts[:, 1]
    x_next, y_next = np.roll(x, -1), np.roll(y, -1)
    cross = x * y_next - x_next * y
    area = 0.5 * np.sum(cross)
    if abs(area) <= EPS:
        mean = pts.mean(axis=0)
        return float(mean[0]), float(mean[1])
    cx = np.sum((x + x_next) * cross) / (6.0 * area)
    cy = np.sum((y + y_next) * cross) / (6.0 * area)
    return float(cx), float(cy)
