from collections import Counter
from collections.abc import Iterable

import numpy as np
from loguru import logger
from numpy.typing import NDArray
from shewchuk import orientation

from pyvoronoi.geometry import (
    DegenerateTriangleError,
    Edge,
    InvalidInputError,
    Triangle,
    are_collinear,
    as_point,
    as_point_array,
    calculate_rect,
    expand_rect,
    rect_corners,
)
from pyvoronoi.utils import Rect, Vec2d


def find_bad_triangles(triangles: list[Triangle], point: Vec2d) -> list[int]:
    """
    Indices of the triangles whose circumcircle strictly contains `point`.

    The set is grown by edge adjacency from the triangles containing `point`,
    so it is always one connected region around it.

    :param triangles: current triangulation
    :param point: point about to be inserted
    :return: sorted indices into `triangles`
    """
    inside = [
        idx
        for idx, triangle in enumerate(triangles)
        if triangle.is_point_inside_circumcircle(point)
    ]
    edge_to_triangles: dict[Edge, list[int]] = {}
    for idx in inside:
        for edge in triangles[idx].edges:
            edge_to_triangles.setdefault(edge, []).append(idx)

    stack = [idx for idx in inside if triangles[idx].contains_point(point)]
    bad = set(stack)
    while stack:
        idx = stack.pop()
        for edge in triangles[idx].edges:
            for other in edge_to_triangles[edge]:
                if other not in bad:
                    bad.add(other)
                    stack.append(other)

    if len(bad) < len(inside):
        logger.trace(f"{len(inside) - len(bad)} circumcircles around {point} not connected")
    return sorted(bad)


def cavity_boundary(triangles: list[Triangle], bad_indices: list[int]) -> list[Edge]:
    """
    Boundary of the polygonal cavity left by removing the bad triangles.

    Edges shared by two bad triangles are interior to the cavity and are
    dropped; the edges occurring exactly once form the boundary.
    """
    edges = [edge for idx in bad_indices for edge in triangles[idx].edges]
    counts = Counter(edges)
    return [edge for edge in edges if counts[edge] == 1]


def check_cavity(
    triangles: list[Triangle], bad_indices: list[int], boundary: list[Edge], point: Vec2d
) -> None:
    """
    Check that `point` sees every boundary edge from inside the cavity.

    Raises
    ------
    DegenerateTriangleError
        If `point` is collinear with a boundary edge or lies on its far side.
    """
    on_boundary = set(boundary)
    for idx in bad_indices:
        triangle = triangles[idx]
        for edge in triangle.edges:
            if edge not in on_boundary:
                continue
            corner = next(v for v in triangle.vertices if not edge.has_vertex(v))
            side = orientation(*edge.a, *edge.b, *point)
            if side == 0 or side != orientation(*edge.a, *edge.b, *corner):
                raise DegenerateTriangleError(
                    edge.a, edge.b, point, reason="cavity edge not visible from point"
                )


def insert_point(triangles: list[Triangle], point: Vec2d) -> list[Triangle]:
    """
    Bowyer-Watson insertion of a single point.

    Returns the new working collection; `triangles` itself is left untouched,
    so a failure while building the new triangles leaves it valid.

    :param triangles: current triangulation
    :param point: point to insert
    :return: triangles after re-triangulating the cavity around `point`
    """
    bad = find_bad_triangles(triangles, point)
    boundary = cavity_boundary(triangles, bad)
    logger.trace(
        f"Inserting {point}: {len(bad)} bad triangles, {len(boundary)} boundary edges"
    )
    check_cavity(triangles, bad, boundary, point)

    new_triangles = [Triangle(edge.a, edge.b, point) for edge in boundary]

    bad_set = set(bad)
    kept = [t for idx, t in enumerate(triangles) if idx not in bad_set]
    return kept + new_triangles


class Triangulator:
    """
    Incremental Delaunay triangulation (Bowyer-Watson) of a 2D point set.

    The working rectangle is either given explicitly (constructor or
    `set_rectangle`) or computed from the points, grown by `padding`, at the
    start of `triangulate`. Around it sits a super-rectangle, grown by the
    rectangle's largest dimension, split along its (xmin, ymin)-(xmax, ymax)
    diagonal into the two super-triangles that seed every run.
    """

    def __init__(
        self,
        points: Iterable[Vec2d] | NDArray[np.floating] | None = None,
        rect: Rect | None = None,
        padding: float = 0.0,
    ) -> None:
        self._points: list[Vec2d] = []
        self.padding = padding
        self._rect: Rect | None = None
        self._explicit_rect = False
        self._super_rect: Rect | None = None
        self._super_triangles: tuple[Triangle, Triangle] | None = None
        self._super_corners: frozenset[Vec2d] = frozenset()

        if points is not None:
            self.add_points(points)
        if rect is not None:
            self.set_rectangle(rect)

    @property
    def points(self) -> list[Vec2d]:
        return list(self._points)

    @property
    def rect(self) -> Rect | None:
        return self._rect

    @property
    def super_rect(self) -> Rect | None:
        return self._super_rect

    @property
    def super_triangles(self) -> tuple[Triangle, Triangle] | None:
        return self._super_triangles

    def add_point(self, p: Vec2d) -> None:
        self._points.append(as_point(p))

    def add_points(self, points: Iterable[Vec2d] | NDArray[np.floating]) -> None:
        for row in as_point_array(points):
            self._points.append((float(row[0]), float(row[1])))

    def set_rectangle(self, rect: Rect) -> None:
        """Fix the working rectangle and derive the super-triangles from it."""
        self._apply_rectangle(rect)
        self._explicit_rect = True

    def _apply_rectangle(self, rect: Rect) -> None:
        xmin, ymin, xmax, ymax = (float(v) for v in rect)
        width, height = xmax - xmin, ymax - ymin
        if width < 0 or height < 0:
            raise InvalidInputError(f"Rectangle has negative extent: {rect}")
        grow = max(width, height)
        if grow <= 0:
            raise InvalidInputError(
                f"Rectangle {rect} has zero extent, use a padding or an explicit rectangle"
            )

        self._rect = (xmin, ymin, xmax, ymax)
        self._super_rect = expand_rect(self._rect, grow)
        bottom_left, top_left, top_right, bottom_right = rect_corners(self._super_rect)
        self._super_corners = frozenset(
            (bottom_left, top_left, top_right, bottom_right)
        )
        self._super_triangles = (
            Triangle(bottom_left, top_left, top_right),
            Triangle(top_right, bottom_right, bottom_left),
        )
        logger.debug(f"Working rectangle {self._rect}, super rectangle {self._super_rect}")

    def triangulate(self) -> list[Triangle]:
        """
        Run Bowyer-Watson over the points in insertion order.

        :return: all triangles, including the border triangles touching the
                 super-rectangle corners
        """
        if not self._explicit_rect:
            if not self._points:
                raise InvalidInputError(
                    "Cannot triangulate an empty point set without a rectangle"
                )
            self._apply_rectangle(calculate_rect(self._points, self.padding))

        if are_collinear(self._points):
            a, b, c, *_ = dict.fromkeys(self._points)
            raise DegenerateTriangleError(a, b, c, reason="all input points are collinear")

        if self._super_rect is None or self._super_triangles is None:
            raise RuntimeError("Super triangles were not initialized")
        xmin, ymin, xmax, ymax = self._super_rect
        outside = [
            p for p in self._points if not (xmin < p[0] < xmax and ymin < p[1] < ymax)
        ]
        if outside:
            raise InvalidInputError(
                f"{len(outside)} point(s) outside the super rectangle {self._super_rect}, "
                f"first one: {outside[0]}"
            )

        triangles: list[Triangle] = list(self._super_triangles)
        seen: set[Vec2d] = set()
        for point in self._points:
            if point in seen:
                logger.warning(f"Skipping duplicate point {point}")
                continue
            seen.add(point)
            triangles = insert_point(triangles, point)

        logger.debug(
            f"Triangulated {len(self._points)} points into {len(triangles)} triangles"
        )
        return triangles

    def is_border_triangle(self, triangle: Triangle) -> bool:
        return any(v in self._super_corners for v in triangle.vertices)

    def remove_border_triangles(self, triangles: list[Triangle]) -> None:
        """Remove, in place, the triangles touching a super-rectangle corner."""
        triangles[:] = [t for t in triangles if not self.is_border_triangle(t)]

    calculate_rect = staticmethod(calculate_rect)


def triangulate(
    points: Iterable[Vec2d] | NDArray[np.floating],
    rect: Rect | None = None,
    padding: float = 0.0,
    keep_border: bool = False,
) -> list[Triangle]:
    """
    Delaunay triangulation of `points`.

    :param points: input points
    :param rect: explicit working rectangle, computed from the points if None
    :param padding: margin around the computed rectangle
    :param keep_border: keep triangles touching the super-rectangle corners
    :return: list of triangles
    """
    triangulator = Triangulator(points, rect=rect, padding=padding)
    triangles = triangulator.triangulate()
    if not keep_border:
        triangulator.remove_border_triangles(triangles)
    return triangles
