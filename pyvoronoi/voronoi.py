import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

import numpy as np
from loguru import logger
from numpy.typing import NDArray

from pyvoronoi.build import Triangulator
from pyvoronoi.clipping import PolygonClipper, intersect_polygons
from pyvoronoi.geometry import (
    Edge,
    InvalidInputError,
    Triangle,
    as_point,
    is_point_in_rect,
    polygon_area,
    polygon_centroid,
    rect_corners,
)
from pyvoronoi.utils import Polygon, Rect, Vec2d


@dataclass(eq=False)
class VoronoiEdge:
    """
    Dual edge between two adjacent sites, running between the circumcenters
    of two consecutive triangles of the fan of `this`.
    """

    a: Vec2d
    b: Vec2d
    this: "VoronoiSite" = field(repr=False)
    other: "VoronoiSite" = field(repr=False)

    @property
    def edge(self) -> Edge:
        return Edge(self.a, self.b)

    @property
    def length(self) -> float:
        return self.edge.length

    @property
    def midpoint(self) -> Vec2d:
        return self.edge.midpoint

    @property
    def normal(self) -> Vec2d:
        """Unit vector perpendicular to a->b (rotated counterclockwise)."""
        dx, dy = self.b[0] - self.a[0], self.b[1] - self.a[1]
        length = math.hypot(dx, dy)
        if length == 0:
            return 0.0, 0.0
        return -dy / length, dx / length


@dataclass(eq=False)
class VoronoiSite:
    """
    Voronoi cell of the input point `center`.

    `polygon` holds the circumcenters of `source_triangles`, both ordered
    clockwise around `center`. `index` is the position of the site in the
    list returned by `VoronoiBuilder.make_voronoi`.
    """

    center: Vec2d
    polygon: Polygon
    source_triangles: list[Triangle] = field(repr=False)
    index: int = -1
    neighbours: list[VoronoiEdge] = field(default_factory=list)

    @property
    def neighbour_sites(self) -> list["VoronoiSite"]:
        return [edge.other for edge in self.neighbours]

    @property
    def area(self) -> float:
        return abs(polygon_area(self.polygon))

    @property
    def centroid(self) -> Vec2d:
        return polygon_centroid(self.polygon)


def clockwise_key(center: Vec2d) -> Callable[[Triangle], tuple[float, float]]:
    """
    Sort key ordering triangles clockwise by the angle of their circumcenter
    around `center`.

    Triangles sharing a circumcenter (co-circular vertices) are ordered by the
    clockwise offset of their centroid, which keeps the fan contiguous.
    """
    cx, cy = center

    def angle(p: Vec2d) -> float:
        return -math.atan2(p[1] - cy, p[0] - cx)

    def key(triangle: Triangle) -> tuple[float, float]:
        primary = angle(triangle.center)
        offset = (angle(triangle.centroid) - primary + math.pi) % (2 * math.pi) - math.pi
        return round(primary, 9), offset

    return key


def is_closed_fan(fan: list[Triangle], center: Vec2d) -> bool:
    """
    Check that the triangles around `center` close up into a full fan.

    Endpoints of the edges opposite `center` are toggled in a presence map:
    a closed fan of n triangles has n distinct far vertices, each seen twice.
    """
    if not fan:
        return False
    toggled: dict[Vec2d, bool] = {}
    for triangle in fan:
        far_edge = triangle.get_corner_opposite_edge(center)
        for p in (far_edge.a, far_edge.b):
            toggled[p] = not toggled.get(p, False)
    return len(toggled) == len(fan) and not any(toggled.values())


class VoronoiBuilder:
    """
    Builds the Voronoi diagram dual to a Bowyer-Watson triangulation.

    :param points: the triangulated input points
    :param rect: working rectangle, used to classify and trim border sites
    :param clipper: polygon intersection used by `get_polygon_site`
    """

    def __init__(
        self,
        points: Iterable[Vec2d] | NDArray[np.floating],
        rect: Rect,
        clipper: PolygonClipper = intersect_polygons,
    ) -> None:
        self.points = [as_point(p) for p in points]
        self.rect = rect
        self.clipper = clipper

    @classmethod
    def from_triangulator(
        cls, triangulator: Triangulator, clipper: PolygonClipper = intersect_polygons
    ) -> "VoronoiBuilder":
        if triangulator.rect is None:
            raise InvalidInputError(
                "Triangulator has no rectangle yet, call triangulate() first"
            )
        return cls(triangulator.points, triangulator.rect, clipper=clipper)

    def make_voronoi(self, triangles: list[Triangle]) -> list[VoronoiSite]:
        """
        Build one site per input point whose triangle fan is closed.

        :param triangles: triangulation, border triangles included
        :return: the materialized sites, with their neighbours resolved
        """
        incident: dict[Vec2d, list[int]] = {}
        for idx, triangle in enumerate(triangles):
            for v in triangle.vertices:
                incident.setdefault(v, []).append(idx)

        owners: dict[int, list[VoronoiSite]] = {idx: [] for idx in range(len(triangles))}
        sites: list[VoronoiSite] = []
        fans: list[list[int]] = []

        for center in dict.fromkeys(self.points):
            fan = list(incident.get(center, []))
            if not is_closed_fan([triangles[idx] for idx in fan], center):
                logger.debug(f"Dropping site {center}: open fan of {len(fan)} triangles")
                continue

            key = clockwise_key(center)
            fan.sort(key=lambda idx: key(triangles[idx]))
            source = [triangles[idx] for idx in fan]
            site = VoronoiSite(
                center=center,
                polygon=[t.center for t in source],
                source_triangles=source,
                index=len(sites),
            )
            for idx in fan:
                owners[idx].append(site)
            sites.append(site)
            fans.append(fan)

        for site, fan in zip(sites, fans):
            self._resolve_neighbours(site, fan, triangles, owners)

        logger.debug(
            f"Built {len(sites)} Voronoi sites from {len(self.points)} points "
            f"and {len(triangles)} triangles"
        )
        return sites

    @staticmethod
    def _resolve_neighbours(
        site: VoronoiSite,
        fan: list[int],
        triangles: list[Triangle],
        owners: dict[int, list[VoronoiSite]],
    ) -> None:
        for i, idx in enumerate(fan):
            next_idx = fan[(i + 1) % len(fan)]
            current, following = triangles[idx], triangles[next_idx]
            far = current.get_corner_opposite_edge(site.center)
            next_far = following.get_corner_opposite_edge(site.center)
            common = {far.a, far.b} & {next_far.a, next_far.b}

            neighbour = next(
                (s for s in owners[idx] if s is not site and s.center in common), None
            )
            if neighbour is None:
                continue
            site.neighbours.append(
                VoronoiEdge(current.center, following.center, this=site, other=neighbour)
            )

    def is_border_site(self, site: VoronoiSite) -> bool:
        return not all(is_point_in_rect(p, self.rect) for p in site.polygon)

    def remove_border_sites(self, sites: list[VoronoiSite]) -> None:
        """
        Remove, in place, the sites whose cell leaves the working rectangle,
        together with the neighbour edges of the remaining sites pointing to
        them.
        """
        removed = {site.index for site in sites if self.is_border_site(site)}
        if not removed:
            return
        sites[:] = [site for site in sites if site.index not in removed]
        for site in sites:
            site.neighbours[:] = [
                edge for edge in site.neighbours if edge.other.index not in removed
            ]

    def get_polygon_site(self, site: VoronoiSite) -> Polygon:
        """
        Cell polygon of `site`, trimmed to the working rectangle for border
        sites.
        """
        if not self.is_border_site(site):
            return list(site.polygon)

        regions = self.clipper(site.polygon, rect_corners(self.rect))
        if not regions:
            logger.debug(f"Site {site.center} does not intersect {self.rect}")
            return []
        if len(regions) > 1:
            logger.warning(
                f"Clipping site {site.center} produced {len(regions)} regions, "
                "keeping the first one"
            )
        return regions[0]


def make_voronoi(
    points: Iterable[Vec2d] | NDArray[np.floating],
    rect: Rect | None = None,
    padding: float = 0.0,
    clipper: PolygonClipper = intersect_polygons,
) -> tuple[VoronoiBuilder, list[VoronoiSite]]:
    """
    Triangulate `points` and build their Voronoi diagram.

    :param points: input points
    :param rect: explicit working rectangle, computed from the points if None
    :param padding: margin around the computed rectangle
    :param clipper: polygon intersection used to trim border sites
    :return: the builder (for border queries) and the sites
    """
    triangulator = Triangulator(points, rect=rect, padding=padding)
    triangles = triangulator.triangulate()
    builder = VoronoiBuilder.from_triangulator(triangulator, clipper=clipper)
    return builder, builder.make_voronoi(triangles)
