from collections.abc import Callable
from typing import TypeAlias

from shapely.geometry import Polygon as ShapelyPolygon
from shapely.geometry.base import BaseGeometry

from pyvoronoi.utils import Polygon

PolygonClipper: TypeAlias = Callable[[Polygon, Polygon], list[Polygon]]


def _to_shapely(polygon: Polygon) -> ShapelyPolygon:
    shape = ShapelyPolygon(polygon)
    if not shape.is_valid:
        # repeated circumcenters can leave zero-length or spiky rings
        shape = shape.buffer(0)
    return shape


def _polygons_of(geometry: BaseGeometry) -> list[Polygon]:
    if geometry.is_empty:
        return []
    if isinstance(geometry, ShapelyPolygon):
        # drop the closing vertex repeated by shapely
        return [[(float(x), float(y)) for x, y in geometry.exterior.coords[:-1]]]
    polygons = []
    for part in getattr(geometry, "geoms", []):
        polygons.extend(_polygons_of(part))
    return polygons


def intersect_polygons(subject: Polygon, clip: Polygon) -> list[Polygon]:
    """
    Intersect two simple polygons.

    :param subject: polygon to trim
    :param clip: clipping polygon
    :return: list of the disjoint intersection regions (possibly empty);
             line or point contacts are ignored
    """
    if len(subject) < 3 or len(clip) < 3:
        return []
    return _polygons_of(_to_shapely(subject).intersection(_to_shapely(clip)))
