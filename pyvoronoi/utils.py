from typing import TypeAlias

EPS = 1e-12
Vec2d: TypeAlias = tuple[float, float]
Rect: TypeAlias = tuple[float, float, float, float]  # xmin, ymin, xmax, ymax
Polygon: TypeAlias = list[Vec2d]
