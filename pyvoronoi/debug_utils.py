import typing

import numpy as np

from pyvoronoi.geometry import Triangle, rect_corners
from pyvoronoi.utils import Rect

if typing.TYPE_CHECKING:
    from matplotlib.axes import Axes

    from pyvoronoi.voronoi import VoronoiSite


def _draw_rect(ax: "Axes", rect: Rect, **kwargs) -> None:
    corners = np.array(rect_corners(rect) + rect_corners(rect)[:1])
    ax.plot(corners[:, 0], corners[:, 1], **kwargs)


def plot_triangulation(
    triangles: list[Triangle],
    rect: Rect | None = None,
    show: bool = False,
    title: str = "Triangulation",
    circumcircles: bool = False,
    ax: "Axes | None" = None,
) -> "Axes":
    """
    Plot triangles with matplotlib.

    :param triangles: triangles to draw
    :param rect: working rectangle, drawn dashed if given
    :param show: Whether to call plt.show() after plotting
    :param title: Title of the plot
    :param circumcircles: also draw the circumcircle of each triangle
    :param ax: existing axes to draw into
    :return: the axes drawn into
    """
    import matplotlib.pyplot as plt
    from matplotlib.patches import Circle

    if ax is None:
        _, ax = plt.subplots()

    for triangle in triangles:
        pts = np.array(triangle.vertices)
        tri_closed = np.vstack([pts, pts[0]])
        ax.plot(tri_closed[:, 0], tri_closed[:, 1], "b-", linewidth=1.0, alpha=0.6)
        if circumcircles:
            ax.add_patch(
                Circle(
                    triangle.center,
                    np.sqrt(triangle.radius_sqr),
                    fill=False,
                    color="gray",
                    linestyle=":",
                    linewidth=0.5,
                )
            )

    vertices = np.array([v for t in triangles for v in t.vertices]).reshape(-1, 2)
    if len(vertices):
        ax.plot(vertices[:, 0], vertices[:, 1], "ko", markersize=3, zorder=3)

    if rect is not None:
        _draw_rect(ax, rect, color="red", linestyle="--", linewidth=1.0)

    ax.set_aspect("equal")
    ax.set_title(title)
    if show:
        plt.show()
    return ax


def plot_voronoi(
    sites: list["VoronoiSite"],
    rect: Rect | None = None,
    show: bool = False,
    title: str = "Voronoi diagram",
    neighbours: bool = False,
    ax: "Axes | None" = None,
) -> "Axes":
    """
    Plot Voronoi cells, their generating points and optionally the
    neighbour links between sites.
    """
    import matplotlib.pyplot as plt
    from matplotlib.patches import Polygon

    if ax is None:
        _, ax = plt.subplots()

    cmap = plt.get_cmap("tab20")
    for site in sites:
        if len(site.polygon) >= 3:
            ax.add_patch(
                Polygon(
                    site.polygon,
                    closed=True,
                    facecolor=cmap(site.index % cmap.N),
                    edgecolor="black",
                    alpha=0.5,
                    linewidth=0.8,
                )
            )
        ax.plot(*site.center, "k.", markersize=4, zorder=3)
        if neighbours:
            for edge in site.neighbours:
                ax.plot(
                    [site.center[0], edge.other.center[0]],
                    [site.center[1], edge.other.center[1]],
                    "g-",
                    linewidth=0.5,
                    alpha=0.7,
                )

    if rect is not None:
        _draw_rect(ax, rect, color="red", linestyle="--", linewidth=1.0)
        xmin, ymin, xmax, ymax = rect
        ax.set_xlim(xmin - 0.1 * (xmax - xmin), xmax + 0.1 * (xmax - xmin))
        ax.set_ylim(ymin - 0.1 * (ymax - ymin), ymax + 0.1 * (ymax - ymin))
    else:
        ax.autoscale_view()

    ax.set_aspect("equal")
    ax.set_title(title)
    if show:
        plt.show()
    return ax
