"""Example: Voronoi diagram of random points.

Triangulates uniformly random points inside a rectangle, builds the dual
Voronoi diagram and plots both, with border cells trimmed to the rectangle.
"""

import numpy as np

from pyvoronoi.build import Triangulator
from pyvoronoi.debug_utils import plot_triangulation, plot_voronoi
from pyvoronoi.voronoi import VoronoiBuilder, VoronoiSite


def main():
    """Example: random points in a 100x60 rectangle."""
    print("\n" + "=" * 70)
    print("RANDOM VORONOI EXAMPLE")
    print("=" * 70 + "\n")

    rng = np.random.default_rng(0)
    rect = (0.0, 0.0, 100.0, 60.0)
    points = rng.uniform((0.0, 0.0), (100.0, 60.0), size=(80, 2))

    triangulator = Triangulator(points, rect=rect)
    triangles = triangulator.triangulate()
    print(f"Number of triangles (with border): {len(triangles)}")

    builder = VoronoiBuilder.from_triangulator(triangulator)
    sites = builder.make_voronoi(triangles)
    print(f"Number of sites: {len(sites)}")

    inner = [s for s in sites if not builder.is_border_site(s)]
    print(f"Inner sites: {len(inner)}, border sites: {len(sites) - len(inner)}")

    # Trim border cells to the rectangle for display
    trimmed = [
        VoronoiSite(
            center=s.center,
            polygon=builder.get_polygon_site(s),
            source_triangles=s.source_triangles,
            index=s.index,
            neighbours=s.neighbours,
        )
        for s in sites
    ]

    triangulator.remove_border_triangles(triangles)
    plot_triangulation(triangles, rect=rect, title="Delaunay triangulation")
    plot_voronoi(trimmed, rect=rect, neighbours=True, show=True)


if __name__ == "__main__":
    main()
