"""Example: Voronoi cells of a regular grid.

Points of a regular grid are co-circular four at a time, so several
triangles share a circumcenter; the inner cells still come out as squares.
"""

import numpy as np

from pyvoronoi.debug_utils import plot_voronoi
from pyvoronoi.voronoi import make_voronoi


def main():
    n = 5
    x = np.linspace(10, 90, n)
    xx, yy = np.meshgrid(x, x)
    points = np.column_stack([xx.ravel(), yy.ravel()])

    builder, sites = make_voronoi(points, rect=(0.0, 0.0, 100.0, 100.0))
    builder.remove_border_sites(sites)

    for site in sites:
        others = sorted({s.center for s in site.neighbour_sites})
        print(f"{site.center}: area={site.area:.1f}, neighbours={others}")

    plot_voronoi(sites, rect=builder.rect, neighbours=True, show=True)


if __name__ == "__main__":
    main()
