"""Smoke tests for the matplotlib debug plots."""

import pytest

matplotlib = pytest.importorskip("matplotlib")
matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402

from pyvoronoi.build import Triangulator  # noqa: E402
from pyvoronoi.debug_utils import plot_triangulation, plot_voronoi  # noqa: E402
from pyvoronoi.voronoi import VoronoiBuilder  # noqa: E402

POINTS = [(20.0, 30.0), (70.0, 20.0), (50.0, 80.0), (40.0, 45.0), (85.0, 60.0)]


class TestPlots:
    """The plots draw without a display."""

    def setup_method(self):
        self.triangulator = Triangulator(POINTS, rect=(0.0, 0.0, 100.0, 100.0))
        self.triangles = self.triangulator.triangulate()

    def teardown_method(self):
        plt.close("all")

    def test_plot_triangulation(self):
        ax = plot_triangulation(
            self.triangles, rect=self.triangulator.rect, circumcircles=True
        )
        assert len(ax.lines) >= len(self.triangles)
        assert len(ax.patches) == len(self.triangles)

    def test_plot_voronoi(self):
        builder = VoronoiBuilder.from_triangulator(self.triangulator)
        sites = builder.make_voronoi(self.triangles)
        ax = plot_voronoi(sites, rect=builder.rect, neighbours=True)
        assert len(ax.patches) == len(sites)
        assert ax.get_title() == "Voronoi diagram"
