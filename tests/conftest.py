"""
Shared pytest fixtures for stage analysis tests.
"""

import pytest

from stage_analysis.models import GeographicPoint
from stage_analysis.route import Route
from tests.helpers import planar


@pytest.fixture
def l_route():
    """Route (0,0) -> (1000,0) -> (1000,1000), 2000 m long."""
    return Route([planar(0, 0), planar(1000, 0), planar(1000, 1000)])


@pytest.fixture
def straight_route():
    """Straight 1000 m route along the x axis."""
    return Route([planar(0, 0), planar(1000, 0)])


@pytest.fixture
def welsh_route_points():
    """A short real-world stage polyline in mid Wales (lon, lat)."""
    return [
        GeographicPoint(-3.6000, 52.3000),
        GeographicPoint(-3.5950, 52.3010),
        GeographicPoint(-3.5900, 52.3025),
        GeographicPoint(-3.5850, 52.3030),
        GeographicPoint(-3.5800, 52.3045),
    ]
