"""Haversine and bounding-box tests."""

import pytest

from countrydata.geo import Bounds, coerce_float, haversine_km


class TestHaversine:
    """Great-circle distance."""

    def test_known_distance(self):
        assert haversine_km(51.5074, -0.1278, 48.8566, 2.3522) == pytest.approx(343.5, abs=1.0)

    def test_zero_and_symmetry(self):
        assert haversine_km(10.0, 20.0, 10.0, 20.0) == 0.0
        assert haversine_km(1.0, 2.0, 3.0, 4.0) == pytest.approx(haversine_km(3.0, 4.0, 1.0, 2.0))

    def test_antipodes(self):
        assert haversine_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(20015.1, abs=0.5)


class TestCoerceFloat:
    """Dataset values come as numbers or numeric strings."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(1, 1.0), (2.5, 2.5), ("-8.62", -8.62), (" 3 ", 3.0), ("n/a", None), (None, None), (True, None)],
    )
    def test_values(self, raw, expected):
        assert coerce_float(raw) == expected


class TestBounds:
    """Inclusive containment."""

    def test_defaults_cover_globe(self):
        bounds = Bounds()

        assert bounds.contains(90.0, 180.0)
        assert bounds.contains(-90.0, -180.0)

    def test_edges_are_inside(self):
        bounds = Bounds(49.9, -8.62, 60.85, 1.77)

        assert bounds.contains(49.9, 0.0)
        assert bounds.contains(55.0, 1.77)
        assert not bounds.contains(49.89, 0.0)
        assert not bounds.contains(55.0, 1.78)

    def test_from_values_widens_missing_sides(self):
        bounds = Bounds.from_values(min_latitude="10", max_longitude=20)

        assert bounds == Bounds(10.0, -180.0, 90.0, 20.0)

    def test_inverted_latitudes_rejected(self):
        with pytest.raises(ValueError):
            Bounds(min_latitude=10.0, max_latitude=5.0)

    def test_antimeridian(self):
        bounds = Bounds(50.0, 170.0, 70.0, -170.0)

        assert bounds.crosses_antimeridian
        assert bounds.contains(60.0, 175.0)
        assert bounds.contains(60.0, -175.0)
        assert not bounds.contains(60.0, 0.0)
        assert bounds.width_deg == pytest.approx(20.0)
        assert bounds.height_deg == pytest.approx(20.0)
