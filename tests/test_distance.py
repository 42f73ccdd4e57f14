import random

from droppers.distance import PseudoGeocodeEstimator, RandomDistanceEstimator, fake_geocode, get_distance_estimator


def test_random_estimator_stays_in_bounds():
    est = RandomDistanceEstimator(1, 21, rng=random.Random(7))
    values = [est.estimate("a", "b") for _ in range(200)]
    assert all(1 <= v <= 21 for v in values)


def test_geocode_estimator_is_repeatable_and_non_negative():
    est = PseudoGeocodeEstimator()
    first = est.estimate("12 Market Street", "742 Evergreen Terrace")
    assert first == est.estimate("12 Market Street", "742 Evergreen Terrace")
    assert first >= 0


def test_geocode_estimator_same_address_is_zero():
    assert PseudoGeocodeEstimator().estimate("1 Main St", "1 main st ") == 0.0


def test_blank_address_has_no_coordinates():
    assert fake_geocode("   ") is None
    assert PseudoGeocodeEstimator().estimate("", "somewhere") == 0.0


def test_dependency_uses_configured_estimator():
    # tests run with DROPPERS_DISTANCE_ESTIMATOR=geocode
    assert isinstance(get_distance_estimator(), PseudoGeocodeEstimator)
