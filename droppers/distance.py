# Distance estimation between a pickup and a delivery address.
# No external geocoding APIs; the estimator is pluggable so a real routing
# service can be dropped in later.

import math
import random
from typing import Optional, Protocol

from .settings import settings


class DistanceEstimator(Protocol):
    def estimate(self, pickup_address: str, delivery_address: str) -> float:
        """Return a non-negative distance in kilometres."""
        ...


class RandomDistanceEstimator:
    """Uniform random distance; placeholder until a routing service exists."""

    def __init__(self, low_km: Optional[float] = None, high_km: Optional[float] = None, rng: Optional[random.Random] = None):
        self.low_km = settings.DROPPERS_MIN_DISTANCE_KM if low_km is None else low_km
        self.high_km = settings.DROPPERS_MAX_DISTANCE_KM if high_km is None else high_km
        self.rng = rng or random.Random()

    def estimate(self, pickup_address: str, delivery_address: str) -> float:
        return round(self.rng.uniform(self.low_km, self.high_km), 2)


def fake_geocode(addr: str) -> Optional[tuple[float, float]]:
    """Deterministic pseudo coordinates for an address string."""
    if not addr or not addr.strip():
        return None
    total = sum(ord(c) for c in addr.strip().lower())
    return (-60.0 + (total % 12000) / 100.0, -180.0 + (total * 7 % 36000) / 100.0)


def _haversine_km(lat1, lon1, lat2, lon2):
    R = 6371.0; to = math.pi / 180.0
    dlat = (lat2 - lat1) * to; dlon = (lon2 - lon1) * to
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1 * to) * math.cos(lat2 * to) * math.sin(dlon / 2) ** 2
    return 2 * R * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class PseudoGeocodeEstimator:
    """Great-circle distance between pseudo-geocoded addresses; repeatable."""

    def estimate(self, pickup_address: str, delivery_address: str) -> float:
        pu = fake_geocode(pickup_address)
        do = fake_geocode(delivery_address)
        if pu is None or do is None:
            return 0.0
        return round(_haversine_km(pu[0], pu[1], do[0], do[1]), 2)


ESTIMATORS = {
    "random": RandomDistanceEstimator,
    "geocode": PseudoGeocodeEstimator,
}


def get_distance_estimator() -> DistanceEstimator:
    """FastAPI dependency; override in tests for fixed distances."""
    return ESTIMATORS.get(settings.DROPPERS_DISTANCE_ESTIMATOR, RandomDistanceEstimator)()
