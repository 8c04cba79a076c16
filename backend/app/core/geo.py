"""
Great-circle geometry helpers.
"""
import math

EARTH_RADIUS_METERS = 6_371_000.0

# Assumed speeds for straight-line estimates
WALKING_SPEED_MPS = 1.4  # ~5 km/h
DRIVING_SPEED_MPS = 13.89  # ~50 km/h


def haversine_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """
    Distance in meters between two latitude/longitude points.

    Uses the haversine formula on a spherical Earth of radius 6,371 km.
    Identical points return exactly 0.0.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    )
    # Rounding can push a just past 1 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c
