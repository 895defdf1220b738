"""
Great-circle helpers for "routes near me" queries.

A point lies within `radius_km` of a centre when the central angle
between them is at most radius_km / EARTH_RADIUS_KM, the same
spherical-cap test a document store's `$centerSphere` performs.
"""

import math
from typing import Tuple

EARTH_RADIUS_KM = 6371.0

# Kilometres spanned by one degree of latitude
KM_PER_DEGREE_LAT = math.pi * EARTH_RADIUS_KM / 180.0


def central_angle(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Angle in radians between two points (haversine formula)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lng2 - lng1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * math.asin(min(1.0, math.sqrt(a)))


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    return EARTH_RADIUS_KM * central_angle(lat1, lng1, lat2, lng2)


def within_radius(
    lat: float, lng: float, center_lat: float, center_lng: float, radius_km: float
) -> bool:
    """True if (lat, lng) falls inside the spherical cap around the centre."""
    return central_angle(lat, lng, center_lat, center_lng) <= radius_km / EARTH_RADIUS_KM


def latitude_band(center_lat: float, radius_km: float) -> Tuple[float, float]:
    """
    Latitude range that contains the whole cap.

    Used as a cheap SQL prefilter before the exact test. Longitude is not
    bounded because the cap may wrap the antimeridian or a pole.
    """
    delta = radius_km / KM_PER_DEGREE_LAT
    return max(-90.0, center_lat - delta), min(90.0, center_lat + delta)
