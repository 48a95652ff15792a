"""
Geodetic Converter

Sub-satellite point of an Earth-centered inertial position.

Longitude is de-rotated from the inertial frame with the Greenwich Apparent
Sidereal Time. Geodetic latitude is found by fixed-point iteration on the
oblate-spheroid radius of curvature, seeded with the geocentric latitude.
"""

import logging
import math

from telemetry_service.constants import EARTH_RADIUS_KM, ECCENTRICITY_SQUARED
from telemetry_service.models import Location
from telemetry_service.time_system import rad2deg, reduce

logger = logging.getLogger(__name__)

LATITUDE_TOLERANCE = 1e-6  # radians
MAX_LATITUDE_ITERATIONS = 100


def geodetic_latitude(z: float, rho: float) -> float:
    """
    Iterate geodetic latitude for a point ``z`` above the equator at distance ``rho``.

    Parameters
    ----------
    z : float
        Polar component (km)
    rho : float
        Distance from the rotation axis (km)

    Returns
    -------
    float
        Geodetic latitude in radians
    """
    latitude = math.atan2(z, rho)
    for _ in range(MAX_LATITUDE_ITERATIONS):
        previous = latitude
        sin_lat = math.sin(previous)
        correction = 1.0 / math.sqrt(1.0 - ECCENTRICITY_SQUARED * sin_lat * sin_lat)
        latitude = math.atan2(z + EARTH_RADIUS_KM * correction * ECCENTRICITY_SQUARED * sin_lat, rho)
        if not abs(previous - latitude) > LATITUDE_TOLERANCE:
            return latitude

    logger.warning(f"Geodetic latitude did not converge in {MAX_LATITUDE_ITERATIONS} iterations")
    return latitude


def calculate_position(x: float, y: float, z: float, gast: float) -> Location:
    """
    Latitude and longitude below an ECI position.

    Args:
        x, y, z: ECI position (km)
        gast: Greenwich Apparent Sidereal Time (rad)

    Returns:
        Location in degrees, longitude within [-180, 180)
    """
    rho = math.hypot(x, y)
    longitude = reduce(math.atan2(y, x) - gast, -math.pi, math.pi)
    latitude = geodetic_latitude(z, rho)
    return Location(latitude=rad2deg(latitude), longitude=rad2deg(longitude))
