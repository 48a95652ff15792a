"""
Derived Quantities

Altitude and speed of a propagated state vector in the units shown on the
tracking display. Each quantity takes one vector magnitude and derives all of
its units from it.
"""

import numpy as np

from telemetry_service.constants import (
    EARTH_RADIUS_KM,
    KM_PER_NAUTICAL_MILE,
    KM_PER_STATUTE_MILE,
    METERS_PER_STATUTE_MILE,
    SECONDS_PER_HOUR,
)
from telemetry_service.models import Altitude, Speed, StateVector


def altitude(state_vector: StateVector) -> Altitude:
    """Height above the equatorial radius in km, nautical miles and statute miles."""
    km = float(np.linalg.norm(state_vector.position)) - EARTH_RADIUS_KM
    return Altitude(
        km=km,
        nm=km / KM_PER_NAUTICAL_MILE,
        sm=km / KM_PER_STATUTE_MILE,
    )


def speed(state_vector: StateVector) -> Speed:
    """Inertial speed in m/s, km/h and mph."""
    mps = float(np.linalg.norm(state_vector.velocity)) * 1000.0
    return Speed(
        mps=mps,
        kph=mps / 1000.0 * SECONDS_PER_HOUR,
        mph=mps / METERS_PER_STATUTE_MILE * SECONDS_PER_HOUR,
    )
