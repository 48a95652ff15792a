"""
Physical Constants and Reference Epochs

Constants shared by the time system, the propagator and the coordinate engine.

The gravitational parameter is the WGS-72 value used by the mission-control
state vectors. Earth radius and flattening follow the IERS (2003) conventions.

References:
    IERS Conventions (2003). IERS Technical Note No. 32.
"""

import math

# Earth gravitational parameter (km³/s²)
GRAVITATIONAL_PARAMETER: float = 398600.8

# Earth equatorial radius (km)
EARTH_RADIUS_KM: float = 6378.1366

# Earth flattening: 1/298.25642 according to IERS (2003)
EARTH_FLATTENING: float = 0.0033528196978961928

# First eccentricity squared, 2f - f²
ECCENTRICITY_SQUARED: float = 0.006705621364635388 - EARTH_FLATTENING * EARTH_FLATTENING

SECONDS_PER_DAY: float = 86400.0
SECONDS_PER_HOUR: float = 3600.0
MINUTES_PER_DAY: float = 1440.0

# Days per Julian century
JULIAN_CENTURY: float = 36525.0

# Julian Date of 1900 January 0.5
JULIAN_DATE_1900: float = 2415020.0

# Reference epoch (J2000.0), Julian Date
JULIAN_DATE_2000: float = 2451545.0

# Radians per second of sidereal time
RADIANS_PER_TIME_SECOND: float = 0.00007272205216643039903848712

TWO_PI: float = 2.0 * math.pi

# Unit conversions
FEET_TO_KM: float = 0.0003048
KM_PER_NAUTICAL_MILE: float = 1.852
KM_PER_STATUTE_MILE: float = 1.609344
METERS_PER_STATUTE_MILE: float = 1609.344
