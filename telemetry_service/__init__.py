"""
Spacecraft Telemetry Service

Turns raw mission-control telemetry text into a time-corrected description of
the vehicle's position, velocity, altitude, speed and sub-satellite point.

Modules:
    telemetry_parser: Fixed-format telemetry and two-line element parsing
    time_system: Local GMT, sidereal time and Julian dates
    kepler: Universal-variable two-body propagation
    geodetic: Geodetic latitude/longitude of an ECI position
    derived: Altitude and speed
    pipeline: Computed and raw snapshots
    cacher: Periodic telemetry fetch and persistence
    app: Flask front end
"""

__version__ = "1.0.0"
