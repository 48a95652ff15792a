"""
Telemetry Data Models

Immutable pydantic models for parsed telemetry and computed snapshots.

Every model dumps to a plain nested dictionary with camelCase keys, which is the
only output form the pipeline exposes. Serialisation to JSON is left to the
transport layer.
"""

import math
from typing import Optional

import numpy as np
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TelemetryModel(BaseModel):
    """Base model: frozen, camelCase aliases, NaN allowed."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_dict(self) -> dict:
        """Plain nested dictionary, missing sections omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


class StateVector(TelemetryModel):
    """Earth-centered inertial state vector (km, km/s)."""

    x: float
    y: float
    z: float
    velocity_x: float
    velocity_y: float
    velocity_z: float
    time: float
    gmt: Optional[float] = None
    description: Optional[str] = None
    type: Optional[str] = None

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z])

    @property
    def velocity(self) -> np.ndarray:
        return np.array([self.velocity_x, self.velocity_y, self.velocity_z])

    def with_state(self, position, velocity, **updates) -> "StateVector":
        """Return a copy carrying a new position and velocity."""
        return self.model_copy(update={
            "x": float(position[0]),
            "y": float(position[1]),
            "z": float(position[2]),
            "velocity_x": float(velocity[0]),
            "velocity_y": float(velocity[1]),
            "velocity_z": float(velocity[2]),
            **updates,
        })


class LaunchDesignator(TelemetryModel):
    launch_year: str
    launch_number: Optional[int] = None
    launch_piece: str


class KeplerianElements(TelemetryModel):
    """
    Mean elements from a two-line element set.

    Angles are in radians, mean motion in radians per minute, ``epoch`` is the
    day of year with fractional part and ``julian_epoch`` the matching Julian Date.
    """

    description: str = "Keplerian elements"
    type: str = (
        "epoch time (0), drag (float), inclination (rad), right ascension (longitude), "
        "perigee (rad), eccentricity (float), mean anomaly (rad), mean motion (rad/min)"
    )
    satellite: Optional[int] = None
    classification: str
    designator: LaunchDesignator
    epoch_year: Optional[int] = None
    epoch: float
    epoch_first_derivative: float
    epoch_second_derivative: float
    drag: float
    inclination: float
    right_ascending: float
    eccentricity: float
    perigee: float
    mean_anomaly: float
    mean_motion: float
    julian_epoch: float


class TimeState(TelemetryModel):
    """Per-request time values; never shared between calls."""

    gmt: float
    server_gmt: float = math.nan
    gast: float


class VehicleInfo(TelemetryModel):
    signal: bool
    temperature_f: float
    temperature_c: float
    humidity: float
    air_pressure: float
    phase: str
    description: Optional[str] = None
    type: Optional[str] = None


class Attitude(TelemetryModel):
    roll: float
    pitch: float
    yaw: float
    description: Optional[str] = None
    type: Optional[str] = None


class LookAngle(TelemetryModel):
    description: str = "Air Force Satellite Control Network, frame of reference"
    type: str = "Metric data"
    range: float
    rate: float
    azimuth: float
    elevation: float


class Altitude(TelemetryModel):
    description: str = "kilometers (km), nautical miles (nm), statute miles (sm)"
    km: float
    nm: float
    sm: float


class Speed(TelemetryModel):
    description: str = "meters per second (mps), kilometers per hour (kph), miles per hour (mph)"
    mps: float
    kph: float
    mph: float


class Location(TelemetryModel):
    latitude: float
    longitude: float


class Computation(TelemetryModel):
    propagated_state_vector: StateVector
    altitude: Altitude
    speed: Speed
    location: Location


class ComputedSnapshot(TelemetryModel):
    look_angle: LookAngle
    info: Optional[VehicleInfo] = None
    attitude: Optional[Attitude] = None
    state_vector: Optional[StateVector] = None
    compute: Optional[Computation] = None
    keplerian: Optional[KeplerianElements] = None


class StateVectorSnapshot(TelemetryModel):
    info: Optional[VehicleInfo] = None
    attitude: Optional[Attitude] = None
    state_vector: Optional[StateVector] = None
    keplerian: Optional[KeplerianElements] = None
