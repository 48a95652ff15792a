"""
Telemetry Parser

Splits the fixed-format mission-control telemetry files into typed fields.

Four line families are understood:

- tracking angle (``veh.rndz``): range, rate, azimuth, elevation
- vehicle status (``veh.data``): signal, attitude, cabin environment, mission phase
- Cartesian state vector (``veh.sv``): position (ft), velocity (ft/s), time
- two-line element sets embedded in the state-vector file

Fields are positional: runs of whitespace are collapsed and the line is split.
A field that fails numeric conversion becomes ``NOT_A_NUMBER`` (``None`` for
integer fields) so that one bad value never aborts a whole snapshot.

References:
    NORAD Two-Line Element Set Format, CelesTrak documentation.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from sgp4.api import Satrec

from telemetry_service.constants import FEET_TO_KM, MINUTES_PER_DAY, TWO_PI
from telemetry_service.models import (
    Attitude,
    KeplerianElements,
    LaunchDesignator,
    LookAngle,
    StateVector,
    VehicleInfo,
)
from telemetry_service.time_system import deg2rad, julian_date_of_year

logger = logging.getLogger(__name__)

NOT_A_NUMBER = float("nan")

# Leading integer of a field, per radix
INTEGER_PREFIX = {
    2: re.compile(r"[+-]?[01]+"),
    10: re.compile(r"[+-]?[0-9]+"),
}

# TLE mean-motion units (rev/day) per rad/min
REVOLUTIONS_PER_DAY_PER_RADIAN = MINUTES_PER_DAY / TWO_PI

DEFAULT_VEHICLE_TAG = "iss"

DEFAULT_PHASE = "On Orbit"

# Mission phase code -> label
MISSION_PHASES = {
    0: "Pre-Launch",
    901: "Pre-Launch",
    101: "Countdown",
    102: "1st Stage",
    103: "2nd Stage",
    104: "OMS 1",
    105: "OMS 2",
    106: "Coast phase",
    201: "Orbit Coast",
    202: "Maneuver",
    801: "FCS c/o",
    301: "DeOrbit",
    302: "DeOrbit Exec",
    303: "PreEntry",
    304: "Entry",
    305: "TAEM/Landing",
    601: "RTLS 2nd",
    602: "Glide RTLS 1",
    603: "Glide RTLS 2",
}

VEHICLE_DESCRIPTION = "International Space Station"
VEHICLE_TYPE = "Space Station"
ATTITUDE_DESCRIPTION = "Flight Dynamics"
ATTITUDE_TYPE = "Orientation"
STATE_VECTOR_DESCRIPTION = "position (km), velocity (km/sec)"
STATE_VECTOR_TYPE = "Earth-centered inertial (ECI), Cartesian systems of Mean of 1950 (M50)"


@dataclass(frozen=True)
class StatusReport:
    """Parsed ``veh.data`` content."""

    server_gmt: float
    info: Optional[VehicleInfo] = None
    attitude: Optional[Attitude] = None


@dataclass(frozen=True)
class StateVectorFile:
    """Parsed annotated ``veh.sv`` content."""

    state_vector: Optional[StateVector] = None
    keplerian: Optional[KeplerianElements] = None


def to_float(token: Optional[str]) -> float:
    """Convert a field to float, ``NOT_A_NUMBER`` when it is missing or malformed."""
    if token is None:
        return NOT_A_NUMBER
    try:
        return float(token)
    except ValueError:
        return NOT_A_NUMBER


def to_int(token: Optional[str], base: int = 10) -> Optional[int]:
    """
    Convert the leading integer of a field, ``None`` when there is none.

    Trailing characters are ignored, so ``"201.0"`` reads as 201 and ``"1.0"``
    in base 2 as 1.
    """
    if token is None:
        return None
    match = INTEGER_PREFIX[base].match(token.strip())
    if match is None:
        return None
    return int(match.group(), base)


def split_fields(text: str) -> List[str]:
    return text.split()


def field(fields: List[str], index: int) -> Optional[str]:
    return fields[index] if index < len(fields) else None


def parse_phase(code: Optional[int]) -> str:
    """Map a mission-phase code to its label, ``"On Orbit"`` when unknown."""
    return MISSION_PHASES.get(code, DEFAULT_PHASE)


def parse_look_angle(text: str) -> LookAngle:
    """Parse a tracking-angle record: range, rate, azimuth, elevation."""
    fields = split_fields(text)
    return LookAngle(
        range=to_float(field(fields, 0)),
        rate=to_float(field(fields, 1)),
        azimuth=to_float(field(fields, 2)),
        elevation=to_float(field(fields, 3)),
    )


def parse_status_line(line: str, annotated: bool = True) -> Tuple[VehicleInfo, Attitude]:
    """
    Parse one vehicle status line.

    Args:
        line: Status line, first field is the vehicle tag
        annotated: Add description/type strings to the sections

    Returns:
        Tuple of (info, attitude)
    """
    logger.debug("Parsing vehicle status%s...", "" if annotated else " (raw data)")
    fields = split_fields(line)

    temperature_f = to_float(field(fields, 5))
    annotations = {"description": VEHICLE_DESCRIPTION, "type": VEHICLE_TYPE} if annotated else {}
    info = VehicleInfo(
        signal=to_int(field(fields, 1), 2) == 1,
        temperature_f=temperature_f,
        temperature_c=(5.0 / 9.0) * (temperature_f - 32.0),
        humidity=to_float(field(fields, 6)),
        air_pressure=to_float(field(fields, 7)),
        phase=parse_phase(to_int(field(fields, 8))),
        **annotations,
    )

    annotations = {"description": ATTITUDE_DESCRIPTION, "type": ATTITUDE_TYPE} if annotated else {}
    attitude = Attitude(
        roll=to_float(field(fields, 2)),
        pitch=to_float(field(fields, 3)),
        yaw=to_float(field(fields, 4)),
        **annotations,
    )
    return info, attitude


def parse_status(text: str, annotated: bool = True,
                 vehicle_tag: str = DEFAULT_VEHICLE_TAG) -> StatusReport:
    """
    Parse a ``veh.data`` file.

    The second field of the first line is the server GMT. The first line starting
    with the vehicle tag is the status line; without one the info and attitude
    sections stay empty.
    """
    lines = text.split("\n")
    server_gmt = to_float(field(split_fields(lines[0]), 1))

    for line in lines:
        if line.lower().startswith(vehicle_tag):
            info, attitude = parse_status_line(line, annotated)
            return StatusReport(server_gmt=server_gmt, info=info, attitude=attitude)

    logger.debug("No status line tagged %r in vehicle data", vehicle_tag)
    return StatusReport(server_gmt=server_gmt)


def _state_vector(fields: List[str], first: int, **extra) -> StateVector:
    """Build a state vector from six ft / ft/s fields followed by the time field."""
    values = [to_float(field(fields, first + i)) * FEET_TO_KM for i in range(6)]
    return StateVector(
        x=values[0],
        y=values[1],
        z=values[2],
        velocity_x=values[3],
        velocity_y=values[4],
        velocity_z=values[5],
        time=to_float(field(fields, first + 6)),
        **extra,
    )


def parse_state_vector_line(line: str) -> StateVector:
    """Parse an annotated ``c`` state-vector line (fields 1-7)."""
    logger.debug("Parsing Cartesian vector...")
    return _state_vector(
        split_fields(line), 1,
        description=STATE_VECTOR_DESCRIPTION,
        type=STATE_VECTOR_TYPE,
    )


def parse_raw_state_vector(text: str, gmt: float) -> StateVector:
    """
    Parse a raw ``veh.sv`` blob (fields 2-8 of the collapsed text).

    Args:
        text: Whole state-vector file
        gmt: GMT hours of the request, stamped on the vector
    """
    logger.debug("Parsing Cartesian vector (raw data)...")
    return _state_vector(split_fields(text), 2, gmt=gmt)


def _implied_exponent(mantissa: str, exponent: str) -> float:
    """Decode TLE ``±NNNNN±N`` notation (implied leading decimal point)."""
    exp = to_int(exponent)
    if exp is None:
        return NOT_A_NUMBER
    return to_float(mantissa) * math.pow(10, exp - 5)


def _column_elements(line1: str, line2: str) -> KeplerianElements:
    """Slice the fixed NORAD columns; every malformed field becomes a sentinel."""
    epoch_year = to_int(line1[18:20])
    if epoch_year is not None:
        epoch_year += 2000 if epoch_year < 57 else 1900
    epoch = to_float(line1[20:32])

    if epoch_year is None:
        julian_epoch = NOT_A_NUMBER
    else:
        julian_epoch = julian_date_of_year(epoch_year) + epoch

    return KeplerianElements(
        satellite=to_int(line1[2:7]),
        classification=line1[7:8],
        designator=LaunchDesignator(
            launch_year=line1[9:11],
            launch_number=to_int(line1[11:14]),
            launch_piece=line1[14:17].strip(),
        ),
        epoch_year=epoch_year,
        epoch=epoch,
        epoch_first_derivative=to_float(line1[33:43]),
        epoch_second_derivative=_implied_exponent(line1[44:50], line1[50:52]),
        drag=_implied_exponent(line1[53:59], line1[59:61]),
        inclination=deg2rad(to_float(line2[8:16])),
        right_ascending=deg2rad(to_float(line2[17:25])),
        eccentricity=to_float(line2[26:33]) * 1e-7,
        perigee=deg2rad(to_float(line2[34:42])),
        mean_anomaly=deg2rad(to_float(line2[43:51])),
        mean_motion=to_float(line2[52:63]) * TWO_PI / MINUTES_PER_DAY,
        julian_epoch=julian_epoch,
    )


def _well_formed(elements: KeplerianElements) -> bool:
    """True when every numeric column of a sliced TLE converted cleanly."""
    integers = (elements.satellite, elements.epoch_year, elements.designator.launch_number)
    floats = (
        elements.epoch, elements.epoch_first_derivative, elements.epoch_second_derivative,
        elements.drag, elements.inclination, elements.right_ascending, elements.eccentricity,
        elements.perigee, elements.mean_anomaly, elements.mean_motion,
    )
    return all(value is not None for value in integers) and all(math.isfinite(value) for value in floats)


def _satrec_elements(satellite: Satrec) -> KeplerianElements:
    """Keplerian elements from an sgp4 satellite record."""
    epoch_year = satellite.epochyr + (2000 if satellite.epochyr < 57 else 1900)
    designator = satellite.intldesg.strip()

    return KeplerianElements(
        satellite=satellite.satnum,
        classification=satellite.classification,
        designator=LaunchDesignator(
            launch_year=designator[:2],
            launch_number=to_int(designator[2:5]),
            launch_piece=designator[5:].strip(),
        ),
        epoch_year=epoch_year,
        epoch=satellite.epochdays,
        # sgp4 keeps the derivatives in rad/min² and rad/min³
        epoch_first_derivative=satellite.ndot * REVOLUTIONS_PER_DAY_PER_RADIAN * MINUTES_PER_DAY,
        epoch_second_derivative=(satellite.nddot * REVOLUTIONS_PER_DAY_PER_RADIAN
                                 * MINUTES_PER_DAY * MINUTES_PER_DAY),
        drag=satellite.bstar,
        inclination=satellite.inclo,
        right_ascending=satellite.nodeo,
        eccentricity=satellite.ecco,
        perigee=satellite.argpo,
        mean_anomaly=satellite.mo,
        mean_motion=satellite.no_kozai,
        julian_epoch=satellite.jdsatepoch + satellite.jdsatepochF,
    )


def parse_two_line_element(line1: str, line2: str) -> KeplerianElements:
    """
    Parse a two-line element set.

    Well-formed sets are parsed with sgp4. When a column does not convert, the
    fixed-column values are returned with NaN (or None) in the malformed fields
    so the rest of the set stays usable.

    Args:
        line1: First line of TLE
        line2: Second line of TLE

    Returns:
        Keplerian elements with angles in radians and mean motion in rad/min
    """
    logger.debug("Parsing Two-Line-Element set...")

    columns = _column_elements(line1, line2)
    if not _well_formed(columns):
        logger.debug("Malformed TLE columns, keeping per-field values")
        return columns

    try:
        satellite = Satrec.twoline2rv(line1, line2)
    except ValueError as e:
        logger.warning("sgp4 rejected TLE: %s", e)
        return columns

    return _satrec_elements(satellite)


def find_two_line_elements(lines: Iterable[str],
                           vehicle_tag: str = DEFAULT_VEHICLE_TAG) -> Optional[KeplerianElements]:
    """
    Find a ``tag / 1 ... / 2 ...`` line triple and parse it.

    Returns the last triple found, or None when the file carries no TLE.
    """
    lines = list(lines)
    keplerian = None
    for i in range(len(lines) - 2):
        if (lines[i].lower().startswith(vehicle_tag)
                and lines[i + 1].startswith("1")
                and lines[i + 2].startswith("2")):
            keplerian = parse_two_line_element(lines[i + 1], lines[i + 2])
    return keplerian


def parse_state_vector_file(text: str, vehicle_tag: str = DEFAULT_VEHICLE_TAG) -> StateVectorFile:
    """
    Parse an annotated ``veh.sv`` file.

    Every line starting with ``c`` is a Cartesian state vector, the last one wins.
    """
    lines = text.split("\n")
    state_vector = None
    for line in lines:
        if line.lower().startswith("c"):
            state_vector = parse_state_vector_line(line)

    if state_vector is None:
        logger.debug("No Cartesian state vector line in state-vector file")

    return StateVectorFile(
        state_vector=state_vector,
        keplerian=find_two_line_elements(lines, vehicle_tag),
    )
