"""
Telemetry Pipeline

The two operations served to the transport layer:

- :func:`compute_snapshot` parses status and state-vector telemetry, propagates
  the state vector to the current time and derives altitude, speed and the
  sub-satellite point.
- :func:`state_vector_snapshot` returns the telemetry as received, without
  propagation.

Both are pure functions of the telemetry text and ``now``. The time values
of a call live in a ``TimeState`` built for that call only.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from telemetry_service import derived, geodetic, kepler, telemetry_parser
from telemetry_service.config import FIXED_LOOK_ANGLE
from telemetry_service.models import (
    Computation,
    ComputedSnapshot,
    LookAngle,
    StateVector,
    StateVectorSnapshot,
    TimeState,
)
from telemetry_service.telemetry_parser import DEFAULT_VEHICLE_TAG
from telemetry_service.time_system import time_state

logger = logging.getLogger(__name__)


def compute(state_vector: StateVector, times: TimeState) -> Computation:
    """Propagate a telemetry state vector to ``times.gmt`` and derive its quantities."""
    delta = (times.gmt - state_vector.time) * 60
    propagated = kepler.correct_position(state_vector, delta)
    propagated = propagated.model_copy(update={"time": times.gmt, "description": None, "type": None})

    logger.debug(
        f"time_GMT: {times.gmt} time_GMT_SERVER: {times.server_gmt} "
        f"GAST: {times.gast} sv.time: {state_vector.time} diff: {delta}"
    )

    return Computation(
        propagated_state_vector=propagated,
        altitude=derived.altitude(propagated),
        speed=derived.speed(propagated),
        location=geodetic.calculate_position(propagated.x, propagated.y, propagated.z, times.gast),
    )


def compute_snapshot(status_text: str, state_vector_text: str,
                     now: Optional[datetime] = None,
                     look_angle_text: Optional[str] = None,
                     vehicle_tag: str = DEFAULT_VEHICLE_TAG) -> Dict[str, Any]:
    """
    Full computed snapshot.

    Args:
        status_text: Contents of ``veh.data``
        state_vector_text: Contents of ``veh.sv``
        now: Time of the request (default: current host time)
        look_angle_text: Contents of ``veh.rndz``; the fixed reference look
            angle is used when omitted
        vehicle_tag: Tag that opens status and TLE lines

    Returns:
        Nested dictionary: lookAngle, info, attitude, stateVector, compute, keplerian
    """
    if look_angle_text is None:
        look_angle = LookAngle(**FIXED_LOOK_ANGLE)
    else:
        look_angle = telemetry_parser.parse_look_angle(look_angle_text)

    status = telemetry_parser.parse_status(status_text, annotated=True, vehicle_tag=vehicle_tag)
    vector_file = telemetry_parser.parse_state_vector_file(state_vector_text, vehicle_tag=vehicle_tag)
    times = time_state(now, status.server_gmt)

    computation = None
    if vector_file.state_vector is not None:
        computation = compute(vector_file.state_vector, times)

    snapshot = ComputedSnapshot(
        look_angle=look_angle,
        info=status.info,
        attitude=status.attitude,
        state_vector=vector_file.state_vector,
        compute=computation,
        keplerian=vector_file.keplerian,
    )
    return snapshot.to_dict()


def state_vector_snapshot(status_text: str, state_vector_text: str,
                          now: Optional[datetime] = None,
                          vehicle_tag: str = DEFAULT_VEHICLE_TAG) -> Dict[str, Any]:
    """
    Raw state vector and vehicle status, as received.

    Returns:
        Nested dictionary: info, attitude, stateVector, keplerian
    """
    status = telemetry_parser.parse_status(status_text, annotated=False, vehicle_tag=vehicle_tag)
    times = time_state(now, status.server_gmt)

    snapshot = StateVectorSnapshot(
        info=status.info,
        attitude=status.attitude,
        state_vector=telemetry_parser.parse_raw_state_vector(state_vector_text, times.gmt),
        keplerian=telemetry_parser.find_two_line_elements(state_vector_text.split("\n"), vehicle_tag),
    )
    return snapshot.to_dict()
