"""
Telemetry Pipeline Demonstration

Runs the telemetry pipeline on cached tracking files and prints the snapshot:
- vehicle status (signal, attitude, cabin environment, mission phase)
- state vector propagated to the current time
- altitude, speed and sub-satellite point
- Keplerian elements when the state-vector file carries a TLE

Usage:
    python demo.py [--data veh.data] [--sv veh.sv] [--rndz veh.rndz]
                   [--raw] [--now 2013-05-01T12:00:00+00:00] [--verbose]
"""

import argparse
import json
import logging
from datetime import datetime
from pathlib import Path

from telemetry_service.logging_config import configure_logging
from telemetry_service.pipeline import compute_snapshot, state_vector_snapshot

logger = logging.getLogger(__name__)


def main() -> None:
    """Demonstration entry point."""
    parser = argparse.ArgumentParser(description="Spacecraft telemetry pipeline demonstration")
    parser.add_argument("--data", default="veh.data", help="Vehicle status file")
    parser.add_argument("--sv", default="veh.sv", help="State-vector file")
    parser.add_argument("--rndz", help="Tracking-angle file (fixed look angle when omitted)")
    parser.add_argument("--raw", action="store_true", help="Raw state vector, no propagation")
    parser.add_argument("--now", type=datetime.fromisoformat, help="Time of the request (ISO 8601)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    status_text = Path(args.data).read_text()
    state_vector_text = Path(args.sv).read_text()

    if args.raw:
        snapshot = state_vector_snapshot(status_text, state_vector_text, now=args.now)
    else:
        look_angle_text = Path(args.rndz).read_text() if args.rndz else None
        snapshot = compute_snapshot(status_text, state_vector_text, now=args.now,
                                    look_angle_text=look_angle_text)

    compute = snapshot.get("compute")
    if compute:
        logger.info(
            f"Altitude {compute['altitude']['km']:.1f} km, "
            f"speed {compute['speed']['mps'] / 1000:.3f} km/s, "
            f"lat {compute['location']['latitude']:.2f}°, lon {compute['location']['longitude']:.2f}°"
        )

    print(json.dumps(snapshot, indent=2))


if __name__ == "__main__":
    main()
