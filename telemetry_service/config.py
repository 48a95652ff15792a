"""
Telemetry Service Configuration

Runtime settings for the cacher and the HTTP front end, plus the fixed
reference tracking angle served with every computed snapshot.

Settings are read from environment variables once, at import time.

Fixed Look Angle:
    The full snapshot carries an Air Force Satellite Control Network look angle.
    A fixed reference value is served instead of fetching ``veh.rndz`` on every
    request. Set ``LIVE_LOOK_ANGLE=true`` to parse the cached file instead.
"""

import os
from typing import Any, Dict


class ServiceConfig:
    SOURCE_BASE = os.getenv('TELEMETRY_SOURCE_BASE', 'http://spaceflight1.nasa.gov')
    CACHE_DIR = os.getenv('TELEMETRY_CACHE_DIR', '.')
    CACHER_INTERVAL = float(os.getenv('CACHER_INTERVAL', '15'))  # seconds
    CACHER_AUTOSTART = os.getenv('CACHER_AUTOSTART', 'true').lower() == 'true'
    FETCH_TIMEOUT = float(os.getenv('FETCH_TIMEOUT', '30'))
    REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379')
    STATEVECTOR_KEY = os.getenv('STATEVECTOR_KEY', 'telemetry:statevector')
    STATEVECTOR_HISTORY = int(os.getenv('STATEVECTOR_HISTORY', '1000'))
    VEHICLE_TAG = os.getenv('VEHICLE_TAG', 'iss').lower()
    LIVE_LOOK_ANGLE = os.getenv('LIVE_LOOK_ANGLE', 'false').lower() == 'true'
    SERVICE_HOST = os.getenv('SERVICE_HOST', '0.0.0.0')
    SERVICE_PORT = int(os.getenv('SERVICE_PORT', '8080'))


# Logical telemetry kind -> remote path and cache file name
TELEMETRY_FILES: Dict[str, Dict[str, str]] = {
    'rndz': {'path': '/realdata/tracking/veh.rndz', 'file_name': 'veh.rndz'},
    'data': {'path': '/realdata/tracking/veh.data', 'file_name': 'veh.data'},
    'sv': {'path': '/realdata/tracking/veh.sv', 'file_name': 'veh.sv'},
}

# Kinds refreshed by the cacher on every tick
REFRESH_KINDS = ('data', 'sv')

FIXED_LOOK_ANGLE: Dict[str, Any] = {
    'range': 774.6,
    'rate': 1.03,
    'azimuth': -2.09,
    'elevation': -19.97,
}

RESPONSE_HEADERS: Dict[str, str] = {
    'Data-Source-Protocol': 'ISP (Information Sharing Protocol)',
    'Data-Origin': 'Mission Control Center',
}
