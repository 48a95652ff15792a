"""
Tests for the Telemetry HTTP Front End

Uses the Flask test client with an in-memory telemetry source in place of the
cacher.

Run with:
    python -m pytest tests/test_app.py -v
"""

import unittest

from telemetry_service.app import create_app
from telemetry_service.cacher import TelemetryUnavailable
from telemetry_service.config import ServiceConfig
from telemetry_service.constants import FEET_TO_KM
from telemetry_service.time_system import local_gmt

DATA_BODY = "GMT 120.5\nISS 1 2.0 1.0 0.5 70.0 45 14.5 201\n"


def vector_fields():
    return " ".join(str(value / FEET_TO_KM) for value in (6778.0, 0.0, 0.0, 0.0, 4.7638, 6.0101))


class FakeCacher:
    """In-memory telemetry source with the cacher's interface."""

    def __init__(self, files):
        self.files = files
        self.redis_client = None
        self.running = False

    def load(self, kind):
        if kind not in self.files:
            raise TelemetryUnavailable(f"Could not open file veh.{kind}")
        return self.files[kind]

    def start(self):
        started = not self.running
        self.running = True
        return started

    def stop(self, timeout=None):
        stopped = self.running
        self.running = False
        return stopped


class TestTelemetryRoutes(unittest.TestCase):
    """Test the /nasa/<datatype> routes."""

    def setUp(self):
        self.cacher = FakeCacher({
            "data": DATA_BODY,
            "sv": f"c {vector_fields()} {local_gmt() - 1.0}\n",
            "rndz": "100.0 2.0 3.0 4.0\n",
        })
        self.app = create_app(cacher=self.cacher)
        self.client = self.app.test_client()

    def test_all(self):
        response = self.client.get('/nasa/all')
        payload = response.get_json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers['Data-Origin'], 'Mission Control Center')
        self.assertEqual(response.headers['Data-Source-Protocol'], 'ISP (Information Sharing Protocol)')
        self.assertEqual(payload['info']['phase'], 'Orbit Coast')
        self.assertEqual(payload['lookAngle']['range'], 774.6)
        self.assertGreater(payload['compute']['altitude']['km'], 370.0)
        self.assertLess(payload['compute']['altitude']['km'], 460.0)
        self.assertNotIn('keplerian', payload)

    def test_all_with_live_look_angle(self):
        config = type("LiveConfig", (ServiceConfig,), {"LIVE_LOOK_ANGLE": True})
        client = create_app(cacher=self.cacher, config=config).test_client()

        payload = client.get('/nasa/all').get_json()
        self.assertEqual(payload['lookAngle']['range'], 100.0)

    def test_statevector(self):
        self.cacher.files["sv"] = f"ISS 20 {vector_fields()} 2915.0\n"
        response = self.client.get('/nasa/statevector', headers={'Origin': 'http://tracker.example'})
        payload = response.get_json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers['Access-Control-Allow-Origin'], '*')
        self.assertEqual(response.headers['Data-Origin'], 'Mission Control Center')
        self.assertAlmostEqual(payload['stateVector']['x'], 6778.0, places=6)
        self.assertEqual(payload['stateVector']['time'], 2915.0)
        self.assertNotIn('description', payload['info'])

    def test_cors_only_on_statevector(self):
        response = self.client.get('/nasa/all', headers={'Origin': 'http://tracker.example'})
        self.assertNotIn('Access-Control-Allow-Origin', response.headers)

    def test_cacher_control(self):
        response = self.client.get('/nasa/startcacher')

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_data(as_text=True).endswith(' - Cacher: started.'))
        self.assertIn('GMT', response.get_data(as_text=True))
        self.assertTrue(self.cacher.running)

        response = self.client.get('/nasa/endcacher')
        self.assertTrue(response.get_data(as_text=True).endswith(' - Cacher: stopped.'))
        self.assertFalse(self.cacher.running)

    def test_syntax_error(self):
        response = self.client.get('/nasa/position')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_data(as_text=True), 'syntax error')

    def test_missing_telemetry(self):
        """Test that uncached telemetry is a 503, not a crash."""
        del self.cacher.files["sv"]
        response = self.client.get('/nasa/all')

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.get_json()['error'], 'Telemetry not available')


class TestServiceRoutes(unittest.TestCase):
    """Test health and error handling."""

    def setUp(self):
        self.cacher = FakeCacher({})
        self.client = create_app(cacher=self.cacher).test_client()

    def test_health(self):
        response = self.client.get('/health')
        payload = response.get_json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(payload['status'], 'healthy')
        self.assertEqual(payload['services'], {'cacher': 'stopped', 'redis': 'disabled'})

    def test_not_found_passes_through(self):
        response = self.client.get('/orbit')
        self.assertEqual(response.status_code, 404)

    def test_unexpected_error(self):
        """Test that an unhandled failure becomes a JSON 500."""
        def broken(kind):
            raise RuntimeError("disk on fire")

        self.cacher.load = broken
        response = self.client.get('/nasa/statevector')

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json()['error'], 'Internal server error')


if __name__ == '__main__':
    unittest.main()
