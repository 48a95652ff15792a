"""
Tests for the Kepler Propagator

Validates the universal-variable solver with the two-body conservation laws,
an analytic circular orbit and the closed forms of the Stumpff functions.

Run with:
    python -m pytest tests/test_kepler.py -v
"""

import math
import unittest

import numpy as np

from telemetry_service.kepler import (
    MAX_ITERATIONS,
    MU,
    Bracket,
    PropagationStatus,
    angular_momentum,
    correct_position,
    propagate,
    specific_energy,
    stumpff_coefficients,
)
from telemetry_service.models import StateVector


def make_state(position, velocity, time=0.0):
    return StateVector(
        x=position[0], y=position[1], z=position[2],
        velocity_x=velocity[0], velocity_y=velocity[1], velocity_z=velocity[2],
        time=time,
    )


# Slightly eccentric low orbit
LEO_STATE = make_state((6778.0, 0.0, 0.0), (0.0, 4.7638, 6.0101))

# Inclined ellipse with a radial velocity component
ELLIPTIC_STATE = make_state((7000.0, -1200.0, 300.0), (1.0, 7.2, 1.5))


class TestStumpffCoefficients(unittest.TestCase):
    """Test c0..c3 against their closed forms."""

    def check_elliptic(self, a):
        x = math.sqrt(-a)
        c0, c1, c2, c3 = stumpff_coefficients(a)

        self.assertAlmostEqual(c0, math.cos(x), places=9)
        self.assertAlmostEqual(c1, math.sin(x) / x, places=9)
        self.assertAlmostEqual(c2, (1.0 - math.cos(x)) / x ** 2, places=9)
        self.assertAlmostEqual(c3, (x - math.sin(x)) / x ** 3, places=9)

    def test_small_negative(self):
        """Test an argument handled by the series directly."""
        self.check_elliptic(-0.5)

    def test_large_negative(self):
        """Test an argument needing quartering and reconstruction."""
        self.check_elliptic(-20.0)

    def test_hyperbolic(self):
        """Test a positive argument (hyperbolic functions)."""
        x = 2.0
        c0, c1, c2, c3 = stumpff_coefficients(x * x)

        self.assertAlmostEqual(c0, math.cosh(x), places=9)
        self.assertAlmostEqual(c1, math.sinh(x) / x, places=9)
        self.assertAlmostEqual(c2, (math.cosh(x) - 1.0) / x ** 2, places=9)
        self.assertAlmostEqual(c3, (math.sinh(x) - x) / x ** 3, places=9)

    def test_zero(self):
        """Test the parabolic limit."""
        c0, c1, c2, c3 = stumpff_coefficients(0.0)

        self.assertEqual(c0, 1.0)
        self.assertEqual(c1, 1.0)
        self.assertEqual(c2, 0.5)
        self.assertAlmostEqual(c3, 1.0 / 6.0, places=15)


class TestBracket(unittest.TestCase):
    """Test the safeguarded fallback chain."""

    def test_initial_bracket(self):
        self.assertEqual(Bracket.for_delta(100.0), Bracket(0.0, 1.0, -100.0, 1.0))
        self.assertEqual(Bracket.for_delta(-100.0), Bracket(-1.0, 0.0, -1.0, 100.0))
        self.assertEqual(Bracket.for_delta(0.0), Bracket(0.0, 0.0, 0.0, 0.0))

    def test_update(self):
        bracket = Bracket.for_delta(100.0)
        bracket.update(0.4, -20.0)
        bracket.update(0.8, 15.0)

        self.assertEqual(bracket, Bracket(0.4, 0.8, -20.0, 15.0))

    def test_contains_is_strict(self):
        bracket = Bracket(0.0, 1.0, -1.0, 1.0)

        self.assertTrue(bracket.contains(0.5))
        self.assertFalse(bracket.contains(0.0))
        self.assertFalse(bracket.contains(1.0))

    def test_secant(self):
        """Test extrapolation from the end with the smaller residual."""
        bracket = Bracket(0.0, 1.0, -100.0, 1.0)
        psi, inside = bracket.fallback(5.0, 100.0)

        self.assertAlmostEqual(psi, 0.96)
        self.assertTrue(inside)

    def test_doubling(self):
        """Test doubling the lower end when the secant leaves the bracket."""
        bracket = Bracket(0.2, 1.0, -1.0, 1.0)
        psi, inside = bracket.fallback(5.0, 100.0)

        self.assertAlmostEqual(psi, 0.4)
        self.assertTrue(inside)

    def test_interpolation(self):
        """Test linear interpolation between the bracket ends."""
        bracket = Bracket(0.6, 1.0, -1.0, 3.0)
        psi, inside = bracket.fallback(5.0, 1.0)

        self.assertAlmostEqual(psi, 0.7)
        self.assertTrue(inside)

    def test_bisection(self):
        """Test bisection when interpolation is undefined."""
        bracket = Bracket(0.6, 1.0, 2.0, 2.0)
        psi, inside = bracket.fallback(5.0, 1.0)

        self.assertAlmostEqual(psi, 0.8)
        self.assertTrue(inside)

    def test_collapsed_bracket(self):
        """Test that an empty bracket reports no interior estimate."""
        bracket = Bracket(0.5, 0.5, -1.0, 1.0)
        psi, inside = bracket.fallback(5.0, 1.0)

        self.assertEqual(psi, 0.5)
        self.assertFalse(inside)


class TestPropagation(unittest.TestCase):
    """Test two-body propagation."""

    def test_zero_delta_is_identity(self):
        """Test that a zero time of flight returns the input state."""
        result = propagate(LEO_STATE, 0.0)

        self.assertEqual(result.status, PropagationStatus.CONVERGED)
        self.assertEqual(result.iterations, 1)
        np.testing.assert_array_equal(result.state_vector.position, LEO_STATE.position)
        np.testing.assert_array_equal(result.state_vector.velocity, LEO_STATE.velocity)

    def test_degenerate_position(self):
        """Test that a state at the origin or with NaN position is returned unchanged."""
        at_origin = make_state((0.0, 0.0, 0.0), (0.0, 0.0, 0.0), time=100.0)
        unknown = make_state((float("nan"), 0.0, 0.0), (0.0, 7.5, 0.0))

        for state in (at_origin, unknown):
            with self.assertLogs("telemetry_service.kepler", level="WARNING"):
                result = propagate(state, 600.0)

            self.assertEqual(result.status, PropagationStatus.EXHAUSTED)
            self.assertEqual(result.iterations, 0)
            self.assertIs(result.state_vector, state)

    def test_conservation(self):
        """Test energy and angular momentum over forward and backward flights."""
        for state in (LEO_STATE, ELLIPTIC_STATE):
            energy = specific_energy(state)
            momentum = angular_momentum(state)

            for delta in (60.0, -60.0, 600.0, -600.0, 3000.0, -3000.0):
                propagated = correct_position(state, delta)

                self.assertLess(abs(specific_energy(propagated) - energy), 1e-6 * abs(energy),
                                msg=f"energy drift for delta={delta}")
                np.testing.assert_allclose(angular_momentum(propagated), momentum, rtol=1e-6,
                                           atol=1e-6 * np.linalg.norm(momentum))

    def test_status_and_iteration_limit(self):
        """Test that every solve terminates within the iteration limit."""
        for delta in (1.0, -1.0, 60.0, 600.0, -3000.0, 5000.0):
            result = propagate(ELLIPTIC_STATE, delta)

            self.assertIn(result.status, (PropagationStatus.CONVERGED, PropagationStatus.EXHAUSTED))
            self.assertGreaterEqual(result.iterations, 1)
            self.assertLessEqual(result.iterations, MAX_ITERATIONS)

    def test_circular_orbit(self):
        """Test against the analytic circular orbit."""
        radius = 6778.0
        circular_speed = math.sqrt(MU / radius)
        mean_motion = circular_speed / radius
        state = make_state((radius, 0.0, 0.0), (0.0, circular_speed, 0.0))

        for delta in (60.0, 900.0, -1800.0):
            propagated = correct_position(state, delta)
            angle = mean_motion * delta

            self.assertAlmostEqual(propagated.x, radius * math.cos(angle), places=4)
            self.assertAlmostEqual(propagated.y, radius * math.sin(angle), places=4)
            self.assertAlmostEqual(propagated.z, 0.0, places=9)
            self.assertAlmostEqual(propagated.velocity_x, -circular_speed * math.sin(angle), places=7)
            self.assertAlmostEqual(propagated.velocity_y, circular_speed * math.cos(angle), places=7)

    def test_round_trip(self):
        """Test that propagating forward then back returns to the start."""
        forward = correct_position(ELLIPTIC_STATE, 600.0)
        back = correct_position(forward, -600.0)

        np.testing.assert_allclose(back.position, ELLIPTIC_STATE.position, atol=1e-6)
        np.testing.assert_allclose(back.velocity, ELLIPTIC_STATE.velocity, atol=1e-9)

    def test_input_not_modified(self):
        """Test that the input state vector is left untouched."""
        before = LEO_STATE.model_dump()
        propagated = correct_position(LEO_STATE, 600.0)

        self.assertEqual(LEO_STATE.model_dump(), before)
        self.assertNotEqual(propagated.x, LEO_STATE.x)
        self.assertEqual(propagated.time, LEO_STATE.time)


if __name__ == '__main__':
    unittest.main()
