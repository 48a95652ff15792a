"""
Kepler Propagator

Two-body propagation of a Cartesian state vector with the universal variable
formulation (Goodyear's method as refined by Shepperd). The generalized anomaly
psi parameterizes Kepler's problem uniformly for elliptic, parabolic and
hyperbolic orbits, so no orbit-type branching is needed.

The root-find on psi is a Newton iteration safeguarded by a bracket. When a
Newton step leaves the bracket the next estimate falls back to a secant
extrapolation, bracket doubling, linear interpolation and finally bisection.

The iteration limit is fixed and the convergence test is an exact zero of the
time-of-flight residual. An unconverged solve still returns its best iterate;
callers must tolerate approximate results for degenerate inputs. A state at the
origin, or with a non-finite position, cannot be propagated and is returned
unchanged.

References:
    Goodyear, W. H. (1965). Completely General Closed-Form Solution for
    Coordinates and Partial Derivatives of the Two-Body Problem. AJ 70, 189.
    Shepperd, S. W. (1985). Universal Keplerian State Transition Matrix.
    Celestial Mechanics 35, 129-144.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np

from telemetry_service.constants import GRAVITATIONAL_PARAMETER
from telemetry_service.models import StateVector

logger = logging.getLogger(__name__)

MU = GRAVITATIONAL_PARAMETER

MAX_ITERATIONS = 10

# Exhausted solves with a smaller time-of-flight residual only log at DEBUG
RESIDUAL_WARNING_SECONDS = 1e-3


class PropagationStatus(Enum):
    ITERATING = "iterating"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"


@dataclass
class Bracket:
    """Interval on psi known to contain the root, with the residual at each end."""

    psin: float
    psip: float
    dtaun: float
    dtaup: float

    @classmethod
    def for_delta(cls, delta: float) -> "Bracket":
        if delta < 0:
            return cls(psin=-1.0, psip=0.0, dtaun=-1.0, dtaup=-delta)
        if delta > 0:
            return cls(psin=0.0, psip=1.0, dtaun=-delta, dtaup=1.0)
        return cls(psin=0.0, psip=0.0, dtaun=0.0, dtaup=0.0)

    def contains(self, psi: float) -> bool:
        return self.psin < psi < self.psip

    def update(self, psi: float, dtau: float) -> None:
        if dtau < 0.0:
            self.psin = psi
            self.dtaun = dtau
        else:
            self.psip = psi
            self.dtaup = dtau

    def fallback(self, psi: float, delta: float) -> Tuple[float, bool]:
        """
        Replace an out-of-bracket estimate.

        Returns:
            Tuple of (psi, inside) where ``inside`` is False when no fallback
            produced an estimate strictly inside the bracket
        """
        if abs(self.dtaun) < abs(self.dtaup):
            psi = self.psin * (1.0 - (4 * self.dtaun) / delta)
        if abs(self.dtaup) < abs(self.dtaun):
            psi = self.psip * (1.0 - (4 * self.dtaup) / delta)
        if self.contains(psi):
            return psi, True

        if delta > 0.0:
            psi = self.psin + self.psin
        if delta < 0.0:
            psi = self.psip + self.psip
        if self.contains(psi):
            return psi, True

        if self.dtaup != self.dtaun:
            psi = self.psin + (self.psip - self.psin) * (-self.dtaun / (self.dtaup - self.dtaun))
            if self.contains(psi):
                return psi, True

        psi = self.psin + (self.psip - self.psin) * 0.5
        return psi, self.contains(psi)


@dataclass(frozen=True)
class PropagationResult:
    state_vector: StateVector
    status: PropagationStatus
    iterations: int


def stumpff_coefficients(a: float) -> Tuple[float, float, float, float]:
    """
    Universal-variable coefficients c0..c3 for ``a = alpha * psi**2``.

    Arguments with ``|a| > 1`` are quartered until the continued-fraction series
    is stable, then the result is rebuilt with the double-angle recurrences.
    """
    original = a
    m = 0
    while abs(a) > 1.0:
        m += 1
        a *= 0.25

    c5x3 = (1.0 + ((1.0 + ((1.0 + ((1.0 + ((1.0 + ((1.0 + ((1.0 + a / 342) * a) / 272) * a) / 210) * a) / 156) * a) / 110) * a) / 72) * a) / 42) / 40
    c4 = (1.0 + ((1.0 + ((1.0 + ((1.0 + ((1.0 + ((1.0 + ((1.0 + a / 306) * a) / 240) * a) / 182) * a) / 132) * a) / 90) * a) / 56) * a) / 30) / 24
    c3 = (0.5 + a * c5x3) / 3
    c2 = 0.5 + a * c4
    c1 = 1.0 + a * c3
    c0 = 1.0 + a * c2

    if m > 0:
        for _ in range(m):
            c1 = c1 * c0
            c0 = 2 * c0 * c0 - 1.0
        c2 = (c0 - 1.0) / original
        c3 = (c1 - 1.0) / original

    return c0, c1, c2, c3


def propagate(state_vector: StateVector, delta_seconds: float) -> PropagationResult:
    """
    Advance a state vector by ``delta_seconds`` under two-body motion.

    Args:
        state_vector: ECI state (km, km/s)
        delta_seconds: Time of flight, negative to propagate backwards

    Returns:
        PropagationResult with the new state, the terminal status and the
        number of iterations used
    """
    r0_vec = state_vector.position
    v0_vec = state_vector.velocity
    delta = float(delta_seconds)

    r0 = float(np.linalg.norm(r0_vec))
    if not (r0 > 0.0 and math.isfinite(r0)):
        logger.warning(f"Cannot propagate from position magnitude {r0} km, returning input state")
        return PropagationResult(
            state_vector=state_vector,
            status=PropagationStatus.EXHAUSTED,
            iterations=0,
        )

    sig0 = float(np.dot(r0_vec, v0_vec))
    alpha = float(np.dot(v0_vec, v0_vec)) - 2.0 * MU / r0

    bracket = Bracket.for_delta(delta)
    psi = 0.0
    if delta != 0.0 and not bracket.contains(psi):
        psi = delta / r0
        if not bracket.contains(psi):
            psi = delta

    status = PropagationStatus.ITERATING
    iterations = 0
    while status is PropagationStatus.ITERATING:
        iterations += 1
        c0, c1, c2, c3 = stumpff_coefficients(alpha * psi * psi)

        s1 = c1 * psi
        s2 = c2 * psi * psi
        s3 = c3 * psi * psi * psi
        g = r0 * s1 + sig0 * s2
        dtau = (g + MU * s3) - delta
        r = abs(r0 * c0 + (sig0 * s1 + MU * s2))

        if dtau == 0.0:
            status = PropagationStatus.CONVERGED
            break

        bracket.update(psi, dtau)
        psi = psi - dtau / r
        if not bracket.contains(psi):
            psi, inside = bracket.fallback(psi, delta)
            if not inside:
                status = PropagationStatus.EXHAUSTED
        if iterations >= MAX_ITERATIONS:
            status = PropagationStatus.EXHAUSTED

    if status is PropagationStatus.EXHAUSTED:
        log = logger.warning if abs(dtau) > RESIDUAL_WARNING_SECONDS else logger.debug
        log(
            f"Universal anomaly did not converge after {iterations} iterations "
            f"(delta={delta:.3f} s, residual={dtau:.3e} s), using best iterate"
        )

    # Lagrange coefficients, f - 1 and g-dot - 1 kept separate for precision
    fm1 = (-MU * s2) / r0
    fd = (-MU * s1) / (r0 * r)
    gdm1 = (-MU * s2) / r

    position = r0_vec + (fm1 * r0_vec + g * v0_vec)
    velocity = fd * r0_vec + gdm1 * v0_vec + v0_vec

    return PropagationResult(
        state_vector=state_vector.with_state(position, velocity),
        status=status,
        iterations=iterations,
    )


def correct_position(state_vector: StateVector, delta_seconds: float) -> StateVector:
    """Propagated state vector, ``delta_seconds`` after ``state_vector``."""
    return propagate(state_vector, delta_seconds).state_vector


def specific_energy(state_vector: StateVector) -> float:
    """Specific orbital energy |v|²/2 - μ/|r| (km²/s²)."""
    return (float(np.dot(state_vector.velocity, state_vector.velocity)) / 2.0
            - MU / float(np.linalg.norm(state_vector.position)))


def angular_momentum(state_vector: StateVector) -> np.ndarray:
    """Specific angular momentum vector r × v (km²/s)."""
    return np.cross(state_vector.position, state_vector.velocity)
