"""
Transfer-function realization and fixed-step integration.

Continuous transfer functions are converted to controllable canonical form
and advanced with classic RK4, holding the block input constant across the
step. Discrete transfer functions keep their normalized coefficients and are
evaluated as a direct-form recurrence.

Polynomials are given highest degree first, e.g. ``[1, 3]`` is ``s + 3``.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from diagsim.types import StateVector

logger = logging.getLogger(__name__)

POLY_TOLERANCE = 1e-12


def _as_float_array(coeffs: Optional[Sequence[float]]) -> np.ndarray:
    values = np.asarray(list(coeffs or []), dtype=float)
    return np.where(np.isfinite(values), values, 0.0)


def normalize_poly(coeffs: Optional[Sequence[float]]) -> Tuple[np.ndarray, bool]:
    """
    Strip leading near-zero coefficients.

    Returns:
        (trimmed, all_zero). An empty or all-zero polynomial collapses to
        ``[0.0]`` with ``all_zero`` set.
    """
    values = _as_float_array(coeffs)
    if values.size == 0:
        return np.array([0.0]), True

    idx = 0
    while idx < values.size - 1 and abs(values[idx]) < POLY_TOLERANCE:
        idx += 1
    trimmed = values[idx:]

    all_zero = bool(np.all(np.abs(trimmed) < POLY_TOLERANCE))
    if all_zero:
        return np.array([0.0]), True
    return trimmed, False


@dataclass(frozen=True, eq=False)
class StateSpaceModel:
    """
    Continuous single-input single-output model ``x' = Ax + Bu, y = Cx + Du``.

    ``order == 0`` is a pure static gain ``D`` with empty matrices.
    """
    order: int
    A: np.ndarray
    B: np.ndarray
    C: np.ndarray
    D: float

    @property
    def has_feedthrough(self) -> bool:
        return self.D != 0.0

    def derivative(self, x: StateVector, u: float) -> StateVector:
        return self.A @ x + self.B * u

    def output(self, x: StateVector, u: float) -> float:
        if self.order == 0:
            return self.D * u
        return float(self.C @ x) + self.D * u

    def initial_state(self) -> StateVector:
        return np.zeros(self.order)


def realize_tf(num: Sequence[float], den: Sequence[float]) -> Optional[StateSpaceModel]:
    """
    Realize ``num(s)/den(s)`` in controllable canonical form.

    Returns:
        The realized model, or None when the denominator is all zero.
    """
    num_norm, _ = normalize_poly(num)
    den_norm, den_all_zero = normalize_poly(den)
    if den_all_zero:
        return None

    a0 = den_norm[0]
    n = den_norm.size - 1
    if n == 0:
        return StateSpaceModel(
            order=0,
            A=np.zeros((0, 0)),
            B=np.zeros(0),
            C=np.zeros(0),
            D=float(num_norm[0] / a0),
        )

    if num_norm.size > n + 1:
        logger.warning(
            f"Improper transfer function (num degree {num_norm.size - 1} > den degree {n}); "
            f"keeping the {n + 1} lowest-order numerator terms"
        )
        num_norm = num_norm[-(n + 1):]

    a = den_norm[1:] / a0
    b = np.concatenate([np.zeros(n + 1 - num_norm.size), num_norm]) / a0

    A = np.zeros((n, n))
    for i in range(n - 1):
        A[i, i + 1] = 1.0
    A[n - 1, :] = -a[::-1]

    B = np.zeros(n)
    B[n - 1] = 1.0

    b0 = b[0]
    C = np.zeros(n)
    for i in range(n):
        C[n - 1 - i] = b[i + 1] - a[i] * b0

    return StateSpaceModel(order=n, A=A, B=B, C=C, D=float(b0))


def rk4_step(model: StateSpaceModel, x: StateVector, u: float, dt: float) -> StateVector:
    """Advance ``x`` one step with RK4, the input held at ``u`` for all stages."""
    if model.order == 0:
        return x
    k1 = model.derivative(x, u)
    k2 = model.derivative(x + 0.5 * dt * k1, u)
    k3 = model.derivative(x + 0.5 * dt * k2, u)
    k4 = model.derivative(x + dt * k3, u)
    return x + (dt / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)


@dataclass(frozen=True)
class DiscreteTfModel:
    """Normalized discrete transfer function (``den[0] == 1``)."""
    num: Tuple[float, ...]
    den: Tuple[float, ...]

    def evaluate(self, x_hist: Sequence[float], y_hist: Sequence[float]) -> float:
        """
        One recurrence step.

        Args:
            x_hist: Input history, newest first, ``len(num)`` entries.
            y_hist: Output history, newest first, ``len(den) - 1`` entries.
        """
        y = 0.0
        for coeff, x in zip(self.num, x_hist):
            y += coeff * x
        for coeff, prev in zip(self.den[1:], y_hist):
            y -= coeff * prev
        return y


def realize_discrete_tf(num: Sequence[float], den: Sequence[float]) -> DiscreteTfModel:
    """
    Normalize a discrete transfer function.

    The denominator loses its leading near-zero terms and an all-zero
    denominator is replaced by ``[1]``. Numerator leading zeros are kept
    since they encode pure input delay.
    """
    den_norm, den_all_zero = normalize_poly(den)
    if den_all_zero:
        logger.warning("Discrete transfer function has an all-zero denominator; using [1]")
        den_norm = np.array([1.0])

    num_values = _as_float_array(num)
    if num_values.size == 0 or np.all(np.abs(num_values) < POLY_TOLERANCE):
        num_values = np.array([0.0])

    a0 = den_norm[0]
    return DiscreteTfModel(
        num=tuple(float(v) for v in num_values / a0),
        den=tuple(float(v) for v in den_norm / a0),
    )
