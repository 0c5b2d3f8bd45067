"""
Input and timing utilities for diagsim blocks.

This module provides helper functions for reading scalar inputs from the
inputs dict passed to block ``output``/``update`` methods, and the sample
clock shared by every clocked block.

Usage:
    from blocks.input_helpers import get_scalar, sample_due, advance_clock

    def update(self, time, inputs, params, state, dtime):
        if sample_due(time, state):
            state['held'] = get_scalar(inputs, 0)
            advance_clock(state, params['ts'])
"""

from typing import Any, Dict

CLOCK_TOLERANCE = 1e-6
MIN_SAMPLE_PERIOD = 0.001


def get_scalar(
    inputs: Dict[int, Any],
    port: int,
    default: float = 0.0
) -> float:
    """
    Extract a scalar value from inputs.

    Args:
        inputs: Input dictionary passed to output()/update()
        port: Port index to read from
        default: Default value if port is missing or None

    Returns:
        Scalar float value
    """
    value = inputs.get(port)
    if value is None:
        return float(default)
    return float(value)


def clip_to_limits(value: float, lower: float, upper: float) -> float:
    """Clamp ``value`` into ``[lower, upper]`` (upper wins if the range is inverted)."""
    return min(upper, max(lower, value))


def sample_period(value: float, dt: float) -> float:
    """
    Effective period of a clocked block.

    A zero period inherits the global step; the result is never below 1 ms.
    """
    return max(MIN_SAMPLE_PERIOD, value or dt)


def sample_due(time: float, state: Dict[str, Any], key: str = "next") -> bool:
    """Whether the block's sample clock fires at ``time``."""
    return time + CLOCK_TOLERANCE >= state[key]


def advance_clock(state: Dict[str, Any], ts: float, key: str = "next") -> None:
    """Schedule the next sample one period after the previous one."""
    state[key] += ts


def safe_divisor(dt: float) -> float:
    """Step used in finite differences, bounded away from zero."""
    return max(dt, 1e-6)
