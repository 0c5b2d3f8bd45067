"""
Type definitions for diagsim.

This module provides common type aliases used throughout the codebase
for improved code readability and type checking.
"""

from typing import Any, Callable, Dict, List, Mapping, Union

import numpy as np
from numpy.typing import NDArray

# Block-related types
BlockId = str
"""Unique identifier of a block inside one diagram."""

Handle = int
"""Stable integer index assigned to a block when a diagram is compiled."""

ParamValue = Union[float, int, str, List[Any], None]
"""Raw parameter value as written in a diagram file."""

RawParams = Dict[str, ParamValue]
"""Unresolved block parameters (name -> value)."""

Payload = Mapping[str, Any]
"""Resolved, read-only block parameters."""

BlockState = Dict[str, Any]
"""Per-block persistent state carried between ticks."""

BlockInputs = Dict[int, float]
"""Input values for one evaluation: port index -> value."""

# Simulation types
Timeline = NDArray[np.float64]
"""Array of time values for simulation steps."""

StateVector = NDArray[np.float64]
"""State vector for ODE integration."""

Constants = Dict[str, float]
"""Named constants available to parameter expressions."""

# Connection types
PortIndex = int
"""Index of an input or output port (0-based)."""

# Callback types
TickCallback = Callable[[float, Dict[str, float]], None]
"""Callback invoked after each tick: (time, named outputs) -> None."""
