"""
Reusable parameter definition templates for diagsim blocks.

This module provides factory functions that generate common parameter definitions,
reducing duplication across block implementations.

Usage:
    from blocks.param_templates import sample_time_param, limit_params

    @property
    def params(self):
        return {
            **limit_params(default_min=-1.0, default_max=1.0),
            **sample_time_param(),
        }
"""

from typing import Dict, Any, List, Optional

# Type alias for parameter dictionary
ParamDict = Dict[str, Dict[str, Any]]


def scalar_param(name: str, default: float, doc: str) -> ParamDict:
    """A single float parameter."""
    return {name: {"type": "float", "default": default, "doc": doc}}


def list_param(name: str, default: List[float], doc: str) -> ParamDict:
    """A coefficient list parameter (list or comma-separated string)."""
    return {name: {"type": "list", "default": list(default), "doc": doc}}


def sample_time_param(
    default: float = 0.0,
    name: str = "ts",
    doc: Optional[str] = None
) -> ParamDict:
    """
    Create a sample period parameter for clocked blocks.

    Args:
        default: Default period; 0 inherits the global step
        name: Parameter name (default "ts")
        doc: Documentation string

    Returns:
        Parameter dict with the sample period definition
    """
    return {
        name: {
            "type": "float",
            "default": default,
            "doc": doc or "Sample period in seconds (0 = global step, minimum 0.001)."
        }
    }


def limit_params(
    default_min: float = -1.0,
    default_max: float = 1.0,
    min_name: str = "min",
    max_name: str = "max",
    min_doc: str = "Lower limit",
    max_doc: str = "Upper limit"
) -> ParamDict:
    """
    Create min/max limit parameters.

    Args:
        default_min: Default minimum value
        default_max: Default maximum value
        min_name: Name for min parameter
        max_name: Name for max parameter
        min_doc: Documentation for min
        max_doc: Documentation for max

    Returns:
        Parameter dict with min and max definitions
    """
    return {
        min_name: {"type": "float", "default": default_min, "doc": min_doc},
        max_name: {"type": "float", "default": default_max, "doc": max_doc},
    }


def state_space_params(default_a: float = -1.0) -> ParamDict:
    """Scalar A, B, C, D parameters shared by the state-space blocks."""
    return {
        "A": {"type": "float", "default": default_a, "doc": "State coefficient."},
        "B": {"type": "float", "default": 1.0, "doc": "Input coefficient."},
        "C": {"type": "float", "default": 1.0, "doc": "Output coefficient."},
        "D": {"type": "float", "default": 0.0, "doc": "Feedthrough coefficient."},
    }


def label_name_param() -> ParamDict:
    """Bus name shared by label sources and sinks."""
    return {
        "name": {
            "type": "string",
            "default": "",
            "doc": "Signal name (defaults to the block id)."
        }
    }
