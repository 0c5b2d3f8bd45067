"""
Fixed-point resolution of zero-delay (algebraic) blocks.

Each pass visits the algebraic blocks in compiled order. A block is
evaluated once every connected driver has settled; it counts as progress
when it settles for the first time or its value changes. A pass without
progress is a fixed point. The pass count is capped, and whatever values
stand at the cap are kept.
"""

import logging
from dataclasses import dataclass

from diagsim.engine.execution_state import ExecutionState
from diagsim.engine.system_compiler import CompiledDiagram

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 50


@dataclass(frozen=True)
class ResolutionReport:
    """Outcome of one tick's fixed-point loop."""
    iterations: int
    converged: bool


def seed_loop(compiled: CompiledDiagram, state: ExecutionState) -> None:
    """Mark label-bus mirrors as settled at 0.0 before the first pass."""
    for handle in compiled.algebraic_order:
        if compiled.nodes[handle].seeds_loop:
            state.outputs[handle] = 0.0
            state.settled[handle] = True


def run_pass(compiled: CompiledDiagram, state: ExecutionState, time: float) -> bool:
    """
    One pass over the algebraic blocks.

    Returns:
        True if any block settled for the first time or changed value.
    """
    updated = False
    outputs = state.outputs
    settled = state.settled
    for handle in compiled.algebraic_order:
        node = compiled.nodes[handle]
        if not all(settled[driver] for driver in node.drivers.values()):
            continue
        value = float(node.impl.output(time, node.gather_inputs(outputs), node.payload,
                                       state.persistent[handle], compiled.dt))
        if not settled[handle] or outputs[handle] != value:
            outputs[handle] = value
            settled[handle] = True
            updated = True
    return updated


class AlgebraicResolver:
    """Runs :func:`run_pass` until a fixed point or ``max_iterations`` passes."""

    def __init__(self, max_iterations: int = DEFAULT_MAX_ITERATIONS):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.max_iterations = int(max_iterations)

    def resolve(self, compiled: CompiledDiagram, state: ExecutionState, time: float) -> ResolutionReport:
        seed_loop(compiled, state)
        if not compiled.algebraic_order:
            return ResolutionReport(iterations=0, converged=True)
        for iteration in range(1, self.max_iterations + 1):
            if not run_pass(compiled, state, time):
                return ResolutionReport(iterations=iteration, converged=True)
        logger.debug(f"Algebraic loop not settled after {self.max_iterations} passes at t={time:.6f}")
        return ResolutionReport(iterations=self.max_iterations, converged=False)
