"""Per-run mutable state of a compiled diagram."""

from dataclasses import dataclass
from typing import List

import numpy as np

from diagsim.engine.system_compiler import CompiledDiagram
from diagsim.types import BlockState


@dataclass
class ExecutionState:
    """
    Everything that changes while a diagram runs.

    ``outputs`` and ``settled`` are indexed by block handle and rebuilt every
    tick; ``persistent`` holds each block's state dict across ticks.
    """
    outputs: np.ndarray
    settled: np.ndarray
    persistent: List[BlockState]
    time: float = 0.0
    tick: int = 0

    @classmethod
    def create(cls, compiled: CompiledDiagram) -> "ExecutionState":
        """Fresh state at t = 0."""
        size = len(compiled.nodes)
        return cls(
            outputs=np.zeros(size),
            settled=np.zeros(size, dtype=bool),
            persistent=[node.impl.init_state(node.payload, compiled.dt) for node in compiled.nodes],
        )

    def clear_outputs(self) -> None:
        self.outputs[:] = 0.0
        self.settled[:] = False
