"""
SimulationEngine - Tick-by-tick interpreter for compiled diagrams.

One tick: clear outputs, compute source and memory outputs, resolve the
algebraic loop, read the sinks, run every block's state update, advance
``t += dt``.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Union

import numpy as np

from diagsim.config_manager import ConfigManager, get_config
from diagsim.engine.algebraic import AlgebraicResolver
from diagsim.engine.execution_state import ExecutionState
from diagsim.engine.system_compiler import CompiledDiagram, compile_diagram
from diagsim.models.diagram import Diagram
from diagsim.types import TickCallback, Timeline

logger = logging.getLogger(__name__)

TIME_TOLERANCE = 1e-9


@dataclass(frozen=True)
class TickResult:
    """Named outputs of one tick."""
    time: float
    outputs: Dict[str, float]
    converged: bool
    iterations: int
    traces: Dict[str, float] = field(default_factory=dict)


@dataclass
class SimulationResult:
    """
    Output series of a full run.

    Attributes:
        times: Tick times
        outputs: Output name -> values per tick
        traces: Scope/file-sink label -> values per tick
        unconverged_ticks: Number of ticks whose algebraic loop hit the cap
    """
    times: Timeline
    outputs: Dict[str, np.ndarray]
    traces: Dict[str, np.ndarray]
    unconverged_ticks: int = 0

    @property
    def output_names(self) -> List[str]:
        return list(self.outputs)


class SimulationEngine:
    """
    Interpreter for one diagram.

    Each engine owns its ExecutionState; ``initialize`` starts a fresh run.

    Attributes:
        compiled: The CompiledDiagram being executed
        state: Current ExecutionState (None until initialized)
        resolver: AlgebraicResolver with the configured pass cap
        unconverged_policy: "ignore" or "warn"
    """

    def __init__(self, diagram: Union[Diagram, CompiledDiagram],
                 config: Optional[ConfigManager] = None) -> None:
        config = config or get_config()
        if isinstance(diagram, CompiledDiagram):
            self.compiled = diagram
        else:
            self.compiled = compile_diagram(
                diagram,
                default_dt=config.get("simulation.default_timestep", 0.01),
                default_runtime=config.get("simulation.default_time", 10.0),
            )
        self.resolver = AlgebraicResolver(config.get("engine.max_algebraic_iterations", 50))
        self.unconverged_policy = config.get("engine.unconverged_policy", "ignore")
        self.state: Optional[ExecutionState] = None
        self._trace_keys = self._build_trace_keys()
        self._warned_unconverged = False

    def _build_trace_keys(self) -> Dict[int, str]:
        keys: Dict[int, str] = {}
        for node in self.compiled.trace_nodes:
            key = self.compiled.trace_label(node)
            if key in keys.values():
                key = f"{key}_{node.block_id}"
            keys[node.handle] = key
        return keys

    @property
    def dt(self) -> float:
        return self.compiled.dt

    @property
    def trace_names(self) -> List[str]:
        return list(self._trace_keys.values())

    def initialize(self) -> ExecutionState:
        """Create a fresh ExecutionState at t = 0."""
        self.state = ExecutionState.create(self.compiled)
        self._warned_unconverged = False
        logger.debug(f"Initialized {len(self.compiled)} blocks, dt={self.dt}")
        return self.state

    def step(self, external_inputs: Optional[Mapping[str, float]] = None) -> TickResult:
        """
        Run one tick at the current time and advance it by dt.

        Args:
            external_inputs: Values for the diagram's named inputs; missing names read 0.0
        """
        if self.state is None:
            self.initialize()
        compiled = self.compiled
        state = self.state
        external_inputs = external_inputs or {}
        t = state.time
        dt = compiled.dt

        state.clear_outputs()
        for handle in compiled.output_order:
            node = compiled.nodes[handle]
            inputs = {0: float(external_inputs.get(node.label, 0.0))} if node.external else {}
            state.outputs[handle] = node.impl.output(t, inputs, node.payload, state.persistent[handle], dt)
            state.settled[handle] = True

        report = self.resolver.resolve(compiled, state, t)
        if not report.converged and self.unconverged_policy == "warn" and not self._warned_unconverged:
            logger.warning(f"Algebraic loop did not settle within {report.iterations} passes "
                           f"at t={t:.6f}; using last values")
            self._warned_unconverged = True

        for handle in compiled.sink_order:
            node = compiled.nodes[handle]
            state.outputs[handle] = node.impl.output(t, node.gather_inputs(state.outputs), node.payload,
                                                     state.persistent[handle], dt)
            state.settled[handle] = True

        outputs = {name: float(state.outputs[compiled.output_handles[name]])
                   for name in compiled.output_names}
        traces = {key: float(state.outputs[handle]) for handle, key in self._trace_keys.items()}

        for node in compiled.nodes:
            node.impl.update(t, node.gather_inputs(state.outputs), node.payload,
                             state.persistent[node.handle], dt)

        state.time = t + dt
        state.tick += 1
        return TickResult(time=t, outputs=outputs, converged=report.converged,
                          iterations=report.iterations, traces=traces)

    def run(self, duration: Optional[float] = None, inputs=None,
            callback: Optional[TickCallback] = None) -> SimulationResult:
        """
        Run from t = 0 while ``t <= duration``.

        Args:
            duration: Run length in seconds, defaults to the diagram's runtime
            inputs: InputSeries replayed with step interpolation, or None
            callback: Called with (time, outputs) after each tick

        Returns:
            SimulationResult
        """
        duration = self.compiled.runtime if duration is None else float(duration)
        self.initialize()

        times: List[float] = []
        outputs: Dict[str, List[float]] = {name: [] for name in self.compiled.output_names}
        traces: Dict[str, List[float]] = {key: [] for key in self.trace_names}
        unconverged = 0

        while self.state.time <= duration + TIME_TOLERANCE:
            external = inputs.sample(self.state.time) if inputs is not None else None
            tick = self.step(external)
            times.append(tick.time)
            for name, value in tick.outputs.items():
                outputs[name].append(value)
            for key, value in tick.traces.items():
                traces[key].append(value)
            if not tick.converged:
                unconverged += 1
            if callback is not None:
                callback(tick.time, tick.outputs)

        logger.info(f"Simulated {len(times)} ticks (duration {duration}, dt {self.dt})")
        if unconverged:
            logger.debug(f"{unconverged} ticks ended with an unsettled algebraic loop")
        return SimulationResult(
            times=np.array(times),
            outputs={name: np.array(values) for name, values in outputs.items()},
            traces={key: np.array(values) for key, values in traces.items()},
            unconverged_ticks=unconverged,
        )
