"""
Engine package - compilation, algebraic resolution and stepping.
"""

from diagsim.engine.algebraic import AlgebraicResolver, ResolutionReport, run_pass
from diagsim.engine.execution_state import ExecutionState
from diagsim.engine.simulation_engine import SimulationEngine, SimulationResult, TickResult
from diagsim.engine.system_compiler import CompiledDiagram, CompiledNode, compile_diagram

__all__ = [
    'AlgebraicResolver',
    'CompiledDiagram',
    'CompiledNode',
    'ExecutionState',
    'ResolutionReport',
    'SimulationEngine',
    'SimulationResult',
    'TickResult',
    'compile_diagram',
    'run_pass',
]
