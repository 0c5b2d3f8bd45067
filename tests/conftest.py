"""
Pytest configuration and shared fixtures for diagsim tests.
"""

import logging
import shutil
import sys
from pathlib import Path

# Add parent directory to path so we can import diagsim and blocks
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest


@pytest.fixture(autouse=True)
def _propagating_loggers():
    """Undo logging configuration done by CLI runs so caplog keeps working."""
    yield
    for name in ("diagsim", "blocks"):
        logging.getLogger(name).propagate = True


@pytest.fixture
def builder():
    """Fresh DiagramBuilder with the default runtime and step."""
    from diagsim.diagram_builder import DiagramBuilder
    return DiagramBuilder(runtime=1.0, dt=0.01)


@pytest.fixture
def config():
    """Configuration with built-in defaults, independent of config files."""
    from diagsim.config_manager import ConfigManager
    return ConfigManager(str(project_root / "config" / "default_config.json"))


@pytest.fixture
def workspace():
    from diagsim.workspace import Workspace
    return Workspace({"k": 2.0, "\\alpha": 0.5})


@pytest.fixture
def examples_dir():
    return project_root / "examples" / "diagrams"


@pytest.fixture
def c_compiler():
    """Path to a C compiler, skipping the test when none is installed."""
    for name in ("cc", "gcc", "clang"):
        path = shutil.which(name)
        if path:
            return path
    pytest.skip("no C compiler available")


def _run_block(kind, params=None, inputs=None, ticks=1, dt=0.01, variables=None):
    """
    Drive one block directly through output/update for ``ticks`` ticks.

    ``inputs`` is a callable t -> {port: value} or a constant dict.
    Returns the list of outputs, one per tick.
    """
    from diagsim.block_loader import get_block
    from diagsim.workspace import Workspace

    block = get_block(kind)
    payload = block.resolve_params(params or {}, Workspace(variables), dt)
    state = block.init_state(payload, dt)
    values = []
    t = 0.0
    for _ in range(ticks):
        current = inputs(t) if callable(inputs) else (inputs or {})
        values.append(block.output(t, current, payload, state, dt))
        block.update(t, current, payload, state, dt)
        t += dt
    return values

@pytest.fixture
def run_block():
    """Callable driving a single block, see ``_run_block``."""
    return _run_block

