import math

import pytest

from blocks.block_kind import BlockKind, BlockPhase


@pytest.mark.unit
class TestSourceBlocks:
    """Tests for blocks driven only by time."""

    def test_constant(self, run_block):
        assert run_block(BlockKind.CONSTANT, {"value": "2*k"}, variables={"k": 1.5}, ticks=3) == [3.0] * 3

    def test_step(self, run_block):
        """Output switches from 0 to 1 at the first tick with t >= stepTime."""
        values = run_block(BlockKind.STEP, {"stepTime": 0.45}, ticks=8, dt=0.1)
        assert values == [0.0] * 5 + [1.0] * 3

    def test_step_at_zero(self, run_block):
        assert run_block(BlockKind.STEP, {"stepTime": 0.0}, ticks=2) == [1.0, 1.0]

    def test_ramp(self, run_block):
        values = run_block(BlockKind.RAMP, {"slope": 2.0, "start": 0.15}, ticks=4, dt=0.1)
        assert values == pytest.approx([0.0, 0.0, 0.1, 0.3])

    def test_impulse(self, run_block):
        """An impulse of area amp lasts one tick with height amp/dt."""
        values = run_block(BlockKind.IMPULSE, {"time": 0.0, "amp": 1.0}, ticks=3, dt=0.01)
        assert values[0] == pytest.approx(100.0)
        assert values[1:] == [0.0, 0.0]

    def test_sine(self, run_block):
        values = run_block(BlockKind.SINE, {"amp": 2.0, "freq": 1.0, "phase": 0.0}, ticks=3, dt=0.25)
        assert values == pytest.approx([0.0, 2.0, 0.0], abs=1e-12)

    def test_sine_phase(self, run_block):
        values = run_block(BlockKind.SINE, {"phase": "pi/2"}, ticks=1)
        assert values[0] == pytest.approx(1.0)

    def test_chirp_sweep_rate(self):
        """The payload carries the sweep rate k = (f1 - f0) / t1."""
        from diagsim.block_loader import get_block
        from diagsim.workspace import Workspace
        block = get_block(BlockKind.CHIRP)
        payload = block.resolve_params({"f0": 1.0, "f1": 5.0, "t1": 2.0}, Workspace(), 0.01)
        assert payload["k"] == pytest.approx(2.0)
        assert block.output(0.5, {}, payload, {}, 0.01) == pytest.approx(
            math.sin(2 * math.pi * (0.5 + 0.5 * 2.0 * 0.25)))

    def test_chirp_zero_duration(self):
        from diagsim.block_loader import get_block
        from diagsim.workspace import Workspace
        payload = get_block(BlockKind.CHIRP).resolve_params({"t1": 0}, Workspace(), 0.01)
        assert payload["t1"] == 1.0

    def test_noise_is_reproducible(self, run_block):
        """The same seed gives the same sequence, bounded by amp."""
        first = run_block(BlockKind.NOISE, {"amp": 0.5, "seed": 7}, ticks=50)
        second = run_block(BlockKind.NOISE, {"amp": 0.5, "seed": 7}, ticks=50)
        assert first == second
        assert all(-0.5 <= v <= 0.5 for v in first)
        assert len(set(first)) > 40

    def test_noise_first_value(self, run_block):
        from blocks.noise import LCG_MAX, lcg_next
        value = run_block(BlockKind.NOISE, {"amp": 1.0, "seed": 1}, ticks=1)[0]
        assert value == pytest.approx(lcg_next(1) / LCG_MAX * 2.0 - 1.0)
        assert lcg_next(1) == 1015568748

    def test_noise_seed_masked(self):
        from diagsim.block_loader import get_block
        from diagsim.workspace import Workspace
        payload = get_block(BlockKind.NOISE).resolve_params({"seed": -1}, Workspace(), 0.01)
        assert payload["seed"] == 0xFFFFFFFF

    @pytest.mark.parametrize("kind", [
        BlockKind.CONSTANT, BlockKind.STEP, BlockKind.RAMP, BlockKind.IMPULSE,
        BlockKind.SINE, BlockKind.CHIRP, BlockKind.NOISE,
    ])
    def test_sources_have_no_inputs(self, kind):
        from diagsim.block_loader import get_block
        block = get_block(kind)
        assert block.inputs == []
        assert block.b_type == BlockPhase.SOURCE
        assert block.category == "Sources"
