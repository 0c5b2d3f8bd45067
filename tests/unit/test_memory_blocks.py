import math

import pytest

from blocks.block_kind import BlockKind, BlockPhase


def _ramp_input(dt):
    """Input whose value at tick k is 1 + k*dt."""
    return lambda t: {0: 1.0 + t}


@pytest.mark.unit
class TestContinuousBlocks:
    """Blocks whose output comes from state carried over from the previous tick."""

    def test_integrator_forward_euler(self, run_block):
        values = run_block(BlockKind.INTEGRATOR, {"initial": 1.0}, {0: 2.0}, ticks=3, dt=0.1)
        assert values == pytest.approx([1.0, 1.2, 1.4])

    def test_derivative(self, run_block):
        """The output lags one tick behind the backward difference."""
        values = run_block(BlockKind.DERIVATIVE, inputs=lambda t: {0: 2.0 * t}, ticks=4, dt=0.1)
        assert values == pytest.approx([0.0, 0.0, 2.0, 2.0])

    def test_rate_limiter(self, run_block):
        rising = run_block(BlockKind.RATE, {"rise": 1.0, "fall": 2.0}, {0: 10.0}, ticks=3, dt=0.1)
        falling = run_block(BlockKind.RATE, {"rise": 1.0, "fall": 2.0}, {0: -10.0}, ticks=3, dt=0.1)
        assert rising == pytest.approx([0.0, 0.1, 0.2])
        assert falling == pytest.approx([0.0, -0.2, -0.4])

    def test_backlash(self, run_block):
        """The output only moves once the input leaves the dead band."""
        sequence = [2.0, 1.2, 1.2, 0.5, 0.5]
        values = run_block(BlockKind.BACKLASH, {"width": 1.0},
                           lambda t: {0: sequence[int(round(t / 0.1))]}, ticks=5, dt=0.1)
        assert values == pytest.approx([0.0, 1.5, 1.5, 1.5, 1.0])

    def test_low_pass_filter(self, run_block):
        values = run_block(BlockKind.LPF, {"cutoff": 1.0 / (2.0 * math.pi)}, {0: 1.0}, ticks=3, dt=0.1)
        assert values == pytest.approx([0.0, 0.1, 0.19])

    def test_high_pass_filter(self, run_block):
        values = run_block(BlockKind.HPF, {"cutoff": 1.0 / (2.0 * math.pi)}, {0: 1.0}, ticks=3, dt=0.1)
        assert values == pytest.approx([0.0, 0.9, 0.81])

    def test_negative_cutoff_clamped(self):
        from diagsim.block_loader import get_block
        from diagsim.workspace import Workspace
        payload = get_block(BlockKind.LPF).resolve_params({"cutoff": -3.0}, Workspace(), 0.01)
        assert payload["wc"] == 0.0

    def test_pid(self, run_block):
        values = run_block(BlockKind.PID, {"kp": 2.0, "ki": 1.0, "kd": 0.5}, {0: 1.0}, ticks=3, dt=0.1)
        assert values == pytest.approx([0.0, 7.1, 2.2])

    def test_state_space(self, run_block):
        values = run_block(BlockKind.STATE_SPACE, {"A": -1.0, "B": 1.0, "C": 1.0, "D": 0.0},
                           {0: 1.0}, ticks=3, dt=0.1)
        assert values == pytest.approx([0.0, 0.1, 0.19])


@pytest.mark.unit
class TestTransferFunctionBlock:
    """Tests for the continuous transfer function block."""

    def test_first_order_step_response(self, run_block):
        """3/(s+3) approaches 1 with time constant 1/3 s."""
        values = run_block(BlockKind.TF, {"num": [3], "den": [1, 3]}, {0: 1.0}, ticks=101, dt=0.01)
        assert values[0] == 0.0
        assert values[100] == pytest.approx(1.0 - math.exp(-3.0), abs=1e-6)

    def test_phases(self):
        """Strictly proper TFs are memory blocks; feedthrough and gains are algebraic."""
        from diagsim.block_loader import get_block
        from diagsim.workspace import Workspace
        block = get_block(BlockKind.TF)

        def phase(num, den):
            return block.phase(block.resolve_params({"num": num, "den": den}, Workspace(), 0.01))

        assert phase([1], [1, 1]) == BlockPhase.MEMORY
        assert phase([1, 1], [1, 2]) == BlockPhase.ALGEBRAIC
        assert phase([2], [1]) == BlockPhase.ALGEBRAIC
        assert phase([1], [0]) == BlockPhase.SOURCE

    def test_zero_denominator_outputs_zero(self, run_block):
        assert run_block(BlockKind.TF, {"num": [1], "den": [0, 0]}, {0: 1.0}, ticks=3) == [0.0] * 3

    def test_feedthrough(self, run_block):
        """(s+1)/(s+2) starts at D*u = 1."""
        values = run_block(BlockKind.TF, {"num": [1, 1], "den": [1, 2]}, {0: 1.0}, ticks=1)
        assert values[0] == pytest.approx(1.0)


@pytest.mark.unit
class TestTransportDelay:
    """Tests for the whole-tick transport delay."""

    def test_delays_by_rounded_ticks(self, run_block):
        values = run_block(BlockKind.DELAY, {"delay": 0.03}, _ramp_input(0.01), ticks=6, dt=0.01)
        assert values == pytest.approx([0.0, 0.0, 0.0, 1.0, 1.01, 1.02])

    @pytest.mark.parametrize("delay,dt,expected", [
        (0.1, 0.01, 10),
        (0.0, 0.01, 1),
        (0.004, 0.01, 1),
        (0.026, 0.01, 3),
        (1.0, 0.0, 1),
    ])
    def test_delay_steps(self, delay, dt, expected):
        from blocks.transport_delay import delay_steps
        assert delay_steps(delay, dt) == expected

    def test_buffer_size(self):
        from diagsim.block_loader import get_block
        from diagsim.workspace import Workspace
        block = get_block(BlockKind.DELAY)
        payload = block.resolve_params({"delay": 0.05}, Workspace(), 0.01)
        state = block.init_state(payload, 0.01)
        assert payload["steps"] == 5
        assert len(state["buffer"]) == 6


@pytest.mark.unit
class TestSampledBlocks:
    """Blocks clocked at their own sample period; the first sample is at t=0."""

    def test_zero_order_hold(self, run_block):
        values = run_block(BlockKind.ZOH, {"ts": 0.3}, lambda t: {0: t}, ticks=8, dt=0.1)
        assert values == pytest.approx([0.0, 0.0, 0.0, 0.0, 0.3, 0.3, 0.3, 0.6])

    def test_zero_order_hold_inherits_dt(self, run_block):
        values = run_block(BlockKind.ZOH, {"ts": 0}, lambda t: {0: t}, ticks=3, dt=0.1)
        assert values == pytest.approx([0.0, 0.0, 0.1])

    def test_first_order_hold_extrapolates(self, run_block):
        values = run_block(BlockKind.FOH, {"ts": 0.1}, lambda t: {0: 2.0 * t}, ticks=4, dt=0.1)
        assert values == pytest.approx([0.0, 0.0, 0.4, 0.6])

    def test_discrete_delay(self, run_block):
        """Two sample delay: the value sampled at k appears at k+2."""
        values = run_block(BlockKind.DDELAY, {"steps": 2, "ts": 0.1}, _ramp_input(0.1), ticks=5, dt=0.1)
        assert values == pytest.approx([0.0, 0.0, 1.0, 1.1, 1.2])

    def test_discrete_delay_clamps(self):
        from diagsim.block_loader import get_block
        from diagsim.workspace import Workspace
        payload = get_block(BlockKind.DDELAY).resolve_params({"steps": 0, "ts": 0}, Workspace(), 0.01)
        assert payload["steps"] == 1
        assert payload["ts"] == 0.1

    def test_discrete_transfer_function(self, run_block):
        """0.2/(z - 0.8) driven by a unit step, sampled every tick."""
        values = run_block(BlockKind.DTF, {"num": [0.2], "den": [1, -0.8], "ts": 0.1},
                           {0: 1.0}, ticks=4, dt=0.1)
        assert values == pytest.approx([0.0, 0.2, 0.36, 0.488])

    def test_discrete_transfer_function_slower_clock(self, run_block):
        """With ts = 2*dt the output changes every other tick."""
        values = run_block(BlockKind.DTF, {"num": [1.0], "den": [1.0], "ts": 0.2},
                           lambda t: {0: t}, ticks=5, dt=0.1)
        assert values == pytest.approx([0.0, 0.0, 0.0, 0.2, 0.2])

    def test_discrete_state_space(self, run_block):
        values = run_block(BlockKind.DSTATE_SPACE, {"A": 0.5, "B": 1.0, "C": 1.0, "D": 0.0},
                           {0: 1.0}, ticks=3, dt=0.1)
        assert values == pytest.approx([0.0, 1.0, 1.5])
