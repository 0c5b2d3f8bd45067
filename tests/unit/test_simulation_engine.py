import logging
import math

import numpy as np
import pytest


@pytest.mark.unit
class TestSimulationEngine:
    """Tests for the tick loop."""

    def test_constant_gain(self, builder, config):
        from diagsim.engine import SimulationEngine
        src = builder.add_block("constant", value=2.0)
        k = builder.add_block("gain", gain=3.0)
        out = builder.add_block("labelSink", name="y")
        builder.chain(src, k, out)
        result = SimulationEngine(builder.build(), config).run()
        assert result.output_names == ["y"]
        assert len(result.times) == 101
        assert np.all(result.outputs["y"] == 6.0)
        assert result.unconverged_ticks == 0

    def test_duration_override(self, builder, config):
        from diagsim.engine import SimulationEngine
        builder.add_block("constant")
        result = SimulationEngine(builder.build(), config).run(duration=0.05)
        assert len(result.times) == 6
        assert result.times[-1] == pytest.approx(0.05)

    def test_step_advances_time(self, builder, config):
        from diagsim.engine import SimulationEngine
        src = builder.add_block("ramp", slope=1.0)
        out = builder.add_block("labelSink", name="y")
        builder.connect(src, out)
        engine = SimulationEngine(builder.build(), config)
        first = engine.step()
        second = engine.step()
        assert (first.time, first.outputs["y"]) == (0.0, 0.0)
        assert second.time == pytest.approx(0.01)
        assert second.outputs["y"] == pytest.approx(0.01)
        assert engine.state.tick == 2
        assert second.converged

    def test_initialize_resets_state(self, builder, config):
        from diagsim.engine import SimulationEngine
        src = builder.add_block("constant", value=1.0)
        integ = builder.add_block("integrator")
        out = builder.add_block("labelSink", name="y")
        builder.chain(src, integ, out)
        engine = SimulationEngine(builder.build(), config)
        first = engine.run(duration=0.1)
        second = engine.run(duration=0.1)
        np.testing.assert_array_equal(first.outputs["y"], second.outputs["y"])

    def test_memory_block_breaks_feedback(self, builder, config):
        """x' = -x through an integrator in a label-free loop settles every tick."""
        from diagsim.engine import SimulationEngine
        integ = builder.add_block("integrator", initial=1.0)
        neg = builder.add_block("gain", gain=-1.0)
        out = builder.add_block("labelSink", name="x")
        builder.chain(integ, neg, integ)
        builder.connect(integ, out)
        result = SimulationEngine(builder.build(), config).run()
        assert result.outputs["x"][-1] == pytest.approx((1 - 0.01) ** 100)
        assert result.unconverged_ticks == 0

    def test_external_inputs(self, builder, config):
        from diagsim.engine import SimulationEngine
        from diagsim.services import InputSeries
        src = builder.add_block("labelSource", name="u")
        k = builder.add_block("gain", gain=2.0)
        out = builder.add_block("labelSink", name="y")
        builder.chain(src, k, out)
        inputs = InputSeries([0.0, 0.05], {"u": [1.0, 3.0]})
        result = SimulationEngine(builder.build(), config).run(duration=0.1, inputs=inputs)
        assert list(result.outputs["y"]) == [2.0] * 5 + [6.0] * 6

    def test_missing_external_input_reads_zero(self, builder, config):
        from diagsim.engine import SimulationEngine
        src = builder.add_block("labelSource", name="u")
        out = builder.add_block("labelSink", name="y")
        builder.connect(src, out)
        tick = SimulationEngine(builder.build(), config).step({"other": 5.0})
        assert tick.outputs == {"y": 0.0}

    def test_label_bus_carries_current_tick(self, builder, config):
        """A label source reads its sink's driver within the same tick."""
        from diagsim.engine import SimulationEngine
        src = builder.add_block("ramp", slope=1.0)
        sink = builder.add_block("labelSink", name="r")
        mirror = builder.add_block("labelSource", name="r")
        k = builder.add_block("gain", gain=10.0)
        out = builder.add_block("labelSink", name="y")
        builder.connect(src, sink).chain(mirror, k, out)
        result = SimulationEngine(builder.build(), config).run(duration=0.05)
        np.testing.assert_allclose(result.outputs["y"], 10.0 * result.times)

    def test_duplicate_sink_names_publish_last(self, builder, config):
        from diagsim.engine import SimulationEngine
        c1 = builder.add_block("constant", value=1.0)
        c2 = builder.add_block("constant", value=2.0)
        y1 = builder.add_block("labelSink", name="y")
        y2 = builder.add_block("labelSink", name="y")
        fb = builder.add_block("labelSource", name="y")
        mirror = builder.add_block("labelSink", name="mirror")
        builder.connect(c1, y1).connect(c2, y2).connect(fb, mirror)
        tick = SimulationEngine(builder.build(), config).step()
        assert tick.outputs == {"y": 2.0, "mirror": 2.0}

    def test_unconverged_warning_logged_once(self, builder, config, caplog):
        from diagsim.engine import SimulationEngine
        config.set("engine.unconverged_policy", "warn")
        config.set("engine.max_algebraic_iterations", 5)
        mirror = builder.add_block("labelSource", name="y")
        one = builder.add_block("constant", value=1.0)
        total = builder.add_block("sum", signs=[1, 1])
        half = builder.add_block("gain", gain=0.5)
        out = builder.add_block("labelSink", name="y")
        builder.connect(mirror, total, 0).connect(one, total, 1).chain(total, half, out)
        with caplog.at_level(logging.WARNING, logger="diagsim.engine.simulation_engine"):
            result = SimulationEngine(builder.build(), config).run(duration=0.1)
        assert result.unconverged_ticks == 11
        assert caplog.text.count("did not settle") == 1
        assert result.outputs["y"][0] == pytest.approx(1.0 - 0.5 ** 5)

    def test_ignore_policy_is_silent(self, builder, config, caplog):
        from diagsim.engine import SimulationEngine
        config.set("engine.max_algebraic_iterations", 2)
        mirror = builder.add_block("labelSource", name="y")
        k = builder.add_block("gain", gain=0.5)
        bias = builder.add_block("constant", value=1.0)
        total = builder.add_block("sum", signs=[1, 1])
        out = builder.add_block("labelSink", name="y")
        builder.chain(mirror, k).connect(k, total, 0).connect(bias, total, 1).connect(total, out)
        with caplog.at_level(logging.WARNING):
            result = SimulationEngine(builder.build(), config).run(duration=0.02)
        assert result.unconverged_ticks == 3
        assert "did not settle" not in caplog.text

    def test_traces(self, builder, config):
        """Scopes and file sinks are recorded; clashing labels get the block id appended."""
        from diagsim.engine import SimulationEngine
        src = builder.add_block("constant", value=4.0)
        builder.add_block("scope", block_id="s1", labels="x")
        builder.add_block("scope", block_id="s2", labels="x")
        builder.add_block("fileSink", block_id="log")
        for target in ("s1", "s2", "log"):
            builder.connect(src, target)
        engine = SimulationEngine(builder.build(), config)
        assert engine.trace_names == ["x", "x_s2", "log"]
        result = engine.run(duration=0.02)
        assert list(result.traces["x_s2"]) == [4.0, 4.0, 4.0]
        assert result.outputs == {}

    def test_callback(self, builder, config):
        from diagsim.engine import SimulationEngine
        src = builder.add_block("constant", value=1.0)
        out = builder.add_block("labelSink", name="y")
        builder.connect(src, out)
        seen = []
        SimulationEngine(builder.build(), config).run(
            duration=0.02, callback=lambda t, outputs: seen.append((t, outputs["y"])))
        assert [v for _, v in seen] == [1.0, 1.0, 1.0]

    def test_accepts_compiled_diagram(self, builder, config):
        from diagsim.engine import SimulationEngine, compile_diagram
        builder.add_block("constant")
        compiled = compile_diagram(builder.build())
        assert SimulationEngine(compiled, config).compiled is compiled

    def test_sine_reference(self, builder, config):
        from diagsim.engine import SimulationEngine
        src = builder.add_block("sine", amp=1.0, freq=1.0, phase=0.0)
        out = builder.add_block("labelSink", name="y")
        builder.connect(src, out)
        result = SimulationEngine(builder.build(), config).run()
        expected = np.sin(2 * math.pi * result.times)
        np.testing.assert_allclose(result.outputs["y"], expected, atol=1e-12)
