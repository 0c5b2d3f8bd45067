"""
Integration tests for the example diagrams.

These tests load every example, validate it and simulate it, and check
the reference scenarios against their closed-form responses.
"""

import math
from pathlib import Path

import numpy as np
import pytest


EXAMPLES_DIR = Path(__file__).parent.parent.parent / "examples" / "diagrams"


def get_example_files():
    """Get list of example diagram files."""
    if not EXAMPLES_DIR.exists():
        return []
    return sorted(p for p in EXAMPLES_DIR.iterdir() if p.suffix in (".json", ".yaml", ".yml"))


def simulate(name, duration=None, inputs=None):
    from diagsim.engine import SimulationEngine
    from diagsim.services import FileService, InputSeries
    engine = SimulationEngine(FileService.load(str(EXAMPLES_DIR / name)))
    series = None
    if inputs is not None:
        series = InputSeries.from_csv(str(EXAMPLES_DIR / inputs), engine.compiled.input_names)
    return engine.run(duration, series)


@pytest.mark.integration
class TestExampleDiagramsLoad:
    """Every example loads, validates without errors and simulates."""

    @pytest.mark.parametrize("example_file", get_example_files(), ids=lambda f: f.name)
    def test_example_validates(self, example_file):
        from diagsim.diagram_validator import DiagramValidator
        from diagsim.services import FileService
        validator = DiagramValidator(FileService.load(str(example_file)))
        validator.validate()
        assert not validator.has_errors()

    @pytest.mark.parametrize("example_file", get_example_files(), ids=lambda f: f.name)
    def test_example_simulates(self, example_file):
        result = simulate(example_file.name, duration=0.5)
        assert len(result.times) > 0
        assert result.outputs, "Example has no named outputs"
        for values in result.outputs.values():
            assert np.all(np.isfinite(values))

    @pytest.mark.parametrize("example_file", get_example_files(), ids=lambda f: f.name)
    def test_example_is_deterministic(self, example_file):
        first = simulate(example_file.name, duration=0.5)
        second = simulate(example_file.name, duration=0.5)
        for name in first.outputs:
            np.testing.assert_array_equal(first.outputs[name], second.outputs[name])


@pytest.mark.integration
class TestReferenceScenarios:
    """Closed-form checks of the reference diagrams."""

    def test_constant_gain(self):
        result = simulate("constant_gain.yaml")
        assert len(result.times) == 101
        assert np.all(result.outputs["y"] == 6.0)

    def test_step_integrator_ramps(self):
        result = simulate("step_integrator.json")
        np.testing.assert_allclose(result.outputs["y"], result.times, atol=1e-9)
        assert result.outputs["y"][-1] == pytest.approx(2.0, abs=1e-9)

    def test_sine_source(self):
        result = simulate("sine_source.yaml")
        expected = np.sin(2 * math.pi * result.times)
        np.testing.assert_allclose(result.outputs["y"], expected, atol=1e-12)
        np.testing.assert_array_equal(result.traces["sine"], result.outputs["y"])

    def test_first_order_tf_step_response(self):
        """3/(s+3) reaches 1 - exp(-3t) with a time constant of 1/3 s."""
        result = simulate("first_order_tf.yaml")
        y = result.outputs["y"]
        assert y[0] == 0.0
        np.testing.assert_allclose(y, 1.0 - np.exp(-3.0 * result.times), atol=1e-6)
        tau_index = int(round((1.0 / 3.0) / 0.01))
        assert y[tau_index] == pytest.approx(1.0 - math.exp(-3.0 * result.times[tau_index]), abs=1e-6)
        assert y[-1] == pytest.approx(1.0, abs=1e-3)

    def test_feedback_loop_tracks_reference(self):
        result = simulate("pid_feedback_loop.yaml")
        y = result.outputs["y"]
        assert np.all(y[result.times < 0.5] == 0.0)
        assert y[-1] == pytest.approx(1.0, abs=0.05)
        assert np.all(np.abs(result.outputs["u"]) <= 5.0)
        assert result.unconverged_ticks == 0

    def test_discrete_filter_timing(self):
        result = simulate("discrete_filter.yaml", duration=0.1)
        sampled = result.outputs["sampled"]
        # held value changes one tick after each sample instant
        assert np.all(sampled[:11] == 0.0)
        assert np.all(sampled[11:21] == sampled[11])
        assert sampled[11] == pytest.approx(math.sin(4 * math.pi * result.times[10]), abs=1e-12)
        delayed = result.outputs["delayed"]
        filtered = result.outputs["filtered"]
        assert np.max(np.abs(filtered)) > 0.0
        assert np.all(delayed[:31] == 0.0)

    def test_external_input_replay(self):
        result = simulate("noisy_input.yaml", inputs="inputs.csv")
        y = result.outputs["y"]
        before = y[result.times < 0.5]
        assert np.all(np.abs(before) < 0.2)
        assert y[result.times >= 1.49][0] == pytest.approx(1.0, abs=0.2)
        assert y[-1] < 0.0
        assert len(result.traces["log"]) == len(result.times)

    def test_all_blocks_covers_every_kind(self):
        from blocks.block_kind import BlockKind
        from diagsim.services import FileService
        diagram = FileService.load(str(EXAMPLES_DIR / "all_blocks.yaml"))
        assert {block.kind for block in diagram.blocks} == set(BlockKind)

    def test_all_blocks_edge_cases(self):
        result = simulate("all_blocks.yaml", duration=1.0)
        # the label bus loop halves its error each pass and stops at the limit
        assert result.unconverged_ticks == len(result.times)
        np.testing.assert_allclose(result.outputs["z"], 1.0, atol=1e-12)
        assert np.all(result.outputs["unsupported"] == 0.0)
        # the later sink of a repeated name publishes it
        np.testing.assert_array_equal(result.outputs["dup"], (result.times >= 0.2).astype(float))
        # (s + 2)/(s + 3) has D = 1, so the step shows up at once
        assert result.outputs["lead"][result.times >= 0.2][0] == pytest.approx(1.0)
