import numpy as np
import pytest


def _result(times, outputs, traces=None):
    from diagsim.engine import SimulationResult
    return SimulationResult(
        times=np.asarray(times, dtype=float),
        outputs={k: np.asarray(v, dtype=float) for k, v in outputs.items()},
        traces={k: np.asarray(v, dtype=float) for k, v in (traces or {}).items()},
    )


@pytest.mark.unit
class TestPlotTraces:

    def test_writes_image(self, tmp_path):
        from diagsim.plotting import plot_traces
        result = _result([0.0, 0.1, 0.2], {"y": [0.0, 1.0, 2.0]}, {"view": [1.0, 1.0, 1.0]})
        path = tmp_path / "plot.png"
        assert plot_traces(result, str(path)) is True
        assert path.stat().st_size > 0

    def test_nothing_to_plot(self, tmp_path):
        from diagsim.plotting import plot_traces
        path = tmp_path / "empty.png"
        assert plot_traces(_result([0.0, 0.1], {}), str(path)) is False
        assert not path.exists()

    def test_unknown_names_are_skipped(self, tmp_path):
        from diagsim.plotting import plot_traces
        result = _result([0.0, 0.1], {"y": [0.0, 1.0]})
        assert plot_traces(result, str(tmp_path / "p.png"), names=["missing"]) is False

    def test_trace_name_clash(self):
        from diagsim.plotting.scope_plotter import _series
        result = _result([0.0], {"y": [1.0]}, {"y": [2.0]})
        series = _series(result, include_traces=True)
        assert list(series) == ["y", "y (scope)"]
        assert list(_series(result, include_traces=False)) == ["y"]
