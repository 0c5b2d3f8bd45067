import io

import numpy as np
import pytest


@pytest.mark.unit
class TestInputSeries:
    """Tests for step-held input replay."""

    def test_sample_holds_last_row(self):
        from diagsim.services import InputSeries
        series = InputSeries([0.0, 0.5, 1.5], {"u": [0.0, 1.0, -1.0]})
        assert series.sample(0.0) == {"u": 0.0}
        assert series.sample(0.49) == {"u": 0.0}
        assert series.sample(0.5) == {"u": 1.0}
        assert series.sample(1.0) == {"u": 1.0}
        assert series.sample(9.0) == {"u": -1.0}

    def test_accumulated_time_matches_row(self):
        """A row at t=0.3 applies at the tick whose accumulated time is 0.30000000000000004."""
        from diagsim.services import InputSeries
        series = InputSeries([0.0, 0.3], {"u": [0.0, 1.0]})
        t = 0.1 + 0.1 + 0.1
        assert series.sample(t) == {"u": 1.0}
        assert series.sample(0.29999999) == {"u": 0.0}

    def test_before_first_row_uses_first_row(self):
        from diagsim.services import InputSeries
        series = InputSeries([1.0, 2.0], {"u": [5.0, 6.0]})
        assert series.sample(0.0) == {"u": 5.0}

    def test_empty(self):
        from diagsim.services import InputSeries
        assert InputSeries([], {}).sample(1.0) == {}

    def test_length_mismatch(self):
        from diagsim.services import InputSeries
        with pytest.raises(ValueError):
            InputSeries([0.0, 1.0], {"u": [1.0]})

    def test_from_csv(self, tmp_path):
        """Only requested names are kept; missing and blank cells read 0.0."""
        from diagsim.services import InputSeries
        path = tmp_path / "in.csv"
        path.write_text("time,u,extra\n0,1.5,9\n1,,9\n2,abc,9\n")
        series = InputSeries.from_csv(str(path), ["u", "w"])
        assert series.times == [0.0, 1.0, 2.0]
        assert series.names == ["u", "w"]
        assert series.columns["u"] == [1.5, 0.0, 0.0]
        assert series.columns["w"] == [0.0, 0.0, 0.0]

    def test_from_csv_keeps_all_columns(self, tmp_path):
        from diagsim.services import InputSeries
        path = tmp_path / "in.csv"
        path.write_text("t,a,b\n0,1,2\n")
        assert InputSeries.from_csv(str(path)).names == ["a", "b"]

    def test_missing_time_column(self, tmp_path):
        from diagsim.exceptions import InputFileError
        from diagsim.services import InputSeries
        path = tmp_path / "in.csv"
        path.write_text("x,u\n0,1\n")
        with pytest.raises(InputFileError, match="'t' or 'time'"):
            InputSeries.from_csv(str(path))

    def test_missing_file(self, tmp_path):
        from diagsim.exceptions import InputFileError
        from diagsim.services import InputSeries
        with pytest.raises(InputFileError):
            InputSeries.from_csv(str(tmp_path / "nope.csv"))


class _Result:
    def __init__(self):
        self.times = np.array([0.0, 0.01])
        self.outputs = {"y": np.array([1.0, 2.0 / 3.0])}
        self.traces = {"scope1": np.array([-0.5, 0.25])}


@pytest.mark.unit
class TestCsvOutput:
    def test_write_output_csv(self):
        from diagsim.services import write_output_csv
        stream = io.StringIO()
        write_output_csv(_Result(), stream)
        assert stream.getvalue() == "t,y\n0.000000,1.000000\n0.010000,0.666667\n"

    def test_no_outputs_header_is_time_only(self):
        from diagsim.services import write_output_csv
        result = _Result()
        result.outputs = {}
        stream = io.StringIO()
        write_output_csv(result, stream)
        assert stream.getvalue() == "t\n0.000000\n0.010000\n"

    def test_write_trace_csv(self):
        from diagsim.services import write_trace_csv
        stream = io.StringIO()
        write_trace_csv(_Result(), stream)
        assert stream.getvalue().splitlines() == ["t,scope1", "0.000000,-0.500000", "0.010000,0.250000"]
