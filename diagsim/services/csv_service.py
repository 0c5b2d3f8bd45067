"""
CSV input replay and output writing.

Input files have a ``t`` (or ``time``) column and one column per named
input. Values are step-held: at time ``t`` the most recent row with
``time <= t`` applies. Output files start with ``t,<names...>`` and every
value is written with ``%.6f``.
"""

import bisect
import csv
import logging
from typing import Dict, List, Optional, Sequence, TextIO

from diagsim.exceptions import InputFileError

logger = logging.getLogger(__name__)

TIME_COLUMNS = ("t", "time")
TIME_TOLERANCE = 1e-9


def _cell_value(text: Optional[str]) -> float:
    if text is None or not str(text).strip():
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0


class InputSeries:
    """Step-interpolated external input samples."""

    def __init__(self, times: Sequence[float], columns: Dict[str, Sequence[float]]):
        self.times: List[float] = [float(t) for t in times]
        self.columns: Dict[str, List[float]] = {name: [float(v) for v in values]
                                                for name, values in columns.items()}
        for name, values in self.columns.items():
            if len(values) != len(self.times):
                raise ValueError(f"column '{name}' has {len(values)} values for {len(self.times)} times")
        if any(b < a for a, b in zip(self.times, self.times[1:])):
            logger.warning("Input times are not ascending; rows out of order are never selected")

    @classmethod
    def from_csv(cls, filepath: str, names: Optional[Sequence[str]] = None) -> "InputSeries":
        """
        Read an input CSV.

        Args:
            filepath: CSV file with a header row
            names: Input names to keep. Missing columns read 0.0 and columns
                   not listed are ignored. ``None`` keeps every column.

        Raises:
            InputFileError: if the file cannot be read or has no time column.
        """
        try:
            with open(filepath, newline='', encoding='utf-8') as fp:
                reader = csv.DictReader(fp)
                header = reader.fieldnames or []
                time_column = next((c for c in TIME_COLUMNS if c in header), None)
                if time_column is None:
                    raise InputFileError(filepath, "missing 't' or 'time' column")
                wanted = list(names) if names is not None else [c for c in header if c != time_column]
                times: List[float] = []
                columns: Dict[str, List[float]] = {name: [] for name in wanted}
                for row in reader:
                    times.append(_cell_value(row.get(time_column)))
                    for name in wanted:
                        columns[name].append(_cell_value(row.get(name)))
        except OSError as e:
            raise InputFileError(filepath, f"cannot read file: {e}") from e
        except csv.Error as e:
            raise InputFileError(filepath, f"malformed CSV: {e}") from e

        ignored = [c for c in header if c != time_column and c not in columns]
        if ignored:
            logger.debug(f"Ignoring input columns {ignored}")
        logger.info(f"Loaded {len(times)} input samples from {filepath}")
        return cls(times, columns)

    @property
    def names(self) -> List[str]:
        return list(self.columns)

    def sample(self, t: float) -> Dict[str, float]:
        """Values of the most recent row at or before ``t`` (first row before it starts)."""
        if not self.times:
            return {}
        idx = bisect.bisect_right(self.times, t + TIME_TOLERANCE) - 1
        idx = max(idx, 0)
        return {name: values[idx] for name, values in self.columns.items()}


def format_row(t: float, values: Sequence[float]) -> List[str]:
    return [f"{t:.6f}"] + [f"{v:.6f}" for v in values]


def write_series_csv(times: Sequence[float], series: Dict[str, Sequence[float]], stream: TextIO) -> None:
    """Write ``t,<names...>`` followed by one %.6f row per time."""
    names = list(series)
    writer = csv.writer(stream, lineterminator='\n')
    writer.writerow(["t"] + names)
    for tick, t in enumerate(times):
        writer.writerow(format_row(t, [series[name][tick] for name in names]))


def write_output_csv(result, stream: TextIO, names: Optional[Sequence[str]] = None) -> None:
    """
    Write the named outputs of a SimulationResult as CSV.

    Args:
        result: SimulationResult with ``times`` and ``outputs``
        stream: Text stream opened with ``newline=''``
        names: Output columns, defaults to every output of the result
    """
    names = list(result.outputs) if names is None else list(names)
    write_series_csv(result.times, {name: result.outputs[name] for name in names}, stream)


def write_trace_csv(result, stream: TextIO) -> None:
    """Write the scope and file-sink traces of a SimulationResult as CSV."""
    write_series_csv(result.times, result.traces, stream)
