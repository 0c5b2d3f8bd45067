"""
Cross-backend equivalence.

For every example diagram the interpreter, the generated Python program and
the compiled C program must produce the same output series within 1e-3 at
every shared timestamp.
"""

import csv
import subprocess
import sys
from pathlib import Path

import numpy as np
import pytest


EXAMPLES_DIR = Path(__file__).parent.parent.parent / "examples" / "diagrams"
TOLERANCE = 1e-3

# Diagrams driven by external inputs, with the CSV they replay.
INPUT_FILES = {"noisy_input.yaml": "inputs.csv"}


def get_example_files():
    if not EXAMPLES_DIR.exists():
        return []
    return sorted(p for p in EXAMPLES_DIR.iterdir() if p.suffix in (".json", ".yaml", ".yml"))


def read_csv_series(path):
    """Parse a generated program's CSV into (times, {name: values})."""
    with open(path, newline="") as f:
        rows = list(csv.reader(f))
    header, data = rows[0], np.array(rows[1:], dtype=float).reshape(-1, len(rows[0]))
    assert header[0] == "t"
    return data[:, 0], {name: data[:, i + 1] for i, name in enumerate(header[1:])}


def interpret(example_file):
    from diagsim.engine import SimulationEngine
    from diagsim.services import FileService, InputSeries
    engine = SimulationEngine(FileService.load(str(example_file)))
    inputs = None
    if example_file.name in INPUT_FILES:
        inputs = InputSeries.from_csv(str(EXAMPLES_DIR / INPUT_FILES[example_file.name]),
                                      engine.compiled.input_names)
    return engine.run(None, inputs)


def program_args(example_file, output):
    args = ["-o", str(output)]
    if example_file.name in INPUT_FILES:
        args += ["-i", str(EXAMPLES_DIR / INPUT_FILES[example_file.name])]
    return args


def assert_series_match(result, times, series):
    assert len(times) == len(result.times)
    np.testing.assert_allclose(times, result.times, atol=1e-6)
    assert list(series) == result.output_names
    for name, values in series.items():
        np.testing.assert_allclose(values, result.outputs[name], atol=TOLERANCE, rtol=0,
                                   err_msg=f"output '{name}' differs")


@pytest.mark.integration
class TestGeneratedPython:
    """The generated Python program agrees with the interpreter."""

    @pytest.mark.parametrize("example_file", get_example_files(), ids=lambda f: f.name)
    def test_matches_interpreter(self, example_file, tmp_path):
        from diagsim.export import generate_code
        from diagsim.services import FileService
        script = tmp_path / "model.py"
        script.write_text(generate_code(FileService.load(str(example_file)), "python"))
        output = tmp_path / "out.csv"
        subprocess.run([sys.executable, str(script)] + program_args(example_file, output),
                       check=True, timeout=300)
        times, series = read_csv_series(output)
        assert_series_match(interpret(example_file), times, series)


@pytest.mark.integration
class TestGeneratedC:
    """The compiled C program agrees with the interpreter."""

    @pytest.mark.parametrize("example_file", get_example_files(), ids=lambda f: f.name)
    def test_matches_interpreter(self, example_file, tmp_path, c_compiler):
        from diagsim.export import generate_code
        from diagsim.services import FileService
        source = tmp_path / "model.c"
        source.write_text(generate_code(FileService.load(str(example_file)), "c"))
        binary = tmp_path / "model"
        subprocess.run([c_compiler, "-std=c99", "-O2", "-o", str(binary), str(source), "-lm"],
                       check=True, timeout=120)
        output = tmp_path / "out.csv"
        subprocess.run([str(binary)] + program_args(example_file, output), check=True, timeout=300)
        times, series = read_csv_series(output)
        assert_series_match(interpret(example_file), times, series)
