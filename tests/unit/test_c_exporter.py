import csv
import subprocess

import pytest


def _build_program(c_compiler, source, tmp_path):
    src = tmp_path / "model.c"
    src.write_text(source)
    binary = tmp_path / "model"
    subprocess.run([c_compiler, "-std=c99", "-O2", "-o", str(binary), str(src), "-lm"],
                   check=True, timeout=120)
    return binary


def _read_rows(path):
    with open(path, newline="") as f:
        return list(csv.reader(f))


@pytest.mark.unit
class TestCExporter:
    """Tests for the generated C program."""

    def test_program_structure(self, builder):
        from diagsim.export import generate_code
        src = builder.add_block("step", stepTime=0.0)
        plant = builder.add_block("tf", block_id="plant", num=[3], den=[1, 3])
        out = builder.add_block("labelSink", name="y")
        builder.chain(src, plant, out)
        source = generate_code(builder.build(), "c")
        assert "void InitModel(ModelState* s) {" in source
        assert "void RunStep(ModelState* s, const ModelInput* in, ModelOutput* out, double t) {" in source
        assert "static void tf_rk4(" in source
        assert "#define MAX_ITERATIONS 50" in source
        assert "y_y;" in source
        assert "int main(int argc, char** argv) {" in source

    def test_without_main(self, builder):
        from diagsim.export import generate_code
        builder.add_block("constant")
        source = generate_code(builder.build(), "c", include_main=False)
        assert "int main" not in source
        assert "read_csv" not in source

    def test_variables_emitted(self, builder):
        from diagsim.export import generate_code
        builder.set_variable("gain", 4).set_variable("\\tau", 0.5)
        builder.add_block("constant", value="gain")
        source = generate_code(builder.build(), "c")
        assert "var_gain" in source
        assert "\\tau" not in source

    def test_compiles_and_runs(self, builder, tmp_path, c_compiler):
        from diagsim.export import generate_code
        src = builder.add_block("constant", value=2.0)
        k = builder.add_block("gain", gain=3.0)
        out = builder.add_block("labelSink", name="y")
        builder.chain(src, k, out)
        binary = _build_program(c_compiler, generate_code(builder.build(), "c"), tmp_path)
        output = tmp_path / "out.csv"
        subprocess.run([str(binary), "-t", "0.02", "-o", str(output)], check=True, timeout=60)
        assert _read_rows(output) == [
            ["t", "y"],
            ["0.000000", "6.000000"],
            ["0.010000", "6.000000"],
            ["0.020000", "6.000000"],
        ]

    def test_input_replay(self, builder, tmp_path, c_compiler):
        from diagsim.export import generate_code
        src = builder.add_block("labelSource", name="u")
        integ = builder.add_block("integrator")
        out = builder.add_block("labelSink", name="y")
        builder.chain(src, integ, out)
        binary = _build_program(c_compiler, generate_code(builder.build(), "c"), tmp_path)
        inputs = tmp_path / "in.csv"
        inputs.write_text("time,u\n0,1\n0.02,2\n")
        proc = subprocess.run([str(binary), "-t", "0.04", "-i", str(inputs)],
                              capture_output=True, text=True, check=True, timeout=60)
        assert proc.stdout.splitlines()[-1] == "0.040000,0.060000"

    def test_usage_error(self, builder, tmp_path, c_compiler):
        from diagsim.export import generate_code
        builder.add_block("constant")
        binary = _build_program(c_compiler, generate_code(builder.build(), "c"), tmp_path)
        proc = subprocess.run([str(binary), "--bogus"], capture_output=True, text=True, timeout=60)
        assert proc.returncode == 2
        assert "usage" in proc.stderr

    def test_missing_input_file(self, builder, tmp_path, c_compiler):
        from diagsim.export import generate_code
        builder.add_block("labelSource", name="u")
        binary = _build_program(c_compiler, generate_code(builder.build(), "c"), tmp_path)
        proc = subprocess.run([str(binary), "-i", str(tmp_path / "none.csv")],
                              capture_output=True, text=True, timeout=60)
        assert proc.returncode == 1

    def test_no_outputs_header(self, builder, tmp_path, c_compiler):
        from diagsim.export import generate_code
        builder.add_block("constant")
        binary = _build_program(c_compiler, generate_code(builder.build(), "c"), tmp_path)
        proc = subprocess.run([str(binary), "-t", "0.01"], capture_output=True, text=True,
                              check=True, timeout=60)
        assert proc.stdout == "t\n0.000000\n0.010000\n"
