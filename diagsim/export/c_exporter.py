"""
C exporter - renders a compiled diagram as a standalone C99 program.

The program defines ``ModelState``, ``ModelInput`` and ``ModelOutput``,
``InitModel`` and ``RunStep``, and (unless disabled) a ``main`` with the
same ``-t``/``-i``/``-o`` interface and CSV formats as the Python export.
Build with ``cc -std=c99 -O2 model.c -lm``.
"""

import logging
from typing import List

from diagsim.expressions import sanitize_identifier
from diagsim.export.base_exporter import CodeExporter
from diagsim.export.block_rules import StateField
from diagsim.export.dialect import Dialect, indent

logger = logging.getLogger(__name__)

C_INDENT = "  "
C_TYPES = {"double": "double", "int": "int", "uint32": "uint32_t"}


def c_indent(lines, level=1):
    return indent(lines, level, unit=C_INDENT)


def input_field(name: str) -> str:
    return f"u_{name}"


def output_field(name: str) -> str:
    return f"y_{name}"


class CDialect(Dialect):
    true = "1"
    false = "0"
    pi = "M_PI"
    functions = {"sin": "sin", "abs": "fabs", "min": "fmin", "max": "fmax"}

    def state(self, name):
        return f"s->{name}"

    def external(self, name):
        return f"(in ? in->{input_field(name)} : 0.0)"

    def publish(self, name, value):
        return [f"if (out) out->{output_field(name)} = {value};"]

    def cond(self, test, if_true, if_false):
        return f"(({test}) ? {if_true} : {if_false})"

    def all_of(self, tests):
        return " && ".join(tests)

    def either(self, first, second):
        return f"{first} || {second}"

    def negate(self, test):
        return f"!{test}"

    def assign(self, target, expr):
        return f"{target} = {expr};"

    def add_assign(self, target, expr):
        return f"{target} += {expr};"

    def local(self, name, expr):
        return f"double {name} = {expr};"

    def comment(self, text):
        return "/* " + " ".join(str(text).split()).replace("*/", "* /") + " */"

    def if_block(self, test, body):
        return [f"if ({test}) {{"] + c_indent(body) + ["}"]

    def scope(self, body):
        if not body:
            return []
        return ["{"] + c_indent(body) + ["}"]

    def shift_right(self, ref, length):
        if length < 2:
            return []
        return [f"for (int i = {length - 1}; i > 0; i--) {ref}[i] = {ref}[i - 1];"]

    def shift_left(self, ref, length):
        if length < 2:
            return []
        return [f"for (int i = 0; i < {length - 1}; i++) {ref}[i] = {ref}[i + 1];"]

    def lcg(self, ref):
        return f"(uint32_t)(1664525u * {ref} + 1013904223u)"

    def const_vector(self, name, values):
        body = ", ".join(repr(float(v)) for v in values)
        return f"static const double {name}[{len(values)}] = {{{body}}};"

    def const_matrix(self, name, rows):
        body = ", ".join("{" + ", ".join(repr(float(v)) for v in row) + "}" for row in rows)
        return f"static const double {name}[{len(rows)}][{len(rows)}] = {{{body}}};"

    def rk4(self, ref, a_name, b_name, order, u):
        return [f"tf_rk4({order}, &{a_name}[0][0], {b_name}, {ref}, {u}, dt);"]


RK4_HELPER = """
static void tf_derivative(int n, const double* A, const double* B, const double* x, double u, double* dx) {
  for (int i = 0; i < n; i++) {
    double acc = 0.0;
    for (int j = 0; j < n; j++) acc += A[i * n + j] * x[j];
    dx[i] = acc + B[i] * u;
  }
}

static void tf_rk4(int n, const double* A, const double* B, double* x, double u, double dt) {
  double k1[TF_MAX_ORDER], k2[TF_MAX_ORDER], k3[TF_MAX_ORDER], k4[TF_MAX_ORDER], tmp[TF_MAX_ORDER];
  tf_derivative(n, A, B, x, u, k1);
  for (int i = 0; i < n; i++) tmp[i] = x[i] + 0.5 * dt * k1[i];
  tf_derivative(n, A, B, tmp, u, k2);
  for (int i = 0; i < n; i++) tmp[i] = x[i] + 0.5 * dt * k2[i];
  tf_derivative(n, A, B, tmp, u, k3);
  for (int i = 0; i < n; i++) tmp[i] = x[i] + dt * k3[i];
  tf_derivative(n, A, B, tmp, u, k4);
  for (int i = 0; i < n; i++) x[i] = x[i] + (dt / 6.0) * (k1[i] + 2.0 * k2[i] + 2.0 * k3[i] + k4[i]);
}
"""

CSV_SUPPORT = """
#define MAX_LINE 8192
#define MAX_FIELDS 256

typedef struct {
  int count;
  int capacity;
  double* times;
  double* values;
} InputSeries;

static void trim_line(char* line) {
  size_t len = strlen(line);
  while (len > 0 && (line[len - 1] == '\\n' || line[len - 1] == '\\r')) line[--len] = '\\0';
}

static int split_fields(char* line, char** fields, int max_fields) {
  int n = 0;
  char* p = line;
  while (n < max_fields) {
    char* comma = strchr(p, ',');
    fields[n++] = p;
    if (!comma) break;
    *comma = '\\0';
    p = comma + 1;
  }
  return n;
}

static double parse_cell(const char* text) {
  char* end;
  double value;
  if (!text || !*text) return 0.0;
  value = strtod(text, &end);
  return end == text ? 0.0 : value;
}

static int read_csv(const char* path, InputSeries* series) {
  char line[MAX_LINE];
  char* fields[MAX_FIELDS];
  int columns[INPUT_SLOTS];
  int t_col = -1, time_col = -1, n;
  FILE* f = fopen(path, "r");
  if (!f) {
    fprintf(stderr, "%s: cannot open input file\\n", path);
    return -1;
  }
  if (!fgets(line, sizeof line, f)) {
    fprintf(stderr, "%s: missing header\\n", path);
    fclose(f);
    return -1;
  }
  trim_line(line);
  n = split_fields(line, fields, MAX_FIELDS);
  for (int i = 0; i < INPUT_SLOTS; i++) columns[i] = -1;
  for (int c = 0; c < n; c++) {
    if (strcmp(fields[c], "t") == 0) t_col = c;
    if (strcmp(fields[c], "time") == 0) time_col = c;
    for (int i = 0; i < INPUT_COUNT; i++) {
      if (strcmp(fields[c], input_names[i]) == 0) columns[i] = c;
    }
  }
  if (t_col < 0) t_col = time_col;
  if (t_col < 0) {
    fprintf(stderr, "%s: missing 't' or 'time' column\\n", path);
    fclose(f);
    return -1;
  }
  while (fgets(line, sizeof line, f)) {
    trim_line(line);
    if (!*line) continue;
    n = split_fields(line, fields, MAX_FIELDS);
    if (series->count == series->capacity) {
      int capacity = series->capacity ? series->capacity * 2 : 64;
      double* times = (double*)realloc(series->times, sizeof(double) * capacity);
      double* values = (double*)realloc(series->values, sizeof(double) * capacity * INPUT_SLOTS);
      if (!times || !values) {
        fprintf(stderr, "%s: out of memory\\n", path);
        free(times ? times : series->times);
        free(values ? values : series->values);
        series->times = NULL;
        series->values = NULL;
        fclose(f);
        return -1;
      }
      series->times = times;
      series->values = values;
      series->capacity = capacity;
    }
    series->times[series->count] = t_col < n ? parse_cell(fields[t_col]) : 0.0;
    for (int i = 0; i < INPUT_SLOTS; i++) {
      int c = columns[i];
      series->values[series->count * INPUT_SLOTS + i] = (c >= 0 && c < n) ? parse_cell(fields[c]) : 0.0;
    }
    series->count++;
  }
  fclose(f);
  return 0;
}

static void write_header(FILE* f) {
  fprintf(f, "t");
  for (int i = 0; i < OUTPUT_COUNT; i++) fprintf(f, ",%s", output_names[i]);
  fprintf(f, "\\n");
}
"""


class CExporter(CodeExporter):
    """Exports a compiled diagram as a C99 program."""

    language = "c"
    dialect = CDialect()

    def _header(self) -> List[str]:
        compiled = self.compiled
        size = max(1, len(compiled.nodes))
        lines = [
            f"/* Generated by diagsim from a block diagram: {len(compiled.nodes)} blocks, dt = {compiled.dt!r}. */",
            "#include <math.h>",
            "#include <stdint.h>",
            "#include <stdio.h>",
            "#include <stdlib.h>",
            "#include <string.h>",
            "",
            "#ifndef M_PI",
            "#define M_PI 3.14159265358979323846",
            "#endif",
            "",
            f"#define BLOCK_COUNT {size}",
            f"#define MAX_ITERATIONS {self.max_iterations}",
            f"#define INPUT_COUNT {len(compiled.input_names)}",
            f"#define INPUT_SLOTS {max(1, len(compiled.input_names))}",
            f"#define OUTPUT_COUNT {len(compiled.output_names)}",
            f"#define TF_MAX_ORDER {max(1, self.max_model_order)}",
            "",
            f"static const double DT = {compiled.dt!r};",
            f"static const double DURATION = {self.duration!r};",
        ]
        for name, value in compiled.constants.items():
            if name in ("pi", "e") or name.startswith("\\"):
                continue
            ident = f"var_{sanitize_identifier(name)}"
            if ident.isidentifier():
                lines.append(f"static const double {ident} = {value!r};")
        if self.constants:
            lines += ["", "/* realized transfer functions */"] + self.constants
        return lines + [""]

    def _structs(self) -> List[str]:
        compiled = self.compiled
        state_lines = [self._declare(f) for f in self.fields] or ["int _unused;"]
        input_lines = [f"double {input_field(n)};" for n in compiled.input_names] or ["double _unused;"]
        output_lines = [f"double {output_field(n)};" for n in compiled.output_names] or ["double _unused;"]

        def quoted(names):
            return [f'"{n}",' for n in names] or ['"_unused",']

        lines = ["typedef struct {"] + c_indent(state_lines) + ["} ModelState;", ""]
        lines += ["typedef struct {"] + c_indent(input_lines) + ["} ModelInput;", ""]
        lines += ["typedef struct {"] + c_indent(output_lines) + ["} ModelOutput;", ""]
        lines += ["static const char* input_names[] = {"] + c_indent(quoted(compiled.input_names)) + ["};"]
        lines += ["static const char* output_names[] = {"] + c_indent(quoted(compiled.output_names)) + ["};", ""]
        return lines

    @staticmethod
    def _declare(state_field: StateField) -> str:
        ctype = C_TYPES[state_field.ctype]
        if state_field.is_array:
            return f"{ctype} {state_field.name}[{max(1, len(state_field.init))}];"
        return f"{ctype} {state_field.name};"

    def _init_model(self) -> List[str]:
        body = ["memset(s, 0, sizeof(*s));"]
        for state_field in self.fields:
            ref = self.dialect.state(state_field.name)
            if state_field.is_array:
                for i, value in enumerate(state_field.init):
                    if value != 0.0:
                        body.append(f"{ref}[{i}] = {float(value)!r};")
            elif state_field.ctype == "uint32":
                body.append(f"{ref} = {int(state_field.init)}u;")
            elif state_field.ctype == "int":
                body.append(f"{ref} = {int(state_field.init)};")
            elif state_field.init != 0.0:
                body.append(f"{ref} = {float(state_field.init)!r};")
        return ["void InitModel(ModelState* s) {"] + c_indent(body) + ["}", ""]

    def _run_step(self) -> List[str]:
        body = [
            "const double dt = DT;",
            "double o[BLOCK_COUNT];",
            "int v[BLOCK_COUNT];",
            "(void)in;",
            "(void)dt;",
            "memset(o, 0, sizeof o);",
            "memset(v, 0, sizeof v);",
            "",
            "/* output phase */",
        ]
        body += self.output_phase()
        body += ["", "/* algebraic loop */"]
        body += self.loop_seeds()
        loop_body = ["int updated = 0;"] + self.algebraic_pass() + ["if (!updated) break;"]
        body += ["for (int iter = 0; iter < MAX_ITERATIONS; iter++) {"] + c_indent(loop_body) + ["}"]
        body += ["", "/* sink phase */"] + self.sink_phase()
        body += ["", "/* update phase */"] + self.update_phase()
        signature = "void RunStep(ModelState* s, const ModelInput* in, ModelOutput* out, double t) {"
        return [signature] + c_indent(body) + ["}", ""]

    def _main(self) -> List[str]:
        compiled = self.compiled
        fill = [f"in->{input_field(name)} = series->values[idx * INPUT_SLOTS + {i}];"
                for i, name in enumerate(compiled.input_names)] or ["(void)series;", "(void)idx;", "(void)in;"]
        lines = ["static void fill_inputs(const InputSeries* series, int idx, ModelInput* in) {"]
        lines += c_indent(fill) + ["}", ""]

        row = ['fprintf(outFile, "%.6f", t);']
        row += [f'fprintf(outFile, ",%.6f", out.{output_field(name)});' for name in compiled.output_names]
        row += ['fprintf(outFile, "\\n");']
        lines += [
            "int main(int argc, char** argv) {",
            "  double tEnd = DURATION;",
            "  const char* inPath = NULL;",
            "  const char* outPath = NULL;",
            "  InputSeries series = {0, 0, NULL, NULL};",
            "  ModelState state;",
            "  ModelInput in;",
            "  ModelOutput out;",
            "  FILE* outFile;",
            "  int idx = 0;",
            "  for (int i = 1; i < argc; i++) {",
            '    if (strcmp(argv[i], "-t") == 0 && i + 1 < argc) tEnd = atof(argv[++i]);',
            '    else if (strcmp(argv[i], "-i") == 0 && i + 1 < argc) inPath = argv[++i];',
            '    else if (strcmp(argv[i], "-o") == 0 && i + 1 < argc) outPath = argv[++i];',
            "    else {",
            '      fprintf(stderr, "usage: %s [-t duration] [-i input.csv] [-o output.csv]\\n", argv[0]);',
            "      return 2;",
            "    }",
            "  }",
            "  if (inPath && read_csv(inPath, &series) != 0) return 1;",
            '  outFile = outPath ? fopen(outPath, "w") : stdout;',
            "  if (!outFile) {",
            '    fprintf(stderr, "%s: cannot open output file\\n", outPath);',
            "    return 1;",
            "  }",
            "  InitModel(&state);",
            "  memset(&in, 0, sizeof in);",
            "  write_header(outFile);",
            "  for (double t = 0.0; t <= tEnd + 1e-9; t += DT) {",
            "    memset(&out, 0, sizeof out);",
            "    if (series.count > 0) {",
            "      while (idx + 1 < series.count && series.times[idx + 1] <= t + 1e-9) idx++;",
            "      fill_inputs(&series, idx, &in);",
            "    }",
            "    RunStep(&state, &in, &out, t);",
        ]
        lines += c_indent(row, 2)
        lines += [
            "  }",
            "  if (outPath) fclose(outFile);",
            "  free(series.times);",
            "  free(series.values);",
            "  return 0;",
            "}",
        ]
        return lines

    def generate(self) -> str:
        """Return the generated C source."""
        for node in self.unsupported_blocks():
            logger.warning(f"Block '{node.block_id}' ({node.block_type}) is exported as a constant 0.0")

        lines = self._header() + self._structs()
        if "rk4" in self.helpers:
            lines += RK4_HELPER.strip("\n").split("\n") + [""]
        lines += self._init_model() + self._run_step()
        if self.include_main:
            lines += CSV_SUPPORT.strip("\n").split("\n") + [""]
            lines += self._main()
        return "\n".join(lines) + "\n"
