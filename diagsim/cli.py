#!/usr/bin/env python3
"""
Command line interface for diagsim.

Usage:
    diagsim run diagram.yaml -t 5 -i inputs.csv -o outputs.csv
    diagsim codegen diagram.yaml -l c -o model.c
    diagsim validate diagram.json
    diagsim --workspace gains.txt run diagram.yaml

Exit codes: 0 on success, 1 when a file cannot be read (or validation finds
errors), 2 for command line usage errors.
"""

import logging
import os
import sys

from diagsim.config_manager import EXPORT_LANGUAGES, LOG_LEVELS, get_config, reload_config
from diagsim.exceptions import DiagsimError, InputFileError
from diagsim.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _open_output(path):
    if path is None or path == "-":
        return sys.stdout, False
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return open(path, "w", newline=""), True


def _load_diagram(args):
    """Load the diagram, with variables from --workspace layered over its own."""
    from diagsim.services import FileService
    from diagsim.workspace import Workspace

    diagram = FileService.load(args.diagram)
    if args.workspace:
        workspace = Workspace(diagram.variables)
        if not workspace.load_from_file(args.workspace):
            raise InputFileError(args.workspace, "cannot load workspace file")
        diagram.variables = workspace.variables
    return diagram


def _cmd_run(args, config):
    from diagsim.engine import SimulationEngine
    from diagsim.services import InputSeries, write_output_csv, write_trace_csv

    diagram = _load_diagram(args)
    engine = SimulationEngine(diagram, config)
    inputs = None
    if args.input:
        inputs = InputSeries.from_csv(args.input, engine.compiled.input_names)
    result = engine.run(args.duration, inputs)

    stream, close = _open_output(args.output)
    try:
        write_output_csv(result, stream)
    finally:
        if close:
            stream.close()

    if args.traces:
        with open(args.traces, "w", newline="") as f:
            write_trace_csv(result, f)
        logger.info(f"Traces written to {args.traces}")

    if args.plot:
        from diagsim.plotting import plot_traces
        plot_traces(result, args.plot, title=os.path.basename(args.diagram))
    return 0


def _cmd_codegen(args, config):
    from diagsim.export import generate_code

    diagram = _load_diagram(args)
    language = args.language or config.get("codegen.default_language", "python")
    code = generate_code(diagram, language, duration=args.duration,
                         include_main=not args.no_main, config=config)

    stream, close = _open_output(args.output)
    try:
        stream.write(code)
    finally:
        if close:
            stream.close()
    if close:
        logger.info(f"Generated {language} code written to {args.output}")
    return 0


def _cmd_validate(args, config):
    from diagsim.diagram_validator import DiagramValidator

    diagram = _load_diagram(args)
    validator = DiagramValidator(diagram)
    findings = validator.validate()
    if not findings:
        print(f"{args.diagram}: no issues found")
    for finding in findings:
        print(finding)
        if finding.suggestion:
            print(f"    suggestion: {finding.suggestion}")
    return 1 if validator.has_errors() else 0


def build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        prog="diagsim",
        description="Simulate block diagrams and generate standalone C or Python programs from them",
    )
    parser.add_argument('--config', help='Configuration JSON file (default: config/default_config.json)')
    parser.add_argument('--log-config', help='Logging configuration JSON file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    parser.add_argument('--workspace', default=None,
                        help='Variables file (name = expression per line) overriding the diagram variables')
    subparsers = parser.add_subparsers(dest='command', required=True)

    run = subparsers.add_parser('run', help='Simulate a diagram and write its named outputs as CSV')
    run.add_argument('diagram', help='Diagram file (.json, .yaml or .yml)')
    run.add_argument('-t', dest='duration', type=float, default=None,
                     help='Duration in seconds (default: the diagram runtime)')
    run.add_argument('-i', dest='input', default=None, help='Input CSV with a t column and one column per input')
    run.add_argument('-o', dest='output', default=None, help='Output CSV (default: stdout)')
    run.add_argument('--plot', default=None, help='Save a plot of outputs and scope traces to this image')
    run.add_argument('--traces', default=None, help='Write scope and file sink traces to this CSV')
    run.set_defaults(handler=_cmd_run)

    codegen = subparsers.add_parser('codegen', help='Generate a standalone program from a diagram')
    codegen.add_argument('diagram', help='Diagram file (.json, .yaml or .yml)')
    codegen.add_argument('-l', '--language', choices=list(EXPORT_LANGUAGES), default=None,
                         help='Target language (default: codegen.default_language)')
    codegen.add_argument('-o', dest='output', default=None, help='Output file (default: stdout)')
    codegen.add_argument('-t', dest='duration', type=float, default=None,
                         help='Default duration of the generated program')
    codegen.add_argument('--no-main', action='store_true', help='Emit only the model, without the CSV driver')
    codegen.set_defaults(handler=_cmd_codegen)

    validate = subparsers.add_parser('validate', help='Report structural problems of a diagram')
    validate.add_argument('diagram', help='Diagram file (.json, .yaml or .yml)')
    validate.set_defaults(handler=_cmd_validate)
    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = reload_config(args.config) if args.config else get_config()
    level = config.get("logging.level")
    if args.verbose:
        level = logging.DEBUG
    elif level not in LOG_LEVELS:
        level = None
    setup_logging(args.log_config, level)

    try:
        return args.handler(args, config)
    except DiagsimError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
