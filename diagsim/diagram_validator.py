"""Diagram Validation System
Reports integrity problems of block diagrams before simulation.

Findings never stop a run: the compiler drops dangling connections, keeps
the last driver of a port and turns unknown types into zero outputs. The
validator makes those decisions visible.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Set

import numpy as np
from scipy import signal

from blocks.block_kind import BlockKind, BlockPhase
from diagsim.block_loader import get_block
from diagsim.engine.system_compiler import compile_diagram
from diagsim.models.diagram import Connection, Diagram
from diagsim.realization import normalize_poly
from diagsim.workspace import Workspace

logger = logging.getLogger(__name__)

POLE_TOLERANCE = 1e-9


class ErrorSeverity(Enum):
    """Error severity levels."""
    ERROR = "error"      # Structural conflict resolved by a fixed rule
    WARNING = "warning"  # Simulation runs but part of the diagram is inert
    INFO = "info"        # Informational message


class ValidationError:
    """Represents a validation error or warning."""

    def __init__(self, severity: ErrorSeverity, message: str,
                 blocks: Optional[List[str]] = None,
                 connections: Optional[List[Connection]] = None,
                 suggestion: Optional[str] = None):
        """
        Initialize a validation error.

        Args:
            severity: Error severity level
            message: Human-readable error message
            blocks: Ids of the blocks involved
            connections: Connections involved
            suggestion: Suggested fix for the error
        """
        self.severity = severity
        self.message = message
        self.blocks = blocks or []
        self.connections = connections or []
        self.suggestion = suggestion

    def __str__(self):
        return f"[{self.severity.value.upper()}] {self.message}"


class DiagramValidator:
    """Validates block diagrams for common errors and issues."""

    def __init__(self, diagram: Diagram):
        self.diagram = diagram
        self.workspace = Workspace(diagram.variables)
        self.compiled = compile_diagram(diagram)
        self.errors: List[ValidationError] = []

    def validate(self) -> List[ValidationError]:
        """
        Run all validation checks on the diagram.

        Returns:
            List of ValidationError objects
        """
        self.errors = []

        self._check_invalid_connections()
        self._check_duplicate_connections()
        self._check_unsupported_blocks()
        self._check_disconnected_inputs()
        self._check_transfer_functions()
        self._check_discrete_transfer_functions()
        self._check_algebraic_cycles()
        self._check_external_inputs()

        logger.info(f"Validation complete: {len(self.errors)} issues found")
        return self.errors

    def _add(self, severity: ErrorSeverity, message: str, **kwargs) -> None:
        self.errors.append(ValidationError(severity, message, **kwargs))

    def _check_invalid_connections(self):
        """Check for connections with invalid block references."""
        valid_ids = set(self.diagram.block_ids)
        for connection in self.diagram.connections:
            for end, block_id in (("source", connection.source), ("destination", connection.target)):
                if block_id not in valid_ids:
                    self._add(
                        ErrorSeverity.WARNING,
                        f"Connection {connection.source} -> {connection.target} references "
                        f"non-existent {end} block '{block_id}'",
                        connections=[connection],
                        suggestion="Delete this connection; it is ignored during simulation",
                    )
            if connection.target_port < 0:
                self._add(
                    ErrorSeverity.WARNING,
                    f"Connection {connection.source} -> {connection.target} targets negative "
                    f"input port {connection.target_port}",
                    connections=[connection],
                    suggestion="Use port indices starting at 0; this connection is ignored during simulation",
                )

    def _check_duplicate_connections(self):
        """Check for multiple connections to the same input port."""
        valid_ids = set(self.diagram.block_ids)
        by_port: Dict[tuple, List[Connection]] = {}
        for connection in self.diagram.connections:
            if (connection.source in valid_ids and connection.target in valid_ids
                    and connection.target_port >= 0):
                by_port.setdefault((connection.target, connection.target_port), []).append(connection)

        for (block_id, port), connections in by_port.items():
            if len(connections) > 1:
                self._add(
                    ErrorSeverity.ERROR,
                    f"Block '{block_id}' input port {port + 1} has {len(connections)} connections; "
                    f"only the one from '{connections[-1].source}' is used",
                    blocks=[block_id],
                    connections=connections,
                    suggestion=f"Remove all but one connection to input port {port + 1}",
                )

    def _check_unsupported_blocks(self):
        for block in self.diagram.blocks:
            if block.kind == BlockKind.UNSUPPORTED:
                self._add(
                    ErrorSeverity.WARNING,
                    f"Block '{block.id}' has unsupported type '{block.type}' and outputs 0.0",
                    blocks=[block.id],
                    suggestion="Replace it with a supported block type",
                )

    def _check_disconnected_inputs(self):
        """Input ports without a driver read their fallback value."""
        connected: Dict[str, Set[int]] = {}
        for connection in self.diagram.connections:
            connected.setdefault(connection.target, set()).add(connection.target_port)

        for block in self.diagram.blocks:
            impl = get_block(block.kind)
            if not impl.requires_inputs:
                continue
            for port in range(len(impl.inputs)):
                if port not in connected.get(block.id, set()):
                    self._add(
                        ErrorSeverity.INFO,
                        f"Block '{block.id}' input port {port + 1} is not connected "
                        f"and reads {impl.input_fallback}",
                        blocks=[block.id],
                    )

    def _check_transfer_functions(self):
        """Zero denominators and unstable poles of continuous transfer functions."""
        for block in self.diagram.blocks:
            if block.kind != BlockKind.TF:
                continue
            num, _ = normalize_poly(self.workspace.resolve_list(block.params.get("num", [1.0])))
            den, den_zero = normalize_poly(self.workspace.resolve_list(block.params.get("den", [1.0, 1.0])))
            if den_zero:
                self._add(
                    ErrorSeverity.WARNING,
                    f"Transfer function '{block.id}' has an all-zero denominator and outputs 0.0",
                    blocks=[block.id],
                    suggestion="Give the denominator at least one non-zero coefficient",
                )
                continue
            if den.size < 2:
                continue
            _, poles, _ = signal.tf2zpk(num, den)
            unstable = [p for p in np.atleast_1d(poles) if p.real > POLE_TOLERANCE]
            if unstable:
                self._add(
                    ErrorSeverity.INFO,
                    f"Transfer function '{block.id}' has {len(unstable)} pole(s) in the right half plane",
                    blocks=[block.id],
                )

    def _check_discrete_transfer_functions(self):
        for block in self.diagram.blocks:
            if block.kind != BlockKind.DTF:
                continue
            den, den_zero = normalize_poly(self.workspace.resolve_list(block.params.get("den", [1.0, -0.5])))
            if den_zero or den.size < 2:
                continue
            poles = np.roots(den)
            unstable = [p for p in poles if abs(p) > 1.0 + POLE_TOLERANCE]
            if unstable:
                self._add(
                    ErrorSeverity.INFO,
                    f"Discrete transfer function '{block.id}' has {len(unstable)} pole(s) outside the unit circle",
                    blocks=[block.id],
                )

    def _check_algebraic_cycles(self):
        """Zero-delay cycles that no label bus seeds never settle and read 0.0."""
        compiled = self.compiled
        candidates = {
            node.handle for node in compiled.nodes
            if node.phase == BlockPhase.ALGEBRAIC and not node.seeds_loop
        }
        consumers: Dict[int, List[int]] = {handle: [] for handle in candidates}
        for handle in candidates:
            for driver in compiled.nodes[handle].drivers.values():
                if driver in candidates:
                    consumers[driver].append(handle)

        reported: Set[int] = set()
        for start in sorted(candidates):
            if start in reported:
                continue
            cycle = self._cycle_through(start, consumers)
            if cycle:
                reported.update(cycle)
                ids = [compiled.nodes[h].block_id for h in sorted(cycle)]
                self._add(
                    ErrorSeverity.WARNING,
                    f"Algebraic loop through {', '.join(ids)} has no delay or label bus and reads 0.0",
                    blocks=ids,
                    suggestion="Break the loop with a memory block or route it through a label bus",
                )

    @staticmethod
    def _cycle_through(start: int, consumers: Dict[int, List[int]]) -> Set[int]:
        """Blocks on cycles through ``start`` (empty if there is none)."""
        reachable: Set[int] = set()
        stack = list(consumers[start])
        while stack:
            handle = stack.pop()
            if handle in reachable:
                continue
            reachable.add(handle)
            stack.extend(consumers[handle])
        if start not in reachable:
            return set()

        members = {start}
        for handle in reachable:
            seen: Set[int] = set()
            stack = list(consumers[handle])
            while stack:
                current = stack.pop()
                if current == start:
                    members.add(handle)
                    break
                if current in seen:
                    continue
                seen.add(current)
                stack.extend(consumers[current])
        return members

    def _check_external_inputs(self):
        for node in self.compiled.nodes:
            if node.external:
                self._add(
                    ErrorSeverity.INFO,
                    f"Label source '{node.block_id}' has no matching sink; '{node.label}' is an external input",
                    blocks=[node.block_id],
                )

    def has_errors(self) -> bool:
        """Check if there are any errors (not warnings)."""
        return any(e.severity == ErrorSeverity.ERROR for e in self.errors)

    def has_warnings(self) -> bool:
        """Check if there are any warnings."""
        return any(e.severity == ErrorSeverity.WARNING for e in self.errors)

    def get_errors_by_severity(self, severity: ErrorSeverity) -> List[ValidationError]:
        """Get all errors of a specific severity."""
        return [e for e in self.errors if e.severity == severity]
