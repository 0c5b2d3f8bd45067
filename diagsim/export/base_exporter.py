"""
Shared machinery for the code exporters.

An exporter walks a CompiledDiagram and prints the same tick the
interpreter runs: output phase, bounded algebraic loop with settled flags,
sink phase, update phase. What each block does is described once in
:mod:`diagsim.export.block_rules` against the small :class:`Dialect`
interface; each target language implements the dialect.
"""

import logging
from typing import List, Optional, Set

from blocks.block_kind import BlockKind
from diagsim.engine.system_compiler import CompiledDiagram, CompiledNode
from diagsim.export.block_rules import BlockCode, StateField, render_block
from diagsim.export.dialect import Dialect

logger = logging.getLogger(__name__)


class CodeExporter:
    """
    Base class of the language exporters.

    Subclasses set ``dialect`` and implement ``generate``; the phase bodies
    are assembled here so both languages share one evaluation order.
    """

    language = ""
    dialect: Dialect = Dialect()

    def __init__(self, compiled: CompiledDiagram, duration: Optional[float] = None,
                 include_main: bool = True, max_iterations: int = 50):
        self.compiled = compiled
        self.duration = compiled.runtime if duration is None else float(duration)
        self.include_main = include_main
        self.max_iterations = int(max_iterations)
        self._codes: Optional[List[BlockCode]] = None

    @property
    def codes(self) -> List[BlockCode]:
        if self._codes is None:
            self._codes = [render_block(node, self.dialect, self.compiled) for node in self.compiled.nodes]
        return self._codes

    @property
    def fields(self) -> List[StateField]:
        return [f for code in self.codes for f in code.fields]

    @property
    def constants(self) -> List[str]:
        return [c for code in self.codes for c in code.constants]

    @property
    def helpers(self) -> Set[str]:
        return {h for code in self.codes for h in code.helpers}

    @property
    def max_model_order(self) -> int:
        return max([code.model_order for code in self.codes] + [0])

    def _describe(self, node: CompiledNode) -> str:
        return self.dialect.comment(f"{node.block_id} ({node.block_type})")

    def output_phase(self) -> List[str]:
        d = self.dialect
        lines: List[str] = []
        for handle in self.compiled.output_order:
            code = self.codes[handle]
            lines.append(self._describe(code.node))
            lines.extend(code.output)
            lines.append(d.assign(d.out(handle), code.value))
            lines.append(d.assign(d.valid(handle), d.true))
        return lines

    def loop_seeds(self) -> List[str]:
        d = self.dialect
        lines: List[str] = []
        for handle in self.compiled.algebraic_order:
            if self.compiled.nodes[handle].seeds_loop:
                lines.append(d.assign(d.out(handle), "0.0"))
                lines.append(d.assign(d.valid(handle), d.true))
        return lines

    def algebraic_pass(self) -> List[str]:
        """Body of one fixed-point pass; sets ``updated`` on progress."""
        d = self.dialect
        lines: List[str] = []
        for handle in self.compiled.algebraic_order:
            code = self.codes[handle]
            node = code.node
            changed = d.either(d.negate(d.valid(handle)), f"{d.out(handle)} != value")
            body = list(code.output)
            body.append(d.local("value", code.value))
            body.extend(d.if_block(changed, [
                d.assign(d.out(handle), "value"),
                d.assign(d.valid(handle), d.true),
                d.assign("updated", d.true),
            ]))
            lines.append(self._describe(node))
            drivers = sorted(set(node.drivers.values()))
            if drivers:
                lines.extend(d.if_block(d.all_of([d.valid(h) for h in drivers]), body))
            else:
                lines.extend(d.scope(body))
        return lines

    def sink_phase(self) -> List[str]:
        d = self.dialect
        lines: List[str] = []
        for handle in self.compiled.sink_order:
            code = self.codes[handle]
            lines.append(self._describe(code.node))
            lines.extend(code.output)
            lines.append(d.assign(d.out(handle), code.value))
            lines.append(d.assign(d.valid(handle), d.true))
        for name in self.compiled.output_names:
            lines.extend(d.publish(name, d.out(self.compiled.output_handles[name])))
        return lines

    def update_phase(self) -> List[str]:
        lines: List[str] = []
        for code in self.codes:
            if code.update:
                lines.append(self._describe(code.node))
                lines.extend(self.dialect.scope(code.update))
        return lines

    def unsupported_blocks(self) -> List[CompiledNode]:
        return [n for n in self.compiled.nodes if n.kind == BlockKind.UNSUPPORTED]

    def generate(self) -> str:
        raise NotImplementedError

    def export(self, filepath: str) -> None:
        """Write the generated program to ``filepath``."""
        source = self.generate()
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(source)
        logger.info(f"Exported {self.language} code to {filepath}")

