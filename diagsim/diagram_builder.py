"""
DiagramBuilder - Programmatic diagram generation for diagsim.

Allows building simulation diagrams from Python code without an editor.

Example usage:
    from diagsim.diagram_builder import DiagramBuilder

    builder = DiagramBuilder(runtime=5.0)
    ref = builder.add_block("step", stepTime=0.0)
    err = builder.add_block("sum", signs=[1, -1])
    builder.connect(ref, err, 0)
    builder.save("my_diagram.yaml")
"""

from typing import Any, Optional

from diagsim.models.diagram import Diagram
from diagsim.types import BlockId


class DiagramBuilder:
    """
    Builds diagsim diagrams programmatically.

    Usage:
        builder = DiagramBuilder()
        src = builder.add_block("constant", value=2)
        k = builder.add_block("gain", gain=3)
        out = builder.add_block("labelSink", name="y")
        builder.chain(src, k, out)
        diagram = builder.build()
    """

    def __init__(self, runtime: Any = 10.0, dt: Any = 0.01):
        """
        Initialize a new diagram builder.

        Args:
            runtime: Total simulation time in seconds
            dt: Simulation time step in seconds
        """
        self._diagram = Diagram(runtime=runtime, dt=dt)

    def add_block(self, block_type: str, block_id: Optional[BlockId] = None, **params: Any) -> BlockId:
        """
        Add a block to the diagram.

        Args:
            block_type: Diagram type string (e.g. "gain", "tf", "labelSink")
            block_id: Optional id; allocated by the diagram when omitted
            **params: Block parameters (numbers, strings or expressions)

        Returns:
            Block id for use in connections
        """
        return self._diagram.add_block(block_type, params, block_id).id

    def connect(self, source: BlockId, target: BlockId, target_port: int = 0,
                source_port: int = 0) -> "DiagramBuilder":
        """Connect ``source``'s output to ``target``'s input ``target_port``."""
        self._diagram.connect(source, target, source_port, target_port)
        return self

    def chain(self, *block_ids: BlockId) -> "DiagramBuilder":
        """Connect each block's output to port 0 of the next one."""
        for source, target in zip(block_ids, block_ids[1:]):
            self.connect(source, target)
        return self

    def set_variable(self, name: str, value: Any) -> "DiagramBuilder":
        self._diagram.variables[name] = value
        return self

    def build(self) -> Diagram:
        """Return the diagram built so far."""
        return self._diagram

    def save(self, filepath: str) -> None:
        """Save the diagram to a JSON or YAML file."""
        from diagsim.services.file_service import FileService
        FileService.save(self._diagram, filepath)
