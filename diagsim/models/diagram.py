"""
Diagram value: blocks, point-to-point connections, variables and run settings.

The dict form mirrors the editor's save format::

    {
      "blocks": [{"id": "b1", "type": "constant", "params": {"value": 2}}],
      "connections": [{"from": "b1", "to": "b2", "fromIndex": 0, "toIndex": 0}],
      "variables": {"K": 3},
      "runtime": 10,
      "dt": 0.01
    }

Editor-only keys (positions, rotation, display flags) are ignored.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Collection, Dict, List, Optional

from blocks.block_kind import BlockKind
from diagsim.exceptions import DiagramFormatError
from diagsim.types import BlockId, RawParams

logger = logging.getLogger(__name__)

DEFAULT_RUNTIME = 10.0
DEFAULT_DT = 0.01


@dataclass
class Block:
    """A block instance: unique id, type string and raw parameters."""
    id: BlockId
    type: str
    params: RawParams = field(default_factory=dict)

    @property
    def kind(self) -> BlockKind:
        return BlockKind.from_type(self.type)


@dataclass(frozen=True)
class Connection:
    """Directed wire from ``source``'s output to port ``target_port`` of ``target``."""
    source: BlockId
    target: BlockId
    source_port: int = 0
    target_port: int = 0


class Diagram:
    """
    A block diagram. Owns its blocks and the allocator for their ids.

    ``runtime`` and ``dt`` are kept raw (they may be expressions over the
    variables) and resolved by the compiler.
    """

    def __init__(self, blocks: Optional[List[Block]] = None,
                 connections: Optional[List[Connection]] = None,
                 variables: Optional[Dict[str, Any]] = None,
                 runtime: Any = None, dt: Any = None):
        self.blocks: List[Block] = []
        self.connections: List[Connection] = list(connections or [])
        self.variables: Dict[str, Any] = dict(variables or {})
        self.runtime = runtime
        self.dt = dt
        self._next_id = 1
        for block in blocks or []:
            self._append(block)

    def _append(self, block: Block) -> None:
        if self.get_block(block.id) is not None:
            raise ValueError(f"Duplicate block id '{block.id}'")
        self.blocks.append(block)

    def new_block_id(self, prefix: str = "b", reserved: Collection[BlockId] = ()) -> BlockId:
        """Allocate an id not used by any block of this diagram nor listed in ``reserved``."""
        while True:
            candidate = f"{prefix}{self._next_id}"
            self._next_id += 1
            if candidate not in reserved and self.get_block(candidate) is None:
                return candidate

    def add_block(self, block_type: str, params: Optional[RawParams] = None,
                  block_id: Optional[BlockId] = None) -> Block:
        """Create a block, allocating an id when none is given."""
        block = Block(id=block_id or self.new_block_id(), type=str(block_type),
                      params=dict(params or {}))
        self._append(block)
        return block

    def connect(self, source: BlockId, target: BlockId,
                source_port: int = 0, target_port: int = 0) -> Connection:
        connection = Connection(source, target, int(source_port), int(target_port))
        self.connections.append(connection)
        return connection

    def get_block(self, block_id: BlockId) -> Optional[Block]:
        for block in self.blocks:
            if block.id == block_id:
                return block
        return None

    @property
    def block_ids(self) -> List[BlockId]:
        return [block.id for block in self.blocks]

    @classmethod
    def from_dict(cls, data: Any) -> "Diagram":
        """
        Build a diagram from its dict form.

        Explicit ids are reserved first. Blocks without an id then get one
        from the allocator, and a repeated id is replaced by a fresh one (with a warning) so every block stays
        addressable.

        Raises:
            DiagramFormatError: if the structure is not a diagram.
        """
        if not isinstance(data, dict):
            raise DiagramFormatError("diagram must be a mapping")

        blocks_data = data.get("blocks") or []
        connections_data = data.get("connections") or []
        variables = data.get("variables") or {}
        if not isinstance(blocks_data, list):
            raise DiagramFormatError("'blocks' must be a list")
        if not isinstance(connections_data, list):
            raise DiagramFormatError("'connections' must be a list")
        if not isinstance(variables, dict):
            raise DiagramFormatError("'variables' must be a mapping")

        dt = data.get("dt", data.get("sampleTime"))
        diagram = cls(variables=variables, runtime=data.get("runtime"), dt=dt)

        explicit_ids: List[Optional[BlockId]] = []
        for index, entry in enumerate(blocks_data):
            if not isinstance(entry, dict) or "type" not in entry:
                raise DiagramFormatError(f"block #{index} must be a mapping with a 'type'")
            if not isinstance(entry.get("params") or {}, dict):
                raise DiagramFormatError(f"block #{index} params must be a mapping")
            block_id = entry.get("id")
            explicit_ids.append(None if block_id is None or str(block_id) == "" else str(block_id))
        reserved = {block_id for block_id in explicit_ids if block_id is not None}

        for entry, block_id in zip(blocks_data, explicit_ids):
            if block_id is None:
                block_id = diagram.new_block_id(reserved=reserved)
            elif diagram.get_block(block_id) is not None:
                fresh = diagram.new_block_id(reserved=reserved)
                logger.warning(f"Duplicate block id '{block_id}' renamed to '{fresh}'")
                block_id = fresh
            diagram.add_block(entry["type"], entry.get("params") or {}, block_id)

        for index, entry in enumerate(connections_data):
            if not isinstance(entry, dict) or "from" not in entry or "to" not in entry:
                raise DiagramFormatError(f"connection #{index} needs 'from' and 'to'")
            try:
                source_port = int(entry.get("fromIndex") or 0)
                target_port = int(entry.get("toIndex") or 0)
            except (TypeError, ValueError) as e:
                raise DiagramFormatError(f"connection #{index} has a non-integer port") from e
            diagram.connect(str(entry["from"]), str(entry["to"]), source_port, target_port)

        return diagram

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "blocks": [
                {"id": block.id, "type": block.type, "params": dict(block.params)}
                for block in self.blocks
            ],
            "connections": [
                {"from": c.source, "to": c.target, "fromIndex": c.source_port, "toIndex": c.target_port}
                for c in self.connections
            ],
            "variables": dict(self.variables),
        }
        if self.runtime is not None:
            data["runtime"] = self.runtime
        if self.dt is not None:
            data["dt"] = self.dt
        return data

    def __repr__(self):
        return f"Diagram({len(self.blocks)} blocks, {len(self.connections)} connections)"
