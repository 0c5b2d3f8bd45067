"""
Compiles a Diagram into the flat, handle-indexed form shared by the
interpreter and both code exporters.

Every block gets a stable integer handle in load order. Connections become
per-port driver handles, parameters are resolved into payloads once, and the
three evaluation lists (output phase, algebraic loop, sink phase) are fixed
here so every backend evaluates blocks in the same order.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from diagsim.block_loader import get_block
from diagsim.expressions import resolve_numeric, sanitize_identifier
from diagsim.models.diagram import DEFAULT_DT, DEFAULT_RUNTIME, Diagram
from diagsim.types import BlockId, BlockInputs, Constants, Handle, Payload
from diagsim.workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass
class CompiledNode:
    """One block of a compiled diagram."""
    handle: Handle
    block_id: BlockId
    kind: BlockKind
    block_type: str
    impl: BaseBlock
    payload: Payload
    phase: BlockPhase
    drivers: Dict[int, Handle] = field(default_factory=dict)
    ports: List[int] = field(default_factory=list)
    label: Optional[str] = None
    external: bool = False

    @property
    def seeds_loop(self) -> bool:
        return self.phase == BlockPhase.ALGEBRAIC and self.impl.seeds_loop

    def gather_inputs(self, outputs) -> BlockInputs:
        """Input values by port: driver outputs, fallback for unconnected ports."""
        fallback = self.impl.input_fallback
        return {
            port: float(outputs[self.drivers[port]]) if port in self.drivers else fallback
            for port in self.ports
        }


@dataclass
class CompiledDiagram:
    """
    Immutable result of :func:`compile_diagram`.

    Attributes:
        nodes: Compiled blocks indexed by handle
        handles: Block id -> handle
        dt: Global sample period
        runtime: Default run duration
        constants: Resolved variables (plus ``pi`` and ``e``)
        output_order: Source and memory handles, evaluated first
        algebraic_order: Handles resolved by the fixed-point loop
        sink_order: Label sinks, scopes and file sinks, read after the loop
        input_names: External inputs (unmatched label sources)
        output_names: Named outputs (label sinks)
        output_handles: Output name -> handle of the last sink with that name
    """
    nodes: List[CompiledNode]
    handles: Dict[BlockId, Handle]
    dt: float
    runtime: float
    constants: Constants
    output_order: List[Handle]
    algebraic_order: List[Handle]
    sink_order: List[Handle]
    input_names: List[str]
    output_names: List[str]
    output_handles: Dict[str, Handle]

    def __len__(self):
        return len(self.nodes)

    def node(self, block_id: BlockId) -> CompiledNode:
        return self.nodes[self.handles[block_id]]

    @property
    def trace_nodes(self) -> List[CompiledNode]:
        """Scopes and file sinks, in load order."""
        return [node for node in self.nodes if node.kind in (BlockKind.SCOPE, BlockKind.FILE_SINK)]

    def trace_label(self, node: CompiledNode) -> str:
        if node.kind == BlockKind.SCOPE and node.payload.get("labels"):
            return node.payload["labels"]
        return node.block_id


def _label_name(block) -> str:
    name = block.params.get("name")
    if name is None or str(name).strip() == "":
        name = block.id
    return sanitize_identifier(str(name).strip())


def _append_unique(names: List[str], name: str) -> None:
    if name not in names:
        names.append(name)


def _collect_drivers(diagram: Diagram, handles: Dict[BlockId, Handle]) -> Dict[Handle, Dict[int, Handle]]:
    """Driver handle per (target, port); dangling and negative-port connections dropped, last driver wins."""
    drivers: Dict[Handle, Dict[int, Handle]] = {handle: {} for handle in handles.values()}
    for connection in diagram.connections:
        if connection.source not in handles or connection.target not in handles:
            logger.warning(f"Dropping dangling connection {connection.source} -> {connection.target}")
            continue
        port = connection.target_port
        if port < 0:
            logger.warning(f"Dropping connection {connection.source} -> {connection.target} "
                           f"to negative port {port}")
            continue
        target_ports = drivers[handles[connection.target]]
        if port in target_ports:
            logger.warning(f"Port {port} of '{connection.target}' has more than one driver; "
                           f"keeping '{connection.source}'")
        target_ports[port] = handles[connection.source]
    return drivers


def _stable_topological_order(nodes: List[CompiledNode], candidates: List[Handle]) -> List[Handle]:
    """
    Order ``candidates`` so drivers come before the blocks they feed.

    Only dependencies on other candidates count. Ties go to the lowest
    handle, and blocks left inside a cycle are appended in load order.
    """
    pending = set(candidates)
    order: List[Handle] = []
    while pending:
        ready = [
            handle for handle in sorted(pending)
            if all(driver not in pending for driver in nodes[handle].drivers.values())
        ]
        if not ready:
            order.extend(sorted(pending))
            break
        handle = ready[0]
        order.append(handle)
        pending.discard(handle)
    return order


def compile_diagram(diagram: Diagram, default_dt: float = DEFAULT_DT,
                    default_runtime: float = DEFAULT_RUNTIME) -> CompiledDiagram:
    """
    Compile ``diagram`` for execution or code generation.

    Args:
        diagram: The diagram value (not modified)
        default_dt: Sample period used when the diagram's is missing or not positive
        default_runtime: Duration used when the diagram's is missing or not positive

    Returns:
        CompiledDiagram
    """
    workspace = Workspace(diagram.variables)
    constants = workspace.constants

    dt = resolve_numeric(diagram.dt, constants) if diagram.dt is not None else 0.0
    if dt <= 0:
        dt = default_dt
    runtime = resolve_numeric(diagram.runtime, constants) if diagram.runtime is not None else 0.0
    if runtime <= 0:
        runtime = default_runtime

    handles: Dict[BlockId, Handle] = {}
    for block in diagram.blocks:
        handles[block.id] = len(handles)
    drivers = _collect_drivers(diagram, handles)

    nodes: List[CompiledNode] = []
    for block in diagram.blocks:
        kind = block.kind
        if kind == BlockKind.UNSUPPORTED:
            logger.warning(f"Block '{block.id}' has unsupported type '{block.type}'; it outputs 0.0")
        impl = get_block(kind)
        payload = impl.resolve_params(block.params, workspace, dt)
        handle = handles[block.id]
        ports = sorted(set(range(len(impl.inputs))) | set(drivers[handle]))
        node = CompiledNode(
            handle=handle,
            block_id=block.id,
            kind=kind,
            block_type=block.type,
            impl=impl,
            payload=payload,
            phase=impl.phase(payload),
            drivers=drivers[handle],
            ports=ports,
        )
        if kind in (BlockKind.LABEL_SOURCE, BlockKind.LABEL_SINK):
            node.label = _label_name(block)
        nodes.append(node)

    # Label bus: the last sink of a name publishes it
    sinks_by_name: Dict[str, CompiledNode] = {}
    output_names: List[str] = []
    for node in nodes:
        if node.kind == BlockKind.LABEL_SINK:
            sinks_by_name[node.label] = node
            _append_unique(output_names, node.label)

    input_names: List[str] = []
    for node in nodes:
        if node.kind != BlockKind.LABEL_SOURCE:
            continue
        sink = sinks_by_name.get(node.label)
        if sink is None:
            node.external = True
            node.phase = BlockPhase.SOURCE
            _append_unique(input_names, node.label)
        else:
            node.drivers = {0: sink.drivers[0]} if 0 in sink.drivers else {}
            node.ports = [0]

    output_order = [n.handle for n in nodes if n.phase in (BlockPhase.SOURCE, BlockPhase.MEMORY)]
    sink_order = [n.handle for n in nodes if n.phase == BlockPhase.SINK]
    seeds = [n.handle for n in nodes if n.phase == BlockPhase.ALGEBRAIC and n.seeds_loop]
    rest = [n.handle for n in nodes if n.phase == BlockPhase.ALGEBRAIC and not n.seeds_loop]
    algebraic_order = seeds + _stable_topological_order(nodes, rest)

    compiled = CompiledDiagram(
        nodes=nodes,
        handles=handles,
        dt=dt,
        runtime=runtime,
        constants=dict(constants),
        output_order=output_order,
        algebraic_order=algebraic_order,
        sink_order=sink_order,
        input_names=input_names,
        output_names=output_names,
        output_handles={name: sink.handle for name, sink in sinks_by_name.items()},
    )
    logger.debug(
        f"Compiled {len(nodes)} blocks: {len(output_order)} output, "
        f"{len(algebraic_order)} algebraic, {len(sink_order)} sink; dt={dt}"
    )
    return compiled
