import importlib
import inspect
import logging
import pkgutil
from typing import Dict, Iterable, List, Type

import blocks
from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind

logger = logging.getLogger(__name__)

_SKIPPED_MODULES = {"base_block", "block_kind", "input_helpers", "param_templates"}


def load_blocks() -> List[Type[BaseBlock]]:
    """
    Scans the 'blocks' package, imports all block modules, and returns every
    concrete block class defined in them.
    """
    block_classes = []
    for module_info in pkgutil.iter_modules(blocks.__path__):
        if module_info.ispkg or module_info.name in _SKIPPED_MODULES:
            continue
        module_name = f"blocks.{module_info.name}"
        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            logger.error(f"Error loading block module {module_name}: {e}")
            continue
        for _, obj in inspect.getmembers(module, inspect.isclass):
            if (issubclass(obj, BaseBlock) and obj.__module__ == module.__name__
                    and not inspect.isabstract(obj)):
                block_classes.append(obj)
    return block_classes


def build_registry(block_classes: Iterable[Type[BaseBlock]]) -> Dict[BlockKind, BaseBlock]:
    """
    Map every BlockKind to exactly one block instance.

    Raises:
        RuntimeError: if a kind has no implementation or more than one.
    """
    registry: Dict[BlockKind, BaseBlock] = {}
    for block_class in block_classes:
        block = block_class()
        kind = block.kind
        if kind in registry:
            raise RuntimeError(
                f"Block kind '{kind.value}' is implemented by both "
                f"{type(registry[kind]).__name__} and {block_class.__name__}"
            )
        registry[kind] = block

    missing = [kind.value for kind in BlockKind if kind not in registry]
    if missing:
        raise RuntimeError(f"No block implementation for kind(s): {', '.join(missing)}")
    return registry


BLOCK_REGISTRY = build_registry(load_blocks())


def get_block(kind: BlockKind) -> BaseBlock:
    """Return the shared (stateless) block implementation for ``kind``."""
    return BLOCK_REGISTRY[kind]
