import ast
import logging
import os
from typing import Any, Dict, List, Mapping, Optional

from diagsim.expressions import build_constants, resolve_list, resolve_numeric

logger = logging.getLogger(__name__)


class Workspace:
    """
    Named constants for one simulation run.

    Seeded with ``pi``, ``e`` and the diagram's variables. Each compiled
    diagram owns its own workspace, so constants never leak between runs.
    """

    def __init__(self, variables: Optional[Mapping[str, Any]] = None):
        self.variables: Dict[str, Any] = dict(variables or {})
        self.workspace_file = None
        self.constants = build_constants(self.variables)

    def load_from_file(self, filepath):
        """
        Load extra variables from a text file.
        Supported syntax: ``name = expression`` per line, where the expression
        may use constants defined above it.
        """
        if not os.path.exists(filepath):
            logger.error(f"Workspace file not found: {filepath}")
            return False

        try:
            with open(filepath, 'r') as f:
                content = f.read()
            tree = ast.parse(content)
        except (OSError, SyntaxError, ValueError) as e:
            logger.error(f"Error loading workspace file: {e}")
            return False

        new_variables = {}
        for node in tree.body:
            if not isinstance(node, ast.Assign):
                logger.warning(f"Skipping non-assignment on line {node.lineno} of {filepath}")
                continue
            expression = ast.get_source_segment(content, node.value)
            for target in node.targets:
                if isinstance(target, ast.Name):
                    new_variables[target.id] = expression

        # Overridden names move to the end so they resolve in file order
        for name in new_variables:
            self.variables.pop(name, None)
        self.variables.update(new_variables)
        self.constants = build_constants(self.variables)
        self.workspace_file = filepath
        logger.info(f"Loaded {len(new_variables)} variables from {filepath}")
        return True

    def resolve(self, value: Any) -> float:
        """Resolve a scalar parameter against this workspace (0.0 on failure)."""
        return resolve_numeric(value, self.constants)

    def resolve_list(self, value: Any) -> List[float]:
        """Resolve a coefficient list against this workspace."""
        return resolve_list(value, self.constants)
