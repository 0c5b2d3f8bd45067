from abc import ABC, abstractmethod
from types import MappingProxyType

from blocks.block_kind import BlockPhase


class BaseBlock(ABC):
    """
    Abstract base class for all simulation blocks.

    A block is stateless itself: everything that changes during a run lives in
    the ``state`` dict the engine hands to ``output`` and ``update``, and
    parameters are resolved once into an immutable payload.
    """

    @property
    @abstractmethod
    def kind(self):
        """The BlockKind this class implements."""
        pass

    @property
    @abstractmethod
    def block_name(self):
        """The user-facing name of the block."""
        pass

    @property
    def category(self):
        return "Other"

    @property
    def color(self):
        return "gray"

    @property
    def doc(self):
        return ""

    @property
    @abstractmethod
    def params(self):
        """A dictionary defining the block's parameters, their types, and default values."""
        pass

    @property
    def inputs(self):
        """A list of input port definitions."""
        return [{"name": "in", "type": "any"}]

    @property
    def outputs(self):
        """A list of output port definitions."""
        return [{"name": "out", "type": "any"}]

    @property
    @abstractmethod
    def b_type(self):
        """The BlockPhase of the block unless ``phase`` says otherwise."""
        pass

    def phase(self, payload):
        """
        Evaluation phase for a resolved payload.

        :param payload: Resolved parameters from ``resolve_params``.
        :return: A BlockPhase.
        """
        return self.b_type

    @property
    def input_fallback(self):
        """Value read by an input port that has no driver."""
        return 0.0

    @property
    def seeds_loop(self):
        """Whether the block starts the algebraic loop already settled at 0.0."""
        return False

    def resolve_params(self, raw, workspace, dt):
        """
        Resolve raw diagram parameters into an immutable payload.

        Values missing from ``raw`` take the schema default. ``float`` and
        ``int`` entries are resolved through the workspace, ``list`` entries
        become lists of floats, ``string`` entries are kept as text.

        :param raw: Parameter dict as written in the diagram.
        :param workspace: Workspace holding the run's constants.
        :param dt: Global sample period.
        :return: A read-only mapping.
        """
        raw = raw or {}
        values = {}
        for name, spec in self.params.items():
            value = raw.get(name, spec.get("default"))
            param_type = spec.get("type", "float")
            if param_type == "list":
                values[name] = tuple(workspace.resolve_list(value))
            elif param_type == "string":
                values[name] = "" if value is None else str(value)
            elif param_type == "int":
                values[name] = int(round(workspace.resolve(value)))
            else:
                values[name] = workspace.resolve(value)
        values.update(self.prepare(values, dt))
        return MappingProxyType(values)

    def prepare(self, values, dt):
        """
        Hook for clamped or derived payload entries.

        :param values: Resolved parameter values.
        :param dt: Global sample period.
        :return: A dict merged into the payload.
        """
        return {}

    def init_state(self, payload, dt):
        """Fresh persistent state for one run."""
        return {}

    @abstractmethod
    def output(self, time, inputs, params, state, dtime):
        """
        Compute the block's output for the current tick.

        :param time: The current simulation time.
        :param inputs: Dict of input values keyed by port index.
        :param params: The resolved payload.
        :param state: The block's persistent state.
        :param dtime: Global sample period.
        :return: The output value as a float.
        """
        pass

    def update(self, time, inputs, params, state, dtime):
        """
        Advance persistent state using this tick's settled inputs.

        Called once per tick after all outputs are settled. Stateless blocks
        keep the default no-op.
        """
        return None

    @property
    def requires_inputs(self):
        """Whether unconnected inputs are worth reporting during validation."""
        return self.category not in ["Sources"] and len(self.inputs) > 0
