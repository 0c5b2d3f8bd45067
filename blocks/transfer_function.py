import logging

from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import get_scalar
from diagsim.realization import realize_tf, rk4_step

logger = logging.getLogger(__name__)


class TransferFunctionBlock(BaseBlock):
    """
    Continuous transfer function num(s)/den(s).

    Realized once at load in controllable canonical form and integrated with
    RK4. Strictly proper transfer functions publish ``Cx`` from held state;
    ones with direct feedthrough (``D != 0``, including static gains) are
    resolved with the algebraic blocks. An all-zero denominator cannot be
    realized and the block outputs 0.0.
    """

    @property
    def kind(self):
        return BlockKind.TF

    @property
    def block_name(self):
        return "TranFn"

    @property
    def category(self):
        return "Control"

    @property
    def color(self):
        return "magenta"

    @property
    def doc(self):
        return (
            "Continuous Transfer Function."
            "\n\nH(s) = num(s) / den(s)"
            "\n\nParameters:"
            "\n- Numerator: Coefficients in descending powers of s. Example: [1] for 1."
            "\n- Denominator: Coefficients in descending powers of s. Example: [1, 1] for s + 1."
            "\n\nUsage:"
            "\nModel linear time-invariant (LTI) systems: motors, filters, plants."
        )

    @property
    def params(self):
        return {
            "num": {"type": "list", "default": [1.0], "doc": "Numerator coefficients (descending powers of s)."},
            "den": {"type": "list", "default": [1.0, 1.0], "doc": "Denominator coefficients (descending powers of s)."},
        }

    @property
    def b_type(self):
        return BlockPhase.MEMORY

    def prepare(self, values, dt):
        model = realize_tf(values["num"], values["den"])
        if model is None:
            logger.warning(f"Transfer function {list(values['den'])} has an all-zero denominator; output is 0")
        return {"model": model}

    def phase(self, payload):
        model = payload["model"]
        if model is None:
            return BlockPhase.SOURCE
        if model.order == 0 or model.has_feedthrough:
            return BlockPhase.ALGEBRAIC
        return BlockPhase.MEMORY

    def init_state(self, payload, dt):
        model = payload["model"]
        if model is None:
            return {}
        return {"x": model.initial_state()}

    def output(self, time, inputs, params, state, dtime):
        model = params["model"]
        if model is None:
            return 0.0
        return model.output(state["x"], get_scalar(inputs, 0))

    def update(self, time, inputs, params, state, dtime):
        model = params["model"]
        if model is None or model.order == 0:
            return
        state["x"] = rk4_step(model, state["x"], get_scalar(inputs, 0), dtime)
