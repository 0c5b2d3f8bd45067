from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import advance_clock, get_scalar, sample_due, sample_period
from blocks.param_templates import sample_time_param
from diagsim.realization import realize_discrete_tf


class DiscreteTransferFunctionBlock(BaseBlock):
    """
    Discrete transfer function num(z)/den(z), evaluated as a direct-form
    recurrence whenever the block's sample clock fires.
    """

    @property
    def kind(self):
        return BlockKind.DTF

    @property
    def block_name(self):
        return "DiscreteTranFn"

    @property
    def category(self):
        return "Control"

    @property
    def color(self):
        return "magenta"

    @property
    def doc(self):
        return (
            "Discrete Transfer Function."
            "\n\nH(z) = num(z) / den(z), coefficients in descending powers of z."
            "\n\ny[k] = sum(b_i*u[k-i]) - sum(a_j*y[k-j])"
            "\n\nThe output is held between samples."
        )

    @property
    def params(self):
        return {
            "num": {"type": "list", "default": [1.0], "doc": "Numerator coefficients (descending powers of z)."},
            "den": {"type": "list", "default": [1.0, -0.5], "doc": "Denominator coefficients (descending powers of z)."},
            **sample_time_param(),
        }

    @property
    def b_type(self):
        return BlockPhase.MEMORY

    def prepare(self, values, dt):
        return {
            "model": realize_discrete_tf(values["num"], values["den"]),
            "ts": sample_period(values["ts"], dt),
        }

    def init_state(self, payload, dt):
        model = payload["model"]
        return {
            "x_hist": [0.0] * len(model.num),
            "y_hist": [0.0] * (len(model.den) - 1),
            "last": 0.0,
            "next": 0.0,
        }

    def output(self, time, inputs, params, state, dtime):
        return state["last"]

    def update(self, time, inputs, params, state, dtime):
        if not sample_due(time, state):
            return
        x_hist = state["x_hist"]
        y_hist = state["y_hist"]
        x_hist.insert(0, get_scalar(inputs, 0))
        x_hist.pop()
        y = params["model"].evaluate(x_hist, y_hist)
        if y_hist:
            y_hist.insert(0, y)
            y_hist.pop()
        state["last"] = y
        advance_clock(state, params["ts"])
