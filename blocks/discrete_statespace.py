from blocks.block_kind import BlockKind
from blocks.input_helpers import advance_clock, get_scalar, sample_due, sample_period
from blocks.param_templates import sample_time_param, state_space_params
from blocks.statespace_base import StateSpaceBaseBlock


class DiscreteStateSpaceBlock(StateSpaceBaseBlock):
    """
    Discrete scalar state-space block clocked at its own sample period.
    """

    @property
    def kind(self):
        return BlockKind.DSTATE_SPACE

    @property
    def block_name(self):
        return "DiscreteStateSpace"

    @property
    def doc(self):
        return (
            "Discrete State-Space Model (scalar)."
            "\n\nx[k+1] = A*x[k] + B*u[k]"
            "\ny[k]   = C*x[k+1] + D*u[k]"
            "\n\nEvaluated when the sample clock fires; the output is held between samples."
        )

    @property
    def params(self):
        return {
            **state_space_params(default_a=0.5),
            **sample_time_param(),
        }

    def prepare(self, values, dt):
        return {"ts": sample_period(values["ts"], dt)}

    def init_state(self, payload, dt):
        state = super().init_state(payload, dt)
        state["next"] = 0.0
        return state

    def update(self, time, inputs, params, state, dtime):
        if not sample_due(time, state):
            return
        u = get_scalar(inputs, 0)
        state["x"] = params["A"] * state["x"] + params["B"] * u
        state["out"] = self._output_equation(params, state["x"], u)
        advance_clock(state, params["ts"])
