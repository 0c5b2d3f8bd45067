from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase


class SumBlock(BaseBlock):
    """
    Signed sum of all input ports.

    ``signs`` holds one factor per port; ports without an entry, or with a
    zero entry, add with +1. A string of '+'/'-' characters ("+-+") is
    accepted as well.
    """

    @property
    def kind(self):
        return BlockKind.SUM

    @property
    def block_name(self):
        return "Sum"

    @property
    def category(self):
        return "Math"

    @property
    def color(self):
        return "lime_green"

    @property
    def params(self):
        return {
            "signs": {"type": "list", "default": [1, 1, 1], "doc": "Sign per input port."},
        }

    @property
    def inputs(self):
        return [{"name": f"in{i + 1}", "type": "any"} for i in range(3)]

    @property
    def b_type(self):
        return BlockPhase.ALGEBRAIC

    def resolve_params(self, raw, workspace, dt):
        signs = (raw or {}).get("signs")
        if isinstance(signs, str) and signs.strip() and set(signs.strip()) <= {"+", "-"}:
            raw = dict(raw)
            raw["signs"] = [1 if ch == "+" else -1 for ch in signs.strip()]
        return super().resolve_params(raw, workspace, dt)

    def prepare(self, values, dt):
        return {"signs": tuple(s if s != 0.0 else 1.0 for s in values["signs"])}

    def sign(self, params, port):
        """Factor applied to ``port``."""
        signs = params["signs"]
        return signs[port] if 0 <= port < len(signs) else 1.0

    def output(self, time, inputs, params, state, dtime):
        total = 0.0
        for port in sorted(inputs):
            total += inputs[port] * self.sign(params, port)
        return total
