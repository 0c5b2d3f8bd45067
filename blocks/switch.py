import logging

from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import get_scalar

logger = logging.getLogger(__name__)

SWITCH_CONDITIONS = ("ge", "gt", "ne")


def condition_holds(condition, control, threshold):
    """Evaluate ``control <op> threshold`` for op in ge/gt/ne."""
    if condition == "gt":
        return control > threshold
    if condition == "ne":
        return control != threshold
    return control >= threshold


class SwitchBlock(BaseBlock):
    """
    Two-way selector.
    Inputs: 0=true signal, 1=control, 2=false signal.
    """

    @property
    def kind(self):
        return BlockKind.SWITCH

    @property
    def block_name(self):
        return "Switch"

    @property
    def category(self):
        return "Routing"

    @property
    def color(self):
        return "orange"

    @property
    def doc(self):
        return (
            "Passes the first input when the control input satisfies the"
            "\ncondition against the threshold, otherwise the third input."
            "\n\nConditions: ge (u2 >= threshold), gt (u2 > threshold), ne (u2 != threshold)."
        )

    @property
    def params(self):
        return {
            "threshold": {"type": "float", "default": 0.0, "doc": "Control threshold."},
            "condition": {"type": "string", "default": "ge", "doc": "'ge', 'gt' or 'ne'."},
        }

    @property
    def inputs(self):
        return [
            {"name": "true", "type": "any"},
            {"name": "ctrl", "type": "any", "group": "control"},
            {"name": "false", "type": "any"},
        ]

    @property
    def b_type(self):
        return BlockPhase.ALGEBRAIC

    def prepare(self, values, dt):
        condition = values["condition"].strip().lower()
        if condition not in SWITCH_CONDITIONS:
            logger.warning(f"Unknown switch condition '{values['condition']}', using 'ge'")
            condition = "ge"
        return {"condition": condition}

    def output(self, time, inputs, params, state, dtime):
        control = get_scalar(inputs, 1)
        if condition_holds(params["condition"], control, params["threshold"]):
            return get_scalar(inputs, 0)
        return get_scalar(inputs, 2)
