"""Trigger construction: which source operation a rule matches."""

from __future__ import annotations

from typing import Any, Callable

from ..models import ControlRule

DYNAMIC_SHIFT = "dynamic_shift"

MatchBuilder = Callable[[ControlRule], dict[str, Any]]


def match_always(rule: ControlRule) -> dict[str, Any]:
    return {"type": "always"}


def match_arg_eq(rule: ControlRule) -> dict[str, Any]:
    return {"type": "arg_eq", "index": rule.arg_index, "value": rule.match_value}


def match_arg_is_id(rule: ControlRule) -> dict[str, Any]:
    return {"type": "arg_is_id", "index": rule.arg_index}


def match_val_eq(rule: ControlRule) -> dict[str, Any]:
    return {"type": "val_eq", "value": rule.match_value}


def match_mask_eq(rule: ControlRule) -> dict[str, Any]:
    return {"type": "mask_eq", "value": rule.match_value}


def match_bit_logic(rule: ControlRule) -> dict[str, Any]:
    # disable_value is taken from the polarity alone, never from `action`
    bit_index: int | str = DYNAMIC_SHIFT if rule.reg_bit_mode == "DYNAMIC" else rule.reg_bit_index
    return {
        "type": "bit_logic",
        "bit_index": bit_index,
        "disable_value": 1 if rule.reg_polarity == "1_DISABLES" else 0,
    }


MATCH_BUILDERS: dict[str, MatchBuilder] = {
    "SIMPLE": match_always,
    "ARG_MATCH": match_arg_eq,
    "ARG_AS_ID": match_arg_is_id,
    "WRITE_VAL": match_val_eq,
    "BITWISE_MASK": match_mask_eq,
    "REG_BIT_MAPPING": match_bit_logic,
}


def build_trigger(rule: ControlRule) -> dict[str, Any]:
    builder = MATCH_BUILDERS.get(rule.pattern, match_always)
    return {
        "type": "call" if rule.mode == "FUNCTION_CALL" else "write",
        "symbol": rule.identifier,
        "match": builder(rule),
    }
