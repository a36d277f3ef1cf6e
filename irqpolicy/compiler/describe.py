"""Human-readable rule descriptions for review listings.

Informational only: nothing here is read back by the compiler.
"""

from __future__ import annotations

from typing import Iterable

from ..models import ControlRule, ISRDescriptor
from .effects import find_isr


def describe_match(rule: ControlRule) -> str:
    if rule.pattern == "SIMPLE":
        return f"call {rule.identifier}()"
    if rule.pattern == "ARG_MATCH":
        return f"when argument[{rule.arg_index}] == {rule.match_value}"
    if rule.pattern == "ARG_AS_ID":
        return f"argument[{rule.arg_index}] selects ISR by hardware id"
    if rule.pattern == "WRITE_VAL":
        return f"written value == {rule.match_value}"
    if rule.pattern == "BITWISE_MASK":
        return f"masked value == {rule.match_value}"
    if rule.pattern == "REG_BIT_MAPPING":
        index = "bit N (1 << N)" if rule.reg_bit_mode == "DYNAMIC" else f"bit {rule.reg_bit_index}"
        logic = "1 disables" if rule.reg_polarity == "1_DISABLES" else "1 enables"
        return f"{index}, {logic}"
    return rule.pattern


def target_detail(rule: ControlRule) -> str | None:
    """Stored fallback text, or one derived from pattern and polarity."""
    if rule.target_detail:
        return rule.target_detail
    if rule.linked_isr_id:
        return None

    if rule.pattern == "ARG_AS_ID":
        return "Dynamic (Matches HW ID)"
    if rule.pattern == "REG_BIT_MAPPING":
        if rule.reg_bit_mode == "DYNAMIC":
            logic = "Active Low" if rule.reg_polarity == "1_DISABLES" else "Active High"
            return f"Bit N (1 << N) [{logic}]"
        logic = "1=Off" if rule.reg_polarity == "1_DISABLES" else "0=Off"
        return f"Bit {rule.reg_bit_index} ({logic})"
    return None


def describe_target(rule: ControlRule, isrs: Iterable[ISRDescriptor]) -> str:
    if rule.pattern == "ARG_AS_ID":
        return "dynamic (by hardware id)"
    if rule.mode == "REGISTER_WRITE" and rule.reg_bit_mode == "DYNAMIC":
        return "dynamic (by bit index)"
    if rule.target_scope == "GLOBAL":
        return "global"

    if rule.linked_isr_id:
        isr = find_isr(isrs, rule.linked_isr_id)
        return isr.function_name if isr is not None else "unknown ISR"
    return target_detail(rule) or "specific"
