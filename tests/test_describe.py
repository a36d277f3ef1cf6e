from __future__ import annotations

from irqpolicy.catalog import Workspace
from irqpolicy.compiler.describe import describe_match, describe_target, target_detail
from irqpolicy.models import ControlRule, ISRDescriptor


def test_seed_rule_descriptions(seed_workspace: Workspace) -> None:
    isrs = seed_workspace.isrs.snapshot()
    arg_rule = seed_workspace.rules.get("1")
    ier_rule = seed_workspace.rules.get("5")

    assert describe_match(arg_rule) == "when argument[0] == -1"
    assert describe_target(arg_rule, isrs) == "global"
    assert describe_match(ier_rule) == "bit N (1 << N), 1 enables"
    assert describe_target(ier_rule, isrs) == "dynamic (by bit index)"


def test_fixed_bit_and_value_patterns() -> None:
    fixed = ControlRule(id="1", mode="REGISTER_WRITE", identifier="NVIC_ISER", reg_bit_index=4)
    write = ControlRule(id="2", mode="REGISTER_WRITE", identifier="BASEPRI", pattern="WRITE_VAL", match_value="0")
    call = ControlRule(id="3", mode="FUNCTION_CALL", identifier="__disable_irq")
    by_id = ControlRule(id="4", mode="FUNCTION_CALL", identifier="disable_irq", pattern="ARG_AS_ID", arg_index=0)

    assert describe_match(fixed) == "bit 4, 1 disables"
    assert describe_match(write) == "written value == 0"
    assert describe_match(call) == "call __disable_irq()"
    assert describe_match(by_id) == "argument[0] selects ISR by hardware id"
    assert describe_target(by_id, []) == "dynamic (by hardware id)"
    assert target_detail(by_id) == "Dynamic (Matches HW ID)"


def test_target_names_linked_isr_or_unknown() -> None:
    isr = ISRDescriptor(id="2", function_name="USART1_IRQHandler", hardware_id="37")
    rule = ControlRule(id="1", mode="FUNCTION_CALL", identifier="f", target_scope="SPECIFIC", linked_isr_id="2")

    assert describe_target(rule, [isr]) == "USART1_IRQHandler"
    assert describe_target(rule, []) == "unknown ISR"


def test_target_detail_is_derived_not_stored() -> None:
    fixed = ControlRule(
        id="1",
        mode="REGISTER_WRITE",
        identifier="IMR",
        reg_bit_index=3,
        target_scope="SPECIFIC",
    )
    dynamic = ControlRule(
        id="2",
        mode="REGISTER_WRITE",
        identifier="IER",
        reg_bit_mode="DYNAMIC",
        reg_polarity="0_DISABLES",
    )

    assert target_detail(fixed) == "Bit 3 (1=Off)"
    assert fixed.target_detail is None
    assert describe_target(fixed, []) == "Bit 3 (1=Off)"
    assert target_detail(dynamic) == "Bit N (1 << N) [Active High]"


def test_stored_detail_wins_and_plain_specific_fallback() -> None:
    stored = ControlRule(id="1", mode="FUNCTION_CALL", identifier="f", target_scope="SPECIFIC", target_detail="UART block")
    plain = ControlRule(id="2", mode="FUNCTION_CALL", identifier="g", target_scope="SPECIFIC")

    assert describe_target(stored, []) == "UART block"
    assert describe_target(plain, []) == "specific"
