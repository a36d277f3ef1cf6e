"""Built-in catalogs a fresh workspace starts from."""

from __future__ import annotations

from ..models import ControlRule, ISRDescriptor
from .store import ISRCatalog, ProjectMeta, RuleCatalog, Workspace

SEED_ISRS = (
    ISRDescriptor(
        id="1",
        function_name="SysTick_Handler",
        priority=15,
        hardware_id="-1",
        description="System Tick Timer",
    ),
    ISRDescriptor(
        id="2",
        function_name="USART1_IRQHandler",
        priority=1,
        hardware_id="37",
        description="High priority serial comms",
    ),
)

SEED_RULES = (
    ControlRule(
        id="1",
        mode="FUNCTION_CALL",
        identifier="disableisr",
        pattern="ARG_MATCH",
        arg_index=0,
        match_value="-1",
        action="DISABLE",
        target_scope="GLOBAL",
    ),
    ControlRule(
        id="5",
        mode="REGISTER_WRITE",
        identifier="IER",
        pattern="REG_BIT_MAPPING",
        reg_bit_mode="DYNAMIC",
        reg_polarity="0_DISABLES",
        action="ENABLE",
        target_scope="SPECIFIC",
        target_detail="1 << N (Dynamic)",
    ),
)


def seeded_workspace(meta: ProjectMeta | None = None) -> Workspace:
    return Workspace(
        isrs=ISRCatalog(SEED_ISRS),
        rules=RuleCatalog(SEED_RULES),
        meta=meta,
    )
