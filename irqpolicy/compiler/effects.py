"""Effect construction: what a matched rule does, and to which vector."""

from __future__ import annotations

from typing import Any, Iterable

from ..models import ControlRule, ISRDescriptor


def effective_scope(rule: ControlRule) -> str:
    """Return "dynamic", "global" or "specific".

    Rules whose target is picked per occurrence (argument used as the vector
    id, or a shifted register bit) are dynamic whatever their stored scope.
    """
    if rule.is_dynamic:
        return "dynamic"
    return rule.target_scope.lower()


def find_isr(isrs: Iterable[ISRDescriptor], isr_id: str | None) -> ISRDescriptor | None:
    if isr_id is None:
        return None
    for isr in isrs:
        if isr.id == isr_id:
            return isr
    return None


def build_effect(rule: ControlRule, isrs: Iterable[ISRDescriptor]) -> dict[str, Any]:
    scope = effective_scope(rule)
    effect: dict[str, Any] = {"action": rule.action.lower(), "scope": scope}

    if scope == "specific":
        isr = find_isr(isrs, rule.linked_isr_id)
        # A missing or cleared link stays an unresolved specific target
        if isr is not None:
            effect["target_hw_id"] = isr.hw_id

    return effect
