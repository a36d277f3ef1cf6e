"""
Rule compiler: control rules + ISR catalog -> ordered (trigger, effect) pairs.

Compilation is a pure function of its inputs. Rules come out in catalog
order, one pair per rule, with no reordering or deduplication.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Iterable

from ..models import ControlRule, ISRDescriptor
from .effects import build_effect
from .triggers import build_trigger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledRule:
    rule_id: str
    trigger: dict[str, Any]
    effect: dict[str, Any]

    @property
    def scope(self) -> str:
        return self.effect["scope"]

    @property
    def is_unresolved(self) -> bool:
        """Specific scope whose linked ISR could not be found."""
        return self.scope == "specific" and "target_hw_id" not in self.effect

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger": copy.deepcopy(self.trigger),
            "effect": copy.deepcopy(self.effect),
        }


def compile_rule(rule: ControlRule, isrs: Iterable[ISRDescriptor]) -> CompiledRule:
    return CompiledRule(
        rule_id=rule.id,
        trigger=build_trigger(rule),
        effect=build_effect(rule, isrs),
    )


def compile_rules(
    rules: Iterable[ControlRule],
    isrs: Iterable[ISRDescriptor],
) -> list[CompiledRule]:
    isr_snapshot = tuple(isrs)
    compiled = [compile_rule(rule, isr_snapshot) for rule in rules]

    unresolved = [c.rule_id for c in compiled if c.is_unresolved]
    if unresolved:
        logger.debug("rules with unresolved specific target: %s", ", ".join(unresolved))
    return compiled
