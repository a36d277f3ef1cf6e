"""Data models for the ISR and control-rule catalogs."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

RuleMode = Literal["FUNCTION_CALL", "REGISTER_WRITE"]
RulePattern = Literal[
    "SIMPLE",
    "ARG_MATCH",
    "ARG_AS_ID",
    "WRITE_VAL",
    "BITWISE_MASK",
    "REG_BIT_MAPPING",
]
RegBitMode = Literal["FIXED", "DYNAMIC"]
RegPolarity = Literal["1_DISABLES", "0_DISABLES"]
RuleAction = Literal["ENABLE", "DISABLE"]
TargetScope = Literal["GLOBAL", "SPECIFIC"]

MODES: tuple[str, ...] = ("FUNCTION_CALL", "REGISTER_WRITE")

# Patterns offered for each mode, first entry is the default
MODE_PATTERNS: dict[str, tuple[str, ...]] = {
    "FUNCTION_CALL": ("SIMPLE", "ARG_MATCH", "ARG_AS_ID"),
    "REGISTER_WRITE": ("REG_BIT_MAPPING", "WRITE_VAL", "BITWISE_MASK"),
}

# Desktop project exports used the short mode names
LEGACY_MODES = {"FUNCTION": "FUNCTION_CALL", "REGISTER": "REGISTER_WRITE"}

NO_HARDWARE_VECTOR = "-1"

_INT_TOKEN = re.compile(r"^[+-]?\d+$")


def patterns_for_mode(mode: str) -> tuple[str, ...]:
    """Return the patterns a rule in `mode` may use."""
    return MODE_PATTERNS.get(mode, ())


def canonical_hw_id(token: str) -> int | str:
    """Canonicalize a hardware vector token.

    Decimal integers (including the "-1" sentinel) become ints; anything else,
    such as a vector macro name or a hex literal written as text, is kept as
    the original token.
    """
    stripped = token.strip()
    if _INT_TOKEN.match(stripped):
        return int(stripped)
    return token


@dataclass(frozen=True)
class ISRDescriptor:
    """An interrupt service routine bound to a hardware vector."""

    id: str
    function_name: str
    priority: int = 0  # 0 is highest
    hardware_id: str = ""
    description: str | None = None

    @property
    def hw_id(self) -> int | str:
        return canonical_hw_id(self.hardware_id)

    @property
    def is_software_only(self) -> bool:
        return self.hw_id == canonical_hw_id(NO_HARDWARE_VECTOR)


@dataclass(frozen=True)
class ControlRule:
    """A source-level operation that enables or disables interrupts."""

    id: str
    mode: RuleMode
    identifier: str  # function or register symbol
    pattern: RulePattern = "SIMPLE"

    arg_index: int = 0
    match_value: str | None = None

    reg_bit_mode: RegBitMode = "FIXED"
    reg_bit_index: int = 0  # 0-63, FIXED only
    reg_polarity: RegPolarity = "1_DISABLES"

    action: RuleAction = "DISABLE"  # the goal; bit semantics come from reg_polarity
    target_scope: TargetScope = "GLOBAL"

    linked_isr_id: str | None = None
    target_detail: str | None = None

    @property
    def is_dynamic(self) -> bool:
        """True when the affected ISR is only known per source occurrence."""
        if self.pattern == "ARG_AS_ID":
            return True
        return self.mode == "REGISTER_WRITE" and self.reg_bit_mode == "DYNAMIC"
