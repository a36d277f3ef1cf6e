"""Interrupt control policy compiler (catalogs in, policy document out)."""

from .compiler import CompiledRule, compile_rule, compile_rules
from .serializer import build_policy_document, compile_policy, render_policy

__all__ = [
    "CompiledRule",
    "build_policy_document",
    "compile_policy",
    "compile_rule",
    "compile_rules",
    "render_policy",
]
