"""Policy document rendering for the analysis engine.

The document layout is:

    meta               project/engine identity, format version, timestamp, digest
    interrupt_vectors  the ISR catalog, one entry per ISR in catalog order
    control_rules      compiled (trigger, effect) pairs in catalog order

`digest` covers only `interrupt_vectors` and `control_rules`, so two
documents compiled from the same catalogs share it even when generated at
different times.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Iterable

from ..catalog.store import ProjectMeta, Workspace
from ..models import ISRDescriptor
from .compiler import CompiledRule, compile_rules

POLICY_FORMAT_VERSION = "1.0"


def canonical_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def policy_digest(vectors: list[dict[str, Any]], rules: list[dict[str, Any]]) -> str:
    payload = canonical_json({"interrupt_vectors": vectors, "control_rules": rules})
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def interrupt_vector(isr: ISRDescriptor) -> dict[str, Any]:
    return {"symbol": isr.function_name, "hw_id": isr.hw_id, "priority": isr.priority}


def build_policy_document(
    meta: ProjectMeta,
    isrs: Iterable[ISRDescriptor],
    compiled: Iterable[CompiledRule],
    *,
    generated_at: datetime | None = None,
    include_timestamp: bool = True,
) -> dict[str, Any]:
    vectors = [interrupt_vector(isr) for isr in isrs]
    rules = [c.to_dict() for c in compiled]

    header: dict[str, Any] = {
        "project": meta.project,
        "version": POLICY_FORMAT_VERSION,
        "engine": meta.engine,
    }
    if include_timestamp:
        header["generated_at"] = (generated_at or datetime.now(timezone.utc)).isoformat()
    header["digest"] = policy_digest(vectors, rules)
    if meta.note:
        header["note"] = meta.note

    return {"meta": header, "interrupt_vectors": vectors, "control_rules": rules}


def compile_policy(
    workspace: Workspace,
    *,
    generated_at: datetime | None = None,
    include_timestamp: bool = True,
) -> dict[str, Any]:
    """Compile both catalogs of `workspace` into a policy document."""
    isrs = workspace.isrs.snapshot()
    compiled = compile_rules(workspace.rules.snapshot(), isrs)
    return build_policy_document(
        workspace.meta,
        isrs,
        compiled,
        generated_at=generated_at,
        include_timestamp=include_timestamp,
    )


def render_policy(document: dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
