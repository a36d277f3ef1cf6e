"""
Plan/result types that separate computing an export from writing it.

Commands that write files first build a plan (pure computation, usable for
--dry-run) and then execute it, producing a result that can be appended to
the audit log.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .audit_log import ChangeCounts, log_operation


@dataclass
class BasePlan(ABC):
    """Base class for operation plans."""
    root: Path

    @abstractmethod
    def summary(self) -> str:
        """Human-readable summary of what would be done."""
        ...


@dataclass
class BaseResult:
    """Base class for operation results."""
    removed: ChangeCounts = field(default_factory=ChangeCounts)
    added: ChangeCounts = field(default_factory=ChangeCounts)
    success: bool = True
    error: str | None = None

    def log_to_audit(self, root: Path, operation: str, metadata: dict[str, Any] | None = None) -> None:
        log_operation(root, operation, self.removed, self.added, metadata or {})


@dataclass
class PolicyExportPlan(BasePlan):
    """Plan for writing a compiled policy document."""
    document: dict[str, Any] = field(default_factory=dict)
    content: str = ""
    target_path: Path | None = None
    existing_content: str | None = None

    @property
    def digest(self) -> str:
        meta = self.document.get("meta")
        return meta.get("digest", "") if isinstance(meta, dict) else ""

    @property
    def rule_count(self) -> int:
        return len(self.document.get("control_rules", []))

    @property
    def vector_count(self) -> int:
        return len(self.document.get("interrupt_vectors", []))

    @property
    def unchanged(self) -> bool:
        """True when the target already holds a policy with the same digest."""
        if self.existing_content is None:
            return False
        try:
            existing = json.loads(self.existing_content)
        except json.JSONDecodeError:
            return False
        meta = existing.get("meta") if isinstance(existing, dict) else None
        if not isinstance(meta, dict):
            return False
        return meta.get("digest") == self.digest

    def summary(self) -> str:
        lines = [
            "Policy Export Plan",
            f"  Target: {self.target_path or 'stdout'}",
            f"  Interrupt vectors: {self.vector_count}",
            f"  Control rules: {self.rule_count}",
            f"  Digest: {self.digest}",
        ]
        if self.target_path and self.existing_content is not None:
            state = "unchanged" if self.unchanged else "will be replaced"
            lines.append(f"  Existing policy: {state}")
        return "\n".join(lines)


@dataclass
class PolicyExportResult(BaseResult):
    """Result of writing a policy document."""
    output_path: Path | None = None
