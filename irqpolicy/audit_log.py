"""
Audit log for catalog mutations and policy exports.

Every state-changing command appends one JSON Lines entry to
`.irqpolicy/audit.log` recording what was removed and what was added,
including rule links cleared when an ISR is deleted.
"""

import json
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

AUDIT_LOG_NAME = "audit.log"


@dataclass
class ChangeCounts:
    """Counts of catalog entries and files touched by an operation."""
    isrs: int = 0
    rules: int = 0
    links: int = 0
    files: int = 0
    bytes: int = 0
    details: dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.isrs or self.rules or self.links or self.files)


@dataclass
class AuditEntry:
    """A single audit log entry."""
    timestamp: str
    operation: str
    removed: ChangeCounts
    added: ChangeCounts
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "operation": self.operation,
            "removed": asdict(self.removed),
            "added": asdict(self.added),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuditEntry":
        return cls(
            timestamp=data["timestamp"],
            operation=data["operation"],
            removed=ChangeCounts(**data.get("removed", {})),
            added=ChangeCounts(**data.get("added", {})),
            metadata=data.get("metadata", {}),
        )


def get_audit_log_path(root: Path) -> Path:
    return root / ".irqpolicy" / AUDIT_LOG_NAME


def log_operation(
    root: Path,
    operation: str,
    removed: ChangeCounts | None = None,
    added: ChangeCounts | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuditEntry:
    """
    Append an operation to the audit log.

    Args:
        root: Workspace root (the directory holding `.irqpolicy/`)
        operation: Name of the operation (e.g., "isr-delete", "policy-export")
        removed: What the operation removed or cleared
        added: What the operation created
        metadata: Additional context (ids, output paths, digest)

    Returns:
        The created audit entry
    """
    entry = AuditEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        operation=operation,
        removed=removed or ChangeCounts(),
        added=added or ChangeCounts(),
        metadata=metadata or {},
    )

    log_path = get_audit_log_path(root)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry.to_dict()) + "\n")

    return entry


def read_audit_log(root: Path, last_n: int | None = None) -> list[AuditEntry]:
    """Read audit entries, oldest first; malformed lines are skipped."""
    log_path = get_audit_log_path(root)
    if not log_path.exists():
        return []

    entries = []
    with log_path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(AuditEntry.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError, TypeError):
                continue

    if last_n is not None:
        return entries[-last_n:]
    return entries


def _counts_text(counts: ChangeCounts) -> str:
    parts = []
    if counts.isrs:
        parts.append(f"{counts.isrs} ISRs")
    if counts.rules:
        parts.append(f"{counts.rules} rules")
    if counts.links:
        parts.append(f"{counts.links} links")
    if counts.files:
        parts.append(f"{counts.files} files")
    return ", ".join(parts)


def format_audit_entry(entry: AuditEntry) -> str:
    lines = [f"[{entry.timestamp}] {entry.operation}"]

    if not entry.removed.is_empty():
        lines.append(f"  Removed: {_counts_text(entry.removed)}")
    if not entry.added.is_empty():
        lines.append(f"  Added: {_counts_text(entry.added)}")

    for key, value in entry.metadata.items():
        lines.append(f"  {key}: {value}")

    return "\n".join(lines)
