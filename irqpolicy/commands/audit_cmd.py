"""Audit command - show the catalog mutation and export history."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console

from ..audit_log import format_audit_entry, read_audit_log


def run_audit(root: Path, last_n: int | None = None, output_json: bool = False) -> int:
    entries = read_audit_log(root, last_n=last_n)

    if output_json:
        print(json.dumps([e.to_dict() for e in entries], indent=2))
        return 0

    console = Console()
    if not entries:
        console.print("[dim]No audit entries.[/dim]")
        return 0

    for entry in entries:
        console.print(format_audit_entry(entry), highlight=False)
    return 0
