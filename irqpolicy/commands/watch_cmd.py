"""Watch command - recompile the policy whenever the catalog file changes."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from rich.console import Console

from ..watcher import run_watch_loop
from .compile_cmd import compute_export_plan, execute_export_plan


def run_watch(
    root: Path,
    catalog_path: Path,
    out: Path,
    include_timestamp: bool = True,
) -> None:
    """
    Compile once, then recompile `out` on every settled catalog change.

    This is a blocking command that runs until interrupted (Ctrl+C). A catalog
    that fails to parse mid-edit is reported and the previous output is kept.
    """
    console = Console(stderr=True)
    compile_count = 0

    def recompile(path: Path) -> None:
        nonlocal compile_count
        timestamp = datetime.now().strftime("%H:%M:%S")
        try:
            plan = compute_export_plan(root, path, out, include_timestamp)
        except (OSError, ValueError) as e:
            console.print(f"[dim]{timestamp}[/dim] [red]compile failed:[/red] {e}")
            return

        if plan.unchanged:
            console.print(f"[dim]{timestamp} policy unchanged ({plan.digest[:12]})[/dim]")
            return

        result = execute_export_plan(plan)
        compile_count += 1
        console.print(
            f"[dim]{timestamp}[/dim] wrote {out} "
            f"({plan.rule_count} rules, digest {plan.digest[:12]})"
        )
        if (root / ".irqpolicy").is_dir():
            result.log_to_audit(root, "policy-export", {"path": str(out), "digest": plan.digest, "trigger": "watch"})

    console.print(f"[bold]Watching[/bold] {catalog_path}")
    console.print(f"  Output: {out}")
    console.print()
    console.print("[dim]Press Ctrl+C to stop watching[/dim]")
    console.print()

    recompile(catalog_path)

    try:
        run_watch_loop(catalog_path, recompile)
    except KeyboardInterrupt:
        pass
    console.print()
    console.print(f"[bold]Stopped.[/bold] Recompiled {compile_count} times.")
