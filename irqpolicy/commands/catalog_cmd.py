"""ISR and control-rule catalog commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from ..audit_log import ChangeCounts, log_operation
from ..catalog import ProjectMeta, Workspace, init_workspace, load_workspace, save_workspace, workspace_file
from ..catalog.load import isr_to_dict, rule_to_dict
from ..compiler import compile_rule
from ..compiler.describe import describe_match, describe_target
from ..compiler.effects import effective_scope
from ..models import patterns_for_mode


def _load(root: Path, console: Console) -> Workspace | None:
    """Load the workspace, reporting a missing or malformed file."""
    path = workspace_file(root)
    try:
        return load_workspace(path)
    except (OSError, ValueError) as e:
        console.print(f"Cannot load {path}: {e}", style="bold red")
        return None


def _save(root: Path, workspace: Workspace) -> None:
    save_workspace(workspace_file(root), workspace)


def run_init(
    root: Path,
    project: str | None = None,
    engine: str | None = None,
    note: str | None = None,
) -> int:
    """Create a workspace holding the built-in seed catalogs."""
    console = Console(stderr=True)

    defaults = ProjectMeta()
    meta = ProjectMeta(
        project=project or root.resolve().name or defaults.project,
        engine=engine or defaults.engine,
        note=note,
    )
    try:
        path, workspace = init_workspace(root, meta)
    except FileExistsError as e:
        console.print(f"Workspace already exists: {e}", style="bold red")
        return 1

    log_operation(
        root,
        "workspace-init",
        added=ChangeCounts(isrs=len(workspace.isrs), rules=len(workspace.rules), files=1),
        metadata={"project": meta.project, "path": str(path)},
    )
    console.print(f"Initialized workspace at {path}", style="green")
    console.print(f"  Seeded {len(workspace.isrs)} ISRs and {len(workspace.rules)} rules", style="dim")
    return 0


# -----------------------------------------------------------------------------
# ISRs
# -----------------------------------------------------------------------------


def run_isr_add(
    root: Path,
    function_name: str,
    priority: int = 0,
    hardware_id: str = "",
    description: str | None = None,
) -> int:
    console = Console(stderr=True)
    workspace = _load(root, console)
    if workspace is None:
        return 1

    try:
        isr = workspace.isrs.add(function_name, priority, hardware_id, description)
    except ValueError as e:
        console.print(str(e), style="bold red")
        return 1

    _save(root, workspace)
    log_operation(root, "isr-add", added=ChangeCounts(isrs=1), metadata={"isr_id": isr.id, "symbol": isr.function_name})
    console.print(f"Added ISR {isr.id}: {isr.function_name}", style="green")
    return 0


def run_isr_delete(root: Path, isr_id: str) -> int:
    """Delete an ISR; rules linked to it lose their link but are kept."""
    console = Console(stderr=True)
    workspace = _load(root, console)
    if workspace is None:
        return 1

    try:
        isr, unlinked = workspace.delete_isr(isr_id)
    except KeyError:
        console.print(f"ISR not found: {isr_id}", style="bold red")
        return 1

    _save(root, workspace)
    log_operation(
        root,
        "isr-delete",
        removed=ChangeCounts(isrs=1, links=len(unlinked)),
        metadata={"isr_id": isr.id, "symbol": isr.function_name, "unlinked_rules": unlinked},
    )
    console.print(f"Deleted ISR {isr.id}: {isr.function_name}", style="green")
    if unlinked:
        console.print(f"  Unlinked rules: {', '.join(unlinked)}", style="yellow")
    return 0


def run_isr_list(root: Path, output_json: bool = False) -> int:
    workspace = _load(root, Console(stderr=True))
    if workspace is None:
        return 1

    if output_json:
        print(json.dumps([isr_to_dict(i) for i in workspace.isrs], indent=2, ensure_ascii=False))
        return 0

    console = Console()
    if not len(workspace.isrs):
        console.print("[dim]No ISRs defined.[/dim]")
        return 0

    table = Table(title=f"ISRs ({len(workspace.isrs)})")
    table.add_column("ID", style="dim")
    table.add_column("Function", style="cyan")
    table.add_column("Priority", justify="right")
    table.add_column("HW")
    table.add_column("Description")
    for isr in workspace.isrs:
        hw = "software" if isr.is_software_only else (isr.hardware_id or "-")
        table.add_row(isr.id, isr.function_name, str(isr.priority), hw, isr.description or "")
    console.print(table)
    return 0


# -----------------------------------------------------------------------------
# Control rules
# -----------------------------------------------------------------------------


def run_rule_add(
    root: Path,
    mode: str,
    identifier: str,
    pattern: str | None = None,
    **fields: Any,
) -> int:
    """Add a control rule.

    `pattern` defaults to the first pattern offered for `mode`. A linked ISR
    must exist and is only kept for specific, non-dynamic rules.
    """
    console = Console(stderr=True)
    workspace = _load(root, console)
    if workspace is None:
        return 1

    allowed = patterns_for_mode(mode)
    pattern = pattern or allowed[0]
    if pattern not in allowed:
        console.print(f"Pattern {pattern} is not valid for {mode}", style="bold red")
        console.print(f"Available: {', '.join(allowed)}", style="dim")
        return 1

    linked = fields.pop("linked_isr_id", None)
    if linked is not None and workspace.isrs.get(linked) is None:
        console.print(f"ISR not found: {linked}", style="bold red")
        return 1

    dynamic = pattern == "ARG_AS_ID" or (mode == "REGISTER_WRITE" and fields.get("reg_bit_mode") == "DYNAMIC")
    if linked is not None and (fields.get("target_scope") != "SPECIFIC" or dynamic):
        console.print("Ignoring --isr: only specific, non-dynamic rules link an ISR", style="yellow")
        linked = None

    try:
        rule = workspace.rules.add(mode, identifier, pattern=pattern, linked_isr_id=linked, **fields)
    except ValueError as e:
        console.print(str(e), style="bold red")
        return 1

    _save(root, workspace)
    log_operation(
        root,
        "rule-add",
        added=ChangeCounts(rules=1, links=1 if linked else 0),
        metadata={"rule_id": rule.id, "symbol": rule.identifier, "pattern": rule.pattern},
    )
    console.print(f"Added rule {rule.id}: {rule.action} {rule.identifier}", style="green")
    console.print(f"  Match: {describe_match(rule)}", style="dim")
    console.print(f"  Target: {describe_target(rule, workspace.isrs.snapshot())}", style="dim")
    return 0


def run_rule_delete(root: Path, rule_id: str) -> int:
    console = Console(stderr=True)
    workspace = _load(root, console)
    if workspace is None:
        return 1

    try:
        rule = workspace.delete_rule(rule_id)
    except KeyError:
        console.print(f"Rule not found: {rule_id}", style="bold red")
        return 1

    _save(root, workspace)
    log_operation(root, "rule-delete", removed=ChangeCounts(rules=1), metadata={"rule_id": rule.id, "symbol": rule.identifier})
    console.print(f"Deleted rule {rule.id}: {rule.identifier}", style="green")
    return 0


def run_rule_list(root: Path, output_json: bool = False) -> int:
    workspace = _load(root, Console(stderr=True))
    if workspace is None:
        return 1
    isrs = workspace.isrs.snapshot()

    if output_json:
        print(json.dumps([rule_to_dict(r) for r in workspace.rules], indent=2, ensure_ascii=False))
        return 0

    console = Console()
    if not len(workspace.rules):
        console.print("[dim]No control rules defined.[/dim]")
        return 0

    table = Table(title=f"Control rules ({len(workspace.rules)})")
    table.add_column("ID", style="dim")
    table.add_column("Action")
    table.add_column("Symbol", style="cyan")
    table.add_column("Match")
    table.add_column("Target")
    table.add_column("Scope")
    for rule in workspace.rules:
        action_style = "red" if rule.action == "DISABLE" else "green"
        target = describe_target(rule, isrs)
        if target == "unknown ISR":
            target = f"[red]{target}[/red]"
        table.add_row(
            rule.id,
            f"[{action_style}]{rule.action}[/{action_style}]",
            rule.identifier,
            describe_match(rule),
            target,
            effective_scope(rule),
        )
    console.print(table)
    return 0


def run_rule_show(root: Path, rule_id: str) -> int:
    """Print one rule with its compiled (trigger, effect) pair."""
    err = Console(stderr=True)
    workspace = _load(root, err)
    if workspace is None:
        return 1
    rule = workspace.rules.get(rule_id)
    if rule is None:
        err.print(f"Rule not found: {rule_id}", style="bold red")
        return 1

    isrs = workspace.isrs.snapshot()
    compiled = compile_rule(rule, isrs)

    console = Console()
    console.print(f"[bold]Rule {rule.id}[/bold] {rule.action} {rule.identifier}")
    console.print(f"  Match: {describe_match(rule)}")
    console.print(f"  Target: {describe_target(rule, isrs)}")
    if compiled.is_unresolved:
        console.print("  [yellow]Specific target is unresolved (linked ISR missing)[/yellow]")
    print(json.dumps(compiled.to_dict(), indent=2, ensure_ascii=False))
    return 0
