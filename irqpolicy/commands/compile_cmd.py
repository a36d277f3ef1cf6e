"""Compile command - render the policy document for the analysis engine."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console

from ..audit_log import ChangeCounts
from ..catalog import load_catalog
from ..compiler import compile_policy, render_policy
from ..planning import PolicyExportPlan, PolicyExportResult

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# compute (pure) / execute (writes)
# -----------------------------------------------------------------------------


def compute_export_plan(
    root: Path,
    catalog_path: Path,
    out: Path | None = None,
    include_timestamp: bool = True,
) -> PolicyExportPlan:
    """Compile the catalogs and describe what exporting would write."""
    workspace = load_catalog(catalog_path)
    document = compile_policy(workspace, include_timestamp=include_timestamp)

    existing = None
    if out is not None and out.exists():
        existing = out.read_text(encoding="utf-8")

    return PolicyExportPlan(
        root=root,
        document=document,
        content=render_policy(document),
        target_path=out,
        existing_content=existing,
    )


def execute_export_plan(plan: PolicyExportPlan) -> PolicyExportResult:
    if plan.target_path is None:
        print(plan.content, end="")
        return PolicyExportResult(success=True)

    plan.target_path.parent.mkdir(parents=True, exist_ok=True)
    plan.target_path.write_text(plan.content, encoding="utf-8")

    removed = ChangeCounts()
    if plan.existing_content is not None:
        removed = ChangeCounts(files=1, bytes=len(plan.existing_content.encode("utf-8")))

    return PolicyExportResult(
        removed=removed,
        added=ChangeCounts(files=1, bytes=len(plan.content.encode("utf-8"))),
        success=True,
        output_path=plan.target_path,
    )


def run_compile(
    root: Path,
    catalog_path: Path,
    out: Path | None = None,
    include_timestamp: bool = True,
    dry_run: bool = False,
) -> int:
    """Compile catalogs into a policy document.

    Args:
        root: Workspace root, used for the audit log
        catalog_path: Workspace JSON or TOML catalog to compile
        out: Output file (default: stdout)
        include_timestamp: Put `generated_at` in the document header
        dry_run: Show the plan without writing anything

    Returns:
        Exit code (0 = success, 1 = failure)
    """
    console = Console(stderr=True)

    try:
        plan = compute_export_plan(root, catalog_path, out, include_timestamp)
    except (OSError, ValueError) as e:
        console.print(f"Cannot compile {catalog_path}: {e}", style="bold red")
        return 1

    if dry_run:
        console.print(plan.summary())
        return 0

    result = execute_export_plan(plan)
    if not result.success:
        console.print(f"Export failed: {result.error}", style="bold red")
        return 1

    if result.output_path is not None:
        console.print(f"Wrote {result.output_path}", style="green")
        console.print(
            f"  {plan.vector_count} interrupt vectors, {plan.rule_count} control rules, digest {plan.digest[:12]}",
            style="dim",
        )
        if (root / ".irqpolicy").is_dir():
            result.log_to_audit(
                root,
                "policy-export",
                {"path": str(result.output_path), "digest": plan.digest, "catalog": str(catalog_path)},
            )
    return 0
