"""CLI entrypoint for irqpolicy."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .models import MODES


def _auto_detect_workspace(start: Path) -> Path | None:
    """Find the nearest directory holding `.irqpolicy/` by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if (p / ".irqpolicy" / "workspace.json").is_file():
            return p
    return None


def _workspace_root(ctx: click.Context) -> Path:
    root = ctx.obj.get("workspace")
    if root is None:
        root = _auto_detect_workspace(Path.cwd())
        if root is None:
            raise click.ClickException("Workspace not found. Run `irqpolicy init` or pass --workspace /path/to/project.")
    elif not (root / ".irqpolicy" / "workspace.json").is_file():
        raise click.ClickException(f"No workspace in '{root}'. Run `irqpolicy -w {root} init` first.")
    return root.resolve()


def _configure_logging(verbose: bool) -> None:
    from rich.console import Console
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(__version__, prog_name="irqpolicy")
@click.option(
    "--workspace",
    "-w",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    envvar="IRQPOLICY_WORKSPACE",
    help="Project directory holding .irqpolicy/ (defaults to the nearest one above the cwd)",
)
@click.option("--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, workspace: Path | None, verbose: bool) -> None:
    """irqpolicy - Interrupt control policy compiler.

    Maintain the ISR and control-rule catalogs and compile them into the
    policy document consumed by the firmware analysis engine.
    """
    ctx.ensure_object(dict)
    _configure_logging(verbose)

    if workspace is not None and workspace.exists() and not workspace.is_dir():
        raise click.BadParameter(f"'{workspace}' is not a directory.", param_hint="--workspace / -w")
    ctx.obj["workspace"] = workspace


@cli.command()
@click.option("--project", type=str, default=None, help="Project name written into the policy header")
@click.option("--engine", type=str, default=None, help="Target analysis engine identity")
@click.option("--note", type=str, default=None, help="Optional note for the policy header")
@click.pass_context
def init(ctx: click.Context, project: str | None, engine: str | None, note: str | None) -> None:
    """Create a workspace seeded with the built-in catalogs."""
    from .commands.catalog_cmd import run_init

    root = (ctx.obj.get("workspace") or Path.cwd()).resolve()
    root.mkdir(parents=True, exist_ok=True)
    sys.exit(run_init(root, project=project, engine=engine, note=note))


# -----------------------------------------------------------------------------
# ISR catalog
# -----------------------------------------------------------------------------


@cli.group()
def isr() -> None:
    """ISR catalog commands."""
    pass


@isr.command("add")
@click.argument("function_name")
@click.option("--priority", type=click.IntRange(min=0), default=0, help="Priority (0 is highest)")
@click.option("--hw", "hardware_id", type=str, default="", help="Hardware vector number or symbol (-1 = software only)")
@click.option("--description", type=str, default=None, help="Free-text description")
@click.pass_context
def isr_add(ctx: click.Context, function_name: str, priority: int, hardware_id: str, description: str | None) -> None:
    """Add an ISR.

    Examples:

        irqpolicy isr add USART1_IRQHandler --priority 1 --hw 37

        irqpolicy isr add EXTI0_IRQHandler --hw EXTI0_IRQn
    """
    from .commands.catalog_cmd import run_isr_add

    sys.exit(run_isr_add(_workspace_root(ctx), function_name, priority, hardware_id, description))


@isr.command("delete")
@click.argument("isr_id")
@click.pass_context
def isr_delete(ctx: click.Context, isr_id: str) -> None:
    """Delete an ISR. Rules linked to it are kept but unlinked."""
    from .commands.catalog_cmd import run_isr_delete

    sys.exit(run_isr_delete(_workspace_root(ctx), isr_id))


@isr.command("list")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def isr_list(ctx: click.Context, output_json: bool) -> None:
    """List ISRs in catalog order."""
    from .commands.catalog_cmd import run_isr_list

    sys.exit(run_isr_list(_workspace_root(ctx), output_json))


# -----------------------------------------------------------------------------
# Control-rule catalog
# -----------------------------------------------------------------------------


@cli.group()
def rule() -> None:
    """Control-rule catalog commands."""
    pass


@rule.command("add")
@click.argument("identifier")
@click.option("--mode", type=click.Choice(MODES), default="FUNCTION_CALL", show_default=True)
@click.option(
    "--pattern",
    type=click.Choice(["SIMPLE", "ARG_MATCH", "ARG_AS_ID", "WRITE_VAL", "BITWISE_MASK", "REG_BIT_MAPPING"]),
    default=None,
    help="Match pattern (default: SIMPLE for calls, REG_BIT_MAPPING for writes)",
)
@click.option("--arg-index", type=click.IntRange(min=0), default=0, help="Argument index for ARG_MATCH / ARG_AS_ID")
@click.option("--value", "match_value", type=str, default=None, help="Literal for ARG_MATCH / WRITE_VAL / BITWISE_MASK")
@click.option("--bit-mode", "reg_bit_mode", type=click.Choice(["FIXED", "DYNAMIC"]), default="FIXED", show_default=True)
@click.option("--bit", "reg_bit_index", type=click.IntRange(0, 63), default=0, help="Bit index for FIXED mapping")
@click.option(
    "--polarity",
    "reg_polarity",
    type=click.Choice(["1_DISABLES", "0_DISABLES"]),
    default="1_DISABLES",
    show_default=True,
)
@click.option("--action", type=click.Choice(["ENABLE", "DISABLE"]), default="DISABLE", show_default=True)
@click.option("--scope", "target_scope", type=click.Choice(["GLOBAL", "SPECIFIC"]), default="GLOBAL", show_default=True)
@click.option("--isr", "linked_isr_id", type=str, default=None, help="ISR id affected by a SPECIFIC rule")
@click.option("--detail", "target_detail", type=str, default=None, help="Fallback target description")
@click.pass_context
def rule_add(ctx: click.Context, identifier: str, mode: str, pattern: str | None, **fields) -> None:
    """Add a control rule.

    Examples:

        irqpolicy rule add HAL_UART_DisableIT --scope SPECIFIC --isr 2

        irqpolicy rule add disable_irq --pattern ARG_AS_ID --arg-index 0

        irqpolicy rule add IER --mode REGISTER_WRITE --bit-mode DYNAMIC --polarity 0_DISABLES --action ENABLE
    """
    from .commands.catalog_cmd import run_rule_add

    sys.exit(run_rule_add(_workspace_root(ctx), mode, identifier, pattern, **fields))


@rule.command("delete")
@click.argument("rule_id")
@click.pass_context
def rule_delete(ctx: click.Context, rule_id: str) -> None:
    """Delete a control rule."""
    from .commands.catalog_cmd import run_rule_delete

    sys.exit(run_rule_delete(_workspace_root(ctx), rule_id))


@rule.command("list")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def rule_list(ctx: click.Context, output_json: bool) -> None:
    """List control rules with their match and target descriptions."""
    from .commands.catalog_cmd import run_rule_list

    sys.exit(run_rule_list(_workspace_root(ctx), output_json))


@rule.command("show")
@click.argument("rule_id")
@click.pass_context
def rule_show(ctx: click.Context, rule_id: str) -> None:
    """Show one rule and its compiled trigger/effect."""
    from .commands.catalog_cmd import run_rule_show

    sys.exit(run_rule_show(_workspace_root(ctx), rule_id))


# -----------------------------------------------------------------------------
# Compilation
# -----------------------------------------------------------------------------


def _catalog_and_root(ctx: click.Context, catalog: Path | None) -> tuple[Path, Path]:
    if catalog is None:
        root = _workspace_root(ctx)
        return root, root / ".irqpolicy" / "workspace.json"
    root = ctx.obj.get("workspace") or _auto_detect_workspace(Path.cwd()) or catalog.parent
    return root.resolve(), catalog


@cli.command("compile")
@click.option(
    "--catalog",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Compile a TOML/JSON catalog file instead of the workspace",
)
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Output file (default: stdout)")
@click.option("--no-timestamp", is_flag=True, help="Omit generated_at for reproducible output")
@click.option("--dry-run", is_flag=True, help="Show what would be written without writing")
@click.pass_context
def compile_(ctx: click.Context, catalog: Path | None, out: Path | None, no_timestamp: bool, dry_run: bool) -> None:
    """Compile the catalogs into the engine policy document.

    Examples:

        irqpolicy compile --out build/irq_policy.json

        irqpolicy compile --catalog irq_catalog.toml --no-timestamp
    """
    from .commands.compile_cmd import run_compile

    root, catalog_path = _catalog_and_root(ctx, catalog)
    sys.exit(run_compile(root, catalog_path, out, include_timestamp=not no_timestamp, dry_run=dry_run))


@cli.command()
@click.option(
    "--catalog",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Watch a TOML/JSON catalog file instead of the workspace",
)
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), required=True, help="Policy output file")
@click.option("--no-timestamp", is_flag=True, help="Omit generated_at for reproducible output")
@click.pass_context
def watch(ctx: click.Context, catalog: Path | None, out: Path, no_timestamp: bool) -> None:
    """Recompile the policy whenever the catalog file changes."""
    from .commands.watch_cmd import run_watch

    root, catalog_path = _catalog_and_root(ctx, catalog)
    run_watch(root, catalog_path, out, include_timestamp=not no_timestamp)


@cli.command()
@click.option("--last", "last_n", type=int, default=None, help="Show only the last N entries")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def audit(ctx: click.Context, last_n: int | None, output_json: bool) -> None:
    """Show the audit log of catalog changes and policy exports."""
    from .commands.audit_cmd import run_audit

    sys.exit(run_audit(_workspace_root(ctx), last_n, output_json))


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
