"""End-to-end CLI tests through click's runner."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from irqpolicy.audit_log import read_audit_log
from irqpolicy.catalog import load_workspace, workspace_file
from irqpolicy.cli import cli


def _invoke(root: Path, *args: str):
    return CliRunner().invoke(cli, ["-w", str(root), *args])


def test_init_add_compile_delete(tmp_path: Path) -> None:
    assert _invoke(tmp_path, "init", "--project", "fw").exit_code == 0
    assert _invoke(tmp_path, "isr", "add", "EXTI0_IRQHandler", "--hw", "EXTI0_IRQn", "--priority", "3").exit_code == 0
    result = _invoke(tmp_path, "rule", "add", "HAL_NVIC_DisableIRQ", "--scope", "SPECIFIC", "--isr", "3")
    assert result.exit_code == 0, result.output

    out = tmp_path / "build" / "irq_policy.json"
    result = _invoke(tmp_path, "compile", "--out", str(out), "--no-timestamp")
    assert result.exit_code == 0, result.output

    document = json.loads(out.read_text(encoding="utf-8"))
    assert document["meta"]["project"] == "fw"
    assert "generated_at" not in document["meta"]
    assert [v["hw_id"] for v in document["interrupt_vectors"]] == [-1, 37, "EXTI0_IRQn"]
    assert [r["trigger"]["symbol"] for r in document["control_rules"]] == ["disableisr", "IER", "HAL_NVIC_DisableIRQ"]
    assert document["control_rules"][2]["effect"] == {
        "action": "disable",
        "scope": "specific",
        "target_hw_id": "EXTI0_IRQn",
    }

    assert _invoke(tmp_path, "isr", "delete", "3").exit_code == 0
    workspace = load_workspace(workspace_file(tmp_path))
    assert workspace.rules.get("6").linked_isr_id is None

    operations = [e.operation for e in read_audit_log(tmp_path)]
    assert operations == ["workspace-init", "isr-add", "rule-add", "policy-export", "isr-delete"]
    assert read_audit_log(tmp_path)[-1].metadata["unlinked_rules"] == ["6"]


def test_empty_identifier_is_not_added(workspace_root: Path) -> None:
    result = _invoke(workspace_root, "rule", "add", "")

    assert result.exit_code == 1
    assert len(load_workspace(workspace_file(workspace_root)).rules) == 2


def test_pattern_must_match_mode(workspace_root: Path) -> None:
    result = _invoke(workspace_root, "rule", "add", "IER", "--mode", "REGISTER_WRITE", "--pattern", "SIMPLE")

    assert result.exit_code == 1
    assert len(load_workspace(workspace_file(workspace_root)).rules) == 2


def test_link_to_missing_isr_is_refused(workspace_root: Path) -> None:
    result = _invoke(workspace_root, "rule", "add", "f", "--scope", "SPECIFIC", "--isr", "42")

    assert result.exit_code == 1


def test_dynamic_rule_drops_link(workspace_root: Path) -> None:
    result = _invoke(
        workspace_root, "rule", "add", "disable_irq", "--pattern", "ARG_AS_ID", "--scope", "SPECIFIC", "--isr", "2"
    )

    assert result.exit_code == 0
    rule = load_workspace(workspace_file(workspace_root)).rules.get("6")
    assert rule.pattern == "ARG_AS_ID"
    assert rule.linked_isr_id is None


def test_compile_to_stdout_and_dry_run(workspace_root: Path) -> None:
    result = CliRunner().invoke(cli, ["-w", str(workspace_root), "compile", "--no-timestamp"])
    assert result.exit_code == 0
    assert '"interrupt_vectors"' in result.output

    out = workspace_root / "policy.json"
    dry = _invoke(workspace_root, "compile", "--out", str(out), "--dry-run")
    assert dry.exit_code == 0
    assert not out.exists()


def test_rule_show_and_lists(workspace_root: Path) -> None:
    shown = _invoke(workspace_root, "rule", "show", "5")
    assert shown.exit_code == 0
    assert '"dynamic_shift"' in shown.output

    listed = _invoke(workspace_root, "isr", "list", "--json")
    assert listed.exit_code == 0
    assert [i["functionName"] for i in json.loads(listed.output)] == ["SysTick_Handler", "USART1_IRQHandler"]

    assert _invoke(workspace_root, "rule", "list").exit_code == 0
    assert _invoke(workspace_root, "rule", "show", "99").exit_code == 1


def test_missing_workspace_is_reported(tmp_path: Path) -> None:
    result = _invoke(tmp_path, "isr", "list")

    assert result.exit_code == 1
    assert "irqpolicy" in result.output


def test_compile_toml_catalog(tmp_path: Path) -> None:
    catalog = tmp_path / "catalog.toml"
    catalog.write_text(
        '[[isrs]]\nfunction_name = "TIM2_IRQHandler"\nhardware_id = "28"\n\n'
        '[[rules]]\nidentifier = "stop_timer"\ntarget_scope = "SPECIFIC"\nlinked_isr_id = "1"\n',
        encoding="utf-8",
    )
    out = tmp_path / "policy.json"

    result = CliRunner().invoke(cli, ["compile", "--catalog", str(catalog), "--out", str(out)])

    assert result.exit_code == 0, result.output
    document = json.loads(out.read_text(encoding="utf-8"))
    assert document["control_rules"][0]["effect"]["target_hw_id"] == 28
    assert not (tmp_path / ".irqpolicy").exists()


def test_corrupt_workspace_is_reported(workspace_root: Path) -> None:
    workspace_file(workspace_root).write_text("{not json", encoding="utf-8")

    for args in (("isr", "list"), ("isr", "add", "X"), ("rule", "list"), ("rule", "show", "1")):
        result = _invoke(workspace_root, *args)
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit), args


def test_unknown_action_in_workspace_is_reported(workspace_root: Path) -> None:
    path = workspace_file(workspace_root)
    data = json.loads(path.read_text(encoding="utf-8"))
    data["rules"][0]["action"] = "TOGGLE"
    path.write_text(json.dumps(data), encoding="utf-8")

    result = _invoke(workspace_root, "isr", "delete", "2")

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "TOGGLE" in result.output or "action" in result.output


def test_dry_run_over_malformed_policy(workspace_root: Path) -> None:
    out = workspace_root / "p.json"
    out.write_text('{"meta": "x"}', encoding="utf-8")

    result = _invoke(workspace_root, "compile", "--out", str(out), "--dry-run")

    assert result.exit_code == 0, result.output
    assert out.read_text(encoding="utf-8") == '{"meta": "x"}'
