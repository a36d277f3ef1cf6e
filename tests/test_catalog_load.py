from __future__ import annotations

import json
from pathlib import Path

import pytest

from irqpolicy.catalog import load_catalog, load_workspace, save_workspace, seeded_workspace
from irqpolicy.catalog.load import workspace_from_dict
from irqpolicy.compiler import compile_rules


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_toml_catalog(tmp_path: Path) -> None:
    catalog_path = tmp_path / "irq_catalog.toml"
    _write(
        catalog_path,
        """
[meta]
project = "fw-demo"
note = "bring-up"

[[isrs]]
function_name = "TIM2_IRQHandler"
priority = 2
hardware_id = 28

[[isrs]]
priority = 3

[[rules]]
identifier = "HAL_TIM_Base_Stop_IT"
target_scope = "SPECIFIC"
linked_isr_id = "1"
action = "disable"

[[rules]]
mode = "REGISTER_WRITE"
identifier = "TIM2_DIER"
pattern = "REG_BIT_MAPPING"
reg_bit_index = 0
reg_polarity = "0_DISABLES"

[[rules]]
identifier = ""
""",
    )

    workspace = load_catalog(catalog_path)

    assert workspace.meta.project == "fw-demo"
    assert workspace.meta.note == "bring-up"
    assert [i.function_name for i in workspace.isrs] == ["TIM2_IRQHandler"]
    assert workspace.isrs.get("1").hardware_id == "28"
    assert [r.identifier for r in workspace.rules] == ["HAL_TIM_Base_Stop_IT", "TIM2_DIER"]

    compiled = compile_rules(workspace.rules, workspace.isrs)
    assert compiled[0].effect == {"action": "disable", "scope": "specific", "target_hw_id": 28}
    assert compiled[1].trigger["match"] == {"type": "bit_logic", "bit_index": 0, "disable_value": 0}
    assert compiled[1].effect == {"action": "disable", "scope": "global"}


def test_toml_rejects_unknown_enum_value(tmp_path: Path) -> None:
    catalog_path = tmp_path / "bad.toml"
    _write(catalog_path, '[[rules]]\nidentifier = "f"\naction = "MAYBE"\n')

    with pytest.raises(ValueError, match="action"):
        load_catalog(catalog_path)


def test_desktop_project_export_is_accepted(tmp_path: Path) -> None:
    export_path = tmp_path / "project-export.json"
    _write(
        export_path,
        json.dumps(
            {
                "meta": {"version": "1.0", "tool": "SpecChecker-Int"},
                "issues": [],
                "config": {
                    "isrList": [
                        {"id": "1700000000000", "functionName": "TIM2_IRQHandler", "priority": 0, "hardwareId": "28"}
                    ],
                    "controlRules": [
                        {
                            "id": "1700000000001",
                            "mode": "REGISTER",
                            "identifier": "IER",
                            "pattern": "REG_BIT_MAPPING",
                            "regBitMode": "FIXED",
                            "regBitIndex": 3,
                            "regPolarity": "1_DISABLES",
                            "action": "DISABLE",
                            "targetScope": "SPECIFIC",
                            "linkedIsrId": "1700000000000",
                        }
                    ],
                },
            }
        ),
    )

    workspace = load_catalog(export_path)
    rule = workspace.rules.get("1700000000001")

    assert rule.mode == "REGISTER_WRITE"
    assert workspace.meta.project == "firmware"
    compiled = compile_rules(workspace.rules, workspace.isrs)
    assert compiled[0].trigger["match"] == {"type": "bit_logic", "bit_index": 3, "disable_value": 1}
    assert compiled[0].effect["target_hw_id"] == 28


def test_saved_workspace_reloads_with_counters(tmp_path: Path) -> None:
    path = tmp_path / ".irqpolicy" / "workspace.json"
    workspace = seeded_workspace()
    workspace.isrs.add("EXTI0_IRQHandler", hardware_id="EXTI0_IRQn")
    workspace.delete_isr("3")

    save_workspace(path, workspace)
    reloaded = load_workspace(path)

    assert [i.id for i in reloaded.isrs] == ["1", "2"]
    assert reloaded.isrs.add("TIM2_IRQHandler").id == "4"
    assert reloaded.rules.snapshot() == workspace.rules.snapshot()


def test_invalid_json_is_reported(tmp_path: Path) -> None:
    path = tmp_path / "workspace.json"
    _write(path, "{not json")

    with pytest.raises(ValueError, match="invalid JSON"):
        load_workspace(path)


def test_null_id_gets_assigned() -> None:
    workspace = workspace_from_dict(
        {"isrs": [{"id": "4", "functionName": "A"}, {"id": None, "functionName": "B"}]}
    )

    assert [i.id for i in workspace.isrs] == ["4", "5"]
