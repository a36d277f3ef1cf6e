from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, get_args

from ..models import (
    LEGACY_MODES,
    ControlRule,
    ISRDescriptor,
    RegBitMode,
    RegPolarity,
    RuleAction,
    RuleMode,
    RulePattern,
    TargetScope,
)
from .seed import seeded_workspace
from .store import ISRCatalog, ProjectMeta, RuleCatalog, Workspace

logger = logging.getLogger(__name__)

WORKSPACE_DIRNAME = ".irqpolicy"
WORKSPACE_FILENAME = "workspace.json"
WORKSPACE_FORMAT = 1


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _field(raw: dict[str, Any], snake: str, camel: str | None = None) -> Any:
    if snake in raw:
        return raw[snake]
    if camel and camel in raw:
        return raw[camel]
    return None


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _as_int(value: Any, default: int, name: str) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _choice(value: Any, allowed: Any, default: str, name: str) -> str:
    if value is None or str(value).strip() == "":
        return default
    text = str(value).strip().upper()
    choices = get_args(allowed)
    if text not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}, got {value!r}")
    return text


def workspace_file(root: Path) -> Path:
    return root / WORKSPACE_DIRNAME / WORKSPACE_FILENAME


# -----------------------------------------------------------------------------
# Entry parsing (shared by the JSON workspace and TOML catalogs)
# -----------------------------------------------------------------------------


def parse_isr(raw: dict[str, Any], isr_id: str) -> ISRDescriptor | None:
    name = str(_field(raw, "function_name", "functionName") or "").strip()
    if not name:
        return None

    hardware = _field(raw, "hardware_id", "hardwareId")
    return ISRDescriptor(
        id=isr_id,
        function_name=name,
        priority=_as_int(raw.get("priority"), 0, f"isr {name}: priority"),
        hardware_id="" if hardware is None else str(hardware).strip(),
        description=_opt_str(raw.get("description")),
    )


def parse_rule(raw: dict[str, Any], rule_id: str) -> ControlRule | None:
    identifier = str(raw.get("identifier") or "").strip()
    if not identifier:
        return None

    where = f"rule {identifier}"
    mode_raw = str(raw.get("mode") or "FUNCTION_CALL").strip().upper()
    mode = _choice(LEGACY_MODES.get(mode_raw, mode_raw), RuleMode, "FUNCTION_CALL", f"{where}: mode")
    default_pattern = "SIMPLE" if mode == "FUNCTION_CALL" else "REG_BIT_MAPPING"

    match_value = _field(raw, "match_value", "matchValue")
    linked = _field(raw, "linked_isr_id", "linkedIsrId")

    return ControlRule(
        id=rule_id,
        mode=mode,  # type: ignore[arg-type]
        identifier=identifier,
        pattern=_choice(raw.get("pattern"), RulePattern, default_pattern, f"{where}: pattern"),  # type: ignore[arg-type]
        arg_index=_as_int(_field(raw, "arg_index", "argIndex"), 0, f"{where}: arg_index"),
        match_value=None if match_value is None else str(match_value),
        reg_bit_mode=_choice(_field(raw, "reg_bit_mode", "regBitMode"), RegBitMode, "FIXED", f"{where}: reg_bit_mode"),  # type: ignore[arg-type]
        reg_bit_index=_as_int(_field(raw, "reg_bit_index", "regBitIndex"), 0, f"{where}: reg_bit_index"),
        reg_polarity=_choice(
            _field(raw, "reg_polarity", "regPolarity"), RegPolarity, "1_DISABLES", f"{where}: reg_polarity"
        ),  # type: ignore[arg-type]
        action=_choice(raw.get("action"), RuleAction, "DISABLE", f"{where}: action"),  # type: ignore[arg-type]
        target_scope=_choice(
            _field(raw, "target_scope", "targetScope"), TargetScope, "GLOBAL", f"{where}: target_scope"
        ),  # type: ignore[arg-type]
        linked_isr_id=_opt_str(linked),
        target_detail=_opt_str(_field(raw, "target_detail", "targetDetail")),
    )


def _raw_id(raw: dict[str, Any]) -> str:
    value = raw.get("id")
    return "" if value is None else str(value).strip()


def _parse_entries(items: Any, parse, kind: str) -> list:
    """Parse raw entries in order, assigning ids to entries that lack one."""
    if not isinstance(items, list):
        return []

    raws = [item for item in items if isinstance(item, dict)]
    explicit = [i for i in (_raw_id(item) for item in raws) if i]
    next_id = max((int(i) for i in explicit if i.isdigit()), default=0) + 1

    entries = []
    for raw in raws:
        entry_id = _raw_id(raw)
        if not entry_id:
            entry_id = str(next_id)
            next_id += 1
        entry = parse(raw, entry_id)
        if entry is None:
            logger.warning("skipping %s entry %s: missing required field", kind, entry_id)
            continue
        entries.append(entry)
    return entries


def _meta_from(raw: dict[str, Any]) -> ProjectMeta:
    defaults = ProjectMeta()
    return ProjectMeta(
        project=str(raw.get("project") or defaults.project),
        engine=str(raw.get("engine") or defaults.engine),
        note=_opt_str(raw.get("note")),
    )


# -----------------------------------------------------------------------------
# JSON workspace
# -----------------------------------------------------------------------------


def workspace_from_dict(data: dict[str, Any]) -> Workspace:
    """Build a workspace from its JSON form or from a desktop project export."""
    config = _coerce_dict(data.get("config"))
    if config:
        isr_items = config.get("isrList", [])
        rule_items = config.get("controlRules", [])
    else:
        isr_items = data.get("isrs", [])
        rule_items = data.get("rules", [])

    counters = _coerce_dict(data.get("counters"))
    meta = _meta_from(_coerce_dict(data.get("meta")))

    return Workspace(
        isrs=ISRCatalog(
            _parse_entries(isr_items, parse_isr, "isr"),
            next_id=_as_int(counters.get("isr"), 0, "counters.isr"),
        ),
        rules=RuleCatalog(
            _parse_entries(rule_items, parse_rule, "rule"),
            next_id=_as_int(counters.get("rule"), 0, "counters.rule"),
        ),
        meta=meta,
    )


def isr_to_dict(isr: ISRDescriptor) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": isr.id,
        "functionName": isr.function_name,
        "priority": isr.priority,
        "hardwareId": isr.hardware_id,
    }
    if isr.description:
        data["description"] = isr.description
    return data


def rule_to_dict(rule: ControlRule) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": rule.id,
        "mode": rule.mode,
        "identifier": rule.identifier,
        "pattern": rule.pattern,
        "argIndex": rule.arg_index,
        "regBitMode": rule.reg_bit_mode,
        "regBitIndex": rule.reg_bit_index,
        "regPolarity": rule.reg_polarity,
        "action": rule.action,
        "targetScope": rule.target_scope,
    }
    if rule.match_value is not None:
        data["matchValue"] = rule.match_value
    if rule.linked_isr_id is not None:
        data["linkedIsrId"] = rule.linked_isr_id
    if rule.target_detail is not None:
        data["targetDetail"] = rule.target_detail
    return data


def workspace_to_dict(workspace: Workspace) -> dict[str, Any]:
    meta: dict[str, Any] = {
        "project": workspace.meta.project,
        "engine": workspace.meta.engine,
    }
    if workspace.meta.note:
        meta["note"] = workspace.meta.note

    return {
        "format": WORKSPACE_FORMAT,
        "meta": meta,
        "counters": {"isr": workspace.isrs.next_id, "rule": workspace.rules.next_id},
        "isrs": [isr_to_dict(i) for i in workspace.isrs],
        "rules": [rule_to_dict(r) for r in workspace.rules],
    }


def load_workspace(path: Path) -> Workspace:
    """Load a workspace (or desktop project export) from a JSON file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path}: invalid JSON ({e})") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    return workspace_from_dict(data)


def save_workspace(path: Path, workspace: Workspace) -> int:
    """Write the workspace file, returning the number of bytes written."""
    path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(workspace_to_dict(workspace), indent=2, ensure_ascii=False) + "\n"
    path.write_text(content, encoding="utf-8")
    return len(content.encode("utf-8"))


def init_workspace(root: Path, meta: ProjectMeta | None = None) -> tuple[Path, Workspace]:
    """Create `<root>/.irqpolicy/workspace.json` holding the seed catalogs."""
    path = workspace_file(root)
    if path.exists():
        raise FileExistsError(path)
    workspace = seeded_workspace(meta)
    save_workspace(path, workspace)
    return path, workspace


# -----------------------------------------------------------------------------
# TOML catalogs
# -----------------------------------------------------------------------------


def load_catalog_toml(path: Path) -> Workspace:
    """
    Load hand-authored catalogs from TOML.

    [meta]
    project = "fw"

    [[isrs]]
    function_name = "USART1_IRQHandler"
    hardware_id = 37

    [[rules]]
    mode = "FUNCTION_CALL"
    identifier = "HAL_UART_DisableIT"
    target_scope = "SPECIFIC"
    linked_isr_id = "1"

    Entries without a function name / identifier are skipped.
    """
    import tomllib

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"{path}: invalid TOML ({e})") from e

    return Workspace(
        isrs=ISRCatalog(_parse_entries(data.get("isrs", []), parse_isr, "isr")),
        rules=RuleCatalog(_parse_entries(data.get("rules", []), parse_rule, "rule")),
        meta=_meta_from(_coerce_dict(data.get("meta"))),
    )


def load_catalog(path: Path) -> Workspace:
    """Load a catalog file by extension (.toml or JSON)."""
    if path.suffix.lower() == ".toml":
        return load_catalog_toml(path)
    return load_workspace(path)
