"""In-memory ISR and control-rule catalogs.

Catalogs are ordered (insertion order is compilation order) and only change
through add/remove. Entries are frozen dataclasses, so `snapshot()` hands out
a tuple that later mutations never touch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Generic, Iterable, Iterator, TypeVar

from ..models import ControlRule, ISRDescriptor

logger = logging.getLogger(__name__)

T = TypeVar("T", ISRDescriptor, ControlRule)


def _next_free_id(ids: Iterable[str]) -> int:
    numeric = [int(i) for i in ids if i.isdigit()]
    return max(numeric, default=0) + 1


class _Catalog(Generic[T]):
    """Ordered id-keyed collection with a monotonic id counter."""

    def __init__(self, entries: Iterable[T] = (), next_id: int | None = None):
        self._entries: list[T] = []
        seen: set[str] = set()
        for entry in entries:
            if entry.id in seen:
                raise ValueError(f"duplicate id {entry.id!r}")
            seen.add(entry.id)
            self._entries.append(entry)
        floor = _next_free_id(seen)
        self.next_id = max(next_id or 0, floor)

    def __iter__(self) -> Iterator[T]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def snapshot(self) -> tuple[T, ...]:
        return tuple(self._entries)

    def get(self, entry_id: str) -> T | None:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def remove(self, entry_id: str) -> T:
        for index, entry in enumerate(self._entries):
            if entry.id == entry_id:
                del self._entries[index]
                return entry
        raise KeyError(entry_id)

    def _allocate_id(self) -> str:
        entry_id = str(self.next_id)
        self.next_id += 1
        return entry_id


class ISRCatalog(_Catalog[ISRDescriptor]):
    def add(
        self,
        function_name: str,
        priority: int = 0,
        hardware_id: str = "",
        description: str | None = None,
    ) -> ISRDescriptor:
        name = (function_name or "").strip()
        if not name:
            raise ValueError("ISR function name is required")

        isr = ISRDescriptor(
            id=self._allocate_id(),
            function_name=name,
            priority=int(priority),
            hardware_id=str(hardware_id).strip(),
            description=description or None,
        )
        self._entries.append(isr)
        logger.debug("added ISR %s (%s)", isr.id, isr.function_name)
        return isr


class RuleCatalog(_Catalog[ControlRule]):
    def add(self, mode: str, identifier: str, **fields: Any) -> ControlRule:
        """Append a rule built from `fields`; an empty identifier is rejected."""
        symbol = (identifier or "").strip()
        if not symbol:
            raise ValueError("rule identifier is required")

        rule = ControlRule(
            id=self._allocate_id(),
            mode=mode,  # type: ignore[arg-type]
            identifier=symbol,
            **fields,
        )
        self._entries.append(rule)
        logger.debug("added rule %s (%s %s)", rule.id, rule.mode, rule.identifier)
        return rule

    def unlink_isr(self, isr_id: str) -> list[str]:
        """Clear `linked_isr_id` on every rule pointing at `isr_id`.

        Returns the ids of the rules that changed.
        """
        touched: list[str] = []
        for index, rule in enumerate(self._entries):
            if rule.linked_isr_id == isr_id:
                self._entries[index] = replace(rule, linked_isr_id=None)
                touched.append(rule.id)
        return touched


@dataclass
class ProjectMeta:
    """Identity written into the policy document header."""

    project: str = "firmware"
    engine: str = "irq-analysis-engine"
    note: str | None = None


class Workspace:
    """Both catalogs plus project metadata, edited as one unit."""

    def __init__(
        self,
        isrs: ISRCatalog | None = None,
        rules: RuleCatalog | None = None,
        meta: ProjectMeta | None = None,
    ):
        self.isrs = isrs if isrs is not None else ISRCatalog()
        self.rules = rules if rules is not None else RuleCatalog()
        self.meta = meta or ProjectMeta()

    def delete_isr(self, isr_id: str) -> tuple[ISRDescriptor, list[str]]:
        """Delete an ISR and unlink every rule that referenced it.

        The rules themselves are kept. Returns the removed ISR and the ids of
        the unlinked rules.
        """
        isr = self.isrs.remove(isr_id)
        touched = self.rules.unlink_isr(isr_id)
        if touched:
            logger.debug("ISR %s deleted, unlinked rules %s", isr_id, ", ".join(touched))
        return isr, touched

    def delete_rule(self, rule_id: str) -> ControlRule:
        return self.rules.remove(rule_id)
