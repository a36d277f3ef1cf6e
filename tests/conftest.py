"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from irqpolicy.catalog import ISRCatalog, RuleCatalog, Workspace, init_workspace, seeded_workspace
from irqpolicy.models import ControlRule, ISRDescriptor


@pytest.fixture
def usart_isr() -> ISRDescriptor:
    """The USART1 handler on hardware vector 37."""
    return ISRDescriptor(id="2", function_name="USART1_IRQHandler", priority=1, hardware_id="37")


@pytest.fixture
def uart_disable_rule() -> ControlRule:
    """A call that disables the USART1 interrupt specifically."""
    return ControlRule(
        id="10",
        mode="FUNCTION_CALL",
        identifier="HAL_UART_DisableIT",
        pattern="SIMPLE",
        action="DISABLE",
        target_scope="SPECIFIC",
        linked_isr_id="2",
    )


@pytest.fixture
def uart_workspace(usart_isr: ISRDescriptor, uart_disable_rule: ControlRule) -> Workspace:
    """Workspace holding just the USART1 ISR and the rule that targets it."""
    return Workspace(isrs=ISRCatalog([usart_isr]), rules=RuleCatalog([uart_disable_rule]))


@pytest.fixture
def seed_workspace() -> Workspace:
    """In-memory workspace with the built-in seed catalogs."""
    return seeded_workspace()


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """A project directory with an initialized `.irqpolicy/` workspace."""
    init_workspace(tmp_path)
    return tmp_path
