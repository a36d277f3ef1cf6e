"""ISR and control-rule catalogs (the compiler's inputs)."""

from .load import init_workspace, load_catalog, load_workspace, save_workspace, workspace_file
from .seed import seeded_workspace
from .store import ISRCatalog, ProjectMeta, RuleCatalog, Workspace

__all__ = [
    "ISRCatalog",
    "ProjectMeta",
    "RuleCatalog",
    "Workspace",
    "init_workspace",
    "load_catalog",
    "load_workspace",
    "save_workspace",
    "seeded_workspace",
    "workspace_file",
]
