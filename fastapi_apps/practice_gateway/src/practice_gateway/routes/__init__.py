"""Gateway routers."""
from . import crm, drafts, health

__all__ = ["crm", "drafts", "health"]
