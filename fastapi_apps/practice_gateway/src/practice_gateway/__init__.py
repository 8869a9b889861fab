"""
Practice gateway: FastAPI composition root for request coordination and draft persistence.
"""
from .config import Settings, get_settings, load_settings
from .main import create_app


__all__ = [
    # Configuration
    "Settings",
    "get_settings",
    "load_settings",
    # Application
    "create_app",
]

__version__ = "1.0.0"
