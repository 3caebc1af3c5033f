"""Core application services and infrastructure layer.

Exports the settings accessor to simplify import paths inside tests
(e.g. `from app.core import get_settings`).
"""

from .config import Settings, get_settings  # noqa: F401
