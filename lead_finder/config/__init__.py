"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import GlobalConfig

__all__ = ["ConfigLocator", "ConfigRepository", "GlobalConfig"]
