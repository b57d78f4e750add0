"""
Fath-AI Server Configuration Module
Manages all configuration for the research assistant server
"""

from .settings import settings, get_settings
from .logging_config import setup_logging

__all__ = ["settings", "get_settings", "setup_logging"]
