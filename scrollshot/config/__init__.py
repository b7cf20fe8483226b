"""
Scrollshot Configuration Module

Provides centralized configuration management.

Usage:
    from scrollshot.config import get_defaults
    threshold = get_defaults().CHANGE_THRESHOLD
"""

from .defaults import Defaults, AppDefaults, get_defaults, load_defaults_from_env

__all__ = ["Defaults", "AppDefaults", "get_defaults", "load_defaults_from_env"]
