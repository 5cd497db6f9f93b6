"""
Configuration modules for the heightfield editor.
"""

from .config import settings, Settings
from .editor_settings import BrushSettings, BRUSH_PRESETS, get_preset, list_presets
from .logging_config import configure_logging

__all__ = ['settings', 'Settings', 'BrushSettings', 'BRUSH_PRESETS',
           'get_preset', 'list_presets', 'configure_logging']
