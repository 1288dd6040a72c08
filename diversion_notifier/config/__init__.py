"""
Configuration package
"""

from .settings import DiversionSettings, Settings, load_settings, mask_secret

__all__ = [
    'DiversionSettings',
    'Settings',
    'load_settings',
    'mask_secret',
]
