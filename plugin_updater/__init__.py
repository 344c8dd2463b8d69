"""
Plugin updater.

Keeps the components of a plugin-based host application up to date with
their latest GitHub releases.
"""

__version__ = '1.0.0'

from .updater.manager import UpdateManager  # noqa: E402

__all__ = ['UpdateManager', '__version__']
