"""
Models package for the plugin updater.

This package contains the component record and the component registry.
"""

from .component import ComponentRecord, ComponentRegistry

__all__ = [
    'ComponentRecord',
    'ComponentRegistry',
]
