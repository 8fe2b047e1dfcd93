"""
Utility functions and helpers.
"""
from .diagnostics import Diagnostics, configure_logging

__all__ = [
    'Diagnostics',
    'configure_logging',
]
