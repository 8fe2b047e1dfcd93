"""
Qt user interface for the page viewer.
"""
from .main_window import MainWindow

__all__ = ['MainWindow']
