"""
Paginated document viewer with lazy page loading and text overlays.
"""

__version__ = "0.1.0"
