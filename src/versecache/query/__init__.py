"""
Read-only query interface for view-state consumers.
"""

from .facade import QueryFacade

__all__ = ["QueryFacade"]
