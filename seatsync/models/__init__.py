"""
Database models package
"""

from .event import Event
from .table import Table
from .guest import Guest, guest_display_name

__all__ = ["Event", "Table", "Guest", "guest_display_name"]
