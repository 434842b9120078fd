"""
Append-only activity log.
"""

from dkn.kernel.events.event_store import EventStore

__all__ = ["EventStore"]
