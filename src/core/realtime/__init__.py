# src/core/realtime/__init__.py
"""
Real-time события: новые заказы, обновления статусов, чат.
"""

from src.core.realtime.expiring import ExpiringSet, UnreadCounter
from src.core.realtime.notifier import RealtimeNotifier, realtime_url, vendor_feed_url

__all__ = [
    "ExpiringSet",
    "UnreadCounter",
    "RealtimeNotifier",
    "realtime_url",
    "vendor_feed_url",
]
