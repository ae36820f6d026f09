# src/core/notifications/__init__.py
"""
Домен уведомлений.
Toast-уведомления и звуковые сигналы для UI.
"""

from src.core.notifications.service import (
    LogToaster,
    NotificationService,
    SoundPlayer,
    Toast,
    Toaster,
)

__all__ = [
    "LogToaster",
    "NotificationService",
    "SoundPlayer",
    "Toast",
    "Toaster",
]
