# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ToastVariant(str, Enum):
    """Варианты всплывающих уведомлений."""
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class QueryKeys:
    """Ключи кэша запросов (совпадают с путями API)."""
    RIDER_DELIVERIES = ("/api/rider/deliveries",)
    RIDER_PROFILE = ("/api/rider/profile",)
    VENDOR_ORDERS = ("/api/vendor/orders",)

    @staticmethod
    def order_messages(order_id: str) -> tuple[str, ...]:
        """Ключ сообщений чата по заказу."""
        return ("/api/orders", order_id, "messages")
