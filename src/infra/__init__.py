# src/infra/__init__.py
"""
Инфраструктурный слой.
Работа с внешними сервисами: REST API backend, WebSocket, кэш запросов.
"""

from src.infra.api_clients import (
    ApiError,
    ChatClient,
    DeliveryPhotosClient,
    DeliveryZonesClient,
    OrdersClient,
    PromotionsClient,
    TaxClient,
)
from src.infra.query_cache import QueryCache
from src.infra.ws_client import RealtimeConnection

__all__ = [
    "ApiError",
    "ChatClient",
    "DeliveryPhotosClient",
    "DeliveryZonesClient",
    "OrdersClient",
    "PromotionsClient",
    "TaxClient",
    "QueryCache",
    "RealtimeConnection",
]
