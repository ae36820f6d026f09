# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("API_AUTH_TOKEN", "test_token")
os.environ.setdefault("GOOGLE_MAPS_API_KEY", "test_api_key")
os.environ.setdefault("STORAGE_SECRET", "test_secret")

from src.core.notifications.service import NotificationService, Toast  # noqa: E402
from src.infra.query_cache import QueryCache  # noqa: E402


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture(scope="session")
def lang_dict_path(project_root: Path) -> Path:
    """Путь к файлу локализации."""
    return project_root / "config" / "lang_dict.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "_comment_system": "Системные настройки",
        "PROJECT_NAME": "bts_delivery_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "LOG_LEVEL": "DEBUG",
        "ENVIRONMENT": "test",
        "COMPONENT_MODE": "web_client",
        "WEB_CLIENT_HOST": "127.0.0.1",
        "WEB_CLIENT_PORT": 9000,
        "LOG_TO_FILE": False,
        "LOG_FORMAT": "colored",
        "API_BASE_URL": "http://api.test/",
        "API_TIMEOUT": 5.0,
        "WS_BASE_URL": "ws://api.test",
        "RECONNECT_DELAY": 3.0,
        "RECENT_ORDER_TTL": 30,
        "UNREAD_RESET_SECONDS": 10,
        "SOUND_ENABLED": True,
        "GOOGLE_MAPS_API_KEY": "",
        "LOCATION_UPDATE_INTERVAL": 10,
        "DEFAULT_CUSTOMER_RATING": 5,
        "CURRENCY_SYMBOL": "₱",
        "DEFAULT_LANGUAGE": "en",
        "SUPPORTED_LANGUAGES": ["en", "fil"],
    }


# =============================================================================
# ВРЕМЯ И УВЕДОМЛЕНИЯ
# =============================================================================

class FakeClock:
    """Управляемые часы: тест сам сдвигает время."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingToaster:
    """Toaster, запоминающий показанные уведомления."""

    def __init__(self) -> None:
        self.toasts: list[Toast] = []

    def show(self, toast: Toast) -> None:
        self.toasts.append(toast)

    @property
    def titles(self) -> list[str]:
        return [t.title for t in self.toasts]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def toaster() -> RecordingToaster:
    return RecordingToaster()


@pytest.fixture
def notifications(toaster: RecordingToaster) -> NotificationService:
    """Сервис уведомлений на английском с записывающим toaster."""
    return NotificationService(toaster, language="en")


@pytest.fixture
def cache(clock: FakeClock) -> QueryCache:
    return QueryCache(clock=clock)


# =============================================================================
# ДАННЫЕ ЗАКАЗОВ
# =============================================================================

@pytest.fixture
def sample_order_data() -> Callable[..., dict[str, Any]]:
    """Фабрика заказа в формате backend (camelCase)."""

    def factory(**overrides: Any) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": "order-0000-abcdef12",
            "orderNumber": "BTS-1001",
            "status": "assigned",
            "deliveryType": "standard",
            "customer": {
                "id": "cust-1",
                "name": "Maria Santos",
                "phone": "+639171234567",
                "address": "12 Rizal St, Batangas City",
                "location": {"lat": 13.7565, "lng": 121.0583},
            },
            "restaurant": {
                "id": "rest-1",
                "name": "Lomi Haus",
                "address": "P. Burgos St, Batangas City",
                "location": {"lat": 13.7590, "lng": 121.0600},
            },
            "orderDetails": {
                "items": [{"name": "Special Lomi", "quantity": 2, "price": 180.0}],
                "totalAmount": 360.0,
                "paymentMethod": "gcash",
                "isPaid": True,
            },
            "delivery": {"distance": 1.2, "estimatedDuration": 15, "deliveryFee": 49.0},
            "verification": {"pickupPhotos": [], "deliveryPhotos": []},
        }
        data.update(overrides)
        return data

    return factory


# =============================================================================
# HTTP
# =============================================================================

class RecordingTransport:
    """Обработчик httpx.MockTransport: запоминает запросы, отвечает по таблице."""

    def __init__(self, responses: dict[tuple[str, str], httpx.Response] | None = None) -> None:
        self.responses = responses or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"message": "Not found"})
        return response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def http_client(transport: RecordingTransport) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url="http://api.test", transport=httpx.MockTransport(transport))


# =============================================================================
# МОКИ КЛИЕНТОВ
# =============================================================================

@pytest.fixture
def mock_orders_client() -> MagicMock:
    client = MagicMock()
    client.update_status = AsyncMock(return_value={})
    client.complete_delivery = AsyncMock(return_value={})
    client.get_rider_deliveries = AsyncMock(return_value=[])
    client.get_vendor_orders = AsyncMock(return_value=[])
    return client


@pytest.fixture
def mock_photos_client() -> MagicMock:
    client = MagicMock()
    client.upload_photo = AsyncMock(return_value="https://cdn.test/photos/pickup.jpg")
    client.upload_delivery_proof = AsyncMock(return_value="https://cdn.test/proof/1.jpg")
    return client


@pytest.fixture
def mock_chat_client() -> MagicMock:
    client = MagicMock()
    client.mark_read = AsyncMock(return_value=None)
    return client
