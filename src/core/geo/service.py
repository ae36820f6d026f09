# src/core/geo/service.py
"""
Геолокация курьера.
Периодический опрос источника координат и расчёт расстояний.
"""

from __future__ import annotations

import asyncio
import math
from typing import Awaitable, Callable, Optional, Protocol

from src.common.constants import TypeMsg
from src.common.logger import log_info, log_warning
from src.core.notifications.service import NotificationService
from src.shared.models.enums import WsMessageType
from src.shared.models.location_dto import LocationDTO

EARTH_RADIUS_KM = 6371.0

LocationPublisher = Callable[[LocationDTO], Awaitable[None]]


class LocationSource(Protocol):
    """Источник координат (браузер, GPS, тестовая заглушка)."""

    async def get_location(self) -> Optional[LocationDTO]: ...


def haversine_km(a: LocationDTO, b: LocationDTO) -> float:
    """Расстояние между двумя точками по формуле гаверсинусов, км."""
    dlat = math.radians(b.lat - a.lat)
    dlng = math.radians(b.lng - a.lng)

    h = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) *
         math.sin(dlng / 2) ** 2)

    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def format_distance(km: float) -> str:
    """Подпись расстояния: метры до 1 км, далее километры."""
    if km < 1:
        return f"{round(km * 1000)} m"
    return f"{km:.1f} km"


def rider_location_publisher(connection, rider_id: str, order_id: Optional[str] = None) -> LocationPublisher:
    """Публикатор кадров rider_location через RealtimeConnection."""

    async def publish(location: LocationDTO) -> None:
        frame = {
            "type": WsMessageType.RIDER_LOCATION,
            "riderId": rider_id,
            "location": location.model_dump(exclude_none=True),
        }
        if order_id:
            frame["orderId"] = order_id
        await connection.send(frame)

    return publish


class LocationTracker:
    """
    Трекер текущей позиции курьера.

    Отказ в доступе к геолокации показывает уведомление и
    останавливает отслеживание. Запросы статуса при этом
    уходят с location=None.
    """

    def __init__(
        self,
        source: LocationSource,
        notifications: NotificationService,
        interval: Optional[float] = None,
        publisher: Optional[LocationPublisher] = None,
    ) -> None:
        if interval is None:
            from src.config import settings
            interval = settings.delivery.LOCATION_UPDATE_INTERVAL

        self._source = source
        self._notifications = notifications
        self.interval = interval
        self.publisher = publisher

        self.current_location: Optional[LocationDTO] = None
        self.permission_denied = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_tracking(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh(self) -> Optional[LocationDTO]:
        """Запрашивает координаты у источника. Возвращает текущую позицию."""
        try:
            location = await self._source.get_location()
        except PermissionError:
            self.permission_denied = True
            self._notifications.error("LOCATION_DENIED_TITLE", "LOCATION_DENIED_BODY")
            await log_warning("Доступ к геолокации запрещён", logger_name="geo")
            return None
        except Exception as e:
            await log_warning(f"Не удалось получить геолокацию: {e}", logger_name="geo")
            return self.current_location

        if location is None:
            return self.current_location

        self.current_location = location
        if self.publisher is not None:
            try:
                await self.publisher(location)
            except Exception as e:
                await log_warning(f"Ошибка публикации геолокации: {e}", logger_name="geo")
        return location

    def start(self) -> None:
        if self.is_tracking:
            return
        self.permission_denied = False
        self._task = asyncio.create_task(self._loop(), name="location_tracker")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _loop(self) -> None:
        await log_info(f"Отслеживание геолокации, интервал {self.interval} с", type_msg=TypeMsg.DEBUG, logger_name="geo")
        while True:
            await self.refresh()
            if self.permission_denied:
                break
            await asyncio.sleep(self.interval)
