from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import aiohttp

from src.config import settings
from src.common.logger import log_info
from src.shared.models.location_dto import LocationDTO

_DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"

_SESSION_LOCK = asyncio.Lock()
_SESSION: aiohttp.ClientSession | None = None


async def _get_session() -> aiohttp.ClientSession:
    """Возвращает (и создает при необходимости) общий HTTP-клиент для Google Maps."""

    global _SESSION
    if _SESSION is not None and not _SESSION.closed:
        return _SESSION

    async with _SESSION_LOCK:
        if _SESSION is None or _SESSION.closed:
            timeout = aiohttp.ClientTimeout(total=6)
            _SESSION = aiohttp.ClientSession(timeout=timeout)
            await log_info("HTTP-сессия создана", type_msg="debug")

    return _SESSION


async def close_gmaps_session() -> None:
    """Закрывает HTTP-сессию Google Maps."""

    global _SESSION
    if _SESSION is None:
        return
    try:
        await _SESSION.close()
        await log_info("HTTP-сессия закрыта", type_msg="debug")
    except Exception as error:  # noqa: BLE001
        await log_info(
            "Не удалось закрыть HTTP-сессию",
            type_msg="warning",
            extra={"reason": str(error)},
        )
    finally:
        _SESSION = None


def _point(location: LocationDTO) -> str:
    return f"{location.lat},{location.lng}"


async def fetch_directions(
    origin: LocationDTO,
    destination: LocationDTO,
    lang: str = "en",
    *,
    mode: str = "driving",
) -> Optional[Dict[str, Any]]:
    """
    Маршрут курьера через Google Directions API.
    Возвращает дистанцию (км), длительность (мин) и полилайн или None.
    """
    if not settings.google_maps.GOOGLE_MAPS_API_KEY:
        await log_info("API ключ не задан", type_msg="warning")
        return None

    params = {
        "origin": _point(origin),
        "destination": _point(destination),
        "language": lang or "en",
        "mode": mode,
        "key": settings.google_maps.GOOGLE_MAPS_API_KEY,
    }

    try:
        session = await _get_session()
        async with session.get(_DIRECTIONS_URL, params=params) as response:
            payload = await response.json()
    except Exception as error:  # noqa: BLE001
        await log_info(
            "Запрос маршрута завершился ошибкой",
            type_msg="error",
            extra={"reason": str(error)},
        )
        return None

    status = payload.get("status")
    if status != "OK":
        await log_info(
            "Неожиданный статус маршрута",
            type_msg="warning",
            extra={"status": status, "origin": params["origin"], "dest": params["destination"]},
        )
        return None

    routes = payload.get("routes") or []
    if not routes or not routes[0].get("legs"):
        return None

    route = routes[0]
    legs = route["legs"]
    distance_m = sum(leg.get("distance", {}).get("value", 0) for leg in legs)
    duration_s = sum(leg.get("duration", {}).get("value", 0) for leg in legs)

    return {
        "distance_km": round(distance_m / 1000, 2),
        "duration_min": round(duration_s / 60),
        "polyline": route.get("overview_polyline", {}).get("points", ""),
    }
