# src/infra/api_clients.py
"""
HTTP клиенты backend API.

Тонкие обёртки над httpx.AsyncClient: JSON на входе и выходе,
Bearer токен в заголовке. Любой не-2xx ответ и ошибки транспорта
превращаются в ApiError.
"""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from src.config import settings
from src.common.logger import log_error
from src.shared.models.chat_dto import ChatMessageDTO
from src.shared.models.delivery_dto import (
    CompleteDeliveryRequest,
    DeliveryOrderDTO,
    StatusUpdateRequest,
)
from src.shared.models.backoffice_dto import (
    DeliveryZoneDTO,
    PromotionDTO,
    TaxExemptionDTO,
    TaxExemptionVerification,
    TaxReportDTO,
)
from src.shared.models.enums import DeliveryStatus, PhotoType
from src.shared.models.location_dto import LocationDTO


class ApiError(Exception):
    """Ошибка запроса к backend. status_code=0 означает ошибку транспорта."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")

    @property
    def is_transport_error(self) -> bool:
        return self.status_code == 0


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.text or response.reason_phrase


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _location_json(location: Optional[LocationDTO]) -> str:
    return json.dumps(location.model_dump(exclude_none=True) if location else None)


class BaseClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url or settings.api.API_BASE_URL
        self.timeout = timeout or settings.api.API_TIMEOUT
        self.token = token if token is not None else settings.api.API_AUTH_TOKEN

        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        if client is not None:
            client.headers.update(headers)
            self.client = client
        else:
            self.client = httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, headers=headers
            )

    async def close(self):
        await self.client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            await log_error(f"{method} {path}: ошибка транспорта: {e}", logger_name="api")
            raise ApiError(0, str(e) or e.__class__.__name__) from e

        if response.is_error:
            message = _error_message(response)
            await log_error(
                f"{method} {path}: {response.status_code} {message}", logger_name="api"
            )
            raise ApiError(response.status_code, message)
        return response

    @staticmethod
    def _json(response: httpx.Response, strict: bool = True) -> Any:
        """
        Тело 2xx ответа как JSON.

        strict=False для подтверждений, тело которых не используется:
        пустой или не-JSON ответ даёт None.
        """
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            if not strict:
                return None
            raise ApiError(response.status_code, f"Invalid JSON response: {e}") from e

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._json(await self._request("GET", path, params=params))

    async def _post(
        self, path: str, json: Optional[Dict[str, Any]] = None, strict: bool = True
    ) -> Any:
        return self._json(await self._request("POST", path, json=json), strict)

    async def _put(self, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        return self._json(await self._request("PUT", path, json=json))

    async def _patch(
        self, path: str, json: Optional[Dict[str, Any]] = None, strict: bool = True
    ) -> Any:
        return self._json(await self._request("PATCH", path, json=json), strict)

    async def _delete(self, path: str) -> Any:
        return self._json(await self._request("DELETE", path))


class OrdersClient(BaseClient):
    """Заказы курьера и ресторана."""

    async def update_status(
        self,
        order_id: str,
        rider_id: str,
        status: DeliveryStatus | str,
        location: Optional[LocationDTO] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        request = StatusUpdateRequest(
            status=str(status),
            rider_id=rider_id,
            location=location,
            timestamp=_utc_now(),
        )
        payload = request.to_wire()
        # location передаётся явно, даже если неизвестна
        payload["location"] = location.model_dump(exclude_none=True) if location else None
        if extra:
            payload.update(extra)
        return await self._patch(
            f"/api/orders/{order_id}/status", json=payload, strict=False
        ) or {}

    async def complete_delivery(self, request: CompleteDeliveryRequest) -> Dict[str, Any]:
        return await self._post(
            f"/api/orders/{request.order_id}/complete", json=request.to_wire(), strict=False
        ) or {}

    async def get_rider_deliveries(self) -> List[DeliveryOrderDTO]:
        data = await self._get("/api/rider/deliveries") or []
        return [DeliveryOrderDTO.model_validate(item) for item in data]

    async def get_vendor_orders(self) -> List[Dict[str, Any]]:
        return await self._get("/api/vendor/orders") or []


class DeliveryPhotosClient(BaseClient):
    """Загрузка фото курьера (multipart)."""

    async def upload_photo(
        self,
        order_id: str,
        rider_id: str,
        photo_type: PhotoType | str,
        content: bytes,
        filename: str,
        content_type: str = "image/jpeg",
        location: Optional[LocationDTO] = None,
    ) -> str:
        """Возвращает URL загруженного изображения."""
        response = await self._request(
            "POST",
            "/api/delivery-photos/upload",
            files={"file": (filename, content, content_type)},
            data={
                "orderId": order_id,
                "riderId": rider_id,
                "photoType": str(photo_type),
                "location": _location_json(location),
            },
        )
        data = self._json(response) or {}
        if not data.get("imageUrl"):
            raise ApiError(response.status_code, "В ответе нет imageUrl")
        return data["imageUrl"]

    async def upload_delivery_proof(
        self,
        order_id: str,
        content: bytes,
        filename: str,
        content_type: str = "image/jpeg",
        timestamp: Optional[datetime] = None,
    ) -> str:
        """Возвращает URL фото-подтверждения доставки."""
        response = await self._request(
            "POST",
            "/api/delivery-proof/upload",
            files={"file": (filename, content, content_type)},
            data={
                "orderId": order_id,
                "photoType": str(PhotoType.DELIVERY_PROOF),
                "timestamp": (timestamp or _utc_now()).isoformat(),
            },
        )
        data = self._json(response) or {}
        if not data.get("photoUrl"):
            raise ApiError(response.status_code, "В ответе нет photoUrl")
        return data["photoUrl"]


class ChatClient(BaseClient):
    """Чат заказа: клиент <-> курьер."""

    async def get_messages(self, order_id: str) -> List[ChatMessageDTO]:
        data = await self._get(f"/api/orders/{order_id}/messages") or []
        return [ChatMessageDTO.model_validate(item) for item in data]

    async def send_message(self, order_id: str, message: str) -> ChatMessageDTO:
        text = (message or "").strip()
        if not text:
            raise ValueError("Сообщение не может быть пустым")
        data = await self._post(f"/api/orders/{order_id}/messages", json={"message": text})
        return ChatMessageDTO.model_validate(data)

    async def mark_read(self, order_id: str) -> None:
        await self._patch(f"/api/orders/{order_id}/messages/read", strict=False)

    async def get_unread_count(self, order_id: str) -> int:
        data = await self._get(f"/api/orders/{order_id}/messages/unread-count") or {}
        return int(data.get("count", 0))


class TaxClient(BaseClient):
    """Налоговые льготы клиента и отчёты для администрации."""

    async def get_exemption(self) -> Optional[TaxExemptionDTO]:
        try:
            data = await self._get("/api/customer/tax-exemption")
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise
        return TaxExemptionDTO.model_validate(data) if data else None

    async def submit_exemption(self, exemption: TaxExemptionDTO) -> TaxExemptionDTO:
        data = await self._post("/api/customer/tax-exemption", json=exemption.to_wire())
        return TaxExemptionDTO.model_validate(data)

    async def verify_exemption(
        self, exemption_id: str, approved: bool, notes: Optional[str] = None
    ) -> TaxExemptionVerification:
        payload = {"status": "verified" if approved else "rejected"}
        if notes:
            payload["notes"] = notes
        data = await self._post(f"/api/admin/tax-exemptions/{exemption_id}/verify", json=payload)
        return TaxExemptionVerification.model_validate(data)

    async def list_reports(self, limit: int = 50) -> List[TaxReportDTO]:
        data = await self._get("/api/admin/tax-reports", params={"limit": limit}) or []
        return [TaxReportDTO.model_validate(item) for item in data]

    async def generate_report(self, period_start: date, period_end: date) -> TaxReportDTO:
        if period_end < period_start:
            raise ValueError("Конец периода раньше начала")
        data = await self._post(
            "/api/admin/tax-reports/generate",
            json={
                "periodStart": period_start.isoformat(),
                "periodEnd": period_end.isoformat(),
            },
        )
        return TaxReportDTO.model_validate(data)

    async def export_report_csv(self, report_id: str) -> bytes:
        response = await self._request("GET", f"/api/admin/tax-reports/{report_id}/export")
        return response.content


class DeliveryZonesClient(BaseClient):
    """Зоны доставки (администратор)."""

    PATH = "/api/admin/delivery-zones"

    async def list_zones(self) -> List[DeliveryZoneDTO]:
        data = await self._get(self.PATH) or []
        return [DeliveryZoneDTO.model_validate(item) for item in data]

    async def get_stats(self) -> Dict[str, Any]:
        return await self._get(f"{self.PATH}/stats") or {}

    async def create_zone(self, zone: DeliveryZoneDTO) -> DeliveryZoneDTO:
        data = await self._post(self.PATH, json=zone.to_wire())
        return DeliveryZoneDTO.model_validate(data)

    async def update_zone(self, zone_id: str, changes: Dict[str, Any]) -> DeliveryZoneDTO:
        data = await self._patch(f"{self.PATH}/{zone_id}", json=changes)
        return DeliveryZoneDTO.model_validate(data)

    async def delete_zone(self, zone_id: str) -> None:
        await self._delete(f"{self.PATH}/{zone_id}")

    async def set_active(self, zone_id: str, is_active: bool) -> DeliveryZoneDTO:
        return await self.update_zone(zone_id, {"isActive": is_active})


class PromotionsClient(BaseClient):
    """Промо-акции ресторана."""

    PATH = "/api/vendor/promotions"

    async def list_promotions(self) -> List[PromotionDTO]:
        data = await self._get(self.PATH) or []
        return [PromotionDTO.model_validate(item) for item in data]

    async def create_promotion(self, promotion: PromotionDTO) -> PromotionDTO:
        data = await self._post(self.PATH, json=promotion.to_wire())
        return PromotionDTO.model_validate(data)

    async def update_promotion(self, promotion_id: str, changes: Dict[str, Any]) -> PromotionDTO:
        data = await self._patch(f"{self.PATH}/{promotion_id}", json=changes)
        return PromotionDTO.model_validate(data)

    async def delete_promotion(self, promotion_id: str) -> None:
        await self._delete(f"{self.PATH}/{promotion_id}")

    async def set_active(self, promotion_id: str, is_active: bool) -> PromotionDTO:
        return await self.update_promotion(promotion_id, {"isActive": is_active})
