# src/core/delivery/workflow.py
"""
Менеджер доставки курьера.

Кнопка "следующее действие" отправляет backend запрос на переход
статуса и обновляет локальное состояние только после успешного ответа.
Повторов при ошибке нет: курьер нажимает кнопку ещё раз.
"""

from __future__ import annotations

import inspect
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from src.common.constants import QueryKeys, TypeMsg
from src.common.logger import log_error, log_info
from src.core.delivery.proof import ProofPhoto
from src.core.delivery.status import (
    NextAction,
    get_delivery_progress,
    get_next_action,
    get_status_text,
    is_terminal,
)
from src.core.geo.service import LocationTracker
from src.core.notifications.service import NotificationService
from src.infra.api_clients import ApiError, DeliveryPhotosClient, OrdersClient
from src.infra.query_cache import QueryCache
from src.shared.models.delivery_dto import CompleteDeliveryRequest, DeliveryOrderDTO
from src.shared.models.enums import DeliveryStatus, PhotoType
from src.shared.models.location_dto import LocationDTO

StatusCallback = Callable[[str, str], Union[Awaitable[None], None]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_cod_amount(order: DeliveryOrderDTO, entered: Union[str, float, None]) -> float:
    """
    Сумма наличных, полученная курьером.

    Пустое, нечисловое или нулевое значение заменяется суммой заказа.
    """
    total = order.order_details.total_amount
    if entered is None:
        return total
    try:
        amount = float(str(entered).strip())
    except ValueError:
        return total
    if not amount or math.isnan(amount):
        return total
    return amount


@dataclass(frozen=True)
class DeliveryCard:
    """Данные карточки заказа для UI."""
    order_id: str
    display_number: str
    status: str
    status_text: str
    progress: int
    next_action: Optional[NextAction]
    can_complete: bool
    requires_photo_proof: bool
    has_pickup_photo: bool
    cod_amount_due: Optional[float] = None


class DeliveryWorkflowManager:
    """
    Активные заказы курьера и переходы их статусов.

    Источник истины: backend. Локальная копия заказа меняется
    только после подтверждения запроса; при ошибке остаётся прежней.
    """

    def __init__(
        self,
        rider_id: str,
        orders_client: OrdersClient,
        photos_client: DeliveryPhotosClient,
        cache: QueryCache,
        notifications: NotificationService,
        location_tracker: Optional[LocationTracker] = None,
        on_status_update: Optional[StatusCallback] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.rider_id = rider_id
        self._orders_client = orders_client
        self._photos_client = photos_client
        self._cache = cache
        self._notifications = notifications
        self._location_tracker = location_tracker
        self._on_status_update = on_status_update
        self._clock = clock

        self._orders: Dict[str, DeliveryOrderDTO] = {}

    # =========================================================================
    # ЗАКАЗЫ
    # =========================================================================

    def load_orders(self, orders: Iterable[Union[DeliveryOrderDTO, Dict[str, Any]]]) -> List[DeliveryOrderDTO]:
        """Заменяет локальный список заказов данными backend."""
        self._orders = {}
        for item in orders:
            order = item if isinstance(item, DeliveryOrderDTO) else DeliveryOrderDTO.model_validate(item)
            self._orders[order.id] = order
        return self.active_orders

    async def refresh(self) -> List[DeliveryOrderDTO]:
        """Загрузчик для кэша: перечитывает заказы курьера."""
        orders = await self._orders_client.get_rider_deliveries()
        return self.load_orders(orders)

    def get_order(self, order_id: str) -> Optional[DeliveryOrderDTO]:
        return self._orders.get(order_id)

    @property
    def active_orders(self) -> List[DeliveryOrderDTO]:
        return [order for order in self._orders.values() if not is_terminal(order.status)]

    @property
    def current_location(self) -> Optional[LocationDTO]:
        if self._location_tracker is None:
            return None
        return self._location_tracker.current_location

    def _replace(self, order: DeliveryOrderDTO) -> DeliveryOrderDTO:
        self._orders[order.id] = order
        return order

    async def _notify_status(self, order_id: str, status: str) -> None:
        if self._on_status_update is None:
            return
        result = self._on_status_update(order_id, status)
        if inspect.isawaitable(result):
            await result

    # =========================================================================
    # ПЕРЕХОДЫ СТАТУСОВ
    # =========================================================================

    async def advance(self, order_id: str) -> Optional[DeliveryOrderDTO]:
        """
        Выполняет следующее действие для заказа.

        Завершение доставки (at_customer) выполняется через
        complete_delivery, здесь запрос не отправляется.
        """
        order = self.get_order(order_id)
        if order is None:
            return None

        action = get_next_action(order.status)
        if action is None or action.requires_verification:
            return None

        if action.requires_photo and not order.has_pickup_photo:
            self._notifications.error("PHOTO_REQUIRED_TITLE", "PICKUP_PHOTO_REQUIRED_BODY")
            return None

        return await self.update_status(order_id, action.next_status)

    async def update_status(
        self,
        order_id: str,
        new_status: Union[DeliveryStatus, str],
        extra: Optional[Dict[str, Any]] = None,
    ) -> Optional[DeliveryOrderDTO]:
        """Запрос перехода статуса. Локальное состояние меняется только при успехе."""
        order = self.get_order(order_id)
        if order is None:
            return None

        status = str(new_status)
        try:
            await self._orders_client.update_status(
                order_id,
                self.rider_id,
                status,
                location=self.current_location,
                extra=extra,
            )
        except ApiError as e:
            self._notifications.error("STATUS_UPDATE_FAILED_TITLE", description=e.message)
            return None

        updated = self._replace(order.model_copy(update={"status": status}))
        await log_info(
            f"Заказ {order_id}: {order.status} -> {status}",
            type_msg=TypeMsg.INFO,
            logger_name="workflow",
        )

        await self._notify_status(order_id, status)
        await self._cache.invalidate(QueryKeys.RIDER_DELIVERIES)
        self._notifications.notify(
            "STATUS_UPDATED_TITLE",
            "STATUS_UPDATED_BODY",
            order_number=updated.display_number,
            status=get_status_text(status),
        )
        return updated

    # =========================================================================
    # ФОТО
    # =========================================================================

    async def upload_photo(
        self,
        order_id: str,
        photo_type: Union[PhotoType, str],
        photo: ProofPhoto,
    ) -> Optional[str]:
        """Загружает фото (pickup, доставка, чек COD). Возвращает URL или None."""
        order = self.get_order(order_id)
        if order is None:
            return None

        photo_type = PhotoType(photo_type)
        try:
            url = await self._photos_client.upload_photo(
                order_id,
                self.rider_id,
                photo_type,
                photo.content,
                photo.filename,
                photo.content_type,
                location=self.current_location,
            )
        except ApiError as e:
            self._notifications.error("PHOTO_UPLOAD_FAILED_TITLE", description=e.message)
            return None

        updated = order.model_copy(deep=True)
        if photo_type == PhotoType.PICKUP_CONFIRMATION:
            updated.verification.pickup_photos.append(url)
        elif photo_type == PhotoType.DELIVERY_PROOF:
            updated.verification.delivery_photos.append(url)
        else:
            updated.verification.cod_photo_url = url
        self._replace(updated)

        self._notifications.notify(
            "PHOTO_UPLOADED_TITLE",
            "PHOTO_UPLOADED_BODY",
            photo_type=str(photo_type).replace("_", " ", 1),
        )
        return url

    def attach_delivery_proof(self, order_id: str, photo_url: str) -> Optional[DeliveryOrderDTO]:
        """Сохраняет URL фото-подтверждения, загруженного DeliveryProofCapture."""
        order = self.get_order(order_id)
        if order is None:
            return None
        return self._replace(order.model_copy(update={"delivery_proof_photo": photo_url}))

    # =========================================================================
    # ЗАВЕРШЕНИЕ
    # =========================================================================

    @staticmethod
    def can_complete(order: DeliveryOrderDTO) -> bool:
        """Бесконтактная доставка требует фото-подтверждения."""
        return not (order.requires_photo_proof and not order.delivery_proof_photo)

    async def complete_delivery(
        self,
        order_id: str,
        customer_rating: Optional[int] = None,
        delivery_notes: Optional[str] = None,
        cod_amount: Union[str, float, None] = None,
        customer_signature: Optional[str] = None,
    ) -> Optional[DeliveryOrderDTO]:
        """
        Завершает доставку.

        Raises:
            ValueError: Оценка клиента вне диапазона 1..5
        """
        if customer_rating is None:
            from src.config import settings
            customer_rating = settings.delivery.DEFAULT_CUSTOMER_RATING
        if not 1 <= customer_rating <= 5:
            raise ValueError(f"Оценка должна быть от 1 до 5, получено {customer_rating}")

        order = self.get_order(order_id)
        if order is None:
            return None

        if not self.can_complete(order):
            self._notifications.error("PHOTO_REQUIRED_TITLE", "DELIVERY_PHOTO_REQUIRED_BODY")
            return None

        request = CompleteDeliveryRequest(
            order_id=order_id,
            rider_id=self.rider_id,
            customer_rating=customer_rating,
            delivery_notes=delivery_notes or None,
            cod_received=resolve_cod_amount(order, cod_amount) if order.requires_cod else None,
            customer_signature=customer_signature,
            completed_at=self._clock(),
            location=self.current_location,
        )

        try:
            await self._orders_client.complete_delivery(request)
        except ApiError as e:
            self._notifications.error("DELIVERY_COMPLETE_FAILED_TITLE", description=e.message)
            await log_error(f"Не удалось завершить заказ {order_id}: {e}", logger_name="workflow")
            return None

        updated = order.model_copy(deep=True)
        updated.status = str(DeliveryStatus.DELIVERED)
        updated.verification.customer_rating = customer_rating
        updated.verification.delivery_notes = request.delivery_notes
        updated.verification.cod_received = request.cod_received
        updated.verification.customer_signature = customer_signature
        self._replace(updated)

        await self._notify_status(order_id, updated.status)
        await self._cache.invalidate(QueryKeys.RIDER_DELIVERIES)
        await self._cache.invalidate(QueryKeys.RIDER_PROFILE)
        self._notifications.notify("DELIVERY_COMPLETED_TITLE", "DELIVERY_COMPLETED_BODY")
        return updated

    # =========================================================================
    # UI
    # =========================================================================

    def get_card(self, order_id: str) -> Optional[DeliveryCard]:
        order = self.get_order(order_id)
        if order is None:
            return None

        return DeliveryCard(
            order_id=order.id,
            display_number=order.display_number,
            status=order.status,
            status_text=get_status_text(order.status),
            progress=get_delivery_progress(order.status),
            next_action=get_next_action(order.status),
            can_complete=self.can_complete(order),
            requires_photo_proof=order.requires_photo_proof,
            has_pickup_photo=order.has_pickup_photo,
            cod_amount_due=order.order_details.total_amount if order.requires_cod else None,
        )
