# src/core/realtime/notifier.py
"""
Обработчик real-time событий backend.

Разбирает кадры WebSocket и превращает их в инвалидацию кэша,
уведомления, звук нового заказа и обновление чата.
"""

from __future__ import annotations

import json
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Union

from pydantic import ValidationError

from src.common.constants import QueryKeys, TypeMsg
from src.common.logger import log_error, log_info, log_warning
from src.core.notifications.service import NotificationService, SoundPlayer
from src.core.realtime.expiring import ExpiringSet, UnreadCounter
from src.infra.api_clients import ApiError, ChatClient
from src.infra.query_cache import QueryCache
from src.infra.ws_client import RealtimeConnection
from src.shared.models.chat_dto import ChatMessageDTO
from src.shared.models.enums import WsMessageType

Handler = Callable[[Dict[str, Any]], Awaitable[None]]


def realtime_url(base_url: Optional[str] = None) -> str:
    """Общий канал: чат и статусы заказов."""
    if base_url is None:
        from src.config import settings
        base_url = settings.realtime.WS_BASE_URL
    return f"{base_url.rstrip('/')}/ws"


def vendor_feed_url(restaurant_id: str, base_url: Optional[str] = None) -> str:
    """Канал новых заказов ресторана."""
    return f"{realtime_url(base_url)}/vendor/{restaurant_id}"


def _format_total(value: Any) -> str:
    try:
        return f"{float(value):.2f}"
    except (TypeError, ValueError):
        return "0.00"


class RealtimeNotifier:
    """
    Диспетчер входящих сообщений по полю type.

    Неизвестные типы игнорируются, некорректный JSON логируется
    и отбрасывается без исключения.
    """

    def __init__(
        self,
        cache: QueryCache,
        notifications: NotificationService,
        sound_player: Optional[SoundPlayer] = None,
        chat_client: Optional[ChatClient] = None,
        user_id: Optional[str] = None,
        sound_enabled: Optional[bool] = None,
        recent_ttl: Optional[float] = None,
        unread_reset: Optional[float] = None,
        currency: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        from src.config import settings

        self._cache = cache
        self._notifications = notifications
        self._sound_player = sound_player
        self._chat_client = chat_client
        self.user_id = user_id

        self.sound_enabled = settings.realtime.SOUND_ENABLED if sound_enabled is None else sound_enabled
        self.currency = settings.delivery.CURRENCY_SYMBOL if currency is None else currency

        self.recent_orders = ExpiringSet(
            recent_ttl if recent_ttl is not None else settings.realtime.RECENT_ORDER_TTL, clock
        )
        self.unread = UnreadCounter(
            unread_reset if unread_reset is not None else settings.realtime.UNREAD_RESET_SECONDS, clock
        )

        self._handlers: Dict[str, Handler] = {
            WsMessageType.NEW_ORDER: self._on_new_order,
            WsMessageType.ORDER_UPDATE: self._on_order_update,
            WsMessageType.CHAT_MESSAGE: self._on_chat_message,
            WsMessageType.MESSAGES_READ: self._on_messages_read,
            WsMessageType.ERROR: self._on_error,
        }

    @property
    def unread_count(self) -> int:
        return self.unread.value

    def is_recent(self, order_id: str) -> bool:
        return order_id in self.recent_orders

    def create_connection(
        self,
        url: str,
        auth_token: Optional[str] = None,
        subscriptions: Iterable[dict[str, Any]] = (),
        **kwargs: Any,
    ) -> RealtimeConnection:
        """Соединение, все кадры которого попадают в handle_raw."""
        return RealtimeConnection(
            url,
            on_message=self.handle_raw,
            auth_token=auth_token,
            subscriptions=subscriptions,
            **kwargs,
        )

    # =========================================================================
    # ДИСПЕТЧЕРИЗАЦИЯ
    # =========================================================================

    async def handle_raw(self, raw: Union[str, bytes]) -> None:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError) as e:
            await log_warning(f"Некорректный WS кадр отброшен: {e}", logger_name="realtime")
            return

        if not isinstance(message, dict):
            await log_warning(f"WS кадр не является объектом: {message!r}", logger_name="realtime")
            return

        await self.handle(message)

    async def handle(self, message: Dict[str, Any]) -> None:
        handler = self._handlers.get(message.get("type"))
        if handler is None:
            await log_info(f"WS сообщение {message.get('type')!r} пропущено", type_msg=TypeMsg.DEBUG, logger_name="realtime")
            return
        await handler(message)

    # =========================================================================
    # ЗАКАЗЫ
    # =========================================================================

    async def _on_new_order(self, message: Dict[str, Any]) -> None:
        order = message.get("order") or {}
        order_id = order.get("id")
        if not order_id:
            await log_warning("NEW_ORDER без id заказа", logger_name="realtime")
            return

        if self.sound_enabled and self._sound_player is not None:
            try:
                self._sound_player.play()
            except Exception as e:
                await log_warning(f"Не удалось проиграть звук: {e}", logger_name="realtime")

        self._notifications.notify(
            "NEW_ORDER_TITLE",
            "NEW_ORDER_BODY",
            order_number=order.get("orderNumber") or str(order_id)[-8:],
            currency=self.currency,
            total=_format_total(order.get("totalAmount")),
        )
        # Повтор не продлевает подсветку
        self.recent_orders.add(order_id)
        self.unread.increment()
        await self._cache.invalidate(QueryKeys.VENDOR_ORDERS)

    async def _on_order_update(self, message: Dict[str, Any]) -> None:
        await self._cache.invalidate(QueryKeys.VENDOR_ORDERS)
        await self._cache.invalidate(QueryKeys.RIDER_DELIVERIES)

    # =========================================================================
    # ЧАТ
    # =========================================================================

    async def _on_chat_message(self, message: Dict[str, Any]) -> None:
        order_id = message.get("orderId")
        try:
            chat_message = ChatMessageDTO.model_validate(
                {"orderId": order_id, **(message.get("message") or {})}
            )
        except ValidationError as e:
            await log_warning(f"Некорректное сообщение чата: {e}", logger_name="realtime")
            return
        order_id = order_id or chat_message.order_id

        def append(old: Optional[list]) -> list:
            if not old:
                return [chat_message]
            if any(m.id == chat_message.id for m in old):
                return old
            return [*old, chat_message]

        self._cache.set(QueryKeys.order_messages(order_id), append)

        if chat_message.sender_id != self.user_id and self._chat_client is not None:
            try:
                await self._chat_client.mark_read(order_id)
            except ApiError as e:
                await log_error(f"Не удалось отметить чат {order_id} прочитанным: {e}", logger_name="realtime")

    async def _on_messages_read(self, message: Dict[str, Any]) -> None:
        order_id = message.get("orderId")
        read_at = message.get("timestamp")

        def mark(old: Optional[list]) -> Optional[list]:
            if not old:
                return old
            return [
                ChatMessageDTO.model_validate(
                    {**m.model_dump(), "is_read": True, "read_at": read_at}
                )
                if m.sender_id == self.user_id else m
                for m in old
            ]

        self._cache.set(QueryKeys.order_messages(order_id), mark)

    async def _on_error(self, message: Dict[str, Any]) -> None:
        await log_warning(f"Ошибка от WS сервера: {message.get('message')}", logger_name="realtime")
