from __future__ import annotations

from typing import Any, Dict, Optional

from nicegui import ui

from src.common.constants import QueryKeys
from src.common.localization import get_text
from src.common.logger import log_info
from src.config import settings
from src.core.delivery.status import get_status_text
from src.core.notifications.service import NotificationService
from src.core.realtime.notifier import RealtimeNotifier, vendor_feed_url
from src.infra.api_clients import ApiError, OrdersClient
from src.infra.query_cache import QueryCache
from src.web_client.infra.toaster import NiceGuiSoundPlayer, NiceGuiToaster


class VendorOrdersPage:
    """Живая лента заказов ресторана со звуком и отметкой новых заказов."""

    # Частота перерисовки бейджей: счётчик и подсветка истекают по времени
    BADGE_REFRESH_SECONDS = 1.0

    def __init__(self, restaurant_id: str, user_lang: str, auth_token: Optional[str] = None) -> None:
        self.restaurant_id = restaurant_id
        self.lang = user_lang

        self.notifications = NotificationService(NiceGuiToaster(), user_lang)
        self.cache = QueryCache()
        self.orders_client = OrdersClient(token=auth_token)
        self.notifier = RealtimeNotifier(
            self.cache,
            self.notifications,
            sound_player=NiceGuiSoundPlayer(),
        )
        self.connection = self.notifier.create_connection(vendor_feed_url(restaurant_id))
        self._unsubscribe_cache = None

    def _t(self, key: str, **kwargs: Any) -> str:
        return get_text(key, self.lang, **kwargs)

    async def mount(self) -> None:
        self.cache.register(QueryKeys.VENDOR_ORDERS, self.orders_client.get_vendor_orders)
        self._unsubscribe_cache = self.cache.subscribe(
            lambda key, _: self.render_orders.refresh() if key == QueryKeys.VENDOR_ORDERS else None
        )

        try:
            await self.cache.fetch(QueryKeys.VENDOR_ORDERS)
        except ApiError as e:
            self.notifications.error("LOAD_FAILED", description=e.message)

        with ui.column().classes('w-full max-w-3xl mx-auto p-4 gap-4'):
            with ui.row().classes('w-full items-center justify-between'):
                ui.label(self._t("LIVE_ORDERS")).classes('text-2xl font-bold')
                self.render_unread()
            self.render_orders()

        ui.timer(self.BADGE_REFRESH_SECONDS, self._tick)
        self.connection.start()
        await log_info(f"Лента заказов ресторана {self.restaurant_id} открыта", type_msg="debug")

    def _tick(self) -> None:
        self.render_unread.refresh()
        self.render_orders.refresh()

    @ui.refreshable
    def render_unread(self) -> None:
        count = self.notifier.unread_count
        if count:
            ui.badge(self._t("UNREAD_ORDERS", count=count), color='red').classes('text-sm')

    @ui.refreshable
    def render_orders(self) -> None:
        orders = self.cache.get(QueryKeys.VENDOR_ORDERS, [])
        if not orders:
            ui.label(self._t("NO_ORDERS")).classes('text-gray-500')
            return
        for order in orders:
            self._render_order(order)

    def _render_order(self, order: Dict[str, Any]) -> None:
        order_id = str(order.get("id", ""))
        recent = self.notifier.is_recent(order_id)
        number = order.get("orderNumber") or order_id[-8:]
        try:
            total = f"{float(order.get('totalAmount', 0)):.2f}"
        except (TypeError, ValueError):
            total = "0.00"

        classes = 'w-full gap-1'
        if recent:
            classes += ' ring-2 ring-orange-500 bg-orange-50'

        with ui.card().classes(classes):
            with ui.row().classes('w-full items-center justify-between'):
                ui.label(f"Order #{number}").classes('font-bold')
                with ui.row().classes('gap-2'):
                    if recent:
                        ui.badge(self._t("NEW_BADGE"), color='orange')
                    ui.badge(get_status_text(order.get("status", "")))
            ui.label(f"{settings.delivery.CURRENCY_SYMBOL}{total}").classes('text-gray-600')

    async def shutdown(self) -> None:
        if self._unsubscribe_cache:
            self._unsubscribe_cache()
        await self.connection.stop()
        await self.orders_client.close()
