from __future__ import annotations

import uuid
from typing import Any, Dict, Optional

from nicegui import ui

from src.common.constants import QueryKeys
from src.common.localization import get_text
from src.common.logger import log_info
from src.config import settings
from src.core.delivery.proof import DeliveryProofCapture, ProofPhoto
from src.core.delivery.workflow import DeliveryWorkflowManager
from src.core.geo.service import LocationTracker, format_distance, haversine_km, rider_location_publisher
from src.core.notifications.service import NotificationService
from src.core.realtime.notifier import RealtimeNotifier, realtime_url
from src.infra.api_clients import ApiError, ChatClient, DeliveryPhotosClient, OrdersClient
from src.infra.query_cache import QueryCache
from src.shared.models.delivery_dto import DeliveryOrderDTO
from src.shared.models.enums import DeliveryStatus, PhotoType
from src.web_client.components.map_component import MapComponent
from src.web_client.infra.browser import BrowserCamera, BrowserLocationSource
from src.web_client.infra.toaster import NiceGuiToaster
from src.web_client.services.gmaps_service import fetch_directions


class RiderPage:
    """Активные доставки курьера: прогресс, действия, фото, чат."""

    def __init__(self, rider_id: str, user_lang: str, auth_token: Optional[str] = None) -> None:
        self.rider_id = rider_id
        self.lang = user_lang

        self.notifications = NotificationService(NiceGuiToaster(), user_lang)
        self.cache = QueryCache()
        self.orders_client = OrdersClient(token=auth_token)
        self.photos_client = DeliveryPhotosClient(token=auth_token)
        self.chat_client = ChatClient(token=auth_token)

        self.notifier = RealtimeNotifier(
            self.cache,
            self.notifications,
            chat_client=self.chat_client,
            user_id=rider_id,
        )
        self.connection = self.notifier.create_connection(
            realtime_url(), auth_token=auth_token or settings.api.API_AUTH_TOKEN
        )
        self.location_tracker = LocationTracker(
            BrowserLocationSource(),
            self.notifications,
            publisher=rider_location_publisher(self.connection, rider_id),
        )
        self.manager = DeliveryWorkflowManager(
            rider_id,
            self.orders_client,
            self.photos_client,
            self.cache,
            self.notifications,
            self.location_tracker,
        )

        self.map_component = MapComponent()
        self.proof_captures: Dict[str, DeliveryProofCapture] = {}
        self.route_label: Optional[ui.label] = None
        self._unsubscribe_cache = None

    def _t(self, key: str, **kwargs: Any) -> str:
        return get_text(key, self.lang, **kwargs)

    async def mount(self) -> None:
        self.cache.register(QueryKeys.RIDER_DELIVERIES, self.manager.refresh)
        self._unsubscribe_cache = self.cache.subscribe(self._on_cache_change)

        try:
            await self.cache.fetch(QueryKeys.RIDER_DELIVERIES)
        except ApiError as e:
            self.notifications.error("LOAD_FAILED", description=e.message)

        with ui.column().classes('w-full max-w-xl mx-auto p-4 gap-4'):
            self.map_component.render()
            self.route_label = ui.label("").classes('text-sm text-gray-600')
            self.render_orders()

        for order in self.manager.active_orders:
            await self.connection.subscribe({"orderId": order.id})
        self.connection.start()
        self.location_tracker.start()
        await log_info(f"Страница курьера открыта: {self.rider_id}", type_msg="debug")

    def _on_cache_change(self, key: tuple, value: Any) -> None:
        if key == QueryKeys.RIDER_DELIVERIES:
            self.render_orders.refresh()

    # =========================================================================
    # КАРТОЧКИ ЗАКАЗОВ
    # =========================================================================

    @ui.refreshable
    def render_orders(self) -> None:
        orders = self.manager.active_orders
        ui.label(self._t("ACTIVE_DELIVERIES", count=len(orders))).classes('text-xl font-bold')
        if not orders:
            with ui.card().classes('w-full items-center p-8'):
                ui.icon('two_wheeler', size='3rem', color='gray-400')
                ui.label(self._t("NO_ACTIVE_DELIVERIES")).classes('text-gray-500')
            return
        for order in orders:
            self._render_card(order)

    def _render_card(self, order: DeliveryOrderDTO) -> None:
        card = self.manager.get_card(order.id)

        with ui.card().classes('w-full gap-2'):
            with ui.row().classes('w-full items-center justify-between'):
                ui.label(f"#{card.display_number}").classes('text-lg font-bold')
                ui.badge(card.status_text)

            if order.restaurant:
                ui.label(order.restaurant.name).classes('font-medium')
            if order.customer:
                ui.label(order.customer.address).classes('text-sm text-gray-600')
                distance = self._distance_to_customer(order)
                if distance:
                    ui.label(distance).classes('text-xs text-gray-500')

            ui.label(self._t("DELIVERY_PROGRESS")).classes('text-sm text-gray-500')
            ui.linear_progress(value=card.progress / 100, show_value=False)

            if card.cod_amount_due is not None:
                ui.label(self._t(
                    "COD_AMOUNT_DUE",
                    currency=settings.delivery.CURRENCY_SYMBOL,
                    amount=f"{card.cod_amount_due:.2f}",
                )).classes('text-orange-700 font-medium')

            if card.requires_photo_proof:
                ui.label(self._t("CONTACTLESS_DELIVERY")).classes('text-sm text-blue-700')

            with ui.row().classes('w-full gap-2'):
                action = card.next_action
                if action is not None and action.requires_photo and not card.has_pickup_photo:
                    ui.upload(
                        label=self._t("TAKE_PICKUP_PHOTO"),
                        auto_upload=True,
                        on_upload=lambda e, oid=order.id: self._upload_pickup_photo(oid, e),
                    ).props('accept="image/*" capture="environment"').classes('w-full')
                elif action is not None and action.requires_verification:
                    ui.button(action.label, icon=action.icon,
                              on_click=lambda oid=order.id: self._open_complete_dialog(oid)
                              ).classes(f'bg-{action.color} w-full')
                elif action is not None:
                    ui.button(action.label, icon=action.icon,
                              on_click=lambda oid=order.id: self._advance(oid)
                              ).classes(f'bg-{action.color} w-full')

                ui.button(self._t("CHAT"), icon='chat',
                          on_click=lambda oid=order.id: self._open_chat(oid)).props('outline')

    def _distance_to_customer(self, order: DeliveryOrderDTO) -> Optional[str]:
        current = self.location_tracker.current_location
        if current is None or order.customer is None or order.customer.location is None:
            return None
        return format_distance(haversine_km(current, order.customer.location))

    async def _advance(self, order_id: str) -> None:
        updated = await self.manager.advance(order_id)
        if updated is not None:
            self.render_orders.refresh()
            await self._update_map(updated)

    async def _upload_pickup_photo(self, order_id: str, event: Any) -> None:
        photo = ProofPhoto(
            content=event.content.read(),
            filename=event.name,
            content_type=event.type or "image/jpeg",
        )
        if await self.manager.upload_photo(order_id, PhotoType.PICKUP_CONFIRMATION, photo):
            self.render_orders.refresh()

    async def _update_map(self, order: DeliveryOrderDTO) -> None:
        current = self.location_tracker.current_location
        if current is not None:
            await self.map_component.set_marker("rider", current.lat, current.lng)
        target = order.restaurant if order.status in (
            DeliveryStatus.EN_ROUTE_PICKUP, DeliveryStatus.AT_RESTAURANT
        ) else order.customer
        if target is not None and target.location is not None:
            await self.map_component.set_marker("target", target.location.lat, target.location.lng, target.name)
        await self.map_component.fit_bounds()

        if current is None or target is None or target.location is None:
            return
        route = await fetch_directions(current, target.location, self.lang, mode="driving")
        if route and self.route_label is not None:
            self.route_label.set_text(self._t(
                "ROUTE_INFO", distance=route["distance_km"], minutes=route["duration_min"]
            ))

    # =========================================================================
    # ЗАВЕРШЕНИЕ ДОСТАВКИ
    # =========================================================================

    def _get_capture(self, order: DeliveryOrderDTO) -> DeliveryProofCapture:
        capture = self.proof_captures.get(order.id)
        if capture is None:
            capture = DeliveryProofCapture(
                order.id,
                order.delivery_type,
                self.photos_client,
                self.notifications,
                on_photo_uploaded=lambda url, oid=order.id: self.manager.attach_delivery_proof(oid, url),
            )
            self.proof_captures[order.id] = capture
        return capture

    def _open_complete_dialog(self, order_id: str) -> None:
        order = self.manager.get_order(order_id)
        if order is None:
            return
        capture = self._get_capture(order)
        video_id = f"camera_{uuid.uuid4().hex}"
        camera = BrowserCamera(video_id)

        with ui.dialog() as dialog, ui.card().classes('w-full max-w-md gap-3'):
            ui.label(f"#{order.display_number}").classes('text-lg font-bold')

            if capture.photo_required or not capture.skipped:
                ui.label(self._t("DELIVERY_PROOF_TITLE")).classes('font-medium')
                ui.element('video').props(f'id="{video_id}" autoplay playsinline muted').classes('w-full rounded bg-black')
                preview = ui.image().classes('w-full rounded')
                preview.set_visibility(False)

                async def open_camera() -> None:
                    await capture.start_camera(camera)

                async def take_photo() -> None:
                    photo = await capture.capture_photo()
                    if photo is not None:
                        preview.set_source(photo.preview_url)
                        preview.set_visibility(True)

                async def use_photo() -> None:
                    if await capture.confirm_upload():
                        preview.set_visibility(False)
                        update_complete_button()

                async def retake() -> None:
                    await capture.reset()
                    preview.set_visibility(False)

                def select_file(e: Any) -> None:
                    try:
                        photo = capture.select_file(e.content.read(), e.name, e.type)
                    except ValueError as error:
                        ui.notify(str(error), type='negative')
                        return
                    preview.set_source(photo.preview_url)
                    preview.set_visibility(True)

                with ui.row().classes('gap-2'):
                    ui.button(self._t("OPEN_CAMERA"), icon='photo_camera', on_click=open_camera)
                    ui.button(self._t("CAPTURE"), icon='camera', on_click=take_photo)
                    ui.button(self._t("RETAKE"), icon='replay', on_click=retake).props('flat')
                    ui.button(self._t("CONFIRM_UPLOAD"), icon='cloud_upload', on_click=use_photo)
                    if not capture.photo_required:
                        ui.button(self._t("SKIP"), on_click=capture.skip).props('flat')
                ui.upload(auto_upload=True, on_upload=select_file).props('accept="image/*"').classes('w-full')

            rating = ui.select(
                [1, 2, 3, 4, 5],
                value=settings.delivery.DEFAULT_CUSTOMER_RATING,
                label=self._t("CUSTOMER_RATING"),
            ).classes('w-full')
            notes = ui.textarea(self._t("DELIVERY_NOTES")).classes('w-full')
            cod = None
            if order.requires_cod:
                cod = ui.input(
                    self._t("COD_RECEIVED"),
                    value=f"{order.order_details.total_amount:.2f}",
                ).classes('w-full')

            async def complete() -> None:
                await capture.stop_camera()
                updated = await self.manager.complete_delivery(
                    order_id,
                    customer_rating=int(rating.value),
                    delivery_notes=notes.value,
                    cod_amount=cod.value if cod is not None else None,
                )
                if updated is not None:
                    self.proof_captures.pop(order_id, None)
                    await self.connection.unsubscribe({"orderId": order_id})
                    dialog.close()
                    self.render_orders.refresh()

            with ui.row().classes('w-full justify-end gap-2'):
                ui.button(self._t("CLOSE"), on_click=dialog.close).props('flat')
                complete_button = ui.button(
                    self._t("COMPLETE_DELIVERY"), icon='volunteer_activism', on_click=complete
                ).classes('bg-green-700')

            def update_complete_button() -> None:
                current = self.manager.get_order(order_id)
                complete_button.set_enabled(current is not None and self.manager.can_complete(current))

            update_complete_button()

        dialog.open()

    # =========================================================================
    # ЧАТ
    # =========================================================================

    async def _open_chat(self, order_id: str) -> None:
        key = QueryKeys.order_messages(order_id)

        async def load() -> list:
            return await self.chat_client.get_messages(order_id)

        self.cache.register(key, load)
        try:
            await self.cache.fetch(key)
            await self.chat_client.mark_read(order_id)
        except ApiError as e:
            self.notifications.error("LOAD_FAILED", description=e.message)

        with ui.dialog() as dialog, ui.card().classes('w-full max-w-md'):
            @ui.refreshable
            def messages() -> None:
                for message in self.cache.get(key, []):
                    own = message.sender_id == self.rider_id
                    ui.chat_message(
                        message.message,
                        name=message.sender_name or str(message.sender_role),
                        sent=own,
                        stamp=message.created_at.strftime('%H:%M'),
                    )

            with ui.scroll_area().classes('w-full h-80'):
                messages()

            unsubscribe = self.cache.subscribe(lambda k, _: messages.refresh() if k == key else None)
            text = ui.input(placeholder=self._t("TYPE_MESSAGE")).classes('w-full')

            async def send() -> None:
                try:
                    sent = await self.chat_client.send_message(order_id, text.value)
                except ValueError:
                    return
                except ApiError as e:
                    self.notifications.error("MESSAGE_FAILED", description=e.message)
                    return
                text.value = ""
                self.cache.set(key, lambda old: [*(old or []), sent] if all(m.id != sent.id for m in old or []) else old)

            with ui.row().classes('w-full justify-end gap-2'):
                ui.button(self._t("CLOSE"), on_click=dialog.close).props('flat')
                ui.button(self._t("SEND"), icon='send', on_click=send)

        dialog.on('hide', lambda: unsubscribe())
        dialog.open()

    async def shutdown(self) -> None:
        if self._unsubscribe_cache:
            self._unsubscribe_cache()
        await self.location_tracker.stop()
        await self.connection.stop()
        await self.orders_client.close()
        await self.photos_client.close()
        await self.chat_client.close()
