import os

# Настройка пути хранения локальных данных NiceGUI (чтобы не создавать папку .nicegui в корне)
os.environ.setdefault('NICEGUI_STORAGE_PATH', '/tmp/bts_delivery_nicegui_client')

from typing import Optional

from nicegui import app, ui

from src.config import settings
from src.common.constants import TypeMsg
from src.common.logger import log_info
from src.web_client.components.header import create_client_header
from src.web_client.pages.rider import RiderPage
from src.web_client.pages.vendor_orders import VendorOrdersPage
from src.web_client.services.gmaps_service import close_gmaps_session

# Идентификаторы для разработки без backend авторизации
_DEV_RIDER_ID = "dev-rider"
_DEV_RESTAURANT_ID = "dev-restaurant"


def _resolve_identity(key: str, query_value: Optional[str], dev_value: str) -> Optional[str]:
    """Берёт id из параметра запроса или сессии пользователя."""
    if query_value:
        app.storage.user[key] = query_value
    value = app.storage.user.get(key)
    if not value and settings.system.DEBUG:
        value = dev_value
    return value


def _get_session_info() -> tuple[str, Optional[str]]:
    return (
        app.storage.user.get('language', settings.domain.DEFAULT_LANGUAGE),
        app.storage.user.get('token') or settings.api.API_AUTH_TOKEN or None,
    )


def create_app() -> None:

    @ui.page('/rider')
    async def rider(rider_id: Optional[str] = None):
        rider_id = _resolve_identity('rider_id', rider_id, _DEV_RIDER_ID)
        if not rider_id:
            ui.label("Rider is not signed in").classes('text-gray-500 p-8')
            return

        lang, token = _get_session_info()
        create_client_header("Rider")
        page = RiderPage(rider_id, lang, auth_token=token)
        ui.context.client.on_disconnect(page.shutdown)
        await page.mount()

    @ui.page('/vendor/orders')
    async def vendor_orders(restaurant_id: Optional[str] = None):
        restaurant_id = _resolve_identity('restaurant_id', restaurant_id, _DEV_RESTAURANT_ID)
        if not restaurant_id:
            ui.label("Restaurant is not signed in").classes('text-gray-500 p-8')
            return

        lang, token = _get_session_info()
        create_client_header("Orders")
        page = VendorOrdersPage(restaurant_id, lang, auth_token=token)
        ui.context.client.on_disconnect(page.shutdown)
        await page.mount()

    @ui.page('/')
    def index():
        ui.navigate.to('/rider')

    @app.on_startup
    async def startup() -> None:
        await log_info("Web Client started", type_msg=TypeMsg.INFO)

    @app.on_shutdown
    async def shutdown() -> None:
        await close_gmaps_session()


def run_web_client(host: str = "0.0.0.0", port: int = 8082, reload: bool = False) -> None:
    create_app()
    ui.run(
        host=host,
        port=port,
        reload=reload,
        title="BTS Delivery",
        storage_secret=settings.deployment.STORAGE_SECRET,
    )
