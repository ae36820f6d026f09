#!/usr/bin/env python3
# main.py
"""
Главная точка входа BTS Delivery Client.
Запускает веб-клиент курьера и ресторана или headless-ленту заказов.
"""

from __future__ import annotations

import asyncio
import os
import signal
import sys

from src.config import settings
from src.common.logger import setup_logging, log_info, log_error
from src.common.constants import TypeMsg

VALID_MODES = ("web_client", "notifier")


def setup_signal_handlers(stop_event: asyncio.Event) -> None:
    """Настраивает обработчики сигналов для graceful shutdown."""

    def signal_handler(sig: int) -> None:
        if not stop_event.is_set():
            print(f"\nПолучен сигнал остановки (sig={sig}), завершаем работу...")
            stop_event.set()

    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
    except NotImplementedError:
        # Windows не поддерживает add_signal_handler
        signal.signal(signal.SIGINT, lambda s, f: signal_handler(s))
        signal.signal(signal.SIGTERM, lambda s, f: signal_handler(s))


def run_web_client() -> None:
    """Запускает Web Client UI (NiceGUI управляет циклом событий сам)."""
    from src.web_client.app import run_web_client as start_web_client

    start_web_client(
        host=settings.deployment.WEB_CLIENT_HOST,
        port=settings.deployment.WEB_CLIENT_PORT,
    )


async def run_notifier(restaurant_id: str) -> None:
    """
    Headless режим: слушает ленту заказов ресторана и пишет
    уведомления в лог. Перезапрос списка заказов выполняется через кэш.
    """
    from src.common.constants import QueryKeys
    from src.core.notifications.service import NotificationService
    from src.core.realtime.notifier import RealtimeNotifier, vendor_feed_url
    from src.infra.api_clients import OrdersClient
    from src.infra.query_cache import QueryCache

    stop_event = asyncio.Event()
    setup_signal_handlers(stop_event)

    cache = QueryCache()
    orders_client = OrdersClient()
    cache.register(QueryKeys.VENDOR_ORDERS, orders_client.get_vendor_orders)

    notifier = RealtimeNotifier(cache, NotificationService(language=settings.domain.DEFAULT_LANGUAGE))
    connection = notifier.create_connection(vendor_feed_url(restaurant_id))

    await log_info(f"Лента заказов ресторана {restaurant_id}", type_msg=TypeMsg.INFO)
    connection.start()
    try:
        await stop_event.wait()
    finally:
        await connection.stop()
        await orders_client.close()
        await log_info("Лента заказов остановлена", type_msg=TypeMsg.INFO)


def print_usage() -> None:
    """Выводит справку по использованию."""
    print(f"""
BTS Delivery Client v{settings.system.VERSION}

Использование:
    python main.py [mode] [restaurant_id]

Режимы:
    web_client             - Web UI курьера (/rider) и ресторана (/vendor/orders)
    notifier               - Headless лента заказов ресторана (уведомления в лог)

Примеры:
    python main.py                       # Режим из COMPONENT_MODE
    python main.py web_client
    python main.py notifier rest-42      # или VENDOR_RESTAURANT_ID=rest-42
    """)


def main(mode: str | None = None, restaurant_id: str | None = None) -> None:
    setup_logging()

    mode = mode or settings.system.COMPONENT_MODE
    if mode not in VALID_MODES:
        print_usage()
        sys.exit(1)

    if mode == "web_client":
        run_web_client()
        return

    restaurant_id = restaurant_id or os.getenv("VENDOR_RESTAURANT_ID")
    if not restaurant_id:
        asyncio.run(log_error("Не задан restaurant_id для режима notifier"))
        sys.exit(1)

    try:
        asyncio.run(run_notifier(restaurant_id))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    args = [arg.lower() for arg in sys.argv[1:2]]
    if args and args[0] in ("--help", "-h"):
        print_usage()
        sys.exit(0)

    main(
        mode=args[0] if args else None,
        restaurant_id=sys.argv[2] if len(sys.argv) > 2 else None,
    )
