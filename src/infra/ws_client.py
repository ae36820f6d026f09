# src/infra/ws_client.py
"""
Постоянное WebSocket соединение с backend.

После подключения отправляет кадр авторизации и подписки,
при любом разрыве ждёт фиксированную паузу и переподключается.
Число попыток не ограничено.
"""

from __future__ import annotations

import asyncio
import inspect
import json
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

import websockets

from src.config import settings
from src.common.constants import TypeMsg
from src.common.logger import log_error, log_info, log_warning
from src.shared.models.enums import WsMessageType

MessageHandler = Callable[[Union[str, bytes]], Union[Awaitable[None], None]]


class RealtimeConnection:
    """
    Клиент WebSocket с автоматическим переподключением.

    Подписки хранятся в соединении и повторно отправляются
    после каждого переподключения.
    """

    def __init__(
        self,
        url: str,
        on_message: MessageHandler,
        auth_token: Optional[str] = None,
        subscriptions: Iterable[dict[str, Any]] = (),
        reconnect_delay: Optional[float] = None,
        connect: Callable[..., Any] = websockets.connect,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            url: Адрес WebSocket (ws://host/ws/...)
            on_message: Обработчик входящих кадров
            auth_token: Токен для кадра auth (без токена кадр не отправляется)
            subscriptions: Поля кадров subscribe, например {"orderId": "..."}
            reconnect_delay: Пауза перед переподключением, секунды
        """
        self.url = url
        self.on_message = on_message
        self.auth_token = auth_token
        self.subscriptions: list[dict[str, Any]] = [dict(s) for s in subscriptions]
        self.reconnect_delay = (
            reconnect_delay if reconnect_delay is not None
            else settings.realtime.RECONNECT_DELAY
        )
        self.reconnect_attempts = 0

        self._connect = connect
        self._sleep = sleep
        self._ws = None
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_connected(self) -> bool:
        return self._ws is not None

    # =========================================================================
    # ЖИЗНЕННЫЙ ЦИКЛ
    # =========================================================================

    def start(self) -> asyncio.Task:
        """Запускает цикл соединения фоновой задачей."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name=f"ws:{self.url}")
        return self._task

    async def stop(self) -> None:
        """Отписывается, закрывает соединение и останавливает цикл."""
        self._running = False

        if self._ws is not None:
            for subscription in self.subscriptions:
                await self._send_frame(WsMessageType.UNSUBSCRIBE, subscription)

        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def run(self) -> None:
        """Цикл: подключение, чтение кадров, пауза, переподключение."""
        self._running = True
        while self._running:
            try:
                async with self._connect(self.url) as websocket:
                    self._ws = websocket
                    await log_info(f"Подключено к WS: {self.url}", type_msg=TypeMsg.INFO, logger_name="ws")
                    await self._on_open()

                    async for raw in websocket:
                        await self._dispatch(raw)

                await log_warning(f"WS соединение закрыто: {self.url}", logger_name="ws")
            except asyncio.CancelledError:
                break
            except Exception as e:
                await log_error(f"Ошибка WS {self.url}: {e}", logger_name="ws")
            finally:
                self._ws = None

            if not self._running:
                break

            self.reconnect_attempts += 1
            await log_info(
                f"Переподключение к {self.url} через {self.reconnect_delay} с "
                f"(попытка {self.reconnect_attempts})",
                type_msg=TypeMsg.DEBUG,
                logger_name="ws",
            )
            await self._sleep(self.reconnect_delay)

    async def _on_open(self) -> None:
        if self.auth_token:
            await self._send_frame(WsMessageType.AUTH, {"token": self.auth_token})
        for subscription in self.subscriptions:
            await self._send_frame(WsMessageType.SUBSCRIBE, subscription)

    async def _dispatch(self, raw: Union[str, bytes]) -> None:
        try:
            result = self.on_message(raw)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            await log_error(f"Ошибка обработки WS сообщения: {e}", logger_name="ws", exc_info=True)

    # =========================================================================
    # ОТПРАВКА
    # =========================================================================

    async def subscribe(self, subscription: dict[str, Any]) -> None:
        if subscription in self.subscriptions:
            return
        self.subscriptions.append(dict(subscription))
        if self.is_connected:
            await self._send_frame(WsMessageType.SUBSCRIBE, subscription)

    async def unsubscribe(self, subscription: dict[str, Any]) -> None:
        if subscription not in self.subscriptions:
            return
        self.subscriptions.remove(subscription)
        if self.is_connected:
            await self._send_frame(WsMessageType.UNSUBSCRIBE, subscription)

    async def send(self, payload: dict[str, Any]) -> bool:
        """Отправляет кадр. Без соединения кадр отбрасывается (False)."""
        if self._ws is None:
            await log_info(
                f"WS не подключён, кадр {payload.get('type')} отброшен",
                type_msg=TypeMsg.DEBUG,
                logger_name="ws",
            )
            return False
        try:
            await self._ws.send(json.dumps(payload, default=str))
        except Exception as e:
            await log_error(f"Ошибка отправки WS кадра: {e}", logger_name="ws")
            return False
        return True

    async def _send_frame(self, frame_type: str, fields: dict[str, Any]) -> bool:
        return await self.send({"type": frame_type, **fields})
