# src/core/notifications/service.py
"""
Сервис уведомлений.
Формирует локализованные toast-уведомления и передаёт их в UI.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Protocol

from src.common.constants import ToastVariant
from src.common.localization import get_text
from src.common.logger import get_logger


@dataclass(frozen=True)
class Toast:
    """Всплывающее уведомление."""
    title: str
    description: str = ""
    variant: ToastVariant = ToastVariant.DEFAULT
    duration: float | None = None

    @property
    def is_error(self) -> bool:
        return self.variant == ToastVariant.DESTRUCTIVE


class Toaster(Protocol):
    """Транспорт уведомлений (NiceGUI ui.notify, консоль, тесты)."""

    def show(self, toast: Toast) -> None: ...


class SoundPlayer(Protocol):
    """Проигрывает звуковой сигнал нового заказа."""

    def play(self) -> None: ...


class LogToaster:
    """Toaster без UI: пишет уведомления в лог (headless режим)."""

    def show(self, toast: Toast) -> None:
        level = logging.WARNING if toast.is_error else logging.INFO
        get_logger().log(level, f"{toast.title}: {toast.description}")


class NotificationService:
    """
    Сервис уведомлений.

    Текст берётся из lang_dict по ключу, отправка выполняется
    переданным Toaster. Последние уведомления хранятся в history.
    """

    HISTORY_SIZE = 50

    def __init__(self, toaster: Toaster | None = None, language: str = "en") -> None:
        """
        Args:
            toaster: Транспорт уведомлений (по умолчанию лог)
            language: Язык текстов
        """
        self._toaster = toaster or LogToaster()
        self.language = language
        self.history: deque[Toast] = deque(maxlen=self.HISTORY_SIZE)

    def notify(
        self,
        title_key: str,
        description_key: str | None = None,
        *,
        description: str | None = None,
        variant: ToastVariant = ToastVariant.DEFAULT,
        duration: float | None = None,
        **kwargs: Any,
    ) -> Toast:
        """
        Показывает уведомление.

        Args:
            title_key: Ключ заголовка
            description_key: Ключ текста (игнорируется, если передан description)
            description: Готовый текст (например, сообщение ошибки API)
            variant: Вариант отображения
            duration: Время показа в секундах
            **kwargs: Параметры форматирования текстов
        """
        if description is None and description_key:
            description = get_text(description_key, self.language, **kwargs)

        toast = Toast(
            title=get_text(title_key, self.language, **kwargs),
            description=description or "",
            variant=variant,
            duration=duration,
        )
        self.history.append(toast)
        self._toaster.show(toast)
        return toast

    def error(
        self,
        title_key: str,
        description_key: str | None = None,
        *,
        description: str | None = None,
        **kwargs: Any,
    ) -> Toast:
        """Уведомление об ошибке (destructive)."""
        return self.notify(
            title_key,
            description_key,
            description=description,
            variant=ToastVariant.DESTRUCTIVE,
            **kwargs,
        )

    @property
    def last(self) -> Toast | None:
        return self.history[-1] if self.history else None
