# src/infra/query_cache.py
"""
Кэш запросов клиента.

Хранит ответы backend по ключам-кортежам (путь API + параметры),
инвалидирует их по префиксу и перезапрашивает данные у
зарегистрированных загрузчиков. Последняя запись побеждает.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from src.common.logger import get_logger, log_error, log_info
from src.common.constants import TypeMsg

logger = get_logger("query_cache")

QueryKey = tuple[Any, ...]
Fetcher = Callable[[], Awaitable[Any]]
Listener = Callable[[QueryKey, Any], None]


@dataclass
class CacheEntry:
    """Запись кэша."""
    data: Any = None
    updated_at: float | None = None
    stale: bool = True


def _matches(key: QueryKey, prefix: QueryKey) -> bool:
    return key[: len(prefix)] == prefix


class QueryCache:
    """
    Кэш запросов.

    Поддерживает:
    - get/set по ключу (set принимает значение или функцию-обновление)
    - Регистрацию загрузчиков для автоматического перезапроса
    - Инвалидацию по префиксу ключа
    - Подписку на изменения (для перерисовки UI)
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[QueryKey, CacheEntry] = {}
        self._fetchers: dict[QueryKey, Fetcher] = {}
        self._listeners: list[Listener] = []

    # =========================================================================
    # ДАННЫЕ
    # =========================================================================

    def get(self, key: QueryKey, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None or entry.updated_at is None:
            return default
        return entry.data

    def set(self, key: QueryKey, value: Any) -> Any:
        """
        Записывает данные в кэш.

        Если value является функцией, она получает текущее значение (или None)
        и возвращает новое.
        """
        if callable(value):
            value = value(self.get(key))

        entry = self._entries.setdefault(key, CacheEntry())
        entry.data = value
        entry.updated_at = self._clock()
        entry.stale = False

        self._emit(key, value)
        return value

    def remove(self, key: QueryKey) -> None:
        self._entries.pop(key, None)

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        return entry is None or entry.stale

    def keys(self) -> list[QueryKey]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    # =========================================================================
    # ЗАГРУЗЧИКИ
    # =========================================================================

    def register(self, key: QueryKey, fetcher: Fetcher) -> None:
        """Регистрирует загрузчик данных для ключа."""
        self._fetchers[key] = fetcher

    def unregister(self, key: QueryKey) -> None:
        self._fetchers.pop(key, None)

    async def fetch(self, key: QueryKey) -> Any:
        """
        Загружает данные через зарегистрированный загрузчик.

        Raises:
            KeyError: Загрузчик не зарегистрирован
        """
        fetcher = self._fetchers.get(key)
        if fetcher is None:
            raise KeyError(f"Загрузчик для {key} не зарегистрирован")

        data = await fetcher()
        return self.set(key, data)

    async def invalidate(self, prefix: QueryKey) -> list[QueryKey]:
        """
        Помечает устаревшими все ключи с данным префиксом
        и перезапрашивает те, у которых есть загрузчик.

        Ошибки загрузки логируются и не пробрасываются.

        Returns:
            Список инвалидированных ключей
        """
        matched = {key for key in self._entries if _matches(key, prefix)}
        matched.update(key for key in self._fetchers if _matches(key, prefix))

        for key in matched:
            self._entries.setdefault(key, CacheEntry()).stale = True

        for key in matched:
            if key not in self._fetchers:
                continue
            try:
                await self.fetch(key)
            except Exception as e:
                await log_error(
                    f"Ошибка перезапроса {key}: {e}",
                    logger_name="query_cache",
                )

        if matched:
            await log_info(
                f"Инвалидировано ключей: {len(matched)} (префикс {prefix})",
                type_msg=TypeMsg.DEBUG,
                logger_name="query_cache",
            )
        return sorted(matched, key=repr)

    # =========================================================================
    # ПОДПИСКИ
    # =========================================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Подписывает слушателя на изменения. Возвращает функцию отписки."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, key: QueryKey, value: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(key, value)
            except Exception:
                logger.exception(f"Ошибка слушателя кэша для {key}")
