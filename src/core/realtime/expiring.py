# src/core/realtime/expiring.py
"""
Структуры с ограниченным временем жизни.

Время проверяется лениво при чтении, фоновых таймеров нет.
Часы передаются явно, что позволяет тестам управлять временем.
"""

from __future__ import annotations

import time
from typing import Callable, Hashable, Iterator


class ExpiringSet:
    """
    Множество, элементы которого исчезают через ttl секунд после добавления.

    Повторное добавление живого элемента не продлевает его срок.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl <= 0:
            raise ValueError("ttl должен быть положительным")
        self.ttl = ttl
        self._clock = clock
        self._inserted: dict[Hashable, float] = {}

    def _purge(self) -> None:
        now = self._clock()
        expired = [item for item, at in self._inserted.items() if now - at >= self.ttl]
        for item in expired:
            del self._inserted[item]

    def add(self, item: Hashable) -> None:
        self._purge()
        self._inserted.setdefault(item, self._clock())

    def discard(self, item: Hashable) -> None:
        self._inserted.pop(item, None)

    def expires_in(self, item: Hashable) -> float:
        """Сколько секунд осталось элементу (0, если его нет)."""
        self._purge()
        inserted = self._inserted.get(item)
        if inserted is None:
            return 0.0
        return self.ttl - (self._clock() - inserted)

    def members(self) -> list[Hashable]:
        self._purge()
        return list(self._inserted)

    def clear(self) -> None:
        self._inserted.clear()

    def __contains__(self, item: object) -> bool:
        self._purge()
        return item in self._inserted

    def __len__(self) -> int:
        self._purge()
        return len(self._inserted)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self.members())


class UnreadCounter:
    """
    Счётчик непрочитанных событий.

    Каждое событие добавляет ровно 1 и перезапускает окно неактивности.
    Через reset_after секунд после последнего события счётчик равен 0.
    """

    def __init__(self, reset_after: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.reset_after = reset_after
        self._clock = clock
        self._count = 0
        self._last_increment: float | None = None

    @property
    def value(self) -> int:
        if self._last_increment is not None and self._clock() - self._last_increment >= self.reset_after:
            self._count = 0
            self._last_increment = None
        return self._count

    def increment(self) -> int:
        self._count = self.value + 1
        self._last_increment = self._clock()
        return self._count

    def clear(self) -> None:
        self._count = 0
        self._last_increment = None

    def __int__(self) -> int:
        return self.value
