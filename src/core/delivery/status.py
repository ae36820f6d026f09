# src/core/delivery/status.py
"""
Модель статусов доставки.

Таблицы отображения: текст статуса, процент прогресса и единственное
допустимое следующее действие курьера. Источник истины: backend,
здесь только зеркало для UI.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.shared.models.enums import DeliveryStatus


@dataclass(frozen=True)
class NextAction:
    """Следующее действие курьера для текущего статуса."""
    label: str
    next_status: DeliveryStatus
    icon: str
    color: str
    requires_photo: bool = False
    requires_verification: bool = False


STATUS_ORDER: tuple[DeliveryStatus, ...] = (
    DeliveryStatus.ASSIGNED,
    DeliveryStatus.EN_ROUTE_PICKUP,
    DeliveryStatus.AT_RESTAURANT,
    DeliveryStatus.PICKED_UP,
    DeliveryStatus.EN_ROUTE_DELIVERY,
    DeliveryStatus.AT_CUSTOMER,
    DeliveryStatus.DELIVERED,
    DeliveryStatus.COMPLETED,
)

STATUS_TEXT: dict[DeliveryStatus, str] = {
    DeliveryStatus.ASSIGNED: "Order Assigned",
    DeliveryStatus.EN_ROUTE_PICKUP: "Going to Restaurant",
    DeliveryStatus.AT_RESTAURANT: "At Restaurant",
    DeliveryStatus.PICKED_UP: "Order Picked Up",
    DeliveryStatus.EN_ROUTE_DELIVERY: "Going to Customer",
    DeliveryStatus.AT_CUSTOMER: "At Customer Location",
    DeliveryStatus.DELIVERED: "Order Delivered",
    DeliveryStatus.COMPLETED: "Delivery Completed",
}

STATUS_PROGRESS: dict[DeliveryStatus, int] = {
    DeliveryStatus.ASSIGNED: 10,
    DeliveryStatus.EN_ROUTE_PICKUP: 20,
    DeliveryStatus.AT_RESTAURANT: 35,
    DeliveryStatus.PICKED_UP: 50,
    DeliveryStatus.EN_ROUTE_DELIVERY: 70,
    DeliveryStatus.AT_CUSTOMER: 85,
    DeliveryStatus.DELIVERED: 95,
    DeliveryStatus.COMPLETED: 100,
}

# Имена Material Icons (используются NiceGUI)
NEXT_ACTIONS: dict[DeliveryStatus, NextAction] = {
    DeliveryStatus.ASSIGNED: NextAction(
        label="Start Navigation",
        next_status=DeliveryStatus.EN_ROUTE_PICKUP,
        icon="navigation",
        color="blue-600",
    ),
    DeliveryStatus.EN_ROUTE_PICKUP: NextAction(
        label="Arrived at Restaurant",
        next_status=DeliveryStatus.AT_RESTAURANT,
        icon="storefront",
        color="orange-600",
    ),
    DeliveryStatus.AT_RESTAURANT: NextAction(
        label="Confirm Pickup",
        next_status=DeliveryStatus.PICKED_UP,
        icon="check_circle",
        color="green-600",
        requires_photo=True,
    ),
    DeliveryStatus.PICKED_UP: NextAction(
        label="Start Delivery",
        next_status=DeliveryStatus.EN_ROUTE_DELIVERY,
        icon="two_wheeler",
        color="purple-600",
    ),
    DeliveryStatus.EN_ROUTE_DELIVERY: NextAction(
        label="Arrived at Customer",
        next_status=DeliveryStatus.AT_CUSTOMER,
        icon="place",
        color="indigo-600",
    ),
    DeliveryStatus.AT_CUSTOMER: NextAction(
        label="Complete Delivery",
        next_status=DeliveryStatus.DELIVERED,
        icon="volunteer_activism",
        color="green-700",
        requires_verification=True,
    ),
}

# delivered -> completed выполняет backend после расчёта с курьером
_SERVER_FINALISATION = {DeliveryStatus.DELIVERED: DeliveryStatus.COMPLETED}


def parse_status(value: DeliveryStatus | str | None) -> DeliveryStatus | None:
    """Приводит строку к DeliveryStatus; неизвестное значение -> None."""
    if value is None:
        return None
    try:
        return DeliveryStatus(value)
    except ValueError:
        return None


def get_status_text(status: DeliveryStatus | str) -> str:
    """Текст статуса; неизвестный статус возвращается как есть."""
    parsed = parse_status(status)
    if parsed is None:
        return str(status)
    return STATUS_TEXT[parsed]


def get_delivery_progress(status: DeliveryStatus | str) -> int:
    """Процент прогресса доставки (0 для неизвестного статуса)."""
    parsed = parse_status(status)
    if parsed is None:
        return 0
    return STATUS_PROGRESS[parsed]


def get_next_action(status: DeliveryStatus | str) -> NextAction | None:
    """Единственное допустимое действие; None для финальных и неизвестных статусов."""
    parsed = parse_status(status)
    if parsed is None:
        return None
    return NEXT_ACTIONS.get(parsed)


def is_terminal(status: DeliveryStatus | str) -> bool:
    parsed = parse_status(status)
    return parsed in (DeliveryStatus.DELIVERED, DeliveryStatus.COMPLETED)


def can_transition(current_status: DeliveryStatus | str, new_status: DeliveryStatus | str) -> bool:
    """Разрешён ли переход: только один шаг вперёд по таблице."""
    curr = parse_status(current_status)
    new = parse_status(new_status)
    if curr is None or new is None:
        return False

    action = NEXT_ACTIONS.get(curr)
    if action is not None:
        return action.next_status == new
    return _SERVER_FINALISATION.get(curr) == new
