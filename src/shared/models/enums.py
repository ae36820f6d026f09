from enum import Enum


class DeliveryStatus(str, Enum):
    """Статусы доставки в порядке прохождения."""
    ASSIGNED = "assigned"
    EN_ROUTE_PICKUP = "en_route_pickup"
    AT_RESTAURANT = "at_restaurant"
    PICKED_UP = "picked_up"
    EN_ROUTE_DELIVERY = "en_route_delivery"
    AT_CUSTOMER = "at_customer"
    DELIVERED = "delivered"
    COMPLETED = "completed"

    def __str__(self) -> str:
        return self.value


class DeliveryType(str, Enum):
    """Способ передачи заказа клиенту."""
    STANDARD = "standard"
    LEAVE_AT_DOOR = "leave_at_door"
    MEET_OUTSIDE = "meet_outside"

    def __str__(self) -> str:
        return self.value


class PaymentMethod(str, Enum):
    """Способы оплаты."""
    CASH = "cash"
    GCASH = "gcash"
    CARD = "card"

    def __str__(self) -> str:
        return self.value


class PhotoType(str, Enum):
    """Типы фотографий, загружаемых курьером."""
    PICKUP_CONFIRMATION = "pickup_confirmation"
    DELIVERY_PROOF = "delivery_proof"
    COD_RECEIPT = "cod_receipt"

    def __str__(self) -> str:
        return self.value


class SenderRole(str, Enum):
    """Роль автора сообщения в чате заказа."""
    CUSTOMER = "customer"
    RIDER = "rider"

    def __str__(self) -> str:
        return self.value


class WsMessageType:
    """Типы сообщений WebSocket протокола."""
    # Клиент -> сервер
    AUTH = "auth"
    SUBSCRIBE = "subscribe"
    UNSUBSCRIBE = "unsubscribe"
    RIDER_LOCATION = "rider_location"
    PING = "ping"

    # Сервер -> клиент
    CHAT_MESSAGE = "chat_message"
    MESSAGES_READ = "messages_read"
    NEW_ORDER = "NEW_ORDER"
    ORDER_UPDATE = "ORDER_UPDATE"
    PONG = "pong"
    ERROR = "error"


# Типы доставки, для которых фото-подтверждение обязательно
PHOTO_PROOF_DELIVERY_TYPES = frozenset({DeliveryType.LEAVE_AT_DOOR})


def requires_photo_proof(delivery_type: DeliveryType | str | None) -> bool:
    """Требует ли тип доставки фото-подтверждения перед завершением."""
    if delivery_type is None:
        return False
    try:
        return DeliveryType(delivery_type) in PHOTO_PROOF_DELIVERY_TYPES
    except ValueError:
        return False
