# src/shared/models/__init__.py
"""
Общие DTO и Pydantic-модели для обмена с backend API.
"""

from src.shared.models.enums import (
    DeliveryStatus,
    DeliveryType,
    PaymentMethod,
    PhotoType,
    SenderRole,
    WsMessageType,
    requires_photo_proof,
)
from src.shared.models.location_dto import LocationDTO
from src.shared.models.delivery_dto import (
    WireModel,
    CustomerInfo,
    RestaurantInfo,
    OrderItem,
    OrderDetails,
    DeliveryInfo,
    VerificationInfo,
    DeliveryOrderDTO,
    StatusUpdateRequest,
    CompleteDeliveryRequest,
)
from src.shared.models.chat_dto import ChatMessageDTO
from src.shared.models.backoffice_dto import (
    TaxExemptionDTO,
    TaxExemptionVerification,
    TaxReportDTO,
    DeliveryZoneDTO,
    PromotionDTO,
)

__all__ = [
    # Enums
    "DeliveryStatus",
    "DeliveryType",
    "PaymentMethod",
    "PhotoType",
    "SenderRole",
    "WsMessageType",
    "requires_photo_proof",
    # Delivery
    "LocationDTO",
    "WireModel",
    "CustomerInfo",
    "RestaurantInfo",
    "OrderItem",
    "OrderDetails",
    "DeliveryInfo",
    "VerificationInfo",
    "DeliveryOrderDTO",
    "StatusUpdateRequest",
    "CompleteDeliveryRequest",
    # Chat
    "ChatMessageDTO",
    # Back-office
    "TaxExemptionDTO",
    "TaxExemptionVerification",
    "TaxReportDTO",
    "DeliveryZoneDTO",
    "PromotionDTO",
]
