# src/core/delivery/__init__.py
"""
Домен доставки.
Модель статусов, процесс курьера и фото-подтверждение.
"""

from src.core.delivery.status import (
    NextAction,
    STATUS_ORDER,
    can_transition,
    get_delivery_progress,
    get_next_action,
    get_status_text,
    is_terminal,
    parse_status,
)
from src.core.delivery.proof import CameraSource, DeliveryProofCapture, ProofPhoto
from src.core.delivery.workflow import DeliveryCard, DeliveryWorkflowManager

__all__ = [
    "NextAction",
    "STATUS_ORDER",
    "can_transition",
    "get_delivery_progress",
    "get_next_action",
    "get_status_text",
    "is_terminal",
    "parse_status",
    "CameraSource",
    "DeliveryProofCapture",
    "ProofPhoto",
    "DeliveryCard",
    "DeliveryWorkflowManager",
]
