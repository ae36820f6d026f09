from datetime import datetime
from typing import Optional

from src.shared.models.delivery_dto import WireModel
from src.shared.models.enums import SenderRole


class ChatMessageDTO(WireModel):
    id: str
    order_id: str
    sender_id: str
    sender_role: SenderRole
    sender_name: str = ""
    message: str
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: datetime
