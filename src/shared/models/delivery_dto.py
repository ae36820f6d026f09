from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.shared.models.enums import DeliveryType, PaymentMethod, requires_photo_proof
from src.shared.models.location_dto import LocationDTO


class WireModel(BaseModel):
    """Базовая модель: camelCase в JSON backend, snake_case в Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CustomerInfo(WireModel):
    id: str
    name: str
    phone: str = ""
    address: str = ""
    delivery_instructions: Optional[str] = None
    location: Optional[LocationDTO] = None
    profile_image_url: Optional[str] = None


class RestaurantInfo(WireModel):
    id: str
    name: str
    phone: str = ""
    address: str = ""
    location: Optional[LocationDTO] = None
    image_url: Optional[str] = None
    pickup_instructions: Optional[str] = None


class OrderItem(WireModel):
    name: str
    quantity: int = 1
    price: float = 0.0
    special_instructions: Optional[str] = None


class OrderDetails(WireModel):
    items: List[OrderItem] = Field(default_factory=list)
    total_amount: float = 0.0
    payment_method: PaymentMethod = PaymentMethod.CASH
    is_paid: bool = False
    special_instructions: Optional[str] = None


class DeliveryInfo(WireModel):
    estimated_pickup_time: Optional[datetime] = None
    actual_pickup_time: Optional[datetime] = None
    estimated_delivery_time: Optional[datetime] = None
    actual_delivery_time: Optional[datetime] = None
    distance: float = 0.0
    estimated_duration: int = 0
    delivery_fee: float = 0.0
    tips: Optional[float] = None


class VerificationInfo(WireModel):
    pickup_photos: List[str] = Field(default_factory=list)
    delivery_photos: List[str] = Field(default_factory=list)
    customer_signature: Optional[str] = None
    cod_received: Optional[float] = None
    cod_photo_url: Optional[str] = None
    customer_rating: Optional[int] = None
    delivery_notes: Optional[str] = None


class DeliveryOrderDTO(WireModel):
    """
    Активный заказ курьера.

    status хранится строкой: неизвестные backend статусы отображаются как есть.
    """
    id: str
    order_number: str = ""
    status: str

    delivery_type: DeliveryType = DeliveryType.STANDARD
    contactless_instructions: Optional[str] = None
    delivery_proof_photo: Optional[str] = None

    customer: Optional[CustomerInfo] = None
    restaurant: Optional[RestaurantInfo] = None
    order_details: OrderDetails = Field(default_factory=OrderDetails)
    delivery: DeliveryInfo = Field(default_factory=DeliveryInfo)
    verification: VerificationInfo = Field(default_factory=VerificationInfo)

    @property
    def display_number(self) -> str:
        return self.order_number or self.id[-8:]

    @property
    def has_pickup_photo(self) -> bool:
        return bool(self.verification.pickup_photos)

    @property
    def requires_cod(self) -> bool:
        """Наличные, которые курьер должен получить у клиента."""
        return (
            self.order_details.payment_method == PaymentMethod.CASH
            and not self.order_details.is_paid
        )

    @property
    def requires_photo_proof(self) -> bool:
        return requires_photo_proof(self.delivery_type)


class StatusUpdateRequest(WireModel):
    status: str
    rider_id: str
    location: Optional[LocationDTO] = None
    timestamp: datetime


class CompleteDeliveryRequest(WireModel):
    order_id: str
    rider_id: str
    customer_rating: int = Field(ge=1, le=5)
    delivery_notes: Optional[str] = None
    cod_received: Optional[float] = None
    customer_signature: Optional[str] = None
    completed_at: datetime
    location: Optional[LocationDTO] = None
