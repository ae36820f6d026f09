"""
DTO экранов back-office: налоги, зоны доставки, промо-акции.
"""

from datetime import date, datetime
from typing import Optional, List

from pydantic import Field

from src.shared.models.delivery_dto import WireModel
from src.shared.models.location_dto import LocationDTO


class TaxExemptionDTO(WireModel):
    id: Optional[str] = None
    exemption_type: str  # senior, pwd, diplomatic, ...
    id_number: str
    full_name: str
    document_url: Optional[str] = None
    status: str = "pending"
    verified_at: Optional[datetime] = None
    expires_at: Optional[date] = None


class TaxExemptionVerification(WireModel):
    is_valid: bool
    status: str
    message: Optional[str] = None


class TaxReportDTO(WireModel):
    id: str
    period_start: date
    period_end: date
    gross_sales: float = 0.0
    vat_amount: float = 0.0
    exempt_sales: float = 0.0
    status: str = "draft"
    generated_at: Optional[datetime] = None


class DeliveryZoneDTO(WireModel):
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    polygon: List[LocationDTO] = Field(default_factory=list)
    base_fee: float = 0.0
    per_km_fee: float = 0.0
    min_order_amount: float = 0.0
    is_active: bool = True


class PromotionDTO(WireModel):
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    promo_code: Optional[str] = None
    discount_type: str = "percentage"  # percentage | fixed
    discount_value: float = Field(ge=0)
    min_order_amount: float = 0.0
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    is_active: bool = True
