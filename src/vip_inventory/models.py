from __future__ import annotations

import re
import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

_SLUG_SEPARATOR_RE = re.compile(r"[^a-z0-9]+")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Las fechas sin zona horaria (JSON importado a mano) se toman como UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def slugify_listing(brand: str, model: str, year: Optional[int] = None) -> str:
    """Genera el slug sugerido a partir de marca, modelo y año"""
    raw = f"{brand}-{model}" if year is None else f"{brand}-{model}-{year}"
    return _SLUG_SEPARATOR_RE.sub("-", raw.lower()).strip("-")


class ListingStatus(str, Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    SOLD = "sold"
    COMING_SOON = "coming_soon"


class PriceType(str, Enum):
    FIXED = "fixed"
    NEGOTIABLE = "negotiable"
    UPON_REQUEST = "upon_request"


class Condition(str, Enum):
    NEW = "new"
    USED = "used"
    CERTIFIED_PRE_OWNED = "certified_pre_owned"


class DriveType(str, Enum):
    FWD = "fwd"
    RWD = "rwd"
    AWD = "awd"
    FOUR_WD = "4wd"


class VehicleListing(BaseModel):
    id: str = Field(default_factory=_new_id)
    slug: str = Field(..., min_length=1, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    title: Optional[str] = None
    brand: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    variant: Optional[str] = None
    year: int = Field(..., ge=1900, le=2100)
    price: float = Field(..., ge=0, description="Precio en la moneda del anuncio")
    original_price: Optional[float] = Field(None, ge=0, description="Precio anterior si se ha rebajado")
    currency: str = Field("CHF", min_length=3, max_length=3)
    price_type: PriceType = PriceType.FIXED
    mileage: Optional[int] = Field(None, ge=0, description="Kilometraje en km")
    body_type: Optional[str] = None
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    drive_type: Optional[DriveType] = None
    exterior_color: Optional[str] = None
    interior_color: Optional[str] = None
    engine_cc: Optional[int] = Field(None, ge=0)
    power_hp: Optional[int] = Field(None, ge=0)
    doors: Optional[int] = Field(None, ge=1, le=6)
    first_registration: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}$", description="YYYY-MM")
    last_inspection: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}$", description="Última MFK, YYYY-MM")
    status: ListingStatus = ListingStatus.AVAILABLE
    condition: Condition = Condition.USED
    images: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: Optional[datetime] = None

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()

    @field_validator("created_at", "updated_at")
    @classmethod
    def _naive_is_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    @property
    def display_title(self) -> str:
        if self.title:
            return self.title
        parts = [self.brand, self.model, self.variant]
        return " ".join(p for p in parts if p)

    @property
    def is_price_reduced(self) -> bool:
        return self.original_price is not None and self.original_price > self.price


class QRCode(BaseModel):
    id: str = Field(default_factory=_new_id)
    label: str = Field(..., min_length=1, description="Ej: 'Summer Sale Flyer'")
    target_url: str = Field(..., min_length=1, description="Destino, ej: /cars/aston-martin-dbx-2023")
    scan_count: int = Field(0, ge=0)
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("created_at")
    @classmethod
    def _naive_is_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class InquiryType(str, Enum):
    GENERAL = "general"
    TEST_DRIVE = "test_drive"
    FINANCING = "financing"
    TRADE_IN = "trade_in"


class LeadStatus(str, Enum):
    NEW = "new"
    REVIEWED = "reviewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# Estados a los que puede pasar un lead; aceptado y rechazado son finales
LEAD_TRANSITIONS = {
    LeadStatus.NEW: {LeadStatus.REVIEWED, LeadStatus.ACCEPTED, LeadStatus.REJECTED},
    LeadStatus.REVIEWED: {LeadStatus.ACCEPTED, LeadStatus.REJECTED},
    LeadStatus.ACCEPTED: set(),
    LeadStatus.REJECTED: set(),
}


class Inquiry(BaseModel):
    """Consulta enviada desde la ficha de un coche (info, prueba, financiación o tasación)"""

    id: str = Field(default_factory=_new_id)
    car_id: Optional[str] = None
    inquiry_type: InquiryType = InquiryType.GENERAL
    customer_name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
    phone: Optional[str] = None
    message: Optional[str] = None
    preferred_date: Optional[date] = None
    preferred_time: Optional[str] = None

    # Financiación
    monthly_budget: Optional[float] = Field(None, ge=0)
    down_payment: Optional[float] = Field(None, ge=0)

    # Vehículo entregado a cuenta
    trade_in_brand: Optional[str] = None
    trade_in_model: Optional[str] = None
    trade_in_year: Optional[int] = Field(None, ge=1900, le=2100)
    trade_in_mileage: Optional[int] = Field(None, ge=0)

    status: LeadStatus = LeadStatus.NEW
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("customer_name", "email", "phone", "message", "preferred_time", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("created_at")
    @classmethod
    def _naive_is_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @model_validator(mode="after")
    def _test_drive_needs_contact(self) -> "Inquiry":
        if self.inquiry_type is InquiryType.TEST_DRIVE:
            if not self.phone:
                raise ValueError("Phone is required for test drive")
            if self.preferred_date is None:
                raise ValueError("Please select a date")
        return self


class PurchaseRequest(BaseModel):
    """Solicitud de compra de un coche de un particular (Autoankauf)"""

    id: str = Field(default_factory=_new_id)
    owner_firstname: str = Field(..., min_length=1)
    owner_lastname: str = Field(..., min_length=1)
    brand: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    expected_price: float = Field(0, ge=0)
    status: LeadStatus = LeadStatus.NEW
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("created_at")
    @classmethod
    def _naive_is_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


__all__ = [
    "ListingStatus",
    "PriceType",
    "Condition",
    "DriveType",
    "VehicleListing",
    "QRCode",
    "InquiryType",
    "LeadStatus",
    "LEAD_TRANSITIONS",
    "Inquiry",
    "PurchaseRequest",
    "slugify_listing",
]
