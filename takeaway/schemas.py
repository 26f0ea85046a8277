"""
Pydantic Schemas for Request/Response Validation

Money is always integer pence, times are ``HH:MM`` and dates ``YYYY-MM-DD``.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Any
from datetime import date, datetime
from enum import Enum
import re


# =============================================================================
# ENUMS
# =============================================================================

class FulfillmentModeEnum(str, Enum):
    DELIVERY = "delivery"
    COLLECTION = "collection"


class RuleTypeEnum(str, Enum):
    POSTCODE = "postcode"
    DISTANCE = "distance"


# =============================================================================
# MENU
# =============================================================================

class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    display_order: int = 0


class MenuItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    category_id: Optional[str] = None
    name: str
    description: Optional[str] = ""
    price_pence: int
    image_url: Optional[str] = None


class MenuResponse(BaseModel):
    categories: List[CategoryResponse]
    items: List[MenuItemResponse]


# =============================================================================
# CART
# =============================================================================

class ModifierChoice(BaseModel):
    """A chosen menu option; its delta is added to the item price."""
    name: str = Field(default="", max_length=100, examples=["Extra chicken"])
    price_delta_pence: int = Field(default=0, ge=0, le=10000, examples=[150])


class CartAddRequest(BaseModel):
    item_id: str = Field(..., min_length=1, examples=["chicken-chow-mein"])
    qty: int = Field(default=1, ge=1, le=99, examples=[2])
    modifiers: List[ModifierChoice] = Field(default_factory=list)


class CartItemResponse(BaseModel):
    item_id: str
    name: str
    qty: int
    unit_price_pence: int
    line_total_pence: int
    modifiers: List[dict[str, Any]] = []


class CartResponse(BaseModel):
    id: str
    items: List[CartItemResponse] = []
    subtotal_pence: int = 0


# =============================================================================
# DELIVERY QUOTE
# =============================================================================

class QuoteRequestBody(BaseModel):
    """Request schema for a delivery quote."""
    mode: FulfillmentModeEnum = Field(default=FulfillmentModeEnum.DELIVERY)
    postcode: str = Field(default="", max_length=20, examples=["WF9 4PY"])
    address: str = Field(default="", max_length=255, examples=["1 High Street, South Elmsall"])
    subtotal_pence: int = Field(default=0, ge=0, examples=[1500])


class QuoteResponse(BaseModel):
    is_deliverable: bool
    fee_pence: int
    min_order_pence: int
    zone: Optional[str] = None
    reason: Optional[str] = None
    debug: dict[str, Any] = {}


# =============================================================================
# CHECKOUT
# =============================================================================

class ContactDetails(BaseModel):
    name: str = Field(default="", max_length=100, examples=["Jane Smith"])
    phone: str = Field(default="", max_length=30, examples=["07700 900123"])
    email: Optional[str] = Field(None, max_length=255, examples=["jane@example.com"])

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        if not re.match(r"^[^@\s]+@[^@\s]+\.[^@\s]+$", v.strip()):
            raise ValueError("Invalid email address")
        return v.strip()


class CheckoutAddress(BaseModel):
    line1: Optional[str] = Field(None, max_length=255)
    postcode: Optional[str] = Field(None, max_length=20)


class CheckoutRequest(BaseModel):
    """Guest checkout of an existing cart."""
    cart_id: str = Field(..., min_length=1)
    mode: FulfillmentModeEnum = Field(default=FulfillmentModeEnum.COLLECTION)
    contact: Optional[ContactDetails] = None
    address: Optional[CheckoutAddress] = None
    requested_time: Optional[str] = Field(None, examples=["18:30"])
    payment_method: str = Field(default="card", examples=["card", "cash"])
    comment: Optional[str] = Field(None, max_length=500)

    @field_validator("requested_time")
    @classmethod
    def validate_requested_time(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not re.fullmatch(r"([01]\d|2[0-3]):[0-5]\d", v):
            raise ValueError("requested_time must be HH:MM")
        return v


class CheckoutResponse(BaseModel):
    ok: bool = True
    order_id: str
    message: str = "Order placed successfully"
    payment_method: str
    subtotal_pence: int
    delivery_fee_pence: int
    total_pence: int
    email_sent: bool = False


# =============================================================================
# STORE ADMIN
# =============================================================================

class SwitchRuleTypeRequest(BaseModel):
    rule_type: str = Field(..., examples=["postcode", "distance"])
    store_id: Optional[str] = None


class SwitchRuleTypeResponse(BaseModel):
    success: bool = True
    active_rule_type: RuleTypeEnum
    message: str


class TimeSettingsRequest(BaseModel):
    """Any subset of the lead/buffer settings, in minutes."""
    collection_lead_time_minutes: Optional[int] = Field(None, ge=0, le=24 * 60)
    collection_buffer_minutes: Optional[int] = Field(None, ge=0, le=24 * 60)
    delivery_lead_time_minutes: Optional[int] = Field(None, ge=0, le=24 * 60)
    delivery_buffer_minutes: Optional[int] = Field(None, ge=0, le=24 * 60)
    store_id: Optional[str] = None

    def provided(self) -> dict[str, int]:
        return {
            k: v for k, v in self.model_dump(exclude={"store_id"}).items()
            if v is not None
        }


class TimeSettingsResponse(BaseModel):
    success: bool = True
    updated_settings: dict[str, int]
    message: str = "Time settings updated successfully"


class StoreConfigResponse(BaseModel):
    id: str
    name: str
    currency: str
    address: Optional[str] = None
    postcode: Optional[str] = None
    location: Optional[dict[str, float]] = None
    active_rule_type: str
    postcode_rules: Optional[dict[str, Any]] = None
    distance_rules: Optional[dict[str, Any]] = None
    collection_lead_time_minutes: int
    collection_buffer_minutes: int
    delivery_lead_time_minutes: int
    delivery_buffer_minutes: int


# =============================================================================
# AVAILABILITY
# =============================================================================

class OpeningHoursResponse(BaseModel):
    day_of_week: int
    open_time: str
    close_time: str
    is_closed: bool


class HolidayResponse(BaseModel):
    holiday_date: date
    start_time: str
    end_time: str
    description: Optional[str] = None


class StoreStatusResponse(BaseModel):
    is_open: bool
    reason: str
    current_time: Optional[str] = None
    day_of_week: Optional[int] = None


class SlotsResponse(BaseModel):
    date: str
    available_times: List[str]
    reason: Optional[str] = None


# =============================================================================
# HEALTH / ERRORS
# =============================================================================

class HealthResponse(BaseModel):
    status: str
    environment: str
    config_store: str
    geo_service: str
    notifications: str
    timestamp: datetime


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    detail: Optional[str] = None
