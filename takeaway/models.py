"""
SQLAlchemy Database Models

Tables:
- store_config: the store's delivery rules, location and time settings
- store_opening_hours / store_holidays: trading sessions and closures
- categories / menu_items: the menu
- orders / order_items: placed orders
"""

import enum
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    Time,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from takeaway.database import Base

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class OrderStatus(str, enum.Enum):
    """Order status string; no workflow is enforced beyond these values."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderMode(str, enum.Enum):
    """Order type - Collection or Delivery."""
    COLLECTION = "collection"
    DELIVERY = "delivery"


class StoreConfigRecord(Base):
    """
    Store configuration row.

    Rule sets are stored as JSON documents and interpreted by the delivery
    rule providers; only ``delivery_active_rule_type`` selects between them.
    """
    __tablename__ = "store_config"

    id = Column(String(50), primary_key=True, default="default")
    name = Column(String(100), nullable=False)
    currency = Column(String(5), default="£")

    # =========================================================================
    # LOCATION
    # =========================================================================
    location_lat = Column(Float, nullable=True)
    location_lng = Column(Float, nullable=True)
    address = Column(Text, nullable=True)
    postcode = Column(String(10), nullable=True)

    # =========================================================================
    # DELIVERY RULES
    # =========================================================================
    delivery_active_rule_type = Column(String(20), nullable=False, default="postcode")
    delivery_postcode_rules = Column(JSONType, nullable=True)
    delivery_distance_rules = Column(JSONType, nullable=True)

    # =========================================================================
    # TIME SETTINGS (minutes)
    # =========================================================================
    collection_lead_time_minutes = Column(Integer, nullable=True, default=15)
    collection_buffer_minutes = Column(Integer, nullable=True, default=0)
    delivery_lead_time_minutes = Column(Integer, nullable=True, default=45)
    delivery_buffer_before_close_minutes = Column(Integer, nullable=True, default=15)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_dict(self) -> dict:
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}

    def __repr__(self):
        return f"<StoreConfig {self.id} - {self.delivery_active_rule_type}>"


class OpeningHoursRecord(Base):
    """One trading session; day_of_week 0 = Sunday."""
    __tablename__ = "store_opening_hours"

    id = Column(Integer, primary_key=True, autoincrement=True)
    day_of_week = Column(Integer, nullable=False, index=True)
    open_time = Column(Time, nullable=False)
    close_time = Column(Time, nullable=False)
    is_closed = Column(Boolean, default=False, nullable=False)


class HolidayRecord(Base):
    """A closed window on a calendar date."""
    __tablename__ = "store_holidays"

    id = Column(Integer, primary_key=True, autoincrement=True)
    holiday_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    description = Column(String(200), nullable=True)


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)
    display_order = Column(Integer, default=0)

    items = relationship("MenuItem", back_populates="category", cascade="all, delete-orphan")


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(String(50), primary_key=True)
    category_id = Column(String(50), ForeignKey("categories.id", ondelete="CASCADE"), index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price_pence = Column(Integer, nullable=False)
    image_url = Column(String(500), nullable=True)
    is_available = Column(Boolean, default=True, index=True)
    display_order = Column(Integer, default=0)

    category = relationship("Category", back_populates="items")


class Order(Base):
    """
    Placed order. Money columns are integer pence.
    """
    __tablename__ = "orders"

    id = Column(String(20), primary_key=True)

    # =========================================================================
    # CONTACT
    # =========================================================================
    contact_name = Column(String(100), nullable=False)
    contact_phone = Column(String(30), nullable=False)
    contact_email = Column(String(255), nullable=True)

    # =========================================================================
    # FULFILMENT
    # =========================================================================
    mode = Column(Enum(OrderMode), nullable=False, index=True)
    postcode = Column(String(10), nullable=True)
    address_line = Column(Text, nullable=True)
    requested_time = Column(String(5), nullable=True)

    # =========================================================================
    # PRICING
    # =========================================================================
    subtotal_pence = Column(Integer, nullable=False)
    delivery_fee_pence = Column(Integer, nullable=False, default=0)
    total_pence = Column(Integer, nullable=False)

    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    payment_method = Column(String(20), default="card")
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Order {self.id} - {self.mode.value} - {self.contact_name} - {self.status.value}>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String(20), ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    item_id = Column(String(50), nullable=False)
    item_name = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price_pence = Column(Integer, nullable=False)
    total_price_pence = Column(Integer, nullable=False)
    modifiers = Column(JSONType, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="items")
