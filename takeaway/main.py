"""
FastAPI Application Entry Point

Takeaway Ordering API - Hybrid Architecture
Supports both Mock services (development) and Real APIs (staging/production).

Endpoints:
    - GET  /health: System health check
    - GET  /api/menu: Categories and available menu items
    - POST /api/cart/create, POST /api/cart/{id}/add, GET /api/cart/{id}: Guest carts
    - POST /api/delivery/quote: Delivery fee quote
    - POST /api/checkout: Guest checkout
    - POST /api/delivery/switch-rule-type: Admin - activate postcode/distance rules
    - POST /api/store/update-time-settings: Admin - lead times and buffers
    - GET  /api/store/config, /api/store/hours, /api/store/holidays
    - GET  /api/store/is-open, /api/store/collection-times, /api/store/delivery-times
"""

import logging
import secrets
import string
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo

from fastapi import FastAPI, HTTPException, Depends, Query, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

# Internal imports
from takeaway.core.config import get_settings, setup_logging
from takeaway.database import get_db, init_db, engine
from takeaway.models import Category, MenuItem, Order, OrderItem, OrderMode, OrderStatus
from takeaway.schemas import (
    CartAddRequest,
    CartResponse,
    CategoryResponse,
    CheckoutRequest,
    CheckoutResponse,
    ErrorResponse,
    FulfillmentModeEnum,
    HealthResponse,
    HolidayResponse,
    MenuItemResponse,
    MenuResponse,
    OpeningHoursResponse,
    QuoteRequestBody,
    QuoteResponse,
    RuleTypeEnum,
    SlotsResponse,
    StoreConfigResponse,
    StoreStatusResponse,
    SwitchRuleTypeRequest,
    SwitchRuleTypeResponse,
    TimeSettingsRequest,
    TimeSettingsResponse,
)
from takeaway.services.availability import AvailabilityService
from takeaway.services.cart import CartStore, get_cart_store
from takeaway.services.config_store import BaseConfigStore, get_config_store
from takeaway.services.delivery import (
    DeliveryQuoteService,
    FulfillmentMode,
    QuoteRequest,
)
from takeaway.services.geo import BaseGeoService, MapboxGeoService, get_geo_service
from takeaway.services.notifications import BaseNotificationService, get_notification_service

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

ORDER_ID_ALPHABET = string.ascii_uppercase + string.digits


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Store timezone: {settings.store_timezone}")
    logger.info("=" * 60)

    # Initialize database
    await init_db()

    # Validate production config
    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"Missing production config: {missing}")

    # Log service configuration
    geo_service = build_geo_service(get_geo_service)
    logger.info(f"Config Store: {get_config_store().backend_name}")
    logger.info(f"Geo Service: {geo_service.provider_name if geo_service else 'unavailable'}")
    logger.info(f"Notification Service: {get_notification_service().provider_name}")

    logger.info("Application ready")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    if isinstance(geo_service, MapboxGeoService):
        await geo_service.aclose()
    await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Online ordering backend for a single takeaway: menu, carts, "
        "delivery quoting, checkout and store availability."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_store_now() -> datetime:
    """Current wall-clock time in the store's timezone."""
    return datetime.now(ZoneInfo(settings.store_timezone))


def get_geo_resolver() -> Callable[[], BaseGeoService]:
    """Factory for the geo service, called only when a lookup is needed."""
    return get_geo_service


def get_quote_service(
    config_store: BaseConfigStore = Depends(get_config_store),
    geo_resolver: Callable[[], BaseGeoService] = Depends(get_geo_resolver),
) -> DeliveryQuoteService:
    return DeliveryQuoteService(
        config_store,
        geo_factory=geo_resolver,
        timeout_seconds=settings.geo_timeout_seconds,
    )


def get_availability_service(
    config_store: BaseConfigStore = Depends(get_config_store),
) -> AvailabilityService:
    return AvailabilityService(config_store, settings.store_id)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def generate_order_id() -> str:
    """``ORD`` followed by 8 upper-case alphanumerics."""
    return "ORD" + "".join(secrets.choice(ORDER_ID_ALPHABET) for _ in range(8))


def build_geo_service(resolver: Callable[[], BaseGeoService]) -> Optional[BaseGeoService]:
    """Build the geo service, or None when its credentials are missing."""
    try:
        return resolver()
    except ValueError as e:
        logger.error(f"Geo service unavailable: {e}")
        return None


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    config_store: BaseConfigStore = Depends(get_config_store),
    geo_resolver: Callable[[], BaseGeoService] = Depends(get_geo_resolver),
    notifications: BaseNotificationService = Depends(get_notification_service),
) -> HealthResponse:
    """Verify all system components are operational."""
    config_status = "healthy" if await config_store.health_check() else "unhealthy"
    geo_service = build_geo_service(geo_resolver)
    geo_healthy = geo_service is not None and await geo_service.health_check()
    geo_status = "healthy" if geo_healthy else "unhealthy"
    notification_status = "healthy" if await notifications.health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [config_status, geo_status, notification_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        environment=settings.env_mode.value,
        config_store=config_status,
        geo_service=geo_status,
        notifications=notification_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# MENU & CART ENDPOINTS
# =============================================================================

@app.get("/api/menu", response_model=MenuResponse, tags=["Menu"])
async def get_menu(db: AsyncSession = Depends(get_db)) -> MenuResponse:
    """Categories and currently available items, in display order."""
    categories = (await db.execute(
        select(Category).order_by(Category.display_order, Category.name)
    )).scalars().all()
    items = (await db.execute(
        select(MenuItem)
        .where(MenuItem.is_available.is_(True))
        .order_by(MenuItem.display_order, MenuItem.name)
    )).scalars().all()

    return MenuResponse(
        categories=[CategoryResponse.model_validate(c) for c in categories],
        items=[MenuItemResponse.model_validate(i) for i in items],
    )


@app.post("/api/cart/create", response_model=CartResponse, tags=["Cart"])
async def create_cart(carts: CartStore = Depends(get_cart_store)) -> dict[str, Any]:
    """Start a new, empty guest cart."""
    return carts.create().to_dict()


@app.get(
    "/api/cart/{cart_id}",
    response_model=CartResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Cart"],
)
async def get_cart(cart_id: str, carts: CartStore = Depends(get_cart_store)) -> dict[str, Any]:
    cart = carts.get(cart_id)
    if cart is None:
        raise HTTPException(status_code=404, detail="Cart not found")
    return cart.to_dict()


@app.post(
    "/api/cart/{cart_id}/add",
    response_model=CartResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Cart"],
)
async def add_to_cart(
    cart_id: str,
    body: CartAddRequest,
    carts: CartStore = Depends(get_cart_store),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Add a menu item, priced from the menu plus modifier deltas."""
    if carts.get(cart_id) is None:
        raise HTTPException(status_code=404, detail="Cart not found")

    item = (await db.execute(
        select(MenuItem).where(MenuItem.id == body.item_id, MenuItem.is_available.is_(True))
    )).scalar_one_or_none()
    if item is None:
        raise HTTPException(status_code=400, detail="Invalid item")

    cart = carts.add_item(
        cart_id,
        item_id=item.id,
        name=item.name,
        base_price_pence=item.price_pence,
        qty=body.qty,
        modifiers=[m.model_dump() for m in body.modifiers],
    )
    if cart is None:
        # Expired between the two lookups
        raise HTTPException(status_code=404, detail="Cart not found")
    return cart.to_dict()


# =============================================================================
# DELIVERY & CHECKOUT ENDPOINTS
# =============================================================================

@app.post("/api/delivery/quote", response_model=QuoteResponse, tags=["Delivery"])
async def delivery_quote(
    body: QuoteRequestBody,
    quote_service: DeliveryQuoteService = Depends(get_quote_service),
) -> dict[str, Any]:
    """
    Quote delivery for a postcode/address and basket subtotal.

    Always 200: undeliverable requests carry ``is_deliverable=false`` and a reason.
    """
    decision = await quote_service.quote_delivery(QuoteRequest(
        mode=FulfillmentMode(body.mode.value),
        postcode=body.postcode,
        address=body.address,
        subtotal_pence=body.subtotal_pence,
        store_id=settings.store_id,
    ))
    return decision.to_dict()


@app.post(
    "/api/checkout",
    response_model=CheckoutResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Checkout"],
)
async def checkout(
    body: CheckoutRequest,
    db: AsyncSession = Depends(get_db),
    carts: CartStore = Depends(get_cart_store),
    quote_service: DeliveryQuoteService = Depends(get_quote_service),
    notifications: BaseNotificationService = Depends(get_notification_service),
) -> CheckoutResponse:
    """
    Place a guest order from a cart.

    The subtotal comes from the cart and the delivery fee from a fresh quote;
    client-side totals are never trusted. Payment is not processed.
    """
    contact = body.contact
    if contact is None or not contact.name.strip() or not contact.phone.strip():
        raise HTTPException(status_code=400, detail="Missing contact information")

    cart = carts.get(body.cart_id)
    if cart is None:
        raise HTTPException(status_code=404, detail="Cart not found")
    if not cart.items:
        raise HTTPException(status_code=400, detail="Cart is empty")

    subtotal_pence = cart.subtotal_pence
    delivery_fee_pence = 0
    address = body.address

    if body.mode == FulfillmentModeEnum.DELIVERY:
        decision = await quote_service.quote_delivery(QuoteRequest(
            mode=FulfillmentMode.DELIVERY,
            postcode=(address.postcode if address else None) or "",
            address=(address.line1 if address else None) or "",
            subtotal_pence=subtotal_pence,
            store_id=settings.store_id,
        ))
        if not decision.is_deliverable:
            raise HTTPException(status_code=400, detail=decision.reason or "Not deliverable")
        delivery_fee_pence = decision.fee_pence

    total_pence = subtotal_pence + delivery_fee_pence
    order_id = generate_order_id()

    try:
        order = Order(
            id=order_id,
            contact_name=contact.name.strip(),
            contact_phone=contact.phone.strip(),
            contact_email=contact.email,
            mode=OrderMode(body.mode.value),
            postcode=address.postcode if address else None,
            address_line=address.line1 if address else None,
            requested_time=body.requested_time,
            subtotal_pence=subtotal_pence,
            delivery_fee_pence=delivery_fee_pence,
            total_pence=total_pence,
            status=OrderStatus.PENDING,
            payment_method=body.payment_method,
            notes=body.comment,
            items=[
                OrderItem(
                    item_id=line.item_id,
                    item_name=line.name,
                    quantity=line.qty,
                    unit_price_pence=line.unit_price_pence,
                    total_price_pence=line.line_total_pence,
                    modifiers=line.modifiers,
                )
                for line in cart.items
            ],
        )
        db.add(order)
        await db.commit()
    except Exception as e:
        logger.exception(f"Checkout error: {e}")
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to place order")

    logger.info(
        f"Order {order_id} placed: {body.mode.value}, {len(cart.items)} line(s), "
        f"total {total_pence}p"
    )
    carts.discard(cart.id)

    # The order stands even if the email fails
    email_sent = False
    if contact.email:
        try:
            result = await notifications.send_order_confirmation(
                order_id=order_id,
                customer_name=contact.name.strip(),
                customer_email=contact.email,
                items=[line.to_dict() for line in cart.items],
                subtotal_pence=subtotal_pence,
                delivery_fee_pence=delivery_fee_pence,
                total_pence=total_pence,
                mode=body.mode.value,
                comment=body.comment,
                restaurant_name=settings.restaurant_name,
                currency_symbol=settings.currency_symbol,
            )
            email_sent = result.success
            if not result.success:
                logger.warning(f"Order {order_id}: confirmation email failed: {result.error_message}")
        except Exception as e:
            logger.exception(f"Order {order_id}: email send error: {e}")

    return CheckoutResponse(
        order_id=order_id,
        payment_method=body.payment_method,
        subtotal_pence=subtotal_pence,
        delivery_fee_pence=delivery_fee_pence,
        total_pence=total_pence,
        email_sent=email_sent,
    )


# =============================================================================
# STORE ADMIN ENDPOINTS
# =============================================================================

@app.post(
    "/api/delivery/switch-rule-type",
    response_model=SwitchRuleTypeResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Store Admin"],
)
async def switch_rule_type(
    body: SwitchRuleTypeRequest,
    config_store: BaseConfigStore = Depends(get_config_store),
) -> SwitchRuleTypeResponse:
    """Activate the postcode-prefix or distance-band delivery rules."""
    valid = [r.value for r in RuleTypeEnum]
    if body.rule_type not in valid:
        raise HTTPException(
            status_code=400,
            detail='Invalid rule type. Must be "postcode" or "distance"',
        )

    store_id = body.store_id or settings.store_id
    updated = await config_store.set_active_rule_type(store_id, body.rule_type)
    if updated is None:
        raise HTTPException(status_code=404, detail="Store configuration not found")

    return SwitchRuleTypeResponse(
        active_rule_type=RuleTypeEnum(body.rule_type),
        message=f"Delivery rule type switched to {body.rule_type}",
    )


@app.post(
    "/api/store/update-time-settings",
    response_model=TimeSettingsResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Store Admin"],
)
async def update_time_settings(
    body: TimeSettingsRequest,
    config_store: BaseConfigStore = Depends(get_config_store),
) -> TimeSettingsResponse:
    """Update any subset of the collection/delivery lead times and buffers."""
    changes = body.provided()
    if not changes:
        raise HTTPException(status_code=400, detail="No valid time settings provided")

    store_id = body.store_id or settings.store_id
    updated = await config_store.update_time_settings(store_id, **changes)
    if updated is None:
        raise HTTPException(status_code=404, detail="Store configuration not found")

    return TimeSettingsResponse(updated_settings=changes)


# =============================================================================
# STORE INFO & AVAILABILITY ENDPOINTS
# =============================================================================

@app.get(
    "/api/store/config",
    response_model=StoreConfigResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Store"],
)
async def store_config(
    config_store: BaseConfigStore = Depends(get_config_store),
) -> StoreConfigResponse:
    config = await config_store.get_store_config(settings.store_id)
    if config is None:
        raise HTTPException(status_code=404, detail="Store configuration not found")

    return StoreConfigResponse(
        id=config.id,
        name=config.name,
        currency=config.currency,
        address=config.address,
        postcode=config.postcode,
        location=config.location.to_dict() if config.location else None,
        active_rule_type=config.active_rule_type,
        postcode_rules=config.postcode_rules,
        distance_rules=config.distance_rules,
        collection_lead_time_minutes=config.collection_lead_time_minutes,
        collection_buffer_minutes=config.collection_buffer_minutes,
        delivery_lead_time_minutes=config.delivery_lead_time_minutes,
        delivery_buffer_minutes=config.delivery_buffer_minutes,
    )


@app.get("/api/store/hours", response_model=list[OpeningHoursResponse], tags=["Store"])
async def store_hours(
    config_store: BaseConfigStore = Depends(get_config_store),
) -> list[dict[str, Any]]:
    """All opening hours, ordered by day and opening time."""
    return [entry.to_dict() for entry in await config_store.get_opening_hours()]


@app.get("/api/store/holidays", response_model=list[HolidayResponse], tags=["Store"])
async def store_holidays(
    config_store: BaseConfigStore = Depends(get_config_store),
    now: datetime = Depends(get_store_now),
) -> list[dict[str, Any]]:
    """Holiday closures from today onward."""
    return [h.to_dict() for h in await config_store.get_upcoming_holidays(now.date())]


@app.get("/api/store/is-open", response_model=StoreStatusResponse, tags=["Store"])
async def store_is_open(
    availability: AvailabilityService = Depends(get_availability_service),
    now: datetime = Depends(get_store_now),
) -> dict[str, Any]:
    return (await availability.is_open_now(now)).to_dict()


@app.get("/api/store/collection-times", response_model=SlotsResponse, tags=["Store"])
async def collection_times(
    on_date: Optional[date] = Query(None, alias="date"),
    availability: AvailabilityService = Depends(get_availability_service),
    now: datetime = Depends(get_store_now),
) -> SlotsResponse:
    """Bookable collection times (defaults to today)."""
    on_date = on_date or now.date()
    result = await availability.available_collection_times(on_date, now)
    return SlotsResponse(date=on_date.isoformat(), **result.to_dict())


@app.get(
    "/api/store/delivery-times",
    response_model=SlotsResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["Store"],
)
async def delivery_times(
    on_date: Optional[date] = Query(None, alias="date"),
    postcode: Optional[str] = Query(None),
    availability: AvailabilityService = Depends(get_availability_service),
    now: datetime = Depends(get_store_now),
) -> SlotsResponse:
    """Bookable delivery times (defaults to today); postcode is required."""
    if not postcode or not postcode.strip():
        raise HTTPException(status_code=400, detail="Postcode is required")

    on_date = on_date or now.date()
    result = await availability.available_delivery_times(on_date, postcode, now)
    return SlotsResponse(date=on_date.isoformat(), **result.to_dict())


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


# =============================================================================
# ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "takeaway.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
