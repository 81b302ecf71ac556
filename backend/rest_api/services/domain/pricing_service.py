"""
Pricing normalizer.

Turns raw order lines into priced line items with GST applied, using the
vendor's catalog as the source of truth for item identity and defaults.
All money is Decimal, rounded half-up to cents after every step, so the
same input always produces byte-identical output (re-pricing an edited
order must not drift).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Sequence

from sqlalchemy.orm import Session

from rest_api.models import MenuItem, Vendor
from rest_api.repositories import get_menu_item_repository
from shared.config.constants import GstMode
from shared.config.logging import get_logger
from shared.utils.exceptions import (
    EmptyOrderError,
    InvalidPriceError,
    ItemNotFoundError,
    ValidationError,
)
from shared.utils.schemas import RawOrderItem

logger = get_logger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


def to_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money_str(value: Decimal) -> str:
    """Fixed two-decimal string ("420.00")."""
    return str(to_money(value))


@dataclass(frozen=True)
class CatalogEntry:
    """What the catalog says about a menu item, GST defaults resolved."""

    item_id: int
    name: str
    price: Decimal
    gst_rate: Decimal
    gst_mode: str


@dataclass(frozen=True)
class LinePricing:
    subtotal: Decimal    # pre-tax amount
    gst_amount: Decimal
    line_total: Decimal  # what the customer pays for the line


@dataclass
class PricedItems:
    items: list[dict[str, Any]] = field(default_factory=list)
    total_amount: Decimal = ZERO

    @property
    def total_amount_str(self) -> str:
        return money_str(self.total_amount)


def coerce_quantity(raw: Any) -> int:
    """
    Positive integer quantity. Anything unparseable, non-finite or <= 0
    becomes 1; fractions truncate.
    """
    if isinstance(raw, bool):
        return 1
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return 1
    if not value.is_finite() or value <= 0:
        return 1
    return max(1, int(value))


def _parse_decimal(raw: Any) -> Decimal | None:
    if raw is None or isinstance(raw, bool) or (isinstance(raw, str) and not raw.strip()):
        return None
    try:
        return Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return Decimal("NaN")


def resolve_unit_price(raw: Any, catalog_price: Decimal, item_id: int) -> Decimal:
    """Request price when given, catalog price otherwise. Finite and >= 0."""
    price = _parse_decimal(raw)
    if price is None:
        price = Decimal(catalog_price)
    if not price.is_finite() or price < 0:
        raise InvalidPriceError(item_id, raw if raw is not None else catalog_price)
    return to_money(price)


def resolve_gst(raw_rate: Any, raw_mode: Any, entry: CatalogEntry) -> tuple[Decimal, str]:
    """Explicit per-line rate/mode first, then the catalog default."""
    rate = _parse_decimal(raw_rate)
    if rate is None:
        rate = entry.gst_rate
    elif not rate.is_finite() or rate < 0:
        raise ValidationError(f"Invalid GST rate for menu item {entry.item_id}", item_id=entry.item_id)

    mode = raw_mode if raw_mode in GstMode.ALL else entry.gst_mode
    if mode not in GstMode.ALL:
        mode = GstMode.DEFAULT
    return to_money(rate), mode


def price_line(unit_price: Decimal, quantity: int, gst_rate: Decimal, gst_mode: str) -> LinePricing:
    """
    exclude: tax is added on top of price*qty.
    include: price*qty already contains the tax; it is backed out.
    """
    gross = to_money(unit_price * quantity)
    if gst_rate == 0:
        return LinePricing(subtotal=gross, gst_amount=to_money(ZERO), line_total=gross)

    if gst_mode == GstMode.INCLUDE:
        tax = to_money(gross * gst_rate / (HUNDRED + gst_rate))
        base = to_money(gross - tax)
        return LinePricing(subtotal=base, gst_amount=tax, line_total=gross)

    tax = to_money(gross * gst_rate / HUNDRED)
    return LinePricing(subtotal=gross, gst_amount=tax, line_total=to_money(gross + tax))


def price_items(raw_items: Sequence[RawOrderItem], catalog: dict[int, CatalogEntry]) -> PricedItems:
    """Pure pricing over an already-loaded catalog."""
    if not raw_items:
        raise EmptyOrderError()

    priced = PricedItems()
    total = ZERO
    for raw in raw_items:
        entry = catalog.get(raw.item_id)
        if entry is None:
            raise ItemNotFoundError(raw.item_id)

        quantity = coerce_quantity(raw.quantity)
        unit_price = resolve_unit_price(raw.unit_price, entry.price, entry.item_id)
        gst_rate, gst_mode = resolve_gst(raw.gst_rate, raw.gst_mode, entry)
        line = price_line(unit_price, quantity, gst_rate, gst_mode)

        priced.items.append({
            "itemId": entry.item_id,
            "name": entry.name,
            "quantity": quantity,
            "unitPrice": money_str(unit_price),
            "addons": list(raw.addons),
            "gstRate": money_str(gst_rate),
            "gstMode": gst_mode,
            "subtotal": money_str(line.subtotal),
            "gstAmount": money_str(line.gst_amount),
            "lineTotal": money_str(line.line_total),
        })
        total = to_money(total + line.line_total)

    priced.total_amount = total
    return priced


def catalog_entry(menu_item: MenuItem, vendor: Vendor | None = None) -> CatalogEntry:
    """Catalog view of a menu item: category GST, else vendor GST, else 0/exclude."""
    source = menu_item.category or vendor
    if source is not None:
        rate = Decimal(source.gst_rate or 0)
        mode = source.gst_mode or GstMode.DEFAULT
    else:
        rate, mode = ZERO, GstMode.DEFAULT
    return CatalogEntry(
        item_id=menu_item.id,
        name=menu_item.name,
        price=Decimal(menu_item.price),
        gst_rate=rate,
        gst_mode=mode,
    )


class PricingService:
    """Resolves raw lines against the vendor's menu and prices them."""

    def __init__(self, db: Session):
        self._db = db
        self._menu_repo = get_menu_item_repository(db)

    def load_catalog(self, vendor_id: int, item_ids: Iterable[int]) -> dict[int, CatalogEntry]:
        vendor = self._db.get(Vendor, vendor_id)
        menu_items = self._menu_repo.find_available_by_ids(sorted(set(item_ids)), vendor_id)
        return {m.id: catalog_entry(m, vendor) for m in menu_items}

    def normalize(self, vendor_id: int, raw_items: Sequence[RawOrderItem]) -> PricedItems:
        if not raw_items:
            raise EmptyOrderError(vendor_id=vendor_id)
        catalog = self.load_catalog(vendor_id, (r.item_id for r in raw_items))
        priced = price_items(raw_items, catalog)
        logger.debug(
            "Order priced",
            vendor_id=vendor_id,
            lines=len(priced.items),
            total_amount=priced.total_amount_str,
        )
        return priced
