"""Receipt data model for TILL.

A ReceiptRequest is the structured sale handed over by the desktop shell:
store identity, customer, line items, totals, payment and loyalty points.
Payloads arrive as loosely typed dictionaries, so `ReceiptRequest.from_dict`
coerces every field and never raises.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENTS = Decimal("0.01")

DEFAULT_DESCRIPTION = "Item"
DEFAULT_CUSTOMER = "N/A"


def to_decimal(value: Any) -> Decimal:
    """Coerce a number-like value to Decimal, falling back to zero.

    Floats go through ``str`` so that 12.345 stays 12.345 instead of its
    binary approximation.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    try:
        result = Decimal(str(value).strip() or "0")
    except (InvalidOperation, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO


def to_int(value: Any) -> int:
    """Coerce a count-like value to a non-negative int, falling back to zero."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = int(to_decimal(value))
    except (InvalidOperation, ValueError, OverflowError):
        return 0
    return max(0, number)


def format_money(value: Any, symbol: str = "") -> str:
    """Render a currency value with exactly two decimals (half away from zero)."""
    amount = to_decimal(value)
    try:
        amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # Too many digits for the context precision
        return f"{symbol}{amount:.2f}"
    if amount == 0:
        amount = abs(amount)
    if amount < 0:
        return f"-{symbol}{-amount}"
    return f"{symbol}{amount}"


def _first(data: Dict[str, Any], *keys: str) -> Any:
    """Return the first present, non-None value among several aliases."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


@dataclass(frozen=True)
class LineItem:
    """A single sale line.

    ``amount`` is taken as supplied; it is not recomputed from
    ``quantity * unit_price``.
    """

    description: str
    quantity: int = 0
    unit_price: Decimal = ZERO
    amount: Decimal = ZERO

    @classmethod
    def from_dict(cls, data: Any) -> "LineItem":
        if not isinstance(data, dict):
            return cls(description=DEFAULT_DESCRIPTION)

        description = str(_first(data, "desc", "description", "name") or "").strip()
        quantity = to_int(_first(data, "qty", "quantity"))
        amount = to_decimal(data.get("amount"))

        price = _first(data, "price", "unit_price", "unitPrice")
        if price is not None:
            unit_price = to_decimal(price)
        elif quantity > 0:
            unit_price = amount / quantity
        else:
            unit_price = ZERO

        return cls(
            description=description or DEFAULT_DESCRIPTION,
            quantity=quantity,
            unit_price=unit_price,
            amount=amount,
        )


@dataclass(frozen=True)
class ReceiptRequest:
    """Everything needed to print one receipt."""

    items: Tuple[LineItem, ...] = ()
    customer_name: str = DEFAULT_CUSTOMER
    store_name: Optional[str] = None
    store_address: Tuple[str, ...] = ()
    total: Decimal = ZERO
    amount_tendered: Decimal = ZERO
    change_due: Decimal = ZERO
    points: int = 0
    printer_name: Optional[str] = None

    @property
    def item_count(self) -> int:
        return len(self.items or ())

    @classmethod
    def from_dict(cls, data: Any) -> "ReceiptRequest":
        """Build a request from a shell payload.

        Accepts both the register's camelCase keys (``cartTotal``,
        ``printerName``) and snake_case equivalents.
        """
        if not isinstance(data, dict):
            logger.warning("Receipt payload is not a mapping, printing an empty receipt")
            return cls()

        raw_items = data.get("items")
        if not isinstance(raw_items, (list, tuple)):
            raw_items = []
        items = tuple(LineItem.from_dict(item) for item in raw_items)

        customer = data.get("customer")
        if isinstance(customer, dict):
            customer_name = customer.get("name")
        else:
            customer_name = _first(data, "customer_name", "customerName", "customer")
        customer_name = str(customer_name or "").strip() or DEFAULT_CUSTOMER

        store = data.get("store") if isinstance(data.get("store"), dict) else {}
        store_name = _first(store, "name") or _first(data, "store_name", "storeName")
        address = [
            str(line).strip()
            for line in (store.get("address1"), store.get("address2"))
            if line and str(line).strip()
        ]
        if not address and isinstance(data.get("store_address"), (list, tuple)):
            address = [str(line).strip() for line in data["store_address"] if str(line).strip()]

        printer_name = _first(data, "printerName", "printer_name", "printer")
        printer_name = str(printer_name).strip() if printer_name else None

        return cls(
            items=items,
            customer_name=customer_name,
            store_name=str(store_name).strip() if store_name else None,
            store_address=tuple(address),
            total=to_decimal(_first(data, "cartTotal", "total")),
            amount_tendered=to_decimal(_first(data, "amount", "tendered", "amount_tendered")),
            change_due=to_decimal(_first(data, "change", "change_due")),
            points=to_int(data.get("points")),
            printer_name=printer_name or None,
        )



def sample_request(item_count: int = 3, printer_name: Optional[str] = None) -> ReceiptRequest:
    """A small fixed sale for checking that a printer works end to end."""
    price = Decimal("10.00")
    items = tuple(
        LineItem(description=f"Test Item {i}", quantity=1, unit_price=price, amount=price)
        for i in range(1, max(1, item_count) + 1)
    )
    total = price * len(items)
    return ReceiptRequest(
        items=items,
        customer_name="Test Customer",
        total=total,
        amount_tendered=total,
        change_due=ZERO,
        printer_name=printer_name,
    )


@dataclass
class RenderedReceipt:
    """A formatted receipt ready for printing."""

    raw_commands: bytes
    text: str
    item_count: int
    timestamp: datetime
    printer_name: Optional[str] = field(default=None)
