"""Cart models with Decimal-based pricing."""
import json
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, field_validator

from shopcart.logging import get_logger, sanitize_string_for_logging
from shopcart.money import format_money, parse_price, to_decimal, to_float, multiply

logger = get_logger(__name__)

ProductId = Union[str, int]

# Fields every persisted line record carries; anything else goes to CartLine.extra
LINE_FIELDS = ("id", "name", "price", "unit", "image", "quantity")


def _check_id(value: Any) -> ProductId:
    if value is None or isinstance(value, bool):
        raise ValueError("id is required")
    if isinstance(value, str):
        if not value.strip():
            raise ValueError("id must be a non-empty string")
        return value
    if isinstance(value, int):
        return value
    raise ValueError(f"id must be a string or integer, got {type(value).__name__}")


@dataclass(frozen=True)
class CartLine:
    """One product's presence in the cart, with its aggregated quantity."""
    id: ProductId
    name: str = ""
    price: Decimal = Decimal("0")
    unit: str = ""
    image: str = ""
    quantity: int = 1
    extra: dict = field(default_factory=dict)

    def __post_init__(self):
        _check_id(self.id)
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError("quantity must be an integer")
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        # Normalize numeric fields
        object.__setattr__(self, "price", parse_price(self.price))
        object.__setattr__(self, "extra", _json_safe_extra(self.extra))

    @property
    def line_total(self) -> Decimal:
        """Total price for all units."""
        return multiply(self.price, self.quantity)

    def with_quantity(self, quantity: int) -> "CartLine":
        """Copy of this line with a different quantity."""
        return replace(self, quantity=quantity)

    def to_dict(self) -> dict:
        """Convert to the persisted record (extra fields first, known fields win)."""
        return {
            **self.extra,
            "id": self.id,
            "name": self.name,
            "price": to_float(self.price),
            "unit": self.unit,
            "image": self.image,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        """
        Create from a persisted record.

        Raises:
            TypeError, KeyError, ValueError: If the record is malformed
        """
        if not isinstance(data, dict):
            raise TypeError(f"cart line must be an object, got {type(data).__name__}")
        extra = {k: v for k, v in data.items() if k not in LINE_FIELDS}
        return cls(
            id=data["id"],
            name=_text(data.get("name")),
            price=parse_price(data.get("price")),
            unit=_text(data.get("unit")),
            image=_text(data.get("image")),
            quantity=data["quantity"],
            extra=extra,
        )

    @classmethod
    def from_product(cls, product: "ProductInput", quantity: int) -> "CartLine":
        """Build a new line from validated product input."""
        return cls(
            id=product.id,
            name=product.name,
            price=product.price,
            unit=product.unit,
            image=product.image,
            quantity=quantity,
            extra=dict(product.model_extra or {}),
        )


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return to_float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def _json_safe_extra(extra: Any) -> dict:
    """
    Copy of `extra` that json.dumps accepts.

    Decimals become numbers, dates ISO strings, other objects their str().
    Entries that still cannot be encoded (e.g. circular) are dropped.
    """
    if not extra:
        return {}
    safe = {}
    for key, value in dict(extra).items():
        try:
            safe[str(key)] = json.loads(json.dumps(value, default=_json_default))
        except (TypeError, ValueError) as e:
            logger.warning(f"Dropping product field {sanitize_string_for_logging(key)}: {e}")
    return safe


class ProductInput(BaseModel):
    """
    Product payload accepted by CartStore.add_to_cart.

    Only `id` is required. Unknown keys (rating, discount, ...) are kept
    and carried into CartLine.extra.
    """
    model_config = ConfigDict(extra="allow")

    id: ProductId
    name: str = ""
    price: Decimal = Decimal("0")
    unit: str = ""
    image: str = ""
    quantity: Optional[int] = None

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v):
        return _check_id(v)

    @field_validator("name", "unit", "image", mode="before")
    @classmethod
    def convert_text(cls, v):
        return _text(v)

    @field_validator("price", mode="before")
    @classmethod
    def convert_price_to_decimal(cls, v):
        return parse_price(v)

    @field_validator("quantity", mode="before")
    @classmethod
    def validate_quantity(cls, v):
        # Falsy quantity means "not given": the store falls back to 1
        if v is None or v == 0:
            return None
        if isinstance(v, bool):
            raise ValueError("quantity must be an integer")
        return v

    @field_validator("quantity")
    @classmethod
    def check_quantity_positive(cls, v):
        if v is not None and v < 1:
            raise ValueError("quantity must be positive")
        return v

    @property
    def requested_quantity(self) -> int:
        return self.quantity or 1


@dataclass(frozen=True)
class CartTotals:
    """Derived money values for the current cart. Never persisted."""
    subtotal: Decimal
    shipping: Decimal
    total: Decimal
    item_count: int

    @property
    def free_shipping(self) -> bool:
        return self.shipping == 0

    def to_dict(self) -> dict:
        return {
            "subtotal": to_float(self.subtotal),
            "shipping": to_float(self.shipping),
            "total": to_float(self.total),
            "item_count": self.item_count,
        }


@dataclass(frozen=True)
class AddResult:
    """Outcome of add_to_cart: success with the resulting line, or a no-op with a reason."""
    ok: bool
    reason: Optional[str] = None
    line: Optional[CartLine] = None

    @classmethod
    def success(cls, line: CartLine) -> "AddResult":
        return cls(ok=True, line=line)

    @classmethod
    def noop(cls, reason: str) -> "AddResult":
        return cls(ok=False, reason=reason)


@dataclass(frozen=True)
class CartSnapshot:
    """Read-only view handed to the presentation layer."""
    lines: Tuple[CartLine, ...]
    is_open: bool
    totals: CartTotals

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self.lines],
            "is_open": self.is_open,
            "totals": self.totals.to_dict(),
        }


@dataclass(frozen=True)
class AddedToCartNotice:
    """Payload for the add-to-cart confirmation (toast with undo)."""
    id: ProductId
    name: str
    price: Decimal
    unit: str
    image: str
    quantity: int

    @property
    def price_display(self) -> str:
        return format_money(self.price)

    @classmethod
    def from_line(cls, line: CartLine, quantity: int) -> "AddedToCartNotice":
        """Notice for `quantity` units just added to `line`."""
        return cls(
            id=line.id,
            name=line.name,
            price=to_decimal(line.price),
            unit=line.unit,
            image=line.image,
            quantity=quantity,
        )
