"""
Data models for the tier pricing engine.

Uses dataclasses for structured, type-safe data representation.
Money is carried as Decimal and quantities as int. Records accept both
snake_case and camelCase keys in from_dict() so catalog payloads can be
passed through unchanged.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union


# Condition types
AMOUNT = 'amount'
QUANTITY = 'quantity'
DATE_RANGE = 'date_range'
CUSTOMER_TYPE = 'customer_type'

NUMERIC_OPERATORS = {
    'greater_than',
    'greater_or_equal',
    'less_than',
    'less_or_equal',
    'equals',
    'between',
}
DATE_OPERATORS = {'between', 'after', 'before'}

STATUS_ACTIVE = 'active'

# Bounds used when a condition payload leaves them out. Shared by the
# condition evaluator and the progress calculator.
DEFAULT_MIN_AMOUNT = Decimal('0')
DEFAULT_MAX_AMOUNT = Decimal('Infinity')
DEFAULT_MIN_QUANTITY = 0
DEFAULT_MAX_QUANTITY = Decimal('Infinity')

# Where a processed line's price came from
SOURCE_DEFAULT = 'default'
SOURCE_TIER = 'tier'
SOURCE_FALLBACK = 'fallback'

OPERATION_ADD = 'add'
OPERATION_REMOVE = 'remove'


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """Parse a money/bound value; empty values return the default."""
    if value is None or value == '':
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid decimal value: {value!r}")


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO date/datetime into an aware UTC datetime. Naive values are taken as UTC."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _pick(data: dict, *keys, default=None):
    """Return the first key present in data (snake_case or camelCase)."""
    for key in keys:
        if key in data:
            return data[key]
    return default


# ---------------------------------------------------------------------------
# Condition values: one variant per condition type
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AmountValue:
    """Bounds for an `amount` condition, compared against the cart total."""
    min_amount: Decimal = DEFAULT_MIN_AMOUNT
    max_amount: Decimal = DEFAULT_MAX_AMOUNT

    @classmethod
    def from_dict(cls, data: dict) -> 'AmountValue':
        return cls(
            min_amount=to_decimal(data.get('min_amount'), DEFAULT_MIN_AMOUNT),
            max_amount=to_decimal(data.get('max_amount'), DEFAULT_MAX_AMOUNT),
        )


@dataclass(frozen=True)
class QuantityValue:
    """Bounds for a `quantity` condition, compared against the cart item count."""
    min_quantity: Union[int, Decimal] = DEFAULT_MIN_QUANTITY
    max_quantity: Union[int, Decimal] = DEFAULT_MAX_QUANTITY

    @classmethod
    def from_dict(cls, data: dict) -> 'QuantityValue':
        min_qty = data.get('min_quantity')
        max_qty = data.get('max_quantity')
        return cls(
            min_quantity=int(min_qty) if min_qty not in (None, '') else DEFAULT_MIN_QUANTITY,
            max_quantity=int(max_qty) if max_qty not in (None, '') else DEFAULT_MAX_QUANTITY,
        )


@dataclass(frozen=True)
class DateRangeValue:
    """Customer-facing availability window of a price list."""
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, 'from_date', parse_datetime(self.from_date))
        object.__setattr__(self, 'to_date', parse_datetime(self.to_date))

    @classmethod
    def from_dict(cls, data: dict) -> 'DateRangeValue':
        return cls(
            from_date=parse_datetime(data.get('from_date')),
            to_date=parse_datetime(data.get('to_date')),
        )


@dataclass(frozen=True)
class CustomerTypeValue:
    """Customer segment a price list is reserved for."""
    customer_type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'CustomerTypeValue':
        return cls(customer_type=data.get('customer_type') or None)


@dataclass(frozen=True)
class UnknownValue:
    """Payload of a condition type the engine does not recognize."""
    payload: dict = field(default_factory=dict)


ConditionValue = Union[AmountValue, QuantityValue, DateRangeValue, CustomerTypeValue, UnknownValue]

_VALUE_TYPES = {
    AMOUNT: AmountValue,
    QUANTITY: QuantityValue,
    DATE_RANGE: DateRangeValue,
    CUSTOMER_TYPE: CustomerTypeValue,
}


def parse_condition_value(condition_type: str, payload: Optional[dict]) -> ConditionValue:
    """Build the value variant matching a condition type."""
    payload = payload or {}
    value_type = _VALUE_TYPES.get(condition_type)
    if value_type is None:
        return UnknownValue(payload=dict(payload))
    return value_type.from_dict(payload)


# ---------------------------------------------------------------------------
# Price lists and conditions
# ---------------------------------------------------------------------------

@dataclass
class Condition:
    """A predicate gating a non-default price list."""
    id: int
    condition_type: str
    operator: str
    value: ConditionValue
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    status: str = STATUS_ACTIVE

    def __post_init__(self):
        self.valid_from = parse_datetime(self.valid_from)
        self.valid_to = parse_datetime(self.valid_to)

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @classmethod
    def from_dict(cls, data: dict) -> 'Condition':
        """Create a Condition from a catalog row."""
        condition_type = _pick(data, 'condition_type', 'conditionType', default='')
        return cls(
            id=data.get('id'),
            condition_type=condition_type,
            operator=data.get('operator', ''),
            value=parse_condition_value(
                condition_type,
                _pick(data, 'condition_value', 'conditionValue'),
            ),
            valid_from=parse_datetime(_pick(data, 'valid_from', 'validFrom')),
            valid_to=parse_datetime(_pick(data, 'valid_to', 'validTo')),
            status=data.get('status', STATUS_ACTIVE),
        )


@dataclass
class AppliedPriceList:
    """Summary of the price list applied to a cart."""
    id: int
    name: str
    is_default: bool


@dataclass
class PriceList:
    """A named, conditionally applicable set of product prices."""
    id: int
    name: str
    is_default: bool = False
    status: str = STATUS_ACTIVE
    conditions: list[Condition] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @property
    def active_conditions(self) -> list[Condition]:
        return [c for c in self.conditions if c.is_active]

    def summary(self) -> AppliedPriceList:
        return AppliedPriceList(id=self.id, name=self.name, is_default=self.is_default)

    @classmethod
    def from_dict(cls, data: dict) -> 'PriceList':
        """Create a PriceList (with its conditions) from a catalog row."""
        return cls(
            id=data.get('id'),
            name=data.get('name', ''),
            is_default=bool(_pick(data, 'is_default', 'isDefault', default=False)),
            status=data.get('status', STATUS_ACTIVE),
            conditions=[Condition.from_dict(c) for c in data.get('conditions') or []],
        )


@dataclass
class ProductPrice:
    """Price of one product in one price list."""
    product_id: int
    price_list_id: int
    amount: Decimal
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None

    def __post_init__(self):
        self.valid_from = parse_datetime(self.valid_from)
        self.valid_to = parse_datetime(self.valid_to)

    def is_valid_at(self, moment: datetime) -> bool:
        """Check the price's own validity window."""
        if self.valid_from and moment < self.valid_from:
            return False
        if self.valid_to and moment > self.valid_to:
            return False
        return True


# ---------------------------------------------------------------------------
# Carts and evaluation context
# ---------------------------------------------------------------------------

@dataclass
class CartLine:
    """A product line of a cart or of a cart mutation request."""
    product_id: int
    quantity: int
    price: Optional[Decimal] = None  # price currently stored on the line
    operation: str = OPERATION_ADD

    @classmethod
    def from_dict(cls, data: dict) -> 'CartLine':
        return cls(
            product_id=int(_pick(data, 'product_id', 'productId')),
            quantity=int(data.get('quantity', 0)),
            price=to_decimal(data.get('price')),
            operation=data.get('operation') or OPERATION_ADD,
        )


@dataclass
class CartSnapshot:
    """Read-only view of a cart as seen by the engine."""
    id: Optional[str] = None
    items: list[CartLine] = field(default_factory=list)
    customer_attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def product_ids(self) -> list[int]:
        return list(dict.fromkeys(line.product_id for line in self.items))

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.items)

    @classmethod
    def from_dict(cls, data: dict) -> 'CartSnapshot':
        return cls(
            id=data.get('id'),
            items=[CartLine.from_dict(i) for i in data.get('items') or []],
            customer_attributes=dict(
                _pick(data, 'customer_attributes', 'customerAttributes', default={}) or {}
            ),
        )


@dataclass
class EvaluationContext:
    """Aggregated cart state that conditions are evaluated against."""
    total_price: Decimal
    total_quantity: int
    cart: CartSnapshot = field(default_factory=CartSnapshot)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class TraceStep:
    """A single step in the pricing resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class ProcessedItem:
    """A cart line priced under the applicable price list."""
    product_id: int
    quantity: int
    price: Decimal
    price_list_id: int
    source: str  # "default", "tier" or "fallback"
    operation: str = OPERATION_ADD
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    @property
    def extended_price(self) -> Decimal:
        return self.price * self.quantity

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace for this item."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a warning for this item."""
        self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)


@dataclass
class PricingOutcome:
    """Result of pricing a cart mutation."""
    processed_items: list[ProcessedItem]
    applied_price_list: PriceList
    should_update_all_items: bool
    total_price: Decimal = Decimal('0')
    total_quantity: int = 0
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the outcome-level trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add an outcome-level warning."""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable outcome trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)


@dataclass
class ConditionProgress:
    """How far a cart is from satisfying one condition."""
    condition_id: int
    condition_type: str
    is_met: bool
    progress: float  # percentage, 0-100
    current_value: Decimal
    target_value: Decimal
    remaining: Decimal
    unit: str  # "amount", "quantity", "days" or "customer_type"
    message: str


@dataclass
class PriceListProgress:
    """Progress toward one price list the customer has not unlocked yet."""
    price_list_id: int
    price_list_name: str
    conditions: list[ConditionProgress]
    current_total: Decimal
    potential_savings: Optional[Decimal] = None
    projected_total: Optional[Decimal] = None


@dataclass
class SavingsInfo:
    """Applied tier and savings of an existing cart. Empty when there is nothing to report."""
    applied_price_list: Optional[AppliedPriceList] = None
    savings: Optional[Decimal] = None
    default_price_list_total: Optional[Decimal] = None

    @property
    def is_empty(self) -> bool:
        return self.applied_price_list is None

    def to_dict(self) -> dict:
        """Convert to a dict, leaving out fields that were not computed."""
        if self.is_empty:
            return {}
        return {
            "applied_price_list": {
                "id": self.applied_price_list.id,
                "name": self.applied_price_list.name,
                "is_default": self.applied_price_list.is_default,
            },
            "savings": self.savings,
            "default_price_list_total": self.default_price_list_total,
        }
