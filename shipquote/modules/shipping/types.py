"""
Shipping Quote Data Classes

Module-agnostic value objects shared by the pipeline, rate modules and
processors. Everything here is created fresh per quote computation.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from shipquote.models.store import MerchantStore
    from shipquote.schemas.shipping_config import MerchantShippingConfiguration, ModuleConfiguration

DISTANCE_KEY = "distance"


class ReasonCode(str, Enum):
    """Business outcomes reported on a quote instead of raising."""
    NO_POSTAL_CODE = "NO_POSTAL_CODE"  # warning only
    NO_SHIPPING_TO_SELECTED_COUNTRY = "NO_SHIPPING_TO_SELECTED_COUNTRY"
    NO_SHIPPING_MODULE_CONFIGURED = "NO_SHIPPING_MODULE_CONFIGURED"


class ModuleType(str, Enum):
    RATE = "RATE"
    PRE_PROCESSOR = "PRE_PROCESSOR"
    POST_PROCESSOR = "POST_PROCESSOR"


# =============================================================================
# Addresses
# =============================================================================

@dataclass
class Delivery:
    """Customer delivery address."""
    country_code: str
    postal_code: Optional[str] = None
    state_province: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass
class ShippingOrigin:
    """Where shipments leave from."""
    country_code: str
    postal_code: Optional[str] = None
    state_province: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    active: bool = True


# =============================================================================
# Prices
# =============================================================================

@dataclass
class ProductPrice:
    """A product price with an optional special (discount) amount."""
    amount: Decimal
    special_amount: Optional[Decimal] = None
    special_start_date: Optional[date] = None
    special_end_date: Optional[date] = None
    default_price: bool = True
    code: str = "base"


@dataclass
class FinalPrice:
    """
    Price a customer actually pays for one unit.

    discounted implies discounted_price is set and not above original_price.
    """
    final_price: Decimal
    original_price: Decimal
    product_price: ProductPrice
    discounted: bool = False
    discounted_price: Optional[Decimal] = None
    discount_percent: int = 0
    discount_end_date: Optional[date] = None
    default_price: bool = False


# =============================================================================
# Cart / packages
# =============================================================================

@dataclass
class ShippingProduct:
    """A cart line item to be shipped."""
    sku: str
    quantity: int
    price: ProductPrice
    name: Optional[str] = None
    attribute_prices: List[Decimal] = field(default_factory=list)
    weight: Optional[float] = None
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    shippable: bool = True


@dataclass
class PackageDetails:
    """A physical package handed to a rate module."""
    weight: float
    length: float = 0.0
    width: float = 0.0
    height: float = 0.0
    declared_value: Decimal = Decimal("0")
    item_name: Optional[str] = None
    items_count: int = 1


# =============================================================================
# Options / quote
# =============================================================================

@dataclass
class ShippingOption:
    """A priced shipping choice."""
    option_price: Decimal
    option_id: Optional[str] = None
    option_code: Optional[str] = None
    option_name: Optional[str] = None
    description: Optional[str] = None
    note: Optional[str] = None
    option_price_text: Optional[str] = None
    shipping_module_code: Optional[str] = None
    estimated_number_of_days: Optional[int] = None
    option_delivery_date: Optional[str] = None  # ISO date, set on final options
    shipping_quote_option_id: Optional[int] = None  # id of the persisted record


@dataclass(frozen=True)
class IntegrationModule:
    """Metadata describing a registered shipping module."""
    code: str
    name: str
    module_type: ModuleType = ModuleType.RATE
    regions: tuple = ("*",)

    def supports_country(self, country_code: str) -> bool:
        return "*" in self.regions or country_code.upper() in self.regions


@dataclass
class ShippingQuote:
    """In-progress (then final) result of one quote computation."""
    delivery: Delivery
    shipping_module_code: Optional[str] = None
    current_shipping_module: Optional[IntegrationModule] = None
    shipping_options: List[ShippingOption] = field(default_factory=list)
    selected_shipping_option: Optional[ShippingOption] = None
    free_shipping: bool = False
    free_shipping_amount: Optional[Decimal] = None
    handling_fees: Decimal = Decimal("0")
    apply_tax_on_shipping: bool = False
    reason_code: Optional[ReasonCode] = None
    warnings: List[ReasonCode] = field(default_factory=list)
    quote_informations: Dict[str, Any] = field(default_factory=dict)
    use_distance_module: bool = False

    @property
    def distance(self) -> Optional[float]:
        return self.quote_informations.get(DISTANCE_KEY)


@dataclass
class ShippingQuoteRequest:
    """Inputs of one quote computation."""
    cart_id: Optional[str]
    delivery: Delivery
    line_items: List[ShippingProduct]
    language: Optional[str] = None


@dataclass
class ShippingQuoteContext:
    """
    Everything a rate module or processor gets to see.

    quote is mutable; the rest is read-only for the duration of a call.
    """
    quote: ShippingQuote
    packages: List[PackageDetails]
    order_total: Decimal
    delivery: Delivery
    origin: ShippingOrigin
    store: "MerchantStore"
    module_configuration: Optional["ModuleConfiguration"]
    module: Optional[IntegrationModule]
    shipping_configuration: "MerchantShippingConfiguration"
    available_modules: List[IntegrationModule]
    language: str

    @property
    def total_weight(self) -> float:
        return sum(p.weight for p in self.packages)


@dataclass
class ShippingSummary:
    """What an order records about its shipping."""
    shipping: Decimal
    handling: Decimal
    taxable: bool
    free_shipping: bool
    shipping_module: Optional[str] = None
    shipping_option: Optional[str] = None
    shipping_option_code: Optional[str] = None
    shipping_quote_option_id: Optional[int] = None
    delivery: Optional[Delivery] = None

    @property
    def total(self) -> Decimal:
        return self.shipping + self.handling
