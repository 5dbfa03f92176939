"""
Shipping Quote Schemas

Pydantic response models for shipping quotes and summaries, built from the
pipeline's dataclasses.
"""
from decimal import Decimal
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field

from shipquote.modules.shipping.types import ShippingQuote, ShippingSummary


class DeliveryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    country_code: str
    postal_code: Optional[str] = None
    state_province: Optional[str] = None
    city: Optional[str] = None


class ShippingOptionResponse(BaseModel):
    """A shipping option offered to the customer."""
    model_config = ConfigDict(from_attributes=True)

    option_id: Optional[str] = None
    option_code: Optional[str] = None
    option_name: Optional[str] = None
    description: Optional[str] = None
    note: Optional[str] = None
    option_price: Decimal
    option_price_text: Optional[str] = None
    shipping_module_code: Optional[str] = None
    estimated_number_of_days: Optional[int] = None
    option_delivery_date: Optional[str] = Field(None, description="ISO date")
    shipping_quote_option_id: Optional[int] = None


class ShippingQuoteResponse(BaseModel):
    """Result of a quote computation."""
    shipping_module_code: Optional[str] = None
    shipping_options: List[ShippingOptionResponse] = []
    selected_shipping_option: Optional[ShippingOptionResponse] = None
    free_shipping: bool = False
    free_shipping_amount: Optional[Decimal] = None
    handling_fees: Decimal = Decimal("0")
    apply_tax_on_shipping: bool = False
    reason_code: Optional[str] = None
    warnings: List[str] = []
    quote_informations: Dict[str, Any] = {}
    delivery: DeliveryResponse

    @classmethod
    def from_quote(cls, quote: ShippingQuote) -> "ShippingQuoteResponse":
        selected = quote.selected_shipping_option
        return cls(
            shipping_module_code=quote.shipping_module_code,
            shipping_options=[ShippingOptionResponse.model_validate(o) for o in quote.shipping_options],
            selected_shipping_option=ShippingOptionResponse.model_validate(selected) if selected else None,
            free_shipping=quote.free_shipping,
            free_shipping_amount=quote.free_shipping_amount,
            handling_fees=quote.handling_fees,
            apply_tax_on_shipping=quote.apply_tax_on_shipping,
            reason_code=quote.reason_code.value if quote.reason_code else None,
            warnings=[w.value for w in quote.warnings],
            quote_informations=dict(quote.quote_informations),
            delivery=DeliveryResponse.model_validate(quote.delivery),
        )


class ShippingSummaryResponse(BaseModel):
    """Shipping recorded on an order."""
    model_config = ConfigDict(from_attributes=True)

    shipping: Decimal
    handling: Decimal
    total: Decimal
    taxable: bool
    free_shipping: bool
    shipping_module: Optional[str] = None
    shipping_option: Optional[str] = None
    shipping_option_code: Optional[str] = None
    shipping_quote_option_id: Optional[int] = None

    @classmethod
    def from_summary(cls, summary: ShippingSummary) -> "ShippingSummaryResponse":
        return cls.model_validate(summary)
