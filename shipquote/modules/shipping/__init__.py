"""
Shipping Module

- Pluggable rate modules keyed by module code (rate_modules)
- Ordered pre/post processors keyed by module code (processors)
- Module-agnostic value objects (types)

Registries are imported from their subpackages, e.g.
    from shipquote.modules.shipping.rate_modules import RateModuleFactory
"""
from shipquote.modules.shipping.types import (
    Delivery,
    ShippingOrigin,
    ShippingProduct,
    ProductPrice,
    ShippingOption,
    ShippingQuote,
    ShippingQuoteRequest,
    ReasonCode,
)

__all__ = [
    "Delivery",
    "ShippingOrigin",
    "ShippingProduct",
    "ProductPrice",
    "ShippingOption",
    "ShippingQuote",
    "ShippingQuoteRequest",
    "ReasonCode",
]
