from shipquote.models.store import MerchantStore
from shipquote.models.shipping_config import (
    MerchantConfiguration,
    ShippingOriginRecord,
    SHIPPING_CONFIG_KEY,
    SHIPPING_MODULES_KEY,
)
from shipquote.models.country import CountryDescription
from shipquote.models.quote import ShippingQuoteRecord

__all__ = [
    "MerchantStore",
    "MerchantConfiguration",
    "ShippingOriginRecord",
    "SHIPPING_CONFIG_KEY",
    "SHIPPING_MODULES_KEY",
    "CountryDescription",
    "ShippingQuoteRecord",
]
