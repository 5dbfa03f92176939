"""
Store Pick Up Rate Module

Single option: the customer collects the order. Priced from settings
(default free); the note tells where to pick up.
"""
from decimal import Decimal, InvalidOperation
from typing import List

from shipquote.core.exceptions import ShippingConfigurationError
from shipquote.modules.shipping.rate_modules import register_rate_module
from shipquote.modules.shipping.rate_modules.base import ShippingQuoteModule
from shipquote.modules.shipping.types import ShippingOption, ShippingQuoteContext


@register_rate_module("storePickUp")
class StorePickupShippingQuote(ShippingQuoteModule):
    """Pick up at the store (or the configured origin)."""

    module_name = "Store pick up"

    def _price(self, value, store_code=None) -> Decimal:
        try:
            price = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ShippingConfigurationError(
                message=f"Invalid store pick up price: {value!r}",
                store_code=store_code,
                config_key=self.module_code,
            ) from e
        if price < 0:
            raise ShippingConfigurationError(
                message="Store pick up price cannot be negative",
                store_code=store_code,
                config_key=self.module_code,
            )
        return price

    def validate_configuration(self, configuration, store) -> None:
        self._price(configuration.settings.get("price", "0"), store.code)

    async def get_shipping_quotes(self, context: ShippingQuoteContext) -> List[ShippingOption]:
        price = self._price(self.get_setting(context, "price", "0"), context.store.code)

        note = self.get_setting(context, "note")
        if not note:
            origin = context.origin
            note = ", ".join(
                part for part in (origin.address, origin.city, origin.state_province, origin.postal_code)
                if part
            )

        return [
            ShippingOption(
                option_id=self.module_code,
                option_code=self.module_code,
                option_name=self.get_setting(context, "option_name", self.module_name),
                option_price=price,
                note=note or None,
                estimated_number_of_days=self.get_setting(context, "estimated_days"),
            )
        ]
