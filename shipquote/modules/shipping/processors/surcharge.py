"""
Remote Area Surcharge Post-Processor

Adds a flat surcharge to every final option when the delivery postal code
falls in a remote area (islands, far north...). Remote areas are postal code
prefixes, optionally limited to some countries.

Settings example:
    {"surcharge": "3.00", "postal_prefixes": ["X0", "Y1"], "countries": ["CA"]}
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import List

from shipquote.core.exceptions import ShippingConfigurationError
from shipquote.modules.shipping.processors import register_processor
from shipquote.modules.shipping.processors.base import ShippingQuotePrePostProcessModule
from shipquote.modules.shipping.types import ModuleType, ShippingQuoteContext
from shipquote.services.pricing import format_amount_with_currency

logger = logging.getLogger(__name__)


@register_processor("remoteAreaSurcharge")
class RemoteAreaSurchargePostProcessor(ShippingQuotePrePostProcessModule):
    """Surcharge for remote delivery areas."""

    module_name = "Remote area surcharge"
    processor_type = ModuleType.POST_PROCESSOR

    @property
    def surcharge(self) -> Decimal:
        value = self.get_config_value("surcharge", "0")
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ShippingConfigurationError(
                message=f"Invalid remote area surcharge: {value!r}",
                config_key=self.module_code,
            ) from e

    def is_remote_area(self, country_code: str, postal_code: str) -> bool:
        if not postal_code:
            return False
        countries: List[str] = [c.upper() for c in self.get_config_value("countries", [])]
        if countries and country_code.upper() not in countries:
            return False
        normalized = postal_code.replace(" ", "").upper()
        prefixes = self.get_config_value("postal_prefixes", [])
        return any(normalized.startswith(prefix.replace(" ", "").upper()) for prefix in prefixes)

    async def process(self, context: ShippingQuoteContext) -> None:
        delivery = context.delivery
        if not self.is_remote_area(delivery.country_code, delivery.postal_code):
            return

        surcharge = self.surcharge
        if surcharge <= 0:
            return

        for option in context.quote.shipping_options:
            option.option_price = option.option_price + surcharge
            option.option_price_text = format_amount_with_currency(context.store, option.option_price)

        context.quote.quote_informations["remote_area_surcharge"] = surcharge
        logger.info(f"Remote area surcharge {surcharge} applied to {delivery.postal_code}")
