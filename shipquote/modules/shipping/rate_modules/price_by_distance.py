"""
Price By Distance Rate Module

Local delivery priced from the distance computed by the distance
pre-processor (quote_informations["distance"], km):

    price = base_price + price_per_km * distance

No distance, or a distance above max_distance_km, means no option.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from shipquote.core.exceptions import ShippingConfigurationError
from shipquote.modules.shipping.rate_modules import register_rate_module
from shipquote.modules.shipping.rate_modules.base import ShippingQuoteModule
from shipquote.modules.shipping.types import ShippingOption, ShippingQuoteContext

logger = logging.getLogger(__name__)


class DistanceSettings(BaseModel):
    base_price: Decimal = Field(Decimal("0"), ge=0)
    price_per_km: Decimal = Field(..., ge=0)
    max_distance_km: Optional[float] = Field(None, gt=0)
    estimated_days: Optional[int] = Field(None, ge=0)
    option_name: Optional[str] = None


@register_rate_module("priceByDistance")
class PriceByDistanceShippingQuote(ShippingQuoteModule):
    """Delivery priced by kilometre."""

    module_name = "Price by distance"

    def parse_settings(self, settings: dict, store_code: Optional[str] = None) -> DistanceSettings:
        try:
            return DistanceSettings.model_validate(settings)
        except ValidationError as e:
            raise ShippingConfigurationError(
                message=f"Invalid priceByDistance settings: {e.error_count()} error(s)",
                store_code=store_code,
                config_key=self.module_code,
                details={"errors": e.errors(include_url=False)},
            ) from e

    def validate_configuration(self, configuration, store) -> None:
        self.parse_settings(configuration.settings, store.code)

    async def get_shipping_quotes(self, context: ShippingQuoteContext) -> List[ShippingOption]:
        configuration = context.module_configuration
        rates = self.parse_settings(configuration.settings if configuration else {}, context.store.code)

        distance = context.quote.distance
        if distance is None:
            logger.warning("priceByDistance selected but no distance was computed")
            return []

        if rates.max_distance_km is not None and distance > rates.max_distance_km:
            logger.info(f"priceByDistance: {distance} km is beyond {rates.max_distance_km} km")
            return []

        price = rates.base_price + rates.price_per_km * Decimal(str(distance))
        price = price.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

        return [
            ShippingOption(
                option_id=f"{self.module_code}_{distance}",
                option_code=self.module_code,
                option_name=rates.option_name,
                option_price=price,
                description=f"{distance} km",
                estimated_number_of_days=rates.estimated_days,
            )
        ]
