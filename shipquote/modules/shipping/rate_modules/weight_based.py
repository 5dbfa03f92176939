"""
Weight Based Rate Module

Merchant-maintained rate table: regions (lists of countries) each holding
ascending weight brackets. The total weight of all packages picks the first
bracket whose max_weight is at least that weight.

Settings example:
    {
      "regions": [
        {"name": "north-america", "countries": ["CA", "US"], "estimated_days": 5,
         "quotes": [{"max_weight": 5, "price": "10.00"}, {"max_weight": 20, "price": "25.00"}]}
      ]
    }
"""
import logging
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from shipquote.core.exceptions import ShippingConfigurationError
from shipquote.modules.shipping.rate_modules import register_rate_module
from shipquote.modules.shipping.rate_modules.base import ShippingQuoteModule
from shipquote.modules.shipping.types import ShippingOption, ShippingQuoteContext

logger = logging.getLogger(__name__)


class WeightBracket(BaseModel):
    max_weight: float = Field(..., gt=0)
    price: Decimal = Field(..., ge=0)


class WeightRegion(BaseModel):
    name: str
    countries: List[str]
    estimated_days: Optional[int] = Field(None, ge=0)
    quotes: List[WeightBracket] = Field(default_factory=list)

    @field_validator("countries")
    @classmethod
    def normalize_countries(cls, v):
        return [c.upper() for c in v]

    @field_validator("quotes")
    @classmethod
    def sort_quotes(cls, v):
        return sorted(v, key=lambda q: q.max_weight)


class WeightBasedSettings(BaseModel):
    regions: List[WeightRegion] = Field(default_factory=list)


@register_rate_module("weightBased")
class WeightBasedShippingQuote(ShippingQuoteModule):
    """Price by total weight and destination region."""

    module_name = "Weight based shipping"

    def parse_settings(self, settings: dict, store_code: Optional[str] = None) -> WeightBasedSettings:
        try:
            return WeightBasedSettings.model_validate(settings)
        except ValidationError as e:
            raise ShippingConfigurationError(
                message=f"Invalid weightBased rate table: {e.error_count()} error(s)",
                store_code=store_code,
                config_key=self.module_code,
                details={"errors": e.errors(include_url=False)},
            ) from e

    def validate_configuration(self, configuration, store) -> None:
        self.parse_settings(configuration.settings, store.code)

    async def get_shipping_quotes(self, context: ShippingQuoteContext) -> List[ShippingOption]:
        configuration = context.module_configuration
        table = self.parse_settings(configuration.settings if configuration else {}, context.store.code)

        country = context.delivery.country_code.upper()
        region = next((r for r in table.regions if country in r.countries), None)
        if region is None:
            logger.info(f"weightBased: no region configured for {country}")
            return []

        weight = context.total_weight
        bracket = next((q for q in region.quotes if weight <= q.max_weight), None)
        if bracket is None:
            logger.info(f"weightBased: {weight} exceeds the heaviest bracket of region {region.name}")
            return []

        return [
            ShippingOption(
                option_id=f"{self.module_code}_{region.name}",
                option_code=self.module_code,
                option_price=bracket.price,
                description=region.name,
                estimated_number_of_days=region.estimated_days,
            )
        ]
