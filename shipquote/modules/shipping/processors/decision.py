"""
Shipping Decision Pre-Processor

Picks the rate module dynamically from an ordered rule table kept in this
processor's own module configuration. The first rule whose conditions all
hold wins; absent conditions always hold.

Settings example:
    {
      "rules": [
        {"countries": ["CA"], "max_distance": 25, "module": "priceByDistance"},
        {"max_weight": 0.5, "module": "storePickUp"}
      ]
    }

Rules run after the distance pre-processor when both are configured, so
max_distance can use the computed distance.
"""
import logging
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from shipquote.core.exceptions import ShippingConfigurationError
from shipquote.modules.shipping.processors import register_processor
from shipquote.modules.shipping.processors.base import ShippingQuotePrePostProcessModule
from shipquote.modules.shipping.types import ModuleType, ShippingQuoteContext

logger = logging.getLogger(__name__)


class DecisionRule(BaseModel):
    module: str
    countries: List[str] = Field(default_factory=list)
    max_distance: Optional[float] = None
    max_weight: Optional[float] = None
    min_order_total: Optional[Decimal] = None

    @field_validator("countries")
    @classmethod
    def normalize_countries(cls, v):
        return [c.upper() for c in v]

    def matches(self, context: ShippingQuoteContext) -> bool:
        if self.countries and context.delivery.country_code.upper() not in self.countries:
            return False
        if self.max_distance is not None:
            distance = context.quote.distance
            if distance is None or distance > self.max_distance:
                return False
        if self.max_weight is not None and context.total_weight > self.max_weight:
            return False
        if self.min_order_total is not None and context.order_total < self.min_order_total:
            return False
        return True


@register_processor("shippingDecisionPreProcessor")
class ShippingDecisionPreProcessor(ShippingQuotePrePostProcessModule):
    """Rule based rate module selection."""

    module_name = "Shipping decision rules"
    processor_type = ModuleType.PRE_PROCESSOR

    def _rules(self) -> List[DecisionRule]:
        raw = self.get_config_value("rules", [])
        try:
            return [DecisionRule.model_validate(rule) for rule in raw]
        except ValidationError as e:
            raise ShippingConfigurationError(
                message=f"Invalid shipping decision rules: {e.error_count()} error(s)",
                config_key=self.module_code,
                details={"errors": e.errors(include_url=False)},
            ) from e

    async def process(self, context: ShippingQuoteContext) -> None:
        for rule in self._rules():
            if not rule.matches(context):
                continue

            module = next(
                (
                    m for m in context.available_modules
                    if m.code == rule.module and m.module_type == ModuleType.RATE
                ),
                None,
            )
            if module is None:
                raise ShippingConfigurationError(
                    message=f"Decision rule targets unknown rate module: {rule.module}",
                    store_code=context.store.code,
                    config_key=self.module_code,
                )

            logger.info(f"Decision rules selected rate module {module.code}")
            context.quote.current_shipping_module = module
            return
