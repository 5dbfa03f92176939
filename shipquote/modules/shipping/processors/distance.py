"""
Shipping Distance Pre-Processor

Computes the great-circle distance (km) between the shipping origin and the
delivery address and stores it in quote_informations["distance"], where
distance-priced modules pick it up.

Only runs for the rate modules that need it (allowed_modules) and only when
both addresses carry coordinates.
"""
import logging
import math
from typing import List

from shipquote.modules.shipping.processors import register_processor
from shipquote.modules.shipping.processors.base import ShippingQuotePrePostProcessModule
from shipquote.modules.shipping.types import DISTANCE_KEY, ModuleType, ShippingQuoteContext

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0088
DEFAULT_ALLOWED_MODULES = ["priceByDistance"]


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


@register_processor("shippingDistancePreProcessor")
class ShippingDistancePreProcessor(ShippingQuotePrePostProcessModule):
    """Origin to delivery distance."""

    module_name = "Shipping distance"
    processor_type = ModuleType.PRE_PROCESSOR

    @property
    def allowed_modules(self) -> List[str]:
        return self.get_config_value("allowed_modules", DEFAULT_ALLOWED_MODULES)

    async def process(self, context: ShippingQuoteContext) -> None:
        module = context.quote.current_shipping_module or context.module
        if module is None or module.code not in self.allowed_modules:
            return

        origin, delivery = context.origin, context.delivery
        if None in (origin.latitude, origin.longitude, delivery.latitude, delivery.longitude):
            logger.info("Distance not computed: origin or delivery has no coordinates")
            return

        distance = haversine_km(origin.latitude, origin.longitude, delivery.latitude, delivery.longitude)
        context.quote.quote_informations[DISTANCE_KEY] = round(distance, 2)
        logger.debug(f"Shipping distance {distance:.2f} km for module {module.code}")
