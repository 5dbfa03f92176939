"""
Rate Module Registry and Factory

- register_rate_module binds a module code to its implementation class
- RateModuleFactory resolves codes to instances once per computation
- Processor codes live in a separate registry and are never rate modules
"""
from typing import Dict, List, Optional, Type
import logging

from shipquote.modules.shipping.rate_modules.base import ShippingQuoteModule
from shipquote.modules.shipping.types import IntegrationModule

logger = logging.getLogger(__name__)

# Registry of rate module implementations
_RATE_MODULE_REGISTRY: Dict[str, Type[ShippingQuoteModule]] = {}


def register_rate_module(module_code: str):
    """
    Decorator to register a rate module implementation.

    Usage:
        @register_rate_module("weightBased")
        class WeightBasedShippingQuote(ShippingQuoteModule):
            ...
    """
    def decorator(cls: Type[ShippingQuoteModule]):
        cls.module_code = module_code
        _RATE_MODULE_REGISTRY[module_code] = cls
        logger.debug(f"Registered rate module: {module_code} -> {cls.__name__}")
        return cls
    return decorator


class RateModuleFactory:
    """Factory for rate module instances."""

    @classmethod
    def get_module(cls, module_code: str) -> Optional[ShippingQuoteModule]:
        """
        Get a rate module instance.

        Returns:
            ShippingQuoteModule instance or None if no implementation is registered
        """
        module_cls = _RATE_MODULE_REGISTRY.get(module_code)
        if not module_cls:
            logger.warning(f"No implementation registered for rate module: {module_code}")
            return None
        return module_cls()

    @classmethod
    def is_rate_module(cls, module_code: str) -> bool:
        return module_code in _RATE_MODULE_REGISTRY

    @classmethod
    def get_registered_modules(cls) -> List[str]:
        """Get list of all registered rate module codes."""
        return list(_RATE_MODULE_REGISTRY.keys())

    @classmethod
    def get_integration_modules(cls) -> List[IntegrationModule]:
        """Metadata of every registered rate module."""
        return [module_cls.integration_module() for module_cls in _RATE_MODULE_REGISTRY.values()]


def get_rate_module(module_code: str) -> Optional[ShippingQuoteModule]:
    """
    Convenience function to get a rate module.

    Equivalent to RateModuleFactory.get_module().
    """
    return RateModuleFactory.get_module(module_code)


# Import modules to trigger registration
# These imports must be at the bottom to avoid circular imports
from shipquote.modules.shipping.rate_modules.weight_based import WeightBasedShippingQuote  # noqa: E402, F401
from shipquote.modules.shipping.rate_modules.price_by_distance import PriceByDistanceShippingQuote  # noqa: E402, F401
from shipquote.modules.shipping.rate_modules.store_pickup import StorePickupShippingQuote  # noqa: E402, F401
