"""
Processor Registry and Factory

Pre and post processors are registered by module code. The merchant shipping
configuration lists which ones run, and in which order; codes are resolved
to instances once at the start of each computation.
"""
from typing import Dict, List, Optional, Type
import logging

from shipquote.core.exceptions import ShippingConfigurationError
from shipquote.modules.shipping.processors.base import ShippingQuotePrePostProcessModule
from shipquote.modules.shipping.types import IntegrationModule, ModuleType

logger = logging.getLogger(__name__)

# Registry of processor implementations
_PROCESSOR_REGISTRY: Dict[str, Type[ShippingQuotePrePostProcessModule]] = {}


def register_processor(module_code: str):
    """
    Decorator to register a processor implementation.

    Usage:
        @register_processor("shippingDistancePreProcessor")
        class ShippingDistancePreProcessor(ShippingQuotePrePostProcessModule):
            ...
    """
    def decorator(cls: Type[ShippingQuotePrePostProcessModule]):
        cls.module_code = module_code
        _PROCESSOR_REGISTRY[module_code] = cls
        logger.debug(f"Registered processor: {module_code} -> {cls.__name__}")
        return cls
    return decorator


class ProcessorFactory:
    """Factory for processor instances."""

    @classmethod
    def is_processor(cls, module_code: str) -> bool:
        return module_code in _PROCESSOR_REGISTRY

    @classmethod
    def create(
        cls,
        module_code: str,
        configuration=None,
        expected_type: Optional[ModuleType] = None,
    ) -> ShippingQuotePrePostProcessModule:
        """
        Instantiate a processor.

        Raises:
            ShippingConfigurationError if the code is unknown or the processor
            is of the wrong kind (pre vs post)
        """
        processor_cls = _PROCESSOR_REGISTRY.get(module_code)
        if not processor_cls:
            raise ShippingConfigurationError(
                message=f"Unknown shipping processor: {module_code}",
                config_key=module_code,
            )
        if expected_type is not None and processor_cls.processor_type != expected_type:
            raise ShippingConfigurationError(
                message=(
                    f"Processor {module_code} is a {processor_cls.processor_type.value}, "
                    f"not a {expected_type.value}"
                ),
                config_key=module_code,
            )
        return processor_cls(configuration)

    @classmethod
    def get_registered_processors(cls) -> List[str]:
        return list(_PROCESSOR_REGISTRY.keys())

    @classmethod
    def get_integration_modules(cls) -> List[IntegrationModule]:
        return [processor_cls.integration_module() for processor_cls in _PROCESSOR_REGISTRY.values()]


# Import processors to trigger registration
from shipquote.modules.shipping.processors.distance import ShippingDistancePreProcessor  # noqa: E402, F401
from shipquote.modules.shipping.processors.decision import ShippingDecisionPreProcessor  # noqa: E402, F401
from shipquote.modules.shipping.processors.surcharge import RemoteAreaSurchargePostProcessor  # noqa: E402, F401
