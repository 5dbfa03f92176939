"""
Base Pre/Post Processor Interface

Processors are hooks run in configured order around the rate module:
- pre-processors may enrich the quote (distance) or switch the rate module
  by setting quote.current_shipping_module
- post-processors adjust the final options (surcharges, analytics)

A processor is never a valid primary rate provider.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional, TYPE_CHECKING

from shipquote.modules.shipping.types import IntegrationModule, ModuleType, ShippingQuoteContext

if TYPE_CHECKING:
    from shipquote.schemas.shipping_config import ModuleConfiguration


class ShippingQuotePrePostProcessModule(ABC):
    """Abstract base class for all processors."""

    module_code: str = ""
    module_name: str = "Generic processor"
    processor_type: ModuleType = ModuleType.PRE_PROCESSOR

    def __init__(self, configuration: Optional["ModuleConfiguration"] = None):
        """
        Args:
            configuration: this processor's own module configuration, if the
                store has one
        """
        self._config = configuration

    @property
    def configuration(self) -> Optional["ModuleConfiguration"]:
        return self._config

    @classmethod
    def integration_module(cls) -> IntegrationModule:
        return IntegrationModule(
            code=cls.module_code,
            name=cls.module_name,
            module_type=cls.processor_type,
        )

    @abstractmethod
    async def process(self, context: ShippingQuoteContext) -> None:
        """Mutate context.quote in place."""
        pass

    def get_config_value(self, key: str, default: Any = None) -> Any:
        """Read a setting from this processor's own configuration."""
        if not self._config:
            return default
        return self._config.settings.get(key, default)
