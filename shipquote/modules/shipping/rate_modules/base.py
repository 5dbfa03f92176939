"""
Base Rate Module Interface

Every shipping quote provider implements this interface and registers itself
under a unique module code. The pipeline only ever uses one rate module per
computation (the store's active one, possibly switched by a pre-processor).
"""
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Tuple, TYPE_CHECKING

from shipquote.modules.shipping.types import (
    IntegrationModule,
    ModuleType,
    ShippingOption,
    ShippingQuoteContext,
)

if TYPE_CHECKING:
    from shipquote.models.store import MerchantStore
    from shipquote.schemas.shipping_config import ModuleConfiguration


class ShippingQuoteModule(ABC):
    """
    Abstract base class for all rate modules.

    Subclasses set module_code (done by the registry decorator), module_name
    and optionally regions.
    """

    module_code: str = ""
    module_name: str = "Generic shipping"
    regions: Tuple[str, ...] = ("*",)

    @classmethod
    def integration_module(cls) -> IntegrationModule:
        """Metadata describing this module."""
        return IntegrationModule(
            code=cls.module_code,
            name=cls.module_name,
            module_type=ModuleType.RATE,
            regions=tuple(cls.regions),
        )

    def validate_configuration(
        self,
        configuration: "ModuleConfiguration",
        store: "MerchantStore",
    ) -> None:
        """
        Check a module configuration before it is saved.

        Raises:
            ShippingConfigurationError if the settings are unusable
        """
        return None

    @abstractmethod
    async def get_shipping_quotes(self, context: ShippingQuoteContext) -> List[ShippingOption]:
        """
        Compute priced options for the packages in the context.

        Args:
            context: quote in progress plus packages, addresses, store and
                this module's configuration

        Returns:
            Raw options; an empty list means the module cannot ship this order
        """
        pass

    @staticmethod
    def get_setting(context: ShippingQuoteContext, key: str, default: Optional[Any] = None) -> Any:
        """Read a provider setting from the module configuration."""
        configuration = context.module_configuration
        if not configuration:
            return default
        return configuration.settings.get(key, default)
