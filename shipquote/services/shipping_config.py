"""
Shipping Configuration Service

Loads and saves a store's shipping configuration:
- merchant shipping configuration (SHIPPING_CONFIG)
- module configurations (SHIPPING_MODULES), keyed by module code
- shipping origin (explicit override, else the store address)

Stored JSON that cannot be parsed raises ShippingConfigurationError; it is
never silently replaced by defaults. A store without any stored shipping
configuration gets the defaults.
"""
import json
import logging
from typing import Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from shipquote.core.exceptions import ShippingConfigurationError
from shipquote.models.shipping_config import (
    MerchantConfiguration,
    ShippingOriginRecord,
    SHIPPING_CONFIG_KEY,
    SHIPPING_MODULES_KEY,
)
from shipquote.models.store import MerchantStore
from shipquote.modules.shipping.processors import ProcessorFactory
from shipquote.modules.shipping.rate_modules import RateModuleFactory
from shipquote.modules.shipping.types import IntegrationModule, ShippingOrigin
from shipquote.schemas.shipping_config import (
    MerchantShippingConfiguration,
    ModuleConfiguration,
    ModuleConfigurations,
)

logger = logging.getLogger(__name__)


class ShippingConfigurationService:
    """Configuration loader and origin resolver backed by the database."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_value(self, store: MerchantStore, key: str) -> Optional[MerchantConfiguration]:
        result = await self.db.execute(
            select(MerchantConfiguration).where(
                and_(
                    MerchantConfiguration.store_id == store.id,
                    MerchantConfiguration.key == key,
                )
            )
        )
        return result.scalar_one_or_none()

    async def _set_value(self, store: MerchantStore, key: str, value: str) -> MerchantConfiguration:
        record = await self._get_value(store, key)
        if record is None:
            record = MerchantConfiguration(store_id=store.id, key=key, value=value)
            self.db.add(record)
        else:
            record.value = value
        await self.db.flush()
        return record

    # ==================== Merchant shipping configuration ====================

    async def get_merchant_shipping_configuration(self, store: MerchantStore) -> MerchantShippingConfiguration:
        """Parsed SHIPPING_CONFIG of the store (defaults when never saved)."""
        record = await self._get_value(store, SHIPPING_CONFIG_KEY)
        if record is None or not record.value:
            return MerchantShippingConfiguration()

        try:
            return MerchantShippingConfiguration.model_validate_json(record.value)
        except ValidationError as e:
            raise ShippingConfigurationError(
                message=f"Stored shipping configuration is invalid: {e.error_count()} error(s)",
                store_code=store.code,
                config_key=SHIPPING_CONFIG_KEY,
                details={"errors": e.errors(include_url=False)},
            ) from e

    async def save_merchant_shipping_configuration(
        self,
        store: MerchantStore,
        configuration: MerchantShippingConfiguration,
    ) -> None:
        for code in [*configuration.pre_processors, *configuration.post_processors]:
            if not ProcessorFactory.is_processor(code):
                raise ShippingConfigurationError(
                    message=f"Unknown shipping processor: {code}",
                    store_code=store.code,
                    config_key=SHIPPING_CONFIG_KEY,
                )
        await self._set_value(store, SHIPPING_CONFIG_KEY, configuration.model_dump_json())
        logger.info(f"Saved shipping configuration for store {store.code}")

    # ==================== Module configurations ====================

    async def get_module_configurations(self, store: MerchantStore) -> Dict[str, ModuleConfiguration]:
        """Module code -> configuration for every module the store configured."""
        record = await self._get_value(store, SHIPPING_MODULES_KEY)
        if record is None or not record.value:
            return {}

        try:
            raw = json.loads(record.value)
            return ModuleConfigurations.model_validate({"modules": raw}).modules
        except (json.JSONDecodeError, ValidationError) as e:
            raise ShippingConfigurationError(
                message=f"Stored shipping module configuration is invalid: {e}",
                store_code=store.code,
                config_key=SHIPPING_MODULES_KEY,
            ) from e

    async def _save_modules(self, store: MerchantStore, modules: Dict[str, ModuleConfiguration]) -> None:
        value = json.dumps({code: m.model_dump(mode="json") for code, m in modules.items()})
        await self._set_value(store, SHIPPING_MODULES_KEY, value)

    async def save_module_configuration(self, store: MerchantStore, configuration: ModuleConfiguration) -> None:
        """
        Add or replace one module configuration.

        Raises:
            ShippingConfigurationError if the module code is not registered or
            the rate module rejects its settings
        """
        code = configuration.module_code
        if RateModuleFactory.is_rate_module(code):
            RateModuleFactory.get_module(code).validate_configuration(configuration, store)
        elif not ProcessorFactory.is_processor(code):
            raise ShippingConfigurationError(
                message=f"Unknown shipping module: {code}",
                store_code=store.code,
                config_key=SHIPPING_MODULES_KEY,
            )

        modules = await self.get_module_configurations(store)
        modules[code] = configuration
        await self._save_modules(store, modules)
        logger.info(f"Saved shipping module {code} for store {store.code} (active={configuration.active})")

    async def remove_module_configuration(self, store: MerchantStore, module_code: str) -> bool:
        """Remove a module configuration. Returns False if it was not configured."""
        modules = await self.get_module_configurations(store)
        if module_code not in modules:
            return False
        del modules[module_code]
        await self._save_modules(store, modules)
        logger.info(f"Removed shipping module {module_code} from store {store.code}")
        return True

    # ==================== Origin ====================

    async def get_shipping_origin(self, store: MerchantStore) -> ShippingOrigin:
        """Active origin override, else the store address."""
        result = await self.db.execute(
            select(ShippingOriginRecord).where(ShippingOriginRecord.store_id == store.id)
        )
        record = result.scalar_one_or_none()

        if record is not None and record.active and record.country_code:
            return ShippingOrigin(
                country_code=record.country_code,
                postal_code=record.postal_code,
                state_province=record.state_province,
                city=record.city,
                address=record.address,
                latitude=record.latitude,
                longitude=record.longitude,
            )

        return ShippingOrigin(
            country_code=store.country_code,
            postal_code=store.postal_code,
            state_province=store.state_province,
            city=store.city,
            address=store.address,
            latitude=store.latitude,
            longitude=store.longitude,
        )

    # ==================== Metadata ====================

    @staticmethod
    def get_available_modules(country_code: Optional[str] = None) -> List[IntegrationModule]:
        """
        Metadata of every registered module (rate modules and processors).

        With a country, rate modules that cannot ship there are left out.
        """
        modules = RateModuleFactory.get_integration_modules()
        if country_code:
            modules = [m for m in modules if m.supports_country(country_code)]
        return modules + ProcessorFactory.get_integration_modules()
