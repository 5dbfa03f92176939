"""
Tests for the shipping configuration service.
"""
import json
import pytest
from decimal import Decimal

from shipquote.core.exceptions import ShippingConfigurationError
from shipquote.models.shipping_config import (
    MerchantConfiguration,
    ShippingOriginRecord,
    SHIPPING_CONFIG_KEY,
    SHIPPING_MODULES_KEY,
)
from shipquote.modules.shipping.types import ModuleType
from shipquote.schemas.shipping_config import (
    MerchantShippingConfiguration,
    ModuleConfiguration,
    ShippingOptionPriceType,
    ShippingType,
)
from shipquote.services.shipping_config import ShippingConfigurationService


def stored(key, value):
    return MerchantConfiguration(store_id=1, key=key, value=value)


@pytest.fixture
def config_db_service(mock_db):
    return ShippingConfigurationService(mock_db)


class TestMerchantShippingConfiguration:

    @pytest.mark.asyncio
    async def test_defaults_when_not_stored(self, config_db_service, mock_db, store, db_result):
        mock_db.execute.return_value = db_result(None)

        configuration = await config_db_service.get_merchant_shipping_configuration(store)

        assert configuration.shipping_type == ShippingType.NATIONAL
        assert configuration.option_price_type == ShippingOptionPriceType.ALL
        assert configuration.free_shipping_enabled is False

    @pytest.mark.asyncio
    async def test_stored_configuration(self, config_db_service, mock_db, store, db_result):
        value = json.dumps({
            "shipping_type": "INTERNATIONAL",
            "supported_countries": ["us", " fr "],
            "free_shipping_enabled": True,
            "free_shipping_threshold": "75.00",
            "handling_fees": "1.50",
            "option_price_type": "CHEAPEST",
        })
        mock_db.execute.return_value = db_result(stored(SHIPPING_CONFIG_KEY, value))

        configuration = await config_db_service.get_merchant_shipping_configuration(store)

        assert configuration.supported_countries == ["US", "FR"]
        assert configuration.free_shipping_threshold == Decimal("75.00")
        assert configuration.handling_fees == Decimal("1.50")
        assert configuration.option_price_type == ShippingOptionPriceType.CHEAPEST

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [
        "{not json",
        json.dumps({"shipping_type": "GALACTIC"}),
        json.dumps({"free_shipping_enabled": True}),
    ])
    async def test_invalid_configuration_raises(self, config_db_service, mock_db, store, db_result, value):
        mock_db.execute.return_value = db_result(stored(SHIPPING_CONFIG_KEY, value))

        with pytest.raises(ShippingConfigurationError) as exc_info:
            await config_db_service.get_merchant_shipping_configuration(store)

        assert exc_info.value.details["config_key"] == SHIPPING_CONFIG_KEY
        assert exc_info.value.details["store_code"] == "DEFAULT"

    @pytest.mark.asyncio
    async def test_save_rejects_unknown_processor(self, config_db_service, store):
        configuration = MerchantShippingConfiguration(pre_processors=["doesNotExist"])

        with pytest.raises(ShippingConfigurationError):
            await config_db_service.save_merchant_shipping_configuration(store, configuration)

    @pytest.mark.asyncio
    async def test_save_creates_record(self, config_db_service, mock_db, store, db_result):
        mock_db.execute.return_value = db_result(None)
        configuration = MerchantShippingConfiguration(pre_processors=["shippingDistancePreProcessor"])

        await config_db_service.save_merchant_shipping_configuration(store, configuration)

        record = mock_db.add.call_args[0][0]
        assert record.key == SHIPPING_CONFIG_KEY
        assert json.loads(record.value)["pre_processors"] == ["shippingDistancePreProcessor"]
        mock_db.flush.assert_awaited()


class TestModuleConfigurations:

    @pytest.mark.asyncio
    async def test_not_stored(self, config_db_service, mock_db, store, db_result):
        mock_db.execute.return_value = db_result(None)
        assert await config_db_service.get_module_configurations(store) == {}

    @pytest.mark.asyncio
    async def test_stored_modules(self, config_db_service, mock_db, store, db_result):
        value = json.dumps({
            "weightBased": {"module_code": "weightBased", "active": True, "priority": 2},
        })
        mock_db.execute.return_value = db_result(stored(SHIPPING_MODULES_KEY, value))

        modules = await config_db_service.get_module_configurations(store)

        assert modules["weightBased"].active is True
        assert modules["weightBased"].priority == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [
        "[1, 2",
        json.dumps({"weightBased": {"module_code": "storePickUp"}}),
    ])
    async def test_invalid_modules_raise(self, config_db_service, mock_db, store, db_result, value):
        mock_db.execute.return_value = db_result(stored(SHIPPING_MODULES_KEY, value))

        with pytest.raises(ShippingConfigurationError):
            await config_db_service.get_module_configurations(store)

    @pytest.mark.asyncio
    async def test_save_unknown_module(self, config_db_service, store):
        with pytest.raises(ShippingConfigurationError):
            await config_db_service.save_module_configuration(
                store, ModuleConfiguration(module_code="carrierPigeon", active=True)
            )

    @pytest.mark.asyncio
    async def test_save_validates_rate_module_settings(self, config_db_service, mock_db, store):
        with pytest.raises(ShippingConfigurationError):
            await config_db_service.save_module_configuration(
                store, ModuleConfiguration(module_code="priceByDistance", settings={"base_price": "1"})
            )
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_save_new_module(self, config_db_service, mock_db, store, db_result):
        mock_db.execute.return_value = db_result(None)

        await config_db_service.save_module_configuration(
            store, ModuleConfiguration(module_code="storePickUp", active=True, settings={"price": "2"})
        )

        record = mock_db.add.call_args[0][0]
        saved = json.loads(record.value)
        assert saved["storePickUp"]["active"] is True
        assert saved["storePickUp"]["settings"] == {"price": "2"}

    @pytest.mark.asyncio
    async def test_save_updates_existing_record(self, config_db_service, mock_db, store, db_result):
        existing = stored(SHIPPING_MODULES_KEY, json.dumps({
            "weightBased": {"module_code": "weightBased", "active": True},
        }))
        mock_db.execute.return_value = db_result(existing)

        await config_db_service.save_module_configuration(
            store, ModuleConfiguration(module_code="shippingDistancePreProcessor", active=True)
        )

        mock_db.add.assert_not_called()
        assert set(json.loads(existing.value)) == {"weightBased", "shippingDistancePreProcessor"}

    @pytest.mark.asyncio
    async def test_remove_module(self, config_db_service, mock_db, store, db_result):
        existing = stored(SHIPPING_MODULES_KEY, json.dumps({
            "weightBased": {"module_code": "weightBased", "active": True},
        }))
        mock_db.execute.return_value = db_result(existing)

        assert await config_db_service.remove_module_configuration(store, "storePickUp") is False
        assert await config_db_service.remove_module_configuration(store, "weightBased") is True
        assert json.loads(existing.value) == {}


class TestShippingOrigin:

    @pytest.mark.asyncio
    async def test_store_address_without_override(self, config_db_service, mock_db, store, db_result):
        mock_db.execute.return_value = db_result(None)

        origin = await config_db_service.get_shipping_origin(store)

        assert origin.country_code == "CA"
        assert origin.city == "Toronto"
        assert origin.latitude == store.latitude

    @pytest.mark.asyncio
    async def test_active_override(self, config_db_service, mock_db, store, db_result):
        record = ShippingOriginRecord(
            store_id=1, active=True, country_code="CA", city="Ottawa", postal_code="K1A 0A6",
            latitude=45.42, longitude=-75.69,
        )
        mock_db.execute.return_value = db_result(record)

        origin = await config_db_service.get_shipping_origin(store)

        assert origin.city == "Ottawa"
        assert origin.postal_code == "K1A 0A6"

    @pytest.mark.asyncio
    async def test_inactive_override_is_ignored(self, config_db_service, mock_db, store, db_result):
        record = ShippingOriginRecord(store_id=1, active=False, country_code="CA", city="Ottawa")
        mock_db.execute.return_value = db_result(record)

        origin = await config_db_service.get_shipping_origin(store)

        assert origin.city == "Toronto"


class TestAvailableModules:

    def test_all_modules(self):
        modules = {m.code: m for m in ShippingConfigurationService.get_available_modules()}

        assert modules["weightBased"].module_type == ModuleType.RATE
        assert modules["remoteAreaSurcharge"].module_type == ModuleType.POST_PROCESSOR

    def test_filtered_by_country(self, monkeypatch):
        from shipquote.modules.shipping.rate_modules import _RATE_MODULE_REGISTRY
        from shipquote.modules.shipping.rate_modules.store_pickup import StorePickupShippingQuote

        class LocalPickup(StorePickupShippingQuote):
            module_code = "localPickup"
            regions = ("US",)

        monkeypatch.setitem(_RATE_MODULE_REGISTRY, "localPickup", LocalPickup)

        codes = {m.code for m in ShippingConfigurationService.get_available_modules("CA")}

        assert "localPickup" not in codes
        assert "storePickUp" in codes
        assert "shippingDecisionPreProcessor" in codes
