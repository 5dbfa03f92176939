"""
Tests for settings, exceptions and response schemas.
"""
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from pydantic import ValidationError

from shipquote.core.config import Settings
from shipquote.core.exceptions import (
    InvalidModuleSwitchError,
    ShippingConfigurationError,
    ShippingError,
    ShippingModuleError,
)
from shipquote.modules.shipping.types import ReasonCode, ShippingOption, ShippingQuote, ShippingSummary
from shipquote.schemas.shipping import ShippingQuoteResponse, ShippingSummaryResponse


class TestSettings:

    @pytest.mark.parametrize("url", [
        "postgres://user:pass@db:5432/shop",
        "postgresql://user:pass@db:5432/shop",
    ])
    def test_database_url_uses_asyncpg(self, url):
        config = Settings(DATABASE_URL=url, ENVIRONMENT="development")
        assert config.DATABASE_URL == "postgresql+asyncpg://user:pass@db:5432/shop"

    def test_production_rejects_debug(self):
        with pytest.raises(ValidationError):
            Settings(DATABASE_URL="postgresql+asyncpg://u:p@db/shop", ENVIRONMENT="production", DEBUG=True)

    def test_production_rejects_localhost(self):
        with pytest.raises(ValidationError):
            Settings(DATABASE_URL="postgresql+asyncpg://u:p@localhost/shop", ENVIRONMENT="production")

    def test_shipping_defaults(self):
        config = Settings(DATABASE_URL="postgresql+asyncpg://u:p@db/shop", ENVIRONMENT="development")

        assert config.SHIPPING_DISTANCE_PROCESSOR_CODE == "shippingDistancePreProcessor"
        assert config.SHIPPING_PERSIST_QUOTES is True


class TestDatabaseSession:

    @pytest.fixture
    def session(self, monkeypatch):
        from shipquote.core import database

        session = AsyncMock()
        factory = MagicMock()
        factory.return_value.__aenter__.return_value = session
        monkeypatch.setattr(database, "get_session_factory", lambda: factory)
        return session

    @pytest.mark.asyncio
    async def test_commits_on_success(self, session):
        from shipquote.core.database import get_db_session

        async with get_db_session() as db:
            assert db is session

        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()
        session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rolls_back_on_error(self, session):
        from shipquote.core.database import get_db_session

        with pytest.raises(ShippingError):
            async with get_db_session():
                raise ShippingError("failed")

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()


class TestExceptions:

    def test_to_dict(self):
        error = ShippingModuleError("Provider down", module_code="weightBased")

        data = error.to_dict()

        assert data["error_type"] == "ShippingModuleError"
        assert data["code"] == "SHIPPING_MODULE_FAILED"
        assert data["details"] == {"module_code": "weightBased"}

    def test_invalid_switch_is_a_configuration_error(self):
        error = InvalidModuleSwitchError("nope", from_module="a", to_module="b", store_code="DEFAULT")

        assert isinstance(error, ShippingConfigurationError)
        assert isinstance(error, ShippingError)
        assert error.code == "SHIPPING_INVALID_MODULE_SWITCH"
        assert error.details == {
            "from_module": "a",
            "to_module": "b",
            "store_code": "DEFAULT",
            "config_key": None,
        }


class TestResponseSchemas:

    def test_quote_response(self, delivery):
        option = ShippingOption(
            option_id="a", option_name="Ground", option_price=Decimal("8.50"), option_price_text="$8.50"
        )
        quote = ShippingQuote(
            delivery=delivery,
            shipping_module_code="weightBased",
            shipping_options=[option],
            selected_shipping_option=option,
            warnings=[ReasonCode.NO_POSTAL_CODE],
        )

        response = ShippingQuoteResponse.from_quote(quote)

        assert response.selected_shipping_option.option_price == Decimal("8.50")
        assert response.shipping_options[0].option_price_text == "$8.50"
        assert response.warnings == ["NO_POSTAL_CODE"]
        assert response.reason_code is None
        assert response.delivery.country_code == "CA"

    def test_reason_code_response(self, delivery):
        quote = ShippingQuote(delivery=delivery, reason_code=ReasonCode.NO_SHIPPING_MODULE_CONFIGURED)

        response = ShippingQuoteResponse.from_quote(quote)

        assert response.reason_code == "NO_SHIPPING_MODULE_CONFIGURED"
        assert response.selected_shipping_option is None

    def test_summary_response(self):
        summary = ShippingSummary(
            shipping=Decimal("8.50"), handling=Decimal("2.00"), taxable=False, free_shipping=False
        )

        response = ShippingSummaryResponse.from_summary(summary)

        assert response.total == Decimal("10.50")
