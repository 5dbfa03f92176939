"""
Tests for quote persistence and country name lookup.
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock

from shipquote.models.country import CountryDescription
from shipquote.models.quote import ShippingQuoteRecord
from shipquote.modules.shipping.types import ShippingOption, ShippingQuote
from shipquote.services.country_service import CountryService
from shipquote.services.quote_persister import QuotePersister


@pytest.fixture
def id_assigning_db(mock_db):
    """Mock session that gives added records sequential ids on flush."""
    added = []
    mock_db.add.side_effect = added.append

    async def flush():
        for number, record in enumerate(added, start=1):
            record.id = number

    mock_db.flush.side_effect = flush
    return mock_db


class TestQuotePersister:

    @pytest.fixture
    def quote(self, delivery):
        options = [
            ShippingOption(
                option_id="a", option_code="ground", option_name="Ground",
                option_price=Decimal("8.50"), shipping_module_code="weightBased",
                estimated_number_of_days=3, option_delivery_date="2024-06-18",
            ),
            ShippingOption(
                option_id="b", option_code="express", option_name="Express",
                option_price=Decimal("15.00"), shipping_module_code="weightBased",
            ),
        ]
        return ShippingQuote(
            delivery=delivery,
            shipping_module_code="weightBased",
            shipping_options=options,
            selected_shipping_option=options[0],
            handling_fees=Decimal("2.00"),
            apply_tax_on_shipping=True,
        )

    @pytest.mark.asyncio
    async def test_one_record_per_option(self, id_assigning_db, store, quote):
        records = await QuotePersister(id_assigning_db).persist_options(quote, store, "cart-1", "10.0.0.1")

        assert len(records) == 2
        assert id_assigning_db.add.call_count == 2

        first = records[0]
        assert isinstance(first, ShippingQuoteRecord)
        assert first.store_id == store.id
        assert first.cart_id == "cart-1"
        assert first.module_code == "weightBased"
        assert first.option_price == Decimal("8.50")
        assert first.handling == Decimal("2.00")
        assert first.tax_on_shipping is True
        assert first.ip_address == "10.0.0.1"
        assert first.delivery_country_code == "CA"
        assert first.option_delivery_date == "2024-06-18"
        assert first.quote_date is not None

    @pytest.mark.asyncio
    async def test_record_ids_are_stamped_on_options(self, id_assigning_db, store, quote):
        await QuotePersister(id_assigning_db).persist_options(quote, store, "cart-1")

        assert [o.shipping_quote_option_id for o in quote.shipping_options] == [1, 2]
        assert quote.selected_shipping_option.shipping_quote_option_id == 1

    @pytest.mark.asyncio
    async def test_get_quotes_for_cart(self, mock_db):
        record = ShippingQuoteRecord(cart_id="cart-1", module_code="weightBased", option_price=Decimal("1"))
        result = MagicMock()
        result.scalars.return_value.all.return_value = [record]
        mock_db.execute.return_value = result

        assert await QuotePersister(mock_db).get_quotes_for_cart("cart-1") == [record]


class TestCountryService:

    @pytest.mark.asyncio
    async def test_name_is_cached(self, mock_db, db_result):
        mock_db.execute.return_value = db_result(CountryDescription(iso_code="CA", language="fr", name="Canada"))
        service = CountryService(mock_db)

        assert await service.get_country_name("ca", "fr_CA") == "Canada"
        assert await service.get_country_name("CA", "fr") == "Canada"
        assert mock_db.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_unknown_country(self, mock_db, db_result):
        mock_db.execute.return_value = db_result(None)

        assert await CountryService(mock_db).get_country_name("ZZ", "en") is None
