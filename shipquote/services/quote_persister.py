"""
Quote Persister

Writes one ShippingQuoteRecord per finalized shipping option. Records are
never updated afterwards; the record id is stamped back on the option so an
order can later refer to the exact quote the customer picked.
"""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shipquote.core.utils import utcnow
from shipquote.models.quote import ShippingQuoteRecord
from shipquote.models.store import MerchantStore
from shipquote.modules.shipping.types import ShippingQuote

logger = logging.getLogger(__name__)


class QuotePersister:
    """Stores finalized quotes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def persist(self, record: ShippingQuoteRecord) -> int:
        """Insert a record and return its id."""
        self.db.add(record)
        await self.db.flush()
        return record.id

    async def persist_options(
        self,
        quote: ShippingQuote,
        store: MerchantStore,
        cart_id: Optional[str],
        ip_address: Optional[str] = None,
    ) -> List[ShippingQuoteRecord]:
        """Persist every final option of a quote."""
        now = utcnow()
        delivery = quote.delivery
        records = []

        for option in quote.shipping_options:
            record = ShippingQuoteRecord(
                store_id=store.id,
                cart_id=cart_id,
                module_code=option.shipping_module_code or quote.shipping_module_code,
                option_code=option.option_code,
                option_name=option.option_name,
                option_price=option.option_price,
                option_delivery_date=option.option_delivery_date,
                estimated_number_of_days=option.estimated_number_of_days,
                handling=quote.handling_fees,
                tax_on_shipping=quote.apply_tax_on_shipping,
                free_shipping=quote.free_shipping,
                delivery_country_code=delivery.country_code,
                delivery_state_province=delivery.state_province,
                delivery_city=delivery.city,
                delivery_postal_code=delivery.postal_code,
                ip_address=ip_address,
                quote_date=now,
            )
            option.shipping_quote_option_id = await self.persist(record)
            records.append(record)

        logger.info(f"Persisted {len(records)} shipping quote(s) for cart {cart_id}")
        return records

    async def get_quotes_for_cart(self, cart_id: str) -> List[ShippingQuoteRecord]:
        result = await self.db.execute(
            select(ShippingQuoteRecord)
            .where(ShippingQuoteRecord.cart_id == cart_id)
            .order_by(ShippingQuoteRecord.quote_date, ShippingQuoteRecord.id)
        )
        return list(result.scalars().all())
