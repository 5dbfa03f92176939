"""
Persisted shipping quote

One row per finalized shipping option, written once after the pipeline
completes and never updated afterwards.
"""
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Numeric,
    ForeignKey, Index
)

from shipquote.core.database import Base


class ShippingQuoteRecord(Base):
    """Snapshot of a shipping option offered for a cart."""
    __tablename__ = "shipping_quotes"
    __table_args__ = (
        Index("ix_shipping_quotes_cart", "cart_id"),
        Index("ix_shipping_quotes_store", "store_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("merchant_stores.id", ondelete="CASCADE"), nullable=False)
    cart_id = Column(String(100), nullable=True)
    order_id = Column(Integer, nullable=True)

    # Option
    module_code = Column(String(100), nullable=False)
    option_code = Column(String(100), nullable=True)
    option_name = Column(String(255), nullable=True)
    option_price = Column(Numeric(12, 2), nullable=False)
    option_delivery_date = Column(String(10), nullable=True)  # ISO date
    estimated_number_of_days = Column(Integer, nullable=True)

    # Quote-level values
    handling = Column(Numeric(12, 2), nullable=False, default=0)
    tax_on_shipping = Column(Boolean, default=False, nullable=False)
    free_shipping = Column(Boolean, default=False, nullable=False)

    # Destination (no PII beyond what routing needs)
    delivery_country_code = Column(String(2), nullable=True)
    delivery_state_province = Column(String(100), nullable=True)
    delivery_city = Column(String(100), nullable=True)
    delivery_postal_code = Column(String(20), nullable=True)

    ip_address = Column(String(45), nullable=True)
    quote_date = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    def __repr__(self):
        return (
            f"<ShippingQuoteRecord(id={self.id}, cart_id={self.cart_id}, "
            f"module={self.module_code}, price={self.option_price})>"
        )
