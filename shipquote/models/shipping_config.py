"""
Stored shipping configuration

Merchant configuration is kept as key/value rows holding JSON text:
- SHIPPING_CONFIG: the merchant shipping configuration
- SHIPPING_MODULES: module code -> module configuration

The JSON is parsed by shipquote.schemas.shipping_config; parse failures are
reported as ShippingConfigurationError, never defaulted.
"""
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Float, Text,
    ForeignKey, Index, UniqueConstraint
)

from shipquote.core.database import Base

SHIPPING_CONFIG_KEY = "SHIPPING_CONFIG"
SHIPPING_MODULES_KEY = "SHIPPING_MODULES"


class MerchantConfiguration(Base):
    """JSON configuration value for a store, addressed by key."""
    __tablename__ = "merchant_configurations"
    __table_args__ = (
        UniqueConstraint("store_id", "key", name="uq_merchant_configurations_store_key"),
        Index("ix_merchant_configurations_store", "store_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("merchant_stores.id", ondelete="CASCADE"), nullable=False)
    key = Column(String(100), nullable=False)
    value = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self):
        return f"<MerchantConfiguration(store_id={self.store_id}, key={self.key})>"


class ShippingOriginRecord(Base):
    """
    Explicit shipping origin for a store.

    Only used when active; otherwise the store address is the origin.
    """
    __tablename__ = "shipping_origins"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("merchant_stores.id", ondelete="CASCADE"), unique=True, nullable=False)
    active = Column(Boolean, default=False, nullable=False)

    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state_province = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    country_code = Column(String(2), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    def __repr__(self):
        return f"<ShippingOriginRecord(store_id={self.store_id}, active={self.active})>"
