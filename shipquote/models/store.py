"""
Merchant store model

The store is the owner of every shipping configuration. Its address doubles as
the default shipping origin and its country decides what "national" means.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, Index

from shipquote.core.database import Base


class MerchantStore(Base):
    """
    A merchant store and its locale/currency settings.
    """
    __tablename__ = "merchant_stores"
    __table_args__ = (
        Index("ix_merchant_stores_code", "code"),
    )

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(100), unique=True, nullable=False)
    name = Column(String(100), nullable=False)

    # Address (default shipping origin)
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state_province = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    country_code = Column(String(2), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # Locale / currency
    currency_code = Column(String(3), nullable=False, default="USD")
    default_language = Column(String(5), nullable=False, default="en")
    currency_format_national = Column(Boolean, default=True, nullable=False)

    # Units used by package descriptors
    weight_unit = Column(String(5), default="LB")
    size_unit = Column(String(5), default="IN")

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    @property
    def locale(self) -> str:
        """Locale tag such as en_US built from language and country."""
        return f"{self.default_language}_{self.country_code}"

    def __repr__(self):
        return f"<MerchantStore(id={self.id}, code={self.code}, country={self.country_code})>"
