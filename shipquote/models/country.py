"""
Localized country names
"""
from sqlalchemy import Column, Integer, String, Index, UniqueConstraint

from shipquote.core.database import Base


class CountryDescription(Base):
    """Name of a country (ISO 3166-1 alpha-2) in one language."""
    __tablename__ = "country_descriptions"
    __table_args__ = (
        UniqueConstraint("iso_code", "language", name="uq_country_descriptions_iso_language"),
        Index("ix_country_descriptions_iso", "iso_code"),
    )

    id = Column(Integer, primary_key=True, index=True)
    iso_code = Column(String(2), nullable=False)
    language = Column(String(5), nullable=False)
    name = Column(String(100), nullable=False)

    def __repr__(self):
        return f"<CountryDescription(iso_code={self.iso_code}, language={self.language}, name={self.name})>"
