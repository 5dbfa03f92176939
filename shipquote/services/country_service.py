"""
Country name lookup

Resolves ISO country codes to localized names, used to name shipping
options that come back from a rate module without one.
"""
import logging
from typing import Dict, Optional, Tuple

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from shipquote.models.country import CountryDescription

logger = logging.getLogger(__name__)


class CountryService:
    """Country names from the country_descriptions table, cached per instance."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._names: Dict[Tuple[str, str], Optional[str]] = {}

    async def get_country_name(self, iso_code: str, language: str) -> Optional[str]:
        """
        Localized name of a country.

        Returns:
            The name, or None when no description exists for that language
        """
        key = (iso_code.upper(), language.split("_")[0].lower())
        if key in self._names:
            return self._names[key]

        result = await self.db.execute(
            select(CountryDescription).where(
                and_(
                    CountryDescription.iso_code == key[0],
                    CountryDescription.language == key[1],
                )
            )
        )
        description = result.scalar_one_or_none()
        name = description.name if description else None
        if name is None:
            logger.debug(f"No {key[1]} name for country {key[0]}")

        self._names[key] = name
        return name
