"""
Pricing helpers

- Final price of a product price (special/discount windows)
- Amount formatting for a store (national vs international format)
- Amount parsing for admin input

Amounts are Decimal end to end; floats never touch money.
"""
import logging
import re
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, List, Optional

from shipquote.core.exceptions import PricingError
from shipquote.core.utils import utctoday
from shipquote.modules.shipping.types import FinalPrice, ProductPrice

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = {
    "USD": "$",
    "CAD": "$",
    "AUD": "$",
    "MXN": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "¥",
    "INR": "₹",
}

# ISO 4217 minor units, default 2
CURRENCY_DECIMALS = {
    "JPY": 0,
    "KRW": 0,
}

# language -> (decimal separator, grouping separator, symbol after amount)
LANGUAGE_FORMATS = {
    "en": (".", ",", False),
    "ja": (".", ",", False),
    "fr": (",", " ", True),
    "de": (",", ".", True),
    "es": (",", ".", True),
    "it": (",", ".", True),
    "pt": (",", ".", True),
}

_AMOUNT_PATTERN = re.compile(r"^\d{1,3}(,\d{3})*(\.\d+)?$|^\d+(\.\d+)?$")


# ==================== Final price ====================


def _discount_applies(price: ProductPrice, today: date) -> bool:
    """
    Decide whether the special amount is in effect.

    - no start and no end date: always on
    - start date in the past and end date in the future
    - no start date and end date in the future
    A start date without an end date never discounts.
    """
    start, end = price.special_start_date, price.special_end_date

    if start is None and end is None:
        return True
    if start is not None:
        return start < today and end is not None and end > today
    return end > today


def get_final_price(price: ProductPrice, as_of: Optional[date] = None) -> FinalPrice:
    """
    Compute the final unit price of a ProductPrice.

    Args:
        price: base amount with optional special amount and window
        as_of: date to evaluate the special window at (defaults to today, UTC)

    Returns:
        FinalPrice with discount information filled in when a special applies
    """
    if price.amount is None:
        raise PricingError("Product price has no amount", details={"code": price.code})

    today = as_of or utctoday()
    final = FinalPrice(
        final_price=price.amount,
        original_price=price.amount,
        product_price=price,
        default_price=price.default_price,
    )

    special = price.special_amount
    if special is None or special <= 0 or not _discount_applies(price, today):
        return final

    if special > price.amount:
        logger.warning(f"Special amount {special} above price {price.amount} for {price.code}, ignored")
        return final

    final.final_price = special
    final.discounted = True
    final.discounted_price = special
    final.discount_end_date = price.special_end_date
    # Truncated toward zero, not rounded
    final.discount_percent = int(Decimal(100) - (special / price.amount * Decimal(100)))
    return final


def get_final_product_price(
    prices: List[ProductPrice],
    attribute_prices: Optional[Iterable[Decimal]] = None,
    as_of: Optional[date] = None,
) -> FinalPrice:
    """
    Final price of a product with several prices and selected attributes.

    The default price is used (first flagged default, else the first one);
    positive attribute prices are added to the final, original and
    discounted amounts.
    """
    if not prices:
        raise PricingError("Product has no price")

    base = next((p for p in prices if p.default_price), prices[0])
    final = get_final_price(base, as_of)

    extra = sum((a for a in (attribute_prices or []) if a is not None and a > 0), Decimal("0"))
    if extra > 0:
        final.final_price += extra
        final.original_price += extra
        if final.discounted_price is not None:
            final.discounted_price += extra
    return final


# ==================== Formatting ====================


def _quantize(amount: Decimal, currency_code: str) -> Decimal:
    decimals = CURRENCY_DECIMALS.get(currency_code.upper(), 2)
    return Decimal(amount).quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)


def _group(amount: Decimal, currency_code: str, decimal_sep: str, group_sep: str) -> str:
    quantized = _quantize(amount, currency_code)
    sign = "-" if quantized < 0 else ""
    text = f"{abs(quantized):,f}"
    integer, _, fraction = text.partition(".")
    integer = integer.replace(",", group_sep)
    return f"{sign}{integer}{decimal_sep}{fraction}" if fraction else f"{sign}{integer}"


def format_amount(amount: Decimal, currency_code: str = "USD") -> str:
    """Admin format: grouping and currency decimals, no symbol (1,234.50)."""
    return _group(amount, currency_code, ".", ",")


def format_national(amount: Decimal, currency_code: str, language: str) -> str:
    """Locale-derived format, e.g. $1,234.50 (en) or 1 234,50 $ (fr)."""
    decimal_sep, group_sep, symbol_after = LANGUAGE_FORMATS.get(
        (language or "en").split("_")[0].lower(), LANGUAGE_FORMATS["en"]
    )
    symbol = CURRENCY_SYMBOLS.get(currency_code.upper(), currency_code.upper())
    number = _group(amount, currency_code, decimal_sep, group_sep)
    if symbol_after:
        return f"{number} {symbol}"
    if number.startswith("-"):
        return f"-{symbol}{number[1:]}"
    return f"{symbol}{number}"


def format_international(amount: Decimal, currency_code: str) -> str:
    """Generic format prefixed with the ISO currency code, e.g. USD1,234.50."""
    number = _group(amount, currency_code, ".", ",")
    if number.startswith("-"):
        return f"-{currency_code.upper()}{number[1:]}"
    return f"{currency_code.upper()}{number}"


def format_amount_with_currency(store, amount: Decimal) -> str:
    """
    Format an amount the way the store displays prices.

    store.currency_format_national chooses the national (locale) format;
    otherwise the international currency-code format is used.
    """
    currency_code = store.currency_code or "USD"
    national = store.currency_format_national
    if national is None or national:
        return format_national(amount, currency_code, store.default_language or "en")
    return format_international(amount, currency_code)


def parse_amount(text: str) -> Decimal:
    """
    Parse an admin-entered amount such as "1,234.50".

    Raises:
        PricingError if the text is not a non-negative amount
    """
    if text is None or not str(text).strip():
        raise PricingError("Amount is empty")

    cleaned = str(text).strip()
    if not _AMOUNT_PATTERN.match(cleaned):
        raise PricingError(f"Invalid amount: {text!r}", details={"amount": text})

    try:
        return Decimal(cleaned.replace(",", ""))
    except InvalidOperation as e:
        raise PricingError(f"Invalid amount: {text!r}", details={"amount": text}) from e
