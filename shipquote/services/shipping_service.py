"""
Shipping Quote Service

Computes a shipping quote for a cart, a delivery address and a store:

    eligibility -> packages -> free shipping -> pre-processors ->
    rate module -> option selection -> post-processors -> persistence

Expected business outcomes (country not served, no module configured) come
back as ReasonCode values on the quote. Faults (bad configuration, failing
rate module or processor) raise ShippingError subclasses.

Usage:
    service = ShippingQuoteService(db)
    quote = await service.get_shipping_quote(store, request, customer_ip)
"""
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from shipquote.core.config import settings
from shipquote.core.exceptions import (
    InvalidModuleSwitchError,
    ShippingConfigurationError,
    ShippingError,
    ShippingModuleError,
    ShippingProcessorError,
    ShippingValidationError,
)
from shipquote.core.utils import utctoday
from shipquote.models.store import MerchantStore
from shipquote.modules.shipping.processors import ProcessorFactory
from shipquote.modules.shipping.processors.base import ShippingQuotePrePostProcessModule
from shipquote.modules.shipping.rate_modules import RateModuleFactory
from shipquote.modules.shipping.rate_modules.base import ShippingQuoteModule
from shipquote.modules.shipping.types import (
    Delivery,
    IntegrationModule,
    ModuleType,
    ReasonCode,
    ShippingOption,
    ShippingProduct,
    ShippingQuote,
    ShippingQuoteContext,
    ShippingQuoteRequest,
    ShippingSummary,
)
from shipquote.schemas.shipping_config import (
    FreeShippingScope,
    MerchantShippingConfiguration,
    ModuleConfiguration,
    ShippingOptionPriceType,
    ShippingType,
)
from shipquote.services.country_service import CountryService
from shipquote.services.packaging import ShippingPackagingService
from shipquote.services.pricing import format_amount_with_currency, get_final_product_price
from shipquote.services.quote_persister import QuotePersister
from shipquote.services.shipping_config import ShippingConfigurationService

logger = logging.getLogger(__name__)


@dataclass
class EligibilityResult:
    """Whether an order may ship to the delivery country."""
    eligible: bool
    reason_code: Optional[ReasonCode] = None
    country_code: Optional[str] = None
    warnings: List[ReasonCode] = field(default_factory=list)


# =============================================================================
# Pipeline stages (pure)
# =============================================================================

def get_ship_to_countries(store: MerchantStore, configuration: MerchantShippingConfiguration) -> List[str]:
    """Countries the store ships to."""
    if configuration.shipping_type == ShippingType.INTERNATIONAL:
        return list(configuration.supported_countries)
    return [store.country_code.upper()]


def check_eligibility(
    store: MerchantStore,
    delivery: Delivery,
    configuration: MerchantShippingConfiguration,
) -> EligibilityResult:
    """
    Decide whether the delivery country is served.

    A missing postal code only adds a NO_POSTAL_CODE warning.

    Raises:
        ShippingConfigurationError if the store has no country
        ShippingValidationError if the delivery has no country
    """
    if not store.country_code:
        raise ShippingConfigurationError(
            message="Store has no country",
            store_code=store.code,
        )
    if delivery is None or not delivery.country_code:
        raise ShippingValidationError("Delivery address has no country")

    country = delivery.country_code.upper()
    warnings = [] if delivery.postal_code else [ReasonCode.NO_POSTAL_CODE]

    if country not in get_ship_to_countries(store, configuration):
        return EligibilityResult(
            eligible=False,
            reason_code=ReasonCode.NO_SHIPPING_TO_SELECTED_COUNTRY,
            country_code=country,
            warnings=warnings,
        )
    return EligibilityResult(eligible=True, country_code=country, warnings=warnings)


def is_free_shipping(
    configuration: MerchantShippingConfiguration,
    order_total: Decimal,
    delivery_country: str,
    store_country: str,
) -> bool:
    """Free shipping needs an order total strictly above the threshold."""
    if not configuration.free_shipping_enabled or configuration.free_shipping_threshold is None:
        return False
    if not order_total > configuration.free_shipping_threshold:
        return False
    if configuration.free_shipping_scope == FreeShippingScope.NATIONAL:
        return delivery_country.upper() == store_country.upper()
    return True


def select_rate_module(module_configurations: Dict[str, ModuleConfiguration]) -> Optional[ModuleConfiguration]:
    """
    Pick the store's rate module configuration.

    Processors are never rate modules. Among active modules the lowest
    (priority, module_code) wins.
    """
    candidates = sorted(module_configurations.values(), key=lambda m: (m.priority, m.module_code))
    active = [m for m in candidates if m.active and not ProcessorFactory.is_processor(m.module_code)]

    if len(active) > 1:
        logger.warning(
            f"Several active rate modules ({', '.join(m.module_code for m in active)}), "
            f"using {active[0].module_code}"
        )
    return active[0] if active else None


def decorate_options(
    options: List[ShippingOption],
    module_code: str,
    store: MerchantStore,
    default_name: Optional[str] = None,
) -> List[ShippingOption]:
    """Attach price text and module code; name unnamed options."""
    for option in options:
        option.option_price_text = format_amount_with_currency(store, option.option_price)
        option.shipping_module_code = module_code
        if not option.option_name:
            option.option_name = default_name
    return options


def select_option(
    options: List[ShippingOption],
    policy: ShippingOptionPriceType,
) -> Tuple[Optional[ShippingOption], List[ShippingOption]]:
    """
    Apply the store's option policy.

    Returns:
        (selected option, options offered to the customer). Ties go to the
        first option seen; ALL keeps every option and selects the first.
    """
    if not options:
        return None, []

    if policy == ShippingOptionPriceType.CHEAPEST:
        selected = min(options, key=lambda o: o.option_price)
    elif policy == ShippingOptionPriceType.MOST_EXPENSIVE:
        selected = max(options, key=lambda o: o.option_price)
    else:
        return options[0], list(options)

    return selected, [selected]


# =============================================================================
# Service
# =============================================================================

class ShippingQuoteService:
    """
    Shipping quote pipeline.

    Collaborators default to their database-backed implementations and can
    be replaced (tests, alternate storage).
    """

    def __init__(
        self,
        db: Optional[AsyncSession] = None,
        configuration_service: Optional[ShippingConfigurationService] = None,
        packaging: Optional[ShippingPackagingService] = None,
        country_service: Optional[CountryService] = None,
        persister: Optional[QuotePersister] = None,
    ):
        self.db = db
        self.configuration_service = configuration_service or ShippingConfigurationService(db)
        self.packaging = packaging or ShippingPackagingService()
        self.country_service = country_service or CountryService(db)
        self.persister = persister or QuotePersister(db)

    @staticmethod
    def requires_shipping(line_items: List[ShippingProduct]) -> bool:
        return any(item.shippable and item.quantity > 0 for item in line_items)

    @staticmethod
    def get_order_total(line_items: List[ShippingProduct]) -> Decimal:
        """Sum of final unit prices times quantities."""
        total = Decimal("0")
        for item in line_items:
            if item.quantity <= 0:
                continue
            unit = get_final_product_price([item.price], item.attribute_prices).final_price
            total += unit * item.quantity
        return total

    async def get_shipping_quote(
        self,
        store: MerchantStore,
        request: ShippingQuoteRequest,
        customer_ip: Optional[str] = None,
    ) -> ShippingQuote:
        """
        Compute the shipping quote of a cart.

        Args:
            store: store selling the cart
            request: cart id, delivery address, line items and language
            customer_ip: recorded on persisted quotes

        Returns:
            ShippingQuote with options and a selected option, a free shipping
            quote, or a quote carrying a reason code

        Raises:
            ShippingValidationError: request has no delivery country
            ShippingConfigurationError: store data or stored configuration is
                unusable, or a pre-processor switched to an unusable module
            PackagingError: line items cannot be packed
            ShippingModuleError: the rate module failed
            ShippingProcessorError: a processor failed
        """
        delivery = request.delivery
        if delivery is None or not delivery.country_code:
            raise ShippingValidationError("Delivery address has no country")
        if not store.country_code:
            raise ShippingConfigurationError(message="Store has no country", store_code=store.code)

        quote = ShippingQuote(delivery=delivery)
        if not self.requires_shipping(request.line_items):
            logger.info(f"Cart {request.cart_id} has nothing to ship")
            return quote

        language = request.language or store.default_language or settings.SHIPPING_DEFAULT_LANGUAGE
        configuration = await self.configuration_service.get_merchant_shipping_configuration(store)
        module_configurations = await self.configuration_service.get_module_configurations(store)

        # Eligibility
        eligibility = check_eligibility(store, delivery, configuration)
        quote.warnings.extend(eligibility.warnings)
        if not eligibility.eligible:
            quote.reason_code = eligibility.reason_code
            logger.warning(f"Store {store.code} does not ship to {eligibility.country_code}")
            return quote
        country = eligibility.country_code

        # Packages and free shipping
        order_total = self.get_order_total(request.line_items)
        packages = self.packaging.build_packages(request.line_items, configuration)

        if is_free_shipping(configuration, order_total, country, store.country_code):
            quote.free_shipping = True
            quote.free_shipping_amount = configuration.free_shipping_threshold
            logger.info(
                f"Free shipping for cart {request.cart_id}: {order_total} > "
                f"{configuration.free_shipping_threshold}"
            )
            return quote

        # Rate module
        module_configuration = select_rate_module(module_configurations)
        available_modules = self.configuration_service.get_available_modules()
        module = self._find_rate_module(available_modules, module_configuration)
        rate_module = RateModuleFactory.get_module(module.code) if module else None
        if module is None or rate_module is None:
            quote.reason_code = ReasonCode.NO_SHIPPING_MODULE_CONFIGURED
            logger.warning(f"No shipping module configured for store {store.code}")
            return quote

        quote.shipping_module_code = module.code
        quote.current_shipping_module = module
        quote.use_distance_module = settings.SHIPPING_DISTANCE_PROCESSOR_CODE in configuration.pre_processors
        logger.info(f"Shipping module {module.code} selected for store {store.code}")

        origin = await self.configuration_service.get_shipping_origin(store)
        context = ShippingQuoteContext(
            quote=quote,
            packages=packages,
            order_total=order_total,
            delivery=delivery,
            origin=origin,
            store=store,
            module_configuration=module_configuration,
            module=module,
            shipping_configuration=configuration,
            available_modules=available_modules,
            language=language,
        )

        # Pre-processors
        for code in configuration.pre_processors:
            processor = ProcessorFactory.create(code, module_configurations.get(code), ModuleType.PRE_PROCESSOR)
            await self._run_processor(processor, context)
            rate_module = self._resolve_module_switch(context, module_configurations, rate_module)

        if not context.module.supports_country(country):
            quote.reason_code = ReasonCode.NO_SHIPPING_TO_SELECTED_COUNTRY
            logger.warning(f"Shipping module {context.module.code} does not serve {country}")
            return quote

        options = await self._get_options(rate_module, context)
        if not options:
            if delivery.postal_code:
                quote.reason_code = ReasonCode.NO_SHIPPING_TO_SELECTED_COUNTRY
            logger.warning(f"Shipping module {context.module.code} returned no option for {country}")
            return quote

        # Options
        default_name = None
        if any(not option.option_name for option in options):
            default_name = await self.country_service.get_country_name(country, language) or country
        decorate_options(options, context.module.code, store, default_name)

        selected, final_options = select_option(options, configuration.option_price_type)
        today = utctoday()
        for option in final_options:
            if option.estimated_number_of_days is not None:
                option.option_delivery_date = (today + timedelta(days=option.estimated_number_of_days)).isoformat()

        quote.shipping_options = final_options
        quote.selected_shipping_option = selected
        quote.handling_fees = configuration.handling_fees
        quote.apply_tax_on_shipping = configuration.tax_on_shipping

        # Post-processors
        for code in configuration.post_processors:
            processor_configuration = module_configurations.get(code)
            if processor_configuration is None:
                logger.debug(f"Post-processor {code} has no configuration, skipped")
                continue
            processor = ProcessorFactory.create(code, processor_configuration, ModuleType.POST_PROCESSOR)
            await self._run_processor(processor, context)

        if settings.SHIPPING_PERSIST_QUOTES and request.cart_id:
            await self.persister.persist_options(quote, store, request.cart_id, customer_ip)

        return quote

    def get_shipping_summary(self, quote: ShippingQuote, option_id: Optional[str] = None) -> Optional[ShippingSummary]:
        """
        Summary of the shipping an order will record.

        Uses the option with option_id when given, else the selected option.
        Returns None when the quote has no option and is not free shipping.
        """
        if quote.free_shipping:
            return ShippingSummary(
                shipping=Decimal("0"),
                handling=quote.handling_fees,
                taxable=quote.apply_tax_on_shipping,
                free_shipping=True,
                shipping_module=quote.shipping_module_code,
                delivery=quote.delivery,
            )

        option = quote.selected_shipping_option
        if option_id is not None:
            option = next((o for o in quote.shipping_options if o.option_id == option_id), None)
            if option is None:
                raise ShippingValidationError(
                    f"Shipping option {option_id} is not part of the quote",
                    details={"option_id": option_id},
                )
        if option is None:
            return None

        return ShippingSummary(
            shipping=option.option_price,
            handling=quote.handling_fees,
            taxable=quote.apply_tax_on_shipping,
            free_shipping=False,
            shipping_module=option.shipping_module_code or quote.shipping_module_code,
            shipping_option=option.option_name,
            shipping_option_code=option.option_code,
            shipping_quote_option_id=option.shipping_quote_option_id,
            delivery=quote.delivery,
        )

    # ==================== Internals ====================

    @staticmethod
    def _find_rate_module(
        available_modules: List[IntegrationModule],
        module_configuration: Optional[ModuleConfiguration],
    ) -> Optional[IntegrationModule]:
        if module_configuration is None:
            return None
        return next(
            (
                m for m in available_modules
                if m.code == module_configuration.module_code and m.module_type == ModuleType.RATE
            ),
            None,
        )

    @staticmethod
    async def _run_processor(processor: ShippingQuotePrePostProcessModule, context: ShippingQuoteContext) -> None:
        try:
            await processor.process(context)
        except ShippingError:
            raise
        except Exception as e:
            logger.error(f"Shipping processor {processor.module_code} failed: {e}")
            raise ShippingProcessorError(
                message=f"Shipping processor {processor.module_code} failed: {e}",
                processor_code=processor.module_code,
            ) from e

    def _resolve_module_switch(
        self,
        context: ShippingQuoteContext,
        module_configurations: Dict[str, ModuleConfiguration],
        rate_module: ShippingQuoteModule,
    ) -> ShippingQuoteModule:
        """
        Apply a rate module switch requested by a pre-processor.

        Raises:
            InvalidModuleSwitchError if the requested module is not a
            configured, active and registered rate module
        """
        quote = context.quote
        current = quote.current_shipping_module
        if current is None:
            quote.current_shipping_module = context.module
            return rate_module
        if current.code == context.module.code:
            return rate_module

        from_code, to_code = context.module.code, current.code
        target_configuration = module_configurations.get(to_code)
        if target_configuration is None:
            reason = "is not configured"
        elif not target_configuration.active:
            reason = "is not active"
        elif ProcessorFactory.is_processor(to_code) or not RateModuleFactory.is_rate_module(to_code):
            reason = "is not a rate module"
        else:
            reason = None
        if reason:
            raise InvalidModuleSwitchError(
                message=f"Cannot switch shipping module from {from_code} to {to_code}: {to_code} {reason}",
                from_module=from_code,
                to_module=to_code,
                store_code=context.store.code,
            )

        module = next(
            (m for m in context.available_modules if m.code == to_code and m.module_type == ModuleType.RATE),
            current,
        )
        context.module = module
        context.module_configuration = target_configuration
        quote.current_shipping_module = module
        quote.shipping_module_code = to_code
        logger.info(f"Shipping module switched from {from_code} to {to_code}")
        return RateModuleFactory.get_module(to_code)

    @staticmethod
    async def _get_options(rate_module: ShippingQuoteModule, context: ShippingQuoteContext) -> List[ShippingOption]:
        code = context.module.code
        try:
            options = await rate_module.get_shipping_quotes(context)
        except ShippingError:
            raise
        except Exception as e:
            logger.error(f"Shipping module {code} failed: {e}")
            raise ShippingModuleError(
                message=f"Shipping module {code} failed: {e}",
                module_code=code,
            ) from e

        options = list(options or [])
        for option in options:
            if not isinstance(option, ShippingOption) or option.option_price is None or option.option_price < 0:
                logger.error(f"Shipping module {code} returned a malformed option: {option!r}")
                raise ShippingModuleError(
                    message=f"Shipping module {code} returned a malformed option",
                    module_code=code,
                )
        return options
