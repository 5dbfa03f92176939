"""
shipquote Exception Hierarchy

Structured exception classes for the shipping-quote pipeline.
All exceptions include code, message, and details for logging and debugging.

Business outcomes (no module configured, country not served, missing postal
code) are NOT exceptions: they are ReasonCode values on the returned quote.

Exception Hierarchy:
    ShipQuoteBaseError
    ├── ShippingError
    │   ├── ShippingConfigurationError
    │   │   └── InvalidModuleSwitchError
    │   ├── ShippingValidationError
    │   ├── ShippingModuleError
    │   ├── ShippingProcessorError
    │   └── PackagingError
    └── PricingError
"""
import logging
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


class ShipQuoteBaseError(Exception):
    """
    Base exception for all shipquote errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging
        severity: P0-P3 severity level
    """

    default_code: str = "SHIPQUOTE_ERROR"
    default_severity: str = "P2"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[str] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        self.severity = severity or self.default_severity
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "severity": self.severity,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


# =============================================================================
# SHIPPING ERRORS
# =============================================================================

class ShippingError(ShipQuoteBaseError):
    """Base exception for shipping-related errors."""
    default_code = "SHIPPING_ERROR"
    default_severity = "P1"


class ShippingConfigurationError(ShippingError):
    """Stored shipping configuration is missing required data or cannot be parsed."""
    default_code = "SHIPPING_CONFIGURATION_INVALID"

    def __init__(
        self,
        message: str,
        store_code: Optional[str] = None,
        config_key: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details.update({
            "store_code": store_code,
            "config_key": config_key,
        })
        super().__init__(message, details=details, **kwargs)


class InvalidModuleSwitchError(ShippingConfigurationError):
    """A pre-processor asked for a rate module that cannot be used."""
    default_code = "SHIPPING_INVALID_MODULE_SWITCH"

    def __init__(
        self,
        message: str,
        from_module: Optional[str] = None,
        to_module: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details.update({
            "from_module": from_module,
            "to_module": to_module,
        })
        super().__init__(message, details=details, **kwargs)


class ShippingValidationError(ShippingError):
    """The quote request itself is unusable (e.g. no delivery country)."""
    default_code = "SHIPPING_VALIDATION_FAILED"
    default_severity = "P2"


class ShippingModuleError(ShippingError):
    """A rate module failed while computing options."""
    default_code = "SHIPPING_MODULE_FAILED"

    def __init__(
        self,
        message: str,
        module_code: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details["module_code"] = module_code
        super().__init__(message, details=details, **kwargs)


class ShippingProcessorError(ShippingError):
    """A pre or post processor failed; the whole quote is aborted."""
    default_code = "SHIPPING_PROCESSOR_FAILED"

    def __init__(
        self,
        message: str,
        processor_code: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details["processor_code"] = processor_code
        super().__init__(message, details=details, **kwargs)


class PackagingError(ShippingError):
    """Line items cannot be packed with the configured strategy."""
    default_code = "SHIPPING_PACKAGING_FAILED"
    default_severity = "P2"

    def __init__(
        self,
        message: str,
        sku: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details["sku"] = sku
        super().__init__(message, details=details, **kwargs)


# =============================================================================
# PRICING ERRORS
# =============================================================================

class PricingError(ShipQuoteBaseError):
    """Price computation or amount parsing failed."""
    default_code = "PRICING_ERROR"
