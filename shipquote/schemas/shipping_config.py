"""
Shipping Configuration Schemas

Pydantic models for the JSON stored under the SHIPPING_CONFIG and
SHIPPING_MODULES merchant configuration keys. Both are read-only snapshots
for the duration of one quote computation.
"""
import enum
from decimal import Decimal
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ShippingType(str, enum.Enum):
    """Where a store ships to."""
    NATIONAL = "NATIONAL"
    INTERNATIONAL = "INTERNATIONAL"


class FreeShippingScope(str, enum.Enum):
    """Which deliveries free shipping covers once the threshold is exceeded."""
    NATIONAL = "NATIONAL"
    ALL = "ALL"


class ShippingPackageType(str, enum.Enum):
    """How line items are grouped into packages."""
    BY_ITEM = "BY_ITEM"
    BY_BOX = "BY_BOX"


class ShippingOptionPriceType(str, enum.Enum):
    """Which of the rate module's options are offered to the customer."""
    CHEAPEST = "CHEAPEST"
    MOST_EXPENSIVE = "MOST_EXPENSIVE"
    ALL = "ALL"


class MerchantShippingConfiguration(BaseModel):
    """Per-store shipping settings."""
    model_config = ConfigDict(frozen=True)

    shipping_type: ShippingType = ShippingType.NATIONAL
    supported_countries: List[str] = Field(default_factory=list, description="Allow-list for INTERNATIONAL")

    # Free shipping
    free_shipping_enabled: bool = False
    free_shipping_threshold: Optional[Decimal] = Field(None, ge=0)
    free_shipping_scope: FreeShippingScope = FreeShippingScope.NATIONAL

    handling_fees: Decimal = Field(Decimal("0"), ge=0)
    tax_on_shipping: bool = False

    # Packaging
    package_strategy: ShippingPackageType = ShippingPackageType.BY_ITEM
    box_width: float = Field(0.0, ge=0)
    box_length: float = Field(0.0, ge=0)
    box_height: float = Field(0.0, ge=0)
    box_weight: float = Field(0.0, ge=0)
    box_max_weight: float = Field(0.0, ge=0)
    box_fill_threshold: int = Field(100, gt=0, le=100, description="Usable percent of box volume")

    option_price_type: ShippingOptionPriceType = ShippingOptionPriceType.ALL

    # Ordered processor codes
    pre_processors: List[str] = Field(default_factory=list)
    post_processors: List[str] = Field(default_factory=list)

    @field_validator("supported_countries")
    @classmethod
    def normalize_countries(cls, v):
        return [code.strip().upper() for code in v if code and code.strip()]

    @model_validator(mode="after")
    def validate_free_shipping(self):
        if self.free_shipping_enabled and self.free_shipping_threshold is None:
            raise ValueError("free_shipping_threshold is required when free shipping is enabled")
        return self


class ModuleConfiguration(BaseModel):
    """Settings of one shipping module (rate module or processor) for a store."""
    model_config = ConfigDict(frozen=True)

    module_code: str = Field(..., min_length=1)
    active: bool = False
    priority: int = Field(0, description="Lower wins when several rate modules are active")
    environment: str = "PRODUCTION"
    integration_keys: Dict[str, str] = Field(default_factory=dict)
    settings: Dict[str, Any] = Field(default_factory=dict)


class ModuleConfigurations(BaseModel):
    """Stored SHIPPING_MODULES value: module code -> configuration."""
    modules: Dict[str, ModuleConfiguration] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_keys(self):
        for code, configuration in self.modules.items():
            if configuration.module_code != code:
                raise ValueError(
                    f"Module configuration stored under '{code}' is for '{configuration.module_code}'"
                )
        return self
