"""
Shipping Packaging Service

Turns cart line items into package descriptors for rate modules:
- BY_ITEM: every unit ships in its own package
- BY_BOX: units are packed first-fit into the store's standard box
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from shipquote.core.config import settings
from shipquote.core.exceptions import PackagingError
from shipquote.modules.shipping.types import PackageDetails, ShippingProduct
from shipquote.schemas.shipping_config import MerchantShippingConfiguration, ShippingPackageType
from shipquote.services.pricing import get_final_product_price

logger = logging.getLogger(__name__)


@dataclass
class _Unit:
    """One unit of a line item."""
    sku: str
    weight: float
    length: float
    width: float
    height: float
    value: Decimal

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height


@dataclass
class _Box:
    volume_left: float
    weight_left: float
    units: List[_Unit] = field(default_factory=list)


class ShippingPackagingService:
    """Builds PackageDetails from line items."""

    def __init__(
        self,
        default_item_weight: Optional[float] = None,
        min_package_weight: Optional[float] = None,
        max_boxes: Optional[int] = None,
    ):
        self.default_item_weight = default_item_weight or settings.SHIPPING_DEFAULT_ITEM_WEIGHT
        self.min_package_weight = min_package_weight or settings.SHIPPING_MIN_PACKAGE_WEIGHT
        self.max_boxes = max_boxes or settings.SHIPPING_MAX_BOXES

    def build_packages(
        self,
        line_items: List[ShippingProduct],
        configuration: MerchantShippingConfiguration,
    ) -> List[PackageDetails]:
        """Build packages with the store's package strategy."""
        if configuration.package_strategy == ShippingPackageType.BY_BOX:
            return self.get_box_packages(line_items, configuration)
        return self.get_item_packages(line_items)

    def _units(self, line_items: List[ShippingProduct]) -> List[_Unit]:
        units = []
        for item in line_items:
            if not item.shippable or item.quantity <= 0:
                continue
            value = get_final_product_price([item.price], item.attribute_prices).final_price
            weight = item.weight if item.weight is not None else self.default_item_weight
            for _ in range(item.quantity):
                units.append(_Unit(
                    sku=item.sku,
                    weight=weight,
                    length=item.length or 0.0,
                    width=item.width or 0.0,
                    height=item.height or 0.0,
                    value=value,
                ))
        return units

    def get_item_packages(self, line_items: List[ShippingProduct]) -> List[PackageDetails]:
        """One package per unit."""
        return [
            PackageDetails(
                weight=max(unit.weight, self.min_package_weight),
                length=unit.length,
                width=unit.width,
                height=unit.height,
                declared_value=unit.value,
                item_name=unit.sku,
            )
            for unit in self._units(line_items)
        ]

    def get_box_packages(
        self,
        line_items: List[ShippingProduct],
        configuration: MerchantShippingConfiguration,
    ) -> List[PackageDetails]:
        """
        First-fit packing into identical boxes.

        Raises:
            PackagingError when the box configuration is empty, an item does
            not fit the box, or more than max_boxes boxes would be needed
        """
        width = configuration.box_width
        length = configuration.box_length
        height = configuration.box_height
        max_weight = configuration.box_max_weight

        box_volume = width * length * height
        if box_volume <= 0 or max_weight <= 0:
            raise PackagingError(
                f"Box configuration has a volume of {box_volume} and a maximum weight of "
                f"{max_weight}; both must be greater than 0"
            )
        usable_volume = box_volume * configuration.box_fill_threshold / 100

        boxes: List[_Box] = []
        for unit in self._units(line_items):
            if unit.width > width or unit.length > length or unit.height > height:
                raise PackagingError(
                    f"Item {unit.sku} ({unit.length}x{unit.width}x{unit.height}) exceeds the box "
                    f"({length}x{width}x{height})",
                    sku=unit.sku,
                )
            if unit.weight > max_weight:
                raise PackagingError(
                    f"Item {unit.sku} weighs {unit.weight}, above the box maximum of {max_weight}",
                    sku=unit.sku,
                )

            box = next(
                (b for b in boxes if b.volume_left >= unit.volume and b.weight_left >= unit.weight),
                None,
            )
            if box is None:
                if len(boxes) >= self.max_boxes:
                    raise PackagingError(f"Order needs more than {self.max_boxes} boxes", sku=unit.sku)
                # A fresh box takes any item that physically fits
                box = _Box(volume_left=usable_volume, weight_left=max_weight)
                boxes.append(box)

            box.units.append(unit)
            box.volume_left -= unit.volume
            box.weight_left -= unit.weight

        packages = []
        for number, box in enumerate(boxes, start=1):
            content_weight = sum(u.weight for u in box.units)
            packages.append(PackageDetails(
                weight=max(configuration.box_weight + content_weight, self.min_package_weight),
                length=length,
                width=width,
                height=height,
                declared_value=sum((u.value for u in box.units), Decimal("0")),
                item_name=f"box-{number}",
                items_count=len(box.units),
            ))

        logger.debug(f"Packed {sum(p.items_count for p in packages)} units into {len(packages)} boxes")
        return packages
