"""
Print specification model.

A Specification describes what is being printed: plate dimensions and
repeats, stock, thickness, printing mode and inks. It is immutable; edits
produce a new Specification via dataclasses.replace().

The Specification accepts any thickness decimal so that records carrying
legacy values can still be loaded. Whether a thickness is allowed is the
Price Estimator's call (see services.price_estimator).
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Optional, Tuple

from flexo_orders.utils.constants import MIN_COLOR_COUNT, PROCESS_COLOR_WEIGHT

from .enums import DimensionUnit, InkColor, Material, PrintingMode


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    if isinstance(value, Decimal):
        return value
    # str() first so floats like 1.7 become Decimal("1.7"), not the binary value
    return Decimal(str(value))


@dataclass(frozen=True)
class Specification:
    """
    Immutable description of a print job.

    Attributes:
        material: Plate stock
        material_thickness: Plate thickness in mm (1.14, 1.70 or 2.54 allowed)
        width: Single-repeat width; None until known
        height: Single-repeat height; None until known
        width_repeat_count: Repeats across (>= 1)
        height_repeat_count: Repeats down (>= 1)
        printing_mode: Surface or reverse printing
        used_colors: Named inks, possibly including CMYK_COMBINED
        custom_colors: Free-text custom ink names, in the order entered
        dimension_unit: Unit for width/height
    """

    material: Material
    material_thickness: Decimal
    width: Optional[Decimal] = None
    height: Optional[Decimal] = None
    width_repeat_count: int = 1
    height_repeat_count: int = 1
    printing_mode: PrintingMode = PrintingMode.SURFACE
    used_colors: FrozenSet[InkColor] = field(default_factory=frozenset)
    custom_colors: Tuple[str, ...] = ()
    dimension_unit: DimensionUnit = DimensionUnit.MM

    def __post_init__(self):
        # Normalize loose inputs so equal specifications compare equal
        object.__setattr__(self, "material", Material(self.material))
        object.__setattr__(self, "material_thickness", _to_decimal(self.material_thickness))
        object.__setattr__(self, "width", _to_decimal(self.width))
        object.__setattr__(self, "height", _to_decimal(self.height))
        object.__setattr__(self, "printing_mode", PrintingMode(self.printing_mode))
        object.__setattr__(
            self, "used_colors", frozenset(InkColor(c) for c in self.used_colors)
        )
        object.__setattr__(self, "custom_colors", tuple(self.custom_colors))
        object.__setattr__(self, "dimension_unit", DimensionUnit(self.dimension_unit))

    @property
    def color_count(self) -> int:
        """
        Number of ink separations the job needs.

        The combined process-color marker counts as four, every other named
        ink as one, and every non-blank custom color as one. Never below one.
        """
        process_weight = PROCESS_COLOR_WEIGHT if InkColor.CMYK_COMBINED in self.used_colors else 0
        other_named = len(self.used_colors - {InkColor.CMYK_COMBINED})
        custom = sum(1 for name in self.custom_colors if name and name.strip())
        return max(MIN_COLOR_COUNT, process_weight + other_named + custom)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a JSON-compatible dictionary.

        Decimals are written as strings and colors are sorted so the output
        is stable for a given specification.
        """
        return {
            "material": self.material.value,
            "material_thickness": str(self.material_thickness),
            "width": None if self.width is None else str(self.width),
            "height": None if self.height is None else str(self.height),
            "width_repeat_count": self.width_repeat_count,
            "height_repeat_count": self.height_repeat_count,
            "printing_mode": self.printing_mode.value,
            "used_colors": sorted(c.value for c in self.used_colors),
            "custom_colors": list(self.custom_colors),
            "dimension_unit": self.dimension_unit.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Specification":
        """Rebuild a Specification from to_dict() output."""
        return cls(
            material=data["material"],
            material_thickness=data["material_thickness"],
            width=data.get("width"),
            height=data.get("height"),
            width_repeat_count=data.get("width_repeat_count", 1),
            height_repeat_count=data.get("height_repeat_count", 1),
            printing_mode=data.get("printing_mode", PrintingMode.SURFACE),
            used_colors=data.get("used_colors", ()),
            custom_colors=data.get("custom_colors", ()),
            dimension_unit=data.get("dimension_unit", DimensionUnit.MM),
        )
