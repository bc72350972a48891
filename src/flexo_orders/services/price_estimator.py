"""Price estimation for print specifications.

estimate() turns a Specification into an estimated plate cost:

    area     = (width * width_repeat_count) * (height * height_repeat_count)
    estimate = round(area * color_count * material_factor, 2)

with the material factor taken from the plate thickness
(1.14 -> 0.75, 1.70 -> 0.85, 2.54 -> 0.95). Any other thickness is an
InvalidSpecification error.

A specification without a width or height (or with a zero one) is not yet
calculable and estimates to 0.00; callers treat 0.00 as "no estimate".
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import List

from flexo_orders.models.enums import MaterialThickness
from flexo_orders.models.specification import Specification
from flexo_orders.utils.constants import CURRENCY_QUANTUM

from .exceptions import InvalidSpecification

NO_ESTIMATE = Decimal("0.00")

MATERIAL_PRICE_FACTORS = {
    MaterialThickness.THIN: Decimal("0.75"),
    MaterialThickness.STANDARD: Decimal("0.85"),
    MaterialThickness.THICK: Decimal("0.95"),
}


def specification_errors(spec: Specification) -> List[str]:
    """
    Collect every pricing problem with a specification.

    Args:
        spec: Specification to check

    Returns:
        List of problems; empty when the specification can be priced
    """
    errors = []

    if spec.material_thickness is None:
        errors.append("material_thickness: is required")
    else:
        try:
            MaterialThickness(spec.material_thickness)
        except ValueError:
            allowed = ", ".join(str(t.value) for t in MaterialThickness)
            errors.append(
                f"material_thickness: {spec.material_thickness} is not an allowed "
                f"thickness ({allowed})"
            )

    for name in ("width", "height"):
        value = getattr(spec, name)
        if value is not None and value < 0:
            errors.append(f"{name}: must be greater than zero")

    for name in ("width_repeat_count", "height_repeat_count"):
        value = getattr(spec, name)
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            errors.append(f"{name}: must be a whole number of at least 1")

    return errors


def validate_specification(spec: Specification) -> None:
    """
    Raise if a specification cannot be priced.

    Raises:
        InvalidSpecification: With every problem found
    """
    errors = specification_errors(spec)
    if errors:
        raise InvalidSpecification(errors)


def material_factor(thickness: Decimal) -> Decimal:
    """
    Price factor for a plate thickness.

    Raises:
        InvalidSpecification: If the thickness is not one of the allowed values
    """
    try:
        return MATERIAL_PRICE_FACTORS[MaterialThickness(thickness)]
    except ValueError:
        raise InvalidSpecification(
            [f"material_thickness: {thickness} is not an allowed thickness"]
        ) from None


def estimate(spec: Specification) -> Decimal:
    """
    Estimate the cost of a specification.

    Args:
        spec: Specification to price

    Returns:
        Estimate rounded half-up to cents; 0.00 when width or height is
        missing or zero

    Raises:
        InvalidSpecification: If the specification fails validation

    Example:
        >>> estimate(Specification(material=Material.FLINT, material_thickness="1.7",
        ...                        width=10, height=20, used_colors={InkColor.CYAN}))
        Decimal('170.00')
    """
    validate_specification(spec)

    if not spec.width or not spec.height:
        return NO_ESTIMATE

    total_width = spec.width * spec.width_repeat_count
    total_height = spec.height * spec.height_repeat_count
    area = total_width * total_height

    raw = area * spec.color_count * material_factor(spec.material_thickness)
    return raw.quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)
