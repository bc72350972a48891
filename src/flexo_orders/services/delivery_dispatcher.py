"""Delivery Dispatcher: validation of delivery-mode payloads.

A delivery selection is a mapping with a ``mode`` key and the fields of
that mode:

    {"mode": "direct", "destination": {"street": ..., "city": ...}}
    {"mode": "shipping-company", "shipping_company": "DHL",
     "tracking_number": "...", "label_file_ref": "..."}
    {"mode": "client-collection", "collection_address": {"street": ..., ...}}

validate() turns it into exactly one DeliveryInfo variant or raises
InvalidDeliveryContext with per-field problems. to_dict() writes a variant
back into the same shape, so ``validate(to_dict(info)) == info``; the
repository stores delivery info that way.

The dispatcher never changes order status; the Status Engine calls it
before attaching delivery info to a transition.
"""

from dataclasses import asdict
from typing import Any, Dict, Mapping, Optional

from flexo_orders.models.delivery import (
    ADDRESS_FIELDS,
    Address,
    ClientCollection,
    DeliveryInfo,
    DirectDelivery,
    ShippingCompanyDelivery,
)
from flexo_orders.models.enums import DeliveryMode

from .exceptions import InvalidDeliveryContext

_MODE_FIELDS = {
    DeliveryMode.DIRECT: ("destination",),
    DeliveryMode.SHIPPING_COMPANY: ("shipping_company", "tracking_number", "label_file_ref"),
    DeliveryMode.CLIENT_COLLECTION: ("collection_address",),
}

_DELIVERY_TYPES = (DirectDelivery, ShippingCompanyDelivery, ClientCollection)


def _clean_text(value: Any, path: str, errors: Dict[str, str]) -> Optional[str]:
    """Strip a text field; blank becomes None, non-text is an error."""
    if value is None:
        return None
    if not isinstance(value, str):
        errors[path] = "must be text"
        return None
    value = value.strip()
    return value or None


def _validate_address(value: Any, path: str, errors: Dict[str, str]) -> Optional[Address]:
    if isinstance(value, Address):
        value = asdict(value)
    if value is None:
        errors[path] = "is required"
        return None
    if not isinstance(value, Mapping):
        errors[path] = "must be an address"
        return None

    for key in value:
        if key not in ADDRESS_FIELDS:
            errors[f"{path}.{key}"] = "is not an address field"

    cleaned = {name: _clean_text(value.get(name), f"{path}.{name}", errors) for name in ADDRESS_FIELDS}

    if cleaned["street"] is None and f"{path}.street" not in errors:
        errors[f"{path}.street"] = "is required"
    elif not any(cleaned[name] for name in ADDRESS_FIELDS if name != "street"):
        errors[path] = "needs a city, state, postal_code or country besides the street"

    return Address(**cleaned)


def validate(selection: Any) -> DeliveryInfo:
    """
    Validate a delivery selection and build its DeliveryInfo variant.

    Args:
        selection: Mapping with a ``mode`` key, or an existing DeliveryInfo
            (which is re-validated)

    Returns:
        DirectDelivery, ShippingCompanyDelivery or ClientCollection

    Raises:
        InvalidDeliveryContext: With a field_errors mapping such as
            {"destination.street": "is required"}
    """
    if isinstance(selection, _DELIVERY_TYPES):
        selection = to_dict(selection)
    if selection is None:
        raise InvalidDeliveryContext({"delivery": "is required"})
    if not isinstance(selection, Mapping):
        raise InvalidDeliveryContext({"delivery": "must be a mapping with a 'mode'"})

    raw_mode = selection.get("mode")
    if raw_mode is None:
        raise InvalidDeliveryContext({"mode": "is required"})
    try:
        mode = DeliveryMode(raw_mode)
    except ValueError:
        allowed = ", ".join(m.value for m in DeliveryMode)
        raise InvalidDeliveryContext({"mode": f"must be one of {allowed}"}) from None

    errors: Dict[str, str] = {}
    allowed_fields = _MODE_FIELDS[mode]
    for key in selection:
        if key != "mode" and key not in allowed_fields:
            errors[key] = f"does not apply to {mode.value} delivery"

    if mode is DeliveryMode.DIRECT:
        destination = _validate_address(selection.get("destination"), "destination", errors)
        info = DirectDelivery(destination=destination)
    elif mode is DeliveryMode.CLIENT_COLLECTION:
        address = _validate_address(
            selection.get("collection_address"), "collection_address", errors
        )
        info = ClientCollection(collection_address=address)
    else:
        company = _clean_text(selection.get("shipping_company"), "shipping_company", errors)
        if company is None and "shipping_company" not in errors:
            errors["shipping_company"] = "is required"
        info = ShippingCompanyDelivery(
            shipping_company=company,
            tracking_number=_clean_text(
                selection.get("tracking_number"), "tracking_number", errors
            ),
            label_file_ref=_clean_text(selection.get("label_file_ref"), "label_file_ref", errors),
        )

    if errors:
        raise InvalidDeliveryContext(errors)
    return info


def to_dict(info: DeliveryInfo) -> Dict[str, Any]:
    """
    Serialize a DeliveryInfo variant into selection shape.

    Example:
        >>> to_dict(ShippingCompanyDelivery("DHL"))
        {'mode': 'shipping-company', 'shipping_company': 'DHL', 'tracking_number': None, 'label_file_ref': None}
    """
    data = {"mode": info.mode.value}
    data.update(asdict(info))
    return data


def from_dict(data: Optional[Mapping[str, Any]]) -> Optional[DeliveryInfo]:
    """Rebuild stored delivery info; None stays None."""
    if data is None:
        return None
    return validate(data)


def ensure_same_mode(current: Optional[DeliveryInfo], replacement: DeliveryInfo) -> None:
    """
    Reject a mode switch once delivery info has been attached.

    Raises:
        InvalidDeliveryContext: If replacement uses a different mode than current
    """
    if current is not None and current.mode is not replacement.mode:
        raise InvalidDeliveryContext(
            {
                "mode": (
                    f"cannot switch from {current.mode.value} to {replacement.mode.value} "
                    f"without reverting the order first"
                )
            }
        )
