"""
Delivery information variants.

DeliveryInfo is a tagged union: every order carries at most one of
DirectDelivery, ShippingCompanyDelivery or ClientCollection. Instances are
built and checked by services.delivery_dispatcher.validate(); constructing
them directly skips the required-field checks.
"""

from dataclasses import dataclass
from typing import Optional, Union

from .enums import DeliveryMode


@dataclass(frozen=True)
class Address:
    """Postal address used as a delivery destination or pickup point."""

    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


ADDRESS_FIELDS = ("street", "city", "state", "postal_code", "country")


@dataclass(frozen=True)
class DirectDelivery:
    """Courier hands the plates over at the destination."""

    destination: Address

    @property
    def mode(self) -> DeliveryMode:
        return DeliveryMode.DIRECT


@dataclass(frozen=True)
class ShippingCompanyDelivery:
    """A third-party carrier ships the plates."""

    shipping_company: str
    tracking_number: Optional[str] = None
    label_file_ref: Optional[str] = None

    @property
    def mode(self) -> DeliveryMode:
        return DeliveryMode.SHIPPING_COMPANY


@dataclass(frozen=True)
class ClientCollection:
    """The client collects the plates from the given address."""

    collection_address: Address

    @property
    def mode(self) -> DeliveryMode:
        return DeliveryMode.CLIENT_COLLECTION


DeliveryInfo = Union[DirectDelivery, ShippingCompanyDelivery, ClientCollection]
