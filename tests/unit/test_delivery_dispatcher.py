"""Unit tests for delivery_dispatcher."""

import pytest

from flexo_orders.models import (
    Address,
    ClientCollection,
    DeliveryMode,
    DirectDelivery,
    ShippingCompanyDelivery,
)
from flexo_orders.services import delivery_dispatcher
from flexo_orders.services.exceptions import InvalidDeliveryContext, ValidationError


def _field_errors(selection):
    with pytest.raises(InvalidDeliveryContext) as exc_info:
        delivery_dispatcher.validate(selection)
    return exc_info.value.field_errors


class TestValidate:
    """Tests for validate()."""

    def test_direct_delivery(self):
        info = delivery_dispatcher.validate(
            {
                "mode": "direct",
                "destination": {"street": " 4 Ink Road ", "city": "Giza", "country": "EG"},
            }
        )
        assert info == DirectDelivery(
            destination=Address(street="4 Ink Road", city="Giza", country="EG")
        )
        assert info.mode is DeliveryMode.DIRECT

    def test_shipping_company(self):
        info = delivery_dispatcher.validate(
            {"mode": "shipping-company", "shipping_company": "FedEx", "tracking_number": "77"}
        )
        assert info == ShippingCompanyDelivery(shipping_company="FedEx", tracking_number="77")

    def test_client_collection(self):
        info = delivery_dispatcher.validate(
            {
                "mode": "client-collection",
                "collection_address": {"street": "Warehouse 3", "postal_code": "11511"},
            }
        )
        assert isinstance(info, ClientCollection)
        assert info.collection_address.postal_code == "11511"

    def test_missing_selection(self):
        assert _field_errors(None) == {"delivery": "is required"}

    def test_missing_mode(self):
        assert _field_errors({"shipping_company": "DHL"}) == {"mode": "is required"}

    def test_unknown_mode(self):
        errors = _field_errors({"mode": "drone"})
        assert "mode" in errors
        assert "shipping-company" in errors["mode"]

    def test_direct_requires_street(self):
        errors = _field_errors({"mode": "direct", "destination": {"city": "Alexandria"}})
        assert errors == {"destination.street": "is required"}

    def test_street_alone_is_not_an_address(self):
        errors = _field_errors({"mode": "direct", "destination": {"street": "1 Main St"}})
        assert "destination" in errors

    def test_shipping_requires_company(self):
        errors = _field_errors({"mode": "shipping-company", "shipping_company": "   "})
        assert errors == {"shipping_company": "is required"}

    def test_fields_of_other_modes_rejected(self):
        errors = _field_errors(
            {
                "mode": "shipping-company",
                "shipping_company": "DHL",
                "destination": {"street": "x", "city": "y"},
            }
        )
        assert list(errors) == ["destination"]

    def test_unknown_address_field_rejected(self):
        errors = _field_errors(
            {
                "mode": "client-collection",
                "collection_address": {"street": "x", "city": "y", "floor": "2"},
            }
        )
        assert "collection_address.floor" in errors

    def test_non_text_field_rejected(self):
        errors = _field_errors({"mode": "shipping-company", "shipping_company": 42})
        assert errors == {"shipping_company": "must be text"}

    def test_error_is_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            delivery_dispatcher.validate({"mode": "direct"})
        assert exc_info.value.http_status_code == 400
        assert "destination is required" in str(exc_info.value)

    def test_accepts_existing_info(self):
        info = ShippingCompanyDelivery(shipping_company="UPS")
        assert delivery_dispatcher.validate(info) == info


class TestSerialization:
    """Tests for to_dict() / from_dict()."""

    def test_to_dict_shape(self):
        data = delivery_dispatcher.to_dict(
            DirectDelivery(destination=Address(street="1 Nile St", city="Cairo"))
        )
        assert data == {
            "mode": "direct",
            "destination": {
                "street": "1 Nile St",
                "city": "Cairo",
                "state": None,
                "postal_code": None,
                "country": None,
            },
        }

    @pytest.mark.parametrize(
        "info",
        [
            DirectDelivery(destination=Address(street="1 Nile St", city="Cairo")),
            ShippingCompanyDelivery(shipping_company="DHL", label_file_ref="labels/9.pdf"),
            ClientCollection(collection_address=Address(street="Dock 2", state="Giza")),
        ],
    )
    def test_stored_form_reloads(self, info):
        assert delivery_dispatcher.from_dict(delivery_dispatcher.to_dict(info)) == info

    def test_from_dict_none(self):
        assert delivery_dispatcher.from_dict(None) is None


class TestEnsureSameMode:
    """Tests for ensure_same_mode()."""

    def test_first_selection_allowed(self):
        delivery_dispatcher.ensure_same_mode(None, ShippingCompanyDelivery("DHL"))

    def test_same_mode_allowed(self):
        delivery_dispatcher.ensure_same_mode(
            ShippingCompanyDelivery("DHL"), ShippingCompanyDelivery("DHL", tracking_number="1")
        )

    def test_switch_rejected(self):
        with pytest.raises(InvalidDeliveryContext) as exc_info:
            delivery_dispatcher.ensure_same_mode(
                ShippingCompanyDelivery("DHL"),
                ClientCollection(collection_address=Address(street="a", city="b")),
            )
        assert "client-collection" in exc_info.value.field_errors["mode"]
