"""Pytest configuration and fixtures for engine and service tests."""

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session

from flexo_orders.models import (
    InkColor,
    Material,
    OrderStatus,
    STATUS_PIPELINE,
    Specification,
)
from flexo_orders.models.base import Base
from flexo_orders.services import status_engine
from flexo_orders.services.status_engine import TransitionContext
from flexo_orders.utils.config import reset_config

SHIPPING_SELECTION = {"mode": "shipping-company", "shipping_company": "DHL Express"}


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep the config singleton off the real filesystem."""
    monkeypatch.setenv("FLEXO_ORDERS_DATABASE_URL", "sqlite:///:memory:")
    reset_config()
    yield
    reset_config()


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Swaps the global session factory for one bound to it
    4. Drops all tables after the test completes
    """
    engine = create_engine("sqlite:///:memory:", echo=False)

    # Registers the ORM rows with Base.metadata
    from flexo_orders.models import order  # noqa: F401

    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    import flexo_orders.services.database as db_module

    original_get_session_factory = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    db_module.get_session_factory = original_get_session_factory


@pytest.fixture
def sample_spec():
    """10 x 20, one repeat each way, 1.70 mm Flint, Cyan only (estimate 170.00)."""
    return Specification(
        material=Material.FLINT,
        material_thickness=Decimal("1.70"),
        width=Decimal("10"),
        height=Decimal("20"),
        used_colors={InkColor.CYAN},
    )


@pytest.fixture
def new_record(sample_spec):
    """An unsaved order in Submitted."""
    return status_engine.create_order_record(sample_spec, title="Test Labels", client_ref="client-1")


def walk_to(record, target, delivery=SHIPPING_SELECTION):
    """Advance a record through the pipeline until it reaches target."""
    if target is OrderStatus.CANCELLED:
        return status_engine.apply_transition(
            record, OrderStatus.CANCELLED, TransitionContext(cancellation_reason="test")
        )
    while record.status is not target:
        successor = status_engine.next_status(record.status)
        if successor is None or STATUS_PIPELINE.index(successor) > STATUS_PIPELINE.index(target):
            raise AssertionError(f"cannot walk from {record.status} to {target}")
        context = None
        if successor is OrderStatus.READY_FOR_DELIVERY:
            context = TransitionContext(delivery=delivery)
        record = status_engine.apply_transition(record, successor, context)
    return record


@pytest.fixture
def record_at(new_record):
    """Factory: unsaved order record already moved to the given status."""

    def _record_at(status, delivery=SHIPPING_SELECTION):
        return walk_to(new_record, status, delivery)

    return _record_at
