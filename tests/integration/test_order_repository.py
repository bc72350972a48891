"""Integration tests for order_repository serialization and compare-and-swap."""

import logging
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from flexo_orders.models import (
    Order,
    OrderStatus,
    PrepressSubProcess,
    ShippingCompanyDelivery,
    StageStatus,
)
from flexo_orders.services import order_repository, status_engine
from flexo_orders.services.exceptions import OrderNotFound


class TestOrderNumbers:
    """Tests for next_order_number()."""

    def test_format(self, test_db):
        session = test_db()
        now = datetime(2026, 3, 15, tzinfo=timezone.utc)
        assert order_repository.next_order_number(session, now) == "ORD-2603-0001"

    def test_counts_existing_orders(self, test_db, new_record):
        session = test_db()
        order_repository.insert(new_record, session)
        order_repository.insert(new_record, session)
        now = datetime(2026, 11, 2, tzinfo=timezone.utc)
        assert order_repository.next_order_number(session, now) == "ORD-2611-0003"


class TestStageSerialization:
    """Tests for stages_to_dict() / stages_from_dict()."""

    def test_stored_stages_reload(self, record_at):
        order = record_at(OrderStatus.DELIVERING)
        data = order_repository.stages_to_dict(order.stages)
        assert order_repository.stages_from_dict(data) == order.stages

    def test_empty_column_gives_fresh_stages(self):
        stages = order_repository.stages_from_dict(None)
        assert stages.design.status is StageStatus.NOT_STARTED
        assert set(stages.prepress.sub_processes) == set(PrepressSubProcess)
        assert stages.delivery.delivery_info is None

    def test_legacy_spellings(self):
        stages = order_repository.stages_from_dict(
            {
                "design": {"status": "Completed", "completion_date": "2025-06-01T10:00:00"},
                "prepress": {
                    "status": "In Progress",
                    "sub_processes": {
                        "positioning": {"status": "Completed"},
                        "washout": "In Progress",
                        "plate_mounting": "Completed",
                    },
                },
                "delivery": {"status": "Pending"},
            }
        )
        assert stages.design.status is StageStatus.COMPLETED
        assert stages.design.completion_date == datetime(2025, 6, 1, 10, tzinfo=timezone.utc)
        assert stages.prepress.status is StageStatus.IN_PROGRESS
        subs = stages.prepress.sub_processes
        assert subs[PrepressSubProcess.POSITIONING] is StageStatus.COMPLETED
        assert subs[PrepressSubProcess.WASHOUT] is StageStatus.IN_PROGRESS
        assert subs[PrepressSubProcess.DRYING] is StageStatus.NOT_STARTED
        assert len(subs) == len(PrepressSubProcess)
        assert stages.delivery.status is StageStatus.NOT_STARTED

    def test_previous_system_stage_keys(self):
        stages = order_repository.stages_from_dict(
            {
                "review": {"status": "Completed"},
                "production": {
                    "status": "In Progress",
                    "completionDate": "2025-06-01T10:00:00",
                },
                "prepress": {
                    "status": "Pending",
                    "subProcesses": {
                        "ripping": {"status": "Completed"},
                        "laserImaging": {"status": "Completed"},
                        "exposure": {"status": "Pending"},
                    },
                },
            }
        )
        assert stages.design.status is StageStatus.IN_PROGRESS
        assert stages.design.completion_date == datetime(2025, 6, 1, 10, tzinfo=timezone.utc)
        subs = stages.prepress.sub_processes
        assert subs[PrepressSubProcess.RIPPING] is StageStatus.COMPLETED
        assert subs[PrepressSubProcess.LASER_IMAGING] is StageStatus.COMPLETED
        assert subs[PrepressSubProcess.EXPOSURE] is StageStatus.NOT_STARTED

    def test_review_used_when_production_missing(self):
        stages = order_repository.stages_from_dict({"review": {"status": "Completed"}})
        assert stages.design.status is StageStatus.COMPLETED

    def test_unknown_sub_process_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="flexo_orders.services.order_repository"):
            stages = order_repository.stages_from_dict(
                {"prepress": {"sub_processes": {"plate_cutting": "completed"}}}
            )
        assert set(stages.prepress.sub_processes) == set(PrepressSubProcess)
        records = [r for r in caplog.records if getattr(r, "operation", None) == "load_stages"]
        assert len(records) == 1
        assert records[0].sub_process == "plate_cutting"


class TestLoadAndSwap:
    """Tests for load(), compare_and_swap() and compare_and_swap_stages()."""

    def test_load_missing(self, test_db):
        with pytest.raises(OrderNotFound):
            order_repository.load(42, test_db())

    def test_legacy_row_loads(self, test_db, new_record):
        session = test_db()
        stored = order_repository.insert(new_record, session)
        row = session.get(Order, stored.id)
        row.stages = {"design": {"status": "In Progress"}}
        session.flush()

        loaded = order_repository.load(stored.id, session)
        assert loaded.stages.design.status is StageStatus.IN_PROGRESS
        assert loaded.stages.prepress.status is StageStatus.NOT_STARTED

    def test_swap_bumps_revision(self, test_db, new_record):
        session = test_db()
        stored = order_repository.insert(new_record, session)
        designing = status_engine.apply_transition(stored, OrderStatus.DESIGNING)

        assert order_repository.compare_and_swap(
            stored.id, OrderStatus.SUBMITTED, designing, session
        )
        loaded = order_repository.load(stored.id, session)
        assert loaded.status is OrderStatus.DESIGNING
        assert loaded.stages_revision == 1

    def test_swap_with_wrong_status_fails(self, test_db, new_record):
        session = test_db()
        stored = order_repository.insert(new_record, session)
        designing = status_engine.apply_transition(stored, OrderStatus.DESIGNING)

        assert not order_repository.compare_and_swap(
            stored.id, OrderStatus.DESIGNING, designing, session
        )
        assert order_repository.current_status(stored.id, session) is OrderStatus.SUBMITTED

    def test_stage_swap_guarded_by_revision(self, test_db, new_record):
        session = test_db()
        stored = order_repository.insert(
            status_engine.apply_transition(
                status_engine.apply_transition(
                    status_engine.apply_transition(new_record, OrderStatus.DESIGNING),
                    OrderStatus.DESIGN_DONE,
                ),
                OrderStatus.IN_PREPRESS,
            ),
            session,
        )
        first = status_engine.update_prepress_sub_process(stored, "drying", "completed")
        second = status_engine.update_prepress_sub_process(stored, "finishing", "completed")

        assert order_repository.compare_and_swap_stages(stored.id, 0, first, session)
        assert not order_repository.compare_and_swap_stages(stored.id, 0, second, session)
        assert order_repository.current_revision(stored.id, session) == 1

        subs = order_repository.load(stored.id, session).stages.prepress.sub_processes
        assert subs[PrepressSubProcess.DRYING] is StageStatus.COMPLETED
        assert subs[PrepressSubProcess.FINISHING] is StageStatus.NOT_STARTED

    def test_delivery_info_round_trips_through_row(self, test_db, record_at):
        session = test_db()
        ready = record_at(OrderStatus.READY_FOR_DELIVERY)
        stored = order_repository.insert(replace(ready, order_number=None), session)
        loaded = order_repository.load(stored.id, session)
        assert loaded.delivery_info == ShippingCompanyDelivery(shipping_company="DHL Express")
