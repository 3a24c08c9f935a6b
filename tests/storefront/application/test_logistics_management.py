"""Application tests for pickup slot, delivery range and calendar management."""

from datetime import date, timedelta

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.logistics.delivery_area import DeliveryAreaValidator, DeliveryRange, RemoveDeliveryRange
from storefront.logistics.pickup_slot import PickupSlot, PickupSlotResolver, TogglePickupSlot
from storefront.logistics.schedule import (
    MAX_WINDOW_DAYS,
    ScheduleAvailability,
    ScheduleDay,
    SetDayAvailability,
    default_is_open,
)
from storefront.shared.errors import BadRequestError, ConflictError, NotFoundError, UnprocessableError


def _process(command):
    return current_domain.process(command, asynchronous=False)


class TestCreatePickupSlot:
    def test_creates_active_slot(self, make_slot, merchant):
        slot_id = make_slot(day_of_week=1, start_time="09:00", end_time="12:00")
        slot = current_domain.repository_for(PickupSlot).get(slot_id)
        assert slot.is_active is True
        assert str(slot.merchant_id) == str(merchant.id)
        assert slot.label == "09:00 - 12:00"

    def test_overlap_on_the_same_weekday_is_a_conflict(self, make_slot):
        make_slot(day_of_week=1, start_time="09:00", end_time="12:00")
        with pytest.raises(ConflictError):
            make_slot(day_of_week=1, start_time="11:00", end_time="13:00")

    def test_back_to_back_windows_are_allowed(self, make_slot):
        make_slot(day_of_week=1, start_time="09:00", end_time="12:00")
        assert make_slot(day_of_week=1, start_time="12:00", end_time="15:00")

    def test_same_window_on_another_weekday(self, make_slot):
        make_slot(day_of_week=1)
        assert make_slot(day_of_week=2)

    def test_other_merchants_slots_do_not_conflict(self, make_slot, other_merchant):
        make_slot(day_of_week=1)
        assert make_slot(day_of_week=1, merchant_id=other_merchant.id)

    def test_inactive_slots_do_not_conflict(self, make_slot, merchant):
        slot_id = make_slot(day_of_week=1)
        _process(TogglePickupSlot(merchant_id=merchant.id, slot_id=slot_id, is_active=False))
        assert make_slot(day_of_week=1, start_time="10:00", end_time="11:00")

    def test_end_before_start(self, make_slot):
        with pytest.raises(ValidationError):
            make_slot(start_time="14:00", end_time="09:00")


class TestTogglePickupSlot:
    def test_deactivate_and_reactivate(self, make_slot, merchant):
        slot_id = make_slot()
        _process(TogglePickupSlot(merchant_id=merchant.id, slot_id=slot_id, is_active=False))
        assert current_domain.repository_for(PickupSlot).get(slot_id).is_active is False

        _process(TogglePickupSlot(merchant_id=merchant.id, slot_id=slot_id, is_active=True))
        assert current_domain.repository_for(PickupSlot).get(slot_id).is_active is True

    def test_reactivation_rechecks_overlap(self, make_slot, merchant):
        first = make_slot(day_of_week=1, start_time="09:00", end_time="12:00")
        _process(TogglePickupSlot(merchant_id=merchant.id, slot_id=first, is_active=False))
        make_slot(day_of_week=1, start_time="10:00", end_time="11:00")

        with pytest.raises(ConflictError):
            _process(TogglePickupSlot(merchant_id=merchant.id, slot_id=first, is_active=True))
        assert current_domain.repository_for(PickupSlot).get(first).is_active is False

    def test_slot_of_another_merchant(self, make_slot, other_merchant):
        slot_id = make_slot()
        with pytest.raises(NotFoundError):
            _process(TogglePickupSlot(merchant_id=other_merchant.id, slot_id=slot_id, is_active=False))


class TestPickupSlotResolver:
    def test_resolves_active_slot_of_the_weekday(self, make_slot, merchant):
        slot_id = make_slot(day_of_week=3)
        slot = PickupSlotResolver().resolve_active_slot(merchant.id, 3, slot_id)
        assert str(slot.id) == slot_id

    def test_rejects_slot_of_another_weekday(self, make_slot, merchant):
        slot_id = make_slot(day_of_week=3)
        with pytest.raises(UnprocessableError) as exc:
            PickupSlotResolver().resolve_active_slot(merchant.id, 4, slot_id)
        assert "Thursday" in exc.value.message


class TestDeliveryRanges:
    def test_add_normalizes_postal_codes(self, make_range):
        range_id = make_range("01000-000", "05999-999")
        stored = current_domain.repository_for(DeliveryRange).get(range_id)
        assert (stored.postal_code_start, stored.postal_code_end) == ("01000000", "05999999")

    def test_start_after_end(self, make_range):
        with pytest.raises(UnprocessableError) as exc:
            make_range("05999999", "01000000")
        assert exc.value.field == "postal_code_end"

    def test_single_code_range(self, make_range, merchant):
        make_range("03000000", "03000000")
        assert DeliveryAreaValidator().is_served(merchant.id, "03000000").served is True

    def test_malformed_code(self, make_range):
        with pytest.raises(UnprocessableError):
            make_range("0100", "05999999")

    def test_remove(self, make_range, merchant):
        range_id = make_range()
        _process(RemoveDeliveryRange(merchant_id=merchant.id, range_id=range_id))
        assert current_domain.repository_for(DeliveryRange).for_merchant(merchant.id) == []

    def test_remove_range_of_another_merchant(self, make_range, other_merchant):
        range_id = make_range()
        with pytest.raises(NotFoundError):
            _process(RemoveDeliveryRange(merchant_id=other_merchant.id, range_id=range_id))


class TestDeliveryAreaValidator:
    def test_no_ranges_means_unrestricted(self, merchant):
        area = DeliveryAreaValidator().is_served(merchant.id, "99999999")
        assert (area.served, area.unrestricted) == (True, True)

    def test_inside_and_outside(self, make_range, merchant):
        make_range("01000000", "05999999")
        validator = DeliveryAreaValidator()
        assert validator.is_served(merchant.id, "03000000").served is True
        outside = validator.is_served(merchant.id, "99999999")
        assert (outside.served, outside.unrestricted) == (False, False)

    def test_overlapping_ranges_are_harmless(self, make_range, merchant):
        make_range("01000000", "03999999")
        make_range("02000000", "05999999")
        assert DeliveryAreaValidator().is_served(merchant.id, "02500000").served is True

    def test_ranges_of_other_merchants_are_ignored(self, make_range, merchant, other_merchant):
        make_range("01000000", "01999999", merchant_id=other_merchant.id)
        area = DeliveryAreaValidator().is_served(merchant.id, "99999999")
        assert area.unrestricted is True


class TestSetDayAvailability:
    def test_creates_override(self, merchant, next_weekday):
        day = next_weekday(1)
        _process(SetDayAvailability(merchant_id=merchant.id, date=day, is_open=False))
        assert ScheduleAvailability().is_open(merchant.id, day) is False

    def test_updates_existing_override(self, merchant, next_weekday):
        day = next_weekday(6)
        _process(SetDayAvailability(merchant_id=merchant.id, date=day, is_open=True))
        _process(SetDayAvailability(merchant_id=merchant.id, date=day, is_open=False))

        overrides = current_domain.repository_for(ScheduleDay)._dao.query.all().items
        assert len(overrides) == 1
        assert overrides[0].is_open is False

    def test_past_date(self, merchant):
        with pytest.raises(UnprocessableError):
            _process(
                SetDayAvailability(merchant_id=merchant.id, date=date.today() - timedelta(days=3), is_open=True)
            )

    def test_unknown_merchant(self):
        with pytest.raises(NotFoundError):
            _process(SetDayAvailability(merchant_id="nobody", date=date.today() + timedelta(days=3), is_open=True))


class TestScheduleAvailability:
    def test_default_rule_without_override(self, merchant, next_weekday):
        schedule = ScheduleAvailability()
        assert schedule.is_open(merchant.id, next_weekday(1)) is True
        assert schedule.is_open(merchant.id, next_weekday(0)) is False

    def test_override_opens_a_weekend(self, merchant, next_weekday):
        saturday = next_weekday(6)
        _process(SetDayAvailability(merchant_id=merchant.id, date=saturday, is_open=True))
        assert ScheduleAvailability().is_open(merchant.id, saturday) is True

    def test_resolve_default_window(self, merchant):
        today = date(2030, 1, 1)
        days = ScheduleAvailability().resolve_schedule(merchant.id, today=today)
        assert len(days) == 60
        assert days[0]["date"] == today
        assert all(d["is_default"] for d in days)
        assert all(d["is_open"] == default_is_open(d["date"]) for d in days)

    def test_resolve_marks_overrides_and_past_days(self, merchant, next_weekday):
        saturday = next_weekday(6)
        _process(SetDayAvailability(merchant_id=merchant.id, date=saturday, is_open=True))

        today = date.today()
        days = ScheduleAvailability().resolve_schedule(
            merchant.id, today=today, date_from=today - timedelta(days=2), date_to=saturday
        )
        by_date = {d["date"]: d for d in days}
        assert by_date[saturday]["is_open"] is True
        assert by_date[saturday]["is_default"] is False
        assert by_date[today - timedelta(days=2)]["is_editable"] is False
        assert by_date[today]["is_editable"] is True

    def test_window_too_long(self, merchant):
        today = date(2030, 1, 1)
        with pytest.raises(BadRequestError):
            ScheduleAvailability().resolve_schedule(
                merchant.id, today=today, date_from=today, date_to=today + timedelta(days=MAX_WINDOW_DAYS)
            )

    def test_inverted_window(self, merchant):
        today = date(2030, 1, 1)
        with pytest.raises(BadRequestError):
            ScheduleAvailability().resolve_schedule(
                merchant.id, today=today, date_from=today, date_to=today - timedelta(days=1)
            )
