"""Pickup slots: recurring weekly windows in which customers collect their orders.

Weekdays are numbered 0 (Sunday) to 6 (Saturday). Times are ``HH:MM`` strings,
which sort the same way as the times they denote.
"""

import re
from datetime import UTC, datetime

from protean import handle, invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.shared.errors import ConflictError, NotFoundError, UnprocessableError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_TIME_PATTERN = re.compile(r"^(?:[01]\d|2[0-3]):[0-5]\d$")

WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def day_of_week_for(day):
    """Weekday number of a calendar date, 0 = Sunday."""
    return day.isoweekday() % 7


def windows_overlap(start_a, end_a, start_b, end_b):
    """Half-open windows overlap when each starts before the other ends.

    Back-to-back windows (``09:00-12:00`` and ``12:00-15:00``) do not overlap.
    """
    return start_a < end_b and end_a > start_b


@storefront.aggregate
class PickupSlot:
    merchant_id = Identifier(required=True)
    day_of_week = Integer(required=True, min_value=0, max_value=6)
    start_time = String(required=True, max_length=5)
    end_time = String(required=True, max_length=5)
    is_active = Boolean(default=True)
    created_at = DateTime()

    @invariant.post
    def times_must_be_well_formed(self):
        for field in ("start_time", "end_time"):
            value = getattr(self, field)
            if value and not _TIME_PATTERN.match(value):
                raise ValidationError({field: ["Time must use the HH:MM format"]})

    @invariant.post
    def window_must_end_after_it_starts(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValidationError({"end_time": ["End time must be after start time"]})

    @property
    def label(self):
        return f"{self.start_time} - {self.end_time}"

    def overlaps(self, other):
        return self.day_of_week == other.day_of_week and windows_overlap(
            self.start_time, self.end_time, other.start_time, other.end_time
        )

    def activate(self):
        self.is_active = True

    def deactivate(self):
        self.is_active = False


@storefront.repository(part_of=PickupSlot)
class PickupSlotRepository:
    def for_merchant(self, merchant_id, day_of_week=None, active_only=False):
        filters = {"merchant_id": str(merchant_id)}
        if day_of_week is not None:
            filters["day_of_week"] = day_of_week
        slots = self._dao.query.filter(**filters).all().items
        if active_only:
            slots = [s for s in slots if s.is_active]
        return sorted(slots, key=lambda s: (s.day_of_week, s.start_time))

    def find_for_merchant(self, merchant_id, slot_id):
        try:
            slot = self.get(slot_id)
        except ObjectNotFoundError:
            return None
        return slot if str(slot.merchant_id) == str(merchant_id) else None


class PickupSlotResolver:
    def __init__(self, repository=None):
        self._repository = repository

    @property
    def repository(self):
        return self._repository or current_domain.repository_for(PickupSlot)

    def resolve_active_slot(self, merchant_id, day_of_week, slot_id):
        """The merchant's active slot ``slot_id`` on ``day_of_week``.

        Slots of another weekday, inactive slots and slots of other merchants are
        all treated alike: the customer picked a window that cannot be honoured.
        """
        candidates = self.repository.for_merchant(merchant_id, day_of_week=day_of_week, active_only=True)
        slot = next((s for s in candidates if str(s.id) == str(slot_id)), None)
        if slot is None:
            raise UnprocessableError(
                f"The chosen pickup time is not available on {WEEKDAY_NAMES[day_of_week]}.",
                field="pickup_slot_id",
            )
        return slot


# ---------------------------------------------------------------------------
# Slot management
# ---------------------------------------------------------------------------
@storefront.command(part_of="PickupSlot")
class CreatePickupSlot:
    merchant_id = Identifier(required=True)
    day_of_week = Integer(required=True, min_value=0, max_value=6)
    start_time = String(required=True, max_length=5)
    end_time = String(required=True, max_length=5)


@storefront.command(part_of="PickupSlot")
class TogglePickupSlot:
    merchant_id = Identifier(required=True)
    slot_id = Identifier(required=True)
    is_active = Boolean(required=True)


def _assert_no_overlap(repo, slot):
    for other in repo.for_merchant(slot.merchant_id, day_of_week=slot.day_of_week, active_only=True):
        if str(other.id) != str(slot.id) and slot.overlaps(other):
            raise ConflictError(
                f"{slot.label} overlaps the existing slot {other.label} on {WEEKDAY_NAMES[slot.day_of_week]}.",
                field="start_time",
            )


@storefront.command_handler(part_of=PickupSlot)
class PickupSlotHandler:
    @handle(CreatePickupSlot)
    def create_pickup_slot(self, command):
        repo = current_domain.repository_for(PickupSlot)
        slot = PickupSlot(
            merchant_id=command.merchant_id,
            day_of_week=command.day_of_week,
            start_time=command.start_time,
            end_time=command.end_time,
            created_at=datetime.now(UTC),
        )
        _assert_no_overlap(repo, slot)
        repo.add(slot)
        logger.info(
            "pickup_slot_created",
            merchant_id=str(command.merchant_id),
            slot_id=str(slot.id),
            day_of_week=slot.day_of_week,
            window=slot.label,
        )
        return str(slot.id)

    @handle(TogglePickupSlot)
    def toggle_pickup_slot(self, command):
        repo = current_domain.repository_for(PickupSlot)
        slot = repo.find_for_merchant(command.merchant_id, command.slot_id)
        if slot is None:
            raise NotFoundError(f"Pickup slot {command.slot_id} not found.", field="slot_id")

        if command.is_active:
            if not slot.is_active:
                _assert_no_overlap(repo, slot)
            slot.activate()
        else:
            slot.deactivate()
        repo.add(slot)
        logger.info(
            "pickup_slot_toggled",
            merchant_id=str(command.merchant_id),
            slot_id=str(slot.id),
            is_active=slot.is_active,
        )
        return str(slot.id)
