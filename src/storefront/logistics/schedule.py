"""Opening calendar: default weekday rule plus per-date overrides."""

from datetime import UTC, date, datetime, timedelta

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Date, DateTime, Identifier
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.merchant.merchant import Merchant
from storefront.shared.errors import BadRequestError, NotFoundError, UnprocessableError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_WINDOW_DAYS = 60
MAX_WINDOW_DAYS = 90

# date.weekday(): Monday is 0, Sunday is 6
_OPEN_WEEKDAYS = frozenset({0, 1, 2, 3, 4})


def default_is_open(day):
    """Monday to Friday open, weekends closed."""
    return day.weekday() in _OPEN_WEEKDAYS


@storefront.aggregate
class ScheduleDay:
    """An explicit open/closed decision for one calendar date."""

    merchant_id = Identifier(required=True)
    date = Date(required=True)
    is_open = Boolean(required=True)
    updated_at = DateTime()


@storefront.repository(part_of=ScheduleDay)
class ScheduleDayRepository:
    def find_for_date(self, merchant_id, day):
        overrides = self._dao.query.filter(merchant_id=str(merchant_id), date=day).all().items
        return overrides[0] if overrides else None

    def between(self, merchant_id, date_from, date_to):
        overrides = self._dao.query.filter(merchant_id=str(merchant_id)).all().items
        return {o.date: o for o in overrides if date_from <= o.date <= date_to}


class ScheduleAvailability:
    def __init__(self, repository=None):
        self._repository = repository

    @property
    def repository(self):
        return self._repository or current_domain.repository_for(ScheduleDay)

    def override_for(self, merchant_id, day):
        return self.repository.find_for_date(merchant_id, day)

    def is_open(self, merchant_id, day):
        override = self.override_for(merchant_id, day)
        if override is not None:
            return override.is_open
        return default_is_open(day)

    def resolve_schedule(self, merchant_id, today, date_from=None, date_to=None):
        """Resolve every day of ``[date_from, date_to]`` for the merchant calendar.

        Without bounds the window starts at ``today`` and spans
        ``DEFAULT_WINDOW_DAYS`` days. Windows longer than ``MAX_WINDOW_DAYS`` or
        ending before they start are rejected. Past days stay readable but are
        flagged as not editable.
        """
        date_from = date_from or today
        date_to = date_to or date_from + timedelta(days=DEFAULT_WINDOW_DAYS - 1)

        if date_to < date_from:
            raise BadRequestError("The end of the period must not be before its start.", field="to")
        if (date_to - date_from).days + 1 > MAX_WINDOW_DAYS:
            raise BadRequestError(f"The period cannot exceed {MAX_WINDOW_DAYS} days.", field="to")

        overrides = self.repository.between(merchant_id, date_from, date_to)
        days = []
        day = date_from
        while day <= date_to:
            override = overrides.get(day)
            days.append(
                {
                    "date": day,
                    "is_open": override.is_open if override else default_is_open(day),
                    "is_default": override is None,
                    "is_editable": day >= today,
                }
            )
            day += timedelta(days=1)
        return days


# ---------------------------------------------------------------------------
# Calendar management
# ---------------------------------------------------------------------------
@storefront.command(part_of="ScheduleDay")
class SetDayAvailability:
    merchant_id = Identifier(required=True)
    date = Date(required=True)
    is_open = Boolean(required=True)


@storefront.command_handler(part_of=ScheduleDay)
class ScheduleDayHandler:
    @handle(SetDayAvailability)
    def set_day_availability(self, command):
        try:
            merchant = current_domain.repository_for(Merchant).get(command.merchant_id)
        except ObjectNotFoundError:
            raise NotFoundError(f"Merchant {command.merchant_id} not found.") from None

        day = command.date if isinstance(command.date, date) else date.fromisoformat(str(command.date))
        if day < merchant.today():
            raise UnprocessableError("Past dates cannot be changed.", field="date")

        repo = current_domain.repository_for(ScheduleDay)
        override = repo.find_for_date(merchant.id, day)
        if override is None:
            override = ScheduleDay(merchant_id=merchant.id, date=day, is_open=command.is_open)
        else:
            override.is_open = command.is_open
        override.updated_at = datetime.now(UTC)
        repo.add(override)

        logger.info(
            "schedule_override_set",
            merchant_id=str(merchant.id),
            date=day.isoformat(),
            is_open=override.is_open,
        )
        return str(override.id)
