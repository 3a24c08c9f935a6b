"""Merchant aggregate: the tenant that owns a catalogue, a calendar and its orders."""

import re
from datetime import UTC, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String

from storefront.domain import storefront

DEFAULT_TIMEZONE = "America/Sao_Paulo"

_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


@storefront.aggregate
class Merchant:
    """A store publishing its catalogue under a public slug.

    The merchant also owns the order counter: every placed order takes the next
    number, and the counter is saved in the same unit of work as the order so a
    failed placement never consumes a number.
    """

    name = String(required=True, max_length=120)
    slug = String(required=True, max_length=80, unique=True)
    timezone = String(max_length=64, default=DEFAULT_TIMEZONE)
    is_active = Boolean(default=True)
    last_order_number = Integer(default=0, min_value=0)
    created_at = DateTime(default=lambda: datetime.now(UTC))

    @invariant.post
    def slug_must_be_url_safe(self):
        if self.slug and not _SLUG_PATTERN.match(self.slug):
            raise ValidationError({"slug": ["Slug must contain only lowercase alphanumeric characters and hyphens"]})

    @invariant.post
    def timezone_must_be_known(self):
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValidationError({"timezone": [f"Unknown timezone: {self.timezone}"]}) from None

    @classmethod
    def register(cls, name, slug, timezone=None):
        return cls(
            name=name.strip(),
            slug=slug.strip().lower(),
            timezone=timezone or DEFAULT_TIMEZONE,
        )

    def today(self):
        """The current calendar day where the merchant operates."""
        return datetime.now(ZoneInfo(self.timezone)).date()

    def issue_order_number(self):
        self.last_order_number = (self.last_order_number or 0) + 1
        return self.last_order_number


@storefront.repository(part_of=Merchant)
class MerchantRepository:
    def find_by_slug(self, slug):
        """Active merchant published under ``slug``, or None."""
        if not slug:
            return None
        merchants = self._dao.query.filter(slug=slug.strip().lower()).all().items
        return next((m for m in merchants if m.is_active), None)
