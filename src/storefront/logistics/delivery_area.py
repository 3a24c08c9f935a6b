"""Delivery ranges: the postal-code intervals a merchant ships to.

A merchant with no ranges delivers everywhere. With ranges configured, a postal
code is served when it falls inside at least one inclusive ``[start, end]``
interval. Codes are kept as 8 zero-padded digits, so comparing the strings is
the same as comparing the numbers. Ranges may overlap; they are never merged.
"""

from datetime import UTC, datetime

from protean import handle, invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.shared.errors import NotFoundError, UnprocessableError
from storefront.shared.postal_code import normalize_postal_code
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@storefront.aggregate
class DeliveryRange:
    merchant_id = Identifier(required=True)
    postal_code_start = String(required=True, max_length=8, min_length=8)
    postal_code_end = String(required=True, max_length=8, min_length=8)
    created_at = DateTime()

    @invariant.post
    def start_must_not_exceed_end(self):
        if self.postal_code_start and self.postal_code_end and self.postal_code_start > self.postal_code_end:
            raise ValidationError({"postal_code_end": ["Range end must not be before its start"]})

    def contains(self, postal_code):
        return self.postal_code_start <= postal_code <= self.postal_code_end


@storefront.repository(part_of=DeliveryRange)
class DeliveryRangeRepository:
    def for_merchant(self, merchant_id):
        ranges = self._dao.query.filter(merchant_id=str(merchant_id)).all().items
        return sorted(ranges, key=lambda r: (r.postal_code_start, r.postal_code_end))


@storefront.value_object
class ServiceArea:
    """Outcome of a delivery-area check."""

    served: Boolean(required=True)
    unrestricted: Boolean(default=False)


class DeliveryAreaValidator:
    def __init__(self, repository=None):
        self._repository = repository

    @property
    def repository(self):
        return self._repository or current_domain.repository_for(DeliveryRange)

    def is_served(self, merchant_id, postal_code):
        """Decide whether ``postal_code`` (already normalized) is inside the merchant's area."""
        ranges = self.repository.for_merchant(merchant_id)
        if not ranges:
            return ServiceArea(served=True, unrestricted=True)
        return ServiceArea(served=any(r.contains(postal_code) for r in ranges), unrestricted=False)


# ---------------------------------------------------------------------------
# Range management
# ---------------------------------------------------------------------------
@storefront.command(part_of="DeliveryRange")
class AddDeliveryRange:
    merchant_id = Identifier(required=True)
    postal_code_start = String(required=True, max_length=9)
    postal_code_end = String(required=True, max_length=9)


@storefront.command(part_of="DeliveryRange")
class RemoveDeliveryRange:
    merchant_id = Identifier(required=True)
    range_id = Identifier(required=True)


@storefront.command_handler(part_of=DeliveryRange)
class DeliveryRangeHandler:
    @handle(AddDeliveryRange)
    def add_delivery_range(self, command):
        start = normalize_postal_code(command.postal_code_start, field="postal_code_start")
        end = normalize_postal_code(command.postal_code_end, field="postal_code_end")
        if start > end:
            raise UnprocessableError(
                "The first postal code must be lower than or equal to the last.",
                field="postal_code_end",
            )

        delivery_range = DeliveryRange(
            merchant_id=command.merchant_id,
            postal_code_start=start,
            postal_code_end=end,
            created_at=datetime.now(UTC),
        )
        current_domain.repository_for(DeliveryRange).add(delivery_range)
        logger.info(
            "delivery_range_added",
            merchant_id=str(command.merchant_id),
            range_id=str(delivery_range.id),
            start=start,
            end=end,
        )
        return str(delivery_range.id)

    @handle(RemoveDeliveryRange)
    def remove_delivery_range(self, command):
        repo = current_domain.repository_for(DeliveryRange)
        try:
            delivery_range = repo.get(command.range_id)
        except ObjectNotFoundError:
            delivery_range = None
        if delivery_range is None or str(delivery_range.merchant_id) != str(command.merchant_id):
            raise NotFoundError(f"Delivery range {command.range_id} not found.", field="range_id")

        repo._dao.delete(delivery_range)
        logger.info("delivery_range_removed", merchant_id=str(command.merchant_id), range_id=str(command.range_id))
