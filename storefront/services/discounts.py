"""
Discount Evaluator

Validates promotion codes against a purchase total and keeps their usage
counter. Validation never touches ``used_count``; :meth:`DiscountService.apply`
does, and checkout calls it inside the same transaction that persists the
order so a failed checkout never consumes a use.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import get_settings
from storefront.database.models import DiscountCode, DiscountType, utcnow
from storefront.errors import (
    DiscountLimitReachedError,
    DiscountNotFoundError,
    DuplicateDiscountCodeError,
    InvalidInputError,
)
from storefront.repositories import DiscountRepository
from storefront.repositories.discounts import normalize_code
from storefront.schemas import CreateDiscountCodeRequest, UpdateDiscountCodeRequest
from storefront.services.pagination import Page, clamp_page

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")
CLEARABLE_FIELDS = frozenset({"description", "min_purchase", "max_uses"})

MSG_NOT_FOUND = "Discount code not found"
MSG_INACTIVE = "Discount code is inactive"
MSG_NOT_STARTED = "Discount code not yet valid"
MSG_EXPIRED = "Discount code expired"
MSG_LIMIT_REACHED = "Discount code usage limit reached"
MSG_BELOW_MINIMUM = "Purchase amount does not meet minimum requirement"
MSG_VALID = "Discount code is valid"


@dataclass
class DiscountValidation:
    """Outcome of checking a code against a purchase total"""
    valid: bool
    amount: Decimal
    message: str
    discount_code: Optional[DiscountCode] = None


def as_utc_naive(value: datetime) -> datetime:
    """Convert an aware datetime to the naive UTC form stored in the database."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def compute_discount_amount(discount: DiscountCode, purchase_total: Decimal) -> Decimal:
    """Discount for ``purchase_total``, never larger than the total itself."""
    if discount.type == DiscountType.PERCENTAGE:
        amount = (purchase_total * Decimal(discount.value) / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
    else:
        amount = Decimal(discount.value)
    return min(amount, purchase_total)


class DiscountService:
    """Discount code validation, usage accounting and administration"""

    def __init__(self, session: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.discounts = DiscountRepository(session)
        self.clock = clock
        self.settings = get_settings().orders

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    async def validate(self, code: str, purchase_total: Decimal) -> DiscountValidation:
        """
        Check a code against a purchase total.

        Checks run in a fixed order and stop at the first failure: existence,
        active flag, start date, end date, usage cap, minimum purchase.
        """
        purchase_total = Decimal(purchase_total)
        discount = await self.discounts.get_by_code(code)
        if discount is None:
            return DiscountValidation(False, Decimal("0"), MSG_NOT_FOUND)

        def rejected(message: str) -> DiscountValidation:
            return DiscountValidation(False, Decimal("0"), message, discount)

        now = self.clock()
        if not discount.is_active:
            return rejected(MSG_INACTIVE)
        if now < discount.start_date:
            return rejected(MSG_NOT_STARTED)
        if now > discount.end_date:
            return rejected(MSG_EXPIRED)
        if discount.max_uses is not None and discount.used_count >= discount.max_uses:
            return rejected(MSG_LIMIT_REACHED)
        if discount.min_purchase is not None and purchase_total < discount.min_purchase:
            return rejected(MSG_BELOW_MINIMUM)

        amount = compute_discount_amount(discount, purchase_total)
        return DiscountValidation(True, amount, MSG_VALID, discount)

    async def apply(self, discount_id: UUID) -> DiscountCode:
        """
        Record one use of a code.

        Raises:
            DiscountNotFoundError: no such code
            DiscountLimitReachedError: the cap was reached in the meantime
        """
        if await self.discounts.increment_used_count(discount_id):
            discount = await self.discounts.get(discount_id, refresh=True)
            logger.info("Discount code applied", code=discount.code, used_count=discount.used_count)
            return discount

        discount = await self.discounts.get(discount_id, refresh=True)
        if discount is None:
            raise DiscountNotFoundError(str(discount_id))
        raise DiscountLimitReachedError(discount.code)

    # -------------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_rules(
        type_: DiscountType,
        value: Decimal,
        start_date: datetime,
        end_date: datetime,
        max_uses: Optional[int] = None,
        used_count: int = 0,
    ) -> None:
        if end_date < start_date:
            raise InvalidInputError("End date must be after start date", field="end_date")
        if type_ == DiscountType.PERCENTAGE and value > 100:
            raise InvalidInputError("Percentage discount cannot be greater than 100%", field="value")
        if max_uses is not None and max_uses < used_count:
            raise InvalidInputError(
                f"Max uses cannot be lower than the {used_count} uses already recorded",
                field="max_uses",
            )

    async def create(self, request: CreateDiscountCodeRequest) -> DiscountCode:
        start_date = as_utc_naive(request.start_date)
        end_date = as_utc_naive(request.end_date)
        self._check_rules(request.type, request.value, start_date, end_date)

        code = normalize_code(request.code)
        if await self.discounts.get_by_code(code) is not None:
            raise DuplicateDiscountCodeError(code)

        discount = await self.discounts.add(DiscountCode(
            code=code,
            description=request.description,
            type=request.type,
            value=request.value,
            min_purchase=request.min_purchase,
            max_uses=request.max_uses,
            used_count=0,
            start_date=start_date,
            end_date=end_date,
            is_active=request.is_active,
        ))
        logger.info("Discount code created", code=discount.code, type=discount.type.value)
        return discount

    async def get(self, discount_id: UUID) -> DiscountCode:
        discount = await self.discounts.get(discount_id)
        if discount is None:
            raise DiscountNotFoundError(str(discount_id))
        return discount

    async def list(self, page: int, page_size: int) -> Page:
        request = clamp_page(page, page_size, self.settings.default_page_size, self.settings.max_page_size)
        items = await self.discounts.list(limit=request.page_size, offset=request.offset)
        total = await self.discounts.count()
        return Page.build(items, total, request)

    async def update(self, discount_id: UUID, request: UpdateDiscountCodeRequest) -> DiscountCode:
        discount = await self.get(discount_id)
        # null clears the nullable columns and is ignored for the rest
        changes = {
            field: value
            for field, value in request.model_dump(exclude_unset=True).items()
            if value is not None or field in CLEARABLE_FIELDS
        }

        if "code" in changes:
            code = normalize_code(changes["code"])
            existing = await self.discounts.get_by_code(code)
            if existing is not None and existing.id != discount.id:
                raise DuplicateDiscountCodeError(code)
            changes["code"] = code
        for field in ("start_date", "end_date"):
            if field in changes:
                changes[field] = as_utc_naive(changes[field])

        self._check_rules(
            changes.get("type", discount.type),
            changes.get("value", discount.value),
            changes.get("start_date", discount.start_date),
            changes.get("end_date", discount.end_date),
            max_uses=changes.get("max_uses", discount.max_uses),
            used_count=discount.used_count,
        )

        for field, value in changes.items():
            setattr(discount, field, value)
        await self.discounts.save(discount)
        logger.info("Discount code updated", code=discount.code, fields=sorted(changes))
        return discount

    async def deactivate(self, discount_id: UUID) -> DiscountCode:
        """Soft delete: codes referenced by orders are kept but stop validating."""
        discount = await self.get(discount_id)
        discount.is_active = False
        await self.discounts.save(discount)
        logger.info("Discount code deactivated", code=discount.code)
        return discount
