"""
Promotion management and per-user step progress.

Progress is derived from the set of completed step numbers:
``floor(100 * completed / total)``. Completing step 1 of a promotion that
names a sportsbook provisions an account with that name for the user.
"""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..access import is_admin
from ..errors import NotAssigned, NotFoundError, ValidationError
from ..models import (
    Account,
    Promotion,
    PromotionAssignment,
    PromotionStep,
    User,
    UserPromotionProgress,
)
from ..models.promotion import STATUS_ACTIVE, STATUS_ARCHIVED
from ..schemas import PromotionCreate, PromotionPatch
from ..security import Principal
from .unit_of_work import atomic

logger = logging.getLogger(__name__)

PROVISIONING_STEP = 1


def progress_percentage(completed: int, total: int) -> int:
    """Whole-number percentage, truncated; 0 when there are no steps."""

    if total <= 0:
        return 0
    return (100 * completed) // total


async def load_promotion(session: AsyncSession, promotion_id: int) -> Promotion:
    result = await session.execute(
        select(Promotion)
        .where(Promotion.id == promotion_id)
        .options(selectinload(Promotion.steps))
        .execution_options(populate_existing=True)
    )
    promotion = result.scalar_one_or_none()
    if promotion is None:
        raise NotFoundError("Promotion not found")
    return promotion


async def is_assigned(session: AsyncSession, user_id: int, promotion_id: int) -> bool:
    result = await session.execute(
        select(PromotionAssignment.id).where(
            PromotionAssignment.user_id == user_id,
            PromotionAssignment.promotion_id == promotion_id,
        )
    )
    return result.first() is not None


class PromotionCatalog:
    """Creating, editing, listing and assigning promotions."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_promotions(
        self, principal: Principal, include_archived: bool = False
    ) -> Sequence[Promotion]:
        """Promotions visible to the caller, newest first.

        Non-admins only see promotions assigned to them.
        """

        stmt = select(Promotion).order_by(Promotion.id.desc())
        if not include_archived:
            stmt = stmt.where(Promotion.status != STATUS_ARCHIVED)
        if not is_admin(principal.role):
            stmt = stmt.join(
                PromotionAssignment, PromotionAssignment.promotion_id == Promotion.id
            ).where(PromotionAssignment.user_id == principal.user_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_visible(self, principal: Principal, promotion_id: int) -> Promotion:
        promotion = await load_promotion(self.session, promotion_id)
        if not is_admin(principal.role) and not await is_assigned(
            self.session, principal.user_id, promotion_id
        ):
            raise NotAssigned()
        return promotion

    async def create_promotion(self, payload: PromotionCreate) -> Promotion:
        title = (payload.title or "").strip()
        if not title:
            raise ValidationError("Missing title")

        steps = payload.steps or []
        numbers = [step.step_number for step in steps]
        if len(numbers) != len(set(numbers)):
            raise ValidationError("Duplicate step_number in steps")

        promotion = Promotion(
            title=title,
            description=payload.description,
            image_url=payload.image_url,
            start_date=payload.start_date,
            end_date=payload.end_date,
            sportsbook_name=payload.sportsbook_name,
            status=payload.status or STATUS_ACTIVE,
            steps=[
                PromotionStep(
                    step_number=step.step_number,
                    title=step.title,
                    description=step.description,
                )
                for step in sorted(steps, key=lambda s: s.step_number)
            ],
        )
        async with atomic(self.session, "Promotion creation"):
            self.session.add(promotion)
        logger.info("Promotion %s created with %d steps", promotion.id, len(numbers))
        return await load_promotion(self.session, promotion.id)

    async def update_promotion(
        self, promotion_id: int, patch: PromotionPatch
    ) -> tuple[Promotion, bool]:
        changes = patch.changes()
        if "title" in changes and not (changes["title"] or "").strip():
            raise ValidationError("title may not be empty")
        if "status" in changes and not changes["status"]:
            raise ValidationError("status may not be empty")

        async with atomic(self.session, "Promotion update"):
            promotion = await load_promotion(self.session, promotion_id)
            if not changes:
                return promotion, False
            for field, value in changes.items():
                setattr(promotion, field, value)
        await self.session.refresh(promotion)
        logger.info("Promotion %s updated: %s", promotion_id, sorted(changes))
        return promotion, True

    async def assign(self, user_id: int | None, promotion_id: int | None) -> tuple[PromotionAssignment, bool]:
        """Grant `user_id` access to a promotion; repeated calls are no-ops."""

        if user_id is None or promotion_id is None:
            raise ValidationError("Missing userId or promotionId")
        if await self.session.get(User, user_id) is None:
            raise NotFoundError("User not found")
        await load_promotion(self.session, promotion_id)

        result = await self.session.execute(
            select(PromotionAssignment).where(
                PromotionAssignment.user_id == user_id,
                PromotionAssignment.promotion_id == promotion_id,
            )
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            return existing, False

        assignment = PromotionAssignment(user_id=user_id, promotion_id=promotion_id)
        try:
            async with atomic(self.session, "Promotion assignment", passthrough=(IntegrityError,)):
                self.session.add(assignment)
        except IntegrityError:
            # Someone assigned the same pair concurrently.
            result = await self.session.execute(
                select(PromotionAssignment).where(
                    PromotionAssignment.user_id == user_id,
                    PromotionAssignment.promotion_id == promotion_id,
                )
            )
            return result.scalar_one(), False
        logger.info("Promotion %s assigned to user %s", promotion_id, user_id)
        return assignment, True


class PromotionProgressEngine:
    """Records completed steps and derives the progress percentage."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_progress(self, user_id: int, promotion_id: int) -> UserPromotionProgress:
        result = await self.session.execute(
            select(UserPromotionProgress).where(
                UserPromotionProgress.user_id == user_id,
                UserPromotionProgress.promotion_id == promotion_id,
            )
        )
        progress = result.scalar_one_or_none()
        if progress is None:
            raise NotFoundError("No progress recorded for this promotion")
        return progress

    async def record_progress(
        self,
        user_id: int,
        promotion_id: int,
        completed_steps: Iterable[int] | None,
        enforce_assignment: bool = True,
    ) -> tuple[UserPromotionProgress, bool]:
        """Store the user's completed steps; returns the row and whether it was created.

        Replaying the same step set leaves the percentage and `started_at`
        untouched. `completed_at` is stamped once, on first reaching 100.
        """

        if completed_steps is None:
            raise ValidationError("Missing completedSteps")

        promotion = await load_promotion(self.session, promotion_id)
        if enforce_assignment and not await is_assigned(self.session, user_id, promotion_id):
            raise NotAssigned()

        steps = sorted(set(completed_steps))
        defined = {step.step_number for step in promotion.steps}
        unknown = [number for number in steps if number not in defined]
        if unknown:
            raise ValidationError(f"Unknown step numbers: {unknown}")
        pct = progress_percentage(len(steps), len(defined))

        try:
            async with atomic(self.session, "Progress update", passthrough=(IntegrityError,)):
                progress, created = await self._upsert(user_id, promotion, steps, pct)
        except IntegrityError:
            # Lost the race to insert the first row; the row exists now.
            logger.info(
                "Concurrent first progress for user %s promotion %s, retrying as update",
                user_id,
                promotion_id,
            )
            promotion = await load_promotion(self.session, promotion_id)
            async with atomic(self.session, "Progress update"):
                progress, created = await self._upsert(user_id, promotion, steps, pct)

        await self.session.refresh(progress)
        return progress, created

    async def _upsert(
        self, user_id: int, promotion: Promotion, steps: list[int], pct: int
    ) -> tuple[UserPromotionProgress, bool]:
        result = await self.session.execute(
            select(UserPromotionProgress)
            .where(
                UserPromotionProgress.user_id == user_id,
                UserPromotionProgress.promotion_id == promotion.id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        progress = result.scalar_one_or_none()
        now = datetime.utcnow()
        created = progress is None

        if created:
            progress = UserPromotionProgress(
                user_id=user_id,
                promotion_id=promotion.id,
                completed_steps=steps,
                progress_pct=pct,
                started_at=now,
            )
            self.session.add(progress)
        else:
            progress.completed_steps = steps
            progress.progress_pct = pct

        if pct == 100 and progress.completed_at is None:
            progress.completed_at = now

        if PROVISIONING_STEP in steps and promotion.sportsbook_name:
            await self._provision_account(user_id, promotion.sportsbook_name)

        await self.session.flush()
        return progress, created

    async def _provision_account(self, user_id: int, name: str) -> Account | None:
        """Create the sportsbook account unless the user already has one by that name."""

        result = await self.session.execute(
            select(Account.id).where(Account.user_id == user_id, Account.name == name)
        )
        if result.first() is not None:
            return None

        account = Account(user_id=user_id, name=name, balance=Decimal("0.00"))
        self.session.add(account)
        logger.info("Provisioned %r account for user %s", name, user_id)
        return account
