"""Promotion browsing and step progress."""
from typing import Sequence

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..access import is_admin
from ..dependencies import get_current_principal, get_db_session, require_admin
from ..models import Promotion, UserPromotionProgress
from ..schemas import (
    AssignmentEnvelope,
    AssignmentRead,
    AssignmentRequest,
    ProgressEnvelope,
    ProgressRead,
    ProgressUpdate,
    PromotionCreate,
    PromotionDetail,
    PromotionEnvelope,
    PromotionPatch,
    PromotionRead,
    PromotionStepRead,
)
from ..security import Principal
from ..services import PromotionCatalog, PromotionProgressEngine

router = APIRouter(prefix="/promotions", tags=["promotions"])


@router.get("", response_model=list[PromotionRead])
async def list_promotions(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> Sequence[Promotion]:
    """Active promotions; users only see the ones assigned to them."""

    return await PromotionCatalog(session).list_promotions(principal)


@router.post("", response_model=PromotionEnvelope)
async def create_promotion(
    payload: PromotionCreate,
    _: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> PromotionEnvelope:
    promotion = await PromotionCatalog(session).create_promotion(payload)
    return PromotionEnvelope(
        message="Promotion created", promotion=PromotionRead.model_validate(promotion)
    )


@router.post("/assign", response_model=AssignmentEnvelope)
async def assign_promotion(
    payload: AssignmentRequest,
    _: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> AssignmentEnvelope:
    """Let a user see and progress a promotion."""

    assignment, created = await PromotionCatalog(session).assign(
        payload.user_id, payload.promotion_id
    )
    return AssignmentEnvelope(
        message="Promotion assigned" if created else "Promotion already assigned",
        assignment=AssignmentRead.model_validate(assignment),
    )


@router.get("/{promotion_id}", response_model=PromotionDetail)
async def read_promotion(
    promotion_id: int,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> PromotionDetail:
    """Return a promotion together with its ordered steps."""

    promotion = await PromotionCatalog(session).get_visible(principal, promotion_id)
    return PromotionDetail(
        promotion=PromotionRead.model_validate(promotion),
        steps=[PromotionStepRead.model_validate(step) for step in promotion.steps],
    )


@router.patch("/{promotion_id}", response_model=PromotionEnvelope)
async def update_promotion(
    promotion_id: int,
    patch: PromotionPatch,
    _: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> PromotionEnvelope:
    promotion, changed = await PromotionCatalog(session).update_promotion(promotion_id, patch)
    return PromotionEnvelope(
        message="Promotion updated" if changed else "No changes",
        promotion=PromotionRead.model_validate(promotion),
    )


@router.get("/{promotion_id}/progress", response_model=ProgressRead)
async def read_progress(
    promotion_id: int,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> UserPromotionProgress:
    return await PromotionProgressEngine(session).get_progress(principal.user_id, promotion_id)


@router.post("/{promotion_id}/progress", response_model=ProgressEnvelope)
async def record_progress(
    promotion_id: int,
    payload: ProgressUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> ProgressEnvelope:
    """Store the caller's completed steps and return the derived progress."""

    progress, created = await PromotionProgressEngine(session).record_progress(
        principal.user_id,
        promotion_id,
        payload.completed_steps,
        enforce_assignment=not is_admin(principal.role),
    )
    return ProgressEnvelope(
        message="Progress created" if created else "Progress updated",
        progress=ProgressRead.model_validate(progress),
    )
