# This project was developed with assistance from AI tools.
"""Lender pipeline routes: listing, detail, decisions, and stage events."""

import logging

from db import get_db
from db.enums import PreApprovalDecision, UserRole
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings as app_settings
from ..middleware.auth import CurrentUser, require_roles
from ..schemas import Pagination
from ..schemas.error import EngineError
from ..schemas.pipeline import DecisionRequest, PipelineListResponse, PipelineRecord, StageEventRequest
from ..services import loans as loan_service
from ..services.settings_store import load_settings
from ._errors import http_error, not_found

logger = logging.getLogger(__name__)

router = APIRouter()

_VIEW_ROLES = (UserRole.ADMIN, UserRole.LOAN_OFFICER, UserRole.EVALUATOR)
_DECIDE_ROLES = (UserRole.ADMIN, UserRole.LOAN_OFFICER)


@router.get(
    "",
    response_model=PipelineListResponse,
    dependencies=[Depends(require_roles(*_VIEW_ROLES))],
)
async def list_pipeline(
    offset: int = Query(default=0, ge=0),
    limit: int | None = Query(default=None, ge=1, le=200),
    session: AsyncSession = Depends(get_db),
) -> PipelineListResponse:
    """Pipeline records, most recently updated loans first."""
    limit = limit or app_settings.PIPELINE_PAGE_SIZE
    records, total = await loan_service.list_pipeline_records(
        session, await load_settings(session), offset=offset, limit=limit
    )
    return PipelineListResponse(
        data=records,
        pagination=Pagination(
            total=total,
            offset=offset,
            limit=limit,
            has_more=(offset + limit < total),
        ),
    )


@router.get(
    "/{loan_id}",
    response_model=PipelineRecord,
    dependencies=[Depends(require_roles(*_VIEW_ROLES))],
)
async def get_pipeline_record(loan_id: str, session: AsyncSession = Depends(get_db)) -> PipelineRecord:
    record = await loan_service.get_pipeline_record(session, loan_id, await load_settings(session))
    if record is None:
        raise not_found()
    return record


@router.post(
    "/{loan_id}/decision",
    response_model=PipelineRecord,
    dependencies=[Depends(require_roles(*_DECIDE_ROLES))],
)
async def record_decision(
    loan_id: str,
    body: DecisionRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PipelineRecord:
    """Record a pre-approval decision.

    DECLINE and REQUEST_INFO both need notes here; the borrower sees them.
    """
    if body.decision == PreApprovalDecision.REQUEST_INFO.value and not (body.notes or "").strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="notes: Notes are required when requesting more information",
        )
    result = await loan_service.decide(
        session, loan_id, body.decision, body.notes, await load_settings(session)
    )
    if isinstance(result, EngineError):
        raise http_error(result)
    logger.info("Loan %s decision %s recorded by %s", loan_id, body.decision, user.user_id)
    return result


@router.post(
    "/{loan_id}/events",
    response_model=PipelineRecord,
    dependencies=[Depends(require_roles(*_DECIDE_ROLES))],
)
async def record_stage_event(
    loan_id: str,
    body: StageEventRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PipelineRecord:
    """Advance the loan one stage with the event expected at its current stage."""
    result = await loan_service.advance(session, loan_id, body.event, await load_settings(session))
    if isinstance(result, EngineError):
        raise http_error(result)
    logger.info("Loan %s event %s recorded by %s", loan_id, body.event, user.user_id)
    return result
