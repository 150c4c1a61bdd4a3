# This project was developed with assistance from AI tools.
"""Per-loan routes: underwriting formulas, role forms, and intake prefill."""

from db import get_db
from db.enums import FormType, UserRole
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings as app_settings
from ..middleware.auth import CurrentUser, require_roles
from ..schemas.completeness import FormResponse, FormSaveRequest
from ..schemas.error import EngineError
from ..schemas.formulas import FormulaResult
from ..schemas.prefill import UnderwritingPrefill
from ..services import loans as loan_service
from ..services.formulas import compute_formulas
from ..services.settings_store import load_settings
from ._errors import http_error, not_found

router = APIRouter()

_LENDER_ROLES = (UserRole.ADMIN, UserRole.LOAN_OFFICER, UserRole.EVALUATOR)


@router.get(
    "/{loan_id}/formulas",
    response_model=FormulaResult,
    dependencies=[Depends(require_roles(*_LENDER_ROLES))],
)
async def get_formulas(loan_id: str, session: AsyncSession = Depends(get_db)) -> FormulaResult:
    """Every underwriting metric for the loan under the current settings."""
    row = await loan_service.get_loan(session, loan_id)
    if row is None:
        raise not_found()
    result = compute_formulas(loan_service.to_loan_record(row), await load_settings(session))
    if isinstance(result, EngineError):
        raise http_error(result)
    return result


@router.get("/{loan_id}/forms/{form_type}", response_model=FormResponse)
async def get_form(
    loan_id: str,
    form_type: FormType,
    _user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> FormResponse:
    """Stored values of one role form with its missing required fields."""
    result = await loan_service.get_form(session, loan_id, form_type)
    if result is None:
        raise not_found()
    return result


@router.put("/{loan_id}/forms/{form_type}", response_model=FormResponse)
async def save_form(
    loan_id: str,
    form_type: FormType,
    body: FormSaveRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> FormResponse:
    """Replace a role form's values. Fields left out of the body are cleared."""
    result = await loan_service.save_form(session, user, loan_id, form_type, body.values)
    if result is None:
        raise not_found()
    if isinstance(result, EngineError):
        if result.field == "role":
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=result.message)
        raise http_error(result)
    return result


@router.get(
    "/{loan_id}/prefill",
    response_model=UnderwritingPrefill,
    dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.LOAN_OFFICER, UserRole.BORROWER))],
)
async def get_prefill(loan_id: str, session: AsyncSession = Depends(get_db)) -> UnderwritingPrefill:
    """Facts from the borrower's other loans that may prefill this loan's intake."""
    result = await loan_service.get_prefill(
        session,
        loan_id,
        app_settings.PREFILL_FRESHNESS_WINDOW_DAYS,
        await load_settings(session),
    )
    if result is None:
        raise not_found()
    return result
