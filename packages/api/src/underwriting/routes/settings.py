# This project was developed with assistance from AI tools.
"""Underwriting settings routes (admin-tunable thresholds, rates, and fees)."""

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.error import EngineError
from ..schemas.settings import SettingsPayload, SettingsUpdate, to_payload
from ..services.settings_store import load_settings, save_settings
from ._errors import http_error

router = APIRouter()

_LENDER_ROLES = (UserRole.ADMIN, UserRole.LOAN_OFFICER, UserRole.EVALUATOR)


@router.get(
    "",
    response_model=SettingsPayload,
    response_model_by_alias=True,
    dependencies=[Depends(require_roles(*_LENDER_ROLES))],
)
async def get_settings(session: AsyncSession = Depends(get_db)) -> SettingsPayload:
    """Current settings, percentages shown as 0-100."""
    return to_payload(await load_settings(session))


@router.put(
    "",
    response_model=SettingsPayload,
    response_model_by_alias=True,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def update_settings(
    body: SettingsUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> SettingsPayload:
    """Apply a partial update. Omitted fields keep their current values."""
    result = await save_settings(session, body.to_patch(), updated_by=user.user_id)
    if isinstance(result, EngineError):
        raise http_error(result)
    return to_payload(result)
