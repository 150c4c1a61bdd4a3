# This project was developed with assistance from AI tools.
"""Underwriting settings singleton: validation and persistence.

``update_settings`` is pure and owns every validation rule. The async
helpers only load and store the single ``underwriting_settings`` row.
"""

import logging
import math
from collections.abc import Mapping

from db import UnderwritingSettingsRecord
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.error import EngineError, ErrorKind
from ..schemas.settings import UnderwritingSettings

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1


def update_settings(
    current: UnderwritingSettings,
    patch: Mapping[str, object],
) -> UnderwritingSettings | EngineError:
    """Merge a partial update over the current settings.

    Args:
        current: Settings in effect now.
        patch: Field name -> new value (ratios for percentages).

    Returns:
        New UnderwritingSettings, or a VALIDATION EngineError naming the
        first offending field. ``current`` is never modified.
    """
    unknown = sorted(set(patch) - set(UnderwritingSettings.model_fields))
    if unknown:
        return EngineError(
            kind=ErrorKind.VALIDATION,
            message=f"Unknown settings: {', '.join(unknown)}",
            field=unknown[0],
        )

    for name, value in patch.items():
        if isinstance(value, bool) or not isinstance(value, int | float) or not math.isfinite(value):
            return EngineError(
                kind=ErrorKind.VALIDATION,
                message=f"{name} must be a finite number",
                field=name,
            )

    merged = {**current.model_dump(), **patch}
    try:
        return UnderwritingSettings.model_validate(merged)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = str(first["loc"][0]) if first["loc"] else None
        return EngineError(kind=ErrorKind.VALIDATION, message=first["msg"], field=field)


async def _get_row(session: AsyncSession) -> UnderwritingSettingsRecord | None:
    stmt = select(UnderwritingSettingsRecord).where(UnderwritingSettingsRecord.id == SETTINGS_ROW_ID)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def _load_row(session: AsyncSession) -> UnderwritingSettingsRecord:
    """Return the settings row, creating it with defaults on first use."""
    row = await _get_row(session)
    if row is None:
        row = UnderwritingSettingsRecord(id=SETTINGS_ROW_ID, values=UnderwritingSettings().model_dump())
        session.add(row)
        await session.commit()
        logger.info("Created default underwriting settings")
    return row


def _from_row(row: UnderwritingSettingsRecord) -> UnderwritingSettings:
    # Stored keys that no longer exist are ignored; keys added since take their defaults.
    stored = {k: v for k, v in (row.values or {}).items() if k in UnderwritingSettings.model_fields}
    return UnderwritingSettings.model_validate(stored)


async def load_settings(session: AsyncSession) -> UnderwritingSettings:
    """Return the stored settings, creating the default row on first use."""
    return _from_row(await _load_row(session))


async def save_settings(
    session: AsyncSession,
    patch: Mapping[str, object],
    *,
    updated_by: str | None = None,
) -> UnderwritingSettings | EngineError:
    """Validate and persist a partial settings update."""
    row = await _load_row(session)
    updated = update_settings(_from_row(row), patch)
    if isinstance(updated, EngineError):
        logger.warning("Rejected settings update from %s: %s", updated_by, updated.message)
        return updated

    row.values = updated.model_dump()
    row.updated_by = updated_by
    await session.commit()
    logger.info("Underwriting settings updated by %s: %s", updated_by, sorted(patch))
    return updated
