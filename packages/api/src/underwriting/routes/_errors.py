# This project was developed with assistance from AI tools.
"""Translate engine errors into HTTP responses."""

from fastapi import HTTPException, status

from ..schemas.error import EngineError, ErrorKind

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.ARITHMETIC: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
}


def http_error(error: EngineError) -> HTTPException:
    detail = f"{error.field}: {error.message}" if error.field else error.message
    return HTTPException(status_code=_STATUS_BY_KIND[error.kind], detail=detail)


def not_found(what: str = "Loan") -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")
