"""Translation of domain failures into HTTP errors"""

from fastapi import HTTPException
from swissone_gateway.domain.exceptions import DomainException
from swissone_gateway.domain.models import SettlementOutcome

STATUS_BY_CODE = {
    "invalid_amount": 422,
    "invalid_account_data": 422,
    "account_not_found": 404,
    "user_not_found": 404,
    "insufficient_funds": 409,
    "forbidden": 403,
    "persistence_failure": 503,
    "concurrent_update": 503,
    "identity_unavailable": 503,
}


def error_status(code: str | None) -> int:
    return STATUS_BY_CODE.get(code or "", 500)


def outcome_error(outcome: SettlementOutcome) -> HTTPException:
    """HTTP error for a failed settlement outcome"""
    return HTTPException(
        status_code=error_status(outcome.error_code),
        detail={"code": outcome.error_code, "message": outcome.message},
    )


def domain_error(error: DomainException) -> HTTPException:
    return HTTPException(
        status_code=error_status(error.code),
        detail={"code": error.code, "message": str(error)},
    )
