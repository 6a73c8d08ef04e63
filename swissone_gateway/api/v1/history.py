"""GET /v1/settlements/history - Fetch a user's settlement journal"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from swissone_gateway.api.v1.schemas import HistoryResponse, HistoryItem
from swissone_gateway.api.dependencies import get_session_context
from swissone_gateway.domain.models import SessionContext
from swissone_gateway.infrastructure.database.session import get_db
from swissone_gateway.infrastructure.database.repositories import SettlementRepository

router = APIRouter()


@router.get("/settlements/history", response_model=HistoryResponse)
def get_settlement_history(
    user_id: Optional[str] = Query(None, description="User identifier (admins only)"),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """
    Retrieve recent settlement attempts made by a user.

    Customers always see their own entries; admins may ask for any user.

    Returns:
        List of attempts (completed/failed) with amounts and error codes
    """
    target = user_id or ctx.user_id
    if target != ctx.user_id and not ctx.is_admin:
        raise HTTPException(status_code=403, detail="Cannot view another user's history")

    repo = SettlementRepository(db)
    entries = repo.get_entries_by_user(target, limit=20)

    history_items = [
        HistoryItem(
            entry_id=str(e.id),
            operation=e.operation,
            outcome=e.outcome,
            from_account_id=e.from_account_id,
            to_account_id=e.to_account_id,
            amount=e.amount,
            currency=e.currency,
            error_code=e.error_code,
            transaction_id=e.transaction_id,
            created_at=e.created_at.isoformat(),
        )
        for e in entries
    ]

    return HistoryResponse(user_id=target, entries=history_items)
