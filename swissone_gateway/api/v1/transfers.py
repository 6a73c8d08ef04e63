"""POST /v1/transfers - move funds between accounts or pay out externally"""

import time
import logging
from typing import Any, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from swissone_gateway.api.v1.schemas import SettlementResponse, TransactionSchema, TransferRequest
from swissone_gateway.api.dependencies import get_account_book, get_gateway, get_session_context
from swissone_gateway.api.errors import outcome_error
from swissone_gateway.infrastructure.database.session import get_db
from swissone_gateway.infrastructure.database.repositories import SettlementRepository
from swissone_gateway.infrastructure.persistence.gateway import PersistenceGateway
from swissone_gateway.domain.models import EXTERNAL_ACCOUNT, AccountBook, SessionContext, SettlementOutcome
from swissone_gateway.domain.settlement import SettlementEngine
from swissone_gateway.infrastructure.observability.metrics import record_settlement
from swissone_gateway.infrastructure.observability.logging import log_settlement

router = APIRouter()


def finish_settlement(
    db: Session,
    ctx: SessionContext,
    operation: str,
    outcome: SettlementOutcome,
    from_account_id: Optional[str],
    to_account_id: Optional[str],
    amount: Any,
    start_time: float,
) -> SettlementResponse:
    """
    Journal, measure and log a settlement outcome, then build the response.

    The store commit has already happened at this point, so a journal
    failure is logged and does not change the result.
    """
    try:
        SettlementRepository(db).record(ctx, operation, outcome, from_account_id, to_account_id, amount)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Settlement journal write failed: {e}", extra={"request_id": ctx.request_id})

    txn = outcome.transaction
    duration_ms = (time.time() - start_time) * 1000
    record_settlement(operation, "completed" if outcome.ok else outcome.error_code, txn.amount if txn else None)
    log_settlement(
        ctx.request_id,
        ctx.user_id,
        operation,
        "completed" if outcome.ok else outcome.error_code,
        txn.amount if txn else None,
        transaction_id=txn.id if txn else None,
        duration_ms=duration_ms,
    )

    if not outcome.ok:
        raise outcome_error(outcome)

    return SettlementResponse(
        message=outcome.message,
        transaction=TransactionSchema.from_domain(txn),
        balances=outcome.balances,
    )


@router.post("/transfers", response_model=SettlementResponse)
async def create_transfer(
    request_body: TransferRequest,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    book: AccountBook = Depends(get_account_book),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    """
    Transfer funds from an account visible to the caller.

    A missing or "external" destination pays out to the named recipient
    outside the bank; anything else must be a loaded account.

    Flow:
    1. Validate amount, accounts, ownership and funds
    2. Commit the transaction record and the balance changes atomically
    3. Journal the attempt, record metrics and logs
    4. Return the transaction and new balances, or the mapped error
    """
    start_time = time.time()

    engine = SettlementEngine(gateway, book)
    if request_body.to_account_id in (None, EXTERNAL_ACCOUNT):
        operation = "external_transfer"
        to_account_id = EXTERNAL_ACCOUNT
        outcome = await engine.external_transfer(
            ctx,
            request_body.from_account_id,
            request_body.amount,
            request_body.description,
            request_body.recipient,
        )
    else:
        operation = "transfer"
        to_account_id = request_body.to_account_id
        outcome = await engine.transfer(
            ctx,
            request_body.from_account_id,
            to_account_id,
            request_body.amount,
            request_body.description,
        )

    return finish_settlement(
        db,
        ctx,
        operation,
        outcome,
        request_body.from_account_id,
        to_account_id,
        request_body.amount,
        start_time,
    )
