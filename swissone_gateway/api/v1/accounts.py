"""GET /v1/accounts - categorized account overview and per-account transactions"""

import logging
from fastapi import APIRouter, Depends, HTTPException

from swissone_gateway.api.v1.schemas import (
    AccountSchema,
    AccountsResponse,
    AccountTransactionsResponse,
    CategoryTotalsSchema,
    ForecastSchema,
    TransactionSchema,
)
from swissone_gateway.api.dependencies import get_account_book, get_gateway, get_session_context
from swissone_gateway.api.errors import domain_error
from swissone_gateway.domain.categorizer import aggregate, categorize, forecast
from swissone_gateway.domain.exceptions import DomainException
from swissone_gateway.domain.models import AccountBook, SessionContext
from swissone_gateway.infrastructure.persistence.gateway import PersistenceGateway

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/accounts", response_model=AccountsResponse)
async def list_accounts(book: AccountBook = Depends(get_account_book)):
    """
    Accounts visible to the caller, grouped into categories.

    Returns:
        Accounts, category -> account ids, per-category totals in EUR and
        a balance forecast for the first categorized account
    """
    buckets = categorize(book.accounts())
    totals = aggregate(buckets)
    projection = forecast(buckets)

    return AccountsResponse(
        accounts=[AccountSchema.from_domain(a) for a in book.accounts()],
        categories={name: [a.id for a in accounts] for name, accounts in buckets.items()},
        totals=CategoryTotalsSchema(**vars(totals)),
        forecast=ForecastSchema(**vars(projection)) if projection else None,
    )


@router.get("/accounts/{account_id}/transactions", response_model=AccountTransactionsResponse)
async def list_account_transactions(
    account_id: str,
    ctx: SessionContext = Depends(get_session_context),
    book: AccountBook = Depends(get_account_book),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    """Transactions touching one of the caller's accounts, newest first"""
    if book.get(account_id) is None:
        raise HTTPException(status_code=404, detail="Account not found")

    try:
        transactions = await gateway.get_transactions_for_account(account_id)
    except DomainException as e:
        logger.error(f"Transaction load failed: {e}", extra={"request_id": ctx.request_id})
        raise domain_error(e)

    return AccountTransactionsResponse(
        account_id=account_id,
        transactions=[TransactionSchema.from_domain(t) for t in transactions],
    )
