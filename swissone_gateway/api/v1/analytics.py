"""GET /v1/analytics - spending analytics over the caller's transactions"""

import logging
from fastapi import APIRouter, Depends

from swissone_gateway.api.v1.schemas import AnalyticsResponse, BudgetSchema, CategorySummarySchema
from swissone_gateway.api.dependencies import get_account_book, get_gateway, get_session_context
from swissone_gateway.api.errors import domain_error
from swissone_gateway.domain.analytics import analyze
from swissone_gateway.domain.exceptions import DomainException
from swissone_gateway.domain.models import AccountBook, SessionContext
from swissone_gateway.infrastructure.persistence.gateway import PersistenceGateway

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(
    ctx: SessionContext = Depends(get_session_context),
    book: AccountBook = Depends(get_account_book),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    """Income, expenditure, categories, keywords and budget for the caller's accounts"""
    account_ids = book.ids()
    try:
        transactions = await gateway.get_transactions_for_accounts(sorted(account_ids))
    except DomainException as e:
        logger.error(f"Transaction load failed: {e}", extra={"request_id": ctx.request_id})
        raise domain_error(e)

    report = analyze(transactions, account_ids)

    return AnalyticsResponse(
        income=report.income,
        expenditure=report.expenditure,
        net_total=report.net_total,
        categories=[CategorySummarySchema(**vars(c)) for c in report.categories],
        keywords=report.keywords,
        budget=BudgetSchema(**vars(report.budget)),
    )
