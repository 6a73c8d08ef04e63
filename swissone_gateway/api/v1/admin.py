"""Admin endpoints - deposits, provisioning and system overview"""

import time
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from swissone_gateway.api.v1.schemas import (
    AccountSchema,
    CreateAccountRequest,
    CreateUserRequest,
    DepositRequest,
    OverviewResponse,
    SettlementResponse,
    TransactionSchema,
    UserSchema,
)
from swissone_gateway.api.v1.transfers import finish_settlement
from swissone_gateway.api.dependencies import get_account_book, get_gateway, require_admin
from swissone_gateway.api.errors import domain_error
from swissone_gateway.config import settings
from swissone_gateway.domain.exceptions import DomainException, UserNotFoundError
from swissone_gateway.domain.models import AccountBook, SessionContext
from swissone_gateway.domain.provisioning import new_account, new_user
from swissone_gateway.domain.settlement import SettlementEngine
from swissone_gateway.infrastructure.database.session import get_db
from swissone_gateway.infrastructure.persistence.gateway import PersistenceGateway, newest_first

router = APIRouter(prefix="/admin")
logger = logging.getLogger(__name__)


@router.post("/deposits", response_model=SettlementResponse)
async def create_deposit(
    request_body: DepositRequest,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_admin),
    book: AccountBook = Depends(get_account_book),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    """Credit an account from outside the system; the stored balance is re-read first"""
    start_time = time.time()

    engine = SettlementEngine(gateway, book)
    outcome = await engine.admin_deposit(
        ctx,
        request_body.to_account_id,
        request_body.amount,
        request_body.description,
    )

    return finish_settlement(
        db, ctx, "deposit", outcome, None, request_body.to_account_id, request_body.amount, start_time
    )


@router.post("/users", response_model=UserSchema, status_code=201)
async def create_user(
    request_body: CreateUserRequest,
    ctx: SessionContext = Depends(require_admin),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    try:
        user = new_user(
            request_body.email,
            request_body.first_name,
            request_body.last_name,
            role=request_body.role,
            uid=request_body.uid,
        )
        created = await gateway.create_user(user)
    except DomainException as e:
        logger.warning(f"User creation failed: {e}", extra={"request_id": ctx.request_id})
        raise domain_error(e)

    logger.info("User created", extra={"request_id": ctx.request_id, "user_id": created.id, "role": created.role})
    return UserSchema.from_domain(created)


@router.post("/accounts", response_model=AccountSchema, status_code=201)
async def create_account(
    request_body: CreateAccountRequest,
    ctx: SessionContext = Depends(require_admin),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    """
    Open an account for an existing user.

    The owner's display name is copied onto the account. Account number
    and IBAN are generated when not supplied.
    """
    try:
        owner = await gateway.get_user(request_body.owner_id)
        if owner is None:
            raise UserNotFoundError("Selected user not found")

        account = new_account(
            owner,
            request_body.account_type,
            request_body.account_name,
            initial_balance=request_body.initial_balance,
            currency=request_body.currency,
            account_number=request_body.account_number,
            iban=request_body.iban,
        )
        created = await gateway.create_account(account)
    except DomainException as e:
        logger.warning(f"Account creation failed: {e}", extra={"request_id": ctx.request_id})
        raise domain_error(e)

    logger.info(
        "Account created",
        extra={"request_id": ctx.request_id, "account_id": created.id, "owner_id": created.owner_id},
    )
    return AccountSchema.from_domain(created)


@router.get("/overview", response_model=OverviewResponse)
async def get_overview(
    ctx: SessionContext = Depends(require_admin),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    """System-wide counts, total balance and the most recent activity"""
    try:
        users = await gateway.get_all_users()
        accounts = await gateway.get_all_accounts()
        transactions = await gateway.get_all_transactions()
    except DomainException as e:
        logger.error(f"Overview load failed: {e}", extra={"request_id": ctx.request_id})
        raise domain_error(e)

    limit = settings.recent_items_limit
    recent_users = sorted(users, key=lambda u: u.created_at.timestamp() if u.created_at else 0.0, reverse=True)

    return OverviewResponse(
        total_users=len(users),
        total_accounts=len(accounts),
        total_transactions=len(transactions),
        total_balance=sum(a.balance for a in accounts),
        recent_transactions=[TransactionSchema.from_domain(t) for t in newest_first(transactions)[:limit]],
        recent_users=[UserSchema.from_domain(u) for u in recent_users[:limit]],
    )
