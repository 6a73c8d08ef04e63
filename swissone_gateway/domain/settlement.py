"""Settlement engine - validates and applies transfers, external payouts and admin deposits"""

import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple
from swissone_gateway.domain.exceptions import (
    AccountNotFoundError,
    ConcurrentUpdateError,
    ForbiddenError,
    InsufficientFundsError,
    InvalidAmountError,
    SettlementError,
)
from swissone_gateway.domain.models import (
    ADMIN_DEPOSIT_SOURCE,
    BalanceDelta,
    EXTERNAL_ACCOUNT,
    STATUS_COMPLETED,
    TYPE_DEPOSIT,
    TYPE_TRANSFER,
    Account,
    AccountBook,
    SessionContext,
    SettlementOutcome,
    Transaction,
)
from swissone_gateway.utils.date_utils import utc_now
from swissone_gateway.utils.numbers import parse_amount

logger = logging.getLogger(__name__)

SettleResult = Tuple[Transaction, Dict[str, float]]


class BalanceStore(Protocol):
    """The slice of the persistence gateway settlement depends on"""

    async def get_account(self, account_id: str) -> Optional[Account]: ...

    async def get_account_balance(self, account_id: str) -> float: ...

    async def settle(
        self, txn: Optional[Transaction], deltas: List[BalanceDelta]
    ) -> Tuple[Optional[str], Dict[str, float]]: ...


def validate_amount(amount: Any) -> float:
    """Parse a requested amount; must be a finite number greater than zero"""
    value = parse_amount(amount)
    if value is None:
        raise InvalidAmountError("Please enter a valid amount")
    return value


class SettlementEngine:
    """
    Moves money between loaded accounts and records one transaction per move.

    Balances are re-read from the store right before every mutation and
    changed with atomic increments inside a single commit that also creates
    the transaction document, so a settlement is applied entirely or not at
    all and concurrent sessions cannot overwrite each other's balance.
    """

    def __init__(self, gateway: BalanceStore, book: AccountBook):
        self.gateway = gateway
        self.book = book

    def _resolve(self, account_id: str) -> Account:
        account = self.book.get(account_id)
        if account is None:
            raise AccountNotFoundError(f"Invalid account selection: {account_id}")
        # Admin books load deactivated accounts too; they are view-only
        if not account.is_active:
            raise AccountNotFoundError(f"Account {account_id} is inactive")
        return account

    async def _check_debit(self, ctx: SessionContext, source: Account, value: float) -> None:
        """Ownership and funds checks against a fresh read of the source balance"""
        if not ctx.is_admin and source.owner_id != ctx.user_id:
            raise ForbiddenError("You can only transfer from your own accounts")

        fresh = await self.gateway.get_account(source.id)
        if fresh is None:
            raise AccountNotFoundError(f"Account {source.id} no longer exists")
        self.book.set_balance(source.id, fresh.balance)

        if fresh.balance < value:
            raise InsufficientFundsError(
                f"Insufficient funds: balance {fresh.balance:.2f} is below {value:.2f}"
            )

    async def _settle_debit(self, txn: Transaction, deltas: List[BalanceDelta]) -> SettleResult:
        try:
            txn_id, balances = await self.gateway.settle(txn, deltas)
        except ConcurrentUpdateError as e:
            # Another session debited the source between our read and the commit
            raise InsufficientFundsError("Insufficient funds: balance changed during transfer") from e
        return replace(txn, id=txn_id), balances

    async def _run(self, operation: str, ctx: SessionContext, action: Callable[[], Awaitable[SettleResult]]) -> SettlementOutcome:
        """Execute a settlement and convert domain errors into a failed outcome"""
        try:
            txn, balances = await action()
        except SettlementError as e:
            logger.warning(
                f"{operation} rejected: {e}",
                extra={"request_id": ctx.request_id, "user_id": ctx.user_id, "error_code": e.code},
            )
            return SettlementOutcome(error_code=e.code, message=str(e))

        for account_id, balance in balances.items():
            self.book.set_balance(account_id, balance)

        return SettlementOutcome(
            transaction=txn,
            message=f"{operation.replace('_', ' ').capitalize()} completed successfully",
            balances=balances,
        )

    async def transfer(
        self,
        ctx: SessionContext,
        from_account_id: str,
        to_account_id: str,
        amount: Any,
        description: str,
    ) -> SettlementOutcome:
        """
        Transfer funds between two loaded accounts.

        Validation order:
        1. amount is a finite number > 0            -> invalid_amount
        2. both accounts are active in the loaded book -> account_not_found
        3. customers may only debit their own account -> forbidden
        4. fresh source balance >= amount            -> insufficient_funds

        Effects (one atomic commit): transaction record (transfer/completed,
        source currency), source -amount, destination +amount.
        """

        async def action() -> SettleResult:
            value = validate_amount(amount)
            source = self._resolve(from_account_id)
            target = self._resolve(to_account_id)
            await self._check_debit(ctx, source, value)

            now = utc_now()
            txn = Transaction(
                id=None,
                from_account_id=source.id,
                to_account_id=target.id,
                amount=value,
                currency=source.currency,
                description=description,
                type=TYPE_TRANSFER,
                status=STATUS_COMPLETED,
                created_at=now,
                processed_at=now,
            )
            return await self._settle_debit(
                txn,
                [
                    BalanceDelta(source.id, -value, minimum=value),
                    BalanceDelta(target.id, value),
                ],
            )

        return await self._run("transfer", ctx, action)

    async def external_transfer(
        self,
        ctx: SessionContext,
        from_account_id: str,
        amount: Any,
        description: str,
        recipient: Optional[str] = None,
    ) -> SettlementOutcome:
        """
        Pay out of the system to a payee outside the bank.

        Same validation order as transfer, with only the source resolved.
        The transaction points at the "external" sentinel and only the
        source is debited.
        """

        async def action() -> SettleResult:
            value = validate_amount(amount)
            source = self._resolve(from_account_id)
            await self._check_debit(ctx, source, value)

            now = utc_now()
            txn = Transaction(
                id=None,
                from_account_id=source.id,
                to_account_id=EXTERNAL_ACCOUNT,
                amount=value,
                currency=source.currency,
                description=f"{description} (to {recipient})" if recipient else description,
                type=TYPE_TRANSFER,
                status=STATUS_COMPLETED,
                created_at=now,
                processed_at=now,
            )
            return await self._settle_debit(txn, [BalanceDelta(source.id, -value, minimum=value)])

        return await self._run("external_transfer", ctx, action)

    async def admin_deposit(
        self,
        ctx: SessionContext,
        to_account_id: str,
        amount: Any,
        description: str,
    ) -> SettlementOutcome:
        """
        Credit an account from outside the system (admin only).

        The destination balance is re-read and logged next to the cached one
        for audit only. The credit itself is an atomic increment applied by
        the store, so the persisted balance is whatever the store holds at
        commit time plus the amount. No account is debited.
        """

        async def action() -> SettleResult:
            value = validate_amount(amount)
            target = self._resolve(to_account_id)

            if not ctx.is_admin:
                raise ForbiddenError("Only administrators can make deposits")

            current = await self.gateway.get_account_balance(target.id)
            logger.info(
                "Admin deposit: fetched current balance",
                extra={
                    "request_id": ctx.request_id,
                    "account_id": target.id,
                    "cached_balance": target.balance,
                    "current_balance": current,
                    "amount": value,
                },
            )

            now = utc_now()
            txn = Transaction(
                id=None,
                from_account_id=ADMIN_DEPOSIT_SOURCE,
                to_account_id=target.id,
                amount=value,
                currency=target.currency,
                description=f"Admin Deposit: {description}",
                type=TYPE_DEPOSIT,
                status=STATUS_COMPLETED,
                created_at=now,
                processed_at=now,
            )

            txn_id, balances = await self.gateway.settle(txn, [BalanceDelta(target.id, value)])
            return replace(txn, id=txn_id), balances

        return await self._run("deposit", ctx, action)
