"""Persistence gateway - typed access to account, transaction and user documents"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from swissone_gateway.domain.exceptions import PersistenceFailure
from swissone_gateway.domain.models import Account, BalanceDelta, Transaction, User
from swissone_gateway.infrastructure.clients.document_store import Document, DocumentStoreClient
from swissone_gateway.utils.date_utils import format_timestamp, parse_timestamp, utc_now
from swissone_gateway.utils.numbers import coerce_balance, to_finite_float

logger = logging.getLogger(__name__)

ACCOUNTS = "accounts"
TRANSACTIONS = "transactions"
USERS = "users"

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def account_from_document(doc: Document) -> Account:
    fields = doc.get("fields") or {}
    if to_finite_float(fields.get("balance")) is None:
        logger.warning("Non-numeric balance coerced to 0", extra={"account_id": doc["id"], "raw": repr(fields.get("balance"))})
    return Account(
        id=doc["id"],
        account_number=str(fields.get("accountNumber", "")),
        iban=str(fields.get("iban", "")),
        account_type=str(fields.get("accountType", "")),
        account_name=str(fields.get("accountName", "")),
        balance=coerce_balance(fields.get("balance")),
        currency=str(fields.get("currency") or "EUR"),
        owner_id=str(fields.get("ownerId", "")),
        owner_name=str(fields.get("ownerName", "")),
        is_active=bool(fields.get("isActive", True)),
        created_at=parse_timestamp(fields.get("createdAt")),
        updated_at=parse_timestamp(fields.get("updatedAt")),
    )


def account_to_fields(account: Account) -> Dict[str, Any]:
    return {
        "accountNumber": account.account_number,
        "iban": account.iban,
        "accountType": account.account_type,
        "accountName": account.account_name,
        "balance": account.balance,
        "currency": account.currency,
        "ownerId": account.owner_id,
        "ownerName": account.owner_name,
        "isActive": account.is_active,
        "createdAt": format_timestamp(account.created_at),
        "updatedAt": format_timestamp(account.updated_at),
    }


def transaction_from_document(doc: Document) -> Transaction:
    fields = doc.get("fields") or {}
    return Transaction(
        id=doc["id"],
        from_account_id=str(fields.get("fromAccountId", "")),
        to_account_id=str(fields.get("toAccountId", "")),
        amount=coerce_balance(fields.get("amount")),
        currency=str(fields.get("currency") or "EUR"),
        description=str(fields.get("description", "")),
        type=str(fields.get("type", "")),
        status=str(fields.get("status", "")),
        created_at=parse_timestamp(fields.get("createdAt")),
        processed_at=parse_timestamp(fields.get("processedAt")),
    )


def transaction_to_fields(txn: Transaction) -> Dict[str, Any]:
    return {
        "fromAccountId": txn.from_account_id,
        "toAccountId": txn.to_account_id,
        "amount": txn.amount,
        "currency": txn.currency,
        "description": txn.description,
        "type": txn.type,
        "status": txn.status,
        "createdAt": format_timestamp(txn.created_at),
        "processedAt": format_timestamp(txn.processed_at),
    }


def user_from_document(doc: Document) -> User:
    fields = doc.get("fields") or {}
    return User(
        id=doc["id"],
        email=str(fields.get("email", "")),
        first_name=str(fields.get("firstName", "")),
        last_name=str(fields.get("lastName", "")),
        role=str(fields.get("role") or "customer"),
        accounts=list(fields.get("accounts") or []),
        is_active=bool(fields.get("isActive", True)),
        created_at=parse_timestamp(fields.get("createdAt")),
    )


def user_to_fields(user: User) -> Dict[str, Any]:
    return {
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "role": user.role,
        "accounts": list(user.accounts),
        "isActive": user.is_active,
        "createdAt": format_timestamp(user.created_at),
    }


def newest_first(transactions: List[Transaction]) -> List[Transaction]:
    return sorted(transactions, key=lambda t: t.created_at or _OLDEST, reverse=True)


class PersistenceGateway:
    """Typed gateway over the document store; owns numeric coercion of stored fields"""

    def __init__(self, client: DocumentStoreClient):
        self.client = client

    # Accounts

    async def get_account(self, account_id: str) -> Optional[Account]:
        doc = await self.client.get_document(ACCOUNTS, account_id)
        return account_from_document(doc) if doc else None

    async def get_account_balance(self, account_id: str) -> float:
        """Current stored balance; 0.0 when the account is missing or the read fails"""
        try:
            account = await self.get_account(account_id)
        except PersistenceFailure as e:
            logger.warning("Balance read failed, using 0", extra={"account_id": account_id, "error": str(e)})
            return 0.0
        return account.balance if account else 0.0

    async def update_account_balance(self, account_id: str, new_balance: float) -> None:
        """Overwrite a balance. Settlement uses apply_delta instead."""
        await self.client.update_document(
            ACCOUNTS,
            account_id,
            {"balance": new_balance, "updatedAt": format_timestamp(utc_now())},
        )

    async def apply_delta(self, account_id: str, delta: float, minimum: Optional[float] = None) -> float:
        """Atomically add delta to a balance and return the new balance"""
        _, balances = await self.settle(None, [BalanceDelta(account_id, delta, minimum)])
        return balances[account_id]

    async def get_accounts_by_owner(self, owner_id: str) -> List[Account]:
        docs = await self.client.query(
            ACCOUNTS,
            where=[
                {"field": "ownerId", "op": "==", "value": owner_id},
                {"field": "isActive", "op": "==", "value": True},
            ],
        )
        return [account_from_document(d) for d in docs]

    async def get_all_accounts(self) -> List[Account]:
        return [account_from_document(d) for d in await self.client.query(ACCOUNTS)]

    async def create_account(self, account: Account) -> Account:
        now = utc_now()
        account.created_at = account.created_at or now
        account.updated_at = now
        doc = await self.client.create_document(ACCOUNTS, account_to_fields(account))
        return account_from_document(doc)

    # Transactions

    async def create_transaction(self, txn: Transaction) -> str:
        doc = await self.client.create_document(TRANSACTIONS, transaction_to_fields(txn))
        return doc["id"]

    async def settle(
        self,
        txn: Optional[Transaction],
        deltas: List[BalanceDelta],
    ) -> Tuple[Optional[str], Dict[str, float]]:
        """
        Write a transaction record and its balance changes in one atomic commit.

        Returns:
            (transaction id or None, {account_id: balance after the commit})

        Raises:
            ConcurrentUpdateError: A BalanceDelta minimum did not hold at commit time
            PersistenceFailure: Any other store error; nothing was written
        """
        writes: List[Dict[str, Any]] = []
        if txn is not None:
            writes.append({"op": "create", "collection": TRANSACTIONS, "fields": transaction_to_fields(txn)})

        stamp = format_timestamp(utc_now())
        for change in deltas:
            write = {
                "op": "increment",
                "collection": ACCOUNTS,
                "id": change.account_id,
                "field": "balance",
                "delta": change.delta,
                "fields": {"updatedAt": stamp},
            }
            if change.minimum is not None:
                write["minimum"] = change.minimum
            writes.append(write)

        results = await self.client.commit(writes)
        if len(results) != len(writes):
            raise PersistenceFailure(f"Commit returned {len(results)} results for {len(writes)} writes")

        try:
            txn_id = results[0]["id"] if txn is not None else None
            balance_results = results[1:] if txn is not None else results
            balances = {
                change.account_id: coerce_balance((result.get("fields") or {}).get("balance"))
                for change, result in zip(deltas, balance_results)
            }
        except (KeyError, TypeError, AttributeError) as e:
            raise PersistenceFailure(f"Malformed commit response: {e!r}") from e
        return txn_id, balances

    async def get_transactions_for_account(self, account_id: str) -> List[Transaction]:
        """Transactions where the account is source or destination, deduplicated, newest first"""
        outgoing = await self.client.query(
            TRANSACTIONS, where=[{"field": "fromAccountId", "op": "==", "value": account_id}]
        )
        incoming = await self.client.query(
            TRANSACTIONS, where=[{"field": "toAccountId", "op": "==", "value": account_id}]
        )

        unique: Dict[str, Transaction] = {}
        for doc in outgoing + incoming:
            unique.setdefault(doc["id"], transaction_from_document(doc))
        return newest_first(list(unique.values()))

    async def get_transactions_for_accounts(self, account_ids: List[str]) -> List[Transaction]:
        unique: Dict[str, Transaction] = {}
        for account_id in account_ids:
            for txn in await self.get_transactions_for_account(account_id):
                unique.setdefault(txn.id, txn)
        return newest_first(list(unique.values()))

    async def get_all_transactions(self) -> List[Transaction]:
        docs = await self.client.query(TRANSACTIONS, order_by={"field": "createdAt", "direction": "desc"})
        return [transaction_from_document(d) for d in docs]

    # Users

    async def get_user(self, user_id: str) -> Optional[User]:
        doc = await self.client.get_document(USERS, user_id)
        return user_from_document(doc) if doc else None

    async def create_user(self, user: User) -> User:
        user.created_at = user.created_at or utc_now()
        doc = await self.client.put_document(USERS, user.id, user_to_fields(user))
        return user_from_document(doc)

    async def get_all_users(self) -> List[User]:
        return [user_from_document(d) for d in await self.client.query(USERS)]
