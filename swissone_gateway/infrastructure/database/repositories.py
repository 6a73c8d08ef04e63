"""Data access layer for the settlement journal"""

from typing import List, Optional
from sqlalchemy.orm import Session
from swissone_gateway.infrastructure.database.models import SettlementJournalEntry
from swissone_gateway.domain.models import SessionContext, SettlementOutcome
from swissone_gateway.utils.numbers import to_finite_float


class SettlementRepository:
    """Repository for settlement journal entries"""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        ctx: SessionContext,
        operation: str,
        outcome: SettlementOutcome,
        from_account_id: Optional[str],
        to_account_id: Optional[str],
        amount: object,
    ) -> SettlementJournalEntry:
        """Persist one settlement attempt; failed attempts keep the requested amount when numeric"""
        txn = outcome.transaction
        entry = SettlementJournalEntry(
            request_id=ctx.request_id,
            user_id=ctx.user_id,
            operation=operation,
            from_account_id=txn.from_account_id if txn else from_account_id,
            to_account_id=txn.to_account_id if txn else to_account_id,
            amount=txn.amount if txn else to_finite_float(amount),
            currency=txn.currency if txn else None,
            outcome="completed" if outcome.ok else "failed",
            error_code=outcome.error_code,
            message=outcome.message,
            transaction_id=txn.id if txn else None,
        )
        self.db.add(entry)
        self.db.flush()  # Get ID without committing
        return entry

    def get_entries_by_user(self, user_id: str, limit: int = 20) -> List[SettlementJournalEntry]:
        """Fetch recent settlement attempts made by a user"""
        return (
            self.db.query(SettlementJournalEntry)
            .filter(SettlementJournalEntry.user_id == user_id)
            .order_by(SettlementJournalEntry.created_at.desc())
            .limit(limit)
            .all()
        )
