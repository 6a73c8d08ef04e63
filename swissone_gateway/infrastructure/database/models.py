"""SQLAlchemy ORM models for the local settlement journal"""

import uuid
from sqlalchemy import Column, DateTime, Float, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class SettlementJournalEntry(Base):
    """One settlement attempt, successful or not"""

    __tablename__ = "settlement_journal"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    request_id = Column(Text, nullable=False)
    user_id = Column(Text, nullable=False, index=True)
    operation = Column(Text, nullable=False)  # transfer | external_transfer | deposit
    from_account_id = Column(Text, nullable=True)
    to_account_id = Column(Text, nullable=True)
    amount = Column(Float, nullable=True)
    currency = Column(Text, nullable=True)
    outcome = Column(Text, nullable=False)  # completed | failed
    error_code = Column(Text, nullable=True)
    message = Column(Text, nullable=True)
    transaction_id = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
