"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import Any, Dict, List, Literal, Optional

from swissone_gateway.domain.models import Account, Transaction, User
from swissone_gateway.utils.date_utils import format_timestamp


class TransferRequest(BaseModel):
    """Request body for POST /v1/transfers"""

    from_account_id: str = Field(..., min_length=1)
    # Omitted or "external" pays out of the system
    to_account_id: Optional[str] = Field(None, min_length=1)
    # Raw value; the settlement engine validates it
    amount: Any
    description: str = Field(..., min_length=1)
    recipient: Optional[str] = Field(None, description="Payee name for external transfers")


class DepositRequest(BaseModel):
    """Request body for POST /v1/admin/deposits"""

    to_account_id: str = Field(..., min_length=1)
    amount: Any
    description: str = Field(..., min_length=1)


class CreateUserRequest(BaseModel):
    """Request body for POST /v1/admin/users"""

    uid: Optional[str] = Field(None, description="Identity provider uid; generated when omitted")
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$")
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    role: Literal["customer", "admin"] = "customer"


class CreateAccountRequest(BaseModel):
    """Request body for POST /v1/admin/accounts"""

    owner_id: str = Field(..., min_length=1)
    account_type: str = Field(..., min_length=1)
    account_name: str = Field(..., min_length=1)
    initial_balance: float = Field(0.0, ge=0)
    currency: str = Field("EUR", min_length=3, max_length=3)
    account_number: Optional[str] = None
    iban: Optional[str] = None


class AccountSchema(BaseModel):
    id: str
    account_number: str
    iban: str
    account_type: str
    account_name: str
    balance: float
    currency: str
    owner_id: str
    owner_name: str
    is_active: bool

    @classmethod
    def from_domain(cls, account: Account) -> "AccountSchema":
        return cls(
            id=account.id,
            account_number=account.account_number,
            iban=account.iban,
            account_type=account.account_type,
            account_name=account.account_name,
            balance=account.balance,
            currency=account.currency,
            owner_id=account.owner_id,
            owner_name=account.owner_name,
            is_active=account.is_active,
        )


class TransactionSchema(BaseModel):
    id: Optional[str]
    from_account_id: str
    to_account_id: str
    amount: float
    currency: str
    description: str
    type: str
    status: str
    created_at: Optional[str]

    @classmethod
    def from_domain(cls, txn: Transaction) -> "TransactionSchema":
        return cls(
            id=txn.id,
            from_account_id=txn.from_account_id,
            to_account_id=txn.to_account_id,
            amount=txn.amount,
            currency=txn.currency,
            description=txn.description,
            type=txn.type,
            status=txn.status,
            created_at=format_timestamp(txn.created_at),
        )


class UserSchema(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    role: str
    is_active: bool
    created_at: Optional[str]

    @classmethod
    def from_domain(cls, user: User) -> "UserSchema":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            is_active=user.is_active,
            created_at=format_timestamp(user.created_at),
        )


class SettlementResponse(BaseModel):
    """Response for a completed transfer or deposit"""

    message: str
    transaction: TransactionSchema
    balances: Dict[str, float]


class CategoryTotalsSchema(BaseModel):
    checking: float
    savings: float
    investment: float
    securities: float
    loan: float
    asset: float
    grand_total: float


class ForecastSchema(BaseModel):
    account_id: str
    current_balance: float
    projected_balance: float
    horizon_months: int
    projected_on: date


class AccountsResponse(BaseModel):
    """Response for GET /v1/accounts"""

    accounts: List[AccountSchema]
    categories: Dict[str, List[str]]  # category -> account ids
    totals: CategoryTotalsSchema
    forecast: Optional[ForecastSchema] = None


class AccountTransactionsResponse(BaseModel):
    account_id: str
    transactions: List[TransactionSchema]


class CategorySummarySchema(BaseModel):
    name: str
    total: float
    count: int


class BudgetSchema(BaseModel):
    budget: float
    posted: float
    remaining: float


class AnalyticsResponse(BaseModel):
    """Response for GET /v1/analytics"""

    income: float
    expenditure: float
    net_total: float
    categories: List[CategorySummarySchema]
    keywords: List[str]
    budget: BudgetSchema


class HistoryItem(BaseModel):
    """Single settlement attempt in history"""

    entry_id: str
    operation: str
    outcome: str
    from_account_id: Optional[str]
    to_account_id: Optional[str]
    amount: Optional[float]
    currency: Optional[str]
    error_code: Optional[str]
    transaction_id: Optional[str]
    created_at: str


class HistoryResponse(BaseModel):
    """Response for GET /v1/settlements/history"""

    user_id: str
    entries: List[HistoryItem]


class OverviewResponse(BaseModel):
    """Response for GET /v1/admin/overview"""

    total_users: int
    total_accounts: int
    total_transactions: int
    total_balance: float
    recent_transactions: List[TransactionSchema]
    recent_users: List[UserSchema]
