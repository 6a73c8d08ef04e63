"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterator, List, Optional, Tuple

# Sentinel account ids for money entering/leaving the modeled system
ADMIN_DEPOSIT_SOURCE = "admin-deposit"
EXTERNAL_ACCOUNT = "external"

ROLE_CUSTOMER = "customer"
ROLE_ADMIN = "admin"

TYPE_TRANSFER = "transfer"
TYPE_DEPOSIT = "deposit"

STATUS_COMPLETED = "completed"


@dataclass
class Account:
    """Bank account document"""

    id: str
    account_number: str
    iban: str
    account_type: str  # free text label, drives categorization
    account_name: str
    balance: float
    currency: str
    owner_id: str
    owner_name: str
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Transaction:
    """Settlement record, written once and never updated"""

    id: Optional[str]
    from_account_id: str
    to_account_id: str
    amount: float  # always a positive magnitude
    currency: str
    description: str
    type: str  # "transfer" | "deposit" | "withdrawal"
    status: str  # "pending" | "completed" | "failed"
    created_at: datetime
    processed_at: Optional[datetime] = None


@dataclass
class User:
    """Application user; Account.owner_id is the authoritative ownership link"""

    id: str
    email: str
    first_name: str
    last_name: str
    role: str = ROLE_CUSTOMER
    accounts: List[str] = field(default_factory=list)
    is_active: bool = True
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class SessionContext:
    """Caller identity passed explicitly into every settlement operation"""

    user_id: str
    role: str
    request_id: str = "unknown"

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


@dataclass(frozen=True)
class BalanceDelta:
    """Signed change to one account balance, applied by atomic increment"""

    account_id: str
    delta: float
    minimum: Optional[float] = None  # store rejects the commit if balance < minimum


class AccountBook:
    """The account set loaded for one session, keyed by id.

    Settlement resolves accounts here rather than re-querying the store,
    and writes refreshed balances back after each commit.
    """

    def __init__(self, accounts: List[Account]):
        self._accounts: Dict[str, Account] = {a.id: a for a in accounts}

    def get(self, account_id: str) -> Optional[Account]:
        return self._accounts.get(account_id)

    def set_balance(self, account_id: str, balance: float) -> None:
        account = self._accounts.get(account_id)
        if account is not None:
            account.balance = balance

    def accounts(self) -> List[Account]:
        return list(self._accounts.values())

    def ids(self) -> set:
        return set(self._accounts)

    def __len__(self) -> int:
        return len(self._accounts)


@dataclass
class SettlementOutcome:
    """Result of a settlement: a transaction on success, an error otherwise"""

    transaction: Optional[Transaction] = None
    error_code: Optional[str] = None
    message: str = ""
    balances: Dict[str, float] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error_code is None


@dataclass
class CategoryBuckets:
    """Accounts partitioned into the six fixed categories"""

    checking: List[Account] = field(default_factory=list)
    savings: List[Account] = field(default_factory=list)
    investment: List[Account] = field(default_factory=list)
    securities: List[Account] = field(default_factory=list)
    loan: List[Account] = field(default_factory=list)
    asset: List[Account] = field(default_factory=list)

    def items(self) -> Iterator[Tuple[str, List[Account]]]:
        for name in ("checking", "savings", "investment", "securities", "loan", "asset"):
            yield name, getattr(self, name)


@dataclass
class CategoryTotals:
    checking: float = 0.0
    savings: float = 0.0
    investment: float = 0.0
    securities: float = 0.0
    loan: float = 0.0
    asset: float = 0.0
    grand_total: float = 0.0


@dataclass
class BalanceForecast:
    """Flat-growth projection of one account's balance"""

    account_id: str
    current_balance: float
    projected_balance: float
    horizon_months: int
    projected_on: date


@dataclass
class CategorySummary:
    name: str
    total: float
    count: int


@dataclass
class BudgetStatus:
    budget: float
    posted: float
    remaining: float


@dataclass
class AnalyticsReport:
    """Display-only aggregates derived from a transaction list"""

    income: float
    expenditure: float
    net_total: float
    categories: List[CategorySummary]
    keywords: List[str]
    budget: BudgetStatus
