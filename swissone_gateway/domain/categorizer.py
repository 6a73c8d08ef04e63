"""Account categorization, category totals and balance forecast"""

from datetime import date
from typing import List, Optional, Tuple
from swissone_gateway.config import settings
from swissone_gateway.domain.models import Account, BalanceForecast, CategoryBuckets, CategoryTotals
from swissone_gateway.utils.date_utils import add_months
from swissone_gateway.utils.numbers import coerce_balance

# Ordered: first match wins
CATEGORY_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("checking", ("girokonto", "checking", "current")),
    ("savings", ("sparkonto", "savings", "tagesgeld")),
    ("investment", ("investment", "termgeld", "fixed deposit")),
    ("securities", ("depot", "securities", "portfolio")),
    ("loan", ("kredit", "loan", "credit")),
    ("asset", ("asset", "immobilie", "fahrzeug")),
]

DEFAULT_CATEGORY = "checking"


def classify_account(account: Account) -> str:
    """
    Map an account to one of the six categories by its type label.

    Requirements:
    - Case-insensitive substring match, checked in CATEGORY_KEYWORDS order
    - A negative balance forces "loan" once checking..securities keywords
      have not matched (so "Girokonto" at -50 stays checking)
    - Anything unmatched falls back to checking
    """
    label = (account.account_type or "").lower()

    for category, keywords in CATEGORY_KEYWORDS:
        if category == "loan" and coerce_balance(account.balance) < 0:
            return "loan"
        if any(keyword in label for keyword in keywords):
            return category

    return DEFAULT_CATEGORY


def categorize(accounts: List[Account]) -> CategoryBuckets:
    """Partition accounts into category buckets, preserving input order"""
    buckets = CategoryBuckets()
    for account in accounts:
        getattr(buckets, classify_account(account)).append(account)
    return buckets


def to_reporting_currency(account: Account, usd_rate: float) -> float:
    """Balance in EUR terms: USD at a fixed rate, everything else at face value"""
    balance = coerce_balance(account.balance)
    if (account.currency or "").upper() == "USD":
        return balance * usd_rate
    return balance


def aggregate(buckets: CategoryBuckets, usd_rate: Optional[float] = None) -> CategoryTotals:
    """
    Sum balances per category and overall.

    The USD conversion is an approximation with a fixed rate, not a
    currency engine. Non-numeric balances count as zero.
    """
    rate = settings.usd_eur_rate if usd_rate is None else usd_rate
    totals = CategoryTotals()

    for name, accounts in buckets.items():
        setattr(totals, name, sum(to_reporting_currency(a, rate) for a in accounts))

    totals.grand_total = sum(getattr(totals, name) for name, _ in buckets.items())
    return totals


def forecast(
    buckets: CategoryBuckets,
    growth_factor: Optional[float] = None,
    horizon_months: Optional[int] = None,
    today: Optional[date] = None,
) -> Optional[BalanceForecast]:
    """
    Project the main account's balance forward with flat growth.

    Main account: first checking account, else the first account found in
    bucket order. Projection is balance * growth_factor at the horizon, not
    compounded and not derived from transaction history. This is a
    placeholder, not a prediction.
    """
    growth = settings.forecast_growth_factor if growth_factor is None else growth_factor
    horizon = settings.forecast_horizon_months if horizon_months is None else horizon_months

    main_account = None
    for _, accounts in buckets.items():
        if accounts:
            main_account = accounts[0]
            break

    if main_account is None:
        return None

    current = coerce_balance(main_account.balance)
    return BalanceForecast(
        account_id=main_account.id,
        current_balance=current,
        projected_balance=current * growth,
        horizon_months=horizon,
        projected_on=add_months(today or date.today(), horizon),
    )
