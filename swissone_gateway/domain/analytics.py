"""Transaction analytics - display-only aggregates, no side effects"""

from collections import Counter
from datetime import date
from typing import Dict, Iterable, List, Optional, Set, Tuple
from swissone_gateway.config import settings
from swissone_gateway.domain.models import AnalyticsReport, BudgetStatus, CategorySummary, Transaction
from swissone_gateway.utils.date_utils import same_month
from swissone_gateway.utils.numbers import coerce_balance

SPENDING_CATEGORIES: List[Tuple[str, Tuple[str, ...]]] = [
    ("Food & Groceries", ("grocery", "groceries", "supermarket", "restaurant", "food", "lebensmittel", "bakery")),
    ("Housing", ("rent", "miete", "mortgage", "housing", "landlord", "haus")),
    ("Transportation", ("fuel", "petrol", "taxi", "uber", "train", "transport", "parking", "auto")),
    ("Utilities", ("electric", "strom", "water", "internet", "phone", "utility", "utilities", "heating")),
    ("Income", ("salary", "payroll", "gehalt", "income", "deposit", "refund")),
    ("Entertainment", ("netflix", "spotify", "cinema", "movie", "concert", "entertainment", "games")),
]
FALLBACK_CATEGORY = "Other"

STOP_WORDS = frozenset({
    "the", "and", "for", "with", "from", "into", "this", "that", "your", "their",
    "über", "und", "für", "der", "die", "das", "mit", "von", "eine", "einer",
})

TOP_CATEGORIES = 5
TOP_KEYWORDS = 10
MIN_KEYWORD_LENGTH = 4


def signed_amount(txn: Transaction, account_ids: Optional[Set[str]] = None) -> float:
    """
    Amount as seen by the owner of account_ids.

    Stored amounts are positive magnitudes; from the viewer's side incoming
    money is positive, outgoing negative, and moves between two of their own
    accounts net to zero. Without a perspective the stored value is used as-is.
    """
    amount = coerce_balance(txn.amount)
    if account_ids is None:
        return amount

    incoming = txn.to_account_id in account_ids
    outgoing = txn.from_account_id in account_ids
    if incoming and not outgoing:
        return abs(amount)
    if outgoing and not incoming:
        return -abs(amount)
    return 0.0


def income_and_expenditure(amounts: Iterable[float]) -> Tuple[float, float]:
    """Split signed amounts into (income, expenditure magnitude)"""
    income = 0.0
    expenditure = 0.0
    for amount in amounts:
        if amount > 0:
            income += amount
        elif amount < 0:
            expenditure += -amount
    return income, expenditure


def infer_category(description: str) -> str:
    text = (description or "").lower()
    for name, keywords in SPENDING_CATEGORIES:
        if any(keyword in text for keyword in keywords):
            return name
    return FALLBACK_CATEGORY


def category_breakdown(pairs: Iterable[Tuple[str, float]], limit: int = TOP_CATEGORIES) -> List[CategorySummary]:
    """Accumulate |amount| and count per inferred category; top `limit` by total"""
    totals: Dict[str, float] = {}
    counts: Dict[str, int] = {}

    for description, amount in pairs:
        category = infer_category(description)
        totals[category] = totals.get(category, 0.0) + abs(amount)
        counts[category] = counts.get(category, 0) + 1

    ranked = sorted(totals, key=lambda name: totals[name], reverse=True)
    return [CategorySummary(name=name, total=totals[name], count=counts[name]) for name in ranked[:limit]]


def extract_keywords(descriptions: Iterable[str], limit: int = TOP_KEYWORDS) -> List[str]:
    """
    Most frequent description words as hashtags.

    Tokens are split on whitespace, lower-cased and stripped of surrounding
    punctuation. Tokens shorter than MIN_KEYWORD_LENGTH and stop words are
    dropped. Equal counts keep first-seen order (sorted() is stable and
    Counter preserves insertion order).
    """
    counts: Counter = Counter()
    for description in descriptions:
        for raw in (description or "").split():
            token = raw.strip(".,;:!?()[]{}\"'#").lower()
            if len(token) < MIN_KEYWORD_LENGTH or token in STOP_WORDS:
                continue
            counts[token] += 1

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [f"#{token}" for token, _ in ranked[:limit]]


def budget_status(
    transactions: Iterable[Transaction],
    account_ids: Optional[Set[str]] = None,
    budget: Optional[float] = None,
    today: Optional[date] = None,
) -> BudgetStatus:
    """Current calendar month spending against a fixed monthly budget"""
    monthly_budget = settings.monthly_budget if budget is None else budget
    today = today or date.today()

    _, posted = income_and_expenditure(
        signed_amount(t, account_ids)
        for t in transactions
        if t.created_at is not None and same_month(t.created_at, today)
    )
    return BudgetStatus(
        budget=monthly_budget,
        posted=posted,
        remaining=max(0.0, monthly_budget - posted),
    )


def analyze(
    transactions: List[Transaction],
    account_ids: Optional[Set[str]] = None,
    today: Optional[date] = None,
    budget: Optional[float] = None,
) -> AnalyticsReport:
    """
    Main entry point: derive income/expenditure, categories, keywords and
    budget status from a transaction list.
    """
    amounts = [signed_amount(t, account_ids) for t in transactions]
    income, expenditure = income_and_expenditure(amounts)

    return AnalyticsReport(
        income=income,
        expenditure=expenditure,
        net_total=income - expenditure,
        categories=category_breakdown((t.description, coerce_balance(t.amount)) for t in transactions),
        keywords=extract_keywords(t.description for t in transactions),
        budget=budget_status(transactions, account_ids, budget=budget, today=today),
    )
