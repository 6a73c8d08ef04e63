"""Admin provisioning of users and accounts"""

import random
import uuid
from typing import Optional
from swissone_gateway.domain.exceptions import InvalidAccountDataError
from swissone_gateway.domain.models import ROLE_ADMIN, ROLE_CUSTOMER, Account, User
from swissone_gateway.utils.numbers import to_finite_float

BANK_CODE = "66050101"
COUNTRY_CODE = "DE"


def generate_account_number(rng: random.Random | None = None) -> str:
    rng = rng or random.Random()
    return str(rng.randrange(1_000_000_000))


def generate_iban(rng: random.Random | None = None) -> str:
    """Display-format German IBAN under the bank's code; check digits are not computed"""
    rng = rng or random.Random()
    digits = f"{rng.randrange(100_000_000):08d}"
    check = f"{rng.randrange(100):02d}"
    return f"{COUNTRY_CODE}{check} {BANK_CODE} {digits[:4]} {digits[4:8]} {digits[:2]}"


def new_user(
    email: str,
    first_name: str,
    last_name: str,
    role: str = ROLE_CUSTOMER,
    uid: Optional[str] = None,
) -> User:
    if role not in (ROLE_CUSTOMER, ROLE_ADMIN):
        raise InvalidAccountDataError(f"Unknown role: {role}")
    if not email.strip() or not first_name.strip() or not last_name.strip():
        raise InvalidAccountDataError("Email, first name and last name are required")

    return User(
        id=uid or uuid.uuid4().hex,
        email=email.strip(),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        role=role,
    )


def new_account(
    owner: User,
    account_type: str,
    account_name: str,
    initial_balance: object = 0.0,
    currency: str = "EUR",
    account_number: Optional[str] = None,
    iban: Optional[str] = None,
    rng: random.Random | None = None,
) -> Account:
    """
    Build an account for an existing owner.

    Missing account numbers and IBANs are generated. The id is assigned
    by the store on creation.

    Raises:
        InvalidAccountDataError: Blank type/name or a negative or non-numeric opening balance
    """
    balance = to_finite_float(initial_balance if initial_balance is not None else 0.0)
    if balance is None or balance < 0:
        raise InvalidAccountDataError("Initial balance must be a number of at least 0")
    if not account_type.strip() or not account_name.strip():
        raise InvalidAccountDataError("Account type and account name are required")

    return Account(
        id="",
        account_number=account_number or generate_account_number(rng),
        iban=iban or generate_iban(rng),
        account_type=account_type.strip(),
        account_name=account_name.strip(),
        balance=balance,
        currency=currency.upper(),
        owner_id=owner.id,
        owner_name=owner.display_name,
    )
