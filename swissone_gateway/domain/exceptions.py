"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    code = "domain_error"


class SettlementError(DomainException):
    """A settlement request was rejected or could not be applied"""

    code = "settlement_error"


class InvalidAmountError(SettlementError):
    """Amount is non-numeric, zero, negative or not finite"""

    code = "invalid_amount"


class AccountNotFoundError(SettlementError):
    """Account id does not resolve to a loaded account"""

    code = "account_not_found"


class InsufficientFundsError(SettlementError):
    """Source balance is below the requested amount"""

    code = "insufficient_funds"


class ForbiddenError(SettlementError):
    """Caller is not allowed to perform the operation"""

    code = "forbidden"


class PersistenceFailure(SettlementError):
    """Document store rejected a call or is unavailable"""

    code = "persistence_failure"


class ConcurrentUpdateError(PersistenceFailure):
    """A commit precondition no longer held when the store applied it"""

    code = "concurrent_update"


class UserNotFoundError(DomainException):
    """User document does not exist"""

    code = "user_not_found"


class InvalidAccountDataError(DomainException):
    """Account creation data is malformed"""

    code = "invalid_account_data"


class IdentityProviderError(DomainException):
    """Identity provider returned an error or is unavailable"""

    code = "identity_unavailable"
