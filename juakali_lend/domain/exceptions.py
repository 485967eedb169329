"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidLoanTermsError(DomainException):
    """Principal, daily rate or term is outside the accepted range"""

    pass


class InvalidScoreError(DomainException):
    """Credit score is outside the configured valid range"""

    pass


class InvalidAmountError(DomainException):
    """Money amount is malformed, non-positive or negative where not allowed"""

    pass


class InvalidTransitionError(DomainException):
    """Loan lifecycle transition is not permitted from the current state"""

    def __init__(self, message: str, current_status: str | None = None, target_status: str | None = None):
        super().__init__(message)
        self.current_status = current_status
        self.target_status = target_status


class OverpaymentError(DomainException):
    """Payment amount exceeds the loan's outstanding balance"""

    pass


class PersistenceError(DomainException):
    """Storage failed or a concurrent update won; the caller may retry"""

    pass


class InvalidPeriodError(DomainException):
    """Reporting period ends before it starts"""

    pass
