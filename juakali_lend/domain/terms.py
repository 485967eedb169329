"""Loan terms calculator - linear daily interest"""

from decimal import Decimal

from juakali_lend.domain.exceptions import InvalidLoanTermsError
from juakali_lend.domain.models import LoanTerms
from juakali_lend.domain.money import Number, is_whole_cents, to_decimal

# Stored as Numeric(8, 6); a finer rate would not survive the round trip
RATE_QUANTUM = Decimal("0.000001")

DEFAULT_MAX_PRINCIPAL = Decimal("1000000")
DEFAULT_MAX_TERM_DAYS = 365


def calculate_loan_terms(
    principal: Number,
    daily_rate: Number,
    term_days: int,
    max_principal: Decimal = DEFAULT_MAX_PRINCIPAL,
    max_term_days: int = DEFAULT_MAX_TERM_DAYS,
) -> LoanTerms:
    """
    Compute repayment terms for a daily-interest loan.

    Interest accrues linearly on the principal, it is not compounded:

        total_amount   = principal * (1 + daily_rate * term_days)
        daily_payment  = total_amount / term_days
        total_interest = total_amount - principal

    Results are exact Decimals. Rounding to cents is left to the caller at the
    point of persistence (see LoanTerms.rounded()). Inputs themselves must be
    storable as given: principal in whole cents, rate to at most 6 decimals.

    Example:
        50000 at 5%/day over 30 days
        total = 50000 * (1 + 0.05 * 30) = 125000
        daily = 125000 / 30 = 4166.666...
        interest = 75000

    Raises:
        InvalidLoanTermsError: principal <= 0, above max_principal or finer
            than a cent; daily_rate outside [0, 1) or finer than 6 decimals;
            term_days not an integer in [1, max_term_days]
    """
    try:
        principal_dec = to_decimal(principal)
        rate_dec = to_decimal(daily_rate)
    except ValueError as e:
        raise InvalidLoanTermsError(str(e)) from e

    if principal_dec <= 0:
        raise InvalidLoanTermsError(f"Principal must be positive, got {principal_dec}")
    if principal_dec > max_principal:
        raise InvalidLoanTermsError(f"Principal {principal_dec} exceeds maximum {max_principal}")
    if not is_whole_cents(principal_dec):
        raise InvalidLoanTermsError(f"Principal must be a whole number of cents, got {principal_dec}")

    if not (Decimal("0") <= rate_dec < Decimal("1")):
        raise InvalidLoanTermsError(f"Daily rate must be in [0, 1), got {rate_dec}")
    if rate_dec != rate_dec.quantize(RATE_QUANTUM):
        raise InvalidLoanTermsError(f"Daily rate allows at most 6 decimal places, got {rate_dec}")

    if isinstance(term_days, bool) or not isinstance(term_days, int):
        raise InvalidLoanTermsError(f"Term must be a whole number of days, got {term_days!r}")
    if not (1 <= term_days <= max_term_days):
        raise InvalidLoanTermsError(f"Term must be between 1 and {max_term_days} days, got {term_days}")

    total_amount = principal_dec * (1 + rate_dec * term_days)
    daily_payment = total_amount / term_days

    return LoanTerms(
        principal=principal_dec,
        daily_rate=rate_dec,
        term_days=term_days,
        total_amount=total_amount,
        daily_payment=daily_payment,
        total_interest=total_amount - principal_dec,
    )
