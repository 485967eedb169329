"""Credit limit evaluation from credit score and current exposure"""

from decimal import Decimal

from juakali_lend.domain.exceptions import InvalidAmountError, InvalidScoreError
from juakali_lend.domain.models import CreditLimit, CreditPolicy
from juakali_lend.domain.money import Number, ZERO, to_decimal

DEFAULT_POLICY = CreditPolicy()


def validate_credit_score(credit_score: int, policy: CreditPolicy = DEFAULT_POLICY) -> int:
    """Raise InvalidScoreError unless score is an integer within policy bounds"""
    if isinstance(credit_score, bool) or not isinstance(credit_score, int):
        raise InvalidScoreError(f"Credit score must be an integer, got {credit_score!r}")
    if not (policy.min_score <= credit_score <= policy.max_score):
        raise InvalidScoreError(
            f"Credit score {credit_score} outside valid range "
            f"{policy.min_score}-{policy.max_score}"
        )
    return credit_score


def determine_credit_limit(credit_score: int, policy: CreditPolicy = DEFAULT_POLICY) -> Decimal:
    """
    Map credit score to a credit limit.

    limit = min(score * 100, 100000) with the default policy, so
    750 -> 75000 and anything from 1000 up would hit the cap.
    """
    validate_credit_score(credit_score, policy)
    return min(Decimal(credit_score) * policy.limit_per_point, policy.limit_cap)


def evaluate_credit_limit(
    credit_score: int,
    outstanding_amount: Number = ZERO,
    policy: CreditPolicy = DEFAULT_POLICY,
) -> CreditLimit:
    """
    Compute credit limit and the credit still available to draw.

    available_credit = credit_limit - outstanding_amount, floored at 0.

    Raises:
        InvalidScoreError: score outside policy bounds
        InvalidAmountError: outstanding amount negative or not numeric
    """
    try:
        outstanding = to_decimal(outstanding_amount)
    except ValueError as e:
        raise InvalidAmountError(str(e)) from e
    if outstanding < 0:
        raise InvalidAmountError(f"Outstanding amount cannot be negative, got {outstanding}")

    credit_limit = determine_credit_limit(credit_score, policy)
    available = max(credit_limit - outstanding, ZERO)

    return CreditLimit(
        credit_score=credit_score,
        credit_limit=credit_limit,
        outstanding_amount=outstanding,
        available_credit=available,
    )
