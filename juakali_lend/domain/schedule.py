"""Daily repayment schedule generation"""

from datetime import date
from decimal import Decimal
from typing import List

from juakali_lend.domain.exceptions import InvalidLoanTermsError
from juakali_lend.domain.models import Installment
from juakali_lend.domain.money import to_cents
from juakali_lend.utils.date_utils import add_days, generate_date_range


def generate_repayment_schedule(
    total_amount: Decimal,
    term_days: int,
    disbursement_date: date,
) -> List[Installment]:
    """
    Split a loan's total into one installment per day of the term.

    Requirements:
    - First installment due the day after disbursement, last on the due date
    - Equal amounts in whole cents
    - Last installment absorbs rounding remainder so the sum is exact

    Example:
        1000.00 over 3 days → [333.33, 333.33, 333.34]
        100000 cents / 3 = 33333 base, remainder 1
        Last installment: 33333 + 1 = 33334
    """
    if term_days < 1:
        raise InvalidLoanTermsError(f"Term must be at least 1 day, got {term_days}")

    total_cents = to_cents(total_amount)
    if total_cents <= 0:
        return []

    base_amount = total_cents // term_days
    remainder = total_cents % term_days

    due_dates = generate_date_range(add_days(disbursement_date, 1), add_days(disbursement_date, term_days))

    installments = []
    for i, due_date in enumerate(due_dates):
        amount = base_amount + (remainder if i == term_days - 1 else 0)
        installments.append(Installment(due_date=due_date, amount_cents=amount))

    return installments


def amount_due_by(installments: List[Installment], as_of: date) -> int:
    """Cents scheduled on or before as_of"""
    return sum(inst.amount_cents for inst in installments if inst.due_date <= as_of)


def amount_due_between(installments: List[Installment], start: date, end: date) -> int:
    """Cents scheduled from start to end, both inclusive"""
    return sum(inst.amount_cents for inst in installments if start <= inst.due_date <= end)
