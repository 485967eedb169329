"""Per-period loan statements: scheduled installments against payments received"""

from datetime import date
from typing import Iterable

from juakali_lend.domain.exceptions import InvalidPeriodError
from juakali_lend.domain.models import Loan, LoanStatement, Payment
from juakali_lend.domain.money import ZERO, from_cents, round_money
from juakali_lend.domain.schedule import amount_due_between, generate_repayment_schedule


def build_statement(loan: Loan, payments: Iterable[Payment], period_start: date, period_end: date) -> LoanStatement:
    """
    Compare what the daily schedule expected in a period with what was paid.

    Only payments against this loan dated within the period count. Shortfall is
    expected - paid, floored at 0; paying ahead does not produce a credit.

    Raises:
        InvalidPeriodError: period_end before period_start
    """
    if period_end < period_start:
        raise InvalidPeriodError(
            f"Statement period ends {period_end.isoformat()} before it starts {period_start.isoformat()}"
        )

    expected = ZERO
    if loan.disbursement_date is not None:
        installments = generate_repayment_schedule(loan.total_amount, loan.term_days, loan.disbursement_date)
        expected = from_cents(amount_due_between(installments, period_start, period_end))

    in_period = tuple(
        p for p in payments
        if p.loan_id == loan.id and period_start <= p.paid_at.date() <= period_end
    )
    paid = sum((p.amount for p in in_period), ZERO)

    return LoanStatement(
        loan_id=loan.id,
        period_start=period_start,
        period_end=period_end,
        total_expected=round_money(expected),
        total_paid=round_money(paid),
        shortfall=round_money(max(expected - paid, ZERO)),
        outstanding_balance=loan.outstanding_balance,
        payments=in_period,
    )
