"""Borrower dashboard aggregation - pure fold over loans and payments"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from juakali_lend.domain.credit import DEFAULT_POLICY, evaluate_credit_limit
from juakali_lend.domain.models import (
    CreditPolicy,
    CreditProfile,
    DashboardSummary,
    Loan,
    LoanStatus,
    Payment,
)
from juakali_lend.domain.money import ZERO, round_money

UTILIZATION_PLACES = Decimal("0.0001")


def summarize_borrower(
    loans: Iterable[Loan],
    payments: Iterable[Payment],
    profile: CreditProfile,
    policy: CreditPolicy = DEFAULT_POLICY,
    as_of: Optional[date] = None,
) -> DashboardSummary:
    """
    Fold one borrower's loans and payments into dashboard statistics.

    outstanding = sum(active total_amount) - sum(payments against active loans),
    floored at 0. Utilization is outstanding / credit_limit and falls back to 0
    when the limit is 0, so empty input never divides by zero.
    """
    as_of = as_of or date.today()
    loans = list(loans)
    payments = list(payments)

    active = [loan for loan in loans if loan.status == LoanStatus.ACTIVE]
    active_ids = {loan.id for loan in active}

    total_principal = sum((loan.principal for loan in loans), ZERO)
    total_repaid = sum((p.amount for p in payments), ZERO)

    active_total = sum((loan.total_amount for loan in active), ZERO)
    paid_on_active = sum((p.amount for p in payments if p.loan_id in active_ids), ZERO)
    outstanding = max(active_total - paid_on_active, ZERO)

    credit = evaluate_credit_limit(profile.credit_score, outstanding, policy)

    if credit.credit_limit > 0:
        utilization = (outstanding / credit.credit_limit).quantize(UTILIZATION_PLACES)
    else:
        utilization = Decimal("0")

    # Active loans at or past their due date still owe money
    pending_payments = sum(
        1 for loan in active if loan.due_date is not None and loan.due_date <= as_of
    )

    return DashboardSummary(
        total_loans=len(loans),
        active_loans=len(active),
        completed_loans=sum(1 for loan in loans if loan.status == LoanStatus.COMPLETED),
        total_principal=round_money(total_principal),
        total_repaid=round_money(total_repaid),
        outstanding_amount=round_money(outstanding),
        credit_score=profile.credit_score,
        credit_limit=round_money(credit.credit_limit),
        available_credit=round_money(credit.available_credit),
        credit_utilization=utilization,
        pending_payments=pending_payments,
        loyalty_points=profile.loyalty_points,
    )
