"""Loan lifecycle state machine and repayment bookkeeping"""

from datetime import date
from typing import Dict, FrozenSet, Optional

from juakali_lend.domain.exceptions import (
    InvalidAmountError,
    InvalidTransitionError,
    OverpaymentError,
)
from juakali_lend.domain.models import Loan, LoanStatus, LoanTerms, Payment
from juakali_lend.domain.money import ZERO, is_whole_cents, round_money
from juakali_lend.utils.date_utils import add_days

TERMINAL_STATES: FrozenSet[LoanStatus] = frozenset(
    {LoanStatus.COMPLETED, LoanStatus.DEFAULTED, LoanStatus.CANCELLED}
)

ALLOWED_TRANSITIONS: Dict[LoanStatus, FrozenSet[LoanStatus]] = {
    LoanStatus.PENDING: frozenset({LoanStatus.ACTIVE, LoanStatus.CANCELLED}),
    LoanStatus.ACTIVE: frozenset({LoanStatus.COMPLETED, LoanStatus.DEFAULTED}),
}


def open_loan(
    terms: LoanTerms,
    borrower_id: str,
    lender_id: Optional[str] = None,
    supplier_id: Optional[str] = None,
) -> Loan:
    """Create a pending loan from calculator output, rounded to cents"""
    rounded = terms.rounded()
    return Loan(
        borrower_id=borrower_id,
        lender_id=lender_id,
        supplier_id=supplier_id,
        principal=rounded.principal,
        daily_rate=rounded.daily_rate,
        term_days=rounded.term_days,
        total_amount=rounded.total_amount,
        daily_payment=rounded.daily_payment,
        outstanding_balance=rounded.total_amount,
        status=LoanStatus.PENDING,
    )


def is_terminal(loan: Loan) -> bool:
    return loan.status in TERMINAL_STATES


def can_transition(loan: Loan, target: LoanStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(loan.status, frozenset())


def _require_transition(loan: Loan, target: LoanStatus) -> None:
    if is_terminal(loan):
        raise InvalidTransitionError(
            f"Loan {loan.id} is {loan.status.value}; no further transitions permitted",
            current_status=loan.status.value,
            target_status=target.value,
        )
    if not can_transition(loan, target):
        raise InvalidTransitionError(
            f"Cannot move loan {loan.id} from {loan.status.value} to {target.value}",
            current_status=loan.status.value,
            target_status=target.value,
        )


def approve_loan(loan: Loan, disbursement_date: Optional[date] = None) -> Loan:
    """
    Approve and disburse a pending loan.

    Sets disbursement date (default today) and due date = disbursement + term_days.
    """
    _require_transition(loan, LoanStatus.ACTIVE)

    disbursed_on = disbursement_date or date.today()
    loan.disbursement_date = disbursed_on
    loan.due_date = add_days(disbursed_on, loan.term_days)
    loan.status = LoanStatus.ACTIVE
    return loan


def reject_loan(loan: Loan) -> Loan:
    """Reject a pending loan before disbursement. No balance effect."""
    _require_transition(loan, LoanStatus.CANCELLED)
    loan.status = LoanStatus.CANCELLED
    return loan


def apply_payment(loan: Loan, payment: Payment) -> Loan:
    """
    Reduce an active loan's outstanding balance by a payment.

    The loan completes when the balance reaches zero. Validation happens
    before any field changes, so a rejected payment leaves the loan intact.

    Raises:
        InvalidAmountError: payment amount is not positive or finer than a cent
        OverpaymentError: payment exceeds outstanding balance (any payment on a completed loan)
        InvalidTransitionError: loan is pending, defaulted or cancelled
    """
    amount = payment.amount
    if amount <= 0:
        raise InvalidAmountError(f"Payment amount must be positive, got {amount}")
    if not is_whole_cents(amount):
        raise InvalidAmountError(f"Payment amount must be a whole number of cents, got {amount}")

    if loan.status == LoanStatus.COMPLETED:
        raise OverpaymentError(f"Loan {loan.id} is fully repaid; payment {amount} exceeds outstanding balance 0.00")
    if loan.status != LoanStatus.ACTIVE:
        raise InvalidTransitionError(
            f"Payments are only accepted on active loans; loan {loan.id} is {loan.status.value}",
            current_status=loan.status.value,
        )
    if amount > loan.outstanding_balance:
        raise OverpaymentError(
            f"Payment {amount} exceeds outstanding balance {loan.outstanding_balance} on loan {loan.id}"
        )

    loan.outstanding_balance = loan.outstanding_balance - amount
    if loan.outstanding_balance <= ZERO:
        loan.outstanding_balance = round_money(ZERO)
        loan.status = LoanStatus.COMPLETED
    return loan


def is_overdue(loan: Loan, as_of: Optional[date] = None) -> bool:
    """Active loan whose due date has passed with money still owed"""
    as_of = as_of or date.today()
    return (
        loan.status == LoanStatus.ACTIVE
        and loan.due_date is not None
        and as_of > loan.due_date
        and loan.outstanding_balance > ZERO
    )


def mark_defaulted(loan: Loan, as_of: Optional[date] = None) -> Loan:
    """
    Flag an overdue active loan as defaulted for lender review.

    Raises:
        InvalidTransitionError: loan not active, not yet past due, or fully repaid
    """
    _require_transition(loan, LoanStatus.DEFAULTED)
    as_of = as_of or date.today()
    if not is_overdue(loan, as_of):
        raise InvalidTransitionError(
            f"Loan {loan.id} is not overdue as of {as_of.isoformat()} (due {loan.due_date})",
            current_status=loan.status.value,
            target_status=LoanStatus.DEFAULTED.value,
        )
    loan.status = LoanStatus.DEFAULTED
    return loan
