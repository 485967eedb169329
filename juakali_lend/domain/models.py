"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from juakali_lend.domain.money import round_money


class LoanStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    DEFAULTED = "defaulted"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    MPESA = "mpesa"  # mobile money
    BANK_TRANSFER = "bank_transfer"
    MOBILE_WALLET = "mobile_wallet"


@dataclass(frozen=True)
class LoanTerms:
    """Output of the loan terms calculator (exact, unrounded)"""

    principal: Decimal
    daily_rate: Decimal
    term_days: int
    total_amount: Decimal
    daily_payment: Decimal
    total_interest: Decimal

    def rounded(self) -> "LoanTerms":
        """Copy with money fields rounded to cents, for persistence"""
        return replace(
            self,
            principal=round_money(self.principal),
            total_amount=round_money(self.total_amount),
            daily_payment=round_money(self.daily_payment),
            total_interest=round_money(self.total_interest),
        )


@dataclass
class Loan:
    """Short-term stock credit owned by the lifecycle state machine"""

    borrower_id: str
    principal: Decimal
    daily_rate: Decimal
    term_days: int
    total_amount: Decimal
    daily_payment: Decimal
    outstanding_balance: Decimal
    status: LoanStatus = LoanStatus.PENDING
    lender_id: Optional[str] = None
    supplier_id: Optional[str] = None
    disbursement_date: Optional[date] = None
    due_date: Optional[date] = None
    id: Optional[int] = None
    version: int = 1
    created_at: Optional[datetime] = None

    @property
    def total_interest(self) -> Decimal:
        return self.total_amount - self.principal

    @property
    def amount_repaid(self) -> Decimal:
        return self.total_amount - self.outstanding_balance


@dataclass(frozen=True)
class Payment:
    """Repayment against a loan; immutable once recorded"""

    loan_id: int
    amount: Decimal
    method: PaymentMethod
    paid_at: datetime
    transaction_reference: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class CreditPolicy:
    """Bounds and multipliers for credit limit evaluation"""

    min_score: int = 300
    max_score: int = 850
    limit_per_point: Decimal = Decimal("100")
    limit_cap: Decimal = Decimal("100000")


@dataclass
class CreditProfile:
    """Per-user credit standing"""

    user_id: str
    credit_score: int
    loyalty_points: int = 0


@dataclass(frozen=True)
class CreditLimit:
    """Output of the credit limit evaluator"""

    credit_score: int
    credit_limit: Decimal
    outstanding_amount: Decimal
    available_credit: Decimal


@dataclass(frozen=True)
class Installment:
    """Single daily payment in a repayment schedule"""

    due_date: date
    amount_cents: int


@dataclass
class DashboardSummary:
    """Borrower-level aggregate of loans and payments"""

    total_loans: int = 0
    active_loans: int = 0
    completed_loans: int = 0
    total_principal: Decimal = Decimal("0.00")
    total_repaid: Decimal = Decimal("0.00")
    outstanding_amount: Decimal = Decimal("0.00")
    credit_score: int = 0
    credit_limit: Decimal = Decimal("0.00")
    available_credit: Decimal = Decimal("0.00")
    credit_utilization: Decimal = Decimal("0")
    pending_payments: int = 0
    loyalty_points: int = 0


@dataclass(frozen=True)
class LoanStatement:
    """Expected versus paid for one loan over a reporting period"""

    loan_id: int
    period_start: date
    period_end: date
    total_expected: Decimal
    total_paid: Decimal
    shortfall: Decimal
    outstanding_balance: Decimal
    payments: Tuple[Payment, ...] = ()
