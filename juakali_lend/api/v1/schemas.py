"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from juakali_lend.domain.models import (
    CreditLimit,
    DashboardSummary,
    Installment,
    Loan,
    LoanStatement,
    LoanStatus,
    LoanTerms,
    Payment,
    PaymentMethod,
)
from juakali_lend.domain.money import from_cents, round_money


class LoanQuoteRequest(BaseModel):
    """Request body for POST /v1/loans/quote"""

    principal: Decimal = Field(..., description="Amount to borrow")
    daily_interest_rate: Optional[Decimal] = Field(None, description="Fraction per day, e.g. 0.05")
    loan_term_days: int = Field(..., description="Repayment term in days")


class LoanApplicationRequest(LoanQuoteRequest):
    """Request body for POST /v1/loans"""

    borrower_id: str = Field(..., min_length=1, description="Retailer borrowing the stock credit")
    lender_id: Optional[str] = None
    supplier_id: Optional[str] = None


class LoanTermsResponse(BaseModel):
    """Calculator output, money rounded to cents"""

    principal: Decimal
    daily_interest_rate: Decimal
    loan_term_days: int
    total_amount: Decimal
    daily_payment: Decimal
    total_interest: Decimal

    @classmethod
    def from_terms(cls, terms: LoanTerms) -> "LoanTermsResponse":
        rounded = terms.rounded()
        return cls(
            principal=rounded.principal,
            daily_interest_rate=rounded.daily_rate,
            loan_term_days=rounded.term_days,
            total_amount=rounded.total_amount,
            daily_payment=rounded.daily_payment,
            total_interest=rounded.total_interest,
        )


class LoanResponse(BaseModel):
    """Loan state as stored"""

    loan_id: int
    borrower_id: str
    lender_id: Optional[str] = None
    supplier_id: Optional[str] = None
    principal: Decimal
    daily_interest_rate: Decimal
    loan_term_days: int
    total_amount: Decimal
    daily_payment: Decimal
    outstanding_balance: Decimal
    status: LoanStatus
    disbursement_date: Optional[date] = None
    due_date: Optional[date] = None

    @classmethod
    def from_loan(cls, loan: Loan) -> "LoanResponse":
        return cls(
            loan_id=loan.id,
            borrower_id=loan.borrower_id,
            lender_id=loan.lender_id,
            supplier_id=loan.supplier_id,
            principal=loan.principal,
            daily_interest_rate=loan.daily_rate.normalize(),
            loan_term_days=loan.term_days,
            total_amount=loan.total_amount,
            daily_payment=loan.daily_payment,
            outstanding_balance=loan.outstanding_balance,
            status=loan.status,
            disbursement_date=loan.disbursement_date,
            due_date=loan.due_date,
        )


class LoanListResponse(BaseModel):
    """Response for GET /v1/loans"""

    borrower_id: Optional[str] = None
    lender_id: Optional[str] = None
    loans: List[LoanResponse]


class ApproveLoanRequest(BaseModel):
    """Request body for POST /v1/loans/{loan_id}/approve"""

    disbursement_date: Optional[date] = Field(None, description="Defaults to today")


class DefaultLoanRequest(BaseModel):
    """Request body for POST /v1/loans/{loan_id}/default"""

    as_of: Optional[date] = Field(None, description="Evaluation date, defaults to today")


class InstallmentSchema(BaseModel):
    """Single daily installment"""

    due_date: date
    amount: Decimal

    @classmethod
    def from_installment(cls, installment: Installment) -> "InstallmentSchema":
        return cls(due_date=installment.due_date, amount=from_cents(installment.amount_cents))


class ScheduleResponse(BaseModel):
    """Response for GET /v1/loans/{loan_id}/schedule"""

    loan_id: int
    total_amount: Decimal
    amount_due_to_date: Decimal
    amount_repaid: Decimal
    installments: List[InstallmentSchema]


class PaymentRequest(BaseModel):
    """Request body for POST /v1/payments (webhook or manual entry)"""

    loan_id: int
    amount: Decimal
    payment_method: PaymentMethod
    transaction_reference: Optional[str] = None
    paid_at: Optional[datetime] = None


class PaymentSchema(BaseModel):
    """Recorded payment"""

    payment_id: int
    loan_id: int
    amount: Decimal
    payment_method: PaymentMethod
    transaction_reference: Optional[str] = None
    paid_at: datetime

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentSchema":
        return cls(
            payment_id=payment.id,
            loan_id=payment.loan_id,
            amount=payment.amount,
            payment_method=payment.method,
            transaction_reference=payment.transaction_reference,
            paid_at=payment.paid_at,
        )


class PaymentResponse(BaseModel):
    """Response for POST /v1/payments"""

    payment: PaymentSchema
    loan: LoanResponse


class PaymentListResponse(BaseModel):
    """Response for GET /v1/loans/{loan_id}/payments"""

    loan_id: int
    payments: List[PaymentSchema]


class StatementResponse(BaseModel):
    """Response for GET /v1/loans/{loan_id}/statement"""

    loan_id: int
    period_start: date
    period_end: date
    total_expected: Decimal
    total_paid: Decimal
    shortfall: Decimal
    outstanding_balance: Decimal
    payments: List[PaymentSchema]

    @classmethod
    def from_statement(cls, statement: LoanStatement) -> "StatementResponse":
        return cls(
            loan_id=statement.loan_id,
            period_start=statement.period_start,
            period_end=statement.period_end,
            total_expected=statement.total_expected,
            total_paid=statement.total_paid,
            shortfall=statement.shortfall,
            outstanding_balance=statement.outstanding_balance,
            payments=[PaymentSchema.from_payment(p) for p in statement.payments],
        )


class CreditProfileRequest(BaseModel):
    """Request body for PUT /v1/credit/{user_id}"""

    credit_score: int
    loyalty_points: int = Field(0, ge=0)


class CreditResponse(BaseModel):
    """Response for GET/PUT /v1/credit/{user_id}"""

    user_id: str
    credit_score: int
    credit_limit: Decimal
    outstanding_amount: Decimal
    available_credit: Decimal
    loyalty_points: int

    @classmethod
    def from_limit(cls, user_id: str, limit: CreditLimit, loyalty_points: int) -> "CreditResponse":
        return cls(
            user_id=user_id,
            credit_score=limit.credit_score,
            credit_limit=round_money(limit.credit_limit),
            outstanding_amount=round_money(limit.outstanding_amount),
            available_credit=round_money(limit.available_credit),
            loyalty_points=loyalty_points,
        )


class DashboardResponse(BaseModel):
    """Response for GET /v1/dashboard/{user_id}, camelCase for the web client"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_loans: int
    active_loans: int
    completed_loans: int
    total_principal: Decimal
    total_repaid: Decimal
    outstanding_amount: Decimal
    credit_score: int
    credit_limit: Decimal
    available_credit: Decimal
    credit_utilization: Decimal
    pending_payments: int
    loyalty_points: int

    @classmethod
    def from_summary(cls, summary: DashboardSummary) -> "DashboardResponse":
        return cls(
            total_loans=summary.total_loans,
            active_loans=summary.active_loans,
            completed_loans=summary.completed_loans,
            total_principal=summary.total_principal,
            total_repaid=summary.total_repaid,
            outstanding_amount=summary.outstanding_amount,
            credit_score=summary.credit_score,
            credit_limit=summary.credit_limit,
            available_credit=summary.available_credit,
            credit_utilization=summary.credit_utilization,
            pending_payments=summary.pending_payments,
            loyalty_points=summary.loyalty_points,
        )
