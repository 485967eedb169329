"""Loan application, lifecycle and schedule endpoints"""

import time
import logging
from datetime import date
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from juakali_lend.api.v1.schemas import (
    ApproveLoanRequest,
    DefaultLoanRequest,
    InstallmentSchema,
    LoanApplicationRequest,
    LoanListResponse,
    LoanQuoteRequest,
    LoanResponse,
    LoanTermsResponse,
    PaymentListResponse,
    PaymentSchema,
    ScheduleResponse,
    StatementResponse,
)
from juakali_lend.api.dependencies import get_request_id
from juakali_lend.config import settings
from juakali_lend.infrastructure.database.session import get_db
from juakali_lend.infrastructure.database.repositories import LoanRepository, PaymentRepository
from juakali_lend.domain.exceptions import (
    InvalidLoanTermsError,
    InvalidPeriodError,
    InvalidTransitionError,
    PersistenceError,
)
from juakali_lend.domain.lifecycle import approve_loan, mark_defaulted, open_loan, reject_loan
from juakali_lend.domain.models import Loan, LoanStatus, LoanTerms
from juakali_lend.domain.money import from_cents
from juakali_lend.domain.schedule import amount_due_by, generate_repayment_schedule
from juakali_lend.domain.statement import build_statement
from juakali_lend.domain.terms import calculate_loan_terms
from juakali_lend.infrastructure.observability.metrics import (
    record_application,
    record_rejection,
    record_transition,
)
from juakali_lend.infrastructure.observability.logging import log_loan_event, log_rejected_operation

router = APIRouter()


def _load_loan(db: Session, loan_id: int, for_update: bool = False) -> Loan:
    loan = LoanRepository(db).get_loan(loan_id, for_update=for_update)
    if loan is None:
        raise HTTPException(status_code=404, detail="Loan not found")
    return loan


def _calculate_terms(body: LoanQuoteRequest) -> LoanTerms:
    daily_rate = settings.default_daily_rate if body.daily_interest_rate is None else body.daily_interest_rate
    return calculate_loan_terms(
        body.principal,
        daily_rate,
        body.loan_term_days,
        max_principal=settings.max_principal,
        max_term_days=settings.max_term_days,
    )


@router.post("/loans/quote", response_model=LoanTermsResponse)
def quote_loan(body: LoanQuoteRequest, request: Request):
    """Run the terms calculator without creating a loan"""
    try:
        terms = _calculate_terms(body)
    except InvalidLoanTermsError as e:
        record_rejection("quote", e)
        log_rejected_operation(get_request_id(request), "quote", e)
        raise HTTPException(status_code=400, detail=str(e))

    return LoanTermsResponse.from_terms(terms)


@router.post("/loans", response_model=LoanResponse, status_code=201)
def apply_for_loan(
    body: LoanApplicationRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Loan application from a retailer.

    Flow:
    1. Calculate terms from principal, daily rate and term
    2. Persist loan in pending status, money rounded to cents
    3. Return stored loan
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        terms = _calculate_terms(body)
        loan = open_loan(
            terms,
            borrower_id=body.borrower_id,
            lender_id=body.lender_id,
            supplier_id=body.supplier_id,
        )
        LoanRepository(db).create_loan(loan)
        db.commit()

    except InvalidLoanTermsError as e:
        db.rollback()
        record_application(accepted=False)
        record_rejection("apply", e)
        log_rejected_operation(request_id, "apply", e)
        raise HTTPException(status_code=400, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_application(accepted=True, principal=loan.principal)
    log_loan_event(request_id, loan.id, loan.borrower_id, "applied", loan.status.value, duration_ms, str(loan.principal))

    return LoanResponse.from_loan(loan)


@router.get("/loans", response_model=LoanListResponse)
def list_loans(
    borrower_id: str | None = Query(None, min_length=1, description="Borrower identifier"),
    lender_id: str | None = Query(None, min_length=1, description="Lender identifier, for portfolio views"),
    db: Session = Depends(get_db),
):
    """List a borrower's loans or a lender's portfolio, newest first"""
    if (borrower_id is None) == (lender_id is None):
        raise HTTPException(status_code=400, detail="Provide exactly one of borrower_id or lender_id")

    loan_repo = LoanRepository(db)
    if borrower_id is not None:
        loans = loan_repo.get_loans_by_borrower(borrower_id)
    else:
        loans = loan_repo.get_loans_by_lender(lender_id)

    return LoanListResponse(
        borrower_id=borrower_id,
        lender_id=lender_id,
        loans=[LoanResponse.from_loan(loan) for loan in loans],
    )


@router.get("/loans/{loan_id}", response_model=LoanResponse)
def get_loan(loan_id: int, db: Session = Depends(get_db)):
    return LoanResponse.from_loan(_load_loan(db, loan_id))


def _transition(
    db: Session,
    request: Request,
    loan_id: int,
    event: str,
    apply: Callable[[Loan], Loan],
) -> LoanResponse:
    """Load, transition, save and commit a loan, mapping rule violations to HTTP errors"""
    start_time = time.time()
    request_id = get_request_id(request)
    loan = _load_loan(db, loan_id, for_update=True)

    try:
        apply(loan)
        LoanRepository(db).save_loan(loan)
        db.commit()

    except InvalidTransitionError as e:
        db.rollback()
        record_rejection(event, e)
        log_rejected_operation(request_id, event, e)
        raise HTTPException(status_code=409, detail=str(e))

    except PersistenceError as e:
        db.rollback()
        record_rejection(event, e)
        logging.warning(f"Persistence conflict: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_transition(loan.status.value)
    log_loan_event(request_id, loan.id, loan.borrower_id, event, loan.status.value, duration_ms)

    return LoanResponse.from_loan(loan)


@router.post("/loans/{loan_id}/approve", response_model=LoanResponse)
def approve(
    loan_id: int,
    request: Request,
    body: ApproveLoanRequest | None = None,
    db: Session = Depends(get_db),
):
    """Approve and disburse a pending loan; due date = disbursement + term"""
    disbursement_date = body.disbursement_date if body else None
    return _transition(db, request, loan_id, "approved", lambda loan: approve_loan(loan, disbursement_date))


@router.post("/loans/{loan_id}/reject", response_model=LoanResponse)
def reject(loan_id: int, request: Request, db: Session = Depends(get_db)):
    """Reject a pending loan before disbursement"""
    return _transition(db, request, loan_id, "rejected", reject_loan)


@router.post("/loans/{loan_id}/default", response_model=LoanResponse)
def default(
    loan_id: int,
    request: Request,
    body: DefaultLoanRequest | None = None,
    db: Session = Depends(get_db),
):
    """Flag an overdue active loan as defaulted for lender review"""
    as_of = body.as_of if body else None
    return _transition(db, request, loan_id, "defaulted", lambda loan: mark_defaulted(loan, as_of))


def _require_disbursed(loan: Loan) -> None:
    if loan.status in (LoanStatus.PENDING, LoanStatus.CANCELLED) or loan.disbursement_date is None:
        raise HTTPException(status_code=409, detail=f"Loan is {loan.status.value}; nothing is due until disbursed")


@router.get("/loans/{loan_id}/schedule", response_model=ScheduleResponse)
def get_schedule(
    loan_id: int,
    as_of: date | None = Query(None, description="Date for amount due, defaults to today"),
    db: Session = Depends(get_db),
):
    """
    Daily repayment schedule for a disbursed loan.

    Returns:
        One installment per day of the term, plus amount due and repaid to date
    """
    loan = _load_loan(db, loan_id)
    _require_disbursed(loan)

    installments = generate_repayment_schedule(loan.total_amount, loan.term_days, loan.disbursement_date)

    return ScheduleResponse(
        loan_id=loan.id,
        total_amount=loan.total_amount,
        amount_due_to_date=from_cents(amount_due_by(installments, as_of or date.today())),
        amount_repaid=loan.amount_repaid,
        installments=[InstallmentSchema.from_installment(inst) for inst in installments],
    )


@router.get("/loans/{loan_id}/payments", response_model=PaymentListResponse)
def list_loan_payments(loan_id: int, db: Session = Depends(get_db)):
    """Payments recorded against a loan, most recent first"""
    _load_loan(db, loan_id)
    payments = PaymentRepository(db).get_payments_by_loan(loan_id)
    return PaymentListResponse(loan_id=loan_id, payments=[PaymentSchema.from_payment(p) for p in payments])


@router.get("/loans/{loan_id}/statement", response_model=StatementResponse)
def get_statement(
    loan_id: int,
    request: Request,
    start: date = Query(..., description="First day of the period"),
    end: date = Query(..., description="Last day of the period"),
    db: Session = Depends(get_db),
):
    """
    Period statement for a disbursed loan.

    Returns:
        Installments expected in the period, payments received in it, shortfall
        and current outstanding balance
    """
    loan = _load_loan(db, loan_id)
    _require_disbursed(loan)

    try:
        statement = build_statement(loan, PaymentRepository(db).get_payments_by_loan(loan_id), start, end)
    except InvalidPeriodError as e:
        record_rejection("statement", e)
        log_rejected_operation(get_request_id(request), "statement", e)
        raise HTTPException(status_code=400, detail=str(e))

    return StatementResponse.from_statement(statement)
