"""POST /v1/payments - record a repayment from a webhook or manual entry"""

import time
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from juakali_lend.api.v1.schemas import LoanResponse, PaymentRequest, PaymentResponse, PaymentSchema
from juakali_lend.api.dependencies import get_request_id
from juakali_lend.infrastructure.database.session import get_db
from juakali_lend.infrastructure.database.repositories import LoanRepository, PaymentRepository
from juakali_lend.domain.exceptions import (
    InvalidAmountError,
    InvalidTransitionError,
    OverpaymentError,
    PersistenceError,
)
from juakali_lend.domain.lifecycle import apply_payment
from juakali_lend.domain.models import LoanStatus, Payment
from juakali_lend.infrastructure.observability.metrics import (
    record_payment,
    record_rejection,
    record_transition,
)
from juakali_lend.infrastructure.observability.logging import log_loan_event, log_rejected_operation

router = APIRouter()


@router.post("/payments", response_model=PaymentResponse, status_code=201)
def create_payment(
    body: PaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Record a payment against an active loan.

    Flow:
    1. Lock the loan row
    2. Apply the payment: balance decrements, loan completes at zero
    3. Persist payment and updated loan in one transaction
    4. Return both

    Overpayment is refused outright rather than partially applied.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    loan_repo = LoanRepository(db)
    loan = loan_repo.get_loan(body.loan_id, for_update=True)
    if loan is None:
        raise HTTPException(status_code=404, detail="Loan not found")

    payment = Payment(
        loan_id=body.loan_id,
        amount=body.amount,
        method=body.payment_method,
        paid_at=body.paid_at or datetime.now(timezone.utc),
        transaction_reference=body.transaction_reference,
    )

    try:
        apply_payment(loan, payment)
        loan_repo.save_loan(loan)
        recorded = PaymentRepository(db).create_payment(payment)
        db.commit()

    except (InvalidAmountError, OverpaymentError) as e:
        db.rollback()
        record_rejection("payment", e)
        log_rejected_operation(request_id, "payment", e)
        raise HTTPException(status_code=400, detail=str(e))

    except InvalidTransitionError as e:
        db.rollback()
        record_rejection("payment", e)
        log_rejected_operation(request_id, "payment", e)
        raise HTTPException(status_code=409, detail=str(e))

    except PersistenceError as e:
        db.rollback()
        record_rejection("payment", e)
        logging.warning(f"Persistence conflict: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_payment(recorded.method.value, recorded.amount)
    if loan.status == LoanStatus.COMPLETED:
        record_transition(loan.status.value)
    log_loan_event(request_id, loan.id, loan.borrower_id, "payment_recorded", loan.status.value, duration_ms, str(recorded.amount))

    return PaymentResponse(payment=PaymentSchema.from_payment(recorded), loan=LoanResponse.from_loan(loan))
