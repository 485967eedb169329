"""GET /v1/dashboard/{user_id} - borrower summary statistics"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from juakali_lend.api.v1.schemas import DashboardResponse
from juakali_lend.api.dependencies import get_credit_policy, get_request_id
from juakali_lend.config import settings
from juakali_lend.infrastructure.database.session import get_db
from juakali_lend.infrastructure.database.repositories import (
    CreditProfileRepository,
    LoanRepository,
    PaymentRepository,
)
from juakali_lend.domain.dashboard import summarize_borrower
from juakali_lend.domain.exceptions import InvalidScoreError
from juakali_lend.domain.models import CreditPolicy, CreditProfile
from juakali_lend.infrastructure.observability.metrics import record_rejection
from juakali_lend.infrastructure.observability.logging import log_rejected_operation

router = APIRouter()


@router.get("/dashboard/{user_id}", response_model=DashboardResponse)
def get_dashboard(
    user_id: str,
    request: Request,
    as_of: date | None = Query(None, description="Date for overdue checks, defaults to today"),
    db: Session = Depends(get_db),
    policy: CreditPolicy = Depends(get_credit_policy),
):
    """
    Retrieve a borrower's loan and repayment summary.

    Returns:
        Counts, totals, outstanding balance, credit headroom and utilization
    """
    loans = LoanRepository(db).get_loans_by_borrower(user_id)
    payments = PaymentRepository(db).get_payments_by_borrower(user_id)
    profile = CreditProfileRepository(db).get_profile(user_id)
    if profile is None:
        profile = CreditProfile(user_id=user_id, credit_score=settings.default_credit_score)

    try:
        summary = summarize_borrower(loans, payments, profile, policy, as_of)
    except InvalidScoreError as e:
        record_rejection("dashboard", e)
        log_rejected_operation(get_request_id(request), "dashboard", e)
        raise HTTPException(status_code=400, detail=str(e))

    return DashboardResponse.from_summary(summary)
