"""GET/PUT /v1/credit/{user_id} - credit limit and profile"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from juakali_lend.api.v1.schemas import CreditProfileRequest, CreditResponse
from juakali_lend.api.dependencies import get_credit_policy, get_request_id
from juakali_lend.config import settings
from juakali_lend.infrastructure.database.session import get_db
from juakali_lend.infrastructure.database.repositories import CreditProfileRepository, LoanRepository
from juakali_lend.domain.credit import evaluate_credit_limit, validate_credit_score
from juakali_lend.domain.exceptions import InvalidScoreError
from juakali_lend.domain.models import CreditPolicy, CreditProfile, LoanStatus
from juakali_lend.domain.money import ZERO
from juakali_lend.infrastructure.observability.metrics import record_rejection
from juakali_lend.infrastructure.observability.logging import log_rejected_operation

router = APIRouter()


def _credit_response(db: Session, profile: CreditProfile, policy: CreditPolicy) -> CreditResponse:
    active = [
        loan for loan in LoanRepository(db).get_loans_by_borrower(profile.user_id)
        if loan.status == LoanStatus.ACTIVE
    ]
    outstanding = sum((loan.outstanding_balance for loan in active), ZERO)
    limit = evaluate_credit_limit(profile.credit_score, outstanding, policy)
    return CreditResponse.from_limit(profile.user_id, limit, profile.loyalty_points)


@router.get("/credit/{user_id}", response_model=CreditResponse)
def get_credit(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    policy: CreditPolicy = Depends(get_credit_policy),
):
    """
    Evaluate a user's credit limit against their active loan balances.

    Users without a stored profile are evaluated at the default score.
    """
    profile = CreditProfileRepository(db).get_profile(user_id)
    if profile is None:
        profile = CreditProfile(user_id=user_id, credit_score=settings.default_credit_score)

    try:
        return _credit_response(db, profile, policy)
    except InvalidScoreError as e:
        # Stored score no longer fits a tightened policy
        record_rejection("credit", e)
        log_rejected_operation(get_request_id(request), "credit", e)
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/credit/{user_id}", response_model=CreditResponse)
def put_credit_profile(
    user_id: str,
    body: CreditProfileRequest,
    request: Request,
    db: Session = Depends(get_db),
    policy: CreditPolicy = Depends(get_credit_policy),
):
    """Set a user's credit score and loyalty points"""
    try:
        validate_credit_score(body.credit_score, policy)
    except InvalidScoreError as e:
        record_rejection("credit_profile", e)
        log_rejected_operation(get_request_id(request), "credit_profile", e)
        raise HTTPException(status_code=400, detail=str(e))

    profile = CreditProfile(user_id=user_id, credit_score=body.credit_score, loyalty_points=body.loyalty_points)
    CreditProfileRepository(db).upsert_profile(profile)
    db.commit()

    return _credit_response(db, profile, policy)
