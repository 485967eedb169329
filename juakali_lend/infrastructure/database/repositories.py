"""Data access layer - maps ORM rows to domain dataclasses"""

from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from juakali_lend.infrastructure.database.models import CreditProfileRecord, LoanRecord, PaymentRecord
from juakali_lend.domain.exceptions import PersistenceError
from juakali_lend.domain.models import CreditProfile, Loan, LoanStatus, Payment, PaymentMethod
from juakali_lend.domain.money import from_cents, to_cents


def _to_loan(row: LoanRecord) -> Loan:
    return Loan(
        id=row.id,
        borrower_id=row.borrower_id,
        lender_id=row.lender_id,
        supplier_id=row.supplier_id,
        principal=from_cents(row.principal_cents),
        daily_rate=row.daily_rate,
        term_days=row.term_days,
        total_amount=from_cents(row.total_amount_cents),
        daily_payment=from_cents(row.daily_payment_cents),
        outstanding_balance=from_cents(row.outstanding_cents),
        status=LoanStatus(row.status),
        disbursement_date=row.disbursement_date,
        due_date=row.due_date,
        version=row.version,
        created_at=row.created_at,
    )


def _to_payment(row: PaymentRecord) -> Payment:
    return Payment(
        id=row.id,
        loan_id=row.loan_id,
        amount=from_cents(row.amount_cents),
        method=PaymentMethod(row.method),
        paid_at=row.paid_at,
        transaction_reference=row.transaction_reference,
    )


class LoanRepository:
    """Repository for loans"""

    def __init__(self, db: Session):
        self.db = db

    def create_loan(self, loan: Loan) -> Loan:
        """Persist a new loan; fills in id and version on the domain object"""
        row = LoanRecord(
            borrower_id=loan.borrower_id,
            lender_id=loan.lender_id,
            supplier_id=loan.supplier_id,
            principal_cents=to_cents(loan.principal),
            daily_rate=loan.daily_rate,
            term_days=loan.term_days,
            total_amount_cents=to_cents(loan.total_amount),
            daily_payment_cents=to_cents(loan.daily_payment),
            outstanding_cents=to_cents(loan.outstanding_balance),
            status=loan.status.value,
            disbursement_date=loan.disbursement_date,
            due_date=loan.due_date,
        )
        self.db.add(row)
        self.db.flush()  # Get ID without committing

        loan.id = row.id
        loan.version = row.version
        return loan

    def get_loan(self, loan_id: int, for_update: bool = False) -> Optional[Loan]:
        """Fetch one loan; for_update locks the row where the backend supports it"""
        query = self.db.query(LoanRecord).filter(LoanRecord.id == loan_id)
        if for_update:
            query = query.with_for_update()
        row = query.first()
        return _to_loan(row) if row else None

    def get_loans_by_lender(self, lender_id: str) -> List[Loan]:
        """Fetch a lender's portfolio, newest first"""
        rows = (
            self.db.query(LoanRecord)
            .filter(LoanRecord.lender_id == lender_id)
            .order_by(LoanRecord.created_at.desc(), LoanRecord.id.desc())
            .all()
        )
        return [_to_loan(row) for row in rows]

    def get_loans_by_borrower(self, borrower_id: str) -> List[Loan]:
        """Fetch all loans for a borrower, newest first"""
        rows = (
            self.db.query(LoanRecord)
            .filter(LoanRecord.borrower_id == borrower_id)
            .order_by(LoanRecord.created_at.desc(), LoanRecord.id.desc())
            .all()
        )
        return [_to_loan(row) for row in rows]

    def save_loan(self, loan: Loan) -> Loan:
        """
        Write lifecycle changes back to an existing loan row.

        Raises:
            PersistenceError: row missing, or another writer bumped the version first
        """
        row = self.db.get(LoanRecord, loan.id)
        if row is None:
            raise PersistenceError(f"Loan {loan.id} no longer exists")
        if row.version != loan.version:
            raise PersistenceError(
                f"Loan {loan.id} was modified concurrently (expected version {loan.version}, found {row.version})"
            )

        row.outstanding_cents = to_cents(loan.outstanding_balance)
        row.status = loan.status.value
        row.disbursement_date = loan.disbursement_date
        row.due_date = loan.due_date

        try:
            self.db.flush()
        except StaleDataError as e:
            raise PersistenceError(f"Loan {loan.id} was modified concurrently") from e

        loan.version = row.version
        return loan


class PaymentRepository:
    """Repository for payments"""

    def __init__(self, db: Session):
        self.db = db

    def create_payment(self, payment: Payment) -> Payment:
        """
        Persist a payment.

        Raises:
            PersistenceError: transaction reference already recorded
        """
        row = PaymentRecord(
            loan_id=payment.loan_id,
            amount_cents=to_cents(payment.amount),
            method=payment.method.value,
            transaction_reference=payment.transaction_reference,
            paid_at=payment.paid_at,
        )
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError as e:
            raise PersistenceError(
                f"Payment with reference {payment.transaction_reference!r} already recorded"
            ) from e
        return _to_payment(row)

    def get_payments_by_loan(self, loan_id: int) -> List[Payment]:
        """Fetch payments against a loan, most recent first"""
        rows = (
            self.db.query(PaymentRecord)
            .filter(PaymentRecord.loan_id == loan_id)
            .order_by(PaymentRecord.paid_at.desc(), PaymentRecord.id.desc())
            .all()
        )
        return [_to_payment(row) for row in rows]

    def get_payments_by_borrower(self, borrower_id: str) -> List[Payment]:
        """Fetch every payment against any of a borrower's loans"""
        rows = (
            self.db.query(PaymentRecord)
            .join(LoanRecord, PaymentRecord.loan_id == LoanRecord.id)
            .filter(LoanRecord.borrower_id == borrower_id)
            .order_by(PaymentRecord.paid_at.desc(), PaymentRecord.id.desc())
            .all()
        )
        return [_to_payment(row) for row in rows]


class CreditProfileRepository:
    """Repository for user credit profiles"""

    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user_id: str) -> Optional[CreditProfile]:
        row = self.db.get(CreditProfileRecord, user_id)
        if row is None:
            return None
        return CreditProfile(user_id=row.user_id, credit_score=row.credit_score, loyalty_points=row.loyalty_points)

    def upsert_profile(self, profile: CreditProfile) -> CreditProfile:
        """Create or replace a user's credit profile"""
        row = self.db.get(CreditProfileRecord, profile.user_id)
        if row is None:
            row = CreditProfileRecord(user_id=profile.user_id)
            self.db.add(row)
        row.credit_score = profile.credit_score
        row.loyalty_points = profile.loyalty_points
        self.db.flush()
        return profile
