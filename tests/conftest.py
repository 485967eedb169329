"""Pytest fixtures for testing"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from juakali_lend.api.main import create_app
from juakali_lend.infrastructure.database.models import Base
from juakali_lend.infrastructure.database.session import get_db
from juakali_lend.domain.lifecycle import approve_loan, open_loan
from juakali_lend.domain.models import CreditProfile, Loan, Payment, PaymentMethod
from juakali_lend.domain.terms import calculate_loan_terms


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def pending_loan() -> Loan:
    """50,000 KES at 5%/day over 30 days, not yet disbursed"""
    terms = calculate_loan_terms(Decimal("50000"), Decimal("0.05"), 30)
    loan = open_loan(terms, borrower_id="retailer_1", lender_id="lender_1", supplier_id="supplier_1")
    loan.id = 1
    return loan


@pytest.fixture
def active_loan(pending_loan: Loan) -> Loan:
    """Same loan disbursed on 2026-01-01, due 2026-01-31"""
    return approve_loan(pending_loan, date(2026, 1, 1))


@pytest.fixture
def profile() -> CreditProfile:
    return CreditProfile(user_id="retailer_1", credit_score=750, loyalty_points=120)


@pytest.fixture
def make_payment():
    """Factory for payments against a loan"""

    def _make(loan_id: int, amount: str, method: PaymentMethod = PaymentMethod.MPESA) -> Payment:
        return Payment(
            loan_id=loan_id,
            amount=Decimal(amount),
            method=method,
            paid_at=datetime(2026, 1, 2, 9, 0, tzinfo=timezone.utc),
        )

    return _make


@pytest.fixture
def other_db(db: Session) -> Generator[Session, None, None]:
    """Second session on the test database, standing in for a concurrent writer"""
    other = TestingSessionLocal()
    try:
        yield other
    finally:
        other.close()
