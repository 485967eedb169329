"""SQLAlchemy ORM models - money stored as integer cents"""

from sqlalchemy import BigInteger, Column, Date, DateTime, ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class LoanRecord(Base):
    """Borrower loan with lifecycle status and running balance"""

    __tablename__ = "loan"

    id = Column(Integer, primary_key=True, autoincrement=True)
    borrower_id = Column(Text, nullable=False, index=True)
    lender_id = Column(Text, nullable=True, index=True)
    supplier_id = Column(Text, nullable=True)
    principal_cents = Column(BigInteger, nullable=False)
    daily_rate = Column(Numeric(8, 6), nullable=False)
    term_days = Column(Integer, nullable=False)
    total_amount_cents = Column(BigInteger, nullable=False)
    daily_payment_cents = Column(BigInteger, nullable=False)
    outstanding_cents = Column(BigInteger, nullable=False)
    status = Column(Text, nullable=False, default="pending", index=True)
    disbursement_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    payments = relationship("PaymentRecord", back_populates="loan", cascade="all, delete-orphan")

    # Concurrent writers to the same loan fail with StaleDataError instead of losing an update
    __mapper_args__ = {"version_id_col": version}


class PaymentRecord(Base):
    """Recorded repayment; rows are never updated"""

    __tablename__ = "payment"

    id = Column(Integer, primary_key=True, autoincrement=True)
    loan_id = Column(Integer, ForeignKey("loan.id", ondelete="CASCADE"), nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    method = Column(Text, nullable=False)
    transaction_reference = Column(Text, nullable=True, unique=True)
    paid_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    loan = relationship("LoanRecord", back_populates="payments")


class CreditProfileRecord(Base):
    """Credit score and loyalty points per user"""

    __tablename__ = "credit_profile"

    user_id = Column(Text, primary_key=True)
    credit_score = Column(Integer, nullable=False)
    loyalty_points = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
