"""Prometheus metrics for loan volume, lifecycle transitions, and repayments"""

from decimal import Decimal

from prometheus_client import Counter, Histogram

# Loan metrics
loan_application_counter = Counter(
    "juakali_loan_applications_total",
    "Loan applications received",
    ["outcome"],  # accepted | invalid
)

loan_principal_histogram = Histogram(
    "juakali_loan_principal",
    "Principal requested per accepted application",
    buckets=[1_000, 5_000, 10_000, 25_000, 50_000, 75_000, 100_000],
)

loan_transition_counter = Counter(
    "juakali_loan_transitions_total",
    "Loan lifecycle transitions",
    ["to_status"],  # active | completed | defaulted | cancelled
)

# Payment metrics
payment_counter = Counter(
    "juakali_payments_total",
    "Payments recorded against loans",
    ["method"],
)

payment_amount_histogram = Histogram(
    "juakali_payment_amount",
    "Recorded payment amounts",
    buckets=[100, 500, 1_000, 5_000, 10_000, 50_000, 100_000],
)

# Rule violations returned to callers
rejected_operation_counter = Counter(
    "juakali_rejected_operations_total",
    "Operations rejected by a domain rule",
    ["operation", "error_kind"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_application(accepted: bool, principal: Decimal | None = None) -> None:
    """Record application outcome and principal distribution"""
    loan_application_counter.labels(outcome="accepted" if accepted else "invalid").inc()
    if accepted and principal is not None:
        loan_principal_histogram.observe(float(principal))


def record_transition(to_status: str) -> None:
    loan_transition_counter.labels(to_status=to_status).inc()


def record_payment(method: str, amount: Decimal) -> None:
    payment_counter.labels(method=method).inc()
    payment_amount_histogram.observe(float(amount))


def record_rejection(operation: str, error: Exception) -> None:
    rejected_operation_counter.labels(operation=operation, error_kind=type(error).__name__).inc()
