"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from juakali_lend.config import settings
from juakali_lend.domain.models import CreditPolicy


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_credit_policy() -> CreditPolicy:
    """Provide the configured credit policy"""
    return settings.credit_policy()
