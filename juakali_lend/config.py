"""Configuration management using Pydantic Settings"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

from juakali_lend.domain.models import CreditPolicy


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./juakali_lend.db"

    # Service
    service_name: str = "juakali-lend"
    log_level: str = "INFO"
    currency: str = "KES"

    # Loan terms
    default_daily_rate: Decimal = Decimal("0.05")  # 5% per day, linear
    max_principal: Decimal = Decimal("1000000")
    max_term_days: int = 365

    # Credit policy
    credit_score_min: int = 300
    credit_score_max: int = 850
    credit_limit_per_point: Decimal = Decimal("100")
    credit_limit_cap: Decimal = Decimal("100000")
    default_credit_score: int = 500  # Used when a user has no stored profile

    def credit_policy(self) -> CreditPolicy:
        """Build the domain credit policy from configured bounds"""
        return CreditPolicy(
            min_score=self.credit_score_min,
            max_score=self.credit_score_max,
            limit_per_point=self.credit_limit_per_point,
            limit_cap=self.credit_limit_cap,
        )


settings = Settings()
