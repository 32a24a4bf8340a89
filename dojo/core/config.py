from decimal import Decimal
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    school_name: str = Field("Master's Taekwon-Do Academy", alias="SCHOOL_NAME")
    invoice_logo_path: Optional[str] = Field(None, alias="INVOICE_LOGO_PATH")

    # Monthly fee per tier, in rupees
    two_classes_fee: Decimal = Field(Decimal("700"), alias="TWO_CLASSES_FEE")
    four_classes_fee: Decimal = Field(Decimal("1000"), alias="FOUR_CLASSES_FEE")
    default_test_fee: Decimal = Field(Decimal("50"), alias="DEFAULT_TEST_FEE")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
