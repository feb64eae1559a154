from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database ("memory://" keeps every document in process)
    DATABASE_URL: str = "sqlite:///./billdesk.db"

    # Billing
    DEFAULT_GST_PERCENTAGE: float = 18.0
    ALLOWED_GST_RATES: List[float] = [0, 5, 12, 18, 28]
    BILL_ID_PREFIX: str = "BILL"
    RETURN_BILL_PREFIX: str = "R"
    TIMEZONE: str = "Asia/Kolkata"

    # Stock
    LOW_STOCK_THRESHOLD: int = 10
    REPORT_LOW_STOCK_LEVEL: int = 5

    # Logging
    LOG_FILE: str = "app.log"
    LOG_LEVEL: str = "DEBUG"
    LOG_ROTATION: str = "500 MB"

    class Config:
        env_file = ".env"

settings = Settings()
