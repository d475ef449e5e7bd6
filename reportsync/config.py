import os
from pathlib import Path


class Settings:
    """Application settings with environment variable overrides."""

    APP_NAME: str = "Sheet Report Sync"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Paths
    BASE_DIR: Path = Path(__file__).resolve().parent.parent
    DATA_DIR: Path = Path(os.getenv("DATA_DIR", str(BASE_DIR / "data")))
    DB_PATH: Path = DATA_DIR / "reportsync.db"
    # Workbook references (e.g. "stores.xlsx#Data") resolve against this dir
    SHEETS_DIR: Path = Path(os.getenv("SHEETS_DIR", str(DATA_DIR / "sheets")))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        f"sqlite+aiosqlite:///{DB_PATH}",
    )

    # CORS
    ALLOWED_ORIGINS: list[str] = [
        o.strip()
        for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost").split(",")
        if o.strip()
    ]

    # Exchange rate
    EXCHANGE_RATE_URL: str = os.getenv(
        "EXCHANGE_RATE_URL", "https://api.exchangerate-api.com/v4/latest"
    )
    EXCHANGE_RATE_TIMEOUT: float = float(os.getenv("EXCHANGE_RATE_TIMEOUT", "10"))
    FALLBACK_EXCHANGE_RATE: float = float(os.getenv("FALLBACK_EXCHANGE_RATE", "26000"))
    BASE_CURRENCY: str = "USD"
    QUOTE_CURRENCY: str = "VND"

    # Scheduling (report dates are computed in UTC+7)
    REPORT_UTC_OFFSET_HOURS: int = int(os.getenv("REPORT_UTC_OFFSET_HOURS", "7"))
    DAILY_REPORT_HOUR: int = int(os.getenv("DAILY_REPORT_HOUR", "2"))
    SCHEDULER_ENABLED: bool = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"

    RUN_HISTORY_LIMIT: int = 50


settings = Settings()
