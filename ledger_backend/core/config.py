from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


SUPPORTED_CURRENCIES: tuple[str, ...] = (
    "USD", "EUR", "GBP", "JPY", "CNY", "KRW", "INR", "CAD", "AUD", "CHF",
    "SEK", "NOK", "DKK", "NZD", "SGD", "HKD", "BRL", "MXN", "ZAR", "PLN",
)

DEFAULT_CATEGORIES: tuple[str, ...] = (
    "Food",
    "Groceries",
    "Travel",
    "Rent",
    "Utilities",
    "Entertainment",
    "Healthcare",
    "Shopping",
    "Miscellaneous",
    "Income",
)


class Settings(BaseSettings):
    APP_NAME: str = "Ledger Backend"
    ENV: str = "dev"

    # SQLite file next to the package so the path does not depend on CWD
    _default_db_path = Path(__file__).resolve().parents[2] / "ledger.sqlite3"
    DATABASE_URL: str = f"sqlite:///{_default_db_path}"

    CORS_ORIGINS: list[str] = ["*"]
    TIMEZONE: str = "UTC"

    DEFAULT_CURRENCY: str = "USD"
    DEFAULT_START_DATE: int = 1
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=(".env",), env_prefix="LEDGER_", case_sensitive=False)


settings = Settings()
