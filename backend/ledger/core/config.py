from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Field Services Ledger"
    version: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # "development", "staging" or "production"
    APP_DOMAIN: str = "example.com"
    APP_DATABASE_DSN: str = "sqlite:////tmp/ledger.db"
    REDIS_URL: str = "redis://localhost:6379"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Document numbering
    INVOICE_NUMBER_PREFIX: str = "INV"
    PAYMENT_NUMBER_PREFIX: str = "PAY"
    SEQUENCE_STRATEGY: str = "atomic"  # "atomic" or "scan"

    # Invoicing
    INVOICE_TRUST_CALLER_TOTALS: bool = False
    BULK_DELETE_MAX_IDS: int = 200
    RECONCILE_BATCH_SIZE: int = 500

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
