from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # API Settings
    PROJECT_NAME: str = "Group Ledger API"
    API_V1_STR: str = "/api/v1"
    PROJECT_VERSION: str = "0.1.0"
    DESCRIPTION: str = "Shared expense ledger: balances, splits and settlements"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Storage
    STORAGE_BACKEND: Literal["mongo", "memory"] = "mongo"
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "groupledger"
    # Upper bound for one multi-step write sequence (seconds)
    STORE_TIMEOUT_SECONDS: float = 10.0

    # Ledger policy, all amounts in integer cents
    RECONCILE_TOLERANCE_CENTS: int = 1
    SETTLED_THRESHOLD_CENTS: int = 100
    SHARE_UNIT_CENTS: int = 100
    SETTLEMENT_CATEGORY_ID: str = "settlement"
    PLACEHOLDER_USERNAME: str = "Unknown"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # JWT (tokens are issued by the auth service)
    JWT_SECRET: str = "change-this-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 30

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
