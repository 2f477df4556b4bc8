from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "postgresql+asyncpg://voltbuild:voltbuild_dev@db:5432/voltbuild"
    DB_AUTO_CREATE: bool = False
    DB_ECHO: bool = False

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # Security
    SECRET_KEY: str = "dev-secret-key-not-for-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    ALLOWED_ORIGINS: str = "*"

    # Exchange rate (CAD -> USD), providers are tried in order
    EXCHANGE_RATE_PROVIDERS: str = "exchangerate_api,open_er_api,frankfurter"
    EXCHANGE_RATE_TIMEOUT_SECONDS: float = 5.0
    EXCHANGE_RATE_FALLBACK: float = 0.74
    EXCHANGE_RATE_FETCH_ON_STARTUP: bool = True

    # SecureShare document service
    SECURE_SHARE_API_URL: str = "https://api.secureshare.example/v1"
    SECURE_SHARE_API_KEY: str = "mock_secure_share_key"

    # Forecasting
    FORECAST_DEFAULT_HORIZON_DAYS: int = 180

    # App
    APP_ENV: str = "development"
    APP_URL: str = "http://localhost:8000"
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
