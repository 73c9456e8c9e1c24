"""Application configuration via environment variables."""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """App settings loaded from .env or environment.

    JWT_SECRET and DATABASE_URL have no defaults: constructing the settings
    without them raises, which aborts startup.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = Field(min_length=1)

    JWT_SECRET: str = Field(min_length=1)
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    BCRYPT_ROUNDS: int = 10

    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_CALLBACK_URL: str = "http://localhost:3000/auth/google/callback"

    AMAZON_CLIENT_ID: str = ""
    AMAZON_CLIENT_SECRET: str = ""
    AMAZON_CALLBACK_URL: str = "http://localhost:3000/auth/amazon/callback"

    OAUTH_STATE_EXPIRE_MINUTES: int = 10
    OAUTH_HTTP_TIMEOUT: float = 10.0

    FRONTEND_URL: str = "http://localhost:5173"
    CORS_ORIGINS: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"


settings = Settings()
