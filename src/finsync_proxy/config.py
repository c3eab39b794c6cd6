"""Runtime configuration loaded from the environment (and an optional .env file)."""
from pydantic_settings import BaseSettings, SettingsConfigDict

INSECURE_DEFAULT_SECRET = "your-secret-key-change-in-production"


class Settings(BaseSettings):
    """Application settings.

    Every field maps to an upper-case environment variable of the same name
    (e.g. ``jwt_secret`` <- ``JWT_SECRET``).
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Identity tokens
    jwt_secret: str = INSECURE_DEFAULT_SECRET
    jwt_algorithm: str = "HS256"
    token_lifetime_hours: int = 24

    # Friend API
    friend_api_base_url: str = "https://finance-portfolio-management-apis.onrender.com"
    upstream_timeout_seconds: float = 10.0

    # Shared service account for unauthenticated quote/predict calls.
    service_account_email: str | None = None
    service_account_password: str | None = None
    fallback_login_attempts: int = 3
    fallback_login_delay_seconds: float = 1.0
    predict_attempts: int = 3
    predict_retry_delay_seconds: float = 2.0

    # Persistence
    database_url: str = "sqlite:///./finsync.db"
    sql_echo: bool = False
    credential_encryption_secret: str | None = None

    @property
    def encryption_secret(self) -> str:
        """Secret used to derive the at-rest credential key; falls back to the JWT secret."""
        return self.credential_encryption_secret or self.jwt_secret

    @property
    def uses_insecure_secret(self) -> bool:
        return self.jwt_secret == INSECURE_DEFAULT_SECRET
