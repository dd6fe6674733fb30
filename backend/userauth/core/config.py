"""Runtime settings for the auth service, read from the environment.

Settings for the database, the credential store bounds, the API, and
authentication. Uses pydantic-settings for validation and .env file support.
"""

from datetime import timedelta

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Development-only database password; rejected when environment=production
# Security: Runtime check in check_invariants() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "userauth_dev_password"  # nosec B105

# bcrypt accepts cost factors 4..31. Production requires at least 10.
_MIN_BCRYPT_ROUNDS = 4
_MAX_BCRYPT_ROUNDS = 31
_MIN_PRODUCTION_BCRYPT_ROUNDS = 10


class Settings(BaseSettings):
    """Environment-driven settings; names map to upper-case env vars."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "userauth"
    database_user: str = "userauth_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD

    # Credential store bounds
    # Every store operation is cut off after db_timeout_seconds.
    db_timeout_seconds: float = 3.0
    db_max_open_connections: int = 5
    db_max_idle_connections: int = 5
    db_connection_max_lifetime_seconds: int = 300

    # API
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8081

    # CORS (Security)
    # CRITICAL: Never set to ["*"] when allow_credentials=True
    allowed_origins: list[str] = ["http://localhost:8080"]

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    log_json: bool = False

    # Authentication
    bcrypt_rounds: int = 12
    login_token_ttl_seconds: int = 24 * 60 * 60
    max_token_ttl_seconds: int = 30 * 24 * 60 * 60

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL for the asyncpg driver."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def login_token_ttl(self) -> timedelta:
        """Lifetime of tokens issued by the login flow."""
        return timedelta(seconds=self.login_token_ttl_seconds)

    @property
    def max_token_ttl(self) -> timedelta:
        """Upper bound for caller-specified token lifetimes."""
        return timedelta(seconds=self.max_token_ttl_seconds)

    @model_validator(mode="after")
    def check_invariants(self) -> "Settings":
        """Validate store bounds, auth parameters, and production security.

        Checks:
        - Store timeout must be positive
        - Connection caps must be consistent (1 <= idle <= open)
        - bcrypt cost factor must be one bcrypt accepts
        - Login TTL must be positive and within the issuance maximum
        - CORS must not use wildcard origin (incompatible with credentials)
        - Production: non-default database password, bcrypt cost >= 10
        """
        if self.db_timeout_seconds <= 0:
            msg = f"DB_TIMEOUT_SECONDS must be positive. Got: {self.db_timeout_seconds}"
            raise ValueError(msg)

        if self.db_max_open_connections < 1:
            msg = (
                "DB_MAX_OPEN_CONNECTIONS must be at least 1. "
                f"Got: {self.db_max_open_connections}"
            )
            raise ValueError(msg)
        if not 1 <= self.db_max_idle_connections <= self.db_max_open_connections:
            msg = (
                "DB_MAX_IDLE_CONNECTIONS must be between 1 and "
                f"DB_MAX_OPEN_CONNECTIONS ({self.db_max_open_connections}). "
                f"Got: {self.db_max_idle_connections}"
            )
            raise ValueError(msg)

        if not _MIN_BCRYPT_ROUNDS <= self.bcrypt_rounds <= _MAX_BCRYPT_ROUNDS:
            msg = (
                f"BCRYPT_ROUNDS must be between {_MIN_BCRYPT_ROUNDS} and "
                f"{_MAX_BCRYPT_ROUNDS}. Got: {self.bcrypt_rounds}"
            )
            raise ValueError(msg)

        if self.login_token_ttl_seconds <= 0:
            msg = (
                "LOGIN_TOKEN_TTL_SECONDS must be positive. "
                f"Got: {self.login_token_ttl_seconds}"
            )
            raise ValueError(msg)
        if self.login_token_ttl_seconds > self.max_token_ttl_seconds:
            msg = (
                "LOGIN_TOKEN_TTL_SECONDS must not exceed MAX_TOKEN_TTL_SECONDS "
                f"({self.max_token_ttl_seconds})."
            )
            raise ValueError(msg)

        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "Bearer-authenticated CORS requests are sent with credentials, "
                "which browsers refuse for wildcard origins."
            )
            raise ValueError(msg)

        if self.environment == "production":
            if self.database_password == _INSECURE_DEFAULT_PASSWORD:
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)
            if self.bcrypt_rounds < _MIN_PRODUCTION_BCRYPT_ROUNDS:
                msg = (
                    f"BCRYPT_ROUNDS must be at least {_MIN_PRODUCTION_BCRYPT_ROUNDS} "
                    "in production."
                )
                raise ValueError(msg)

        return self


settings = Settings()
