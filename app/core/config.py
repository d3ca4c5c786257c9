from typing import Any, List, Optional
from urllib.parse import quote_plus

from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOCAL_DEV_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:5500"]
SQLITE_FALLBACK_URL = "sqlite:///./noteease.db"


class Settings(BaseSettings):
    PROJECT_NAME: str = "NoteEase Intake"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"

    # --- Environment & Debug ---
    ENVIRONMENT: str = "local"
    DEBUG: bool = False  # Default to False for security
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # --- Notifications ---
    NOTIFICATION_CHANNEL: str = Field(
        default="email",
        description="Administrator channel: 'email', 'telegram' or 'none'.",
    )
    ADMIN_EMAIL: Optional[str] = None
    NOTIFY_FROM: str = "noreply@noteease.app"
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[SecretStr] = None
    TELEGRAM_BOT_TOKEN: Optional[SecretStr] = None
    TELEGRAM_CHAT_ID: Optional[str] = None
    TELEGRAM_API_BASE: str = "https://api.telegram.org"
    NOTIFICATION_TIMEOUT_SECONDS: float = 10.0

    # --- Uploads ---
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 2 * 1024 * 1024  # 2MB
    ALLOWED_UPLOAD_EXTENSIONS: List[str] = Field(
        default_factory=lambda: ["pdf", "doc", "docx", "txt"],
    )

    # --- Forms ---
    CONTACT_EMAIL_REQUIRED: bool = False
    CONFIRMATION_DISPLAY_SECONDS: int = 4
    SUBMISSION_RATE_LIMIT_PER_MINUTE: int = 10

    # --- CORS ---
    ALLOWED_ORIGINS: List[str] = Field(
        default_factory=list,
        validate_default=True,
        description="List of allowed CORS origins. Configure in .env",
    )
    ALLOWED_METHODS: List[str] = Field(
        default_factory=lambda: ["GET", "POST", "OPTIONS"],
        description="Allowed HTTP methods for CORS.",
    )
    ALLOWED_HEADERS: List[str] = Field(
        default_factory=lambda: [
            "Authorization", "Content-Type", "X-Request-ID", "Accept", "Accept-Language",
        ],
        description="Allowed HTTP headers for CORS.",
    )

    # --- Database Config ---
    DB_HOST: Optional[str] = None
    DB_USER: Optional[str] = None
    DB_PASSWORD: Optional[str] = None
    DB_PORT: Optional[str] = "5432"
    DB_NAME: Optional[str] = "noteease"

    # --- Connection Pool ---
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_PRE_PING: bool = True
    DB_POOL_TIMEOUT: float = 5.0
    DB_CONNECT_TIMEOUT: int = 5
    PERSISTENCE_TIMEOUT_SECONDS: float = 5.0

    # --- Master URL ---
    DATABASE_URL: Optional[str] = Field(default=None, validate_default=True)

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def default_allowed_origins(
        cls, v: Optional[List[str]], info: ValidationInfo
    ) -> Optional[List[str]]:
        env = info.data.get("ENVIRONMENT") or "local"
        if env != "production":
            if v is None:
                return list(LOCAL_DEV_ORIGINS)
            if isinstance(v, str) and v.strip() in ("", "[]"):
                return list(LOCAL_DEV_ORIGINS)
            if isinstance(v, list) and len(v) == 0:
                return list(LOCAL_DEV_ORIGINS)
        return v

    @field_validator("NOTIFICATION_CHANNEL", mode="after")
    @classmethod
    def validate_notification_channel(cls, v: str) -> str:
        channel = v.strip().lower()
        if channel not in ("email", "telegram", "none"):
            raise ValueError(
                "NOTIFICATION_CHANNEL must be one of 'email', 'telegram', 'none'"
            )
        return channel

    @field_validator("ALLOWED_UPLOAD_EXTENSIONS", mode="after")
    @classmethod
    def normalize_extensions(cls, v: List[str]) -> List[str]:
        return [ext.strip().lower().lstrip(".") for ext in v if ext.strip()]

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> Any:
        # A full URL wins over the individual DB_* parts
        if isinstance(v, str) and v:
            return v

        values = info.data
        if not values.get("DB_HOST") or not values.get("DB_USER"):
            if (values.get("ENVIRONMENT") or "local") == "production":
                raise ValueError(
                    "DATABASE_URL or DB_HOST/DB_USER must be set in production"
                )
            return SQLITE_FALLBACK_URL

        user = values.get("DB_USER")
        # Passwords may contain @, #, ! and friends
        password = quote_plus(values.get("DB_PASSWORD") or "")
        host = values.get("DB_HOST")
        port = values.get("DB_PORT", "5432")
        db = values.get("DB_NAME", "noteease")

        return f"postgresql://{user}:{password}@{host}:{port}/{db}"


settings = Settings()
