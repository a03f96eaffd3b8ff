import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

class AccrualSettings(BaseModel):
    annual_paid_leave_days: int = Field(default=int(os.getenv("ANNUAL_PAID_LEAVE_DAYS", "22")))
    annual_sick_leave_days: int = Field(default=int(os.getenv("ANNUAL_SICK_LEAVE_DAYS", "15")))

class Config(BaseModel):
    app_name: str = "LeaveTrack"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./leavetrack.db")

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))  # 24 hours

    # First administrator, created on startup when the users table is empty
    bootstrap_admin_email: Optional[str] = os.getenv("BOOTSTRAP_ADMIN_EMAIL")
    bootstrap_admin_password: Optional[str] = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")

    # Leave balances
    accrual: AccrualSettings = AccrualSettings()

    # Certificates (sick leave justifications)
    certificate_dir: str = os.getenv("CERTIFICATE_DIR", "./var/certificates")
    max_certificate_size: int = int(os.getenv("MAX_CERTIFICATE_SIZE", str(5 * 1024 * 1024)))

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,"
                "http://127.0.0.1:3000,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )

    rate_limit_per_minute: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))

settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    if "dev-only" in settings.secret_key:
        raise RuntimeError(
            "FATAL: SECRET_KEY must be set for non-development environments. "
            "Set it as an environment variable."
        )
else:
    if "dev-only" in settings.secret_key:
        _logger.warning("Using insecure default SECRET_KEY, only acceptable in development.")
