import os
from dataclasses import dataclass
from pathlib import Path

# Per-file and per-request attachment limits for the contact form.
MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024
MAX_ATTACHMENTS = 5


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    upload_dir: str

    email_backend: str
    resend_api_key: str
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    email_from: str
    contact_notify_email: str
    site_name: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _normalize_db_url(url: str) -> str:
    # Heroku-style URLs; SQLAlchemy 2.0 only accepts the postgresql:// scheme.
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_normalize_db_url(_getenv("DATABASE_URL", "sqlite:///consultancy.db")),
        upload_dir=_getenv("UPLOAD_DIR", str(Path(os.getcwd()) / "uploads")),
        email_backend=_getenv("EMAIL_BACKEND", "resend").lower(),
        resend_api_key=_getenv("RESEND_API_KEY", ""),
        smtp_host=_getenv("SMTP_HOST", "smtp.gmail.com"),
        smtp_port=int(_getenv("SMTP_PORT", "587")),
        smtp_user=_getenv("SMTP_USER", ""),
        smtp_password=_getenv("SMTP_PASSWORD", ""),
        email_from=_getenv("EMAIL_FROM", "noreply@example.com"),
        contact_notify_email=_getenv("CONTACT_NOTIFY_EMAIL", "owner@example.com"),
        site_name=_getenv("SITE_NAME", "Consultancy"),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "UPLOAD_DIR": s.upload_dir,
        "EMAIL_BACKEND": s.email_backend,
        "RESEND_API_KEY": s.resend_api_key,
        "SMTP_HOST": s.smtp_host,
        "SMTP_PORT": s.smtp_port,
        "SMTP_USER": s.smtp_user,
        "SMTP_PASSWORD": s.smtp_password,
        "EMAIL_FROM": s.email_from,
        "CONTACT_NOTIFY_EMAIL": s.contact_notify_email,
        "SITE_NAME": s.site_name,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,  # Require HTTPS in production
        # all attachments at their limit plus form fields
        "MAX_CONTENT_LENGTH": MAX_ATTACHMENTS * MAX_ATTACHMENT_BYTES + 1024 * 1024,
    }
