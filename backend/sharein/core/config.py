import os


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Process-wide configuration, read from the environment once at startup.

    Keyword arguments override the environment, which is how tests build
    isolated settings.
    """

    def __init__(self, **overrides):
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./sharein.db")
        self.DB_ECHO: bool = _env_bool("DB_ECHO")

        self.ACCESS_TOKEN_SECRET: str = os.getenv("ACCESS_TOKEN_SECRET", os.getenv("JWT_SECRET", "fallback-secret"))
        self.REFRESH_TOKEN_SECRET: str = os.getenv("REFRESH_TOKEN_SECRET", "refresh-secret")
        self.JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
        self.REFRESH_TOKEN_EXPIRE_DAYS: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "365"))
        self.BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

        self.S3_ENDPOINT: str = os.getenv("S3_ENDPOINT", "minio:9000")
        self.S3_ACCESS_KEY: str = os.getenv("S3_ACCESS_KEY", "minioadmin")
        self.S3_SECRET_KEY: str = os.getenv("S3_SECRET_KEY", "minioadmin")
        self.S3_REGION: str | None = os.getenv("S3_REGION") or None
        self.S3_BUCKET: str = os.getenv("S3_BUCKET", "sharein")
        self.S3_SECURE: bool = _env_bool("S3_SECURE")
        # Base used to build public object URLs, e.g. a CDN in front of the bucket.
        self.S3_PUBLIC_URL: str = os.getenv("S3_PUBLIC_URL", "")
        self.STORAGE_TIMEOUT_SECONDS: float = float(os.getenv("STORAGE_TIMEOUT_SECONDS", "30"))

        self.SENDGRID_API_KEY: str = os.getenv("SENDGRID_API_KEY", "")
        self.EMAIL_FROM: str = os.getenv("EMAIL_FROM", "no-reply@sharein.com")
        self.EMAIL_FROM_NAME: str = os.getenv("EMAIL_FROM_NAME", "ShareIn")
        self.MAIL_TIMEOUT_SECONDS: float = float(os.getenv("MAIL_TIMEOUT_SECONDS", "15"))

        self.PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "https://sharein.com")

        self.MAX_UPLOAD_SIZE: int = int(os.getenv("MAX_UPLOAD_SIZE", str(10 * 1024 * 1024)))
        self.THUMBNAIL_SIZE: int = int(os.getenv("THUMBNAIL_SIZE", "200"))

        # 0 disables the in-process sweep; the sharein-sweep job is the default path.
        self.CLEANUP_INTERVAL_SECONDS: int = int(os.getenv("CLEANUP_INTERVAL_SECONDS", "0"))
        self.CLEANUP_RETRY_ATTEMPTS: int = int(os.getenv("CLEANUP_RETRY_ATTEMPTS", "3"))
        self.CLEANUP_RETRY_BACKOFF_SECS: float = float(os.getenv("CLEANUP_RETRY_BACKOFF_SECS", "0.5"))

        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = int(os.getenv("PORT", "3000"))
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.METRICS_ENABLED: bool = _env_bool("METRICS_ENABLED", "true")

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise TypeError(f"Unknown setting: {key}")
            setattr(self, key, value)
