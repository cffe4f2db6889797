import os


def _env(name: str, default):
    raw = os.getenv(name)
    if raw is None:
        return default
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


class Settings:
    def __init__(self):
        self.app_name = "FitNext"
        self.api_version = "1.0.0"
        self.environment = _env("ENVIRONMENT", "development")
        self.secret_key = _env("SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = _env("ACCESS_TOKEN_EXPIRE_MINUTES", 60)
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = _env("DATABASE_URL", "sqlite:///./fitnext.db")
        self.db_lock_timeout_seconds = _env("DB_LOCK_TIMEOUT_SECONDS", 30)
        self.log_level = _env("LOG_LEVEL", "INFO")

        # Temp-password recovery
        self.temp_password_ttl_minutes = _env("TEMP_PASSWORD_TTL_MINUTES", 10)
        self.temp_password_min_resend_seconds = _env("TEMP_PASSWORD_MIN_RESEND_SECONDS", 120)
        self.temp_password_length = _env("TEMP_PASSWORD_LENGTH", 20)
        self.min_password_length = _env("MIN_PASSWORD_LENGTH", 8)

        # Booking ledger
        self.cancellation_cutoff_minutes = _env("CANCELLATION_CUTOFF_MINUTES", 60)
        self.booking_max_attempts = _env("BOOKING_MAX_ATTEMPTS", 3)
        self.booking_retry_backoff_seconds = _env("BOOKING_RETRY_BACKOFF_SECONDS", 1.0)

        self.cors_origins = [
            origin.strip()
            for origin in _env("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
            if origin.strip()
        ]


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
