import os
from dotenv import load_dotenv

load_dotenv()


def _csv(value: str) -> list:
    return [x.strip() for x in value.split(",") if x.strip()]


class Settings:
    # Verification authority
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:8000/api").rstrip("/")
    REQUEST_TIMEOUT_SEC: float = float(os.getenv("REQUEST_TIMEOUT_SEC", "10.0"))
    SESSION_HEADER: str = os.getenv("SESSION_HEADER", "X-Session-ID")

    # Status polling cadence (seconds between scheduled ticks)
    STATUS_POLL_INTERVAL_SEC: float = float(os.getenv("STATUS_POLL_INTERVAL_SEC", "5.0"))

    # Responses that mean the session is gone, whatever endpoint returned them
    AUTH_FAILURE_STATUS_CODES: list = [int(x) for x in _csv(os.getenv("AUTH_FAILURE_STATUS_CODES", "401,403"))]
    SESSION_INVALID_MARKERS: list = [x.lower() for x in _csv(os.getenv("SESSION_INVALID_MARKERS", "session not found"))]

    # Session persistence (two independent keys under this prefix)
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    SESSION_KEY_PREFIX: str = os.getenv("SESSION_KEY_PREFIX", "kycflow:")

    # Logging
    ENABLE_PII_REDACTION: bool = os.getenv("ENABLE_PII_REDACTION", "true").lower() == "true"

    # Local HTTP surface
    API_KEY: str = os.getenv("API_KEY", "")
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")

settings = Settings()
