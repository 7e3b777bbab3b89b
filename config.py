import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./entitlements.db")
    API_PREFIX = data.get("API_PREFIX", "")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")

    # Service-to-service keys
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")
    SERVICE_API_KEY = data.get("SERVICE_API_KEY", "test-service-key-12345")
    WEBHOOK_SECRET = data.get("WEBHOOK_SECRET", "test-webhook-secret-12345")

    # Store access
    STORE_TIMEOUT_SECONDS = float(data.get("STORE_TIMEOUT_SECONDS", 5))
    WEBHOOK_MAX_ATTEMPTS = int(data.get("WEBHOOK_MAX_ATTEMPTS", 5))
    RETRY_BASE_DELAY_SECONDS = float(data.get("RETRY_BASE_DELAY_SECONDS", 0.05))
    RETRY_MAX_DELAY_SECONDS = float(data.get("RETRY_MAX_DELAY_SECONDS", 1.0))

    # Lifecycle windows
    TRIAL_GRACE_DAYS = int(data.get("TRIAL_GRACE_DAYS", 7))
    CANCELLATION_GRACE_DAYS = int(data.get("CANCELLATION_GRACE_DAYS", 30))
    DEDUP_RETENTION_DAYS = int(data.get("DEDUP_RETENTION_DAYS", 30))
