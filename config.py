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
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./test.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")
    # "memory" (single process) or "redis" (pub/sub across processes)
    NOTIFIER_BACKEND = data.get("NOTIFIER_BACKEND", "memory")
    NOTIFIER_CHANNEL_PREFIX = data.get("NOTIFIER_CHANNEL_PREFIX", "invitations")
    QR_CODE_PREFIX = data.get("QR_CODE_PREFIX", "GATEPASS:")
    SHORT_CODE_LENGTH = int(data.get("SHORT_CODE_LENGTH", 6))
    # Optional {role: [capability, ...]} replacing the default entry per role
    ROLE_CAPABILITIES = data.get("ROLE_CAPABILITIES", {})
