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
    # Service
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    ENVIRONMENT = data.get("ENVIRONMENT", "development")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    # Storage
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./crm_auth.db")
    STORE_TIMEOUT_SECONDS = float(data.get("STORE_TIMEOUT_SECONDS", 5))
    CACHE_BACKEND = data.get("CACHE_BACKEND", "memory")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")

    # Tokens
    JWT_ACCESS_SECRET = data.get("JWT_ACCESS_SECRET", "dev-access-secret-change-in-production")
    JWT_REFRESH_SECRET = data.get("JWT_REFRESH_SECRET", "dev-refresh-secret-change-in-production")
    JWT_ALGORITHM = data.get("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = data.get("JWT_ISSUER", "crm-auth")
    JWT_AUDIENCE = data.get("JWT_AUDIENCE", "crm-users")
    ACCESS_TOKEN_TTL_SECONDS = int(data.get("ACCESS_TOKEN_TTL_SECONDS", 15 * 60))
    REFRESH_TOKEN_TTL_SECONDS = int(data.get("REFRESH_TOKEN_TTL_SECONDS", 7 * 24 * 60 * 60))

    # Cookies
    COOKIE_SECURE = bool(data.get("COOKIE_SECURE", ENVIRONMENT == "production"))
    COOKIE_SAMESITE = data.get("COOKIE_SAMESITE", "strict")
    COOKIE_PATH = data.get("COOKIE_PATH", "/")

    # Password hashing and policy
    BCRYPT_ROUNDS = int(data.get("BCRYPT_ROUNDS", 12))
    PASSWORD_MIN_LENGTH = int(data.get("PASSWORD_MIN_LENGTH", 8))
    PASSWORD_REQUIRE_SPECIAL = bool(data.get("PASSWORD_REQUIRE_SPECIAL", True))

    # Rate limiting
    LOGIN_RATE_LIMIT_MAX_ATTEMPTS = int(data.get("LOGIN_RATE_LIMIT_MAX_ATTEMPTS", 5))
    LOGIN_RATE_LIMIT_WINDOW_SECONDS = int(data.get("LOGIN_RATE_LIMIT_WINDOW_SECONDS", 15 * 60))
    LOGIN_RATE_LIMIT_BLOCK_SECONDS = int(data.get("LOGIN_RATE_LIMIT_BLOCK_SECONDS", 30 * 60))
    REGISTER_RATE_LIMIT_MAX_ATTEMPTS = int(data.get("REGISTER_RATE_LIMIT_MAX_ATTEMPTS", 3))
    REGISTER_RATE_LIMIT_WINDOW_SECONDS = int(data.get("REGISTER_RATE_LIMIT_WINDOW_SECONDS", 60 * 60))
    REGISTER_RATE_LIMIT_BLOCK_SECONDS = int(data.get("REGISTER_RATE_LIMIT_BLOCK_SECONDS", 2 * 60 * 60))
    TWO_FACTOR_RATE_LIMIT_MAX_ATTEMPTS = int(data.get("TWO_FACTOR_RATE_LIMIT_MAX_ATTEMPTS", 5))
    TWO_FACTOR_RATE_LIMIT_WINDOW_SECONDS = int(data.get("TWO_FACTOR_RATE_LIMIT_WINDOW_SECONDS", 5 * 60))
    TWO_FACTOR_RATE_LIMIT_BLOCK_SECONDS = int(data.get("TWO_FACTOR_RATE_LIMIT_BLOCK_SECONDS", 15 * 60))
    RATE_LIMIT_SWEEP_INTERVAL_SECONDS = int(data.get("RATE_LIMIT_SWEEP_INTERVAL_SECONDS", 60))

    # Sessions
    SESSION_STRICT_MODE = bool(data.get("SESSION_STRICT_MODE", False))
    SESSION_IDLE_TIMEOUT_SECONDS = int(data.get("SESSION_IDLE_TIMEOUT_SECONDS", 0))

    # Two-factor
    TWO_FACTOR_ISSUER = data.get("TWO_FACTOR_ISSUER", "CRM")
    TWO_FACTOR_BACKUP_CODE_COUNT = int(data.get("TWO_FACTOR_BACKUP_CODE_COUNT", 10))
    TWO_FACTOR_VALID_WINDOW = int(data.get("TWO_FACTOR_VALID_WINDOW", 1))

    # Registration
    DEFAULT_ORGANIZATION_ID = data.get("DEFAULT_ORGANIZATION_ID", "default-org")
