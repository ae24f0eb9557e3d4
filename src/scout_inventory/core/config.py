import os

# Read once at process start; changing the environment afterwards has no effect.
DATA_BACKEND: str = os.getenv("DATA_BACKEND", "relational").lower()

DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite://./scout_inventory.sqlite3")
GENERATE_SCHEMAS: bool = os.getenv("GENERATE_SCHEMAS", "true").lower() in ("true", "1", "t")

MONGODB_CONNECTION_STRING: str = os.getenv(
    "MONGODB_CONNECTION_STRING", "mongodb://localhost:27017"
)
MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "scout_inventory")

SECRET_KEY: str = os.getenv(
    "SECRET_KEY", "your-secret-key-for-jwt-!ChangeMe!"
)  # TODO: fail startup when SECRET_KEY is left at this default outside development
ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

CORS_ALLOW_ORIGINS: list[str] = [
    origin.strip() for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if origin.strip()
]

WITHDRAWAL_NOTIFY_EMAIL: str = os.getenv(
    "WITHDRAWAL_NOTIFY_EMAIL", "stock@scout-inventory.local"
)

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_NAMESPACES: list[str] = [
    ns.strip() for ns in os.getenv("LOG_NAMESPACES", "").split(",") if ns.strip()
]
