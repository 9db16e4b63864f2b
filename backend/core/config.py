import os
from typing import List, Literal, Optional
from dotenv import load_dotenv

# Load environment variables from .env file located in the parent directory
# Environment variables explicitly set (e.g., by Docker Compose) take precedence.
BASE_DIR = os.path.dirname(os.path.dirname(__file__))
ENV_PATH = os.path.join(BASE_DIR, '.env')
load_dotenv(ENV_PATH)


def parse_cors(value: str) -> List[str]:
    """
    Parses CORS origins. Accepts comma-separated string or list-like string.
    Example: "http://localhost,http://127.0.0.1" → ["http://localhost", "http://127.0.0.1"]
    If the value is empty, a default list of common development origins is provided.
    """
    if not value:
        return [
            "http://localhost:5173",  # Vite dev server
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ]
    if isinstance(value, str):
        value = value.strip()
        if value.startswith("[") and value.endswith("]"):
            # Handles list-like string format (e.g., "['http://a.com', 'http://b.com']")
            return [i.strip().strip('"').strip("'") for i in value[1:-1].split(",")]
        return [i.strip() for i in value.split(",")]
    raise ValueError("Invalid CORS format")


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    """Interprets the usual truthy strings ("1", "true", "yes", "on")."""
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # --- General Environment Settings ---
    # ENVIRONMENT determines application behavior (e.g., static uploads, SQL echo).
    ENVIRONMENT: Literal["local", "staging",
                         "production"] = os.getenv('ENVIRONMENT', 'local')
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    # --- PostgreSQL Database Configuration ---
    # Defaults are set for local Docker Compose setup.
    POSTGRES_USER: str = os.getenv('POSTGRES_USER', 'delivery')
    POSTGRES_PASSWORD: str = os.getenv('POSTGRES_PASSWORD', 'delivery_password')
    POSTGRES_SERVER: str = os.getenv('POSTGRES_SERVER', 'postgres')
    POSTGRES_PORT: int = int(os.getenv('POSTGRES_PORT', 5432))
    POSTGRES_DB: str = os.getenv('POSTGRES_DB', 'delivery_db')

    # Full database URL. Takes precedence over the individual components when set.
    DATABASE_URL: str = os.getenv('DATABASE_URL', "")

    # --- Security Settings ---
    SECRET_KEY: str = os.getenv('SECRET_KEY', 'change-me-in-production')
    ALGORITHM: str = os.getenv('ALGORITHM', "HS256")
    # Admin sessions last a day, matching the tokens issued by the storefront.
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
        os.getenv('ACCESS_TOKEN_EXPIRE_MINUTES', 1440))

    # --- CORS Configuration ---
    RAW_CORS_ORIGINS: str = os.getenv('BACKEND_CORS_ORIGINS', '')
    BACKEND_CORS_ORIGINS: List[str] = parse_cors(RAW_CORS_ORIGINS)

    # --- File Uploads ---
    # Local upload folder, served under /uploads outside production.
    UPLOAD_DIR: str = os.getenv('UPLOAD_DIR', os.path.join(os.getcwd(), 'uploads'))
    MAX_UPLOAD_SIZE_MB: int = int(os.getenv('MAX_UPLOAD_SIZE_MB', 5))

    # --- S3-compatible bucket (optional) ---
    # When S3_BUCKET is empty, uploads are stored in UPLOAD_DIR.
    S3_BUCKET: str = os.getenv('S3_BUCKET', '')
    S3_REGION: str = os.getenv('S3_REGION', 'us-east-1')
    S3_ENDPOINT: str = os.getenv('S3_ENDPOINT', '')
    S3_ACCESS_KEY: Optional[str] = os.getenv('S3_ACCESS_KEY')
    S3_SECRET_KEY: Optional[str] = os.getenv('S3_SECRET_KEY')

    # --- Delivery methods ---
    # Insert the default delivery methods on startup when the catalog is empty.
    SEED_DELIVERY_METHODS: bool = parse_bool(os.getenv('SEED_DELIVERY_METHODS'), default=True)

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """
        Constructs the SQLAlchemy database URI.
        Prioritizes DATABASE_URL over individual components and always uses the async driver.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL

        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


# Instantiate the settings object to be used throughout the application
settings = Settings()
