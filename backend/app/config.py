"""Application configuration. Loads from environment and .env file."""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
# Load .env from cwd, then backend/.env, then project root .env
load_dotenv()
load_dotenv(BASE_DIR / ".env")
load_dotenv(BASE_DIR.parent / ".env")

# Paths (override with env)
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(BASE_DIR / "uploads")))
OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", str(BASE_DIR / "converted")))

# Accepted uploads: comma-separated media types, e.g. "image/webp,image/png"
ACCEPTED_SOURCE_TYPES = frozenset(
    t.strip().lower() for t in os.getenv("ACCEPTED_SOURCE_TYPES", "image/webp").split(",") if t.strip()
)
MAX_UPLOAD_SIZE_MB = int(os.getenv("MAX_UPLOAD_SIZE_MB", "5"))
MAX_UPLOAD_SIZE_BYTES = MAX_UPLOAD_SIZE_MB * 1024 * 1024

# Published artifacts are served under this prefix
PUBLIC_URL_PREFIX = os.getenv("PUBLIC_URL_PREFIX", "/converted").rstrip("/")
PUBLISH_NAME_ATTEMPTS = int(os.getenv("PUBLISH_NAME_ATTEMPTS", "5"))

# Concurrency
MAX_WORKERS = int(os.getenv("MAX_WORKERS", str(min(32, (os.cpu_count() or 4) + 4))))

# Server (for uvicorn)
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5000"))
# CORS: comma-separated origins, e.g. "http://localhost:3000,http://127.0.0.1:3000"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",") if o.strip()]

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("converter")


@dataclass(frozen=True)
class ConverterSettings:
    """Everything one orchestrator needs; passed in explicitly rather than read from globals."""

    upload_dir: Path
    output_dir: Path
    accepted_source_types: frozenset[str] = frozenset({"image/webp"})
    max_upload_bytes: int = 5 * 1024 * 1024
    public_url_prefix: str = "/converted"
    publish_name_attempts: int = 5
    max_workers: int = 4
    cors_origins: list[str] = field(default_factory=list)

    @property
    def max_upload_mb(self) -> int:
        return self.max_upload_bytes // (1024 * 1024)


def load_settings() -> ConverterSettings:
    """Build settings from the environment-derived module constants."""
    return ConverterSettings(
        upload_dir=UPLOAD_DIR,
        output_dir=OUTPUT_DIR,
        accepted_source_types=ACCEPTED_SOURCE_TYPES,
        max_upload_bytes=MAX_UPLOAD_SIZE_BYTES,
        public_url_prefix=PUBLIC_URL_PREFIX,
        publish_name_attempts=PUBLISH_NAME_ATTEMPTS,
        max_workers=MAX_WORKERS,
        cors_origins=CORS_ORIGINS,
    )
