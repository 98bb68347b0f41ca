import logging
import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_ORIGINS = [
    "http://localhost:5173",  # Vite dev server
    "http://localhost:3000",
    "https://fe-post-mnm.vercel.app",
]


def env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def parse_origins(raw: str = None):
    """Split a comma-separated origin list.

    Browsers send the Origin header without a trailing slash, so entries are
    stored the same way; otherwise "https://site.app/" would never match.
    """
    if not raw:
        return list(DEFAULT_ORIGINS)
    origins = []
    for item in raw.split(","):
        origin = item.strip().rstrip("/")
        if origin and origin not in origins:
            origins.append(origin)
    return origins


HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))

CORS_ORIGINS = parse_origins(os.environ.get("CORS_ORIGINS"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
SQL_ECHO = env_bool("SQL_ECHO")


def setup_logging():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if SQL_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
