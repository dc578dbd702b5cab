import os
from pathlib import Path

from dotenv import load_dotenv

from models.common import parse_bool

# Load environment variables from .env file in the backend folder
backend_dir = Path(__file__).parent
env_path = backend_dir / ".env"
load_dotenv(env_path)

# HS256 secret the auth provider signs the access tokens with
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:  # pragma: no cover
    raise ValueError("JWT_SECRET must be set")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE") or None  # e.g. "authenticated"

API_PREFIX = os.getenv("API_PREFIX", "")
BACKEND_DIR = Path(__file__).parent
DATABASE_PATH = BACKEND_DIR / "tapin.sqlite"
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATABASE_PATH}")
PROJECT_PATH = BACKEND_DIR.parent

TESTING_MODE = parse_bool(os.getenv("TESTING_MODE", False))
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()
