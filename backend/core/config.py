"""
Configuration management for the Kotahi backend.
Loads configuration from environment variables and .env file.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
# Look for .env file in the project root or the backend directory
BACKEND_DIR = Path(__file__).parent.parent
PROJECT_ROOT = BACKEND_DIR.parent
ENV_FILE = PROJECT_ROOT / ".env"

if ENV_FILE.exists():
    load_dotenv(ENV_FILE)
else:
    backend_env = BACKEND_DIR / ".env"
    if backend_env.exists():
        load_dotenv(backend_env)

# Base paths
BASE_DIR = PROJECT_ROOT
DATA_DIR = Path(os.getenv("DATA_DIR", str(BASE_DIR / "data")))
DB_PATH = Path(os.getenv("DB_PATH", str(DATA_DIR / "kotahi.db")))
SCHEMA_PATH = BACKEND_DIR / "db" / "schema.sql"

# Subtitle store. Video records point at files here either by upload URL,
# by path, or by bare filename.
VTT_DIR = Path(os.getenv("VTT_DIR", str(DATA_DIR / "uploads" / "vtt")))
VTT_URL_PREFIX = os.getenv("VTT_URL_PREFIX", "/api/v1/uploads/vtt/")

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)
VTT_DIR.mkdir(parents=True, exist_ok=True)

# API configuration
API_V1_PREFIX = "/api/v1"
# CORS origins can be comma-separated list in env var
CORS_ORIGINS_STR = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001")
CORS_ORIGINS = [origin.strip() for origin in CORS_ORIGINS_STR.split(",")]

# Request deadlines (seconds)
REQUEST_TIMEOUT_SEC = float(os.getenv("REQUEST_TIMEOUT_SEC", "10"))
REINDEX_TIMEOUT_SEC = float(os.getenv("REINDEX_TIMEOUT_SEC", "300"))
REINDEX_LOCK_TIMEOUT_SEC = float(os.getenv("REINDEX_LOCK_TIMEOUT_SEC", "0.5"))

# Search
MIN_QUERY_LENGTH = int(os.getenv("MIN_QUERY_LENGTH", "2"))
SEARCH_MAX_WORKERS = int(os.getenv("SEARCH_MAX_WORKERS", "2"))
RECENT_EXPOSURE_DAYS = int(os.getenv("RECENT_EXPOSURE_DAYS", "7"))

# Vocabulary CSV upload
CSV_MAX_BYTES = int(os.getenv("CSV_MAX_BYTES", str(100 * 1024 * 1024)))  # 100 MiB
MAORI_MAX_LENGTH = int(os.getenv("MAORI_MAX_LENGTH", "200"))
ENGLISH_MAX_LENGTH = int(os.getenv("ENGLISH_MAX_LENGTH", "200"))
DESCRIPTION_MAX_LENGTH = int(os.getenv("DESCRIPTION_MAX_LENGTH", "1000"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
