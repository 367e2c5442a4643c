"""
Environment-based configuration for the Math Tutor backend.

Values are read once at import time. A local `.env` file is honoured
for development.
"""

import os
from dotenv import load_dotenv

load_dotenv()

APP_NAME = "AI Math Tutor API"
APP_VERSION = "1.0.0"

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Database - SQLite for local development, PostgreSQL in production
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./mathtutor.db")

# Railway/Heroku style URLs use postgres:// but SQLAlchemy requires postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

SLOW_QUERY_THRESHOLD_MS = int(os.getenv("SLOW_QUERY_THRESHOLD_MS", "100"))

# Cache
REDIS_URL = os.getenv("REDIS_URL")
QUESTION_CACHE_TTL_SECONDS = int(os.getenv("QUESTION_CACHE_TTL_SECONDS", "3600"))
HISTORY_CACHE_TTL_SECONDS = int(os.getenv("HISTORY_CACHE_TTL_SECONDS", "300"))

# Solving backends
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4")
OLLAMA_URL = os.getenv("OLLAMA_URL", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3:latest")
OLLAMA_TIMEOUT_SECONDS = float(os.getenv("OLLAMA_TIMEOUT_SECONDS", "120"))

# Background sweep of questions left in `pending` (0 disables it)
PENDING_SWEEP_INTERVAL_SECONDS = int(os.getenv("PENDING_SWEEP_INTERVAL_SECONDS", "0"))

# Monitoring
SENTRY_DSN = os.getenv("SENTRY_DSN")

ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
]
_extra_origins = os.getenv("CORS_ALLOWED_ORIGINS", "")
if _extra_origins:
    ALLOWED_ORIGINS.extend([o.strip() for o in _extra_origins.split(",") if o.strip()])


def is_production() -> bool:
    return ENVIRONMENT.lower() == "production"
