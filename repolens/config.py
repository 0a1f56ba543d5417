"""
Runtime configuration for RepoLens.

Values come from the environment; a `.env` file in the working directory
is loaded first so local development does not need exported variables.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# GitHub API
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN")
GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
GITHUB_TIMEOUT = float(os.getenv("GITHUB_TIMEOUT", "30"))
COMMIT_HISTORY_MAX_PAGES = int(os.getenv("COMMIT_HISTORY_MAX_PAGES", "3"))

# Database URL - Prefer Env, default to local repolens.db
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./repolens.db")

# HTTP layer
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "ALLOWED_ORIGINS",
        "http://localhost:3000,http://localhost:5173,http://localhost:8080",
    ).split(",")
    if origin.strip()
]
RATE_LIMIT_ENABLED = _env_bool("RATE_LIMIT_ENABLED", True)
