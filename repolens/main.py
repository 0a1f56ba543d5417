"""
RepoLens API

Main FastAPI application: repository metadata and heuristic analysis
(tech stack, size estimates, quality scores, commit activity).

Run with: uvicorn repolens.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from . import __version__, config
from .database import init_db
from .limiter import limiter
from .logging_config import setup_logging
from .routers import analysis_router, repository_router

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables
    init_db()
    if not config.GITHUB_TOKEN:
        logger.warning("GITHUB_TOKEN is not set; GitHub API calls are unauthenticated and heavily rate limited")
    yield


app = FastAPI(
    title="RepoLens API",
    description="GitHub repository analyzer: tech stack, code metrics, quality scores and commit activity",
    version=__version__,
    lifespan=lifespan,
)

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests. Please try again later."},
    )


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type"],
)

app.include_router(repository_router)
app.include_router(analysis_router)


@app.get("/")
def read_root():
    """Health check endpoint."""
    return {"status": "ok", "version": __version__, "message": "RepoLens API"}
