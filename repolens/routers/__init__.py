from .analysis import router as analysis_router
from .repository import router as repository_router

__all__ = ["analysis_router", "repository_router"]
