from .interview import router as interview_router
from .traces import router as traces_router

__all__ = ["interview_router", "traces_router"]
