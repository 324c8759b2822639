"""API v1 router."""

from fastapi import APIRouter

from mobide.api.v1.files import router as files_router
from mobide.api.v1.sessions import router as sessions_router
from mobide.api.v1.terminal import router as terminal_router

router = APIRouter()

# Include sub-routers
router.include_router(sessions_router, prefix="/session", tags=["sessions"])
router.include_router(files_router, prefix="/files", tags=["files"])
router.include_router(terminal_router, tags=["terminal"])
